from contextlib import asynccontextmanager
from unittest.mock import MagicMock

import pytest

from subnetdash.src.subsets import main
from subnetdash.src.summary.cache import SummaryCache
from subnetdash.src.summary.models import SummaryTable

TABLE = SummaryTable(
    columns=["UID", "Model", "SAT", "ABD", "Pts", "Wgt"],
    rows=[[1, "M1", 80, 60, 10, 1], [2, "M2", 60, 90, 20, 1]],
)


class StubFetcher:
    def __init__(self, primary_url=None, fallback_url=None):
        self.calls = 0

    async def fetch(self, client):
        self.calls += 1
        return TABLE


@pytest.fixture
def watch_env(monkeypatch):
    caches = []
    fetchers = []

    class RecordingCache(SummaryCache):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            caches.append(self)

    def make_fetcher(primary_url=None, fallback_url=None):
        fetcher = StubFetcher(primary_url, fallback_url)
        fetchers.append(fetcher)
        return fetcher

    @asynccontextmanager
    async def fake_client(timeout_seconds=None):
        yield MagicMock()

    monkeypatch.setattr(main, "SummaryCache", RecordingCache)
    monkeypatch.setattr(main, "SummaryFetcher", make_fetcher)
    monkeypatch.setattr(main, "cli_api_client", fake_client)
    return caches, fetchers


@pytest.mark.asyncio
async def test_run_watch_renders_each_snapshot_then_stops(watch_env, capsys):
    caches, fetchers = watch_env

    await main.run_watch("matrix", metric="pts", top_m=30, interval_seconds=0.05, iterations=2)

    output = capsys.readouterr().out
    assert output.count("SUBSET WINNERS MATRIX") == 2
    assert fetchers[0].calls == 2
    cache = caches[0]
    assert not cache.running
    assert cache.refresh_count == 2
    assert cache.snapshot is TABLE


@pytest.mark.asyncio
async def test_run_once_from_file(tmp_path, capsys):
    path = tmp_path / "summary.json"
    path.write_text(TABLE.model_dump_json(), encoding="utf-8")
    csv_path = tmp_path / "ledger.csv"

    result = await main.run_once("ledger", input_path=str(path), csv_path=str(csv_path))

    assert "SUBSET WINNERS LEDGER" in capsys.readouterr().out
    assert len(result.ledger) == 3
    assert csv_path.read_text(encoding="utf-8").count("\n") == 3
