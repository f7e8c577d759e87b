"""
Subset Winners - Runner

Loads a summary snapshot (saved file or live endpoints), runs the subset
analysis and prints the requested view. Used by the CLI in one-shot and
watch modes.
"""

import asyncio
from pathlib import Path
from typing import Optional

from subnetdash.core.setup import logger
from subnetdash.src.subsets.analyzer import SubsetAnalyzer
from subnetdash.src.subsets.config import SubsetConfig
from subnetdash.src.subsets.models import AnalysisResult
from subnetdash.src.subsets.stage3_aggregate import (
    ledger_to_csv,
    render_ledger,
    render_matrix,
    render_points_by_size,
)
from subnetdash.src.summary.cache import SummaryCache
from subnetdash.src.summary.fetcher import SummaryFetcher, load_summary_file
from subnetdash.src.summary.config import SummaryConfig
from subnetdash.src.summary.models import SummaryTable
from subnetdash.utils.api_client import cli_api_client

VIEWS = ("matrix", "ledger", "points", "envs")


async def fetch_summary(
    primary_url: Optional[str] = None,
    fallback_url: Optional[str] = None,
    timeout_seconds: Optional[float] = None,
) -> SummaryTable:
    """Fetch one summary snapshot from the live endpoints."""
    fetcher = SummaryFetcher(primary_url, fallback_url)
    async with cli_api_client(timeout_seconds or SummaryConfig.HTTP_TIMEOUT) as client:
        return await fetcher.fetch(client)


def analyze_table(
    table: SummaryTable,
    metric: Optional[str] = None,
    top_m: Optional[int] = None,
) -> AnalysisResult:
    """Run the subset analysis over a snapshot."""
    analyzer = SubsetAnalyzer(SubsetConfig)
    return analyzer.analyze(table.columns, table.rows, metric=metric, top_m=top_m)


def render_view(result: AnalysisResult, view: str) -> str:
    """Text rendering of one view of an analysis result."""
    if view == "envs":
        lines = [f"Environments ({len(result.envs)}): {', '.join(result.envs) or '-'}"]
        for env, count in result.env_coverage.items():
            lines.append(f"  {env:<12} {count:>4} miners with a score")
        return "\n".join(lines)

    if result.insufficient_data:
        return (
            f"Insufficient data: need at least {SubsetConfig.MIN_ENVS} environments "
            f"(found {len(result.envs)}: {', '.join(result.envs) or '-'}) and one miner "
            f"(found {len(result.miners)})"
        )

    if view == "matrix":
        return render_matrix(result.envs, result.columns, result.colors, result.metric)
    if view == "ledger":
        return render_ledger(result.ledger)
    if view == "points":
        return render_points_by_size(result.points_by_size)
    raise ValueError(f"Unknown view: {view}")


def export_ledger_csv(result: AnalysisResult, path: str) -> int:
    """Write the ledger CSV to path. Returns the number of data rows written."""
    Path(path).write_text(ledger_to_csv(result.ledger), encoding="utf-8")
    logger.info(f"Exported {len(result.ledger)} ledger rows to {path}")
    return len(result.ledger)


async def load_table(
    input_path: Optional[str] = None,
    primary_url: Optional[str] = None,
    fallback_url: Optional[str] = None,
) -> SummaryTable:
    """Snapshot from a saved file when input_path is given, else from the endpoints."""
    if input_path:
        logger.info(f"Loading summary from {input_path}")
        return load_summary_file(input_path)
    logger.info("Fetching summary from live endpoints...")
    return await fetch_summary(primary_url, fallback_url)


async def run_once(
    view: str,
    metric: Optional[str] = None,
    top_m: Optional[int] = None,
    input_path: Optional[str] = None,
    csv_path: Optional[str] = None,
    primary_url: Optional[str] = None,
    fallback_url: Optional[str] = None,
) -> AnalysisResult:
    """Load one snapshot, analyze it and print the view."""
    table = await load_table(input_path, primary_url, fallback_url)
    result = analyze_table(table, metric=metric, top_m=top_m)

    print(render_view(result, view), flush=True)
    if csv_path:
        export_ledger_csv(result, csv_path)

    logger.info(f"Summary: {result.get_summary()}")
    return result


async def run_watch(
    view: str,
    metric: Optional[str] = None,
    top_m: Optional[int] = None,
    interval_seconds: Optional[float] = None,
    iterations: Optional[int] = None,
    primary_url: Optional[str] = None,
    fallback_url: Optional[str] = None,
) -> None:
    """Poll the endpoints and re-render the view on every new snapshot.

    Args:
        iterations: Stop after this many snapshots (None = run until interrupted)
    """
    fetcher = SummaryFetcher(primary_url, fallback_url)
    done = asyncio.Event()
    seen = 0

    async with cli_api_client(SummaryConfig.HTTP_TIMEOUT) as client:
        cache = SummaryCache(lambda: fetcher.fetch(client), interval_seconds=interval_seconds)

        def on_snapshot(table: SummaryTable) -> None:
            nonlocal seen
            seen += 1
            result = analyze_table(table, metric=metric, top_m=top_m)
            print(render_view(result, view), flush=True)
            if iterations is not None and seen >= iterations:
                done.set()

        cache.subscribe(on_snapshot)
        await cache.start()
        try:
            await done.wait()
        finally:
            await cache.stop()
