import math

import pytest

from subnetdash.src.subsets.analyzer import SubsetAnalyzer
from subnetdash.src.subsets.stage1_normalizer import (
    ScoreTableNormalizer,
    parse_eligible,
    parse_number,
    parse_score_any,
    parse_uid,
)


@pytest.mark.parametrize("raw, expected", [
    ("81.9*", 81.9),
    ("81.9/100", 81.9),
    ("*81.9*/100*", 81.9),
    (81.9, 81.9),
    (7, 7.0),
    ("  42.5", 42.5),
    ("1e2", 100.0),
    ("12abc", 12.0),
    ("-3.5", -3.5),
])
def test_parse_score_any_decorated_values(raw, expected):
    assert parse_score_any(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [
    None,
    "not-a-number",
    "",
    "*",
    "/100",
    float("nan"),
    float("inf"),
    "Infinity",
    "1e400",
    10 ** 400,
    True,
])
def test_parse_score_any_degrades_to_none(raw):
    assert parse_score_any(raw) is None


def test_parse_number_rejects_decorations():
    assert parse_number("12.5") == 12.5
    assert parse_number(" 3 ") == 3.0
    assert parse_number("12.5*") is None
    assert parse_number("abc") is None
    assert parse_number(None) is None
    assert parse_number(math.inf) is None


def test_parse_uid():
    assert parse_uid(5) == 5
    assert parse_uid("17") == 17
    assert parse_uid(3.0) == 3
    assert parse_uid(3.5) is None
    assert parse_uid("abc") is None
    assert parse_uid(None) is None


def test_parse_eligible():
    assert parse_eligible("Y") is True
    assert parse_eligible("n") is False
    assert parse_eligible(True) is True
    assert parse_eligible("maybe") is None
    assert parse_eligible(None) is None


def test_normalize_builds_typed_miners():
    columns = ["UID", "Model", "Rev", "SAT", "ABD", "Pts", "Elig", "Wgt"]
    rows = [
        [1, "org/alpha", "abc123", "81.9*", "60/100", 12, "Y", 0.5],
        ["2", "org/beta", None, None, 70, None, "N", None],
    ]

    miners = ScoreTableNormalizer().normalize(columns, rows, ["SAT", "ABD"])

    assert len(miners) == 2
    alpha, beta = miners
    assert alpha.id == "1|org/alpha"
    assert alpha.uid == 1
    assert alpha.rev == "abc123"
    assert alpha.env == {"SAT": 81.9, "ABD": 60.0}
    assert alpha.pts == 12.0
    assert alpha.weight == 0.5
    assert alpha.eligible is True

    assert beta.uid == 2
    assert beta.rev == ""
    assert beta.env == {"SAT": None, "ABD": 70.0}
    assert beta.pts is None
    assert beta.weight is None


def test_normalize_missing_columns_and_garbled_cells():
    columns = ["UID", "Model", "SAT", "ABD"]
    rows = [
        ["x7", "m1", "garbage", 50],
        [3, "m2"],  # short row
    ]

    miners = ScoreTableNormalizer().normalize(columns, rows, ["SAT", "ABD", "DED"])

    first, second = miners
    assert first.uid is None
    assert first.id == "-1|m1"
    assert first.pts is None and first.weight is None
    assert first.env == {"SAT": None, "ABD": 50.0, "DED": None}
    # every inferred environment has an entry, even when the column is absent
    assert set(second.env) == {"SAT", "ABD", "DED"}
    assert all(v is None for v in second.env.values())


def test_normalize_skips_non_array_rows():
    miners = ScoreTableNormalizer().normalize(["UID", "Model"], [[1, "a"], "oops", None], [])
    assert [m.model for m in miners] == ["a"]


def test_huge_integer_cells_degrade_instead_of_raising():
    assert parse_number(10 ** 400) is None
    assert parse_number(str(10 ** 400)) is None

    result = SubsetAnalyzer().analyze(
        ["UID", "Model", "SAT", "ABD", "Pts", "Wgt"],
        [[1, "a", 10 ** 400, 5, 1, 1], [2, "b", 3, 4, 1, 1]],
    )

    assert result.miners[0].env["SAT"] is None
    assert [w.winner.model for w in result.winners] == ["b", "a", "b"]
