from subnetdash.src.subsets.environments import (
    environment_coverage,
    infer_environments,
    normalize_column_name,
)
from subnetdash.src.subsets.models import Miner


def test_normalize_column_name():
    assert normalize_column_name("sat_v2") == "SATV2"
    assert normalize_column_name("L-1") == "L1"
    assert normalize_column_name("Model") == "MODEL"


def test_preferred_order_is_kept():
    columns = ["UID", "Model", "Rev", "ABD", "SAT", "DED", "ELR", "L1", "L2", "L3", "L4", "Pts", "Elig", "Wgt"]
    envs = infer_environments(columns)
    # preference order, capped at 8
    assert envs == ["SAT", "ABD", "DED", "ELR", "L1", "L2", "L3", "L4"]


def test_prefix_and_case_insensitive_match_keeps_original_name():
    columns = ["UID", "Model", "sat-v2", "abd (%)", "Pts"]
    assert infer_environments(columns) == ["sat-v2", "abd (%)"]


def test_fallback_to_short_codes_excludes_meta_columns():
    columns = ["UID", "Model", "Rev", "GAME", "CDE", "Pts", "Elig", "Wgt", "Weight", "a_very_long_name"]
    assert infer_environments(columns) == ["GAME", "CDE"]


def test_fallback_adds_to_single_preferred_match():
    columns = ["UID", "SAT", "GAME", "Points"]
    assert infer_environments(columns) == ["SAT", "GAME"]


def test_cap_at_eight():
    columns = ["UID"] + [f"E{i}" for i in range(12)]
    envs = infer_environments(columns)
    assert len(envs) == 8
    assert envs == [f"E{i}" for i in range(8)]


def test_no_environments():
    assert infer_environments(["UID", "Model", "Pts"]) == []


def test_environment_coverage():
    miners = [
        Miner(id="1|a", uid=1, model="a", env={"SAT": 1.0, "ABD": None}),
        Miner(id="2|b", uid=2, model="b", env={"SAT": 2.0, "ABD": 3.0}),
    ]
    assert environment_coverage(["SAT", "ABD"], miners) == {"SAT": 2, "ABD": 1}
