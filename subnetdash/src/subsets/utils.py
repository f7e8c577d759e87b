"""
Subset Analysis Utility Functions

Bitmask helpers and score arithmetic shared by the engine and the views.
"""

from typing import Dict, List, Optional, Iterator
import math

NEG_INF = float("-inf")


def popcount(mask: int) -> int:
    """Number of environments in a subset mask."""
    count = 0
    while mask:
        mask &= mask - 1
        count += 1
    return count


def iter_masks(n_envs: int) -> Iterator[int]:
    """Yield every non-empty subset mask over n_envs environments (1 .. 2^N - 1)."""
    return iter(range(1, 1 << n_envs))


def count_subsets(n_envs: int) -> int:
    """Number of non-empty subsets: 2^N - 1."""
    return (1 << n_envs) - 1 if n_envs > 0 else 0


def subset_env_list(mask: int, envs: List[str]) -> List[str]:
    """Member environment names of a mask, in original order."""
    return [env for i, env in enumerate(envs) if mask & (1 << i)]


def rank_value(value: Optional[float]) -> float:
    """Comparable value of an optional score.

    Absent values rank below every defined value, i.e. as -inf. Every
    comparison over optional scores, weights and points goes through here.
    """
    if value is None:
        return NEG_INF
    value = float(value)
    return value if math.isfinite(value) else NEG_INF


def has_any_score(env_scores: Dict[str, Optional[float]], envs: List[str], mask: int) -> bool:
    """True if at least one environment in mask has a finite score."""
    for i, env in enumerate(envs):
        if mask & (1 << i) and rank_value(env_scores.get(env)) != NEG_INF:
            return True
    return False


def sum_scores(env_scores: Dict[str, Optional[float]], envs: List[str], mask: int) -> float:
    """Sum of scores over exactly the subset; -inf if any of them is absent."""
    total = 0.0
    for i, env in enumerate(envs):
        if mask & (1 << i):
            value = rank_value(env_scores.get(env))
            if value == NEG_INF:
                return NEG_INF
            total += value
    return total


def mean_scores(env_scores: Dict[str, Optional[float]], envs: List[str], mask: int) -> float:
    """Mean over the defined scores in the subset; -inf if none is defined."""
    values = [
        rank_value(env_scores.get(env))
        for i, env in enumerate(envs)
        if mask & (1 << i)
    ]
    values = [v for v in values if v != NEG_INF]
    if not values:
        return NEG_INF
    return sum(values) / len(values)


def normalized_mean_acc(mean_raw: float, max_observed: float) -> float:
    """Rescale a mean accuracy into 0..1 using the largest score seen on the subset.

    Scales of 1, 10 and 100 are recognised; anything larger is divided by
    the observed maximum.
    """
    if not math.isfinite(mean_raw):
        return math.nan
    if not math.isfinite(max_observed) or max_observed <= 0:
        return mean_raw
    if max_observed <= 1.00001:
        return mean_raw
    if max_observed <= 10.00001:
        return mean_raw / 10
    if max_observed <= 100.00001:
        return mean_raw / 100
    return mean_raw / max_observed


def format_number(value: Optional[float], digits: int = 2) -> str:
    """Fixed-point formatting with an em-dash placeholder for missing values."""
    if value is None or not math.isfinite(value):
        return "—"
    return f"{value:.{digits}f}"


def csv_field(value) -> str:
    """Quote a CSV field when it contains a comma, doubling inner quotes."""
    text = "" if value is None else str(value)
    if "," in text:
        return '"' + text.replace('"', '""') + '"'
    return text
