"""
Stage 2: Pareto Dominance and Subset Winner Selection

For every non-empty subset of the inferred environments, computes the
Pareto non-dominated miners and selects a unique winner through a
deterministic tie-break chain.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from subnetdash.src.subsets.models import Miner, SubsetWinner
from subnetdash.src.subsets.config import SubsetConfig
from subnetdash.src.subsets.utils import (
    NEG_INF,
    count_subsets,
    iter_masks,
    mean_scores,
    normalized_mean_acc,
    popcount,
    rank_value,
    subset_env_list,
    sum_scores,
)

from subnetdash.core.setup import logger

TIE_BREAK_DIMS = ("weight", "pts", "sum", "model")


def _subset_vector(miner: Miner, envs: Sequence[str], mask: int) -> Tuple[float, ...]:
    return tuple(
        rank_value(miner.env.get(env))
        for i, env in enumerate(envs)
        if mask & (1 << i)
    )


def _vector_dominates(a: Tuple[float, ...], b: Tuple[float, ...]) -> bool:
    strict = False
    for va, vb in zip(a, b):
        if va < vb:
            return False
        if va > vb:
            strict = True
    return strict


def dominates(envs: Sequence[str], a: Miner, b: Miner, mask: int) -> bool:
    """True if miner a Pareto-dominates miner b on the subset.

    a must be >= b on every environment in mask and strictly greater on at
    least one. Absent scores compare as -inf, so missing data is never an
    advantage.
    """
    return _vector_dominates(_subset_vector(a, envs, mask), _subset_vector(b, envs, mask))


def tie_break_key(envs: Sequence[str], miner: Miner, mask: int) -> Tuple[float, float, float, str]:
    """(weight, pts, subset sum, lower-cased model); larger numbers and smaller names win."""
    return (
        rank_value(miner.weight),
        rank_value(miner.pts),
        sum_scores(miner.env, list(envs), mask),
        miner.model.lower(),
    )


def select_winner(
    envs: Sequence[str],
    non_dominated: List[Miner],
    mask: int,
) -> Tuple[Optional[Miner], str]:
    """Pick the winner among non-dominated miners.

    Narrows the field one key at a time: highest weight, then highest
    points, then highest subset sum, then alphabetically first model name.
    Miners equal on every key resolve to the earliest in input order.

    Returns:
        (winner, dimension) where dimension is the key that first left a
        single miner standing, or "-" when there was nothing to break.
    """
    if not non_dominated:
        return None, "-"
    if len(non_dominated) == 1:
        return non_dominated[0], "-"

    keyed = [(tie_break_key(envs, m, mask), m) for m in non_dominated]
    remaining = keyed
    for d, dim in enumerate(TIE_BREAK_DIMS):
        if dim == "model":
            best = min(key[d] for key, _ in remaining)
        else:
            best = max(key[d] for key, _ in remaining)
        remaining = [(key, m) for key, m in remaining if key[d] == best]
        if len(remaining) == 1:
            return remaining[0][1], dim

    return remaining[0][1], "-"


class DominanceEngine:
    """Stage 2: Pareto Dominance and Subset Winner Selection.

    Core Algorithm:
    1. Enumerate every subset mask 1 .. 2^N - 1
    2. Candidates: miners with at least one finite score in the subset
    3. Drop candidates dominated by any other candidate
    4. Break ties among the rest by (weight, pts, subset sum, model name)

    Dominance Rule:
    - A dominates B if A >= B on every subset environment and A > B on at
      least one, with absent scores ranked as -inf
    """

    def __init__(self, config: SubsetConfig = SubsetConfig):
        """Initialize the dominance engine.

        Args:
            config: Subset configuration (defaults to global config)
        """
        self.config = config

    def compute(self, envs: List[str], miners: List[Miner]) -> List[SubsetWinner]:
        """Compute the winner of every subset that has at least one candidate.

        Args:
            envs: Ordered environment names (N <= MAX_ENVS)
            miners: Normalized miners

        Returns:
            SubsetWinner records in ascending mask order
        """
        n_envs = len(envs)
        if n_envs == 0 or not miners:
            logger.debug("Stage 2: Nothing to compare (no environments or no miners)")
            return []
        if n_envs > self.config.MAX_ENVS:
            logger.warning(f"Stage 2: {n_envs} environments exceed MAX_ENVS, using first {self.config.MAX_ENVS}")
            envs = envs[:self.config.MAX_ENVS]
            n_envs = len(envs)

        # Per-miner score vectors over all envs, computed once per snapshot
        full_vectors = [tuple(rank_value(m.env.get(e)) for e in envs) for m in miners]

        results: List[SubsetWinner] = []
        skipped = 0
        for mask in iter_masks(n_envs):
            record = self._winner_for_mask(envs, miners, full_vectors, mask)
            if record.winner is None:
                skipped += 1
                continue
            results.append(record)

        logger.info(
            f"Stage 2: Considered {count_subsets(n_envs)} subsets over {len(miners)} miners - "
            f"{len(results)} with winner, {skipped} without candidates"
        )
        return results

    def winner_for_mask(self, envs: List[str], miners: List[Miner], mask: int) -> SubsetWinner:
        """Compute a single subset's record (winner is None without candidates)."""
        full_vectors = [tuple(rank_value(m.env.get(e)) for e in envs) for m in miners]
        return self._winner_for_mask(envs, miners, full_vectors, mask)

    def _winner_for_mask(
        self,
        envs: List[str],
        miners: List[Miner],
        full_vectors: List[Tuple[float, ...]],
        mask: int,
    ) -> SubsetWinner:
        bits = [i for i in range(len(envs)) if mask & (1 << i)]
        record = SubsetWinner(
            mask=mask,
            size=popcount(mask),
            env_list=subset_env_list(mask, envs),
            winner=None,
        )

        # Candidate filter: at least one finite score on the subset
        candidates: List[int] = []
        vectors: Dict[int, Tuple[float, ...]] = {}
        for idx, full in enumerate(full_vectors):
            vec = tuple(full[i] for i in bits)
            if any(v != NEG_INF for v in vec):
                candidates.append(idx)
                vectors[idx] = vec

        record.candidate_count = len(candidates)
        if not candidates:
            return record

        # A dominator is lexicographically greater than what it dominates, and
        # dominance is transitive, so checking each candidate against the
        # frontier built so far in lexicographic-descending order is enough.
        frontier: List[int] = []
        for idx in sorted(candidates, key=lambda k: vectors[k], reverse=True):
            vec = vectors[idx]
            if not any(_vector_dominates(vectors[f], vec) for f in frontier):
                frontier.append(idx)

        non_dominated = [miners[idx] for idx in sorted(frontier)]
        winner, tie_break = select_winner(envs, non_dominated, mask)

        winner_idx = next(idx for idx in candidates if miners[idx] is winner)
        winner_vec = vectors[winner_idx]
        dom_edges = sum(
            1 for idx in candidates
            if idx != winner_idx and _vector_dominates(winner_vec, vectors[idx])
        )

        max_observed = 0.0
        for idx in candidates:
            for v in vectors[idx]:
                if v != NEG_INF and v > max_observed:
                    max_observed = v
        mean_raw = mean_scores(winner.env, envs, mask)
        mean_acc = normalized_mean_acc(mean_raw, max_observed) if mean_raw != NEG_INF else None

        record.winner = winner
        record.non_dominated = non_dominated
        record.tie_break = tie_break
        record.dom_edges = dom_edges
        record.win_mode = "dom" if dom_edges > 0 else "mean"
        record.mean_acc = mean_acc
        record.subset_sum = sum_scores(winner.env, envs, mask)

        logger.trace(
            f"Subset {record.label}: {len(candidates)} candidates, "
            f"{len(non_dominated)} non-dominated, winner={winner.model!r} ({tie_break})"
        )
        return record
