"""
Subset Analyzer Orchestrator

Coordinates environment inference, normalization, dominance and
aggregation over one summary snapshot.
"""

import time
from typing import Any, Optional, Sequence

from .config import SubsetConfig
from .models import AnalysisResult
from .environments import infer_environments, environment_coverage
from .stage1_normalizer import ScoreTableNormalizer
from .stage2_dominance import DominanceEngine
from .stage3_aggregate import (
    assign_colors,
    build_columns,
    build_ledger,
    points_by_subset_size,
    sort_columns,
    truncate_columns,
)
from .utils import count_subsets

from subnetdash.core.setup import logger


class SubsetAnalyzer:
    """Main subset analysis orchestrator.

    Runs, for one snapshot of the summary table:
    1. Environment inference: pick the environment columns
    2. Normalization: typed Miner records
    3. Dominance: one winner per subset
    4. Aggregation: matrix columns, ledger, points by subset size

    The analysis is a pure function of its input; nothing is kept between
    calls.
    """

    def __init__(self, config: SubsetConfig = SubsetConfig):
        """Initialize analyzer with configuration.

        Args:
            config: Subset configuration (defaults to global config)
        """
        self.config = config
        self.normalizer = ScoreTableNormalizer(config)
        self.engine = DominanceEngine(config)

    def analyze(
        self,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        metric: Optional[str] = None,
        top_m: Optional[int] = None,
    ) -> AnalysisResult:
        """Analyze a summary table.

        Args:
            columns: Column names
            rows: Row arrays aligned with columns
            metric: Bar metric ('pts', 'weight' or 'sum')
            top_m: Number of subset columns shown before folding into 'other'

        Returns:
            AnalysisResult; insufficient_data is set when fewer than
            MIN_ENVS environments were inferred or there are no miners
        """
        start_time = time.time()
        metric = metric or self.config.DEFAULT_BAR_METRIC
        if metric not in self.config.BAR_METRICS:
            raise ValueError(f"Unknown bar metric {metric!r}, expected one of {self.config.BAR_METRICS}")
        top_m = self.config.DEFAULT_TOP_M if top_m is None else top_m

        envs = infer_environments(list(columns), config=self.config)
        miners = self.normalizer.normalize(columns, rows, envs)

        result = AnalysisResult(
            envs=envs,
            miners=miners,
            metric=metric,
            top_m=top_m,
            env_coverage=environment_coverage(envs, miners),
        )

        if len(envs) < self.config.MIN_ENVS or not miners:
            logger.info(
                f"Insufficient data for subset analysis: {len(envs)} environment(s), {len(miners)} miner(s)"
            )
            result.insufficient_data = True
            return result

        result.subsets_considered = count_subsets(len(envs))
        result.winners = self.engine.compute(envs, miners)

        result.sorted_columns = sort_columns(build_columns(result.winners, metric))
        result.columns = truncate_columns(result.sorted_columns, top_m)
        result.colors = assign_colors(result.sorted_columns, self.config.PALETTE)
        result.ledger = build_ledger(result.winners)
        result.points_by_size = points_by_subset_size(result.winners, len(envs), self.config.PALETTE)

        elapsed = time.time() - start_time
        logger.info(
            f"Subset analysis completed in {elapsed:.3f}s - envs={envs}, "
            f"miners={len(miners)}, winners={len(result.winners)}/{result.subsets_considered}"
        )
        return result


def create_analyzer(config: Optional[SubsetConfig] = None) -> SubsetAnalyzer:
    """Factory function to create a SubsetAnalyzer instance.

    Args:
        config: Optional custom configuration

    Returns:
        Configured SubsetAnalyzer instance
    """
    if config is None:
        config = SubsetConfig()

    return SubsetAnalyzer(config)
