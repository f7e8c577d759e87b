from .config import SubsetConfig
from .analyzer import SubsetAnalyzer, create_analyzer
from .environments import infer_environments, environment_coverage
from .stage1_normalizer import ScoreTableNormalizer, parse_score_any
from .stage2_dominance import DominanceEngine, dominates, select_winner
from .models import (
    Miner,
    SubsetWinner,
    SubsetColumn,
    OtherBucket,
    LedgerRow,
    PointsBySize,
    AnalysisResult,
)

__all__ = [
    # Main Components
    "SubsetConfig",
    "SubsetAnalyzer",
    "create_analyzer",
    "ScoreTableNormalizer",
    "DominanceEngine",

    # Functions
    "infer_environments",
    "environment_coverage",
    "parse_score_any",
    "dominates",
    "select_winner",

    # Data Models
    "Miner",
    "SubsetWinner",
    "SubsetColumn",
    "OtherBucket",
    "LedgerRow",
    "PointsBySize",
    "AnalysisResult",
]
