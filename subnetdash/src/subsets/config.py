"""
Subset Analysis Configuration

Central configuration for the subset winners analysis.
All parameters are defined as constants for clarity and maintainability.
"""

from typing import Dict, Any, List


class SubsetConfig:
    """Configuration for environment inference, dominance and aggregation."""

    # Environment inference
    PREFERRED_ENVS: List[str] = ['SAT', 'ABD', 'DED', 'ELR', 'HVM', 'MTH', 'L1', 'L2', 'L3', 'L4']
    """
    Canonical environment/level tokens, in display order.

    A column matches a token when its normalized name (upper-cased, only
    A-Z0-9 kept) equals the token or starts with it, e.g. "sat_v2" -> SAT.
    """

    META_COLUMNS: List[str] = ['UID', 'MODEL', 'REV', 'PTS', 'ELIG', 'WGT', 'WEIGHT', 'POINTS', 'ELIGIBLE']
    """Normalized column names that are never treated as environments."""

    ENV_NAME_PATTERN: str = r'^[A-Z0-9]{2,6}$'
    """Fallback shape for unknown environment codes (normalized name)."""

    MIN_ENVS: int = 2
    """Fewer inferred environments than this means there is nothing to combine."""

    MAX_ENVS: int = 8
    """Cap on inferred environments; bounds enumeration to 2^8 - 1 = 255 subsets."""

    # Column names in the summary table
    COL_UID: str = 'UID'
    COL_MODEL: str = 'Model'
    COL_REV: str = 'Rev'
    COL_PTS: str = 'Pts'
    COL_ELIG: str = 'Elig'
    COL_WGT: str = 'Wgt'

    # Aggregation
    BAR_METRICS: List[str] = ['pts', 'weight', 'sum']
    DEFAULT_BAR_METRIC: str = 'pts'

    DEFAULT_TOP_M: int = 30
    """Number of subset columns displayed before the tail is folded into 'other' buckets."""

    TOP_M_MIN: int = 5
    TOP_M_MAX: int = 200

    PALETTE: List[str] = [
        '#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd',
        '#8c564b', '#e377c2', '#7f7f7f', '#bcbd22', '#17becf',
        '#a55194', '#393b79', '#637939', '#8c6d31', '#843c39',
        '#5254a3', '#6b6ecf', '#9c9ede', '#637939', '#b5cf6b',
    ]
    """Winner colors, assigned in first-seen order and reused cyclically."""

    # Export
    LEDGER_CSV_FILENAME: str = 'subset_winners_ledger.csv'
    MEAN_ACC_DIGITS: int = 3

    @classmethod
    def clamp_top_m(cls, value: int) -> int:
        """Clamp a requested display cap into [TOP_M_MIN, TOP_M_MAX]."""
        return max(cls.TOP_M_MIN, min(cls.TOP_M_MAX, int(value or 0)))

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Export configuration as dictionary for logging."""
        return {
            'preferred_envs': list(cls.PREFERRED_ENVS),
            'meta_columns': list(cls.META_COLUMNS),
            'env_name_pattern': cls.ENV_NAME_PATTERN,
            'min_envs': cls.MIN_ENVS,
            'max_envs': cls.MAX_ENVS,
            'default_bar_metric': cls.DEFAULT_BAR_METRIC,
            'default_top_m': cls.DEFAULT_TOP_M,
            'top_m_range': (cls.TOP_M_MIN, cls.TOP_M_MAX),
        }

    @classmethod
    def validate(cls):
        """Validate configuration parameters."""
        assert cls.MIN_ENVS >= 1, "MIN_ENVS must be positive"
        assert cls.MAX_ENVS >= cls.MIN_ENVS, "MAX_ENVS must be >= MIN_ENVS"
        assert cls.MAX_ENVS <= 16, "MAX_ENVS must be <= 16 (subset enumeration is exponential)"
        assert cls.DEFAULT_BAR_METRIC in cls.BAR_METRICS, "DEFAULT_BAR_METRIC must be one of BAR_METRICS"
        assert 0 < cls.TOP_M_MIN <= cls.DEFAULT_TOP_M <= cls.TOP_M_MAX, "DEFAULT_TOP_M must be within [TOP_M_MIN, TOP_M_MAX]"
        assert cls.PALETTE, "PALETTE must not be empty"


# Validate configuration on import
SubsetConfig.validate()
