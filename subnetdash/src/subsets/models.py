"""
Subset Analysis Data Models

Data structures flowing through normalizer, dominance engine and aggregator.
"""

from typing import Dict, List, Any, Optional, Union
from dataclasses import dataclass, field


@dataclass
class Miner:
    """One scored competitor in a single summary snapshot."""

    id: str  # "{uid}|{model}", uid -1 when unknown
    uid: Optional[int]
    model: str
    rev: str = ""
    weight: Optional[float] = None
    pts: Optional[float] = None
    eligible: Optional[bool] = None

    # One entry per inferred environment; None = did not participate
    env: Dict[str, Optional[float]] = field(default_factory=dict)

    def defined_envs(self) -> List[str]:
        """Environments where the miner has a finite score."""
        return [name for name, value in self.env.items() if value is not None]

    def __repr__(self) -> str:
        return f"Miner(uid={self.uid}, model={self.model!r}, envs={len(self.defined_envs())}/{len(self.env)})"


@dataclass
class SubsetWinner:
    """Winner of a single environment subset, with the details of how it won."""

    mask: int
    size: int
    env_list: List[str]
    winner: Optional[Miner]

    candidate_count: int = 0
    non_dominated: List[Miner] = field(default_factory=list)

    # Ledger details
    dom_edges: int = 0  # candidates dominated by the winner
    tie_break: str = "-"  # weight | pts | sum | model | -
    win_mode: str = "-"  # dom | mean | -
    mean_acc: Optional[float] = None  # winner mean on subset, rescaled to 0..1
    subset_sum: float = float("-inf")

    @property
    def label(self) -> str:
        """Tuple label, e.g. (SAT,ABD)."""
        return f"({','.join(self.env_list)})"

    def __repr__(self) -> str:
        winner = self.winner.model if self.winner else None
        return f"SubsetWinner({self.label}, winner={winner!r}, tie_break={self.tie_break})"


@dataclass
class SubsetColumn:
    """A displayed subset column (bar + membership dots)."""

    mask: int
    size: int
    value: float
    winner_id: str
    winner_label: str
    winner_weight: Optional[float]
    winner_pts: Optional[float]
    env_list: List[str]

    kind: str = "subset"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mask': self.mask,
            'size': self.size,
            'winnerId': self.winner_id,
            'winnerLabel': self.winner_label,
            'winnerWeight': self.winner_weight,
            'winnerPts': self.winner_pts,
            'envList': list(self.env_list),
            'value': self.value,
        }


@dataclass
class OtherBucket:
    """Subsets of one size that fell outside the top-M, folded together."""

    size: int
    value: float
    count: int

    kind: str = "other"

    def to_dict(self) -> Dict[str, Any]:
        return {'size': self.size, 'value': self.value, 'count': self.count}


DisplayColumn = Union[SubsetColumn, OtherBucket]


@dataclass
class LedgerRow:
    """One row of the subset winners ledger (CSV export)."""

    mask: int
    size: int
    subset: str  # tuple label, e.g. (SAT,ABD)
    ks: float  # winner points, 0 when missing
    winner_label: str
    winner_uid: Optional[int]
    winner_rev: str
    win_mode: str
    mean_acc: Optional[float]
    dom_edges: int
    tie_break: str


@dataclass
class WinnerTotal:
    """Points accumulated by one winner within one subset size."""

    id: str
    label: str
    value: float = 0.0


@dataclass
class PointsBySize:
    """Stacked points-by-subset-size view."""

    sizes: List[int]
    by_size: Dict[int, List[WinnerTotal]] = field(default_factory=dict)
    totals: Dict[int, float] = field(default_factory=dict)
    winner_order: List[WinnerTotal] = field(default_factory=list)  # global totals, desc
    colors: Dict[str, str] = field(default_factory=dict)


@dataclass
class AnalysisResult:
    """Everything derived from a single summary snapshot."""

    envs: List[str]
    miners: List[Miner]
    metric: str
    top_m: int

    insufficient_data: bool = False
    subsets_considered: int = 0

    winners: List[SubsetWinner] = field(default_factory=list)
    sorted_columns: List[SubsetColumn] = field(default_factory=list)
    columns: List[DisplayColumn] = field(default_factory=list)
    colors: Dict[str, str] = field(default_factory=dict)
    ledger: List[LedgerRow] = field(default_factory=list)
    points_by_size: Optional[PointsBySize] = None
    env_coverage: Dict[str, int] = field(default_factory=dict)

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics for logging/display."""
        return {
            'environments': len(self.envs),
            'miners': len(self.miners),
            'insufficient_data': self.insufficient_data,
            'subsets_considered': self.subsets_considered,
            'subsets_with_winner': len(self.winners),
            'displayed_columns': len(self.columns),
            'distinct_winners': len(self.colors),
        }

    def __repr__(self) -> str:
        return (
            f"AnalysisResult(envs={len(self.envs)}, "
            f"miners={len(self.miners)}, "
            f"winners={len(self.winners)})"
        )
