"""
Summary Payload Models

Pydantic models for the two payload shapes the dashboard polls.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SummaryTable(BaseModel):
    """Generic score table: column names plus positionally aligned rows.

    Cells are left untyped; the normalizer parses them defensively.
    """

    model_config = ConfigDict(extra="allow")

    timestamp: Optional[str] = None
    tail: Optional[float] = None
    columns: List[str]
    rows: List[List[Any]] = Field(default_factory=list)
    raw: Optional[str] = None


class MinerEnvStat(BaseModel):
    """Per-environment statistics of a miner."""

    count: Optional[int] = None
    success_rate: Optional[float] = None  # 0..1


class MinerDetail(BaseModel):
    """Chain-level miner details (other fields are ignored)."""

    block: Optional[int] = None
    hotkey: Optional[str] = None
    model: Optional[str] = None
    revision: Optional[str] = None
    uid: Optional[int] = None


class MinerItem(BaseModel):
    """One entry of the live miners endpoint."""

    detail: Optional[MinerDetail] = None
    eligible: Optional[bool] = False
    envs: Dict[str, Optional[MinerEnvStat]] = Field(default_factory=dict)
    hotkey: Optional[str] = None
    pts: Optional[float] = None
    score: Any = None
    uid: Optional[int] = None
    weight: Optional[float] = None


class MinersResponse(BaseModel):
    """Live miners endpoint response."""

    best: Optional[float] = None
    current_block: Optional[int] = None
    data: List[MinerItem] = Field(default_factory=list)
