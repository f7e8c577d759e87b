"""
Stage 1: Score Table Normalization

Converts the loosely-typed summary table (column names + row arrays) into
typed Miner records. Cells are display-decorated and sometimes garbled;
every parse here is total and degrades to None instead of raising.
"""

import math
import re
from typing import Any, Dict, List, Optional, Sequence

from subnetdash.src.subsets.models import Miner
from subnetdash.src.subsets.config import SubsetConfig

from subnetdash.core.setup import logger

# Longest leading float literal, the way a browser's parseFloat reads it
_FLOAT_PREFIX = re.compile(r'\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_FLOAT_FULL = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')

_TRUE_STRINGS = {'Y', 'YES', 'TRUE', 'T', '1'}
_FALSE_STRINGS = {'N', 'NO', 'FALSE', 'F', '0'}


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def _finite_number(value) -> Optional[float]:
    # ints beyond double range (e.g. long JSON literals) overflow float()
    try:
        return _finite(float(value))
    except OverflowError:
        return None


def parse_score_any(value: Any) -> Optional[float]:
    """Parse a score cell into a finite float, or None.

    Numbers pass through when finite. Anything else is stringified, '*'
    markers are stripped and only the part before the first '/' is read,
    so "81.9*" and "81.9/100" both give 81.9.

    Examples:
        parse_score_any(81.9)            -> 81.9
        parse_score_any("81.9*")         -> 81.9
        parse_score_any("81.9/100")      -> 81.9
        parse_score_any(None)            -> None
        parse_score_any("not-a-number")  -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite_number(value)

    text = str(value).replace('*', '')
    head = text.split('/', 1)[0]
    match = _FLOAT_PREFIX.match(head)
    if not match:
        return None
    try:
        return _finite(float(match.group(1)))
    except (ValueError, OverflowError):
        return None


def parse_number(value: Any) -> Optional[float]:
    """Parse a plain numeric cell (points, weight). Decorations are not accepted."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite_number(value)

    text = str(value).strip()
    if not _FLOAT_FULL.fullmatch(text):
        return None
    return _finite_number(text)


def parse_uid(value: Any) -> Optional[int]:
    """Parse a UID cell; non-integral or non-numeric values are unset."""
    number = parse_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def parse_eligible(value: Any) -> Optional[bool]:
    """Parse an eligibility cell ('Y'/'N', booleans, yes/no, 1/0)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().upper()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return None


def miner_id(uid: Optional[int], model: str) -> str:
    """Identity key of a miner within one snapshot: "{uid}|{model}", uid -1 when unset."""
    return f"{uid if uid is not None else -1}|{model}"


class ScoreTableNormalizer:
    """Stage 1: Score Table Normalization.

    Responsibilities:
    1. Locate metadata and environment columns by exact name
    2. Parse every cell defensively (absent column -> None for all rows)
    3. Build one Miner per row with an entry for every environment
    """

    def __init__(self, config: SubsetConfig = SubsetConfig):
        """Initialize the normalizer.

        Args:
            config: Subset configuration (defaults to global config)
        """
        self.config = config

    def normalize(
        self,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        envs: List[str],
    ) -> List[Miner]:
        """Convert table rows into Miner records.

        Args:
            columns: Column names
            rows: Row arrays, positionally aligned with columns
            envs: Inferred environment columns

        Returns:
            One Miner per row, in row order
        """
        index: Dict[str, int] = {}
        for i, name in enumerate(columns):
            index.setdefault(name, i)

        def cell(row: Sequence[Any], name: str) -> Any:
            j = index.get(name)
            if j is None or j >= len(row):
                return None
            return row[j]

        cfg = self.config
        missing = [
            name for name in (cfg.COL_UID, cfg.COL_MODEL, cfg.COL_PTS, cfg.COL_WGT)
            if name not in index
        ]
        if missing:
            logger.debug(f"Summary table has no {missing} column(s); fields default to None")

        miners: List[Miner] = []
        degraded = 0

        for row in rows:
            if not isinstance(row, (list, tuple)):
                logger.debug(f"Skipping non-array row: {row!r:.80}")
                continue

            raw_uid = cell(row, cfg.COL_UID)
            uid = parse_uid(raw_uid)
            if uid is None and raw_uid is not None:
                degraded += 1

            raw_model = cell(row, cfg.COL_MODEL)
            model = "" if raw_model is None else str(raw_model)
            raw_rev = cell(row, cfg.COL_REV)
            rev = "" if raw_rev is None else str(raw_rev)

            raw_pts = cell(row, cfg.COL_PTS)
            pts = parse_number(raw_pts)
            raw_wgt = cell(row, cfg.COL_WGT)
            weight = parse_number(raw_wgt)
            degraded += (pts is None and raw_pts is not None) + (weight is None and raw_wgt is not None)

            env_scores: Dict[str, Optional[float]] = {}
            for env in envs:
                raw = cell(row, env)
                env_scores[env] = parse_score_any(raw)
                if env_scores[env] is None and raw is not None:
                    degraded += 1

            miners.append(Miner(
                id=miner_id(uid, model),
                uid=uid,
                model=model,
                rev=rev,
                weight=weight,
                pts=pts,
                eligible=parse_eligible(cell(row, cfg.COL_ELIG)),
                env=env_scores,
            ))

        if degraded:
            logger.debug(f"Stage 1: {degraded} malformed cell(s) degraded to None")
        logger.debug(f"Stage 1: Normalized {len(miners)} miners over {len(envs)} environments")

        return miners
