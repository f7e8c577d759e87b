"""
Miners -> Summary Transform

Maps the live miners endpoint onto the summary table shape, so every
consumer reads one {columns, rows} layout regardless of the source.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from subnetdash.src.summary.config import SummaryConfig
from subnetdash.src.summary.models import MinersResponse, SummaryTable
from subnetdash.src.subsets.stage1_normalizer import parse_score_any
from subnetdash.utils.errors import ValidationError

SUMMARY_COLUMNS = [
    'UID', 'Model', 'Rev',
    *SummaryConfig.MINER_ENVS,
    'L1', 'L2', 'L3', 'L4',
    'Pts', 'Elig', 'Wgt',
]

LEVEL_KEY_SETS = (
    ('L1', 'L2', 'L3', 'L4'),
    ('l1', 'l2', 'l3', 'l4'),
    ('1', '2', '3', '4'),
    ('level1', 'level2', 'level3', 'level4'),
)


def extract_levels(score: Any) -> List[Optional[float]]:
    """Read L1..L4 from a miner's score field.

    Accepts {L1..L4}, {l1..l4}, {"1".."4"}, {level1..level4}, arrays, and
    otherwise the first four values of any mapping.
    """
    if not score:
        return [None, None, None, None]

    if isinstance(score, (list, tuple)):
        values = [parse_score_any(v) for v in list(score)[:4]]
        return values + [None] * (4 - len(values))

    if isinstance(score, dict):
        for keys in LEVEL_KEY_SETS:
            values = [parse_score_any(score.get(k)) for k in keys]
            if any(v is not None for v in values):
                return values
        values = [parse_score_any(v) for v in list(score.values())[:4]]
        return values + [None] * (4 - len(values))

    return [None, None, None, None]


def to_score10(success_rate: Optional[float]) -> Optional[float]:
    """success_rate (0..1) on the 0..10 display scale."""
    if success_rate is None or math.isnan(success_rate):
        return None
    value = success_rate * SummaryConfig.SUCCESS_RATE_SCALE
    return value if math.isfinite(value) else None


def transform_miners_to_summary(resp: MinersResponse) -> SummaryTable:
    """Build the summary table from a miners endpoint response."""
    rows: List[List[Any]] = []
    for item in resp.data:
        detail = item.detail
        uid = detail.uid if detail and detail.uid is not None else item.uid
        model = (detail.model if detail else None) or ''
        rev = (detail.revision if detail else None) or ''

        env_scores = []
        for env in SummaryConfig.MINER_ENVS:
            stat = item.envs.get(env)
            env_scores.append(to_score10(stat.success_rate if stat else None))

        rows.append([
            uid,
            model,
            rev,
            *env_scores,
            *extract_levels(item.score),
            item.pts,
            'Y' if item.eligible else 'N',
            item.weight,
        ])

    return SummaryTable(
        timestamp=datetime.now(timezone.utc).isoformat(),
        tail=resp.best if resp.best is not None else 0,
        columns=list(SUMMARY_COLUMNS),
        rows=rows,
    )


def parse_summary_payload(data: Dict[str, Any], source: Optional[str] = None) -> SummaryTable:
    """Accept either payload shape and return a summary table.

    A payload with 'columns' is a summary table already; one with 'data'
    is a miners response and gets transformed.

    Raises:
        ValidationError: If the payload matches neither shape
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Expected a JSON object, got {type(data).__name__}", source)

    try:
        if 'columns' in data:
            return SummaryTable.model_validate(data)
        if 'data' in data:
            return transform_miners_to_summary(MinersResponse.model_validate(data))
    except PydanticValidationError as e:
        raise ValidationError(f"Malformed payload: {e.error_count()} validation error(s): {e}", source)

    raise ValidationError("Payload has neither 'columns' nor 'data'", source)
