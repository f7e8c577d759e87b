"""
Environment-Set Inference

Decides which summary columns are evaluation environments. Environments are
registered dynamically upstream, so the set is inferred per payload.
"""

import re
from typing import Dict, List, Optional, Sequence

from subnetdash.src.subsets.config import SubsetConfig
from subnetdash.src.subsets.models import Miner
from subnetdash.core.setup import logger

_NON_ALNUM = re.compile(r'[^A-Z0-9]')


def normalize_column_name(name) -> str:
    """Upper-case and keep only A-Z0-9: "sat_v2" -> "SATV2"."""
    return _NON_ALNUM.sub('', str(name).upper())


def infer_environments(
    columns: Sequence[str],
    preferred: Optional[Sequence[str]] = None,
    max_envs: Optional[int] = None,
    config: SubsetConfig = SubsetConfig,
) -> List[str]:
    """Infer the ordered environment columns of a summary table.

    1. Walk the preference list; for each token take the first column whose
       normalized name equals or starts with it.
    2. With fewer than MIN_ENVS matches, also take every non-meta column whose
       normalized name looks like a short code (2-6 alphanumerics).
    3. De-duplicate and cap at max_envs.

    Args:
        columns: Column names in table order
        preferred: Preference tokens (defaults to config.PREFERRED_ENVS)
        max_envs: Cap on the result (defaults to config.MAX_ENVS)

    Returns:
        Original (non-normalized) column names
    """
    preferred = config.PREFERRED_ENVS if preferred is None else preferred
    max_envs = config.MAX_ENVS if max_envs is None else max_envs

    normalized = [normalize_column_name(c) for c in columns]
    found: List[str] = []

    for token in preferred:
        for column, norm in zip(columns, normalized):
            if norm == token or norm.startswith(token):
                if column not in found:
                    found.append(column)
                break

    if len(found) < config.MIN_ENVS:
        exclude = set(config.META_COLUMNS)
        pattern = re.compile(config.ENV_NAME_PATTERN)
        for column, norm in zip(columns, normalized):
            if norm not in exclude and pattern.match(norm) and column not in found:
                found.append(column)
        logger.debug(f"Fallback environment scan over {len(columns)} columns -> {found}")

    envs = list(dict.fromkeys(found))[:max_envs]
    logger.trace(f"Inferred environments: {envs}")
    return envs


def environment_coverage(envs: List[str], miners: List[Miner]) -> Dict[str, int]:
    """Number of miners with a finite score per environment."""
    return {
        env: sum(1 for m in miners if m.env.get(env) is not None)
        for env in envs
    }
