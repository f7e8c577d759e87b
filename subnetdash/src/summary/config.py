"""
Summary Source Configuration

Endpoints and polling settings, read from environment variables.
"""

import os

from subnetdash.core.setup import logger


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"Invalid {name}={value}, using default {default}")
        return default
    return value


class SummaryConfig:
    """Summary endpoints and polling settings from environment variables."""

    # Live miners endpoint; its payload is transformed into the summary table
    PRIMARY_URL: str = os.getenv("SUBNETDASH_PRIMARY_URL", "http://65.109.19.166:9000/api/miners")

    # Previous summary endpoint, already in {columns, rows} shape
    FALLBACK_URL: str = os.getenv(
        "SUBNETDASH_FALLBACK_URL",
        "https://sn120-viewer.onrender.com/api/weights/summary/latest",
    )

    POLL_SECONDS: float = _float_env("SUBNETDASH_POLL_SECONDS", 30.0)
    HTTP_TIMEOUT: float = _float_env("SUBNETDASH_HTTP_TIMEOUT", 30.0)

    # Environments read from the miners endpoint, in column order
    MINER_ENVS = ("SAT", "ABD", "DED", "ELR")

    # success_rate (0..1) is shown on a 0..10 scale
    SUCCESS_RATE_SCALE: float = 10.0
