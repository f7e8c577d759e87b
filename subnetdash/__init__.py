#!/usr/bin/env python3
from __future__ import annotations
__version__ = "0.1.0"

# --------------------------------------------------------------------------- #
#                                Logging                                      #
# --------------------------------------------------------------------------- #
from subnetdash.core.setup import (
    logger, setup_logging
)

# --------------------------------------------------------------------------- #
#                         Subset winners analysis                             #
# --------------------------------------------------------------------------- #
from subnetdash.src.subsets import (
    SubsetAnalyzer,
    SubsetConfig,
    create_analyzer,
    infer_environments,
    parse_score_any,
)
