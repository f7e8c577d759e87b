from .config import SummaryConfig
from .models import SummaryTable, MinersResponse
from .cache import SummaryCache, CacheState
from .fetcher import SummaryFetcher, load_summary_file
from .transform import transform_miners_to_summary, parse_summary_payload, extract_levels

__all__ = [
    "SummaryConfig",
    "SummaryTable",
    "MinersResponse",
    "SummaryCache",
    "CacheState",
    "SummaryFetcher",
    "load_summary_file",
    "transform_miners_to_summary",
    "parse_summary_payload",
    "extract_levels",
]
