from .cache import TTLCache
from .metadata_cache import FuzzyMetadataCache, clear_performance_caches
from .orchestrator import resolve_details
from .ranking import rank_streams
from .stream_service import StreamService

__all__ = [
    "TTLCache",
    "FuzzyMetadataCache",
    "clear_performance_caches",
    "resolve_details",
    "rank_streams",
    "StreamService",
]
