from crs.domain.search.port.count_cache import CountCache
from crs.domain.search.port.store import StoreCapability

__all__ = [
    "CountCache",
    "StoreCapability",
]
