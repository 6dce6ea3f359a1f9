from crs.domain.search.handler.invalidate_count_cache import InvalidateCountCache

__all__ = ["InvalidateCountCache"]
