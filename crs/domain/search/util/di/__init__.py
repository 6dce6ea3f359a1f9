from crs.domain.search.util.di.provider import SearchProvider

__all__ = ["SearchProvider"]
