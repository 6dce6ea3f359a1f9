from crs.infrastructure.cache.memory import InMemoryCountCache

__all__ = ["InMemoryCountCache"]
