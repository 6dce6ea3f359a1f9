from crs.domain.search.event.resources_changed import ResourcesChanged

__all__ = ["ResourcesChanged"]
