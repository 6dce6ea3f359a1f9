from crs.domain.search.query.search_resources import (
    SearchResources,
    SearchResourcesHandler,
    SearchResult,
)

__all__ = ["SearchResources", "SearchResourcesHandler", "SearchResult"]
