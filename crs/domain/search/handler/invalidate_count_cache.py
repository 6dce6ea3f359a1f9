"""InvalidateCountCache - drops cached counts when resources change."""

import logging

from crs.domain.search.event.resources_changed import ResourcesChanged
from crs.domain.search.port.count_cache import CountCache
from crs.domain.shared.event import EventHandler

logger = logging.getLogger(__name__)


class InvalidateCountCache(EventHandler[ResourcesChanged]):
    """Clears the whole count cache on any change.

    A search over one resource type can count through references to
    another, so no per-type invalidation is attempted.
    """

    count_cache: CountCache

    async def handle(self, event: ResourcesChanged) -> None:
        self.count_cache.invalidate_all()
        logger.info(
            "Count cache invalidated: types=%s event=%s",
            ",".join(sorted(event.resource_types)) or "*",
            event.id,
        )

    async def handle_batch(self, events: list[ResourcesChanged]) -> None:
        if not events:
            return
        self.count_cache.invalidate_all()
        logger.info("Count cache invalidated once for %d change events", len(events))
