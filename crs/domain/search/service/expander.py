"""GraphExpander - walks _include / _revinclude relationships from a primary result."""

import asyncio
import logging
from collections.abc import Awaitable, Hashable, Iterable, Sequence
from typing import Any, TypeVar

from crs.domain.search.model.parameter import IncludeSpec, canonical_includes
from crs.domain.search.model.result import ResultWindow
from crs.domain.search.port.store import StoreCapability
from crs.domain.shared.error import UnknownRelationshipError
from crs.domain.shared.service import Service

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (resource_type, identifier) pairs already placed somewhere in the result
SeenIndex = set[tuple[str, Hashable]]


async def _gather_or_cancel(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Await all concurrently; on the first failure cancel the rest and re-raise it.

    Cancelled siblings are awaited before the error propagates, so no fetch
    is still running against the session once the caller sees the failure.
    """
    tasks = [asyncio.ensure_future(a) for a in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class GraphExpander(Service):
    """Expands a primary result along forward and reverse include specs.

    Forward specs are fully expanded (base hop, then the optional iterate
    hop) before reverse specs start. Within one phase the store fetches of
    different specs may run concurrently, but merging into the dedup index
    is always sequential and in canonical spec order, so the output is
    deterministic for a fixed store snapshot.

    A spec with ``iterate`` gets exactly one extra hop, seeded with the
    identifiers the spec itself newly added.
    """

    concurrent_fetch: bool = True

    async def expand(
        self,
        primary: ResultWindow,
        includes: Iterable[IncludeSpec],
        rev_includes: Iterable[IncludeSpec],
        store: StoreCapability,
    ) -> dict[str, list[Any]]:
        """Expand and hydrate; returns related records grouped by type."""
        identifiers = await self.expand_identifiers(primary, includes, rev_includes, store)
        return await self.hydrate_buckets(identifiers, store)

    async def expand_identifiers(
        self,
        primary: ResultWindow,
        includes: Iterable[IncludeSpec],
        rev_includes: Iterable[IncludeSpec],
        store: StoreCapability,
        seen: SeenIndex | None = None,
    ) -> dict[str, list[Hashable]]:
        """Collect related identifiers grouped by type, without hydrating.

        ``seen`` lets a caller share one dedup index across several
        expansions; it is updated in place. The primary identifiers are
        always added to it before anything is fetched.
        """
        seen_index: SeenIndex = seen if seen is not None else set()
        seen_index.update((primary.resource_type, i) for i in primary.identifiers)

        buckets: dict[str, list[Hashable]] = {}
        anchors = list(primary.identifiers)
        if not anchors:
            return buckets

        for reverse, specs in (
            (False, canonical_includes(includes)),
            (True, canonical_includes(rev_includes)),
        ):
            if specs:
                await self._expand_phase(specs, anchors, reverse, store, seen_index, buckets)

        return buckets

    async def hydrate_buckets(
        self, identifiers: dict[str, list[Hashable]], store: StoreCapability
    ) -> dict[str, list[Any]]:
        """Hydrate each bucket, keeping bucket order and order within buckets."""
        types = list(identifiers)
        loaded = await self._run([store.hydrate(identifiers[t]) for t in types])
        return {t: list(records) for t, records in zip(types, loaded)}

    async def _expand_phase(
        self,
        specs: Sequence[IncludeSpec],
        anchors: list[Hashable],
        reverse: bool,
        store: StoreCapability,
        seen: SeenIndex,
        buckets: dict[str, list[Hashable]],
    ) -> None:
        fetched = await self._run([self._fetch(spec, anchors, reverse, store) for spec in specs])
        frontiers = [
            self._merge(spec, ids, seen, buckets, reverse, hop=0)
            for spec, ids in zip(specs, fetched)
        ]

        iterating = [
            (spec, frontier)
            for spec, frontier in zip(specs, frontiers)
            if spec.iterate and frontier
        ]
        if not iterating:
            return

        fetched = await self._run(
            [self._fetch(spec, frontier, reverse, store) for spec, frontier in iterating]
        )
        for (spec, _), ids in zip(iterating, fetched):
            self._merge(spec, ids, seen, buckets, reverse, hop=1)

    async def _fetch(
        self,
        spec: IncludeSpec,
        anchors: list[Hashable],
        reverse: bool,
        store: StoreCapability,
    ) -> list[Hashable]:
        try:
            return await store.fetch_related(spec.related_type, spec.search_param, anchors, reverse)
        except UnknownRelationshipError:
            logger.debug(
                "Skipping unsupported %s %s:%s",
                "revinclude" if reverse else "include",
                spec.related_type,
                spec.search_param,
            )
            return []

    def _merge(
        self,
        spec: IncludeSpec,
        ids: Iterable[Hashable],
        seen: SeenIndex,
        buckets: dict[str, list[Hashable]],
        reverse: bool,
        hop: int,
    ) -> list[Hashable]:
        """Insert unseen ids into the spec's bucket; return what was added."""
        added: list[Hashable] = []
        for identifier in ids:
            key = (spec.related_type, identifier)
            if key in seen:
                continue
            seen.add(key)
            added.append(identifier)

        if added:
            buckets.setdefault(spec.related_type, []).extend(added)

        logger.debug(
            "%s %s:%s hop %d added %d",
            "revinclude" if reverse else "include",
            spec.related_type,
            spec.search_param,
            hop,
            len(added),
        )
        return added

    async def _run(self, awaitables: list[Awaitable[T]]) -> list[T]:
        if self.concurrent_fetch:
            return await _gather_or_cancel(awaitables)
        results: list[T] = []
        try:
            for awaitable in awaitables:
                results.append(await awaitable)
        except BaseException:
            for leftover in awaitables[len(results) + 1 :]:
                if asyncio.iscoroutine(leftover):
                    leftover.close()
            raise
        return results
