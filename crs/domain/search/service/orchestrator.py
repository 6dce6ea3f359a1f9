"""SearchOrchestrator - drives one search request end to end."""

import logging
from collections.abc import Hashable, Iterable

import logfire

from crs.config import SearchConfig
from crs.domain.search.model.parameter import ParameterMap
from crs.domain.search.model.result import (
    ExpandedResultSet,
    PageRequest,
    ResultWindow,
    TotalCount,
)
from crs.domain.search.port.count_cache import CountCache
from crs.domain.search.port.store import StoreCapability
from crs.domain.search.service.expander import GraphExpander, SeenIndex
from crs.domain.shared.error import InvalidSpecificationError
from crs.domain.shared.service import Service

logger = logging.getLogger(__name__)


def _unique(identifiers: Iterable[Hashable]) -> tuple[Hashable, ...]:
    """Drop repeated identifiers, keeping first occurrence order."""
    return tuple(dict.fromkeys(identifiers))


class SearchOrchestrator(Service):
    """Resolves the total, fetches and hydrates one page, then expands it.

    Store failures propagate unchanged and nothing is retried. The count
    cache is optional: when it is absent or any of its calls fails the
    count is simply recomputed.
    """

    expander: GraphExpander
    config: SearchConfig
    count_cache: CountCache | None = None
    count_ttl: float | None = None

    async def execute(
        self,
        params: ParameterMap,
        store: StoreCapability,
        page: PageRequest,
    ) -> ExpandedResultSet:
        # Summary-count mode shrinks the window inside page.window(), before any store call
        first, last = page.window(self.config.default_page_size, self.config.max_page_size)

        with logfire.span(
            "SearchOrchestrator.execute",
            resource_type=params.resource_type,
            first=first,
            last=last,
            summary_count_only=page.summary_count_only,
        ):
            if page.summary_count_only:
                total = TotalCount.of(await self.exact_count(params, store))
                return ExpandedResultSet(
                    primary=ResultWindow(
                        resource_type=params.resource_type,
                        identifiers=(),
                        first_result=first,
                        last_result=last,
                        total=total,
                    )
                )

            exact = await self.exact_count(params, store) if page.exact_total else None
            primary = await self._fetch_primary(params, store, first, last, exact)

            related_ids = await self.expander.expand_identifiers(
                primary, params.includes, params.rev_includes, store
            )
            related = await self.expander.hydrate_buckets(related_ids, store)

            logger.debug(
                "Search %s [%d, %d): %d primary, %d related",
                params.resource_type,
                first,
                last,
                len(primary),
                sum(len(ids) for ids in related_ids.values()),
            )
            return ExpandedResultSet(
                primary=primary,
                related=related,
                related_identifiers=related_ids,
            )

    async def execute_combined(
        self,
        first_params: ParameterMap,
        second_params: ParameterMap,
        store: StoreCapability,
        page: PageRequest,
    ) -> ExpandedResultSet:
        """Page over two searches of the same resource type as one result.

        Matches of ``first_params`` come before matches of ``second_params``.
        Both exact counts are always resolved because the page boundary
        between the two depends on them. Related records are ordered
        first-search includes, then second-search includes.
        """
        if first_params.resource_type != second_params.resource_type:
            raise InvalidSpecificationError(
                "Combined searches must target one resource type, got "
                f"{first_params.resource_type} and {second_params.resource_type}"
            )

        first, last = page.window(self.config.default_page_size, self.config.max_page_size)

        with logfire.span(
            "SearchOrchestrator.execute_combined",
            resource_type=first_params.resource_type,
            first=first,
            last=last,
            summary_count_only=page.summary_count_only,
        ):
            first_size = await self.exact_count(first_params, store)
            second_size = await self.exact_count(second_params, store)
            total = TotalCount.of(first_size + second_size)

            if page.summary_count_only or first >= total.value:
                return ExpandedResultSet(
                    primary=ResultWindow(
                        resource_type=first_params.resource_type,
                        identifiers=(),
                        first_result=first,
                        last_result=last,
                        total=total,
                    )
                )

            last = min(last, total.value)
            parts: list[tuple[ParameterMap, tuple[Hashable, ...]]] = []
            if first < first_size:
                ids = await self._fetch_identifiers(
                    first_params, store, first, min(last, first_size)
                )
                parts.append((first_params, ids))
            if last > first_size:
                ids = await self._fetch_identifiers(
                    second_params, store, max(first - first_size, 0), last - first_size
                )
                parts.append((second_params, ids))

            # Second-part matches already on this page through the first part are dropped
            placed: set[Hashable] = set()
            deduped: list[tuple[ParameterMap, tuple[Hashable, ...]]] = []
            for params, ids in parts:
                fresh = tuple(i for i in ids if i not in placed)
                placed.update(fresh)
                deduped.append((params, fresh))

            identifiers = tuple(i for _, ids in deduped for i in ids)
            records = tuple(await store.hydrate(identifiers)) if identifiers else ()

            seen: SeenIndex = {(first_params.resource_type, i) for i in identifiers}
            related_ids: dict[str, list[Hashable]] = {}
            for params, ids in deduped:
                anchor_window = ResultWindow(
                    resource_type=params.resource_type,
                    identifiers=ids,
                    first_result=first,
                    last_result=last,
                    total=total,
                )
                expanded = await self.expander.expand_identifiers(
                    anchor_window, params.includes, params.rev_includes, store, seen=seen
                )
                for resource_type, related in expanded.items():
                    related_ids.setdefault(resource_type, []).extend(related)

            return ExpandedResultSet(
                primary=ResultWindow(
                    resource_type=first_params.resource_type,
                    identifiers=identifiers,
                    first_result=first,
                    last_result=last,
                    total=total,
                    records=records,
                ),
                related=await self.expander.hydrate_buckets(related_ids, store),
                related_identifiers=related_ids,
            )

    async def exact_count(self, params: ParameterMap, store: StoreCapability) -> int:
        """Exact match count, read through the count cache when one is configured."""
        signature = params.to_cache_signature()

        cached = self._cache_get(signature)
        if cached is not None:
            logger.debug("Count cache hit: %s", signature)
            return cached

        logger.debug("Count cache miss: %s", signature)
        count = await store.count(params)
        self._cache_put(signature, count)
        return count

    async def _fetch_primary(
        self,
        params: ParameterMap,
        store: StoreCapability,
        first: int,
        last: int,
        exact: int | None,
    ) -> ResultWindow:
        identifiers = await self._fetch_identifiers(params, store, first, last)
        records = tuple(await store.hydrate(identifiers)) if identifiers else ()

        if exact is not None:
            resolved = TotalCount.of(exact)
        else:
            resolved = self._estimate(first, last, identifiers)

        return ResultWindow(
            resource_type=params.resource_type,
            identifiers=identifiers,
            first_result=first,
            last_result=last,
            total=resolved,
            records=records,
        )

    @staticmethod
    async def _fetch_identifiers(
        params: ParameterMap, store: StoreCapability, first: int, last: int
    ) -> tuple[Hashable, ...]:
        return _unique(await store.fetch_window(params, first, last))[: last - first]

    @staticmethod
    def _estimate(first: int, last: int, identifiers: tuple[Hashable, ...]) -> TotalCount:
        # A short page means the end of the matches was reached
        if len(identifiers) < last - first and (identifiers or first == 0):
            return TotalCount.estimated(first + len(identifiers))
        return TotalCount.estimated()

    def _cache_get(self, signature: str) -> int | None:
        if self.count_cache is None:
            return None
        try:
            return self.count_cache.get(signature)
        except Exception as e:
            logfire.warn(
                "Count cache unavailable, recomputing",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def _cache_put(self, signature: str, count: int) -> None:
        if self.count_cache is None:
            return
        try:
            self.count_cache.put(signature, count, self.count_ttl)
        except Exception as e:
            logfire.warn(
                "Count cache unavailable, result not cached",
                error=str(e),
                error_type=type(e).__name__,
            )
