"""Fixtures for search domain tests."""

from collections.abc import Hashable, Sequence
from typing import Any

import pytest

from crs.config import SearchConfig
from crs.domain.search.model.parameter import ParameterMap
from crs.domain.search.port.store import StoreCapability
from crs.domain.search.service.expander import GraphExpander
from crs.domain.search.service.orchestrator import SearchOrchestrator
from crs.domain.shared.error import UnknownRelationshipError

# (related_type, search_param) -> anchor -> linked identifiers
Links = dict[tuple[str, str], dict[Hashable, list[Hashable]]]


class FakeStore(StoreCapability):
    """In-memory store recording every call it receives.

    ``matches`` is either one ordered id list used for every ParameterMap,
    or a dict keyed by ParameterMap. Hydrated records are plain dicts.
    """

    def __init__(
        self,
        matches: list[Hashable] | dict[ParameterMap, list[Hashable]] | None = None,
        forward: Links | None = None,
        reverse: Links | None = None,
        unknown: set[tuple[str, str]] | None = None,
        missing: set[Hashable] | None = None,
    ) -> None:
        self.matches = matches if matches is not None else []
        self.forward = forward or {}
        self.reverse = reverse or {}
        self.unknown = unknown or set()
        self.missing = missing or set()
        self.calls: list[tuple[str, Any]] = []

    def _matching(self, params: ParameterMap) -> list[Hashable]:
        if isinstance(self.matches, dict):
            return self.matches.get(params, [])
        return self.matches

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def count(self, params: ParameterMap) -> int:
        self.calls.append(("count", params))
        return len(self._matching(params))

    async def fetch_window(self, params: ParameterMap, first: int, last: int) -> list[Hashable]:
        self.calls.append(("fetch_window", (params, first, last)))
        return list(self._matching(params)[first:last])

    async def hydrate(self, identifiers: Sequence[Hashable]) -> list[Any]:
        self.calls.append(("hydrate", list(identifiers)))
        return [{"id": i} for i in identifiers if i not in self.missing]

    async def fetch_related(
        self,
        related_type: str,
        search_param: str,
        anchors: Sequence[Hashable],
        reverse: bool,
    ) -> list[Hashable]:
        self.calls.append(("fetch_related", (related_type, search_param, list(anchors), reverse)))
        if (related_type, search_param) in self.unknown:
            raise UnknownRelationshipError(related_type, search_param)
        links = (self.reverse if reverse else self.forward).get((related_type, search_param), {})
        return [target for anchor in anchors for target in links.get(anchor, [])]


class FakeCountCache:
    """Dict-backed CountCache that records gets and puts."""

    def __init__(self) -> None:
        self.entries: dict[str, int] = {}
        self.gets: list[str] = []
        self.puts: list[tuple[str, int, float | None]] = []

    def get(self, signature: str) -> int | None:
        self.gets.append(signature)
        return self.entries.get(signature)

    def put(self, signature: str, value: int, ttl: float | None = None) -> None:
        self.puts.append((signature, value, ttl))
        self.entries[signature] = value

    def invalidate(self, signature: str) -> None:
        self.entries.pop(signature, None)

    def invalidate_all(self) -> None:
        self.entries.clear()


@pytest.fixture
def search_config() -> SearchConfig:
    return SearchConfig(default_page_size=10, max_page_size=50)


@pytest.fixture
def expander() -> GraphExpander:
    return GraphExpander()


@pytest.fixture
def count_cache() -> FakeCountCache:
    return FakeCountCache()


@pytest.fixture
def orchestrator(
    expander: GraphExpander, search_config: SearchConfig, count_cache: FakeCountCache
) -> SearchOrchestrator:
    return SearchOrchestrator(
        expander=expander,
        config=search_config,
        count_cache=count_cache,
        count_ttl=60.0,
    )


@pytest.fixture
def make_store() -> type[FakeStore]:
    """Factory for FakeStore instances."""
    return FakeStore
