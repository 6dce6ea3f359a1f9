"""Port for the backing record store driven by the search engine."""

from abc import abstractmethod
from collections.abc import Hashable, Sequence
from typing import Any, Protocol, runtime_checkable

from crs.domain.search.model.parameter import ParameterMap
from crs.domain.shared.port import Port


@runtime_checkable
class StoreCapability(Port, Protocol):
    """The narrow contract a backing store satisfies for the search engine.

    Identifiers are opaque, store-assigned and hashable. Everything a store
    returns is assumed to be already filtered for what the caller may see.
    Any exception a store raises is propagated to the caller unchanged.
    """

    @abstractmethod
    async def count(self, params: ParameterMap) -> int:
        """Exact number of records matching ``params``."""
        ...

    @abstractmethod
    async def fetch_window(
        self, params: ParameterMap, first: int, last: int
    ) -> list[Hashable]:
        """Ordered identifiers of matches in the zero-based window [first, last)."""
        ...

    @abstractmethod
    async def hydrate(self, identifiers: Sequence[Hashable]) -> list[Any]:
        """Load records for ``identifiers``, returned in the same order.

        Identifiers the store cannot load are omitted from the result.
        """
        ...

    @abstractmethod
    async def fetch_related(
        self,
        related_type: str,
        search_param: str,
        anchors: Sequence[Hashable],
        reverse: bool,
    ) -> list[Hashable]:
        """Identifiers of ``related_type`` records linked to ``anchors``.

        Forward: records referenced by the anchors through ``search_param``.
        Reverse: records whose ``search_param`` references any anchor.
        Raises UnknownRelationshipError for an unsupported relationship.
        """
        ...
