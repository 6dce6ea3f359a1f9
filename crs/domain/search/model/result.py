"""Per-request paging and result types."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

import pydantic
from pydantic import Field, model_validator
from typing_extensions import Self

from crs.domain.shared.error import InvalidSpecificationError
from crs.domain.shared.model.value import ValueObject

K = TypeVar("K", bound=Hashable)


class PageRequest(ValueObject):
    """Window of the primary result the caller wants.

    ``first`` is zero-based, ``last`` is exclusive. ``last=None`` means
    "one default-sized page starting at first".
    """

    first: int = Field(default=0, ge=0)
    last: int | None = None
    exact_total: bool = False
    summary_count_only: bool = False

    @model_validator(mode="after")
    def check_window(self) -> Self:
        if self.last is not None and self.last <= self.first:
            raise ValueError("last must be greater than first")
        return self

    @classmethod
    def create(
        cls,
        first: int = 0,
        last: int | None = None,
        *,
        exact_total: bool = False,
        summary_count_only: bool = False,
    ) -> PageRequest:
        """Construct a request, raising InvalidSpecificationError when malformed."""
        try:
            return cls(
                first=first,
                last=last,
                exact_total=exact_total,
                summary_count_only=summary_count_only,
            )
        except pydantic.ValidationError as e:
            raise InvalidSpecificationError(f"Invalid page request: {e}", field="page") from e

    def window(self, default_size: int, max_size: int) -> tuple[int, int]:
        """Resolve the concrete [first, last) window, clamped to max_size."""
        if self.summary_count_only:
            return self.first, self.first + 1
        last = self.last if self.last is not None else self.first + default_size
        return self.first, min(last, self.first + max_size)


@dataclass(frozen=True)
class TotalCount:
    """Total number of matches, either exact or an estimate.

    An estimate may carry no value at all when nothing cheap is known.
    """

    value: int | None
    exact: bool

    @classmethod
    def of(cls, value: int) -> TotalCount:
        return cls(value=value, exact=True)

    @classmethod
    def estimated(cls, value: int | None = None) -> TotalCount:
        return cls(value=value, exact=False)

    @property
    def known(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class ResultWindow:
    """One page of the primary result.

    ``records`` holds the hydrated records in ``identifiers`` order, minus
    any identifier the store could not load, so it may be shorter than
    ``identifiers`` and positions need not line up. It is empty in
    summary-count mode.
    """

    resource_type: str
    identifiers: tuple[Hashable, ...]
    first_result: int
    last_result: int
    total: TotalCount
    records: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if self.first_result < 0 or self.last_result <= self.first_result:
            raise ValueError(
                f"Invalid result window [{self.first_result}, {self.last_result})"
            )
        if len(self.identifiers) > self.last_result - self.first_result:
            raise ValueError("Result window holds more identifiers than its bounds allow")
        if len(set(self.identifiers)) != len(self.identifiers):
            raise ValueError("Result window identifiers must be unique")

    def __len__(self) -> int:
        return len(self.identifiers)


@dataclass
class ExpandedResultSet:
    """Primary window plus related records grouped by type.

    ``related`` and ``related_identifiers`` share keys and ordering: buckets
    appear in the order they were first filled (forward includes before
    reverse includes) and records within a bucket in discovery order.
    """

    primary: ResultWindow
    related: dict[str, list[Any]] = field(default_factory=dict)
    related_identifiers: dict[str, list[Hashable]] = field(default_factory=dict)

    @property
    def total(self) -> TotalCount:
        return self.primary.total

    def all_records(self) -> list[Any]:
        """Primary records first, then every related bucket in order."""
        combined = list(self.primary.records)
        for records in self.related.values():
            combined.extend(records)
        return combined

    def identifier_count(self) -> int:
        return len(self.primary.identifiers) + sum(
            len(ids) for ids in self.related_identifiers.values()
        )


@dataclass(frozen=True)
class LastnEntry(Generic[K]):
    """A (id, timestamp) pair to rank. ``attributes`` are carried, never read."""

    id: K
    timestamp: datetime
    attributes: Mapping[str, Any] = field(default_factory=dict)
