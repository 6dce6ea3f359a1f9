"""ParameterMap - the uniform, handler-keyed representation of one search request.

A ParameterMap is frozen. Requests are assembled with ParameterMapBuilder,
which is the only mutable stage, and handed to the engine as an immutable
value so the cache signature and equality never change under it.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from enum import Enum
from typing import Any

import pydantic
from pydantic import Field, field_validator
from typing_extensions import Self

from crs.domain.search.model.constraint import ConstraintValue
from crs.domain.shared.error import InvalidSpecificationError
from crs.domain.shared.model.value import ValueObject


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortState(ValueObject):
    field: str = Field(min_length=1)
    direction: SortOrder = SortOrder.ASC


class IncludeSpec(ValueObject):
    """A requested forward (_include) or reverse (_revinclude) expansion.

    Whether a spec is forward or reverse is decided by the set it is placed
    in, so (related_type, search_param) identifies it within one set.
    """

    related_type: str = Field(min_length=1)
    search_param: str = Field(min_length=1)
    iterate: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.related_type, self.search_param)

    @classmethod
    def create(cls, related_type: str, search_param: str, *, iterate: bool = False) -> IncludeSpec:
        """Construct a spec, raising InvalidSpecificationError when malformed."""
        try:
            return cls(related_type=related_type, search_param=search_param, iterate=iterate)
        except pydantic.ValidationError as e:
            raise InvalidSpecificationError(f"Invalid include spec: {e}", field="include") from e


def canonical_includes(specs: Iterable[IncludeSpec]) -> tuple[IncludeSpec, ...]:
    """Collapse duplicate specs and order them by (related_type, search_param).

    Duplicates that disagree on ``iterate`` collapse to iterate=True.
    """
    merged: dict[tuple[str, str], IncludeSpec] = {}
    for spec in specs:
        existing = merged.get(spec.key)
        if existing is None or (spec.iterate and not existing.iterate):
            merged[spec.key] = spec
    return tuple(merged[key] for key in sorted(merged))


class ParameterEntry(ValueObject):
    handler_key: str = Field(min_length=1)
    param_name: str = ""
    value: ConstraintValue


class ParameterMap(ValueObject):
    """Ordered, multi-valued handler-key -> constraint container.

    Entry order is significant: it is the order constraints are applied in
    and it is part of the cache signature. Include sets are unordered; they
    are kept in canonical order so equality is set equality.
    """

    resource_type: str = Field(min_length=1)
    entries: tuple[ParameterEntry, ...] = ()
    sort: tuple[SortState, ...] = ()
    includes: tuple[IncludeSpec, ...] = ()
    rev_includes: tuple[IncludeSpec, ...] = ()

    @field_validator("includes", "rev_includes")
    @classmethod
    def _canonicalize(cls, value: tuple[IncludeSpec, ...]) -> tuple[IncludeSpec, ...]:
        return canonical_includes(value)

    @classmethod
    def builder(cls, resource_type: str) -> ParameterMapBuilder:
        return ParameterMapBuilder(resource_type)

    @property
    def is_empty(self) -> bool:
        """True when no constraint narrows the match (pagination still applies)."""
        return not self.entries

    def get_parameters(self, handler_key: str) -> list[ParameterEntry]:
        return [e for e in self.entries if e.handler_key == handler_key]

    def has_parameter(self, handler_key: str) -> bool:
        return any(e.handler_key == handler_key for e in self.entries)

    def handler_keys(self) -> list[str]:
        """Distinct handler keys in first-seen order."""
        return list(dict.fromkeys(e.handler_key for e in self.entries))

    def to_cache_signature(self) -> str:
        """Canonical, order-preserving encoding used as the count cache key."""
        payload: dict[str, Any] = {
            "entries": [e.model_dump(mode="json") for e in self.entries],
            "sort": [s.model_dump(mode="json") for s in self.sort],
            "includes": [s.model_dump(mode="json") for s in self.includes],
            "rev_includes": [s.model_dump(mode="json") for s in self.rev_includes],
        }
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()
        return f"{self.resource_type}:{digest}"


class ParameterMapBuilder:
    """Mutable builder for ParameterMap.

    Every add_* call validates immediately and returns the builder, so a
    malformed entry fails at the line that added it.
    """

    def __init__(self, resource_type: str) -> None:
        self._resource_type = resource_type
        self._entries: list[ParameterEntry] = []
        self._sort: list[SortState] = []
        self._includes: list[IncludeSpec] = []
        self._rev_includes: list[IncludeSpec] = []

    def add_parameter(self, handler_key: str, param_name: str, value: Any) -> Self:
        try:
            entry = ParameterEntry(handler_key=handler_key, param_name=param_name, value=value)
        except pydantic.ValidationError as e:
            raise InvalidSpecificationError(
                f"Invalid parameter for handler {handler_key!r}: {e}", field=param_name or None
            ) from e
        self._entries.append(entry)
        return self

    def add_sort(self, field: str, direction: SortOrder | str = SortOrder.ASC) -> Self:
        try:
            self._sort.append(SortState(field=field, direction=SortOrder(direction)))
        except (pydantic.ValidationError, ValueError) as e:
            raise InvalidSpecificationError(f"Invalid sort on {field!r}: {e}", field="sort") from e
        return self

    def add_includes(self, specs: Iterable[IncludeSpec]) -> Self:
        self._includes.extend(specs)
        return self

    def add_rev_includes(self, specs: Iterable[IncludeSpec]) -> Self:
        self._rev_includes.extend(specs)
        return self

    def include(self, related_type: str, search_param: str, *, iterate: bool = False) -> Self:
        self._includes.append(IncludeSpec.create(related_type, search_param, iterate=iterate))
        return self

    def rev_include(self, related_type: str, search_param: str, *, iterate: bool = False) -> Self:
        self._rev_includes.append(IncludeSpec.create(related_type, search_param, iterate=iterate))
        return self

    def build(self) -> ParameterMap:
        try:
            return ParameterMap(
                resource_type=self._resource_type,
                entries=tuple(self._entries),
                sort=tuple(self._sort),
                includes=tuple(self._includes),
                rev_includes=tuple(self._rev_includes),
            )
        except pydantic.ValidationError as e:
            raise InvalidSpecificationError(f"Invalid parameter map: {e}") from e
