"""Search domain models."""

from .constraint import (
    ConstraintValue,
    DateRangeConstraint,
    LastnConstraint,
    ReferenceConstraint,
    StringConstraint,
    Token,
    TokenConstraint,
)
from .handler import SP_LAST_UPDATED, SP_RES_ID, HandlerKey
from .parameter import (
    IncludeSpec,
    ParameterEntry,
    ParameterMap,
    ParameterMapBuilder,
    SortOrder,
    SortState,
)
from .result import ExpandedResultSet, LastnEntry, PageRequest, ResultWindow, TotalCount

__all__ = [
    "ConstraintValue",
    "DateRangeConstraint",
    "ExpandedResultSet",
    "HandlerKey",
    "IncludeSpec",
    "LastnConstraint",
    "LastnEntry",
    "PageRequest",
    "ParameterEntry",
    "ParameterMap",
    "ParameterMapBuilder",
    "ReferenceConstraint",
    "ResultWindow",
    "SP_LAST_UPDATED",
    "SP_RES_ID",
    "SortOrder",
    "SortState",
    "StringConstraint",
    "Token",
    "TokenConstraint",
    "TotalCount",
]
