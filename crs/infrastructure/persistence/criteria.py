"""Translation of ParameterMap entries and sort states into SQL expressions.

Each handler key maps to one translator. A translator returns None when an
entry carries a constraint it cannot apply; unknown handler keys are skipped
the same way, so a store never fails on a parameter it does not understand.
"""

import logging
from collections.abc import Callable

from sqlalchemy import ColumnElement, and_, func, or_, select

from crs.domain.search.model.constraint import (
    DateRangeConstraint,
    ReferenceConstraint,
    StringConstraint,
    TokenConstraint,
)
from crs.domain.search.model.handler import SP_LAST_UPDATED, SP_RES_ID, HandlerKey
from crs.domain.search.model.parameter import ParameterEntry, ParameterMap, SortOrder, SortState
from crs.infrastructure.persistence.tables import resource_references_table, resources_table

logger = logging.getLogger(__name__)

Translator = Callable[[ParameterEntry], ColumnElement[bool] | None]

_refs = resource_references_table
_res = resources_table
_target = resources_table.alias("ref_target")

# Reference search param stored in resource_references for each reference handler
REFERENCE_PARAMS: dict[str, str] = {
    HandlerKey.PATIENT_REFERENCE: "patient",
    HandlerKey.ENCOUNTER_REFERENCE: "encounter",
}


def last_updated() -> ColumnElement:
    """Change date when set, else creation date."""
    return func.coalesce(_res.c.date_changed, _res.c.date_created)


def _date_range(column: ColumnElement, value: DateRangeConstraint) -> ColumnElement[bool]:
    bounds = []
    if value.lower is not None:
        bounds.append(column >= value.lower)
    if value.upper is not None:
        bounds.append(column <= value.upper)
    return and_(*bounds)


def _reference(entry: ParameterEntry) -> ColumnElement[bool] | None:
    value = entry.value
    if not isinstance(value, ReferenceConstraint):
        return None
    search_param = entry.param_name or REFERENCE_PARAMS[entry.handler_key]

    conditions = [
        _refs.c.source_id == _res.c.id,
        _refs.c.search_param == search_param,
        _target.c.uuid.in_(value.values),
        _target.c.voided.is_(False),
    ]
    if value.target_type is not None:
        conditions.append(_target.c.resource_type == value.target_type)

    return (
        select(_refs.c.source_id)
        .select_from(_refs.join(_target, _target.c.id == _refs.c.target_id))
        .where(*conditions)
        .exists()
    )


def _coded(entry: ParameterEntry) -> ColumnElement[bool] | None:
    value = entry.value
    if not isinstance(value, TokenConstraint):
        return None
    alternatives = []
    for token in value.tokens:
        if token.system is None:
            alternatives.append(_res.c.code == token.code)
        else:
            alternatives.append(and_(_res.c.code == token.code, _res.c.code_system == token.system))
    return or_(*alternatives)


def _date(entry: ParameterEntry) -> ColumnElement[bool] | None:
    if not isinstance(entry.value, DateRangeConstraint):
        return None
    return _date_range(_res.c.effective_at, entry.value)


def _string(entry: ParameterEntry) -> ColumnElement[bool] | None:
    value = entry.value
    if not isinstance(value, StringConstraint):
        return None
    if value.match == "exact":
        return func.lower(_res.c.display) == value.value.lower()
    if value.match == "contains":
        return _res.c.display.icontains(value.value, autoescape=True)
    return _res.c.display.istartswith(value.value, autoescape=True)


def _common(entry: ParameterEntry) -> ColumnElement[bool] | None:
    value = entry.value
    if entry.param_name == SP_RES_ID:
        if isinstance(value, ReferenceConstraint):
            return _res.c.uuid.in_(value.values)
        if isinstance(value, TokenConstraint):
            return _res.c.uuid.in_([t.code for t in value.tokens])
        return None
    if entry.param_name == SP_LAST_UPDATED and isinstance(value, DateRangeConstraint):
        return _date_range(last_updated(), value)
    return None


TRANSLATORS: dict[str, Translator] = {
    HandlerKey.PATIENT_REFERENCE: _reference,
    HandlerKey.ENCOUNTER_REFERENCE: _reference,
    HandlerKey.CODED: _coded,
    HandlerKey.DATE_RANGE: _date,
    HandlerKey.STRING: _string,
    HandlerKey.COMMON: _common,
}

# Sort fields a client may name, mapped to the column they order by
SORT_COLUMNS: dict[str, Callable[[], ColumnElement]] = {
    SP_RES_ID: lambda: _res.c.uuid,
    SP_LAST_UPDATED: last_updated,
    "date": lambda: _res.c.effective_at,
    "code": lambda: _res.c.code,
    "name": lambda: _res.c.display,
}


def build_criteria(params: ParameterMap) -> list[ColumnElement[bool]]:
    """WHERE conditions for ``params``, AND-ed by the caller.

    Always restricts to the map's resource type and to rows that are not
    voided. Lastn entries are not translated here.
    """
    criteria: list[ColumnElement[bool]] = [
        _res.c.resource_type == params.resource_type,
        _res.c.voided.is_(False),
    ]
    for entry in params.entries:
        translator = TRANSLATORS.get(entry.handler_key)
        if translator is None:
            if entry.handler_key != HandlerKey.LASTN:
                logger.debug("Ignoring unsupported handler key: %s", entry.handler_key)
            continue
        condition = translator(entry)
        if condition is None:
            logger.debug(
                "Ignoring %s constraint for handler %s",
                entry.value.kind,
                entry.handler_key,
            )
            continue
        criteria.append(condition)
    return criteria


def build_order_by(sort: tuple[SortState, ...]) -> list[ColumnElement]:
    """ORDER BY clauses for ``sort``, always ending with id ascending.

    The trailing id clause makes paging stable when sort values tie.
    """
    clauses: list[ColumnElement] = []
    for state in sort:
        column = SORT_COLUMNS.get(state.field)
        if column is None:
            logger.debug("Ignoring unsupported sort field: %s", state.field)
            continue
        clauses.append(column().desc() if state.direction == SortOrder.DESC else column().asc())
    clauses.append(_res.c.id.asc())
    return clauses
