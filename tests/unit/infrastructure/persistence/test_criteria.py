"""Tests for ParameterMap -> SQL translation."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects import sqlite

from crs.domain.search.model.constraint import (
    DateRangeConstraint,
    ReferenceConstraint,
    StringConstraint,
    Token,
    TokenConstraint,
)
from crs.domain.search.model.handler import SP_LAST_UPDATED, HandlerKey
from crs.domain.search.model.parameter import ParameterMap, SortOrder, SortState
from crs.infrastructure.persistence.criteria import build_criteria, build_order_by
from crs.infrastructure.persistence.tables import resources_table


def compile_where(params: ParameterMap) -> str:
    stmt = select(resources_table.c.id).where(*build_criteria(params))
    return str(stmt.compile(dialect=sqlite.dialect()))


class TestBuildCriteria:
    def test_always_filters_type_and_voided(self):
        params = ParameterMap.builder("Observation").build()

        criteria = build_criteria(params)

        assert len(criteria) == 2
        sql = compile_where(params)
        assert "resources.resource_type = ?" in sql
        assert "resources.voided IS 0" in sql

    def test_unknown_handler_key_is_ignored(self):
        params = (
            ParameterMap.builder("Observation")
            .add_parameter("custom.thing", "x", TokenConstraint(tokens=(Token(code="a"),)))
            .build()
        )

        assert len(build_criteria(params)) == 2

    def test_mismatched_constraint_is_ignored(self):
        """A string constraint under the coded handler cannot be applied."""
        params = (
            ParameterMap.builder("Observation")
            .add_parameter(HandlerKey.CODED, "code", StringConstraint(value="abc"))
            .build()
        )

        assert len(build_criteria(params)) == 2

    def test_reference_uses_correlated_exists(self):
        params = (
            ParameterMap.builder("Observation")
            .add_parameter(
                HandlerKey.PATIENT_REFERENCE, "", ReferenceConstraint(values=("pat-1",))
            )
            .build()
        )

        sql = compile_where(params)

        assert "EXISTS (SELECT resource_references.source_id" in sql
        assert "resource_references.source_id = resources.id" in sql

    def test_last_updated_coalesces_change_date(self):
        params = (
            ParameterMap.builder("Observation")
            .add_parameter(
                HandlerKey.COMMON,
                SP_LAST_UPDATED,
                DateRangeConstraint(lower=datetime(2024, 1, 1)),
            )
            .build()
        )

        sql = compile_where(params)

        assert "coalesce(resources.date_changed, resources.date_created) >= ?" in sql


class TestBuildOrderBy:
    def test_default_order_is_id(self):
        clauses = build_order_by(())

        assert [str(c) for c in clauses] == ["resources.id ASC"]

    def test_id_is_always_last_tie_breaker(self):
        clauses = build_order_by(
            (
                SortState(field="date", direction=SortOrder.DESC),
                SortState(field="unsupported"),
                SortState(field="name"),
            )
        )

        assert [str(c) for c in clauses] == [
            "resources.effective_at DESC",
            "resources.display ASC",
            "resources.id ASC",
        ]
