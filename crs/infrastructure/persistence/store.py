"""SQLAlchemy implementation of StoreCapability over the resources tables."""

import asyncio
import logging
from collections.abc import Hashable, Sequence
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from crs.domain.search.model.constraint import LastnConstraint
from crs.domain.search.model.handler import HandlerKey
from crs.domain.search.model.parameter import ParameterMap
from crs.domain.search.model.result import LastnEntry
from crs.domain.search.port.store import StoreCapability
from crs.domain.search.util.ranking import top_n_per_group
from crs.domain.shared.error import UnknownRelationshipError
from crs.infrastructure.persistence.criteria import build_criteria, build_order_by
from crs.infrastructure.persistence.mappers import ResourceRecord, row_to_record
from crs.infrastructure.persistence.tables import resource_references_table, resources_table

logger = logging.getLogger(__name__)

_res = resources_table
_refs = resource_references_table


class SQLAlchemyResourceStore(StoreCapability):
    """Reads resources through one AsyncSession.

    Identifiers are the public ``uuid`` strings. Voided rows are never
    returned. An AsyncSession cannot run two statements at once, so every
    statement is serialized through a lock; the engine still issues related
    fetches concurrently.

    ``relationships`` restricts which (related_type, search_param) pairs
    fetch_related accepts; with None any pair is looked up.
    """

    def __init__(
        self,
        session: AsyncSession,
        relationships: frozenset[tuple[str, str]] | None = None,
    ) -> None:
        self.session = session
        self._relationships = relationships
        self._lock = asyncio.Lock()

    async def count(self, params: ParameterMap) -> int:
        lastn = self._lastn(params)
        if lastn is not None:
            return len(await self._lastn_ids(params, lastn))

        stmt = select(func.count()).select_from(_res).where(*build_criteria(params))
        result = await self._execute(stmt)
        return result.scalar_one()

    async def fetch_window(self, params: ParameterMap, first: int, last: int) -> list[Hashable]:
        stmt = select(_res.c.uuid).select_from(_res)

        lastn = self._lastn(params)
        if lastn is not None:
            ids = await self._lastn_ids(params, lastn)
            if not ids:
                return []
            stmt = stmt.where(_res.c.id.in_(ids))
        else:
            stmt = stmt.where(*build_criteria(params))

        stmt = stmt.order_by(*build_order_by(params.sort)).offset(first).limit(last - first)
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def hydrate(self, identifiers: Sequence[Hashable]) -> list[ResourceRecord]:
        if not identifiers:
            return []
        stmt = select(_res).where(_res.c.uuid.in_(list(identifiers)), _res.c.voided.is_(False))
        result = await self._execute(stmt)
        by_id = {row["uuid"]: row_to_record(dict(row)) for row in result.mappings().all()}
        return [by_id[i] for i in identifiers if i in by_id]

    async def fetch_related(
        self,
        related_type: str,
        search_param: str,
        anchors: Sequence[Hashable],
        reverse: bool,
    ) -> list[Hashable]:
        if self._relationships is not None and (related_type, search_param) not in self._relationships:
            raise UnknownRelationshipError(related_type, search_param)
        if not anchors:
            return []

        source = _res.alias("source")
        target = _res.alias("target")
        # Forward: anchors are sources, targets are returned; reverse swaps the roles
        anchor, related = (target, source) if reverse else (source, target)

        stmt = (
            select(related.c.uuid)
            .select_from(
                _refs.join(source, source.c.id == _refs.c.source_id).join(
                    target, target.c.id == _refs.c.target_id
                )
            )
            .where(
                _refs.c.search_param == search_param,
                anchor.c.uuid.in_(list(anchors)),
                anchor.c.voided.is_(False),
                related.c.resource_type == related_type,
                related.c.voided.is_(False),
            )
            .group_by(related.c.id, related.c.uuid)
            .order_by(related.c.id.asc())
        )
        result = await self._execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _lastn(params: ParameterMap) -> LastnConstraint | None:
        for entry in params.get_parameters(HandlerKey.LASTN):
            if isinstance(entry.value, LastnConstraint):
                return entry.value
        return None

    async def _lastn_ids(self, params: ParameterMap, lastn: LastnConstraint) -> list[int]:
        """Row ids of the ``lastn.max`` most recent distinct timestamps per code."""
        stmt = (
            select(_res.c.id, _res.c.code, _res.c.effective_at)
            .where(*build_criteria(params), _res.c.effective_at.is_not(None))
            .order_by(_res.c.code.asc(), _res.c.id.asc())
        )
        result = await self._execute(stmt)
        entries = [
            LastnEntry(id=row.id, timestamp=row.effective_at, attributes={"code": row.code})
            for row in result.all()
        ]
        groups = top_n_per_group(entries, lastn.max, lambda e: e.attributes["code"])
        ids = [i for group in groups.values() for i in group]
        logger.debug(
            "lastn max=%d kept %d of %d rows across %d codes",
            lastn.max,
            len(ids),
            len(entries),
            len(groups),
        )
        return ids

    async def _execute(self, stmt: Select[Any]) -> Any:
        async with self._lock:
            return await self.session.execute(stmt)
