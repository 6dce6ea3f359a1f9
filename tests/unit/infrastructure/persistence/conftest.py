"""Fixtures for store tests against in-memory SQLite."""

from datetime import datetime
from typing import Any

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from crs.config import DatabaseConfig
from crs.infrastructure.persistence.database import (
    create_db_engine,
    create_schema,
    create_session_factory,
)
from crs.infrastructure.persistence.tables import resource_references_table, resources_table

CREATED = datetime(2024, 1, 10)


def resource(
    id_: int,
    uuid: str,
    resource_type: str,
    *,
    code: str | None = None,
    code_system: str | None = None,
    display: str | None = None,
    effective_at: datetime | None = None,
    date_created: datetime = CREATED,
    date_changed: datetime | None = None,
    voided: bool = False,
) -> dict[str, Any]:
    return {
        "id": id_,
        "uuid": uuid,
        "resource_type": resource_type,
        "code": code,
        "code_system": code_system,
        "display": display,
        "effective_at": effective_at,
        "date_created": date_created,
        "date_changed": date_changed,
        "voided": voided,
        "attributes": {"seed": id_},
    }


RESOURCES = [
    resource(1, "pat-1", "Patient", display="Smith, Ann"),
    resource(2, "pat-2", "Patient", display="Smithers, Bob"),
    resource(3, "pat-3", "Patient", display="Smith, Voided", voided=True),
    resource(10, "enc-1", "Encounter", effective_at=datetime(2024, 1, 3)),
    resource(
        20, "obs-1", "Observation", code="bp",
        effective_at=datetime(2024, 1, 3), date_created=datetime(2024, 3, 1),
    ),
    resource(21, "obs-2", "Observation", code="bp", effective_at=datetime(2024, 1, 2)),
    resource(22, "obs-3", "Observation", code="bp", effective_at=datetime(2024, 1, 2)),
    resource(23, "obs-4", "Observation", code="bp", effective_at=datetime(2024, 1, 1)),
    resource(
        24, "obs-5", "Observation", code="hr", code_system="http://loinc.org",
        effective_at=datetime(2024, 1, 5),
    ),
    resource(
        25, "obs-6", "Observation", code="hr", effective_at=datetime(2024, 1, 4), voided=True
    ),
    resource(
        26, "obs-7", "Observation", code="hr",
        effective_at=datetime(2024, 1, 1), date_changed=datetime(2024, 6, 1),
    ),
]

REFERENCES = [
    {"source_id": source, "search_param": param, "target_id": target}
    for source, param, target in [
        (10, "patient", 1),
        (20, "patient", 1),
        (20, "encounter", 10),
        (21, "patient", 1),
        (22, "patient", 1),
        (23, "patient", 1),
        (24, "patient", 2),
        (25, "patient", 1),
        (26, "patient", 1),
    ]
]


@pytest_asyncio.fixture
async def engine():
    """Per-test in-memory database with the seed data loaded."""
    engine = create_db_engine(DatabaseConfig(url="sqlite+aiosqlite:///:memory:"))
    await create_schema(engine)
    async with engine.begin() as conn:
        await conn.execute(resources_table.insert(), RESOURCES)
        await conn.execute(resource_references_table.insert(), REFERENCES)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine):
    factory = create_session_factory(engine)
    async with factory() as session:
        yield session
        await session.rollback()
