from datetime import datetime
from typing import Any

from crs.domain.shared.model.value import ValueObject


class ResourceRecord(ValueObject):
    """A hydrated row of the resources table."""

    id: str
    resource_type: str
    code_system: str | None = None
    code: str | None = None
    display: str | None = None
    effective_at: datetime | None = None
    last_updated: datetime
    attributes: dict[str, Any] = {}


def row_to_record(row: dict[str, Any]) -> ResourceRecord:
    """Convert database row to ResourceRecord.

    last_updated is the change date when the row has been edited, else the
    creation date.
    """
    return ResourceRecord(
        id=row["uuid"],
        resource_type=row["resource_type"],
        code_system=row.get("code_system"),
        code=row.get("code"),
        display=row.get("display"),
        effective_at=row.get("effective_at"),
        last_updated=row.get("date_changed") or row["date_created"],
        attributes=row.get("attributes") or {},
    )
