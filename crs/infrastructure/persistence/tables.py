"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    false,
)
from sqlalchemy.types import JSON

metadata = MetaData()

# ============================================================================
# RESOURCES TABLE (one row per clinical record, any resource type)
# ============================================================================
resources_table = Table(
    "resources",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),  # Internal; ordering tie-breaker
    Column("uuid", String(64), nullable=False, unique=True),  # Public identifier
    Column("resource_type", String(64), nullable=False),
    Column("code_system", String, nullable=True),
    Column("code", String, nullable=True),
    Column("display", Text, nullable=True),  # Target of string searches
    Column("effective_at", DateTime(timezone=True), nullable=True),
    Column("date_created", DateTime(timezone=True), nullable=False),
    Column("date_changed", DateTime(timezone=True), nullable=True),
    Column("voided", Boolean, nullable=False, server_default=false()),
    Column("attributes", JSON, nullable=True),
)

Index("idx_resources_type", resources_table.c.resource_type)
Index("idx_resources_type_code", resources_table.c.resource_type, resources_table.c.code)
Index("idx_resources_effective_at", resources_table.c.effective_at)


# ============================================================================
# RESOURCE REFERENCES TABLE (source --search_param--> target)
# ============================================================================
resource_references_table = Table(
    "resource_references",
    metadata,
    Column("source_id", Integer, ForeignKey("resources.id"), primary_key=True),
    Column("search_param", String(64), primary_key=True),
    Column("target_id", Integer, ForeignKey("resources.id"), primary_key=True),
)

Index("idx_resource_references_target", resource_references_table.c.target_id)
