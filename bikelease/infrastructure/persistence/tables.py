"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import Column, DateTime, Index, MetaData, String, Table
from sqlalchemy.types import JSON

# Metadata object for all tables
metadata = MetaData()


def orders_table(name: str = "orders") -> Table:
    """Return the orders table stored under `name`, defining it on first use.

    Orders are partitioned by company: (company_id, id) is the primary key.
    The full order document is kept as JSON; a few fields are copied into
    columns for filtering.
    """
    if name in metadata.tables:
        return metadata.tables[name]

    table = Table(
        name,
        metadata,
        Column("company_id", String, primary_key=True),
        Column("id", String, primary_key=True),
        Column("employee_id", String, nullable=False),
        Column("status", String(16), nullable=False),  # OrderStatus as string
        Column("document", JSON, nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
    )
    Index(f"idx_{name}_employee_id", table.c.employee_id)
    return table
