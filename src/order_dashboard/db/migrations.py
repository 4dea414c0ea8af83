"""Idempotent schema improvements for databases created by older releases.

Compares the live schema with the model metadata and adds whatever is
missing: tables, columns and named indexes. Columns are always added as
nullable so existing rows stay valid; defaults for new rows come from the
ORM. Nothing is ever dropped or altered.
"""

from typing import List

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from order_dashboard.core.logger import setup_logger

from .base import Base

logger = setup_logger(__name__)


def _improve_schema(conn: Connection) -> List[str]:
    from . import models  # noqa: F401

    changes: List[str] = []
    inspector = inspect(conn)
    existing_tables = set(inspector.get_table_names())

    for table in Base.metadata.sorted_tables:
        if table.name not in existing_tables:
            table.create(conn)
            changes.append(f"created table {table.name}")
            continue

        present_columns = {col["name"] for col in inspector.get_columns(table.name)}
        preparer = conn.dialect.identifier_preparer
        for column in table.columns:
            if column.name in present_columns:
                continue
            column_type = column.type.compile(dialect=conn.dialect)
            conn.exec_driver_sql(
                f"ALTER TABLE {preparer.quote(table.name)} "
                f"ADD COLUMN {preparer.quote(column.name)} {column_type}"
            )
            changes.append(f"added column {table.name}.{column.name}")

        present_indexes = {idx["name"] for idx in inspector.get_indexes(table.name)}
        for index in table.indexes:
            if index.name in present_indexes:
                continue
            index.create(conn)
            changes.append(f"created index {index.name}")

    return changes


async def apply_schema_improvements(engine: AsyncEngine) -> List[str]:
    """
    Bring the database schema up to date with the models.

    Returns:
        Human-readable list of the changes applied (empty when up to date)
    """
    logger.info("Starting database schema improvements...")
    async with engine.begin() as conn:
        changes = await conn.run_sync(_improve_schema)

    if changes:
        for change in changes:
            logger.info(f"Schema change: {change}")
    else:
        logger.info("Database schema already up to date")
    return changes
