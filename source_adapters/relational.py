"""Catalog introspection for the relational backend families."""

import logging
from functools import partial
from typing import Callable, ContextManager, List, Optional

from sqlalchemy import Connection, text

from explorer.config import Settings
from explorer.core.exceptions import NotFound
from explorer.schemas.data_source import BackendKind, DataSourceRef
from explorer.schemas.metadata import ColumnInfo, TableInfo
from source_adapters.base import MetadataAdapter
from source_adapters.connectors import connect

logger = logging.getLogger(__name__)

Connector = Callable[[DataSourceRef], ContextManager[Connection]]


def split_constraints(value: Optional[str]) -> List[str]:
    """Split an aggregated constraint list, dropping blanks and repeats."""
    if not value:
        return []
    seen: List[str] = []
    for part in value.split(","):
        part = part.strip()
        if part and part not in seen:
            seen.append(part)
    return seen


class RelationalAdapter(MetadataAdapter):
    """
    Reads table metadata from information_schema.

    Subclasses provide the dialect-specific column query; it must return
    (column_name, data_type, is_nullable, column_default, constraints)
    ordered by ordinal position.
    """

    TABLES_QUERY = text("""
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = :schema
        AND table_type = 'BASE TABLE'
        ORDER BY table_name
    """)
    COLUMNS_QUERY = None
    COUNT_EXPRESSION = "COUNT(*)"

    def __init__(
        self,
        connector: Optional[Connector] = None,
        settings: Optional[Settings] = None,
    ):
        self._connect = connector or partial(connect, settings=settings)

    def test_connection(self, source: DataSourceRef) -> None:
        with self._connect(source) as conn:
            conn.execute(text("SELECT 1"))

    def fetch_tables(self, source: DataSourceRef) -> List[TableInfo]:
        """All base tables in the source's default schema, with structure."""
        schema = source.resolve_schema()
        with self._connect(source) as conn:
            result = conn.execute(self.TABLES_QUERY, {"schema": schema})
            names = [row[0] for row in result.fetchall()]
            logger.info(f"Found {len(names)} tables in {schema} on source {source.id}")
            return [self._table_structure(conn, schema, name) for name in names]

    def fetch_table_structure(
        self, source: DataSourceRef, schema: Optional[str], table_name: str
    ) -> TableInfo:
        schema = source.resolve_schema(schema)
        with self._connect(source) as conn:
            table = self._table_structure(conn, schema, table_name)
        if not table.columns:
            raise NotFound(f"Table '{schema}.{table_name}'")
        return table

    def fetch_row_count(
        self, source: DataSourceRef, schema: Optional[str], table_name: str
    ) -> int:
        """Exact row count of schema.table_name."""
        schema = source.resolve_schema(schema)
        with self._connect(source) as conn:
            # Identifiers cannot be bound; quote them for the dialect
            preparer = conn.dialect.identifier_preparer
            target = preparer.quote(table_name)
            if schema:
                target = f"{preparer.quote_schema(schema)}.{target}"
            result = conn.execute(text(f"SELECT {self.COUNT_EXPRESSION} FROM {target}"))
            return int(result.scalar() or 0)

    def _table_structure(
        self, conn: Connection, schema: Optional[str], table_name: str
    ) -> TableInfo:
        result = conn.execute(
            self.COLUMNS_QUERY, {"schema": schema, "table_name": table_name}
        )
        columns = [self._column_from_row(row) for row in result.fetchall()]
        return TableInfo(name=table_name, schema_name=schema, columns=columns)

    def _column_from_row(self, row) -> ColumnInfo:
        name, data_type, is_nullable, default_value, constraints = row
        return ColumnInfo(
            name=name,
            data_type=data_type,
            is_nullable=str(is_nullable).upper() == "YES",
            default_value=None if default_value is None else str(default_value),
            constraints=self._parse_constraints(constraints),
        )

    def _parse_constraints(self, value) -> List[str]:
        return split_constraints(value)


class PostgreSQLAdapter(RelationalAdapter):
    kind = BackendKind.POSTGRESQL

    COLUMNS_QUERY = text("""
        SELECT
            c.column_name,
            c.data_type,
            c.is_nullable,
            c.column_default,
            (SELECT string_agg(tc.constraint_type, ', ')
             FROM information_schema.table_constraints tc
             JOIN information_schema.key_column_usage kcu
               ON tc.constraint_name = kcu.constraint_name
              AND tc.constraint_schema = kcu.constraint_schema
              AND tc.table_name = kcu.table_name
             WHERE tc.table_schema = c.table_schema
               AND tc.table_name = c.table_name
               AND kcu.column_name = c.column_name) AS constraints
        FROM information_schema.columns c
        WHERE c.table_schema = :schema AND c.table_name = :table_name
        ORDER BY c.ordinal_position
    """)


class SQLServerAdapter(RelationalAdapter):
    kind = BackendKind.SQLSERVER

    COLUMNS_QUERY = text("""
        SELECT
            c.column_name,
            c.data_type,
            c.is_nullable,
            c.column_default,
            (SELECT STRING_AGG(tc.constraint_type, ', ')
             FROM information_schema.table_constraints tc
             JOIN information_schema.key_column_usage kcu
               ON tc.constraint_name = kcu.constraint_name
              AND tc.constraint_schema = kcu.constraint_schema
              AND tc.table_name = kcu.table_name
             WHERE tc.table_schema = c.table_schema
               AND tc.table_name = c.table_name
               AND kcu.column_name = c.column_name) AS constraints
        FROM information_schema.columns c
        WHERE c.table_schema = :schema AND c.table_name = :table_name
        ORDER BY c.ordinal_position
    """)
    COUNT_EXPRESSION = "COUNT_BIG(*)"


class MySQLAdapter(RelationalAdapter):
    kind = BackendKind.MYSQL

    COLUMNS_QUERY = text("""
        SELECT
            column_name,
            data_type,
            is_nullable,
            column_default,
            column_key
        FROM information_schema.columns
        WHERE table_schema = :schema AND table_name = :table_name
        ORDER BY ordinal_position
    """)

    # information_schema.columns.COLUMN_KEY values
    COLUMN_KEYS = {
        "PRI": "PRIMARY KEY",
        "UNI": "UNIQUE",
        "MUL": "INDEX",
    }

    def _parse_constraints(self, value) -> List[str]:
        constraint = self.COLUMN_KEYS.get((value or "").upper())
        return [constraint] if constraint else []
