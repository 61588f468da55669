"""Pytest configuration and fixtures."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from explorer.core.logging_config import reset_logging
from explorer.database import create_session_factory, init_db
from explorer.schemas.data_source import BackendKind, DataSourceRef
from explorer.schemas.metadata import (
    ColumnInfo,
    KafkaTopicInfo,
    PartialResult,
    SchemaInfo,
    TableInfo,
)
from explorer.services.cache_manager import CacheManager
from explorer.services.cache_store import InMemoryCacheStore, SqlCacheStore
from explorer.services.comparison import ComparisonEngine
from source_adapters.base import MetadataAdapter
from source_adapters.fetcher import MetadataFetcher


class FakeClock:
    """Controllable clock for expiry tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeAdapter(MetadataAdapter):
    """In-memory adapter that records every call it receives."""

    def __init__(self, kind: BackendKind = BackendKind.POSTGRESQL):
        self.kind = kind
        self.calls: List[Tuple] = []
        self.tables: Dict[str, TableInfo] = {}
        self.row_counts: Dict[str, int] = {}
        self.topics: List[KafkaTopicInfo] = []
        self.schemas = PartialResult[SchemaInfo]()
        self.error: Optional[Exception] = None

    def add_table(self, table: TableInfo, row_count: int = 0) -> None:
        self.tables[table.name] = table
        self.row_counts[table.name] = row_count

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def test_connection(self, source):
        self._record("test_connection", source.id)

    def fetch_tables(self, source):
        self._record("fetch_tables", source.id)
        return list(self.tables.values())

    def fetch_table_structure(self, source, schema, table_name):
        self._record("fetch_table_structure", source.id, schema, table_name)
        return self.tables[table_name]

    def fetch_row_count(self, source, schema, table_name):
        self._record("fetch_row_count", source.id, schema, table_name)
        return self.row_counts[table_name]

    def fetch_topics(self, source):
        self._record("fetch_topics", source.id)
        return list(self.topics)

    def fetch_registry_schemas(self, source):
        self._record("fetch_registry_schemas", source.id)
        return self.schemas


def make_table(name: str, *columns: Tuple[str, str], schema: str = "public") -> TableInfo:
    """Build a TableInfo from (name, data_type) pairs."""
    return TableInfo(
        name=name,
        schema_name=schema,
        columns=[ColumnInfo(name=n, data_type=t, is_nullable=True) for n, t in columns],
    )


@pytest.fixture
def restore_logging():
    """Undo setup_logging after the test."""
    root = logging.getLogger()
    level = root.level
    yield
    reset_logging()
    root.setLevel(level)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def sql_store(session_factory, clock) -> SqlCacheStore:
    return SqlCacheStore(session_factory, clock=clock)


@pytest.fixture
def memory_store(clock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def pg_source() -> DataSourceRef:
    return DataSourceRef(
        id=1,
        name="warehouse",
        kind=BackendKind.POSTGRESQL,
        host="pg.local",
        port=5432,
        database="warehouse",
        username="reader",
        password="secret",
    )


@pytest.fixture
def mysql_source() -> DataSourceRef:
    return DataSourceRef(
        id=2,
        name="shop",
        kind=BackendKind.MYSQL,
        host="mysql.local",
        port=3306,
        database="shop",
        username="reader",
        password="secret",
    )


@pytest.fixture
def kafka_source() -> DataSourceRef:
    return DataSourceRef(
        id=3,
        name="events",
        kind=BackendKind.KAFKA,
        host="kafka.local",
        port=9092,
        schema_registry_url="http://registry.local:8081/",
    )


@pytest.fixture
def pg_adapter() -> FakeAdapter:
    return FakeAdapter(BackendKind.POSTGRESQL)


@pytest.fixture
def mysql_adapter() -> FakeAdapter:
    return FakeAdapter(BackendKind.MYSQL)


@pytest.fixture
def kafka_adapter() -> FakeAdapter:
    return FakeAdapter(BackendKind.KAFKA)


@pytest.fixture
def fetcher(pg_adapter, mysql_adapter, kafka_adapter) -> MetadataFetcher:
    return MetadataFetcher(
        {
            BackendKind.POSTGRESQL: pg_adapter,
            BackendKind.MYSQL: mysql_adapter,
            BackendKind.KAFKA: kafka_adapter,
        }
    )


@pytest.fixture
def cache_manager(memory_store, fetcher) -> CacheManager:
    return CacheManager(memory_store, fetcher)


@pytest.fixture
def comparison_engine(fetcher) -> ComparisonEngine:
    return ComparisonEngine(fetcher)


@pytest.fixture
def table_factory():
    return make_table
