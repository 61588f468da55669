"""Read-through caching over the metadata fetch operations."""

import logging
from datetime import timedelta
from typing import Any, Callable, List, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from explorer.core.exceptions import SerializationError, StoreError, UnsavedDataSource
from explorer.schemas.cache import CacheEntry, CacheType
from explorer.schemas.data_source import DataSourceRef
from explorer.schemas.metadata import KafkaTopicInfo, SchemaInfo, TableInfo
from explorer.services.cache_store import CacheStore, CacheTypeArg
from source_adapters.fetcher import MetadataFetcher

logger = logging.getLogger("explorer.cache")

T = TypeVar("T")

DEFAULT_TTL = timedelta(hours=24)

TABLE_LIST = TypeAdapter(List[TableInfo])
TABLE = TypeAdapter(TableInfo)
TOPIC_LIST = TypeAdapter(List[KafkaTopicInfo])
SCHEMA_LIST = TypeAdapter(List[SchemaInfo])


def tables_key(source: DataSourceRef) -> str:
    return f"tables:{source.database or 'default'}"


def table_structure_key(schema: Optional[str], table_name: str) -> str:
    return f"table_structure:{schema or 'default'}:{table_name}"


class CacheManager:
    """
    Read-through cache for tables, table structures, topics and schemas.

    A hit that decodes into the expected shape is served without touching
    the backend. A miss, an expired entry, a forced refresh or an
    undecodable document triggers a fetch, a cache write and returns the
    fetched value. Fetch failures always propagate and leave any existing
    entry untouched; store write failures propagate unless
    propagate_write_errors is False.
    """

    def __init__(
        self,
        store: CacheStore,
        fetcher: MetadataFetcher,
        ttl: timedelta = DEFAULT_TTL,
        propagate_write_errors: bool = True,
    ):
        if ttl <= timedelta(0):
            raise ValueError(f"Cache TTL must be positive, got {ttl}")
        self.store = store
        self.fetcher = fetcher
        self.ttl = ttl
        self.propagate_write_errors = propagate_write_errors

    def get_tables(self, source: DataSourceRef, force_refresh: bool = False) -> List[TableInfo]:
        return self._read_through(
            source,
            CacheType.TABLES,
            tables_key(source),
            TABLE_LIST,
            lambda: self.fetcher.get_tables(source),
            force_refresh,
        )

    def get_table_structure(
        self,
        source: DataSourceRef,
        schema: Optional[str],
        table_name: str,
        force_refresh: bool = False,
    ) -> TableInfo:
        return self._read_through(
            source,
            CacheType.TABLE_STRUCTURE,
            table_structure_key(schema, table_name),
            TABLE,
            lambda: self.fetcher.get_table_structure(source, schema, table_name),
            force_refresh,
        )

    def get_kafka_topics(
        self, source: DataSourceRef, force_refresh: bool = False
    ) -> List[KafkaTopicInfo]:
        return self._read_through(
            source,
            CacheType.TOPICS,
            "topics",
            TOPIC_LIST,
            lambda: self.fetcher.get_kafka_topics(source),
            force_refresh,
        )

    def get_schema_registry_schemas(
        self, source: DataSourceRef, force_refresh: bool = False
    ) -> List[SchemaInfo]:
        def fetch() -> List[SchemaInfo]:
            result = self.fetcher.get_schema_registry_schemas(source)
            if result.skipped:
                logger.warning(
                    f"Schema Registry for source {source.id}: skipped "
                    f"{len(result.skipped)} subject(s): "
                    + ", ".join(item.key for item in result.skipped)
                )
            return result.items

        return self._read_through(
            source, CacheType.SCHEMAS, "schemas", SCHEMA_LIST, fetch, force_refresh
        )

    def clear_cache(self, source_id: int, cache_type: Optional[CacheTypeArg] = None) -> int:
        return self.store.delete(source_id, cache_type)

    def _read_through(
        self,
        source: DataSourceRef,
        cache_type: CacheType,
        cache_key: str,
        adapter: TypeAdapter,
        fetch: Callable[[], T],
        force_refresh: bool,
    ) -> T:
        if source.id is None:
            raise UnsavedDataSource(source.name)

        if not force_refresh:
            cached = self._decode_hit(source, cache_type, cache_key, adapter)
            if cached is not None:
                return cached

        logger.info(f"Fetching {cache_type.value} '{cache_key}' for source {source.id}")
        value = fetch()

        document = self._encode(adapter, value, cache_key)
        entry = CacheEntry(
            data_source_id=source.id,
            cache_type=cache_type,
            cache_key=cache_key,
            cache_data=document,
        )
        try:
            self.store.put(entry, ttl=self.ttl)
        except StoreError:
            if self.propagate_write_errors:
                raise
            logger.exception(f"Cache write failed for '{cache_key}', returning fetched value")
        return value

    def _decode_hit(
        self,
        source: DataSourceRef,
        cache_type: CacheType,
        cache_key: str,
        adapter: TypeAdapter,
    ) -> Optional[Any]:
        entry = self.store.get(source.id, cache_type, cache_key)
        if entry is None:
            logger.debug(f"Cache miss for {cache_type.value} '{cache_key}' (source {source.id})")
            return None
        try:
            value = adapter.validate_python(entry.cache_data)
        except ValidationError as e:
            logger.warning(
                f"Discarding undecodable cache entry '{cache_key}' for source "
                f"{source.id}: {e.error_count()} validation error(s)"
            )
            return None
        logger.debug(f"Cache hit for {cache_type.value} '{cache_key}' (source {source.id})")
        return value

    @staticmethod
    def _encode(adapter: TypeAdapter, value: Any, cache_key: str) -> Any:
        try:
            return adapter.dump_python(value, mode="json", by_alias=True)
        except PydanticSerializationError as e:
            raise SerializationError(f"Cannot serialize '{cache_key}': {e}") from e
