"""Dispatch of canonical fetch operations to the adapter for a source's kind."""

import logging
from typing import Dict, List, Mapping, Optional

from explorer.config import Settings
from explorer.core.exceptions import FetchFailed, MetadataError, UnsupportedBackend
from explorer.schemas.data_source import BackendKind, DataSourceRef
from explorer.schemas.metadata import KafkaTopicInfo, PartialResult, SchemaInfo, TableInfo
from source_adapters.base import MetadataAdapter
from source_adapters.kafka import KafkaAdapter
from source_adapters.relational import MySQLAdapter, PostgreSQLAdapter, SQLServerAdapter

logger = logging.getLogger(__name__)


def default_adapters(settings: Optional[Settings] = None) -> Dict[BackendKind, MetadataAdapter]:
    """One adapter per supported backend kind."""
    return {
        BackendKind.MYSQL: MySQLAdapter(settings=settings),
        BackendKind.POSTGRESQL: PostgreSQLAdapter(settings=settings),
        BackendKind.SQLSERVER: SQLServerAdapter(settings=settings),
        BackendKind.KAFKA: KafkaAdapter(settings=settings),
    }


class MetadataFetcher:
    """
    Routes each fetch to the adapter registered for the source's kind.

    Backend errors are wrapped in FetchFailed with the operation and source
    id; errors already in the metadata taxonomy pass through unchanged.
    """

    def __init__(self, adapters: Optional[Mapping[BackendKind, MetadataAdapter]] = None):
        self.adapters = dict(adapters) if adapters is not None else default_adapters()

    def adapter_for(self, source: DataSourceRef) -> MetadataAdapter:
        adapter = self.adapters.get(source.kind)
        if adapter is None:
            raise UnsupportedBackend(source.kind.value)
        return adapter

    def test_connection(self, source: DataSourceRef) -> None:
        self._call("test_connection", source)

    def get_tables(self, source: DataSourceRef) -> List[TableInfo]:
        return self._call("fetch_tables", source)

    def get_table_structure(
        self, source: DataSourceRef, schema: Optional[str], table_name: str
    ) -> TableInfo:
        return self._call("fetch_table_structure", source, schema, table_name)

    def get_table_row_count(
        self, source: DataSourceRef, schema: Optional[str], table_name: str
    ) -> int:
        return self._call("fetch_row_count", source, schema, table_name)

    def get_kafka_topics(self, source: DataSourceRef) -> List[KafkaTopicInfo]:
        return self._call("fetch_topics", source)

    def get_kafka_consumer_groups(self, source: DataSourceRef) -> List[str]:
        return self._call("fetch_consumer_groups", source)

    def get_schema_registry_schemas(self, source: DataSourceRef) -> PartialResult[SchemaInfo]:
        return self._call("fetch_registry_schemas", source)

    def _call(self, operation: str, source: DataSourceRef, *args):
        adapter = self.adapter_for(source)
        try:
            return getattr(adapter, operation)(source, *args)
        except MetadataError:
            raise
        except Exception as e:  # drivers raise their own exception hierarchies
            logger.error(f"{operation} failed for data source {source.id}: {e}")
            raise FetchFailed(operation, source.id, str(e)) from e
