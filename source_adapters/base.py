"""Adapter interface shared by every backend kind."""

from typing import List, Optional

from explorer.core.exceptions import UnsupportedOperation
from explorer.schemas.data_source import BackendKind, DataSourceRef
from explorer.schemas.metadata import KafkaTopicInfo, PartialResult, SchemaInfo, TableInfo


class MetadataAdapter:
    """
    Translates the canonical fetch operations into backend-specific calls.

    Subclasses override the operations their backend supports; the rest
    raise UnsupportedOperation. Every call opens and releases its own
    backend handle.
    """

    kind: BackendKind

    def test_connection(self, source: DataSourceRef) -> None:
        raise UnsupportedOperation("test_connection", self.kind.value)

    def fetch_tables(self, source: DataSourceRef) -> List[TableInfo]:
        raise UnsupportedOperation("fetch_tables", self.kind.value)

    def fetch_table_structure(
        self, source: DataSourceRef, schema: Optional[str], table_name: str
    ) -> TableInfo:
        raise UnsupportedOperation("fetch_table_structure", self.kind.value)

    def fetch_row_count(
        self, source: DataSourceRef, schema: Optional[str], table_name: str
    ) -> int:
        raise UnsupportedOperation("fetch_row_count", self.kind.value)

    def fetch_topics(self, source: DataSourceRef) -> List[KafkaTopicInfo]:
        raise UnsupportedOperation("fetch_topics", self.kind.value)

    def fetch_consumer_groups(self, source: DataSourceRef) -> List[str]:
        raise UnsupportedOperation("fetch_consumer_groups", self.kind.value)

    def fetch_registry_schemas(self, source: DataSourceRef) -> PartialResult[SchemaInfo]:
        raise UnsupportedOperation("fetch_registry_schemas", self.kind.value)
