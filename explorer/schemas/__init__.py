"""Pydantic schemas for canonical metadata and cache documents."""

from explorer.schemas.cache import CacheEntry, CacheType
from explorer.schemas.comparison import DiffType, StructureDiff, TableComparison
from explorer.schemas.context import ContextCreate, ContextInfo, ContextUpdate
from explorer.schemas.data_source import (
    BackendKind,
    DataSourceCreate,
    DataSourceRef,
    DataSourceUpdate,
)
from explorer.schemas.metadata import (
    ColumnInfo,
    KafkaTopicInfo,
    PartialResult,
    PartitionInfo,
    SchemaInfo,
    SkippedItem,
    TableInfo,
)

__all__ = [
    "CacheEntry",
    "CacheType",
    "ContextCreate",
    "ContextInfo",
    "ContextUpdate",
    "DiffType",
    "StructureDiff",
    "TableComparison",
    "BackendKind",
    "DataSourceCreate",
    "DataSourceRef",
    "DataSourceUpdate",
    "ColumnInfo",
    "KafkaTopicInfo",
    "PartialResult",
    "PartitionInfo",
    "SchemaInfo",
    "SkippedItem",
    "TableInfo",
]
