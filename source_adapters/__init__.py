"""Metadata source adapters for relational databases and Kafka."""

from source_adapters.base import MetadataAdapter
from source_adapters.fetcher import MetadataFetcher, default_adapters
from source_adapters.kafka import KafkaAdapter
from source_adapters.relational import (
    MySQLAdapter,
    PostgreSQLAdapter,
    RelationalAdapter,
    SQLServerAdapter,
)

__all__ = [
    "MetadataAdapter",
    "MetadataFetcher",
    "default_adapters",
    "KafkaAdapter",
    "MySQLAdapter",
    "PostgreSQLAdapter",
    "RelationalAdapter",
    "SQLServerAdapter",
]
