"""SQLAlchemy ORM models."""

from explorer.models.base import Base
from explorer.models.context import Context
from explorer.models.data_source import DataSource
from explorer.models.metadata_cache import MetadataCache

__all__ = ["Base", "Context", "DataSource", "MetadataCache"]
