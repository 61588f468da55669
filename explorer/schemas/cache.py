"""Metadata cache entry schemas."""

import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class CacheType(str, enum.Enum):
    """Category of metadata held in a cache entry."""

    TABLES = "tables"
    TABLE_STRUCTURE = "table_structure"
    TOPICS = "topics"
    SCHEMAS = "schemas"


class CacheEntry(BaseModel):
    """One cached metadata document, keyed by (source, type, key)."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    data_source_id: int
    cache_type: CacheType
    cache_key: str
    cache_data: Any
    cached_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @property
    def key(self) -> tuple:
        return (self.data_source_id, self.cache_type, self.cache_key)

    def is_expired(self, now: datetime) -> bool:
        """An entry expires once the read time reaches expires_at."""
        return self.expires_at is not None and now >= self.expires_at
