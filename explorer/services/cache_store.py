"""Persistent store for timestamped, optionally expiring metadata documents."""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from explorer.core.exceptions import StoreError
from explorer.models.metadata_cache import MetadataCache
from explorer.schemas.cache import CacheEntry, CacheType

logger = logging.getLogger("explorer.cache")

Clock = Callable[[], datetime]
CacheTypeArg = Union[CacheType, str]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps (SQLite drops tzinfo) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def parse_cache_type(cache_type: CacheTypeArg) -> CacheType:
    try:
        return CacheType(cache_type)
    except ValueError:
        raise ValueError(f"Unknown cache type: {cache_type}") from None


class CacheStore:
    """
    Keyed store of CacheEntry documents.

    Entries are unique per (data_source_id, cache_type, cache_key). Expiry
    is lazy: get() hides an expired entry but leaves it in place.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utcnow
        self._lock = threading.RLock()

    def get(
        self, source_id: int, cache_type: CacheTypeArg, cache_key: str
    ) -> Optional[CacheEntry]:
        cache_type = parse_cache_type(cache_type)
        with self._lock:
            entry = self._get(source_id, cache_type, cache_key)
        if entry is None or entry.is_expired(self.clock()):
            return None
        return entry

    def put(self, entry: CacheEntry, ttl: Optional[timedelta] = None) -> CacheEntry:
        """
        Replace any entry under the same key, stamping cached_at now.

        With a ttl, expires_at is cached_at + ttl and overrides the entry's own.
        """
        cached_at = self.clock()
        expires_at = cached_at + ttl if ttl is not None else as_utc(entry.expires_at)
        if expires_at is not None and expires_at < cached_at:
            raise StoreError(
                f"expires_at {expires_at.isoformat()} is before cached_at {cached_at.isoformat()}"
            )
        stamped = entry.model_copy(
            update={"id": None, "cached_at": cached_at, "expires_at": expires_at}
        )
        with self._lock:
            return self._put(stamped)

    def delete(self, source_id: int, cache_type: Optional[CacheTypeArg] = None) -> int:
        """Remove a source's entries, optionally only one cache type."""
        if cache_type is not None:
            cache_type = parse_cache_type(cache_type)
        with self._lock:
            removed = self._delete(source_id, cache_type)
        scope = cache_type.value if cache_type else "all"
        logger.info(f"Cleared {removed} cache entries for source {source_id} ({scope})")
        return removed

    def purge_expired(self) -> int:
        """Drop entries that have already expired."""
        with self._lock:
            return self._purge_expired(self.clock())

    def _get(self, source_id: int, cache_type: CacheType, cache_key: str) -> Optional[CacheEntry]:
        raise NotImplementedError

    def _put(self, entry: CacheEntry) -> CacheEntry:
        raise NotImplementedError

    def _delete(self, source_id: int, cache_type: Optional[CacheType]) -> int:
        raise NotImplementedError

    def _purge_expired(self, now: datetime) -> int:
        raise NotImplementedError


class InMemoryCacheStore(CacheStore):
    """Process-local store, used for tests and embedded use."""

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self._entries: Dict[Tuple[int, CacheType, str], CacheEntry] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._entries)

    def _get(self, source_id, cache_type, cache_key):
        return self._entries.get((source_id, cache_type, cache_key))

    def _put(self, entry):
        stored = entry.model_copy(update={"id": self._next_id})
        self._next_id += 1
        self._entries[stored.key] = stored
        return stored

    def _delete(self, source_id, cache_type):
        keys = [
            key
            for key in self._entries
            if key[0] == source_id and (cache_type is None or key[1] == cache_type)
        ]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def _purge_expired(self, now):
        keys = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in keys:
            del self._entries[key]
        return len(keys)


class SqlCacheStore(CacheStore):
    """Store backed by the metadata_cache table."""

    def __init__(self, session_factory: sessionmaker[Session], clock: Optional[Clock] = None):
        super().__init__(clock)
        self.session_factory = session_factory

    def _get(self, source_id, cache_type, cache_key):
        try:
            with self.session_factory() as db:
                row = db.execute(
                    select(MetadataCache).where(
                        MetadataCache.data_source_id == source_id,
                        MetadataCache.cache_type == cache_type.value,
                        MetadataCache.cache_key == cache_key,
                    )
                ).scalar_one_or_none()
                return self._to_entry(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read cache entry {cache_key}: {e}") from e

    def _put(self, entry):
        try:
            with self.session_factory() as db:
                # Delete-then-insert in one transaction keeps the key unique
                db.execute(
                    delete(MetadataCache).where(
                        MetadataCache.data_source_id == entry.data_source_id,
                        MetadataCache.cache_type == entry.cache_type.value,
                        MetadataCache.cache_key == entry.cache_key,
                    )
                )
                row = MetadataCache(
                    data_source_id=entry.data_source_id,
                    cache_type=entry.cache_type.value,
                    cache_key=entry.cache_key,
                    cache_data=entry.cache_data,
                    cached_at=entry.cached_at,
                    expires_at=entry.expires_at,
                )
                db.add(row)
                db.commit()
                return self._to_entry(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write cache entry {entry.cache_key}: {e}") from e

    def _delete(self, source_id, cache_type):
        stmt = delete(MetadataCache).where(MetadataCache.data_source_id == source_id)
        if cache_type is not None:
            stmt = stmt.where(MetadataCache.cache_type == cache_type.value)
        try:
            with self.session_factory() as db:
                result = db.execute(stmt)
                db.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to clear cache for source {source_id}: {e}") from e

    def _purge_expired(self, now):
        try:
            with self.session_factory() as db:
                result = db.execute(
                    delete(MetadataCache).where(
                        MetadataCache.expires_at.is_not(None),
                        MetadataCache.expires_at <= now,
                    )
                )
                db.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to purge expired cache entries: {e}") from e

    @staticmethod
    def _to_entry(row: MetadataCache) -> CacheEntry:
        return CacheEntry(
            id=row.id,
            data_source_id=row.data_source_id,
            cache_type=CacheType(row.cache_type),
            cache_key=row.cache_key,
            cache_data=row.cache_data,
            cached_at=as_utc(row.cached_at),
            expires_at=as_utc(row.expires_at),
        )
