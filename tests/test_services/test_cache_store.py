"""Tests for the metadata cache stores."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from explorer.core.exceptions import StoreError
from explorer.models.metadata_cache import MetadataCache
from explorer.schemas.cache import CacheEntry, CacheType


def make_entry(payload, source_id=1, cache_type=CacheType.TABLES, key="tables:shop", expires_at=None):
    return CacheEntry(
        data_source_id=source_id,
        cache_type=cache_type,
        cache_key=key,
        cache_data=payload,
        expires_at=expires_at,
    )


@pytest.fixture(params=["memory_store", "sql_store"])
def store(request):
    return request.getfixturevalue(request.param)


class TestCacheStore:
    """Behaviour shared by every store implementation."""

    def test_get_missing_returns_none(self, store):
        """Unknown keys are a miss."""
        assert store.get(1, CacheType.TABLES, "tables:shop") is None

    def test_put_then_get(self, store, clock):
        """A stored entry is returned with cached_at stamped by the store."""
        stored = store.put(make_entry([{"name": "orders"}]))
        entry = store.get(1, "tables", "tables:shop")

        assert entry is not None
        assert entry.cache_data == [{"name": "orders"}]
        assert entry.cached_at == clock.now
        assert entry.id == stored.id

    def test_put_ignores_caller_id_and_timestamp(self, store, clock):
        """id and cached_at on the input are replaced by the store."""
        entry = make_entry({"a": 1}).model_copy(
            update={"id": 999, "cached_at": clock.now - timedelta(days=3)}
        )
        stored = store.put(entry)
        assert stored.id != 999
        assert stored.cached_at == clock.now

    def test_replace_on_write(self, store, clock):
        """Two writes under one key leave a single entry with the second payload."""
        store.put(make_entry({"v": 1}))
        clock.advance(minutes=5)
        store.put(make_entry({"v": 2}))

        entry = store.get(1, CacheType.TABLES, "tables:shop")
        assert entry.cache_data == {"v": 2}
        assert entry.cached_at == clock.now
        assert store.delete(1) == 1

    def test_keys_are_independent(self, store):
        """Source, type and key all take part in the identity."""
        store.put(make_entry("a"))
        store.put(make_entry("b", source_id=2))
        store.put(make_entry("c", cache_type=CacheType.TOPICS, key="topics"))

        assert store.get(1, CacheType.TABLES, "tables:shop").cache_data == "a"
        assert store.get(2, CacheType.TABLES, "tables:shop").cache_data == "b"
        assert store.get(1, CacheType.TOPICS, "topics").cache_data == "c"

    def test_ttl_boundary(self, store, clock):
        """Visible strictly before expires_at, invisible from expires_at on."""
        expires_at = clock.now + timedelta(hours=1)
        store.put(make_entry("x", expires_at=expires_at))

        clock.now = expires_at - timedelta(microseconds=1)
        assert store.get(1, CacheType.TABLES, "tables:shop") is not None

        clock.now = expires_at
        assert store.get(1, CacheType.TABLES, "tables:shop") is None

        clock.advance(days=1)
        assert store.get(1, CacheType.TABLES, "tables:shop") is None

    def test_expired_entry_not_purged_by_get(self, store, clock):
        """Expiry is lazy; the row stays until purged or deleted."""
        store.put(make_entry("x", expires_at=clock.now + timedelta(seconds=1)))
        clock.advance(seconds=2)

        assert store.get(1, CacheType.TABLES, "tables:shop") is None
        assert store.purge_expired() == 1
        assert store.purge_expired() == 0

    def test_put_with_ttl_overrides_expiry(self, store, clock):
        """A ttl is measured from the stored cached_at."""
        stored = store.put(
            make_entry("x", expires_at=clock.now - timedelta(days=1)), ttl=timedelta(minutes=30)
        )

        assert stored.expires_at == clock.now + timedelta(minutes=30)
        assert store.get(1, CacheType.TABLES, "tables:shop").expires_at == stored.expires_at

    def test_expires_before_cached_rejected(self, store, clock):
        """expires_at must not precede cached_at."""
        with pytest.raises(StoreError):
            store.put(make_entry("x", expires_at=clock.now - timedelta(seconds=1)))

    def test_delete_scoped_to_cache_type(self, store):
        """Deleting one cache type keeps the source's other entries."""
        store.put(make_entry("t"))
        store.put(make_entry("s", cache_type=CacheType.TABLE_STRUCTURE, key="table_structure:public:a"))
        store.put(make_entry("other", source_id=2))

        assert store.delete(1, "tables") == 1
        assert store.get(1, CacheType.TABLES, "tables:shop") is None
        assert store.get(1, CacheType.TABLE_STRUCTURE, "table_structure:public:a") is not None
        assert store.get(2, CacheType.TABLES, "tables:shop") is not None

    def test_delete_whole_source(self, store):
        """Deleting without a type clears every entry of the source only."""
        store.put(make_entry("t"))
        store.put(make_entry("k", cache_type=CacheType.TOPICS, key="topics"))
        store.put(make_entry("other", source_id=2))

        assert store.delete(1) == 2
        assert store.get(2, CacheType.TABLES, "tables:shop") is not None

    def test_unknown_cache_type_rejected(self, store):
        """Cache types outside the known set are a caller error."""
        with pytest.raises(ValueError, match="Unknown cache type"):
            store.delete(1, "columns")

    def test_concurrent_writes_last_writer_wins(self, store):
        """Concurrent puts to one key never duplicate or tear the entry."""
        payloads = [{"writer": i, "rows": list(range(50))} for i in range(40)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda p: store.put(make_entry(p)), payloads))
            reads = list(pool.map(lambda _: store.get(1, CacheType.TABLES, "tables:shop"), range(40)))

        final = store.get(1, CacheType.TABLES, "tables:shop")
        assert final.cache_data in payloads
        assert all(r is None or r.cache_data in payloads for r in reads)
        assert store.delete(1) == 1


class TestSqlCacheStore:
    """Persistence details of the SQL store."""

    def test_single_row_per_key(self, sql_store, session_factory):
        """Replacing an entry does not accumulate rows."""
        for i in range(3):
            sql_store.put(make_entry({"v": i}))

        with session_factory() as db:
            rows = db.query(MetadataCache).all()
        assert len(rows) == 1
        assert rows[0].cache_data == {"v": 2}

    def test_timestamps_read_back_timezone_aware(self, sql_store, clock):
        """SQLite drops tzinfo; entries come back in UTC."""
        sql_store.put(make_entry("x", expires_at=clock.now + timedelta(hours=24)))
        entry = sql_store.get(1, CacheType.TABLES, "tables:shop")

        assert entry.cached_at.tzinfo is not None
        assert entry.expires_at == clock.now + timedelta(hours=24)
