"""
MediaCache tests against real SQLite files.

Tests cover:
1. Creation and schema
2. Insert / get / search / remove / count
3. Write batching and visibility
4. Lifecycle (close, destroy, context manager)
5. Failure handling (bad SQL, busy database, missing location)
"""

import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import pytest
from prometheus_client import REGISTRY

from mediacache.core.cache import MediaCache, MediaCacheProtocol, CacheEntry
from mediacache.core.config import reset_settings
from mediacache.core.data import Media, MediaAudio, MediaBox
from mediacache.core.errors import (
    ConfigurationError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from mediacache.core.registry import (
    KEY_ARTIST,
    KEY_DURATION,
    KEY_RATING,
    KEY_THUMBNAIL_BINARY,
    KEY_TITLE,
)


def make_song(media_id, title, artist=None, duration=None):
    song = MediaAudio(media_id=media_id, source="jamendo")
    song.set_title(title)
    if artist:
        song.add_artist(artist)
    if duration is not None:
        song.set_duration(duration)
    return song


def sample_value(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def cache(db_path):
    cache = MediaCache.create(keys=[KEY_ARTIST, KEY_DURATION, KEY_RATING], db_path=db_path)
    yield cache
    cache.close()


@pytest.fixture
def filled_cache(cache):
    cache.insert(make_song("1", "Blue Monday", "New Order", 443))
    cache.insert(make_song("2", "Atmosphere", "Joy Division", 250))
    cache.insert(make_song("3", "Ceremony", "New Order", 268))
    return cache


# =============================================================================
# Creation
# =============================================================================

@pytest.mark.integration
class TestCreate:
    """Tests for cache creation."""

    def test_ephemeral_cache_properties(self, cache, db_path):
        assert re.match(r'^cache_\d+$', cache.cache_id)
        assert cache.persistent is False
        assert cache.db_path == Path(db_path).resolve()
        assert isinstance(cache, MediaCacheProtocol)

    def test_extra_keys_skip_binary(self, db_path):
        with MediaCache.create(keys=[KEY_TITLE, KEY_THUMBNAIL_BINARY, KEY_TITLE],
                               db_path=db_path) as cache:
            assert cache.extra_keys == [KEY_TITLE]

    def test_ephemeral_table_is_temporary(self, cache, db_path):
        temp = cache._conn.execute(
            "SELECT name FROM sqlite_temp_master WHERE name = ?", (cache.cache_id,)
        ).fetchone()
        assert temp is not None

        other = sqlite3.connect(db_path)
        try:
            main = other.execute(
                "SELECT name FROM sqlite_master WHERE name = ?", (cache.cache_id,)
            ).fetchone()
        finally:
            other.close()
        assert main is None

    def test_two_ephemeral_caches_get_distinct_ids(self, db_path):
        with MediaCache.create(db_path=db_path) as a, MediaCache.create(db_path=db_path) as b:
            assert a.cache_id != b.cache_id

    def test_schema_columns(self, cache):
        columns = [row[1] for row in
                   cache._conn.execute(f'PRAGMA table_info("{cache.cache_id}")')]
        assert columns == ["id", "parent", "updated", "media", "artist", "duration", "rating"]

    def test_default_location_from_settings(self, tmp_path):
        with MediaCache.create() as cache:
            assert cache.db_path == (tmp_path / "default" / "media-cache.db").resolve()
            assert cache.db_path.exists()

    def test_no_location_is_configuration_error(self, monkeypatch):
        monkeypatch.delenv("MEDIA_CACHE_DB_PATH", raising=False)
        monkeypatch.delenv("HOME", raising=False)
        reset_settings()

        with pytest.raises(ConfigurationError):
            MediaCache.create()


# =============================================================================
# Insert / Get
# =============================================================================

@pytest.mark.integration
class TestInsertGet:
    """Tests for point writes and reads."""

    def test_round_trip(self, cache):
        song = make_song("1", "Blue Monday", "New Order", 443)
        song.set_rating(9, 10)

        cache.insert(song)

        assert cache.get("1") == song

    def test_round_trip_other_subtypes(self, cache):
        box = MediaBox(media_id="albums", source="local")
        box.set_childcount(4)
        cache.insert(box)

        assert cache.get("albums") == box

    def test_get_entry_with_parent(self, cache):
        before = datetime.now(timezone.utc)
        cache.insert(make_song("1", "Blue Monday"), parent="album-7")

        entry = cache.get_entry("1")

        assert isinstance(entry, CacheEntry)
        assert entry.parent == "album-7"
        assert entry.media_id == "1"
        assert entry.updated >= before.replace(microsecond=0)

    def test_get_missing_raises(self, cache):
        with pytest.raises(NotFoundError):
            cache.get("nope")

    def test_upsert_replaces(self, cache):
        cache.insert(make_song("1", "First"))
        cache.insert(make_song("1", "Second"), parent="p")

        assert cache.count() == 1
        entry = cache.get_entry("1")
        assert entry.media.get_title() == "Second"
        assert entry.parent == "p"

    def test_upsert_is_idempotent(self, cache):
        song = make_song("1", "Blue Monday", "New Order")
        cache.insert(song)
        cache.insert(song)

        assert cache.count() == 1
        assert cache.get("1") == song

    def test_insert_without_id_rejected(self, cache):
        with pytest.raises(ValidationError):
            cache.insert(Media(source="s"))

    def test_insert_without_source_rejected(self, cache):
        with pytest.raises(ValidationError):
            cache.insert(Media(media_id="1"))

    def test_insert_empty_id_rejected(self, cache):
        with pytest.raises(ValidationError):
            cache.insert(MediaAudio(media_id="", source="jamendo"))
        assert cache.count() == 0

    def test_integer_too_large_for_column_is_storage_error(self, cache):
        song = make_song("1", "Endless")
        assert song.set_duration(2 ** 70)

        with pytest.raises(StorageError) as exc_info:
            cache.insert(song)

        error = exc_info.value
        assert "Failed to insert '1' in" in error.message
        assert error.data["media_id"] == "1"
        assert isinstance(error.cause, OverflowError)
        assert cache.count() == 0

    def test_extra_columns_filled(self, cache):
        cache.insert(make_song("1", "Blue Monday", "New Order", 443))
        cache.count()

        row = cache._conn.execute(
            f'SELECT artist, duration, rating FROM "{cache.cache_id}" WHERE id = ?', ("1",)
        ).fetchone()
        assert row == ("New Order", 443, None)

    def test_hit_and_miss_metrics(self, cache):
        hits = sample_value("media_cache_operations_total", {"operation": "get", "result": "hit"})
        misses = sample_value("media_cache_operations_total", {"operation": "get", "result": "miss"})

        cache.insert(make_song("1", "x"))
        cache.get("1")
        with pytest.raises(NotFoundError):
            cache.get("2")

        assert sample_value("media_cache_operations_total",
                            {"operation": "get", "result": "hit"}) == hits + 1
        assert sample_value("media_cache_operations_total",
                            {"operation": "get", "result": "miss"}) == misses + 1


# =============================================================================
# Search / Remove / Count
# =============================================================================

@pytest.mark.integration
class TestSearchRemove:
    """Tests for condition-based operations."""

    def test_search_all(self, filled_cache):
        assert {m.id for m in filled_cache.search()} == {"1", "2", "3"}

    def test_search_condition(self, filled_cache):
        found = filled_cache.search("artist = 'New Order' AND duration > 300")
        assert [m.get_title() for m in found] == ["Blue Monday"]

    def test_search_with_params(self, filled_cache):
        found = filled_cache.search("artist = ? ORDER BY duration", ("New Order",))
        assert [m.id for m in found] == ["3", "1"]

    def test_search_on_fixed_columns(self, cache):
        cache.insert(make_song("1", "a"), parent="box")
        cache.insert(make_song("2", "b"))

        found = cache.search("cache.parent = ?", ("box",))
        assert [m.id for m in found] == ["1"]

    def test_search_no_match(self, filled_cache):
        assert filled_cache.search("duration > 10000") == []

    def test_remove_condition(self, filled_cache):
        filled_cache.remove("artist = ?", ("New Order",))

        assert filled_cache.count() == 1
        assert filled_cache.get("2").get_title() == "Atmosphere"

    def test_remove_all(self, filled_cache):
        filled_cache.remove()
        assert filled_cache.count() == 0

    def test_count_condition(self, filled_cache):
        assert filled_cache.count("duration < ?", (300,)) == 2

    def test_bad_condition_is_storage_error(self, filled_cache):
        with pytest.raises(StorageError) as exc_info:
            filled_cache.search("no_such_column = 1")

        error = exc_info.value
        assert "Failed to search" in error.message
        assert error.data["cache_id"] == filled_cache.cache_id
        assert "no_such_column" in error.data["sqlite_error"]

    def test_get_error_carries_media_id(self, cache):
        cache._table = '"missing_table"'
        with pytest.raises(StorageError) as exc_info:
            cache.get("7")
        assert exc_info.value.data["media_id"] == "7"


# =============================================================================
# Batching
# =============================================================================

@pytest.mark.integration
class TestBatching:
    """Tests for lazily committed writes."""

    def test_insert_opens_transaction(self, cache):
        cache.insert(make_song("1", "x"))
        assert cache._conn.in_transaction

    def test_read_commits_pending_writes(self, cache):
        cache.insert(make_song("1", "x"))
        cache.insert(make_song("2", "y"))

        assert cache.count() == 2
        assert not cache._conn.in_transaction

    def test_writes_join_one_transaction(self, cache):
        statements = []
        cache._conn.set_trace_callback(statements.append)

        for n in range(5):
            cache.insert(make_song(str(n), "x"))
        cache.search()

        assert statements.count("BEGIN") == 1
        assert statements.count("COMMIT") == 1

    def test_remove_visible_on_next_read(self, filled_cache):
        filled_cache.remove("id = ?", ("1",))
        with pytest.raises(NotFoundError):
            filled_cache.get("1")

    def test_failed_statement_keeps_earlier_writes_pending(self, cache):
        cache.insert(make_song("1", "Blue Monday"))
        with pytest.raises(StorageError):
            cache.remove("no_such_col = 1")

        assert cache._conn.in_transaction
        assert cache.get("1").get_title() == "Blue Monday"
        assert not cache._conn.in_transaction

    def test_pending_writes_invisible_to_other_instance(self, db_path):
        with MediaCache.create_persistent("shared", keys=[KEY_ARTIST], db_path=db_path) as writer:
            writer.insert(make_song("1", "Blue Monday", "New Order"))

            with MediaCache.load_persistent("shared", db_path=db_path) as reader:
                assert reader.count() == 0

            writer.count()
            with MediaCache.load_persistent("shared", db_path=db_path) as reader:
                assert reader.count() == 1
                assert reader.get("1").get_title() == "Blue Monday"


# =============================================================================
# Lifecycle
# =============================================================================

@pytest.mark.integration
class TestLifecycle:
    """Tests for close / destroy."""

    def test_close_drops_ephemeral_table(self, db_path):
        cache = MediaCache.create(db_path=db_path)
        statements = []
        cache._conn.set_trace_callback(statements.append)

        cache.close()

        assert cache.closed
        assert any(s.startswith("DROP TABLE") for s in statements)

    def test_close_commits_pending(self, db_path):
        cache = MediaCache.create_persistent("catalog", db_path=db_path)
        cache.insert(make_song("1", "x"))
        cache.close()

        with MediaCache.load_persistent("catalog", db_path=db_path) as reopened:
            assert reopened.count() == 1

    def test_close_is_idempotent(self, db_path):
        cache = MediaCache.create(db_path=db_path)
        cache.close()
        cache.close()
        cache.destroy()
        assert cache.closed

    def test_operations_after_close_fail(self, db_path):
        cache = MediaCache.create(db_path=db_path)
        cache.close()

        with pytest.raises(StorageError):
            cache.insert(make_song("1", "x"))
        with pytest.raises(StorageError):
            cache.search()

    def test_context_manager_closes(self, db_path):
        with MediaCache.create(db_path=db_path) as cache:
            cache.insert(make_song("1", "x"))
        assert cache.closed


# =============================================================================
# Busy database
# =============================================================================

@pytest.mark.integration
class TestBusyRetry:
    """Tests for bounded retries on a locked database."""

    @pytest.fixture
    def locked(self, db_path, monkeypatch):
        monkeypatch.setenv("MEDIA_CACHE_BUSY_RETRIES", "2")
        monkeypatch.setenv("MEDIA_CACHE_BUSY_BACKOFF", "0.001")
        reset_settings()

        cache = MediaCache.create_persistent("catalog", db_path=db_path)
        other = sqlite3.connect(db_path, isolation_level=None)
        other.execute("BEGIN EXCLUSIVE")
        yield cache, other
        if other.in_transaction:
            other.execute("ROLLBACK")
        other.close()
        cache.close()

    def test_retries_exhausted(self, locked, monkeypatch):
        cache, _ = locked
        delays = []
        monkeypatch.setattr("mediacache.core.cache.media_cache.time.sleep", delays.append)
        retries = sample_value("media_cache_busy_retries_total", {})

        with pytest.raises(StorageError) as exc_info:
            cache.insert(make_song("1", "x"))

        assert delays == [0.001, 0.002]
        assert exc_info.value.data["media_id"] == "1"
        assert "locked" in exc_info.value.data["sqlite_error"]
        assert sample_value("media_cache_busy_retries_total", {}) == retries + 2

    def test_succeeds_when_lock_released(self, locked, monkeypatch):
        cache, other = locked

        def release(delay):
            other.execute("ROLLBACK")

        monkeypatch.setattr("mediacache.core.cache.media_cache.time.sleep", release)

        cache.insert(make_song("1", "x"))
        assert cache.get("1").get_title() == "x"
