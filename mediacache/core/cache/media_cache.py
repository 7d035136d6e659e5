"""
MediaCache - SQLite-backed record cache.

Each cache is one table in a shared database file:

    id TEXT PRIMARY KEY, parent TEXT, updated DATE, media TEXT, <extra columns>

The media column holds the full serialized record; extra columns mirror
selected string/int/float keys so that callers can search with plain SQL
conditions. Ephemeral caches use TEMPORARY tables and vanish when closed;
persistent caches are named tables that can be reopened later.

Writes are batched: the first write opens a transaction that is committed
before the next read or on close.

Usage:
    with MediaCache.create(keys=[KEY_ARTIST, KEY_DURATION]) as cache:
        cache.insert(song, parent="album-1")
        long_songs = cache.search("duration > ?", (300,))
"""

import random
import re
import sqlite3
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from mediacache.common.logging import get_logger, cache_context
from ..codec import MediaCodec
from ..config import get_settings, resolve_db_path
from ..data import Media
from ..errors import NotFoundError, StorageError, ValidationError
from ..monitoring import (
    cache_operation_duration_seconds,
    track_duration,
    record_cache_hit,
    record_cache_miss,
    record_operation,
    record_busy_retry,
)
from ..registry import KeyRegistry, KeyType, MetadataKey, get_registry
from .models import CacheEntry

logger = get_logger(__name__)

CACHE_ID_PATTERN = "cache_{}"
FIXED_COLUMNS = ("id", "parent", "updated", "media")

_CACHE_ID_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

_COLUMN_TYPES = {
    KeyType.STRING: "TEXT",
    KeyType.INT: "INT",
    KeyType.FLOAT: "REAL",
}


def quote_identifier(name: str) -> str:
    """Quote an SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def _is_busy(error: sqlite3.OperationalError) -> bool:
    text = str(error).lower()
    return "locked" in text or "busy" in text


def _validate_cache_id(cache_id: str) -> None:
    if not isinstance(cache_id, str) or not _CACHE_ID_RE.match(cache_id):
        raise ValidationError(
            f"Invalid cache id '{cache_id}'",
            data={"cache_id": str(cache_id)},
        )


class MediaCache:
    """
    Record cache backed by one SQLite table.

    Use the create / create_persistent / load_persistent constructors.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        cache_id: str,
        persistent: bool,
        extra_keys: List[MetadataKey],
        db_path: Path,
        registry: KeyRegistry,
    ):
        self._conn: Optional[sqlite3.Connection] = connection
        self._cache_id = cache_id
        self._persistent = persistent
        self._extra_keys = list(extra_keys)
        self._db_path = db_path
        self._registry = registry
        self._codec = MediaCodec(registry)
        self._table = quote_identifier(cache_id)

        settings = get_settings()
        self._busy_retries = settings.busy_retries
        self._busy_backoff = settings.busy_backoff
        self._busy_backoff_max = settings.busy_backoff_max

    # ============== Constructors ==============

    @staticmethod
    def _open(db_path: Optional[str]) -> Tuple[sqlite3.Connection, Path]:
        path = resolve_db_path(db_path)
        try:
            conn = sqlite3.connect(str(path), timeout=0, isolation_level=None)
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to open database '{path}': {e}",
                data={"db_path": str(path)},
                cause=e,
            ) from e
        return conn, path

    @staticmethod
    def _accepted_keys(keys: Optional[Iterable[MetadataKey]]) -> List[MetadataKey]:
        accepted: List[MetadataKey] = []
        for key in keys or ():
            if key.type not in _COLUMN_TYPES:
                logger.debug(f"Key '{key}' of type {key.type.value} is not searchable, skipped")
                continue
            if key.name in FIXED_COLUMNS or key in accepted:
                continue
            accepted.append(key)
        return accepted

    @classmethod
    def _create(
        cls,
        cache_id: Optional[str],
        persistent: bool,
        keys: Optional[Iterable[MetadataKey]],
        db_path: Optional[str],
        registry: Optional[KeyRegistry],
    ) -> 'MediaCache':
        if cache_id is not None:
            _validate_cache_id(cache_id)
        extra_keys = cls._accepted_keys(keys)
        conn, path = cls._open(db_path)

        if cache_id is None:
            cache_id = cls._fresh_cache_id(conn)

        columns = [
            "id TEXT PRIMARY KEY",
            f"parent TEXT REFERENCES {quote_identifier(cache_id)} (id)",
            "updated DATE",
            "media TEXT",
        ]
        columns += [f"{quote_identifier(key.name)} {_COLUMN_TYPES[key.type]}"
                    for key in extra_keys]
        sql = (f"CREATE {'' if persistent else 'TEMPORARY '}TABLE "
               f"{quote_identifier(cache_id)} ({', '.join(columns)})")

        with cache_context(cache_id):
            try:
                conn.execute(sql)
            except sqlite3.Error as e:
                conn.close()
                raise StorageError(
                    f"Failed to create cache '{cache_id}': {e}",
                    data={"cache_id": cache_id, "db_path": str(path)},
                    cause=e,
                ) from e

            logger.info(f"Created {'persistent' if persistent else 'ephemeral'} cache",
                        data={"cache_id": cache_id,
                              "db_path": str(path),
                              "extra_keys": [k.name for k in extra_keys]})

        return cls(conn, cache_id, persistent, extra_keys, path,
                   registry or get_registry())

    @staticmethod
    def _table_exists(conn: sqlite3.Connection, name: str) -> bool:
        row = conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
            (name,),
        ).fetchone()
        return row is not None

    @classmethod
    def _fresh_cache_id(cls, conn: sqlite3.Connection) -> str:
        while True:
            cache_id = CACHE_ID_PATTERN.format(random.getrandbits(32))
            if not cls._table_exists(conn, cache_id):
                return cache_id

    @classmethod
    def create(
        cls,
        keys: Optional[Iterable[MetadataKey]] = None,
        db_path: Optional[str] = None,
        registry: Optional[KeyRegistry] = None,
    ) -> 'MediaCache':
        """
        Create an ephemeral cache under a random id.

        Args:
            keys: Keys to mirror as searchable columns. Binary keys are skipped
            db_path: Database file. If None, uses settings.db_path
            registry: Key registry used to decode stored records

        Raises:
            ConfigurationError: No usable database location
            StorageError: Table creation failed
        """
        return cls._create(None, False, keys, db_path, registry)

    @classmethod
    def create_persistent(
        cls,
        cache_id: str,
        keys: Optional[Iterable[MetadataKey]] = None,
        db_path: Optional[str] = None,
        registry: Optional[KeyRegistry] = None,
    ) -> 'MediaCache':
        """
        Create a persistent cache table named cache_id.

        Raises:
            ValidationError: cache_id is not a valid identifier
            StorageError: Table creation failed (e.g. it already exists)
        """
        return cls._create(cache_id, True, keys, db_path, registry)

    @classmethod
    def load_persistent(
        cls,
        cache_id: str,
        db_path: Optional[str] = None,
        registry: Optional[KeyRegistry] = None,
    ) -> 'MediaCache':
        """
        Reopen an existing persistent cache.

        Searchable keys are recovered from the table's columns; columns
        whose name is not a registered searchable key are ignored.

        Raises:
            NotFoundError: No table named cache_id
        """
        _validate_cache_id(cache_id)
        registry = registry or get_registry()
        conn, path = cls._open(db_path)

        with cache_context(cache_id):
            try:
                exists = cls._table_exists(conn, cache_id)
                columns = conn.execute(
                    f"PRAGMA table_info({quote_identifier(cache_id)})"
                ).fetchall() if exists else []
            except sqlite3.Error as e:
                conn.close()
                raise StorageError(
                    f"Failed to load cache '{cache_id}': {e}",
                    data={"cache_id": cache_id, "db_path": str(path)},
                    cause=e,
                ) from e

            if not exists:
                conn.close()
                raise NotFoundError(
                    f"Persistent cache '{cache_id}' not found",
                    data={"cache_id": cache_id, "db_path": str(path)},
                )

            keys = []
            for column in columns:
                name = column[1]
                if name in FIXED_COLUMNS:
                    continue
                key = registry.lookup(name)
                if key is None:
                    logger.warning(f"Column '{name}' is not a registered key, ignored",
                                   data={"cache_id": cache_id, "column": name})
                    continue
                keys.append(key)

            extra_keys = cls._accepted_keys(keys)
            logger.info("Loaded persistent cache",
                        data={"cache_id": cache_id,
                              "db_path": str(path),
                              "extra_keys": [k.name for k in extra_keys]})

        return cls(conn, cache_id, True, extra_keys, path, registry)

    # ============== Properties ==============

    @property
    def cache_id(self) -> str:
        return self._cache_id

    @property
    def persistent(self) -> bool:
        return self._persistent

    @property
    def extra_keys(self) -> List[MetadataKey]:
        return list(self._extra_keys)

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def closed(self) -> bool:
        return self._conn is None

    # ============== Statement execution ==============

    def _storage_error(self, operation: str, error: Exception,
                       media_id: Optional[str] = None) -> StorageError:
        data = {"cache_id": self._cache_id, "operation": operation, "sqlite_error": str(error)}
        if media_id is not None:
            data["media_id"] = media_id
        record_operation(operation, 'error')
        target = f"'{media_id}' " if media_id is not None else ""
        return StorageError(
            f"Failed to {operation} {target}in '{self._cache_id}': {error}",
            data=data,
            cause=error,
        )

    def _execute(self, operation: str, sql: str, params: Sequence[Any] = (),
                 media_id: Optional[str] = None) -> sqlite3.Cursor:
        """Run one statement, retrying while the database is busy."""
        if self._conn is None:
            raise StorageError(
                f"Failed to {operation} in '{self._cache_id}': cache is closed",
                data={"cache_id": self._cache_id, "operation": operation},
            )

        delay = self._busy_backoff
        attempt = 0
        while True:
            try:
                return self._conn.execute(sql, tuple(params))
            except sqlite3.OperationalError as e:
                if not _is_busy(e) or attempt >= self._busy_retries:
                    raise self._storage_error(operation, e, media_id) from e
                attempt += 1
                record_busy_retry()
                logger.debug(f"Database busy, retry {attempt}/{self._busy_retries}",
                             data={"delay": delay})
                time.sleep(delay)
                delay = min(delay * 2, self._busy_backoff_max)
            except (sqlite3.Error, OverflowError) as e:
                # OverflowError: int outside the 64-bit range of an INTEGER column
                raise self._storage_error(operation, e, media_id) from e

    def _begin(self, operation: str) -> None:
        if self._conn is None or not self._conn.in_transaction:
            self._execute(operation, "BEGIN")

    def _flush(self, operation: str) -> None:
        """Commit pending writes."""
        if self._conn is not None and self._conn.in_transaction:
            self._execute(operation, "COMMIT")

    @staticmethod
    def _where(condition: Optional[str]) -> str:
        return f" WHERE {condition}" if condition else ""

    # ============== Operations ==============

    @track_duration(cache_operation_duration_seconds, {'operation': 'insert'})
    def insert(self, media: Media, parent: Optional[str] = None) -> None:
        """
        Insert or replace a record, keyed by media.id.

        The write joins the open transaction, which is committed on the
        next read or on close.
        """
        if not media.id:
            raise ValidationError(
                "Cannot cache media without an id",
                data={"cache_id": self._cache_id, "type": type(media).__name__},
            )

        with cache_context(self._cache_id):
            serialized = self._codec.serialize(media)
            columns = list(FIXED_COLUMNS) + [k.name for k in self._extra_keys]
            values = [
                media.id,
                parent,
                datetime.now(timezone.utc).isoformat(),
                serialized,
            ] + [media.get(k) for k in self._extra_keys]

            sql = (f"INSERT OR REPLACE INTO {self._table} "
                   f"({', '.join(quote_identifier(c) for c in columns)}) "
                   f"VALUES ({', '.join('?' for _ in columns)})")

            self._begin("insert")
            self._execute("insert", sql, values, media_id=media.id)
            record_operation("insert")
            logger.debug("Inserted media", data={"media_id": media.id, "parent": parent})

    @track_duration(cache_operation_duration_seconds, {'operation': 'get'})
    def get_entry(self, media_id: str) -> CacheEntry:
        """
        Get a record with its parent and update time.

        Raises:
            NotFoundError: No row with that id
        """
        with cache_context(self._cache_id):
            self._flush("get")
            row = self._execute(
                "get",
                f"SELECT media, parent, updated FROM {self._table} WHERE id = ?",
                (media_id,),
                media_id=media_id,
            ).fetchone()

            if row is None:
                record_cache_miss()
                raise NotFoundError(
                    f"Media '{media_id}' not found in '{self._cache_id}'",
                    data={"cache_id": self._cache_id, "media_id": media_id},
                )

            record_cache_hit()
            serialized, parent, updated = row
            return CacheEntry(
                media=self._codec.deserialize(serialized),
                parent=parent,
                updated=datetime.fromisoformat(updated) if updated else None,
            )

    def get(self, media_id: str) -> Media:
        """
        Get a record by id.

        Raises:
            NotFoundError: No row with that id
        """
        return self.get_entry(media_id).media

    @track_duration(cache_operation_duration_seconds, {'operation': 'search'})
    def search(self, condition: Optional[str] = None,
               params: Sequence[Any] = ()) -> List[Media]:
        """
        Records whose row matches an SQL condition.

        Args:
            condition: Boolean SQL expression over id, parent, updated and
                the extra key columns (e.g. "artist = ? AND duration > 300").
                None matches every row
            params: Values bound to the condition's placeholders
        """
        with cache_context(self._cache_id):
            self._flush("search")
            rows = self._execute(
                "search",
                f"SELECT cache.media FROM {self._table} AS cache{self._where(condition)}",
                params,
            ).fetchall()
            record_operation("search")
            logger.debug("Search done", data={"condition": condition, "results": len(rows)})
            return [self._codec.deserialize(row[0]) for row in rows]

    @track_duration(cache_operation_duration_seconds, {'operation': 'remove'})
    def remove(self, condition: Optional[str] = None,
               params: Sequence[Any] = ()) -> None:
        """Delete rows matching condition (every row if None)."""
        with cache_context(self._cache_id):
            self._begin("remove")
            self._execute(
                "remove",
                f"DELETE FROM {self._table}{self._where(condition)}",
                params,
            )
            record_operation("remove")
            logger.debug("Removed media", data={"condition": condition})

    def count(self, condition: Optional[str] = None,
              params: Sequence[Any] = ()) -> int:
        """Number of rows matching condition."""
        with cache_context(self._cache_id):
            self._flush("count")
            row = self._execute(
                "count",
                f"SELECT COUNT(*) FROM {self._table} AS cache{self._where(condition)}",
                params,
            ).fetchone()
            return row[0]

    # ============== Lifecycle ==============

    def _drop(self) -> None:
        self._execute("drop", f"DROP TABLE IF EXISTS {self._table}")
        logger.info("Dropped cache table", data={"cache_id": self._cache_id})

    def _release(self, drop: bool) -> None:
        if self._conn is None:
            return
        with cache_context(self._cache_id):
            try:
                self._flush("close")
                if drop:
                    self._drop()
            finally:
                self._conn.close()
                self._conn = None

    def close(self) -> None:
        """Commit pending writes, drop the table if ephemeral, release the connection."""
        self._release(drop=not self._persistent)

    def destroy(self) -> None:
        """Drop the table, even if persistent, and release the connection."""
        self._release(drop=True)

    def __enter__(self) -> 'MediaCache':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        kind = "persistent" if self._persistent else "ephemeral"
        return f"MediaCache(cache_id={self._cache_id!r}, {kind}, db_path='{self._db_path}')"
