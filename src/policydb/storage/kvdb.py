"""Embedded bucket store on top of SQLite.

Data lives in named buckets of ordered byte keys. All access goes through
transactions: ``view`` for read-only snapshots, ``update`` for a single
exclusive writer, and ``batch`` for writes that may share a commit with
concurrent callers.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_BATCH_SIZE = 1000

INIT_SCHEMA = """
PRAGMA journal_mode = WAL;

CREATE TABLE IF NOT EXISTS buckets (
    name BLOB PRIMARY KEY
) WITHOUT ROWID;

-- BLOB keys compare with memcmp, so ORDER BY key is lexicographic
CREATE TABLE IF NOT EXISTS entries (
    bucket BLOB NOT NULL,
    key BLOB NOT NULL,
    value BLOB NOT NULL,
    PRIMARY KEY (bucket, key)
) WITHOUT ROWID;
"""


class KVDBError(Exception):
    """Base class for bucket store errors."""


class BucketNotFoundError(KVDBError):
    """Bucket does not exist."""


class BucketExistsError(KVDBError):
    """Bucket already exists."""


class BucketNameRequiredError(KVDBError):
    """Bucket name is empty."""


class KeyRequiredError(KVDBError):
    """Key is empty."""


class TxNotWritableError(KVDBError):
    """Mutation attempted in a read-only transaction."""


class TxClosedError(KVDBError):
    """Transaction was used after it ended."""


class Bucket:
    """A named key/value namespace bound to one transaction."""

    def __init__(self, tx: Tx, name: bytes) -> None:
        self._tx = tx
        self.name = name

    def get(self, key: bytes) -> bytes | None:
        """Return the value stored under ``key``, or ``None`` if absent."""
        row = self._tx._execute(
            "SELECT value FROM entries WHERE bucket = ? AND key = ?", (self.name, key)
        ).fetchone()
        return None if row is None else row[0]

    def put(self, key: bytes, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        self._tx._check_writable()
        if not key:
            raise KeyRequiredError("key required")
        self._tx._execute(
            "INSERT OR REPLACE INTO entries (bucket, key, value) VALUES (?, ?, ?)",
            (self.name, bytes(key), bytes(value)),
        )

    def delete(self, key: bytes) -> None:
        """Remove ``key``. No-op if the key does not exist."""
        self._tx._check_writable()
        self._tx._execute(
            "DELETE FROM entries WHERE bucket = ? AND key = ?", (self.name, key)
        )

    def items(self) -> Iterator[tuple[bytes, bytes]]:
        """Iterate over ``(key, value)`` pairs in key order."""
        cursor = self._tx._execute(
            "SELECT key, value FROM entries WHERE bucket = ? ORDER BY key", (self.name,)
        )
        for key, value in cursor:
            yield key, value


class Tx:
    """A read-only or read-write transaction."""

    def __init__(self, conn: sqlite3.Connection, writable: bool) -> None:
        self._conn = conn
        self.writable = writable
        self.closed = False

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        if self.closed:
            raise TxClosedError("transaction closed")
        return self._conn.execute(sql, params)

    def _check_writable(self) -> None:
        if self.closed:
            raise TxClosedError("transaction closed")
        if not self.writable:
            raise TxNotWritableError("transaction not writable")

    def bucket(self, name: bytes) -> Bucket | None:
        """Return the named bucket, or ``None`` if it does not exist."""
        row = self._execute("SELECT 1 FROM buckets WHERE name = ?", (name,)).fetchone()
        return None if row is None else Bucket(self, name)

    def create_bucket(self, name: bytes) -> Bucket:
        self._check_writable()
        if not name:
            raise BucketNameRequiredError("bucket name required")
        if self.bucket(name) is not None:
            raise BucketExistsError(f"bucket already exists: {name!r}")
        self._execute("INSERT INTO buckets (name) VALUES (?)", (bytes(name),))
        return Bucket(self, name)

    def create_bucket_if_not_exists(self, name: bytes) -> Bucket:
        self._check_writable()
        if not name:
            raise BucketNameRequiredError("bucket name required")
        self._execute("INSERT OR IGNORE INTO buckets (name) VALUES (?)", (bytes(name),))
        return Bucket(self, name)

    def delete_bucket(self, name: bytes) -> None:
        """Delete a bucket and every key in it."""
        self._check_writable()
        if self.bucket(name) is None:
            raise BucketNotFoundError(f"bucket not found: {name!r}")
        self._execute("DELETE FROM entries WHERE bucket = ?", (name,))
        self._execute("DELETE FROM buckets WHERE name = ?", (name,))


class _Call:
    __slots__ = ("done", "error", "fn")

    def __init__(self, fn: Callable[[Tx], None]) -> None:
        self.fn = fn
        self.done = False
        self.error: BaseException | None = None


class _Batcher:
    """Coalesces concurrent ``batch`` calls into shared write transactions.

    Whichever caller acquires the write lock first commits every call queued
    so far. There is no timer: a caller arriving on an idle database commits
    alone and immediately.
    """

    def __init__(self, db: BucketDB, max_size: int) -> None:
        self._db = db
        self._max_size = max_size
        self._lock = threading.Lock()
        self._pending: list[_Call] = []

    def run(self, fn: Callable[[Tx], None]) -> None:
        call = _Call(fn)
        with self._lock:
            self._pending.append(call)

        with self._db._write_lock:
            # Leaders mark every call they drain as done, or queue it again,
            # before releasing the write lock, so an unfinished call is queued.
            while not call.done:
                with self._lock:
                    calls = self._pending[: self._max_size]
                    del self._pending[: self._max_size]
                try:
                    self._commit(list(calls))
                except BaseException:
                    # Hand unfinished calls from other callers to the next
                    # leader; only this caller sees the interrupt.
                    with self._lock:
                        if call in self._pending:
                            self._pending.remove(call)
                        self._pending[:0] = [c for c in calls if not c.done and c is not call]
                    raise

        if call.error is not None:
            raise call.error

    def _commit(self, calls: list[_Call]) -> None:
        while calls:
            failed: int | None = None
            try:
                with self._db.update() as tx:
                    for i, c in enumerate(calls):
                        failed = i
                        c.fn(tx)
                    failed = None
            except Exception as e:
                if failed is None or len(calls) == 1:
                    for c in calls:
                        c.done, c.error = True, e
                    return
                # Run the failing call on its own and retry the rest together.
                self._commit_solo(calls.pop(failed))
                continue
            for c in calls:
                c.done = True
            logger.debug("Committed batch of %d calls", len(calls))
            return

    def _commit_solo(self, call: _Call) -> None:
        try:
            with self._db.update() as tx:
                call.fn(tx)
        except Exception as e:
            call.error = e
        call.done = True


class BucketDB:
    """SQLite-backed store of named buckets."""

    def __init__(
        self,
        path: str | Path,
        timeout: float = DEFAULT_TIMEOUT,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ) -> None:
        self.path = Path(path)
        self.timeout = timeout
        self._write_lock = threading.RLock()
        self._batcher = _Batcher(self, max_batch_size)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)

    def _init_db(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(INIT_SCHEMA)
        finally:
            conn.close()

    @contextmanager
    def _transaction(self, writable: bool) -> Iterator[Tx]:
        conn = self._connect()
        tx = Tx(conn, writable)
        try:
            if writable:
                conn.execute("BEGIN IMMEDIATE")
            else:
                conn.execute("PRAGMA query_only = ON")
                conn.execute("BEGIN")
                # Pin the WAL snapshot to the start of the transaction.
                conn.execute("SELECT COUNT(*) FROM buckets").fetchone()
            try:
                yield tx
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT" if writable else "ROLLBACK")
        finally:
            tx.closed = True
            conn.close()

    @contextmanager
    def view(self) -> Iterator[Tx]:
        """Open a read-only transaction over a consistent snapshot."""
        with self._transaction(writable=False) as tx:
            yield tx

    @contextmanager
    def update(self) -> Iterator[Tx]:
        """Open the read-write transaction.

        Commits when the block exits normally and rolls back if it raises.
        """
        with self._write_lock, self._transaction(writable=True) as tx:
            yield tx

    def batch(self, fn: Callable[[Tx], None]) -> None:
        """Run ``fn`` in a write transaction shared with concurrent callers.

        ``fn`` may be called more than once if another call in the same batch
        fails, so it must be idempotent. Returns once this call's writes are
        committed, or raises the error that stopped them.
        """
        self._batcher.run(fn)
