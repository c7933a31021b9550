"""
Tests for the embedded bucket store.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from policydb.storage.kvdb import (
    BucketDB,
    BucketExistsError,
    BucketNameRequiredError,
    BucketNotFoundError,
    KeyRequiredError,
    TxClosedError,
    TxNotWritableError,
)


class TestBuckets:
    """Tests for bucket lifecycle."""

    def test_missing_bucket_is_none(self, bucket_db):
        with bucket_db.view() as tx:
            assert tx.bucket(b"missing") is None

    def test_create_and_get_bucket(self, bucket_db):
        with bucket_db.update() as tx:
            tx.create_bucket(b"things")
        with bucket_db.view() as tx:
            assert tx.bucket(b"things") is not None

    def test_create_existing_bucket_raises(self, bucket_db):
        with bucket_db.update() as tx:
            tx.create_bucket(b"things")
        with pytest.raises(BucketExistsError), bucket_db.update() as tx:
            tx.create_bucket(b"things")

    def test_create_bucket_if_not_exists_keeps_data(self, bucket_db):
        with bucket_db.update() as tx:
            tx.create_bucket_if_not_exists(b"things").put(b"k", b"v")
        with bucket_db.update() as tx:
            assert tx.create_bucket_if_not_exists(b"things").get(b"k") == b"v"

    def test_empty_bucket_name_raises(self, bucket_db):
        with pytest.raises(BucketNameRequiredError), bucket_db.update() as tx:
            tx.create_bucket(b"")

    def test_delete_missing_bucket_raises(self, bucket_db):
        with pytest.raises(BucketNotFoundError), bucket_db.update() as tx:
            tx.delete_bucket(b"missing")

    def test_delete_bucket_removes_keys(self, bucket_db):
        with bucket_db.update() as tx:
            tx.create_bucket(b"things").put(b"k", b"v")
            tx.create_bucket(b"other").put(b"k", b"kept")
        with bucket_db.update() as tx:
            tx.delete_bucket(b"things")
            assert tx.create_bucket(b"things").get(b"k") is None
        with bucket_db.view() as tx:
            assert tx.bucket(b"other").get(b"k") == b"kept"


class TestKeys:
    """Tests for key/value access within a bucket."""

    def test_put_get_delete(self, bucket_db):
        with bucket_db.update() as tx:
            bucket = tx.create_bucket(b"things")
            bucket.put(b"a", b"1")
            bucket.put(b"a", b"2")
            assert bucket.get(b"a") == b"2"
            bucket.delete(b"a")
            assert bucket.get(b"a") is None
            bucket.delete(b"a")

    def test_empty_key_raises(self, bucket_db):
        with pytest.raises(KeyRequiredError), bucket_db.update() as tx:
            tx.create_bucket(b"things").put(b"", b"v")

    def test_items_in_key_order(self, bucket_db):
        keys = [b"\xff", b"\x00\x01", b"\x00", b"\x10\x00", b"\x01"]
        with bucket_db.update() as tx:
            bucket = tx.create_bucket(b"things")
            for key in keys:
                bucket.put(key, key * 2)
        with bucket_db.view() as tx:
            items = list(tx.bucket(b"things").items())
        assert [k for k, _ in items] == sorted(keys)
        assert all(v == k * 2 for k, v in items)

    def test_empty_value_round_trips(self, bucket_db):
        with bucket_db.update() as tx:
            tx.create_bucket(b"things").put(b"k", b"")
        with bucket_db.view() as tx:
            assert tx.bucket(b"things").get(b"k") == b""


class TestTransactions:
    """Tests for transaction semantics."""

    def test_view_is_read_only(self, bucket_db):
        with bucket_db.update() as tx:
            tx.create_bucket(b"things")
        with bucket_db.view() as tx:
            with pytest.raises(TxNotWritableError):
                tx.create_bucket(b"other")
            with pytest.raises(TxNotWritableError):
                tx.bucket(b"things").put(b"k", b"v")

    def test_update_rolls_back_on_error(self, bucket_db):
        with pytest.raises(RuntimeError), bucket_db.update() as tx:
            tx.create_bucket(b"things").put(b"k", b"v")
            raise RuntimeError("boom")
        with bucket_db.view() as tx:
            assert tx.bucket(b"things") is None

    def test_tx_unusable_after_close(self, bucket_db):
        with bucket_db.update() as tx:
            pass
        with pytest.raises(TxClosedError):
            tx.bucket(b"things")

    def test_view_sees_snapshot_from_start(self, bucket_db):
        with bucket_db.update() as tx:
            tx.create_bucket(b"things").put(b"k", b"old")
        with bucket_db.view() as tx:
            with bucket_db.update() as wtx:
                wtx.bucket(b"things").put(b"k", b"new")
            assert tx.bucket(b"things").get(b"k") == b"old"
        with bucket_db.view() as tx:
            assert tx.bucket(b"things").get(b"k") == b"new"

    def test_data_survives_reopen(self, db_path):
        db = BucketDB(db_path)
        with db.update() as tx:
            tx.create_bucket(b"things").put(b"k", b"v")
        with BucketDB(db_path).view() as tx:
            assert tx.bucket(b"things").get(b"k") == b"v"


class TestBatch:
    """Tests for batched writes."""

    def test_batch_commits(self, bucket_db):
        bucket_db.batch(lambda tx: tx.create_bucket_if_not_exists(b"things").put(b"k", b"v"))
        with bucket_db.view() as tx:
            assert tx.bucket(b"things").get(b"k") == b"v"

    def test_batch_error_propagates_and_rolls_back(self, bucket_db):
        def fail(tx):
            tx.create_bucket_if_not_exists(b"things").put(b"k", b"v")
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            bucket_db.batch(fail)
        with bucket_db.view() as tx:
            assert tx.bucket(b"things") is None

    def test_concurrent_batches(self, bucket_db):
        def write(i):
            key = i.to_bytes(4, "big")
            bucket_db.batch(lambda tx: tx.create_bucket_if_not_exists(b"things").put(key, b"v"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(write, range(100)))

        with bucket_db.view() as tx:
            keys = [k for k, _ in tx.bucket(b"things").items()]
        assert keys == [i.to_bytes(4, "big") for i in range(100)]

    def test_failing_call_does_not_affect_others(self, db_path):
        db = BucketDB(db_path)
        errors = {}

        def write(i):
            def fn(tx):
                tx.create_bucket_if_not_exists(b"things").put(bytes([i]), b"v")
                if i == 3:
                    raise ValueError("bad call")

            try:
                db.batch(fn)
            except ValueError as e:
                errors[i] = e

        # Hold the write lock so every call queues into the same batch.
        with db.update():
            threads = [threading.Thread(target=write, args=(i,)) for i in range(6)]
            for t in threads:
                t.start()
            time.sleep(0.2)
        for t in threads:
            t.join()

        assert list(errors) == [3]
        with db.view() as tx:
            keys = [k for k, _ in tx.bucket(b"things").items()]
        assert keys == [bytes([i]) for i in range(6) if i != 3]

    def test_interrupted_leader_requeues_other_calls(self, db_path):
        db = BucketDB(db_path)
        errors = []

        class Interrupted(BaseException):
            pass

        def write(i):
            try:
                db.batch(lambda tx: tx.create_bucket_if_not_exists(b"things").put(bytes([i]), b"v"))
            except BaseException as e:
                errors.append(e)

        def interrupt(tx):
            tx.create_bucket_if_not_exists(b"things").put(b"\xff", b"v")
            raise Interrupted

        # Queue the other calls behind the write lock, then lead their batch.
        with db._write_lock:
            threads = [threading.Thread(target=write, args=(i,)) for i in range(5)]
            for t in threads:
                t.start()
            time.sleep(0.2)
            with pytest.raises(Interrupted):
                db.batch(interrupt)
        for t in threads:
            t.join()

        assert errors == []
        with db.view() as tx:
            keys = [k for k, _ in tx.bucket(b"things").items()]
        assert keys == [bytes([i]) for i in range(5)]
