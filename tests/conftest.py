"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from policydb.core.models import Policy
from policydb.core.types import HASH_SIZE
from policydb.storage.kvdb import BucketDB
from policydb.storage.policies import PolicyStore


if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path to a fresh database file."""
    return tmp_path / "policies.db"


@pytest.fixture
def bucket_db(db_path: Path) -> BucketDB:
    """Empty bucket store."""
    return BucketDB(db_path)


@pytest.fixture
def store(bucket_db: BucketDB) -> PolicyStore:
    """Policy store over an empty database."""
    return PolicyStore(bucket_db)


@pytest.fixture
def make_policy() -> Callable[..., Policy]:
    """Factory for policies with a random payment hash."""

    def _make(fee: int = 101) -> Policy:
        return Policy(payment_hash=os.urandom(HASH_SIZE), fee=fee)

    return _make
