"""policydb - Transactional store for payment fee policies.

Policies are kept in the ``policies`` bucket of an embedded SQLite-backed
bucket store, each as a fixed 40-byte record keyed by its payment hash.
"""

from __future__ import annotations

from policydb.config.settings import Settings
from policydb.core.errors import (
    NoRecordsCreatedError,
    PolicyDBError,
    RecordNotFoundError,
    TruncatedInputError,
)
from policydb.core.models import Policy
from policydb.storage.kvdb import BucketDB
from policydb.storage.policies import PolicyStore, open_store


__version__ = "0.1.0"

__all__ = [
    "BucketDB",
    "NoRecordsCreatedError",
    "Policy",
    "PolicyDBError",
    "PolicyStore",
    "RecordNotFoundError",
    "Settings",
    "TruncatedInputError",
    "open_store",
]
