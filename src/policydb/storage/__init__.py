"""Storage layer for policies."""

from policydb.storage.codec import decode_policy, encode_policy, read_policy, write_policy
from policydb.storage.kvdb import BucketDB
from policydb.storage.policies import PolicyStore, open_store

__all__ = [
    "BucketDB",
    "PolicyStore",
    "decode_policy",
    "encode_policy",
    "open_store",
    "read_policy",
    "write_policy",
]
