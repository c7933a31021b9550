"""Errors raised by the policy store.

Engine failures (``policydb.storage.kvdb.KVDBError`` and ``sqlite3.Error``)
are not wrapped and reach the caller as raised.
"""

from __future__ import annotations


class PolicyDBError(Exception):
    """Base class for policy store errors."""


class NoRecordsCreatedError(PolicyDBError):
    """The policies bucket has never been created."""

    def __init__(self) -> None:
        super().__init__("no policies have been created")


class RecordNotFoundError(PolicyDBError):
    """The policies bucket exists but holds no record for the hash."""

    def __init__(self) -> None:
        super().__init__("unable to locate policy")


class TruncatedInputError(PolicyDBError):
    """Fewer bytes were available than a serialized policy needs."""

    def __init__(self, expected: int, got: int) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"truncated policy: expected {expected} bytes, got {got}")
