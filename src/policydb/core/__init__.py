"""Core module - Policy model, layout constants and errors."""

from __future__ import annotations

from policydb.core.errors import (
    NoRecordsCreatedError,
    PolicyDBError,
    RecordNotFoundError,
    TruncatedInputError,
)
from policydb.core.models import Policy
from policydb.core.types import (
    BYTE_ORDER,
    FEE_SIZE,
    HASH_SIZE,
    MAX_FEE,
    POLICY_BUCKET,
    POLICY_SIZE,
    ByteOrder,
    MilliSatoshi,
    PaymentHash,
)


__all__ = [
    # Layout
    "BYTE_ORDER",
    "FEE_SIZE",
    "HASH_SIZE",
    "MAX_FEE",
    "POLICY_BUCKET",
    "POLICY_SIZE",
    "ByteOrder",
    "MilliSatoshi",
    # Errors
    "NoRecordsCreatedError",
    "PaymentHash",
    # Models
    "Policy",
    "PolicyDBError",
    "RecordNotFoundError",
    "TruncatedInputError",
]
