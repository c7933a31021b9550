"""Core type definitions and layout constants."""

from __future__ import annotations

from typing import Annotated, Final, Literal, TypeAlias

from pydantic import Field


# Bucket holding every serialized policy, keyed by payment hash.
POLICY_BUCKET: Final[bytes] = b"policies"

HASH_SIZE: Final = 32
FEE_SIZE: Final = 8
POLICY_SIZE: Final = HASH_SIZE + FEE_SIZE

MAX_FEE: Final = 2**64 - 1

ByteOrder: TypeAlias = Literal["big", "little"]
BYTE_ORDER: Final[ByteOrder] = "big"

PaymentHash: TypeAlias = Annotated[
    bytes, Field(min_length=HASH_SIZE, max_length=HASH_SIZE, strict=True)
]
MilliSatoshi: TypeAlias = Annotated[int, Field(ge=0, le=MAX_FEE, strict=True)]
