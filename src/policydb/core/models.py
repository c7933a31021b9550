"""Data models for stored policies."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from policydb.core.types import MilliSatoshi, PaymentHash  # noqa: TC001 - Pydantic needs at runtime


class Policy(BaseModel):
    """A fee policy attached to a payment hash."""

    model_config = {"frozen": True}

    payment_hash: PaymentHash
    fee: MilliSatoshi

    @property
    def hash_hex(self) -> str:
        return self.payment_hash.hex()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Policy):
            return NotImplemented
        return self.payment_hash == other.payment_hash and self.fee == other.fee

    def __hash__(self) -> int:
        return hash((self.payment_hash, self.fee))
