"""Fixed-width binary encoding of policies.

A policy occupies exactly ``POLICY_SIZE`` bytes: the 32-byte payment hash
written verbatim, followed by the fee as an unsigned 64-bit integer.
"""

from __future__ import annotations

import io
from typing import BinaryIO

from policydb.core.errors import TruncatedInputError
from policydb.core.models import Policy
from policydb.core.types import BYTE_ORDER, FEE_SIZE, HASH_SIZE, POLICY_SIZE, ByteOrder


def write_policy(w: BinaryIO, policy: Policy, byte_order: ByteOrder = BYTE_ORDER) -> None:
    """Serialize a policy to a binary stream.

    Raises:
        OSError: If the stream fails or stops accepting bytes.
    """
    _write_full(w, policy.payment_hash)
    _write_full(w, policy.fee.to_bytes(FEE_SIZE, byte_order, signed=False))


def read_policy(r: BinaryIO, byte_order: ByteOrder = BYTE_ORDER) -> Policy:
    """Deserialize a policy from a binary stream.

    Reads exactly ``POLICY_SIZE`` bytes; anything after them is left unread.

    Raises:
        TruncatedInputError: If the stream ends before a full policy was read.
    """
    payment_hash = _read_full(r, HASH_SIZE, 0)
    scratch = _read_full(r, FEE_SIZE, HASH_SIZE)
    return Policy(payment_hash=payment_hash, fee=int.from_bytes(scratch, byte_order, signed=False))


def encode_policy(policy: Policy, byte_order: ByteOrder = BYTE_ORDER) -> bytes:
    """Serialize a policy to its fixed-width byte form."""
    b = io.BytesIO()
    write_policy(b, policy, byte_order)
    return b.getvalue()


def decode_policy(data: bytes, byte_order: ByteOrder = BYTE_ORDER) -> Policy:
    """Deserialize a policy from bytes produced by ``encode_policy``."""
    return read_policy(io.BytesIO(data), byte_order)


def _read_full(r: BinaryIO, n: int, offset: int) -> bytes:
    buf = b""
    while len(buf) < n:
        chunk = r.read(n - len(buf))
        if not chunk:
            raise TruncatedInputError(POLICY_SIZE, offset + len(buf))
        buf += chunk
    return buf


def _write_full(w: BinaryIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        n = w.write(view)
        if not n:
            raise OSError("short write")
        view = view[n:]
