"""Deterministic deal identifiers.

A deal ID is the SHA3-256 digest of a canonical encoding of the agreement
parameters plus the (discretized) creation time::

    tag || payer || payee || amount || deadline || created_at [|| nonce]

where every field is prefixed with its length as a 4-byte big-endian
integer, so no two distinct tuples share an encoding.

Two creations with identical parameters in the same clock window yield the
same ID; the registry rejects the second one as a conflict. Hashing in a
nonce (see ``Settings.deal_id_nonce_mode``) removes that dependency on the
clock resolution.
"""

from __future__ import annotations

import hashlib
import re

DEAL_ID_BYTES = 32
DEAL_ID_HEX_LENGTH = DEAL_ID_BYTES * 2
MAX_DEADLINE = 2**64 - 1
MAX_IDENTITY_LENGTH = 128

_DOMAIN_TAG = b"custodial-escrow/deal-id/v1"
_HEX_ID_RE = re.compile(r"^(?:0x)?([0-9a-fA-F]{64})$")
_ZERO_ADDRESS_RE = re.compile(r"^(?:0x)?0+$")


def is_null_identity(identity: str | None) -> bool:
    """True for a missing, blank or all-zero (``0x000...0``) party identity."""
    if identity is None:
        return True
    stripped = identity.strip()
    return not stripped or bool(_ZERO_ADDRESS_RE.match(stripped))


def discretize_timestamp(timestamp: float, resolution_seconds: int = 1) -> int:
    """Floor a clock reading to the start of its resolution window."""
    if resolution_seconds < 1:
        raise ValueError("resolution_seconds must be >= 1")
    seconds = int(timestamp)
    return seconds - seconds % resolution_seconds


def _uint_bytes(value: int, width: int | None = None) -> bytes:
    if width is None:
        width = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(width, "big")


def canonical_encoding(
    payer: str,
    payee: str,
    amount: int,
    deadline: int,
    created_at: int,
    nonce: int | None = None,
) -> bytes:
    """Length-prefixed byte encoding of the identifier inputs."""
    fields = [
        _DOMAIN_TAG,
        payer.encode("utf-8"),
        payee.encode("utf-8"),
        _uint_bytes(amount),
        _uint_bytes(deadline, 8),
        _uint_bytes(created_at, 8),
    ]
    if nonce is not None:
        fields.append(_uint_bytes(nonce, 8))
    return b"".join(len(f).to_bytes(4, "big") + f for f in fields)


def derive_deal_id(
    payer: str,
    payee: str,
    amount: int,
    deadline: int,
    created_at: int,
    nonce: int | None = None,
) -> bytes:
    """Return the 32-byte identifier for a new deal.

    Args:
        payer: Identity allowed to fund the deal.
        payee: Identity of the future recipient.
        amount: Agreed amount (non-negative).
        deadline: Deadline timestamp, 0 for none.
        created_at: Discretized creation timestamp in seconds.
        nonce: Optional sequence number for uniqueness beyond the clock window.
    """
    encoded = canonical_encoding(payer, payee, amount, deadline, created_at, nonce)
    return hashlib.sha3_256(encoded).digest()


def deal_id_to_hex(deal_id: bytes) -> str:
    """Render a raw identifier as 64 lowercase hex characters."""
    if len(deal_id) != DEAL_ID_BYTES:
        raise ValueError(f"deal id must be {DEAL_ID_BYTES} bytes, got {len(deal_id)}")
    return deal_id.hex()


def parse_deal_id(text: str) -> str:
    """Normalize a textual deal ID to lowercase hex without ``0x``.

    Raises:
        ValueError: If the text is not 64 hex characters.
    """
    match = _HEX_ID_RE.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise ValueError(f"deal id must be {DEAL_ID_HEX_LENGTH} hex characters")
    return match.group(1).lower()
