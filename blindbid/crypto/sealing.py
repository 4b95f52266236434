"""
Bid Sealing - Fixed-size confidentiality for a single integer.

A bid amount is sealed in three steps:
1. The bidder generates an ephemeral keypair
2. The bidder derives a shared secret with the evaluator's public key
3. The amount is encoded as a 32-byte big-endian block and XORed with
   Keccak-256(domain || shared_secret || nonce)

The evaluator recovers the same secret from its private key and the
bidder's ephemeral public key. The ephemeral private key is dropped as soon
as the secret is derived.

Nonce discipline: a (shared_secret, nonce) pair must never seal two
different values. seal_value always uses a fresh ephemeral key and a fresh
random nonce; the auction lifecycle additionally rejects a repeated
(sender_public_point, nonce) pair within an auction.
"""

import secrets
from dataclasses import dataclass
from typing import Any, Dict

from blindbid.crypto import (
    PUBLIC_KEY_SIZE,
    SHARED_SECRET_SIZE,
    derive_shared_secret,
    generate_keypair,
    keccak256,
)
from blindbid.errors import SealingFailure


# =============================================================================
# Constants
# =============================================================================

CIPHERTEXT_SIZE = 32
NONCE_SIZE = 16

# Largest integer that fits in one block
MAX_SEALABLE_VALUE = 2 ** (8 * CIPHERTEXT_SIZE) - 1

DOMAIN_KEYSTREAM = b"blindbid/seal/v1"


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class SealedValue:
    """
    One sealed integer plus what the recipient needs to open it.

    Attributes:
        ciphertext: 32-byte sealed block
        sender_public_point: 32-byte ephemeral public key of the sender
        nonce: 16-byte nonce used for this sealing
    """
    ciphertext: bytes
    sender_public_point: bytes
    nonce: bytes

    def to_dict(self) -> Dict[str, str]:
        return {
            "ciphertext": self.ciphertext.hex(),
            "sender_public_point": self.sender_public_point.hex(),
            "nonce": self.nonce.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SealedValue":
        return cls(
            ciphertext=bytes.fromhex(data["ciphertext"]),
            sender_public_point=bytes.fromhex(data["sender_public_point"]),
            nonce=bytes.fromhex(data["nonce"]),
        )


# =============================================================================
# Primitives
# =============================================================================


def generate_nonce() -> bytes:
    """Fresh random nonce for a single sealing operation."""
    return secrets.token_bytes(NONCE_SIZE)


def _keystream(shared_secret: bytes, nonce: bytes) -> bytes:
    if not isinstance(shared_secret, (bytes, bytearray)) or len(shared_secret) != SHARED_SECRET_SIZE:
        raise SealingFailure(f"Shared secret must be {SHARED_SECRET_SIZE} bytes")
    if not isinstance(nonce, (bytes, bytearray)) or len(nonce) != NONCE_SIZE:
        raise SealingFailure(f"Nonce must be {NONCE_SIZE} bytes")
    return keccak256(DOMAIN_KEYSTREAM + bytes(shared_secret) + bytes(nonce))


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def seal(value: int, shared_secret: bytes, nonce: bytes) -> bytes:
    """
    Seal a non-negative integer.

    Deterministic for identical inputs.

    Args:
        value: Integer in [0, MAX_SEALABLE_VALUE]
        shared_secret: 32-byte secret from derive_shared_secret
        nonce: 16-byte nonce, never reused with the same secret

    Returns:
        32-byte ciphertext

    Raises:
        SealingFailure: value out of range or malformed secret/nonce
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise SealingFailure(f"Sealed value must be an integer, got {type(value).__name__}")
    if value < 0:
        raise SealingFailure("Sealed value must be non-negative")
    if value > MAX_SEALABLE_VALUE:
        raise SealingFailure(f"Sealed value exceeds {CIPHERTEXT_SIZE}-byte block")

    plaintext = value.to_bytes(CIPHERTEXT_SIZE, byteorder="big")
    return _xor(plaintext, _keystream(shared_secret, nonce))


def unseal(ciphertext: bytes, shared_secret: bytes, nonce: bytes) -> int:
    """
    Invert seal() for the same shared secret and nonce.

    With any other secret the result is an unrelated value.
    """
    if not isinstance(ciphertext, (bytes, bytearray)) or len(ciphertext) != CIPHERTEXT_SIZE:
        raise SealingFailure(f"Ciphertext must be {CIPHERTEXT_SIZE} bytes")

    plaintext = _xor(bytes(ciphertext), _keystream(shared_secret, nonce))
    return int.from_bytes(plaintext, byteorder="big")


# =============================================================================
# Sender / Recipient Helpers
# =============================================================================


def seal_value(value: int, recipient_public: bytes) -> SealedValue:
    """
    Seal a value for a recipient using a fresh ephemeral key and nonce.

    Args:
        value: Integer to seal (a bid amount in base units)
        recipient_public: Recipient's 32-byte x-only public key

    Returns:
        SealedValue the recipient can open with unseal_value
    """
    if not isinstance(recipient_public, (bytes, bytearray)) or len(recipient_public) != PUBLIC_KEY_SIZE:
        raise SealingFailure("Recipient public key must be 32 bytes")

    ephemeral = generate_keypair()
    shared_secret = derive_shared_secret(ephemeral.private_key, recipient_public)
    nonce = generate_nonce()

    ciphertext = seal(value, shared_secret, nonce)
    return SealedValue(
        ciphertext=ciphertext,
        sender_public_point=ephemeral.public_key,
        nonce=nonce,
    )


def unseal_value(sealed: SealedValue, recipient_private: bytes) -> int:
    """Open a SealedValue with the recipient's private key."""
    shared_secret = derive_shared_secret(recipient_private, sealed.sender_public_point)
    return unseal(sealed.ciphertext, shared_secret, sealed.nonce)


__all__ = [
    "SealedValue",
    "seal",
    "unseal",
    "seal_value",
    "unseal_value",
    "generate_nonce",
    "CIPHERTEXT_SIZE",
    "NONCE_SIZE",
    "MAX_SEALABLE_VALUE",
]
