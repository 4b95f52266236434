"""
Cryptographic primitives for BlindBid.

This module provides:
- Hashing functions (SHA-256, Keccak-256)
- Key generation for ephemeral bidder keys and the evaluator key
- x-only Diffie-Hellman key agreement on secp256k1
- Sealing of bid amounts (see blindbid.crypto.sealing)

Design Notes:
-------------
Public keys are encoded as the 32-byte x coordinate of the curve point.
For an x-only point X the lifted point is either P or -P, and
x(k * P) == x(k * -P), so the shared secret does not depend on which y we
pick when lifting. This keeps both keys and ciphertexts at fixed 32-byte
sizes.

The sealing construction is a keystream pad, not an authenticated cipher.
It provides the confidentiality properties the auction needs; a production
deployment should swap in a vetted AEAD behind the same interface.
"""

import hashlib
import secrets
from dataclasses import dataclass, field
from typing import Tuple

from Crypto.Hash import keccak
from py_ecc.secp256k1 import secp256k1

from blindbid.errors import SealingFailure


# =============================================================================
# Constants
# =============================================================================

# secp256k1 curve order (number of points on the curve)
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# secp256k1 base field prime
SECP256K1_FIELD_PRIME = 2**256 - 2**32 - 977

# Curve equation: y^2 = x^3 + 7
SECP256K1_B = 7

PRIVATE_KEY_SIZE = 32
PUBLIC_KEY_SIZE = 32
SHARED_SECRET_SIZE = 32

# Domain separator for shared secret derivation
DOMAIN_SHARED_SECRET = b"blindbid/ecdh/v1"


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.

    Used for: auction and bid identifiers.
    """
    return hashlib.sha256(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash.

    Used for: shared secret derivation and the sealing keystream.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Key Generation
# =============================================================================


@dataclass(frozen=True)
class KeyPair:
    """
    A secp256k1 keypair with an x-only public key.

    Attributes:
        private_key: 32-byte secret scalar (integer in [1, order-1])
        public_key: 32-byte x coordinate of private_key * G
    """
    private_key: bytes = field(repr=False)
    public_key: bytes

    @property
    def public_key_hex(self) -> str:
        """Return public key as hex string."""
        return self.public_key.hex()


def _scalar_from_bytes(private_key: bytes) -> int:
    if not isinstance(private_key, (bytes, bytearray)) or len(private_key) != PRIVATE_KEY_SIZE:
        raise SealingFailure("Private key must be 32 bytes")
    scalar = int.from_bytes(private_key, byteorder="big")
    if scalar < 1 or scalar >= SECP256K1_ORDER:
        raise SealingFailure("Private key is outside the curve order")
    return scalar


def generate_keypair() -> KeyPair:
    """
    Generate a new random keypair.

    Uses cryptographically secure random number generator.
    """
    # Generate 32-byte private key in valid range [1, order-1]
    private_key_int = secrets.randbelow(SECP256K1_ORDER - 1) + 1
    private_key = private_key_int.to_bytes(PRIVATE_KEY_SIZE, byteorder="big")
    return KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key))


def private_key_to_public_key(private_key: bytes) -> bytes:
    """
    Derive the x-only public key from a private key.

    Args:
        private_key: 32-byte private key

    Returns:
        32-byte x coordinate of private_key * G
    """
    _scalar_from_bytes(private_key)

    # P = k * G (scalar multiplication on curve)
    public_key_point = secp256k1.privtopub(bytes(private_key))
    return public_key_point[0].to_bytes(PUBLIC_KEY_SIZE, byteorder="big")


def lift_x(public_key: bytes) -> Tuple[int, int]:
    """
    Recover a curve point from its x coordinate.

    Picks the even y. Raises SealingFailure if x is not on the curve.
    """
    if not isinstance(public_key, (bytes, bytearray)) or len(public_key) != PUBLIC_KEY_SIZE:
        raise SealingFailure("Public key must be 32 bytes")

    p = SECP256K1_FIELD_PRIME
    x = int.from_bytes(public_key, byteorder="big")
    if x == 0 or x >= p:
        raise SealingFailure("Public key is not a valid field element")

    y_squared = (pow(x, 3, p) + SECP256K1_B) % p
    # p = 3 (mod 4), so a square root is y^((p+1)/4)
    y = pow(y_squared, (p + 1) // 4, p)
    if (y * y) % p != y_squared:
        raise SealingFailure("Public key is not on the curve")

    if y % 2:
        y = p - y
    return x, y


# =============================================================================
# Key Agreement
# =============================================================================


def derive_shared_secret(local_private: bytes, remote_public: bytes) -> bytes:
    """
    Derive a 32-byte shared secret from our private key and their public key.

    Symmetric: derive_shared_secret(a.private_key, b.public_key) ==
    derive_shared_secret(b.private_key, a.public_key).

    Args:
        local_private: 32-byte private key
        remote_public: 32-byte x-only public key

    Returns:
        32-byte shared secret
    """
    scalar = _scalar_from_bytes(local_private)
    point = lift_x(remote_public)

    shared_point = secp256k1.multiply(point, scalar)
    shared_x = shared_point[0].to_bytes(32, byteorder="big")

    return keccak256(DOMAIN_SHARED_SECRET + shared_x)


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


# =============================================================================
# Sealing
# =============================================================================

# Imported last: sealing builds on the key agreement above
from blindbid.crypto.sealing import (
    SealedValue,
    seal,
    unseal,
    seal_value,
    unseal_value,
    generate_nonce,
    CIPHERTEXT_SIZE,
    NONCE_SIZE,
    MAX_SEALABLE_VALUE,
)
