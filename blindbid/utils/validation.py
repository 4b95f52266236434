"""
Input Validation - Sanitization of everything that crosses the API boundary.

Validators return (is_valid, error_message) tuples so callers decide which
error kind to raise.
"""

from typing import Any, Optional, Tuple

from blindbid.crypto import PUBLIC_KEY_SIZE, lift_x
from blindbid.crypto.sealing import CIPHERTEXT_SIZE, NONCE_SIZE, MAX_SEALABLE_VALUE
from blindbid.errors import SealingFailure

# =============================================================================
# Constants
# =============================================================================

MAX_IDENTITY_LENGTH = 128
MAX_TX_REFERENCE_LENGTH = 128

MIN_AMOUNT = 1
MAX_AMOUNT = 2**64 - 1


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    if max_length is not None and len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_public_key(public_key: Any, name: str = "public_key") -> Tuple[bool, str]:
    """Validate an x-only public key."""
    return validate_bytes(public_key, name, expected_length=PUBLIC_KEY_SIZE)


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass; never a valid amount
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a positive amount in base units."""
    return validate_integer(amount, name, MIN_AMOUNT, min(MAX_AMOUNT, MAX_SEALABLE_VALUE))


def validate_string(
    value: Any,
    name: str,
    max_length: int,
    allow_empty: bool = False,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        allow_empty: Whether "" (or whitespace only) is accepted

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if not allow_empty and not value.strip():
        return False, f"{name} is required"

    if len(value) > max_length:
        return False, f"{name} too long (max {max_length} characters)"

    return True, ""


def validate_identity(identity: Any) -> Tuple[bool, str]:
    """An identity is any non-empty opaque string."""
    if identity is None:
        return False, "identity is required"
    return validate_string(identity, "identity", MAX_IDENTITY_LENGTH)


def validate_timestamp(value: Any, name: str) -> Tuple[bool, str]:
    """Validate a unix timestamp in seconds."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, f"{name} must be a number, got {type(value).__name__}"
    if value != value or value in (float("inf"), float("-inf")):
        return False, f"{name} must be finite"
    return True, ""


# =============================================================================
# Composite Validators
# =============================================================================


def validate_sealed_value(sealed: Any) -> Tuple[bool, str]:
    """Check the fixed field sizes of a sealed bid and that its sender point is on the curve."""
    for attr in ("ciphertext", "sender_public_point", "nonce"):
        if not hasattr(sealed, attr):
            return False, f"sealed value is missing {attr}"

    valid, err = validate_bytes(sealed.ciphertext, "ciphertext", expected_length=CIPHERTEXT_SIZE)
    if not valid:
        return False, err

    valid, err = validate_public_key(sealed.sender_public_point, "sender_public_point")
    if not valid:
        return False, err

    valid, err = validate_bytes(sealed.nonce, "nonce", expected_length=NONCE_SIZE)
    if not valid:
        return False, err

    # An off-curve sender point could never be opened at settlement
    try:
        lift_x(sealed.sender_public_point)
    except SealingFailure as e:
        return False, f"sender_public_point: {e.message}"

    return True, ""


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_bytes",
    "validate_public_key",
    "validate_integer",
    "validate_amount",
    "validate_string",
    "validate_identity",
    "validate_timestamp",
    "validate_sealed_value",
    "MAX_IDENTITY_LENGTH",
    "MAX_TX_REFERENCE_LENGTH",
]
