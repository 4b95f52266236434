"""
Unit tests for cryptographic primitives.

Tests cover:
1. Key generation
2. Shared secret derivation (symmetry)
3. Point lifting and invalid keys
4. Hashing functions
"""

import pytest

from blindbid.crypto import (
    generate_keypair,
    private_key_to_public_key,
    derive_shared_secret,
    lift_x,
    sha256,
    keccak256,
    bytes_to_hex,
    hex_to_bytes,
    KeyPair,
    SECP256K1_ORDER,
    SECP256K1_FIELD_PRIME,
)
from blindbid.errors import SealingFailure


class TestKeyGeneration:
    """Tests for key generation."""

    def test_keypair_generation_produces_valid_lengths(self):
        """KeyPair should have 32-byte private and public keys."""
        kp = generate_keypair()
        assert len(kp.private_key) == 32
        assert len(kp.public_key) == 32

    def test_private_key_in_curve_order(self):
        kp = generate_keypair()
        scalar = int.from_bytes(kp.private_key, "big")
        assert 1 <= scalar < SECP256K1_ORDER

    def test_keypairs_are_unique(self):
        """Each keypair should be different."""
        kp1 = generate_keypair()
        kp2 = generate_keypair()
        assert kp1.private_key != kp2.private_key
        assert kp1.public_key != kp2.public_key

    def test_public_key_is_deterministic(self):
        """Same private key always gives the same public key."""
        kp = generate_keypair()
        assert private_key_to_public_key(kp.private_key) == kp.public_key
        assert private_key_to_public_key(kp.private_key) == kp.public_key

    def test_private_key_not_in_repr(self):
        kp = generate_keypair()
        assert kp.private_key.hex() not in repr(kp)

    def test_zero_private_key_rejected(self):
        with pytest.raises(SealingFailure):
            private_key_to_public_key(bytes(32))

    def test_private_key_above_order_rejected(self):
        with pytest.raises(SealingFailure):
            private_key_to_public_key(SECP256K1_ORDER.to_bytes(32, "big"))

    def test_short_private_key_rejected(self):
        with pytest.raises(SealingFailure):
            private_key_to_public_key(b"\x01" * 31)


class TestSharedSecret:
    """Tests for x-only key agreement."""

    def test_shared_secret_symmetry(self):
        """derive(a.priv, b.pub) == derive(b.priv, a.pub) for fresh key pairs."""
        for _ in range(10):
            a = generate_keypair()
            b = generate_keypair()
            assert derive_shared_secret(a.private_key, b.public_key) == \
                derive_shared_secret(b.private_key, a.public_key)

    def test_shared_secret_length(self):
        a = generate_keypair()
        b = generate_keypair()
        assert len(derive_shared_secret(a.private_key, b.public_key)) == 32

    def test_different_peers_give_different_secrets(self):
        a = generate_keypair()
        b = generate_keypair()
        c = generate_keypair()
        assert derive_shared_secret(a.private_key, b.public_key) != \
            derive_shared_secret(a.private_key, c.public_key)

    def test_known_small_scalars_agree(self):
        """Fixed scalars exercise both y parities of the lifted points."""
        keys = [KeyPair(private_key=k.to_bytes(32, "big"),
                        public_key=private_key_to_public_key(k.to_bytes(32, "big")))
                for k in (2, 3, 5, 7)]
        for a in keys:
            for b in keys:
                assert derive_shared_secret(a.private_key, b.public_key) == \
                    derive_shared_secret(b.private_key, a.public_key)

    def test_zero_public_key_rejected(self):
        kp = generate_keypair()
        with pytest.raises(SealingFailure):
            derive_shared_secret(kp.private_key, bytes(32))

    def test_public_key_above_field_rejected(self):
        kp = generate_keypair()
        with pytest.raises(SealingFailure):
            derive_shared_secret(kp.private_key, b"\xff" * 32)

    def test_wrong_length_public_key_rejected(self):
        kp = generate_keypair()
        with pytest.raises(SealingFailure):
            derive_shared_secret(kp.private_key, b"\x02" * 33)


class TestLiftX:
    """Tests for recovering points from x coordinates."""

    def test_lifted_point_is_on_curve(self):
        kp = generate_keypair()
        x, y = lift_x(kp.public_key)
        p = SECP256K1_FIELD_PRIME
        assert (y * y - x * x * x - 7) % p == 0
        assert x == int.from_bytes(kp.public_key, "big")

    def test_lifted_y_is_even(self):
        kp = generate_keypair()
        _, y = lift_x(kp.public_key)
        assert y % 2 == 0


class TestHashing:
    """Tests for hashing functions."""

    def test_sha256_known_vector(self):
        assert sha256(b"abc").hex() == \
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_keccak256_known_vector(self):
        """Keccak-256 (not SHA3-256) of the empty string."""
        assert keccak256(b"").hex() == \
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"

    def test_hex_round_trip(self):
        data = b"\x00\x01\xfe\xff"
        assert bytes_to_hex(data) == "0x0001feff"
        assert hex_to_bytes("0x0001feff") == data
        assert hex_to_bytes("0001FEFF") == data
