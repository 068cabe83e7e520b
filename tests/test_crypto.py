"""
Tests for key identification, PEM parsing and checksums.
"""

from __future__ import annotations

import base64
import hashlib

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from kms_oaep import (
    FILE_KEY_SIZE,
    InvalidKeyError,
    KeyParseError,
    crc32c,
    generate_file_key,
    key_id,
    load_rsa_public_key_pem,
)


def _pem(public_key, fmt: serialization.PublicFormat) -> bytes:
    return public_key.public_bytes(serialization.Encoding.PEM, fmt)


class TestKeyId:
    def test_matches_sha256_of_pkcs1_der(self, rsa_2048: rsa.RSAPrivateKey) -> None:
        pub = rsa_2048.public_key()
        der = pub.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.PKCS1)
        expected = base64.b64encode(hashlib.sha256(der).digest()).decode("ascii")
        assert key_id(pub) == expected

    def test_format(self, rsa_2048: rsa.RSAPrivateKey) -> None:
        kid = key_id(rsa_2048.public_key())
        assert len(kid) == 44
        assert kid.endswith("=")
        assert "\n" not in kid
        assert len(base64.b64decode(kid, validate=True)) == 32

    def test_independent_of_encoding(self, rsa_2048: rsa.RSAPrivateKey) -> None:
        pub = rsa_2048.public_key()
        from_spki = load_rsa_public_key_pem(_pem(pub, serialization.PublicFormat.SubjectPublicKeyInfo))
        from_pkcs1 = load_rsa_public_key_pem(_pem(pub, serialization.PublicFormat.PKCS1))
        from_numbers = pub.public_numbers().public_key()

        assert key_id(pub) == key_id(from_spki) == key_id(from_pkcs1) == key_id(from_numbers)

    def test_deterministic(self, rsa_3072: rsa.RSAPrivateKey) -> None:
        assert key_id(rsa_3072.public_key()) == key_id(rsa_3072.public_key())

    def test_different_modulus(
        self, rsa_2048: rsa.RSAPrivateKey, rsa_2048_other: rsa.RSAPrivateKey
    ) -> None:
        assert key_id(rsa_2048.public_key()) != key_id(rsa_2048_other.public_key())

    def test_different_exponent(self, rsa_2048: rsa.RSAPrivateKey) -> None:
        n = rsa_2048.public_key().public_numbers().n
        e3 = rsa.RSAPublicNumbers(3, n).public_key()
        e65537 = rsa.RSAPublicNumbers(65537, n).public_key()
        assert key_id(e3) != key_id(e65537)

    def test_rejects_non_rsa_key(self) -> None:
        ec_pub = ec.generate_private_key(ec.SECP256R1()).public_key()
        with pytest.raises(InvalidKeyError):
            key_id(ec_pub)  # type: ignore[arg-type]

    def test_rejects_private_key(self, rsa_2048: rsa.RSAPrivateKey) -> None:
        with pytest.raises(InvalidKeyError):
            key_id(rsa_2048)  # type: ignore[arg-type]


class TestLoadPem:
    def test_str_input(self, rsa_2048: rsa.RSAPrivateKey) -> None:
        pub = rsa_2048.public_key()
        pem = _pem(pub, serialization.PublicFormat.SubjectPublicKeyInfo).decode("ascii")
        assert load_rsa_public_key_pem(pem).public_numbers() == pub.public_numbers()

    def test_garbage(self) -> None:
        with pytest.raises(KeyParseError):
            load_rsa_public_key_pem(b"not a pem")

    def test_truncated(self, rsa_2048: rsa.RSAPrivateKey) -> None:
        pem = _pem(rsa_2048.public_key(), serialization.PublicFormat.SubjectPublicKeyInfo)
        with pytest.raises(KeyParseError):
            load_rsa_public_key_pem(pem[:80] + b"\n-----END PUBLIC KEY-----\n")

    def test_ec_public_key(self) -> None:
        pem = _pem(
            ec.generate_private_key(ec.SECP256R1()).public_key(),
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        with pytest.raises(KeyParseError):
            load_rsa_public_key_pem(pem)

    def test_private_key_pem(self, rsa_2048: rsa.RSAPrivateKey) -> None:
        pem = rsa_2048.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        with pytest.raises(KeyParseError):
            load_rsa_public_key_pem(pem)


def test_crc32c_check_value() -> None:
    # Standard CRC-32C check value
    assert crc32c(b"123456789") == 0xE3069283
    assert crc32c(b"") == 0


def test_generate_file_key() -> None:
    k1 = generate_file_key()
    k2 = generate_file_key()
    assert len(k1) == FILE_KEY_SIZE == 16
    assert k1 != k2
    assert len(generate_file_key(32)) == 32
