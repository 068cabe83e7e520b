"""
Cryptographic primitives for KMS-backed RSA-OAEP key wrapping.

This module provides:
- key_id: Deterministic identifier of an RSA public key
- load_rsa_public_key_pem: Strict PEM parser for RSA public keys
- rsa_oaep_encrypt / rsa_oaep_decrypt: RSA-OAEP with SHA-256 and no label
- crc32c: CRC-32 (Castagnoli) checksum used as a KMS integrity hint
- generate_file_key: Random file key generation

OAEP label:
    No OAEP label is bound to the ciphertext. The KMS asymmetric decrypt API
    does not accept a label, so a labelled ciphertext could never be
    unwrapped there. File keys are random, which keeps the unlabelled scheme
    acceptable for this protocol.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

import google_crc32c
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .errors import EncryptionError, InvalidKeyError, KeyParseError

# Protocol constants
STANZA_TYPE: str = "kms-rsa-oaep-sha256"
FILE_KEY_SIZE: int = 16  # 128 bits


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def key_id(public_key: rsa.RSAPublicKey) -> str:
    """
    Compute the identifier of an RSA public key.

    The key is encoded as a PKCS#1 RSAPublicKey DER structure
    (SEQUENCE of modulus and public exponent), hashed with SHA-256 and
    rendered in standard padded base64. Only (n, e) contribute, so the same
    key yields the same identifier no matter how it was obtained.

    Args:
        public_key: RSA public key

    Returns:
        Base64-encoded SHA-256 digest

    Raises:
        InvalidKeyError: If the key cannot be serialized
    """
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise InvalidKeyError(
            f"Expected an RSA public key, got {type(public_key).__name__}"
        )
    try:
        der = public_key.public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.PKCS1
        )
    except (ValueError, TypeError) as e:
        raise InvalidKeyError(f"Cannot serialize public key: {e}") from e
    digest = hashlib.sha256(der).digest()
    return base64.standard_b64encode(digest).decode("ascii")


def load_rsa_public_key_pem(pem: bytes | str) -> rsa.RSAPublicKey:
    """
    Parse a PEM-encoded RSA public key.

    Accepts SubjectPublicKeyInfo ("PUBLIC KEY") and PKCS#1
    ("RSA PUBLIC KEY") blocks.

    Raises:
        KeyParseError: If the PEM is malformed or holds anything other than
            an RSA public key
    """
    if isinstance(pem, str):
        pem = pem.encode("ascii", errors="replace")
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"Failed to parse PEM public key: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyParseError(f"Expected an RSA public key, found {type(key).__name__}")
    return key


def rsa_oaep_encrypt(public_key: rsa.RSAPublicKey, plaintext: bytes) -> bytes:
    """
    Encrypt with RSA-OAEP (SHA-256 hash and MGF1, empty label).

    Raises:
        EncryptionError: If the payload does not fit the modulus or the
            backend fails
    """
    try:
        return public_key.encrypt(plaintext, _oaep())
    except (ValueError, TypeError) as e:
        raise EncryptionError(f"RSA-OAEP encryption failed: {e}") from e


def rsa_oaep_decrypt(private_key: rsa.RSAPrivateKey, ciphertext: bytes) -> bytes:
    """
    Decrypt RSA-OAEP (SHA-256 hash and MGF1, empty label).

    Raises:
        ValueError: If decryption fails
    """
    return private_key.decrypt(ciphertext, _oaep())


def crc32c(data: bytes) -> int:
    """CRC-32 with the Castagnoli polynomial."""
    return google_crc32c.value(data)


def generate_file_key(length: int = FILE_KEY_SIZE) -> bytes:
    """
    Generate a cryptographically secure random file key.

    Args:
        length: Number of bytes to generate

    Returns:
        Random bytes of specified length
    """
    return secrets.token_bytes(length)
