"""
Pytest configuration and fixtures for kms_oaep tests.
"""

from __future__ import annotations

from typing import AsyncGenerator, Dict, List, Optional, Tuple

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from kms_oaep import (
    CryptoKeyAlgorithm,
    DecryptResponse,
    InMemoryKmsBackend,
    KmsBackend,
    PublicKeyResponse,
)

KEY_A = "projects/test/locations/global/keyRings/ring/cryptoKeys/a/cryptoKeyVersions/1"
KEY_B = "projects/test/locations/global/keyRings/ring/cryptoKeys/b/cryptoKeyVersions/1"


class StubKmsBackend(KmsBackend):
    """Scripted backend that records every call."""

    def __init__(
        self,
        public_keys: Optional[Dict[str, PublicKeyResponse]] = None,
        decrypt_result: Optional[DecryptResponse] = None,
        get_error: Optional[Exception] = None,
        decrypt_error: Optional[Exception] = None,
    ) -> None:
        self.public_keys = public_keys or {}
        self.decrypt_result = decrypt_result or DecryptResponse(
            plaintext=b"\x00" * 16, verified_ciphertext_crc32c=True
        )
        self.get_error = get_error
        self.decrypt_error = decrypt_error
        self.get_calls: List[str] = []
        self.decrypt_calls: List[Tuple[str, bytes, Optional[int]]] = []
        self.close_calls = 0

    async def get_public_key(self, name: str) -> PublicKeyResponse:
        self.get_calls.append(name)
        if self.get_error is not None:
            raise self.get_error
        return self.public_keys[name]

    async def asymmetric_decrypt(
        self,
        name: str,
        ciphertext: bytes,
        ciphertext_crc32c: Optional[int] = None,
    ) -> DecryptResponse:
        self.decrypt_calls.append((name, ciphertext, ciphertext_crc32c))
        if self.decrypt_error is not None:
            raise self.decrypt_error
        return self.decrypt_result

    async def close(self) -> None:
        self.close_calls += 1


@pytest.fixture(scope="session")
def rsa_2048() -> rsa.RSAPrivateKey:
    """A 2048-bit RSA key shared by the whole test session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_2048_other() -> rsa.RSAPrivateKey:
    """A second, unrelated 2048-bit RSA key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_3072() -> rsa.RSAPrivateKey:
    """A 3072-bit RSA key shared by the whole test session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=3072)


@pytest.fixture
def memory_backend() -> InMemoryKmsBackend:
    """Create an empty in-memory KMS backend."""
    return InMemoryKmsBackend()


@pytest.fixture
async def two_key_backend(
    rsa_2048: rsa.RSAPrivateKey, rsa_3072: rsa.RSAPrivateKey
) -> AsyncGenerator[InMemoryKmsBackend, None]:
    """In-memory backend holding key A (2048-bit) and key B (3072-bit)."""
    backend = InMemoryKmsBackend()
    await backend.import_key(KEY_A, rsa_2048, CryptoKeyAlgorithm.RSA_DECRYPT_OAEP_2048_SHA256)
    await backend.import_key(KEY_B, rsa_3072, CryptoKeyAlgorithm.RSA_DECRYPT_OAEP_3072_SHA256)
    yield backend
    await backend.close()
