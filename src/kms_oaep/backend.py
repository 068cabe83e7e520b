"""
Key-management backend abstractions.

This module provides:
- KmsBackend: Abstract protocol for key-management services
- InMemoryKmsBackend: In-memory KMS holding real RSA keys, for testing and
  local development
- Supporting data structures: CryptoKeyAlgorithm, PublicKeyResponse,
  DecryptResponse

A backend instance is shared by every concurrent unwrap call of an identity,
so implementations must be safe for concurrent use.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .crypto import crc32c, rsa_oaep_decrypt
from .errors import BackendError, ChecksumMismatchError, ClientClosedError, KeyNotFoundError


class CryptoKeyAlgorithm(Enum):
    """Algorithm of a KMS key version."""

    RSA_SIGN_PSS_2048_SHA256 = "RSA_SIGN_PSS_2048_SHA256"
    RSA_SIGN_PKCS1_2048_SHA256 = "RSA_SIGN_PKCS1_2048_SHA256"
    RSA_DECRYPT_OAEP_2048_SHA256 = "RSA_DECRYPT_OAEP_2048_SHA256"
    RSA_DECRYPT_OAEP_3072_SHA256 = "RSA_DECRYPT_OAEP_3072_SHA256"
    RSA_DECRYPT_OAEP_4096_SHA256 = "RSA_DECRYPT_OAEP_4096_SHA256"
    RSA_DECRYPT_OAEP_4096_SHA512 = "RSA_DECRYPT_OAEP_4096_SHA512"
    RSA_DECRYPT_OAEP_2048_SHA1 = "RSA_DECRYPT_OAEP_2048_SHA1"
    EC_SIGN_P256_SHA256 = "EC_SIGN_P256_SHA256"

    def __str__(self) -> str:
        return self.value

    @property
    def key_size(self) -> Optional[int]:
        """RSA modulus size in bits, or None for non-RSA algorithms."""
        if not self.value.startswith("RSA_"):
            return None
        return int(self.value.split("_")[3])

    @property
    def is_decrypt(self) -> bool:
        return self.value.startswith("RSA_DECRYPT_")


SUPPORTED_ALGORITHMS: FrozenSet[CryptoKeyAlgorithm] = frozenset(
    {
        CryptoKeyAlgorithm.RSA_DECRYPT_OAEP_2048_SHA256,
        CryptoKeyAlgorithm.RSA_DECRYPT_OAEP_3072_SHA256,
        CryptoKeyAlgorithm.RSA_DECRYPT_OAEP_4096_SHA256,
    }
)


def is_supported_algorithm(algorithm: Union[CryptoKeyAlgorithm, str]) -> bool:
    """Check whether a key algorithm can unwrap kms-rsa-oaep-sha256 stanzas."""
    return str(algorithm) in {a.value for a in SUPPORTED_ALGORITHMS}


@dataclass(frozen=True)
class PublicKeyResponse:
    """Public half of a KMS key version."""

    name: str  # Canonical resource name, used as the decrypt handle
    algorithm: Union[CryptoKeyAlgorithm, str]
    pem: str


@dataclass(frozen=True)
class DecryptResponse:
    """Result of an asymmetric decrypt request."""

    plaintext: bytes
    plaintext_crc32c: Optional[int] = None
    verified_ciphertext_crc32c: bool = False


class KmsBackend(ABC):
    """
    Abstract key-management backend.

    All methods are async so that network-backed clients and the in-memory
    implementation share one interface.
    """

    @abstractmethod
    async def get_public_key(self, name: str) -> PublicKeyResponse:
        """Fetch the public key and algorithm of a key version."""
        ...

    @abstractmethod
    async def asymmetric_decrypt(
        self,
        name: str,
        ciphertext: bytes,
        ciphertext_crc32c: Optional[int] = None,
    ) -> DecryptResponse:
        """Decrypt ciphertext with the private half of a key version."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release connection resources."""
        ...


@dataclass
class _KmsKey:
    name: str
    algorithm: CryptoKeyAlgorithm
    private_key: Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]

    def public_pem(self) -> str:
        return (
            self.private_key.public_key()
            .public_bytes(
                serialization.Encoding.PEM,
                serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            .decode("ascii")
        )


class InMemoryKmsBackend(KmsBackend):
    """
    In-memory KMS for testing.

    Holds real private keys and performs true RSA-OAEP/SHA-256 decryption,
    including CRC32C verification of requests. Uses asyncio.Lock for safe
    concurrent access.
    """

    def __init__(self) -> None:
        self._keys: Dict[str, _KmsKey] = {}
        self._lock = asyncio.Lock()
        self._closed = False
        self.decrypt_calls = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClientClosedError("KMS backend is closed")

    async def create_key(
        self,
        name: str,
        algorithm: CryptoKeyAlgorithm = CryptoKeyAlgorithm.RSA_DECRYPT_OAEP_2048_SHA256,
    ) -> PublicKeyResponse:
        """
        Generate a new key version.

        Args:
            name: Resource name of the key version
            algorithm: Key algorithm; RSA algorithms get a modulus of the
                matching size

        Returns:
            PublicKeyResponse for the new key
        """
        if algorithm.key_size is not None:
            private_key = rsa.generate_private_key(
                public_exponent=65537, key_size=algorithm.key_size
            )
        else:
            private_key = ec.generate_private_key(ec.SECP256R1())
        return await self.import_key(name, private_key, algorithm)

    async def import_key(
        self,
        name: str,
        private_key: Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey],
        algorithm: CryptoKeyAlgorithm = CryptoKeyAlgorithm.RSA_DECRYPT_OAEP_2048_SHA256,
    ) -> PublicKeyResponse:
        """Store an existing private key under a resource name."""
        self._ensure_open()
        key = _KmsKey(name=name, algorithm=algorithm, private_key=private_key)
        async with self._lock:
            self._keys[name] = key
        return PublicKeyResponse(name=name, algorithm=algorithm, pem=key.public_pem())

    async def _get_key(self, name: str) -> _KmsKey:
        async with self._lock:
            key = self._keys.get(name)
        if key is None:
            raise KeyNotFoundError(f"Key not found: {name}")
        return key

    async def get_public_key(self, name: str) -> PublicKeyResponse:
        """Fetch the public key and algorithm of a key version."""
        self._ensure_open()
        key = await self._get_key(name)
        return PublicKeyResponse(name=key.name, algorithm=key.algorithm, pem=key.public_pem())

    async def asymmetric_decrypt(
        self,
        name: str,
        ciphertext: bytes,
        ciphertext_crc32c: Optional[int] = None,
    ) -> DecryptResponse:
        """
        Decrypt RSA-OAEP/SHA-256 ciphertext.

        Raises:
            ClientClosedError: If the backend is closed
            KeyNotFoundError: If no key exists under name
            ChecksumMismatchError: If ciphertext_crc32c does not match
            BackendError: If the key cannot decrypt or decryption fails
        """
        self._ensure_open()
        key = await self._get_key(name)
        async with self._lock:
            self.decrypt_calls += 1

        if not key.algorithm.is_decrypt or not isinstance(key.private_key, rsa.RSAPrivateKey):
            raise BackendError(f"Key {name} does not support asymmetric decryption")

        if ciphertext_crc32c is not None and crc32c(ciphertext) != ciphertext_crc32c:
            raise ChecksumMismatchError(f"Ciphertext CRC32C mismatch for key {name}")

        try:
            plaintext = rsa_oaep_decrypt(key.private_key, ciphertext)
        except ValueError:
            # Generic error to prevent oracle attacks
            raise BackendError("Decryption failed")

        return DecryptResponse(
            plaintext=plaintext,
            plaintext_crc32c=crc32c(plaintext),
            verified_ciphertext_crc32c=ciphertext_crc32c is not None,
        )

    async def close(self) -> None:
        """Release resources; later calls fail fast."""
        self._closed = True
