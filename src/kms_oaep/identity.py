"""
Identity: unwraps file keys using RSA keys held in a KMS.

An Identity owns a KeyRegistry and a KMS backend. Unwrapping scans the
stanzas of a file in order:

- stanzas of another type are skipped;
- a kms-rsa-oaep-sha256 stanza without exactly one argument is malformed and
  fails the call;
- a stanza whose key identifier is not registered is skipped;
- the first registered stanza is sent to the backend for decryption, and its
  result (or error) ends the scan.

Only RSA_DECRYPT_OAEP_*_SHA256 keys are supported. The backend keeps
connection resources until close() is called.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

import structlog

from .backend import KmsBackend
from .config import Settings
from .crypto import STANZA_TYPE, crc32c
from .errors import (
    ChecksumMismatchError,
    ClientClosedError,
    IncorrectIdentityError,
    MalformedStanzaError,
)
from .registry import KeyRegistry
from .stanza import Stanza

logger = structlog.get_logger(__name__)


class Identity:
    """Decrypts kms-rsa-oaep-sha256 stanzas through a KMS backend."""

    def __init__(
        self,
        backend: KmsBackend,
        registry: KeyRegistry,
        *,
        verify_response_checksum: bool = True,
    ) -> None:
        """
        Initialize Identity with an already-built registry.

        Args:
            backend: KMS backend; owned by the identity from now on
            registry: Registry of decryptable keys
            verify_response_checksum: Require the backend to confirm the
                request CRC32C and check the plaintext CRC32C returned by
                the backend
        """
        self._backend = backend
        self._registry = registry
        self._verify_response_checksum = verify_response_checksum
        self._closed = False

    @classmethod
    async def new(
        cls,
        backend: KmsBackend,
        names: Iterable[str],
        *,
        verify_response_checksum: bool = True,
    ) -> Identity:
        """
        Create an Identity for the given KMS key references.

        On failure the backend is not closed; it still belongs to the caller.

        Args:
            backend: KMS backend
            names: Ordered key references

        Returns:
            Identity instance

        Raises:
            KmsOaepError: If any key cannot be registered (see
                KeyRegistry.build)
        """
        registry = await KeyRegistry.build(backend, names)
        return cls(backend, registry, verify_response_checksum=verify_response_checksum)

    @classmethod
    async def from_settings(
        cls,
        backend: KmsBackend,
        settings: Optional[Settings] = None,
    ) -> Identity:
        """
        Create an Identity from environment settings.

        Raises:
            ConfigError: If no key names are configured
        """
        settings = settings or Settings.from_env()
        return await cls.new(
            backend,
            settings.require_key_names(),
            verify_response_checksum=settings.verify_response_checksum,
        )

    @property
    def registry(self) -> KeyRegistry:
        return self._registry

    @property
    def closed(self) -> bool:
        return self._closed

    def _match(self, stanza: Stanza) -> Optional[str]:
        """Resolve a stanza to a backend resource name, or None if not ours."""
        if stanza.type != STANZA_TYPE:
            return None
        if len(stanza.args) != 1:
            raise MalformedStanzaError(f"invalid {STANZA_TYPE} recipient")
        return self._registry.resolve(stanza.args[0])

    async def _decrypt(self, name: str, body: bytes) -> bytes:
        logger.debug("decrypt dispatched", name=name)
        resp = await self._backend.asymmetric_decrypt(name, body, crc32c(body))
        if not self._verify_response_checksum:
            return resp.plaintext
        if not resp.verified_ciphertext_crc32c:
            raise ChecksumMismatchError(f"Backend did not verify ciphertext CRC32C for key {name}")
        if resp.plaintext_crc32c is not None and crc32c(resp.plaintext) != resp.plaintext_crc32c:
            raise ChecksumMismatchError(f"Plaintext CRC32C mismatch for key {name}")
        return resp.plaintext

    async def try_unwrap(self, stanzas: Iterable[Stanza]) -> Optional[bytes]:
        """
        Recover the file key from the first stanza this identity can decrypt.

        Args:
            stanzas: Stanzas of one file, in order

        Returns:
            The file key, or None if no stanza belongs to this identity

        Raises:
            ClientClosedError: If the identity is closed
            MalformedStanzaError: If a kms-rsa-oaep-sha256 stanza is malformed
            BackendError: If the backend decrypt fails (not retried)
        """
        if self._closed:
            raise ClientClosedError("Identity is closed")

        for stanza in stanzas:
            name = self._match(stanza)
            if name is None:
                continue
            return await self._decrypt(name, stanza.body)

        return None

    async def unwrap(self, stanzas: Iterable[Stanza]) -> bytes:
        """
        Like try_unwrap, but raise IncorrectIdentityError instead of
        returning None.
        """
        file_key = await self.try_unwrap(stanzas)
        if file_key is None:
            raise IncorrectIdentityError("no matching kms-rsa-oaep-sha256 stanza")
        return file_key

    async def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._backend.close()
        logger.info("identity closed", keys=len(self._registry))

    async def __aenter__(self) -> Identity:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"Identity(keys={len(self._registry)}, closed={self._closed})"


async def unwrap_any(identities: Sequence[Identity], stanzas: Sequence[Stanza]) -> bytes:
    """
    Try each identity in turn and return the first recovered file key.

    Hard errors from any identity stop the search.

    Raises:
        IncorrectIdentityError: If no identity matches any stanza
    """
    for identity in identities:
        file_key = await identity.try_unwrap(stanzas)
        if file_key is not None:
            return file_key
    raise IncorrectIdentityError("no identity matched")
