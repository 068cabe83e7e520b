"""
Exception classes for KMS-backed RSA-OAEP stanza wrapping.

Every error raised by this package derives from KmsOaepError. Errors raised
while building a key registry carry the offending key reference in
``key_name``.
"""

from __future__ import annotations

from typing import Optional


class KmsOaepError(Exception):
    """Base exception for all kms_oaep operations."""

    def __init__(self, message: str = "", *, key_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.key_name = key_name


class InvalidKeyError(KmsOaepError):
    """Key material is unusable (cannot be canonically serialized)."""

    pass


class UnsupportedAlgorithmError(KmsOaepError):
    """Key's declared algorithm is not an RSA-OAEP/SHA-256 decrypt variant."""

    pass


class KeyParseError(KmsOaepError):
    """Encoded public key is malformed or is not an RSA public key."""

    pass


class MalformedStanzaError(KmsOaepError):
    """Stanza of the recognized type has the wrong argument shape."""

    pass


class EncryptionError(KmsOaepError):
    """Local cryptographic or randomness failure while wrapping a file key."""

    pass


class BackendError(KmsOaepError):
    """Failure surfaced by the key-management backend."""

    pass


class ChecksumMismatchError(BackendError):
    """CRC32C integrity check failed on a backend request or response."""

    pass


class ClientClosedError(BackendError):
    """Backend was used after close()."""

    pass


class KeyNotFoundError(BackendError):
    """Backend has no key under the requested name."""

    pass


class IncorrectIdentityError(KmsOaepError):
    """No stanza could be decrypted by this identity.

    This is a normal negative result, not a fault: a caller holding several
    identities should try the next one.
    """

    pass


class ConfigError(KmsOaepError):
    """Configuration error."""

    pass
