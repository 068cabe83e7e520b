"""
Recipient: wraps file keys to an RSA public key held in a KMS.

The file key is encrypted with RSA-OAEP using SHA-256 for both the hash and
MGF1. Unlike RSA recipients that bind an OAEP label, no label is used,
because the KMS asymmetric decrypt API does not allow specifying one. The
stanza type and key identification scheme are specific to this protocol.
"""

from __future__ import annotations

from typing import List

import structlog
from cryptography.hazmat.primitives.asymmetric import rsa

from .crypto import STANZA_TYPE, key_id, load_rsa_public_key_pem, rsa_oaep_encrypt
from .stanza import Stanza

logger = structlog.get_logger(__name__)


class Recipient:
    """
    Encrypts file keys to a single RSA public key.

    The key identifier is computed once at construction and sent in the clear
    as the stanza's only argument.
    """

    def __init__(self, public_key: rsa.RSAPublicKey) -> None:
        """
        Create a recipient for an RSA public key.

        Args:
            public_key: Already-resolved RSA public key

        Raises:
            InvalidKeyError: If the key identifier cannot be computed
        """
        self._key_id = key_id(public_key)
        self._key = public_key

    @classmethod
    def from_pem(cls, pem: bytes | str) -> Recipient:
        """
        Create a recipient from a PEM-encoded RSA public key.

        Raises:
            KeyParseError: If the PEM is malformed or not an RSA public key
            InvalidKeyError: If the key identifier cannot be computed
        """
        return cls(load_rsa_public_key_pem(pem))

    @property
    def key_id(self) -> str:
        """Get the identifier sent in wrapped stanzas."""
        return self._key_id

    @property
    def key_size(self) -> int:
        """Get the modulus size in bits."""
        return self._key.key_size

    def wrap(self, file_key: bytes) -> List[Stanza]:
        """
        Wrap a file key into a stanza.

        Args:
            file_key: Random file key to protect

        Returns:
            A single stanza of type ``kms-rsa-oaep-sha256``

        Raises:
            EncryptionError: If RSA-OAEP encryption fails
        """
        wrapped_key = rsa_oaep_encrypt(self._key, file_key)
        logger.debug("file key wrapped", key_id=self._key_id, key_size=self._key.key_size)
        return [Stanza(type=STANZA_TYPE, args=(self._key_id,), body=wrapped_key)]

    def __repr__(self) -> str:
        return f"Recipient(key_id={self._key_id!r}, key_size={self._key.key_size})"
