"""
KMS-backed RSA-OAEP Key Wrapping

Wraps per-file keys into ``kms-rsa-oaep-sha256`` stanzas for an RSA public
key, and unwraps them by delegating the private-key operation to a
key-management service.

Quick Start
-----------
```python
import asyncio
from kms_oaep import (
    CryptoKeyAlgorithm,
    Identity,
    InMemoryKmsBackend,
    Recipient,
    generate_file_key,
)

async def main():
    backend = InMemoryKmsBackend()
    key = await backend.create_key(
        "projects/p/locations/global/keyRings/r/cryptoKeys/k/cryptoKeyVersions/1",
        CryptoKeyAlgorithm.RSA_DECRYPT_OAEP_3072_SHA256,
    )

    # Encrypt side: only the public key is needed
    recipient = Recipient.from_pem(key.pem)
    file_key = generate_file_key()
    stanzas = recipient.wrap(file_key)

    # Decrypt side: the KMS holds the private key
    async with await Identity.new(backend, [key.name]) as identity:
        assert await identity.unwrap(stanzas) == file_key

asyncio.run(main())
```

Key Features
------------
- **Deterministic key IDs**: base64(SHA-256(DER PKCS#1 public key))
- **RSA-OAEP/SHA-256**: No OAEP label, as required by KMS decrypt APIs
- **CRC32C integrity**: Checksums on decrypt requests and responses
- **Immutable registry**: Built once, shared across concurrent unwraps
"""

__version__ = "0.1.0"

# =============================================================================
# Crypto Exports
# =============================================================================

from .crypto import (
    FILE_KEY_SIZE,
    STANZA_TYPE,
    crc32c,
    generate_file_key,
    key_id,
    load_rsa_public_key_pem,
)

# =============================================================================
# Error Exports
# =============================================================================

from .errors import (
    BackendError,
    ChecksumMismatchError,
    ClientClosedError,
    ConfigError,
    EncryptionError,
    IncorrectIdentityError,
    InvalidKeyError,
    KeyNotFoundError,
    KeyParseError,
    KmsOaepError,
    MalformedStanzaError,
    UnsupportedAlgorithmError,
)

# =============================================================================
# Backend Exports
# =============================================================================

from .backend import (
    SUPPORTED_ALGORITHMS,
    CryptoKeyAlgorithm,
    DecryptResponse,
    InMemoryKmsBackend,
    KmsBackend,
    PublicKeyResponse,
    is_supported_algorithm,
)

# =============================================================================
# Protocol Exports (Primary API)
# =============================================================================

from .config import Settings
from .identity import Identity, unwrap_any
from .logging import configure_logging
from .recipient import Recipient
from .registry import KeyRegistry
from .stanza import Stanza

# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "FILE_KEY_SIZE",
    "STANZA_TYPE",
    "crc32c",
    "generate_file_key",
    "key_id",
    "load_rsa_public_key_pem",
    # Errors
    "KmsOaepError",
    "InvalidKeyError",
    "UnsupportedAlgorithmError",
    "KeyParseError",
    "MalformedStanzaError",
    "EncryptionError",
    "BackendError",
    "ChecksumMismatchError",
    "ClientClosedError",
    "KeyNotFoundError",
    "IncorrectIdentityError",
    "ConfigError",
    # Backend
    "KmsBackend",
    "InMemoryKmsBackend",
    "CryptoKeyAlgorithm",
    "SUPPORTED_ALGORITHMS",
    "PublicKeyResponse",
    "DecryptResponse",
    "is_supported_algorithm",
    # Protocol (Primary API)
    "Stanza",
    "Recipient",
    "KeyRegistry",
    "Identity",
    "unwrap_any",
    "Settings",
    "configure_logging",
]
