"""
Registry of KMS keys addressable by stanza key identifier.

The registry is built once, sequentially, from an ordered list of key
references. Afterwards it is a read-only mapping from key identifier to the
canonical resource name the backend decrypts with, and may be shared by any
number of concurrent unwrap calls without locking.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import structlog

from .backend import KmsBackend, is_supported_algorithm
from .crypto import key_id as compute_key_id, load_rsa_public_key_pem
from .errors import BackendError, KmsOaepError, UnsupportedAlgorithmError

logger = structlog.get_logger(__name__)


class KeyRegistry:
    """Immutable key identifier -> backend resource name mapping."""

    def __init__(self, names_by_key_id: Mapping[str, str]) -> None:
        self._names_by_key_id: Mapping[str, str] = MappingProxyType(dict(names_by_key_id))

    @classmethod
    async def build(cls, backend: KmsBackend, names: Iterable[str]) -> KeyRegistry:
        """
        Build a registry by fetching every key's public half from the backend.

        Keys are fetched one at a time, in the given order. If two references
        resolve to the same public key the later one wins; both denote the
        same private key.

        Args:
            backend: KMS backend to fetch public keys from
            names: Ordered key references

        Returns:
            KeyRegistry instance

        Raises:
            UnsupportedAlgorithmError: If a key is not an RSA-OAEP/SHA-256
                decrypt key
            KeyParseError: If a returned PEM is malformed or not RSA
            InvalidKeyError: If a key identifier cannot be computed
            BackendError: If the backend fails
        """
        names_by_key_id: Dict[str, str] = {}
        for name in names:
            try:
                kid, resource_name = await cls._fetch_key(backend, name)
            except KmsOaepError as e:
                e.key_name = name
                e.add_note(f"problem with key {name!r}")
                raise
            except Exception as e:
                raise BackendError(f"problem with key {name!r}: {e}", key_name=name) from e

            previous = names_by_key_id.get(kid)
            if previous is not None and previous != resource_name:
                logger.debug(
                    "duplicate key identifier replaced",
                    key_id=kid,
                    previous=previous,
                    name=resource_name,
                )
            names_by_key_id[kid] = resource_name

        registry = cls(names_by_key_id)
        logger.info("key registry built", keys=len(registry))
        return registry

    @staticmethod
    async def _fetch_key(backend: KmsBackend, name: str) -> Tuple[str, str]:
        resp = await backend.get_public_key(name)

        if not is_supported_algorithm(resp.algorithm):
            raise UnsupportedAlgorithmError(f"unsupported key type: {resp.algorithm}")

        public_key = load_rsa_public_key_pem(resp.pem)
        kid = compute_key_id(public_key)
        logger.info(
            "key added",
            name=resp.name,
            key_id=kid,
            algorithm=str(resp.algorithm),
        )
        return kid, resp.name

    def resolve(self, key_id: str) -> Optional[str]:
        """Get the backend resource name for a key identifier, if known."""
        return self._names_by_key_id.get(key_id)

    @property
    def names_by_key_id(self) -> Mapping[str, str]:
        """Read-only view of the registry."""
        return self._names_by_key_id

    def key_ids(self) -> List[str]:
        """List all registered key identifiers."""
        return list(self._names_by_key_id.keys())

    def __contains__(self, key_id: object) -> bool:
        return key_id in self._names_by_key_id

    def __len__(self) -> int:
        return len(self._names_by_key_id)

    def __repr__(self) -> str:
        return f"KeyRegistry(keys={len(self)})"
