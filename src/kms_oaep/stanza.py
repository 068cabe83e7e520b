"""
Stanza record exchanged with the encrypted-file container.

The container format owns the serialized layout; this module only models the
record itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class Stanza:
    """Typed, argument-bearing record carrying key-wrapping data."""

    type: str
    args: Tuple[str, ...] = field(default_factory=tuple)
    body: bytes = b""

    def __post_init__(self) -> None:
        # Accept any sequence of args but store an immutable tuple
        object.__setattr__(self, "args", tuple(self.args))

    def __repr__(self) -> str:
        return f"Stanza(type={self.type!r}, args={list(self.args)!r}, body=<{len(self.body)} bytes>)"
