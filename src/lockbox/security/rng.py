"""Randomness capability shared by salt, nonce and password generation.

Every function that needs random bytes or indices accepts an ``rng`` argument.
Production code passes nothing and gets :class:`SystemRandomSource`; tests can
hand in a deterministic source to check charset and length behaviour.
"""

from __future__ import annotations

import secrets
from typing import Optional, Protocol


class RandomSource(Protocol):
    def token_bytes(self, n: int) -> bytes:
        ...

    def randbelow(self, n: int) -> int:
        ...


class SystemRandomSource:
    """Cryptographically secure source backed by the OS CSPRNG via :mod:`secrets`."""

    def token_bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)

    def randbelow(self, n: int) -> int:
        # secrets.randbelow rejection-samples, so there is no modulo bias
        return secrets.randbelow(n)


_system_source = SystemRandomSource()


def resolve(rng: Optional[RandomSource]) -> RandomSource:
    """Return ``rng`` or the process-wide secure source when it is None."""
    return _system_source if rng is None else rng
