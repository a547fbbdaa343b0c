"""Cryptographically secure password generation from a configurable charset."""

from __future__ import annotations

import string
from typing import Optional

from lockbox.core.models import GeneratorOptions
from lockbox.security.rng import RandomSource, resolve

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*()-_=+[]{};:,.<>?/|\\"

# Visually ambiguous characters dropped when exclude_similar is set
SIMILAR_CHARS = "iIl1Lo0O"

FALLBACK_POOL = LOWERCASE + UPPERCASE + DIGITS


def build_pool(options: GeneratorOptions) -> str:
    """
    Return the characters eligible for ``options``.

    Custom characters come first, then lowercase, uppercase, digits and
    symbols. Duplicates keep their first position. Similar characters are
    removed after assembly, and an empty result falls back to
    :data:`FALLBACK_POOL`, so the pool is never empty.
    """
    parts = []
    if options.custom_chars:
        parts.append(options.custom_chars)
    if options.lower:
        parts.append(LOWERCASE)
    if options.upper:
        parts.append(UPPERCASE)
    if options.digits:
        parts.append(DIGITS)
    if options.symbols:
        parts.append(SYMBOLS)

    pool = "".join(dict.fromkeys("".join(parts)))

    if options.exclude_similar:
        pool = "".join(c for c in pool if c not in SIMILAR_CHARS)

    return pool or FALLBACK_POOL


def generate_password(
    options: Optional[GeneratorOptions] = None,
    rng: Optional[RandomSource] = None,
) -> str:
    """
    Generate a random password of exactly ``options.length`` characters.

    Each position is an independent uniform draw over the whole pool.
    ``length == 0`` gives an empty string. Never fails for valid options.
    """
    options = options or GeneratorOptions()
    source = resolve(rng)
    pool = build_pool(options)
    return "".join(pool[source.randbelow(len(pool))] for _ in range(options.length))
