"""Argon2id master key derivation.

The work-factor parameters are fixed constants. Changing any of them changes
every derived key and orphans existing vaults.
"""

import logging
from typing import Dict, Optional

from argon2.exceptions import HashingError
from argon2.low_level import ARGON2_VERSION, Type, hash_secret_raw

from lockbox.core.exceptions import DerivationError
from lockbox.security.rng import RandomSource, resolve

logger = logging.getLogger(__name__)

SALT_LEN = 16
KEY_LEN = 32  # AES-256

# Argon2id parameters. DO NOT CHANGE once a vault exists.
ARGON2_TIME_COST = 2
ARGON2_MEMORY_COST = 19456  # KiB (19 MiB)
ARGON2_PARALLELISM = 1


def generate_salt(rng: Optional[RandomSource] = None) -> bytes:
    """Return a fresh 16-byte salt from a cryptographically secure source."""
    return resolve(rng).token_bytes(SALT_LEN)


def derive_key(passphrase, salt: bytes) -> bytes:
    """
    Derive the 32-byte vault key from a passphrase and salt using Argon2id.

    Deterministic: the same passphrase and salt always give the same key,
    which is what lets a user re-enter the passphrase later.

    Args:
        passphrase: master passphrase as text (UTF-8 encoded) or bytes-like.
        salt: exactly 16 bytes.

    Raises:
        DerivationError: if the salt has the wrong length or Argon2 rejects
            the input. This signals misuse, not a retryable condition.
    """
    if isinstance(passphrase, str):
        passphrase = passphrase.encode("utf-8")
    salt = bytes(salt)
    if len(salt) != SALT_LEN:
        raise DerivationError(f"salt must be {SALT_LEN} bytes, got {len(salt)}")

    try:
        key = hash_secret_raw(
            secret=bytes(passphrase),
            salt=salt,
            time_cost=ARGON2_TIME_COST,
            memory_cost=ARGON2_MEMORY_COST,
            parallelism=ARGON2_PARALLELISM,
            hash_len=KEY_LEN,
            type=Type.ID,
            version=ARGON2_VERSION,
        )
    except HashingError as exc:
        raise DerivationError(f"argon2id derivation failed: {exc}") from exc

    logger.debug("derived %d-byte key with argon2id", len(key))
    return key


def kdf_params_to_dict(salt: bytes) -> Dict:
    return {
        "algo": "argon2id",
        "version": ARGON2_VERSION,
        "salt": salt.hex(),
        "time": ARGON2_TIME_COST,
        "memory": ARGON2_MEMORY_COST,
        "parallelism": ARGON2_PARALLELISM,
        "key_len": KEY_LEN,
    }
