"""
Vault command layer: passphrase + base64 salt in, text or entries out.

Each call runs the full pipeline (derive key, seal or open, discard key)
and holds no state between calls. Keys are copied into a bytearray and
zeroed once the call finishes; this is best-effort since the KDF itself
returns an immutable bytes object.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from contextlib import contextmanager
from typing import Iterator, List

from lockbox.core.exceptions import EncodingError, FormatError, VaultFormatError
from lockbox.core.models import VaultEntry
from lockbox.security import crypto, kdf

logger = logging.getLogger(__name__)


def generate_salt_b64() -> str:
    """Return a fresh 16-byte salt as base64 text."""
    return base64.b64encode(kdf.generate_salt()).decode("ascii")


def decode_salt(salt_b64: str) -> bytes:
    try:
        return base64.b64decode(salt_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FormatError("salt is not valid base64") from exc


def _wipe(buf: bytearray) -> None:
    for i in range(len(buf)):
        buf[i] = 0


@contextmanager
def derived_key(passphrase: str, salt_b64: str) -> Iterator[bytearray]:
    """Yield the vault key for (passphrase, salt) and zero it on exit."""
    key = bytearray(kdf.derive_key(passphrase, decode_salt(salt_b64)))
    try:
        yield key
    finally:
        _wipe(key)


def encrypt_text(plaintext: str, passphrase: str, salt_b64: str) -> str:
    with derived_key(passphrase, salt_b64) as key:
        return crypto.encrypt(plaintext.encode("utf-8"), key)


def decrypt_text(sealed: str, passphrase: str, salt_b64: str) -> str:
    """
    Open ``sealed`` and decode it as UTF-8.

    Raises FormatError / AuthenticationError from the cipher, and
    EncodingError if the plaintext is not valid UTF-8.
    """
    with derived_key(passphrase, salt_b64) as key:
        raw = bytearray(crypto.decrypt(sealed, key))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodingError("decrypted data is not valid UTF-8") from exc
    finally:
        _wipe(raw)


def encrypt_vault(entries: List[VaultEntry], passphrase: str, salt_b64: str) -> str:
    """Serialize ``entries`` as a JSON array and seal it."""
    payload = json.dumps([e.to_dict() for e in entries], ensure_ascii=False)
    logger.info("encrypting vault with %d entries", len(entries))
    return encrypt_text(payload, passphrase, salt_b64)


def decrypt_vault(sealed: str, passphrase: str, salt_b64: str) -> List[VaultEntry]:
    """Open a sealed vault and rebuild its entries."""
    payload = decrypt_text(sealed, passphrase, salt_b64)
    try:
        data = json.loads(payload)
        if not isinstance(data, list):
            raise VaultFormatError("vault payload is not a list of entries")
        entries = [VaultEntry.from_dict(item) for item in data]
    except json.JSONDecodeError as exc:
        raise VaultFormatError(f"vault payload is not valid JSON: {exc.msg}") from None
    except (KeyError, TypeError, ValueError) as exc:
        raise VaultFormatError(f"malformed vault entry: {exc!r}") from None
    logger.info("decrypted vault with %d entries", len(entries))
    return entries
