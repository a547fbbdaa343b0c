"""AES-256-GCM sealing of vault payloads.

Sealed blob layout (standard base64 of the concatenation):
- 12 bytes: nonce, fresh per call
- N bytes: ciphertext, same length as the plaintext
- 16 bytes: GCM authentication tag

No associated data is bound. The blob is opaque to everything outside this
module.
"""
import base64
import binascii
import logging
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from lockbox.core.exceptions import (
    AuthenticationError,
    DecryptionError,
    EncryptionError,
    FormatError,
)
from lockbox.security.kdf import KEY_LEN
from lockbox.security.rng import RandomSource, resolve

logger = logging.getLogger(__name__)

NONCE_LEN = 12
TAG_LEN = 16


def _cipher(key: bytes, error_cls) -> AESGCM:
    if len(key) != KEY_LEN:
        raise error_cls(f"key must be {KEY_LEN} bytes, got {len(key)}")
    return AESGCM(key)


def encrypt(plaintext: bytes, key: bytes, rng: Optional[RandomSource] = None) -> str:
    """
    Seal ``plaintext`` under ``key`` and return the base64 blob.

    A new random nonce is drawn on every call, so sealing the same plaintext
    twice never gives the same output. Nonces must never repeat under one
    key; 96 random bits make a collision negligible.

    Raises:
        EncryptionError: if the key is not 32 bytes or the payload is too
            large for a single GCM message.
    """
    aead = _cipher(key, EncryptionError)
    nonce = resolve(rng).token_bytes(NONCE_LEN)
    try:
        ct = aead.encrypt(nonce, bytes(plaintext), None)
    except OverflowError as exc:
        raise EncryptionError("plaintext too large to seal") from exc

    logger.debug("sealed %d bytes", len(plaintext))
    return base64.b64encode(nonce + ct).decode("ascii")


def decrypt(sealed, key: bytes) -> bytes:
    """
    Open a blob produced by :func:`encrypt` and return the plaintext.

    Authentication is verified before anything is returned; no partial
    plaintext is ever released.

    Raises:
        FormatError: the blob is not valid base64 or is shorter than a nonce.
        AuthenticationError: the tag does not verify. A wrong key and a
            corrupted blob are deliberately reported the same way.
        DecryptionError: the key is not 32 bytes.
    """
    if isinstance(sealed, str):
        try:
            sealed = sealed.encode("ascii")
        except UnicodeEncodeError as exc:
            raise FormatError("sealed blob is not valid base64") from exc
    try:
        raw = base64.b64decode(sealed, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FormatError("sealed blob is not valid base64") from exc

    if len(raw) < NONCE_LEN:
        raise FormatError("sealed blob too short to contain nonce")

    aead = _cipher(key, DecryptionError)
    nonce, ct = raw[:NONCE_LEN], raw[NONCE_LEN:]
    try:
        plaintext = aead.decrypt(nonce, ct, None)
    except InvalidTag:
        raise AuthenticationError("authentication failed: wrong key or corrupted data") from None

    logger.debug("opened %d bytes", len(plaintext))
    return plaintext
