"""Security helpers: KDF, authenticated encryption and password generation for Lockbox.

This package provides:
- Argon2id-based vault key derivation with pinned parameters
- AES-256-GCM sealing of payloads into self-describing base64 blobs
- Secure constrained-charset password generation
"""

from .kdf import generate_salt, derive_key, kdf_params_to_dict
from .crypto import encrypt, decrypt
from .generator import build_pool, generate_password
from .rng import RandomSource, SystemRandomSource

__all__ = [
    "generate_salt",
    "derive_key",
    "kdf_params_to_dict",
    "encrypt",
    "decrypt",
    "build_pool",
    "generate_password",
    "RandomSource",
    "SystemRandomSource",
]
