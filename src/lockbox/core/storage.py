"""
Vault file persistence

Structure of the vault document:
==============================
{
    "kdf":   {algo, version, salt, time, memory, parallelism, key_len},
    "salt":  "<base64, 16 bytes>",
    "vault": "<sealed blob: base64(nonce || ciphertext || tag)>"
}
==============================
> The salt is generated once in create() and reused by every save().
  Regenerating it without re-encrypting would orphan the vault.
> The kdf block is informational; derivation always uses the pinned constants.
> Writes go to a temp file in the same directory followed by os.replace so a
  crash never leaves a half-written vault.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional
import json
import logging
import os
import tempfile

from .exceptions import StorageError, VaultExistsError, VaultNotFoundError
from .models import VaultEntry
from .vault import decode_salt, decrypt_vault, encrypt_vault, generate_salt_b64
from ..security.kdf import kdf_params_to_dict

logger = logging.getLogger(__name__)


class VaultStore:
    """A single vault document on disk."""

    def __init__(self, path: Optional[str | Path] = None):
        self.path = (
            Path(path).expanduser() if path else Path.home() / ".lockbox" / "vault.json"
        )

    def exists(self) -> bool:
        return self.path.exists()

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def _read(self) -> dict:
        if not self.path.exists():
            raise VaultNotFoundError(f"No vault at {self.path}")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Could not read vault {self.path}: {exc}") from exc
        if not isinstance(doc, dict) or "salt" not in doc or "vault" not in doc:
            raise StorageError(f"Vault document {self.path} is missing salt or vault")
        return doc

    def _write(self, salt_b64: str, sealed: str) -> None:
        doc = {
            "kdf": kdf_params_to_dict(decode_salt(salt_b64)),
            "salt": salt_b64,
            "vault": sealed,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".vault-", suffix=".tmp")
        replaced = False
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2)
            os.replace(tmp_name, self.path)
            replaced = True
        except OSError as exc:
            raise StorageError(f"Could not write vault {self.path}: {exc}") from exc
        finally:
            if not replaced:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        logger.info("wrote vault %s", self.path)

    def read_salt(self) -> str:
        """Return the stored salt as base64 text."""
        return self._read()["salt"]

    # ------------------------------------------------------------------
    # Vault lifecycle
    # ------------------------------------------------------------------

    def create(self, passphrase: str) -> None:
        """
        Create a new, empty vault protected by ``passphrase``.

        This is the only place a salt is generated.
        """
        if self.path.exists():
            raise VaultExistsError(f"Vault already exists at {self.path}")
        salt_b64 = generate_salt_b64()
        self._write(salt_b64, encrypt_vault([], passphrase, salt_b64))

    def load(self, passphrase: str) -> List[VaultEntry]:
        doc = self._read()
        return decrypt_vault(doc["vault"], passphrase, doc["salt"])

    def save(self, entries: List[VaultEntry], passphrase: str) -> None:
        """
        Re-seal ``entries`` under the vault's existing salt.

        The passphrase must open the current vault first; otherwise
        AuthenticationError is raised and the file is left untouched.
        """
        doc = self._read()
        decrypt_vault(doc["vault"], passphrase, doc["salt"])
        self._write(doc["salt"], encrypt_vault(entries, passphrase, doc["salt"]))
