"""Small helper to build a Lockbox app context for the TUI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import logging
import os

from lockbox.core.models import GeneratorOptions, VaultEntry
from lockbox.core.storage import VaultStore


DEFAULT_VAULT_PATH = Path.home() / ".lockbox" / "vault.json"


@dataclass
class AppContext:
    """Container for runtime objects the UI needs."""

    store: VaultStore
    options: GeneratorOptions = field(default_factory=GeneratorOptions)
    entries: List[VaultEntry] = field(default_factory=list)
    # Held only while the vault is unlocked; cleared by lock().
    passphrase: Optional[str] = None
    first_run: bool = False
    log_level: int = logging.WARNING
    log_file: Optional[Path] = None

    @property
    def unlocked(self) -> bool:
        return self.passphrase is not None

    def lock(self) -> None:
        self.passphrase = None
        self.entries = []


def _log_level(name: Optional[str]) -> int:
    if not name:
        return logging.WARNING
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def build_context(vault_path: Optional[str | Path] = None) -> AppContext:
    """
    Read configuration from the environment and build the app context.

    Environment variables:

    - ``LOCKBOX_VAULT_PATH``: vault document location
      (default ``~/.lockbox/vault.json``). An explicit ``vault_path``
      argument wins over the variable.
    - ``LOCKBOX_LOG_LEVEL``: logging level name (default ``WARNING``).
    - ``LOCKBOX_LOG_FILE``: write logs to this file instead of stderr.

    ``first_run`` is True when no vault document exists yet, so the UI
    can offer to create one instead of unlocking.
    """
    path = Path(vault_path or os.getenv("LOCKBOX_VAULT_PATH") or DEFAULT_VAULT_PATH).expanduser()
    store = VaultStore(path)
    log_file = os.getenv("LOCKBOX_LOG_FILE")

    return AppContext(
        store=store,
        first_run=not store.exists(),
        log_level=_log_level(os.getenv("LOCKBOX_LOG_LEVEL")),
        log_file=Path(log_file).expanduser() if log_file else None,
    )
