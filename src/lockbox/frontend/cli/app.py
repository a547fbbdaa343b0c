"""Textual app for Lockbox: password generator plus encrypted vault browser.

Start here with `python -m lockbox.frontend.cli.app`
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Static,
)

from lockbox.core.exceptions import (
    AuthenticationError,
    LockboxError,
    VaultExistsError,
)
from lockbox.core.models import GeneratorOptions, VaultEntry
from lockbox.frontend.cli.context import AppContext, build_context
from lockbox.frontend.cli.logging_config import configure_logging
from lockbox.security.generator import generate_password

logger = logging.getLogger(__name__)

WRONG_PASSPHRASE = "Wrong passphrase or corrupted vault"


def _format_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


# === Modal definitions ===


class UnlockModal(ModalScreen[Optional[str]]):
    """Ask for the master passphrase; asks twice when creating a vault."""

    def __init__(self, create: bool = False):
        super().__init__()
        self.creating = create

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            title = "Create Vault" if self.creating else "Unlock Vault"
            yield Static(title, classes="title")
            yield Label("Master passphrase")
            self.password_input = Input(placeholder="••••••", password=True, id="passphrase")
            yield self.password_input
            if self.creating:
                yield Label("Confirm passphrase")
                self.confirm_input = Input(placeholder="••••••", password=True, id="confirm")
                yield self.confirm_input
            with Horizontal():
                yield Button("Cancel", id="cancel")
                yield Button("Create" if self.creating else "Unlock", id="ok", variant="primary")

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.password_input)

    def _submit(self) -> None:
        password = self.password_input.value or ""
        if not password:
            self.app.notify("Passphrase cannot be empty", severity="error")
            return
        if self.creating and password != (self.confirm_input.value or ""):
            self.app.notify("Passphrases do not match", severity="error")
            return
        self.dismiss(password)

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)
        elif event.key == "enter":
            self._submit()


class EntryModal(ModalScreen[Optional[VaultEntry]]):
    """Modal to add a vault entry; the password field starts with a generated one."""

    def __init__(self, suggested_password: str = ""):
        super().__init__()
        self.suggested_password = suggested_password

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static("New Entry", classes="title")
            yield Label("Title")
            self.title_input = Input(placeholder="example.com", id="title")
            yield self.title_input
            yield Label("Username")
            self.username_input = Input(placeholder="alice@example.com", id="username")
            yield self.username_input
            yield Label("Password")
            self.password_input = Input(value=self.suggested_password, password=True, id="password")
            yield self.password_input
            yield Label("URL (optional)")
            self.url_input = Input(placeholder="https://", id="url")
            yield self.url_input
            yield Label("Notes (optional)")
            self.notes_input = Input(id="notes")
            yield self.notes_input
            with Horizontal():
                yield Button("Cancel", id="cancel")
                yield Button("Save (Enter)", id="ok", variant="primary")

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.title_input)

    def _submit(self) -> None:
        title = (self.title_input.value or "").strip()
        password = self.password_input.value or ""
        if not title:
            self.app.notify("Title is required", severity="error")
            return
        if not password:
            self.app.notify("Password is required", severity="error")
            return
        self.dismiss(
            VaultEntry.create(
                title=title,
                username=(self.username_input.value or "").strip(),
                password=password,
                url=(self.url_input.value or "").strip() or None,
                notes=(self.notes_input.value or "").strip() or None,
            )
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)
        elif event.key == "enter":
            self._submit()


class ErrorModal(ModalScreen[None]):
    """Modal for displaying error messages prominently."""

    def __init__(self, title: str, message: str):
        super().__init__()
        self.error_title = title
        self.error_message = message

    def compose(self) -> ComposeResult:  # pragma: no cover
        with Vertical(classes="dialog"):
            yield Static(self.error_title, classes="title")
            yield Static(self.error_message, markup=False)
            yield Static("")
            yield Button("OK", id="ok", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        self.dismiss(None)

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key in ("escape", "enter"):
            self.dismiss(None)


# === Main app ===


class LockboxApp(App):
    """Generator on the left, vault entries on the right."""

    TITLE = "Lockbox"

    CSS = """
    #generator { width: 40%; min-width: 32; border: heavy $surface; }
    #vault { border: heavy $surface; }
    .title { padding: 1 1; text-style: bold; }
    #output { padding: 1 1; text-style: bold; }
    #status { padding: 0 1 1 1; height: 3; color: $text-muted; }
    ModalScreen { align: center middle; background: rgba(0,0,0,0.45); }
    .dialog { width: 75%; height: 75%; padding: 1; border: heavy $surface; background: $boost; }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("g", "generate", "Generate"),
        ("u", "unlock", "Unlock"),
        ("a", "add_entry", "Add"),
        ("d", "delete_entry", "Delete"),
        ("l", "lock", "Lock"),
    ]

    def __init__(self, ctx: AppContext | None = None):
        self.ctx = ctx or build_context()
        super().__init__()

        self.table: DataTable | None = None
        self.status: Static | None = None
        self.password_output: Static | None = None
        self.row_keys: list[str] = []
        self.last_password: str = ""
        # Saves run one at a time; the newest snapshot waits here.
        self._saving = False
        self._pending_save: tuple[list[VaultEntry], str] | None = None
        # Bumped by action_lock so in-flight unlock results are dropped.
        self._lock_generation = 0

    def compose(self) -> ComposeResult:
        opts = self.ctx.options
        yield Header(show_clock=True)
        with Horizontal():
            with Vertical(id="generator"):
                yield Static("Password Options", classes="title")
                yield Label("Length")
                yield Input(value=str(opts.length), id="length")
                yield Checkbox("Lowercase (a-z)", opts.lower, id="lower")
                yield Checkbox("Uppercase (A-Z)", opts.upper, id="upper")
                yield Checkbox("Numbers (0-9)", opts.digits, id="digits")
                yield Checkbox("Symbols (!@#$...)", opts.symbols, id="symbols")
                yield Checkbox("Exclude similar (i, I, l, 1, L, o, 0, O)", opts.exclude_similar, id="exclude_similar")
                yield Label("Custom characters (optional)")
                yield Input(value=opts.custom_chars or "", placeholder="e.g. @#$%", id="custom")
                yield Button("Generate Password", id="generate", variant="primary")
                self.password_output = Static("", id="output", markup=False)
                yield self.password_output
            with Vertical(id="vault"):
                yield Static("Vault", classes="title")
                self.table = DataTable(id="entries")
                yield self.table
                self.status = Static("", id="status")
                yield self.status
        yield Footer()

    def on_mount(self) -> None:
        assert self.table is not None
        self.table.add_columns("Title", "Username", "URL", "Modified")
        self.table.cursor_type = "row"
        if self.ctx.first_run:
            self._set_status("No vault yet - press u to create one")
        else:
            self._set_status("Locked - press u to unlock")

    # ------------------------------------------------------------------
    # Generator
    # ------------------------------------------------------------------

    def read_options(self) -> Optional[GeneratorOptions]:
        """Collect generator options from the form; None if the length is invalid."""
        raw_length = self.query_one("#length", Input).value.strip()
        try:
            options = GeneratorOptions(
                length=int(raw_length),
                lower=self.query_one("#lower", Checkbox).value,
                upper=self.query_one("#upper", Checkbox).value,
                digits=self.query_one("#digits", Checkbox).value,
                symbols=self.query_one("#symbols", Checkbox).value,
                exclude_similar=self.query_one("#exclude_similar", Checkbox).value,
                custom_chars=self.query_one("#custom", Input).value or None,
            )
        except ValueError:
            self.notify(f"Invalid length: {raw_length!r}", severity="error")
            return None
        self.ctx.options = options
        return options

    def action_generate(self) -> None:
        options = self.read_options()
        if options is None:
            return
        self.last_password = generate_password(options)
        if self.password_output:
            self.password_output.update(self.last_password)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "generate":
            self.action_generate()

    # ------------------------------------------------------------------
    # Vault
    # ------------------------------------------------------------------

    def refresh_entries(self) -> None:
        if not self.table:
            return
        self.table.clear()
        self.row_keys = []
        for entry in sorted(self.ctx.entries, key=lambda e: e.title.lower()):
            self.table.add_row(
                Text(entry.title),
                Text(entry.username),
                Text(entry.url or ""),
                _format_ts(entry.modified_at),
                key=entry.id,
            )
            self.row_keys.append(entry.id)

    def _set_status(self, message: str) -> None:
        if self.status:
            self.status.update(message)

    def _selected_entry_id(self) -> Optional[str]:
        if not self.table or self.table.cursor_row is None:
            return None
        idx = self.table.cursor_row
        if 0 <= idx < len(self.row_keys):
            return self.row_keys[idx]
        return None

    def action_unlock(self) -> None:
        if self.ctx.unlocked:
            self._set_status("Vault already unlocked")
            return
        self.push_screen(UnlockModal(create=self.ctx.first_run), self.handle_unlock)

    def handle_unlock(self, passphrase: Optional[str]) -> None:
        if not passphrase:
            return
        self._set_status("Deriving key...")
        generation = self._lock_generation
        # Argon2id takes a noticeable moment; keep it off the UI thread.
        self.run_worker(
            lambda: self._unlock_worker(passphrase, generation),
            name="unlock_worker",
            group="unlock",
            exclusive=True,
            thread=True,
        )

    def _unlock_worker(self, passphrase: str, generation: int = 0) -> dict:
        store = self.ctx.store
        try:
            if self.ctx.first_run and not store.exists():
                try:
                    store.create(passphrase)
                    entries: list[VaultEntry] = []
                except VaultExistsError:
                    # Another process created the vault after we started.
                    entries = store.load(passphrase)
            else:
                entries = store.load(passphrase)
            return {
                "success": True,
                "generation": generation,
                "passphrase": passphrase,
                "entries": entries,
            }
        except AuthenticationError:
            return {"success": False, "generation": generation, "error": WRONG_PASSPHRASE}
        except LockboxError as exc:
            logger.warning("unlock failed: %s", type(exc).__name__)
            return {"success": False, "generation": generation, "error": str(exc)}

    def action_add_entry(self) -> None:
        if not self.ctx.unlocked:
            self._set_status("Unlock the vault first")
            return
        suggested = self.last_password
        if not suggested:
            options = self.read_options()
            suggested = generate_password(options) if options else ""
        self.push_screen(EntryModal(suggested), self.handle_add_entry)

    def handle_add_entry(self, entry: Optional[VaultEntry]) -> None:
        if entry is None:
            return
        self.ctx.entries.append(entry)
        self.refresh_entries()
        self._save()

    def action_delete_entry(self) -> None:
        if not self.ctx.unlocked:
            return
        entry_id = self._selected_entry_id()
        if not entry_id:
            return
        self.ctx.entries = [e for e in self.ctx.entries if e.id != entry_id]
        self.refresh_entries()
        self._save()

    def _save(self) -> None:
        snapshot = (list(self.ctx.entries), self.ctx.passphrase)
        self._set_status("Saving...")
        if self._saving:
            # Replaces any older queued snapshot; only the latest state matters.
            self._pending_save = snapshot
            return
        self._start_save(*snapshot)

    def _start_save(self, entries: list[VaultEntry], passphrase: str) -> None:
        self._saving = True
        self.run_worker(
            lambda: self._save_worker(entries, passphrase),
            name="save_worker",
            group="save",
            thread=True,
        )

    def _save_finished(self) -> bool:
        """Start the queued save, if any. Returns True when one was started."""
        self._saving = False
        if self._pending_save is None:
            return False
        entries, passphrase = self._pending_save
        self._pending_save = None
        self._start_save(entries, passphrase)
        return True

    def _save_worker(self, entries: list[VaultEntry], passphrase: str) -> dict:
        try:
            self.ctx.store.save(entries, passphrase)
            return {"success": True, "count": len(entries)}
        except AuthenticationError:
            return {"success": False, "error": WRONG_PASSPHRASE}
        except LockboxError as exc:
            return {"success": False, "error": str(exc)}

    def action_lock(self) -> None:
        self._lock_generation += 1
        self.ctx.lock()
        self.refresh_entries()
        self._set_status("Locked - press u to unlock")

    def on_worker_state_changed(self, event) -> None:
        """Handle worker completion to update UI."""
        if not event.worker.is_finished:
            return

        worker_name = event.worker.name
        result = event.worker.result

        # Runs for errored and cancelled saves too, so the queue never stalls.
        chained = worker_name == "save_worker" and self._save_finished()

        if result is None:
            return

        if worker_name == "unlock_worker":
            if self.ctx.first_run and self.ctx.store.exists():
                self.ctx.first_run = False
            if result["generation"] != self._lock_generation:
                logger.info("dropping unlock result that finished after lock")
                return
            if not result["success"]:
                self._set_status("Locked")
                self.push_screen(ErrorModal("Unlock Failed", result["error"]))
                return
            self.ctx.passphrase = result["passphrase"]
            self.ctx.entries = result["entries"]
            self.ctx.first_run = False
            self.refresh_entries()
            self._set_status(f"Unlocked - {len(self.ctx.entries)} entries")

        elif worker_name == "save_worker":
            if not result["success"]:
                self.push_screen(ErrorModal("Save Failed", result["error"]))
                self._set_status("Save failed")
                return
            if not chained:
                self._set_status(f"Saved {result['count']} entries")


def main() -> None:
    """Run the Lockbox Textual application."""
    ctx = build_context()
    configure_logging(ctx.log_level, ctx.log_file)
    LockboxApp(ctx).run()


if __name__ == "__main__":  # pragma: no cover
    main()
