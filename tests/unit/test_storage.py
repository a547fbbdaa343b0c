"""Unit tests for VaultStore persistence."""

import base64
import json
from pathlib import Path

import pytest

from lockbox.core import storage as storage_mod
from lockbox.core.exceptions import (
    AuthenticationError,
    StorageError,
    VaultExistsError,
    VaultNotFoundError,
)
from lockbox.core.models import VaultEntry
from lockbox.core.storage import VaultStore

PASSPHRASE = "correct horse battery staple"


@pytest.fixture
def store(tmp_path: Path) -> VaultStore:
    return VaultStore(tmp_path / "nested" / "vault.json")


@pytest.fixture
def created(store: VaultStore) -> VaultStore:
    store.create(PASSPHRASE)
    return store


def test_default_path_is_under_home(monkeypatch, tmp_path):
    monkeypatch.setattr(storage_mod.Path, "home", lambda: tmp_path)
    assert VaultStore().path == tmp_path / ".lockbox" / "vault.json"


def test_create_writes_document(created: VaultStore):
    assert created.exists()
    doc = json.loads(created.path.read_text(encoding="utf-8"))

    assert set(doc) == {"kdf", "salt", "vault"}
    salt = base64.b64decode(doc["salt"], validate=True)
    assert len(salt) == 16
    assert doc["kdf"]["algo"] == "argon2id"
    assert doc["kdf"]["salt"] == salt.hex()


def test_create_does_not_store_plaintext_or_passphrase(created: VaultStore):
    created.save([VaultEntry.create("GitHub", "octocat", "super-secret-pw")], PASSPHRASE)
    text = created.path.read_text(encoding="utf-8")
    assert "super-secret-pw" not in text
    assert "octocat" not in text
    assert PASSPHRASE not in text


def test_create_new_vault_is_empty(created: VaultStore):
    assert created.load(PASSPHRASE) == []


def test_create_refuses_to_overwrite(created: VaultStore):
    with pytest.raises(VaultExistsError):
        created.create("another passphrase")


def test_save_and_load_roundtrip(created: VaultStore):
    entries = [VaultEntry.create("a", "u1", "p1"), VaultEntry.create("b", "u2", "p2", url="https://b")]
    created.save(entries, PASSPHRASE)
    assert created.load(PASSPHRASE) == entries


def test_save_reuses_salt(created: VaultStore):
    salt_before = created.read_salt()
    created.save([VaultEntry.create("a", "u", "p")], PASSPHRASE)
    created.save([], PASSPHRASE)
    assert created.read_salt() == salt_before


def test_save_produces_new_ciphertext(created: VaultStore):
    before = json.loads(created.path.read_text())["vault"]
    created.save([], PASSPHRASE)
    after = json.loads(created.path.read_text())["vault"]
    assert before != after


def test_load_wrong_passphrase(created: VaultStore):
    with pytest.raises(AuthenticationError):
        created.load("wrong password")


def test_save_wrong_passphrase_leaves_file_untouched(created: VaultStore):
    original = created.path.read_bytes()
    with pytest.raises(AuthenticationError):
        created.save([VaultEntry.create("a", "u", "p")], "wrong password")
    assert created.path.read_bytes() == original


def test_load_missing_vault(store: VaultStore):
    with pytest.raises(VaultNotFoundError):
        store.load(PASSPHRASE)


def test_save_missing_vault(store: VaultStore):
    with pytest.raises(VaultNotFoundError):
        store.save([], PASSPHRASE)


@pytest.mark.parametrize("content", ["{not json", "[]", '{"salt": "AAAA"}'])
def test_load_malformed_document(store: VaultStore, content):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(content, encoding="utf-8")
    with pytest.raises(StorageError):
        store.load(PASSPHRASE)


def test_tampered_vault_fails_authentication(created: VaultStore):
    doc = json.loads(created.path.read_text())
    raw = bytearray(base64.b64decode(doc["vault"]))
    raw[-1] ^= 0x01
    doc["vault"] = base64.b64encode(bytes(raw)).decode("ascii")
    created.path.write_text(json.dumps(doc))

    with pytest.raises(AuthenticationError):
        created.load(PASSPHRASE)


def test_failed_write_cleans_up_temp_file(created: VaultStore, monkeypatch):
    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(storage_mod.os, "replace", fail_replace)
    with pytest.raises(StorageError, match="disk full"):
        created.save([], PASSPHRASE)

    leftovers = [p.name for p in created.path.parent.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_serialization_error_cleans_up_temp_file(created: VaultStore, monkeypatch):
    def bad_dump(obj, fp, **kwargs):
        fp.write("{")
        raise TypeError("Object of type bytes is not JSON serializable")

    before = created.path.read_bytes()
    monkeypatch.setattr(storage_mod.json, "dump", bad_dump)
    with pytest.raises(TypeError):
        created.save([], PASSPHRASE)

    leftovers = [p.name for p in created.path.parent.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []
    assert created.path.read_bytes() == before
