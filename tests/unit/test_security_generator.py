"""Unit tests for the secure password generator."""

import pytest

from lockbox.core.models import GeneratorOptions
from lockbox.security import generator
from lockbox.security.generator import (
    DIGITS,
    FALLBACK_POOL,
    LOWERCASE,
    SIMILAR_CHARS,
    SYMBOLS,
    UPPERCASE,
    build_pool,
    generate_password,
)

ALL_OFF = dict(upper=False, lower=False, digits=False, symbols=False)


class CyclingSource:
    """Deterministic RandomSource returning 0, 1, 2, ... modulo n."""

    def __init__(self):
        self.calls = []
        self.counter = 0

    def token_bytes(self, n):
        return b"\x00" * n

    def randbelow(self, n):
        self.calls.append(n)
        value = self.counter % n
        self.counter += 1
        return value


# --- Pool assembly ---

def test_default_pool_order():
    pool = build_pool(GeneratorOptions())
    assert pool == LOWERCASE + UPPERCASE + DIGITS + SYMBOLS


def test_custom_chars_are_prepended():
    pool = build_pool(GeneratorOptions(custom_chars="€£", digits=False, symbols=False, upper=False))
    assert pool == "€£" + LOWERCASE


def test_duplicates_keep_first_position():
    pool = build_pool(GeneratorOptions(custom_chars="zza", upper=False, digits=False, symbols=False))
    assert pool.startswith("za")
    assert len(pool) == len(set(pool)) == 26


def test_exclude_similar_removes_denylist():
    pool = build_pool(GeneratorOptions(exclude_similar=True))
    for ch in "lI1oO0":
        assert ch not in pool
    assert not set(SIMILAR_CHARS) & set(pool)
    assert "a" in pool and "Z" in pool and "9" in pool


def test_exclude_similar_applies_to_custom_chars():
    pool = build_pool(GeneratorOptions(custom_chars="0Ox", exclude_similar=True, **ALL_OFF))
    assert pool == "x"


def test_all_off_falls_back_to_alphanumeric():
    assert build_pool(GeneratorOptions(**ALL_OFF)) == FALLBACK_POOL


def test_empty_custom_chars_falls_back():
    assert build_pool(GeneratorOptions(custom_chars="", **ALL_OFF)) == FALLBACK_POOL


def test_exclusion_emptying_the_pool_falls_back():
    options = GeneratorOptions(custom_chars="lIo", exclude_similar=True, **ALL_OFF)
    assert build_pool(options) == FALLBACK_POOL


# --- Generation ---

@pytest.mark.parametrize("length", [0, 1, 4, 16, 64, 257])
def test_generate_length(length):
    assert len(generate_password(GeneratorOptions(length=length))) == length


def test_generate_zero_length_is_empty():
    assert generate_password(GeneratorOptions(length=0)) == ""


def test_generate_default_options():
    password = generate_password()
    assert len(password) == 16
    assert set(password) <= set(build_pool(GeneratorOptions()))


@pytest.mark.parametrize(
    "options",
    [
        GeneratorOptions(length=200),
        GeneratorOptions(length=200, upper=False, symbols=False),
        GeneratorOptions(length=200, exclude_similar=True),
        GeneratorOptions(length=200, custom_chars="αβγ", **ALL_OFF),
        GeneratorOptions(length=200, digits=False, lower=False, upper=False),
    ],
)
def test_generate_charset_containment(options):
    password = generate_password(options)
    assert set(password) <= set(build_pool(options))


def test_generate_custom_chars_only():
    """length 10, every class off, custom "ABC" -> only A, B or C."""
    password = generate_password(GeneratorOptions(length=10, custom_chars="ABC", **ALL_OFF))
    assert len(password) == 10
    assert all(c in "ABC" for c in password)


def test_generate_fallback_when_everything_off():
    password = generate_password(GeneratorOptions(length=10, custom_chars=None, **ALL_OFF))
    assert len(password) == 10
    assert all(c in FALLBACK_POOL for c in password)


def test_generate_exclude_similar_never_emits_denylist():
    password = generate_password(GeneratorOptions(length=500, exclude_similar=True))
    assert not set(password) & set(SIMILAR_CHARS)


def test_generate_draws_over_whole_pool_with_injected_source():
    source = CyclingSource()
    options = GeneratorOptions(length=5, custom_chars="XYZ", **ALL_OFF)

    assert generate_password(options, rng=source) == "XYZXY"
    assert source.calls == [3] * 5


def test_generate_uses_system_source_by_default(monkeypatch):
    calls = []

    def fake_randbelow(n):
        calls.append(n)
        return n - 1

    monkeypatch.setattr(generator.resolve(None), "randbelow", fake_randbelow)
    password = generate_password(GeneratorOptions(length=3, custom_chars="ab", **ALL_OFF))

    assert password == "bbb"
    assert calls == [2, 2, 2]


def test_generate_covers_every_pool_character():
    """With enough draws every character of a small pool shows up."""
    options = GeneratorOptions(length=2000, custom_chars="abcd", **ALL_OFF)
    assert set(generate_password(options)) == set("abcd")
