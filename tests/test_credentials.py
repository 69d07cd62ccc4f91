"""Tests for pairing key persistence."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from lgwebos_core.credentials import (
    CredentialStore,
    is_plausible_token,
    read_pairing_key,
    write_pairing_key,
)
from lgwebos_core.errors import PersistenceWarning


def test_roundtrip(tmp_path: Path):
    store = CredentialStore(tmp_path / "keys" / "tv")
    store.write("abc123xyz987")
    assert store.read() == "abc123xyz987"


def test_missing_file(tmp_path: Path):
    assert read_pairing_key(tmp_path / "absent") == ""


def test_short_file(tmp_path: Path):
    path = tmp_path / "short"
    path.write_text("abc")
    assert read_pairing_key(path) == ""


def test_whitespace_stripped(tmp_path: Path):
    path = tmp_path / "key"
    path.write_text("abc123xyz987\n")
    assert read_pairing_key(path) == "abc123xyz987"


def test_undecodable_file(tmp_path: Path):
    path = tmp_path / "key"
    path.write_bytes(b"abc123\xff\xfexyz987-corrupt")
    assert read_pairing_key(path) == ""


def test_overwrite_replaces_whole_value(tmp_path: Path):
    path = tmp_path / "key"
    write_pairing_key(path, "a-much-longer-first-key")
    write_pairing_key(path, "second-key-1")
    assert path.read_text() == "second-key-1"
    assert [p.name for p in tmp_path.iterdir()] == ["key"]


def test_write_failure(tmp_path: Path):
    with patch("lgwebos_core.credentials.os.replace", side_effect=OSError("read-only")):
        with pytest.raises(PersistenceWarning, match="read-only"):
            write_pairing_key(tmp_path / "key", "abc123xyz987")
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        (None, False),
        ("", False),
        ("0123456789", False),
        ("0123456789a", True),
    ],
)
def test_is_plausible_token(token, expected):
    assert is_plausible_token(token) is expected
