"""Pairing key persistence.

One file per device holds the raw pairing key. Missing, unreadable or
implausibly short content all mean "not paired yet".
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from .errors import PersistenceWarning

_LOGGER = logging.getLogger(__name__)

EMPTY_TOKEN = ""
MIN_TOKEN_LENGTH = 11


def is_plausible_token(token: str | None) -> bool:
    """Return True when ``token`` looks like a key granted by a device."""
    return token is not None and len(token) >= MIN_TOKEN_LENGTH


def read_pairing_key(path: str | os.PathLike[str]) -> str:
    """Read the stored pairing key, or EMPTY_TOKEN when there is none."""
    try:
        raw = Path(path).read_bytes()
    except OSError as err:
        _LOGGER.debug("No pairing key at %s: %s", path, err)
        return EMPTY_TOKEN

    try:
        token = raw.decode("utf-8").strip()
    except UnicodeDecodeError:
        _LOGGER.warning("Ignoring undecodable pairing key at %s", path)
        return EMPTY_TOKEN

    if not is_plausible_token(token):
        _LOGGER.debug("Ignoring pairing key at %s (%d chars)", path, len(token))
        return EMPTY_TOKEN
    return token


def write_pairing_key(path: str | os.PathLike[str], token: str) -> None:
    """Persist ``token`` as a whole value.

    The key is written to a temporary file beside the target and moved into
    place, so readers never see a partial key.

    Raises:
        PersistenceWarning: If the key could not be written
    """
    target = Path(path)
    tmp_name: str | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "wb", dir=target.parent, prefix=f".{target.name}.", delete=False
        ) as handle:
            tmp_name = handle.name
            handle.write(token.encode("utf-8"))
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as err:
        raise PersistenceWarning(str(target), str(err)) from err
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                _LOGGER.debug("Could not remove temporary key file %s", tmp_name)


class CredentialStore:
    """Pairing key file for one device."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> str:
        return read_pairing_key(self._path)

    def write(self, token: str) -> None:
        write_pairing_key(self._path, token)
        _LOGGER.debug("Pairing key written to %s", self._path)
