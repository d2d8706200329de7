"""Persistence substrates for the entry store.

A substrate is a small synchronous key-value store of text documents,
the server-side counterpart of browser ``localStorage``:

- ``get_item(key)`` returns the stored text or ``None``
- ``set_item(key, value)`` writes durably before returning
- ``remove_item(key)`` deletes the key if present

Reads are forgiving (an unreadable document reads as absent); writes raise
:class:`~shouyutong.core.errors.PersistenceError` so the caller can tell the
user the change did not stick.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from shouyutong.core.errors import PersistenceError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    """Interface every persistence substrate implements."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class FileStorage:
    """Directory-backed substrate storing one UTF-8 file per key.

    Writes go to a temporary file in the same directory and are moved into
    place with :func:`os.replace`, so a crash mid-write never leaves a
    truncated document behind.
    """

    def __init__(self, root: Path):
        """Initialize the substrate.

        Args:
            root: Directory holding the key files (created if missing)
        """
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized file storage at {self.root}")

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading storage key {key}: {e}")
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error(f"Error writing storage key {key}: {e}")
            raise PersistenceError(f"Could not write {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Error removing storage key {key}: {e}")
            raise PersistenceError(f"Could not remove {key}: {e}") from e


class MemoryStorage:
    """Process-local substrate.

    Args:
        quota: Optional maximum total number of characters across all keys.
            A write that would exceed it raises PersistenceError, the same
            way a full browser storage quota rejects ``setItem``.
    """

    def __init__(self, quota: int | None = None):
        self.quota = quota
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota is not None:
            used = sum(len(v) for k, v in self._items.items() if k != key)
            if used + len(value) > self.quota:
                raise PersistenceError(
                    f"Storage quota exceeded ({used + len(value)} > {self.quota} characters)"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
