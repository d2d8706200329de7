"""Durable library of curated sign entries.

The library is a single JSON document kept under one key of a
:class:`~shouyutong.core.storage.KeyValueStorage`.  Its top level maps each
word to its persisted entry::

    {
      "你好": {"word": "你好", "pinyin": "nǐ hǎo", ..., "imageUrl": null,
               "updatedAt": 1718000000000}
    }

The same document is the export snapshot format, so an export can be
re-imported as-is.

Reads never fail: a missing or corrupt document reads as an empty library.
Mutations check the injected authorizer first, validate, then write the
whole document synchronously.  A failed write raises PersistenceError and
leaves the previously stored document in place.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from shouyutong.core.auth import Authorizer, allow_all
from shouyutong.core.errors import AuthorizationError, ImportFormatError, ValidationError
from shouyutong.core.models import Library, PersistedSignEntry, SignEntry
from shouyutong.core.storage import KeyValueStorage

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY_KEY = "shouyutong_library"


def _now_ms() -> int:
    return int(time.time() * 1000)


def parse_snapshot(content: str) -> Library:
    """Parse and validate a full library document.

    Every entry must validate and its word must be non-empty and equal to its
    key.  The document is rejected as a whole on the first problem.

    Args:
        content: JSON text of a snapshot

    Returns:
        The parsed library

    Raises:
        ImportFormatError: If the text is not a valid snapshot
    """
    try:
        raw = json.loads(content)
    except (TypeError, ValueError, RecursionError) as e:
        raise ImportFormatError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ImportFormatError("Snapshot must be an object mapping words to entries")

    library: Library = {}
    for key, value in raw.items():
        library[key] = _parse_entry(key, value)
    return library


def _parse_entry(key: str, value: Any) -> PersistedSignEntry:
    if not isinstance(value, dict):
        raise ImportFormatError(f"Entry {key!r} must be an object")
    try:
        entry = PersistedSignEntry.model_validate(value, strict=True)
    except PydanticValidationError as e:
        raise ImportFormatError(f"Entry {key!r} is malformed: {e}") from e

    if not entry.word.strip():
        raise ImportFormatError(f"Entry {key!r} has an empty word")
    if entry.word != entry.word.strip():
        raise ImportFormatError(f"Entry {key!r} has surrounding whitespace in its word")
    if entry.word != key:
        raise ImportFormatError(f"Entry key {key!r} does not match its word {entry.word!r}")
    return entry


def serialize_library(library: Library) -> str:
    """Render a library as readable JSON, keeping non-ASCII text as-is."""
    document = {word: entry.model_dump(by_alias=True) for word, entry in library.items()}
    return json.dumps(document, ensure_ascii=False, indent=2)


class EntryStore:
    """Keyed storage for curated sign entries.

    The store holds no state of its own: every call reads or rewrites the
    document in the substrate, so several store objects over the same
    substrate (for example one per request, each with its own authorizer)
    always agree.

    Args:
        storage: Persistence substrate
        key: Key of the library document within the substrate
        authorizer: Predicate consulted before every mutation
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = DEFAULT_LIBRARY_KEY,
        authorizer: Authorizer = allow_all,
    ):
        self.storage = storage
        self.key = key
        self.authorizer = authorizer

    # -- Reads --------------------------------------------------------------

    def get_library(self) -> Library:
        """Return the whole library; an absent or corrupt document reads as empty."""
        content = self.storage.get_item(self.key)
        if content is None:
            return {}

        try:
            raw = json.loads(content)
        except (ValueError, RecursionError) as e:
            logger.warning(f"Stored library is not valid JSON, treating as empty: {e}")
            return {}

        if not isinstance(raw, dict):
            logger.warning("Stored library has the wrong shape, treating as empty")
            return {}

        library: Library = {}
        for key, value in raw.items():
            # Skip individual bad entries rather than losing the whole library
            try:
                library[key] = _parse_entry(key, value)
            except ImportFormatError as e:
                logger.warning(f"Skipping stored entry: {e}")
        return library

    def get_word(self, word: str) -> PersistedSignEntry | None:
        """Exact, case-sensitive lookup by trimmed word."""
        return self.get_library().get(word.strip())

    def list_entries(self) -> list[PersistedSignEntry]:
        """Return all entries, most recently saved first."""
        return sorted(self.get_library().values(), key=lambda e: e.updated_at, reverse=True)

    def export_data(self) -> str:
        """Return a complete, re-importable snapshot of the library."""
        return serialize_library(self.get_library())

    # -- Mutations ----------------------------------------------------------

    def save_word(self, entry: SignEntry, image_url: str | None = None) -> PersistedSignEntry:
        """Insert or overwrite one entry.

        Args:
            entry: Entry to save.  If it is already a PersistedSignEntry and
                ``image_url`` is not given, its own image is kept.
            image_url: Image payload to store with the entry

        Returns:
            The entry as stored, with a fresh ``updated_at``

        Raises:
            AuthorizationError: If the authorizer denies the write
            ValidationError: If the word is empty after trimming
            PersistenceError: If the substrate rejects the write
        """
        self._require_authorized("save")

        word = entry.word.strip()
        if not word:
            raise ValidationError("Word must not be empty")

        if image_url is None and isinstance(entry, PersistedSignEntry):
            image_url = entry.image_url

        library = self.get_library()
        updated_at = _now_ms()
        previous = library.get(word)
        if previous is not None:
            updated_at = max(updated_at, previous.updated_at)

        stored = PersistedSignEntry.from_entry(
            entry.model_copy(update={"word": word}), image_url, updated_at
        )
        library[word] = stored
        self._write(library)
        logger.info(f"Saved entry: {word}")
        return stored

    def delete_word(self, word: str) -> bool:
        """Remove one entry. Returns False (and writes nothing) if it was absent."""
        self._require_authorized("delete")

        word = word.strip()
        library = self.get_library()
        if word not in library:
            logger.debug(f"Not in library: {word}")
            return False

        del library[word]
        self._write(library)
        logger.info(f"Deleted entry: {word}")
        return True

    def clear_all(self) -> None:
        """Empty the whole library. Irreversible."""
        self._require_authorized("clear")
        self.storage.remove_item(self.key)
        logger.info("Cleared library")

    def import_data(self, content: str) -> bool:
        """Replace the library with a snapshot.

        The snapshot is fully parsed and validated before anything is
        written, so a bad document never partially applies.

        Returns:
            True if the library was replaced, False if the snapshot was rejected
        """
        self._require_authorized("import")

        try:
            library = parse_snapshot(content)
        except ImportFormatError as e:
            logger.warning(f"Rejected library import: {e}")
            return False

        self._write(library)
        logger.info(f"Imported library with {len(library)} entries")
        return True

    # -- Internals ----------------------------------------------------------

    def _require_authorized(self, operation: str) -> None:
        if not self.authorizer():
            logger.warning(f"Unauthorized library {operation} refused")
            raise AuthorizationError(f"Not authorized to {operation} library entries")

    def _write(self, library: Library) -> None:
        self.storage.set_item(self.key, serialize_library(library))
