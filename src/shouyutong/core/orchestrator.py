"""Lookup and generation orchestration.

:class:`SignOrchestrator` decides where the content for a word comes from:

1. **Store first** - a curated entry in the library is authoritative and is
   returned as-is, together with its stored image.  The generator is never
   called for it, however old the entry is.
2. **Generate on miss** - otherwise the text generator is awaited and a
   transient entry is returned.  Nothing is written to the store.
3. **Image on request** - illustrations are slow and costly, so they are
   only produced when :meth:`SignOrchestrator.generate_image` is called
   explicitly.  A user-supplied upload can take their place.
4. **Commit** - :meth:`SignOrchestrator.commit` is the only path that writes
   to the store; it merges the edited entry with whatever image is held.

The orchestrator keeps no per-query state.  Which result is current, whether
an image is pending and so on is tracked by :mod:`shouyutong.session`.
"""

from __future__ import annotations

import logging

from shouyutong.core.errors import GenerationError, ValidationError
from shouyutong.core.generation import SignGenerator
from shouyutong.core.images import DEFAULT_MAX_SIDE, encode_upload
from shouyutong.core.models import PersistedSignEntry, Provenance, Resolution, SignEntry
from shouyutong.core.store import EntryStore

logger = logging.getLogger(__name__)


class SignOrchestrator:
    """Resolve words against the store and the generator.

    Args:
        store: Library of curated entries
        generator: Text and image provider
        max_upload_side: Longest edge kept for uploaded images
    """

    def __init__(
        self,
        store: EntryStore,
        generator: SignGenerator,
        max_upload_side: int = DEFAULT_MAX_SIDE,
    ) -> None:
        self.store = store
        self.generator = generator
        self.max_upload_side = max_upload_side

    async def resolve(self, word: str) -> Resolution | None:
        """Look a word up, generating its description on a store miss.

        Args:
            word: Query text; surrounding whitespace is ignored

        Returns:
            The resolution, or None when the query is empty

        Raises:
            GenerationError: If the word is not stored and generation fails
        """
        word = word.strip()
        if not word:
            return None

        stored = self.store.get_word(word)
        if stored is not None:
            logger.info(f"Resolved '{word}' from library")
            return Resolution(entry=stored, image=stored.image_url, provenance=Provenance.STORE)

        try:
            entry = await self.generator.text_for(word)
        except GenerationError:
            logger.warning(f"Generation failed for '{word}'")
            raise

        logger.info(f"Resolved '{word}' by generation")
        return Resolution(entry=entry, image=None, provenance=Provenance.GENERATED)

    async def generate_image(self, word: str, movement: str) -> str:
        """Generate an illustration for an entry that already has text.

        Raises:
            ValidationError: If the word is empty
            GenerationError: If the provider fails; safe to retry
        """
        word = word.strip()
        if not word:
            raise ValidationError("Cannot illustrate an entry without a word")
        return await self.generator.image_for(word, movement)

    def upload_image(self, data: bytes) -> str:
        """Accept a user-supplied image in place of a generated one.

        Raises:
            ValidationError: If the bytes are not a supported image
        """
        return encode_upload(data, max_side=self.max_upload_side)

    def commit(self, entry: SignEntry, image: str | None) -> PersistedSignEntry:
        """Save an edited entry together with the image currently held.

        Raises:
            ValidationError: If the word is empty (nothing is written)
            AuthorizationError: If the store refuses the write
            PersistenceError: If the substrate rejects the write
        """
        if not entry.word.strip():
            raise ValidationError("Word must not be empty")
        return self.store.save_word(entry.content(), image_url=image)

    @staticmethod
    def new_entry() -> SignEntry:
        """Return the empty template used to author an entry from scratch."""
        return SignEntry()
