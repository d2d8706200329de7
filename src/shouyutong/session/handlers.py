"""Lookup session handlers.

:class:`LookupSession` is the update cycle of one user's session: each
handler calls the orchestrator, turns the outcome into an action and feeds
it through :func:`~shouyutong.session.state.reduce`.  Expected failures
(generation errors, validation, refused or failed writes) end up in
``state.error`` or ``state.notice``; they never escape a handler.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Mapping

from shouyutong.core.errors import (
    AuthorizationError,
    GenerationError,
    PersistenceError,
    ValidationError,
)
from shouyutong.core.models import EditableField, Provenance, Resolution
from shouyutong.core.orchestrator import SignOrchestrator
from shouyutong.session.models import (
    Action,
    CommitFailed,
    Committed,
    EditDiscarded,
    EditStarted,
    EntryDeleted,
    FieldsPatched,
    ImageFailed,
    ImageReady,
    ImageRequested,
    ImageUploaded,
    LookupState,
    NewEntryStarted,
    NoticeShown,
    QueryFailed,
    QueryResolved,
    QueryStarted,
    Reset,
)
from shouyutong.session.state import reduce
from shouyutong.session.validation import normalize_patch

logger = logging.getLogger(__name__)

LOOKUP_FAILED_MESSAGE = "Sorry, no sign information could be found for this word. Please try another word."
IMAGE_FAILED_MESSAGE = "Illustration generation failed, please try again later."


class LookupSession:
    """Drive one user's lookup session.

    Args:
        orchestrator: Lookup and generation service
        state: Initial state (defaults to idle)
    """

    def __init__(self, orchestrator: SignOrchestrator, state: LookupState | None = None) -> None:
        self.orchestrator = orchestrator
        self.state = state or LookupState()
        self._request_ids = itertools.count(self.state.request_id + 1)

    def dispatch(self, action: Action) -> LookupState:
        self.state = reduce(self.state, action)
        return self.state

    def _next_request_id(self) -> int:
        return next(self._request_ids)

    # -- Query phase --------------------------------------------------------

    async def search(self, word: str) -> LookupState:
        """Resolve a word and show the result.

        An empty query does nothing.  If another search starts before this
        one finishes, this one's result is dropped when it arrives.
        """
        word = word.strip()
        if not word:
            return self.state

        request_id = self._next_request_id()
        self.dispatch(QueryStarted(request_id=request_id, query=word))

        try:
            resolution = await self.orchestrator.resolve(word)
        except GenerationError as e:
            logger.error(f"Lookup failed for '{word}': {e}")
            return self.dispatch(QueryFailed(request_id=request_id, message=LOOKUP_FAILED_MESSAGE))

        return self.dispatch(QueryResolved(request_id=request_id, resolution=resolution))

    def open_saved(self, word: str) -> LookupState:
        """Show a library entry directly, without generation."""
        entry = self.orchestrator.store.get_word(word)
        if entry is None:
            return self.dispatch(NoticeShown(f"'{word.strip()}' is not in the library"))

        request_id = self._next_request_id()
        self.dispatch(QueryStarted(request_id=request_id, query=entry.word))
        resolution = Resolution(entry=entry, image=entry.image_url, provenance=Provenance.STORE)
        return self.dispatch(QueryResolved(request_id=request_id, resolution=resolution))

    # -- Image phase --------------------------------------------------------

    async def request_image(self) -> LookupState:
        """Generate an illustration for the current result.

        A failure keeps the text result and can simply be retried.
        """
        if not self.state.has_result:
            return self.state

        entry = self.state.entry
        request_id = self._next_request_id()
        self.dispatch(ImageRequested(request_id=request_id))

        try:
            image = await self.orchestrator.generate_image(entry.word, entry.movement)
        except (GenerationError, ValidationError) as e:
            logger.error(f"Image generation failed for '{entry.word}': {e}")
            return self.dispatch(ImageFailed(request_id=request_id, message=IMAGE_FAILED_MESSAGE))

        return self.dispatch(ImageReady(request_id=request_id, image=image))

    def upload_image(self, data: bytes) -> LookupState:
        """Use a user-supplied image instead of a generated one."""
        if self.state.entry is None:
            return self.state
        try:
            image = self.orchestrator.upload_image(data)
        except ValidationError as e:
            return self.dispatch(NoticeShown(str(e)))
        return self.dispatch(ImageUploaded(image=image))

    # -- Editing ------------------------------------------------------------

    def new_entry(self) -> LookupState:
        """Open the empty template for authoring an entry from scratch."""
        return self.dispatch(NewEntryStarted(request_id=self._next_request_id()))

    def start_edit(self) -> LookupState:
        return self.dispatch(EditStarted())

    def patch(self, fields: Mapping[str | EditableField, object]) -> LookupState:
        """Change some fields of the entry being edited."""
        try:
            normalized = normalize_patch(fields)
        except ValidationError as e:
            return self.dispatch(NoticeShown(str(e)))
        return self.dispatch(FieldsPatched(patch=normalized))

    def discard(self) -> LookupState:
        return self.dispatch(EditDiscarded())

    def save(self) -> LookupState:
        """Commit the current entry and held image to the library."""
        entry = self.state.entry
        if entry is None:
            return self.state
        try:
            stored = self.orchestrator.commit(entry, self.state.image)
        except (ValidationError, AuthorizationError, PersistenceError) as e:
            logger.warning(f"Save failed for '{entry.word}': {e}")
            return self.dispatch(CommitFailed(message=str(e)))
        return self.dispatch(Committed(entry=stored))

    def delete(self, word: str) -> LookupState:
        """Remove a library entry; closes it if it is the one shown."""
        try:
            removed = self.orchestrator.store.delete_word(word)
        except (AuthorizationError, PersistenceError) as e:
            return self.dispatch(NoticeShown(str(e)))
        if not removed:
            return self.dispatch(NoticeShown(f"'{word.strip()}' is not in the library"))
        return self.dispatch(EntryDeleted(word=word.strip()))

    def reset(self) -> LookupState:
        return self.dispatch(Reset())
