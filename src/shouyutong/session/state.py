"""Lookup session state transitions.

:func:`reduce` is the only place where session state changes.  It takes the
current :class:`~shouyutong.session.models.LookupState` and an action and
returns the next state, without side effects.  The services that produce
the actions (store, orchestrator) stay free of session state.

Stale responses
---------------
Every query and image request carries a request id.  A response whose id
is no longer the current one belongs to a superseded request (the user
searched for another word meanwhile) and is dropped, so a slow reply can
never overwrite the result of a newer query.
"""

from __future__ import annotations

import dataclasses
import logging

from shouyutong.core.models import Provenance, SignEntry
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
    ImageSource,
    ImageStatus,
    ImageUploaded,
    LookupState,
    NewEntryStarted,
    NoticeShown,
    Phase,
    QueryFailed,
    QueryResolved,
    QueryStarted,
    Reset,
)
from shouyutong.session.validation import apply_patch

logger = logging.getLogger(__name__)


def _idle(state: LookupState) -> LookupState:
    # Keep the request counter so late responses stay recognisably stale
    return LookupState(request_id=state.request_id)


def _image_status(image: str | None) -> ImageStatus:
    return ImageStatus.READY if image else ImageStatus.NONE


def reduce(state: LookupState, action: Action) -> LookupState:
    """Return the state that follows ``state`` after ``action``.

    Args:
        state: Current session state
        action: What happened

    Returns:
        The next state (``state`` itself when the action does not apply)

    Raises:
        ValidationError: If a FieldsPatched action names an unknown field
    """
    replace = dataclasses.replace

    if isinstance(action, QueryStarted):
        return LookupState(
            phase=Phase.QUERYING,
            query=action.query,
            request_id=action.request_id,
        )

    if isinstance(action, QueryResolved):
        if action.request_id != state.request_id:
            logger.debug(f"Dropping stale lookup response {action.request_id}")
            return state
        resolution = action.resolution
        return replace(
            state,
            phase=Phase.RESOLVED,
            entry=resolution.entry,
            provenance=resolution.provenance,
            image=resolution.image,
            image_source=ImageSource.STORED if resolution.image else None,
            image_status=_image_status(resolution.image),
            editing=False,
            error=None,
        )

    if isinstance(action, QueryFailed):
        if action.request_id != state.request_id:
            logger.debug(f"Dropping stale lookup failure {action.request_id}")
            return state
        return replace(state, phase=Phase.FAILED, entry=None, error=action.message)

    if isinstance(action, ImageRequested):
        if not state.has_result:
            return state
        return replace(
            state,
            image_status=ImageStatus.PENDING,
            image_request_id=action.request_id,
            notice=None,
        )

    if isinstance(action, ImageReady):
        if not state.image_request_id or action.request_id != state.image_request_id:
            logger.debug(f"Dropping stale image response {action.request_id}")
            return state
        if state.image_source is ImageSource.UPLOADED:
            # An uploaded image wins over a generated one
            return replace(state, image_status=ImageStatus.READY, image_request_id=0)
        return replace(
            state,
            image=action.image,
            image_source=ImageSource.GENERATED,
            image_status=ImageStatus.READY,
            image_request_id=0,
        )

    if isinstance(action, ImageFailed):
        if not state.image_request_id or action.request_id != state.image_request_id:
            return state
        return replace(
            state,
            image_status=ImageStatus.READY if state.image else ImageStatus.FAILED,
            image_request_id=0,
            notice=action.message,
        )

    if isinstance(action, ImageUploaded):
        if state.entry is None:
            return state
        return replace(
            state,
            image=action.image,
            image_source=ImageSource.UPLOADED,
            image_status=ImageStatus.READY,
            image_request_id=0,
        )

    if isinstance(action, EditStarted):
        if not state.has_result or state.editing:
            return state
        return replace(
            state,
            editing=True,
            original_entry=state.entry,
            original_image=state.image,
            original_image_source=state.image_source,
            notice=None,
        )

    if isinstance(action, FieldsPatched):
        if not state.editing or state.entry is None:
            return state
        return replace(state, entry=apply_patch(state.entry, action.patch))

    if isinstance(action, EditDiscarded):
        if not state.editing:
            return state
        if state.original_entry is None or state.provenance is None:
            # Nothing to go back to for an entry authored from scratch
            return _idle(state)
        return replace(
            state,
            entry=state.original_entry,
            image=state.original_image,
            image_source=state.original_image_source,
            image_status=_image_status(state.original_image),
            image_request_id=0,
            editing=False,
            original_entry=None,
            original_image=None,
            original_image_source=None,
        )

    if isinstance(action, Committed):
        entry = action.entry
        return replace(
            state,
            phase=Phase.RESOLVED,
            query=entry.word,
            entry=entry,
            provenance=Provenance.STORE,
            image=entry.image_url,
            image_source=ImageSource.STORED if entry.image_url else None,
            image_status=_image_status(entry.image_url),
            image_request_id=0,
            editing=False,
            original_entry=None,
            original_image=None,
            original_image_source=None,
            error=None,
            notice=f"Saved '{entry.word}' to the library",
        )

    if isinstance(action, CommitFailed):
        return replace(state, notice=action.message)

    if isinstance(action, NewEntryStarted):
        return LookupState(
            phase=Phase.RESOLVED,
            entry=SignEntry(),
            editing=True,
            request_id=action.request_id,
        )

    if isinstance(action, EntryDeleted):
        if state.entry is not None and state.entry.word == action.word:
            return replace(_idle(state), notice=f"Deleted '{action.word}'")
        return replace(state, notice=f"Deleted '{action.word}'")

    if isinstance(action, NoticeShown):
        return replace(state, notice=action.message)

    if isinstance(action, Reset):
        return _idle(state)

    raise TypeError(f"Unknown action: {action!r}")
