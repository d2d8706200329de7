"""Data models for lookup session state and the actions that change it."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from shouyutong.core.models import PersistedSignEntry, Provenance, Resolution, SignEntry


class Phase(str, Enum):
    """Where the current query is in its lifecycle."""

    IDLE = "idle"
    QUERYING = "querying"
    RESOLVED = "resolved"
    FAILED = "failed"


class ImageStatus(str, Enum):
    """Progress of the optional image phase of a resolved query."""

    NONE = "none"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class ImageSource(str, Enum):
    """Origin of the image currently held."""

    STORED = "stored"
    GENERATED = "generated"
    UPLOADED = "uploaded"


@dataclass(frozen=True)
class LookupState:
    """Immutable snapshot of one user's lookup session.

    New states are produced by :func:`shouyutong.session.state.reduce`;
    nothing mutates a state in place.

    Attributes
    ----------
    phase : Phase
        Lifecycle of the current query
    query : str
        Word of the current query
    entry : SignEntry | None
        Entry being shown (persisted, transient, or being edited)
    provenance : Provenance | None
        Whether ``entry`` came from the store or from generation.  None for
        an entry authored from the empty template.
    image : str | None
        Image payload currently held for the entry
    image_source : ImageSource | None
        Where ``image`` came from.  An uploaded image wins over a generated
        one until the entry is committed or the edit discarded.
    image_status : ImageStatus
        Progress of the image phase
    editing : bool
        Whether the entry is open for editing
    original_entry, original_image, original_image_source
        What the entry looked like when editing started, restored on discard
    request_id : int
        Id of the latest query request; older responses are dropped
    image_request_id : int
        Id of the pending image request, 0 if none
    error : str | None
        Failure message of the current query
    notice : str | None
        One-off message for the user (save result, image failure, ...)
    """

    phase: Phase = Phase.IDLE
    query: str = ""
    entry: SignEntry | None = None
    provenance: Provenance | None = None
    image: str | None = None
    image_source: ImageSource | None = None
    image_status: ImageStatus = ImageStatus.NONE
    editing: bool = False
    original_entry: SignEntry | None = None
    original_image: str | None = None
    original_image_source: ImageSource | None = None
    request_id: int = 0
    image_request_id: int = 0
    error: str | None = None
    notice: str | None = None

    @property
    def has_result(self) -> bool:
        return self.phase is Phase.RESOLVED and self.entry is not None

    @property
    def is_loading(self) -> bool:
        return self.phase is Phase.QUERYING

    @property
    def is_image_loading(self) -> bool:
        return self.image_status is ImageStatus.PENDING

    def __repr__(self) -> str:
        word = self.entry.word if self.entry is not None else None
        return (
            f"LookupState(phase={self.phase.value}, word={word!r}, "
            f"image={self.image_status.value}, editing={self.editing}, "
            f"request_id={self.request_id})"
        )


# -- Actions ----------------------------------------------------------------


@dataclass(frozen=True)
class QueryStarted:
    request_id: int
    query: str


@dataclass(frozen=True)
class QueryResolved:
    request_id: int
    resolution: Resolution


@dataclass(frozen=True)
class QueryFailed:
    request_id: int
    message: str


@dataclass(frozen=True)
class ImageRequested:
    request_id: int


@dataclass(frozen=True)
class ImageReady:
    request_id: int
    image: str


@dataclass(frozen=True)
class ImageFailed:
    request_id: int
    message: str


@dataclass(frozen=True)
class ImageUploaded:
    image: str


@dataclass(frozen=True)
class EditStarted:
    pass


@dataclass(frozen=True)
class FieldsPatched:
    patch: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EditDiscarded:
    pass


@dataclass(frozen=True)
class Committed:
    entry: PersistedSignEntry


@dataclass(frozen=True)
class CommitFailed:
    message: str


@dataclass(frozen=True)
class NewEntryStarted:
    request_id: int


@dataclass(frozen=True)
class EntryDeleted:
    word: str


@dataclass(frozen=True)
class NoticeShown:
    message: str


@dataclass(frozen=True)
class Reset:
    pass


Action = (
    QueryStarted
    | QueryResolved
    | QueryFailed
    | ImageRequested
    | ImageReady
    | ImageFailed
    | ImageUploaded
    | EditStarted
    | FieldsPatched
    | EditDiscarded
    | Committed
    | CommitFailed
    | NewEntryStarted
    | EntryDeleted
    | NoticeShown
    | Reset
)
