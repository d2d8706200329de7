"""Data models for sign entries and lookup results.

Sign entries are Pydantic models so the same classes validate provider
responses, library snapshots and API payloads.  Field names are snake_case
in Python and camelCase on the wire (``handShape``, ``imageUrl``,
``updatedAt``), which keeps exported snapshots compatible with the
original browser storage format.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Provenance(str, Enum):
    """Where a returned entry came from."""

    STORE = "store"
    GENERATED = "generated"


class EditableField(str, Enum):
    """Fields of a sign entry a curator may edit."""

    WORD = "word"
    PINYIN = "pinyin"
    DEFINITION = "definition"
    HAND_SHAPE = "hand_shape"
    MOVEMENT = "movement"
    LOCATION = "location"
    TIPS = "tips"


class SignEntry(BaseModel):
    """Structured description of how a word is signed.

    Every text field tolerates an empty string.  Only ``word`` carries
    meaning as an identity, and its non-emptiness is enforced by the store
    rather than here, so that the empty "add new" template is representable.

    Attributes:
        word: The looked-up word, unique key within a library.
        pinyin: Pronunciation.
        definition: Meaning of the word.
        hand_shape: Hand shape used for the sign.
        movement: Step-by-step movement description.
        location: Where in space the sign is performed.
        tips: Learning tips and common mistakes.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    word: str = ""
    pinyin: str = ""
    definition: str = ""
    hand_shape: str = ""
    movement: str = ""
    location: str = ""
    tips: str = ""

    def content(self) -> SignEntry:
        """Return only the sign description fields, dropping storage metadata."""
        return SignEntry.model_validate(self.model_dump(include=CONTENT_FIELDS))


class PersistedSignEntry(SignEntry):
    """A sign entry saved in the library.

    Attributes:
        image_url: Embedded image payload (``data:`` URL) or ``None``.
        updated_at: Save time in milliseconds since the epoch.  Used only to
            order listings, never to arbitrate between writers.
    """

    image_url: str | None = None
    updated_at: int = Field(..., ge=0)

    @classmethod
    def from_entry(
        cls, entry: SignEntry, image_url: str | None, updated_at: int
    ) -> PersistedSignEntry:
        """Merge a sign description with an image and a save timestamp."""
        return cls(
            **entry.content().model_dump(),
            image_url=image_url,
            updated_at=updated_at,
        )


CONTENT_FIELDS = frozenset(field.value for field in EditableField)

# word -> persisted entry; the key always equals entry.word
Library = dict[str, PersistedSignEntry]


@dataclass(frozen=True)
class Resolution:
    """Result of resolving one query.

    Attributes:
        entry: The sign description (persisted or transient).
        image: Image payload held for this result, if any.
        provenance: Whether the entry came from the store or the generator.
    """

    entry: SignEntry
    image: str | None
    provenance: Provenance

    @property
    def from_store(self) -> bool:
        return self.provenance is Provenance.STORE
