"""Pydantic request and response models for the Shouyutong API.

Models
------
LookupResponse
    Result of ``GET /api/lookup`` - the entry, its image and provenance.
ImageRequest / ImageResponse
    Payload and result of ``POST /api/lookup/image``.
LoginRequest / LoginResponse
    Curator login.
CommitRequest
    Payload for ``POST /api/library`` - the edited entry plus the image
    held for it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shouyutong.core.models import PersistedSignEntry, Provenance, SignEntry


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LookupResponse(_ApiModel):
    """Response body for ``GET /api/lookup``.

    Attributes:
        entry: The sign description.
        image_url: Image held for the entry (stored image, or None for a
            freshly generated entry).
        provenance: ``"store"`` or ``"generated"``.
    """

    entry: SignEntry
    image_url: str | None = None
    provenance: Provenance


class ImageRequest(_ApiModel):
    """Request body for ``POST /api/lookup/image``."""

    word: str = Field(..., description="Word of the entry to illustrate.")
    movement: str = Field(default="", description="Movement description used in the prompt.")


class ImageResponse(_ApiModel):
    word: str
    image_url: str


class LoginRequest(_ApiModel):
    username: str
    password: str


class LoginResponse(_ApiModel):
    token: str


class CommitRequest(_ApiModel):
    """Request body for ``POST /api/library``.

    Attributes:
        entry: The edited entry; its word is the library key.
        image_url: Image to store with the entry (generated, uploaded or the
            previously stored one), or None for no image.
    """

    entry: SignEntry
    image_url: str | None = Field(
        default=None,
        description="Image payload as a base64 data URL.",
    )


class LibraryResponse(_ApiModel):
    total: int
    entries: list[PersistedSignEntry]
