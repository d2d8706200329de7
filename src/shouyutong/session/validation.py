"""Validation of curator edits."""

from __future__ import annotations

from collections.abc import Mapping

from shouyutong.core.errors import ValidationError
from shouyutong.core.models import EditableField, SignEntry


def normalize_patch(patch: Mapping[str | EditableField, object]) -> dict[str, str]:
    """Check a partial edit against the known editable fields.

    Keys may be :class:`EditableField` members or their string values.

    Args:
        patch: Field name -> new text

    Returns:
        The patch keyed by plain field names

    Raises:
        ValidationError: If a key is not an editable field or a value is not text
    """
    normalized: dict[str, str] = {}
    for key, value in patch.items():
        try:
            field_name = EditableField(key).value
        except ValueError as e:
            raise ValidationError(f"Unknown field: {key}") from e

        if not isinstance(value, str):
            raise ValidationError(
                f"Field {field_name} must be text, got {type(value).__name__}"
            )
        normalized[field_name] = value
    return normalized


def apply_patch(entry: SignEntry, patch: Mapping[str | EditableField, object]) -> SignEntry:
    """Return a copy of ``entry`` with the patched fields replaced."""
    return entry.model_copy(update=normalize_patch(patch))
