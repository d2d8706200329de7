"""Tests for sign entry models and their wire format."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from shouyutong.core.models import (
    CONTENT_FIELDS,
    EditableField,
    PersistedSignEntry,
    Provenance,
    Resolution,
    SignEntry,
)


class TestSignEntry:
    def test_blank_template(self):
        entry = SignEntry()
        assert all(getattr(entry, name) == "" for name in CONTENT_FIELDS)

    def test_camel_case_aliases(self):
        entry = SignEntry.model_validate({"word": "你好", "handShape": "open palm"})
        assert entry.hand_shape == "open palm"
        assert entry.model_dump(by_alias=True)["handShape"] == "open palm"

    def test_snake_case_names_accepted(self):
        assert SignEntry(hand_shape="fist").hand_shape == "fist"

    def test_content_fields_match_editable_fields(self):
        assert CONTENT_FIELDS == {f.value for f in EditableField}


class TestPersistedSignEntry:
    def test_requires_updated_at(self):
        with pytest.raises(PydanticValidationError):
            PersistedSignEntry(word="你好")

    def test_rejects_negative_timestamp(self):
        with pytest.raises(PydanticValidationError):
            PersistedSignEntry(word="你好", updated_at=-1)

    def test_from_entry(self, sample_entry):
        stored = PersistedSignEntry.from_entry(sample_entry, "data:image/png;base64,AA==", 42)
        assert stored.content() == sample_entry
        assert stored.image_url == "data:image/png;base64,AA=="
        assert stored.updated_at == 42

    def test_content_strips_metadata(self, sample_entry):
        stored = PersistedSignEntry.from_entry(sample_entry, None, 1)
        content = stored.content()
        assert type(content) is SignEntry
        assert "image_url" not in content.model_dump()


class TestResolution:
    def test_from_store(self, sample_entry):
        assert Resolution(sample_entry, None, Provenance.STORE).from_store
        assert not Resolution(sample_entry, None, Provenance.GENERATED).from_store

    def test_provenance_values(self):
        assert Provenance.STORE.value == "store"
        assert Provenance.GENERATED.value == "generated"
