"""Domain entity unit tests."""

import json
from datetime import datetime, UTC

import pytest
from pydantic import ValidationError

from deckpad.domain.entities import (
    GenerationOptions,
    GenerationRequest,
    PersistenceRecord,
    Slide,
    parse_outline_snapshot,
)
from deckpad.domain.exceptions import PersistenceError


class TestSlide:
    def test_parses_wire_aliases(self):
        slide = Slide.model_validate(
            {
                "slideTitle": "Intro",
                "talkingPoints": ["a", "b"],
                "visualSuggestion": "Chart",
                "notes": "Say hi",
            }
        )

        assert slide.slide_title == "Intro"
        assert slide.talking_points == ["a", "b"]
        assert slide.visual_suggestion == "Chart"
        assert slide.notes == "Say hi"

    def test_missing_optional_fields_default_to_none(self):
        slide = Slide.model_validate({"slideTitle": "Intro", "talkingPoints": []})

        assert slide.visual_suggestion is None
        assert slide.notes is None

    def test_blank_optional_fields_become_none(self):
        slide = Slide(slide_title="Intro", visual_suggestion="   ", notes="")

        assert slide.visual_suggestion is None
        assert slide.notes is None

    def test_null_talking_points_become_empty_list(self):
        slide = Slide.model_validate({"slideTitle": "Intro", "talkingPoints": None})

        assert slide.talking_points == []

    def test_wire_format_emits_explicit_nulls(self):
        wire = Slide(slide_title="Intro", talking_points=["x"]).to_wire()

        assert wire == {
            "slideTitle": "Intro",
            "talkingPoints": ["x"],
            "visualSuggestion": None,
            "notes": None,
        }

    def test_slide_is_immutable(self):
        slide = Slide(slide_title="Intro")

        with pytest.raises(ValidationError):
            slide.slide_title = "Changed"

    def test_value_equality(self):
        assert Slide(slide_title="A", talking_points=["1"]) == Slide(
            slide_title="A", talking_points=["1"]
        )


class TestOutlineSnapshot:
    def test_parse_from_dict(self, sample_outline):
        parsed = parse_outline_snapshot(sample_outline.to_wire())

        assert parsed == sample_outline

    def test_parse_from_json_text(self, sample_outline):
        parsed = parse_outline_snapshot(json.dumps(sample_outline.to_wire()))

        assert parsed == sample_outline

    def test_invalid_json_text(self):
        with pytest.raises(PersistenceError, match="not valid JSON"):
            parse_outline_snapshot("{not json")

    def test_missing_snapshot(self):
        with pytest.raises(PersistenceError, match="missing"):
            parse_outline_snapshot(None)

    def test_schema_mismatch(self):
        with pytest.raises(PersistenceError, match="schema v1"):
            parse_outline_snapshot({"slides": [{"talkingPoints": []}]})


class TestGenerationOptions:
    def test_defaults(self):
        options = GenerationOptions()

        assert options.slide_count == 8
        assert options.max_bullets_per_slide == 5
        assert options.include_visual_suggestions is True
        assert options.include_notes is True

    @pytest.mark.parametrize("slide_count", [2, 21])
    def test_rejects_out_of_range_slide_count(self, slide_count):
        with pytest.raises(ValidationError):
            GenerationOptions(slide_count=slide_count)

    def test_clamped_forces_numbers_into_range(self):
        options = GenerationOptions.clamped(slide_count=50, max_bullets_per_slide=1)

        assert options.slide_count == 20
        assert options.max_bullets_per_slide == 3

    def test_clamped_passes_flags_through(self):
        options = GenerationOptions.clamped(
            include_visual_suggestions=False, include_notes=False
        )

        assert options.include_visual_suggestions is False
        assert options.include_notes is False

    def test_request_payload_uses_wire_names(self):
        request = GenerationRequest(
            brief="Explain photosynthesis",
            options=GenerationOptions(slide_count=5, include_notes=False),
        )

        assert request.to_payload() == {
            "brief": "Explain photosynthesis",
            "slideCount": 5,
            "maxBulletsPerSlide": 5,
            "includeVisualSuggestions": True,
            "includeNotes": False,
        }


class TestPersistenceRecord:
    def test_version_must_be_positive(self, sample_outline):
        with pytest.raises(ValidationError):
            PersistenceRecord(title="T", outline_snapshot=sample_outline, version=0)

    def test_from_row(self, sample_outline):
        record = PersistenceRecord.from_row(
            {
                "id": "abc",
                "user_id": "u1",
                "title": "Deck",
                "version": 3,
                "outline_json": sample_outline.to_wire(),
                "created_at": "2024-05-01T10:00:00+00:00",
                "updated_at": "2024-05-02T10:00:00+00:00",
            }
        )

        assert record.id == "abc"
        assert record.owner_id == "u1"
        assert record.version == 3
        assert record.outline_snapshot == sample_outline
        assert record.created_at == datetime(2024, 5, 1, 10, tzinfo=UTC)

    def test_from_row_uses_fallback_owner(self, sample_outline):
        record = PersistenceRecord.from_row(
            {
                "id": "abc",
                "title": "Deck",
                "outline_json": sample_outline.to_wire(),
                "created_at": "2024-05-01T10:00:00+00:00",
            },
            owner_id="u2",
        )

        assert record.owner_id == "u2"
        assert record.version == 1
        assert record.updated_at == record.created_at

    def test_from_row_missing_field(self, sample_outline):
        with pytest.raises(PersistenceError, match="Malformed"):
            PersistenceRecord.from_row({"title": "Deck"})

    def test_row_round_trip(self, sample_outline):
        record = PersistenceRecord(
            owner_id="u1", title="Deck", outline_snapshot=sample_outline
        )

        assert PersistenceRecord.from_row(record.to_row()) == record
