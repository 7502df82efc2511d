import json
from datetime import datetime, UTC
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from deckpad.domain.exceptions import PersistenceError

OUTLINE_SCHEMA_VERSION = 1

SLIDE_COUNT_MIN, SLIDE_COUNT_MAX = 3, 20
MAX_BULLETS_MIN, MAX_BULLETS_MAX = 3, 8


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


class Slide(BaseModel):
    """One deck unit. Field aliases match the generation service's JSON."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    slide_title: str = Field(alias="slideTitle")
    talking_points: List[str] = Field(default_factory=list, alias="talkingPoints")
    visual_suggestion: Optional[str] = Field(default=None, alias="visualSuggestion")
    notes: Optional[str] = None

    @field_validator("talking_points", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("visual_suggestion", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class OutlineV1(BaseModel):
    """Generated topic plus ordered slides, schema version 1.

    Instances are never mutated after generation; edits live in the deck
    store's copy of the slides.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    topic: str
    slides: List[Slide] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


Outline = OutlineV1


def parse_outline_snapshot(raw: Any) -> Outline:
    """Validate a stored ``outline_json`` value (dict or JSON text)."""
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise PersistenceError(f"Stored outline is not valid JSON: {e}")
    if not isinstance(raw, Mapping):
        raise PersistenceError("Stored outline is missing or not an object")
    try:
        return Outline.model_validate(raw)
    except ValidationError as e:
        raise PersistenceError(
            f"Stored outline does not match schema v{OUTLINE_SCHEMA_VERSION}: {e}"
        )


class GenerationOptions(BaseModel):
    slide_count: int = Field(default=8, ge=SLIDE_COUNT_MIN, le=SLIDE_COUNT_MAX)
    max_bullets_per_slide: int = Field(
        default=5, ge=MAX_BULLETS_MIN, le=MAX_BULLETS_MAX
    )
    include_visual_suggestions: bool = True
    include_notes: bool = True

    @classmethod
    def clamped(
        cls,
        slide_count: int = 8,
        max_bullets_per_slide: int = 5,
        include_visual_suggestions: bool = True,
        include_notes: bool = True,
    ) -> "GenerationOptions":
        """Build options from raw form values, forcing numbers into range."""
        return cls(
            slide_count=_clamp(slide_count, SLIDE_COUNT_MIN, SLIDE_COUNT_MAX),
            max_bullets_per_slide=_clamp(
                max_bullets_per_slide, MAX_BULLETS_MIN, MAX_BULLETS_MAX
            ),
            include_visual_suggestions=include_visual_suggestions,
            include_notes=include_notes,
        )


class GenerationRequest(BaseModel):
    brief: str
    options: GenerationOptions = Field(default_factory=GenerationOptions)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "brief": self.brief,
            "slideCount": self.options.slide_count,
            "maxBulletsPerSlide": self.options.max_bullets_per_slide,
            "includeVisualSuggestions": self.options.include_visual_suggestions,
            "includeNotes": self.options.include_notes,
        }


class PersistenceRecord(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: Optional[str] = None
    title: str
    outline_snapshot: Outline
    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(
        cls, row: Mapping[str, Any], owner_id: Optional[str] = None
    ) -> "PersistenceRecord":
        """Build a record from the table/API shape (``user_id``, ``outline_json``)."""
        try:
            created_at = row["created_at"]
            return cls(
                id=str(row["id"]),
                owner_id=row.get("user_id") or owner_id,
                title=row["title"],
                outline_snapshot=parse_outline_snapshot(row.get("outline_json")),
                version=int(row.get("version") or 1),
                created_at=created_at,
                updated_at=row.get("updated_at") or created_at,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed presentation record: {e}")

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "title": self.title,
            "outline_json": self.outline_snapshot.to_wire(),
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
