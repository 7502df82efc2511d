from datetime import datetime, UTC
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from deckpad.domain.entities import Outline, PersistenceRecord


class SavePresentationRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    outline: Outline


class PresentationResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    title: str
    version: int
    outline_json: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: PersistenceRecord) -> "PresentationResponse":
        return cls(
            id=record.id,
            user_id=record.owner_id,
            title=record.title,
            version=record.version,
            outline_json=record.outline_snapshot.to_wire(),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    services: Dict[str, bool] = Field(default_factory=dict)
    version: str


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
