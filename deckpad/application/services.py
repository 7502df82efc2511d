from datetime import datetime, UTC
from typing import List

import structlog

from deckpad.core.observability import trace_async_operation
from deckpad.domain.entities import Outline, PersistenceRecord
from deckpad.domain.exceptions import (
    LocalStateError,
    PresentationNotFoundException,
    UnauthorizedAccessException,
)
from deckpad.domain.repositories import PresentationRepository

logger = structlog.get_logger(__name__)


def normalize_title(title: str) -> str:
    normalized = (title or "").strip()
    if not normalized:
        raise LocalStateError("Presentation title must not be empty")
    return normalized


class PresentationService:
    """Title-keyed upsert of presentation records for one store.

    Used both by the direct store transport and by the presentations API, so
    the two persistence paths share one versioning rule.
    """

    def __init__(self, presentation_repo: PresentationRepository) -> None:
        self.presentation_repo = presentation_repo

    async def save_presentation(
        self, user_id: str, title: str, outline: Outline
    ) -> PersistenceRecord:
        """Insert with version 1, or bump the version of the (user, title) record."""
        normalized = normalize_title(title)
        async with trace_async_operation(
            "save_presentation", user_id=user_id, title=normalized
        ):
            existing = await self.presentation_repo.find_by_title(user_id, normalized)
            now = datetime.now(UTC)

            if existing is not None:
                # No compare-and-swap: concurrent sessions may lose an update.
                record = existing.model_copy(
                    update={
                        "outline_snapshot": outline,
                        "version": existing.version + 1,
                        "updated_at": now,
                    }
                )
                saved = await self.presentation_repo.update(record)
                logger.info(
                    "Presentation updated",
                    presentation_id=saved.id,
                    user_id=user_id,
                    version=saved.version,
                )
                return saved

            record = PersistenceRecord(
                owner_id=user_id,
                title=normalized,
                outline_snapshot=outline,
                version=1,
                created_at=now,
                updated_at=now,
            )
            saved = await self.presentation_repo.insert(record)
            logger.info(
                "Presentation created", presentation_id=saved.id, user_id=user_id
            )
            return saved

    async def list_presentations(self, user_id: str) -> List[PersistenceRecord]:
        async with trace_async_operation("list_presentations", user_id=user_id):
            records = await self.presentation_repo.list_by_user(user_id)
            return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def delete_presentation(self, presentation_id: str, user_id: str) -> None:
        async with trace_async_operation(
            "delete_presentation", presentation_id=presentation_id, user_id=user_id
        ):
            record = await self.presentation_repo.get_by_id(presentation_id)
            if record is None:
                raise PresentationNotFoundException(presentation_id)
            if record.owner_id != user_id:
                raise UnauthorizedAccessException(
                    f"presentation:{presentation_id}", user_id
                )

            await self.presentation_repo.delete(presentation_id)
            logger.info(
                "Presentation deleted", presentation_id=presentation_id, user_id=user_id
            )
