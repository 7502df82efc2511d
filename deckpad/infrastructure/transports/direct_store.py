from typing import List

import structlog
from sqlalchemy.exc import SQLAlchemyError

from deckpad.application.persistence import PersistenceTransport
from deckpad.application.services import PresentationService
from deckpad.domain.entities import Outline, PersistenceRecord
from deckpad.domain.exceptions import (
    PresentationNotFoundException,
    UnauthorizedAccessException,
)
from deckpad.domain.identity import AuthSession
from deckpad.infrastructure.db.database import Database
from deckpad.infrastructure.db.errors import classify_store_error
from deckpad.infrastructure.db.repositories import SqlAlchemyPresentationRepository

logger = structlog.get_logger(__name__)


class DirectStoreTransport(PersistenceTransport):
    """Talks to the presentations table through SQLAlchemy, one session per call."""

    name = "direct_store"

    def __init__(self, database: Database) -> None:
        self.database = database

    async def save(
        self, session: AuthSession, title: str, outline: Outline
    ) -> PersistenceRecord:
        try:
            async with self.database.session() as db_session:
                service = PresentationService(
                    SqlAlchemyPresentationRepository(db_session)
                )
                return await service.save_presentation(session.user_id, title, outline)
        except SQLAlchemyError as e:
            # commit happens on context exit, outside the repository
            raise classify_store_error(e) from e

    async def load(self, session: AuthSession) -> List[PersistenceRecord]:
        try:
            async with self.database.session() as db_session:
                service = PresentationService(
                    SqlAlchemyPresentationRepository(db_session)
                )
                return await service.list_presentations(session.user_id)
        except SQLAlchemyError as e:
            raise classify_store_error(e) from e

    async def delete(self, session: AuthSession, record_id: str) -> bool:
        try:
            async with self.database.session() as db_session:
                service = PresentationService(
                    SqlAlchemyPresentationRepository(db_session)
                )
                await service.delete_presentation(record_id, session.user_id)
                return True
        except (PresentationNotFoundException, UnauthorizedAccessException) as e:
            logger.info("Nothing deleted", record_id=record_id, reason=str(e))
            return False
        except SQLAlchemyError as e:
            raise classify_store_error(e) from e
