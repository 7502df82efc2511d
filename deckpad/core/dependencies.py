from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Header
from sqlalchemy.ext.asyncio import AsyncSession

from deckpad.application.services import PresentationService
from deckpad.core.security import security_service
from deckpad.infrastructure.db.database import Database
from deckpad.infrastructure.db.repositories import SqlAlchemyPresentationRepository

# Global instance (initialized in main.py)
database: Database = None


async def get_database_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    if not database:
        raise HTTPException(status_code=500, detail="Database not initialized")

    async with database.session() as session:
        yield session


async def get_current_user_id(authorization: str | None = Header(None)) -> str:
    """Extract user ID from the bearer JWT."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    token = authorization[len("Bearer "):].strip()
    try:
        return security_service.extract_user_id_from_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


async def get_presentation_service(
    session: AsyncSession = Depends(get_database_session),
) -> PresentationService:
    return PresentationService(SqlAlchemyPresentationRepository(session))
