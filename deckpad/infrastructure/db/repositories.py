from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy import and_, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from deckpad.core.observability import metrics
from deckpad.domain.entities import PersistenceRecord, parse_outline_snapshot
from deckpad.domain.repositories import PresentationRepository
from deckpad.infrastructure.db.errors import classify_store_error
from deckpad.infrastructure.db.models import PresentationModel

TABLE = "presentations"


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _to_record(db_row: PresentationModel) -> PersistenceRecord:
    return PersistenceRecord(
        id=db_row.id,
        owner_id=db_row.user_id,
        title=db_row.title,
        outline_snapshot=parse_outline_snapshot(db_row.outline_json),
        version=db_row.version,
        created_at=_aware(db_row.created_at),
        updated_at=_aware(db_row.updated_at),
    )


class SqlAlchemyPresentationRepository(PresentationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_title(
        self, user_id: str, title: str
    ) -> Optional[PersistenceRecord]:
        try:
            result = await self.session.execute(
                select(PresentationModel).where(
                    and_(
                        PresentationModel.user_id == user_id,
                        PresentationModel.title == title,
                    )
                )
            )
            db_row = result.scalar_one_or_none()
            metrics.record_database_operation("find", TABLE, "success")
        except SQLAlchemyError as e:
            metrics.record_database_operation("find", TABLE, "error", type(e).__name__)
            raise classify_store_error(e) from e

        return _to_record(db_row) if db_row is not None else None

    async def get_by_id(self, presentation_id: str) -> Optional[PersistenceRecord]:
        try:
            db_row = await self.session.get(PresentationModel, presentation_id)
            metrics.record_database_operation("get", TABLE, "success")
        except SQLAlchemyError as e:
            metrics.record_database_operation("get", TABLE, "error", type(e).__name__)
            raise classify_store_error(e) from e

        return _to_record(db_row) if db_row is not None else None

    async def insert(self, record: PersistenceRecord) -> PersistenceRecord:
        try:
            self.session.add(
                PresentationModel(
                    id=record.id,
                    user_id=record.owner_id,
                    title=record.title,
                    outline_json=record.outline_snapshot.to_wire(),
                    version=record.version,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
            await self.session.flush()
            metrics.record_database_operation("insert", TABLE, "success")
            return record
        except SQLAlchemyError as e:
            metrics.record_database_operation("insert", TABLE, "error", type(e).__name__)
            raise classify_store_error(e) from e

    async def update(self, record: PersistenceRecord) -> PersistenceRecord:
        try:
            db_row = await self.session.get(PresentationModel, record.id)
            if db_row is None:
                metrics.record_database_operation("update", TABLE, "not_found")
                raise ValueError(f"Presentation with ID {record.id} not found")

            db_row.title = record.title
            db_row.outline_json = record.outline_snapshot.to_wire()
            db_row.version = record.version
            db_row.updated_at = record.updated_at
            await self.session.flush()

            metrics.record_database_operation("update", TABLE, "success")
            return record
        except SQLAlchemyError as e:
            metrics.record_database_operation("update", TABLE, "error", type(e).__name__)
            raise classify_store_error(e) from e

    async def list_by_user(self, user_id: str) -> List[PersistenceRecord]:
        try:
            result = await self.session.execute(
                select(PresentationModel)
                .where(PresentationModel.user_id == user_id)
                .order_by(desc(PresentationModel.created_at))
            )
            db_rows = result.scalars().all()
            metrics.record_database_operation("list", TABLE, "success")
        except SQLAlchemyError as e:
            metrics.record_database_operation("list", TABLE, "error", type(e).__name__)
            raise classify_store_error(e) from e

        return [_to_record(db_row) for db_row in db_rows]

    async def delete(self, presentation_id: str) -> bool:
        try:
            db_row = await self.session.get(PresentationModel, presentation_id)
            if db_row is None:
                metrics.record_database_operation("delete", TABLE, "not_found")
                return False

            await self.session.delete(db_row)
            await self.session.flush()

            metrics.record_database_operation("delete", TABLE, "success")
            return True
        except SQLAlchemyError as e:
            metrics.record_database_operation("delete", TABLE, "error", type(e).__name__)
            raise classify_store_error(e) from e
