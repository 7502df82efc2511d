from abc import ABC, abstractmethod
from typing import List, Optional

from deckpad.domain.entities import PersistenceRecord


class PresentationRepository(ABC):
    @abstractmethod
    async def find_by_title(
        self, user_id: str, title: str
    ) -> Optional[PersistenceRecord]:
        pass

    @abstractmethod
    async def get_by_id(self, presentation_id: str) -> Optional[PersistenceRecord]:
        pass

    @abstractmethod
    async def insert(self, record: PersistenceRecord) -> PersistenceRecord:
        pass

    @abstractmethod
    async def update(self, record: PersistenceRecord) -> PersistenceRecord:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[PersistenceRecord]:
        pass

    @abstractmethod
    async def delete(self, presentation_id: str) -> bool:
        pass
