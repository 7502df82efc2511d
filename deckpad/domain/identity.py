from abc import ABC, abstractmethod
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict


class AuthSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    token: Optional[str] = None


SessionSubscriber = Callable[[Optional[AuthSession]], None]


class IdentityProvider(ABC):
    """Read-only source of the signed-in user and their bearer credential."""

    @abstractmethod
    async def get_current_session(self) -> Optional[AuthSession]:
        pass

    @abstractmethod
    def on_change(self, subscriber: SessionSubscriber) -> Callable[[], None]:
        """Register ``subscriber``; the returned callable unsubscribes it."""
        pass
