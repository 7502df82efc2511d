from typing import Callable, List, Optional

import structlog

from deckpad.core.security import security_service
from deckpad.domain.identity import AuthSession, IdentityProvider, SessionSubscriber

logger = structlog.get_logger(__name__)


class InMemoryIdentityProvider(IdentityProvider):
    """Holds the current session in process and notifies subscribers on change."""

    def __init__(self, session: Optional[AuthSession] = None) -> None:
        self._session = session
        self._subscribers: List[SessionSubscriber] = []

    async def get_current_session(self) -> Optional[AuthSession]:
        return self._session

    def on_change(self, subscriber: SessionSubscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def sign_in(self, session: AuthSession) -> None:
        self._set(session)
        logger.info("Signed in", user_id=session.user_id)

    def sign_in_with_token(self, token: str) -> AuthSession:
        """Sign in from a bearer JWT; the ``sub`` claim becomes the user id."""
        user_id = security_service.extract_user_id_from_token(token)
        session = AuthSession(user_id=user_id, token=token)
        self.sign_in(session)
        return session

    def sign_out(self) -> None:
        if self._session is not None:
            logger.info("Signed out", user_id=self._session.user_id)
        self._set(None)

    def _set(self, session: Optional[AuthSession]) -> None:
        self._session = session
        for subscriber in list(self._subscribers):
            subscriber(session)
