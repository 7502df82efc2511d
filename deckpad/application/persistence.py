from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, TypeVar

import structlog

from deckpad.application.services import normalize_title
from deckpad.core.observability import metrics, trace_async_operation
from deckpad.domain.entities import Outline, PersistenceRecord
from deckpad.domain.exceptions import (
    AuthRequiredError,
    DomainException,
    PermissionDeniedError,
    PersistenceError,
    RelationMissingError,
)
from deckpad.domain.identity import AuthSession, IdentityProvider

logger = structlog.get_logger(__name__)

T = TypeVar("T")
Attempt = Callable[["PersistenceTransport", AuthSession], Awaitable[T]]


class PersistenceTransport(ABC):
    """One storage path for presentation records."""

    name: str = "transport"

    @abstractmethod
    async def save(
        self, session: AuthSession, title: str, outline: Outline
    ) -> PersistenceRecord:
        pass

    @abstractmethod
    async def load(self, session: AuthSession) -> List[PersistenceRecord]:
        pass

    @abstractmethod
    async def delete(self, session: AuthSession, record_id: str) -> bool:
        """Delete a record owned by the session user; False when none matched."""
        pass


class PersistenceService:
    """Versioned save/load over the direct store with an API proxy fallback.

    The direct store is tried once per call. A missing relation or a
    permission error always moves on to the proxy; any other direct failure
    does so only when a proxy is configured and the session carries a token.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        direct: Optional[PersistenceTransport] = None,
        proxy: Optional[PersistenceTransport] = None,
    ) -> None:
        if direct is None and proxy is None:
            raise ValueError("At least one persistence transport is required")
        self.identity = identity
        self.direct = direct
        self.proxy = proxy

    async def save(self, title: str, outline: Outline) -> PersistenceRecord:
        session = await self._require_session()
        normalized = normalize_title(title)
        return await self._run(
            "save",
            session,
            lambda transport, s: transport.save(s, normalized, outline),
        )

    async def load(self) -> List[PersistenceRecord]:
        session = await self._require_session()
        records = await self._run(
            "load", session, lambda transport, s: transport.load(s)
        )
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def delete(self, record_id: str) -> bool:
        session = await self._require_session()
        return await self._run(
            "delete", session, lambda transport, s: transport.delete(s, record_id)
        )

    async def _require_session(self) -> AuthSession:
        try:
            session = await self.identity.get_current_session()
        except DomainException:
            raise
        except Exception as e:
            raise PersistenceError(f"Session error: {e}")
        if session is None:
            raise AuthRequiredError()
        return session

    async def _run(self, operation: str, session: AuthSession, attempt: Attempt) -> T:
        async with trace_async_operation(
            f"persistence_{operation}", user_id=session.user_id
        ):
            if self.direct is None:
                return await self._via_proxy(operation, session, attempt)

            try:
                result = await attempt(self.direct, session)
            except (RelationMissingError, PermissionDeniedError) as e:
                metrics.record_persistence_operation(
                    operation, self.direct.name, "fallback"
                )
                logger.warning(
                    "Direct store unavailable, using proxy",
                    operation=operation,
                    code=e.code,
                    error=str(e),
                )
                if self.proxy is None:
                    raise PersistenceError(
                        f"No proxy transport configured and direct store "
                        f"{operation} failed: {e}",
                        transport=self.direct.name,
                    )
                return await self._via_proxy(operation, session, attempt)
            except Exception as e:
                return await self._direct_failed(operation, session, attempt, e)

            metrics.record_persistence_operation(operation, self.direct.name, "success")
            return result

    async def _direct_failed(
        self,
        operation: str,
        session: AuthSession,
        attempt: Attempt,
        error: Exception,
    ) -> T:
        if self.proxy is not None and session.token:
            metrics.record_persistence_operation(
                operation, self.direct.name, "fallback"
            )
            logger.warning(
                "Direct store failed, using proxy",
                operation=operation,
                error=str(error),
            )
            return await self._via_proxy(operation, session, attempt)

        metrics.record_persistence_operation(operation, self.direct.name, "error")
        logger.error("Direct store failed", operation=operation, error=str(error))
        if isinstance(error, (AuthRequiredError, PersistenceError)):
            raise error
        raise PersistenceError(str(error), transport=self.direct.name) from error

    async def _via_proxy(
        self, operation: str, session: AuthSession, attempt: Attempt
    ) -> T:
        try:
            result = await attempt(self.proxy, session)
        except (AuthRequiredError, PersistenceError):
            metrics.record_persistence_operation(operation, self.proxy.name, "error")
            raise
        except Exception as e:
            metrics.record_persistence_operation(operation, self.proxy.name, "error")
            logger.error("Proxy transport failed", operation=operation, error=str(e))
            raise PersistenceError(str(e), transport=self.proxy.name) from e

        metrics.record_persistence_operation(operation, self.proxy.name, "success")
        return result
