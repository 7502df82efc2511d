from typing import Dict, List, Optional

import httpx
import structlog

from deckpad.application.persistence import PersistenceTransport
from deckpad.domain.entities import Outline, PersistenceRecord
from deckpad.domain.exceptions import AuthRequiredError, PersistenceError
from deckpad.domain.identity import AuthSession

logger = structlog.get_logger(__name__)

PRESENTATIONS_PATH = "/api/presentations"


class ProxyApiTransport(PersistenceTransport):
    """Saves and lists presentations through the authenticated HTTP API."""

    name = "proxy_api"

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, session: AuthSession) -> Dict[str, str]:
        if not session.token:
            raise AuthRequiredError()
        return {"Authorization": f"Bearer {session.token}"}

    async def _send(
        self, method: str, url: str, session: AuthSession, **kwargs
    ) -> httpx.Response:
        headers = self._headers(session)
        try:
            return await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Proxy request failed", method=method, url=url, error=str(e))
            raise PersistenceError(
                f"Proxy request failed: {e}", transport=self.name
            ) from e

    async def save(
        self, session: AuthSession, title: str, outline: Outline
    ) -> PersistenceRecord:
        response = await self._send(
            "POST",
            f"{self.base_url}{PRESENTATIONS_PATH}",
            session,
            json={"title": title, "outline": outline.to_wire()},
        )
        if not response.is_success:
            raise PersistenceError(
                f"Save failed: {response.status_code} {response.reason_phrase} "
                f"- {response.text}",
                transport=self.name,
            )
        record = PersistenceRecord.from_row(self._json(response), session.user_id)
        logger.info(
            "Presentation saved via proxy", record_id=record.id, version=record.version
        )
        return record

    async def load(self, session: AuthSession) -> List[PersistenceRecord]:
        response = await self._send(
            "GET", f"{self.base_url}{PRESENTATIONS_PATH}", session
        )
        if not response.is_success:
            raise PersistenceError(
                f"Failed to load: {response.status_code} {response.reason_phrase}",
                transport=self.name,
            )
        rows = self._json(response)
        if not isinstance(rows, list):
            raise PersistenceError(
                "Failed to load: expected a list of presentations", transport=self.name
            )
        return [PersistenceRecord.from_row(row, session.user_id) for row in rows]

    async def delete(self, session: AuthSession, record_id: str) -> bool:
        response = await self._send(
            "DELETE", f"{self.base_url}{PRESENTATIONS_PATH}/{record_id}", session
        )
        if response.status_code in (403, 404):
            return False
        if not response.is_success:
            raise PersistenceError(
                f"Delete failed: {response.status_code} {response.reason_phrase}",
                transport=self.name,
            )
        return True

    def _json(self, response: httpx.Response):
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(
                f"Proxy returned invalid JSON: {e}", transport=self.name
            ) from e

    async def close(self) -> None:
        await self._client.aclose()
