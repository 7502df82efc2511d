from typing import Any, Optional

import httpx
import structlog

from deckpad.application.generation import GenerationClient
from deckpad.domain.entities import GenerationRequest
from deckpad.domain.exceptions import GenerationError

logger = structlog.get_logger(__name__)

GENERATE_PATH = "/api/generate"


class HttpGenerationClient(GenerationClient):
    """POSTs the brief and options to ``{base_url}/api/generate``."""

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def request_outline(self, request: GenerationRequest) -> Any:
        url = f"{self.base_url}{GENERATE_PATH}"
        try:
            response = await self._client.post(url, json=request.to_payload())
        except httpx.HTTPError as e:
            logger.error("Generation request failed", url=url, error=str(e))
            raise GenerationError(f"transport error: {e}")

        if not response.is_success:
            raise GenerationError(
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise GenerationError(
                f"response is not valid JSON: {e}", status_code=response.status_code
            )

    async def close(self) -> None:
        await self._client.aclose()
