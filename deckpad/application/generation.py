import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from deckpad.core.observability import metrics, trace_async_operation
from deckpad.domain.entities import GenerationOptions, GenerationRequest, Outline
from deckpad.domain.exceptions import GenerationError

logger = structlog.get_logger(__name__)


class GenerationClient(ABC):
    """Port to the external outline generation service."""

    @abstractmethod
    async def request_outline(self, request: GenerationRequest) -> Any:
        """Return the decoded JSON body, raising GenerationError on failure."""
        pass


class GenerationGateway:
    def __init__(self, client: GenerationClient) -> None:
        self.client = client

    async def generate(
        self, brief: str, options: Optional[GenerationOptions] = None
    ) -> Outline:
        """Request an outline for ``brief``.

        The slide count of the result is whatever the service produced; it is
        not forced to match ``options.slide_count``.
        """
        if not (brief or "").strip():
            raise GenerationError("brief must not be empty")

        request = GenerationRequest(brief=brief, options=options or GenerationOptions())
        start_time = time.time()

        async with trace_async_operation(
            "generate_outline",
            slide_count=request.options.slide_count,
            max_bullets_per_slide=request.options.max_bullets_per_slide,
        ):
            try:
                payload = await self.client.request_outline(request)
                try:
                    outline = Outline.model_validate(payload)
                except ValidationError as e:
                    raise GenerationError(f"invalid outline in response: {e}")
            except GenerationError as e:
                metrics.record_deck_generation("failed", time.time() - start_time)
                logger.error(
                    "Outline generation failed",
                    reason=e.reason,
                    status_code=e.status_code,
                )
                raise

            metrics.record_deck_generation("completed", time.time() - start_time)
            logger.info(
                "Outline generated",
                topic=outline.topic,
                requested_slides=request.options.slide_count,
                slide_count=len(outline.slides),
            )
            return outline
