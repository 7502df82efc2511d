from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from deckpad.api.schemas import PresentationResponse, SavePresentationRequest
from deckpad.application.services import PresentationService
from deckpad.core.dependencies import get_current_user_id, get_presentation_service
from deckpad.core.observability import metrics, trace_async_operation
from deckpad.domain.exceptions import (
    LocalStateError,
    PresentationNotFoundException,
    StoreError,
    UnauthorizedAccessException,
)

router = APIRouter(prefix="/presentations", tags=["presentations"])

ENDPOINT = "/api/presentations"


@router.post("", response_model=PresentationResponse)
async def save_presentation(
    request: SavePresentationRequest,
    user_id: str = Depends(get_current_user_id),
    presentation_service: PresentationService = Depends(get_presentation_service),
) -> PresentationResponse:
    """Insert or version-bump the caller's presentation with this title."""
    async with trace_async_operation("api_save_presentation", user_id=user_id):
        try:
            record = await presentation_service.save_presentation(
                user_id, request.title, request.outline
            )
        except LocalStateError as e:
            metrics.record_http_request("POST", ENDPOINT, 422, 0.0)
            raise HTTPException(status_code=422, detail=str(e))
        except StoreError as e:
            metrics.record_http_request("POST", ENDPOINT, 500, 0.0)
            raise HTTPException(status_code=500, detail=str(e))

        metrics.record_http_request("POST", ENDPOINT, 200, 0.0)
        return PresentationResponse.from_record(record)


@router.get("", response_model=List[PresentationResponse])
async def list_presentations(
    user_id: str = Depends(get_current_user_id),
    presentation_service: PresentationService = Depends(get_presentation_service),
) -> List[PresentationResponse]:
    """List the caller's presentations, newest first."""
    async with trace_async_operation("api_list_presentations", user_id=user_id):
        try:
            records = await presentation_service.list_presentations(user_id)
        except StoreError as e:
            metrics.record_http_request("GET", ENDPOINT, 500, 0.0)
            raise HTTPException(status_code=500, detail=str(e))

        metrics.record_http_request("GET", ENDPOINT, 200, 0.0)
        return [PresentationResponse.from_record(record) for record in records]


@router.delete("/{presentation_id}", status_code=204)
async def delete_presentation(
    presentation_id: str,
    user_id: str = Depends(get_current_user_id),
    presentation_service: PresentationService = Depends(get_presentation_service),
) -> Response:
    async with trace_async_operation(
        "api_delete_presentation", presentation_id=presentation_id, user_id=user_id
    ):
        endpoint = f"{ENDPOINT}/{presentation_id}"
        try:
            await presentation_service.delete_presentation(presentation_id, user_id)
        except PresentationNotFoundException:
            metrics.record_http_request("DELETE", endpoint, 404, 0.0)
            raise HTTPException(
                status_code=404, detail=f"Presentation {presentation_id} not found"
            )
        except UnauthorizedAccessException:
            metrics.record_http_request("DELETE", endpoint, 403, 0.0)
            raise HTTPException(status_code=403, detail="Access denied")
        except StoreError as e:
            metrics.record_http_request("DELETE", endpoint, 500, 0.0)
            raise HTTPException(status_code=500, detail=str(e))

        metrics.record_http_request("DELETE", endpoint, 204, 0.0)
        return Response(status_code=204)
