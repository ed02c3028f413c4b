# This project was developed with assistance from AI tools.
"""Legal acknowledgment routes."""

from typing import Literal

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action
from ..middleware.auth import require_action
from ..middleware.request_meta import Meta
from ..schemas import MutationResponse
from ..schemas.auth import UserContext
from ..schemas.legal import AcknowledgmentRequest, AcknowledgmentResponse
from ..services import legal as legal_service

router = APIRouter()


@router.post(
    "/acknowledgment",
    response_model=MutationResponse[AcknowledgmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def acknowledge(
    body: AcknowledgmentRequest,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.ACKNOWLEDGE_TERMS)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AcknowledgmentResponse]:
    row = await legal_service.record_acknowledgment(
        session, user, body.version, body.document_type, meta,
    )
    return MutationResponse(
        data=AcknowledgmentResponse.model_validate(row),
        message="Legal acknowledgment recorded",
    )


@router.get("/acknowledgment", response_model=AcknowledgmentResponse)
async def latest_acknowledgment(
    document_type: Literal["terms", "privacy", "disclaimer"] | None = None,
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> AcknowledgmentResponse:
    row = await legal_service.get_latest_acknowledgment(session, user, document_type)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No acknowledgment on record")
    return AcknowledgmentResponse.model_validate(row)
