# This project was developed with assistance from AI tools.
"""Applicant payment reference routes."""

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action
from ..middleware.auth import require_action
from ..middleware.request_meta import Meta
from ..schemas import MutationResponse
from ..schemas.application import ApplicationResponse
from ..schemas.auth import UserContext
from ..schemas.payment import PaymentReferenceRequest, PaymentStatusResponse
from ..services import payment as payment_service

router = APIRouter()


@router.post("/", response_model=MutationResponse[ApplicationResponse])
async def submit_payment_reference(
    body: PaymentReferenceRequest,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.ATTACH_PAYMENT)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[ApplicationResponse]:
    """Attach the mobile-payment transaction reference for admin verification."""
    app = await payment_service.attach_payment(
        session, user, body.payment_reference, body.application_id, meta,
    )
    if app is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No application is awaiting a payment reference",
        )
    return MutationResponse(
        data=ApplicationResponse.model_validate(app),
        message="Payment reference submitted. An administrator will verify it shortly.",
    )


@router.get("/", response_model=PaymentStatusResponse)
async def get_current_payment(
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> PaymentStatusResponse:
    result = await payment_service.get_current_payment(session, user)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No submitted application")
    return PaymentStatusResponse(**result)


@router.get("/{application_id}/status", response_model=PaymentStatusResponse)
async def get_payment_status(
    application_id: int,
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> PaymentStatusResponse:
    result = await payment_service.get_payment_status(session, user, application_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return PaymentStatusResponse(**result)
