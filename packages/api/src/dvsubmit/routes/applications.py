# This project was developed with assistance from AI tools.
"""Applicant-facing application routes.

Every handler runs the authorization gate first (``require_action``); the
service layer then scopes rows to the caller, so another user's application
is a 404, never a 403.
"""

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action
from ..middleware.auth import require_action
from ..middleware.request_meta import Meta
from ..schemas import MutationResponse, Pagination
from ..schemas.application import (
    ApplicationDraft,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationSubmit,
    ApplicationSummary,
    AutoSaveRequest,
    DuplicateCheckResponse,
)
from ..schemas.auth import UserContext
from ..schemas.payment import PaymentReferenceRequest
from ..services import application as app_service
from ..services import payment as payment_service

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")


@router.get("/", response_model=ApplicationListResponse)
async def list_applications(
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
) -> ApplicationListResponse:
    """The caller's applications, newest first."""
    applications, total = await app_service.list_applications(
        session, user, offset=offset, limit=limit,
    )
    return ApplicationListResponse(
        data=[ApplicationResponse.model_validate(app) for app in applications],
        pagination=Pagination.build(total, offset, limit),
    )


@router.post(
    "/",
    response_model=MutationResponse[ApplicationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_draft(
    body: ApplicationDraft,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.SAVE_DRAFT)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[ApplicationResponse]:
    """Create the caller's draft, or update it if one exists."""
    app = await app_service.create_draft(session, user, body, meta)
    return MutationResponse(data=ApplicationResponse.model_validate(app), message="Draft saved")


@router.post("/auto-save", response_model=MutationResponse[ApplicationResponse])
async def auto_save(
    body: AutoSaveRequest,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.SAVE_DRAFT)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[ApplicationResponse]:
    app = await app_service.auto_save(
        session,
        user,
        body.data,
        mode=body.mode,
        application_id=body.application_id,
        meta=meta,
    )
    if app is None:
        raise _not_found()
    return MutationResponse(data=ApplicationResponse.model_validate(app), message="Progress saved")


@router.post("/submit", response_model=MutationResponse[ApplicationResponse])
async def submit_for_payment(
    body: ApplicationSubmit,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.SUBMIT_APPLICATION)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[ApplicationResponse]:
    """Submit the complete form; the application moves to PAYMENT_PENDING."""
    app = await app_service.submit_for_payment(session, user, body, meta)
    return MutationResponse(
        data=ApplicationResponse.model_validate(app),
        message="Application submitted. Please complete the service fee payment.",
    )


@router.get("/check-duplicate", response_model=DuplicateCheckResponse)
async def check_duplicate(
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> DuplicateCheckResponse:
    result = await app_service.check_duplicate(session, user)
    result["existing_applications"] = [
        ApplicationSummary.model_validate(app) for app in result["existing_applications"]
    ]
    return DuplicateCheckResponse(**result)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    app = await app_service.view_application(session, user, application_id, meta)
    if app is None:
        raise _not_found()
    return ApplicationResponse.model_validate(app)


@router.delete("/{application_id}", response_model=MutationResponse[dict])
async def delete_application(
    application_id: int,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.DELETE_APPLICATION)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[dict]:
    """Delete an application that has not been relayed to the DV portal."""
    deleted = await app_service.delete_application(session, user, application_id, meta)
    if deleted is None:
        raise _not_found()
    return MutationResponse(data={"id": application_id}, message="Application deleted")


@router.put("/{application_id}/resubmit", response_model=MutationResponse[ApplicationResponse])
async def resubmit_application(
    application_id: int,
    body: ApplicationSubmit,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.SUBMIT_APPLICATION)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[ApplicationResponse]:
    """Resubmit a rejected application with corrected details."""
    app = await app_service.resubmit_application(session, user, application_id, body, meta)
    if app is None:
        raise _not_found()
    return MutationResponse(
        data=ApplicationResponse.model_validate(app),
        message="Application resubmitted for review",
    )


@router.patch(
    "/{application_id}/payment-reference",
    response_model=MutationResponse[ApplicationResponse],
)
async def resubmit_payment_reference(
    application_id: int,
    body: PaymentReferenceRequest,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.ATTACH_PAYMENT)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[ApplicationResponse]:
    """Supply a new payment reference after the previous one was rejected."""
    app = await payment_service.resubmit_payment_reference(
        session, user, application_id, body.payment_reference, meta,
    )
    if app is None:
        raise _not_found()
    return MutationResponse(
        data=ApplicationResponse.model_validate(app),
        message="Payment reference updated",
    )


@router.get("/{application_id}/proof", response_class=HTMLResponse)
async def download_proof(
    application_id: int,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    """Printable proof of submission for a relayed application."""
    result = await app_service.render_proof(session, user, application_id, meta)
    if result is None:
        raise _not_found()
    body, filename = result
    return HTMLResponse(
        content=body,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
