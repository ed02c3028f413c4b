# This project was developed with assistance from AI tools.
"""Back-office routes: application review, payment verification, submission relay."""

from db import get_db
from db.enums import ApplicationStatus
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action
from ..middleware.auth import require_action
from ..middleware.request_meta import Meta
from ..schemas import MutationResponse, Pagination
from ..schemas.auth import UserContext
from ..schemas.filters import ApplicationQueue, SubmissionStatusFilter, build_application_filter
from ..schemas.payment import PaymentStatusResponse, PaymentVerifyRequest
from ..schemas.submission import (
    AdminApplicationListResponse,
    AdminApplicationResponse,
    RejectApplicationRequest,
    RelaySubmissionRequest,
    StatisticsResponse,
    SubmissionItem,
    SubmissionListResponse,
    SubmissionStatusUpdate,
)
from ..services import application as app_service
from ..services import payment as payment_service
from ..services import submission as submission_service

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


@router.get("/applications", response_model=AdminApplicationListResponse)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(default=None, alias="status"),
    queue: ApplicationQueue | None = None,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    user: UserContext = Depends(require_action(Action.REVIEW_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> AdminApplicationListResponse:
    """All applications, filtered by exact status or by named work queue."""
    try:
        flt = build_application_filter(status_filter, queue)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    applications, total = await app_service.list_admin_applications(
        session, user, flt, offset=offset, limit=limit,
    )
    return AdminApplicationListResponse(
        data=[AdminApplicationResponse.model_validate(app) for app in applications],
        pagination=Pagination.build(total, offset, limit),
    )


@router.get("/applications/{application_id}", response_model=AdminApplicationResponse)
async def get_application(
    application_id: int,
    user: UserContext = Depends(require_action(Action.REVIEW_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> AdminApplicationResponse:
    app = await app_service.get_admin_application(session, user, application_id)
    if app is None:
        raise _not_found()
    return AdminApplicationResponse.model_validate(app)


@router.post(
    "/applications/{application_id}/reject",
    response_model=MutationResponse[AdminApplicationResponse],
)
async def reject_application(
    application_id: int,
    body: RejectApplicationRequest,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.REJECT_APPLICATION)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AdminApplicationResponse]:
    app = await app_service.reject_application(
        session, user, application_id, body.rejection_note, meta,
    )
    if app is None:
        raise _not_found()
    return MutationResponse(
        data=AdminApplicationResponse.model_validate(app),
        message="Application rejected",
    )


@router.post(
    "/applications/{application_id}/submit",
    response_model=MutationResponse[AdminApplicationResponse],
)
async def relay_submission(
    application_id: int,
    body: RelaySubmissionRequest,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.RELAY_SUBMISSION)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AdminApplicationResponse]:
    """Record the confirmation number issued by the DV portal."""
    app = await submission_service.relay_submission(
        session, user, application_id, body.confirmation_number, meta,
    )
    if app is None:
        raise _not_found()
    return MutationResponse(
        data=AdminApplicationResponse.model_validate(app),
        message="Application marked as submitted",
    )


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@router.get("/payments/{application_id}", response_model=PaymentStatusResponse)
async def get_payment(
    application_id: int,
    user: UserContext = Depends(require_action(Action.REVIEW_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> PaymentStatusResponse:
    result = await payment_service.get_admin_payment(session, user, application_id)
    if result is None:
        raise _not_found()
    return PaymentStatusResponse(**result)


@router.post(
    "/payments/{application_id}/verify",
    response_model=MutationResponse[AdminApplicationResponse],
)
async def verify_payment(
    application_id: int,
    body: PaymentVerifyRequest,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.VERIFY_PAYMENT)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AdminApplicationResponse]:
    """Approve or reject the payment reference attached to an application."""
    app = await payment_service.verify_payment(
        session, user, application_id, body.action, body.notes, meta,
    )
    if app is None:
        raise _not_found()
    return MutationResponse(
        data=AdminApplicationResponse.model_validate(app),
        message="Payment approved" if body.action == "approve" else "Payment rejected",
    )


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


@router.get("/submissions", response_model=SubmissionListResponse)
async def list_submissions(
    status_filter: SubmissionStatusFilter | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    user: UserContext = Depends(require_action(Action.REVIEW_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> SubmissionListResponse:
    applications, total = await submission_service.list_submissions(
        session, user, status=status_filter, offset=offset, limit=limit,
    )
    return SubmissionListResponse(
        data=[SubmissionItem.model_validate(app) for app in applications],
        pagination=Pagination.build(total, offset, limit),
    )


@router.put(
    "/submissions/{application_id}",
    response_model=MutationResponse[AdminApplicationResponse],
)
async def update_submission_status(
    application_id: int,
    body: SubmissionStatusUpdate,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.RELAY_SUBMISSION)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AdminApplicationResponse]:
    app = await submission_service.update_submission_status(
        session, user, application_id, body.status, body.confirmation_number, meta,
    )
    if app is None:
        raise _not_found()
    return MutationResponse(
        data=AdminApplicationResponse.model_validate(app),
        message=f"Submission status updated to {body.status}",
    )


@router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(
    _user: UserContext = Depends(require_action(Action.VIEW_STATISTICS)),
    session: AsyncSession = Depends(get_db),
) -> StatisticsResponse:
    return StatisticsResponse(**await submission_service.get_statistics(session))
