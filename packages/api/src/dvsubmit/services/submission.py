# This project was developed with assistance from AI tools.
"""Submission relay: recording confirmation numbers from the DV portal.

Admins file verified applications on the government site by hand and paste
the resulting confirmation number back here. Nothing in this module talks
to the government system.
"""

import logging
from datetime import UTC, datetime

from db import Application
from db.enums import ApplicationStatus, PaymentStatus
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.audit import RequestMeta
from ..schemas.auth import UserContext
from ..schemas.filters import SubmissionStatusFilter
from .application import get_admin_application
from .audit import write_audit_event
from .lifecycle import (
    DuplicateConfirmationError,
    LifecycleValidationError,
    Transition,
    check_transition,
    normalize_confirmation_number,
)
from .scope import apply_data_scope

logger = logging.getLogger(__name__)

S = ApplicationStatus

_RELAY_QUEUE = (S.PAYMENT_VERIFIED, S.SUBMITTED, S.CONFIRMED)

_STATUS_TRANSITIONS = {
    "SUBMITTED": Transition.MARK_SUBMITTED,
    "CONFIRMED": Transition.MARK_CONFIRMED,
    "FAILED": Transition.MARK_FAILED,
}


async def confirmation_in_use(
    session: AsyncSession,
    confirmation_number: str,
    *,
    exclude_application_id: int | None = None,
) -> bool:
    """True if another application already carries ``confirmation_number``."""
    stmt = select(Application.id).where(Application.confirmation_number == confirmation_number)
    if exclude_application_id is not None:
        stmt = stmt.where(Application.id != exclude_application_id)
    result = await session.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def _store_confirmation(session: AsyncSession, app: Application, confirmation_number: str) -> None:
    if await confirmation_in_use(session, confirmation_number, exclude_application_id=app.id):
        raise DuplicateConfirmationError(
            "This confirmation number has already been recorded for another application."
        )
    app.confirmation_number = confirmation_number
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateConfirmationError(
            "This confirmation number has already been recorded for another application."
        ) from exc


async def relay_submission(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    confirmation_number: str,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Record the DV confirmation number; PAYMENT_VERIFIED -> SUBMITTED.

    Checks run in order: format, existence, status, uniqueness.

    Raises:
        LifecycleValidationError: Malformed confirmation number.
        InvalidStatusError: Application is not PAYMENT_VERIFIED.
        DuplicateConfirmationError: Number already recorded elsewhere.
    """
    number = normalize_confirmation_number(confirmation_number)

    app = await get_admin_application(session, user, application_id)
    if app is None:
        return None

    previous = app.status
    new_status = check_transition(app, Transition.RELAY_SUBMISSION)
    await _store_confirmation(session, app, number)
    app.status = new_status
    app.submitted_at = datetime.now(UTC)
    app.submitted_by = user.user_id

    await write_audit_event(
        session,
        action="APPLICATION_SUBMITTED",
        user_id=user.user_id,
        application_id=app.id,
        details={
            "previous_status": previous.value,
            "new_status": new_status.value,
            "confirmation_number": number,
            "admin_email": user.email,
            "applicant_email": app.user.email if app.user else None,
            "applicant_name": app.applicant_name,
        },
        meta=meta,
    )
    await session.commit()
    logger.info(
        "Application %s: %s -> %s by admin %s",
        application_id, previous.value, new_status.value, user.user_id,
    )
    return await get_admin_application(session, user, application_id)


async def update_submission_status(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    status: str,
    confirmation_number: str | None = None,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Generic relay-queue status update (SUBMITTED, CONFIRMED or FAILED).

    FAILED is not stored: the application goes back to PAYMENT_VERIFIED and
    loses its confirmation number so it can be relayed again.
    """
    number = normalize_confirmation_number(confirmation_number) if confirmation_number else None

    app = await get_admin_application(session, user, application_id)
    if app is None:
        return None

    previous = app.status
    previous_number = app.confirmation_number
    new_status = check_transition(app, _STATUS_TRANSITIONS[status])

    if status == "FAILED":
        app.confirmation_number = None
        app.submitted_at = None
        app.submitted_by = None
    else:
        if number is None and not app.confirmation_number:
            raise LifecycleValidationError("Confirmation number is required.")
        if number is not None and number != app.confirmation_number:
            await _store_confirmation(session, app, number)
        if app.submitted_at is None:
            app.submitted_at = datetime.now(UTC)
            app.submitted_by = user.user_id
    app.status = new_status

    await write_audit_event(
        session,
        action="SUBMISSION_STATUS_UPDATED",
        user_id=user.user_id,
        application_id=app.id,
        details={
            "previous_status": previous.value,
            "new_status": new_status.value,
            "requested_status": status,
            "confirmation_number": app.confirmation_number,
            "previous_confirmation_number": previous_number,
            "admin_email": user.email,
        },
        meta=meta,
    )
    await session.commit()
    logger.info(
        "Application %s: %s -> %s (%s) by admin %s",
        application_id, previous.value, new_status.value, status, user.user_id,
    )
    return await get_admin_application(session, user, application_id)


async def list_submissions(
    session: AsyncSession,
    user: UserContext,
    *,
    status: SubmissionStatusFilter | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """Relay queue: verified, submitted and confirmed applications, oldest verification first."""
    statuses = (S(status.value),) if status is not None else _RELAY_QUEUE
    where = Application.status.in_(statuses)

    count_stmt = apply_data_scope(select(func.count(Application.id)).where(where), user.data_scope)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = apply_data_scope(
        select(Application)
        .where(where)
        .order_by(Application.payment_verified_at.asc().nulls_last(), Application.id.asc())
        .offset(offset)
        .limit(limit),
        user.data_scope,
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def get_statistics(session: AsyncSession) -> dict:
    """Back-office dashboard counters."""

    async def count(*criteria) -> int:
        result = await session.execute(select(func.count(Application.id)).where(*criteria))
        return result.scalar() or 0

    return {
        "total_submitted_applications": await count(Application.status != S.DRAFT),
        "pending_payment_verification": await count(
            Application.status == S.PAYMENT_PENDING,
            Application.payment_status == PaymentStatus.PENDING,
        ),
        "rejected_payments": await count(Application.payment_status == PaymentStatus.REJECTED),
        "pending_review_and_submit": await count(Application.status == S.PAYMENT_VERIFIED),
        "submitted_to_dv": await count(Application.status.in_((S.SUBMITTED, S.CONFIRMED))),
    }
