# This project was developed with assistance from AI tools.
"""Payment reference workflow.

Applicants pay the service fee through a mobile-payment provider and type
the transaction reference in; an admin checks it against the provider
statement and approves or rejects. References are unique across all
applications (exact, case-sensitive match).
"""

import logging
from datetime import UTC, datetime

from db import Application
from db.enums import ApplicationStatus, PaymentStatus
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import settings
from ..schemas.audit import RequestMeta
from ..schemas.auth import DataScope, UserContext
from .application import get_admin_application, get_application
from .audit import write_audit_event
from .lifecycle import (
    DuplicatePaymentReferenceError,
    InvalidStatusError,
    Transition,
    check_transition,
    normalize_payment_reference,
)
from .scope import apply_data_scope, owner_scope

logger = logging.getLogger(__name__)


async def reference_in_use(
    session: AsyncSession,
    reference: str,
    *,
    exclude_application_id: int | None = None,
) -> bool:
    """True if another application already carries ``reference``."""
    stmt = select(Application.id).where(Application.payment_reference == reference)
    if exclude_application_id is not None:
        stmt = stmt.where(Application.id != exclude_application_id)
    result = await session.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def _find_awaiting_reference(
    session: AsyncSession, user: UserContext,
) -> Application | None:
    """The caller's newest PAYMENT_PENDING application without a reference."""
    stmt = apply_data_scope(
        select(Application)
        .options(selectinload(Application.children))
        .where(
            Application.status == ApplicationStatus.PAYMENT_PENDING,
            Application.payment_reference.is_(None),
        )
        .order_by(Application.created_at.desc(), Application.id.desc())
        .limit(1),
        owner_scope(user),
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _store_reference(session: AsyncSession, app: Application, reference: str) -> None:
    """Set the reference and flush; a unique-index race maps to the duplicate error."""
    if await reference_in_use(session, reference, exclude_application_id=app.id):
        raise DuplicatePaymentReferenceError(
            "This payment reference has already been used for another application."
        )
    app.payment_reference = reference
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicatePaymentReferenceError(
            "This payment reference has already been used for another application."
        ) from exc


async def attach_payment(
    session: AsyncSession,
    user: UserContext,
    reference: str,
    application_id: int | None = None,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Attach a payment reference to a PAYMENT_PENDING application.

    Targets ``application_id`` when given, otherwise the caller's newest
    application still waiting for a reference. Returns None when there is
    no such application.

    Raises:
        LifecycleValidationError: Malformed reference.
        InvalidStatusError: Not PAYMENT_PENDING, or a reference is already attached.
        DuplicatePaymentReferenceError: Reference used by another application.
    """
    reference = normalize_payment_reference(reference)

    if application_id is not None:
        app = await get_application(session, user, application_id)
    else:
        app = await _find_awaiting_reference(session, user)
    if app is None:
        return None

    check_transition(app, Transition.ATTACH_PAYMENT_REFERENCE)
    if app.payment_reference:
        raise InvalidStatusError("A payment reference has already been submitted for this application.")

    await _store_reference(session, app, reference)
    app.payment_status = PaymentStatus.PENDING

    await write_audit_event(
        session,
        action="PAYMENT_REFERENCE_SUBMITTED",
        user_id=user.user_id,
        application_id=app.id,
        details={"payment_reference": reference, "status": app.status.value},
        meta=meta,
    )
    app_id = app.id
    await session.commit()
    logger.info("Payment reference attached to application %s by user %s", app_id, user.user_id)
    return await get_application(session, user, app_id)


async def resubmit_payment_reference(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    reference: str,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Replace a rejected payment with a new reference; back to PAYMENT_PENDING."""
    reference = normalize_payment_reference(reference)

    app = await get_application(session, user, application_id)
    if app is None:
        return None

    previous = app.status
    new_status = check_transition(app, Transition.RESUBMIT_PAYMENT_REFERENCE)
    await _store_reference(session, app, reference)
    app.status = new_status
    app.payment_status = PaymentStatus.PENDING
    app.payment_verified_at = None
    app.payment_verified_by = None

    await write_audit_event(
        session,
        action="PAYMENT_REFERENCE_RESUBMITTED",
        user_id=user.user_id,
        application_id=app.id,
        details={
            "payment_reference": reference,
            "previous_status": previous.value,
            "new_status": new_status.value,
        },
        meta=meta,
    )
    await session.commit()
    logger.info(
        "Application %s: %s -> %s by user %s",
        application_id, previous.value, new_status.value, user.user_id,
    )
    return await get_application(session, user, application_id)


async def verify_payment(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    action: str,
    notes: str | None = None,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Admin approval or rejection of a PAYMENT_PENDING application's payment.

    Approve requires an attached reference. Reject clears the reference so
    the applicant can supply a new one.

    Raises:
        InvalidStatusError: Not PAYMENT_PENDING (including repeats), or no reference to approve.
    """
    app = await get_admin_application(session, user, application_id)
    if app is None:
        return None

    previous = app.status
    reference = app.payment_reference
    if action == "approve":
        new_status = check_transition(app, Transition.APPROVE_PAYMENT)
        if not reference:
            raise InvalidStatusError("No payment reference has been submitted for this application.")
        app.payment_status = PaymentStatus.VERIFIED
        audit_action = "PAYMENT_APPROVED"
    else:
        new_status = check_transition(app, Transition.REJECT_PAYMENT)
        app.payment_status = PaymentStatus.REJECTED
        app.payment_reference = None
        audit_action = "PAYMENT_REJECTED"

    app.status = new_status
    app.payment_verified_at = datetime.now(UTC)
    app.payment_verified_by = user.user_id

    await write_audit_event(
        session,
        action=audit_action,
        user_id=user.user_id,
        application_id=app.id,
        details={
            "previous_status": previous.value,
            "new_status": new_status.value,
            "payment_reference": reference,
            "notes": notes,
            "admin_email": user.email,
            "applicant_email": app.user.email if app.user else None,
        },
        meta=meta,
    )
    await session.commit()
    logger.info(
        "Application %s: %s -> %s by admin %s",
        application_id, previous.value, new_status.value, user.user_id,
    )
    return await get_admin_application(session, user, application_id)


def _payment_view(app: Application) -> dict:
    return {
        "application_id": app.id,
        "status": app.status,
        "payment_reference": app.payment_reference,
        "payment_status": app.payment_status,
        "payment_verified_at": app.payment_verified_at,
        "verified_by_email": app.verifier.email if app.verifier else None,
        "service_fee_etb": settings.SERVICE_FEE_ETB,
    }


async def get_current_payment(session: AsyncSession, user: UserContext) -> dict | None:
    """Payment state of the caller's newest application past DRAFT."""
    stmt = apply_data_scope(
        select(Application)
        .options(selectinload(Application.verifier))
        .where(Application.status != ApplicationStatus.DRAFT)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .limit(1),
        owner_scope(user),
    )
    app = (await session.execute(stmt)).scalar_one_or_none()
    return _payment_view(app) if app is not None else None


async def _find_payment(session: AsyncSession, application_id: int, scope: DataScope) -> dict | None:
    stmt = apply_data_scope(
        select(Application)
        .options(selectinload(Application.verifier))
        .where(Application.id == application_id),
        scope,
    )
    app = (await session.execute(stmt)).scalar_one_or_none()
    return _payment_view(app) if app is not None else None


async def get_payment_status(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> dict | None:
    """Payment state of one of the caller's own applications."""
    return await _find_payment(session, application_id, owner_scope(user))


async def get_admin_payment(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> dict | None:
    """Payment state of any application in the caller's DataScope."""
    return await _find_payment(session, application_id, user.data_scope)
