# This project was developed with assistance from AI tools.
"""Application service: owner drafts, submission for payment, admin review.

Owner-facing functions are always scoped to the caller's own rows, admin
functions to the caller's DataScope. Every status change goes through
``lifecycle.check_transition`` and writes one audit row in the same
transaction.
"""

import html
import logging
from datetime import UTC, datetime

from db import Application, Child
from db.enums import ApplicationStatus, PaymentStatus
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.application import ApplicationDraft, ApplicationSubmit, ChildInput
from ..schemas.audit import RequestMeta
from ..schemas.auth import UserContext
from ..schemas.filters import ApplicationFilter, ApplicationQueue, ByQueue, ByStatus
from .audit import write_audit_event
from .lifecycle import (
    InvalidStatusError,
    LifecycleValidationError,
    NotSubmittedError,
    Transition,
    check_transition,
    ensure_editable,
    normalize_rejection_note,
)
from .scope import apply_data_scope, owner_scope

logger = logging.getLogger(__name__)

S = ApplicationStatus

_EDITABLE_STATUSES = frozenset({S.DRAFT, S.PAYMENT_PENDING})
_UNDELETABLE_STATUSES = frozenset({S.SUBMITTED, S.CONFIRMED})

_QUEUE_STATUSES: dict[ApplicationQueue, tuple[ApplicationStatus, ...]] = {
    ApplicationQueue.PENDING_PAYMENT: (S.PAYMENT_PENDING,),
    ApplicationQueue.PENDING_REVIEW: (S.PAYMENT_VERIFIED,),
    ApplicationQueue.PAYMENT_REJECTED: (S.PAYMENT_REJECTED,),
    ApplicationQueue.APPLICATION_REJECTED: (S.APPLICATION_REJECTED,),
    ApplicationQueue.SUBMITTED: (S.SUBMITTED, S.CONFIRMED),
}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _detail_query():
    return select(Application).options(selectinload(Application.children))


async def get_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> Application | None:
    """Return one of the caller's own applications, children loaded.

    Returns None (which the route maps to 404) for other users' rows
    rather than 403, to avoid leaking existence of resources.
    """
    stmt = apply_data_scope(
        _detail_query().where(Application.id == application_id), owner_scope(user),
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_applications(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """Return the caller's applications, newest first."""
    scope = owner_scope(user)
    count_stmt = apply_data_scope(select(func.count(Application.id)), scope)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = apply_data_scope(
        _detail_query()
        .order_by(Application.created_at.desc(), Application.id.desc())
        .offset(offset)
        .limit(limit),
        scope,
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def view_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    meta: RequestMeta | None = None,
) -> Application | None:
    """``get_application`` plus an ``APPLICATION_VIEWED`` audit row."""
    app = await get_application(session, user, application_id)
    if app is None:
        return None
    await write_audit_event(
        session,
        action="APPLICATION_VIEWED",
        user_id=user.user_id,
        application_id=app.id,
        details={"status": app.status.value},
        meta=meta,
    )
    await session.commit()
    return app


async def check_duplicate(session: AsyncSession, user: UserContext) -> dict:
    """Report whether the caller already has an active application."""
    stmt = apply_data_scope(
        select(Application)
        .where(Application.status != S.EXPIRED)
        .order_by(Application.created_at.desc()),
        owner_scope(user),
    )
    result = await session.execute(stmt)
    existing = list(result.scalars().all())

    active = ApplicationStatus.active_statuses()
    has_duplicate = any(app.status in active for app in existing)
    return {
        "can_submit": not has_duplicate,
        "has_duplicate": has_duplicate,
        "existing_applications": existing,
        "message": (
            "You already have an active application for the current DV cycle"
            if has_duplicate
            else "You can submit a new application"
        ),
    }


# ---------------------------------------------------------------------------
# Field handling
# ---------------------------------------------------------------------------


def _build_children(children: list[ChildInput]) -> list[Child]:
    return [Child(**child.model_dump()) for child in children]


def _check_photo_paths(owner_id: int, data: ApplicationDraft) -> None:
    """Photo keys must sit under the application owner's ``{user_id}/`` prefix."""
    paths = [data.photo_url, data.spouse_photo_url]
    paths += [child.photo_url for child in data.children or []]
    prefix = f"{owner_id}/"
    for path in paths:
        if path and (not path.startswith(prefix) or ".." in path.split("/")):
            logger.warning("Foreign photo path refused: owner=%s path=%s", owner_id, path)
            raise LifecycleValidationError("Photos must be uploaded from this account.")


def _apply_fields(app: Application, data: ApplicationDraft, *, complete: bool = False) -> list[str]:
    """Copy the fields the client sent onto ``app``; returns their names.

    A complete submission always replaces the children, even with none.
    """
    _check_photo_paths(app.user_id, data)
    fields = data.model_dump(exclude={"children"}, exclude_unset=True)
    for name, value in fields.items():
        setattr(app, name, value)
    written = sorted(fields)

    if complete or "children" in data.model_fields_set:
        app.children = _build_children(data.children or [])
        written.append("children")
    return written


async def _find_draft(session: AsyncSession, user_id: int) -> Application | None:
    result = await session.execute(
        _detail_query().where(
            Application.user_id == user_id,
            Application.status == S.DRAFT,
        )
    )
    return result.scalar_one_or_none()


async def _find_or_create_draft(
    session: AsyncSession, user: UserContext,
) -> tuple[Application, bool]:
    """Return the caller's single DRAFT, creating it if needed.

    The partial unique index on (user_id) WHERE status = 'DRAFT' settles
    concurrent creates; the loser picks up the winner's row.
    """
    draft = await _find_draft(session, user.user_id)
    if draft is not None:
        return draft, False

    draft = Application(user_id=user.user_id, status=S.DRAFT, children=[])
    savepoint = await session.begin_nested()
    session.add(draft)
    try:
        await session.flush()
        await savepoint.commit()
    except IntegrityError:
        await savepoint.rollback()
        existing = await _find_draft(session, user.user_id)
        if existing is None:
            raise
        return existing, False
    return draft, True


# ---------------------------------------------------------------------------
# Owner mutations
# ---------------------------------------------------------------------------


async def _save_draft(
    session: AsyncSession,
    user: UserContext,
    data: ApplicationDraft,
    meta: RequestMeta | None,
    *,
    created_action: str,
    updated_action: str,
) -> Application | None:
    draft, created = await _find_or_create_draft(session, user)
    written = _apply_fields(draft, data)
    await session.flush()

    await write_audit_event(
        session,
        action=created_action if created else updated_action,
        user_id=user.user_id,
        application_id=draft.id,
        details={"fields": written},
        meta=meta,
    )
    app_id = draft.id
    await session.commit()
    return await get_application(session, user, app_id)


async def create_draft(
    session: AsyncSession,
    user: UserContext,
    data: ApplicationDraft,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Find the caller's DRAFT or create one, then apply the partial fields."""
    return await _save_draft(
        session,
        user,
        data,
        meta,
        created_action="APPLICATION_CREATED",
        updated_action="APPLICATION_UPDATED",
    )


async def auto_save(
    session: AsyncSession,
    user: UserContext,
    data: ApplicationDraft,
    *,
    mode: str = "new",
    application_id: int | None = None,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Persist a partial form while the applicant types.

    ``mode="new"`` saves into the caller's DRAFT. ``mode="edit"`` updates a
    named application that is still DRAFT or PAYMENT_PENDING.

    Raises:
        InvalidStatusError: The named application can no longer be edited.
    """
    if mode == "new":
        return await _save_draft(
            session,
            user,
            data,
            meta,
            created_action="APPLICATION_AUTO_SAVED",
            updated_action="APPLICATION_AUTO_SAVED",
        )

    app = await get_application(session, user, application_id)
    if app is None:
        return None
    ensure_editable(app)
    if app.status not in _EDITABLE_STATUSES:
        raise InvalidStatusError(
            f"Application cannot be edited in status '{app.status.value}'."
        )

    written = _apply_fields(app, data)
    await write_audit_event(
        session,
        action="APPLICATION_EDITED",
        user_id=user.user_id,
        application_id=app.id,
        details={"fields": written, "status": app.status.value},
        meta=meta,
    )
    await session.commit()
    return await get_application(session, user, application_id)


async def submit_for_payment(
    session: AsyncSession,
    user: UserContext,
    data: ApplicationSubmit,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Move the caller's DRAFT to PAYMENT_PENDING with the complete form.

    ``data`` has already passed the complete-application schema. Children
    are replaced wholesale.
    """
    draft, _ = await _find_or_create_draft(session, user)
    new_status = check_transition(draft, Transition.SUBMIT_FOR_PAYMENT)

    _apply_fields(draft, data, complete=True)
    draft.status = new_status
    draft.payment_status = PaymentStatus.PENDING
    await session.flush()

    await write_audit_event(
        session,
        action="APPLICATION_SUBMITTED_FOR_PAYMENT",
        user_id=user.user_id,
        application_id=draft.id,
        details={
            "previous_status": S.DRAFT.value,
            "new_status": new_status.value,
            "children": len(data.children),
        },
        meta=meta,
    )
    app_id = draft.id
    await session.commit()
    logger.info(
        "Application %s: %s -> %s by user %s",
        app_id, S.DRAFT.value, new_status.value, user.user_id,
    )
    return await get_application(session, user, app_id)


async def resubmit_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    data: ApplicationSubmit,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Send a rejected application back to PAYMENT_PENDING with corrected data.

    The payment reference is left as it is; the rejection note is cleared.
    """
    app = await get_application(session, user, application_id)
    if app is None:
        return None

    previous = app.status
    new_status = check_transition(app, Transition.RESUBMIT_APPLICATION)
    rejection_note = app.rejection_note

    _apply_fields(app, data, complete=True)
    app.status = new_status
    app.payment_status = PaymentStatus.PENDING
    app.rejection_note = None

    await write_audit_event(
        session,
        action="APPLICATION_RESUBMITTED",
        user_id=user.user_id,
        application_id=app.id,
        details={
            "previous_status": previous.value,
            "new_status": new_status.value,
            "previous_rejection_note": rejection_note,
            "payment_reference": app.payment_reference,
        },
        meta=meta,
    )
    await session.commit()
    logger.info(
        "Application %s: %s -> %s by user %s",
        application_id, previous.value, new_status.value, user.user_id,
    )
    return await get_application(session, user, application_id)


async def delete_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    meta: RequestMeta | None = None,
) -> bool | None:
    """Delete one of the caller's applications.

    Returns None when not found. Children go with the row; audit rows stay.

    Raises:
        InvalidStatusError: The application was already relayed.
    """
    app = await get_application(session, user, application_id)
    if app is None:
        return None
    if app.status in _UNDELETABLE_STATUSES:
        raise InvalidStatusError(
            f"Application in status '{app.status.value}' cannot be deleted."
        )

    await write_audit_event(
        session,
        action="APPLICATION_DELETED",
        user_id=user.user_id,
        application_id=app.id,
        details={
            "status": app.status.value,
            "applicant_name": app.applicant_name,
            "payment_reference": app.payment_reference,
        },
        meta=meta,
    )
    await session.delete(app)
    await session.commit()
    logger.info("Application %s deleted by user %s", application_id, user.user_id)
    return True


# ---------------------------------------------------------------------------
# Proof of submission
# ---------------------------------------------------------------------------

_PROOF_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>DV Lottery Submission Proof - {confirmation_number}</title>
<style>
body {{ font-family: 'Times New Roman', serif; max-width: 800px; margin: 0 auto; padding: 40px 20px; color: #333; }}
.header {{ text-align: center; border-bottom: 3px solid #1f2937; margin-bottom: 30px; }}
.confirmation {{ border: 2px solid #0ea5e9; border-radius: 8px; padding: 20px; text-align: center; }}
.confirmation-number {{ font-size: 32px; font-weight: bold; font-family: 'Courier New', monospace; letter-spacing: 2px; }}
table {{ width: 100%; border-collapse: collapse; margin-top: 30px; }}
td {{ padding: 8px; border-bottom: 1px solid #e5e7eb; }}
@media print {{ body {{ padding: 0; }} }}
</style>
</head>
<body>
<div class="header">
<h1>Diversity Visa Lottery</h1>
<p>Proof of Submission</p>
</div>
<div class="confirmation">
<p>Confirmation Number</p>
<div class="confirmation-number">{confirmation_number}</div>
<p>Keep this number. You need it to check your entry status.</p>
</div>
<table>
<tr><td>Applicant</td><td>{applicant_name}</td></tr>
<tr><td>Date of birth</td><td>{date_of_birth}</td></tr>
<tr><td>Country of eligibility</td><td>{country_of_eligibility}</td></tr>
<tr><td>Submitted</td><td>{submitted_at}</td></tr>
<tr><td>Payment reference</td><td>{payment_reference}</td></tr>
<tr><td>Generated</td><td>{generated_at}</td></tr>
</table>
<p>This document was generated by DVSubmit. Official entry status is published
only by the U.S. Department of State at dvprogram.state.gov.</p>
</body>
</html>
"""


def _proof_html(app: Application) -> str:
    def esc(value) -> str:
        return html.escape(str(value)) if value is not None else ""

    return _PROOF_TEMPLATE.format(
        confirmation_number=esc(app.confirmation_number),
        applicant_name=esc(app.applicant_name),
        date_of_birth=esc(app.date_of_birth.isoformat() if app.date_of_birth else None),
        country_of_eligibility=esc(app.country_of_eligibility),
        submitted_at=esc(app.submitted_at.strftime("%B %d, %Y %H:%M %Z")),
        payment_reference=esc(app.payment_reference),
        generated_at=esc(datetime.now(UTC).strftime("%B %d, %Y %H:%M UTC")),
    )


async def render_proof(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    meta: RequestMeta | None = None,
) -> tuple[str, str] | None:
    """Return (html, filename) for a printable proof of submission.

    Raises:
        NotSubmittedError: No confirmation number has been recorded yet.
    """
    app = await get_application(session, user, application_id)
    if app is None:
        return None
    if not app.confirmation_number or app.submitted_at is None:
        raise NotSubmittedError("Application has not been submitted yet.")

    body = _proof_html(app)
    await write_audit_event(
        session,
        action="PROOF_DOWNLOADED",
        user_id=user.user_id,
        application_id=app.id,
        details={"confirmation_number": app.confirmation_number},
        meta=meta,
    )
    await session.commit()
    return body, f"DV-Submission-Proof-{app.confirmation_number}.html"


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------


def _admin_query():
    return select(Application).options(
        selectinload(Application.children),
        selectinload(Application.user),
    )


def _apply_application_filter(stmt, flt: ApplicationFilter):
    match flt:
        case ByStatus(status=status):
            return stmt.where(Application.status == status)
        case ByQueue(queue=queue):
            return stmt.where(Application.status.in_(_QUEUE_STATUSES[queue]))
        case _:
            return stmt


async def get_admin_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> Application | None:
    """Return any application in the caller's scope, with applicant and children."""
    stmt = apply_data_scope(
        _admin_query().where(Application.id == application_id), user.data_scope,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_admin_applications(
    session: AsyncSession,
    user: UserContext,
    flt: ApplicationFilter,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """Back-office application list, newest first."""
    count_stmt = _apply_application_filter(select(func.count(Application.id)), flt)
    count_stmt = apply_data_scope(count_stmt, user.data_scope)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = _apply_application_filter(
        _admin_query().order_by(Application.created_at.desc(), Application.id.desc()), flt,
    )
    stmt = apply_data_scope(stmt.offset(offset).limit(limit), user.data_scope)
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def reject_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    rejection_note: str,
    meta: RequestMeta | None = None,
) -> Application | None:
    """Reject an application with a note shown to the applicant.

    The note is checked before the row is read, so a blank note never
    mutates anything.

    Raises:
        LifecycleValidationError: Blank note.
        InvalidStatusError: Already rejected, relayed, confirmed or expired.
    """
    note = normalize_rejection_note(rejection_note)

    app = await get_admin_application(session, user, application_id)
    if app is None:
        return None

    previous = app.status
    new_status = check_transition(app, Transition.REJECT_APPLICATION)
    app.status = new_status
    app.rejection_note = note

    await write_audit_event(
        session,
        action="APPLICATION_REJECTED",
        user_id=user.user_id,
        application_id=app.id,
        details={
            "previous_status": previous.value,
            "new_status": new_status.value,
            "rejection_note": note,
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
