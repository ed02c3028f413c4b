# This project was developed with assistance from AI tools.
"""Audit log service.

Writes append-only audit rows with a SHA-256 hash chain for tamper
evidence and a PostgreSQL advisory lock for serial hash computation.

Every writer follows one policy: the row is written inside a SAVEPOINT, and
if that fails only the savepoint rolls back. The failure and the full
would-be row go to the ``dvsubmit.audit.deadletter`` logger; the caller's
primary transaction carries on and commits.
"""

import hashlib
import json
import logging

from db import AuditLog, User
from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.audit import RequestMeta
from ..schemas.filters import AuditLogFilter

logger = logging.getLogger(__name__)
deadletter = logging.getLogger("dvsubmit.audit.deadletter")

# Fixed advisory lock key for audit trail serialization.
AUDIT_LOCK_KEY = 420_001


def _compute_hash(event_id: int, timestamp: str, details: dict | None) -> str:
    """Compute SHA-256 hash of an audit row's key fields."""
    payload = f"{event_id}|{timestamp}|{json.dumps(details, sort_keys=True, default=str)}"
    return hashlib.sha256(payload.encode()).hexdigest()


async def _append(session: AsyncSession, entry: AuditLog) -> None:
    # Released automatically when the outer transaction commits or rolls back.
    await session.execute(text(f"SELECT pg_advisory_xact_lock({AUDIT_LOCK_KEY})"))

    latest = await session.execute(select(AuditLog).order_by(AuditLog.id.desc()).limit(1))
    prev = latest.scalar_one_or_none()
    entry.prev_hash = (
        _compute_hash(prev.id, str(prev.timestamp), prev.details) if prev is not None else "genesis"
    )
    session.add(entry)
    await session.flush()


async def write_audit_event(
    session: AsyncSession,
    *,
    action: str,
    user_id: int | None = None,
    application_id: int | None = None,
    details: dict | None = None,
    meta: RequestMeta | None = None,
) -> AuditLog | None:
    """Append one audit row; never raises on a database failure.

    Args:
        session: The caller's session; the row commits with the caller's work.
        action: Action tag, e.g. ``PAYMENT_APPROVED``.
        user_id: Acting user, or None for system actions.
        application_id: Related application, if any.
        details: JSON-serializable context (previous/new status etc).
        meta: Requester IP and user agent.

    Returns:
        The flushed AuditLog, or None when the write was dead-lettered.
    """
    entry = AuditLog(
        action=action,
        user_id=user_id,
        application_id=application_id,
        details=details,
        ip_address=meta.ip_address if meta else None,
        user_agent=meta.user_agent if meta else None,
    )

    # Flush the caller's pending work first so its errors reach the caller
    # and only the audit row itself sits inside the savepoint.
    await session.flush()
    savepoint = await session.begin_nested()
    try:
        await _append(session, entry)
        await savepoint.commit()
    except SQLAlchemyError:
        await savepoint.rollback()
        deadletter.exception(
            "Audit write failed: %s",
            json.dumps(
                {
                    "action": action,
                    "user_id": user_id,
                    "application_id": application_id,
                    "details": details,
                    "ip_address": entry.ip_address,
                    "user_agent": entry.user_agent,
                },
                default=str,
            ),
        )
        return None
    return entry


def _apply_audit_filter(stmt, flt: AuditLogFilter):
    if flt.action:
        stmt = stmt.where(AuditLog.action.ilike(f"%{flt.action}%"))
    if flt.user_id is not None:
        stmt = stmt.where(AuditLog.user_id == flt.user_id)
    if flt.application_id is not None:
        stmt = stmt.where(AuditLog.application_id == flt.application_id)
    if flt.start_date is not None:
        stmt = stmt.where(AuditLog.timestamp >= flt.start_date)
    if flt.end_date is not None:
        stmt = stmt.where(AuditLog.timestamp <= flt.end_date)
    if flt.search:
        pattern = f"%{flt.search}%"
        stmt = stmt.where(
            or_(
                AuditLog.action.ilike(pattern),
                AuditLog.ip_address.ilike(pattern),
                User.email.ilike(pattern),
            )
        )
    return stmt


async def search_audit_logs(
    session: AsyncSession,
    flt: AuditLogFilter,
    *,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[tuple[AuditLog, str | None]], int]:
    """Return (row, actor email) pairs matching ``flt``, newest first."""
    count_stmt = select(func.count(AuditLog.id)).outerjoin(User, User.id == AuditLog.user_id)
    total = (await session.execute(_apply_audit_filter(count_stmt, flt))).scalar() or 0

    stmt = (
        select(AuditLog, User.email)
        .outerjoin(User, User.id == AuditLog.user_id)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(_apply_audit_filter(stmt, flt))
    return [(row, email) for row, email in result.all()], total


async def verify_audit_chain(session: AsyncSession) -> dict:
    """Verify the integrity of the audit hash chain.

    Returns:
        {"status": "OK", "events_checked": N} on success, or
        {"status": "TAMPERED", "first_break_id": id, "events_checked": N}
        if a mismatch is found.
    """
    result = await session.execute(select(AuditLog).order_by(AuditLog.id.asc()))
    events = list(result.scalars().all())

    for i, event in enumerate(events):
        if i == 0:
            expected = "genesis"
        else:
            prev = events[i - 1]
            expected = _compute_hash(prev.id, str(prev.timestamp), prev.details)

        if event.prev_hash != expected:
            return {
                "status": "TAMPERED",
                "first_break_id": event.id,
                "events_checked": i + 1,
            }

    return {"status": "OK", "events_checked": len(events)}
