# This project was developed with assistance from AI tools.
"""Legal document acknowledgments (terms, privacy notice, disclaimer)."""

from db import LegalAcknowledgment
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.audit import RequestMeta
from ..schemas.auth import UserContext
from .audit import write_audit_event


async def record_acknowledgment(
    session: AsyncSession,
    user: UserContext,
    version: str,
    document_type: str = "terms",
    meta: RequestMeta | None = None,
) -> LegalAcknowledgment:
    row = LegalAcknowledgment(user_id=user.user_id, document_type=document_type, version=version)
    session.add(row)
    await session.flush()
    await write_audit_event(
        session,
        action="LEGAL_ACKNOWLEDGMENT",
        user_id=user.user_id,
        details={"version": version, "type": document_type},
        meta=meta,
    )
    await session.commit()
    return row


async def get_latest_acknowledgment(
    session: AsyncSession,
    user: UserContext,
    document_type: str | None = None,
) -> LegalAcknowledgment | None:
    """Most recent acknowledgment by the caller, optionally of one document type."""
    stmt = select(LegalAcknowledgment).where(LegalAcknowledgment.user_id == user.user_id)
    if document_type is not None:
        stmt = stmt.where(LegalAcknowledgment.document_type == document_type)
    stmt = stmt.order_by(LegalAcknowledgment.acknowledged_at.desc(), LegalAcknowledgment.id.desc())
    result = await session.execute(stmt.limit(1))
    return result.scalar_one_or_none()
