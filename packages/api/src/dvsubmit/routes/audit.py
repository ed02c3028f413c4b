# This project was developed with assistance from AI tools.
"""Audit trail query and hash-chain verification (super admin)."""

from typing import Annotated

from db import get_db
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action
from ..middleware.auth import require_action
from ..schemas import Pagination
from ..schemas.audit import AuditChainVerifyResponse, AuditLogItem, AuditLogListResponse
from ..schemas.auth import UserContext
from ..schemas.filters import AuditLogFilter
from ..services.audit import search_audit_logs, verify_audit_chain

router = APIRouter()


@router.get("/", response_model=AuditLogListResponse)
async def list_audit_logs(
    flt: Annotated[AuditLogFilter, Query()],
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    _user: UserContext = Depends(require_action(Action.VIEW_AUDIT_LOG)),
    session: AsyncSession = Depends(get_db),
) -> AuditLogListResponse:
    """Search the audit trail, newest first."""
    rows, total = await search_audit_logs(session, flt, offset=offset, limit=limit)
    items = []
    for row, email in rows:
        item = AuditLogItem.model_validate(row)
        item.user_email = email
        items.append(item)
    return AuditLogListResponse(data=items, pagination=Pagination.build(total, offset, limit))


@router.get("/verify", response_model=AuditChainVerifyResponse)
async def verify_chain(
    _user: UserContext = Depends(require_action(Action.VIEW_AUDIT_LOG)),
    session: AsyncSession = Depends(get_db),
) -> AuditChainVerifyResponse:
    """Walk the hash chain and report the first broken link, if any."""
    return AuditChainVerifyResponse(**await verify_audit_chain(session))
