# This project was developed with assistance from AI tools.
"""Pydantic schemas for the audit trail."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from . import Pagination


class RequestMeta(BaseModel):
    """Requester fingerprint stored on every audit row."""

    model_config = ConfigDict(frozen=True)

    ip_address: str | None = None
    user_agent: str | None = None


class AuditLogItem(BaseModel):
    """Single audit row in a query response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    action: str
    user_id: int | None = None
    user_email: str | None = None
    application_id: int | None = None
    details: dict | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class AuditLogListResponse(BaseModel):
    data: list[AuditLogItem]
    pagination: Pagination


class AuditChainVerifyResponse(BaseModel):
    """Response for audit hash chain verification."""

    status: str
    events_checked: int
    first_break_id: int | None = None
