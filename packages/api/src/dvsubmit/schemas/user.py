# This project was developed with assistance from AI tools.
"""User administration schemas."""

from datetime import datetime

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict

from . import Pagination


class AdminUserItem(BaseModel):
    """User row in the back-office directories."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: UserRole
    blocked: bool
    blocked_at: datetime | None = None
    created_at: datetime
    application_count: int = 0


class AdminUserListResponse(BaseModel):
    data: list[AdminUserItem]
    pagination: Pagination


class RoleUpdateRequest(BaseModel):
    role: UserRole
