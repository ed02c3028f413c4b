# This project was developed with assistance from AI tools.
"""Authentication and authorization schemas."""

from datetime import datetime

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field


class DataScope(BaseModel):
    """Data visibility rules injected by the auth middleware."""

    own_data_only: bool = False
    user_id: int | None = None
    full_pipeline: bool = False


class UserContext(BaseModel):
    """Injected by auth middleware into every authenticated request."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    auth_user_id: str
    email: str
    role: UserRole
    blocked: bool = False
    data_scope: DataScope = Field(default_factory=DataScope)


class TokenPayload(BaseModel):
    """Decoded JWT claims issued by Supabase Auth."""

    sub: str
    email: str = ""
    role: str = ""
    aud: str | list[str] | None = None
    app_metadata: dict = Field(default_factory=dict)
    user_metadata: dict = Field(default_factory=dict)


class TokenIdentity(BaseModel):
    """Verified identity from the bearer token, before the users-table lookup."""

    model_config = ConfigDict(frozen=True)

    sub: str
    email: str


class UserResponse(BaseModel):
    """User account as exposed to the account owner and admins."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: UserRole
    blocked: bool
    blocked_at: datetime | None = None
    created_at: datetime


class MeResponse(BaseModel):
    """Role flags for the signed-in user."""

    user: UserResponse
    role: UserRole
    is_admin: bool
    is_super_admin: bool
