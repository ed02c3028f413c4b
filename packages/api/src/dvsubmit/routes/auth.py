# This project was developed with assistance from AI tools.
"""Account routes: identity sync, role flags, self-service deletion."""

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action, is_admin, is_super_admin
from ..middleware.auth import CurrentIdentity, CurrentUser, require_action
from ..middleware.request_meta import Meta
from ..schemas import MutationResponse
from ..schemas.auth import MeResponse, UserContext, UserResponse
from ..services import users as user_service

router = APIRouter()


@router.post("/sync-user", response_model=MutationResponse[UserResponse])
async def sync_user(
    identity: CurrentIdentity,
    meta: Meta,
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[UserResponse]:
    """Create or refresh the caller's user row after sign-in.

    Uses the verified token identity only; nothing in the request body is
    trusted.
    """
    user = await user_service.sync_user(session, identity, meta)
    return MutationResponse(data=UserResponse.model_validate(user), message="User synced")


@router.get("/me", response_model=MeResponse)
async def me(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> MeResponse:
    row = await user_service.get_user(session, user.user_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return MeResponse(
        user=UserResponse.model_validate(row),
        role=user.role,
        is_admin=is_admin(user),
        is_super_admin=is_super_admin(user),
    )


@router.delete("/account", response_model=MutationResponse[dict])
async def delete_account(
    meta: Meta,
    user: UserContext = Depends(require_action(Action.DELETE_ACCOUNT)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[dict]:
    deleted = await user_service.delete_account(session, user, meta)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return MutationResponse(data={"id": user.user_id}, message="Account deleted")
