# This project was developed with assistance from AI tools.
"""Back-office user management: applicant directory, blocking, roles."""

from typing import Annotated

from db import User, get_db
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action
from ..middleware.auth import require_action
from ..middleware.request_meta import Meta
from ..schemas import MutationResponse, Pagination
from ..schemas.auth import UserContext
from ..schemas.filters import ApplicantFilter
from ..schemas.user import AdminUserItem, AdminUserListResponse, RoleUpdateRequest
from ..services import users as user_service
from ..services.identity import IdentityAdminClient, get_identity_client

router = APIRouter()


def _item(user: User, application_count: int = 0) -> AdminUserItem:
    item = AdminUserItem.model_validate(user)
    item.application_count = application_count
    return item


def _directory(rows: list[tuple[User, int]], total: int, offset: int, limit: int) -> AdminUserListResponse:
    return AdminUserListResponse(
        data=[_item(user, count) for user, count in rows],
        pagination=Pagination.build(total, offset, limit),
    )


def _user_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


# ---------------------------------------------------------------------------
# Applicants (admin)
# ---------------------------------------------------------------------------


@router.get("/applicants", response_model=AdminUserListResponse)
async def list_applicants(
    flt: Annotated[ApplicantFilter, Query()],
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    _user: UserContext = Depends(require_action(Action.REVIEW_APPLICATIONS)),
    session: AsyncSession = Depends(get_db),
) -> AdminUserListResponse:
    """Users with at least one application."""
    rows, total = await user_service.list_applicants(session, flt, offset=offset, limit=limit)
    return _directory(rows, total, offset, limit)


@router.put("/applicants/{user_id}/block", response_model=MutationResponse[AdminUserItem])
async def block_applicant(
    user_id: int,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.BLOCK_APPLICANT)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AdminUserItem]:
    target = await user_service.block_user(session, user, user_id, applicants_only=True, meta=meta)
    if target is None:
        raise _user_not_found()
    return MutationResponse(data=_item(target), message="Applicant blocked")


@router.put("/applicants/{user_id}/unblock", response_model=MutationResponse[AdminUserItem])
async def unblock_applicant(
    user_id: int,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.BLOCK_APPLICANT)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AdminUserItem]:
    target = await user_service.unblock_user(session, user, user_id, applicants_only=True, meta=meta)
    if target is None:
        raise _user_not_found()
    return MutationResponse(data=_item(target), message="Applicant unblocked")


# ---------------------------------------------------------------------------
# All users (super admin)
# ---------------------------------------------------------------------------


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    flt: Annotated[ApplicantFilter, Query()],
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    _user: UserContext = Depends(require_action(Action.MANAGE_USERS)),
    session: AsyncSession = Depends(get_db),
) -> AdminUserListResponse:
    rows, total = await user_service.list_users(session, flt, offset=offset, limit=limit)
    return _directory(rows, total, offset, limit)


@router.put("/users/{user_id}/block", response_model=MutationResponse[AdminUserItem])
async def block_user(
    user_id: int,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.MANAGE_USERS)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AdminUserItem]:
    target = await user_service.block_user(session, user, user_id, applicants_only=False, meta=meta)
    if target is None:
        raise _user_not_found()
    return MutationResponse(data=_item(target), message="User blocked")


@router.put("/users/{user_id}/unblock", response_model=MutationResponse[AdminUserItem])
async def unblock_user(
    user_id: int,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.MANAGE_USERS)),
    session: AsyncSession = Depends(get_db),
) -> MutationResponse[AdminUserItem]:
    target = await user_service.unblock_user(session, user, user_id, applicants_only=False, meta=meta)
    if target is None:
        raise _user_not_found()
    return MutationResponse(data=_item(target), message="User unblocked")


@router.put("/users/{user_id}/role", response_model=MutationResponse[AdminUserItem])
async def update_role(
    user_id: int,
    body: RoleUpdateRequest,
    meta: Meta,
    user: UserContext = Depends(require_action(Action.MANAGE_USERS)),
    session: AsyncSession = Depends(get_db),
    identity: IdentityAdminClient = Depends(get_identity_client),
) -> MutationResponse[AdminUserItem]:
    target = await user_service.update_role(session, user, user_id, body.role, identity, meta)
    if target is None:
        raise _user_not_found()
    return MutationResponse(data=_item(target), message=f"User role updated to {body.role.value}")
