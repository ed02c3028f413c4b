# This project was developed with assistance from AI tools.
"""User accounts: identity sync, self-service deletion and administration.

Users are never hard-deleted. Audit rows reference them and the audit
table refuses updates, so deletion is a ``deleted_at`` stamp.
"""

import logging
from datetime import UTC, datetime

from db import Application, User
from db.enums import UserRole
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.audit import RequestMeta
from ..schemas.auth import TokenIdentity, UserContext
from ..schemas.filters import ApplicantFilter
from .audit import write_audit_event
from .identity import IdentityAdminClient
from .lifecycle import LifecycleError

logger = logging.getLogger(__name__)


class UserAdminError(LifecycleError):
    """A user-management request that cannot be applied as asked."""

    code = "INVALID_REQUEST"
    status_code = 400


class AccountAccessError(LifecycleError):
    """The account exists but may not be used (blocked or deleted)."""

    code = "FORBIDDEN"
    status_code = 403


# ---------------------------------------------------------------------------
# Identity sync and self-service
# ---------------------------------------------------------------------------


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    """Return a non-deleted user by id."""
    result = await session.execute(
        select(User).where(User.id == user_id, User.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def sync_user(
    session: AsyncSession,
    identity: TokenIdentity,
    meta: RequestMeta | None = None,
) -> User:
    """Create or refresh the ``users`` row for a verified token identity.

    Looks up by identity-provider id, then by email (an account created
    before the provider id was known), and otherwise creates a USER.

    Raises:
        AccountAccessError: The account was deleted or is blocked.
    """
    result = await session.execute(select(User).where(User.auth_user_id == identity.sub))
    user = result.scalar_one_or_none()

    if user is None:
        result = await session.execute(select(User).where(User.email == identity.email))
        user = result.scalar_one_or_none()
        if user is not None and user.deleted_at is None:
            logger.info("Linking user %s to identity %s", user.id, identity.sub)
            user.auth_user_id = identity.sub

    if user is not None and user.deleted_at is not None:
        raise AccountAccessError("This account has been deleted.")

    if user is None:
        user = User(auth_user_id=identity.sub, email=identity.email, role=UserRole.USER, blocked=False)
        session.add(user)
        await session.flush()
        await write_audit_event(
            session,
            action="USER_CREATED",
            user_id=user.id,
            details={"email": identity.email},
            meta=meta,
        )
        logger.info("Created user %s for identity %s", user.id, identity.sub)
    elif user.email != identity.email:
        user.email = identity.email

    await session.commit()

    if user.blocked:
        raise AccountAccessError(
            "Your account has been blocked. Please contact support for assistance."
        )
    return user


async def delete_account(
    session: AsyncSession,
    user: UserContext,
    meta: RequestMeta | None = None,
) -> bool:
    """Soft-delete the caller's account."""
    row = await get_user(session, user.user_id)
    if row is None:
        return False

    row.deleted_at = datetime.now(UTC)
    await write_audit_event(
        session,
        action="ACCOUNT_DELETED",
        user_id=user.user_id,
        details={"email": row.email},
        meta=meta,
    )
    await session.commit()
    logger.info("User %s deleted their account", user.user_id)
    return True


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


def _directory_query(flt: ApplicantFilter, *, applicants_only: bool):
    application_count = func.count(Application.id).label("application_count")
    join = select(User, application_count)
    if applicants_only:
        stmt = join.join(Application, Application.user_id == User.id)
    else:
        stmt = join.outerjoin(Application, Application.user_id == User.id)
    stmt = stmt.where(User.deleted_at.is_(None)).group_by(User.id)

    if flt.state == "active":
        stmt = stmt.where(User.blocked.is_(False))
    elif flt.state == "blocked":
        stmt = stmt.where(User.blocked.is_(True))
    if flt.search:
        stmt = stmt.where(User.email.ilike(f"%{flt.search}%"))

    sort_column = {
        "created_at": User.created_at,
        "email": User.email,
        "application_count": application_count,
    }[flt.sort_by]
    order = sort_column.asc() if flt.sort_order == "asc" else sort_column.desc()
    return stmt.order_by(order, User.id.asc())


async def _list_directory(
    session: AsyncSession,
    flt: ApplicantFilter,
    *,
    applicants_only: bool,
    offset: int,
    limit: int,
) -> tuple[list[tuple[User, int]], int]:
    stmt = _directory_query(flt, applicants_only=applicants_only)
    total = (
        await session.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
    ).scalar() or 0
    result = await session.execute(stmt.offset(offset).limit(limit))
    return [(user, count) for user, count in result.all()], total


async def list_applicants(
    session: AsyncSession,
    flt: ApplicantFilter,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[tuple[User, int]], int]:
    """Users with at least one application, paired with their application count."""
    return await _list_directory(session, flt, applicants_only=True, offset=offset, limit=limit)


async def list_users(
    session: AsyncSession,
    flt: ApplicantFilter,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[tuple[User, int]], int]:
    """Every non-deleted user, paired with their application count."""
    return await _list_directory(session, flt, applicants_only=False, offset=offset, limit=limit)


# ---------------------------------------------------------------------------
# Blocking and roles
# ---------------------------------------------------------------------------


async def _get_block_target(
    session: AsyncSession,
    actor: UserContext,
    target_id: int,
    *,
    applicants_only: bool,
) -> User | None:
    if target_id == actor.user_id:
        raise UserAdminError("You cannot block or unblock your own account.")
    target = await get_user(session, target_id)
    if target is None:
        return None
    if applicants_only and target.role != UserRole.USER:
        raise AccountAccessError("Only applicant accounts can be managed here.")
    return target


async def block_user(
    session: AsyncSession,
    actor: UserContext,
    target_id: int,
    *,
    applicants_only: bool = True,
    meta: RequestMeta | None = None,
) -> User | None:
    """Block a user; blocked users can read their data but not change it.

    Raises:
        UserAdminError: Self-block, or the user is already blocked.
        AccountAccessError: ``applicants_only`` and the target is not a USER.
    """
    target = await _get_block_target(session, actor, target_id, applicants_only=applicants_only)
    if target is None:
        return None
    if target.blocked:
        raise UserAdminError("User is already blocked.")

    target.blocked = True
    target.blocked_at = datetime.now(UTC)
    target.blocked_by = actor.user_id

    await write_audit_event(
        session,
        action="USER_BLOCKED",
        user_id=actor.user_id,
        details={
            "target_user_id": target.id,
            "target_email": target.email,
            "admin_email": actor.email,
        },
        meta=meta,
    )
    await session.commit()
    logger.info("User %s blocked by %s", target.id, actor.user_id)
    return target


async def unblock_user(
    session: AsyncSession,
    actor: UserContext,
    target_id: int,
    *,
    applicants_only: bool = True,
    meta: RequestMeta | None = None,
) -> User | None:
    """Lift a block. Raises UserAdminError if the user is not blocked."""
    target = await _get_block_target(session, actor, target_id, applicants_only=applicants_only)
    if target is None:
        return None
    if not target.blocked:
        raise UserAdminError("User is not blocked.")

    target.blocked = False
    target.blocked_at = None
    target.blocked_by = None

    await write_audit_event(
        session,
        action="USER_UNBLOCKED",
        user_id=actor.user_id,
        details={
            "target_user_id": target.id,
            "target_email": target.email,
            "admin_email": actor.email,
        },
        meta=meta,
    )
    await session.commit()
    logger.info("User %s unblocked by %s", target.id, actor.user_id)
    return target


async def update_role(
    session: AsyncSession,
    actor: UserContext,
    target_id: int,
    role: UserRole,
    identity: IdentityAdminClient,
    meta: RequestMeta | None = None,
) -> User | None:
    """Change a user's role and mirror it into the identity provider.

    Raises:
        UserAdminError: A super admin tried to demote themselves.
    """
    if target_id == actor.user_id and role != UserRole.SUPER_ADMIN:
        raise UserAdminError("You cannot demote yourself from super admin.")

    target = await get_user(session, target_id)
    if target is None:
        return None

    previous = target.role
    target.role = role
    await write_audit_event(
        session,
        action="USER_ROLE_UPDATED",
        user_id=actor.user_id,
        details={
            "target_user_id": target.id,
            "target_email": target.email,
            "previous_role": previous.value,
            "new_role": role.value,
        },
        meta=meta,
    )
    await session.commit()
    logger.info("User %s role %s -> %s by %s", target.id, previous.value, role.value, actor.user_id)

    await identity.update_app_metadata(target.auth_user_id, {"role": role.value})
    return target
