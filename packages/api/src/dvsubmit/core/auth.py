# This project was developed with assistance from AI tools.
"""Pure authorization functions with no FastAPI or HTTP dependencies.

Route handlers call ``authorize()`` (through ``middleware.auth.require_action``)
before touching any row; services use ``is_admin`` and ``build_data_scope``
directly. Keeping these separate from ``middleware/auth.py`` lets the seed
CLI and tests use them without Starlette imports.
"""

import enum
from typing import Any

from db.enums import UserRole

from ..schemas.auth import DataScope, UserContext

_ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


class Action(str, enum.Enum):
    """Operations the gate can permit or deny."""

    # Applicant
    VIEW_OWN_APPLICATIONS = "view_own_applications"
    SAVE_DRAFT = "save_draft"
    SUBMIT_APPLICATION = "submit_application"
    DELETE_APPLICATION = "delete_application"
    ATTACH_PAYMENT = "attach_payment"
    MANAGE_PHOTOS = "manage_photos"
    ACKNOWLEDGE_TERMS = "acknowledge_terms"
    DELETE_ACCOUNT = "delete_account"

    # Admin
    REVIEW_APPLICATIONS = "review_applications"
    VERIFY_PAYMENT = "verify_payment"
    REJECT_APPLICATION = "reject_application"
    RELAY_SUBMISSION = "relay_submission"
    BLOCK_APPLICANT = "block_applicant"
    VIEW_STATISTICS = "view_statistics"

    # Super admin
    MANAGE_USERS = "manage_users"
    VIEW_AUDIT_LOG = "view_audit_log"


# action -> (roles allowed, writes state)
_RULES: dict[Action, tuple[frozenset[UserRole], bool]] = {
    Action.VIEW_OWN_APPLICATIONS: (frozenset(UserRole), False),
    Action.SAVE_DRAFT: (frozenset(UserRole), True),
    Action.SUBMIT_APPLICATION: (frozenset(UserRole), True),
    Action.DELETE_APPLICATION: (frozenset(UserRole), True),
    Action.ATTACH_PAYMENT: (frozenset(UserRole), True),
    Action.MANAGE_PHOTOS: (frozenset(UserRole), True),
    Action.ACKNOWLEDGE_TERMS: (frozenset(UserRole), True),
    Action.DELETE_ACCOUNT: (frozenset(UserRole), True),
    Action.REVIEW_APPLICATIONS: (_ADMIN_ROLES, False),
    Action.VERIFY_PAYMENT: (_ADMIN_ROLES, True),
    Action.REJECT_APPLICATION: (_ADMIN_ROLES, True),
    Action.RELAY_SUBMISSION: (_ADMIN_ROLES, True),
    Action.BLOCK_APPLICANT: (_ADMIN_ROLES, True),
    Action.VIEW_STATISTICS: (_ADMIN_ROLES, False),
    Action.MANAGE_USERS: (frozenset({UserRole.SUPER_ADMIN}), True),
    Action.VIEW_AUDIT_LOG: (frozenset({UserRole.SUPER_ADMIN}), False),
}


def is_admin(user: UserContext | None) -> bool:
    """True iff role is ADMIN or SUPER_ADMIN and the account is not blocked."""
    return user is not None and user.role in _ADMIN_ROLES and not user.blocked


def is_super_admin(user: UserContext | None) -> bool:
    """True iff role is SUPER_ADMIN and the account is not blocked."""
    return user is not None and user.role == UserRole.SUPER_ADMIN and not user.blocked


def is_write_action(action: Action) -> bool:
    return _RULES[action][1]


def authorize(caller: UserContext | None, action: Action, resource: Any = None) -> bool:
    """Decide whether ``caller`` may perform ``action`` on ``resource``.

    An unauthenticated caller is simply denied. Blocked callers may still
    read their own data but every write is refused, and admin-only actions
    are refused outright. When a resource with a ``user_id`` is given,
    non-admins must own it.
    """
    if caller is None:
        return False

    roles, writes = _RULES[action]
    if caller.role not in roles:
        return False
    if caller.blocked and (writes or roles <= _ADMIN_ROLES):
        return False

    if resource is not None and not is_admin(caller):
        owner_id = getattr(resource, "user_id", None)
        if owner_id != caller.user_id:
            return False

    return True


def build_data_scope(role: UserRole, user_id: int, *, blocked: bool = False) -> DataScope:
    """Build data scope rules based on the user's role.

    A blocked admin falls back to own-data scope, like an applicant.
    """
    if role in _ADMIN_ROLES and not blocked:
        return DataScope(full_pipeline=True)
    return DataScope(own_data_only=True, user_id=user_id)
