# This project was developed with assistance from AI tools.
"""Shared data scope filtering for service queries.

Applicants see only rows they own; admins see the whole pipeline.
"""

from db import Application

from ..schemas.auth import DataScope, UserContext


def owner_scope(user: UserContext) -> DataScope:
    """Scope for applicant-facing endpoints: own rows only, even for admins."""
    return DataScope(own_data_only=True, user_id=user.user_id)


def apply_data_scope(stmt, scope: DataScope):
    """Apply data scope filtering to a SQLAlchemy query.

    Args:
        stmt: A SQLAlchemy select statement.
        scope: The caller's DataScope.

    Returns:
        The filtered statement.
    """
    if scope.full_pipeline and not scope.own_data_only:
        return stmt
    # An own-data scope without a user id matches nothing.
    return stmt.where(Application.user_id == scope.user_id)
