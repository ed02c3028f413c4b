# This project was developed with assistance from AI tools.
"""CLI entrypoint for bootstrapping back-office accounts.

Usage:
    dvsubmit-seed --email ops@example.com                  # promote to SUPER_ADMIN
    dvsubmit-seed --email ops@example.com --role ADMIN
    dvsubmit-seed --email new@example.com --auth-user-id <uuid>   # create if missing
"""

import argparse
import asyncio
import json
import sys

from db import DatabaseService, User, UserRole
from sqlalchemy import select

from .core.config import settings


async def main(email: str, role: UserRole, auth_user_id: str | None = None) -> dict:
    """Promote an existing user, or create one when an identity id is given."""
    service = DatabaseService(settings.DATABASE_URL)
    try:
        async with service.session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            if user is None:
                if auth_user_id is None:
                    return {"status": "not_found", "email": email}
                user = User(auth_user_id=auth_user_id, email=email, role=role, blocked=False)
                session.add(user)
                status = "created"
            else:
                user.role = role
                status = "updated"
            await session.commit()
            return {"status": status, "id": user.id, "email": user.email, "role": role.value}
    finally:
        await service.dispose()


def cli() -> None:
    parser = argparse.ArgumentParser(description="Create or promote a DVSubmit back-office user")
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument(
        "--role",
        choices=[r.value for r in UserRole],
        default=UserRole.SUPER_ADMIN.value,
        help="Role to grant (default SUPER_ADMIN)",
    )
    parser.add_argument(
        "--auth-user-id",
        default=None,
        help="Identity-provider user id; required to create a user that has never signed in",
    )
    args = parser.parse_args()
    result = asyncio.run(main(args.email, UserRole(args.role), args.auth_user_id))
    print(json.dumps(result, indent=2, default=str))
    if result["status"] == "not_found":
        print("\nNo such user. Sign in once, or pass --auth-user-id to create the row.")
        sys.exit(1)


if __name__ == "__main__":
    cli()
