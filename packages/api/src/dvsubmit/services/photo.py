# This project was developed with assistance from AI tools.
"""Applicant photo upload, validation and access.

Only basic file checks happen here (type, size, file signature). Object
keys are prefixed with the owner's user id, and that prefix is the
ownership check for signed URLs, downloads and deletes.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import is_admin
from ..core.config import settings
from ..schemas.audit import RequestMeta
from ..schemas.auth import UserContext
from .application import get_application
from .audit import write_audit_event
from .storage import PHOTO_EXTENSIONS, StorageService

logger = logging.getLogger(__name__)

_SIGNATURES = {
    "image/jpeg": (b"\xff\xd8\xff",),
    "image/png": (b"\x89PNG\r\n\x1a\n",),
}


class PhotoAccessError(PermissionError):
    """The caller may not touch this storage path."""


def validate_photo(data: bytes, content_type: str | None) -> list[str]:
    """Return a list of problems with an uploaded photo (empty when valid)."""
    errors: list[str] = []
    max_bytes = settings.PHOTO_MAX_SIZE_MB * 1024 * 1024

    if content_type not in PHOTO_EXTENSIONS:
        errors.append("Photo must be a JPEG or PNG image.")
    elif not data.startswith(_SIGNATURES[content_type]):
        errors.append("File content does not match its declared image type.")

    if not data:
        errors.append("Photo file is empty.")
    elif len(data) > max_bytes:
        errors.append(f"Photo must be at most {settings.PHOTO_MAX_SIZE_MB} MB.")
    return errors


def can_access_path(user: UserContext, path: str) -> bool:
    """Owners reach paths under their own ``{user_id}/`` prefix; admins reach any."""
    if ".." in path.split("/"):
        return False
    return is_admin(user) or path.startswith(f"{user.user_id}/")


def _check_access(user: UserContext, path: str) -> None:
    if not can_access_path(user, path):
        logger.warning("Photo access denied: user=%s path=%s", user.user_id, path)
        raise PhotoAccessError("You are not allowed to access this photo.")


async def upload_photo(
    session: AsyncSession,
    storage: StorageService,
    user: UserContext,
    data: bytes,
    content_type: str,
    application_id: int | None = None,
    meta: RequestMeta | None = None,
) -> dict | None:
    """Store a validated photo and return its path and a signed URL.

    Returns None when ``application_id`` is not one of the caller's.
    Callers run ``validate_photo`` first.
    """
    if application_id is not None and await get_application(session, user, application_id) is None:
        return None

    key = storage.build_photo_key(user.user_id, application_id, content_type)
    await storage.upload_file(data, key, content_type)
    signed_url = await storage.get_download_url(key, expires_in=settings.SIGNED_URL_TTL)

    await write_audit_event(
        session,
        action="PHOTO_UPLOADED",
        user_id=user.user_id,
        application_id=application_id,
        details={"path": key, "size": len(data), "content_type": content_type},
        meta=meta,
    )
    await session.commit()
    return {"path": key, "signed_url": signed_url, "content_type": content_type, "size": len(data)}


async def get_signed_url(
    storage: StorageService,
    user: UserContext,
    path: str,
    expires_in: int | None = None,
) -> dict:
    _check_access(user, path)
    ttl = expires_in or settings.SIGNED_URL_TTL
    url = await storage.get_download_url(path, expires_in=ttl)
    return {"path": path, "signed_url": url, "expires_in": ttl}


async def download_photo(storage: StorageService, user: UserContext, path: str) -> bytes:
    _check_access(user, path)
    return await storage.download_file(path)


async def delete_photo(
    session: AsyncSession,
    storage: StorageService,
    user: UserContext,
    path: str,
    meta: RequestMeta | None = None,
) -> None:
    """Remove a photo from storage. Raises PhotoAccessError for foreign paths."""
    _check_access(user, path)
    await storage.delete_file(path)
    await write_audit_event(
        session,
        action="PHOTO_DELETED",
        user_id=user.user_id,
        details={"path": path},
        meta=meta,
    )
    await session.commit()
