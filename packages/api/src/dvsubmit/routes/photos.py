# This project was developed with assistance from AI tools.
"""Applicant photo routes backed by object storage."""

from db import get_db
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action
from ..middleware.auth import require_action
from ..middleware.request_meta import Meta
from ..schemas import MutationResponse
from ..schemas.auth import UserContext
from ..schemas.photo import PhotoUploadResponse, PhotoValidationResponse, SignedUrlResponse
from ..services import photo as photo_service
from ..services.photo import PhotoAccessError
from ..services.storage import PHOTO_EXTENSIONS, StorageService, get_storage

router = APIRouter()

_MEDIA_TYPES = {ext: content_type for content_type, ext in PHOTO_EXTENSIONS.items()}


def _forbidden(exc: PhotoAccessError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))


@router.post(
    "/",
    response_model=MutationResponse[PhotoUploadResponse],
    status_code=status.HTTP_201_CREATED,
)
async def upload_photo(
    meta: Meta,
    photo: UploadFile = File(...),
    application_id: int | None = Form(default=None),
    user: UserContext = Depends(require_action(Action.MANAGE_PHOTOS)),
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> MutationResponse[PhotoUploadResponse]:
    """Upload a JPEG or PNG applicant photo."""
    data = await photo.read()
    errors = photo_service.validate_photo(data, photo.content_type)
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=" ".join(errors))

    result = await photo_service.upload_photo(
        session, storage, user, data, photo.content_type, application_id, meta,
    )
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return MutationResponse(data=PhotoUploadResponse(**result), message="Photo uploaded")


@router.post("/validate", response_model=PhotoValidationResponse)
async def validate_photo(
    photo: UploadFile = File(...),
    _user: UserContext = Depends(require_action(Action.MANAGE_PHOTOS)),
) -> PhotoValidationResponse:
    """Run the upload checks without storing anything."""
    errors = photo_service.validate_photo(await photo.read(), photo.content_type)
    return PhotoValidationResponse(valid=not errors, errors=errors)


@router.get("/signed-url", response_model=SignedUrlResponse)
async def get_signed_url(
    path: str = Query(min_length=1),
    expires_in: int | None = Query(default=None, ge=60, le=86400),
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    storage: StorageService = Depends(get_storage),
) -> SignedUrlResponse:
    try:
        result = await photo_service.get_signed_url(storage, user, path, expires_in)
    except PhotoAccessError as exc:
        raise _forbidden(exc) from exc
    return SignedUrlResponse(**result)


@router.get("/download")
async def download_photo(
    path: str = Query(min_length=1),
    user: UserContext = Depends(require_action(Action.VIEW_OWN_APPLICATIONS)),
    storage: StorageService = Depends(get_storage),
) -> Response:
    try:
        data = await photo_service.download_photo(storage, user, path)
    except PhotoAccessError as exc:
        raise _forbidden(exc) from exc
    media_type = _MEDIA_TYPES.get(path.rsplit(".", 1)[-1].lower(), "application/octet-stream")
    return Response(content=data, media_type=media_type)


@router.delete("/", response_model=MutationResponse[dict])
async def delete_photo(
    meta: Meta,
    path: str = Query(min_length=1),
    user: UserContext = Depends(require_action(Action.MANAGE_PHOTOS)),
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> MutationResponse[dict]:
    try:
        await photo_service.delete_photo(session, storage, user, path, meta)
    except PhotoAccessError as exc:
        raise _forbidden(exc) from exc
    return MutationResponse(data={"path": path}, message="Photo deleted")
