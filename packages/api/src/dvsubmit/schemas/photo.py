# This project was developed with assistance from AI tools.
"""Photo upload and signed URL schemas."""

from pydantic import BaseModel


class PhotoUploadResponse(BaseModel):
    path: str
    signed_url: str
    content_type: str
    size: int


class PhotoValidationResponse(BaseModel):
    valid: bool
    errors: list[str]


class SignedUrlResponse(BaseModel):
    path: str
    signed_url: str
    expires_in: int
