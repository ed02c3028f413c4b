# This project was developed with assistance from AI tools.
"""Shared schema components."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Pagination(BaseModel):
    """Offset-based pagination metadata for list responses."""

    total: int
    offset: int
    limit: int
    has_more: bool

    @classmethod
    def build(cls, total: int, offset: int, limit: int) -> "Pagination":
        return cls(total=total, offset=offset, limit=limit, has_more=offset + limit < total)


class MutationResponse(BaseModel, Generic[T]):
    """Envelope returned by every state-changing endpoint."""

    success: bool = True
    message: str = ""
    data: T
