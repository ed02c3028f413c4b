# This project was developed with assistance from AI tools.
"""Typed list filters, validated at the route boundary.

Each list query accepts exactly one filter shape; services match on the
``kind`` discriminator instead of assembling ad-hoc WHERE dictionaries.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from db.enums import ApplicationStatus
from pydantic import BaseModel, ConfigDict, Field, model_validator


class ApplicationQueue(str, Enum):
    """Named admin work queues over the application table."""

    PENDING_PAYMENT = "pending_payment"
    PENDING_REVIEW = "pending_review"
    PAYMENT_REJECTED = "payment_rejected"
    APPLICATION_REJECTED = "application_rejected"
    SUBMITTED = "submitted"


class AllApplications(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["all"] = "all"


class ByStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["status"] = "status"
    status: ApplicationStatus


class ByQueue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["queue"] = "queue"
    queue: ApplicationQueue


ApplicationFilter = Annotated[
    AllApplications | ByStatus | ByQueue,
    Field(discriminator="kind"),
]


def build_application_filter(
    status: ApplicationStatus | None,
    queue: ApplicationQueue | None,
) -> ApplicationFilter:
    """Collapse the two optional query params into one filter.

    Raises ValueError when both are given.
    """
    if status is not None and queue is not None:
        raise ValueError("Filter by either status or queue, not both")
    if status is not None:
        return ByStatus(status=status)
    if queue is not None:
        return ByQueue(queue=queue)
    return AllApplications()


class SubmissionStatusFilter(str, Enum):
    """Statuses visible in the submission relay queue."""

    PAYMENT_VERIFIED = "PAYMENT_VERIFIED"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"


class ApplicantFilter(BaseModel):
    """Filter and sort for the applicant directory."""

    model_config = ConfigDict(frozen=True)

    state: Literal["all", "active", "blocked"] = "all"
    search: str | None = Field(default=None, max_length=255)
    sort_by: Literal["created_at", "email", "application_count"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class AuditLogFilter(BaseModel):
    """Audit trail search criteria."""

    model_config = ConfigDict(frozen=True)

    action: str | None = Field(default=None, max_length=100)
    user_id: int | None = None
    application_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _ordered_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self
