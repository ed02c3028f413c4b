# This project was developed with assistance from AI tools.
"""Admin review and submission relay schemas."""

from datetime import datetime
from typing import Literal

from db.enums import ApplicationStatus, PaymentStatus
from pydantic import BaseModel, ConfigDict, Field

from . import Pagination
from .application import ApplicationResponse


class RejectApplicationRequest(BaseModel):
    """Rejection with a note shown to the applicant.

    Whitespace-only notes are rejected by the service so the row is untouched.
    """

    rejection_note: str = Field(max_length=2000)


class RelaySubmissionRequest(BaseModel):
    """Confirmation number pasted back from the government DV portal."""

    confirmation_number: str = Field(max_length=32)


class SubmissionStatusUpdate(BaseModel):
    """Secondary relay endpoint: generic status update."""

    status: Literal["SUBMITTED", "CONFIRMED", "FAILED"]
    confirmation_number: str | None = Field(default=None, max_length=32)


class ApplicantInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    created_at: datetime


class AdminApplicationResponse(ApplicationResponse):
    """Application detail for the back office, with its applicant."""

    user: ApplicantInfo | None = None


class AdminApplicationListResponse(BaseModel):
    data: list[AdminApplicationResponse]
    pagination: Pagination


class SubmissionItem(BaseModel):
    """Row in the relay queue."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    status: ApplicationStatus
    family_name: str | None = None
    given_name: str | None = None
    payment_reference: str | None = None
    payment_status: PaymentStatus | None = None
    payment_verified_at: datetime | None = None
    confirmation_number: str | None = None
    submitted_at: datetime | None = None


class SubmissionListResponse(BaseModel):
    data: list[SubmissionItem]
    pagination: Pagination


class StatisticsResponse(BaseModel):
    """Back-office dashboard counters."""

    total_submitted_applications: int
    pending_payment_verification: int
    rejected_payments: int
    pending_review_and_submit: int
    submitted_to_dv: int
