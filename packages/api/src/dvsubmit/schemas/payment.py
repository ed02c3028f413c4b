# This project was developed with assistance from AI tools.
"""Payment reference request/response schemas."""

from datetime import datetime
from typing import Literal

from db.enums import ApplicationStatus, PaymentStatus
from pydantic import BaseModel, ConfigDict, Field

PAYMENT_REFERENCE_PATTERN = r"^[A-Z0-9]+$"


class PaymentReferenceRequest(BaseModel):
    """Owner-entered mobile-payment transaction reference."""

    model_config = ConfigDict(str_strip_whitespace=True)

    payment_reference: str = Field(
        min_length=10,
        max_length=50,
        pattern=PAYMENT_REFERENCE_PATTERN,
        description="Uppercase letters and digits only.",
    )
    application_id: int | None = Field(
        default=None,
        description="Target application; defaults to the newest one awaiting a reference.",
    )


class PaymentVerifyRequest(BaseModel):
    """Admin decision on a submitted payment reference."""

    action: Literal["approve", "reject"]
    notes: str | None = Field(default=None, max_length=1000)


class PaymentStatusResponse(BaseModel):
    """Payment sub-state of one application."""

    model_config = ConfigDict(from_attributes=True)

    application_id: int
    status: ApplicationStatus
    payment_reference: str | None = None
    payment_status: PaymentStatus | None = None
    payment_verified_at: datetime | None = None
    verified_by_email: str | None = None
    service_fee_etb: int
