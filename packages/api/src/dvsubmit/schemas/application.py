# This project was developed with assistance from AI tools.
"""Application request/response schemas."""

from datetime import date, datetime
from typing import Literal

from db.enums import ApplicationStatus, EducationLevel, Gender, MaritalStatus, PaymentStatus
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import Pagination

MAX_CHILDREN = 10
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_SPOUSE_FIELDS = (
    "spouse_family_name",
    "spouse_given_name",
    "spouse_gender",
    "spouse_date_of_birth",
    "spouse_city_of_birth",
    "spouse_country_of_birth",
)


class ChildInput(BaseModel):
    """A dependent child as entered on the form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    family_name: str = Field(min_length=1, max_length=50)
    given_name: str = Field(min_length=1, max_length=50)
    middle_name: str | None = Field(default=None, max_length=50)
    gender: Gender
    date_of_birth: date
    city_of_birth: str = Field(min_length=1, max_length=50)
    country_of_birth: str = Field(min_length=1, max_length=100)
    photo_url: str | None = None


class ApplicationDraft(BaseModel):
    """Partial application data; every section may be missing while drafting."""

    model_config = ConfigDict(str_strip_whitespace=True)

    # Personal
    family_name: str | None = Field(default=None, max_length=50)
    given_name: str | None = Field(default=None, max_length=50)
    middle_name: str | None = Field(default=None, max_length=50)
    gender: Gender | None = None
    date_of_birth: date | None = None
    city_of_birth: str | None = Field(default=None, max_length=50)
    country_of_birth: str | None = Field(default=None, max_length=100)
    country_of_eligibility: str | None = Field(default=None, max_length=100)
    eligibility_claim_type: str | None = Field(default=None, max_length=50)

    # Mailing address
    in_care_of: str | None = Field(default=None, max_length=100)
    address_line1: str | None = Field(default=None, max_length=100)
    address_line2: str | None = Field(default=None, max_length=100)
    city: str | None = Field(default=None, max_length=50)
    state_province: str | None = Field(default=None, max_length=50)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    country_of_residence: str | None = Field(default=None, max_length=100)

    # Contact
    phone_number: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)

    # Education / marital status
    education_level: EducationLevel | None = None
    marital_status: MaritalStatus | None = None
    spouse_family_name: str | None = Field(default=None, max_length=50)
    spouse_given_name: str | None = Field(default=None, max_length=50)
    spouse_middle_name: str | None = Field(default=None, max_length=50)
    spouse_gender: Gender | None = None
    spouse_date_of_birth: date | None = None
    spouse_city_of_birth: str | None = Field(default=None, max_length=50)
    spouse_country_of_birth: str | None = Field(default=None, max_length=100)

    # Photos
    photo_url: str | None = None
    spouse_photo_url: str | None = None

    children: list[ChildInput] | None = Field(default=None, max_length=MAX_CHILDREN)

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ApplicationSubmit(ApplicationDraft):
    """A complete application, validated before it may leave DRAFT.

    Re-declares the required sections as non-optional.
    """

    family_name: str = Field(min_length=1, max_length=50)
    given_name: str = Field(min_length=1, max_length=50)
    gender: Gender
    date_of_birth: date
    city_of_birth: str = Field(min_length=1, max_length=50)
    country_of_birth: str = Field(min_length=1, max_length=100)
    country_of_eligibility: str = Field(min_length=1, max_length=100)

    address_line1: str = Field(min_length=1, max_length=100)
    city: str = Field(min_length=1, max_length=50)
    state_province: str = Field(min_length=1, max_length=50)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)
    country_of_residence: str = Field(min_length=1, max_length=100)

    phone_number: str = Field(min_length=1, max_length=20)
    email: str | None = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)

    education_level: EducationLevel
    marital_status: MaritalStatus

    children: list[ChildInput] = Field(default_factory=list, max_length=MAX_CHILDREN)

    @model_validator(mode="after")
    def _spouse_required_when_married_to_non_citizen(self):
        if self.marital_status.requires_spouse:
            missing = [name for name in _SPOUSE_FIELDS if not getattr(self, name)]
            if missing:
                raise ValueError(
                    "Spouse details are required when married to a non-US citizen/LPR: "
                    + ", ".join(missing)
                )
        return self


class AutoSaveRequest(BaseModel):
    """Auto-save of one or more form sections."""

    mode: Literal["new", "edit"] = "new"
    application_id: int | None = None
    data: ApplicationDraft

    @model_validator(mode="after")
    def _edit_needs_id(self):
        if self.mode == "edit" and self.application_id is None:
            raise ValueError("application_id is required in edit mode")
        return self


class ChildResponse(BaseModel):
    """Child record nested inside application responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    family_name: str
    given_name: str
    middle_name: str | None = None
    gender: Gender
    date_of_birth: date
    city_of_birth: str
    country_of_birth: str
    photo_url: str | None = None


class ApplicationResponse(BaseModel):
    """Full application as returned to its owner or an admin."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: ApplicationStatus

    family_name: str | None = None
    given_name: str | None = None
    middle_name: str | None = None
    gender: Gender | None = None
    date_of_birth: date | None = None
    city_of_birth: str | None = None
    country_of_birth: str | None = None
    country_of_eligibility: str | None = None
    eligibility_claim_type: str | None = None

    in_care_of: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state_province: str | None = None
    postal_code: str | None = None
    country: str | None = None
    country_of_residence: str | None = None

    phone_number: str | None = None
    email: str | None = None

    education_level: EducationLevel | None = None
    marital_status: MaritalStatus | None = None
    spouse_family_name: str | None = None
    spouse_given_name: str | None = None
    spouse_middle_name: str | None = None
    spouse_gender: Gender | None = None
    spouse_date_of_birth: date | None = None
    spouse_city_of_birth: str | None = None
    spouse_country_of_birth: str | None = None

    photo_url: str | None = None
    spouse_photo_url: str | None = None

    payment_reference: str | None = None
    payment_status: PaymentStatus | None = None
    payment_verified_at: datetime | None = None
    confirmation_number: str | None = None
    submitted_at: datetime | None = None
    rejection_note: str | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None

    children: list[ChildResponse] = Field(default_factory=list)


class ApplicationSummary(BaseModel):
    """Compact row used by list and duplicate-check responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    status: ApplicationStatus
    family_name: str | None = None
    given_name: str | None = None
    payment_reference: str | None = None
    payment_status: PaymentStatus | None = None
    confirmation_number: str | None = None
    created_at: datetime | None = None
    submitted_at: datetime | None = None


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    data: list[ApplicationResponse]
    pagination: Pagination


class DuplicateCheckResponse(BaseModel):
    """Whether the owner may start another application this cycle."""

    can_submit: bool
    has_duplicate: bool
    existing_applications: list[ApplicationSummary]
    message: str
