# This project was developed with assistance from AI tools.
"""
Domain enums for the DV application lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class ApplicationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAYMENT_VERIFIED = "PAYMENT_VERIFIED"
    PAYMENT_REJECTED = "PAYMENT_REJECTED"
    APPLICATION_REJECTED = "APPLICATION_REJECTED"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    EXPIRED = "EXPIRED"

    @classmethod
    def frozen_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses where ordinary update paths must not touch the row."""
        return frozenset({cls.SUBMITTED, cls.CONFIRMED, cls.EXPIRED})

    @classmethod
    def active_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses that count as an in-flight application for the cycle."""
        return frozenset(
            {cls.PAYMENT_PENDING, cls.PAYMENT_VERIFIED, cls.SUBMITTED, cls.CONFIRMED}
        )

    @classmethod
    def valid_transitions(cls) -> dict["ApplicationStatus", frozenset["ApplicationStatus"]]:
        """Allowed status transitions in the application lifecycle.

        PAYMENT_PENDING -> PAYMENT_PENDING is the payment reference attach.
        SUBMITTED -> PAYMENT_VERIFIED is a failed relay returned to the queue.
        EXPIRED has no inbound or outbound edge.
        """
        return {
            cls.DRAFT: frozenset({cls.PAYMENT_PENDING, cls.APPLICATION_REJECTED}),
            cls.PAYMENT_PENDING: frozenset(
                {
                    cls.PAYMENT_PENDING,
                    cls.PAYMENT_VERIFIED,
                    cls.PAYMENT_REJECTED,
                    cls.APPLICATION_REJECTED,
                }
            ),
            cls.PAYMENT_VERIFIED: frozenset(
                {cls.PAYMENT_VERIFIED, cls.SUBMITTED, cls.CONFIRMED, cls.APPLICATION_REJECTED}
            ),
            cls.PAYMENT_REJECTED: frozenset({cls.PAYMENT_PENDING, cls.APPLICATION_REJECTED}),
            cls.APPLICATION_REJECTED: frozenset({cls.PAYMENT_PENDING}),
            cls.SUBMITTED: frozenset({cls.SUBMITTED, cls.CONFIRMED, cls.PAYMENT_VERIFIED}),
            cls.CONFIRMED: frozenset(),
            cls.EXPIRED: frozenset(),
        }


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    REFUNDED = "REFUNDED"


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class EducationLevel(str, enum.Enum):
    PRIMARY_SCHOOL_ONLY = "PRIMARY_SCHOOL_ONLY"
    SOME_HIGH_SCHOOL_NO_DIPLOMA = "SOME_HIGH_SCHOOL_NO_DIPLOMA"
    HIGH_SCHOOL_DIPLOMA = "HIGH_SCHOOL_DIPLOMA"
    VOCATIONAL_SCHOOL = "VOCATIONAL_SCHOOL"
    SOME_UNIVERSITY_COURSES = "SOME_UNIVERSITY_COURSES"
    UNIVERSITY_DEGREE = "UNIVERSITY_DEGREE"
    SOME_GRADUATE_LEVEL_COURSES = "SOME_GRADUATE_LEVEL_COURSES"
    MASTER_DEGREE = "MASTER_DEGREE"
    SOME_DOCTORAL_LEVEL_COURSES = "SOME_DOCTORAL_LEVEL_COURSES"
    DOCTORATE = "DOCTORATE"


class MaritalStatus(str, enum.Enum):
    UNMARRIED = "UNMARRIED"
    MARRIED_SPOUSE_NOT_US_CITIZEN_LPR = "MARRIED_SPOUSE_NOT_US_CITIZEN_LPR"
    MARRIED_SPOUSE_IS_US_CITIZEN_LPR = "MARRIED_SPOUSE_IS_US_CITIZEN_LPR"
    DIVORCED = "DIVORCED"
    WIDOWED = "WIDOWED"
    LEGALLY_SEPARATED = "LEGALLY_SEPARATED"

    @property
    def requires_spouse(self) -> bool:
        return self is MaritalStatus.MARRIED_SPOUSE_NOT_US_CITIZEN_LPR
