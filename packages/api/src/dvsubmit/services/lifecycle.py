# This project was developed with assistance from AI tools.
"""Application lifecycle rules.

Named transitions map a set of legal source statuses to one target status.
``check_transition`` only decides; callers apply the effect, write the
audit row and commit. Nothing here touches the database.
"""

import enum
import re

from db.enums import ApplicationStatus

S = ApplicationStatus

CONFIRMATION_NUMBER_RE = re.compile(r"^20\d{2}[A-Z0-9]{10}$")
PAYMENT_REFERENCE_RE = re.compile(r"^[A-Z0-9]{10,50}$")


class LifecycleError(ValueError):
    """Base for lifecycle failures; carries a stable error code."""

    code = "INVALID_REQUEST"
    status_code = 400


class InvalidStatusError(LifecycleError):
    """Raised when a transition is not legal from the current status."""

    code = "INVALID_STATUS"
    status_code = 409


class DuplicatePaymentReferenceError(LifecycleError):
    code = "DUPLICATE_PAYMENT_REFERENCE"
    status_code = 409


class DuplicateConfirmationError(LifecycleError):
    code = "DUPLICATE_CONFIRMATION"
    status_code = 409


class LifecycleValidationError(LifecycleError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotSubmittedError(LifecycleError):
    code = "NOT_SUBMITTED"
    status_code = 400


class Transition(str, enum.Enum):
    SUBMIT_FOR_PAYMENT = "submit_for_payment"
    ATTACH_PAYMENT_REFERENCE = "attach_payment_reference"
    APPROVE_PAYMENT = "approve_payment"
    REJECT_PAYMENT = "reject_payment"
    RESUBMIT_PAYMENT_REFERENCE = "resubmit_payment_reference"
    REJECT_APPLICATION = "reject_application"
    RESUBMIT_APPLICATION = "resubmit_application"
    RELAY_SUBMISSION = "relay_submission"
    MARK_SUBMITTED = "mark_submitted"
    MARK_CONFIRMED = "mark_confirmed"
    MARK_FAILED = "mark_failed"


TRANSITIONS: dict[Transition, tuple[frozenset[ApplicationStatus], ApplicationStatus]] = {
    Transition.SUBMIT_FOR_PAYMENT: (frozenset({S.DRAFT}), S.PAYMENT_PENDING),
    Transition.ATTACH_PAYMENT_REFERENCE: (frozenset({S.PAYMENT_PENDING}), S.PAYMENT_PENDING),
    Transition.APPROVE_PAYMENT: (frozenset({S.PAYMENT_PENDING}), S.PAYMENT_VERIFIED),
    Transition.REJECT_PAYMENT: (frozenset({S.PAYMENT_PENDING}), S.PAYMENT_REJECTED),
    Transition.RESUBMIT_PAYMENT_REFERENCE: (frozenset({S.PAYMENT_REJECTED}), S.PAYMENT_PENDING),
    Transition.REJECT_APPLICATION: (
        frozenset({S.DRAFT, S.PAYMENT_PENDING, S.PAYMENT_VERIFIED, S.PAYMENT_REJECTED}),
        S.APPLICATION_REJECTED,
    ),
    Transition.RESUBMIT_APPLICATION: (frozenset({S.APPLICATION_REJECTED}), S.PAYMENT_PENDING),
    Transition.RELAY_SUBMISSION: (frozenset({S.PAYMENT_VERIFIED}), S.SUBMITTED),
    Transition.MARK_SUBMITTED: (frozenset({S.PAYMENT_VERIFIED, S.SUBMITTED}), S.SUBMITTED),
    Transition.MARK_CONFIRMED: (frozenset({S.PAYMENT_VERIFIED, S.SUBMITTED}), S.CONFIRMED),
    Transition.MARK_FAILED: (frozenset({S.PAYMENT_VERIFIED, S.SUBMITTED}), S.PAYMENT_VERIFIED),
}


def check_transition(application, transition: Transition) -> ApplicationStatus:
    """Return the target status of ``transition`` for ``application``.

    Raises InvalidStatusError if the transition is not allowed. The
    application is never mutated.
    """
    sources, target = TRANSITIONS[transition]
    current = application.status
    if current not in sources:
        raise InvalidStatusError(
            f"Cannot {transition.value.replace('_', ' ')} from '{current.value}'. "
            f"Allowed from: {sorted(s.value for s in sources)}."
        )
    return target


def ensure_editable(application) -> None:
    """Refuse ordinary updates once an application is frozen."""
    current = application.status
    if current in ApplicationStatus.frozen_statuses():
        raise InvalidStatusError(f"Application is read-only in status '{current.value}'.")


def validate_confirmation_number(value: str) -> bool:
    return bool(CONFIRMATION_NUMBER_RE.fullmatch(value))


def normalize_confirmation_number(raw: str | None) -> str:
    """Trim and uppercase a confirmation number, then check its format.

    Raises LifecycleValidationError when blank or malformed.
    """
    value = (raw or "").strip().upper()
    if not value:
        raise LifecycleValidationError("Confirmation number is required.")
    if not validate_confirmation_number(value):
        raise LifecycleValidationError(
            "Invalid confirmation number format. Expected 20YY followed by "
            "10 letters or digits (e.g. 2025AB12345678)."
        )
    return value


def normalize_payment_reference(raw: str | None) -> str:
    """Trim a payment reference and check its format (10-50 of A-Z, 0-9)."""
    value = (raw or "").strip()
    if not PAYMENT_REFERENCE_RE.fullmatch(value):
        raise LifecycleValidationError(
            "Payment reference must be 10-50 uppercase letters and digits."
        )
    return value


def normalize_rejection_note(raw: str | None) -> str:
    """Trim a rejection note; blank notes are refused."""
    value = (raw or "").strip()
    if not value:
        raise LifecycleValidationError("Rejection note is required.")
    return value
