# This project was developed with assistance from AI tools.
"""Tests for the submission relay."""

import pytest
from db.enums import ApplicationStatus, UserRole

from dvsubmit.schemas.filters import SubmissionStatusFilter
from dvsubmit.services.lifecycle import (
    DuplicateConfirmationError,
    InvalidStatusError,
    LifecycleValidationError,
)
from dvsubmit.services.submission import (
    get_statistics,
    list_submissions,
    relay_submission,
    update_submission_status,
)

from .factories import added_audit_actions, make_mock_app, make_result, make_session, make_user_context

S = ApplicationStatus

ADMIN = make_user_context(UserRole.ADMIN, user_id=1)


@pytest.mark.asyncio
async def test_relay_normalizes_and_records():
    app = make_mock_app(S.PAYMENT_VERIFIED, payment_reference="ABCD1234EFGH")
    session = make_session(make_result(single=app), make_result(single=None), default=make_result(single=app))

    await relay_submission(session, ADMIN, 501, " 2025ab12345678 ")

    assert app.status == S.SUBMITTED
    assert app.confirmation_number == "2025AB12345678"
    assert app.submitted_by == 1
    assert app.submitted_at is not None
    assert added_audit_actions(session) == ["APPLICATION_SUBMITTED"]


@pytest.mark.asyncio
async def test_relay_format_checked_before_lookup():
    session = make_session()
    with pytest.raises(LifecycleValidationError):
        await relay_submission(session, ADMIN, 501, "2025AB")
    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_relay_missing_application_before_status():
    session = make_session(make_result(single=None))
    assert await relay_submission(session, ADMIN, 999, "2025AB12345678") is None


@pytest.mark.asyncio
async def test_relay_status_before_uniqueness():
    app = make_mock_app(S.PAYMENT_PENDING)
    session = make_session(make_result(single=app), make_result(single=777))

    with pytest.raises(InvalidStatusError):
        await relay_submission(session, ADMIN, 501, "2025AB12345678")
    # the uniqueness query never ran
    assert session.execute.await_count == 1


@pytest.mark.asyncio
async def test_relay_duplicate_confirmation():
    app = make_mock_app(S.PAYMENT_VERIFIED)
    session = make_session(make_result(single=app), make_result(single=777))

    with pytest.raises(DuplicateConfirmationError):
        await relay_submission(session, ADMIN, 501, "2025AB12345678")
    assert app.status == S.PAYMENT_VERIFIED
    assert app.confirmation_number is None


@pytest.mark.asyncio
async def test_failed_returns_to_verified_and_clears_number():
    app = make_mock_app(
        S.SUBMITTED, confirmation_number="2025AB12345678", submitted_at="x", submitted_by=1,
    )
    session = make_session(default=make_result(single=app))

    await update_submission_status(session, ADMIN, 501, "FAILED")

    assert app.status == S.PAYMENT_VERIFIED
    assert app.confirmation_number is None
    assert app.submitted_at is None
    audit = session.add.call_args_list[-1].args[0]
    assert audit.details["previous_confirmation_number"] == "2025AB12345678"
    assert audit.details["requested_status"] == "FAILED"


@pytest.mark.asyncio
async def test_confirmed_from_verified_requires_number():
    app = make_mock_app(S.PAYMENT_VERIFIED)
    session = make_session(default=make_result(single=app))

    with pytest.raises(LifecycleValidationError):
        await update_submission_status(session, ADMIN, 501, "CONFIRMED")


@pytest.mark.asyncio
async def test_confirmed_with_new_number_checks_uniqueness():
    app = make_mock_app(S.SUBMITTED, confirmation_number="2025AB12345678")
    session = make_session(make_result(single=app), make_result(single=None), default=make_result(single=app))

    await update_submission_status(session, ADMIN, 501, "CONFIRMED", "2025CD12345678")
    assert app.status == S.CONFIRMED
    assert app.confirmation_number == "2025CD12345678"


@pytest.mark.asyncio
async def test_confirmed_is_terminal():
    app = make_mock_app(S.CONFIRMED, confirmation_number="2025AB12345678")
    session = make_session(default=make_result(single=app))

    with pytest.raises(InvalidStatusError):
        await update_submission_status(session, ADMIN, 501, "FAILED")


@pytest.mark.asyncio
async def test_list_submissions_filter():
    apps = [make_mock_app(S.SUBMITTED)]
    session = make_session(make_result(count=1), make_result(items=apps))

    rows, total = await list_submissions(session, ADMIN, status=SubmissionStatusFilter.SUBMITTED)
    assert (rows, total) == (apps, 1)
    sql = str(session.execute.await_args_list[1].args[0])
    assert "payment_verified_at ASC NULLS LAST" in sql


@pytest.mark.asyncio
async def test_statistics_runs_five_counts():
    session = make_session(
        make_result(count=10),
        make_result(count=4),
        make_result(count=1),
        make_result(count=3),
        make_result(count=2),
    )
    stats = await get_statistics(session)
    assert stats == {
        "total_submitted_applications": 10,
        "pending_payment_verification": 4,
        "rejected_payments": 1,
        "pending_review_and_submit": 3,
        "submitted_to_dv": 2,
    }
