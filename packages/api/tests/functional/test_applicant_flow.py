# This project was developed with assistance from AI tools.
"""Functional tests: applicant journey from draft to verified payment.

Each step gets a fresh mock session; the same mock Application is threaded
through so the services' mutations carry over from step to step.
"""

import pytest
from db.enums import ApplicationStatus

from .data_factory import (
    complete_form,
    make_complete,
    make_draft,
    make_pending_payment,
    make_pending_with_reference,
    make_submitted,
)
from .mock_db import make_mock_session, make_result, make_scripted_session
from .personas import admin, applicant_abebe

pytestmark = pytest.mark.functional


class TestDraftToVerifiedPayment:
    """Create DRAFT -> submit -> attach reference -> admin approves."""

    def test_end_to_end(self, make_client):
        draft = make_draft()

        # 1. Create the draft: no existing DRAFT, then the re-read returns it
        session = make_scripted_session(
            make_result(single=None),
            make_result(),
            make_result(),
            make_result(single=draft),
        )
        client = make_client(applicant_abebe(), session)
        resp = client.post("/api/applications/", json={"family_name": "Kebede", "given_name": "Abebe"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["status"] == "DRAFT"
        session.add.assert_called()

        # 2. Submit complete fields
        client = make_client(applicant_abebe(), make_mock_session(single=draft))
        resp = client.post("/api/applications/submit", json=complete_form())
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "PAYMENT_PENDING"
        assert data["payment_status"] == "PENDING"
        assert data["country_of_eligibility"] == "Ethiopia"

        # 3. Attach the payment reference: newest awaiting app, reference unused
        session = make_scripted_session(
            make_result(single=draft),
            make_result(single=None),
            make_result(),
            make_result(),
            make_result(single=draft),
        )
        client = make_client(applicant_abebe(), session)
        resp = client.post("/api/payments/", json={"payment_reference": "ABCD1234EFGH"})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "PAYMENT_PENDING"
        assert data["payment_reference"] == "ABCD1234EFGH"

        # 4. Admin approves
        client = make_client(admin(), make_mock_session(single=draft))
        resp = client.post("/api/admin/payments/501/verify", json={"action": "approve"})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "PAYMENT_VERIFIED"
        assert data["payment_status"] == "VERIFIED"
        assert data["payment_verified_at"] is not None


class TestDrafts:
    def test_list_own_applications(self, make_client):
        apps = [make_draft(), make_submitted(id=502)]
        client = make_client(applicant_abebe(), make_mock_session(items=apps))

        resp = client.get("/api/applications/")
        assert resp.status_code == 200
        data = resp.json()
        assert data["pagination"]["total"] == 2
        assert [a["id"] for a in data["data"]] == [501, 502]

    def test_get_application_writes_view_audit(self, make_client):
        session = make_mock_session(single=make_draft())
        client = make_client(applicant_abebe(), session)

        resp = client.get("/api/applications/501")
        assert resp.status_code == 200
        assert resp.json()["family_name"] == "Kebede"
        audit_rows = [c.args[0] for c in session.add.call_args_list]
        assert any(getattr(row, "action", None) == "APPLICATION_VIEWED" for row in audit_rows)

    def test_auto_save_edit_mode_updates_pending_application(self, make_client):
        app = make_pending_payment()
        client = make_client(applicant_abebe(), make_mock_session(single=app))

        resp = client.post(
            "/api/applications/auto-save",
            json={"mode": "edit", "application_id": 501, "data": {"phone_number": "+251922000000"}},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["phone_number"] == "+251922000000"

    def test_auto_save_edit_mode_requires_id(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session())

        resp = client.post("/api/applications/auto-save", json={"mode": "edit", "data": {}})
        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"

    def test_auto_save_refuses_submitted_application(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_submitted()))

        resp = client.post(
            "/api/applications/auto-save",
            json={"mode": "edit", "application_id": 501, "data": {"city": "Adama"}},
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "INVALID_STATUS"

    def test_submit_incomplete_form_is_rejected(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_draft()))

        form = complete_form()
        del form["country_of_eligibility"]
        resp = client.post("/api/applications/submit", json=form)
        assert resp.status_code == 422

    def test_submit_married_without_spouse_is_rejected(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_draft()))

        resp = client.post(
            "/api/applications/submit",
            json=complete_form(marital_status="MARRIED_SPOUSE_NOT_US_CITIZEN_LPR"),
        )
        assert resp.status_code == 422
        assert "Spouse details are required" in resp.json()["detail"]

    def test_submit_twice_is_invalid_status(self, make_client):
        session = make_mock_session(single=make_pending_payment())
        client = make_client(applicant_abebe(), session)

        resp = client.post("/api/applications/submit", json=complete_form())
        assert resp.status_code == 409
        assert resp.json()["code"] == "INVALID_STATUS"
        session.commit.assert_not_awaited()

    def test_check_duplicate_reports_active_application(self, make_client):
        apps = [make_pending_payment()]
        client = make_client(applicant_abebe(), make_mock_session(items=apps))

        resp = client.get("/api/applications/check-duplicate")
        assert resp.status_code == 200
        body = resp.json()
        assert body["has_duplicate"] is True
        assert body["can_submit"] is False
        assert body["existing_applications"][0]["status"] == "PAYMENT_PENDING"

    def test_check_duplicate_allows_when_only_draft(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(items=[make_draft()]))

        body = client.get("/api/applications/check-duplicate").json()
        assert body["can_submit"] is True
        assert body["has_duplicate"] is False


class TestPayments:
    def test_duplicate_reference_is_conflict(self, make_client):
        app = make_pending_payment()
        # awaiting app found, then the reference is already used by app 999
        session = make_scripted_session(make_result(single=app), make_result(single=999))
        client = make_client(applicant_abebe(), session)

        resp = client.post("/api/payments/", json={"payment_reference": "ABCD1234EFGH"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "DUPLICATE_PAYMENT_REFERENCE"
        assert app.payment_reference is None
        session.commit.assert_not_awaited()

    def test_reference_already_attached_is_invalid_status(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_pending_with_reference()))

        resp = client.post(
            "/api/payments/", json={"payment_reference": "ZZZZ9999YYYY", "application_id": 501},
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "INVALID_STATUS"

    def test_lowercase_reference_fails_validation(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session())

        resp = client.post("/api/payments/", json={"payment_reference": "abcd1234efgh"})
        assert resp.status_code == 422

    def test_no_application_awaiting_reference_is_404(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=None))

        resp = client.post("/api/payments/", json={"payment_reference": "ABCD1234EFGH"})
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"

    def test_current_payment_includes_fee(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_pending_with_reference()))

        resp = client.get("/api/payments/")
        assert resp.status_code == 200
        body = resp.json()
        assert body["payment_reference"] == "ABCD1234EFGH"
        assert body["service_fee_etb"] == 399

    def test_resubmit_reference_after_rejection(self, make_client):
        from .data_factory import make_payment_rejected

        app = make_payment_rejected()
        session = make_scripted_session(
            make_result(single=app),
            make_result(single=None),
            default=make_result(single=app),
        )
        client = make_client(applicant_abebe(), session)

        resp = client.patch(
            "/api/applications/501/payment-reference", json={"payment_reference": "NEWREF123456"},
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "PAYMENT_PENDING"
        assert data["payment_reference"] == "NEWREF123456"
        assert data["payment_verified_at"] is None


class TestDeleteAndProof:
    def test_delete_draft(self, make_client):
        session = make_mock_session(single=make_draft())
        client = make_client(applicant_abebe(), session)

        resp = client.delete("/api/applications/501")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"id": 501}
        session.delete.assert_awaited_once()

    def test_delete_submitted_is_refused(self, make_client):
        session = make_mock_session(single=make_submitted())
        client = make_client(applicant_abebe(), session)

        resp = client.delete("/api/applications/501")
        assert resp.status_code == 409
        session.delete.assert_not_awaited()

    def test_proof_of_submission(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_submitted()))

        resp = client.get("/api/applications/501/proof")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "2025AB12345678" in resp.text
        assert "Abebe Kebede" in resp.text
        assert "DV-Submission-Proof-2025AB12345678.html" in resp.headers["content-disposition"]

    def test_proof_escapes_applicant_fields(self, make_client):
        app = make_submitted(given_name="<script>", family_name="X")
        client = make_client(applicant_abebe(), make_mock_session(single=app))

        resp = client.get("/api/applications/501/proof")
        assert "<script>" not in resp.text
        assert "&lt;script&gt;" in resp.text

    def test_proof_before_submission_is_400(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_complete()))

        resp = client.get("/api/applications/501/proof")
        assert resp.status_code == 400
        assert resp.json()["code"] == "NOT_SUBMITTED"


def test_status_enum_values_round_trip_in_responses(make_client):
    """Enum members serialize by value, matching the stored strings."""
    client = make_client(applicant_abebe(), make_mock_session(single=make_draft()))
    resp = client.get("/api/applications/501")
    assert resp.json()["status"] == ApplicationStatus.DRAFT.value
