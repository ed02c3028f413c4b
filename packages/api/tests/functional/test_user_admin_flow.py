# This project was developed with assistance from AI tools.
"""Functional tests: account sync, applicant directory, blocking, roles, audit trail."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from db import User
from db.enums import UserRole

from dvsubmit.middleware.auth import get_token_identity
from dvsubmit.schemas.auth import TokenIdentity

from .data_factory import make_user, make_user_abebe, make_user_hanna
from .mock_db import make_mock_identity, make_mock_session, make_result, make_scripted_session
from .personas import ADMIN_USER_ID, admin, applicant_abebe, super_admin

pytestmark = pytest.mark.functional


def _assign_ids_on_add(session, user_id: int = 103) -> None:
    """Emulate the INSERT defaults the database would fill in for new users."""

    def _add(obj):
        if isinstance(obj, User):
            obj.id = user_id
            obj.created_at = datetime(2026, 4, 1, tzinfo=UTC)

    session.add = MagicMock(side_effect=_add)


def _audit_row(id: int, action: str, user_id: int | None = None) -> MagicMock:
    row = MagicMock()
    row.id = id
    row.timestamp = datetime(2026, 4, 1, 12, id, tzinfo=UTC)
    row.action = action
    row.user_id = user_id
    row.application_id = 501
    row.details = {"new_status": "PAYMENT_VERIFIED"}
    row.ip_address = "10.0.0.1"
    row.user_agent = "pytest"
    return row


class TestAccount:
    def test_sync_creates_user_from_token_identity(self, app, make_client):
        session = make_scripted_session(make_result(single=None), make_result(single=None))
        _assign_ids_on_add(session)
        client = make_client(applicant_abebe(), session)
        app.dependency_overrides[get_token_identity] = lambda: TokenIdentity(
            sub="auth-103", email="selam@example.com",
        )

        resp = client.post("/api/auth/sync-user", json={"role": "SUPER_ADMIN"})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["id"] == 103
        assert data["email"] == "selam@example.com"
        # Body claims are ignored; new accounts are always applicants.
        assert data["role"] == "USER"
        session.commit.assert_awaited_once()

    def test_sync_refreshes_email_of_existing_user(self, app, make_client):
        existing = make_user_abebe()
        client = make_client(applicant_abebe(), make_mock_session(single=existing))
        app.dependency_overrides[get_token_identity] = lambda: TokenIdentity(
            sub="auth-101", email="abebe.k@example.com",
        )

        resp = client.post("/api/auth/sync-user")
        assert resp.status_code == 200
        assert existing.email == "abebe.k@example.com"

    def test_sync_refuses_blocked_account(self, app, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_user(blocked=True)))
        app.dependency_overrides[get_token_identity] = lambda: TokenIdentity(
            sub="auth-101", email="abebe@example.com",
        )

        resp = client.post("/api/auth/sync-user")
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    def test_me_reports_role_flags(self, make_client):
        row = make_user(id=2, email="root@dvsubmit.example", role=UserRole.SUPER_ADMIN)
        client = make_client(super_admin(), make_mock_session(single=row))

        resp = client.get("/api/auth/me")
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "SUPER_ADMIN"
        assert body["is_admin"] is True
        assert body["is_super_admin"] is True
        assert body["user"]["email"] == "root@dvsubmit.example"

    def test_applicant_me(self, make_client):
        client = make_client(applicant_abebe(), make_mock_session(single=make_user_abebe()))

        body = client.get("/api/auth/me").json()
        assert body["is_admin"] is False
        assert body["is_super_admin"] is False

    def test_delete_account_is_soft(self, make_client):
        row = make_user_abebe()
        session = make_mock_session(single=row)
        client = make_client(applicant_abebe(), session)

        resp = client.delete("/api/auth/account")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"id": 101}
        assert row.deleted_at is not None
        session.delete.assert_not_awaited()


class TestApplicantDirectory:
    def test_list_applicants_with_counts(self, make_client):
        rows = [(make_user_abebe(), 2), (make_user_hanna(), 1)]
        session = make_scripted_session(make_result(count=2), make_result(rows=rows))
        client = make_client(admin(), session)

        resp = client.get("/api/admin/applicants", params={"state": "active", "sort_by": "email"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["pagination"]["total"] == 2
        assert [(u["email"], u["application_count"]) for u in body["data"]] == [
            ("abebe@example.com", 2),
            ("hanna@example.com", 1),
        ]

    def test_unknown_sort_is_422(self, make_client):
        client = make_client(admin(), make_mock_session())

        resp = client.get("/api/admin/applicants", params={"sort_by": "password"})
        assert resp.status_code == 422

    def test_admin_blocks_applicant(self, make_client):
        target = make_user_hanna()
        client = make_client(admin(), make_mock_session(single=target))

        resp = client.put("/api/admin/applicants/102/block")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["blocked"] is True
        assert target.blocked_by == ADMIN_USER_ID

    def test_block_twice_is_400(self, make_client):
        client = make_client(admin(), make_mock_session(single=make_user_hanna(blocked=True)))

        resp = client.put("/api/admin/applicants/102/block")
        assert resp.status_code == 400

    def test_admin_cannot_block_another_admin(self, make_client):
        other = make_user(id=3, email="ops@dvsubmit.example", role=UserRole.ADMIN)
        session = make_mock_session(single=other)
        client = make_client(admin(), session)

        resp = client.put("/api/admin/applicants/3/block")
        assert resp.status_code == 403
        assert other.blocked is False
        session.commit.assert_not_awaited()

    def test_cannot_block_self(self, make_client):
        client = make_client(admin(), make_mock_session())

        resp = client.put(f"/api/admin/applicants/{ADMIN_USER_ID}/block")
        assert resp.status_code == 400

    def test_unblock(self, make_client):
        target = make_user_hanna(blocked=True)
        client = make_client(admin(), make_mock_session(single=target))

        resp = client.put("/api/admin/applicants/102/unblock")
        assert resp.status_code == 200
        assert resp.json()["data"]["blocked"] is False
        assert target.blocked_at is None

    def test_unknown_user_is_404(self, make_client):
        client = make_client(admin(), make_mock_session(single=None))

        resp = client.put("/api/admin/applicants/999/block")
        assert resp.status_code == 404


class TestSuperAdmin:
    def test_super_admin_blocks_an_admin(self, make_client):
        target = make_user(id=3, email="ops@dvsubmit.example", role=UserRole.ADMIN)
        client = make_client(super_admin(), make_mock_session(single=target))

        resp = client.put("/api/admin/users/3/block")
        assert resp.status_code == 200
        assert target.blocked is True

    def test_role_update_mirrors_to_identity_provider(self, make_client):
        target = make_user_hanna()
        identity = make_mock_identity()
        client = make_client(super_admin(), make_mock_session(single=target), identity=identity)

        resp = client.put("/api/admin/users/102/role", json={"role": "ADMIN"})
        assert resp.status_code == 200
        assert resp.json()["data"]["role"] == "ADMIN"
        identity.update_app_metadata.assert_awaited_once_with("auth-102", {"role": "ADMIN"})

    def test_role_update_survives_identity_failure(self, make_client):
        identity = make_mock_identity()
        identity.update_app_metadata.return_value = False
        client = make_client(
            super_admin(), make_mock_session(single=make_user_hanna()), identity=identity,
        )

        resp = client.put("/api/admin/users/102/role", json={"role": "ADMIN"})
        assert resp.status_code == 200

    def test_cannot_demote_self(self, make_client):
        identity = make_mock_identity()
        client = make_client(super_admin(), make_mock_session(), identity=identity)

        resp = client.put("/api/admin/users/2/role", json={"role": "USER"})
        assert resp.status_code == 400
        identity.update_app_metadata.assert_not_awaited()

    def test_list_all_users(self, make_client):
        rows = [(make_user(id=1, email="admin@dvsubmit.example", role=UserRole.ADMIN), 0)]
        session = make_scripted_session(make_result(count=1), make_result(rows=rows))
        client = make_client(super_admin(), session)

        resp = client.get("/api/admin/users")
        assert resp.status_code == 200
        assert resp.json()["data"][0]["role"] == "ADMIN"


class TestAuditTrail:
    def test_search_audit_logs(self, make_client):
        rows = [
            (_audit_row(2, "PAYMENT_APPROVED", ADMIN_USER_ID), "admin@dvsubmit.example"),
            (_audit_row(1, "SYSTEM_STARTUP"), None),
        ]
        session = make_scripted_session(make_result(count=2), make_result(rows=rows))
        client = make_client(super_admin(), session)

        resp = client.get("/api/admin/audit-logs/", params={"action": "PAYMENT"})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data[0]["user_email"] == "admin@dvsubmit.example"
        assert data[0]["details"] == {"new_status": "PAYMENT_VERIFIED"}
        assert data[1]["user_email"] is None

    def test_inverted_date_range_is_422(self, make_client):
        client = make_client(super_admin(), make_mock_session())

        resp = client.get(
            "/api/admin/audit-logs/",
            params={"start_date": "2026-05-01T00:00:00Z", "end_date": "2026-04-01T00:00:00Z"},
        )
        assert resp.status_code == 422

    def test_verify_empty_chain(self, make_client):
        client = make_client(super_admin(), make_mock_session(items=[]))

        resp = client.get("/api/admin/audit-logs/verify")
        assert resp.status_code == 200
        assert resp.json() == {"status": "OK", "events_checked": 0, "first_break_id": None}
