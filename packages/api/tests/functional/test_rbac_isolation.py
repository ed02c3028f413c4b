# This project was developed with assistance from AI tools.
"""Functional tests: role gate, blocked accounts and cross-user isolation."""

import pytest

from .data_factory import complete_form, make_draft
from .mock_db import make_mock_session
from .personas import admin, applicant_abebe, applicant_hanna, blocked_admin, blocked_applicant

pytestmark = pytest.mark.functional

ADMIN_ENDPOINTS = [
    ("get", "/api/admin/applications"),
    ("get", "/api/admin/applications/501"),
    ("post", "/api/admin/applications/501/reject"),
    ("post", "/api/admin/applications/501/submit"),
    ("post", "/api/admin/payments/501/verify"),
    ("get", "/api/admin/submissions"),
    ("get", "/api/admin/statistics"),
    ("get", "/api/admin/applicants"),
    ("put", "/api/admin/applicants/102/block"),
]

SUPER_ADMIN_ENDPOINTS = [
    ("get", "/api/admin/users"),
    ("put", "/api/admin/users/102/block"),
    ("put", "/api/admin/users/102/role"),
    ("get", "/api/admin/audit-logs/"),
    ("get", "/api/admin/audit-logs/verify"),
]

_BODIES = {
    "/api/admin/applications/501/reject": {"rejection_note": "x"},
    "/api/admin/applications/501/submit": {"confirmation_number": "2025AB12345678"},
    "/api/admin/payments/501/verify": {"action": "approve"},
    "/api/admin/users/102/role": {"role": "ADMIN"},
}


def _call(client, method: str, path: str):
    kwargs = {"json": _BODIES[path]} if path in _BODIES else {}
    return getattr(client, method)(path, **kwargs)


class TestRoleGate:
    @pytest.mark.parametrize("method,path", ADMIN_ENDPOINTS + SUPER_ADMIN_ENDPOINTS)
    def test_applicant_cannot_reach_back_office(self, make_client, method, path):
        session = make_mock_session()
        client = make_client(applicant_abebe(), session)

        resp = _call(client, method, path)
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"
        session.execute.assert_not_awaited()

    @pytest.mark.parametrize("method,path", SUPER_ADMIN_ENDPOINTS)
    def test_admin_cannot_reach_super_admin_endpoints(self, make_client, method, path):
        client = make_client(admin(), make_mock_session())

        resp = _call(client, method, path)
        assert resp.status_code == 403

    def test_blocked_admin_cannot_even_read(self, make_client):
        client = make_client(blocked_admin(), make_mock_session())

        resp = client.get("/api/admin/applications")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Account blocked"


class TestBlockedApplicant:
    def test_reads_still_work(self, make_client):
        client = make_client(blocked_applicant(), make_mock_session(items=[make_draft()]))

        resp = client.get("/api/applications/")
        assert resp.status_code == 200

    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("post", "/api/applications/", {"given_name": "Abebe"}),
            ("post", "/api/applications/submit", complete_form()),
            ("post", "/api/payments/", {"payment_reference": "ABCD1234EFGH"}),
            ("delete", "/api/applications/501", None),
            ("post", "/api/legal/acknowledgment", {"version": "2026-01"}),
        ],
    )
    def test_writes_are_refused(self, make_client, method, path, body):
        session = make_mock_session(single=make_draft())
        client = make_client(blocked_applicant(), session)

        kwargs = {"json": body} if body is not None else {}
        resp = getattr(client, method)(path, **kwargs)
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Account blocked"
        session.commit.assert_not_awaited()


class TestCrossUserIsolation:
    def test_other_users_application_is_404(self, make_client):
        # The owner filter yields no row for Hanna.
        client = make_client(applicant_hanna(), make_mock_session(single=None))

        resp = client.get("/api/applications/501")
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"

    def test_other_users_proof_is_404(self, make_client):
        client = make_client(applicant_hanna(), make_mock_session(single=None))

        resp = client.get("/api/applications/501/proof")
        assert resp.status_code == 404

    def test_other_users_payment_status_is_404(self, make_client):
        client = make_client(applicant_hanna(), make_mock_session(single=None))

        resp = client.get("/api/payments/501/status")
        assert resp.status_code == 404

    @pytest.mark.parametrize("persona", [applicant_abebe, admin, blocked_admin])
    def test_payment_status_is_owner_scoped_for_every_role(self, make_client, persona):
        session = make_mock_session(single=None)
        user = persona()
        client = make_client(user, session)

        resp = client.get("/api/payments/999/status")
        assert resp.status_code == 404
        stmt = session.execute.await_args_list[0].args[0]
        assert "applications.user_id = " in str(stmt)
        assert user.user_id in stmt.compile().params.values()

    def test_owner_query_is_scoped_to_caller(self, make_client):
        session = make_mock_session(single=None)
        client = make_client(applicant_hanna(), session)

        client.get("/api/applications/501")
        stmt = session.execute.await_args_list[0].args[0]
        compiled = stmt.compile()
        assert 102 in compiled.params.values()
