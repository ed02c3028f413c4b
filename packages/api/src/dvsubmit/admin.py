# This project was developed with assistance from AI tools.
"""
SQLAdmin configuration for the read-only database administration UI

Access the panel at: http://localhost:8000/admin

When AUTH_DISABLED=false, requires the SQLADMIN_USER / SQLADMIN_PASSWORD login.
When AUTH_DISABLED=true, the panel is open (dev mode).
"""

from db import Application, AuditLog, Child, LegalAcknowledgment, User
from db.config import db_settings
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import create_engine
from starlette.requests import Request
from starlette.responses import Response

from .core.config import settings

# SQLAdmin requires a sync engine
engine = create_engine(db_settings.sync_url, echo=False)


class AdminAuth(AuthenticationBackend):
    """Session-based auth gate for SQLAdmin."""

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = form.get("username")
        password = form.get("password")
        if username == settings.SQLADMIN_USER and password == settings.SQLADMIN_PASSWORD:
            request.session.update({"admin_authenticated": True})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> Response | bool:
        if settings.AUTH_DISABLED:
            return True
        return request.session.get("admin_authenticated", False)


class UserAdmin(ModelView, model=User):
    column_list = [
        User.id,
        User.email,
        User.role,
        User.blocked,
        User.deleted_at,
        User.created_at,
    ]
    column_searchable_list = [User.email]
    column_sortable_list = [User.id, User.email, User.role, User.created_at]
    column_default_sort = [(User.created_at, True)]
    # Role and block changes go through the audited admin API.
    can_create = False
    can_edit = False
    can_delete = False
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"


class ApplicationAdmin(ModelView, model=Application):
    column_list = [
        Application.id,
        Application.user_id,
        Application.status,
        Application.family_name,
        Application.given_name,
        Application.payment_reference,
        Application.payment_status,
        Application.confirmation_number,
        Application.created_at,
    ]
    column_searchable_list = [
        Application.family_name,
        Application.given_name,
        Application.payment_reference,
        Application.confirmation_number,
    ]
    column_sortable_list = [Application.id, Application.status, Application.created_at]
    column_default_sort = [(Application.created_at, True)]
    # Status changes go through the lifecycle endpoints.
    can_create = False
    can_edit = False
    can_delete = False
    name = "Application"
    name_plural = "Applications"
    icon = "fa-solid fa-file-alt"


class ChildAdmin(ModelView, model=Child):
    column_list = [
        Child.id,
        Child.application_id,
        Child.family_name,
        Child.given_name,
        Child.date_of_birth,
    ]
    can_create = False
    can_edit = False
    can_delete = False
    name = "Child"
    name_plural = "Children"
    icon = "fa-solid fa-child"


class LegalAcknowledgmentAdmin(ModelView, model=LegalAcknowledgment):
    column_list = [
        LegalAcknowledgment.id,
        LegalAcknowledgment.user_id,
        LegalAcknowledgment.document_type,
        LegalAcknowledgment.version,
        LegalAcknowledgment.acknowledged_at,
    ]
    column_default_sort = [(LegalAcknowledgment.acknowledged_at, True)]
    can_create = False
    can_edit = False
    can_delete = False
    name = "Legal Acknowledgment"
    name_plural = "Legal Acknowledgments"
    icon = "fa-solid fa-file-signature"


class AuditLogAdmin(ModelView, model=AuditLog):
    column_list = [
        AuditLog.id,
        AuditLog.timestamp,
        AuditLog.action,
        AuditLog.user_id,
        AuditLog.application_id,
        AuditLog.ip_address,
    ]
    column_searchable_list = [AuditLog.action]
    column_sortable_list = [AuditLog.id, AuditLog.timestamp, AuditLog.action]
    column_default_sort = [(AuditLog.timestamp, True)]
    can_create = False
    can_edit = False
    can_delete = False
    name = "Audit Log"
    name_plural = "Audit Logs"
    icon = "fa-solid fa-shield-alt"


def setup_admin(app):
    """Set up SQLAdmin and mount it to the FastAPI app."""
    auth_backend = AdminAuth(secret_key=settings.SQLADMIN_SECRET_KEY)
    admin = Admin(app, engine, title="DVSubmit Admin", authentication_backend=auth_backend)

    admin.add_view(UserAdmin)
    admin.add_view(ApplicationAdmin)
    admin.add_view(ChildAdmin)
    admin.add_view(LegalAcknowledgmentAdmin)
    admin.add_view(AuditLogAdmin)

    return admin
