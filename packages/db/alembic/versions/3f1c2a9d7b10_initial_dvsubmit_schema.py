# This project was developed with assistance from AI tools.
"""initial dvsubmit schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:12:41.512203

"""

import sqlalchemy as sa
from alembic import op

revision = "3f1c2a9d7b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("auth_user_id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="USER"),
        sa.Column("blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("blocked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("blocked_by", sa.Integer(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["blocked_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("auth_user_id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_auth_user_id", "users", ["auth_user_id"])
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="DRAFT"),
        sa.Column("family_name", sa.String(50), nullable=True),
        sa.Column("given_name", sa.String(50), nullable=True),
        sa.Column("middle_name", sa.String(50), nullable=True),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("city_of_birth", sa.String(50), nullable=True),
        sa.Column("country_of_birth", sa.String(100), nullable=True),
        sa.Column("country_of_eligibility", sa.String(100), nullable=True),
        sa.Column("eligibility_claim_type", sa.String(50), nullable=True),
        sa.Column("in_care_of", sa.String(100), nullable=True),
        sa.Column("address_line1", sa.String(100), nullable=True),
        sa.Column("address_line2", sa.String(100), nullable=True),
        sa.Column("city", sa.String(50), nullable=True),
        sa.Column("state_province", sa.String(50), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("country_of_residence", sa.String(100), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("education_level", sa.String(40), nullable=True),
        sa.Column("marital_status", sa.String(40), nullable=True),
        sa.Column("spouse_family_name", sa.String(50), nullable=True),
        sa.Column("spouse_given_name", sa.String(50), nullable=True),
        sa.Column("spouse_middle_name", sa.String(50), nullable=True),
        sa.Column("spouse_gender", sa.String(10), nullable=True),
        sa.Column("spouse_date_of_birth", sa.Date(), nullable=True),
        sa.Column("spouse_city_of_birth", sa.String(50), nullable=True),
        sa.Column("spouse_country_of_birth", sa.String(100), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("spouse_photo_url", sa.Text(), nullable=True),
        sa.Column("payment_reference", sa.String(50), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=True),
        sa.Column("payment_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_verified_by", sa.Integer(), nullable=True),
        sa.Column("confirmation_number", sa.String(14), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_by", sa.Integer(), nullable=True),
        sa.Column("rejection_note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["payment_verified_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["submitted_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("payment_reference"),
        sa.UniqueConstraint("confirmation_number"),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])
    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index(
        "uq_applications_one_draft_per_user",
        "applications",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'DRAFT'"),
    )

    op.create_table(
        "children",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("family_name", sa.String(50), nullable=False),
        sa.Column("given_name", sa.String(50), nullable=False),
        sa.Column("middle_name", sa.String(50), nullable=True),
        sa.Column("gender", sa.String(10), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("city_of_birth", sa.String(50), nullable=False),
        sa.Column("country_of_birth", sa.String(100), nullable=False),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_children_application_id", "children", ["application_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("prev_hash", sa.String(64), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("application_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_application_id", "audit_logs", ["application_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])

    op.create_table(
        "legal_acknowledgments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(50), nullable=False),
        sa.Column("version", sa.String(50), nullable=False),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_legal_acknowledgments_user_id", "legal_acknowledgments", ["user_id"])


def downgrade() -> None:
    op.drop_table("legal_acknowledgments")
    op.drop_table("audit_logs")
    op.drop_table("children")
    op.drop_index("uq_applications_one_draft_per_user", table_name="applications")
    op.drop_table("applications")
    op.drop_table("users")
