# This project was developed with assistance from AI tools.
"""
DVSubmit -- domain models

Users, DV lottery applications with their dependent children, the
append-only audit trail, and legal acknowledgments.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    ApplicationStatus,
    EducationLevel,
    Gender,
    MaritalStatus,
    PaymentStatus,
    UserRole,
)


class User(Base):
    """Account linked to the identity provider's user id."""

    __tablename__ = "users"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    auth_user_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.USER,
    )
    blocked = Column(Boolean, nullable=False, default=False)
    blocked_at = Column(DateTime(timezone=True), nullable=True)
    blocked_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    applications = relationship(
        "Application",
        back_populates="user",
        foreign_keys="Application.user_id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class Application(Base):
    """DV lottery application.

    Applicant fields are nullable so a DRAFT can be saved section by section;
    completeness is checked when the owner submits for payment.
    """

    __tablename__ = "applications"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        Index(
            "uq_applications_one_draft_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'DRAFT'"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=False,
        default=ApplicationStatus.DRAFT,
        index=True,
    )

    # Personal
    family_name = Column(String(50), nullable=True)
    given_name = Column(String(50), nullable=True)
    middle_name = Column(String(50), nullable=True)
    gender = Column(Enum(Gender, name="gender", native_enum=False), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    city_of_birth = Column(String(50), nullable=True)
    country_of_birth = Column(String(100), nullable=True)
    country_of_eligibility = Column(String(100), nullable=True)
    eligibility_claim_type = Column(String(50), nullable=True)

    # Mailing address
    in_care_of = Column(String(100), nullable=True)
    address_line1 = Column(String(100), nullable=True)
    address_line2 = Column(String(100), nullable=True)
    city = Column(String(50), nullable=True)
    state_province = Column(String(50), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)
    country_of_residence = Column(String(100), nullable=True)

    # Contact
    phone_number = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)

    # Education / marital
    education_level = Column(
        Enum(EducationLevel, name="education_level", native_enum=False), nullable=True,
    )
    marital_status = Column(
        Enum(MaritalStatus, name="marital_status", native_enum=False), nullable=True,
    )
    spouse_family_name = Column(String(50), nullable=True)
    spouse_given_name = Column(String(50), nullable=True)
    spouse_middle_name = Column(String(50), nullable=True)
    spouse_gender = Column(Enum(Gender, name="spouse_gender", native_enum=False), nullable=True)
    spouse_date_of_birth = Column(Date, nullable=True)
    spouse_city_of_birth = Column(String(50), nullable=True)
    spouse_country_of_birth = Column(String(100), nullable=True)

    # Photos (object storage paths)
    photo_url = Column(Text, nullable=True)
    spouse_photo_url = Column(Text, nullable=True)

    # Payment sub-state
    payment_reference = Column(String(50), unique=True, nullable=True)
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", native_enum=False), nullable=True,
    )
    payment_verified_at = Column(DateTime(timezone=True), nullable=True)
    payment_verified_by = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )

    # Submission sub-state
    confirmation_number = Column(String(14), unique=True, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    submitted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    rejection_note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="applications", foreign_keys=[user_id])
    verifier = relationship("User", foreign_keys=[payment_verified_by])
    children = relationship(
        "Child",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="Child.id",
    )

    @property
    def applicant_name(self) -> str:
        return " ".join(p for p in (self.given_name, self.family_name) if p)

    def __repr__(self):
        return f"<Application(id={self.id}, status='{self.status}')>"


class Child(Base):
    """Dependent child listed on an application."""

    __tablename__ = "children"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    family_name = Column(String(50), nullable=False)
    given_name = Column(String(50), nullable=False)
    middle_name = Column(String(50), nullable=True)
    gender = Column(Enum(Gender, name="child_gender", native_enum=False), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    city_of_birth = Column(String(50), nullable=False)
    country_of_birth = Column(String(100), nullable=False)
    photo_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="children")

    def __repr__(self):
        return f"<Child(id={self.id}, application_id={self.application_id})>"


class AuditLog(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE.

    application_id carries no foreign key so rows outlive deleted applications.
    """

    __tablename__ = "audit_logs"
    # timestamp feeds the next row's hash; fetch it on INSERT
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    prev_hash = Column(String(64), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    application_id = Column(Integer, nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)

    user = relationship("User")

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}')>"


class LegalAcknowledgment(Base):
    """A user's acceptance of a versioned legal document."""

    __tablename__ = "legal_acknowledgments"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    document_type = Column(String(50), nullable=False)
    version = Column(String(50), nullable=False)
    acknowledged_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<LegalAcknowledgment(user_id={self.user_id}, version='{self.version}')>"
