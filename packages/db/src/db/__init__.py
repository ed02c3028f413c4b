# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
from .enums import (
    ApplicationStatus,
    EducationLevel,
    Gender,
    MaritalStatus,
    PaymentStatus,
    UserRole,
)
from .models import (
    Application,
    AuditLog,
    Child,
    LegalAcknowledgment,
    User,
)

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ApplicationStatus",
    "PaymentStatus",
    "UserRole",
    "Gender",
    "EducationLevel",
    "MaritalStatus",
    # Models
    "Application",
    "AuditLog",
    "Child",
    "LegalAcknowledgment",
    "User",
]
