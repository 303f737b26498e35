"""SQLAlchemy models for the ArthAstra advisor service."""

from arthastra.models.user import User, EmploymentType, EmploymentTenure
from arthastra.models.alert import Alert, AlertType, AlertSeverity
from arthastra.models.error_log import ErrorLog, ErrorSeverity

__all__ = [
    "User",
    "EmploymentType",
    "EmploymentTenure",
    "Alert",
    "AlertType",
    "AlertSeverity",
    "ErrorLog",
    "ErrorSeverity",
]
