"""
BookIt Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AccountRole(str, Enum):
    """Account role"""

    user = "user"
    staff = "staff"
    admin = "admin"


class Severity(str, Enum):
    """Audit event severity, used for triage and alerting"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ResourceType(str, Enum):
    """Kind of resource an audit event refers to"""

    USER = "USER"
    ROOM = "ROOM"
    BOOKING = "BOOKING"
    FILE = "FILE"
    SYSTEM = "SYSTEM"


class AuditAction(str, Enum):
    """Closed vocabulary of audited actions"""

    # Authentication
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    REGISTER = "REGISTER"
    VERIFY_EMAIL = "VERIFY_EMAIL"
    RESEND_OTP = "RESEND_OTP"
    LOGIN_MFA_REQUIRED = "LOGIN_MFA_REQUIRED"
    FAILED_LOGIN = "FAILED_LOGIN"

    # MFA
    MFA_INIT = "MFA_INIT"
    MFA_ENABLE = "MFA_ENABLE"
    MFA_DISABLE = "MFA_DISABLE"
    MFA_VERIFY = "MFA_VERIFY"
    MFA_FAILED = "MFA_FAILED"
    MFA_VERIFY_SETUP = "MFA_VERIFY_SETUP"
    MFA_STATUS = "MFA_STATUS"
    MFA_BACKUP_REGEN = "MFA_BACKUP_REGEN"

    # Data access / modification
    VIEW_PROFILE = "VIEW_PROFILE"
    UPDATE_PROFILE = "UPDATE_PROFILE"
    UPDATE_PROFILE_PICTURE = "UPDATE_PROFILE_PICTURE"
    VIEW_USERS = "VIEW_USERS"
    DELETE_USER = "DELETE_USER"
    CREATE_ROOM = "CREATE_ROOM"
    UPDATE_ROOM = "UPDATE_ROOM"
    DELETE_ROOM = "DELETE_ROOM"
    VIEW_ROOM = "VIEW_ROOM"
    VIEW_ROOMS = "VIEW_ROOMS"
    CREATE_BOOKING = "CREATE_BOOKING"
    UPDATE_BOOKING = "UPDATE_BOOKING"
    DELETE_BOOKING = "DELETE_BOOKING"
    VIEW_BOOKING = "VIEW_BOOKING"
    VIEW_BOOKINGS = "VIEW_BOOKINGS"
    APPROVE_BOOKING = "APPROVE_BOOKING"
    REJECT_BOOKING = "REJECT_BOOKING"
    UPLOAD_FILE = "UPLOAD_FILE"
    DELETE_FILE = "DELETE_FILE"

    # Admin
    VIEW_ACTIVITY_LOGS = "VIEW_ACTIVITY_LOGS"
    EXPORT_LOGS = "EXPORT_LOGS"
    DELETE_OLD_LOGS = "DELETE_OLD_LOGS"

    # Security
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    ACCESS_DENIED = "ACCESS_DENIED"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class LoginOutcome(str, Enum):
    """Terminal states of a single login attempt"""

    AUTHENTICATED = "AUTHENTICATED"
    MFA_REQUIRED = "MFA_REQUIRED"
    INVALID = "INVALID"
    LOCKED_OUT = "LOCKED_OUT"
    UNVERIFIED = "UNVERIFIED"
    EXPIRED_PASSWORD = "EXPIRED_PASSWORD"
    MFA_INVALID = "MFA_INVALID"
