"""
BookIt Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AccountRole,
    AuditAction,
    LoginOutcome,
    ResourceType,
    Severity,
)

# Export all entities
from .account import Account
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "AccountRole",
    "AuditAction",
    "LoginOutcome",
    "ResourceType",
    "Severity",
    # Entities
    "Account",
    "AuditEvent",
]
