"""
Use Cases

All use cases are organized into domain folders:
- auth/: Registration, email verification and login
- mfa/: TOTP enrollment, verification and backup codes
- audit/: Activity log queries, export and retention

Import from subdirectories for better organization.
"""

from .auth import (
    LoginUseCase,
    RegisterCommand,
    RegisterUseCase,
    ResendOtpUseCase,
    VerifyEmailUseCase,
)
from .mfa import (
    DisableMFAUseCase,
    GetMFAStatusUseCase,
    InitializeMFAUseCase,
    RegenerateBackupCodesUseCase,
    VerifyMFASetupUseCase,
    VerifyMFAUseCase,
)
from .audit import (
    ExportAuditEventsUseCase,
    GetAuditStatsUseCase,
    GetAuditSummaryUseCase,
    ListAuditEventsUseCase,
    PurgeAuditEventsUseCase,
)

__all__ = [
    # Auth
    "RegisterUseCase",
    "RegisterCommand",
    "LoginUseCase",
    "VerifyEmailUseCase",
    "ResendOtpUseCase",
    # MFA
    "InitializeMFAUseCase",
    "VerifyMFASetupUseCase",
    "VerifyMFAUseCase",
    "DisableMFAUseCase",
    "RegenerateBackupCodesUseCase",
    "GetMFAStatusUseCase",
    # Audit
    "ListAuditEventsUseCase",
    "GetAuditStatsUseCase",
    "GetAuditSummaryUseCase",
    "ExportAuditEventsUseCase",
    "PurgeAuditEventsUseCase",
]
