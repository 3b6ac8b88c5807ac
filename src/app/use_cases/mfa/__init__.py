"""
MFA Use Cases

TOTP enrollment, second-factor verification and backup code management.
"""

from .initialize_mfa_use_case import InitializeMFAUseCase
from .verify_mfa_setup_use_case import VerifyMFASetupUseCase
from .verify_mfa_use_case import VerifyMFAUseCase
from .disable_mfa_use_case import DisableMFAUseCase
from .regenerate_backup_codes_use_case import RegenerateBackupCodesUseCase
from .get_mfa_status_use_case import GetMFAStatusUseCase
from .dtos import (
    DisableMFAResponse,
    InitializeMFAResponse,
    MFAStatusResponse,
    RegenerateBackupCodesResponse,
    VerifyMFAResponse,
    VerifyMFASetupResponse,
)

__all__ = [
    # Use Cases
    "InitializeMFAUseCase",
    "VerifyMFASetupUseCase",
    "VerifyMFAUseCase",
    "DisableMFAUseCase",
    "RegenerateBackupCodesUseCase",
    "GetMFAStatusUseCase",
    # DTOs - Responses
    "InitializeMFAResponse",
    "VerifyMFASetupResponse",
    "VerifyMFAResponse",
    "DisableMFAResponse",
    "RegenerateBackupCodesResponse",
    "MFAStatusResponse",
]
