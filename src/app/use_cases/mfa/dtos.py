"""
MFA Use Case DTOs (Data Transfer Objects)

Response classes for MFA setup, verification and management.
"""

from typing import List, Optional
from pydantic import BaseModel


class InitializeMFAResponse(BaseModel):
    """Provisioning data for the authenticator app; codes come after setup"""

    message: str
    qr_code: str
    manual_entry_key: str
    provisioning_uri: str
    backup_codes: Optional[List[str]] = None


class VerifyMFASetupResponse(BaseModel):
    """Plaintext backup codes are returned here and never again"""

    message: str
    backup_codes: List[str]
    mfa_enabled: bool


class VerifyMFAResponse(BaseModel):
    message: str
    verified: bool
    used_backup_code: bool
    remaining_backup_codes: int


class DisableMFAResponse(BaseModel):
    message: str
    mfa_enabled: bool


class RegenerateBackupCodesResponse(BaseModel):
    message: str
    backup_codes: List[str]


class MFAStatusResponse(BaseModel):
    mfa_enabled: bool
    mfa_setup_completed: bool
    remaining_backup_codes: int
