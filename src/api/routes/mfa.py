"""
MFA API Routes

TOTP enrollment and management for the authenticated account, plus the
standalone second-factor check used after an MFA_REQUIRED login.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.api.utils.request_context import get_request_context
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.mfa_service import MFAService
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.mfa import (
    DisableMFAResponse,
    DisableMFAUseCase,
    GetMFAStatusUseCase,
    InitializeMFAResponse,
    InitializeMFAUseCase,
    MFAStatusResponse,
    RegenerateBackupCodesResponse,
    RegenerateBackupCodesUseCase,
    VerifyMFAResponse,
    VerifyMFASetupResponse,
    VerifyMFASetupUseCase,
    VerifyMFAUseCase,
)
from src.depends import (
    get_audit_logger,
    get_current_account,
    get_mfa_service,
    get_unit_of_work,
)
from src.domain.entities import Account

router = APIRouter(prefix="/mfa", tags=["MFA"])

MFA_CLIENT_ERRORS = {
    "MFA_ALREADY_ENABLED",
    "MFA_NOT_INITIALIZED",
    "INVALID_MFA_TOKEN",
    "MFA_CODE_REQUIRED",
    "MFA_NOT_ENABLED",
    "MFA_INVALID",
    "INVALID_PASSWORD",
}


def _raise_for_error(error):
    if error.code == "ACCOUNT_NOT_FOUND":
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    if error.code in MFA_CLIENT_ERRORS:
        raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
    raise ServerError(error)


@router.get("/status", status_code=status.HTTP_200_OK, response_model=MFAStatusResponse)
async def get_status(
    account: Account = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """Current MFA state and number of unused backup codes"""
    use_case = GetMFAStatusUseCase(uow, audit_logger)
    result = await use_case.execute(account.id, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


@router.post(
    "/initialize", status_code=status.HTTP_200_OK, response_model=InitializeMFAResponse
)
async def initialize(
    account: Account = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa_service: MFAService = Depends(get_mfa_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Start MFA Setup

    Returns a QR code (PNG data URL) and the manual entry key. MFA stays
    disabled until /mfa/verify-setup succeeds.

    Raises:
        - 400 Bad Request: MFA already enabled
        - 404 Not Found: Account not found
    """
    use_case = InitializeMFAUseCase(uow, mfa_service, audit_logger)
    result = await use_case.execute(account.id, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


class VerifySetupRequest(BaseModel):
    token: str = Field(..., min_length=1, description="6-digit code from the authenticator")


@router.post(
    "/verify-setup", status_code=status.HTTP_200_OK, response_model=VerifyMFASetupResponse
)
async def verify_setup(
    request: VerifySetupRequest,
    account: Account = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa_service: MFAService = Depends(get_mfa_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Complete MFA Setup

    Enables MFA and returns the backup codes. They are shown only once.

    Raises:
        - 400 Bad Request: Setup not started or invalid code
    """
    use_case = VerifyMFASetupUseCase(uow, mfa_service, audit_logger)
    result = await use_case.execute(account.id, request.token, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


class VerifyRequest(BaseModel):
    token: Optional[str] = Field(None, description="6-digit TOTP code")
    backup_code: Optional[str] = Field(None, description="Single-use backup code")


@router.post(
    "/verify/{user_id}", status_code=status.HTTP_200_OK, response_model=VerifyMFAResponse
)
async def verify(
    user_id: UUID,
    request: VerifyRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa_service: MFAService = Depends(get_mfa_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Verify Second Factor

    Follow-up to a login that answered requires_mfa=true. A used backup
    code is consumed.

    Raises:
        - 400 Bad Request: No code supplied, MFA not enabled, or invalid code
    """
    use_case = VerifyMFAUseCase(uow, mfa_service, audit_logger)
    result = await use_case.execute(
        user_id, token=request.token, backup_code=request.backup_code, context=context
    )

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


class PasswordConfirmationRequest(BaseModel):
    password: str = Field(..., min_length=1, description="Current account password")


@router.post("/disable", status_code=status.HTTP_200_OK, response_model=DisableMFAResponse)
async def disable(
    request: PasswordConfirmationRequest,
    account: Account = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Disable MFA

    Raises:
        - 400 Bad Request: Invalid password
    """
    use_case = DisableMFAUseCase(uow, audit_logger)
    result = await use_case.execute(account.id, request.password, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


@router.post(
    "/regenerate-backup-codes",
    status_code=status.HTTP_200_OK,
    response_model=RegenerateBackupCodesResponse,
)
async def regenerate_backup_codes(
    request: PasswordConfirmationRequest,
    account: Account = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa_service: MFAService = Depends(get_mfa_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Regenerate Backup Codes

    Invalidates every previous backup code.

    Raises:
        - 400 Bad Request: MFA not enabled or invalid password
    """
    use_case = RegenerateBackupCodesUseCase(uow, mfa_service, audit_logger)
    result = await use_case.execute(account.id, request.password, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value
