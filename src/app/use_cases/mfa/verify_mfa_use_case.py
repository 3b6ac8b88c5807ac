"""
Verify MFA Use Case

Standalone second-factor check for an account with MFA active, used as the
follow-up to an MFA_REQUIRED login.
"""

from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.mfa_service import MFAService, SecretDecryptionError
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditAction, ResourceType, Severity
from .dtos import VerifyMFAResponse


class VerifyMFAUseCase:
    """
    Use case for verifying a TOTP code or a backup code.

    Business Rules:
    - A token or a backup code is required (MFA_CODE_REQUIRED)
    - MFA must be enabled and set up (MFA_NOT_ENABLED, HIGH security event)
    - The backup code takes precedence when both are supplied
    - A valid backup code is consumed; resubmitting it fails
    - Failure is MFA_INVALID and recorded as MFA_FAILED (HIGH)
    - Success stamps last_mfa_verification
    """

    def __init__(
        self,
        uow: UnitOfWork,
        mfa_service: MFAService,
        audit_logger: AuditLogger,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.mfa_service = mfa_service
        self.audit_logger = audit_logger
        self.clock = clock

    async def execute(
        self,
        account_id: UUID,
        token: Optional[str] = None,
        backup_code: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> Result[VerifyMFAResponse]:
        if not token and not backup_code:
            return Return.err(
                Error("MFA_CODE_REQUIRED", "MFA token or backup code is required")
            )

        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None or not self.mfa_service.is_mfa_required(account):
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_VERIFY,
                    None,
                    context,
                    description=f"MFA verification for user without MFA: {account_id}",
                    severity=Severity.HIGH,
                )
                return Return.err(
                    Error("MFA_NOT_ENABLED", "MFA not enabled for this user")
                )

            used_backup_code = False
            if backup_code:
                is_valid = self.mfa_service.verify_backup_code(
                    backup_code, account.mfa_backup_codes
                )
                if is_valid:
                    account.mfa_backup_codes = self.mfa_service.remove_backup_code(
                        backup_code, account.mfa_backup_codes
                    )
                    used_backup_code = True
            elif account.mfa_secret:
                try:
                    secret = self.mfa_service.decrypt_secret(account.mfa_secret)
                except SecretDecryptionError:
                    await self.audit_logger.log_security_event(
                        AuditAction.MFA_VERIFY,
                        account,
                        context,
                        description="Stored MFA secret could not be decrypted",
                        severity=Severity.CRITICAL,
                    )
                    return Return.err(
                        Error("MFA_SECRET_UNREADABLE", "MFA secret could not be read")
                    )
                is_valid = self.mfa_service.verify_code(token, secret)
            else:
                is_valid = False

            if not is_valid:
                method = "backup code" if backup_code else "TOTP token"
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_FAILED,
                    account,
                    context,
                    description=f"Failed MFA verification - {method}",
                    severity=Severity.HIGH,
                )
                return Return.err(
                    Error("MFA_INVALID", "Invalid MFA token or backup code")
                )

            account.last_mfa_verification = self.clock()
            await self.uow.accounts.update(account)
            await self.uow.commit()

            remaining = len(account.mfa_backup_codes or [])
            await self.audit_logger.log_data_access(
                AuditAction.MFA_VERIFY,
                account,
                context,
                resource_type=ResourceType.USER,
                resource_id=account.id,
                metadata={
                    "method": "backup_code" if used_backup_code else "totp_token",
                    "remaining_backup_codes": remaining,
                },
            )

            return Return.ok(
                VerifyMFAResponse(
                    message="MFA verification successful",
                    verified=True,
                    used_backup_code=used_backup_code,
                    remaining_backup_codes=remaining,
                )
            )
