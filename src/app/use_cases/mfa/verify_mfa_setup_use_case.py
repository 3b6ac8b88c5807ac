"""
Verify MFA Setup Use Case

Completes TOTP enrollment once the user proves the authenticator works.
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
from .dtos import VerifyMFASetupResponse


class VerifyMFASetupUseCase:
    """
    Use case for enabling MFA after a successful first code.

    Business Rules:
    - A pending secret must exist (MFA_NOT_INITIALIZED)
    - The code is checked against the decrypted pending secret (INVALID_MFA_TOKEN)
    - Success sets mfa_enabled and mfa_setup_completed, stores 10 hashed
      backup codes and stamps last_mfa_verification
    - Plaintext backup codes are returned exactly once
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
        self, account_id: UUID, token: str, context: Optional[RequestContext] = None
    ) -> Result[VerifyMFASetupResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found"))

            if not account.mfa_secret:
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_VERIFY_SETUP,
                    account,
                    context,
                    description="MFA verification without initialization",
                    severity=Severity.MEDIUM,
                )
                return Return.err(
                    Error(
                        "MFA_NOT_INITIALIZED",
                        "MFA not initialized. Please start setup first.",
                    )
                )

            try:
                secret = self.mfa_service.decrypt_secret(account.mfa_secret)
            except SecretDecryptionError:
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_VERIFY_SETUP,
                    account,
                    context,
                    description="Stored MFA secret could not be decrypted",
                    severity=Severity.HIGH,
                )
                return Return.err(
                    Error("MFA_SECRET_UNREADABLE", "MFA secret could not be read")
                )

            if not self.mfa_service.verify_code(token, secret):
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_VERIFY_SETUP,
                    account,
                    context,
                    description="Invalid MFA token during setup",
                    severity=Severity.MEDIUM,
                )
                return Return.err(Error("INVALID_MFA_TOKEN", "Invalid MFA token"))

            backup_codes = self.mfa_service.generate_backup_codes()

            account.mfa_enabled = True
            account.mfa_setup_completed = True
            account.mfa_backup_codes = [
                self.mfa_service.hash_backup_code(code) for code in backup_codes
            ]
            account.last_mfa_verification = self.clock()
            await self.uow.accounts.update(account)
            await self.uow.commit()

            await self.audit_logger.log_data_modification(
                AuditAction.MFA_ENABLE,
                account,
                context,
                resource_type=ResourceType.USER,
                resource_id=account.id,
                metadata={"action": "MFA setup completed and enabled"},
            )

            return Return.ok(
                VerifyMFASetupResponse(
                    message="MFA setup completed successfully",
                    backup_codes=backup_codes,
                    mfa_enabled=True,
                )
            )
