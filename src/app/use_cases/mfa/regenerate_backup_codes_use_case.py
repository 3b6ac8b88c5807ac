from typing import Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.passwords import verify_password
from src.app.services.mfa_service import MFAService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditAction, ResourceType, Severity
from .dtos import RegenerateBackupCodesResponse


class RegenerateBackupCodesUseCase:
    """
    Use case for replacing all backup codes.

    Business Rules:
    - MFA must be enabled (MFA_NOT_ENABLED)
    - Current password required (INVALID_PASSWORD, HIGH security event)
    - Every previous code stops working; 10 new codes are returned once
    """

    def __init__(self, uow: UnitOfWork, mfa_service: MFAService, audit_logger: AuditLogger):
        self.uow = uow
        self.mfa_service = mfa_service
        self.audit_logger = audit_logger

    async def execute(
        self, account_id: UUID, password: str, context: Optional[RequestContext] = None
    ) -> Result[RegenerateBackupCodesResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found"))

            if not account.mfa_enabled:
                return Return.err(Error("MFA_NOT_ENABLED", "MFA is not enabled"))

            if not verify_password(password, account.password_hash):
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_BACKUP_REGEN,
                    account,
                    context,
                    description="Invalid password during backup code regeneration",
                    severity=Severity.HIGH,
                )
                return Return.err(Error("INVALID_PASSWORD", "Invalid password"))

            backup_codes = self.mfa_service.generate_backup_codes()
            account.mfa_backup_codes = [
                self.mfa_service.hash_backup_code(code) for code in backup_codes
            ]
            await self.uow.accounts.update(account)
            await self.uow.commit()

            await self.audit_logger.log_data_modification(
                AuditAction.MFA_BACKUP_REGEN,
                account,
                context,
                resource_type=ResourceType.USER,
                resource_id=account.id,
                metadata={"action": "MFA backup codes regenerated"},
            )

            return Return.ok(
                RegenerateBackupCodesResponse(
                    message="Backup codes regenerated successfully",
                    backup_codes=backup_codes,
                )
            )
