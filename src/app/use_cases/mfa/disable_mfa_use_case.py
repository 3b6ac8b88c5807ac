from typing import Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.passwords import verify_password
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditAction, ResourceType, Severity
from .dtos import DisableMFAResponse


class DisableMFAUseCase:
    """
    Use case for turning MFA off.

    Business Rules:
    - Current password required (INVALID_PASSWORD, HIGH security event)
    - Clears secret, backup codes, both flags and last verification
    """

    def __init__(self, uow: UnitOfWork, audit_logger: AuditLogger):
        self.uow = uow
        self.audit_logger = audit_logger

    async def execute(
        self, account_id: UUID, password: str, context: Optional[RequestContext] = None
    ) -> Result[DisableMFAResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found"))

            if not verify_password(password, account.password_hash):
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_DISABLE,
                    account,
                    context,
                    description="Invalid password during MFA disable attempt",
                    severity=Severity.HIGH,
                )
                return Return.err(Error("INVALID_PASSWORD", "Invalid password"))

            account.mfa_enabled = False
            account.mfa_setup_completed = False
            account.mfa_secret = None
            account.mfa_backup_codes = []
            account.last_mfa_verification = None
            await self.uow.accounts.update(account)
            await self.uow.commit()

            await self.audit_logger.log_data_modification(
                AuditAction.MFA_DISABLE,
                account,
                context,
                resource_type=ResourceType.USER,
                resource_id=account.id,
                metadata={"action": "MFA disabled"},
            )

            return Return.ok(
                DisableMFAResponse(
                    message="MFA has been disabled successfully", mfa_enabled=False
                )
            )
