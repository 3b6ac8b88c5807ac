"""
Initialize MFA Use Case

Starts TOTP enrollment: a fresh secret is stored encrypted and the
provisioning data is returned for the authenticator app.
"""

from typing import Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.mfa_service import MFAService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditAction, ResourceType, Severity
from .dtos import InitializeMFAResponse


class InitializeMFAUseCase:
    """
    Use case for starting MFA setup.

    Business Rules:
    - Account must exist (ACCOUNT_NOT_FOUND)
    - Accounts with MFA already enabled must disable it first (MFA_ALREADY_ENABLED)
    - Secret is stored encrypted with mfa_enabled=False and
      mfa_setup_completed=False; login is unaffected until setup is verified
    - Re-initializing an unfinished setup replaces the pending secret
    - Backup codes are issued only after verification
    """

    def __init__(self, uow: UnitOfWork, mfa_service: MFAService, audit_logger: AuditLogger):
        self.uow = uow
        self.mfa_service = mfa_service
        self.audit_logger = audit_logger

    async def execute(
        self, account_id: UUID, context: Optional[RequestContext] = None
    ) -> Result[InitializeMFAResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_INIT,
                    None,
                    context,
                    description="MFA initialization for non-existent user",
                    metadata={"user_id": str(account_id)},
                )
                return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found"))

            if account.mfa_enabled:
                await self.audit_logger.log_security_event(
                    AuditAction.MFA_INIT,
                    account,
                    context,
                    description="MFA initialization while MFA is already enabled",
                    severity=Severity.MEDIUM,
                )
                return Return.err(
                    Error(
                        "MFA_ALREADY_ENABLED",
                        "MFA is already enabled. Disable it before starting a new setup.",
                    )
                )

            mfa_secret = self.mfa_service.generate_secret(account.email)
            qr_code = self.mfa_service.generate_qr_code(mfa_secret.provisioning_uri)

            account.mfa_secret = self.mfa_service.encrypt_secret(mfa_secret.secret)
            account.mfa_enabled = False
            account.mfa_setup_completed = False
            await self.uow.accounts.update(account)
            await self.uow.commit()

            await self.audit_logger.log_data_modification(
                AuditAction.MFA_INIT,
                account,
                context,
                resource_type=ResourceType.USER,
                resource_id=account.id,
                metadata={"action": "MFA setup initialized"},
            )

            return Return.ok(
                InitializeMFAResponse(
                    message="MFA setup initialized",
                    qr_code=qr_code,
                    manual_entry_key=mfa_secret.manual_entry_key,
                    provisioning_uri=mfa_secret.provisioning_uri,
                    backup_codes=None,
                )
            )
