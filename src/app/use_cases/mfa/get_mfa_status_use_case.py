from typing import Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditAction, ResourceType
from .dtos import MFAStatusResponse


class GetMFAStatusUseCase:
    """Read-only MFA state of the calling account"""

    def __init__(self, uow: UnitOfWork, audit_logger: AuditLogger):
        self.uow = uow
        self.audit_logger = audit_logger

    async def execute(
        self, account_id: UUID, context: Optional[RequestContext] = None
    ) -> Result[MFAStatusResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found"))

        await self.audit_logger.log_data_access(
            AuditAction.MFA_STATUS,
            account,
            context,
            resource_type=ResourceType.USER,
            resource_id=account.id,
        )

        return Return.ok(
            MFAStatusResponse(
                mfa_enabled=bool(account.mfa_enabled),
                mfa_setup_completed=bool(account.mfa_setup_completed),
                remaining_backup_codes=len(account.mfa_backup_codes or []),
            )
        )
