from datetime import datetime, timedelta
from typing import Callable, Optional

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import Account, AuditAction, ResourceType, Severity
from .dtos import PurgeAuditEventsResponse

DEFAULT_RETENTION_DAYS = 90


class PurgeAuditEventsUseCase:
    """
    Age-based retention purge.

    Business Rules:
    - Deletes every event with timestamp < now - older_than_days (irreversible)
    - The deletion is committed first, then one DELETE_OLD_LOGS event records
      the count and window; being newer than the cutoff it survives the purge
    - Running it twice in a row deletes nothing the second time
    """

    def __init__(
        self,
        uow: UnitOfWork,
        audit_logger: AuditLogger,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.audit_logger = audit_logger
        self.clock = clock

    async def execute(
        self,
        actor: Account,
        older_than_days: int = DEFAULT_RETENTION_DAYS,
        context: Optional[RequestContext] = None,
    ) -> Result[PurgeAuditEventsResponse]:
        if older_than_days < 1:
            return Return.err(
                Error("INVALID_RETENTION_WINDOW", "days must be a positive integer")
            )

        cutoff = self.clock() - timedelta(days=older_than_days)

        async with self.uow:
            deleted_count = await self.uow.audit_events.delete_older_than(cutoff)
            await self.uow.commit()

        await self.audit_logger.record(
            AuditAction.DELETE_OLD_LOGS,
            f"Deleted {deleted_count} activity logs older than {older_than_days} days",
            actor=actor,
            context=context,
            resource_type=ResourceType.SYSTEM,
            severity=Severity.MEDIUM,
            status_code=200,
            metadata={"deleted_count": deleted_count, "cutoff_days": older_than_days},
        )

        return Return.ok(
            PurgeAuditEventsResponse(
                message=f"Deleted {deleted_count} old activity logs",
                deleted_count=deleted_count,
            )
        )
