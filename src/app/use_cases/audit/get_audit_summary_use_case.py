from datetime import datetime, timedelta
from typing import Callable, Optional

from src.libs.result import Result, Return
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import Account, AuditAction, Severity
from .dtos import AuditSummaryResponse


class GetAuditSummaryUseCase:
    """
    Dashboard counters.

    Business Rules:
    - "today" starts at 00:00 UTC of the current day
    - "yesterday" is the previous UTC calendar day
    - "this_week" is the 7 days before today's midnight up to now
    - failed_logins and security_alerts count today's events only
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
        self, actor: Account, context: Optional[RequestContext] = None
    ) -> Result[AuditSummaryResponse]:
        await self.audit_logger.log_data_access(
            AuditAction.VIEW_ACTIVITY_LOGS, actor, context, metadata={"view": "summary"}
        )

        now = self.clock()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        yesterday = today - timedelta(days=1)
        week_start = today - timedelta(days=7)

        async with self.uow:
            repo = self.uow.audit_events
            today_count = await repo.count(AuditEventFilter(start_date=today))
            yesterday_count = await repo.count(
                AuditEventFilter(start_date=yesterday, before=today)
            )
            this_week = await repo.count(AuditEventFilter(start_date=week_start))
            failed_logins = await repo.count(
                AuditEventFilter(start_date=today, action=AuditAction.FAILED_LOGIN)
            )
            security_alerts = await repo.count(
                AuditEventFilter(
                    start_date=today, severities=[Severity.HIGH, Severity.CRITICAL]
                )
            )

        return Return.ok(
            AuditSummaryResponse(
                today=today_count,
                yesterday=yesterday_count,
                this_week=this_week,
                failed_logins=failed_logins,
                security_alerts=security_alerts,
            )
        )
