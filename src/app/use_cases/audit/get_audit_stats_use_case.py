from datetime import datetime, timedelta
from typing import Callable, Optional

from src.libs.result import Result, Return
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import Account, AuditAction, Severity
from .dtos import AuditStatsResponse, CountBucket

TOP_N = 10
ELEVATED_SEVERITIES = [Severity.HIGH, Severity.CRITICAL]


class GetAuditStatsUseCase:
    """
    Aggregate snapshot of the whole activity log.

    Trailing windows (24 hours, 7 days, 30 days) are computed from the call
    time on every request.
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
    ) -> Result[AuditStatsResponse]:
        await self.audit_logger.log_data_access(
            AuditAction.VIEW_ACTIVITY_LOGS, actor, context, metadata={"view": "stats"}
        )

        now = self.clock()
        last_day = AuditEventFilter(start_date=now - timedelta(hours=24))
        last_week = AuditEventFilter(start_date=now - timedelta(days=7))
        last_month = AuditEventFilter(start_date=now - timedelta(days=30))
        elevated_last_month = AuditEventFilter(
            start_date=now - timedelta(days=30), severities=ELEVATED_SEVERITIES
        )

        async with self.uow:
            repo = self.uow.audit_events
            total_logs = await repo.count()
            action_stats = await repo.count_by("action", limit=TOP_N)
            severity_stats = await repo.count_by("severity")
            success_stats = await repo.count_by("success")
            active_users = await repo.count_distinct("user_id", last_month)
            recent_activity = await repo.count(last_day)
            top_ips = await repo.count_by("ip_address", last_week, limit=TOP_N)
            security_events = await repo.count(elevated_last_month)

        return Return.ok(
            AuditStatsResponse(
                total_logs=total_logs,
                action_stats=_buckets(action_stats),
                severity_stats=_buckets(severity_stats),
                success_stats=_buckets(success_stats),
                active_users=active_users,
                recent_activity=recent_activity,
                top_ips=_buckets(top_ips),
                security_events=security_events,
            )
        )


def _buckets(rows):
    return [CountBucket(key=getattr(key, "value", key), count=count) for key, count in rows]
