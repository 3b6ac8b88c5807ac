"""
List Audit Events Use Case

Filtered, paginated view of the activity log for administrators.
"""

import math
from typing import Optional

from src.libs.result import Error, Result, Return
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Account, AuditAction, ResourceType
from .dtos import AuditEventPage, AuditEventView, Pagination

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


class ListAuditEventsUseCase:
    """
    Use case for retrieving audit events page by page.

    Business Rules:
    - Viewing the log is itself audited (VIEW_ACTIVITY_LOGS), before the query
    - All filter dimensions are combined with AND
    - Results ordered by newest first; ties keep a stable order
    - Pages are 1-indexed; total_pages = ceil(total_logs / page_size)
    """

    def __init__(self, uow: UnitOfWork, audit_logger: AuditLogger):
        self.uow = uow
        self.audit_logger = audit_logger

    async def execute(
        self,
        actor: Account,
        event_filter: AuditEventFilter,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        context: Optional[RequestContext] = None,
    ) -> Result[AuditEventPage]:
        """
        Execute list audit events use case.

        Args:
            actor: Administrator performing the query
            event_filter: Filter dimensions
            page: 1-indexed page number
            page_size: Events per page
            context: Request details for the audit trail

        Returns:
            Result with AuditEventPage, or Error(INVALID_PAGINATION)
        """
        if page < 1 or page_size < 1 or page_size > MAX_PAGE_SIZE:
            return Return.err(
                Error(
                    "INVALID_PAGINATION",
                    f"page must be >= 1 and page_size between 1 and {MAX_PAGE_SIZE}",
                )
            )

        if event_filter.user_id is not None:
            await self.audit_logger.log_data_access(
                AuditAction.VIEW_ACTIVITY_LOGS,
                actor,
                context,
                resource_type=ResourceType.USER,
                resource_id=event_filter.user_id,
            )
        else:
            await self.audit_logger.log_data_access(
                AuditAction.VIEW_ACTIVITY_LOGS, actor, context
            )

        async with self.uow:
            events = await self.uow.audit_events.search(
                event_filter, offset=(page - 1) * page_size, limit=page_size
            )
            total = await self.uow.audit_events.count(event_filter)

        total_pages = math.ceil(total / page_size)

        return Return.ok(
            AuditEventPage(
                logs=[AuditEventView.from_event(event) for event in events],
                pagination=Pagination(
                    current_page=page,
                    page_size=page_size,
                    total_pages=total_pages,
                    total_logs=total,
                    has_next_page=page < total_pages,
                    has_prev_page=page > 1,
                ),
            )
        )
