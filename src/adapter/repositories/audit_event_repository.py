from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import (
    AuditEventFilter,
    IAuditEventRepository,
)
from src.domain.entities import AuditEvent

# Columns that may be used for grouping / distinct counting
_GROUPABLE_COLUMNS = {
    "action": AuditEvent.action,
    "severity": AuditEvent.severity,
    "success": AuditEvent.success,
    "ip_address": AuditEvent.ip_address,
    "user_id": AuditEvent.user_id,
    "resource_type": AuditEvent.resource_type,
}


def _apply_filter(stmt, event_filter: Optional[AuditEventFilter]):
    """Add WHERE clauses for every populated filter dimension"""
    if event_filter is None:
        return stmt

    if event_filter.user_id is not None:
        stmt = stmt.where(AuditEvent.user_id == event_filter.user_id)
    if event_filter.action is not None:
        stmt = stmt.where(AuditEvent.action == event_filter.action)
    if event_filter.severity is not None:
        stmt = stmt.where(AuditEvent.severity == event_filter.severity)
    if event_filter.severities:
        stmt = stmt.where(AuditEvent.severity.in_(event_filter.severities))
    if event_filter.success is not None:
        stmt = stmt.where(AuditEvent.success == event_filter.success)
    if event_filter.resource_type is not None:
        stmt = stmt.where(AuditEvent.resource_type == event_filter.resource_type)
    if event_filter.user_email:
        stmt = stmt.where(
            func.lower(AuditEvent.user_email).contains(
                event_filter.user_email.lower(), autoescape=True
            )
        )
    if event_filter.start_date is not None:
        stmt = stmt.where(AuditEvent.timestamp >= event_filter.start_date)
    if event_filter.end_date is not None:
        stmt = stmt.where(AuditEvent.timestamp <= event_filter.end_date)
    if event_filter.before is not None:
        stmt = stmt.where(AuditEvent.timestamp < event_filter.before)
    return stmt


def _column(field: str):
    try:
        return _GROUPABLE_COLUMNS[field]
    except KeyError:
        raise ValueError(f"Cannot group audit events by '{field}'") from None


class AuditEventRepository(IAuditEventRepository):
    """AuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        self.session.add(audit_event)
        await self.session.flush()
        await self.session.refresh(audit_event)
        return audit_event

    async def search(
        self,
        event_filter: AuditEventFilter,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[AuditEvent]:
        """List matching events, newest first (id breaks timestamp ties)"""
        stmt = _apply_filter(select(AuditEvent), event_filter)
        stmt = stmt.order_by(AuditEvent.timestamp.desc(), AuditEvent.id.desc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.exec(stmt)
        return list(result.all())

    async def count(self, event_filter: Optional[AuditEventFilter] = None) -> int:
        stmt = _apply_filter(select(func.count()).select_from(AuditEvent), event_filter)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_by(
        self,
        field: str,
        event_filter: Optional[AuditEventFilter] = None,
        limit: Optional[int] = None,
    ) -> List[Tuple[object, int]]:
        column = _column(field)
        count = func.count().label("count")
        stmt = select(column, count).select_from(AuditEvent).where(column.is_not(None))
        stmt = _apply_filter(stmt, event_filter)
        stmt = stmt.group_by(column).order_by(count.desc(), column)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [(value, total) for value, total in result.all()]

    async def count_distinct(
        self, field: str, event_filter: Optional[AuditEventFilter] = None
    ) -> int:
        column = _column(field)
        stmt = select(func.count(func.distinct(column))).select_from(AuditEvent)
        stmt = _apply_filter(stmt.where(column.is_not(None)), event_filter)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def delete_older_than(self, cutoff: datetime) -> int:
        stmt = delete(AuditEvent).where(AuditEvent.timestamp < cutoff)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
