from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.domain.base import to_naive_utc
from src.domain.entities import AuditAction, AuditEvent, ResourceType, Severity


class AuditEventFilter(BaseModel):
    """
    Filter dimensions for audit event queries.

    All fields are optional and combined with AND. ``start_date`` and
    ``end_date`` are inclusive bounds, ``before`` is an exclusive upper bound.
    ``user_email`` is a case-insensitive substring match.
    """

    user_id: Optional[UUID] = None
    action: Optional[AuditAction] = None
    severity: Optional[Severity] = None
    severities: Optional[List[Severity]] = None
    success: Optional[bool] = None
    resource_type: Optional[ResourceType] = None
    user_email: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    before: Optional[datetime] = None

    @field_validator("start_date", "end_date", "before")
    @classmethod
    def _normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class IAuditEventRepository(ABC):
    """AuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        pass

    @abstractmethod
    async def search(
        self,
        event_filter: AuditEventFilter,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[AuditEvent]:
        """List matching events ordered by timestamp DESC (all when limit is None)"""
        pass

    @abstractmethod
    async def count(self, event_filter: Optional[AuditEventFilter] = None) -> int:
        """Count matching events"""
        pass

    @abstractmethod
    async def count_by(
        self,
        field: str,
        event_filter: Optional[AuditEventFilter] = None,
        limit: Optional[int] = None,
    ) -> List[Tuple[object, int]]:
        """
        Group matching events by a column and count each group.

        Returns:
            (value, count) pairs ordered by count DESC; null values are skipped
        """
        pass

    @abstractmethod
    async def count_distinct(
        self, field: str, event_filter: Optional[AuditEventFilter] = None
    ) -> int:
        """Count distinct non-null values of a column among matching events"""
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete every event with timestamp strictly before cutoff, return count"""
        pass
