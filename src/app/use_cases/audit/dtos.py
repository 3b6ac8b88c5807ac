"""
Audit Use Case DTOs (Data Transfer Objects)

Views of stored audit events plus the aggregate shapes returned by the
admin activity-log endpoints.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, field_serializer


class AuditEventView(BaseModel):
    """Serialized AuditEvent; field names follow the stored entity"""

    id: str
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    action: str
    description: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    severity: str
    success: bool
    status_code: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_method: Optional[str] = None
    request_url: Optional[str] = None
    request_body: Optional[Any] = None
    event_metadata: Optional[Any] = None
    error_message: Optional[str] = None
    session_id: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_event(cls, event) -> "AuditEventView":
        return cls(
            id=str(event.id),
            user_id=str(event.user_id) if event.user_id else None,
            user_email=event.user_email,
            user_role=event.user_role,
            action=_enum_value(event.action),
            description=event.description,
            resource_type=_enum_value(event.resource_type),
            resource_id=event.resource_id,
            severity=_enum_value(event.severity),
            success=event.success,
            status_code=event.status_code,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            request_method=event.request_method,
            request_url=event.request_url,
            request_body=event.request_body,
            event_metadata=event.event_metadata,
            error_message=event.error_message,
            session_id=event.session_id,
            timestamp=event.timestamp,
        )

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat() + "Z"


class Pagination(BaseModel):
    current_page: int
    page_size: int
    total_pages: int
    total_logs: int
    has_next_page: bool
    has_prev_page: bool


class AuditEventPage(BaseModel):
    logs: List[AuditEventView]
    pagination: Pagination


class CountBucket(BaseModel):
    """One group of a group-and-count aggregate"""

    key: Any
    count: int


class AuditStatsResponse(BaseModel):
    total_logs: int
    action_stats: List[CountBucket]
    severity_stats: List[CountBucket]
    success_stats: List[CountBucket]
    active_users: int
    recent_activity: int
    top_ips: List[CountBucket]
    security_events: int


class AuditSummaryResponse(BaseModel):
    today: int
    yesterday: int
    this_week: int
    failed_logins: int
    security_alerts: int


class ExportFile(BaseModel):
    """Rendered export ready to be sent as an attachment"""

    filename: str
    media_type: str
    content: str


class PurgeAuditEventsResponse(BaseModel):
    message: str
    deleted_count: int


def _enum_value(value):
    return getattr(value, "value", value)
