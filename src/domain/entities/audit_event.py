"""
AuditEvent Entity

Append-only log of every security-relevant action.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utcnow
from .enums import AuditAction, ResourceType, Severity


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable record of an audited action.

    Business Rules:
    - Immutable (never updated); deleted only by the retention purge
    - user_id is a weak reference: email/role are snapshotted so the event
      survives account deletion or rename
    - timestamp is stamped server-side at write time
    - request_body is stored redacted
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Actor
    user_id: Optional[UUID] = Field(default=None)
    user_email: Optional[str] = Field(default=None, max_length=255)
    user_role: Optional[str] = Field(default=None, max_length=20)

    # Classification
    action: AuditAction = Field(nullable=False)
    description: str
    resource_type: Optional[ResourceType] = Field(default=None)
    resource_id: Optional[str] = Field(default=None, max_length=64)
    severity: Severity = Field(default=Severity.LOW)
    success: bool = Field(default=True)
    status_code: Optional[int] = Field(default=None)

    # Request context
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    request_method: Optional[str] = Field(default=None, max_length=10)
    request_url: Optional[str] = Field(default=None, max_length=2048)
    request_body: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    error_message: Optional[str] = Field(default=None)
    session_id: Optional[str] = Field(default=None, max_length=255)

    timestamp: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_timestamp", "timestamp"),
        Index("idx_audit_user_timestamp", "user_id", "timestamp"),
        Index("idx_audit_action_timestamp", "action", "timestamp"),
        Index("idx_audit_ip_timestamp", "ip_address", "timestamp"),
        Index("idx_audit_severity_timestamp", "severity", "timestamp"),
    )
