"""
Audit Use Cases

Activity log queries, aggregates, export and retention.
"""

from .list_audit_events_use_case import ListAuditEventsUseCase
from .get_audit_stats_use_case import GetAuditStatsUseCase
from .get_audit_summary_use_case import GetAuditSummaryUseCase
from .export_audit_events_use_case import ExportAuditEventsUseCase
from .purge_audit_events_use_case import PurgeAuditEventsUseCase
from .dtos import (
    AuditEventPage,
    AuditEventView,
    AuditStatsResponse,
    AuditSummaryResponse,
    CountBucket,
    ExportFile,
    Pagination,
    PurgeAuditEventsResponse,
)

__all__ = [
    # Use Cases
    "ListAuditEventsUseCase",
    "GetAuditStatsUseCase",
    "GetAuditSummaryUseCase",
    "ExportAuditEventsUseCase",
    "PurgeAuditEventsUseCase",
    # DTOs
    "AuditEventPage",
    "AuditEventView",
    "AuditStatsResponse",
    "AuditSummaryResponse",
    "CountBucket",
    "ExportFile",
    "Pagination",
    "PurgeAuditEventsResponse",
]
