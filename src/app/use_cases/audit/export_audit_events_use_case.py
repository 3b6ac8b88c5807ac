"""
Export Audit Events Use Case

Renders every matching audit event (no pagination) as a JSON document or
a CSV file for download.
"""

import csv
import io
import json
from typing import List, Optional

from src.libs.result import Error, Result, Return
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Account, AuditAction
from .dtos import AuditEventView, ExportFile

EXPORT_FORMATS = ("json", "csv")

CSV_HEADER = [
    "Timestamp",
    "User Email",
    "User Role",
    "Action",
    "Description",
    "IP Address",
    "Success",
    "Severity",
]

MISSING = "N/A"


class ExportAuditEventsUseCase:
    """
    Use case for exporting the activity log.

    Business Rules:
    - Same filter dimensions as listing, full matching set, newest first
    - json: list of serialized events
    - csv: fixed header, every field quoted with embedded quotes doubled,
      missing values rendered as N/A
    - Export is audited (EXPORT_LOGS)
    """

    def __init__(self, uow: UnitOfWork, audit_logger: AuditLogger):
        self.uow = uow
        self.audit_logger = audit_logger

    async def execute(
        self,
        actor: Account,
        event_filter: AuditEventFilter,
        export_format: str = "json",
        context: Optional[RequestContext] = None,
    ) -> Result[ExportFile]:
        export_format = (export_format or "json").lower()
        if export_format not in EXPORT_FORMATS:
            return Return.err(
                Error(
                    "INVALID_EXPORT_FORMAT",
                    f"Unsupported export format '{export_format}'. Use json or csv.",
                )
            )

        await self.audit_logger.log_data_access(
            AuditAction.EXPORT_LOGS, actor, context, metadata={"format": export_format}
        )

        async with self.uow:
            events = await self.uow.audit_events.search(event_filter)

        views = [AuditEventView.from_event(event) for event in events]

        if export_format == "csv":
            return Return.ok(
                ExportFile(
                    filename="activity_logs.csv",
                    media_type="text/csv",
                    content=render_csv(views),
                )
            )

        return Return.ok(
            ExportFile(
                filename="activity_logs.json",
                media_type="application/json",
                content=json.dumps([view.model_dump(mode="json") for view in views]),
            )
        )


def render_csv(views: List[AuditEventView]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for view in views:
        writer.writerow(
            [
                view.timestamp.isoformat() + "Z",
                view.user_email or MISSING,
                view.user_role or MISSING,
                view.action,
                view.description,
                view.ip_address or MISSING,
                "true" if view.success else "false",
                view.severity,
            ]
        )
    return buffer.getvalue()
