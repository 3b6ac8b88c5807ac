"""
Activity Log API Routes

Admin-only retrieval, statistics, export and retention of audit events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.error import ClientError, ServerError
from src.api.utils.admin_auth import require_admin
from src.api.utils.request_context import get_request_context
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import (
    AuditEventPage,
    AuditStatsResponse,
    AuditSummaryResponse,
    ExportAuditEventsUseCase,
    GetAuditStatsUseCase,
    GetAuditSummaryUseCase,
    ListAuditEventsUseCase,
    PurgeAuditEventsResponse,
    PurgeAuditEventsUseCase,
)
from src.depends import get_audit_logger, get_unit_of_work
from src.domain.entities import Account, AuditAction, ResourceType, Severity

router = APIRouter(prefix="/activity-logs", tags=["Activity Logs"])

AUDIT_CLIENT_ERRORS = {
    "INVALID_PAGINATION",
    "INVALID_EXPORT_FORMAT",
    "INVALID_RETENTION_WINDOW",
}


def _raise_for_error(error):
    if error.code in AUDIT_CLIENT_ERRORS:
        raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
    raise ServerError(error)


@router.get("", status_code=status.HTTP_200_OK, response_model=AuditEventPage)
async def list_activity_logs(
    admin: Account = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    page: int = Query(1, ge=1, description="1-indexed page number"),
    limit: int = Query(50, ge=1, le=500, description="Events per page"),
    user_id: Optional[UUID] = Query(None),
    action: Optional[AuditAction] = Query(None),
    severity: Optional[Severity] = Query(None),
    success: Optional[bool] = Query(None),
    resource_type: Optional[ResourceType] = Query(None),
    user_email: Optional[str] = Query(None, description="Case-insensitive substring"),
    start_date: Optional[datetime] = Query(None, description="Inclusive lower bound"),
    end_date: Optional[datetime] = Query(None, description="Inclusive upper bound"),
):
    """
    List Activity Logs

    Filtered, newest-first, paginated audit events.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: Caller is not an admin
    """
    event_filter = AuditEventFilter(
        user_id=user_id,
        action=action,
        severity=severity,
        success=success,
        resource_type=resource_type,
        user_email=user_email,
        start_date=start_date,
        end_date=end_date,
    )

    use_case = ListAuditEventsUseCase(uow, audit_logger)
    result = await use_case.execute(admin, event_filter, page, limit, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


@router.get("/user/{user_id}", status_code=status.HTTP_200_OK, response_model=AuditEventPage)
async def list_user_activity_logs(
    user_id: UUID,
    admin: Account = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    action: Optional[AuditAction] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    """Activity of a single account"""
    event_filter = AuditEventFilter(
        user_id=user_id, action=action, start_date=start_date, end_date=end_date
    )

    use_case = ListAuditEventsUseCase(uow, audit_logger)
    result = await use_case.execute(admin, event_filter, page, limit, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


@router.get("/stats", status_code=status.HTTP_200_OK, response_model=AuditStatsResponse)
async def activity_stats(
    admin: Account = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """Aggregate statistics over the whole log"""
    use_case = GetAuditStatsUseCase(uow, audit_logger)
    result = await use_case.execute(admin, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


@router.get("/summary", status_code=status.HTTP_200_OK, response_model=AuditSummaryResponse)
async def activity_summary(
    admin: Account = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """Dashboard counters for today, yesterday and the last week"""
    use_case = GetAuditSummaryUseCase(uow, audit_logger)
    result = await use_case.execute(admin, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value


@router.get("/export", status_code=status.HTTP_200_OK)
async def export_activity_logs(
    admin: Account = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    format: str = Query("json", description="json or csv"),
    user_id: Optional[UUID] = Query(None),
    action: Optional[AuditAction] = Query(None),
    severity: Optional[Severity] = Query(None),
    success: Optional[bool] = Query(None),
    resource_type: Optional[ResourceType] = Query(None),
    user_email: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    """
    Export Activity Logs

    Downloads every matching event as activity_logs.json or activity_logs.csv.

    Raises:
        - 400 Bad Request: Unsupported format
    """
    event_filter = AuditEventFilter(
        user_id=user_id,
        action=action,
        severity=severity,
        success=success,
        resource_type=resource_type,
        user_email=user_email,
        start_date=start_date,
        end_date=end_date,
    )

    use_case = ExportAuditEventsUseCase(uow, audit_logger)
    result = await use_case.execute(admin, event_filter, format, context)

    if result.is_err():
        _raise_for_error(result.error)

    export = result.value
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f"attachment; filename={export.filename}"},
    )


@router.delete(
    "/cleanup", status_code=status.HTTP_200_OK, response_model=PurgeAuditEventsResponse
)
async def cleanup_activity_logs(
    admin: Account = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
    days: int = Query(90, ge=1, description="Delete events older than this many days"),
):
    """
    Purge Old Activity Logs

    Irreversibly deletes events older than the retention window.
    """
    use_case = PurgeAuditEventsUseCase(uow, audit_logger)
    result = await use_case.execute(admin, days, context)

    if result.is_err():
        _raise_for_error(result.error)

    return result.value
