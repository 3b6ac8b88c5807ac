"""
Admin Role Authorization

Restricts activity-log endpoints to administrators.
"""

from fastapi import Depends, status

from src.libs.result import Error
from src.api.error import ClientError
from src.api.utils.request_context import get_request_context
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.depends import get_audit_logger, get_current_account
from src.domain.entities import Account, AccountRole, AuditAction, Severity


async def require_admin(
    account: Account = Depends(get_current_account),
    context: RequestContext = Depends(get_request_context),
    audit_logger: AuditLogger = Depends(get_audit_logger),
) -> Account:
    """
    Verify the authenticated account has the admin role.

    Non-admin callers are recorded as an ACCESS_DENIED security event.

    Raises:
        ClientError: 403 if the role is not admin

    Returns:
        The admin Account
    """
    if AccountRole(account.role) != AccountRole.admin:
        await audit_logger.log_security_event(
            AuditAction.ACCESS_DENIED,
            account,
            context,
            description=f"Non-admin access attempt to {context.url}",
            severity=Severity.MEDIUM,
        )
        raise ClientError(
            Error("ACCESS_DENIED", "Admin access required"),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    return account
