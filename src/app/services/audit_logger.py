"""
Activity Audit Logger

Records security-relevant actions as AuditEvents. The logger is constructed
once at startup with a unit-of-work scope factory and passed explicitly to
the use cases that report events.

Audit logging is best-effort: every event is written in its own
transaction and a failed write is logged locally, never raised to the
operation being audited.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, AsyncContextManager, Callable, Dict, Optional

from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import Account, AuditAction, AuditEvent, ResourceType, Severity

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# Substrings of normalized (lower-case, no separators) keys whose values are
# never stored. Matching is by substring so variants such as mfaToken,
# client_secret or mfa_backup_code are covered; an unrelated key that happens to
# contain a fragment is redacted too.
SENSITIVE_FIELDS = (
    "password",
    "otp",
    "token",
    "authorization",
    "secret",
    "backupcode",
    "mfacode",
)

UnitOfWorkScope = Callable[[], AsyncContextManager[UnitOfWork]]


@dataclass
class RequestContext:
    """Transport details of the request that triggered an event"""

    headers: Dict[str, str] = field(default_factory=dict)
    remote_addr: Optional[str] = None
    method: Optional[str] = None
    url: Optional[str] = None
    body: Optional[Any] = None

    def header(self, name: str) -> Optional[str]:
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


def extract_client_ip(context: RequestContext) -> str:
    """Client IP, preferring proxy headers over the transport address"""
    forwarded = context.header("x-forwarded-for")
    if forwarded:
        # X-Forwarded-For can hold a chain of proxies; the first hop is the client
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = context.header("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if context.remote_addr:
        return context.remote_addr

    return "unknown"


def _is_sensitive(key: str) -> bool:
    normalized = key.lower().replace("_", "").replace("-", "")
    return any(fragment in normalized for fragment in SENSITIVE_FIELDS)


def redact_payload(payload: Any) -> Any:
    """
    Copy of payload with values of sensitive keys replaced, at any depth.

    A key is sensitive when its normalized form contains one of
    SENSITIVE_FIELDS, so this errs towards over-redaction.
    """
    if isinstance(payload, dict):
        return {
            key: REDACTED if _is_sensitive(str(key)) else redact_payload(value)
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    return payload


def _action_words(action: AuditAction) -> str:
    return action.value.lower().replace("_", " ")


class AuditLogger:
    """
    Structured audit event recorder.

    Args:
        uow_scope: Callable returning an async context manager that yields a
            fresh UnitOfWork (its own session and transaction)
        clock: Source of naive UTC timestamps
    """

    def __init__(self, uow_scope: UnitOfWorkScope, clock: Callable[[], datetime] = utcnow):
        self._uow_scope = uow_scope
        self._clock = clock
        self._last_timestamp: Optional[datetime] = None

    def _next_timestamp(self) -> datetime:
        # Strictly increasing within the process so ordering is stable
        now = self._clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    async def record(
        self,
        action: AuditAction,
        description: str,
        actor: Optional[Account] = None,
        context: Optional[RequestContext] = None,
        resource_type: Optional[ResourceType] = None,
        resource_id: Optional[Any] = None,
        metadata: Optional[Dict[str, Any]] = None,
        severity: Severity = Severity.LOW,
        success: bool = True,
        error_message: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> Optional[AuditEvent]:
        """
        Persist one audit event.

        Returns:
            The stored AuditEvent, or None when the write failed
        """
        try:
            event = AuditEvent(
                user_id=actor.id if actor else None,
                user_email=actor.email if actor else None,
                user_role=_role_value(actor) if actor else None,
                action=action,
                description=description,
                resource_type=resource_type,
                resource_id=str(resource_id) if resource_id is not None else None,
                severity=severity,
                success=success,
                status_code=status_code,
                event_metadata=metadata,
                error_message=error_message,
                timestamp=self._next_timestamp(),
            )

            if context is not None:
                event.ip_address = extract_client_ip(context)
                event.user_agent = context.header("user-agent") or "unknown"
                event.request_method = context.method
                event.request_url = context.url
                event.request_body = redact_payload(context.body) if context.body else None
                event.session_id = context.header("session-id")

            async with self._uow_scope() as uow:
                async with uow:
                    await uow.audit_events.create(event)
                    await uow.commit()

            logger.debug(
                "Activity logged: %s by %s", action.value, event.user_email or "anonymous"
            )
            return event
        except Exception:
            logger.exception("Failed to log activity %s", getattr(action, "value", action))
            return None

    async def log_authentication(
        self,
        action: AuditAction,
        actor: Optional[Account],
        context: Optional[RequestContext] = None,
        success: bool = True,
        error_message: Optional[str] = None,
        severity: Optional[Severity] = None,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditEvent]:
        """Authentication event: LOW on success, MEDIUM on failure unless overridden"""
        if severity is None:
            severity = Severity.LOW if success else Severity.MEDIUM
        return await self.record(
            action,
            description or f"User {_action_words(action)}",
            actor=actor,
            context=context,
            resource_type=ResourceType.USER,
            resource_id=actor.id if actor else None,
            metadata=metadata,
            severity=severity,
            success=success,
            error_message=error_message,
            status_code=200 if success else 401,
        )

    async def log_data_access(
        self,
        action: AuditAction,
        actor: Optional[Account],
        context: Optional[RequestContext] = None,
        resource_type: ResourceType = ResourceType.SYSTEM,
        resource_id: Optional[Any] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditEvent]:
        return await self.record(
            action,
            f"User accessed {resource_type.value.lower()} data",
            actor=actor,
            context=context,
            resource_type=resource_type,
            resource_id=resource_id,
            metadata=metadata,
            severity=Severity.LOW,
            success=True,
        )

    async def log_data_modification(
        self,
        action: AuditAction,
        actor: Optional[Account],
        context: Optional[RequestContext] = None,
        resource_type: ResourceType = ResourceType.USER,
        resource_id: Optional[Any] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditEvent]:
        return await self.record(
            action,
            f"User {_action_words(action)} {resource_type.value.lower()}",
            actor=actor,
            context=context,
            resource_type=resource_type,
            resource_id=resource_id,
            metadata=metadata,
            severity=Severity.MEDIUM,
            success=True,
        )

    async def log_security_event(
        self,
        action: AuditAction,
        actor: Optional[Account],
        context: Optional[RequestContext] = None,
        description: str = "Security event",
        severity: Severity = Severity.HIGH,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditEvent]:
        """Anomalies, denials and unauthorized attempts (always success=False)"""
        return await self.record(
            action,
            description,
            actor=actor,
            context=context,
            resource_type=ResourceType.SYSTEM,
            metadata=metadata,
            severity=severity,
            success=False,
            error_message=error_message,
        )


def _role_value(actor: Account) -> Optional[str]:
    role = getattr(actor, "role", None)
    return getattr(role, "value", role)
