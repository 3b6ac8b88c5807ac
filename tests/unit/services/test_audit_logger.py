from contextlib import asynccontextmanager
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.services.audit_logger import (
    REDACTED,
    AuditLogger,
    RequestContext,
    extract_client_ip,
    redact_payload,
)
from src.domain.entities import AuditAction, ResourceType, Severity


@pytest.fixture
def scope(mock_uow):
    @asynccontextmanager
    async def _scope():
        yield mock_uow

    return _scope


@pytest.fixture
def logger_under_test(scope):
    return AuditLogger(scope)


def _stored_event(mock_uow):
    mock_uow.audit_events.create.assert_awaited_once()
    return mock_uow.audit_events.create.await_args.args[0]


# ----------------------------------------------------------------------------
# Client IP extraction
# ----------------------------------------------------------------------------


def test_client_ip_prefers_first_forwarded_hop():
    context = RequestContext(
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "X-Real-IP": "10.0.0.2"},
        remote_addr="127.0.0.1",
    )

    assert extract_client_ip(context) == "203.0.113.7"


def test_client_ip_falls_back_to_real_ip_then_transport():
    assert extract_client_ip(
        RequestContext(headers={"x-real-ip": "198.51.100.4"}, remote_addr="127.0.0.1")
    ) == "198.51.100.4"
    assert extract_client_ip(RequestContext(remote_addr="127.0.0.1")) == "127.0.0.1"


def test_client_ip_unknown_when_nothing_available():
    assert extract_client_ip(RequestContext()) == "unknown"


# ----------------------------------------------------------------------------
# Redaction
# ----------------------------------------------------------------------------


def test_redact_payload_replaces_sensitive_keys_at_any_depth():
    payload = {
        "email": "alice@bookit.test",
        "password": "hunter22",
        "mfaToken": "123456",
        "profile": {"otp": "654321", "phone": "555-0100"},
        "items": [{"client_secret": "s3cr3t"}, {"name": "room"}],
        "Authorization": "Bearer abc",
        "mfa_backup_code": "ABCD1234",
        "mfa_code": "112233",
        "description": "Late checkout",
    }

    redacted = redact_payload(payload)

    assert redacted["email"] == "alice@bookit.test"
    assert redacted["password"] == REDACTED
    assert redacted["mfaToken"] == REDACTED
    assert redacted["profile"] == {"otp": REDACTED, "phone": "555-0100"}
    assert redacted["items"] == [{"client_secret": REDACTED}, {"name": "room"}]
    assert redacted["Authorization"] == REDACTED
    assert redacted["mfa_backup_code"] == REDACTED
    assert redacted["mfa_code"] == REDACTED
    assert redacted["description"] == "Late checkout"
    # Input is left untouched
    assert payload["password"] == "hunter22"


def test_redact_payload_passes_scalars_through():
    assert redact_payload("plain") == "plain"
    assert redact_payload(None) is None


# ----------------------------------------------------------------------------
# record()
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_record_captures_request_context(logger_under_test, mock_uow, make_account):
    account = make_account()
    context = RequestContext(
        headers={
            "x-forwarded-for": "203.0.113.7",
            "User-Agent": "pytest",
            "session-id": "sess-1",
        },
        remote_addr="127.0.0.1",
        method="POST",
        url="/auth/login",
        body={"email": account.email, "password": "hunter22"},
    )

    event = await logger_under_test.record(
        AuditAction.LOGIN,
        "User logged in",
        actor=account,
        context=context,
        resource_type=ResourceType.USER,
        resource_id=account.id,
        metadata={"mfa": False},
    )

    stored = _stored_event(mock_uow)
    assert event is stored
    assert stored.user_id == account.id
    assert stored.user_email == account.email
    assert stored.user_role == "user"
    assert stored.action == AuditAction.LOGIN
    assert stored.severity == Severity.LOW
    assert stored.success is True
    assert stored.ip_address == "203.0.113.7"
    assert stored.user_agent == "pytest"
    assert stored.session_id == "sess-1"
    assert stored.request_method == "POST"
    assert stored.request_url == "/auth/login"
    assert stored.request_body == {"email": account.email, "password": REDACTED}
    assert stored.resource_id == str(account.id)
    assert stored.event_metadata == {"mfa": False}
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_record_without_context_or_actor(logger_under_test, mock_uow):
    await logger_under_test.record(AuditAction.SUSPICIOUS_ACTIVITY, "Something odd")

    stored = _stored_event(mock_uow)
    assert stored.user_id is None
    assert stored.user_email is None
    assert stored.ip_address is None


@pytest.mark.asyncio
async def test_record_defaults_user_agent_to_unknown(logger_under_test, mock_uow):
    await logger_under_test.record(
        AuditAction.LOGIN, "x", context=RequestContext(remote_addr="10.0.0.9")
    )

    assert _stored_event(mock_uow).user_agent == "unknown"


@pytest.mark.asyncio
async def test_record_swallows_persistence_failure(logger_under_test, mock_uow, caplog):
    mock_uow.audit_events.create.side_effect = RuntimeError("database is down")

    event = await logger_under_test.record(AuditAction.LOGIN, "User logged in")

    assert event is None
    assert "Failed to log activity LOGIN" in caplog.text


@pytest.mark.asyncio
async def test_record_swallows_scope_failure():
    @asynccontextmanager
    async def broken_scope():
        raise ConnectionError("no database")
        yield  # pragma: no cover

    audit_logger = AuditLogger(broken_scope)

    assert await audit_logger.record(AuditAction.LOGIN, "User logged in") is None


@pytest.mark.asyncio
async def test_timestamps_are_strictly_increasing_with_frozen_clock(scope, mock_uow):
    frozen = datetime(2024, 1, 1, 12, 0, 0)
    audit_logger = AuditLogger(scope, clock=lambda: frozen)

    first = await audit_logger.record(AuditAction.LOGIN, "one")
    second = await audit_logger.record(AuditAction.LOGIN, "two")

    assert first.timestamp == frozen
    assert second.timestamp > first.timestamp


# ----------------------------------------------------------------------------
# Wrappers
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_log_authentication_severity_follows_success(logger_under_test, mock_uow, make_account):
    account = make_account()

    ok = await logger_under_test.log_authentication(AuditAction.LOGIN, account)
    failed = await logger_under_test.log_authentication(
        AuditAction.FAILED_LOGIN, account, success=False, error_message="Invalid email or password"
    )

    assert (ok.severity, ok.success, ok.status_code) == (Severity.LOW, True, 200)
    assert (failed.severity, failed.success, failed.status_code) == (Severity.MEDIUM, False, 401)
    assert failed.error_message == "Invalid email or password"
    assert ok.resource_type == ResourceType.USER
    assert ok.description == "User login"


@pytest.mark.asyncio
async def test_log_authentication_severity_override(logger_under_test, make_account):
    event = await logger_under_test.log_authentication(
        AuditAction.FAILED_LOGIN, make_account(), success=False, severity=Severity.HIGH
    )

    assert event.severity == Severity.HIGH


@pytest.mark.asyncio
async def test_log_data_access_and_modification(logger_under_test, make_account):
    account = make_account()

    access = await logger_under_test.log_data_access(AuditAction.VIEW_ACTIVITY_LOGS, account)
    change = await logger_under_test.log_data_modification(
        AuditAction.MFA_DISABLE, account, resource_id=account.id
    )

    assert (access.severity, access.success, access.resource_type) == (
        Severity.LOW,
        True,
        ResourceType.SYSTEM,
    )
    assert (change.severity, change.success, change.resource_type) == (
        Severity.MEDIUM,
        True,
        ResourceType.USER,
    )


@pytest.mark.asyncio
async def test_log_security_event_defaults(logger_under_test):
    event = await logger_under_test.log_security_event(
        AuditAction.ACCESS_DENIED, None, description="Non-admin access attempt"
    )

    assert event.severity == Severity.HIGH
    assert event.success is False
    assert event.resource_type == ResourceType.SYSTEM
    assert event.description == "Non-admin access attempt"


@pytest.mark.asyncio
async def test_each_event_uses_its_own_unit_of_work(make_account):
    uows = []

    @asynccontextmanager
    async def counting_scope():
        uow = MagicMock()
        uow.__aenter__ = AsyncMock(return_value=uow)
        uow.__aexit__ = AsyncMock(return_value=False)
        uow.commit = AsyncMock()
        uow.audit_events.create = AsyncMock(side_effect=lambda event: event)
        uows.append(uow)
        yield uow

    audit_logger = AuditLogger(counting_scope)
    await audit_logger.log_authentication(AuditAction.LOGIN, make_account())
    await audit_logger.log_authentication(AuditAction.LOGOUT, make_account())

    assert len(uows) == 2
    for uow in uows:
        uow.commit.assert_awaited_once()
