from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import bcrypt
import pytest

from src.app.services.audit_logger import AuditLogger
from src.app.services.mfa_service import MFAService
from src.domain.base import utcnow
from src.domain.entities import Account, AccountRole

PASSWORD = "SecurePass123!"


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.accounts = MagicMock()
    uow.accounts.get_by_email = AsyncMock(return_value=None)
    uow.accounts.get_by_id = AsyncMock(return_value=None)
    uow.accounts.create = AsyncMock(side_effect=lambda account: account)
    uow.accounts.update = AsyncMock(side_effect=lambda account: account)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock(side_effect=lambda event: event)
    uow.audit_events.search = AsyncMock(return_value=[])
    uow.audit_events.count = AsyncMock(return_value=0)
    uow.audit_events.count_by = AsyncMock(return_value=[])
    uow.audit_events.count_distinct = AsyncMock(return_value=0)
    uow.audit_events.delete_older_than = AsyncMock(return_value=0)
    return uow


@pytest.fixture
def audit_logger():
    """AuditLogger double; every wrapper is an AsyncMock"""
    return AsyncMock(spec=AuditLogger)


@pytest.fixture
def mfa_service():
    return MFAService("unit-test-encryption-key", issuer="BookIt App")


@pytest.fixture
def password_hash():
    # Low cost factor keeps the suite fast; checkpw reads the cost from the hash
    return bcrypt.hashpw(PASSWORD.encode("utf-8"), bcrypt.gensalt(4)).decode("utf-8")


@pytest.fixture
def make_account(password_hash):
    """Factory for verified accounts with a fresh password"""

    def _make(**overrides) -> Account:
        fields = dict(
            id=uuid4(),
            fullname="Alice Guest",
            email="alice@bookit.test",
            password_hash=password_hash,
            role=AccountRole.user,
            is_verified=True,
            failed_login_attempts=0,
            lockout_until=None,
            password_last_updated=utcnow() - timedelta(days=1),
            mfa_enabled=False,
            mfa_setup_completed=False,
            mfa_secret=None,
            mfa_backup_codes=[],
        )
        fields.update(overrides)
        return Account(**fields)

    return _make
