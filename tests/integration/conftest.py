from contextlib import asynccontextmanager
from datetime import timedelta

import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.app import create_app
from src.api.utils.jwt import generate_jwt
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.audit_logger import AuditLogger
from src.app.services.email_service import IEmailService
from src.depends import get_audit_logger, get_email_service, get_unit_of_work
from src.domain.base import utcnow
from src.domain.entities import Account, AccountRole

PASSWORD = "SecurePass123!"


class RecordingEmailService(IEmailService):
    """Captures verification codes instead of sending mail"""

    def __init__(self):
        self.sent = []

    async def send_verification_code(self, to_email: str, code: str) -> None:
        self.sent.append((to_email, code))

    def last_code_for(self, email: str) -> str:
        return [code for to, code in self.sent if to == email][-1]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def uow_scope(session_factory):
    @asynccontextmanager
    async def scope():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    return scope


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest_asyncio.fixture
async def client(session_factory, uow_scope, email_service):
    app = create_app(ApplicationConfig)
    audit_logger = AuditLogger(uow_scope)

    async def override_get_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_audit_logger] = lambda: audit_logger
    app.dependency_overrides[get_email_service] = lambda: email_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def create_account(uow_scope):
    """Insert a verified account directly; low bcrypt cost keeps tests fast"""

    async def _create(email="alice@bookit.test", role=AccountRole.user, **overrides) -> Account:
        fields = dict(
            fullname="Alice Guest",
            email=email,
            password_hash=bcrypt.hashpw(PASSWORD.encode("utf-8"), bcrypt.gensalt(4)).decode("utf-8"),
            role=role,
            is_verified=True,
            password_last_updated=utcnow() - timedelta(days=1),
        )
        fields.update(overrides)
        account = Account(**fields)
        async with uow_scope() as uow:
            async with uow:
                await uow.accounts.create(account)
                await uow.commit()
        return account

    return _create


@pytest.fixture
def auth_headers():
    def _headers(account: Account) -> dict:
        token = generate_jwt(account.id, AccountRole(account.role).value)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def fetch_events(uow_scope):
    """All stored audit events matching the filter, newest first"""

    async def _fetch(**filters):
        async with uow_scope() as uow:
            async with uow:
                return await uow.audit_events.search(AuditEventFilter(**filters))

    return _fetch


@pytest.fixture
def fetch_account(uow_scope):
    async def _fetch(email="alice@bookit.test") -> Account:
        async with uow_scope() as uow:
            async with uow:
                return await uow.accounts.get_by_email(email)

    return _fetch
