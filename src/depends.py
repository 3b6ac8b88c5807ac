from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.email_service import SmtpEmailService
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.app.services.audit_logger import AuditLogger
from src.app.services.email_service import IEmailService
from src.app.services.mfa_service import MFAService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Account

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@asynccontextmanager
async def unit_of_work_scope():
    """Fresh session per audit write, independent of the request session"""
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


audit_logger = AuditLogger(unit_of_work_scope)
mfa_service = MFAService(ApplicationConfig.MFA_ENCRYPTION_KEY, ApplicationConfig.MFA_ISSUER)
email_service = SmtpEmailService(ApplicationConfig)


def get_audit_logger() -> AuditLogger:
    return audit_logger


def get_mfa_service() -> MFAService:
    return mfa_service


def get_email_service() -> IEmailService:
    return email_service


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id, role

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    payload = verify_jwt(token)

    if payload is None or "user_id" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload


async def get_current_account(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Account:
    """
    Load the account behind a valid token.

    Raises:
        HTTPException: 401 if the account no longer exists
    """
    try:
        account_id = UUID(current_user["user_id"])
    except ValueError:
        account_id = None

    account = None
    if account_id is not None:
        async with uow:
            account = await uow.accounts.get_by_id(account_id)

    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return account
