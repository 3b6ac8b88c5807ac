"""
Account Entity

Credential store for a person who can book rooms or administer the hotel.
"""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utcnow
from .enums import AccountRole

MAX_FAILED_LOGIN_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=15)
PASSWORD_MAX_AGE = timedelta(days=90)
EMAIL_OTP_VALIDITY = timedelta(minutes=5)


class Account(SQLModel, table=True):
    """
    Account entity - credentials, lockout counters and MFA state.

    Business Rules:
    - Email must be unique across all accounts
    - Email verification (6-digit OTP, 5 minutes) required before login
    - Password stored as bcrypt hash; expires 90 days after last update
    - 5 consecutive failed passwords lock the account for 15 minutes
    - MFA challenge only when mfa_enabled AND mfa_setup_completed
    - mfa_secret is encrypted at rest, backup codes are SHA-256 digests
    """

    __tablename__ = "accounts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    fullname: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)
    address: str = Field(default="", max_length=255)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    role: AccountRole = Field(default=AccountRole.user)

    # Email verification
    is_verified: bool = Field(default=False)
    otp: Optional[str] = Field(default=None, max_length=6)
    otp_expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Lockout
    failed_login_attempts: int = Field(default=0)
    lockout_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Password lifecycle
    password_last_updated: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime)
    )

    # MFA
    mfa_enabled: bool = Field(default=False)
    mfa_setup_completed: bool = Field(default=False)
    mfa_secret: Optional[str] = Field(default=None, max_length=512)
    mfa_backup_codes: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    last_mfa_verification: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_account_is_verified", "is_verified"),)

    @property
    def password_expires_at(self) -> datetime:
        return self.password_last_updated + PASSWORD_MAX_AGE

    @property
    def mfa_required(self) -> bool:
        return bool(self.mfa_enabled and self.mfa_setup_completed)

    def is_locked(self, now: datetime) -> bool:
        return self.lockout_until is not None and self.lockout_until > now
