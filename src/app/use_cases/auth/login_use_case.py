"""
Login Use Case

Authenticates an account with password lockout, password expiry and an
optional second factor (TOTP or single-use backup code), and issues a
1-hour session token.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.mfa_service import MFAService
from src.app.services.passwords import burn_password_check, verify_password
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import Account, AccountRole, AuditAction, LoginOutcome, Severity
from src.domain.entities.account import LOCKOUT_DURATION, MAX_FAILED_LOGIN_ATTEMPTS
from src.api.utils.jwt import generate_jwt
from .dtos import LoginResponse

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_MFA_MESSAGE = "Invalid MFA token or backup code"


class LoginUseCase:
    """
    Use case for account login and JWT issuance.

    Business Rules (evaluated in order):
    1. Unknown email is rejected exactly like a wrong password (INVALID)
    2. Active lockout rejects before any password check (LOCKED_OUT)
    3. Wrong password increments the failure counter; the 5th failure sets a
       15-minute lockout (LOCKED_OUT), earlier ones are INVALID
    4. Unverified email is rejected (UNVERIFIED)
    5. Password older than 90 days is rejected (EXPIRED_PASSWORD)
    6. Failure counter and lockout are cleared
    7. With MFA active, a missing factor yields MFA_REQUIRED (no token) and a
       bad factor yields MFA_INVALID without touching the failure counter;
       a used backup code is consumed
    8. AUTHENTICATED issues a token carrying account id and role

    Every terminal state records exactly one audit event. Account changes
    are committed before the event is written.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        mfa_service: MFAService,
        audit_logger: AuditLogger,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.mfa_service = mfa_service
        self.audit_logger = audit_logger
        self.clock = clock

    async def execute(
        self,
        email: str,
        password: str,
        mfa_code: Optional[str] = None,
        mfa_backup_code: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: Account email
            password: Plain text password
            mfa_code: 6-digit TOTP code (second step of an MFA login)
            mfa_backup_code: Single-use backup code (alternative to mfa_code)
            context: Request details for the audit trail

        Returns:
            Result with LoginResponse (AUTHENTICATED or MFA_REQUIRED), or Error
            whose code is the rejecting LoginOutcome, or LOGIN_ERROR on an
            infrastructure fault
        """
        try:
            return await self._login(email, password, mfa_code, mfa_backup_code, context)
        except Exception as exc:
            logger.exception("Login failed with an unexpected error")
            await self.audit_logger.log_security_event(
                AuditAction.LOGIN,
                None,
                context,
                description=f"Login error: {type(exc).__name__}",
                severity=Severity.HIGH,
                error_message=str(exc),
                metadata={"email": email},
            )
            return Return.err(Error("LOGIN_ERROR", "Error logging in"))

    async def _login(
        self,
        email: str,
        password: str,
        mfa_code: Optional[str],
        mfa_backup_code: Optional[str],
        context: Optional[RequestContext],
    ) -> Result[LoginResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_email(email)

            if account is None:
                # Hash anyway so unknown emails cost the same as wrong passwords
                burn_password_check(password)
                await self.audit_logger.log_authentication(
                    AuditAction.FAILED_LOGIN,
                    None,
                    context,
                    success=False,
                    error_message=INVALID_CREDENTIALS_MESSAGE,
                    description="Login attempt with unknown email",
                    metadata={"email": email},
                )
                return _reject(LoginOutcome.INVALID, INVALID_CREDENTIALS_MESSAGE)

            now = self.clock()

            if account.is_locked(now):
                message = (
                    f"Account is locked. Try again after {account.lockout_until.isoformat()}Z"
                )
                await self.audit_logger.log_authentication(
                    AuditAction.FAILED_LOGIN,
                    account,
                    context,
                    success=False,
                    error_message=message,
                    description="Login attempt on locked account",
                )
                return _reject(LoginOutcome.LOCKED_OUT, message)

            password_valid = verify_password(password, account.password_hash)

            if not password_valid:
                account.failed_login_attempts += 1
                locked = account.failed_login_attempts >= MAX_FAILED_LOGIN_ATTEMPTS
                if locked:
                    account.lockout_until = now + LOCKOUT_DURATION
                await self._save(account)

                metadata = {"failed_login_attempts": account.failed_login_attempts}
                if locked:
                    message = (
                        "Account locked due to multiple failed login attempts. "
                        "Try again later."
                    )
                    await self.audit_logger.log_authentication(
                        AuditAction.FAILED_LOGIN,
                        account,
                        context,
                        success=False,
                        error_message=message,
                        severity=Severity.HIGH,
                        description="Account locked due to multiple failed login attempts",
                        metadata=metadata,
                    )
                    return _reject(LoginOutcome.LOCKED_OUT, message)

                await self.audit_logger.log_authentication(
                    AuditAction.FAILED_LOGIN,
                    account,
                    context,
                    success=False,
                    error_message=INVALID_CREDENTIALS_MESSAGE,
                    description="Login attempt with wrong password",
                    metadata=metadata,
                )
                return _reject(LoginOutcome.INVALID, INVALID_CREDENTIALS_MESSAGE)

            if not account.is_verified:
                message = "Please verify your email first."
                await self.audit_logger.log_authentication(
                    AuditAction.FAILED_LOGIN,
                    account,
                    context,
                    success=False,
                    error_message=message,
                    description="Login attempt with unverified email",
                )
                return _reject(LoginOutcome.UNVERIFIED, message)

            if now > account.password_expires_at:
                message = "Your password has expired. Please reset your password."
                await self.audit_logger.log_authentication(
                    AuditAction.FAILED_LOGIN,
                    account,
                    context,
                    success=False,
                    error_message=message,
                    description="Login attempt with expired password",
                )
                return _reject(LoginOutcome.EXPIRED_PASSWORD, message)

            account.failed_login_attempts = 0
            account.lockout_until = None

            used_backup_code = False
            if self.mfa_service.is_mfa_required(account):
                if not mfa_code and not mfa_backup_code:
                    await self._save(account)
                    await self.audit_logger.log_authentication(
                        AuditAction.LOGIN_MFA_REQUIRED,
                        account,
                        context,
                        success=True,
                        description="Login requires MFA verification",
                    )
                    return Return.ok(
                        LoginResponse(
                            outcome=LoginOutcome.MFA_REQUIRED,
                            message="MFA verification required",
                            requires_mfa=True,
                            user_id=str(account.id),
                            mfa_enabled=True,
                        )
                    )

                if mfa_backup_code:
                    mfa_valid = self.mfa_service.verify_backup_code(
                        mfa_backup_code, account.mfa_backup_codes
                    )
                    if mfa_valid:
                        account.mfa_backup_codes = self.mfa_service.remove_backup_code(
                            mfa_backup_code, account.mfa_backup_codes
                        )
                        used_backup_code = True
                else:
                    mfa_valid = account.mfa_secret is not None and self.mfa_service.verify_code(
                        mfa_code, self.mfa_service.decrypt_secret(account.mfa_secret)
                    )

                if not mfa_valid:
                    await self._save(account)
                    await self.audit_logger.log_authentication(
                        AuditAction.MFA_FAILED,
                        account,
                        context,
                        success=False,
                        error_message=INVALID_MFA_MESSAGE,
                        severity=Severity.HIGH,
                        description="Login MFA verification failed",
                        metadata={"method": "backup_code" if mfa_backup_code else "totp"},
                    )
                    return _reject(LoginOutcome.MFA_INVALID, INVALID_MFA_MESSAGE)

                account.last_mfa_verification = now

            await self._save(account)

            role = AccountRole(account.role).value
            access_token = generate_jwt(account.id, role)

            await self.audit_logger.log_authentication(
                AuditAction.LOGIN,
                account,
                context,
                success=True,
                description="User logged in",
                metadata={
                    "mfa": account.mfa_required,
                    "used_backup_code": used_backup_code,
                },
            )

            return Return.ok(
                LoginResponse(
                    outcome=LoginOutcome.AUTHENTICATED,
                    message="Login successful",
                    requires_mfa=False,
                    user_id=str(account.id),
                    access_token=access_token,
                    role=role,
                    mfa_enabled=bool(account.mfa_enabled),
                )
            )

    async def _save(self, account: Account) -> None:
        await self.uow.accounts.update(account)
        await self.uow.commit()


def _reject(outcome: LoginOutcome, message: str) -> Result[LoginResponse]:
    return Return.err(Error(outcome.value, message))
