import logging
import secrets
from datetime import datetime
from typing import Callable, Optional


from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.email_service import IEmailService
from src.app.services.passwords import hash_password, password_too_long
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import Account, AccountRole, AuditAction, Severity
from src.domain.entities.account import EMAIL_OTP_VALIDITY
from .register_dto import RegisterCommand, RegisterResponse

logger = logging.getLogger(__name__)


def generate_otp() -> str:
    """6-digit numeric one-time code"""
    return str(100000 + secrets.randbelow(900000))


class RegisterUseCase:
    """
    Register Use Case

    Command/Response Pattern:
    - Input: RegisterCommand (validated business intent)
    - Output: Result[RegisterResponse] (structured response)

    Business Logic:
    1. Check if email already exists (security event on duplicate)
    2. Reject passwords bcrypt cannot hash (over 72 bytes), then hash at cost 12
    3. Create Account with is_verified=False and role=user
    4. Generate 6-digit email OTP valid for 5 minutes
    5. Start the 90-day password validity window
    6. Commit, then deliver the OTP by email
    7. Record REGISTER audit event, failed when the email could not be sent
    """

    def __init__(
        self,
        uow: UnitOfWork,
        email_service: IEmailService,
        audit_logger: AuditLogger,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.email_service = email_service
        self.audit_logger = audit_logger
        self.clock = clock

    async def execute(
        self, command: RegisterCommand, context: Optional[RequestContext] = None
    ) -> Result[RegisterResponse]:
        """
        Execute register use case

        Args:
            command: RegisterCommand with validated profile and credentials
            context: Request details for the audit trail

        Returns:
            Result[RegisterResponse], Error(EMAIL_ALREADY_EXISTS) if the email
            is taken, Error(PASSWORD_TOO_LONG) past 72 bytes or
            Error(EMAIL_DELIVERY_FAILED) if the OTP could not be sent
        """
        async with self.uow:
            existing = await self.uow.accounts.get_by_email(command.email)
            if existing:
                await self.audit_logger.log_security_event(
                    AuditAction.REGISTER,
                    None,
                    context,
                    description=f"Registration attempt with existing email: {command.email}",
                    severity=Severity.MEDIUM,
                )
                return Return.err(
                    Error("EMAIL_ALREADY_EXISTS", "Email already registered")
                )

            if password_too_long(command.password):
                return Return.err(
                    Error("PASSWORD_TOO_LONG", "Password cannot be longer than 72 bytes")
                )

            password_hash = hash_password(command.password)

            now = self.clock()
            otp = generate_otp()
            account = Account(
                fullname=command.fullname,
                email=command.email,
                phone=command.phone,
                address=command.address,
                password_hash=password_hash,
                role=AccountRole.user,
                is_verified=False,
                otp=otp,
                otp_expires_at=now + EMAIL_OTP_VALIDITY,
                password_last_updated=now,
            )
            account = await self.uow.accounts.create(account)
            await self.uow.commit()

        try:
            await self.email_service.send_verification_code(account.email, otp)
        except Exception:
            logger.exception("Failed to send verification email to %s", account.email)
            await self.audit_logger.log_authentication(
                AuditAction.REGISTER,
                account,
                context,
                success=False,
                error_message="Could not send verification email",
                description="User registered but verification email was not delivered",
            )
            return Return.err(
                Error("EMAIL_DELIVERY_FAILED", "Could not send verification email")
            )

        await self.audit_logger.log_authentication(
            AuditAction.REGISTER, account, context, success=True, description="User registered"
        )

        return Return.ok(
            RegisterResponse(
                user_id=str(account.id),
                email=account.email,
                message="OTP sent to email. Please verify.",
            )
        )
