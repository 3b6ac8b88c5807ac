import logging
from datetime import datetime
from typing import Callable, Optional

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.email_service import IEmailService
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditAction, Severity
from src.domain.entities.account import EMAIL_OTP_VALIDITY
from .dtos import ResendOtpResponse
from .register_use_case import generate_otp

logger = logging.getLogger(__name__)


class ResendOtpUseCase:
    """
    Use case for issuing a fresh email verification code.

    Business Rules:
    - Unknown email is rejected (ACCOUNT_NOT_FOUND) and reported as a
      MEDIUM security event
    - Replaces the previous OTP; the new one is valid for 5 minutes
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
        self, email: str, context: Optional[RequestContext] = None
    ) -> Result[ResendOtpResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_email(email)
            if account is None:
                await self.audit_logger.log_security_event(
                    AuditAction.RESEND_OTP,
                    None,
                    context,
                    description=f"OTP resend attempt for non-existent email: {email}",
                    severity=Severity.MEDIUM,
                )
                return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found"))

            otp = generate_otp()
            account.otp = otp
            account.otp_expires_at = self.clock() + EMAIL_OTP_VALIDITY
            await self.uow.accounts.update(account)
            await self.uow.commit()

        try:
            await self.email_service.send_verification_code(account.email, otp)
        except Exception:
            logger.exception("Failed to send verification email to %s", account.email)
            return Return.err(
                Error("EMAIL_DELIVERY_FAILED", "Could not send verification email")
            )

        await self.audit_logger.log_authentication(
            AuditAction.RESEND_OTP, account, context, success=True, description="User requested a new OTP"
        )

        return Return.ok(ResendOtpResponse(message="New OTP sent to email."))
