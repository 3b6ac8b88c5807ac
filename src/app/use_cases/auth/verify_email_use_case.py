"""
Verify Email Use Case

Confirms ownership of the registration email with the 6-digit OTP.
"""

import hmac
from datetime import datetime
from typing import Callable, Optional

from src.libs.result import Error, Result, Return
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditAction, Severity
from .dtos import VerifyEmailResponse


class VerifyEmailUseCase:
    """
    Use case for email verification.

    Business Rules:
    - OTP must match the account's current OTP
    - OTP must not be expired (5 minutes from issue)
    - Sets is_verified = True
    - Clears OTP and expiry (single-use)
    - Unknown email, mismatch and expiry share one error (INVALID_OTP)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        audit_logger: AuditLogger,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.audit_logger = audit_logger
        self.clock = clock

    async def execute(
        self, email: str, otp: str, context: Optional[RequestContext] = None
    ) -> Result[VerifyEmailResponse]:
        """
        Execute email verification use case.

        Args:
            email: Registered email
            otp: Code delivered by email

        Returns:
            Result with VerifyEmailResponse, or Error(INVALID_OTP)
        """
        async with self.uow:
            account = await self.uow.accounts.get_by_email(email)

            otp_valid = (
                account is not None
                and account.otp is not None
                and account.otp_expires_at is not None
                and hmac.compare_digest(account.otp.encode("utf-8"), otp.encode("utf-8"))
                and self.clock() <= account.otp_expires_at
            )

            if not otp_valid:
                await self.audit_logger.log_security_event(
                    AuditAction.VERIFY_EMAIL,
                    account,
                    context,
                    description=f"Failed OTP verification for email: {email}",
                    severity=Severity.MEDIUM,
                )
                return Return.err(Error("INVALID_OTP", "Invalid or expired OTP"))

            account.is_verified = True
            account.otp = None
            account.otp_expires_at = None
            await self.uow.accounts.update(account)
            await self.uow.commit()

            await self.audit_logger.log_authentication(
                AuditAction.VERIFY_EMAIL,
                account,
                context,
                success=True,
                description="User verified email",
            )

            return Return.ok(
                VerifyEmailResponse(message="Email verified. You can now log in.")
            )
