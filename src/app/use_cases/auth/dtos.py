"""
Authentication Use Case DTOs (Data Transfer Objects)

All Response classes for the auth domain.
Provides type safety and clear contracts between layers.
"""

from typing import Optional
from pydantic import BaseModel

from src.domain.entities import LoginOutcome


# ============================================================================
# Response DTOs
# ============================================================================


class LoginResponse(BaseModel):
    """
    Response for user login use case

    Only AUTHENTICATED carries an access token. MFA_REQUIRED carries the
    account reference for the follow-up call and no token.
    """

    outcome: LoginOutcome
    message: str
    requires_mfa: bool = False
    user_id: Optional[str] = None
    access_token: Optional[str] = None
    role: Optional[str] = None
    mfa_enabled: bool = False


class VerifyEmailResponse(BaseModel):
    """Response for email verification use case"""

    message: str


class ResendOtpResponse(BaseModel):
    """Response for resend OTP use case"""

    message: str
