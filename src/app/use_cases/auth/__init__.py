"""
Authentication Use Cases

All authentication-related business logic.
"""

from .register_use_case import RegisterUseCase
from .register_dto import RegisterCommand, RegisterResponse
from .login_use_case import LoginUseCase
from .verify_email_use_case import VerifyEmailUseCase
from .resend_otp_use_case import ResendOtpUseCase
from .dtos import LoginResponse, ResendOtpResponse, VerifyEmailResponse

__all__ = [
    # Use Cases
    "RegisterUseCase",
    "LoginUseCase",
    "VerifyEmailUseCase",
    "ResendOtpUseCase",
    # DTOs - Commands
    "RegisterCommand",
    # DTOs - Responses
    "RegisterResponse",
    "LoginResponse",
    "VerifyEmailResponse",
    "ResendOtpResponse",
]
