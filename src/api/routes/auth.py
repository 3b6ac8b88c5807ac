from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field, field_validator

from src.api.error import ClientError, ServerError
from src.api.utils.request_context import get_request_context
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.email_service import IEmailService
from src.app.services.mfa_service import MFAService
from src.app.services.passwords import MAX_PASSWORD_BYTES, password_too_long
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    LoginResponse,
    LoginUseCase,
    RegisterCommand,
    RegisterResponse,
    RegisterUseCase,
    ResendOtpResponse,
    ResendOtpUseCase,
    VerifyEmailResponse,
    VerifyEmailUseCase,
)
from src.depends import (
    get_audit_logger,
    get_email_service,
    get_mfa_service,
    get_unit_of_work,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Login rejections and their HTTP statuses
LOGIN_ERROR_STATUS = {
    "INVALID": status.HTTP_400_BAD_REQUEST,
    "UNVERIFIED": status.HTTP_400_BAD_REQUEST,
    "MFA_INVALID": status.HTTP_400_BAD_REQUEST,
    "LOCKED_OUT": status.HTTP_403_FORBIDDEN,
    "EXPIRED_PASSWORD": status.HTTP_403_FORBIDDEN,
}


class RegisterRequest(BaseModel):
    """
    Register HTTP request payload

    Validates incoming HTTP request before converting to RegisterCommand.
    API layer responsibility: HTTP validation and serialization.
    """

    fullname: str = Field(..., min_length=1, max_length=255, description="Full name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password (min 8 chars)")
    phone: str = Field("", max_length=50)
    address: str = Field("", max_length=255)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if password_too_long(value):
            raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        return value


@router.post(
    "/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse
)
async def register(
    request: RegisterRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    email_service: IEmailService = Depends(get_email_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    User Registration

    Creates an unverified account and emails a 6-digit OTP (valid 5 minutes).

    Raises:
        - 409 Conflict: Email already exists
        - 422 Unprocessable Entity: Invalid input (handled by FastAPI)
        - 500 Internal Server Error: OTP email could not be sent
    """
    command = RegisterCommand(
        fullname=request.fullname,
        email=request.email,
        password=request.password,
        phone=request.phone,
        address=request.address,
    )

    use_case = RegisterUseCase(uow, email_service, audit_logger)
    result = await use_case.execute(command, context)

    if result.is_err():
        error = result.error
        if error.code == "EMAIL_ALREADY_EXISTS":
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        if error.code == "PASSWORD_TOO_LONG":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value


class VerifyEmailRequest(BaseModel):
    email: EmailStr = Field(..., description="Registered email address")
    otp: str = Field(..., min_length=1, max_length=6, description="Emailed one-time code")


@router.post(
    "/verify-email", status_code=status.HTTP_200_OK, response_model=VerifyEmailResponse
)
async def verify_email(
    request: VerifyEmailRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Email Verification

    Raises:
        - 400 Bad Request: Invalid or expired OTP
    """
    use_case = VerifyEmailUseCase(uow, audit_logger)
    result = await use_case.execute(request.email, request.otp, context)

    if result.is_err():
        error = result.error
        if error.code == "INVALID_OTP":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value


class ResendOtpRequest(BaseModel):
    email: EmailStr = Field(..., description="Registered email address")


@router.post(
    "/resend-otp", status_code=status.HTTP_200_OK, response_model=ResendOtpResponse
)
async def resend_otp(
    request: ResendOtpRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    email_service: IEmailService = Depends(get_email_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    Resend Verification OTP

    Raises:
        - 400 Bad Request: Unknown email
        - 500 Internal Server Error: OTP email could not be sent
    """
    use_case = ResendOtpUseCase(uow, email_service, audit_logger)
    result = await use_case.execute(request.email, context)

    if result.is_err():
        error = result.error
        if error.code == "ACCOUNT_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    mfa_code / mfa_backup_code are only needed for the second step of an
    MFA login.
    """

    email: str = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    mfa_code: Optional[str] = Field(None, description="6-digit TOTP code")
    mfa_backup_code: Optional[str] = Field(None, description="Single-use backup code")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa_service: MFAService = Depends(get_mfa_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    context: RequestContext = Depends(get_request_context),
):
    """
    User Login

    Returns a 1-hour access token, or requires_mfa=true (no token) when the
    account has MFA enabled and no second factor was supplied.

    Raises:
        - 400 Bad Request: Invalid credentials, unverified email, invalid MFA code
        - 403 Forbidden: Account locked out or password expired
        - 500 Internal Server Error: Server error
    """
    use_case = LoginUseCase(uow, mfa_service, audit_logger)
    result = await use_case.execute(
        request.email,
        request.password,
        mfa_code=request.mfa_code,
        mfa_backup_code=request.mfa_backup_code,
        context=context,
    )

    if result.is_err():
        error = result.error
        if error.code in LOGIN_ERROR_STATUS:
            raise ClientError(error, status_code=LOGIN_ERROR_STATUS[error.code])
        raise ServerError(error)

    return result.value
