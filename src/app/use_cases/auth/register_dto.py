"""
Register Use Case DTOs (Data Transfer Objects)

Command/Response pattern for clean architecture separation:
- RegisterCommand: Input to use case (validated business intent)
- RegisterResponse: Output from use case (structured result)
"""

from pydantic import BaseModel


class RegisterCommand(BaseModel):
    """
    Register command - represents validated registration intent

    Created by API layer after request validation passes.
    Contains only business-relevant data (no HTTP concerns).
    """

    fullname: str
    email: str
    password: str
    phone: str = ""
    address: str = ""


class RegisterResponse(BaseModel):
    """Registration accepted; the account stays unverified until OTP check"""

    user_id: str
    email: str
    message: str
