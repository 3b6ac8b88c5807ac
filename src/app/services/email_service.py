from abc import ABC, abstractmethod


class IEmailService(ABC):
    """Outbound email used by the account lifecycle use cases"""

    @abstractmethod
    async def send_verification_code(self, to_email: str, code: str) -> None:
        """Deliver a one-time email verification code"""
        pass
