from abc import ABC, abstractmethod

from src.app.repositories.account_repository import IAccountRepository
from src.app.repositories.audit_event_repository import IAuditEventRepository


class UnitOfWork(ABC):
    """Transaction boundary over the account and audit stores

    Changes become durable only on ``commit``. Leaving the context because of
    an exception rolls back whatever was not committed; a clean exit keeps
    loaded entities readable.
    """

    accounts: IAccountRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self) -> "UnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc, tb):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
