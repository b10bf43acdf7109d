from abc import ABC, abstractmethod
from typing import Any, List, Mapping

from idlemmo.domain.models.account import Account


class AccountRepository(ABC):
    @abstractmethod
    def list_all(self) -> List[Account]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, record: Mapping[str, Any]) -> int:
        """Store ``{email, api_token, cookie_str}`` and return the new id."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, account_id: int) -> None:
        raise NotImplementedError
