from typing import Any, Dict, Iterable, List, Mapping, Optional

from idlemmo.domain.models.account import Account
from idlemmo.domain.repositories import AccountRepository


class InMemoryAccountRepository(AccountRepository):
    def __init__(self, accounts: Optional[Iterable[Account]] = None):
        self._accounts: Dict[int, Account] = {account.id: account for account in accounts or []}
        self._next_id = max(self._accounts.keys(), default=0) + 1

    def list_all(self) -> List[Account]:
        return [self._accounts[key] for key in sorted(self._accounts.keys())]

    def insert(self, record: Mapping[str, Any]) -> int:
        account_id = self._next_id
        self._next_id += 1
        self._accounts[account_id] = Account.from_payload({**record, "id": account_id})
        return account_id

    def remove(self, account_id: int) -> None:
        self._accounts.pop(account_id, None)
