import logging
from typing import Any, List, Mapping, Optional

import httpx

from idlemmo.domain.models.account import Account
from idlemmo.domain.repositories import AccountRepository
from idlemmo.errors import CircuitOpenError, DecodeError, StoreError
from idlemmo.infrastructure.resilient_http import CircuitBreaker, RetryPolicy, send_with_retry


class SupabaseAccountRepository(AccountRepository):
    """Account rows kept in a Supabase table, spoken to over PostgREST."""

    REST_PREFIX = "/rest/v1"

    def __init__(
        self,
        url: str,
        key: str,
        *,
        table: str = "users",
        timeout: float = 10.0,
        retries: int = 2,
        backoff_seconds: float = 0.2,
        breaker: Optional[CircuitBreaker] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._table = table
        self._read_policy = RetryPolicy(retries=retries, backoff_seconds=backoff_seconds)
        self.breaker = breaker if breaker is not None else CircuitBreaker()
        self._logger = logging.getLogger(__name__)
        self.client = http_client or httpx.Client(base_url=url.rstrip("/"), timeout=timeout)
        self._headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
        }
        self._logger.info("Supabase client initialized.")

    @property
    def _path(self) -> str:
        return f"{self.REST_PREFIX}/{self._table}"

    def _request(self, method: str, *, retry: bool = False, **kwargs: Any) -> httpx.Response:
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", None) or {})
        try:
            return send_with_retry(
                self.client,
                method,
                self._path,
                policy=self._read_policy if retry else RetryPolicy(),
                breaker=self.breaker,
                headers=headers,
                **kwargs,
            )
        except (httpx.HTTPError, CircuitOpenError) as exc:
            raise StoreError(f"Database request error: {exc}") from exc

    def list_all(self) -> List[Account]:
        self._logger.info("Fetching all users from Supabase '%s' table...", self._table)
        response = self._request("GET", retry=True, params={"select": "*"})
        try:
            rows = response.json()
        except ValueError as exc:
            raise StoreError("Database returned a non-JSON body") from exc
        if not isinstance(rows, list):
            raise StoreError("Database returned an unexpected payload for the account list")

        accounts: List[Account] = []
        for row in rows:
            try:
                accounts.append(Account.from_payload(row))
            except DecodeError as exc:
                self._logger.warning(
                    "Failed to deserialize user from raw value. Skipping this entry.",
                    extra={"error": str(exc)},
                )

        if len(accounts) < len(rows):
            self._logger.warning(
                "Some user entries failed to parse and were skipped.",
                extra={"parsed_count": len(accounts), "raw_count": len(rows)},
            )
        else:
            self._logger.info("Successfully fetched and parsed all users.", extra={"count": len(accounts)})
        return accounts

    def insert(self, record: Mapping[str, Any]) -> int:
        response = self._request(
            "POST",
            json=dict(record),
            headers={"Prefer": "return=representation", "Content-Type": "application/json"},
        )
        try:
            rows = response.json()
        except ValueError as exc:
            raise StoreError("Database returned a non-JSON body for insert") from exc
        row = rows[0] if isinstance(rows, list) and rows else rows
        if not isinstance(row, dict) or not isinstance(row.get("id"), int):
            raise StoreError("Database did not return the inserted id")
        inserted_id = row["id"]
        self._logger.info("User inserted into database", extra={"inserted_id": inserted_id})
        return inserted_id

    def remove(self, account_id: int) -> None:
        self._request("DELETE", params={"id": f"eq.{int(account_id)}"})
        self._logger.info("User removed from database", extra={"user_id": account_id})

    def close(self) -> None:
        self.client.close()
