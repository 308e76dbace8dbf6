"""Plaid HTTP client for bank linking, balances, and transactions"""

from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from money_dashboard.config import settings
from money_dashboard.domain.exceptions import BankAPIError
from money_dashboard.infrastructure.observability.metrics import plaid_failures_counter

DEPOSITORY = "depository"
DEFAULT_PAGE_SIZE = 500


def total_depository_balance(accounts: List[Dict[str, Any]]) -> float:
    """Sum of current balances across depository (checking/savings) accounts"""
    total = 0.0
    for account in accounts:
        if account.get("type") != DEPOSITORY:
            continue
        current = (account.get("balances") or {}).get("current")
        if isinstance(current, (int, float)):
            total += current
    return round(total, 2)


class PlaidClient:
    """Client for the Plaid REST API"""

    def __init__(
        self,
        base_url: str | None = None,
        client_id: str | None = None,
        secret: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.plaid_host
        self.client_id = client_id or settings.plaid_client_id
        self.secret = secret or settings.plaid_secret
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _post(self, operation: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON request to Plaid.

        Raises:
            BankAPIError: On timeout, HTTP errors, or invalid response
        """
        headers = {"PLAID-CLIENT-ID": self.client_id, "PLAID-SECRET": self.secret}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(f"{self.base_url}{path}", json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError("expected a JSON object")
                return data

            except httpx.TimeoutException as e:
                plaid_failures_counter.labels(operation=operation).inc()
                raise BankAPIError(f"Plaid timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                plaid_failures_counter.labels(operation=operation).inc()
                raise BankAPIError(f"Plaid error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                plaid_failures_counter.labels(operation=operation).inc()
                raise BankAPIError(f"Plaid unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                plaid_failures_counter.labels(operation=operation).inc()
                raise BankAPIError(f"Invalid response from Plaid: {e}") from e

    async def create_link_token(self, user_id: str) -> str:
        payload: Dict[str, Any] = {
            "user": {"client_user_id": user_id},
            "client_name": "Financial Dashboard",
            "products": ["transactions"],
            "country_codes": ["US"],
            "language": "en",
        }
        if settings.plaid_webhook_url:
            payload["webhook"] = settings.plaid_webhook_url
        data = await self._post("link_token_create", "/link/token/create", payload)
        try:
            return data["link_token"]
        except KeyError as e:
            raise BankAPIError("Plaid response missing link_token") from e

    async def exchange_public_token(self, public_token: str) -> Dict[str, str]:
        """Returns the access token and item id for a Link public token"""
        data = await self._post("item_public_token_exchange", "/item/public_token/exchange", {"public_token": public_token})
        try:
            return {"access_token": data["access_token"], "item_id": data["item_id"]}
        except KeyError as e:
            raise BankAPIError("Plaid response missing access_token or item_id") from e

    async def get_balance(self, access_token: str) -> List[Dict[str, Any]]:
        """Accounts with their live balances"""
        data = await self._post("accounts_balance_get", "/accounts/balance/get", {"access_token": access_token})
        return data.get("accounts", [])

    async def get_transactions(
        self,
        access_token: str,
        start_date: date,
        end_date: date,
        count: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> Dict[str, Any]:
        """Raw transactions for a date range (`transactions`, `accounts`, `total_transactions`)"""
        return await self._post(
            "transactions_get",
            "/transactions/get",
            {
                "access_token": access_token,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "options": {"count": count, "offset": offset},
            },
        )

    async def sync_transactions(self, access_token: str, cursor: Optional[str] = None) -> Dict[str, Any]:
        """
        Cursor-based sync, following `has_more` until exhausted.

        Returns the combined `added`, `modified`, and `removed` lists and the
        final `next_cursor`.
        """
        added: List[Dict[str, Any]] = []
        modified: List[Dict[str, Any]] = []
        removed: List[Dict[str, Any]] = []
        while True:
            payload: Dict[str, Any] = {"access_token": access_token}
            if cursor:
                payload["cursor"] = cursor
            data = await self._post("transactions_sync", "/transactions/sync", payload)
            added.extend(data.get("added", []))
            modified.extend(data.get("modified", []))
            removed.extend(data.get("removed", []))
            cursor = data.get("next_cursor", cursor)
            if not data.get("has_more"):
                break
        return {"added": added, "modified": modified, "removed": removed, "next_cursor": cursor}
