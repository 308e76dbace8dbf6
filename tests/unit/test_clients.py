"""Unit tests for the Plaid and LLM HTTP clients against mocked transports"""

import asyncio
import json
from datetime import date
import httpx
import pytest
from money_dashboard.domain.exceptions import BankAPIError, LLMAPIError
from money_dashboard.domain.models import BonusRange
from money_dashboard.infrastructure.clients.llm import LLMClient
from money_dashboard.infrastructure.clients.plaid import PlaidClient, total_depository_balance


def _plaid(handler) -> PlaidClient:
    return PlaidClient(
        base_url="https://plaid.test",
        client_id="client-1",
        secret="secret-1",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


def _llm(handler) -> LLMClient:
    return LLMClient(
        base_url="https://llm.test/v1/",
        api_key="sk-test",
        model="test-model",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_total_depository_balance():
    accounts = [
        {"type": "depository", "balances": {"current": 1200.5}},
        {"type": "depository", "balances": {"current": 300.25}},
        {"type": "credit", "balances": {"current": 900.0}},
        {"type": "depository", "balances": {"current": None}},
    ]

    assert total_depository_balance(accounts) == 1500.75


def test_exchange_public_token_sends_credentials():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["client_id"] = request.headers["PLAID-CLIENT-ID"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"access_token": "access-1", "item_id": "item-1"})

    result = asyncio.run(_plaid(handler).exchange_public_token("public-1"))

    assert result == {"access_token": "access-1", "item_id": "item-1"}
    assert seen == {"path": "/item/public_token/exchange", "client_id": "client-1", "body": {"public_token": "public-1"}}


def test_plaid_server_error_raises_bank_api_error():
    client = _plaid(lambda request: httpx.Response(500, json={"error_code": "INTERNAL"}))

    with pytest.raises(BankAPIError, match="500"):
        asyncio.run(client.get_balance("access-1"))


def test_plaid_missing_field_raises_bank_api_error():
    client = _plaid(lambda request: httpx.Response(200, json={"item_id": "item-1"}))

    with pytest.raises(BankAPIError):
        asyncio.run(client.exchange_public_token("public-1"))


def test_plaid_connection_error_raises_bank_api_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(BankAPIError, match="unreachable"):
        asyncio.run(_plaid(handler).get_balance("access-1"))


def test_sync_follows_has_more():
    pages = [
        {"added": [{"transaction_id": "a"}], "modified": [], "removed": [], "next_cursor": "c1", "has_more": True},
        {"added": [{"transaction_id": "b"}], "modified": [{"transaction_id": "a"}],
         "removed": [{"transaction_id": "z"}], "next_cursor": "c2", "has_more": False},
    ]
    cursors = []

    def handler(request: httpx.Request) -> httpx.Response:
        cursors.append(json.loads(request.content).get("cursor"))
        return httpx.Response(200, json=pages[len(cursors) - 1])

    result = asyncio.run(_plaid(handler).sync_transactions("access-1"))

    assert cursors == [None, "c1"]
    assert [t["transaction_id"] for t in result["added"]] == ["a", "b"]
    assert len(result["modified"]) == 1
    assert len(result["removed"]) == 1
    assert result["next_cursor"] == "c2"


def test_get_transactions_sends_date_range():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"transactions": [], "total_transactions": 0})

    asyncio.run(_plaid(handler).get_transactions("access-1", date(2026, 1, 1), date(2026, 3, 31)))

    assert bodies[0]["start_date"] == "2026-01-01"
    assert bodies[0]["end_date"] == "2026-03-31"
    assert bodies[0]["options"] == {"count": 500, "offset": 0}


def test_llm_returns_parsed_analysis():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion(json.dumps({"automated_payments": [], "anomalies": []})))

    transactions = [{"index": 0, "id": "t1", "date": "2026-03-01", "amount": -15.99, "vendor": "Netflix"}]
    result = asyncio.run(
        _llm(handler).analyze_transactions(transactions, paycheck_amount=2000.0, bonus_range=BonusRange(5000, 10000))
    )

    assert result == {"automated_payments": [], "anomalies": []}
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["temperature"] == 0.1
    assert seen["body"]["response_format"]["type"] == "json_schema"
    assert "Netflix" in seen["body"]["messages"][1]["content"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json=_completion("not json")),
        httpx.Response(200, json=_completion("[1, 2]")),
        httpx.Response(200, json=_completion("")),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(429, json={"error": "rate limited"}),
    ],
)
def test_llm_bad_responses_raise_llm_api_error(response):
    with pytest.raises(LLMAPIError):
        asyncio.run(_llm(lambda request: response).analyze_transactions([]))
