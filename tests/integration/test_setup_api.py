"""Integration tests for the setup wizard and on-demand AI analysis"""

from datetime import date, timedelta
from fastapi.testclient import TestClient
from money_dashboard.domain.exceptions import LLMAPIError
from conftest import connect_bank, make_transaction, store_transactions

TODAY = date.today()


def _seed(db, user_id):
    store_transactions(
        db,
        [
            make_transaction("t1", -1200.0, TODAY, vendor="Landlord LLC", user_id=user_id),
            make_transaction("t2", 2000.0, TODAY - timedelta(days=3), vendor="Acme Payroll", type="deposit", user_id=user_id),
            make_transaction("t3", -15.99, TODAY - timedelta(days=40), vendor="Netflix", user_id=user_id),
        ],
    )


def _llm_response():
    return {
        "automated_payments": [
            {
                "vendor": "Landlord LLC",
                "amount": 1200,
                "frequency": "monthly",
                "category": "rent",
                "last_occurrence": TODAY.isoformat(),
            },
            {"vendor": "Netflix", "amount": 15.99, "frequency": "monthly", "category": "media", "last_occurrence": ""},
        ],
        "anomalies": [],
        "paychecks": [{"transaction_index": 1, "amount": 2000, "date": "", "is_bonus": False}],
        "bonuses": [],
        "categories": [
            {"transaction_index": 0, "category": "rent", "confidence": 0.95},
            {"transaction_index": 7, "category": "media", "confidence": 0.9},
        ],
    }


# Setup


def test_status_for_new_user(auth_client: TestClient):
    data = auth_client.get("/v1/setup/status").json()

    assert data == {
        "is_setup_complete": False,
        "has_bank_connection": False,
        "has_bonus_date": False,
        "has_automated_payments": False,
        "setup_progress": {"bank": False, "bonus": False, "payments": False},
    }


def test_initialize_validates_bonus_date(auth_client: TestClient):
    missing = auth_client.post("/v1/setup/initialize", json={"has_bonus": True})
    assert missing.status_code == 400

    past = auth_client.post(
        "/v1/setup/initialize", json={"has_bonus": True, "bonus_date": (TODAY - timedelta(days=1)).isoformat()}
    )
    assert past.status_code == 400


def test_initialize_without_transactions(auth_client: TestClient, fake_llm):
    bonus_date = (TODAY + timedelta(days=30)).isoformat()

    response = auth_client.post("/v1/setup/initialize", json={"has_bonus": True, "bonus_date": bonus_date})

    assert response.status_code == 200
    assert response.json()["automated_payments"] == []
    assert response.json()["analysis_summary"] is None
    assert fake_llm.calls == []
    assert auth_client.get("/v1/settings").json()["next_bonus_date"] == bonus_date


def test_initialize_runs_analysis(auth_client: TestClient, db, fake_llm):
    _seed(db, auth_client.user_id)
    fake_llm.response = _llm_response()

    response = auth_client.post("/v1/setup/initialize", json={"has_bonus": False})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Analysis complete"
    assert [p["vendor"] for p in data["automated_payments"]] == ["Landlord LLC", "Netflix"]
    assert data["automated_payments"][1]["last_occurrence"] == TODAY.isoformat()
    assert data["analysis_summary"] == {
        "total_transactions": 3,
        "automated_payments_found": 2,
        "anomalies_found": 0,
        "paychecks_found": 1,
        "bonuses_found": 0,
    }
    assert [t["id"] for t in fake_llm.calls[0]["transactions"]] == ["t1", "t2", "t3"]

    # Detected payments wait for the user to confirm them
    assert auth_client.get("/v1/automated-payments").json()["automated_payments"] == []


def test_initialize_llm_failure(auth_client: TestClient, db, fake_llm):
    _seed(db, auth_client.user_id)
    fake_llm.error = LLMAPIError("LLM timeout after 60s")

    response = auth_client.post("/v1/setup/initialize", json={"has_bonus": False})

    assert response.status_code == 502


def test_complete_replaces_payments(auth_client: TestClient, db):
    connect_bank(db, auth_client.user_id)
    auth_client.put("/v1/settings", json={"next_bonus_date": (TODAY + timedelta(days=14)).isoformat()})

    response = auth_client.post(
        "/v1/setup/complete",
        json={
            "automated_payments": [
                {"vendor": "Landlord LLC", "amount": -1200, "frequency": "monthly", "category": "rent"},
                {"id": "keep-me", "vendor": "Gym", "amount": 30, "frequency": "weekly", "category": "other"},
            ]
        },
    )

    assert response.status_code == 200
    assert response.json()["automated_payments_count"] == 2

    payments = auth_client.get("/v1/automated-payments").json()["automated_payments"]
    by_vendor = {p["vendor"]: p for p in payments}
    assert by_vendor["Landlord LLC"]["amount"] == 1200.0
    assert by_vendor["Landlord LLC"]["confidence"] == 0.9
    assert by_vendor["Gym"]["id"] == "keep-me"

    assert auth_client.get("/v1/setup/status").json()["is_setup_complete"] is True


def test_complete_rejects_invalid_payments(auth_client: TestClient):
    zero = auth_client.post(
        "/v1/setup/complete",
        json={"automated_payments": [{"vendor": "Gym", "amount": 0, "frequency": "weekly", "category": "other"}]},
    )
    assert zero.status_code == 422

    bad_frequency = auth_client.post(
        "/v1/setup/complete",
        json={"automated_payments": [{"vendor": "Gym", "amount": 30, "frequency": "daily", "category": "other"}]},
    )
    assert bad_frequency.status_code == 422


# AI analysis


def _range(days=60):
    return {"start_date": (TODAY - timedelta(days=days)).isoformat(), "end_date": TODAY.isoformat()}


def test_analyze_rejects_bad_ranges(auth_client: TestClient):
    too_long = auth_client.post("/v1/ai/analyze-transactions", json=_range(days=94))
    assert too_long.status_code == 400
    assert too_long.json()["detail"] == "Date range cannot exceed 3 months"

    reversed_range = auth_client.post(
        "/v1/ai/analyze-transactions",
        json={"start_date": TODAY.isoformat(), "end_date": (TODAY - timedelta(days=1)).isoformat()},
    )
    assert reversed_range.status_code == 400


def test_analyze_without_transactions(auth_client: TestClient):
    assert auth_client.post("/v1/ai/analyze-transactions", json=_range()).status_code == 404


def test_analyze_stores_and_reuses_result(auth_client: TestClient, db, fake_llm):
    _seed(db, auth_client.user_id)
    fake_llm.response = _llm_response()

    first = auth_client.post("/v1/ai/analyze-transactions", json=_range())
    assert first.status_code == 200
    assert first.json()["cached"] is False
    analysis = first.json()["analysis"]
    assert [m["transaction_id"] for m in analysis["category_mappings"]] == ["t1"]
    assert analysis["paychecks"][0]["transaction_id"] == "t2"
    assert analysis["paychecks"][0]["date"] == (TODAY - timedelta(days=3)).isoformat()

    second = auth_client.post("/v1/ai/analyze-transactions", json=_range())
    assert second.json()["cached"] is True
    assert len(second.json()["analysis"]["automated_payments"]) == 2
    assert len(fake_llm.calls) == 1

    forced = auth_client.post("/v1/ai/analyze-transactions", json={**_range(), "force": True})
    assert forced.json()["cached"] is False
    assert len(fake_llm.calls) == 2


def test_get_stored_analysis(auth_client: TestClient, db, fake_llm):
    _seed(db, auth_client.user_id)
    auth_client.post("/v1/ai/analyze-transactions", json=_range())

    found = auth_client.get("/v1/ai/analyze-transactions", params=_range())
    assert found.status_code == 200
    assert found.json()["cached"] is True

    assert auth_client.get("/v1/ai/analyze-transactions", params=_range(days=30)).status_code == 404


def test_analyze_llm_failure(auth_client: TestClient, db, fake_llm):
    _seed(db, auth_client.user_id)
    fake_llm.error = LLMAPIError("LLM API error: 500")

    assert auth_client.post("/v1/ai/analyze-transactions", json=_range()).status_code == 502
