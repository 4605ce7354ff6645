"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def bca_cards(client: TestClient) -> list[dict]:
    """Two BCA cards sharing one 50M limit plus an individual Mandiri card"""
    payloads = [
        {"bank_id": "bca", "alias": "BCA Platinum", "credit_limit": 50_000_000,
         "current_usage": 10_000_000, "due_day": 5, "use_shared_limit": True},
        {"bank_id": "bca", "alias": "BCA Everyday", "credit_limit": 50_000_000,
         "current_usage": 5_000_000, "due_day": 25, "use_shared_limit": True},
        {"bank_id": "mandiri", "alias": "Mandiri Gold", "credit_limit": 20_000_000,
         "current_usage": 1_000_000, "due_day": 3},
    ]
    return [client.post("/v1/cards", json=payload).json() for payload in payloads]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "cardwise_obligation_events_total" in response.text
    assert "cardwise_installment_plans_total" in response.text


def test_request_id_header_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_create_card_validates_due_day(client: TestClient):
    response = client.post("/v1/cards", json={"bank_id": "bca", "credit_limit": 1, "due_day": 32})
    assert response.status_code == 422


def test_shared_limits_endpoint(client: TestClient, bca_cards: list[dict]):
    response = client.get("/v1/shared-limits")

    assert response.status_code == 200
    [group] = response.json()["groups"]
    assert group["bank_id"] == "bca"
    assert group["shared_limit"] == 50_000_000
    assert group["total_usage"] == 15_000_000
    assert group["card_ids"] == [bca_cards[0]["id"], bca_cards[1]["id"]]


def test_summary_counts_shared_limit_once(client: TestClient, bca_cards: list[dict]):
    data = client.get("/v1/summary").json()

    assert data["total_limit"] == 70_000_000
    assert data["total_usage"] == 16_000_000
    assert data["available"] == 54_000_000
    assert data["active_cards"] == 3


def test_archived_card_leaves_summary(client: TestClient, bca_cards: list[dict]):
    mandiri_id = bca_cards[2]["id"]
    assert client.post(f"/v1/cards/{mandiri_id}/archive").json()["is_archived"] is True

    data = client.get("/v1/summary").json()
    assert data["total_limit"] == 50_000_000
    assert data["active_cards"] == 2
    assert len(client.get("/v1/cards").json()) == 2
    assert len(client.get("/v1/cards?include_archived=true").json()) == 3


def test_reminders_endpoint(client: TestClient, bca_cards: list[dict]):
    response = client.get("/v1/reminders", params={"today": "2024-06-01"})

    assert response.status_code == 200
    data = response.json()
    assert data["lookahead_days"] == 7
    reminders = data["reminders"]
    assert [r["date"] for r in reminders] == ["2024-06-03", "2024-06-05"]
    assert reminders[0]["instrument_id"] == bca_cards[2]["id"]
    assert reminders[0]["days_remaining"] == 2
    assert reminders[1]["kind"] == "payment"
    assert reminders[1]["group_usage"] == 15_000_000


def test_reminders_include_limit_increase_history(client: TestClient):
    card = client.post(
        "/v1/cards",
        json={"bank_id": "bni", "credit_limit": 10_000_000, "due_day": 28,
              "limit_increase_reminder_enabled": True},
    ).json()
    created = client.post(
        f"/v1/cards/{card['id']}/limit-increases",
        json={"request_date": "2024-01-05", "action_date": "2024-01-10", "frequency": 6,
              "amount": 5_000_000, "status": "approved"},
    )
    assert created.status_code == 201

    reminders = client.get("/v1/reminders", params={"today": "2024-07-10"}).json()["reminders"]

    assert reminders == [
        {
            "id": f"limit-{card['id']}",
            "instrument_id": card["id"],
            "kind": "limit_increase",
            "date": "2024-07-10",
            "days_remaining": 0,
            "amount": None,
            "group_usage": None,
        }
    ]


def test_create_installment_plan(client: TestClient, bca_cards: list[dict]):
    card_id = bca_cards[2]["id"]
    response = client.post(
        "/v1/installments",
        json={"card_id": card_id, "description": "Laptop", "total_amount": 1_000_000,
              "total_months": 3, "start_date": "2024-01-15", "admin_fee": 25_000,
              "today": "2024-01-15"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["monthly_amount"] == 333_334
    assert [inst["date"] for inst in data["installments"]] == ["2024-01-15", "2024-02-15", "2024-03-15"]
    assert data["admin_fee_charge"]["amount"] == 25_000
    assert data["total_scheduled"] == 3 * 333_334 + 25_000

    # Only the installment and fee already due count toward usage
    cards = {card["id"]: card for card in client.get("/v1/cards").json()}
    assert cards[card_id]["current_usage"] == 333_334 + 25_000

    stored = client.get(f"/v1/installments/{data['plan_id']}").json()
    assert [inst["installment_number"] for inst in stored["installments"]] == [1, 2, 3]
    assert stored["admin_fee_charge"] == data["admin_fee_charge"]
    assert stored["total_scheduled"] == data["total_scheduled"]


def test_installment_with_exhausted_tenor_is_rejected(client: TestClient, bca_cards: list[dict]):
    response = client.post(
        "/v1/installments",
        json={"card_id": bca_cards[0]["id"], "total_amount": 600_000, "total_months": 3,
              "paid_months": 3, "start_date": "2024-01-15"},
    )
    assert response.status_code == 422


def test_installment_for_unknown_card(client: TestClient):
    response = client.post(
        "/v1/installments",
        json={"card_id": "missing", "total_amount": 600_000, "total_months": 3, "start_date": "2024-01-15"},
    )
    assert response.status_code == 404


def test_get_installment_not_found(client: TestClient):
    assert client.get("/v1/installments/00000000-0000-0000-0000-000000000000").status_code == 404


def test_subscription_lifecycle(client: TestClient, bca_cards: list[dict]):
    card_id = bca_cards[2]["id"]
    created = client.post(
        "/v1/subscriptions",
        json={"card_id": card_id, "name": "Spotify", "amount": 54_990, "billing_day": 10,
              "today": "2024-05-10"},
    )
    assert created.status_code == 201
    assert created.json()["next_billing_date"] == "2024-06-10"

    nothing_due = client.post("/v1/subscriptions/bill", params={"today": "2024-06-09"}).json()
    assert nothing_due["charges"] == []

    billed = client.post("/v1/subscriptions/bill", params={"today": "2024-06-10"}).json()
    assert [charge["amount"] for charge in billed["charges"]] == [54_990]
    assert billed["subscriptions"][0]["next_billing_date"] == "2024-07-10"

    # Running again the same day charges nothing twice
    again = client.post("/v1/subscriptions/bill", params={"today": "2024-06-10"}).json()
    assert again["charges"] == []


def test_foreign_subscription_requires_exchange_rate(client: TestClient, bca_cards: list[dict]):
    response = client.post(
        "/v1/subscriptions",
        json={"card_id": bca_cards[0]["id"], "name": "iCloud", "amount": 2.99, "currency": "USD",
              "billing_day": 1, "today": "2024-05-10"},
    )
    assert response.status_code == 422


def test_foreign_subscription_stored_in_base_currency(client: TestClient, bca_cards: list[dict]):
    response = client.post(
        "/v1/subscriptions",
        json={"card_id": bca_cards[0]["id"], "name": "iCloud", "amount": 2.99, "currency": "USD",
              "exchange_rate": 16_000, "billing_day": 1, "today": "2024-05-10"},
    )
    assert response.status_code == 201
    assert response.json()["amount"] == 47_840


def test_payment_marks_card_paid_and_hides_reminder(client: TestClient, bca_cards: list[dict]):
    mandiri_id = bca_cards[2]["id"]

    paid = client.post(f"/v1/cards/{mandiri_id}/payments", json={"paid_on": "2024-06-01"}).json()
    assert paid["is_paid"] is True
    assert paid["current_usage"] == 0

    reminders = client.get("/v1/reminders", params={"today": "2024-06-01"}).json()["reminders"]
    assert mandiri_id not in [r["instrument_id"] for r in reminders]


def test_refresh_resets_paid_flag_in_new_cycle(client: TestClient):
    card = client.post(
        "/v1/cards",
        json={"bank_id": "bri", "credit_limit": 5_000_000, "due_day": 20, "billing_cycle_day": 10},
    ).json()
    client.post(f"/v1/cards/{card['id']}/payments", json={"paid_on": "2024-05-12"})

    same_cycle = client.post("/v1/cards/refresh", params={"today": "2024-06-09"}).json()
    assert same_cycle[0]["is_paid"] is True

    next_cycle = client.post("/v1/cards/refresh", params={"today": "2024-06-10"}).json()
    assert next_cycle[0]["is_paid"] is False


def test_foreign_installment_requires_exchange_rate(client: TestClient, bca_cards: list[dict]):
    payload = {"card_id": bca_cards[2]["id"], "total_amount": 100, "currency": "USD",
               "total_months": 6, "start_date": "2024-01-15"}

    assert client.post("/v1/installments", json=payload).status_code == 422

    converted = client.post("/v1/installments", json={**payload, "exchange_rate": 15_500})
    assert converted.status_code == 201
    assert converted.json()["monthly_amount"] == 258_334


def test_payment_history_newest_first(client: TestClient, bca_cards: list[dict]):
    card_id = bca_cards[0]["id"]

    client.post(f"/v1/cards/{card_id}/payments",
                json={"paid_on": "2024-05-20", "amount": 4_000_000, "payment_type": "minimal"})
    client.post(f"/v1/cards/{card_id}/payments", json={"paid_on": "2024-06-02", "notes": "lunas"})

    history = client.get(f"/v1/cards/{card_id}/payments").json()

    assert [(p["paid_on"], p["amount"], p["payment_type"]) for p in history] == [
        ("2024-06-02", 6_000_000, "full"),
        ("2024-05-20", 4_000_000, "minimal"),
    ]
    assert history[0]["notes"] == "lunas"
    assert history[0]["billing_cycle"] == "2024-06"


def test_payment_history_drops_entries_older_than_24_months(client: TestClient, bca_cards: list[dict]):
    card_id = bca_cards[2]["id"]

    client.post(f"/v1/cards/{card_id}/payments", json={"paid_on": "2022-03-01", "amount": 100})
    client.post(f"/v1/cards/{card_id}/payments", json={"paid_on": "2024-06-01", "amount": 100})

    history = client.get(f"/v1/cards/{card_id}/payments").json()
    assert [p["paid_on"] for p in history] == ["2024-06-01"]


def test_payment_history_for_unknown_card(client: TestClient):
    assert client.get("/v1/cards/missing/payments").status_code == 404


def test_list_limit_increases(client: TestClient, bca_cards: list[dict]):
    card_id = bca_cards[0]["id"]
    for request_date in ("2023-06-01", "2024-01-05"):
        client.post(f"/v1/cards/{card_id}/limit-increases", json={"request_date": request_date, "frequency": 6})
    client.post(f"/v1/cards/{bca_cards[1]['id']}/limit-increases",
                json={"request_date": "2024-02-01", "frequency": 3})

    records = client.get(f"/v1/cards/{card_id}/limit-increases").json()

    assert [record["request_date"] for record in records] == ["2024-01-05", "2023-06-01"]
    assert all(record["card_id"] == card_id for record in records)
    assert client.get("/v1/cards/missing/limit-increases").status_code == 404


def test_paused_subscription_is_not_billed_or_reminded(client: TestClient, bca_cards: list[dict]):
    card_id = bca_cards[2]["id"]
    sub = client.post(
        "/v1/subscriptions",
        json={"card_id": card_id, "name": "Netflix", "amount": 186_000, "billing_day": 4, "today": "2024-05-10"},
    ).json()

    paused = client.patch(f"/v1/subscriptions/{sub['id']}", json={"is_active": False, "today": "2024-05-10"})
    assert paused.status_code == 200
    assert paused.json()["is_active"] is False

    reminders = client.get("/v1/reminders", params={"today": "2024-06-01"}).json()["reminders"]
    assert "subscription_renewal" not in [r["kind"] for r in reminders]
    assert client.post("/v1/subscriptions/bill", params={"today": "2024-06-04"}).json()["charges"] == []

    resumed = client.patch(f"/v1/subscriptions/{sub['id']}", json={"is_active": True, "today": "2024-08-10"}).json()
    assert resumed["next_billing_date"] == "2024-09-04"


def test_edit_subscription_amount_and_billing_day(client: TestClient, bca_cards: list[dict]):
    sub = client.post(
        "/v1/subscriptions",
        json={"card_id": bca_cards[0]["id"], "name": "iCloud", "amount": 2.99, "currency": "USD",
              "exchange_rate": 16_000, "billing_day": 1, "today": "2024-05-10"},
    ).json()

    updated = client.patch(
        f"/v1/subscriptions/{sub['id']}",
        json={"amount": 9.99, "billing_day": 15, "today": "2024-05-10"},
    ).json()

    assert updated["amount"] == 159_840
    assert updated["billing_day"] == 15
    assert updated["next_billing_date"] == "2024-05-15"


def test_delete_subscription(client: TestClient, bca_cards: list[dict]):
    card_id = bca_cards[1]["id"]
    sub = client.post(
        "/v1/subscriptions",
        json={"card_id": card_id, "name": "Spotify", "amount": 54_990, "billing_day": 10, "today": "2024-05-10"},
    ).json()
    assert [s["id"] for s in client.get("/v1/subscriptions", params={"card_id": card_id}).json()] == [sub["id"]]

    assert client.delete(f"/v1/subscriptions/{sub['id']}").status_code == 204
    assert client.get("/v1/subscriptions").json() == []
    assert client.delete(f"/v1/subscriptions/{sub['id']}").status_code == 404


def test_archived_card_subscriptions_are_not_billed(client: TestClient, bca_cards: list[dict]):
    card_id = bca_cards[2]["id"]
    client.post(
        "/v1/subscriptions",
        json={"card_id": card_id, "name": "Vidio", "amount": 39_000, "billing_day": 10, "today": "2024-05-10"},
    )
    client.post(f"/v1/cards/{card_id}/archive")

    billed = client.post("/v1/subscriptions/bill", params={"today": "2024-06-10"}).json()

    assert billed["charges"] == []
    assert billed["subscriptions"][0]["next_billing_date"] == "2024-06-10"
