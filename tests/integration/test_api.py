"""Integration tests for API endpoints"""

import uuid
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

pytestmark = pytest.mark.integration


@pytest.fixture
def accounts(client: TestClient) -> dict:
    """Two funded accounts opened through the API"""
    alice = client.post("/v1/accounts", json={"email": "alice@example.com", "balance": "1000.00"}).json()
    bob = client.post("/v1/accounts", json={"email": "bob@example.com", "balance": "50.00"}).json()
    return {"alice": alice["account_id"], "bob": bob["account_id"]}


def payment_body(user_id: str, **overrides) -> dict:
    body = {
        "user_id": user_id,
        "amount": "50.00",
        "category": "food",
        "merchant": "Corner Cafe",
        "location": "Manchester",
        "device_id": "device-123",
        "ip_address": "81.2.69.160",
    }
    body.update(overrides)
    return body


def balance(client: TestClient, account_id: str) -> Decimal:
    return Decimal(client.get(f"/v1/accounts/{account_id}").json()["balance"])


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_request_id_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"
    assert client.get("/health").headers["X-Request-ID"]


def test_metrics_endpoint(client: TestClient, accounts):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/transactions", json=payment_body(accounts["alice"]))

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "fraudshield_transactions_total" in response.text


def test_create_and_get_account(client: TestClient):
    response = client.post("/v1/accounts", json={"email": "Carol@Example.com", "balance": "25.50"})

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "carol@example.com"
    assert Decimal(data["balance"]) == Decimal("25.50")

    fetched = client.get(f"/v1/accounts/{data['account_id']}")
    assert fetched.status_code == 200
    assert fetched.json()["email"] == "carol@example.com"


def test_duplicate_account_email(client: TestClient, accounts):
    response = client.post("/v1/accounts", json={"email": "alice@example.com"})
    assert response.status_code == 409


def test_unknown_account(client: TestClient):
    assert client.get(f"/v1/accounts/{uuid.uuid4()}").status_code == 404


def test_submit_low_risk_payment(client: TestClient, accounts):
    """Test POST /v1/transactions settles a payment"""
    response = client.post("/v1/transactions", json=payment_body(accounts["alice"]))

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    assert data["risk_level"] == "low"
    assert data["flagged"] is False
    assert data["risk_score"] == pytest.approx(0.165)
    assert balance(client, accounts["alice"]) == Decimal("950.00")


def test_submit_high_risk_payment_still_settles(client: TestClient, accounts):
    body = payment_body(accounts["alice"], amount="600.00", category="gambling", location="Paris", device_id=None)

    response = client.post("/v1/transactions", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["flagged"] is True
    assert data["risk_level"] == "high"
    assert balance(client, accounts["alice"]) == Decimal("400.00")


def test_submit_p2p_transfer(client: TestClient, accounts):
    body = payment_body(
        accounts["alice"],
        amount="100.00",
        category="money_transfer",
        transfer_type="p2p_transfer",
        merchant=None,
        recipient_email="bob@example.com",
    )

    response = client.post("/v1/transactions", json=body)

    assert response.status_code == 200
    assert balance(client, accounts["alice"]) == Decimal("900.00")
    assert balance(client, accounts["bob"]) == Decimal("150.00")

    detail = client.get(f"/v1/transactions/{response.json()['transaction_id']}").json()
    assert detail["recipient_id"] == accounts["bob"]
    assert detail["merchant"] == "P2P Transfer"


def test_idempotent_replay(client: TestClient, accounts):
    headers = {"Idempotency-Key": "order-991"}

    first = client.post("/v1/transactions", json=payment_body(accounts["alice"]), headers=headers)
    second = client.post("/v1/transactions", json=payment_body(accounts["alice"]), headers=headers)

    assert first.status_code == 200
    assert "Idempotent-Replayed" not in first.headers
    assert second.status_code == 200
    assert second.headers["Idempotent-Replayed"] == "true"
    assert second.json()["transaction_id"] == first.json()["transaction_id"]
    assert balance(client, accounts["alice"]) == Decimal("950.00")


def test_idempotency_key_not_shared_between_senders(client: TestClient, accounts):
    headers = {"Idempotency-Key": "order-991"}

    first = client.post("/v1/transactions", json=payment_body(accounts["alice"]), headers=headers)
    second = client.post(
        "/v1/transactions", json=payment_body(accounts["bob"], amount="20.00"), headers=headers
    )

    assert second.status_code == 200
    assert "Idempotent-Replayed" not in second.headers
    assert second.json()["transaction_id"] != first.json()["transaction_id"]
    assert balance(client, accounts["bob"]) == Decimal("30.00")
    detail = client.get(f"/v1/transactions/{second.json()['transaction_id']}").json()
    assert detail["user_id"] == accounts["bob"]


def test_insufficient_funds(client: TestClient, accounts):
    response = client.post("/v1/transactions", json=payment_body(accounts["bob"], amount="50.01"))

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "insufficient_funds"
    assert balance(client, accounts["bob"]) == Decimal("50.00")


def test_self_transfer_rejected(client: TestClient, accounts):
    body = payment_body(
        accounts["alice"],
        transfer_type="p2p_transfer",
        merchant=None,
        category="money_transfer",
        recipient_email="alice@example.com",
    )

    response = client.post("/v1/transactions", json=body)

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "self_transfer"


def test_payment_without_merchant(client: TestClient, accounts):
    response = client.post("/v1/transactions", json=payment_body(accounts["alice"], merchant=None))
    assert response.status_code == 400


def test_malformed_amount(client: TestClient, accounts):
    response = client.post("/v1/transactions", json=payment_body(accounts["alice"], amount="-5"))
    assert response.status_code == 422


def test_unknown_sender(client: TestClient, accounts):
    response = client.post("/v1/transactions", json=payment_body(str(uuid.uuid4())))
    assert response.status_code == 404


def test_list_transactions_includes_received(client: TestClient, accounts):
    client.post("/v1/transactions", json=payment_body(accounts["alice"]))
    client.post(
        "/v1/transactions",
        json=payment_body(
            accounts["bob"],
            amount="10.00",
            transfer_type="p2p_transfer",
            merchant=None,
            category="money_transfer",
            recipient_email="alice@example.com",
        ),
    )

    response = client.get("/v1/transactions", params={"user_id": accounts["alice"]})

    assert response.status_code == 200
    transactions = response.json()["transactions"]
    assert len(transactions) == 2
    assert transactions[0]["transfer_type"] == "p2p_transfer"
    assert transactions[1]["merchant"] == "Corner Cafe"
    assert len(client.get("/v1/transactions", params={"user_id": accounts["alice"], "limit": 1}).json()["transactions"]) == 1


def test_unknown_transaction(client: TestClient):
    assert client.get(f"/v1/transactions/{uuid.uuid4()}").status_code == 404


def test_report_opens_case(client: TestClient, accounts):
    transaction_id = client.post("/v1/transactions", json=payment_body(accounts["alice"])).json()["transaction_id"]

    response = client.post(f"/v1/transactions/{transaction_id}/report", json={"notes": "Not me"})

    assert response.status_code == 201
    fraud_case = response.json()
    assert fraud_case["status"] == "open"
    assert fraud_case["transaction_id"] == transaction_id
    assert Decimal(fraud_case["transaction"]["amount"]) == Decimal("50.00")
    assert client.get(f"/v1/transactions/{transaction_id}").json()["status"] == "flagged"

    listed = client.get("/v1/cases").json()["cases"]
    assert [c["case_id"] for c in listed] == [fraud_case["case_id"]]


def test_report_unknown_transaction(client: TestClient):
    response = client.post(f"/v1/transactions/{uuid.uuid4()}/report", json={})
    assert response.status_code == 404


@patch("fraudshield.infrastructure.clients.notifications.NotificationClient.send_dispute_alert")
def test_dispute_notifies_relay(mock_alert: AsyncMock, client: TestClient, accounts):
    """Test the dispute commits and the relay is called with the notice"""
    mock_alert.return_value = True
    transaction_id = client.post("/v1/transactions", json=payment_body(accounts["alice"])).json()["transaction_id"]

    response = client.post(f"/v1/transactions/{transaction_id}/dispute", json={"reason": "Never arrived"})

    assert response.status_code == 200
    assert response.json()["status"] == "disputed"
    assert response.json()["dispute_reason"] == "Never arrived"
    mock_alert.assert_called_once()
    notice = mock_alert.call_args.args[0]
    assert str(notice.transaction_id) == transaction_id
    assert notice.user_email == "alice@example.com"

    again = client.post(f"/v1/transactions/{transaction_id}/dispute", json={})
    assert again.status_code == 409


@patch("fraudshield.infrastructure.clients.notifications.NotificationClient.send_dispute_alert")
def test_dispute_survives_relay_failure(mock_alert: AsyncMock, client: TestClient, accounts):
    mock_alert.return_value = False
    transaction_id = client.post("/v1/transactions", json=payment_body(accounts["alice"])).json()["transaction_id"]

    response = client.post(f"/v1/transactions/{transaction_id}/dispute", json={"reason": "Duplicate"})

    assert response.status_code == 200
    assert client.get(f"/v1/transactions/{transaction_id}").json()["status"] == "disputed"


def test_case_review_flow(client: TestClient, accounts):
    transaction_id = client.post("/v1/transactions", json=payment_body(accounts["alice"])).json()["transaction_id"]
    case_id = client.post(f"/v1/transactions/{transaction_id}/report", json={}).json()["case_id"]

    skipped = client.post(f"/v1/cases/{case_id}/transitions", json={"status": "resolved"})
    assert skipped.status_code == 409

    investigating = client.post(
        f"/v1/cases/{case_id}/transitions", json={"status": "investigating", "actor": "analyst-1"}
    )
    assert investigating.status_code == 200
    resolved = client.post(
        f"/v1/cases/{case_id}/transitions",
        json={"status": "resolved", "actor": "analyst-1", "resolution": "Refunded"},
    )
    assert resolved.status_code == 200
    assert resolved.json()["resolution"] == "Refunded"

    fraud_case = client.get(f"/v1/cases/{case_id}").json()
    assert fraud_case["status"] == "resolved"
    assert [t["to_status"] for t in fraud_case["transitions"]] == ["open", "investigating", "resolved"]


def test_unknown_case(client: TestClient):
    assert client.get(f"/v1/cases/{uuid.uuid4()}").status_code == 404
    response = client.post(f"/v1/cases/{uuid.uuid4()}/transitions", json={"status": "closed"})
    assert response.status_code == 404


def test_invalid_case_status(client: TestClient):
    response = client.post(f"/v1/cases/{uuid.uuid4()}/transitions", json={"status": "deleted"})
    assert response.status_code == 422


def test_account_summary(client: TestClient, accounts):
    client.post("/v1/transactions", json=payment_body(accounts["alice"]))
    client.post(
        "/v1/transactions",
        json=payment_body(
            accounts["alice"],
            amount="30.00",
            transfer_type="p2p_transfer",
            merchant=None,
            category="money_transfer",
            recipient_email="bob@example.com",
        ),
    )

    response = client.get(f"/v1/accounts/{accounts['alice']}/summary")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["fraudulent"] == 0
    assert data["success_rate"] == 100.0
    assert sum(Decimal(v) for v in data["monthly_spending"].values()) == Decimal("80.00")
    assert data["monthly_received"] == {}
    assert len(data["beneficiaries"]) == 1
    assert data["beneficiaries"][0]["email"] == "bob@example.com"

    bob = client.get(f"/v1/accounts/{accounts['bob']}/summary").json()
    assert bob["total"] == 0
    assert sum(Decimal(v) for v in bob["monthly_received"].values()) == Decimal("30.00")
