"""Integration tests for API endpoints"""

import csv
import io
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from octobooks_royalties.infrastructure.database.repositories import (
    AuthorRepository,
    PublisherRepository,
    SaleRepository,
)
from octobooks_royalties.utils.date_utils import utc_now


def order_payload(author_id: str, publisher_id: str, order_id: str = "order_1", **line_overrides) -> dict:
    line = {
        "book_id": "book_1",
        "title": "Monsoon Letters",
        "author_id": author_id,
        "publisher_id": publisher_id,
        "final_price_cents": 30000,
        "quantity": 2,
    }
    line.update(line_overrides)
    return {"order_id": order_id, "user_id": "customer_1", "lines": [line]}


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "octobooks_sales_recorded_total" in response.text


def test_record_sales_endpoint(client: TestClient, author, publisher):
    """POST /v1/sales records the order and credits balances"""
    response = client.post("/v1/sales", json=order_payload(author.id, publisher.id))

    assert response.status_code == 201
    data = response.json()
    assert data["order_id"] == "order_1"
    assert len(data["sale_ids"]) == 1
    assert "X-Request-ID" in response.headers

    balance = client.get(f"/v1/authors/{author.id}/royalty-balance").json()
    assert balance["total_earnings_cents"] == 9000
    assert balance["recorded_sales_cents"] == 9000

    earnings = client.get(f"/v1/publishers/{publisher.id}/earnings").json()
    assert earnings["total_earnings_cents"] == 12000


def test_record_sales_replay_returns_same_ids(client: TestClient, author, publisher):
    first = client.post("/v1/sales", json=order_payload(author.id, publisher.id)).json()
    second = client.post("/v1/sales", json=order_payload(author.id, publisher.id)).json()

    assert first["sale_ids"] == second["sale_ids"]
    balance = client.get(f"/v1/authors/{author.id}/royalty-balance").json()
    assert balance["total_earnings_cents"] == 9000


def test_record_sales_unknown_author(client: TestClient, publisher):
    response = client.post("/v1/sales", json=order_payload("ghost", publisher.id))

    assert response.status_code == 404
    assert client.get("/v1/sales").json()["sales"] == []


def test_record_sales_rejects_zero_quantity(client: TestClient, author, publisher):
    response = client.post("/v1/sales", json=order_payload(author.id, publisher.id, quantity=0))

    assert response.status_code == 422


def test_record_sales_rejects_excessive_author_rate(client: TestClient, publisher):
    """Author at 80% + publisher 20% + platform 10% exceeds the sale"""
    author = client.post(
        "/v1/authors",
        json={"name": "Greedy", "email": "greedy@example.com", "royalty_rate": 0.8},
    ).json()

    response = client.post("/v1/sales", json=order_payload(author["author_id"], publisher.id))

    assert response.status_code == 422


def test_list_sales_and_filters(client: TestClient, author, publisher):
    client.post("/v1/sales", json=order_payload(author.id, publisher.id, order_id="order_1"))
    client.post("/v1/sales", json=order_payload(author.id, publisher.id, order_id="order_2", quantity=1))

    data = client.get("/v1/sales", params={"author_id": author.id}).json()

    assert len(data["sales"]) == 2
    first = data["sales"][0]
    assert first["net_amount_cents"] == (
        first["sale_amount_cents"]
        - first["platform_fee_cents"]
        - first["author_royalty_cents"]
        - first["publisher_share_cents"]
    )
    assert client.get("/v1/sales", params={"author_id": "someone_else"}).json()["sales"] == []


def test_export_sales_csv(client: TestClient, author, publisher):
    client.post(
        "/v1/sales",
        json=order_payload(author.id, publisher.id, title="Tea, Rain and Letters"),
    )

    response = client.get("/v1/sales/export", params={"variant": "author", "author_id": author.id})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][:3] == ["Sale ID", "Book Title", "Publisher"]
    assert rows[1][1] == "Tea, Rain and Letters"
    assert rows[1][4] == "600.00"


def test_monthly_report_endpoint(client: TestClient, author, publisher):
    client.post("/v1/sales", json=order_payload(author.id, publisher.id))

    response = client.get("/v1/reports/monthly", params={"scope": "author", "selector_id": author.id})

    assert response.status_code == 200
    data = response.json()
    assert data["is_sample"] is False
    assert len(data["periods"]) == 1
    assert data["periods"][0]["royalties_cents"] == 9000
    assert data["periods"][0]["average_royalty_per_book_cents"] == 4500


def test_monthly_report_requires_selector(client: TestClient):
    response = client.get("/v1/reports/monthly", params={"scope": "publisher"})
    assert response.status_code == 422


def test_monthly_report_falls_back_on_query_failure(client: TestClient, monkeypatch):
    def broken_query(self, **kwargs):
        raise OperationalError("SELECT sales", {}, Exception("connection reset"))

    monkeypatch.setattr(SaleRepository, "query_sales", broken_query)

    response = client.get("/v1/reports/monthly")

    assert response.status_code == 200
    data = response.json()
    assert data["is_sample"] is True
    assert data["scope"] == "platform"
    assert [p["month_key"] for p in data["periods"]][:2] == ["2024-01", "2024-02"]
    assert all(p["royalties_cents"] * 10 == p["total_revenue_cents"] for p in data["periods"])


def test_list_sales_query_failure_is_503(client: TestClient, monkeypatch):
    def broken_query(self, **kwargs):
        raise OperationalError("SELECT sales", {}, Exception("connection reset"))

    monkeypatch.setattr(SaleRepository, "query_sales", broken_query)

    assert client.get("/v1/sales").status_code == 503


def test_register_author_links_wallet(client: TestClient, user, publisher):
    """Author registered with the user's email gets wallet credit on sales"""
    author = client.post("/v1/authors", json={"name": "Anita Rao", "email": "anita@example.com"})

    assert author.status_code == 201
    assert author.json()["user_id"] == user.id


def test_register_publisher(client: TestClient):
    response = client.post(
        "/v1/publishers",
        json={"name": "Lotus Press", "contact_email": "rights@lotus.example", "royalty_rate": 0.1},
    )

    assert response.status_code == 201
    assert response.json()["royalty_rate"] == 0.1


@pytest.fixture
def funded_accounts(db, author, publisher):
    """₹600 of earnings on both the author and the publisher"""
    AuthorRepository(db).increment_earnings(author.id, 60000, utc_now())
    PublisherRepository(db).increment_earnings(publisher.id, 60000, utc_now())
    db.commit()
    return author.user_id, publisher.id


@pytest.mark.integration
def test_payout_lifecycle(client: TestClient, payout_gateway, funded_accounts):
    """Create, approve (webhook scheduled), then mark paid"""
    author_user_id, _ = funded_accounts
    created = client.post(
        "/v1/payouts",
        json={
            "user_id": author_user_id,
            "user_name": "Anita Rao",
            "role": "author",
            "amount_cents": 50000,
            "payment_method": "bank_transfer",
            "payment_details": {"accountNumber": "0012345678", "ifscCode": "HDFC0000001"},
        },
    )
    assert created.status_code == 201
    request_id = created.json()["request_id"]
    assert created.json()["status"] == "pending"

    approved = client.post(f"/v1/payouts/{request_id}/process", json={"status": "approved"})
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert payout_gateway.events == [
        {
            "event": "PAYOUT_APPROVED",
            "request_id": request_id,
            "user_id": author_user_id,
            "role": "author",
            "amount_cents": 50000,
            "payment_method": "bank_transfer",
            "payment_details": {"accountNumber": "0012345678", "ifscCode": "HDFC0000001"},
        }
    ]

    paid = client.post(f"/v1/payouts/{request_id}/paid")
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"

    listed = client.get("/v1/payouts", params={"status": "paid"}).json()
    assert [p["request_id"] for p in listed["payouts"]] == [request_id]


def test_payout_rejection_sends_no_event(client: TestClient, payout_gateway, funded_accounts):
    _, publisher_id = funded_accounts
    created = client.post(
        "/v1/payouts",
        json={
            "user_id": publisher_id,
            "user_name": "Lotus Press",
            "role": "publisher",
            "amount_cents": 55000,
            "payment_method": "paypal",
            "payment_details": {"paypalEmail": "pay@lotus.example"},
        },
    ).json()

    rejected = client.post(f"/v1/payouts/{created['request_id']}/process", json={"status": "rejected"})

    assert rejected.json()["status"] == "rejected"
    assert payout_gateway.events == []
    assert client.post(f"/v1/payouts/{created['request_id']}/paid").status_code == 409


def test_payout_unknown_request(client: TestClient):
    response = client.post("/v1/payouts/not-a-uuid/process", json={"status": "approved"})
    assert response.status_code == 404


def test_payout_below_minimum_balance(client: TestClient, author, publisher):
    """One sale earns ₹90 of royalties, short of the ₹500 payout minimum"""
    client.post("/v1/sales", json=order_payload(author.id, publisher.id))

    response = client.post(
        "/v1/payouts",
        json={
            "user_id": author.user_id,
            "user_name": "Anita Rao",
            "role": "author",
            "amount_cents": 9000,
            "payment_method": "upi",
            "payment_details": {"upiId": "anita@upi"},
        },
    )

    assert response.status_code == 422
    assert "Minimum" in response.json()["detail"]
    assert client.get("/v1/payouts").json()["payouts"] == []


def test_payout_exceeding_balance(client: TestClient, funded_accounts):
    _, publisher_id = funded_accounts

    response = client.post(
        "/v1/payouts",
        json={
            "user_id": publisher_id,
            "user_name": "Lotus Press",
            "role": "publisher",
            "amount_cents": 60001,
            "payment_method": "paypal",
            "payment_details": {"paypalEmail": "pay@lotus.example"},
        },
    )

    assert response.status_code == 422
