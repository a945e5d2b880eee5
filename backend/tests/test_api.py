"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from refpoints.api.deps import (
    get_campaign_service,
    get_customer_service,
    get_ledger_service,
    get_transaction_service,
)
from refpoints.api.main import create_app, status_code_for
from refpoints.errors import (
    CustomerNotFoundError,
    InvalidCampaignSettingsError,
    InvalidRedemptionConfigError,
    InvalidTransitionError,
    PurchaseNotEligibleError,
    RefpointsError,
)
from refpoints.settings import settings


@pytest.fixture
def client(transaction_service, customer_service, campaign_service, ledger_service):
    app = create_app()
    app.dependency_overrides[get_transaction_service] = lambda: transaction_service
    app.dependency_overrides[get_customer_service] = lambda: customer_service
    app.dependency_overrides[get_campaign_service] = lambda: campaign_service
    app.dependency_overrides[get_ledger_service] = lambda: ledger_service
    return TestClient(app)


class TestErrorMapping:

    def test_status_codes(self):
        assert status_code_for(CustomerNotFoundError(1)) == 404
        assert status_code_for(InvalidTransitionError("approved", "rejected")) == 409
        assert status_code_for(PurchaseNotEligibleError("closed")) == 422
        assert status_code_for(InvalidCampaignSettingsError("bad")) == 422
        assert status_code_for(InvalidRedemptionConfigError("bad")) == 422
        assert status_code_for(RefpointsError("other")) == 400


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["app"] == settings.app_name


class TestCampaignEndpoints:

    def test_list_by_shop(self, client, campaign, campaign_service):
        campaign_service.create_campaign(shop_name="Tea House", name="Regulars")

        response = client.get("/api/v1/campaigns", params={"shop_name": "Corner Bakery"})
        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [campaign.id]

    def test_list_requires_shop(self, client):
        assert client.get("/api/v1/campaigns").status_code == 422

    def test_create_and_get(self, client):
        response = client.post(
            "/api/v1/campaigns",
            json={
                "shop_name": "Tea House",
                "name": "Regulars",
                "point_rules": [{"min_amount": 0, "max_amount": 50, "points": 2}],
            },
        )
        assert response.status_code == 201
        body = response.json()
        assert body["point_rules"] == [{"min_amount": 0, "max_amount": 50, "points": 2}]

        fetched = client.get(f"/api/v1/campaigns/{body['id']}")
        assert fetched.json()["name"] == "Regulars"

    def test_missing_campaign(self, client):
        response = client.get("/api/v1/campaigns/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Campaign 999 not found"

    def test_update(self, client, campaign):
        response = client.patch(
            f"/api/v1/campaigns/{campaign.id}",
            json={"is_active": False, "points_redemption_discount": 20},
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert response.json()["points_redemption_discount"] == 20

    def test_invalid_discount_rejected_by_validation(self, client, campaign):
        response = client.patch(
            f"/api/v1/campaigns/{campaign.id}", json={"points_redemption_discount": 150}
        )
        assert response.status_code == 422

    def test_stats_and_customers(self, client, campaign, customer):
        stats = client.get(f"/api/v1/campaigns/{campaign.id}/stats").json()
        assert stats["pending_transactions"] == 0

        customers = client.get(f"/api/v1/campaigns/{campaign.id}/customers").json()
        assert [c["id"] for c in customers] == [customer.id]


class TestCustomerEndpoints:

    def test_register(self, client, campaign):
        response = client.post(
            "/api/v1/customers",
            json={"name": "Ben Okafor", "phone": "555-0101", "campaign_id": campaign.id},
        )
        assert response.status_code == 201
        body = response.json()
        assert len(body["referral_code"]) == 8
        assert body["available_points"] == 0

    def test_validate_code(self, client, customer):
        valid = client.get(f"/api/v1/customers/code/{customer.referral_code.lower()}").json()
        assert valid == {"valid": True, "referrer_name": "Asha"}

        invalid = client.get("/api/v1/customers/code/NOPE1234").json()
        assert invalid == {"valid": False, "referrer_name": None}

    def test_balance_and_ledger(self, client, customer, transaction_service):
        tx = transaction_service.create_transaction(customer.id, "purchase", 150, 15)
        transaction_service.approve(tx.id)

        balance = client.get(f"/api/v1/customers/{customer.id}/balance").json()
        assert balance["total_points"] == 15
        assert balance["available_points"] == 15

        ledger = client.get(f"/api/v1/customers/{customer.id}/ledger").json()
        assert ledger[0]["transaction_id"] == tx.id
        assert ledger[0]["total_after"] == 15

    def test_ledger_limit_bounds(self, client, customer):
        response = client.get(f"/api/v1/customers/{customer.id}/ledger", params={"limit": 0})
        assert response.status_code == 400

    def test_missing_customer(self, client):
        assert client.get("/api/v1/customers/999").status_code == 404
        assert client.get("/api/v1/customers/999/balance").status_code == 404


class TestTransactionEndpoints:

    def test_customer_listing_is_not_truncated(self, client, customer, transaction_service):
        for _ in range(60):
            transaction_service.create_transaction(customer.id, "purchase", 10, 1)

        everything = client.get("/api/v1/transactions", params={"customer_id": customer.id})
        assert len(everything.json()) == 60

        page = client.get(
            "/api/v1/transactions",
            params={"customer_id": customer.id, "limit": 25, "offset": 50},
        )
        assert len(page.json()) == 10

    def test_listing_limit_bounds(self, client, customer):
        response = client.get("/api/v1/transactions", params={"customer_id": customer.id, "limit": 0})
        assert response.status_code == 422

    def test_purchase_then_approve(self, client, customer):
        created = client.post(
            "/api/v1/transactions/purchase",
            json={"customer_id": customer.id, "amount": 150},
        )
        assert created.status_code == 201
        tx = created.json()
        assert tx["status"] == "pending"
        assert tx["points"] == 15

        approved = client.patch(f"/api/v1/transactions/{tx['id']}", json={"status": "approved"})
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"

        # Repeating the decision is accepted and credits nothing more
        again = client.patch(f"/api/v1/transactions/{tx['id']}", json={"status": "approved"})
        assert again.status_code == 200
        balance = client.get(f"/api/v1/customers/{customer.id}/balance").json()
        assert balance["total_points"] == 15

    def test_terminal_conflict(self, client, customer):
        tx = client.post(
            "/api/v1/transactions",
            json={"customer_id": customer.id, "type": "purchase", "amount": 50, "points": 5},
        ).json()
        client.patch(f"/api/v1/transactions/{tx['id']}", json={"status": "rejected"})

        response = client.patch(f"/api/v1/transactions/{tx['id']}", json={"status": "approved"})
        assert response.status_code == 409

    def test_invalid_status(self, client, customer):
        tx = client.post(
            "/api/v1/transactions",
            json={"customer_id": customer.id, "type": "purchase", "amount": 50, "points": 5},
        ).json()
        response = client.patch(f"/api/v1/transactions/{tx['id']}", json={"status": "paid"})
        assert response.status_code == 400

    def test_missing_transaction(self, client):
        response = client.patch("/api/v1/transactions/999", json={"status": "approved"})
        assert response.status_code == 404
        assert client.get("/api/v1/transactions/999").status_code == 404

    def test_ineligible_purchase(self, client, customer):
        response = client.post(
            "/api/v1/transactions/purchase",
            json={"customer_id": customer.id, "amount": 5},
        )
        assert response.status_code == 422

    def test_redemption(self, client, customer, set_balance):
        set_balance(customer.id, 1000)
        response = client.post(
            "/api/v1/transactions/redemption",
            json={"customer_id": customer.id, "points_to_redeem": 250, "bill_amount": 150},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["redemption_units"] == 2
        assert body["final_amount"] == pytest.approx(120)
        assert body["transaction"]["points"] == -235

    def test_redemption_insufficient_points(self, client, customer):
        response = client.post(
            "/api/v1/transactions/redemption",
            json={"customer_id": customer.id, "points_to_redeem": 100, "bill_amount": 50},
        )
        assert response.status_code == 400

    def test_list(self, client, customer, campaign):
        client.post("/api/v1/transactions/purchase", json={"customer_id": customer.id, "amount": 50})

        by_customer = client.get("/api/v1/transactions", params={"customer_id": customer.id})
        assert len(by_customer.json()) == 1

        by_campaign = client.get(
            "/api/v1/transactions",
            params={"campaign_id": campaign.id, "status_filter": "pending"},
        )
        assert len(by_campaign.json()) == 1

        assert client.get("/api/v1/transactions").status_code == 400
