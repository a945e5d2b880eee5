"""Pytest fixtures: a scratch SQLite database and services bound to it."""

import pytest

from refpoints.campaigns.service import CampaignService
from refpoints.customers.service import CustomerService
from refpoints.ledger.service import LedgerService
from refpoints.points.rules import PointRule
from refpoints.storage.db import Database
from refpoints.storage.models import Customer
from refpoints.transactions.service import TransactionService

TIERED_RULES = [
    PointRule(min_amount=0, max_amount=99, points=5),
    PointRule(min_amount=100, max_amount=199, points=15),
]


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'refpoints-test.db'}"


@pytest.fixture
def database(database_url):
    """Fresh database with all tables."""
    database = Database(database_url)
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def ledger_service(database):
    return LedgerService(database)


@pytest.fixture
def transaction_service(database, ledger_service):
    return TransactionService(database, ledger=ledger_service)


@pytest.fixture
def customer_service(database):
    return CustomerService(database)


@pytest.fixture
def campaign_service(database):
    return CampaignService(database)


@pytest.fixture
def campaign(campaign_service):
    """Active campaign with two tiers and 100 points = 10% off."""
    return campaign_service.create_campaign(
        shop_name="Corner Bakery",
        name="Bread Lovers",
        point_rules=TIERED_RULES,
        points_redemption_value=100,
        points_redemption_discount=10,
        min_purchase_amount=10,
    )


@pytest.fixture
def customer(customer_service, campaign):
    return customer_service.register(name="Asha Rao", phone="+15550100", campaign_id=campaign.id)


@pytest.fixture
def set_balance(database):
    """Overwrite a customer's balance directly, bypassing the ledger."""

    def _set_balance(customer_id: int, total_points: int, redeemed_points: int = 0) -> None:
        with database.session() as session:
            customer = session.get(Customer, customer_id)
            customer.total_points = total_points
            customer.redeemed_points = redeemed_points

    return _set_balance
