"""Service dependencies for API routes.

Routes receive services through these functions so tests can swap in
instances bound to a scratch database via ``app.dependency_overrides``.
"""

from refpoints.campaigns.service import CampaignService, campaign_service
from refpoints.customers.service import CustomerService, customer_service
from refpoints.ledger.service import LedgerService, ledger_service
from refpoints.transactions.service import TransactionService, transaction_service


def get_transaction_service() -> TransactionService:
    return transaction_service


def get_customer_service() -> CustomerService:
    return customer_service


def get_campaign_service() -> CampaignService:
    return campaign_service


def get_ledger_service() -> LedgerService:
    return ledger_service
