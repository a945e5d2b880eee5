"""Customer registration and referral code lookup."""

import secrets

from refpoints.errors import CampaignNotFoundError, CustomerNotFoundError, RefpointsError
from refpoints.logging_config import get_logger
from refpoints.settings import settings
from refpoints.storage.db import Database, db
from refpoints.storage.models import Customer
from refpoints.storage.repo import CampaignRepository, CustomerRepository

logger = get_logger(__name__)

# Excludes look-alikes: 0, O, I, l, 1
CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
MAX_CODE_ATTEMPTS = 10


def generate_referral_code(length: int | None = None) -> str:
    """Generate a readable referral code such as ABC12XYZ."""
    length = length or settings.referral_code_length
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class CustomerService:
    """Service for customers and their referral codes."""

    def __init__(self, database: Database | None = None):
        self.db = database or db
        self.logger = get_logger(__name__)

    def register(
        self,
        name: str,
        phone: str,
        campaign_id: int | None = None,
    ) -> Customer:
        """Register a customer with a fresh referral code.

        The campaign association is fixed here and never changes.

        Args:
            name: Customer name
            phone: Phone number
            campaign_id: Campaign the customer joined, if any

        Returns:
            Created customer

        Raises:
            CampaignNotFoundError: If the campaign does not exist
        """
        with self.db.session() as session:
            if campaign_id is not None and not CampaignRepository(session).get_by_id(campaign_id):
                raise CampaignNotFoundError(campaign_id)

            customers = CustomerRepository(session)

            code = generate_referral_code()
            attempts = 0
            while customers.code_exists(code):
                attempts += 1
                if attempts >= MAX_CODE_ATTEMPTS:
                    raise RefpointsError("Could not generate a unique referral code")
                code = generate_referral_code()

            customer = customers.create(
                name=name.strip(),
                phone=phone.strip(),
                referral_code=code,
                campaign_id=campaign_id,
            )

            self.logger.info(
                "customer_registered",
                customer_id=customer.id,
                campaign_id=campaign_id,
                code=code,
            )

            return customer

    def get_customer(self, customer_id: int) -> Customer:
        """Get customer by ID.

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        with self.db.session() as session:
            customer = CustomerRepository(session).get_by_id(customer_id)
            if not customer:
                raise CustomerNotFoundError(customer_id)
            return customer

    def get_by_referral_code(self, code: str) -> Customer | None:
        """Find the customer owning a referral code.

        Args:
            code: Referral code, any case

        Returns:
            Customer if the code is valid, None otherwise
        """
        if not code or not code.strip():
            return None

        with self.db.session() as session:
            return CustomerRepository(session).get_by_referral_code(code)

    def list_for_campaign(self, campaign_id: int) -> list[Customer]:
        with self.db.session() as session:
            return CustomerRepository(session).list_by_campaign(campaign_id)


# Singleton instance
customer_service = CustomerService()
