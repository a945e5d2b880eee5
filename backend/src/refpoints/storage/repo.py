"""Repository layer for data access."""

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from refpoints.logging_config import get_logger
from refpoints.points.rules import PointRule
from refpoints.storage.models import (
    Campaign,
    Customer,
    PointsLedgerEntry,
    Transaction,
    TransactionStatus,
    TransactionType,
)

logger = get_logger(__name__)


class CampaignRepository:
    """Repository for Campaign entities."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        shop_name: str,
        name: str,
        description: str | None = None,
        point_rules: list[PointRule] | None = None,
        points_redemption_value: int = 100,
        points_redemption_discount: int = 10,
        min_purchase_amount: float = 0.0,
        is_active: bool = True,
    ) -> Campaign:
        """Create a new campaign.

        Args:
            shop_name: Owning shop
            name: Campaign name
            description: Optional description
            point_rules: Ordered earning tiers (defaults applied when None)
            points_redemption_value: Points per redemption unit
            points_redemption_discount: Discount percent per unit
            min_purchase_amount: Smallest qualifying bill
            is_active: Whether bills can be submitted

        Returns:
            Created campaign
        """
        campaign = Campaign(
            shop_name=shop_name,
            name=name,
            description=description,
            points_redemption_value=points_redemption_value,
            points_redemption_discount=points_redemption_discount,
            min_purchase_amount=min_purchase_amount,
            is_active=is_active,
        )
        if point_rules is not None:
            campaign.point_rules = point_rules
        self.session.add(campaign)
        self.session.flush()
        logger.info("campaign_created", campaign_id=campaign.id, shop=shop_name, name=name)
        return campaign

    def get_by_id(self, campaign_id: int) -> Campaign | None:
        """Get campaign by ID."""
        return self.session.get(Campaign, campaign_id)

    def list_by_shop(self, shop_name: str) -> list[Campaign]:
        return list(self.session.scalars(
            select(Campaign).where(Campaign.shop_name == shop_name).order_by(Campaign.id)
        ))


class CustomerRepository:
    """Repository for Customer entities."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        name: str,
        phone: str,
        referral_code: str,
        campaign_id: int | None = None,
    ) -> Customer:
        """Create a customer with an empty balance."""
        customer = Customer(
            name=name,
            phone=phone,
            referral_code=referral_code,
            campaign_id=campaign_id,
            total_points=0,
            redeemed_points=0,
        )
        self.session.add(customer)
        self.session.flush()
        logger.info("customer_created", customer_id=customer.id, campaign_id=campaign_id)
        return customer

    def get_by_id(self, customer_id: int) -> Customer | None:
        """Get customer by ID."""
        return self.session.get(Customer, customer_id)

    def get_for_update(self, customer_id: int) -> Customer | None:
        """Get customer by ID, locking the row until the session ends."""
        return self.session.scalar(
            select(Customer).where(Customer.id == customer_id).with_for_update()
        )

    def get_by_referral_code(self, code: str) -> Customer | None:
        return self.session.scalar(
            select(Customer).where(Customer.referral_code == code.upper().strip())
        )

    def code_exists(self, code: str) -> bool:
        return self.session.scalar(
            select(func.count(Customer.id)).where(Customer.referral_code == code)
        ) > 0

    def list_by_campaign(self, campaign_id: int) -> list[Customer]:
        return list(self.session.scalars(
            select(Customer).where(Customer.campaign_id == campaign_id).order_by(Customer.id)
        ))


class TransactionRepository:
    """Repository for Transaction entities.

    The only writer of ``Transaction.status``.
    """

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        customer_id: int,
        campaign_id: int | None,
        type: TransactionType | str,
        amount: float,
        points: int,
        bill_image_url: str | None = None,
        referral_code: str | None = None,
        points_to_redeem: int = 0,
    ) -> Transaction:
        """Create a transaction in the pending state.

        Callers cannot choose the initial status; every transaction starts
        out pending and waits for review.

        Returns:
            Created transaction
        """
        transaction = Transaction(
            customer_id=customer_id,
            campaign_id=campaign_id,
            type=TransactionType(type).value,
            amount=amount,
            points=points,
            points_to_redeem=points_to_redeem,
            status=TransactionStatus.PENDING.value,
            bill_image_url=bill_image_url,
            referral_code=referral_code,
            ledger_applied=False,
        )
        self.session.add(transaction)
        self.session.flush()
        logger.info(
            "transaction_created",
            transaction_id=transaction.id,
            customer_id=customer_id,
            type=transaction.type,
            points=points,
        )
        return transaction

    def get_by_id(self, transaction_id: int) -> Transaction | None:
        """Get transaction by ID."""
        return self.session.get(Transaction, transaction_id)

    def get_for_update(self, transaction_id: int) -> Transaction | None:
        """Get transaction by ID, locking the row until the session ends."""
        return self.session.scalar(
            select(Transaction).where(Transaction.id == transaction_id).with_for_update()
        )

    def list_by_customer(self, customer_id: int, limit: int | None = None, offset: int = 0) -> list[Transaction]:
        """List a customer's transactions, newest first."""
        query = (
            select(Transaction)
            .where(Transaction.customer_id == customer_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.scalars(query))

    def list_by_campaign(
        self,
        campaign_id: int,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List a campaign's transactions, newest first."""
        query = select(Transaction).where(Transaction.campaign_id == campaign_id)
        if status is not None:
            query = query.where(Transaction.status == status)
        query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.scalars(query))

    def pending_redemption_points(self, customer_id: int) -> int:
        """Points held by a customer's redemptions that await review."""
        return self.session.scalar(
            select(func.coalesce(func.sum(Transaction.points_to_redeem), 0)).where(
                Transaction.customer_id == customer_id,
                Transaction.type == TransactionType.REDEMPTION.value,
                Transaction.status == TransactionStatus.PENDING.value,
            )
        )

    def set_status(self, transaction: Transaction, status: TransactionStatus) -> Transaction:
        """Persist a new status and flush it to the database."""
        transaction.status = status.value
        transaction.reviewed_at = datetime.utcnow()
        self.session.flush()
        return transaction

    def mark_ledger_applied(self, transaction: Transaction) -> None:
        transaction.ledger_applied = True
        self.session.flush()

    def list_unledgered_approved(self) -> list[Transaction]:
        """Approved transactions whose points never reached the balance."""
        return list(self.session.scalars(
            select(Transaction)
            .where(
                Transaction.status == TransactionStatus.APPROVED.value,
                Transaction.ledger_applied.is_(False),
            )
            .order_by(Transaction.id)
        ))

    def campaign_summary(self, campaign_id: int) -> dict[str, Any]:
        """Aggregate figures for a campaign's review dashboard."""
        approved = Transaction.status == TransactionStatus.APPROVED.value

        revenue = self.session.scalar(
            select(func.sum(Transaction.amount)).where(
                Transaction.campaign_id == campaign_id, approved
            )
        ) or 0
        referral_count = self.session.scalar(
            select(func.count(Transaction.id)).where(
                Transaction.campaign_id == campaign_id,
                Transaction.type == TransactionType.REFERRAL.value,
                approved,
            )
        ) or 0
        pending_count = self.session.scalar(
            select(func.count(Transaction.id)).where(
                Transaction.campaign_id == campaign_id,
                Transaction.status == TransactionStatus.PENDING.value,
            )
        ) or 0

        return {
            "approved_revenue": float(revenue),
            "approved_referrals": referral_count,
            "pending_transactions": pending_count,
        }


class LedgerRepository:
    """Repository for PointsLedgerEntry records."""

    def __init__(self, session: Session):
        self.session = session

    def add_entry(
        self,
        customer_id: int,
        points_delta: int,
        total_after: int,
        transaction_id: int | None = None,
        description: str | None = None,
    ) -> PointsLedgerEntry:
        entry = PointsLedgerEntry(
            customer_id=customer_id,
            transaction_id=transaction_id,
            points_delta=points_delta,
            total_after=total_after,
            description=description,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def get_by_transaction(self, transaction_id: int) -> PointsLedgerEntry | None:
        return self.session.scalar(
            select(PointsLedgerEntry).where(PointsLedgerEntry.transaction_id == transaction_id)
        )

    def list_by_customer(self, customer_id: int, limit: int = 50, offset: int = 0) -> list[PointsLedgerEntry]:
        return list(self.session.scalars(
            select(PointsLedgerEntry)
            .where(PointsLedgerEntry.customer_id == customer_id)
            .order_by(PointsLedgerEntry.id.desc())
            .offset(offset)
            .limit(limit)
        ))
