"""Transaction lifecycle: submission, review and point settlement."""

import math
from dataclasses import dataclass

from refpoints.errors import (
    CampaignNotFoundError,
    CustomerNotFoundError,
    InsufficientPointsError,
    InvalidReferralCodeError,
    PurchaseNotEligibleError,
    TransactionNotFoundError,
)
from refpoints.ledger.service import LedgerService
from refpoints.logging_config import get_logger
from refpoints.points.redemption import (
    RedemptionResult,
    compute_redemption,
    net_transaction_points,
    points_charged,
)
from refpoints.points.rules import evaluate_points
from refpoints.settings import settings
from refpoints.storage.db import Database, db
from refpoints.storage.models import Campaign, Transaction, TransactionStatus, TransactionType
from refpoints.storage.repo import (
    CampaignRepository,
    CustomerRepository,
    LedgerRepository,
    TransactionRepository,
)
from refpoints.transactions.state import parse_status, plan_transition

logger = get_logger(__name__)


@dataclass(frozen=True)
class RedemptionOutcome:
    """A pending redemption transaction and the discount it grants."""

    transaction: Transaction
    redemption: RedemptionResult
    earned_points: int


class TransactionService:
    """Service for creating and reviewing point transactions.

    ``request_status_change`` is the only entry point that moves points
    onto a customer's balance.
    """

    def __init__(self, database: Database | None = None, ledger: LedgerService | None = None):
        self.db = database or db
        self.ledger = ledger or LedgerService(self.db)
        self.logger = get_logger(__name__)

    # ==================== CREATION ====================

    def create_transaction(
        self,
        customer_id: int,
        type: TransactionType | str,
        amount: float,
        points: int,
        campaign_id: int | None = None,
        bill_image_url: str | None = None,
        referral_code: str | None = None,
    ) -> Transaction:
        """Record a pending transaction with precomputed points.

        Args:
            customer_id: Owning customer
            type: purchase, referral or redemption
            amount: Currency amount (0 for non-purchase types)
            points: Signed point delta applied on approval
            campaign_id: Optional campaign context
            bill_image_url: Optional resolved URL of the bill image
            referral_code: Optional referral code entered with the bill

        Returns:
            Created transaction, always pending

        Raises:
            CustomerNotFoundError: If the customer does not exist
            CampaignNotFoundError: If a campaign id is given but unknown
            ValueError: If the type is unknown
        """
        tx_type = TransactionType(type)

        with self.db.session() as session:
            if not CustomerRepository(session).get_by_id(customer_id):
                raise CustomerNotFoundError(customer_id)
            if campaign_id is not None and not CampaignRepository(session).get_by_id(campaign_id):
                raise CampaignNotFoundError(campaign_id)

            return TransactionRepository(session).create(
                customer_id=customer_id,
                campaign_id=campaign_id,
                type=tx_type,
                amount=amount,
                points=points,
                bill_image_url=bill_image_url,
                referral_code=referral_code,
            )

    def submit_purchase(
        self,
        customer_id: int,
        amount: float,
        campaign_id: int | None = None,
        bill_image_url: str | None = None,
        referral_code: str | None = None,
    ) -> Transaction:
        """Submit a purchase bill for review.

        Points come from the campaign's tiers. When the bill carries
        another customer's referral code, that customer gets a pending
        referral transaction as well.

        Args:
            customer_id: Customer uploading the bill
            amount: Bill amount
            campaign_id: Campaign (defaults to the customer's campaign)
            bill_image_url: Optional resolved URL of the bill image
            referral_code: Optional referral code of a friend

        Returns:
            The pending purchase transaction

        Raises:
            CustomerNotFoundError: If the customer does not exist
            CampaignNotFoundError: If the campaign does not exist
            PurchaseNotEligibleError: If the campaign is inactive, the bill
                is below the minimum, or the code is the customer's own
            InvalidReferralCodeError: If the referral code is unknown
        """
        if amount < 0:
            raise PurchaseNotEligibleError("Purchase amount cannot be negative")

        with self.db.session() as session:
            customers = CustomerRepository(session)
            customer = customers.get_by_id(customer_id)
            if not customer:
                raise CustomerNotFoundError(customer_id)

            campaign = self._resolve_campaign(session, campaign_id or customer.campaign_id)
            self._check_eligible(campaign, amount)

            points = evaluate_points(amount, campaign.point_rules) if campaign else 0

            referrer = None
            if referral_code:
                referral_code = referral_code.upper().strip()
                referrer = customers.get_by_referral_code(referral_code)
                if not referrer:
                    raise InvalidReferralCodeError(referral_code)
                if referrer.id == customer.id:
                    raise PurchaseNotEligibleError("Customers cannot use their own referral code")

            transactions = TransactionRepository(session)
            purchase = transactions.create(
                customer_id=customer.id,
                campaign_id=campaign.id if campaign else None,
                type=TransactionType.PURCHASE,
                amount=amount,
                points=points,
                bill_image_url=bill_image_url,
                referral_code=referral_code,
            )

            if referrer:
                transactions.create(
                    customer_id=referrer.id,
                    campaign_id=campaign.id if campaign else None,
                    type=TransactionType.REFERRAL,
                    amount=0.0,
                    points=math.floor(amount * settings.referral_points_rate),
                    referral_code=referral_code,
                )

            self.logger.info(
                "purchase_submitted",
                transaction_id=purchase.id,
                customer_id=customer.id,
                amount=amount,
                points=points,
                referrer_id=referrer.id if referrer else None,
            )

            return purchase

    def request_redemption(
        self,
        customer_id: int,
        points_to_redeem: int,
        bill_amount: float,
        campaign_id: int | None = None,
        bill_image_url: str | None = None,
    ) -> RedemptionOutcome:
        """Spend points against a bill.

        Points earned on the discounted bill and points spent are netted
        into one pending redemption transaction. Points held by the
        customer's other pending redemptions count as already spent. The
        balance is checked here, before anything is written; the ledger
        itself does not check it again on approval.

        Args:
            customer_id: Customer redeeming
            points_to_redeem: Points to spend (> 0)
            bill_amount: Bill total before discount
            campaign_id: Campaign (defaults to the customer's campaign)
            bill_image_url: Optional resolved URL of the bill image

        Returns:
            RedemptionOutcome with the pending transaction and the discount

        Raises:
            CustomerNotFoundError: If the customer does not exist
            CampaignNotFoundError: If no campaign can be resolved
            InsufficientPointsError: If the customer cannot cover the points
            PurchaseNotEligibleError: If the request is malformed or the
                campaign is inactive
        """
        if points_to_redeem <= 0:
            raise PurchaseNotEligibleError("Points to redeem must be positive")
        if bill_amount < 0:
            raise PurchaseNotEligibleError("Bill amount cannot be negative")

        with self.db.session() as session:
            customer = CustomerRepository(session).get_for_update(customer_id)
            if not customer:
                raise CustomerNotFoundError(customer_id)

            transactions = TransactionRepository(session)
            available = customer.available_points - transactions.pending_redemption_points(customer.id)
            if points_to_redeem > available:
                raise InsufficientPointsError(points_to_redeem, available)

            target_id = campaign_id or customer.campaign_id
            if target_id is None:
                raise PurchaseNotEligibleError("Redemption requires a campaign")
            campaign = self._resolve_campaign(session, target_id)
            if not campaign.is_active:
                raise PurchaseNotEligibleError(f"Campaign {campaign.id} is not active")

            redemption = compute_redemption(
                points_to_redeem=points_to_redeem,
                bill_amount=bill_amount,
                redemption_value=campaign.points_redemption_value,
                redemption_discount_pct=campaign.points_redemption_discount,
            )

            earned = 0
            if redemption.final_amount >= campaign.min_purchase_amount:
                earned = evaluate_points(redemption.final_amount, campaign.point_rules)

            transaction = transactions.create(
                customer_id=customer.id,
                campaign_id=campaign.id,
                type=TransactionType.REDEMPTION,
                amount=redemption.final_amount,
                points=net_transaction_points(earned, points_to_redeem),
                bill_image_url=bill_image_url,
                points_to_redeem=points_charged(points_to_redeem),
            )

            self.logger.info(
                "redemption_requested",
                transaction_id=transaction.id,
                customer_id=customer.id,
                points_to_redeem=points_to_redeem,
                earned_points=earned,
                discount_amount=redemption.discount_amount,
            )

            return RedemptionOutcome(
                transaction=transaction,
                redemption=redemption,
                earned_points=earned,
            )

    # ==================== REVIEW ====================

    def request_status_change(self, transaction_id: int, status: TransactionStatus | str) -> Transaction:
        """Move a transaction to approved or rejected.

        Repeating the current status returns the transaction untouched, so
        a retried approval never awards points twice. On the first
        pending -> approved move the stored points are added to the
        customer's balance. The status write and the balance update commit
        together; if either fails, both roll back and the transaction
        stays pending.

        Args:
            transaction_id: Transaction ID
            status: Requested status

        Returns:
            The transaction after the request

        Raises:
            TransactionNotFoundError: If the transaction does not exist
            InvalidStatusError: If the status is not a known value
            InvalidTransitionError: If the transaction is already terminal
            CustomerNotFoundError: If the owning customer vanished
        """
        with self.db.session() as session:
            transactions = TransactionRepository(session)
            transaction = transactions.get_for_update(transaction_id)
            if not transaction:
                raise TransactionNotFoundError(transaction_id)

            transition = plan_transition(transaction.status, status)
            if transition.noop:
                self.logger.debug(
                    "transaction_status_unchanged",
                    transaction_id=transaction_id,
                    status=transaction.status,
                )
                return transaction

            transactions.set_status(transaction, transition.target)

            if transition.applies_points:
                self.ledger.apply_points(
                    transaction.customer_id,
                    transaction.points,
                    transaction_id=transaction.id,
                    description=f"Approved {transaction.type} transaction",
                    session=session,
                )
                transactions.mark_ledger_applied(transaction)

            self.logger.info(
                "transaction_status_changed",
                transaction_id=transaction_id,
                from_status=transition.current.value,
                to_status=transition.target.value,
                points_applied=transaction.points if transition.applies_points else 0,
            )

            return transaction

    def approve(self, transaction_id: int) -> Transaction:
        return self.request_status_change(transaction_id, TransactionStatus.APPROVED)

    def reject(self, transaction_id: int) -> Transaction:
        return self.request_status_change(transaction_id, TransactionStatus.REJECTED)

    def reconcile_ledger(self) -> int:
        """Settle approved transactions whose points never reached the balance.

        Covers rows approved outside ``request_status_change`` (imports,
        manual fixes). A transaction that already has a ledger entry is only
        flagged, never credited again.

        Returns:
            Number of transactions credited
        """
        with self.db.session() as session:
            pending_ids = [t.id for t in TransactionRepository(session).list_unledgered_approved()]

        credited = 0
        for transaction_id in pending_ids:
            with self.db.session() as session:
                transactions = TransactionRepository(session)
                transaction = transactions.get_for_update(transaction_id)
                if transaction is None or transaction.ledger_applied:
                    continue
                if transaction.status != TransactionStatus.APPROVED.value:
                    continue

                if LedgerRepository(session).get_by_transaction(transaction.id) is None:
                    self.ledger.apply_points(
                        transaction.customer_id,
                        transaction.points,
                        transaction_id=transaction.id,
                        description=f"Reconciled {transaction.type} transaction",
                        session=session,
                    )
                    credited += 1
                transactions.mark_ledger_applied(transaction)

        self.logger.info("ledger_reconciled", checked=len(pending_ids), credited=credited)
        return credited

    # ==================== QUERIES ====================

    def get_transaction(self, transaction_id: int) -> Transaction:
        """Get a transaction by ID.

        Raises:
            TransactionNotFoundError: If the transaction does not exist
        """
        with self.db.session() as session:
            transaction = TransactionRepository(session).get_by_id(transaction_id)
            if not transaction:
                raise TransactionNotFoundError(transaction_id)
            return transaction

    def list_for_customer(self, customer_id: int, limit: int | None = None, offset: int = 0) -> list[Transaction]:
        """Get a customer's transactions, newest first.

        Without a limit the whole history is returned.
        """
        with self.db.session() as session:
            return TransactionRepository(session).list_by_customer(customer_id, limit=limit, offset=offset)

    def list_for_campaign(
        self,
        campaign_id: int,
        status: TransactionStatus | str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """Get a campaign's transactions, newest first, optionally by status."""
        status_value = parse_status(status).value if status is not None else None
        with self.db.session() as session:
            return TransactionRepository(session).list_by_campaign(
                campaign_id, status=status_value, limit=limit, offset=offset
            )

    # ==================== HELPERS ====================

    def _resolve_campaign(self, session, campaign_id: int | None) -> Campaign | None:
        if campaign_id is None:
            return None
        campaign = CampaignRepository(session).get_by_id(campaign_id)
        if not campaign:
            raise CampaignNotFoundError(campaign_id)
        return campaign

    def _check_eligible(self, campaign: Campaign | None, amount: float) -> None:
        if campaign is None:
            return
        if not campaign.is_active:
            raise PurchaseNotEligibleError(f"Campaign {campaign.id} is not active")
        if amount < campaign.min_purchase_amount:
            raise PurchaseNotEligibleError(
                f"Minimum purchase amount is {campaign.min_purchase_amount:g}"
            )


# Singleton instance
transaction_service = TransactionService()
