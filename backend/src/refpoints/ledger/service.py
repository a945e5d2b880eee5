"""Point balance updates for customers."""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator

from sqlalchemy.orm import Session

from refpoints.errors import CustomerNotFoundError
from refpoints.logging_config import get_logger
from refpoints.storage.db import Database, db
from refpoints.storage.models import Customer, PointsLedgerEntry
from refpoints.storage.repo import CustomerRepository, LedgerRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class PointsBalance:
    """Snapshot of a customer's points."""

    customer_id: int
    total_points: int
    redeemed_points: int

    @property
    def available_points(self) -> int:
        return self.total_points - self.redeemed_points


class LedgerService:
    """Service that owns customers' point balances.

    ``apply_points`` is the only code path that changes ``total_points``.
    """

    def __init__(self, database: Database | None = None):
        self.db = database or db
        self.logger = get_logger(__name__)

    @contextmanager
    def _session(self, session: Session | None) -> Generator[Session, None, None]:
        # Join the caller's unit of work when one is given
        if session is not None:
            yield session
        else:
            with self.db.session() as own_session:
                yield own_session

    def apply_points(
        self,
        customer_id: int,
        points_delta: int,
        *,
        transaction_id: int | None = None,
        description: str | None = None,
        session: Session | None = None,
    ) -> Customer:
        """Add a signed number of points to a customer's total.

        No floor is applied: a negative delta may push ``total_points``
        below ``redeemed_points``. Redemption requests are checked against
        the available balance before their transaction is created.

        Args:
            customer_id: Customer ID
            points_delta: Points to add (negative to remove)
            transaction_id: Transaction the change belongs to, if any
            description: Optional description for the ledger entry
            session: Session of an enclosing unit of work

        Returns:
            Updated customer

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        with self._session(session) as s:
            customers = CustomerRepository(s)
            customer = customers.get_for_update(customer_id)
            if not customer:
                raise CustomerNotFoundError(customer_id)

            new_total = customer.total_points + points_delta
            customer.total_points = new_total

            LedgerRepository(s).add_entry(
                customer_id=customer_id,
                points_delta=points_delta,
                total_after=new_total,
                transaction_id=transaction_id,
                description=description,
            )

            self.logger.info(
                "points_applied",
                customer_id=customer_id,
                points_delta=points_delta,
                transaction_id=transaction_id,
                new_total=new_total,
            )

            return customer

    def get_balance(self, customer_id: int) -> PointsBalance:
        """Get a customer's current balance.

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        with self.db.session() as session:
            customer = CustomerRepository(session).get_by_id(customer_id)
            if not customer:
                raise CustomerNotFoundError(customer_id)

            return PointsBalance(
                customer_id=customer.id,
                total_points=customer.total_points,
                redeemed_points=customer.redeemed_points,
            )

    def get_history(self, customer_id: int, limit: int = 50, offset: int = 0) -> list[PointsLedgerEntry]:
        """Get a customer's balance changes, newest first."""
        with self.db.session() as session:
            return LedgerRepository(session).list_by_customer(customer_id, limit=limit, offset=offset)


# Singleton instance
ledger_service = LedgerService()
