"""Review states of a transaction and the moves allowed between them.

    pending ──► approved   (points reach the customer's balance)
       │
       └──────► rejected   (no balance change)

Both approved and rejected are terminal. Asking for the status a
transaction already has is accepted and changes nothing.
"""

from dataclasses import dataclass

from refpoints.errors import InvalidStatusError, InvalidTransitionError
from refpoints.storage.models import TransactionStatus

TERMINAL_STATUSES = frozenset({TransactionStatus.APPROVED, TransactionStatus.REJECTED})


@dataclass(frozen=True)
class Transition:
    """What a status request amounts to."""

    current: TransactionStatus
    target: TransactionStatus
    noop: bool
    applies_points: bool


def parse_status(value: str | TransactionStatus) -> TransactionStatus:
    """Convert a requested status into a TransactionStatus.

    Raises:
        InvalidStatusError: If the value is not a known status
    """
    if isinstance(value, TransactionStatus):
        return value
    try:
        return TransactionStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidStatusError(value) from None


def plan_transition(current: str | TransactionStatus, requested: str | TransactionStatus) -> Transition:
    """Decide how a transaction in ``current`` reacts to ``requested``.

    Raises:
        InvalidStatusError: If ``requested`` is not a known status
        InvalidTransitionError: If the transaction is terminal and the
            request names a different status
    """
    target = parse_status(requested)
    current = TransactionStatus(current)

    if current == target:
        return Transition(current=current, target=target, noop=True, applies_points=False)

    if current in TERMINAL_STATUSES:
        raise InvalidTransitionError(current.value, target.value)

    return Transition(
        current=current,
        target=target,
        noop=False,
        applies_points=target == TransactionStatus.APPROVED,
    )
