"""Transaction lifecycle module.

Bills and redemptions enter as pending transactions. A shop reviewer then
approves or rejects each one exactly once; approval credits the
transaction's points to the customer.
"""

from refpoints.transactions.service import RedemptionOutcome, TransactionService, transaction_service
from refpoints.transactions.state import TERMINAL_STATUSES, Transition, parse_status, plan_transition

__all__ = [
    "RedemptionOutcome",
    "TERMINAL_STATUSES",
    "TransactionService",
    "Transition",
    "parse_status",
    "plan_transition",
    "transaction_service",
]
