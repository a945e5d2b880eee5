"""Customer point balances."""

from refpoints.ledger.service import LedgerService, PointsBalance, ledger_service

__all__ = ["LedgerService", "PointsBalance", "ledger_service"]
