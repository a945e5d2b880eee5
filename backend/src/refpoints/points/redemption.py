"""Conversion of redeemed points into a bill discount."""

from dataclasses import dataclass

from refpoints.errors import InvalidRedemptionConfigError
from refpoints.settings import settings

MAX_DISCOUNT_PCT = 100


@dataclass(frozen=True)
class RedemptionResult:
    """Outcome of applying points to a bill."""

    discount_amount: float
    final_amount: float
    redemption_units: int
    effective_discount_pct: float


def compute_redemption(
    points_to_redeem: int,
    bill_amount: float,
    redemption_value: int,
    redemption_discount_pct: float,
    cap_discount: bool | None = None,
) -> RedemptionResult:
    """Work out the discount a number of points buys on a bill.

    Only whole multiples of ``redemption_value`` count; leftover points buy
    nothing. The combined percentage is not clamped unless ``cap_discount``
    is set (it defaults to ``settings.cap_redemption_discount``), so an
    uncapped call with a very large point count can discount more than the
    bill. ``final_amount`` never drops below zero either way.

    Args:
        points_to_redeem: Points the customer wants to spend
        bill_amount: Bill total before discount
        redemption_value: Points per redemption unit
        redemption_discount_pct: Discount percent granted per unit
        cap_discount: Clamp the combined percentage to 100

    Returns:
        RedemptionResult

    Raises:
        InvalidRedemptionConfigError: If redemption_value is not positive
    """
    if redemption_value <= 0:
        raise InvalidRedemptionConfigError(
            f"Redemption value must be positive, got {redemption_value}"
        )
    if cap_discount is None:
        cap_discount = settings.cap_redemption_discount

    units = max(points_to_redeem, 0) // redemption_value
    effective_pct = units * redemption_discount_pct
    if cap_discount:
        effective_pct = min(effective_pct, MAX_DISCOUNT_PCT)

    discount_amount = bill_amount * effective_pct / 100
    final_amount = max(0.0, bill_amount - discount_amount)

    return RedemptionResult(
        discount_amount=discount_amount,
        final_amount=final_amount,
        redemption_units=units,
        effective_discount_pct=effective_pct,
    )


def points_charged(points_to_redeem: int) -> int:
    """Points taken from the balance for a redemption request."""
    return points_to_redeem if points_to_redeem > 0 else 0


def net_transaction_points(earned_points: int, points_to_redeem: int) -> int:
    """Points delta of a transaction that both earns and redeems.

    Earning and spending are folded into a single transaction, so the
    result is negative when more points are spent than earned.
    """
    return earned_points - points_charged(points_to_redeem)
