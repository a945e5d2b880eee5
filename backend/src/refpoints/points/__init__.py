"""Pure point calculations: earning tiers and redemption discounts."""

from refpoints.points.redemption import (
    RedemptionResult,
    compute_redemption,
    net_transaction_points,
    points_charged,
)
from refpoints.points.rules import DEFAULT_POINT_RULES, PointRule, evaluate_points, parse_point_rules

__all__ = [
    "DEFAULT_POINT_RULES",
    "PointRule",
    "RedemptionResult",
    "compute_redemption",
    "evaluate_points",
    "net_transaction_points",
    "parse_point_rules",
    "points_charged",
]
