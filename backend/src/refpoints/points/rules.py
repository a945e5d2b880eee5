"""Tiered point rules for purchases.

A campaign carries an ordered list of rules. Each rule awards a fixed
number of points to any purchase whose amount falls inside its range.
The list is scanned in order and the first matching rule wins, so a shop
that configures overlapping ranges still gets a deterministic result.
"""

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Sequence


@dataclass(frozen=True)
class PointRule:
    """One tier: purchases between min_amount and max_amount earn points."""

    min_amount: float
    max_amount: float
    points: int

    def matches(self, amount: float) -> bool:
        # Both bounds are inclusive
        return self.min_amount <= amount <= self.max_amount

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PointRule":
        """Build a rule from a stored or submitted mapping.

        Accepts both the camelCase keys sent by the web client and the
        snake_case keys used in storage.
        """
        return cls(
            min_amount=float(data.get("min_amount", data.get("minAmount", 0))),
            max_amount=float(data.get("max_amount", data.get("maxAmount", 0))),
            points=int(data.get("points", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Tiers a new campaign starts with
DEFAULT_POINT_RULES: tuple[PointRule, ...] = (
    PointRule(min_amount=0, max_amount=100, points=10),
    PointRule(min_amount=100, max_amount=200, points=20),
    PointRule(min_amount=200, max_amount=500, points=50),
)


def parse_point_rules(raw: Iterable[dict[str, Any] | PointRule] | None) -> list[PointRule]:
    """Convert stored rule data into PointRule objects, keeping their order."""
    if not raw:
        return []
    return [item if isinstance(item, PointRule) else PointRule.from_dict(item) for item in raw]


def evaluate_points(amount: float, rules: Sequence[PointRule] | None) -> int:
    """Return the points earned by a purchase of the given amount.

    Args:
        amount: Purchase amount (non-negative)
        rules: Ordered point rules

    Returns:
        Points of the first matching rule, or 0 when nothing matches
    """
    for rule in rules or ():
        if rule.matches(amount):
            return rule.points
    return 0
