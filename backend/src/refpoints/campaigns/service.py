"""Campaign management for shops."""

from typing import Any, Iterable

from refpoints.errors import (
    CampaignNotFoundError,
    InvalidCampaignSettingsError,
    InvalidRedemptionConfigError,
)
from refpoints.logging_config import get_logger
from refpoints.points.rules import PointRule, parse_point_rules
from refpoints.storage.db import Database, db
from refpoints.storage.models import Campaign
from refpoints.storage.repo import CampaignRepository, TransactionRepository

logger = get_logger(__name__)

# Settings a shop may change after creation
UPDATABLE_FIELDS = {
    "name",
    "description",
    "points_redemption_value",
    "points_redemption_discount",
    "min_purchase_amount",
    "is_active",
    "coupon_color",
    "coupon_text_color",
}

# Columns that cannot be cleared once set
REQUIRED_FIELDS = UPDATABLE_FIELDS - {"description"}


def _validate_redemption(value: int | None, discount: int | None) -> None:
    if value is not None and value < 1:
        raise InvalidRedemptionConfigError("Redemption value must be at least 1 point")
    if discount is not None and not 1 <= discount <= 100:
        raise InvalidRedemptionConfigError("Redemption discount must be between 1 and 100%")


def _validate_settings(changes: dict[str, Any]) -> None:
    """Reject values the campaign table or the point math cannot hold."""
    cleared = sorted(field for field in REQUIRED_FIELDS if field in changes and changes[field] is None)
    if cleared:
        raise InvalidCampaignSettingsError(f"Settings cannot be empty: {', '.join(cleared)}")

    if "name" in changes and not str(changes["name"]).strip():
        raise InvalidCampaignSettingsError("Campaign name cannot be blank")
    if "min_purchase_amount" in changes and changes["min_purchase_amount"] < 0:
        raise InvalidCampaignSettingsError("Minimum purchase amount cannot be negative")
    if "is_active" in changes and not isinstance(changes["is_active"], bool):
        raise InvalidCampaignSettingsError("is_active must be true or false")

    _validate_redemption(
        changes.get("points_redemption_value"),
        changes.get("points_redemption_discount"),
    )


class CampaignService:
    """Service for creating and configuring campaigns."""

    def __init__(self, database: Database | None = None):
        self.db = database or db
        self.logger = get_logger(__name__)

    def create_campaign(
        self,
        shop_name: str,
        name: str,
        description: str | None = None,
        point_rules: Iterable[PointRule | dict[str, Any]] | None = None,
        points_redemption_value: int = 100,
        points_redemption_discount: int = 10,
        min_purchase_amount: float = 0.0,
    ) -> Campaign:
        """Create a campaign.

        Args:
            shop_name: Owning shop
            name: Campaign name
            description: Optional description
            point_rules: Ordered earning tiers (defaults when omitted)
            points_redemption_value: Points per redemption unit
            points_redemption_discount: Discount percent per unit
            min_purchase_amount: Smallest qualifying bill

        Returns:
            Created campaign

        Raises:
            InvalidCampaignSettingsError: If a setting is invalid
        """
        if not shop_name or not shop_name.strip():
            raise InvalidCampaignSettingsError("Shop name cannot be blank")
        _validate_settings({
            "name": name,
            "min_purchase_amount": min_purchase_amount,
            "points_redemption_value": points_redemption_value,
            "points_redemption_discount": points_redemption_discount,
        })

        with self.db.session() as session:
            return CampaignRepository(session).create(
                shop_name=shop_name,
                name=name,
                description=description,
                point_rules=parse_point_rules(point_rules) if point_rules is not None else None,
                points_redemption_value=points_redemption_value,
                points_redemption_discount=points_redemption_discount,
                min_purchase_amount=min_purchase_amount,
            )

    def get_campaign(self, campaign_id: int) -> Campaign:
        """Get campaign by ID.

        Raises:
            CampaignNotFoundError: If the campaign does not exist
        """
        with self.db.session() as session:
            campaign = CampaignRepository(session).get_by_id(campaign_id)
            if not campaign:
                raise CampaignNotFoundError(campaign_id)
            return campaign

    def list_for_shop(self, shop_name: str) -> list[Campaign]:
        """All campaigns of a shop, oldest first."""
        with self.db.session() as session:
            return CampaignRepository(session).list_by_shop(shop_name.strip())

    def update_settings(self, campaign_id: int, **changes: Any) -> Campaign:
        """Update campaign settings, including its point rules.

        ``point_rules`` replaces the whole tier list and keeps the given
        order.

        Raises:
            CampaignNotFoundError: If the campaign does not exist
            InvalidCampaignSettingsError: For unknown keys or unusable values
        """
        unknown = set(changes) - UPDATABLE_FIELDS - {"point_rules"}
        if unknown:
            raise InvalidCampaignSettingsError(f"Unknown campaign settings: {', '.join(sorted(unknown))}")
        _validate_settings(changes)

        with self.db.session() as session:
            campaign = CampaignRepository(session).get_by_id(campaign_id)
            if not campaign:
                raise CampaignNotFoundError(campaign_id)

            rules = changes.pop("point_rules", None)
            if rules is not None:
                campaign.point_rules = parse_point_rules(rules)
            for field, value in changes.items():
                setattr(campaign, field, value)
            session.flush()

            self.logger.info(
                "campaign_updated",
                campaign_id=campaign_id,
                fields=sorted(changes) + (["point_rules"] if rules is not None else []),
            )

            return campaign

    def get_stats(self, campaign_id: int) -> dict[str, Any]:
        """Approved revenue, approved referrals and pending review count."""
        with self.db.session() as session:
            if not CampaignRepository(session).get_by_id(campaign_id):
                raise CampaignNotFoundError(campaign_id)
            stats = TransactionRepository(session).campaign_summary(campaign_id)

        return {"campaign_id": campaign_id, **stats}


# Singleton instance
campaign_service = CampaignService()
