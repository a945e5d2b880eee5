"""Tests for campaign configuration and stats."""

import pytest

from refpoints.errors import CampaignNotFoundError, InvalidCampaignSettingsError, InvalidRedemptionConfigError
from refpoints.points.rules import DEFAULT_POINT_RULES, PointRule


class TestCreateCampaign:

    def test_defaults(self, campaign_service):
        campaign = campaign_service.create_campaign(shop_name="Tea House", name="Regulars")

        assert campaign.is_active
        assert campaign.points_redemption_value == 100
        assert campaign.points_redemption_discount == 10
        assert campaign.min_purchase_amount == 0
        assert campaign.point_rules == list(DEFAULT_POINT_RULES)

    def test_rules_from_dicts(self, campaign_service):
        campaign = campaign_service.create_campaign(
            shop_name="Tea House",
            name="Regulars",
            point_rules=[{"minAmount": 0, "maxAmount": 50, "points": 2}],
        )
        assert campaign.point_rules == [PointRule(min_amount=0, max_amount=50, points=2)]

    @pytest.mark.parametrize("value,discount", [(0, 10), (100, 0), (100, 101)])
    def test_invalid_redemption_settings(self, campaign_service, value, discount):
        with pytest.raises(InvalidRedemptionConfigError):
            campaign_service.create_campaign(
                shop_name="Tea House",
                name="Regulars",
                points_redemption_value=value,
                points_redemption_discount=discount,
            )

    def test_get_missing(self, campaign_service):
        with pytest.raises(CampaignNotFoundError):
            campaign_service.get_campaign(999)


class TestUpdateSettings:

    def test_update_fields(self, campaign_service, campaign):
        updated = campaign_service.update_settings(
            campaign.id, min_purchase_amount=25, coupon_color="#112233"
        )
        assert updated.min_purchase_amount == 25
        assert updated.coupon_color == "#112233"
        assert campaign_service.get_campaign(campaign.id).min_purchase_amount == 25

    def test_point_rules_replaced_in_order(self, campaign_service, campaign):
        rules = [
            {"min_amount": 500, "max_amount": 1000, "points": 100},
            {"min_amount": 0, "max_amount": 499, "points": 1},
        ]
        updated = campaign_service.update_settings(campaign.id, point_rules=rules)
        assert [r.points for r in updated.point_rules] == [100, 1]

    def test_new_rules_apply_to_later_bills(self, campaign_service, transaction_service, customer, campaign):
        before = transaction_service.submit_purchase(customer.id, 150)
        campaign_service.update_settings(
            campaign.id, point_rules=[{"min_amount": 0, "max_amount": 1000, "points": 99}]
        )
        after = transaction_service.submit_purchase(customer.id, 150)

        assert before.points == 15
        assert after.points == 99
        assert transaction_service.get_transaction(before.id).points == 15

    def test_unknown_field(self, campaign_service, campaign):
        with pytest.raises(ValueError):
            campaign_service.update_settings(campaign.id, shop_name="Other")

    def test_invalid_redemption_value(self, campaign_service, campaign):
        with pytest.raises(InvalidRedemptionConfigError):
            campaign_service.update_settings(campaign.id, points_redemption_value=0)

    def test_missing_campaign(self, campaign_service):
        with pytest.raises(CampaignNotFoundError):
            campaign_service.update_settings(999, is_active=False)


class TestCampaignStats:

    def test_stats(self, campaign_service, customer_service, transaction_service, customer, campaign):
        friend = customer_service.register("Ben", "555", campaign_id=campaign.id)
        purchase = transaction_service.submit_purchase(friend.id, 150, referral_code=customer.referral_code)
        transaction_service.approve(purchase.id)
        referral = transaction_service.list_for_customer(customer.id)[0]
        transaction_service.approve(referral.id)
        transaction_service.submit_purchase(customer.id, 40)

        stats = campaign_service.get_stats(campaign.id)

        assert stats == {
            "campaign_id": campaign.id,
            "approved_revenue": 150.0,
            "approved_referrals": 1,
            "pending_transactions": 1,
        }

    def test_empty_campaign(self, campaign_service, campaign):
        stats = campaign_service.get_stats(campaign.id)
        assert stats["approved_revenue"] == 0
        assert stats["pending_transactions"] == 0

    def test_missing_campaign(self, campaign_service):
        with pytest.raises(CampaignNotFoundError):
            campaign_service.get_stats(999)


class TestListForShop:

    def test_lists_only_that_shop(self, campaign_service, campaign):
        second = campaign_service.create_campaign(shop_name="Corner Bakery", name="Cake Club")
        campaign_service.create_campaign(shop_name="Tea House", name="Regulars")

        listed = campaign_service.list_for_shop("Corner Bakery")
        assert [c.id for c in listed] == [campaign.id, second.id]

    def test_unknown_shop(self, campaign_service, campaign):
        assert campaign_service.list_for_shop("Nowhere") == []


class TestSettingsValidation:

    @pytest.mark.parametrize(
        "changes",
        [
            {"name": None},
            {"name": "   "},
            {"min_purchase_amount": -5},
            {"min_purchase_amount": None},
            {"is_active": None},
            {"is_active": "yes"},
            {"coupon_color": None},
            {"points_redemption_value": None},
        ],
    )
    def test_rejects_unusable_values(self, campaign_service, campaign, changes):
        with pytest.raises(InvalidCampaignSettingsError):
            campaign_service.update_settings(campaign.id, **changes)

        unchanged = campaign_service.get_campaign(campaign.id)
        assert unchanged.name == "Bread Lovers"
        assert unchanged.min_purchase_amount == 10

    def test_description_can_be_cleared(self, campaign_service, campaign):
        campaign_service.update_settings(campaign.id, description="Fresh daily")
        assert campaign_service.update_settings(campaign.id, description=None).description is None

    def test_unknown_field_is_domain_error(self, campaign_service, campaign):
        with pytest.raises(InvalidCampaignSettingsError):
            campaign_service.update_settings(campaign.id, shop_name="Other")

    def test_create_rejects_blank_names(self, campaign_service):
        with pytest.raises(InvalidCampaignSettingsError):
            campaign_service.create_campaign(shop_name=" ", name="Regulars")
        with pytest.raises(InvalidCampaignSettingsError):
            campaign_service.create_campaign(shop_name="Tea House", name="")

    def test_create_rejects_negative_minimum(self, campaign_service):
        with pytest.raises(InvalidCampaignSettingsError):
            campaign_service.create_campaign(shop_name="Tea House", name="Regulars", min_purchase_amount=-1)
