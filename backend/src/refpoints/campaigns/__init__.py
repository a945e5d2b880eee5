"""Shop campaigns: earning tiers and redemption settings."""

from refpoints.campaigns.service import CampaignService, campaign_service

__all__ = ["CampaignService", "campaign_service"]
