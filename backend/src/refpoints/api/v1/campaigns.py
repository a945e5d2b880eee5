"""Campaign API v1 endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field

from refpoints.api.deps import get_campaign_service, get_customer_service
from refpoints.api.v1.customers import CustomerResponse
from refpoints.campaigns.service import CampaignService
from refpoints.customers.service import CustomerService

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


# ==================== MODELS ====================


class PointRuleModel(BaseModel):
    """One earning tier."""
    model_config = ConfigDict(from_attributes=True)

    min_amount: float = Field(ge=0)
    max_amount: float = Field(ge=0)
    points: int = Field(ge=0)


class CreateCampaignRequest(BaseModel):
    """New campaign for a shop."""
    shop_name: str
    name: str
    description: str | None = None
    point_rules: list[PointRuleModel] | None = None
    points_redemption_value: int = Field(default=100, ge=1)
    points_redemption_discount: int = Field(default=10, ge=1, le=100)
    min_purchase_amount: float = Field(default=0.0, ge=0)


class UpdateCampaignRequest(BaseModel):
    """Partial settings update."""
    name: str | None = None
    description: str | None = None
    point_rules: list[PointRuleModel] | None = None
    points_redemption_value: int | None = Field(default=None, ge=1)
    points_redemption_discount: int | None = Field(default=None, ge=1, le=100)
    min_purchase_amount: float | None = Field(default=None, ge=0)
    is_active: bool | None = None
    coupon_color: str | None = None
    coupon_text_color: str | None = None


class CampaignResponse(BaseModel):
    """Campaign settings."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    shop_name: str
    name: str
    description: str | None
    point_rules: list[PointRuleModel]
    points_redemption_value: int
    points_redemption_discount: int
    min_purchase_amount: float
    is_active: bool
    coupon_color: str
    coupon_text_color: str
    created_at: datetime


class CampaignStatsResponse(BaseModel):
    """Review dashboard figures."""
    campaign_id: int
    approved_revenue: float
    approved_referrals: int
    pending_transactions: int


# ==================== ENDPOINTS ====================


@router.post("", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    body: CreateCampaignRequest,
    service: CampaignService = Depends(get_campaign_service),
):
    """Create a campaign."""
    return service.create_campaign(
        shop_name=body.shop_name,
        name=body.name,
        description=body.description,
        point_rules=[rule.model_dump() for rule in body.point_rules] if body.point_rules is not None else None,
        points_redemption_value=body.points_redemption_value,
        points_redemption_discount=body.points_redemption_discount,
        min_purchase_amount=body.min_purchase_amount,
    )


@router.get("", response_model=list[CampaignResponse])
async def list_campaigns(
    shop_name: str = Query(min_length=1),
    service: CampaignService = Depends(get_campaign_service),
):
    """List a shop's campaigns."""
    return service.list_for_shop(shop_name)


@router.get("/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(
    campaign_id: int,
    service: CampaignService = Depends(get_campaign_service),
):
    """Get campaign settings."""
    return service.get_campaign(campaign_id)


@router.patch("/{campaign_id}", response_model=CampaignResponse)
async def update_campaign(
    campaign_id: int,
    body: UpdateCampaignRequest,
    service: CampaignService = Depends(get_campaign_service),
):
    """Update campaign settings, including point rules."""
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    return service.update_settings(campaign_id, **changes)


@router.get("/{campaign_id}/stats", response_model=CampaignStatsResponse)
async def get_campaign_stats(
    campaign_id: int,
    service: CampaignService = Depends(get_campaign_service),
):
    """Approved revenue, approved referrals and pending review count."""
    return service.get_stats(campaign_id)


@router.get("/{campaign_id}/customers", response_model=list[CustomerResponse])
async def list_campaign_customers(
    campaign_id: int,
    customers: CustomerService = Depends(get_customer_service),
):
    """List the customers who joined a campaign."""
    return customers.list_for_campaign(campaign_id)
