"""Transaction API v1 endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from refpoints.api.deps import get_transaction_service
from refpoints.logging_config import get_logger
from refpoints.storage.models import TransactionType
from refpoints.transactions.service import TransactionService

logger = get_logger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])

MAX_PAGE_SIZE = 500


# ==================== MODELS ====================


class TransactionResponse(BaseModel):
    """A transaction as shown to customers and reviewers."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    campaign_id: int | None
    type: str
    amount: float
    points: int
    points_to_redeem: int
    status: str
    bill_image_url: str | None
    referral_code: str | None
    created_at: datetime
    reviewed_at: datetime | None


class CreateTransactionRequest(BaseModel):
    """Raw transaction with precomputed points."""
    customer_id: int
    campaign_id: int | None = None
    type: TransactionType
    amount: float = Field(default=0.0, ge=0)
    points: int
    bill_image_url: str | None = None
    referral_code: str | None = None


class SubmitPurchaseRequest(BaseModel):
    """Bill upload; points are computed from the campaign tiers."""
    customer_id: int
    amount: float = Field(ge=0)
    campaign_id: int | None = None
    bill_image_url: str | None = None
    referral_code: str | None = None


class RedemptionRequest(BaseModel):
    """Spend points against a bill."""
    customer_id: int
    points_to_redeem: int = Field(gt=0)
    bill_amount: float = Field(ge=0)
    campaign_id: int | None = None
    bill_image_url: str | None = None


class RedemptionResponse(BaseModel):
    """Pending redemption and the discount it grants."""
    transaction: TransactionResponse
    discount_amount: float
    final_amount: float
    redemption_units: int
    earned_points: int


class StatusChangeRequest(BaseModel):
    """Reviewer decision."""
    status: str


# ==================== ENDPOINTS ====================


@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    customer_id: int | None = None,
    campaign_id: int | None = None,
    status_filter: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    service: TransactionService = Depends(get_transaction_service),
):
    """List transactions for a customer or a campaign, newest first.

    Returns the full list unless ``limit`` is given.
    """
    if customer_id is not None:
        return service.list_for_customer(customer_id, limit=limit, offset=offset)
    if campaign_id is not None:
        return service.list_for_campaign(campaign_id, status=status_filter, limit=limit, offset=offset)

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="customer_id or campaign_id is required",
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    service: TransactionService = Depends(get_transaction_service),
):
    """Get a single transaction."""
    return service.get_transaction(transaction_id)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: CreateTransactionRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """Create a pending transaction with precomputed points."""
    return service.create_transaction(
        customer_id=body.customer_id,
        campaign_id=body.campaign_id,
        type=body.type,
        amount=body.amount,
        points=body.points,
        bill_image_url=body.bill_image_url,
        referral_code=body.referral_code,
    )


@router.post("/purchase", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def submit_purchase(
    body: SubmitPurchaseRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """Upload a purchase bill for review."""
    return service.submit_purchase(
        customer_id=body.customer_id,
        amount=body.amount,
        campaign_id=body.campaign_id,
        bill_image_url=body.bill_image_url,
        referral_code=body.referral_code,
    )


@router.post("/redemption", response_model=RedemptionResponse, status_code=status.HTTP_201_CREATED)
async def request_redemption(
    body: RedemptionRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """Redeem points against a bill."""
    outcome = service.request_redemption(
        customer_id=body.customer_id,
        points_to_redeem=body.points_to_redeem,
        bill_amount=body.bill_amount,
        campaign_id=body.campaign_id,
        bill_image_url=body.bill_image_url,
    )

    return RedemptionResponse(
        transaction=TransactionResponse.model_validate(outcome.transaction),
        discount_amount=outcome.redemption.discount_amount,
        final_amount=outcome.redemption.final_amount,
        redemption_units=outcome.redemption.redemption_units,
        earned_points=outcome.earned_points,
    )


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction_status(
    transaction_id: int,
    body: StatusChangeRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """Approve or reject a pending transaction.

    Repeating a decision that was already made is accepted and changes
    nothing.
    """
    return service.request_status_change(transaction_id, body.status)
