"""Customer API v1 endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from refpoints.api.deps import get_customer_service, get_ledger_service
from refpoints.api.rate_limit import code_lookup_limit, limiter
from refpoints.customers.service import CustomerService
from refpoints.ledger.service import LedgerService

router = APIRouter(prefix="/customers", tags=["customers"])


# ==================== MODELS ====================


class RegisterCustomerRequest(BaseModel):
    """Join a campaign as an affiliate."""
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=3, max_length=50)
    campaign_id: int | None = None


class CustomerResponse(BaseModel):
    """Customer profile with balance."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    campaign_id: int | None
    name: str
    phone: str
    referral_code: str
    total_points: int
    redeemed_points: int
    available_points: int
    created_at: datetime


class BalanceResponse(BaseModel):
    """Current points of a customer."""
    customer_id: int
    total_points: int
    redeemed_points: int
    available_points: int


class LedgerEntryResponse(BaseModel):
    """One balance change."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    transaction_id: int | None
    points_delta: int
    total_after: int
    description: str | None
    created_at: datetime


class ValidateCodeResponse(BaseModel):
    """Response from code validation."""
    valid: bool
    referrer_name: str | None = None


# ==================== ENDPOINTS ====================


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def register_customer(
    body: RegisterCustomerRequest,
    service: CustomerService = Depends(get_customer_service),
):
    """Register a customer and issue a referral code."""
    return service.register(name=body.name, phone=body.phone, campaign_id=body.campaign_id)


@router.get("/code/{code}", response_model=ValidateCodeResponse)
@limiter.limit(code_lookup_limit)
async def validate_referral_code(
    request: Request,
    code: str,
    service: CustomerService = Depends(get_customer_service),
):
    """Check a referral code before it is entered on a bill.

    Only the first name of the referrer is returned.
    """
    customer = service.get_by_referral_code(code)
    if not customer:
        return ValidateCodeResponse(valid=False)

    return ValidateCodeResponse(
        valid=True,
        referrer_name=customer.name.split()[0] if customer.name else None,
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    """Get a customer profile."""
    return service.get_customer(customer_id)


@router.get("/{customer_id}/balance", response_model=BalanceResponse)
async def get_balance(
    customer_id: int,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Get a customer's point balance."""
    balance = ledger.get_balance(customer_id)
    return BalanceResponse(
        customer_id=balance.customer_id,
        total_points=balance.total_points,
        redeemed_points=balance.redeemed_points,
        available_points=balance.available_points,
    )


@router.get("/{customer_id}/ledger", response_model=list[LedgerEntryResponse])
async def get_ledger(
    customer_id: int,
    limit: int = 50,
    offset: int = 0,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Get a customer's balance history, newest first."""
    if limit < 1 or limit > 200:
        raise HTTPException(status_code=400, detail="limit must be between 1 and 200")
    return ledger.get_history(customer_id, limit=limit, offset=offset)
