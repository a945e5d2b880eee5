"""Database models for campaigns, customers and their point transactions."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from refpoints.points.rules import DEFAULT_POINT_RULES, PointRule, parse_point_rules


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class TransactionType(str, Enum):
    """Kinds of point-bearing events."""
    PURCHASE = "purchase"      # Bill uploaded by a customer
    REFERRAL = "referral"      # Someone bought with this customer's code
    REDEMPTION = "redemption"  # Points spent against a bill


class TransactionStatus(str, Enum):
    """Review state of a transaction."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Campaign(Base):
    """A shop's earning and redemption rules."""

    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Ordered list of {min_amount, max_amount, points}
    point_rules_json: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=lambda: [r.to_dict() for r in DEFAULT_POINT_RULES]
    )

    # Redemption: N points = X% off
    points_redemption_value: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    points_redemption_discount: Mapped[int] = mapped_column(Integer, default=10, nullable=False)

    min_purchase_amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Styling
    coupon_color: Mapped[str] = mapped_column(String(20), default="#2563eb", nullable=False)
    coupon_text_color: Mapped[str] = mapped_column(String(20), default="#ffffff", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    customers: Mapped[list["Customer"]] = relationship("Customer", back_populates="campaign")

    @property
    def point_rules(self) -> list[PointRule]:
        return parse_point_rules(self.point_rules_json)

    @point_rules.setter
    def point_rules(self, rules: list[PointRule]) -> None:
        self.point_rules_json = [rule.to_dict() for rule in parse_point_rules(rules)]

    def __repr__(self) -> str:
        return f"<Campaign(id={self.id}, name='{self.name}', active={self.is_active})>"


class Customer(Base):
    """Affiliate customer with a point balance."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("campaigns.id"), nullable=True, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    referral_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)

    # Ledger
    total_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    redeemed_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    campaign: Mapped[Campaign | None] = relationship("Campaign", back_populates="customers")
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction", back_populates="customer"
    )

    @property
    def available_points(self) -> int:
        return self.total_points - self.redeemed_points

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, code={self.referral_code}, points={self.total_points})>"


class Transaction(Base):
    """A purchase, referral or redemption awaiting or past review."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=False, index=True
    )
    campaign_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("campaigns.id"), nullable=True, index=True
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)  # Signed, net of redemption
    points_to_redeem: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=TransactionStatus.PENDING.value, nullable=False, index=True
    )

    # Evidence
    bill_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    referral_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Set once the points of an approved transaction reached the balance
    ledger_applied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    customer: Mapped[Customer] = relationship("Customer", back_populates="transactions")

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, type={self.type}, status={self.status}, points={self.points})>"


class PointsLedgerEntry(Base):
    """One change to a customer's point balance."""

    __tablename__ = "points_ledger"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=False, index=True
    )
    # Unique: a transaction reaches the balance at most once
    transaction_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("transactions.id"), nullable=True, unique=True
    )

    points_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    total_after: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PointsLedgerEntry(customer={self.customer_id}, delta={self.points_delta})>"
