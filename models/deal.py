from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import uuid

from sqlalchemy import Column, Text
from sqlmodel import SQLModel, Field, Relationship

from models.enums import DealStatus, DiscountType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class LineItem(SQLModel, table=True):
    __tablename__ = "deal_line_item"

    id: str = Field(default_factory=_new_id, primary_key=True)
    deal_id: Optional[str] = Field(default=None, foreign_key="deal.id", index=True)

    description: str
    quantity: Decimal = Field(default=Decimal("1"), max_digits=12, decimal_places=3)
    unit_price: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=4)
    discount_percent: Decimal = Field(default=Decimal("0.00"), max_digits=5, decimal_places=2)
    tax_percent: Decimal = Field(default=Decimal("0.00"), max_digits=7, decimal_places=3)

    # Derived by services.totals, never set by callers
    total: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)

    order: int = Field(default=0)

    deal: Optional["Deal"] = Relationship(back_populates="line_items")


class Deal(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    quote_number: Optional[str] = Field(default=None, unique=True, index=True, max_length=20)
    status: DealStatus = Field(default=DealStatus.DRAFT)
    currency: str = Field(default="USD", max_length=3)

    # Pricing inputs
    discount_type: DiscountType = Field(default=DiscountType.PERCENTAGE)
    discount_value: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    tax_rate: Decimal = Field(default=Decimal("0.00"), max_digits=7, decimal_places=3)

    # Derived totals (recomputed together on every save)
    subtotal: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2, index=True)

    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    terms: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    expiry_date: Optional[datetime] = Field(default=None)

    # Electronic signature
    signature_required: bool = Field(default=True)
    signature_date: Optional[datetime] = Field(default=None)
    signer_name: Optional[str] = Field(default=None, max_length=200)
    signer_email: Optional[str] = Field(default=None, max_length=255)
    signer_title: Optional[str] = Field(default=None, max_length=200)
    signature_image: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    pdf_url: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    line_items: list[LineItem] = Relationship(
        back_populates="deal",
        sa_relationship_kwargs={
            "order_by": "LineItem.order",
            "cascade": "all, delete-orphan",
            "lazy": "selectin",
        },
    )

    @property
    def signed_by(self) -> Optional[dict]:
        if not self.signer_name:
            return None
        return {
            "name": self.signer_name,
            "email": self.signer_email,
            "title": self.signer_title,
            "signature_image": self.signature_image,
        }
