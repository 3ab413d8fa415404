"""Pydantic schemas for Deal and quote signature API endpoints."""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal

from models.enums import DealStatus, DiscountType

EMAIL_PATTERN = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"


class LineItemCreate(BaseModel):
    """Schema for a line item; its total is always computed server-side."""
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(Decimal("1"), ge=0)
    unit_price: Decimal = Field(..., ge=0)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    tax_percent: Decimal = Field(Decimal("0"), ge=0)
    order: int | None = None


class LineItemResponse(BaseModel):
    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    discount_percent: Decimal
    tax_percent: Decimal
    total: Decimal
    order: int

    model_config = {"from_attributes": True}


class DealCreate(BaseModel):
    """Schema for creating a new deal (quote)."""
    name: str = Field(..., min_length=1, max_length=200)
    currency: str = Field("USD", min_length=3, max_length=3)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Decimal = Field(Decimal("0"), ge=0)
    signature_required: bool = True
    expiry_date: datetime | None = None
    notes: str | None = None
    terms: str | None = None
    line_items: list[LineItemCreate] = Field(default_factory=list)


class DealUpdate(BaseModel):
    """Schema for updating a deal. Sending line_items replaces the whole list."""
    name: str | None = Field(None, min_length=1, max_length=200)
    currency: str | None = Field(None, min_length=3, max_length=3)
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, ge=0)
    tax_rate: Decimal | None = Field(None, ge=0)
    signature_required: bool | None = None
    expiry_date: datetime | None = None
    notes: str | None = None
    terms: str | None = None
    line_items: list[LineItemCreate] | None = None


class SignedByResponse(BaseModel):
    name: str
    email: str | None
    title: str | None
    signature_image: str | None


class DealResponse(BaseModel):
    """Schema for deal API responses."""
    id: str
    name: str
    quote_number: str | None
    status: DealStatus
    currency: str
    discount_type: DiscountType
    discount_value: Decimal
    tax_rate: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    amount: Decimal
    signature_required: bool
    signature_date: datetime | None
    signed_by: SignedByResponse | None
    pdf_url: str | None
    expiry_date: datetime | None
    notes: str | None
    terms: str | None
    line_items: list[LineItemResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DealListResponse(BaseModel):
    """Schema for paginated deal list responses."""
    deals: list[DealResponse]
    total: int


class StatusUpdate(BaseModel):
    status: DealStatus


class PdfResponse(BaseModel):
    pdf_url: str


class PdfUrlUpdate(BaseModel):
    """Reference to a PDF rendered outside this service."""
    pdf_url: str = Field(..., min_length=1, max_length=500)


class SignatureRequestCreate(BaseModel):
    recipient_email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    recipient_name: str = Field(..., min_length=1, max_length=200)


class SignatureRequestResponse(BaseModel):
    message: str
    signature_url: str
    email_delivered: bool


class PublicDealSummary(BaseModel):
    name: str
    quote_number: str | None
    total_amount: Decimal
    currency: str
    status: DealStatus


class TokenVerificationResponse(BaseModel):
    deal_id: str
    email: str
    deal: PublicDealSummary


class SignatureSubmit(BaseModel):
    # Presence is enforced by the lifecycle so missing fields map to InvalidSignature
    name: str = ""
    email: str = ""
    title: str | None = None
    signature_image: str = ""  # Base64 PNG, optionally as a data URL


class SignatureResponse(BaseModel):
    message: str
    status: DealStatus
    signature_date: datetime
