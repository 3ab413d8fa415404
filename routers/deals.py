"""API routes for deal (quote) management."""

from fastapi import APIRouter, Depends, status, Query

from core.dependencies import get_lifecycle, get_repository
from db.repository import SqlDealRepository
from models.deal import Deal, LineItem
from models.enums import DealStatus
from schemas.deal import (
    DealCreate,
    DealListResponse,
    DealResponse,
    DealUpdate,
    LineItemCreate,
    PdfUrlUpdate,
    SignatureSubmit,
    StatusUpdate,
)
from services.lifecycle import DealLifecycle, ensure_editable

router = APIRouter()

PRICING_FIELDS = ("currency", "discount_type", "discount_value", "tax_rate")


def build_line_items(items: list[LineItemCreate]) -> list[LineItem]:
    return [
        LineItem(
            description=item_in.description,
            quantity=item_in.quantity,
            unit_price=item_in.unit_price,
            discount_percent=item_in.discount_percent,
            tax_percent=item_in.tax_percent,
            order=item_in.order if item_in.order is not None else index,
        )
        for index, item_in in enumerate(items)
    ]


@router.post("/deals", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    deal_data: DealCreate,
    repository: SqlDealRepository = Depends(get_repository),
):
    """Create a draft deal; totals and quote number are assigned on save."""
    deal = Deal(
        name=deal_data.name,
        currency=deal_data.currency.upper(),
        discount_type=deal_data.discount_type,
        discount_value=deal_data.discount_value,
        tax_rate=deal_data.tax_rate,
        signature_required=deal_data.signature_required,
        expiry_date=deal_data.expiry_date,
        notes=deal_data.notes,
        terms=deal_data.terms,
        status=DealStatus.DRAFT,
    )
    deal.line_items = build_line_items(deal_data.line_items)
    return repository.save_deal(deal)


@router.get("/deals", response_model=DealListResponse)
async def list_deals(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    repository: SqlDealRepository = Depends(get_repository),
):
    """List deals, newest first, with pagination."""
    deals, total = repository.list_deals(offset=(page - 1) * limit, limit=limit)
    return DealListResponse(deals=deals, total=total)


@router.get("/deals/{deal_id}", response_model=DealResponse)
async def get_deal(
    deal_id: str,
    repository: SqlDealRepository = Depends(get_repository),
):
    return repository.load_deal(deal_id)


@router.put("/deals/{deal_id}", response_model=DealResponse)
async def update_deal(
    deal_id: str,
    deal_data: DealUpdate,
    repository: SqlDealRepository = Depends(get_repository),
):
    """Update a deal. Every save recomputes all line and deal totals."""
    deal = repository.load_deal(deal_id)
    changes = deal_data.model_dump(exclude_unset=True)

    if deal_data.line_items is not None or any(field in changes for field in PRICING_FIELDS):
        ensure_editable(deal)

    if deal_data.name is not None: deal.name = deal_data.name
    if deal_data.currency is not None: deal.currency = deal_data.currency.upper()
    if deal_data.discount_type is not None: deal.discount_type = deal_data.discount_type
    if deal_data.discount_value is not None: deal.discount_value = deal_data.discount_value
    if deal_data.tax_rate is not None: deal.tax_rate = deal_data.tax_rate
    if deal_data.signature_required is not None: deal.signature_required = deal_data.signature_required
    for field in ("expiry_date", "notes", "terms"):
        if field in changes:
            setattr(deal, field, changes[field])

    if deal_data.line_items is not None:
        deal.line_items = build_line_items(deal_data.line_items)

    return repository.save_deal(deal)


@router.put("/deals/{deal_id}/status", response_model=DealResponse)
async def update_deal_status(
    deal_id: str,
    status_data: StatusUpdate,
    lifecycle: DealLifecycle = Depends(get_lifecycle),
):
    """Operator-driven status change (reject, expire, convert, accept without signature)."""
    return lifecycle.update_status(deal_id, status_data.status)


@router.put("/deals/{deal_id}/signature", response_model=DealResponse)
async def record_deal_signature(
    deal_id: str,
    sign_data: SignatureSubmit,
    lifecycle: DealLifecycle = Depends(get_lifecycle),
):
    """Record a signature captured by an operator, accepting the deal."""
    return lifecycle.record_signature(
        deal_id,
        name=sign_data.name,
        email=sign_data.email,
        signature_image=sign_data.signature_image,
        title=sign_data.title,
    )


@router.put("/deals/{deal_id}/pdf", response_model=DealResponse)
async def update_deal_pdf(
    deal_id: str,
    pdf_data: PdfUrlUpdate,
    lifecycle: DealLifecycle = Depends(get_lifecycle),
):
    """Record where an externally rendered PDF lives. The status is unchanged."""
    return lifecycle.attach_pdf(deal_id, pdf_data.pdf_url)


@router.delete("/deals/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deal(
    deal_id: str,
    repository: SqlDealRepository = Depends(get_repository),
):
    repository.delete_deal(deal_id)
