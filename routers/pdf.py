"""API routes for PDF generation."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from core.config import settings
from core.dependencies import get_lifecycle, get_repository
from db.repository import SqlDealRepository
from schemas.deal import PdfResponse
from services.lifecycle import DealLifecycle
from services.pdf_generator import PdfRenderer, generate_quote_pdf, get_pdf_renderer

router = APIRouter()
logger = logging.getLogger("pdf_generator")


# Sync handlers: rendering and file writes block
@router.post("/quotes/{deal_id}/generate-pdf", response_model=PdfResponse)
def generate_pdf(
    deal_id: str,
    repository: SqlDealRepository = Depends(get_repository),
    lifecycle: DealLifecycle = Depends(get_lifecycle),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
):
    """
    Render the quote PDF and record its location on the deal.

    The deal status is left untouched.
    """
    deal = repository.load_deal(deal_id)

    try:
        pdf_url = renderer.render(deal)
    except Exception as e:
        logger.exception(f"PDF generation failed for deal {deal_id}")
        raise HTTPException(status_code=500, detail=f"Failed to generate PDF: {str(e)}")

    lifecycle.attach_pdf(deal_id, pdf_url)
    return PdfResponse(pdf_url=pdf_url)


@router.get("/quotes/{deal_id}/pdf")
def get_pdf(
    deal_id: str,
    repository: SqlDealRepository = Depends(get_repository),
):
    """Stream the quote PDF inline without storing it."""
    deal = repository.load_deal(deal_id)

    try:
        pdf_bytes = generate_quote_pdf(deal, settings.company_name)
    except Exception as e:
        logger.exception(f"PDF generation failed for deal {deal_id}")
        raise HTTPException(status_code=500, detail=f"Failed to generate PDF: {str(e)}")

    filename = f"{deal.quote_number}.pdf"

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"inline; filename={filename}"
        }
    )
