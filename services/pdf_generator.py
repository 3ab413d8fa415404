"""PDF generation service for quotes using ReportLab."""

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, Image
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_RIGHT
from io import BytesIO
from pathlib import Path
import base64
import html
import logging
import re
import uuid

from core.config import settings
from models.deal import Deal
from models.enums import DealStatus, DiscountType
from services.money import to_decimal

logger = logging.getLogger("pdf_generator")


def _text(value: str) -> str:
    return html.escape(value, quote=False)


def _money(value, currency: str) -> str:
    return f"{float(value):.2f} {currency}"


def _signature_image(data: str):
    if "," in data:
        data = data.split(",", 1)[1]
    sig_bytes = base64.b64decode(data, validate=True)
    img = Image(BytesIO(sig_bytes), width=4*cm, height=1.5*cm, kind='proportional')
    img.hAlign = 'LEFT'
    return img


def generate_quote_pdf(deal: Deal, company_name: str) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=2*cm, leftMargin=2*cm,
                           topMargin=2*cm, bottomMargin=2*cm,
                           title=f"Quote {deal.quote_number}", author=company_name)

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'QuoteTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#1a1a1a'),
        spaceAfter=10,
        alignment=TA_RIGHT
    )

    company_name_style = ParagraphStyle(
        'CompanyName',
        parent=styles['Heading2'],
        fontSize=16,
        textColor=colors.HexColor('#1a1a1a'),
        spaceAfter=2,
    )

    normal_style = ParagraphStyle(
        'Body',
        parent=styles['Normal'],
        fontSize=10,
        leading=14
    )

    right_align_style = ParagraphStyle(
        'RightAlign',
        parent=normal_style,
        alignment=TA_RIGHT
    )

    small_style = ParagraphStyle('Small', parent=normal_style, fontSize=8, textColor=colors.gray)

    currency = deal.currency

    # Header: company on the left, quote reference on the right
    left_column = [Paragraph(_text(company_name), company_name_style)]

    right_column = [
        Paragraph("QUOTE", title_style),
        Paragraph(f"No. {deal.quote_number}", right_align_style),
        Paragraph(f"Date: {deal.created_at.strftime('%Y-%m-%d')}", right_align_style),
    ]
    if deal.expiry_date:
        right_column.append(Paragraph(f"Valid until: {deal.expiry_date.strftime('%Y-%m-%d')}", right_align_style))
    right_column.append(Paragraph(f"Status: {deal.status.value}", right_align_style))
    right_column.append(Spacer(1, 0.5*cm))
    right_column.append(Paragraph(f"<b>{_text(deal.name)}</b>", right_align_style))

    header_table = Table([[left_column, right_column]], colWidths=[9*cm, 8*cm])
    header_table.setStyle(TableStyle([
        ('VALIGN', (0,0), (-1,-1), 'TOP'),
        ('LEFTPADDING', (0,0), (-1,-1), 0),
        ('RIGHTPADDING', (0,0), (-1,-1), 0),
    ]))
    elements.append(header_table)
    elements.append(Spacer(1, 1*cm))

    # --- Line Items Table ---
    items_data = [['Description', 'Qty', 'Unit Price', 'Disc.', 'Tax', 'Total']]
    for item in deal.line_items:
        items_data.append([
            Paragraph(_text(item.description), normal_style),
            f"{to_decimal(item.quantity).normalize():f}",
            _money(item.unit_price, currency),
            f"{float(item.discount_percent):g}%",
            f"{float(item.tax_percent):g}%",
            _money(item.total, currency),
        ])

    items_table = Table(items_data, colWidths=[6*cm, 1.5*cm, 3*cm, 1.5*cm, 1.5*cm, 3.5*cm])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#111827')),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 10),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('TOPPADDING', (0, 0), (-1, 0), 10),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#e5e7eb')),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.5*cm))

    # --- Totals Section ---
    totals_data = [['Subtotal:', _money(deal.subtotal, currency)]]
    if deal.discount_value and deal.discount_value > 0:
        if deal.discount_type == DiscountType.PERCENTAGE:
            label = f"Discount ({float(deal.discount_value):g}%):"
        else:
            label = "Discount:"
        discounted = deal.total_amount - deal.tax_amount
        totals_data.append([label, f"-{_money(deal.subtotal - discounted, currency)}"])
    totals_data.append([f'Tax ({float(deal.tax_rate):g}%):', _money(deal.tax_amount, currency)])
    totals_data.append(['Total:', _money(deal.total_amount, currency)])

    totals_table = Table(totals_data, colWidths=[13*cm, 4*cm])
    totals_table.setStyle(TableStyle([
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (0, -1), (-1, -1), 1, colors.black),
    ]))
    elements.append(totals_table)

    # --- Notes & Terms ---
    if deal.notes:
        elements.append(Spacer(1, 1*cm))
        elements.append(Paragraph("<b>Notes:</b>", normal_style))
        elements.append(Paragraph(_text(deal.notes).replace('\n', '<br/>'), normal_style))

    if deal.terms:
        elements.append(Spacer(1, 0.5*cm))
        elements.append(Paragraph("<b>Terms &amp; Conditions:</b>", normal_style))
        elements.append(Paragraph(_text(deal.terms).replace('\n', '<br/>'), small_style))

    # --- Electronic Signature ---
    if deal.status == DealStatus.ACCEPTED and deal.signed_by:
        elements.append(Spacer(1, 1*cm))
        elements.append(Paragraph("<b>Accepted and signed:</b>", normal_style))

        if deal.signature_image:
            try:
                elements.append(_signature_image(deal.signature_image))
            except Exception as e:
                logger.warning(f"Unreadable signature image on deal {deal.id}: {e}")

        details = [f"By: {_text(deal.signer_name)}"]
        if deal.signer_title:
            details.append(_text(deal.signer_title))
        if deal.signer_email:
            details.append(_text(deal.signer_email))
        if deal.signature_date:
            details.append(f"Signed on {deal.signature_date.strftime('%Y-%m-%d %H:%M')}")
        elements.append(Paragraph(" - ".join(details), small_style))
    elif deal.signature_required:
        elements.append(Spacer(1, 1*cm))
        elements.append(Paragraph("Signature: ______________________________", normal_style))

    doc.build(elements)
    pdf_bytes = buffer.getvalue()
    buffer.close()

    return pdf_bytes


class PdfRenderer:
    """Render a deal to disk and return the reference stored on the deal."""

    def __init__(self, output_dir: str, url_prefix: str, company_name: str):
        self.output_dir = Path(output_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.company_name = company_name

    def render(self, deal: Deal) -> str:
        safe_number = re.sub(r"[^a-zA-Z0-9]", "_", deal.quote_number or "draft")
        filename = f"quote_{safe_number}_{uuid.uuid4()}.pdf"

        self.output_dir.mkdir(parents=True, exist_ok=True)
        (self.output_dir / filename).write_bytes(generate_quote_pdf(deal, self.company_name))
        logger.info(f"PDF for deal {deal.id} written to {filename}")
        return f"{self.url_prefix}/{filename}"


def get_pdf_renderer() -> PdfRenderer:
    return PdfRenderer(settings.pdf_output_dir, settings.pdf_url_prefix, settings.company_name)
