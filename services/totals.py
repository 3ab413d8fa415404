"""
Line-item aggregation and deal-level totals.

Every derived amount on a deal is produced here. `recompute_totals` rewrites
all of them at once from the line items and the discount/tax inputs; nothing
is ever updated incrementally.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from core.exceptions import InvalidLineItem
from models.enums import DiscountType
from services.money import (
    HUNDRED,
    ZERO,
    apply_fixed_discount,
    apply_percent_discount,
    apply_tax,
    round_money,
    to_decimal,
)


# Scale of each pricing input as stored; totals are computed from these values
LINE_ITEM_SCALES = {
    "quantity": Decimal("0.001"),
    "unit_price": Decimal("0.0001"),
    "discount_percent": Decimal("0.01"),
    "tax_percent": Decimal("0.001"),
}
DEAL_SCALES = {
    "discount_value": Decimal("0.01"),
    "tax_rate": Decimal("0.001"),
}


@dataclass(frozen=True)
class DealTotals:
    subtotal: Decimal
    discounted_subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    @property
    def amount(self) -> Decimal:
        return self.total_amount


def validate_line_item(item) -> None:
    if not item.description or not str(item.description).strip():
        raise InvalidLineItem("Line item description is required")
    if to_decimal(item.quantity) < 0:
        raise InvalidLineItem(f"Line item '{item.description}' has a negative quantity")
    if to_decimal(item.unit_price) < 0:
        raise InvalidLineItem(f"Line item '{item.description}' has a negative unit price")
    discount = to_decimal(item.discount_percent)
    if discount < 0 or discount > HUNDRED:
        raise InvalidLineItem(f"Line item '{item.description}' discount must be between 0 and 100")
    if to_decimal(item.tax_percent) < 0:
        raise InvalidLineItem(f"Line item '{item.description}' has a negative tax rate")


def compute_line_item_total(item) -> Decimal:
    """quantity * unit price, less the line discount, plus line tax; rounded once."""
    validate_line_item(item)
    base = to_decimal(item.quantity) * to_decimal(item.unit_price)
    discounted = apply_percent_discount(base, item.discount_percent, rounded=False)
    return apply_tax(discounted, item.tax_percent)


def compute_subtotal(items: Iterable) -> Decimal:
    return round_money(sum((compute_line_item_total(item) for item in items), ZERO))


def compute_deal_totals(subtotal, discount_type: DiscountType, discount_value, tax_rate) -> DealTotals:
    subtotal = round_money(subtotal)
    # Negative discounts are treated as no discount
    discount_value = max(to_decimal(discount_value), ZERO)

    if DiscountType(discount_type) == DiscountType.FIXED:
        discounted = apply_fixed_discount(subtotal, discount_value)
    else:
        discounted = max(apply_percent_discount(subtotal, discount_value), ZERO)

    tax_amount = round_money(discounted * to_decimal(tax_rate) / HUNDRED)
    total_amount = round_money(discounted + tax_amount)
    return DealTotals(
        subtotal=subtotal,
        discounted_subtotal=discounted,
        tax_amount=tax_amount,
        total_amount=total_amount,
    )


def _quantize_inputs(obj, scales: dict) -> None:
    for field, scale in scales.items():
        setattr(obj, field, to_decimal(getattr(obj, field)).quantize(scale, rounding=ROUND_HALF_UP))


def recompute_totals(deal) -> DealTotals:
    """Recompute every line total and every deal total, then write them all back."""
    for item in deal.line_items:
        validate_line_item(item)
        _quantize_inputs(item, LINE_ITEM_SCALES)
    _quantize_inputs(deal, DEAL_SCALES)

    item_totals = [compute_line_item_total(item) for item in deal.line_items]
    totals = compute_deal_totals(
        sum(item_totals, ZERO),
        deal.discount_type,
        deal.discount_value,
        deal.tax_rate,
    )

    for item, total in zip(deal.line_items, item_totals):
        item.total = total
    deal.subtotal = totals.subtotal
    deal.tax_amount = totals.tax_amount
    deal.total_amount = totals.total_amount
    deal.amount = totals.amount
    return totals
