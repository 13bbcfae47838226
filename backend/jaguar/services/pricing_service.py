# Overview: Pure pricing arithmetic for quotations (no storage, no side effects).

"""
Pricing Engine

line_subtotal          = round2(unit_price * (1 - line_discount / 100))
subtotal_sum           = sum(line_subtotal)
global_discount_amount = round2(subtotal_sum * global_discount / 100)
final_total            = subtotal_sum - global_discount_amount

ROUNDING: 2 decimals, ROUND_HALF_UP, applied at the line level and again at
the total level (never once end-to-end). Reconciliation reports add line
subtotals up, so the stored totals must add up the same way.

Everything here is a pure function of its inputs. The quotation service calls
it on issue and on every discount change; the preview endpoint calls it
without persisting anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from ..errors import InvalidDiscountError, NegativeTotalError, ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value, field: str) -> Decimal:
    """
    Coerce user/JSON input to Decimal.

    Floats go through str() so 0.1 stays 0.1. Booleans are rejected even
    though they are ints.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", details={"field": field})
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number", details={"field": field})
    else:
        raise ValidationError(f"{field} must be a number", details={"field": field})

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={"field": field})
    return result


def validate_percentage(value, field: str) -> Decimal:
    pct = to_decimal(value, field)
    if pct < ZERO or pct > HUNDRED:
        raise InvalidDiscountError(
            f"{field} must be between 0 and 100, got {pct}",
            details={"field": field, "value": str(pct)},
        )
    return pct


def validate_unit_price(value, field: str = "unit_price") -> Decimal:
    price = to_decimal(value, field)
    if price <= ZERO:
        raise InvalidDiscountError(
            f"{field} must be greater than 0, got {price}",
            details={"field": field, "value": str(price)},
        )
    return price


@dataclass(frozen=True)
class PricedLine:
    unit_price: Decimal
    line_discount: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class QuotationTotals:
    lines: tuple[PricedLine, ...]
    original_total: Decimal
    subtotal_sum: Decimal
    global_discount: Decimal
    global_discount_amount: Decimal
    final_total: Decimal

    def to_dict(self) -> dict:
        return {
            "lineas": [
                {
                    "precio_unitario": float(line.unit_price),
                    "descuento_linea": float(line.line_discount),
                    "subtotal": float(line.subtotal),
                }
                for line in self.lines
            ],
            "total_original": float(self.original_total),
            "subtotal": float(self.subtotal_sum),
            "descuento_global": float(self.global_discount),
            "monto_descuento_global": float(self.global_discount_amount),
            "total": float(self.final_total),
        }


def price_line(unit_price, line_discount=ZERO) -> PricedLine:
    price = validate_unit_price(unit_price)
    discount = validate_percentage(line_discount, "line_discount")
    subtotal = round2(price * (HUNDRED - discount) / HUNDRED)
    return PricedLine(unit_price=price, line_discount=discount, subtotal=subtotal)


def line_subtotal(unit_price, line_discount=ZERO) -> Decimal:
    return price_line(unit_price, line_discount).subtotal


def compute_totals(lines: Iterable[tuple], global_discount=ZERO) -> QuotationTotals:
    """
    Price a proposed quotation.

    Args:
        lines: (unit_price, line_discount) pairs
        global_discount: percentage applied to the sum of line subtotals

    Raises:
        InvalidDiscountError: a percentage outside [0, 100] or unit_price <= 0
        NegativeTotalError: final total below zero (cannot happen with valid
            inputs; checked anyway before anything is persisted)
    """
    global_pct = validate_percentage(global_discount, "global_discount")
    priced = tuple(price_line(unit_price, discount) for unit_price, discount in lines)

    original_total = sum((round2(line.unit_price) for line in priced), ZERO)
    subtotal_sum = sum((line.subtotal for line in priced), ZERO)
    global_amount = round2(subtotal_sum * global_pct / HUNDRED)
    final_total = subtotal_sum - global_amount

    if final_total < ZERO:
        raise NegativeTotalError(
            "Computed total is negative",
            details={"subtotal": str(subtotal_sum), "global_discount_amount": str(global_amount)},
        )

    return QuotationTotals(
        lines=priced,
        original_total=original_total,
        subtotal_sum=subtotal_sum,
        global_discount=global_pct,
        global_discount_amount=global_amount,
        final_total=final_total,
    )
