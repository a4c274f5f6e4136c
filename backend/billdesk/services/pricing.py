# Overview: Pure pricing engine for invoice totals; no I/O, no hidden state.

"""
Billing Pricing Invariants (authoritative)

- All money is Decimal quantized to 2 places, ROUND_HALF_UP, after EVERY step:
    subtotal   = round2(unit_price * quantity)
    tax_amount = round2(subtotal * tax_rate / 100)
    line_total = round2(subtotal + tax_amount)
- gross_total is the sum of line totals (already 2-place, so exact).
- Discounts apply to the gross total:
    percentage: value in [0, 100]     -> gross * (1 - value / 100)
    flat:       value in [0, gross]   -> gross - value
  value 0 (or no discount) leaves the gross untouched.
- final_total = round2(max(0, discounted)).
- Same input always yields the same output.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from billdesk.errors import InvalidDiscount
from billdesk.money import HUNDRED, MAX_MONEY, round2, to_decimal

DISCOUNT_FLAT = "flat"
DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_KINDS = (DISCOUNT_FLAT, DISCOUNT_PERCENTAGE)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PricingLine:
    unit_price: Decimal
    tax_rate: Decimal  # percent, 0..100
    quantity: int


@dataclass(frozen=True)
class DiscountSpec:
    kind: str = DISCOUNT_FLAT
    value: Decimal = ZERO

    @classmethod
    def parse(cls, kind, value) -> "DiscountSpec":
        """
        Build a validated-shape discount from loose input.

        Shape problems raise InvalidDiscount here: unknown kind, non-numeric,
        negative or above MAX_MONEY, or more than two decimal places (values
        are never silently rounded). Range checks against the gross total
        happen in apply_discount.
        """
        kind = (kind or DISCOUNT_FLAT)
        if not isinstance(kind, str) or kind.strip().lower() not in DISCOUNT_KINDS:
            raise InvalidDiscount(
                f"Unknown discount kind {kind!r}",
                details={"kind": kind, "allowed": list(DISCOUNT_KINDS)},
            )
        if value is None or value == "":
            value = ZERO
        try:
            raw = to_decimal(value)
        except ValueError:
            raise InvalidDiscount("Discount value must be a number", details={"value": value})
        if raw < 0:
            raise InvalidDiscount("Discount cannot be negative", details={"value": str(raw)})
        if raw > MAX_MONEY:
            raise InvalidDiscount(
                f"Discount cannot exceed {MAX_MONEY}",
                details={"value": str(raw), "max": str(MAX_MONEY)},
            )
        amount = round2(raw)
        if amount != raw:
            raise InvalidDiscount(
                "Discount value cannot have more than two decimal places",
                details={"value": str(raw)},
            )
        kind = kind.strip().lower()
        if kind == DISCOUNT_PERCENTAGE and amount > HUNDRED:
            raise InvalidDiscount(
                "Percentage discount cannot exceed 100%",
                details={"kind": kind, "value": str(amount)},
            )
        return cls(kind=kind, value=amount)

    @property
    def is_zero(self) -> bool:
        return self.value == 0


NO_DISCOUNT = DiscountSpec()


@dataclass(frozen=True)
class LineAmounts:
    subtotal: Decimal
    tax_amount: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class PricingResult:
    lines: tuple[LineAmounts, ...]
    gross_total: Decimal
    discount_amount: Decimal
    final_total: Decimal


def price_line(line: PricingLine) -> LineAmounts:
    if line.unit_price < 0:
        raise ValueError("unit_price cannot be negative")
    subtotal = round2(line.unit_price * line.quantity)
    tax_amount = round2(subtotal * line.tax_rate / HUNDRED)
    return LineAmounts(
        subtotal=subtotal,
        tax_amount=tax_amount,
        line_total=round2(subtotal + tax_amount),
    )


def apply_discount(gross_total: Decimal, discount: DiscountSpec | None) -> Decimal:
    """Return the final payable amount for ``gross_total`` after ``discount``."""
    if discount is None or discount.is_zero:
        return round2(max(ZERO, gross_total))

    if discount.kind == DISCOUNT_PERCENTAGE:
        if discount.value > HUNDRED:
            raise InvalidDiscount(
                "Percentage discount cannot exceed 100%",
                details={"kind": discount.kind, "value": str(discount.value)},
            )
        discounted = gross_total * (1 - discount.value / HUNDRED)
    elif discount.kind == DISCOUNT_FLAT:
        if discount.value > gross_total:
            raise InvalidDiscount(
                "Flat discount cannot exceed bill total",
                details={
                    "kind": discount.kind,
                    "value": str(discount.value),
                    "gross_total": str(gross_total),
                },
            )
        discounted = gross_total - discount.value
    else:
        raise InvalidDiscount(f"Unknown discount kind {discount.kind!r}", details={"kind": discount.kind})

    return round2(max(ZERO, discounted))


def price_items(lines: Iterable[PricingLine], discount: DiscountSpec | None = None) -> PricingResult:
    """
    Price an ordered list of lines and apply one invoice-level discount.

    Raises InvalidDiscount when the discount is out of range for the gross.
    """
    amounts = tuple(price_line(line) for line in lines)
    gross_total = sum((a.line_total for a in amounts), ZERO)
    final_total = apply_discount(gross_total, discount)
    return PricingResult(
        lines=amounts,
        gross_total=gross_total,
        discount_amount=gross_total - final_total,
        final_total=final_total,
    )
