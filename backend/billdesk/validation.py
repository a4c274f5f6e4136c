from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from billdesk.errors import InvalidQuantity, InvalidRequest
from billdesk.money import MAX_MONEY, to_decimal
from billdesk.services.pricing import NO_DISCOUNT, DiscountSpec
from billdesk.time_utils import parse_iso_datetime

MAX_INVOICE_NUMBER_LENGTH = 64
MAX_PAYMENT_METHOD_LENGTH = 64

# SQLite and PostgreSQL BIGINT bounds; larger ids cannot be bound as parameters
MAX_DB_INTEGER = 2 ** 63 - 1
MIN_DB_INTEGER = -(2 ** 63)


@dataclass(frozen=True)
class LineItemRequest:
    """
    One requested product + quantity.

    price_hint / tax_rate_hint are what the client displayed; they are
    validated but never used for pricing. Snapshots always come from the
    locked product row.
    """
    product_id: int
    quantity: int
    price_hint: Decimal | None = None
    tax_rate_hint: Decimal | None = None


@dataclass(frozen=True)
class CreateInvoiceRequest:
    line_items: tuple[LineItemRequest, ...]
    discount: DiscountSpec = NO_DISCOUNT
    payment_method: str = "Cash"
    invoice_number: str | None = None
    customer_id: int | None = None
    invoice_date: datetime | None = None


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for JSON input.

    Accepts ints and plain digit strings within the database's signed 64-bit
    INTEGER range; rejects bools, floats, decimals and scientific notation.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise InvalidRequest(f"{field} must be an integer", details={"field": field})
        # Reject scientific notation (e.g., "1e3") and decimals (e.g., "1.5")
        if 'e' in stripped.lower() or '.' in stripped:
            raise InvalidRequest(f"{field} must be a plain integer", details={"field": field})
        try:
            number = int(stripped)
        except ValueError:
            raise InvalidRequest(f"{field} must be an integer", details={"field": field})
    else:
        raise InvalidRequest(f"{field} must be an integer", details={"field": field})

    if not MIN_DB_INTEGER <= number <= MAX_DB_INTEGER:
        raise InvalidRequest(f"{field} is out of range", details={"field": field})
    return number


def _optional_text(payload: dict, key: str, max_length: int) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidRequest(f"{key} must be a string", details={"field": key})
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise InvalidRequest(
            f"{key} must be at most {max_length} characters",
            details={"field": key, "max_length": max_length},
        )
    return value


def _non_negative_hint(raw: Any, field: str, product_id: int) -> Decimal | None:
    if raw is None:
        return None
    try:
        value = to_decimal(raw)
    except ValueError:
        raise InvalidRequest(f"{field} must be a number", details={"field": field, "product_id": product_id})
    if value < 0:
        raise InvalidRequest(f"{field} cannot be negative", details={"field": field, "product_id": product_id})
    if value > MAX_MONEY:
        raise InvalidRequest(f"{field} cannot exceed {MAX_MONEY}", details={"field": field, "product_id": product_id})
    return value


def parse_line_item(raw: Any, index: int) -> LineItemRequest:
    if not isinstance(raw, dict):
        raise InvalidRequest("Each item must be an object", details={"index": index})

    if raw.get("product_id") is None:
        raise InvalidRequest("product_id required", details={"index": index})
    product_id = coerce_int(raw.get("product_id"), "product_id")

    raw_qty = raw.get("quantity", raw.get("qty"))
    try:
        quantity = coerce_int(raw_qty, "quantity")
    except InvalidRequest:
        raise InvalidQuantity(product_id, raw_qty)
    if quantity <= 0:
        raise InvalidQuantity(product_id, quantity)

    return LineItemRequest(
        product_id=product_id,
        quantity=quantity,
        price_hint=_non_negative_hint(raw.get("price"), "price", product_id),
        tax_rate_hint=_non_negative_hint(raw.get("tax_rate", raw.get("gst")), "tax_rate", product_id),
    )


def parse_discount(payload: dict) -> DiscountSpec:
    """
    Accepts either ``{"discount": {"kind": "flat", "value": "10"}}`` or the
    flat form ``{"discount": 10, "discount_type": "percentage"}``.
    """
    raw = payload.get("discount")
    if raw is None:
        return NO_DISCOUNT
    if isinstance(raw, dict):
        return DiscountSpec.parse(raw.get("kind"), raw.get("value"))
    return DiscountSpec.parse(payload.get("discount_type"), raw)


def parse_create_invoice_request(payload: Any, *, default_payment_method: str = "Cash") -> CreateInvoiceRequest:
    """
    Validate a JSON body into a CreateInvoiceRequest.

    Raises InvalidRequest / InvalidQuantity / InvalidDiscount with a specific
    reason; nothing here touches the database.
    """
    if not isinstance(payload, dict):
        raise InvalidRequest("Request body must be a JSON object")

    raw_items = payload.get("items", payload.get("line_items"))
    if not isinstance(raw_items, list) or not raw_items:
        raise InvalidRequest("Items required", details={"field": "items"})
    line_items = tuple(parse_line_item(raw, i) for i, raw in enumerate(raw_items))

    customer_id = payload.get("customer_id")
    if customer_id is not None and customer_id != "":
        customer_id = coerce_int(customer_id, "customer_id")
    else:
        customer_id = None

    raw_date = payload.get("date", payload.get("invoice_date"))
    if raw_date is not None and not isinstance(raw_date, str):
        raise InvalidRequest("date must be an ISO-8601 string", details={"field": "date"})
    try:
        invoice_date = parse_iso_datetime(raw_date)
    except ValueError:
        raise InvalidRequest("date must be an ISO-8601 string", details={"field": "date"})

    payment_method = _optional_text(payload, "payment_method", MAX_PAYMENT_METHOD_LENGTH)

    return CreateInvoiceRequest(
        line_items=line_items,
        discount=parse_discount(payload),
        payment_method=payment_method or default_payment_method,
        invoice_number=_optional_text(payload, "invoice_number", MAX_INVOICE_NUMBER_LENGTH),
        customer_id=customer_id,
        invoice_date=invoice_date,
    )
