"""
Invoice Service - the invoice-creation transaction.

WHY: Creating an invoice is the only operation that moves stock out. Stock
validation, stock decrement, pricing, numbering and the invoice write happen
in ONE database transaction, so no partial stock change is ever observable
and two concurrent invoices can never both consume the same last units.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..errors import (
    CustomerNotFound,
    DuplicateInvoiceNumber,
    InsufficientStock,
    InvalidQuantity,
    InvalidRequest,
    InvoiceNotFound,
    ProductNotFound,
)
from ..extensions import db
from ..models import Invoice, Product
from ..validation import CreateInvoiceRequest, LineItemRequest
from billdesk.money import decimal_to_cents, format_money, percent_to_bps
from billdesk.time_utils import utcnow
from .ledger_store import LedgerTransaction, begin_transaction, find_invoice
from .pricing import DISCOUNT_PERCENTAGE, DiscountSpec, PricingLine, PricingResult, price_items

INVOICE_NUMBER_PREFIX = "INV"


def format_invoice_number(day: datetime, seq: int) -> str:
    """INV-<YYYYMMDD>-<seq>, seq zero-padded to 3 digits."""
    return f"{INVOICE_NUMBER_PREFIX}-{day:%Y%m%d}-{seq:03d}"


def _is_valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0


def _reserve_line(txn: LedgerTransaction, owner_id: int, line: LineItemRequest) -> Product:
    """Lock the product, check and decrement its stock. Returns the locked row."""
    product = txn.get_product_for_update(owner_id, line.product_id)
    if product is None:
        raise ProductNotFound(line.product_id)

    if not _is_valid_quantity(line.quantity):
        raise InvalidQuantity(line.product_id, line.quantity)

    if line.quantity > product.stock:
        raise InsufficientStock(
            product.id,
            available=product.stock,
            requested=line.quantity,
            name=product.name,
        )

    txn.update_stock(product, product.stock - line.quantity)
    return product


def _item_snapshot(product: Product, line: PricingLine, pricing_index: int, pricing: PricingResult) -> dict:
    amounts = pricing.lines[pricing_index]
    return {
        "product_id": product.id,
        "name": product.name,
        "sku": product.sku,
        "price": format_money(line.unit_price),
        "tax_rate": format_money(line.tax_rate),
        "quantity": line.quantity,
        "subtotal": format_money(amounts.subtotal),
        "tax_amount": format_money(amounts.tax_amount),
        "line_total": format_money(amounts.line_total),
    }


def _stored_discount_value(discount: DiscountSpec) -> int:
    if discount.kind == DISCOUNT_PERCENTAGE:
        return percent_to_bps(discount.value)
    return decimal_to_cents(discount.value)


def _resolve_invoice_number(
    txn: LedgerTransaction,
    owner_id: int,
    requested: str | None,
    now: datetime,
) -> str:
    if requested:
        invoice_number = requested
    else:
        # Sequence is derived from a locked, transactional count, never an in-process counter
        txn.lock_owner(owner_id)
        seq = txn.count_invoices_today(owner_id, now) + 1
        # A same-day void lowers the count; a repeated number is reported, not skipped
        invoice_number = format_invoice_number(now, seq)

    if txn.invoice_number_exists(owner_id, invoice_number):
        raise DuplicateInvoiceNumber(invoice_number)
    return invoice_number


def create_invoice(owner_id: int, request: CreateInvoiceRequest) -> Invoice:
    """
    Create and commit an invoice for ``owner_id``.

    Order of work inside the transaction:
    1. customer ownership check (+ snapshot)
    2. per line, in input order: lock product, validate, decrement stock
    3. pricing over the locked rows' current price/tax
    4. invoice number resolution
    5. invoice row + inventory log rows
    6. commit

    Raises a BillingError subclass on any failure; the transaction is rolled
    back before the error reaches the caller.
    """
    if not request.line_items:
        raise InvalidRequest("Items required", details={"field": "items"})

    config = current_app.config
    now = utcnow()

    with begin_transaction() as txn:
        customer_snapshot = None
        if request.customer_id is not None:
            customer = txn.get_customer(owner_id, request.customer_id)
            if customer is None:
                raise CustomerNotFound(request.customer_id)
            if config.get("CUSTOMER_SNAPSHOT_ENABLED", True):
                customer_snapshot = customer.snapshot()

        products: list[Product] = []
        pricing_lines: list[PricingLine] = []
        for line in request.line_items:
            product = _reserve_line(txn, owner_id, line)
            products.append(product)
            pricing_lines.append(
                PricingLine(
                    unit_price=product.unit_price,
                    tax_rate=product.tax_rate,
                    quantity=line.quantity,
                )
            )

        pricing = price_items(pricing_lines, request.discount)
        items = [
            _item_snapshot(product, line, i, pricing)
            for i, (product, line) in enumerate(zip(products, pricing_lines))
        ]

        invoice_number = _resolve_invoice_number(txn, owner_id, request.invoice_number, now)

        invoice = txn.insert_invoice(
            owner_id=owner_id,
            invoice_number=invoice_number,
            customer_id=request.customer_id,
            customer_snapshot=customer_snapshot,
            items=items,
            discount_kind=request.discount.kind,
            discount_value=_stored_discount_value(request.discount),
            discount_amount_cents=decimal_to_cents(pricing.discount_amount),
            gross_total_cents=decimal_to_cents(pricing.gross_total),
            total_cents=decimal_to_cents(pricing.final_total),
            payment_method=request.payment_method,
            invoice_date=request.invoice_date or now,
            created_at=now,
        )

        if config.get("INVENTORY_LOG_ENABLED", True):
            for item in items:
                txn.insert_inventory_log(
                    owner_id=owner_id,
                    product_id=item["product_id"],
                    change_amount=-item["quantity"],
                    reason=f"Sale: {invoice_number}",
                )

        # The same product may appear on several lines
        low_stock = {
            p.id: (p.id, p.sku, p.stock, p.low_stock_threshold)
            for p in products
            if p.is_low_stock
        }

        txn.commit()

    current_app.logger.info(
        "Invoice %s created for owner %s: %d line(s), total %s",
        invoice_number,
        owner_id,
        len(items),
        format_money(pricing.final_total),
    )
    for product_id, sku, stock, threshold in low_stock.values():
        current_app.logger.warning(
            "Product %s (%s) is low on stock: %s left, threshold %s",
            product_id,
            sku,
            stock,
            threshold,
        )
    return invoice


def get_invoice(owner_id: int, id_or_number) -> Invoice:
    invoice = find_invoice(owner_id, id_or_number)
    if invoice is None:
        raise InvoiceNotFound(id_or_number)
    return invoice


def list_invoices(owner_id: int, page: int | None = None, per_page: int | None = None) -> dict:
    """
    Owner-scoped invoice listing, newest first, with optional pagination.

    Returns dict with 'items' and 'count', plus pagination metadata when
    ``page`` is given.
    """
    query = (
        db.session.query(Invoice)
        .filter(Invoice.owner_id == owner_id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
    )

    if page is None:
        items = query.all()
        return {"items": [i.to_dict() for i in items], "count": len(items)}

    page = max(1, page)
    per_page = min(max(1, per_page or 20), 100)
    total = query.count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return {
        "items": [i.to_dict() for i in items],
        "count": len(items),
        "page": page,
        "per_page": per_page,
        "total": total,
        "pages": (total + per_page - 1) // per_page,
    }
