"""
Void Service - reverse a committed invoice.

Restores the stock recorded in the invoice's item snapshots and deletes the
invoice, atomically. Only product_id and quantity are trusted from the
snapshot; the product may have been renamed or repriced since the sale.

A product deleted after the sale cannot be restocked. That line is skipped
and reported (VoidResult.skipped_product_ids + a warning log); the void
itself still completes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app

from ..errors import InvoiceNotFound
from .ledger_store import begin_transaction


@dataclass(frozen=True)
class RestoredLine:
    product_id: int
    quantity: int
    stock: int


@dataclass(frozen=True)
class VoidResult:
    invoice_id: int
    invoice_number: str
    restored: tuple[RestoredLine, ...] = field(default_factory=tuple)
    skipped_product_ids: tuple = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice_number,
            "restored": [
                {"product_id": r.product_id, "quantity": r.quantity, "stock": r.stock}
                for r in self.restored
            ],
            "skipped_product_ids": list(self.skipped_product_ids),
        }


def void_invoice(owner_id: int, id_or_number) -> VoidResult:
    """
    Void an invoice by id or invoice number.

    Raises InvoiceNotFound when the invoice does not exist for this owner,
    including when it was already voided.
    """
    log_enabled = current_app.config.get("INVENTORY_LOG_ENABLED", True)
    restored: list[RestoredLine] = []
    skipped: list = []

    with begin_transaction() as txn:
        invoice = txn.get_invoice(owner_id, id_or_number, lock=True)
        if invoice is None:
            raise InvoiceNotFound(id_or_number)

        invoice_id = invoice.id
        invoice_number = invoice.invoice_number

        for item in invoice.items or []:
            product_id = item.get("product_id")
            quantity = int(item.get("quantity") or 0)

            product = None
            if product_id is not None:
                product = txn.get_product_for_update(owner_id, product_id)
            if product is None:
                skipped.append(product_id)
                continue

            txn.update_stock(product, product.stock + quantity)
            if log_enabled:
                txn.insert_inventory_log(
                    owner_id=owner_id,
                    product_id=product.id,
                    change_amount=quantity,
                    reason=f"Invoice voided: {invoice_number}",
                )
            restored.append(RestoredLine(product_id=product.id, quantity=quantity, stock=product.stock))

        txn.delete_invoice(invoice)
        txn.commit()

    for product_id in skipped:
        current_app.logger.warning(
            "Void of invoice %s: product %s no longer exists, stock not restored",
            invoice_number,
            product_id,
        )
    current_app.logger.info("Invoice %s voided for owner %s", invoice_number, owner_id)

    return VoidResult(
        invoice_id=invoice_id,
        invoice_number=invoice_number,
        restored=tuple(restored),
        skipped_product_ids=tuple(skipped),
    )
