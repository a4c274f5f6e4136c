# Overview: Transactional storage boundary for the invoice and void coordinators.

"""
Ledger Store Invariants (authoritative)

- One LedgerTransaction == one database transaction. Nothing is visible to
  other connections until commit(); leaving begin_transaction() without
  commit() rolls everything back.
- Every read is scoped by owner_id.
- Products are read with an exclusive row lock (SELECT ... FOR UPDATE). On
  SQLite, which has no row locks, the transaction starts with BEGIN IMMEDIATE
  so writers serialize on the database lock instead.
- Lock waits are bounded by LOCK_TIMEOUT_SECONDS and surface as LockTimeout.
- Stock never goes below zero: update_stock refuses it and the products
  table carries a CHECK constraint.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime

from flask import current_app
from sqlalchemy import or_, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import DuplicateInvoiceNumber
from ..extensions import db
from ..models import Account, Customer, Invoice, InventoryLog, Product
from ..validation import MAX_DB_INTEGER
from billdesk.time_utils import utc_day_bounds
from .concurrency import lock_for_update, storage_error_from


class LedgerTransaction:
    """Storage operations available to the coordinators inside one transaction."""

    def __init__(self):
        self.finished = False

    # ------------------------------------------------------------------
    # Transaction control
    # ------------------------------------------------------------------

    def begin(self) -> None:
        dialect = db.engine.dialect.name
        if dialect == "sqlite":
            db.session.execute(text("BEGIN IMMEDIATE"))
        elif dialect == "postgresql":
            timeout_ms = int(current_app.config.get("LOCK_TIMEOUT_SECONDS", 5) * 1000)
            db.session.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))
        elif dialect == "mysql":
            timeout_s = max(1, int(current_app.config.get("LOCK_TIMEOUT_SECONDS", 5)))
            db.session.execute(text(f"SET SESSION innodb_lock_wait_timeout = {timeout_s}"))

    def commit(self) -> None:
        db.session.commit()
        self.finished = True

    def rollback(self) -> None:
        db.session.rollback()
        self.finished = True

    # ------------------------------------------------------------------
    # Products / stock
    # ------------------------------------------------------------------

    def get_product_for_update(self, owner_id: int, product_id: int) -> Product | None:
        query = db.session.query(Product).filter_by(id=product_id, owner_id=owner_id)
        return lock_for_update(query).populate_existing().first()

    def update_stock(self, product: Product, new_stock: int) -> None:
        if new_stock < 0:
            raise ValueError(f"stock for product {product.id} cannot go negative")
        product.stock = new_stock
        db.session.flush()

    def insert_inventory_log(self, *, owner_id: int, product_id: int, change_amount: int, reason: str) -> InventoryLog:
        log = InventoryLog(
            owner_id=owner_id,
            product_id=product_id,
            change_amount=change_amount,
            reason=reason,
        )
        db.session.add(log)
        db.session.flush()
        return log

    # ------------------------------------------------------------------
    # Owners / customers
    # ------------------------------------------------------------------

    def lock_owner(self, owner_id: int) -> Account | None:
        """Serialize per-owner invoice numbering on the account row."""
        return lock_for_update(db.session.query(Account).filter_by(id=owner_id)).first()

    def get_customer(self, owner_id: int, customer_id: int) -> Customer | None:
        return db.session.query(Customer).filter_by(id=customer_id, owner_id=owner_id).first()

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def count_invoices_today(self, owner_id: int, now: datetime | None = None) -> int:
        start, end = utc_day_bounds(now)
        return (
            db.session.query(Invoice)
            .filter(
                Invoice.owner_id == owner_id,
                Invoice.invoice_date >= start,
                Invoice.invoice_date < end,
            )
            .count()
        )

    def invoice_number_exists(self, owner_id: int, invoice_number: str) -> bool:
        return (
            db.session.query(Invoice.id)
            .filter_by(owner_id=owner_id, invoice_number=invoice_number)
            .first()
            is not None
        )

    def insert_invoice(self, **fields) -> Invoice:
        invoice = Invoice(**fields)
        db.session.add(invoice)
        try:
            db.session.flush()
        except IntegrityError as exc:
            # Only the (owner_id, invoice_number) unique key can fire here
            raise DuplicateInvoiceNumber(fields.get("invoice_number")) from exc
        return invoice

    def get_invoice(self, owner_id: int, id_or_number, *, lock: bool = False) -> Invoice | None:
        return find_invoice(owner_id, id_or_number, lock=lock)

    def delete_invoice(self, invoice: Invoice) -> None:
        db.session.delete(invoice)
        db.session.flush()


@contextmanager
def begin_transaction():
    """
    Open a LedgerTransaction.

    Driver OperationalErrors raised anywhere inside the block are translated
    to LockTimeout / StorageUnavailable after the rollback.
    """
    txn = LedgerTransaction()
    try:
        txn.begin()
        yield txn
    except (OperationalError, StaleDataError) as exc:
        txn.rollback()
        raise storage_error_from(exc) from exc
    except BaseException:
        txn.rollback()
        raise
    else:
        if not txn.finished:
            txn.rollback()


def find_invoice(owner_id: int, id_or_number, *, lock: bool = False) -> Invoice | None:
    """
    Find an invoice by invoice number or numeric id, scoped to the owner.

    An exact invoice-number match wins over an id match.
    """
    key = str(id_or_number).strip()
    if not key:
        return None

    criteria = [Invoice.invoice_number == key]
    if key.isdigit() and len(key) <= len(str(MAX_DB_INTEGER)) and int(key) <= MAX_DB_INTEGER:
        criteria.append(Invoice.id == int(key))

    query = db.session.query(Invoice).filter(Invoice.owner_id == owner_id, or_(*criteria))
    if lock:
        query = lock_for_update(query)
    matches = query.all()
    for invoice in matches:
        if invoice.invoice_number == key:
            return invoice
    return matches[0] if matches else None
