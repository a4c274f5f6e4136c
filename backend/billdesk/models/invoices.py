from __future__ import annotations

from ..extensions import db
from billdesk.money import cents_to_decimal, bps_to_percent, format_money
from billdesk.services.pricing import DISCOUNT_FLAT, DISCOUNT_PERCENTAGE
from billdesk.time_utils import to_utc_z


class Invoice(db.Model):
    """
    Committed invoice (the ledger entry).

    Written only by the invoice coordinator and deleted only by the void
    coordinator; there is no update path. ``items`` holds the ordered item
    snapshots captured from the locked product rows at commit time.

    discount_value is stored in cents for flat discounts and in basis points
    for percentage discounts.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("owner_id", "invoice_number", name="uq_invoices_owner_number"),
        db.CheckConstraint("total_cents >= 0", name="ck_invoices_total_non_negative"),
        db.Index("ix_invoices_owner_date", "owner_id", "invoice_date"),
        db.Index("ix_invoices_owner_created", "owner_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    # Human-readable number (e.g., "INV-20261019-001")
    invoice_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    customer_snapshot = db.Column(db.JSON, nullable=True)

    items = db.Column(db.JSON, nullable=False)

    discount_kind = db.Column(db.String(16), nullable=False, default=DISCOUNT_FLAT)
    discount_value = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    gross_total_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(64), nullable=False)

    # Business time of the sale; created_at is system time
    invoice_date = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")

    @property
    def total_amount(self):
        return cents_to_decimal(self.total_cents)

    @property
    def discount_value_decimal(self):
        if self.discount_kind == DISCOUNT_PERCENTAGE:
            return bps_to_percent(self.discount_value)
        return cents_to_decimal(self.discount_value)

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} owner_id={self.owner_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "invoice_number": self.invoice_number,
            "customer_id": self.customer_id,
            "customer_snapshot": self.customer_snapshot,
            "items": list(self.items or []),
            "discount": {
                "kind": self.discount_kind,
                "value": format_money(self.discount_value_decimal),
                "amount": format_money(cents_to_decimal(self.discount_amount_cents)),
            },
            "payment_method": self.payment_method,
            "gross_total": format_money(cents_to_decimal(self.gross_total_cents)),
            "total_amount": format_money(self.total_amount),
            "invoice_date": to_utc_z(self.invoice_date),
            "created_at": to_utc_z(self.created_at),
        }
