from __future__ import annotations

from ..extensions import db
from billdesk.time_utils import to_utc_z

# Display fields frozen into an invoice at creation time
SNAPSHOT_FIELDS = ("name", "email", "contact", "address", "tax_id")


class Customer(db.Model):
    """
    Customer master data, scoped to an Account via owner_id.

    Invoices reference customers optionally and carry their own snapshot of
    the display fields, so deleting a customer never rewrites invoice history.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_owner_name", "owner_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    contact = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)
    tax_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def snapshot(self) -> dict:
        return {field: getattr(self, field) for field in SNAPSHOT_FIELDS}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            **self.snapshot(),
            "created_at": to_utc_z(self.created_at),
        }
