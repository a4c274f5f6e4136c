from __future__ import annotations

from ..extensions import db
from billdesk.money import cents_to_decimal, bps_to_percent, format_money
from billdesk.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data with a mutable stock counter.

    MULTI-TENANT: Products are scoped to an Account via owner_id and SKUs are
    unique within an owner.

    STOCK: ``stock`` is only ever changed by the invoice coordinators, inside
    the same DB transaction that writes or deletes the invoice. The CHECK
    constraint is the last line of defence against negative stock.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("owner_id", "sku", name="uq_products_owner_sku"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
        db.CheckConstraint(
            "tax_rate_bps >= 0 AND tax_rate_bps <= 10000",
            name="ck_products_tax_rate_range",
        ),
        db.Index("ix_products_owner_name", "owner_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in cents / basis points
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=10)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    inventory_logs = db.relationship(
        "InventoryLog",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def unit_price(self):
        return cents_to_decimal(self.price_cents)

    @property
    def tax_rate(self):
        return bps_to_percent(self.tax_rate_bps)

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.low_stock_threshold

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} owner_id={self.owner_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "sku": self.sku,
            "name": self.name,
            "price": format_money(self.unit_price),
            "tax_rate": format_money(self.tax_rate),
            "stock": self.stock,
            "low_stock_threshold": self.low_stock_threshold,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryLog(db.Model):
    """Append-only record of every stock delta applied by invoice create/void."""
    __tablename__ = "inventory_logs"
    __table_args__ = (
        db.Index("ix_inventory_logs_owner_product", "owner_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    change_amount = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "product_id": self.product_id,
            "change_amount": self.change_amount,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
