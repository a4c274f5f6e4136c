from __future__ import annotations

from ..extensions import db
from billdesk.time_utils import to_utc_z


class Account(db.Model):
    """
    Multi-tenant root: every product, customer, invoice and inventory log
    belongs to exactly one Account (the "owner").

    All queries touching owned data must filter by owner_id. The account row
    is also locked while auto-numbering invoices so the per-day sequence is
    serialized per owner.
    """
    __tablename__ = "accounts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True, unique=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Account id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class ApiToken(db.Model):
    """
    Bearer token resolving an inbound request to its owning Account.

    SECURITY NOTES:
    - Only the SHA-256 hash is stored; the plaintext is shown once at issue time
    - Tokens may carry an expiry and can be revoked
    """
    __tablename__ = "api_tokens"
    __table_args__ = (
        db.Index("ix_api_tokens_account_active", "account_id", "revoked_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)
    label = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    account = db.relationship("Account", backref=db.backref("api_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "label": self.label,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "revoked_at": to_utc_z(self.revoked_at),
        }
