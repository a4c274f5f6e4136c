# Overview: Bearer-token issuance and validation; resolves a request to its owning account.

"""
API Token Service

Tokens are cryptographically secure random strings; only their SHA-256 hash
is stored. A valid token yields the owner_id that scopes every billing
operation of the request.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import Account, ApiToken
from billdesk.time_utils import utcnow


@dataclass
class TokenContext:
    account: Account
    token: ApiToken

    @property
    def owner_id(self) -> int:
        return self.account.id


def generate_token() -> str:
    """Return a 64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def issue_token(account_id: int, label: str | None = None, expires_in: timedelta | None = None) -> tuple[ApiToken, str]:
    """
    Create a token for an active account.

    Returns (token_record, plaintext_token). Raises ValueError if the account
    is missing or inactive.
    """
    account = db.session.query(Account).filter_by(id=account_id).first()
    if not account:
        raise ValueError("Account not found")
    if not account.is_active:
        raise ValueError("Account is not active")

    plaintext = generate_token()
    now = utcnow()
    record = ApiToken(
        account_id=account.id,
        token_hash=hash_token(plaintext),
        label=label,
        created_at=now,
        expires_at=now + expires_in if expires_in else None,
    )
    db.session.add(record)
    db.session.commit()
    return record, plaintext


def validate_token(token: str) -> TokenContext | None:
    """Return the TokenContext for a usable token, else None."""
    if not token:
        return None

    record = db.session.query(ApiToken).filter_by(token_hash=hash_token(token)).first()
    if record is None or record.revoked_at is not None:
        return None
    if record.expires_at is not None and record.expires_at <= utcnow():
        return None

    account = record.account
    if account is None or not account.is_active:
        return None
    return TokenContext(account=account, token=record)


def revoke_token(token: str) -> bool:
    record = db.session.query(ApiToken).filter_by(token_hash=hash_token(token)).first()
    if record is None or record.revoked_at is not None:
        return False
    record.revoked_at = utcnow()
    db.session.commit()
    return True
