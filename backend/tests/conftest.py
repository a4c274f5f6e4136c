"""
Pytest fixtures for BillDesk backend tests.

Provides test database setup, two isolated owner accounts, product and
customer factories, bearer tokens and the Flask test client.
"""

import pytest
from billdesk import create_app
from billdesk.extensions import db
from billdesk.models import Account, Customer, Product
from billdesk.services.session_service import issue_token
from billdesk.validation import CreateInvoiceRequest, LineItemRequest


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TRANSIENT_RETRY_ATTEMPTS': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test, schema kept."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def account_a(db_session):
    """Owner A (first tenant)."""
    account = Account(name="Acme Traders", email="owner@acme.test")
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture(scope='function')
def account_b(db_session):
    """Owner B (second tenant)."""
    account = Account(name="Beta Stores", email="owner@beta.test")
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(owner, sku=..., price_cents=..., tax_rate_bps=..., stock=...)."""
    def _make(owner, sku="SKU-001", name=None, price_cents=10000, tax_rate_bps=1800, stock=10,
              low_stock_threshold=10):
        product = Product(
            owner_id=owner.id,
            sku=sku,
            name=name or f"Product {sku}",
            price_cents=price_cents,
            tax_rate_bps=tax_rate_bps,
            stock=stock,
            low_stock_threshold=low_stock_threshold,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def customer_a(db_session, account_a):
    customer = Customer(
        owner_id=account_a.id,
        name="Ravi Kumar",
        email="ravi@example.test",
        contact="+91 98765 43210",
        address="12 Market Road",
        tax_id="29ABCDE1234F1Z5",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def token_a(db_session, account_a):
    _, plaintext = issue_token(account_a.id, label="tests")
    return plaintext


@pytest.fixture(scope='function')
def token_b(db_session, account_b):
    _, plaintext = issue_token(account_b.id, label="tests")
    return plaintext


def order(*lines, **kwargs) -> CreateInvoiceRequest:
    """Helper: order((product_id, qty), ..., discount=..., invoice_number=...)."""
    return CreateInvoiceRequest(
        line_items=tuple(LineItemRequest(product_id=pid, quantity=qty) for pid, qty in lines),
        **kwargs,
    )


def stock_of(product_id: int) -> int:
    """Read stock straight from the database, bypassing the identity map."""
    return db.session.query(Product.stock).filter_by(id=product_id).scalar()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
