"""
Billing error taxonomy.

Every failure raised by the coordinators is a BillingError carrying a stable
``code`` for clients, an ``http_status`` for the request layer and a
``details`` dict with the conflicting values (e.g. available vs requested).

- Validation (400): InvalidRequest, InvalidQuantity, InvalidDiscount,
  CustomerNotFound, ProductNotFound
- Business-rule conflict (400): InsufficientStock, DuplicateInvoiceNumber
- Not found (404): InvoiceNotFound
- Transient (503): StorageUnavailable, LockTimeout. The only retryable class.
"""

from __future__ import annotations


class BillingError(Exception):
    """Base class for invoice create/void failures."""
    code = "BILLING_ERROR"
    http_status = 400
    retryable = False

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class InvalidRequest(BillingError):
    code = "INVALID_REQUEST"


class InvalidQuantity(BillingError):
    code = "INVALID_QUANTITY"

    def __init__(self, product_id, quantity=None):
        super().__init__(
            f"Invalid quantity for product {product_id}",
            details={"product_id": product_id, "quantity": quantity},
        )


class InvalidDiscount(BillingError):
    code = "INVALID_DISCOUNT"


class CustomerNotFound(BillingError):
    code = "CUSTOMER_NOT_FOUND"

    def __init__(self, customer_id):
        super().__init__(
            f"Customer {customer_id} not found",
            details={"customer_id": customer_id},
        )


class ProductNotFound(BillingError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id):
        super().__init__(
            f"Product {product_id} not found",
            details={"product_id": product_id},
        )


class InsufficientStock(BillingError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id, available: int, requested: int, name: str | None = None):
        label = name or f"product {product_id}"
        super().__init__(
            f"Insufficient stock for {label}. Available: {available}, requested: {requested}",
            details={"product_id": product_id, "available": available, "requested": requested},
        )


class DuplicateInvoiceNumber(BillingError):
    code = "DUPLICATE_INVOICE_NUMBER"

    def __init__(self, invoice_number: str):
        super().__init__(
            f"Invoice number {invoice_number} already exists",
            details={"invoice_number": invoice_number},
        )


class InvoiceNotFound(BillingError):
    code = "INVOICE_NOT_FOUND"
    http_status = 404

    def __init__(self, id_or_number):
        super().__init__(
            "Invoice not found",
            details={"invoice": id_or_number},
        )


class StorageUnavailable(BillingError):
    """Connection/driver failure; the transaction was rolled back."""
    code = "STORAGE_UNAVAILABLE"
    http_status = 503
    retryable = True


class LockTimeout(StorageUnavailable):
    """A row or database lock was not granted within LOCK_TIMEOUT_SECONDS."""
    code = "TIMEOUT"
