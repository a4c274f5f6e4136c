# Overview: Flask API routes for invoice operations; parses input and returns JSON responses.

# backend/billdesk/routes/invoices.py
"""
Invoice API routes.

MULTI-TENANT: Every route is scoped to g.owner_id (set by @require_auth).
Invoices of other owners are indistinguishable from missing ones (404).
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import BillingError
from ..services import invoice_service, void_service
from ..services.concurrency import run_with_retry
from ..validation import parse_create_invoice_request

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def _retry_attempts() -> int:
    return max(1, int(current_app.config.get("TRANSIENT_RETRY_ATTEMPTS", 3)))


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Create and commit an invoice.

    Body: {"items": [{"product_id": 1, "quantity": 2}], "customer_id": 3,
           "discount": {"kind": "flat", "value": "10.00"},
           "payment_method": "Card", "invoice_number": "...", "date": "..."}

    Without invoice_number the number is INV-<today>-<n>, n = 1 + the
    owner's invoices dated today. Voiding an earlier invoice of the same
    day lowers that count, so the next generated number can repeat an
    existing one and fail with 400 DUPLICATE_INVOICE_NUMBER; supply
    invoice_number explicitly in that case.
    """
    try:
        payload = request.get_json(silent=True)
        create_request = parse_create_invoice_request(
            payload,
            default_payment_method=current_app.config.get("DEFAULT_PAYMENT_METHOD", "Cash"),
        )
        owner_id = g.owner_id

        invoice = run_with_retry(
            lambda: invoice_service.create_invoice(owner_id, create_request),
            attempts=_retry_attempts(),
        )
        return jsonify({"invoice": invoice.to_dict()}), 201

    except BillingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """List the caller's invoices, newest first. Query params: page, per_page."""
    try:
        page = request.args.get("page", type=int)
        per_page = request.args.get("per_page", type=int)
        return jsonify(invoice_service.list_invoices(g.owner_id, page=page, per_page=per_page)), 200
    except Exception:
        current_app.logger.exception("Failed to list invoices")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/<id_or_number>")
@require_auth
def get_invoice_route(id_or_number: str):
    try:
        invoice = invoice_service.get_invoice(g.owner_id, id_or_number)
        return jsonify({"invoice": invoice.to_dict()}), 200
    except BillingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to get invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.delete("/<id_or_number>")
@require_auth
def void_invoice_route(id_or_number: str):
    """
    Void an invoice: restore its stock and delete it.

    404 when the invoice does not exist (or was already voided).
    """
    try:
        owner_id = g.owner_id
        result = run_with_retry(
            lambda: void_service.void_invoice(owner_id, id_or_number),
            attempts=_retry_attempts(),
        )
        return jsonify({"success": True, **result.to_dict()}), 200

    except BillingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to void invoice")
        return jsonify({"error": "Internal server error"}), 500
