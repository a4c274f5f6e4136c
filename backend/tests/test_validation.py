# Overview: Pytest coverage for request parsing of invoice payloads.

from datetime import datetime
from decimal import Decimal

import pytest

from billdesk.errors import InvalidDiscount, InvalidQuantity, InvalidRequest
from billdesk.services.pricing import DISCOUNT_FLAT, DISCOUNT_PERCENTAGE, NO_DISCOUNT
from billdesk.validation import coerce_int, parse_create_invoice_request


class TestCoerceInt:

    @pytest.mark.parametrize("value,expected", [(5, 5), ("7", 7), (" 12 ", 12), (-3, -3)])
    def test_accepts_plain_integers(self, value, expected):
        assert coerce_int(value, "quantity") == expected

    @pytest.mark.parametrize("value", [True, 1.5, 2.0, "1.5", "1e3", "", "abc", None, [1]])
    def test_rejects_everything_else(self, value):
        with pytest.raises(InvalidRequest):
            coerce_int(value, "quantity")

    def test_bounded_to_64_bit_database_integers(self):
        assert coerce_int(2 ** 63 - 1, "product_id") == 2 ** 63 - 1
        assert coerce_int(str(-(2 ** 63)), "product_id") == -(2 ** 63)
        for value in (2 ** 63, 10 ** 20, str(10 ** 20), -(2 ** 63) - 1):
            with pytest.raises(InvalidRequest) as exc:
                coerce_int(value, "product_id")
            assert exc.value.details == {"field": "product_id"}


class TestParseCreateInvoiceRequest:

    def test_minimal_payload(self):
        request = parse_create_invoice_request({"items": [{"product_id": 1, "quantity": 2}]})

        assert len(request.line_items) == 1
        assert request.line_items[0].product_id == 1
        assert request.line_items[0].quantity == 2
        assert request.discount == NO_DISCOUNT
        assert request.payment_method == "Cash"
        assert request.invoice_number is None
        assert request.customer_id is None
        assert request.invoice_date is None

    def test_full_payload(self):
        request = parse_create_invoice_request({
            "items": [
                {"product_id": "3", "qty": "4", "price": "99.50", "gst": 18},
                {"product_id": 5, "quantity": 1},
            ],
            "customer_id": "9",
            "discount": {"kind": "percentage", "value": "7.5"},
            "payment_method": " Card ",
            "invoice_number": "SHOP-7",
            "date": "2026-10-19T10:15:00+05:30",
        })

        first = request.line_items[0]
        assert (first.product_id, first.quantity) == (3, 4)
        assert first.price_hint == Decimal("99.50")
        assert first.tax_rate_hint == Decimal("18")
        assert request.customer_id == 9
        assert request.discount.kind == DISCOUNT_PERCENTAGE
        assert request.discount.value == Decimal("7.50")
        assert request.payment_method == "Card"
        assert request.invoice_number == "SHOP-7"
        assert request.invoice_date == datetime(2026, 10, 19, 4, 45)

    def test_scalar_discount_with_type(self):
        request = parse_create_invoice_request({
            "line_items": [{"product_id": 1, "quantity": 1}],
            "discount": 25,
            "discount_type": "flat",
        })

        assert request.discount.kind == DISCOUNT_FLAT
        assert request.discount.value == Decimal("25.00")

    def test_default_payment_method_is_configurable(self):
        request = parse_create_invoice_request(
            {"items": [{"product_id": 1, "quantity": 1}]},
            default_payment_method="UPI",
        )

        assert request.payment_method == "UPI"

    @pytest.mark.parametrize("payload", [
        None,
        [],
        {},
        {"items": []},
        {"items": "1,2"},
        {"items": [5]},
        {"items": [{"quantity": 1}]},
        {"items": [{"product_id": 10 ** 20, "quantity": 1}]},
    ])
    def test_malformed_body(self, payload):
        with pytest.raises(InvalidRequest):
            parse_create_invoice_request(payload)

    @pytest.mark.parametrize("quantity", [0, -1, "two", 1.5, None, 10 ** 20])
    def test_bad_quantity(self, quantity):
        with pytest.raises(InvalidQuantity) as exc:
            parse_create_invoice_request({"items": [{"product_id": 4, "quantity": quantity}]})

        assert exc.value.details["product_id"] == 4

    @pytest.mark.parametrize("discount", [
        {"kind": "bogo", "value": 1},
        {"kind": "flat", "value": -1},
        {"kind": "percentage", "value": 110},
        {"kind": "flat", "value": "lots"},
    ])
    def test_bad_discount(self, discount):
        with pytest.raises(InvalidDiscount):
            parse_create_invoice_request({"items": [{"product_id": 1, "quantity": 1}], "discount": discount})

    @pytest.mark.parametrize("extra", [
        {"price": -1},
        {"tax_rate": "abc"},
        {"price": 1e30},
    ])
    def test_bad_price_hints(self, extra):
        item = {"product_id": 1, "quantity": 1, **extra}
        with pytest.raises(InvalidRequest):
            parse_create_invoice_request({"items": [item]})

    @pytest.mark.parametrize("payload_extra", [
        {"date": "yesterday"},
        {"date": 20261019},
        {"invoice_number": "X" * 65},
        {"payment_method": 3},
        {"customer_id": "abc"},
        {"customer_id": str(10 ** 20)},
    ])
    def test_bad_optional_fields(self, payload_extra):
        payload = {"items": [{"product_id": 1, "quantity": 1}], **payload_extra}
        with pytest.raises(InvalidRequest):
            parse_create_invoice_request(payload)
