# Overview: Pytest coverage for the invoice HTTP API.

"""
Invoice API Tests

Exercises the JSON endpoints through the Flask test client:
- bearer-token authentication and tenant scoping
- status codes and error envelopes ({"error", "code", "details"})
- create / list / get / void round trip
"""

from billdesk.services import invoice_service
from billdesk.services.session_service import revoke_token
from tests.conftest import auth_headers, stock_of


def _create(client, token, **payload):
    return client.post('/api/invoices', json=payload, headers=auth_headers(token))


class TestAuthentication:

    def test_missing_token(self, client, db_session):
        response = client.get('/api/invoices')
        assert response.status_code == 401

    def test_unknown_token(self, client, db_session):
        response = client.get('/api/invoices', headers=auth_headers('not-a-token'))
        assert response.status_code == 401

    def test_revoked_token(self, client, db_session, token_a):
        assert revoke_token(token_a) is True

        response = client.get('/api/invoices', headers=auth_headers(token_a))
        assert response.status_code == 401

    def test_inactive_account(self, client, db_session, account_a, token_a):
        account_a.is_active = False
        db_session.commit()

        response = client.get('/api/invoices', headers=auth_headers(token_a))
        assert response.status_code == 401


class TestCreateInvoiceRoute:

    def test_create_returns_201(self, client, db_session, account_a, token_a, make_product):
        product = make_product(account_a, price_cents=10000, tax_rate_bps=1800, stock=10)

        response = _create(
            client, token_a,
            items=[{'product_id': product.id, 'quantity': 2}],
            discount={'kind': 'flat', 'value': '36'},
            payment_method='Card',
        )

        assert response.status_code == 201
        invoice = response.get_json()['invoice']
        assert invoice['total_amount'] == '200.00'
        assert invoice['gross_total'] == '236.00'
        assert invoice['discount'] == {'kind': 'flat', 'value': '36.00', 'amount': '36.00'}
        assert invoice['payment_method'] == 'Card'
        assert invoice['invoice_number'].endswith('-001')
        assert invoice['items'][0]['line_total'] == '236.00'
        assert stock_of(product.id) == 8

    def test_insufficient_stock_is_400_with_details(self, client, db_session, account_a, token_a, make_product):
        product = make_product(account_a, stock=1)

        response = _create(client, token_a, items=[{'product_id': product.id, 'quantity': 3}])

        assert response.status_code == 400
        body = response.get_json()
        assert body['code'] == 'INSUFFICIENT_STOCK'
        assert body['details'] == {'product_id': product.id, 'available': 1, 'requested': 3}
        assert stock_of(product.id) == 1

    def test_empty_items(self, client, db_session, token_a):
        response = _create(client, token_a, items=[])

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_REQUEST'

    def test_non_json_body(self, client, db_session, token_a):
        response = client.post('/api/invoices', data='items=1', headers=auth_headers(token_a))

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_REQUEST'

    def test_invalid_discount(self, client, db_session, account_a, token_a, make_product):
        product = make_product(account_a, stock=10)

        response = _create(
            client, token_a,
            items=[{'product_id': product.id, 'quantity': 1}],
            discount={'kind': 'percentage', 'value': 110},
        )

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_DISCOUNT'
        assert stock_of(product.id) == 10

    def test_duplicate_number(self, client, db_session, account_a, token_a, make_product):
        product = make_product(account_a, stock=10)
        _create(client, token_a, items=[{'product_id': product.id, 'quantity': 1}], invoice_number='SHOP-1')

        response = _create(client, token_a, items=[{'product_id': product.id, 'quantity': 1}],
                           invoice_number='SHOP-1')

        assert response.status_code == 400
        assert response.get_json()['code'] == 'DUPLICATE_INVOICE_NUMBER'
        assert stock_of(product.id) == 9

    def test_oversized_discount_is_400(self, client, db_session, account_a, token_a, make_product):
        product = make_product(account_a, stock=10)

        response = _create(client, token_a, items=[{'product_id': product.id, 'quantity': 1}], discount=1e30)

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_DISCOUNT'
        assert stock_of(product.id) == 10

    def test_oversized_product_id_is_400(self, client, db_session, token_a):
        response = _create(client, token_a, items=[{'product_id': 10 ** 20, 'quantity': 1}])

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_REQUEST'

    def test_foreign_product_is_not_found(self, client, db_session, account_b, token_a, make_product):
        foreign = make_product(account_b, stock=10)

        response = _create(client, token_a, items=[{'product_id': foreign.id, 'quantity': 1}])

        assert response.status_code == 400
        assert response.get_json()['code'] == 'PRODUCT_NOT_FOUND'
        assert stock_of(foreign.id) == 10


class TestReadAndVoidRoutes:

    def test_list_and_get(self, client, db_session, account_a, token_a, make_product):
        product = make_product(account_a, stock=10)
        created = _create(client, token_a, items=[{'product_id': product.id, 'quantity': 1}]).get_json()['invoice']

        listing = client.get('/api/invoices', headers=auth_headers(token_a))
        by_number = client.get(f"/api/invoices/{created['invoice_number']}", headers=auth_headers(token_a))
        by_id = client.get(f"/api/invoices/{created['id']}", headers=auth_headers(token_a))

        assert listing.status_code == 200
        assert listing.get_json()['count'] == 1
        assert by_number.get_json()['invoice']['id'] == created['id']
        assert by_id.get_json()['invoice']['invoice_number'] == created['invoice_number']

    def test_list_pagination(self, client, db_session, account_a, token_a, make_product):
        product = make_product(account_a, stock=10)
        for _ in range(3):
            _create(client, token_a, items=[{'product_id': product.id, 'quantity': 1}])

        response = client.get('/api/invoices?page=2&per_page=2', headers=auth_headers(token_a))

        body = response.get_json()
        assert body['page'] == 2
        assert body['count'] == 1
        assert body['total'] == 3

    def test_void_then_404(self, client, db_session, account_a, token_a, make_product):
        product = make_product(account_a, stock=10)
        created = _create(client, token_a, items=[{'product_id': product.id, 'quantity': 4}]).get_json()['invoice']
        url = f"/api/invoices/{created['invoice_number']}"

        first = client.delete(url, headers=auth_headers(token_a))
        second = client.delete(url, headers=auth_headers(token_a))

        assert first.status_code == 200
        assert first.get_json()['success'] is True
        assert first.get_json()['restored'] == [{'product_id': product.id, 'quantity': 4, 'stock': 10}]
        assert second.status_code == 404
        assert second.get_json()['code'] == 'INVOICE_NOT_FOUND'
        assert client.get(url, headers=auth_headers(token_a)).status_code == 404
        assert stock_of(product.id) == 10

    def test_tenant_isolation(self, client, db_session, account_a, token_a, token_b, make_product):
        product = make_product(account_a, stock=10)
        created = _create(client, token_a, items=[{'product_id': product.id, 'quantity': 2}]).get_json()['invoice']
        url = f"/api/invoices/{created['invoice_number']}"

        assert client.get('/api/invoices', headers=auth_headers(token_b)).get_json()['count'] == 0
        assert client.get(url, headers=auth_headers(token_b)).status_code == 404
        assert client.delete(url, headers=auth_headers(token_b)).status_code == 404
        assert stock_of(product.id) == 8


class TestHealth:

    def test_health(self, client, db_session):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['checks']['database']['status'] == 'healthy'


class TestUnexpectedFailures:

    def test_oversized_numeric_key_is_404(self, client, db_session, token_a):
        url = f"/api/invoices/{10 ** 20}"

        assert client.get(url, headers=auth_headers(token_a)).status_code == 404
        assert client.delete(url, headers=auth_headers(token_a)).status_code == 404

    def test_list_failure_is_500(self, client, db_session, token_a, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(invoice_service, 'list_invoices', broken)

        response = client.get('/api/invoices', headers=auth_headers(token_a))

        assert response.status_code == 500
        assert response.get_json() == {'error': 'Internal server error'}

    def test_get_failure_is_500(self, client, db_session, token_a, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(invoice_service, 'get_invoice', broken)

        response = client.get('/api/invoices/INV-1', headers=auth_headers(token_a))

        assert response.status_code == 500
