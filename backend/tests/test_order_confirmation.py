# Overview: Pytest coverage for cart checkout and the Sale/Purchase ledgers.

"""
Order Confirmation Tests (cart checkout)

Every confirmed trade between two registered businesses yields exactly one
Sale (seller side) and one Purchase (buyer side) with identical lines and
totals, and consumes its source cart in the same transaction.
"""

import pytest

from tradelink.errors import InsufficientStockError, ValidationError
from tradelink.models import Cart, InventoryItem, PersonalizedPrice, Purchase, Sale
from tradelink.services import cart_service, order_service

from conftest import auth_headers, make_product


def _fill_cart(client, headers, *entries):
    for product_id, quantity in entries:
        response = client.post(
            '/api/cart/add',
            json={'product_id': product_id, 'quantity': quantity},
            headers=headers,
        )
        assert response.status_code == 200


class TestCartCheckout:
    """POST /api/cart/place-order"""

    def test_checkout_creates_paired_sale_and_purchase(self, client, db_session, buyer, seller, product):
        """Cart (P x 3 @ 100) -> Sale + Purchase of 300, cart gone."""
        headers = auth_headers(buyer)
        _fill_cart(client, headers, (product.id, 3))

        response = client.post('/api/cart/place-order', headers=headers)

        assert response.status_code == 201
        body = response.get_json()
        sale, purchase = body['sale'], body['purchase']
        assert sale['total_amount_cents'] == 300
        assert purchase['total_amount_cents'] == 300
        assert sale['seller']['id'] == seller.id
        assert sale['buyer_type'] == 'Business'
        assert sale['buyer']['id'] == buyer.id
        assert purchase['buyer']['id'] == buyer.id
        assert purchase['sale_id'] == sale['id']
        assert sale['items'] == purchase['items']
        assert sale['items'][0]['quantity'] == 3
        assert sale['items'][0]['price_cents'] == 100
        assert (sale['transaction_type'], sale['status'], sale['payment_method']) == ('Online', 'Paid', 'UPI')

        assert db_session.query(Cart).count() == 0
        assert db_session.query(Sale).count() == 1
        assert db_session.query(Purchase).count() == 1

    def test_checkout_writes_no_personalized_prices(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        _fill_cart(client, headers, (product.id, 1))

        client.post('/api/cart/place-order', headers=headers)

        assert db_session.query(PersonalizedPrice).count() == 0

    def test_line_snapshot_survives_price_change(self, client, db_session, buyer, seller, product):
        """Committed lines keep the captured price."""
        headers = auth_headers(buyer)
        _fill_cart(client, headers, (product.id, 2))
        client.post('/api/cart/place-order', headers=headers)

        db_session.expire_all()
        db_session.get(InventoryItem, product.id).gen_price_cents = 999
        db_session.commit()

        sales = client.get('/api/orders/sales', headers=auth_headers(seller)).get_json()['sales']
        assert sales[0]['items'][0]['price_cents'] == 100
        assert sales[0]['total_amount_cents'] == 200

    def test_checkout_decrements_stock(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        _fill_cart(client, headers, (product.id, 5))

        client.post('/api/cart/place-order', headers=headers)

        db_session.expire_all()
        assert db_session.get(InventoryItem, product.id).qty == 45

    def test_empty_cart_rejected(self, client, db_session, buyer):
        response = client.post('/api/cart/place-order', headers=auth_headers(buyer))

        assert response.status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_insufficient_stock_rolls_back(self, client, db_session, buyer, seller):
        """Short stock leaves cart, stock and ledgers untouched."""
        plenty = make_product(db_session, seller, "Plenty", qty=10, gen_price_cents=100)
        scarce = make_product(db_session, seller, "Scarce", qty=1, gen_price_cents=100)
        headers = auth_headers(buyer)
        _fill_cart(client, headers, (plenty.id, 2), (scarce.id, 3))

        response = client.post('/api/cart/place-order', headers=headers)

        assert response.status_code == 409
        body = response.get_json()
        assert body['code'] == 'INSUFFICIENT_STOCK'
        assert body['details']['items'][0]['product_id'] == scarce.id

        db_session.expire_all()
        assert db_session.get(InventoryItem, plenty.id).qty == 10
        assert db_session.get(InventoryItem, scarce.id).qty == 1
        assert db_session.query(Sale).count() == 0
        assert db_session.query(Purchase).count() == 0
        assert db_session.query(Cart).count() == 1

    def test_stock_not_enforced_when_disabled(self, app, client, db_session, buyer, seller):
        app.config['ENFORCE_STOCK'] = False
        scarce = make_product(db_session, seller, "Scarce", qty=1, gen_price_cents=100)
        headers = auth_headers(buyer)
        _fill_cart(client, headers, (scarce.id, 3))

        response = client.post('/api/cart/place-order', headers=headers)

        assert response.status_code == 201
        db_session.expire_all()
        assert db_session.get(InventoryItem, scarce.id).qty == 1


class TestCheckoutService:
    """order_service.checkout_cart called directly."""

    def test_second_checkout_finds_cart_gone(self, db_session, buyer, product):
        cart_service.add_item(buyer.id, product.id, 1)
        order_service.checkout_cart(buyer.id)

        with pytest.raises(ValidationError):
            order_service.checkout_cart(buyer.id)

        assert db_session.query(Sale).count() == 1

    def test_insufficient_stock_error_type(self, db_session, buyer, seller):
        scarce = make_product(db_session, seller, "Scarce", qty=0, gen_price_cents=100)
        cart_service.add_item(buyer.id, scarce.id, 1)

        with pytest.raises(InsufficientStockError):
            order_service.checkout_cart(buyer.id)


class TestLedgerReads:
    """GET /api/orders/sales, /purchases and /<order_id>"""

    @pytest.fixture
    def committed(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        _fill_cart(client, headers, (product.id, 2))
        body = client.post('/api/cart/place-order', headers=headers).get_json()
        return body['sale'], body['purchase']

    def test_seller_sees_sale_only(self, client, db_session, seller, committed):
        headers = auth_headers(seller)
        sale, _ = committed

        sales = client.get('/api/orders/sales', headers=headers).get_json()['sales']
        purchases = client.get('/api/orders/purchases', headers=headers).get_json()['purchases']

        assert [s['id'] for s in sales] == [sale['id']]
        assert sales[0]['buyer']['business_name'] == 'Beta Stores'
        assert purchases == []

    def test_buyer_sees_purchase_only(self, client, db_session, buyer, committed):
        headers = auth_headers(buyer)
        _, purchase = committed

        purchases = client.get('/api/orders/purchases', headers=headers).get_json()['purchases']
        sales = client.get('/api/orders/sales', headers=headers).get_json()['sales']

        assert [p['id'] for p in purchases] == [purchase['id']]
        assert sales == []

    def test_get_order_by_either_id(self, client, db_session, seller, buyer, committed):
        sale, purchase = committed

        by_sale = client.get(f"/api/orders/{sale['id']}", headers=auth_headers(seller))
        by_purchase = client.get(f"/api/orders/{purchase['id']}", headers=auth_headers(buyer))

        assert by_sale.status_code == 200
        assert by_sale.get_json()['order']['kind'] == 'sale'
        assert by_purchase.status_code == 200
        assert by_purchase.get_json()['order']['kind'] == 'purchase'

    def test_buyer_can_read_sale_of_its_purchase(self, client, db_session, buyer, committed):
        sale, _ = committed

        response = client.get(f"/api/orders/{sale['id']}", headers=auth_headers(buyer))

        assert response.status_code == 200
        assert response.get_json()['order']['id'] == sale['id']

    def test_outsider_gets_not_found(self, client, db_session, outsider, committed):
        sale, purchase = committed
        headers = auth_headers(outsider)

        assert client.get(f"/api/orders/{sale['id']}", headers=headers).status_code == 404
        assert client.get(f"/api/orders/{purchase['id']}", headers=headers).status_code == 404
