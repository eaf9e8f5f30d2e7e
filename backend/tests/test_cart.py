# Overview: Pytest coverage for the buyer cart API.

"""
Cart API Tests

- One cart per buyer, single seller at a time (409 on mismatch)
- Re-adding a product replaces its quantity
- Removing decrements by one and clears the seller once empty
- Prices come from the request or from the buyer's effective price
"""

from tradelink.ids import new_id
from tradelink.models import Cart, CartItem, Customer
from tradelink.services import pricing_service

from conftest import auth_headers, make_product


def _add(client, headers, product_id, quantity, **extra):
    return client.post(
        '/api/cart/add',
        json={'product_id': product_id, 'quantity': quantity, **extra},
        headers=headers,
    )


class TestCartAdd:
    """POST /api/cart/add"""

    def test_requires_authentication(self, client, db_session, product):
        response = client.post('/api/cart/add', json={'product_id': product.id, 'quantity': 1})
        assert response.status_code == 401
        assert response.get_json()['code'] == 'AUTHENTICATION_REQUIRED'

    def test_add_uses_effective_price(self, client, db_session, buyer, seller, product):
        """Without price_cents the generalized price is captured."""
        response = _add(client, auth_headers(buyer), product.id, 3)

        assert response.status_code == 200
        cart = response.get_json()['cart']
        assert cart['seller']['id'] == seller.id
        assert cart['items'][0]['quantity'] == 3
        assert cart['items'][0]['price_cents'] == 100
        assert cart['total_amount_cents'] == 300

    def test_add_uses_personalized_price(self, client, db_session, buyer, seller, product):
        """A negotiated rate in the seller's books wins over gen price."""
        shadow = Customer(business_id=seller.id, name=buyer.business_name, linked_business_id=buyer.id)
        db_session.add(shadow)
        db_session.commit()
        pricing_service.upsert_personalized_prices(
            seller.id, shadow.id, [{'product_id': product.id, 'price_cents': 80}]
        )
        db_session.commit()

        response = _add(client, auth_headers(buyer), product.id, 1)

        assert response.status_code == 200
        assert response.get_json()['cart']['items'][0]['price_cents'] == 80

    def test_add_with_explicit_price(self, client, db_session, buyer, product):
        response = _add(client, auth_headers(buyer), product.id, 2, price_cents=90)

        assert response.status_code == 200
        assert response.get_json()['cart']['items'][0]['price_cents'] == 90

    def test_readd_replaces_quantity(self, client, db_session, buyer, product):
        """Adding the same product twice keeps the last quantity, never the sum."""
        headers = auth_headers(buyer)
        _add(client, headers, product.id, 3)
        response = _add(client, headers, product.id, 5)

        items = response.get_json()['cart']['items']
        assert len(items) == 1
        assert items[0]['quantity'] == 5
        assert db_session.query(CartItem).count() == 1

    def test_other_seller_product_conflicts(self, client, db_session, buyer, outsider, product):
        """Cart holds one seller's products only."""
        other = make_product(db_session, outsider, "Product Q", gen_price_cents=200)
        headers = auth_headers(buyer)
        _add(client, headers, product.id, 1)

        response = _add(client, headers, other.id, 1)

        assert response.status_code == 409
        body = response.get_json()
        assert body['code'] == 'CONFLICT'
        assert body['details']['reason'] == 'CART_SELLER_MISMATCH'
        assert db_session.query(CartItem).count() == 1

    def test_own_product_rejected(self, client, db_session, seller, product):
        response = _add(client, auth_headers(seller), product.id, 1)
        assert response.status_code == 400

    def test_unknown_product_not_found(self, client, db_session, buyer):
        response = _add(client, auth_headers(buyer), new_id(), 1)
        assert response.status_code == 404

    def test_malformed_product_id_rejected(self, client, db_session, buyer):
        response = _add(client, auth_headers(buyer), 'not-an-id', 1)
        assert response.status_code == 400

    def test_non_positive_quantity_rejected(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        assert _add(client, headers, product.id, 0).status_code == 400
        assert _add(client, headers, product.id, -2).status_code == 400
        assert _add(client, headers, product.id, 'many').status_code == 400

    def test_unpriced_product_rejected(self, client, db_session, buyer, seller):
        item = make_product(db_session, seller, "No price")

        response = _add(client, auth_headers(buyer), item.id, 1)

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Product has no price'


class TestCartRead:
    """GET /api/cart and /api/cart/is-empty"""

    def test_no_cart(self, client, db_session, buyer):
        headers = auth_headers(buyer)

        assert client.get('/api/cart', headers=headers).get_json() == {'cart': None}
        assert client.get('/api/cart/is-empty', headers=headers).get_json() == {'empty': True}

    def test_cart_with_items(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        _add(client, headers, product.id, 2)

        cart = client.get('/api/cart', headers=headers).get_json()['cart']

        assert cart['buyer_id'] == buyer.id
        assert cart['items'][0]['product']['name'] == 'Product P'
        assert client.get('/api/cart/is-empty', headers=headers).get_json() == {'empty': False}

    def test_cart_is_private_to_buyer(self, client, db_session, buyer, outsider, product):
        _add(client, auth_headers(buyer), product.id, 2)

        response = client.get('/api/cart', headers=auth_headers(outsider))

        assert response.get_json() == {'cart': None}


class TestCartRemoveAndClear:
    """DELETE /api/cart/item/<id> and /api/cart/clear"""

    def test_remove_decrements_by_one(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        _add(client, headers, product.id, 2)

        response = client.delete(f'/api/cart/item/{product.id}', headers=headers)

        assert response.status_code == 200
        assert response.get_json()['cart']['items'][0]['quantity'] == 1

    def test_last_unit_removes_line_and_seller(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        _add(client, headers, product.id, 1)

        response = client.delete(f'/api/cart/item/{product.id}', headers=headers)

        cart = response.get_json()['cart']
        assert cart['items'] == []
        assert cart['seller'] is None
        assert client.get('/api/cart/is-empty', headers=headers).get_json() == {'empty': True}

    def test_emptied_cart_accepts_another_seller(self, client, db_session, buyer, outsider, product):
        other = make_product(db_session, outsider, "Product Q", gen_price_cents=200)
        headers = auth_headers(buyer)
        _add(client, headers, product.id, 1)
        client.delete(f'/api/cart/item/{product.id}', headers=headers)

        response = _add(client, headers, other.id, 1)

        assert response.status_code == 200
        assert response.get_json()['cart']['seller']['id'] == outsider.id

    def test_remove_absent_product_is_noop(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        _add(client, headers, product.id, 2)

        response = client.delete(f'/api/cart/item/{new_id()}', headers=headers)

        assert response.status_code == 200
        assert response.get_json()['cart']['items'][0]['quantity'] == 2

    def test_remove_without_cart_not_found(self, client, db_session, buyer, product):
        response = client.delete(f'/api/cart/item/{product.id}', headers=auth_headers(buyer))
        assert response.status_code == 404

    def test_clear_deletes_cart(self, client, db_session, buyer, product):
        headers = auth_headers(buyer)
        _add(client, headers, product.id, 2)

        response = client.delete('/api/cart/clear', headers=headers)

        assert response.status_code == 200
        assert db_session.query(Cart).count() == 0
        assert db_session.query(CartItem).count() == 0

    def test_clear_without_cart_not_found(self, client, db_session, buyer):
        response = client.delete('/api/cart/clear', headers=auth_headers(buyer))
        assert response.status_code == 404
