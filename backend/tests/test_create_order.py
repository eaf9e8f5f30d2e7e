# Overview: Pytest coverage for manual order entry, customer records and priced product search.

"""
Manual Order Tests (/api/place-order)

- customer_id naming a registered Business -> Sale + Purchase
- customer_id naming one of the seller's own Customers -> Sale only
- Every line price is recorded in the seller's ledger for that customer
"""

from tradelink.ids import new_id
from tradelink.models import Customer, InventoryItem, PersonalizedPrice, Purchase, Sale

from conftest import auth_headers, make_product


def _order(client, seller, customer_id, items, **terms):
    payload = {
        'customer_id': customer_id,
        'items': items,
        'transaction_type': 'Offline',
        'status': 'Paid',
        'payment_method': 'Cash',
    }
    payload.update(terms)
    return client.post('/api/place-order/orders', json=payload, headers=auth_headers(seller))


class TestCreateOrder:
    """POST /api/place-order/orders"""

    def test_order_to_walk_in_customer(self, client, db_session, seller, product):
        walk_in = Customer(business_id=seller.id, name="Ravi Kumar")
        db_session.add(walk_in)
        db_session.commit()

        response = _order(client, seller, walk_in.id, [
            {'product_id': product.id, 'quantity': 4, 'price_cents': 90},
        ])

        assert response.status_code == 201
        body = response.get_json()
        assert body['purchase'] is None
        assert body['sale']['buyer_type'] == 'Customer'
        assert body['sale']['buyer']['name'] == 'Ravi Kumar'
        assert body['sale']['total_amount_cents'] == 360
        assert body['sale']['transaction_type'] == 'Offline'
        assert body['sale']['payment_method'] == 'Cash'
        assert db_session.query(Purchase).count() == 0

        price = db_session.query(PersonalizedPrice).one()
        assert (price.customer_id, price.price_cents) == (walk_in.id, 90)

    def test_order_to_registered_business(self, client, db_session, seller, buyer, product):
        response = _order(client, seller, buyer.id, [
            {'product_id': product.id, 'quantity': 2, 'price_cents': 95},
        ], transaction_type='Online', status='Unpaid', payment_method=None)

        assert response.status_code == 201
        body = response.get_json()
        assert body['sale']['buyer_type'] == 'Business'
        assert body['purchase']['buyer']['id'] == buyer.id
        assert body['purchase']['sale_id'] == body['sale']['id']
        assert body['purchase']['status'] == 'Unpaid'

        shadow = db_session.query(Customer).filter_by(business_id=seller.id, linked_business_id=buyer.id).one()
        assert db_session.query(PersonalizedPrice).one().customer_id == shadow.id

    def test_order_decrements_stock(self, client, db_session, seller, buyer, product):
        _order(client, seller, buyer.id, [{'product_id': product.id, 'quantity': 7, 'price_cents': 100}])

        db_session.expire_all()
        assert db_session.get(InventoryItem, product.id).qty == 43

    def test_other_sellers_customer_not_found(self, client, db_session, seller, outsider, product):
        foreign = Customer(business_id=outsider.id, name="Not Yours")
        db_session.add(foreign)
        db_session.commit()

        response = _order(client, seller, foreign.id, [{'product_id': product.id, 'quantity': 1, 'price_cents': 100}])

        assert response.status_code == 404
        assert db_session.query(Sale).count() == 0

    def test_unknown_customer_not_found(self, client, db_session, seller, product):
        response = _order(client, seller, new_id(), [{'product_id': product.id, 'quantity': 1, 'price_cents': 100}])
        assert response.status_code == 404

    def test_order_to_self_rejected(self, client, db_session, seller, product):
        response = _order(client, seller, seller.id, [{'product_id': product.id, 'quantity': 1, 'price_cents': 100}])
        assert response.status_code == 400

    def test_price_required(self, client, db_session, seller, buyer, product):
        response = _order(client, seller, buyer.id, [{'product_id': product.id, 'quantity': 1}])
        assert response.status_code == 400

    def test_invalid_terms_rejected(self, client, db_session, seller, buyer, product):
        items = [{'product_id': product.id, 'quantity': 1, 'price_cents': 100}]

        assert _order(client, seller, buyer.id, items, transaction_type='Barter').status_code == 400
        assert _order(client, seller, buyer.id, items, status='Maybe').status_code == 400
        assert _order(client, seller, buyer.id, items, payment_method='Shells').status_code == 400
        assert _order(client, seller, buyer.id, items, payment_method=None).status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_foreign_product_rejected(self, client, db_session, seller, buyer, outsider):
        foreign = make_product(db_session, outsider, "Foreign", gen_price_cents=10)

        response = _order(client, seller, buyer.id, [{'product_id': foreign.id, 'quantity': 1, 'price_cents': 10}])

        assert response.status_code == 400

    def test_insufficient_stock(self, client, db_session, seller, buyer, product):
        response = _order(client, seller, buyer.id, [{'product_id': product.id, 'quantity': 51, 'price_cents': 100}])

        assert response.status_code == 409
        assert db_session.query(Sale).count() == 0
        assert db_session.query(PersonalizedPrice).count() == 0


class TestCustomers:
    """GET/POST /api/place-order/customers"""

    def test_add_customer(self, client, db_session, seller):
        response = client.post(
            '/api/place-order/customers',
            json={'name': 'Ravi Kumar', 'contact': '+919811111111'},
            headers=auth_headers(seller),
        )

        assert response.status_code == 201
        customer = response.get_json()['customer']
        assert customer['business_id'] == seller.id
        assert customer['linked_business_id'] is None

    def test_add_customer_requires_name(self, client, db_session, seller):
        response = client.post('/api/place-order/customers', json={}, headers=auth_headers(seller))
        assert response.status_code == 400

    def test_search_matches_letters_in_order(self, client, db_session, seller, outsider):
        for owner, name in ((seller, 'A Big Company'), (seller, 'Bca Agency'), (outsider, 'Abc Foreign')):
            db_session.add(Customer(business_id=owner.id, name=name))
        db_session.commit()

        response = client.get('/api/place-order/customers?name=abc', headers=auth_headers(seller))

        names = [c['name'] for c in response.get_json()['customers']]
        assert names == ['A Big Company']

    def test_search_without_term_lists_all_owned(self, client, db_session, seller):
        for name in ('Zed', 'Amy'):
            db_session.add(Customer(business_id=seller.id, name=name))
        db_session.commit()

        response = client.get('/api/place-order/customers', headers=auth_headers(seller))

        assert [c['name'] for c in response.get_json()['customers']] == ['Amy', 'Zed']

    def test_search_treats_wildcards_literally(self, client, db_session, seller):
        db_session.add(Customer(business_id=seller.id, name='Plain Name'))
        db_session.commit()

        response = client.get('/api/place-order/customers?name=%25', headers=auth_headers(seller))

        assert response.get_json()['customers'] == []


class TestProductSearch:
    """GET /api/place-order/products"""

    def test_priced_for_named_customer(self, client, db_session, seller, product):
        walk_in = Customer(business_id=seller.id, name="Ravi Kumar")
        db_session.add(walk_in)
        db_session.commit()
        _order(client, seller, walk_in.id, [{'product_id': product.id, 'quantity': 1, 'price_cents': 70}])
        make_product(db_session, seller, "Unpriced")

        headers = auth_headers(seller)
        generic = client.get('/api/place-order/products', headers=headers).get_json()['products']
        personal = client.get(
            '/api/place-order/products', query_string={'customer_name': 'Ravi Kumar'}, headers=headers
        ).get_json()['products']

        assert [(p['id'], p['price_cents']) for p in generic] == [(product.id, 100)]
        assert [(p['id'], p['price_cents']) for p in personal] == [(product.id, 70)]

    def test_name_filter(self, client, db_session, seller, product):
        make_product(db_session, seller, "Green Tea", gen_price_cents=300)

        response = client.get('/api/place-order/products?name=tea', headers=auth_headers(seller))

        assert [p['name'] for p in response.get_json()['products']] == ['Green Tea']


class TestCatalog:
    """GET /api/businesses/<id>/catalog"""

    def test_buyer_sees_negotiated_prices(self, client, db_session, seller, buyer, product):
        _order(client, seller, buyer.id, [{'product_id': product.id, 'quantity': 1, 'price_cents': 85}])

        response = client.get(f'/api/businesses/{seller.id}/catalog', headers=auth_headers(buyer))

        assert response.status_code == 200
        body = response.get_json()
        assert body['business']['id'] == seller.id
        assert [(p['id'], p['price_cents']) for p in body['products']] == [(product.id, 85)]

    def test_other_buyer_sees_default_prices(self, client, db_session, seller, buyer, outsider, product):
        _order(client, seller, buyer.id, [{'product_id': product.id, 'quantity': 1, 'price_cents': 85}])

        response = client.get(f'/api/businesses/{seller.id}/catalog', headers=auth_headers(outsider))

        assert response.get_json()['products'][0]['price_cents'] == 100

    def test_unknown_business(self, client, db_session, buyer):
        response = client.get(f'/api/businesses/{new_id()}/catalog', headers=auth_headers(buyer))
        assert response.status_code == 404
