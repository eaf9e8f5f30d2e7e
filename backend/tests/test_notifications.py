# Overview: Pytest coverage for order notifications and draft rejection.

"""
Notification Tests

LIFECYCLE: ORDER_RECEIVED -> ORDER_CONFIRMED | ORDER_REJECTED
Each transition swaps initiator/recipient and resets is_read.
Only the two parties of a notification can see or act on it.
"""

import pytest

from tradelink.errors import ConflictError, NotFoundError
from tradelink.ids import new_id
from tradelink.models import DraftOrder, DraftOrderLine, Notification
from tradelink.services import notification_service, order_service

from conftest import auth_headers


@pytest.fixture
def pending(db_session, seller, buyer, product):
    """A drafts P x 2 to B; B holds an unread ORDER_RECEIVED."""
    draft, notification = order_service.create_draft_for_buyer(
        seller.id, buyer.id, [{'product_id': product.id, 'quantity': 2, 'price_cents': 100}]
    )
    return draft.id, notification.id


@pytest.fixture
def confirmed(db_session, seller, buyer, product):
    """A second draft A -> B, committed by A; A holds the ORDER_CONFIRMED."""
    draft, notification = order_service.create_draft_for_buyer(
        seller.id, buyer.id, [{'product_id': product.id, 'quantity': 1, 'price_cents': 100}]
    )
    _, purchase, _ = order_service.place_draft_order(draft.id, seller.id)
    return notification.id, purchase.id


class TestRejection:
    """POST /api/notifications/<id>/reject"""

    def test_buyer_rejects_draft(self, client, db_session, seller, buyer, pending):
        draft_id, notification_id = pending

        response = client.post(f'/api/notifications/{notification_id}/reject', headers=auth_headers(buyer))

        assert response.status_code == 200
        body = response.get_json()
        assert body['message'] == 'Order rejected'
        notification = body['notification']
        assert notification['type'] == 'ORDER_REJECTED'
        assert notification['initiator']['id'] == buyer.id
        assert notification['recipient']['id'] == seller.id
        assert notification['order_type'] is None
        assert notification['order_id'] is None
        assert notification['is_read'] is False

        assert db_session.get(DraftOrder, draft_id) is None
        assert db_session.query(DraftOrderLine).count() == 0

    def test_initiator_cannot_reject(self, client, db_session, seller, buyer, pending):
        draft_id, notification_id = pending

        response = client.post(f'/api/notifications/{notification_id}/reject', headers=auth_headers(seller))

        assert response.status_code == 404
        db_session.expire_all()
        assert db_session.get(DraftOrder, draft_id) is not None
        assert db_session.get(Notification, notification_id).type == 'ORDER_RECEIVED'

    def test_reject_twice_conflicts(self, client, db_session, buyer, pending):
        _, notification_id = pending
        headers = auth_headers(buyer)

        client.post(f'/api/notifications/{notification_id}/reject', headers=headers)
        response = client.post(f'/api/notifications/{notification_id}/reject', headers=headers)

        assert response.status_code == 409

    def test_reject_confirmed_conflicts(self, client, db_session, seller, confirmed):
        notification_id, _ = confirmed

        response = client.post(f'/api/notifications/{notification_id}/reject', headers=auth_headers(seller))

        assert response.status_code == 409
        db_session.expire_all()
        assert db_session.get(Notification, notification_id).type == 'ORDER_CONFIRMED'

    def test_outsider_cannot_reject(self, client, db_session, outsider, pending):
        draft_id, notification_id = pending

        response = client.post(f'/api/notifications/{notification_id}/reject', headers=auth_headers(outsider))

        assert response.status_code == 404
        assert db_session.get(DraftOrder, draft_id) is not None

    def test_commit_after_reject_not_found(self, db_session, seller, buyer, pending):
        draft_id, notification_id = pending
        order_service.reject_order_notification(notification_id, buyer.id)

        with pytest.raises(NotFoundError):
            order_service.place_draft_order(draft_id, seller.id)

    def test_reject_after_commit_conflicts(self, db_session, seller, buyer, pending):
        draft_id, notification_id = pending
        order_service.place_draft_order(draft_id, seller.id)

        # The commit swapped the parties; the seller now holds the notification
        with pytest.raises(ConflictError):
            order_service.reject_order_notification(notification_id, seller.id)


class TestWithdrawal:
    """POST /api/notifications/<id>/withdraw"""

    def test_initiator_withdraws_draft(self, client, db_session, seller, buyer, pending):
        draft_id, notification_id = pending

        response = client.post(f'/api/notifications/{notification_id}/withdraw', headers=auth_headers(seller))

        assert response.status_code == 200
        body = response.get_json()
        assert body['message'] == 'Order withdrawn'
        notification = body['notification']
        assert notification['type'] == 'ORDER_REJECTED'
        assert notification['initiator']['id'] == seller.id
        assert notification['recipient']['id'] == buyer.id
        assert notification['order_id'] is None
        assert notification['is_read'] is False

        assert db_session.get(DraftOrder, draft_id) is None
        assert db_session.query(DraftOrderLine).count() == 0

    def test_withdrawn_draft_leaves_pending(self, client, db_session, seller, buyer, pending):
        _, notification_id = pending

        client.post(f'/api/notifications/{notification_id}/withdraw', headers=auth_headers(seller))

        body = client.get('/api/notifications?filter=pending', headers=auth_headers(buyer)).get_json()
        assert body['notifications'] == []

    def test_recipient_cannot_withdraw(self, client, db_session, buyer, pending):
        draft_id, notification_id = pending

        response = client.post(f'/api/notifications/{notification_id}/withdraw', headers=auth_headers(buyer))

        assert response.status_code == 404
        assert db_session.get(DraftOrder, draft_id) is not None

    def test_withdraw_after_reject_not_found(self, db_session, seller, buyer, pending):
        _, notification_id = pending
        order_service.reject_order_notification(notification_id, buyer.id)

        # The rejection swapped the parties, so the seller is now the recipient
        with pytest.raises(NotFoundError):
            order_service.withdraw_order_notification(notification_id, seller.id)

    def test_withdraw_after_commit_conflicts(self, db_session, seller, buyer, pending):
        draft_id, notification_id = pending
        order_service.place_draft_order(draft_id, buyer.id)

        with pytest.raises(ConflictError):
            order_service.withdraw_order_notification(notification_id, buyer.id)


class TestListing:
    """GET /api/notifications?filter=..."""

    def _ids(self, client, business, filter=None):
        url = '/api/notifications' + (f'?filter={filter}' if filter else '')
        response = client.get(url, headers=auth_headers(business))
        assert response.status_code == 200
        return {n['id'] for n in response.get_json()['notifications']}

    def test_filters(self, client, db_session, seller, buyer, pending, confirmed):
        _, pending_id = pending
        confirmed_id, _ = confirmed

        # B: received the pending proposal, sent the confirmation
        assert self._ids(client, buyer) == {pending_id}
        assert self._ids(client, buyer, 'incoming') == {pending_id}
        assert self._ids(client, buyer, 'pending') == {pending_id}
        assert self._ids(client, buyer, 'purchases') == set()
        assert self._ids(client, buyer, 'outgoing') == {confirmed_id}

        # A: sent the pending proposal, received the confirmation
        assert self._ids(client, seller) == {confirmed_id}
        assert self._ids(client, seller, 'purchases') == {confirmed_id}
        assert self._ids(client, seller, 'pending') == set()
        assert self._ids(client, seller, 'outgoing') == {pending_id}

    def test_unread_filter_and_count(self, client, db_session, buyer, pending):
        _, notification_id = pending
        headers = auth_headers(buyer)

        assert self._ids(client, buyer, 'unread') == {notification_id}
        assert client.get('/api/notifications/unread-count', headers=headers).get_json() == {'count': 1}

        client.patch(f'/api/notifications/{notification_id}/read', headers=headers)

        assert self._ids(client, buyer, 'unread') == set()
        assert client.get('/api/notifications/unread-count', headers=headers).get_json() == {'count': 0}

    def test_order_reference_is_resolved(self, client, db_session, seller, buyer, pending, confirmed):
        draft_id, _ = pending
        _, purchase_id = confirmed

        incoming_b = client.get('/api/notifications', headers=auth_headers(buyer)).get_json()['notifications']
        incoming_a = client.get('/api/notifications', headers=auth_headers(seller)).get_json()['notifications']

        assert incoming_b[0]['order']['id'] == draft_id
        assert incoming_b[0]['order']['items'][0]['quantity'] == 2
        assert incoming_a[0]['order']['id'] == purchase_id
        assert incoming_a[0]['order']['kind'] == 'purchase'

    def test_unknown_filter_rejected(self, client, db_session, buyer):
        response = client.get('/api/notifications?filter=everything', headers=auth_headers(buyer))
        assert response.status_code == 400

    def test_outsider_sees_nothing(self, client, db_session, outsider, pending):
        assert self._ids(client, outsider) == set()
        assert self._ids(client, outsider, 'outgoing') == set()


class TestMarkRead:
    """PATCH /api/notifications/<id>/read"""

    def test_mark_read_is_idempotent(self, client, db_session, buyer, pending):
        _, notification_id = pending
        headers = auth_headers(buyer)

        first = client.patch(f'/api/notifications/{notification_id}/read', headers=headers)
        second = client.patch(f'/api/notifications/{notification_id}/read', headers=headers)

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.get_json()['notification']['is_read'] is True

    def test_initiator_cannot_mark(self, client, db_session, seller, buyer, pending):
        _, notification_id = pending

        response = client.patch(f'/api/notifications/{notification_id}/read', headers=auth_headers(seller))

        assert response.status_code == 404
        count = client.get('/api/notifications/unread-count', headers=auth_headers(buyer)).get_json()
        assert count == {'count': 1}

    def test_service_refuses_initiator(self, db_session, seller, pending):
        _, notification_id = pending

        with pytest.raises(NotFoundError):
            notification_service.mark_read(notification_id, seller.id)

    def test_outsider_cannot_mark(self, client, db_session, outsider, pending):
        _, notification_id = pending
        response = client.patch(f'/api/notifications/{notification_id}/read', headers=auth_headers(outsider))
        assert response.status_code == 404

    def test_unknown_notification(self, client, db_session, buyer):
        response = client.patch(f'/api/notifications/{new_id()}/read', headers=auth_headers(buyer))
        assert response.status_code == 404


class TestCreateNotification:
    """POST /api/notifications"""

    def test_duplicate_refused(self, client, db_session, buyer, pending):
        draft_id, _ = pending

        response = client.post('/api/notifications', json={'order_id': draft_id}, headers=auth_headers(buyer))

        assert response.status_code == 409

    def test_announce_unannounced_draft(self, client, db_session, seller, buyer, pending):
        draft_id, notification_id = pending
        db_session.delete(db_session.get(Notification, notification_id))
        db_session.commit()

        response = client.post('/api/notifications', json={'order_id': draft_id}, headers=auth_headers(buyer))

        assert response.status_code == 201
        notification = response.get_json()['notification']
        assert notification['initiator']['id'] == buyer.id
        assert notification['recipient']['id'] == seller.id
        assert notification['type'] == 'ORDER_RECEIVED'
        assert notification['order_id'] == draft_id

    def test_invalid_type_rejected(self, client, db_session, buyer, pending):
        draft_id, _ = pending

        response = client.post(
            '/api/notifications',
            json={'order_id': draft_id, 'type': 'ORDER_SHIPPED'},
            headers=auth_headers(buyer),
        )

        assert response.status_code == 400

    def test_non_party_not_found(self, client, db_session, outsider, pending):
        draft_id, _ = pending
        response = client.post('/api/notifications', json={'order_id': draft_id}, headers=auth_headers(outsider))
        assert response.status_code == 404


class TestByOrder:
    """GET /api/notifications/order/<order_id>"""

    def test_parties_see_order_notifications(self, client, db_session, seller, buyer, outsider, pending):
        draft_id, notification_id = pending

        for party in (seller, buyer):
            response = client.get(f'/api/notifications/order/{draft_id}', headers=auth_headers(party))
            assert [n['id'] for n in response.get_json()['notifications']] == [notification_id]

        response = client.get(f'/api/notifications/order/{draft_id}', headers=auth_headers(outsider))
        assert response.get_json()['notifications'] == []


class TestServiceHelpers:

    def test_resolve_reference_after_rejection(self, db_session, buyer, pending):
        _, notification_id = pending
        notification = order_service.reject_order_notification(notification_id, buyer.id)

        assert notification_service.resolve_order_reference(notification) is None
