# Overview: Notification coordinator; order-lifecycle events between two Businesses.

"""
Notification Service

LIFECYCLE (per notification):
    ORDER_RECEIVED -> ORDER_CONFIRMED | ORDER_REJECTED
ORDER_UPDATE is a valid stored type but no flow emits it.

The order reference is a tagged pair (order_type, order_id):
- "Order"    -> DraftOrder, while the proposal is pending
- "Purchase" -> Purchase, once confirmed
- (None, None) after a rejection
resolve_order_reference() is the only place that maps the tag to a table.

Transitions that touch a draft (confirm, reject) live in order_service so
they share the confirmation transaction.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import DraftOrder, Notification, Purchase
from ..models.notifications import (
    NOTIFICATION_TYPES,
    ORDER_RECEIVED,
    REF_ORDER,
    REF_PURCHASE,
)


FILTER_INCOMING = "incoming"
FILTER_OUTGOING = "outgoing"
FILTER_PENDING = "pending"
FILTER_PURCHASES = "purchases"
FILTER_UNREAD = "unread"
NOTIFICATION_FILTERS = (FILTER_INCOMING, FILTER_OUTGOING, FILTER_PENDING, FILTER_PURCHASES, FILTER_UNREAD)


def new_notification(
    initiator_id: str,
    recipient_id: str,
    order_type: str | None,
    order_id: str | None,
    type: str = ORDER_RECEIVED,
) -> Notification:
    """Stage a notification in the current transaction (flush, no commit)."""
    notification = Notification(
        initiator_id=initiator_id,
        recipient_id=recipient_id,
        order_type=order_type,
        order_id=order_id,
        type=type,
        is_read=False,
    )
    db.session.add(notification)
    db.session.flush()
    return notification


def find_for_draft(draft_id: str, *, lock: bool = False) -> Notification | None:
    """The notification still pointing at a pending draft, oldest first."""
    query = (
        db.session.query(Notification)
        .filter_by(order_type=REF_ORDER, order_id=draft_id)
        .order_by(Notification.created_at.asc())
    )
    if lock:
        query = query.with_for_update()
    return query.first()


def create_notification(actor_id: str, order_id: str, type: str = ORDER_RECEIVED) -> Notification:
    """
    Announce a draft the actor is party to; the other party is the recipient.

    A draft already announced by a live notification is refused (409).
    """
    if type not in NOTIFICATION_TYPES:
        raise ValidationError(
            "Invalid notification type",
            details={"allowed": list(NOTIFICATION_TYPES)},
        )

    draft = db.session.get(DraftOrder, order_id)
    if draft is None or not draft.is_party(actor_id):
        raise NotFoundError("Order not found")
    if find_for_draft(order_id) is not None:
        raise ConflictError("Order already has a notification", details={"order_id": order_id})

    notification = new_notification(
        initiator_id=actor_id,
        recipient_id=draft.counterparty_of(actor_id),
        order_type=REF_ORDER,
        order_id=order_id,
        type=type,
    )
    db.session.commit()
    current_app.logger.info("Notification %s created for order %s", notification.id, order_id)
    return notification


def list_notifications(business_id: str, filter: str | None = None) -> list[Notification]:
    """
    Notifications for business_id, newest first.

    filter: None/"incoming" (recipient is me), "outgoing" (I initiated),
    "pending" (incoming, still on a draft), "purchases" (incoming, confirmed
    into a Purchase), "unread" (incoming, unread).
    """
    if filter in (None, ""):
        filter = FILTER_INCOMING
    if filter not in NOTIFICATION_FILTERS:
        raise ValidationError(
            "Invalid notification filter",
            details={"allowed": list(NOTIFICATION_FILTERS)},
        )

    query = db.session.query(Notification)
    if filter == FILTER_OUTGOING:
        query = query.filter(Notification.initiator_id == business_id)
    else:
        query = query.filter(Notification.recipient_id == business_id)

    if filter == FILTER_PENDING:
        query = query.filter(Notification.order_type == REF_ORDER)
    elif filter == FILTER_PURCHASES:
        query = query.filter(Notification.order_type == REF_PURCHASE)
    elif filter == FILTER_UNREAD:
        query = query.filter(Notification.is_read.is_(False))

    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def get_for_recipient(notification_id: str, business_id: str) -> Notification:
    """The notification as addressed to business_id; the initiator gets 404 too."""
    notification = db.session.get(Notification, notification_id)
    if notification is None or notification.recipient_id != business_id:
        raise NotFoundError("Notification not found")
    return notification


def get_for_initiator(notification_id: str, business_id: str) -> Notification:
    notification = db.session.get(Notification, notification_id)
    if notification is None or notification.initiator_id != business_id:
        raise NotFoundError("Notification not found")
    return notification


def mark_read(notification_id: str, business_id: str) -> Notification:
    """
    Idempotent: marking an already-read notification changes nothing.

    The read flag belongs to the recipient; the initiator cannot clear it.
    """
    notification = get_for_recipient(notification_id, business_id)
    if not notification.is_read:
        notification.is_read = True
        db.session.commit()
    return notification


def unread_count(business_id: str) -> int:
    return (
        db.session.query(func.count(Notification.id))
        .filter(Notification.recipient_id == business_id, Notification.is_read.is_(False))
        .scalar()
    ) or 0


def list_by_order(order_id: str, business_id: str) -> list[Notification]:
    """Notifications referencing order_id under either tag, scoped to the caller."""
    return (
        db.session.query(Notification)
        .filter(
            Notification.order_id == order_id,
            (Notification.initiator_id == business_id) | (Notification.recipient_id == business_id),
        )
        .order_by(Notification.created_at.desc())
        .all()
    )


def resolve_order_reference(notification: Notification) -> dict | None:
    """Load the referenced DraftOrder or Purchase by its tag."""
    if notification.order_type is None or notification.order_id is None:
        return None
    if notification.order_type == REF_ORDER:
        order = db.session.get(DraftOrder, notification.order_id)
    elif notification.order_type == REF_PURCHASE:
        order = db.session.get(Purchase, notification.order_id)
    else:
        raise ValueError(f"Invalid order type: {notification.order_type}")
    return order.to_dict() if order is not None else None
