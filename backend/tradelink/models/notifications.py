from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from tradelink.time_utils import to_utc_z


ORDER_RECEIVED = "ORDER_RECEIVED"
# Declared for "order edited, re-notify"; no flow emits it yet
ORDER_UPDATE = "ORDER_UPDATE"
ORDER_CONFIRMED = "ORDER_CONFIRMED"
ORDER_REJECTED = "ORDER_REJECTED"
NOTIFICATION_TYPES = (ORDER_RECEIVED, ORDER_UPDATE, ORDER_CONFIRMED, ORDER_REJECTED)

# Discriminator values for Notification.order_type
REF_ORDER = "Order"
REF_PURCHASE = "Purchase"
ORDER_REF_TYPES = (REF_ORDER, REF_PURCHASE)


class Notification(db.Model):
    """
    Directed order-lifecycle event between two Businesses.

    POLYMORPHIC REFERENCE: (order_type, order_id) points at a DraftOrder
    ("Order") while the proposal is pending and at the Purchase once
    confirmed. Both are NULL after a rejection.

    LIFECYCLE: ORDER_RECEIVED -> ORDER_CONFIRMED | ORDER_REJECTED. Each
    transition swaps initiator and recipient and resets is_read.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.CheckConstraint(
            "(order_id IS NULL AND order_type IS NULL) OR (order_id IS NOT NULL AND order_type IS NOT NULL)",
            name="ck_notifications_order_ref_tagged",
        ),
        db.Index("ix_notifications_recipient_read", "recipient_id", "is_read"),
        db.Index("ix_notifications_order_ref", "order_type", "order_id"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    initiator_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)
    recipient_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)

    order_type = db.Column(db.String(16), nullable=True)
    order_id = db.Column(db.String(32), nullable=True)

    type = db.Column(db.String(32), nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    initiator = db.relationship("Business", foreign_keys=[initiator_id])
    recipient = db.relationship("Business", foreign_keys=[recipient_id])
    __mapper_args__ = {"version_id_col": version_id}

    def swap_parties(self) -> None:
        self.initiator_id, self.recipient_id = self.recipient_id, self.initiator_id

    def to_dict(self, order: dict | None = None) -> dict:
        return {
            "id": self.id,
            "initiator": self.initiator.summary() if self.initiator else {"id": self.initiator_id},
            "recipient": self.recipient.summary() if self.recipient else {"id": self.recipient_id},
            "order_type": self.order_type,
            "order_id": self.order_id,
            "order": order,
            "type": self.type,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
