from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from tradelink.time_utils import to_utc_z


class Cart(db.Model):
    """
    The single pending cart of a buyer Business.

    INVARIANTS:
    - At most one cart per buyer (unique buyer_id).
    - seller_id is set iff the cart has items; all items share that seller.
    - Destroyed (row deleted) on checkout, draft conversion or clear.
    """
    __tablename__ = "carts"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    buyer_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, unique=True, index=True)
    seller_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    buyer = db.relationship("Business", foreign_keys=[buyer_id])
    seller = db.relationship("Business", foreign_keys=[seller_id])
    items = db.relationship(
        "CartItem",
        back_populates="cart",
        order_by="CartItem.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def total_amount_cents(self) -> int:
        return sum(item.price_cents * item.quantity for item in self.items)

    def find_item(self, product_id: str) -> "CartItem | None":
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "buyer_id": self.buyer_id,
            "seller": self.seller.summary() if self.seller else None,
            "items": [item.to_dict() for item in self.items],
            "total_amount_cents": self.total_amount_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CartItem(db.Model):
    """One product line in a cart; price is captured at add time."""
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
        db.CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    cart_id = db.Column(db.String(32), db.ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.String(32), db.ForeignKey("inventory_items.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    cart = db.relationship("Cart", back_populates="items")
    product = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "product": self.product.summary() if self.product else {"id": self.product_id},
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "line_total_cents": self.price_cents * self.quantity,
        }
