from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from tradelink.time_utils import to_utc_z


BUYER_TYPE_BUSINESS = "Business"
BUYER_TYPE_CUSTOMER = "Customer"
BUYER_TYPES = (BUYER_TYPE_BUSINESS, BUYER_TYPE_CUSTOMER)

TRANSACTION_ONLINE = "Online"
TRANSACTION_OFFLINE = "Offline"
TRANSACTION_TYPES = (TRANSACTION_ONLINE, TRANSACTION_OFFLINE)

STATUS_PAID = "Paid"
STATUS_UNPAID = "Unpaid"
PAYMENT_STATUSES = (STATUS_PAID, STATUS_UNPAID)

PAYMENT_METHODS = ("UPI", "Cash", "Bank Transfer", "Credit")
DEFAULT_PAYMENT_METHOD = "UPI"


class DraftOrder(db.Model):
    """
    Editable, uncommitted order proposal between two Businesses.

    business_id is the seller, customer_id the buyer (a registered Business).
    Consumed (deleted) when confirmed into a Sale/Purchase pair or rejected.
    """
    __tablename__ = "draft_orders"
    __table_args__ = (
        db.Index("ix_draft_orders_parties", "business_id", "customer_id"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    business_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)
    customer_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)
    created_by_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False)

    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    # Optional payment metadata carried along for the committed pair
    transaction_type = db.Column(db.String(16), nullable=True)
    status = db.Column(db.String(16), nullable=True)
    payment_method = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    business = db.relationship("Business", foreign_keys=[business_id])
    customer = db.relationship("Business", foreign_keys=[customer_id])
    lines = db.relationship(
        "DraftOrderLine",
        back_populates="order",
        order_by="DraftOrderLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def is_party(self, business_id: str) -> bool:
        return business_id in (self.business_id, self.customer_id)

    def counterparty_of(self, business_id: str) -> str:
        return self.customer_id if business_id == self.business_id else self.business_id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business": self.business.summary() if self.business else {"id": self.business_id},
            "customer": self.customer.summary() if self.customer else {"id": self.customer_id},
            "created_by_id": self.created_by_id,
            "items": [line.to_dict() for line in self.lines],
            "total_amount_cents": self.total_amount_cents,
            "transaction_type": self.transaction_type,
            "status": self.status,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class DraftOrderLine(db.Model):
    __tablename__ = "draft_order_lines"
    __table_args__ = (
        db.UniqueConstraint("order_id", "product_id", name="uq_draft_order_lines_order_product"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    order_id = db.Column(db.String(32), db.ForeignKey("draft_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.String(32), db.ForeignKey("inventory_items.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    order = db.relationship("DraftOrder", back_populates="lines")
    product = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "product": self.product.summary() if self.product else {"id": self.product_id},
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "line_total_cents": self.price_cents * self.quantity,
        }


class Sale(db.Model):
    """
    Seller-side ledger entry of a committed transaction. Immutable.

    POLYMORPHIC BUYER: (buyer_type, buyer_id) is a tagged reference to either
    a Business or a seller-owned Customer; resolve it through
    order_service.resolve_buyer, never by guessing the table.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_seller_created", "seller_id", "created_at"),
        db.Index("ix_sales_buyer", "buyer_type", "buyer_id"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    seller_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)
    buyer_type = db.Column(db.String(16), nullable=False)
    buyer_id = db.Column(db.String(32), nullable=False)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    transaction_type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False)
    payment_method = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    seller = db.relationship("Business", backref=db.backref("sales", lazy=True))
    lines = db.relationship(
        "SaleLine",
        back_populates="sale",
        order_by="SaleLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self, buyer: dict | None = None) -> dict:
        return {
            "id": self.id,
            "kind": "sale",
            "seller": self.seller.summary() if self.seller else {"id": self.seller_id},
            "buyer_type": self.buyer_type,
            "buyer": buyer if buyer is not None else {"id": self.buyer_id},
            "items": [line.to_dict() for line in self.lines],
            "total_amount_cents": self.total_amount_cents,
            "transaction_type": self.transaction_type,
            "status": self.status,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }


class SaleLine(db.Model):
    __tablename__ = "sale_lines"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    sale_id = db.Column(db.String(32), db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.String(32), db.ForeignKey("inventory_items.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    # Frozen snapshot; never re-read from inventory
    price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    sale = db.relationship("Sale", back_populates="lines")
    product = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "product": self.product.summary() if self.product else {"id": self.product_id},
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "line_total_cents": self.line_total_cents,
        }


class Purchase(db.Model):
    """
    Buyer-side mirror of a Business-to-Business Sale. Immutable.

    sale_id pairs the two halves; exactly one Purchase per B2B Sale.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.UniqueConstraint("sale_id", name="uq_purchases_sale"),
        db.Index("ix_purchases_buyer_created", "buyer_id", "created_at"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    sale_id = db.Column(db.String(32), db.ForeignKey("sales.id"), nullable=False)
    buyer_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)
    seller_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    transaction_type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False)
    payment_method = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("purchase", uselist=False))
    buyer = db.relationship("Business", foreign_keys=[buyer_id], backref=db.backref("purchases", lazy=True))
    seller = db.relationship("Business", foreign_keys=[seller_id])
    lines = db.relationship(
        "PurchaseLine",
        back_populates="purchase",
        order_by="PurchaseLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": "purchase",
            "sale_id": self.sale_id,
            "seller": self.seller.summary() if self.seller else {"id": self.seller_id},
            "buyer": self.buyer.summary() if self.buyer else {"id": self.buyer_id},
            "items": [line.to_dict() for line in self.lines],
            "total_amount_cents": self.total_amount_cents,
            "transaction_type": self.transaction_type,
            "status": self.status,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseLine(db.Model):
    __tablename__ = "purchase_lines"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    purchase_id = db.Column(db.String(32), db.ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = db.Column(db.String(32), db.ForeignKey("inventory_items.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    purchase = db.relationship("Purchase", back_populates="lines")
    product = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "product": self.product.summary() if self.product else {"id": self.product_id},
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "line_total_cents": self.line_total_cents,
        }
