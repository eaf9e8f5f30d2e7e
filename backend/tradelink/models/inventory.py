from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from tradelink.time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    Product listed by exactly one Business.

    PRICING: gen_price_cents is the generalized (default) price; price_cents
    is the optional list price used when no generalized price is set. The
    pricing resolver reads both after the personalized price ledger.

    STOCK: qty is decremented by a conditional UPDATE during order
    confirmation (see inventory_service.reserve_stock).
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.CheckConstraint("qty >= 0", name="ck_inventory_items_qty_non_negative"),
        db.Index("ix_inventory_items_business_name", "business_id", "name"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    business_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    qty = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=True)

    gen_price_cents = db.Column(db.Integer, nullable=True)
    price_cents = db.Column(db.Integer, nullable=True)

    # Tax rates in percent (e.g. 9.00)
    cgst = db.Column(db.Numeric(5, 2), nullable=True)
    sgst = db.Column(db.Numeric(5, 2), nullable=True)
    gst = db.Column(db.Numeric(5, 2), nullable=True)

    image_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    business = db.relationship("Business", backref=db.backref("inventory_items", lazy=True))

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "unit": self.unit,
            "image_url": self.image_url,
            "cgst": float(self.cgst) if self.cgst is not None else None,
            "sgst": float(self.sgst) if self.sgst is not None else None,
            "gst": float(self.gst) if self.gst is not None else None,
        }

    def to_dict(self) -> dict:
        return {
            **self.summary(),
            "business_id": self.business_id,
            "qty": self.qty,
            "gen_price_cents": self.gen_price_cents,
            "price_cents": self.price_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
