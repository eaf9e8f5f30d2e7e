from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from tradelink.time_utils import to_utc_z


class PersonalizedPrice(db.Model):
    """
    Latest negotiated price of a product for one customer of one business.

    Keyed by (business, customer, product); rows are upserted in place, so
    only the current price survives. effective_date is YYYYMMDD.
    """
    __tablename__ = "personalized_prices"
    __table_args__ = (
        db.UniqueConstraint("business_id", "customer_id", "product_id", name="uq_personalized_prices_key"),
        db.CheckConstraint("price_cents >= 0", name="ck_personalized_prices_price_non_negative"),
        db.Index("ix_personalized_prices_business_customer", "business_id", "customer_id"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    business_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False)
    customer_id = db.Column(db.String(32), db.ForeignKey("customers.id"), nullable=False)
    product_id = db.Column(db.String(32), db.ForeignKey("inventory_items.id"), nullable=False)

    price_cents = db.Column(db.Integer, nullable=False)
    effective_date = db.Column(db.String(8), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "customer_id": self.customer_id,
            "product_id": self.product_id,
            "price_cents": self.price_cents,
            "effective_date": self.effective_date,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
