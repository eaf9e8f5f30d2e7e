from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from tradelink.time_utils import to_utc_z


class Business(db.Model):
    """
    Tenant root: a registered business account.

    A Business can act as seller (owns inventory, receives Sales) and as
    buyer (owns a Cart, receives Purchases). Created at phone-verified
    signup; never hard-deleted.
    """
    __tablename__ = "businesses"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    gstin = db.Column(db.String(32), nullable=False)
    business_name = db.Column(db.String(255), nullable=False, index=True)
    owner_name = db.Column(db.String(255), nullable=False)
    # Phone number verified at signup; the login identity
    contact = db.Column(db.String(32), nullable=False, unique=True, index=True)
    location = db.Column(db.String(255), nullable=False)
    business_type = db.Column(db.String(64), nullable=True)
    owner_image = db.Column(db.String(512), nullable=True)
    business_image = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<Business id={self.id} name={self.business_name!r}>"

    def summary(self) -> dict:
        """Counterparty view embedded in carts, orders and notifications."""
        return {
            "id": self.id,
            "business_name": self.business_name,
            "owner_name": self.owner_name,
            "contact": self.contact,
            "location": self.location,
            "gstin": self.gstin,
            "owner_image": self.owner_image,
            "business_image": self.business_image,
        }

    def to_dict(self) -> dict:
        return {
            **self.summary(),
            "business_type": self.business_type,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Customer(db.Model):
    """
    Counterparty record kept by one Business.

    Either a walk-in customer (not registered) or a shadow of a registered
    Business this owner has traded with (linked_business_id set). Shadows
    anchor personalized pricing for that counterparty.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_owner_name", "business_id", "name"),
        db.Index("ix_customers_owner_linked", "business_id", "linked_business_id"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    business_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    linked_business_id = db.Column(db.String(32), db.ForeignKey("businesses.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    business = db.relationship("Business", foreign_keys=[business_id], backref=db.backref("customers", lazy=True))
    linked_business = db.relationship("Business", foreign_keys=[linked_business_id])

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "address": self.address,
        }

    def to_dict(self) -> dict:
        return {
            **self.summary(),
            "business_id": self.business_id,
            "linked_business_id": self.linked_business_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
