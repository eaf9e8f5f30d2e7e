from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from tradelink.time_utils import to_utc_z


class Invoice(db.Model):
    """Rendered invoice document for one committed Sale (and its Purchase)."""
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("sale_id", name="uq_invoices_sale"),
        db.UniqueConstraint("invoice_number", name="uq_invoices_number"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    invoice_number = db.Column(db.String(64), nullable=False)
    sale_id = db.Column(db.String(32), db.ForeignKey("sales.id"), nullable=False)
    purchase_id = db.Column(db.String(32), db.ForeignKey("purchases.id"), nullable=True, index=True)

    storage_key = db.Column(db.String(255), nullable=False)
    url = db.Column(db.String(1024), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "sale_id": self.sale_id,
            "purchase_id": self.purchase_id,
            "url": self.url,
            "created_at": to_utc_z(self.created_at),
        }
