# Overview: Invoice documents for committed sales; render, store, record.

"""
Invoice Service

One Invoice per Sale. Generating again returns the stored record instead of
re-rendering. The PDF is produced by the InvoiceRenderer capability and
persisted through ObjectStorage; a storage or rendering failure surfaces as
ExternalServiceError and leaves no Invoice row behind.
"""

from __future__ import annotations

from flask import current_app

from ..capabilities import get_capabilities
from ..errors import ExternalServiceError, NotFoundError
from ..extensions import db
from ..models import Invoice, Purchase, Sale
from tradelink.time_utils import utcnow
from . import order_service


def _sale_for(order: Sale | Purchase) -> Sale:
    return order.sale if isinstance(order, Purchase) else order


def invoice_number_for(sale: Sale) -> str:
    created = sale.created_at or utcnow()
    return f"INV-{created.strftime('%Y%m%d')}-{sale.id[:8].upper()}"


def _invoice_data(sale: Sale, invoice_number: str) -> dict:
    buyer = order_service.resolve_buyer(sale) or {"id": sale.buyer_id}
    return {
        "invoice_number": invoice_number,
        "date": (sale.created_at or utcnow()).strftime("%Y-%m-%d"),
        "seller": sale.seller.summary(),
        "buyer": buyer,
        "items": [
            {
                "name": line.product.name if line.product else line.product_id,
                "quantity": line.quantity,
                "price_cents": line.price_cents,
                "line_total_cents": line.line_total_cents,
            }
            for line in sale.lines
        ],
        "total_amount_cents": sale.total_amount_cents,
        "transaction_type": sale.transaction_type,
        "status": sale.status,
        "payment_method": sale.payment_method,
    }


def get_invoice(order_id: str, business_id: str) -> Invoice:
    sale = _sale_for(order_service.get_order(order_id, business_id))
    invoice = db.session.query(Invoice).filter_by(sale_id=sale.id).first()
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


def generate_invoice(order_id: str, business_id: str) -> tuple[Invoice, bool]:
    """
    Render and store the invoice for a Sale or Purchase id.

    Returns (invoice, created).
    """
    sale = _sale_for(order_service.get_order(order_id, business_id))
    existing = db.session.query(Invoice).filter_by(sale_id=sale.id).first()
    if existing is not None:
        return existing, False

    invoice_number = invoice_number_for(sale)
    capabilities = get_capabilities()
    try:
        pdf = capabilities.invoice_renderer.render(_invoice_data(sale, invoice_number))
    except ExternalServiceError:
        raise
    except Exception as exc:
        current_app.logger.exception("Invoice rendering failed for sale %s", sale.id)
        raise ExternalServiceError("Failed to render invoice", details={"upstream": str(exc)}) from exc

    storage_key = f"{sale.seller_id}/{invoice_number}.pdf"
    url = capabilities.object_storage.put(storage_key, pdf, "application/pdf")

    invoice = Invoice(
        invoice_number=invoice_number,
        sale_id=sale.id,
        purchase_id=sale.purchase.id if sale.purchase is not None else None,
        storage_key=storage_key,
        url=url,
    )
    db.session.add(invoice)
    db.session.commit()
    current_app.logger.info("Invoice %s stored for sale %s", invoice_number, sale.id)
    return invoice, True
