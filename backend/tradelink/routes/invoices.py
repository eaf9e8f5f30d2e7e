# Overview: Flask API routes for invoice documents of committed orders.

from flask import Blueprint, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import CommerceError, error_response, internal_error_response
from ..services import invoice_service
from ..validation import require_id


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.post("/<order_id>")
@require_auth
def generate_invoice_route(order_id: str):
    """
    Render and store the invoice for a Sale or Purchase id.

    201 when generated now, 200 when it already existed.
    """
    try:
        require_id(order_id, "order_id")
        invoice, created = invoice_service.generate_invoice(order_id, g.business_id)
        return jsonify({"invoice": invoice.to_dict()}), 201 if created else 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to generate invoice")
        return internal_error_response()


@invoices_bp.get("/<order_id>")
@require_auth
def get_invoice_route(order_id: str):
    try:
        require_id(order_id, "order_id")
        invoice = invoice_service.get_invoice(order_id, g.business_id)
        return jsonify({"invoice": invoice.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch invoice")
        return internal_error_response()
