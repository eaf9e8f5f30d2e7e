# Overview: Flask API routes for draft orders and the Sale/Purchase ledgers.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import CommerceError, error_response, internal_error_response
from ..models import Sale
from ..services import order_service
from ..validation import parse_line_items, require_id


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _order_dict(order) -> dict:
    if isinstance(order, Sale):
        return order.to_dict(buyer=order_service.resolve_buyer(order))
    return order.to_dict()


@orders_bp.post("/draft")
@require_auth
def create_draft_route():
    """
    Create a draft order and notify the counterparty.

    Empty body: the caller (buyer) drafts from its own cart.
    Body {buyer_id, items}: the caller (seller) drafts directly to a
    registered buyer; items may omit price_cents.
    """
    try:
        data = request.get_json(silent=True) or {}

        if data.get("buyer_id") is not None or data.get("items") is not None:
            buyer_id = require_id(data.get("buyer_id"), "buyer_id")
            lines = parse_line_items(data.get("items"), require_price=False)
            draft, notification = order_service.create_draft_for_buyer(g.business_id, buyer_id, lines)
        else:
            draft, notification = order_service.create_draft_from_cart(g.business_id)

        return jsonify({
            "message": "Draft order created",
            "order": draft.to_dict(),
            "notification": notification.to_dict(),
        }), 201

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create draft order")
        return internal_error_response()


@orders_bp.get("/draft/<order_id>")
@require_auth
def get_draft_route(order_id: str):
    try:
        require_id(order_id, "order_id")
        draft = order_service.get_draft_order(order_id, g.business_id)
        return jsonify({"order": draft.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch draft order")
        return internal_error_response()


@orders_bp.put("/draft/<order_id>")
@require_auth
def update_draft_route(order_id: str):
    """
    Replace a draft's line items.

    Body: {items: [{product_id, quantity, price_cents?}]}. Side effect: the
    seller's personalized prices for the buyer are updated.
    """
    try:
        require_id(order_id, "order_id")
        data = request.get_json(silent=True) or {}
        lines = parse_line_items(data.get("items"), require_price=False)

        draft = order_service.update_draft_order(order_id, g.business_id, lines)
        return jsonify({"message": "Order updated", "order": draft.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update draft order")
        return internal_error_response()


@orders_bp.post("/draft-place-order")
@require_auth
def place_draft_route():
    """Commit a draft. Body: {order_id}."""
    try:
        data = request.get_json(silent=True) or {}
        order_id = require_id(data.get("order_id"), "order_id")

        sale, purchase, notification = order_service.place_draft_order(order_id, g.business_id)
        return jsonify({
            "message": "Order placed successfully",
            "sale": _order_dict(sale),
            "purchase": purchase.to_dict(),
            "notification": notification.to_dict(),
        }), 201

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to place order from draft")
        return internal_error_response()


@orders_bp.get("/sales")
@require_auth
def list_sales_route():
    sales = order_service.list_sales(g.business_id)
    return jsonify({"sales": [_order_dict(sale) for sale in sales]}), 200


@orders_bp.get("/purchases")
@require_auth
def list_purchases_route():
    purchases = order_service.list_purchases(g.business_id)
    return jsonify({"purchases": [purchase.to_dict() for purchase in purchases]}), 200


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id: str):
    """A Sale (tried first) or Purchase the caller is party to."""
    try:
        require_id(order_id, "order_id")
        order = order_service.get_order(order_id, g.business_id)
        return jsonify({"order": _order_dict(order)}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch order")
        return internal_error_response()
