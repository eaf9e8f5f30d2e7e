# Overview: Flask API routes for the buyer cart; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import CommerceError, error_response, internal_error_response
from ..services import cart_service, order_service
from ..validation import parse_price_cents, require_id, require_positive_int


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.get("")
@require_auth
def get_cart_route():
    """Current cart with seller and products populated; null when none."""
    cart = cart_service.get_cart(g.business_id)
    return jsonify({"cart": cart.to_dict() if cart else None}), 200


@cart_bp.get("/is-empty")
@require_auth
def is_empty_route():
    return jsonify({"empty": cart_service.is_empty(g.business_id)}), 200


@cart_bp.post("/add")
@require_auth
def add_item_route():
    """
    Add a product or replace its quantity.

    Body: {product_id, quantity, price_cents?}. Without price_cents the
    caller's effective price for that seller is used.
    """
    try:
        data = request.get_json(silent=True) or {}
        product_id = require_id(data.get("product_id"), "product_id")
        quantity = require_positive_int(data.get("quantity"), "quantity")
        price_cents = parse_price_cents(data.get("price_cents"), required=False)

        cart = cart_service.add_item(g.business_id, product_id, quantity, price_cents)
        return jsonify({"message": "Product added to cart", "cart": cart.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add product to cart")
        return internal_error_response()


@cart_bp.delete("/item/<product_id>")
@require_auth
def remove_item_route(product_id: str):
    """Take one unit of a product out of the cart."""
    try:
        require_id(product_id, "product_id")
        cart = cart_service.remove_item(g.business_id, product_id)
        return jsonify({"message": "Product quantity updated", "cart": cart.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product in cart")
        return internal_error_response()


@cart_bp.delete("/clear")
@require_auth
def clear_cart_route():
    try:
        cart_service.clear(g.business_id)
        return jsonify({"message": "Cart cleared successfully"}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to clear cart")
        return internal_error_response()


@cart_bp.post("/place-order")
@require_auth
def place_order_route():
    """Check the whole cart out into a Sale + Purchase pair."""
    try:
        sale, purchase = order_service.checkout_cart(g.business_id)
        return jsonify({
            "message": "Order placed successfully",
            "sale": sale.to_dict(buyer=order_service.resolve_buyer(sale)),
            "purchase": purchase.to_dict(),
        }), 201

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to place order from cart")
        return internal_error_response()
