# Overview: Flask API routes for manual order entry, customers and priced products.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import CommerceError, error_response, internal_error_response
from ..services import customer_service, order_service, pricing_service
from ..validation import parse_line_items, require_id, require_text


place_order_bp = Blueprint("place_order", __name__, url_prefix="/api/place-order")


@place_order_bp.post("/orders")
@require_auth
def create_order_route():
    """
    Record a manual sale to a registered Business or a walk-in Customer.

    Body: {customer_id, items: [{product_id, quantity, price_cents}],
    transaction_type, status, payment_method?}
    """
    try:
        data = request.get_json(silent=True) or {}
        customer_id = require_id(data.get("customer_id"), "customer_id")
        lines = parse_line_items(data.get("items"), require_price=True)

        sale, purchase = order_service.create_order(
            seller_id=g.business_id,
            customer_id=customer_id,
            lines=lines,
            transaction_type=data.get("transaction_type"),
            status=data.get("status"),
            payment_method=data.get("payment_method"),
        )
        return jsonify({
            "message": "Order created successfully",
            "sale": sale.to_dict(buyer=order_service.resolve_buyer(sale)),
            "purchase": purchase.to_dict() if purchase else None,
        }), 201

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return internal_error_response()


@place_order_bp.get("/customers")
@require_auth
def search_customers_route():
    customers = customer_service.search_customers(g.business_id, request.args.get("name", ""))
    return jsonify({"customers": [customer.summary() for customer in customers]}), 200


@place_order_bp.post("/customers")
@require_auth
def add_customer_route():
    """Add a walk-in customer. Body: {name, contact?, address?}."""
    try:
        data = request.get_json(silent=True) or {}
        name = require_text(data.get("name"), "name")
        contact = require_text(data["contact"], "contact", max_length=32) if data.get("contact") else None
        address = require_text(data["address"], "address") if data.get("address") else None

        customer = customer_service.add_customer(g.business_id, name, contact=contact, address=address)
        return jsonify({"message": "Customer added", "customer": customer.to_dict()}), 201

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add customer")
        return internal_error_response()


@place_order_bp.get("/products")
@require_auth
def search_products_route():
    """
    The caller's own products priced for one customer.

    Query: name (product search), customer_name (priced with that
    customer's negotiated rates when a record exists).
    """
    customer_name = (request.args.get("customer_name") or "").strip()
    customer = customer_service.find_customer_by_name(g.business_id, customer_name) if customer_name else None

    products = pricing_service.priced_catalog(
        g.business_id,
        customer.id if customer else None,
        search=request.args.get("name"),
    )
    return jsonify({"products": products}), 200
