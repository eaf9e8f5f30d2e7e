# Overview: Flask API routes for a business's own inventory (stock, prices, listing).

"""
Inventory maintenance routes.

SECURITY: All routes require authentication and act on the caller's own
items only; another business's item id answers 404.

Money is integer cents. Tax rates are percents (0-100).
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import CommerceError, ValidationError, error_response, internal_error_response
from ..services import inventory_service
from ..validation import parse_percent, parse_price_cents, require_id, require_non_negative_int, require_text


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _optional_text(value, field: str, max_length: int):
    if value is None or value == "":
        return None
    return require_text(value, field, max_length=max_length)


def _parse_inventory_payload(data: dict, *, partial: bool) -> dict:
    """Validated column values for the keys present in data."""
    patch = {}
    if "name" in data or not partial:
        patch["name"] = require_text(data.get("name"), "name")
    if "qty" in data:
        patch["qty"] = require_non_negative_int(data["qty"], "qty")
    if "price_cents" in data:
        patch["price_cents"] = parse_price_cents(data["price_cents"], "price_cents", required=False)
    if "description" in data:
        patch["description"] = _optional_text(data["description"], "description", 2000)
    if "unit" in data:
        patch["unit"] = _optional_text(data["unit"], "unit", 32)
    if "image_url" in data:
        patch["image_url"] = _optional_text(data["image_url"], "image_url", 512)
    for field in ("cgst", "sgst", "gst"):
        if field in data:
            patch[field] = parse_percent(data[field], field)
    return patch


@inventory_bp.get("")
@require_auth
def list_inventory_route():
    items = inventory_service.list_inventory(g.business_id)
    return jsonify({"items": [item.to_dict() for item in items]}), 200


@inventory_bp.post("")
@require_auth
def add_item_route():
    """
    List a new product.

    Body: {name, qty?, gen_price_cents?, price_cents?, unit?, description?,
    image_url?, cgst?, sgst?, gst?}
    """
    try:
        data = request.get_json(silent=True) or {}
        patch = _parse_inventory_payload(data, partial=False)
        name = patch.pop("name")
        qty = patch.pop("qty", 0)
        gen_price_cents = parse_price_cents(data.get("gen_price_cents"), "gen_price_cents", required=False)

        item = inventory_service.add_item(g.business_id, name, qty=qty, gen_price_cents=gen_price_cents, **patch)
        return jsonify({"message": "Product added successfully", "item": item.to_dict()}), 201

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add inventory item")
        return internal_error_response()


@inventory_bp.patch("/<item_id>")
@require_auth
def update_item_route(item_id: str):
    """Update stock or listing fields. Only the keys sent are changed."""
    try:
        require_id(item_id, "item_id")
        data = request.get_json(silent=True) or {}
        if "gen_price_cents" in data:
            raise ValidationError("Set gen_price_cents through /gen-price", details={"field": "gen_price_cents"})
        patch = _parse_inventory_payload(data, partial=True)
        if not patch:
            raise ValidationError("No updatable fields provided")

        item = inventory_service.update_item(g.business_id, item_id, patch)
        return jsonify({"item": item.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return internal_error_response()


@inventory_bp.put("/<item_id>/gen-price")
@require_auth
def set_gen_price_route(item_id: str):
    """Body: {gen_price_cents}; null unsets the generalized price."""
    try:
        require_id(item_id, "item_id")
        data = request.get_json(silent=True) or {}
        if "gen_price_cents" not in data:
            raise ValidationError("gen_price_cents is required")
        gen_price_cents = parse_price_cents(data["gen_price_cents"], "gen_price_cents", required=False)

        item = inventory_service.set_generalized_price(g.business_id, item_id, gen_price_cents)
        return jsonify({"item": item.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to set generalized price")
        return internal_error_response()


@inventory_bp.delete("/<item_id>")
@require_auth
def delete_item_route(item_id: str):
    try:
        require_id(item_id, "item_id")
        inventory_service.delete_item(g.business_id, item_id)
        return jsonify({"message": "Item deleted successfully"}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete inventory item")
        return internal_error_response()
