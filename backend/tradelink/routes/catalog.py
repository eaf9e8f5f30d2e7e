# Overview: Flask API routes for browsing another business's priced catalog.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import CommerceError, NotFoundError, error_response, internal_error_response
from ..extensions import db
from ..models import Business
from ..services import customer_service, pricing_service
from ..validation import require_id


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/businesses")


@catalog_bp.get("/<business_id>/catalog")
@require_auth
def catalog_route(business_id: str):
    """
    business_id's products priced for the caller.

    The caller's negotiated prices apply when that business keeps a
    Customer record for it; unpriced products are left out.
    Query: search (product name contains).
    """
    try:
        require_id(business_id, "business_id")
        business = db.session.get(Business, business_id)
        if business is None:
            raise NotFoundError("Business not found")

        shadow = customer_service.find_customer_shadow(business_id, g.business)
        products = pricing_service.priced_catalog(
            business_id,
            shadow.id if shadow else None,
            search=request.args.get("search"),
        )
        return jsonify({"business": business.summary(), "products": products}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch catalog")
        return internal_error_response()
