# Overview: Flask API routes for order notifications.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import CommerceError, error_response, internal_error_response
from ..models.notifications import ORDER_RECEIVED
from ..services import notification_service, order_service
from ..validation import require_id


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


def _with_order(notification) -> dict:
    return notification.to_dict(order=notification_service.resolve_order_reference(notification))


@notifications_bp.get("")
@require_auth
def list_notifications_route():
    """
    Notifications for the caller, newest first.

    Query: filter = incoming (default) | outgoing | pending | purchases | unread
    """
    try:
        notifications = notification_service.list_notifications(g.business_id, request.args.get("filter"))
        return jsonify({"notifications": [_with_order(n) for n in notifications]}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch notifications")
        return internal_error_response()


@notifications_bp.post("")
@require_auth
def create_notification_route():
    """Announce a draft to its other party. Body: {order_id, type?}."""
    try:
        data = request.get_json(silent=True) or {}
        order_id = require_id(data.get("order_id"), "order_id")

        notification = notification_service.create_notification(
            g.business_id, order_id, data.get("type") or ORDER_RECEIVED
        )
        return jsonify({
            "message": "Notification created successfully",
            "notification": notification.to_dict(),
        }), 201

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create notification")
        return internal_error_response()


@notifications_bp.get("/unread-count")
@require_auth
def unread_count_route():
    return jsonify({"count": notification_service.unread_count(g.business_id)}), 200


@notifications_bp.patch("/<notification_id>/read")
@require_auth
def mark_read_route(notification_id: str):
    try:
        require_id(notification_id, "notification_id")
        notification = notification_service.mark_read(notification_id, g.business_id)
        return jsonify({"notification": notification.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update notification")
        return internal_error_response()


@notifications_bp.post("/<notification_id>/reject")
@require_auth
def reject_route(notification_id: str):
    """Reject the draft a notification announces; the draft is deleted."""
    try:
        require_id(notification_id, "notification_id")
        notification = order_service.reject_order_notification(notification_id, g.business_id)
        return jsonify({"message": "Order rejected", "notification": notification.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to reject order")
        return internal_error_response()


@notifications_bp.post("/<notification_id>/withdraw")
@require_auth
def withdraw_route(notification_id: str):
    """Take back a draft the caller proposed; the draft is deleted."""
    try:
        require_id(notification_id, "notification_id")
        notification = order_service.withdraw_order_notification(notification_id, g.business_id)
        return jsonify({"message": "Order withdrawn", "notification": notification.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to withdraw order")
        return internal_error_response()


@notifications_bp.get("/order/<order_id>")
@require_auth
def by_order_route(order_id: str):
    try:
        require_id(order_id, "order_id")
        notifications = notification_service.list_by_order(order_id, g.business_id)
        return jsonify({"notifications": [n.to_dict() for n in notifications]}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch notifications for order")
        return internal_error_response()
