# Overview: Flask API routes for orders; checkout, lookup and status changes.

from flask import Blueprint, current_app, request

from ..services import order_service
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError, enforce_range


orders_bp = Blueprint("orders", __name__, url_prefix="/api")


@orders_bp.post("/orders")
def create_order():
    """
    Place an order.

    Body:
    {
      "customer_name": "Ann",
      "items": [{"menu_item_id": 1, "quantity": 2, "selected_options": {"3": [7]}}]
    }
    Prices and tax are computed server-side from the current menu.
    """
    payload = request.get_json(silent=True)
    try:
        order = order_service.create_order(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except order_service.OrderError as e:
        return {"error": str(e), "details": e.details}, 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return {"error": "Failed to create order"}, 500
    return order.to_dict(), 201


@orders_bp.get("/orders/<int:order_id>")
def get_order(order_id: int):
    order = order_service.get_order(order_id)
    if not order:
        return {"error": "Order not found"}, 404
    return order.to_dict(), 200


@orders_bp.patch("/orders/<int:order_id>/status")
def update_order_status(order_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        order = order_service.update_status(order_id, payload.get("status"))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except order_service.OrderError as e:
        return {"error": str(e)}, 404
    return order.to_dict(), 200


@orders_bp.get("/admin/orders")
def list_orders():
    """
    Query params:
    - start, end: ISO-8601 datetimes (required, inclusive)
    - status: optional status filter
    """
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return {"error": "start and end must be ISO-8601 datetimes"}, 400
    if start is None or end is None:
        return {"error": "start and end are required"}, 400
    try:
        enforce_range(start, end, max_days=current_app.config["MAX_REPORT_RANGE_DAYS"])
    except ValidationError as e:
        return {"error": str(e)}, 400

    orders = order_service.list_orders(start=start, end=end, status=request.args.get("status"))
    return {"orders": [order.to_dict() for order in orders]}, 200
