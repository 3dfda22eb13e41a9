# Overview: Flask API routes for the menu; customer reads plus admin pricing edits.

# backend/menutax/routes/menu.py
"""
Menu routes.

Customer-facing reads expose each item's effective tax rate. Admin writes go
through menu_service, which keeps price and base_price consistent with the
effective rate (whichever of the two was sent wins).
"""
from flask import Blueprint, current_app, request

from ..services import menu_service
from ..validation import ValidationError, ConflictError

menu_bp = Blueprint("menu", __name__, url_prefix="/api")


@menu_bp.get("/menu-items")
def list_menu_items():
    """
    Query params:
    - include_unavailable: bool (optional, default false)
    """
    include_unavailable = request.args.get("include_unavailable", "false").lower() == "true"
    return {"items": menu_service.list_menu_items(include_unavailable=include_unavailable)}, 200


@menu_bp.get("/menu-items/<int:menu_item_id>")
def get_menu_item(menu_item_id: int):
    try:
        return menu_service.menu_item_detail(menu_item_id), 200
    except menu_service.MenuError as e:
        return {"error": str(e)}, 404


@menu_bp.post("/admin/menu-categories")
def create_category():
    payload = request.get_json(silent=True) or {}
    try:
        category = menu_service.create_category(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return category.to_dict(), 201


@menu_bp.patch("/admin/menu-categories/<int:category_id>")
def update_category(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        category = menu_service.update_category(category_id, payload)
    except menu_service.MenuError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return category.to_dict(), 200


@menu_bp.post("/admin/menu-items")
def create_menu_item():
    """
    Create a menu item.

    Send either price (tax-inclusive) or base_price; the other is derived
    from the effective tax rate. Sending both requires them to agree within
    one cent.
    """
    payload = request.get_json(silent=True) or {}
    try:
        item = menu_service.create_menu_item(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return menu_service.menu_item_detail(item.id), 201


@menu_bp.patch("/admin/menu-items/<int:menu_item_id>")
def update_menu_item(menu_item_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        item = menu_service.update_menu_item(menu_item_id, payload)
    except menu_service.MenuError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to update menu item %s", menu_item_id)
        return {"error": "Failed to update menu item"}, 500
    return menu_service.menu_item_detail(item.id), 200


@menu_bp.post("/admin/menu-items/<int:menu_item_id>/option-groups")
def add_option_group(menu_item_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        group = menu_service.add_option_group(menu_item_id, payload)
    except menu_service.MenuError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    return group.to_dict(), 201


@menu_bp.post("/admin/option-groups/<int:group_id>/options")
def add_option(group_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        option = menu_service.add_option(group_id, payload)
    except menu_service.MenuError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    return option.to_dict(), 201
