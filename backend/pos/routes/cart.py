# Overview: Flask API routes for the active cart and checkout; parses input and returns JSON responses.

# backend/pos/routes/cart.py
"""
Register cart routes.

One active cart is kept for the terminal. Responses carry the sound cue the
register should play ("cue"), or null when sound effects are switched off.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..context import get_store
from ..services import cart_service
from ..services.cart_service import CartError
from ..validation import CHECKOUT_POLICY, validate_payload, ValidationError, NotFoundError
from ..decorators import require_auth

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _cart_response(result: cart_service.CartResult, status: int = 200):
    return jsonify({
        "items": [item.to_dict() for item in result.items],
        "totals": cart_service.cart_totals(result.items),
        "cue": result.cue.value if result.cue else None,
    }), status


@cart_bp.get("")
@require_auth
def get_cart_route():
    items = cart_service.get_cart(get_store())
    return _cart_response(cart_service.CartResult(items=items))


@cart_bp.post("/items")
@require_auth
def add_item_route():
    """
    Add one unit of a product.

    Body: {"product_id": str}. When the cart already holds all available
    stock the cart is returned unchanged with the error cue.
    """
    payload = request.get_json(silent=True) or {}
    product_id = payload.get("product_id")
    if not product_id:
        return jsonify({"error": "product_id required"}), 400

    try:
        result = cart_service.add_to_cart(get_store(), str(product_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return _cart_response(result)


@cart_bp.patch("/items/<string:product_id>")
@require_auth
def update_item_route(product_id: str):
    """Body: {"quantity": int}; 0 or less removes the line."""
    payload = request.get_json(silent=True) or {}
    quantity = payload.get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        return jsonify({"error": "quantity must be an integer"}), 400

    try:
        result = cart_service.update_quantity(get_store(), product_id, quantity)
    except CartError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    return _cart_response(result)


@cart_bp.delete("/items/<string:product_id>")
@require_auth
def remove_item_route(product_id: str):
    return _cart_response(cart_service.remove_from_cart(get_store(), product_id))


@cart_bp.delete("")
@require_auth
def clear_cart_route():
    return _cart_response(cart_service.clear_cart(get_store()))


@cart_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Complete the sale for the current cart.

    Body: {"payment_method": "cash"|"card"|"multiple", "discount": number,
    "amount_received": number (optional, cash)}
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=CHECKOUT_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = cart_service.checkout(
            get_store(),
            discount=patch.get("discount") or 0,
            payment_method=patch["payment_method"],
            username=g.current_user.username,
            amount_received=patch.get("amount_received"),
        )
        return jsonify({
            "sale": result.sale.to_dict(),
            "change": result.change,
            "cue": result.cue.value if result.cue else None,
        }), 201
    except CartError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to complete checkout")
        return jsonify({"error": "Internal server error"}), 500
