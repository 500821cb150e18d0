# backend/pos/routes/inventory.py
"""
Inventory management routes.

SECURITY: All routes require authentication and the admin role.

Stock is set to a counted value; each adjustment is kept in the product's
stock history together with who made it and why.
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..context import get_store
from ..models.records import STOCK_ADJUSTMENT_REASONS
from ..services import products_service, reporting_service
from ..services.products_service import ProductError
from ..validation import STOCK_ADJUST_POLICY, validate_payload, ValidationError, NotFoundError
from ..decorators import require_auth, require_admin


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
@require_admin
def inventory_overview_route():
    """Every product with its stock status, plus valuation totals."""
    store = get_store()
    report = reporting_service.inventory_report(products=store.products(), settings=store.settings())
    return jsonify(report), 200


@inventory_bp.get("/reasons")
@require_auth
@require_admin
def adjustment_reasons_route():
    return jsonify({"reasons": list(STOCK_ADJUSTMENT_REASONS)}), 200


@inventory_bp.post("/<string:product_id>/adjust")
@require_auth
@require_admin
def adjust_stock_route(product_id: str):
    """
    Set a product's stock to a counted value.

    Body: {"new_stock": int >= 0, "reason": str}
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=STOCK_ADJUST_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        product = products_service.adjust_stock(
            get_store(),
            product_id,
            new_stock=patch["new_stock"],
            reason=patch["reason"],
            username=g.current_user.username,
        )
        return jsonify({"product": product.to_dict()}), 200
    except ProductError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/<string:product_id>/history")
@require_auth
@require_admin
def stock_history_route(product_id: str):
    """Stock adjustments for one product, most recent first."""
    product = products_service.get_product(get_store(), product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    history = [entry.to_dict() for entry in reversed(product.stock_history)]
    return jsonify({"product_id": product.id, "stock": product.stock, "history": history}), 200
