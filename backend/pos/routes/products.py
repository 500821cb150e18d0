# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/pos/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations are open to every role (the register needs them)
- Write operations are admin-only
"""
from flask import Blueprint, request, jsonify, current_app

from ..context import get_store
from ..services import products_service
from ..validation import PRODUCT_POLICY, validate_payload, ValidationError, NotFoundError
from ..decorators import require_auth, require_admin

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List the catalog.

    Query params:
    - q: str (optional) - name substring or exact barcode
    - category: str (optional)
    """
    products = products_service.list_products(
        get_store(),
        query=request.args.get("q"),
        category=request.args.get("category"),
    )
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/categories")
@require_auth
def list_categories():
    return jsonify({"categories": products_service.list_categories(get_store())}), 200


@products_bp.get("/barcode/<string:barcode>")
@require_auth
def lookup_barcode(barcode: str):
    product = products_service.find_by_barcode(get_store(), barcode)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict()}), 200


@products_bp.get("/<string:product_id>")
@require_auth
def get_product(product_id: str):
    product = products_service.get_product(get_store(), product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict()}), 200


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    """Create a product; name and price are required, stock defaults to 0."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = products_service.create_product(get_store(), patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": created.to_dict()}), 201


@products_bp.route("/<string:product_id>", methods=["PUT", "PATCH"])
@require_auth
@require_admin
def update_product_route(product_id: str):
    """
    Update a product.

    PUT replaces every writable field (create rules apply); PATCH only
    touches the fields sent.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=request.method == "PATCH")
        updated = products_service.update_product(get_store(), product_id, patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": updated.to_dict()}), 200


@products_bp.delete("/<string:product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: str):
    """
    Delete a product.

    Past sales keep their own copy of the product and are not changed.
    """
    if not products_service.delete_product(get_store(), product_id):
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"deleted": product_id}), 200
