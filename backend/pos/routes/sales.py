# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/pos/routes/sales.py
"""
Sales history and amendment routes.

Sales are created through the cart checkout. Here they can be listed, read,
printed as a receipt and amended (returns and corrections). Every role may
use these routes.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..context import get_store, get_zone
from ..services import sales_service, reporting_service
from ..services.export_service import receipt_lines
from ..services.sales_service import SaleError, SaleNotFoundError
from ..validation import AMEND_SALE_POLICY, validate_payload, parse_date_param, ValidationError
from ..decorators import require_auth

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - start, end: YYYY-MM-DD (optional, inclusive calendar days)
    """
    try:
        start = parse_date_param(request.args.get("start"), "start")
        end = parse_date_param(request.args.get("end"), "end")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    sales = reporting_service.filter_sales_by_range(
        sales_service.list_sales(get_store()), start, end, get_zone()
    )
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<string:sale_id>")
@require_auth
def get_sale_route(sale_id: str):
    sale = sales_service.get_sale(get_store(), sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({
        "sale": sale.to_dict(),
        "profit": reporting_service.sale_profit(sale),
        "items_sold": reporting_service.items_sold(sale),
    }), 200


@sales_bp.get("/<string:sale_id>/receipt")
@require_auth
def receipt_route(sale_id: str):
    store = get_store()
    sale = sales_service.get_sale(store, sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale_id": sale.id, "lines": receipt_lines(sale, store.settings())}), 200


@sales_bp.post("/<string:sale_id>/amend")
@require_auth
def amend_sale_route(sale_id: str):
    """
    Change quantities on a completed sale.

    Body: {"quantities": {product_id: new_qty}, "reason": str}
    Each new quantity must be between 0 and the sold quantity; a reason is
    required whenever something changes. Stock is reconciled with the net
    difference.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=AMEND_SALE_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        sale = sales_service.amend_sale(
            get_store(),
            sale_id,
            quantities=patch["quantities"],
            reason=patch.get("reason") or "",
            username=g.current_user.username,
        )
        return jsonify({"sale": sale.to_dict()}), 200
    except SaleNotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to amend sale")
        return jsonify({"error": "Internal server error"}), 500
