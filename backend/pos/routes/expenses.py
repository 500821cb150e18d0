# Overview: Flask API routes for expenses operations; parses input and returns JSON responses.

# backend/pos/routes/expenses.py
"""
Expense routes (admin only).
"""
from flask import Blueprint, request, jsonify, current_app

from ..context import get_store, get_zone
from ..services import expense_service
from ..services.expense_service import ExpenseError
from ..validation import EXPENSE_POLICY, validate_payload, ValidationError, NotFoundError
from ..decorators import require_auth, require_admin

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_auth
@require_admin
def list_expenses_route():
    expenses = expense_service.list_expenses(get_store(), category=request.args.get("category"))
    return jsonify({"items": [e.to_dict() for e in expenses], "count": len(expenses)}), 200


@expenses_bp.get("/categories")
@require_auth
@require_admin
def expense_categories_route():
    return jsonify({"categories": expense_service.category_choices()}), 200


@expenses_bp.post("")
@require_auth
@require_admin
def create_expense_route():
    """Body: {"amount": number, "category"?: str, "description"?: str, "date"?: YYYY-MM-DD}"""
    try:
        patch = validate_payload(payload=request.get_json(silent=True), policy=EXPENSE_POLICY, partial=False)
        expense = expense_service.create_expense(get_store(), patch=patch, zone=get_zone())
        return jsonify({"expense": expense.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ExpenseError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.patch("/<string:expense_id>")
@require_auth
@require_admin
def update_expense_route(expense_id: str):
    try:
        patch = validate_payload(payload=request.get_json(silent=True), policy=EXPENSE_POLICY, partial=True)
        expense = expense_service.update_expense(get_store(), expense_id, patch=patch)
        return jsonify({"expense": expense.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ExpenseError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.delete("/<string:expense_id>")
@require_auth
@require_admin
def delete_expense_route(expense_id: str):
    if not expense_service.delete_expense(get_store(), expense_id):
        return jsonify({"error": "Expense not found"}), 404
    return jsonify({"deleted": expense_id}), 200
