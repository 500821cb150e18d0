from flask import Blueprint, Response, jsonify, request

from pos.context import get_store, get_zone
from pos.decorators import require_auth, require_admin
from pos.services import export_service, reporting_service
from pos.validation import ValidationError, parse_date_param


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _date_range():
    return (
        parse_date_param(request.args.get("start"), "start"),
        parse_date_param(request.args.get("end"), "end"),
    )


@reports_bp.get("/dashboard")
@require_auth
def dashboard_report():
    try:
        as_of = parse_date_param(request.args.get("as_of"), "as_of")
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    store = get_store()
    report = reporting_service.dashboard_report(
        sales=store.sales(),
        products=store.products(),
        zone=get_zone(),
        as_of=as_of,
    )
    return jsonify(report), 200


@reports_bp.get("/finance")
@require_auth
@require_admin
def finance_report():
    store = get_store()
    report = reporting_service.finance_report(
        sales=store.sales(),
        expenses=store.expenses(),
        zone=get_zone(),
    )
    return jsonify(report), 200


@reports_bp.get("/inventory")
@require_auth
@require_admin
def inventory_report():
    store = get_store()
    return jsonify(reporting_service.inventory_report(products=store.products(), settings=store.settings())), 200


@reports_bp.get("/sales-history")
@require_auth
@require_admin
def sales_history_report():
    try:
        start, end = _date_range()
        report = reporting_service.sales_history_report(
            sales=get_store().sales(),
            zone=get_zone(),
            start=start,
            end=end,
        )
        return jsonify(report), 200
    except (ValidationError, reporting_service.ReportError) as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/export")
@require_auth
@require_admin
def export_sales():
    """
    Sales in the date range flattened to one row per line.

    ?format=csv returns a CSV attachment; otherwise the rows and totals are
    returned as JSON.
    """
    try:
        start, end = _date_range()
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    store = get_store()
    sales = reporting_service.filter_sales_by_range(store.sales(), start, end, get_zone())
    settings = store.settings()

    if request.args.get("format", "json").lower() == "csv":
        return Response(
            export_service.export_csv(sales, settings),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=sales-report-by-item.csv"},
        )
    return jsonify(export_service.export_rows(sales, settings)), 200
