# Overview: Read-only report derivations over the products, sales and expenses collections.

"""
Reporting

All functions here are pure: they take the collections (and a time zone where
windows are involved) and return plain dicts/lists. No store access, no I/O.

Day and month windows come from explicit calendar-date extraction: every
stored date string is turned into a calendar day in the configured zone (see
time_utils.calendar_date). Records whose date cannot be read fall outside
every window.
"""
from __future__ import annotations

import re
from datetime import date, timezone, tzinfo
from decimal import Decimal
from typing import Iterable

from ..models import Expense, Product, Sale, Settings
from ..money import round_money, to_decimal
from pos.time_utils import calendar_date, today

SERIES_DAYS = 30

_WHITESPACE_RE = re.compile(r"\s+")


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def sale_cost(sale: Sale) -> Decimal:
    return sum((to_decimal(item.unit_cost) * item.quantity for item in sale.items), Decimal("0"))


def sale_profit(sale: Sale) -> float:
    """finalTotal minus the snapshot cost of every line; a missing cost counts as 0."""
    return round_money(to_decimal(sale.final_total) - sale_cost(sale))


def items_sold(sale: Sale) -> int:
    return sum(item.quantity for item in sale.items)


def revenue(sales: Iterable[Sale]) -> float:
    return round_money(sum((to_decimal(s.final_total) for s in sales), Decimal("0")))


def profit(sales: Iterable[Sale]) -> float:
    return round_money(sum((to_decimal(sale_profit(s)) for s in sales), Decimal("0")))


# -- windows ----------------------------------------------------------------

def sales_on_day(sales: Iterable[Sale], day: date, zone: tzinfo = timezone.utc) -> list[Sale]:
    return [s for s in sales if calendar_date(s.date, zone) == day]


def sales_in_month(sales: Iterable[Sale], year: int, month: int, zone: tzinfo = timezone.utc) -> list[Sale]:
    result = []
    for s in sales:
        d = calendar_date(s.date, zone)
        if d is not None and d.year == year and d.month == month:
            result.append(s)
    return result


def filter_sales_by_range(
    sales: Iterable[Sale],
    start: date | None,
    end: date | None,
    zone: tzinfo = timezone.utc,
) -> list[Sale]:
    """Sales whose calendar day is within [start, end] (both inclusive, either optional), newest first."""
    result = []
    for s in sales:
        d = calendar_date(s.date, zone)
        if d is None:
            continue
        if start is not None and d < start:
            continue
        if end is not None and d > end:
            continue
        result.append(s)
    result.sort(key=lambda s: s.date, reverse=True)
    return result


# -- top product ------------------------------------------------------------

def top_product(sales: Iterable[Sale], products: Iterable[Product] = ()) -> dict | None:
    """
    Product with the highest summed quantity across the sales' lines.

    Ties go to the product id encountered first while walking the sales in
    the order given. That choice is arbitrary. Returns None when no lines
    exist. The name comes from the catalog, else from the sale snapshot.
    """
    totals: dict[str, int] = {}
    names: dict[str, str] = {}
    for sale in sales:
        for item in sale.items:
            totals[item.id] = totals.get(item.id, 0) + item.quantity
            names.setdefault(item.id, item.name)
    if not totals:
        return None

    best_id = None
    best_qty = None
    for product_id, qty in totals.items():
        if best_qty is None or qty > best_qty:
            best_id, best_qty = product_id, qty

    catalog = {p.id: p for p in products}
    product = catalog.get(best_id)
    return {
        "product_id": best_id,
        "name": product.name if product else names[best_id],
        "quantity": best_qty,
        "in_catalog": product is not None,
    }


# -- time series ------------------------------------------------------------

def daily_series(
    sales: Iterable[Sale],
    expenses: Iterable[Expense] = (),
    zone: tzinfo = timezone.utc,
    limit: int = SERIES_DAYS,
) -> list[dict]:
    """
    Per-day revenue, profit and expenses, ascending by day, most recent
    `limit` days that have any activity.
    """
    buckets: dict[date, dict] = {}

    def bucket(day: date) -> dict:
        if day not in buckets:
            buckets[day] = {"revenue": Decimal("0"), "profit": Decimal("0"), "expenses": Decimal("0")}
        return buckets[day]

    for sale in sales:
        day = calendar_date(sale.date, zone)
        if day is None:
            continue
        b = bucket(day)
        b["revenue"] += to_decimal(sale.final_total)
        b["profit"] += to_decimal(sale_profit(sale))

    for expense in expenses:
        day = calendar_date(expense.date, zone)
        if day is None:
            continue
        bucket(day)["expenses"] += to_decimal(expense.amount)

    rows = [
        {
            "date": day.isoformat(),
            "revenue": round_money(b["revenue"]),
            "profit": round_money(b["profit"]),
            "expenses": round_money(b["expenses"]),
        }
        for day, b in sorted(buckets.items())
    ]
    return rows[-limit:] if limit else rows


# -- expenses ---------------------------------------------------------------

def normalize_category(category: str | None) -> str:
    """'Rent', 'rent ' and ' RENT' share one key; inner whitespace becomes '_'."""
    key = _WHITESPACE_RE.sub("_", (category or "").strip().lower())
    return key or "other"


def expenses_by_category(expenses: Iterable[Expense]) -> list[dict]:
    """Summed amount per normalized category, in order of first appearance."""
    totals: dict[str, Decimal] = {}
    labels: dict[str, str] = {}
    for expense in expenses:
        key = normalize_category(expense.category)
        totals[key] = totals.get(key, Decimal("0")) + to_decimal(expense.amount)
        labels.setdefault(key, (expense.category or "").strip() or key)
    return [
        {"category": key, "label": labels[key], "amount": round_money(amount)}
        for key, amount in totals.items()
    ]


def total_expenses(expenses: Iterable[Expense]) -> float:
    return round_money(sum((to_decimal(e.amount) for e in expenses), Decimal("0")))


# -- inventory --------------------------------------------------------------

def stock_status(product: Product, threshold) -> str:
    if product.stock <= 0:
        return "out_of_stock"
    if product.stock <= threshold:
        return "low_stock"
    return "in_stock"


def low_stock_count(products: Iterable[Product], threshold) -> int:
    return sum(1 for p in products if p.stock <= threshold)


def inventory_valuation(products: Iterable[Product], threshold) -> dict:
    products = list(products)
    cost_value = Decimal("0")
    retail_value = Decimal("0")
    units = 0
    for p in products:
        cost_value += to_decimal(p.unit_cost) * p.stock
        retail_value += to_decimal(p.price) * p.stock
        units += p.stock
    return {
        "total_cost_value": round_money(cost_value),
        "total_retail_value": round_money(retail_value),
        "total_units": units,
        "low_stock_count": low_stock_count(products, threshold),
        "low_stock_threshold": threshold,
    }


# -- composed reports -------------------------------------------------------

def dashboard_report(
    *,
    sales: list[Sale],
    products: list[Product],
    zone: tzinfo = timezone.utc,
    as_of: date | None = None,
) -> dict:
    day = as_of or today(zone)
    daily = sales_on_day(sales, day, zone)
    monthly = sales_in_month(sales, day.year, day.month, zone)
    return {
        "date": day.isoformat(),
        "daily_revenue": revenue(daily),
        "daily_profit": profit(daily),
        "monthly_revenue": revenue(monthly),
        "monthly_profit": profit(monthly),
        "total_stock_value": inventory_valuation(products, 0)["total_retail_value"],
        "top_product_today": top_product(daily, products),
        "top_product_month": top_product(monthly, products),
        "series": [
            {k: row[k] for k in ("date", "revenue", "profit")}
            for row in daily_series(sales, (), zone)
        ],
    }


def finance_report(
    *,
    sales: list[Sale],
    expenses: list[Expense],
    zone: tzinfo = timezone.utc,
) -> dict:
    gross = to_decimal(profit(sales))
    spent = to_decimal(total_expenses(expenses))
    return {
        "gross_profit": round_money(gross),
        "total_expenses": round_money(spent),
        "net_profit": round_money(gross - spent),
        "series": daily_series(sales, expenses, zone),
        "expenses_by_category": expenses_by_category(expenses),
    }


def inventory_report(*, products: list[Product], settings: Settings) -> dict:
    threshold = settings.low_stock_threshold
    summary = inventory_valuation(products, threshold)
    summary["rows"] = [
        {
            "product_id": p.id,
            "name": p.name,
            "category": p.category,
            "price": p.price,
            "cost": p.cost,
            "stock": p.stock,
            "status": stock_status(p, threshold),
        }
        for p in products
    ]
    return summary


def sales_history_report(
    *,
    sales: list[Sale],
    zone: tzinfo = timezone.utc,
    start: date | None = None,
    end: date | None = None,
) -> dict:
    if start is not None and end is not None and start > end:
        raise ReportError("start must be on or before end")
    selected = filter_sales_by_range(sales, start, end, zone)
    return {
        "start": start.isoformat() if start else None,
        "end": end.isoformat() if end else None,
        "count": len(selected),
        "total_revenue": revenue(selected),
        "total_profit": profit(selected),
        "rows": [
            {
                **sale.to_dict(),
                "profit": sale_profit(sale),
                "items_sold": items_sold(sale),
            }
            for sale in selected
        ],
    }
