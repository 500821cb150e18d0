# Overview: Flattening of sales into line rows for spreadsheet export, plus a plain-text receipt.

"""
Export Service

`export_rows` is the hook report exporters consume: one row per sold line,
plus a summary block. Only CSV is produced here; richer document formats are
left to whatever consumes the rows.
"""
from __future__ import annotations

import csv
import io
from decimal import Decimal

from ..models import Sale, Settings
from ..money import round_money, to_decimal
from .reporting_service import items_sold, profit, revenue

EXPORT_COLUMNS = [
    "date",
    "sale_id",
    "user",
    "product",
    "quantity",
    "unit_price",
    "line_total",
    "line_profit",
    "currency",
]


def export_rows(sales: list[Sale], settings: Settings) -> dict:
    rows = []
    for sale in sales:
        for item in sale.items:
            price = to_decimal(item.price)
            rows.append({
                "date": sale.date,
                "sale_id": sale.id,
                "user": sale.user,
                "product": item.name,
                "quantity": item.quantity,
                "unit_price": round_money(price),
                "line_total": round_money(price * item.quantity),
                "line_profit": round_money((price - to_decimal(item.unit_cost)) * item.quantity),
                "currency": settings.currency.strip(),
            })
    return {
        "rows": rows,
        "totals": {
            "revenue": revenue(sales),
            "profit": profit(sales),
            "items_sold": sum(items_sold(s) for s in sales),
            "transactions": len(sales),
        },
    }


def export_csv(sales: list[Sale], settings: Settings) -> str:
    exported = export_rows(sales, settings)
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(exported["rows"])
    return buf.getvalue()


def receipt_lines(sale: Sale, settings: Settings) -> list[str]:
    """Plain-text receipt for one sale, one string per printed line."""
    currency = settings.currency
    lines = [
        "Store Receipt",
        f"Sale ID: {sale.id}",
        f"Date: {sale.date}",
        f"Cashier: {sale.user}",
        "",
    ]
    for item in sale.items:
        line_total = to_decimal(item.price) * item.quantity
        lines.append(f"{item.name} x{item.quantity} @ {to_decimal(item.price):.2f} = {line_total:.2f}")
    lines += [
        "",
        f"Subtotal: {currency}{Decimal(str(sale.total)):.2f}",
        f"Discount: {currency}{Decimal(str(sale.discount)):.2f}",
        f"TOTAL: {currency}{Decimal(str(sale.final_total)):.2f}",
        f"Payment: {sale.payment_method.value}",
    ]
    return lines
