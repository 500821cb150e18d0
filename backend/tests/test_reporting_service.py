import unittest
from datetime import date, timedelta, timezone

from pos.models import CartItem, Expense, PaymentMethod, Product, Sale, Settings
from pos.services import reporting_service
from pos.services.sales_service import compute_totals


def _sale(sale_id: str, when: str, lines, discount=0) -> Sale:
    items = [
        CartItem(id=pid, name=name, price=price, cost=cost, quantity=qty)
        for pid, name, price, cost, qty in lines
    ]
    total, final_total = compute_totals(items, discount)
    return Sale(
        id=sale_id,
        items=items,
        total=total,
        discount=discount,
        final_total=final_total,
        payment_method=PaymentMethod.CASH,
        date=when,
        user="admin",
    )


def _expense(category: str, amount, when: str = "2024-05-01") -> Expense:
    return Expense(id=f"exp-{category}-{amount}", category=category, description="", amount=amount, date=when)


class ProfitTests(unittest.TestCase):
    def test_profit_uses_snapshot_cost_and_discount(self):
        sale = _sale("s1", "2024-05-01T10:00:00Z", [("A", "Widget", 10, 6, 2), ("B", "Gadget", 5, None, 1)], discount=3)
        # finalTotal 22 - cost (12 + 0)
        self.assertEqual(reporting_service.sale_profit(sale), 10)
        self.assertEqual(reporting_service.items_sold(sale), 3)

    def test_revenue_and_profit_sum(self):
        sales = [
            _sale("s1", "2024-05-01T10:00:00Z", [("A", "Widget", 10, 6, 1)]),
            _sale("s2", "2024-05-01T11:00:00Z", [("A", "Widget", 10, 6, 2)]),
        ]
        self.assertEqual(reporting_service.revenue(sales), 30)
        self.assertEqual(reporting_service.profit(sales), 12)


class WindowTests(unittest.TestCase):
    def setUp(self):
        self.sales = [
            _sale("s3", "2024-06-01T00:30:00Z", [("A", "Widget", 10, 6, 1)]),
            _sale("s2", "2024-05-31T23:30:00Z", [("A", "Widget", 10, 6, 1)]),
            _sale("s1", "2024-05-01T09:00:00Z", [("A", "Widget", 10, 6, 1)]),
            _sale("bad", "not-a-date", [("A", "Widget", 10, 6, 1)]),
        ]

    def test_day_window_in_utc(self):
        day = reporting_service.sales_on_day(self.sales, date(2024, 5, 31))
        self.assertEqual([s.id for s in day], ["s2"])

    def test_day_window_shifts_with_zone(self):
        plus_two = timezone(timedelta(hours=2))
        day = reporting_service.sales_on_day(self.sales, date(2024, 6, 1), plus_two)
        self.assertEqual([s.id for s in day], ["s3", "s2"])

    def test_month_window(self):
        may = reporting_service.sales_in_month(self.sales, 2024, 5)
        self.assertEqual([s.id for s in may], ["s2", "s1"])

    def test_unparseable_date_is_in_no_window(self):
        in_range = reporting_service.filter_sales_by_range(self.sales, None, None)
        self.assertNotIn("bad", [s.id for s in in_range])

    def test_range_is_inclusive_and_newest_first(self):
        selected = reporting_service.filter_sales_by_range(self.sales, date(2024, 5, 1), date(2024, 5, 31))
        self.assertEqual([s.id for s in selected], ["s2", "s1"])


class TopProductTests(unittest.TestCase):
    def test_empty_window_has_no_top_product(self):
        self.assertIsNone(reporting_service.top_product([]))

    def test_highest_quantity_wins(self):
        sales = [
            _sale("s1", "2024-05-01T10:00:00Z", [("A", "Widget", 10, 6, 1), ("B", "Gadget", 5, 2, 2)]),
            _sale("s2", "2024-05-01T11:00:00Z", [("A", "Widget", 10, 6, 3)]),
        ]
        top = reporting_service.top_product(sales)
        self.assertEqual(top["product_id"], "A")
        self.assertEqual(top["quantity"], 4)
        self.assertFalse(top["in_catalog"])

    def test_tie_goes_to_first_encountered(self):
        sales = [_sale("s1", "2024-05-01T10:00:00Z", [("B", "Gadget", 5, 2, 2), ("A", "Widget", 10, 6, 2)])]
        self.assertEqual(reporting_service.top_product(sales)["product_id"], "B")

    def test_name_prefers_catalog(self):
        sales = [_sale("s1", "2024-05-01T10:00:00Z", [("A", "Old name", 10, 6, 1)])]
        catalog = [Product(id="A", name="New name", price=10, stock=1)]
        top = reporting_service.top_product(sales, catalog)
        self.assertEqual(top["name"], "New name")
        self.assertTrue(top["in_catalog"])


class SeriesTests(unittest.TestCase):
    def test_ascending_with_expenses(self):
        sales = [
            _sale("s2", "2024-05-02T10:00:00Z", [("A", "Widget", 10, 6, 1)]),
            _sale("s1", "2024-05-01T10:00:00Z", [("A", "Widget", 10, 6, 2)]),
        ]
        rows = reporting_service.daily_series(sales, [_expense("rent", 50, "2024-05-03")])
        self.assertEqual(
            rows,
            [
                {"date": "2024-05-01", "revenue": 20, "profit": 8, "expenses": 0},
                {"date": "2024-05-02", "revenue": 10, "profit": 4, "expenses": 0},
                {"date": "2024-05-03", "revenue": 0, "profit": 0, "expenses": 50},
            ],
        )

    def test_keeps_most_recent_days(self):
        start = date(2024, 1, 1)
        sales = [
            _sale(f"s{i}", f"{start + timedelta(days=i)}T12:00:00Z", [("A", "Widget", 10, 6, 1)])
            for i in range(40)
        ]
        rows = reporting_service.daily_series(sales)
        self.assertEqual(len(rows), 30)
        self.assertEqual(rows[0]["date"], (start + timedelta(days=10)).isoformat())
        self.assertEqual(rows[-1]["date"], (start + timedelta(days=39)).isoformat())


class ExpenseTests(unittest.TestCase):
    def test_categories_merge_case_and_whitespace(self):
        expenses = [_expense("Rent", 100), _expense("rent ", 50), _expense("Utilities", 20)]
        rows = reporting_service.expenses_by_category(expenses)
        self.assertEqual(
            rows,
            [
                {"category": "rent", "label": "Rent", "amount": 150},
                {"category": "utilities", "label": "Utilities", "amount": 20},
            ],
        )

    def test_blank_category_is_other(self):
        self.assertEqual(reporting_service.normalize_category("  "), "other")
        self.assertEqual(reporting_service.normalize_category("Taxes  Fees"), "taxes_fees")

    def test_finance_report(self):
        sales = [_sale("s1", "2024-05-01T10:00:00Z", [("A", "Widget", 10, 6, 5)])]
        report = reporting_service.finance_report(sales=sales, expenses=[_expense("rent", 12.5)])
        self.assertEqual(report["gross_profit"], 20)
        self.assertEqual(report["total_expenses"], 12.5)
        self.assertEqual(report["net_profit"], 7.5)


class InventoryTests(unittest.TestCase):
    def _products(self, stocks):
        return [Product(id=f"p{i}", name=f"P{i}", price=10, cost=4, stock=s) for i, s in enumerate(stocks)]

    def test_low_stock_count_includes_threshold(self):
        self.assertEqual(reporting_service.low_stock_count(self._products([5, 10, 11, 0]), 10), 3)

    def test_valuation(self):
        summary = reporting_service.inventory_valuation(self._products([5, 10, 11, 0]), 10)
        self.assertEqual(summary["total_units"], 26)
        self.assertEqual(summary["total_cost_value"], 104)
        self.assertEqual(summary["total_retail_value"], 260)

    def test_inventory_report_statuses(self):
        report = reporting_service.inventory_report(
            products=self._products([0, 3, 50]),
            settings=Settings(low_stock_threshold=5),
        )
        self.assertEqual([r["status"] for r in report["rows"]], ["out_of_stock", "low_stock", "in_stock"])
        self.assertEqual(report["low_stock_count"], 2)


class ComposedReportTests(unittest.TestCase):
    def test_dashboard(self):
        sales = [
            _sale("s2", "2024-05-15T10:00:00Z", [("A", "Widget", 10, 6, 1)]),
            _sale("s1", "2024-05-02T10:00:00Z", [("B", "Gadget", 5, 2, 4)]),
        ]
        products = [Product(id="A", name="Widget", price=10, stock=3)]
        report = reporting_service.dashboard_report(sales=sales, products=products, as_of=date(2024, 5, 15))

        self.assertEqual(report["daily_revenue"], 10)
        self.assertEqual(report["daily_profit"], 4)
        self.assertEqual(report["monthly_revenue"], 30)
        self.assertEqual(report["monthly_profit"], 16)
        self.assertEqual(report["total_stock_value"], 30)
        self.assertEqual(report["top_product_today"]["product_id"], "A")
        self.assertEqual(report["top_product_month"]["name"], "Gadget")
        self.assertEqual([row["date"] for row in report["series"]], ["2024-05-02", "2024-05-15"])

    def test_dashboard_with_no_sales(self):
        report = reporting_service.dashboard_report(sales=[], products=[], as_of=date(2024, 5, 15))
        self.assertIsNone(report["top_product_today"])
        self.assertEqual(report["daily_revenue"], 0)

    def test_sales_history_rejects_inverted_range(self):
        with self.assertRaises(reporting_service.ReportError):
            reporting_service.sales_history_report(sales=[], start=date(2024, 5, 2), end=date(2024, 5, 1))

    def test_sales_history_rows(self):
        sales = [_sale("s1", "2024-05-01T10:00:00Z", [("A", "Widget", 10, 6, 2)])]
        report = reporting_service.sales_history_report(sales=sales, start=date(2024, 5, 1), end=date(2024, 5, 1))
        self.assertEqual(report["count"], 1)
        self.assertEqual(report["rows"][0]["profit"], 8)
        self.assertEqual(report["rows"][0]["items_sold"], 2)
        self.assertEqual(report["rows"][0]["finalTotal"], 20)
