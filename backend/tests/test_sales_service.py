import unittest
from dataclasses import replace

from pos.models import CartItem, PaymentMethod, Product
from pos.services import products_service, sales_service
from pos.services.sales_service import SaleError, SaleNotFoundError
from pos.services.store_service import (
    PRODUCTS_KEY,
    SALES_KEY,
    WRITE_FAILURE_NOTICE,
    DataStore,
    MemoryKeyValueBackend,
)
from pos.validation import NotFoundError


def _catalog():
    return [
        Product(id="A", name="Widget", price=10, cost=6, stock=20, category="Parts"),
        Product(id="B", name="Gadget", price=5, cost=2, stock=10, category="Parts"),
        Product(id="C", name="Doohickey", price=2.5, stock=4),
    ]


def _line(product: Product, quantity: int) -> CartItem:
    return CartItem.from_product(product, quantity=quantity)


class SaleServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.backend = MemoryKeyValueBackend()
        self.notices = []
        self.store = DataStore(self.backend, notify=self.notices.append)
        self.store.save_products(_catalog())
        self.store.save_sales([])

    def stock(self, product_id: str) -> int:
        return products_service.get_product(self.store, product_id).stock

    def sell(self, quantities: dict, discount=0):
        catalog = {p.id: p for p in self.store.products()}
        items = [_line(catalog[pid], qty) for pid, qty in quantities.items()]
        return sales_service.create_sale(
            self.store, items=items, discount=discount, payment_method="cash", username="admin"
        )


class CreateSaleTests(SaleServiceTestCase):
    def test_totals_and_stock_decrement(self):
        sale = self.sell({"A": 2, "B": 1}, discount=3)

        self.assertEqual(sale.total, 25)
        self.assertEqual(sale.final_total, 22)
        self.assertEqual(self.stock("A"), 18)
        self.assertEqual(self.stock("B"), 9)
        self.assertEqual(sale.payment_method, PaymentMethod.CASH)
        self.assertEqual(sale.user, "admin")
        self.assertTrue(sale.id.startswith("sale-"))

    def test_final_total_is_total_minus_discount_rounded(self):
        self.store.save_products([Product(id="X", name="Odd", price=0.1, stock=100)])
        sale = self.sell({"X": 3}, discount=0.05)
        self.assertEqual(sale.total, 0.3)
        self.assertEqual(sale.final_total, 0.25)

    def test_new_sale_is_stored_first(self):
        first = self.sell({"A": 1})
        second = self.sell({"B": 1})
        self.assertEqual([s.id for s in self.store.sales()], [second.id, first.id])

    def test_oversell_goes_negative(self):
        self.sell({"C": 6})
        self.assertEqual(self.stock("C"), -2)

    def test_invalid_inputs(self):
        with self.assertRaises(SaleError):
            sales_service.create_sale(self.store, items=[], payment_method="cash", username="admin")
        with self.assertRaises(SaleError):
            self.sell({"A": 1}, discount=-1)
        with self.assertRaises(SaleError):
            sales_service.create_sale(
                self.store, items=[_line(_catalog()[0], 1)], payment_method="cheque", username="admin"
            )
        self.assertEqual(self.store.sales(), [])

    def test_sale_keeps_its_snapshot(self):
        sale = self.sell({"A": 1})

        products_service.update_product(self.store, "A", patch={"price": 99, "cost": 50})
        products_service.delete_product(self.store, "A")
        products_service.create_product(self.store, patch={"name": "Widget", "price": 1})

        stored = sales_service.get_sale(self.store, sale.id)
        self.assertEqual(stored.items[0].price, 10)
        self.assertEqual(stored.items[0].cost, 6)
        self.assertEqual(stored.items[0].name, "Widget")

    def test_stock_write_rejected_leaves_sale_saved(self):
        self.backend.fail_writes_for.add(PRODUCTS_KEY)

        with self.assertLogs("pos.services.store_service", level="ERROR"):
            sale = self.sell({"A": 2})

        self.assertEqual([s.id for s in self.store.sales()], [sale.id])
        self.assertEqual(self.stock("A"), 20)
        self.assertEqual(self.notices, [WRITE_FAILURE_NOTICE])

    def test_sale_write_rejected_still_moves_stock(self):
        self.backend.fail_writes_for.add(SALES_KEY)

        with self.assertLogs("pos.services.store_service", level="ERROR"):
            self.sell({"A": 2})

        self.assertEqual(self.store.sales(), [])
        self.assertEqual(self.stock("A"), 18)


class UpdateSaleTests(SaleServiceTestCase):
    def test_reducing_quantity_returns_stock(self):
        original = self.sell({"A": 5})
        self.assertEqual(self.stock("A"), 15)

        edited = sales_service.amend_sale(
            self.store, original.id, quantities={"A": 2}, reason="return", username="admin"
        )

        self.assertEqual(self.stock("A"), 18)
        self.assertEqual(edited.total, 20)

    def test_increasing_quantity_takes_more_stock(self):
        original = self.sell({"A": 2})
        edited = replace(original, items=[_line(_catalog()[0], 5)])

        self.assertTrue(sales_service.update_sale(self.store, original, edited))
        self.assertEqual(self.stock("A"), 15)

    def test_removed_item_returns_full_quantity(self):
        original = self.sell({"A": 2, "B": 3})
        sales_service.amend_sale(self.store, original.id, quantities={"B": 0}, reason="void line", username="admin")

        self.assertEqual(self.stock("B"), 10)
        self.assertEqual(self.stock("A"), 18)
        stored = sales_service.get_sale(self.store, original.id)
        self.assertEqual([i.id for i in stored.items], ["A"])

    def test_deleted_product_is_skipped(self):
        original = self.sell({"A": 2, "B": 2})
        products_service.delete_product(self.store, "A")

        sales_service.amend_sale(
            self.store, original.id, quantities={"A": 0, "B": 0}, reason="refund", username="admin"
        )
        self.assertEqual(self.stock("B"), 10)
        self.assertIsNone(products_service.get_product(self.store, "A"))

    def test_missing_sale_is_logged_no_op(self):
        original = self.sell({"A": 1})
        self.store.save_sales([])
        edited = replace(original, items=[])

        with self.assertLogs("pos.services.sales_service", level="ERROR"):
            self.assertFalse(sales_service.update_sale(self.store, original, edited))
        self.assertEqual(self.stock("A"), 19)

    def test_repeated_lines_are_summed(self):
        widget = _catalog()[0]
        sale = sales_service.create_sale(
            self.store,
            items=[_line(widget, 2), _line(widget, 3)],
            payment_method="card",
            username="admin",
        )
        self.assertEqual(sale.quantities(), {"A": 5})
        self.assertEqual(self.stock("A"), 15)

        edited = replace(sale, items=[_line(widget, 1)])
        self.assertEqual(sales_service.stock_deltas(sale, edited), {"A": 4})

    def test_stock_deltas_omit_unchanged(self):
        original = self.sell({"A": 2, "B": 1})
        edited = replace(original, items=[_line(_catalog()[0], 1), _line(_catalog()[1], 1)])
        self.assertEqual(sales_service.stock_deltas(original, edited), {"A": 1})


class AmendSaleTests(SaleServiceTestCase):
    def test_records_modification_history(self):
        original = self.sell({"A": 3, "B": 2}, discount=1)

        edited = sales_service.amend_sale(
            self.store, original.id, quantities={"A": 1, "B": 0}, reason="customer return", username="cashier"
        )

        self.assertEqual(edited.total, 10)
        self.assertEqual(edited.discount, 1)
        self.assertEqual(edited.final_total, 9)
        self.assertEqual(len(edited.modification_history), 1)
        entry = edited.modification_history[0]
        self.assertEqual(entry.user, "cashier")
        self.assertEqual(entry.reason, "customer return")
        self.assertEqual(entry.changes, "Widget: Qty 3 -> 1, Gadget: Qty 2 -> 0")
        self.assertEqual(sales_service.get_sale(self.store, original.id), edited)

    def test_unchanged_quantities_are_a_no_op(self):
        original = self.sell({"A": 3})
        result = sales_service.amend_sale(self.store, original.id, quantities={"A": 3}, reason="", username="admin")
        self.assertEqual(result, original)
        self.assertEqual(self.stock("A"), 17)

    def test_reason_required_when_changed(self):
        original = self.sell({"A": 3})
        with self.assertRaisesRegex(SaleError, "Reason for modification is required."):
            sales_service.amend_sale(self.store, original.id, quantities={"A": 1}, reason="  ", username="admin")
        self.assertEqual(self.stock("A"), 17)

    def test_over_return_rejected(self):
        original = self.sell({"A": 3})
        with self.assertRaises(SaleError):
            sales_service.amend_sale(self.store, original.id, quantities={"A": 4}, reason="x", username="admin")
        with self.assertRaises(SaleError):
            sales_service.amend_sale(self.store, original.id, quantities={"A": -1}, reason="x", username="admin")
        with self.assertRaises(SaleError):
            sales_service.amend_sale(self.store, original.id, quantities={"Z": 0}, reason="x", username="admin")

    def test_unknown_sale(self):
        with self.assertRaises(SaleNotFoundError) as ctx:
            sales_service.amend_sale(self.store, "sale-missing", quantities={}, reason="x", username="admin")
        self.assertIsInstance(ctx.exception, NotFoundError)
