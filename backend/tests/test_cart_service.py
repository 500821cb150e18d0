import unittest

from pos.models import Product, Settings, SoundCue
from pos.services import cart_service, products_service
from pos.services.cart_service import CartError
from pos.services.store_service import DataStore, MemoryKeyValueBackend
from pos.validation import NotFoundError


class CartServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = DataStore(MemoryKeyValueBackend())
        self.store.save_products([
            Product(id="A", name="Widget", price=10, cost=6, stock=2),
            Product(id="B", name="Gadget", price=4.5, stock=10),
            Product(id="Z", name="Sold out", price=1, stock=0),
        ])
        self.store.save_sales([])

    def quantities(self):
        return {item.id: item.quantity for item in self.store.cart()}

    def test_add_increments_existing_line(self):
        first = cart_service.add_to_cart(self.store, "A")
        second = cart_service.add_to_cart(self.store, "A")

        self.assertEqual(first.cue, SoundCue.ITEM_ADDED)
        self.assertEqual(second.cue, SoundCue.ITEM_ADDED)
        self.assertEqual(self.quantities(), {"A": 2})

    def test_add_beyond_stock_is_refused(self):
        cart_service.add_to_cart(self.store, "A")
        cart_service.add_to_cart(self.store, "A")
        result = cart_service.add_to_cart(self.store, "A")

        self.assertEqual(result.cue, SoundCue.ERROR)
        self.assertEqual(self.quantities(), {"A": 2})

    def test_add_out_of_stock_product(self):
        result = cart_service.add_to_cart(self.store, "Z")
        self.assertEqual(result.cue, SoundCue.ERROR)
        self.assertEqual(self.store.cart(), [])

    def test_add_unknown_product(self):
        with self.assertRaises(NotFoundError):
            cart_service.add_to_cart(self.store, "nope")

    def test_update_quantity_clamps_to_stock(self):
        cart_service.add_to_cart(self.store, "A")
        result = cart_service.update_quantity(self.store, "A", 5)

        self.assertEqual(result.cue, SoundCue.ERROR)
        self.assertEqual(self.quantities(), {"A": 2})

    def test_update_quantity_zero_removes(self):
        cart_service.add_to_cart(self.store, "A")
        cart_service.add_to_cart(self.store, "B")
        cart_service.update_quantity(self.store, "A", 0)
        self.assertEqual(self.quantities(), {"B": 1})

    def test_update_quantity_of_missing_line(self):
        with self.assertRaises(CartError):
            cart_service.update_quantity(self.store, "B", 2)

    def test_clear_cue_only_when_cart_had_items(self):
        self.assertIsNone(cart_service.clear_cart(self.store).cue)
        cart_service.add_to_cart(self.store, "B")
        self.assertEqual(cart_service.clear_cart(self.store).cue, SoundCue.CART_CLEARED)
        self.assertEqual(self.store.cart(), [])

    def test_cues_suppressed_when_sound_disabled(self):
        self.store.save_settings(Settings(sound_effects_enabled=False))
        self.assertIsNone(cart_service.add_to_cart(self.store, "B").cue)
        self.assertIsNone(cart_service.add_to_cart(self.store, "Z").cue)

    def test_totals(self):
        cart_service.add_to_cart(self.store, "A")
        cart_service.add_to_cart(self.store, "B")
        totals = cart_service.cart_totals(self.store.cart(), discount=1.5)

        self.assertEqual(totals["subtotal"], 14.5)
        self.assertEqual(totals["total"], 13)
        self.assertEqual(totals["projected_profit"], 8.5)
        self.assertEqual(totals["item_count"], 2)


class CheckoutTests(unittest.TestCase):
    def setUp(self):
        self.store = DataStore(MemoryKeyValueBackend())
        self.store.save_products([Product(id="A", name="Widget", price=10, cost=6, stock=5)])
        self.store.save_sales([])
        cart_service.add_to_cart(self.store, "A")
        cart_service.update_quantity(self.store, "A", 3)

    def test_checkout_creates_sale_and_empties_cart(self):
        result = cart_service.checkout(
            self.store, discount=2, payment_method="card", username="cashier"
        )

        self.assertEqual(result.cue, SoundCue.SALE_COMPLETED)
        self.assertIsNone(result.change)
        self.assertEqual(result.sale.total, 30)
        self.assertEqual(result.sale.final_total, 28)
        self.assertEqual(self.store.cart(), [])
        self.assertEqual(products_service.get_product(self.store, "A").stock, 2)
        self.assertEqual(self.store.sales()[0].id, result.sale.id)

    def test_change_due(self):
        result = cart_service.checkout(
            self.store, payment_method="cash", username="cashier", amount_received=50
        )
        self.assertEqual(result.change, 20)

    def test_amount_received_must_cover_total(self):
        with self.assertRaises(CartError):
            cart_service.checkout(self.store, payment_method="cash", username="cashier", amount_received=10)
        self.assertEqual(self.store.sales(), [])
        self.assertEqual(len(self.store.cart()), 1)

    def test_invalid_payment_method(self):
        with self.assertRaises(CartError) as ctx:
            cart_service.checkout(self.store, payment_method="cheque", username="cashier")
        self.assertIn("allowed", ctx.exception.details)
        self.assertEqual(len(self.store.cart()), 1)

    def test_empty_cart(self):
        cart_service.clear_cart(self.store)
        with self.assertRaises(CartError):
            cart_service.checkout(self.store, payment_method="cash", username="cashier")
