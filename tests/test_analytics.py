import unittest

from stockledger.core.errors import PermissionDeniedError
from stockledger.services.analytics_service import dashboard_summary, inventory_analytics
from stockledger.services.ledger_service import InventoryLedger
from tests.support import ADMIN, WORKER, TickingClock, memory_engine, memory_store


class AnalyticsTest(unittest.TestCase):
    def setUp(self):
        self.engine = memory_engine()
        self.ledger = InventoryLedger(memory_store(self.engine, clock=TickingClock()))

        self.phone = self.ledger.add_product(
            {
                "product_id": "iph13",
                "name": "iPhone 13",
                "category": "Mobile Phones",
                "purchase_date": "2024-01-10",
                "stock": 3,
                "price": 500,
            },
            actor=ADMIN,
        )
        self.laptop = self.ledger.add_product(
            {
                "product_id": "mbp14",
                "name": "MacBook Pro",
                "category": "Laptops",
                "purchase_date": "2024-02-05",
                "stock": 2,
                "price": 1000,
            },
            actor=ADMIN,
        )
        self.ledger.mark_as_sold(self.phone.id, "2024-03-05", 3, 500, "alice", actor=WORKER)

    def tearDown(self):
        self.engine.dispose()

    def test_totals(self):
        report = inventory_analytics(self.ledger, actor=ADMIN)

        self.assertEqual(report.total_inventory_value, 2000)
        self.assertEqual(report.total_purchase_cost, 3500)
        self.assertEqual(report.total_sales, 1500)
        self.assertEqual(report.total_purchased, 5)
        self.assertEqual(report.total_sold, 3)
        self.assertEqual(report.average_purchase_price, 700)

    def test_monthly_series_are_sorted_by_month(self):
        report = inventory_analytics(self.ledger, actor=ADMIN)

        self.assertEqual(
            [(m.month, m.amount) for m in report.monthly_sales],
            [("2024-03", 1500)],
        )
        self.assertEqual(
            [(m.month, m.amount) for m in report.monthly_purchases],
            [("2024-01", 0), ("2024-02", 2000)],
        )

    def test_partial_sales_are_not_counted_as_revenue(self):
        self.ledger.mark_as_sold(self.laptop.id, "2024-03-06", 1, 1200, actor=WORKER)

        report = inventory_analytics(self.ledger, actor=ADMIN)

        self.assertEqual(report.total_sales, 1500)
        self.assertEqual(report.total_sold, 3)
        self.assertEqual(report.total_inventory_value, 1000)

    def test_price_history_is_newest_first(self):
        report = inventory_analytics(self.ledger, actor=ADMIN)

        self.assertEqual(
            [(item.product_name, item.change) for item in report.price_history],
            [
                ("iPhone 13", "3 units sold by alice"),
                ("iPhone 13", "Stock updated"),
                ("MacBook Pro", "Product added with purchase price"),
                ("iPhone 13", "Product added with purchase price"),
            ],
        )
        dates = [item.date for item in report.price_history]
        self.assertEqual(dates, sorted(dates, reverse=True))

    def test_workers_cannot_view_analytics(self):
        with self.assertRaises(PermissionDeniedError):
            inventory_analytics(self.ledger, actor=WORKER)

    def test_empty_ledger(self):
        engine = memory_engine()
        self.addCleanup(engine.dispose)
        report = inventory_analytics(InventoryLedger(memory_store(engine)), actor=ADMIN)

        self.assertEqual(report.total_purchased, 0)
        self.assertEqual(report.average_purchase_price, 0)
        self.assertEqual(report.price_history, [])

    def test_dashboard_summary(self):
        summary = dashboard_summary(self.ledger, low_stock_threshold=2)

        self.assertEqual(summary.total_products, 2)
        self.assertEqual(summary.in_stock, 1)
        self.assertEqual(summary.sold, 1)
        self.assertEqual(summary.low_stock, 1)
        self.assertEqual([p.product_id for p in summary.recent_products], ["mbp14", "iph13"])


if __name__ == "__main__":
    unittest.main()
