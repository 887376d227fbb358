"""
Threaded tests against a file-backed SQLite database.

Every worker runs in its own app context and session, as concurrent
requests would.
"""
import os
import tempfile
import threading
import unittest
from decimal import Decimal

from mizan import create_app
from mizan.extensions import db
from mizan.services import numbering_service, reference_service, sales_service, treasury_service, warehouse_service
from mizan.validation import ConflictError


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "DB_LOCK_TIMEOUT_SECONDS": 30,
            "DB_RETRY_ATTEMPTS": 10,
            "ALLOW_NEGATIVE_STOCK": False,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            warehouse = reference_service.create_warehouse(patch={"name": "Concurrency Store"})
            self.warehouse_id = warehouse.id

            product = reference_service.create_product(patch={
                "name": "Concurrent Product",
                "opening_balance": Decimal("10"),
                "opening_warehouse_id": self.warehouse_id,
            })
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_workers(self, target, count):
        results = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    value = target()
                    with lock:
                        results.append(value)
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def test_concurrent_numbers_are_unique_and_gapless(self):
        results = self._run_workers(lambda: numbering_service.next_number("quotation"), 10)

        errors = [r for r in results if isinstance(r, Exception)]
        self.assertFalse(errors)
        self.assertEqual(sorted(results), [f"QT{n:06d}" for n in range(1, 11)])

    def test_concurrent_incoming_postings_all_land(self):
        def receive():
            tx = warehouse_service.post_transaction(
                warehouse_id=self.warehouse_id,
                transaction_type="INCOMING",
                items=[{"product_id": self.product_id, "quantity": Decimal("5")}],
            )
            return tx.transaction_number

        results = self._run_workers(receive, 8)

        errors = [r for r in results if isinstance(r, Exception)]
        self.assertFalse(errors)
        self.assertEqual(len(results), len(set(results)))

        with self.app.app_context():
            self.assertEqual(warehouse_service.get_quantity(self.warehouse_id, self.product_id), Decimal("50"))
            self.assertEqual(warehouse_service.reconcile_stock(), [])

    def test_concurrent_outgoing_cannot_oversell(self):
        def ship():
            warehouse_service.post_transaction(
                warehouse_id=self.warehouse_id,
                transaction_type="OUTGOING",
                items=[{"product_id": self.product_id, "quantity": Decimal("6")}],
            )
            return "posted"

        results = self._run_workers(ship, 2)

        posted = sum(1 for r in results if r == "posted")
        self.assertEqual(posted, 1)
        rejected = [r for r in results if isinstance(r, warehouse_service.WarehouseError)]
        self.assertEqual(len(rejected), 1)

        with self.app.app_context():
            self.assertEqual(warehouse_service.get_quantity(self.warehouse_id, self.product_id), Decimal("4"))
            self.assertEqual(warehouse_service.reconcile_stock(), [])

    def test_concurrent_settlements_of_one_custody(self):
        with self.app.app_context():
            treasury_service.create_voucher("cash_receipt", patch={"amount": Decimal("1000")})
            custody = treasury_service.create_voucher(
                "custody_disbursement", patch={"amount": Decimal("500"), "custodian_name": "Omar"}
            )
            custody_id = custody.id

        def settle():
            voucher = treasury_service.create_voucher(
                "custody_settlement",
                patch={"custody_disbursement_id": custody_id, "spent_amount": Decimal("100")},
            )
            return voucher.voucher_number

        results = self._run_workers(settle, 2)

        settled = [r for r in results if isinstance(r, str)]
        rejected = [r for r in results if isinstance(r, ConflictError)]
        self.assertEqual(len(settled), 1, results)
        self.assertEqual(len(rejected), 1, results)

        with self.app.app_context():
            self.assertEqual(treasury_service.get_balance(), Decimal("900.00"))
            self.assertEqual(treasury_service.open_custodies(), [])

    def test_concurrent_use_of_one_reserved_number(self):
        with self.app.app_context():
            number = numbering_service.next_number("quotation")

        def quote():
            quotation = sales_service.create_quotation(
                patch={"quotation_number": number},
                items=[{
                    "product_id": self.product_id,
                    "quantity": Decimal("1"),
                    "unit_price": Decimal("5"),
                    "discount_percentage": Decimal("0"),
                }],
            )
            return quotation.quotation_number

        results = self._run_workers(quote, 2)

        self.assertEqual([r for r in results if isinstance(r, str)], [number])
        self.assertEqual(len([r for r in results if isinstance(r, ConflictError)]), 1, results)


if __name__ == "__main__":
    unittest.main()
