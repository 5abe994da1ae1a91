from datetime import timedelta
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from payments.exceptions import LedgerWriteError
from payments.ledger import OrderLedger
from payments.models import Order


def _order(number, order_id=None, created_at=None, **kwargs):
    return Order(
        order_number=number,
        order_id=order_id,
        created_at=created_at or timezone.now(),
        service_id="42",
        service_name="Swim",
        price_minor=50000,
        phone=kwargs.pop("phone", "+79001234567"),
        **kwargs,
    )


class OrderLedgerTests(TestCase):
    def setUp(self):
        self.ledger = OrderLedger()

    def test_both_keys_reach_the_same_record(self):
        self.ledger.put(_order("o1", "abc"))

        by_id = self.ledger.get("abc")
        by_number = self.ledger.get("o1")
        self.assertEqual(by_id.pk, by_number.pk)

        self.ledger.mark_settled(by_id, {"ok": True}, "doc-1")
        self.assertTrue(self.ledger.get("abc").settlement_sent)
        self.assertTrue(self.ledger.get("o1").settlement_sent)
        self.assertEqual(self.ledger.get("o1").finalized, self.ledger.get("abc").finalized)

    def test_order_without_gateway_id(self):
        self.ledger.put(_order("o1"))
        self.assertIsNotNone(self.ledger.get("o1"))
        self.assertIsNone(self.ledger.get(""))

    def test_delete_by_either_key_removes_both(self):
        self.ledger.put(_order("o1", "abc"))
        self.assertEqual(self.ledger.delete("abc"), 1)
        self.assertIsNone(self.ledger.get("o1"))
        self.assertIsNone(self.ledger.get("abc"))

    def test_expires_at_derived_from_ttl(self):
        order = self.ledger.put(_order("o1", ttl_seconds=60))
        self.assertEqual(order.expires_at - order.created_at, timedelta(seconds=60))

    def test_list_active(self):
        now = timezone.now()
        self.ledger.put(_order("fresh", created_at=now))
        self.ledger.put(_order("stale", created_at=now - timedelta(minutes=6)))
        self.ledger.put(_order("paid", created_at=now, finalized=True))
        self.ledger.put(_order("cancelled", created_at=now, cancelled_by_expiry=True))

        active = [o.order_number for o in self.ledger.list_active(now)]
        self.assertEqual(active, ["fresh"])
        self.assertEqual([o.order_number for o in Order.objects.all() if o.is_active(now)], ["fresh"])
        self.assertEqual([o.order_number for o in self.ledger.list_stale(now)], ["stale"])

    def test_mark_settled_only_once(self):
        order = self.ledger.put(_order("o1", "abc"))
        stale_copy = self.ledger.get("abc")

        self.assertTrue(self.ledger.mark_settled(order, {"ok": True}, "doc-1"))
        self.assertFalse(self.ledger.mark_settled(stale_copy, {"ok": True}, "doc-2", manual=True))

        stored = self.ledger.get("o1")
        self.assertEqual(stored.settlement_doc_id, "doc-1")
        self.assertFalse(stored.marked_paid_manually)

    def test_failed_settlement_keeps_flags(self):
        order = self.ledger.put(_order("o1", "abc"))
        self.ledger.record_settlement_failure(order, {"ok": False, "error": "HTTP 500"})

        stored = self.ledger.get("abc")
        self.assertFalse(stored.settlement_sent)
        self.assertFalse(stored.finalized)
        self.assertEqual(stored.settlement_result["error"], "HTTP 500")

    def test_write_failure_is_reported(self):
        with patch.object(Order, "save", side_effect=DatabaseError("disk I/O error")):
            with self.assertRaises(LedgerWriteError):
                self.ledger.put(_order("o1", "abc"))
