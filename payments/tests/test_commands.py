from io import StringIO
from datetime import timedelta
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase

from payments.models import DeclinedOrder, Order

from .helpers import FakeGateway, make_orchestrator


class SweepExpiredOrdersTests(TestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.orch = make_orchestrator(gateway=self.gateway)
        patcher = patch("payments.management.commands.sweep_expired_orders.get_orchestrator", return_value=self.orch)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _order(self, number, age_minutes):
        return Order.objects.create(
            order_number=number,
            order_id=f"gw-{number}",
            created_at=self.orch.clock() - timedelta(minutes=age_minutes),
            service_id="42",
            service_name="Swim",
            price_minor=50000,
            phone="+79001234567",
        )

    def _call(self, *args):
        out = StringIO()
        call_command("sweep_expired_orders", *args, stdout=out)
        return out.getvalue()

    def test_nothing_to_do(self):
        self._order("fresh", 1)
        self.assertIn("No expired orders", self._call())

    def test_sweep(self):
        self._order("fresh", 1)
        self._order("stale", 10)

        out = self._call()

        self.assertIn("stale: cancelled", out)
        self.assertEqual(list(Order.objects.values_list("order_number", flat=True)), ["fresh"])
        self.assertEqual(DeclinedOrder.objects.get().order_id, "gw-stale")
        self.assertEqual(self.gateway.calls, [("decline", "gw-stale")])

    def test_dry_run(self):
        self._order("stale", 10)
        out = self._call("--dry-run")
        self.assertIn("stale: would cancel", out)
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(self.gateway.calls, [])

    def test_max(self):
        self._order("a", 30)
        self._order("b", 20)
        self._call("--max", "1")
        self.assertEqual(list(Order.objects.values_list("order_number", flat=True)), ["b"])
        self.assertEqual(DeclinedOrder.objects.get().order_number, "a")
