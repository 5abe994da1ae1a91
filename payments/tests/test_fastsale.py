from datetime import datetime, timezone as dt_timezone
from unittest.mock import MagicMock

import requests
from django.test import TestCase

from payments.integrations.fastsale import FastSaleDispatcher
from payments.models import Order, SettlementAttempt

from .helpers import FakeResponse, make_config

SALE_TIME = datetime(2026, 3, 1, 9, 30, tzinfo=dt_timezone.utc)


class FastSaleDispatcherTests(TestCase):
    def setUp(self):
        self.order = Order.objects.create(
            order_number="olx2k3abcde",
            order_id="abc",
            created_at=SALE_TIME,
            service_id="42",
            service_name="Swim",
            price_minor=50000,
            phone="+7 (900) 123-45-67",
        )

    def _dispatcher(self, response=None, **overrides):
        session = MagicMock()
        session.post.return_value = response or FakeResponse(200, {"result": True})
        return FastSaleDispatcher(make_config(**overrides), session=session, clock=lambda: SALE_TIME), session

    def test_document_and_auth(self):
        dispatcher, session = self._dispatcher()
        result = dispatcher.send(self.order, doc_id="doc-1")

        self.assertTrue(result.ok)
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "https://club.test/api/fastsale")
        self.assertEqual(
            kwargs["json"],
            {
                "clubId": "club-1",
                "phone": "79001234567",
                "sale": {
                    "docId": "doc-1",
                    "date": "2026-03-01T09:30:00+00:00",
                    "cashless": 500,
                    "goods": [{"id": "42", "qty": 1, "amount": 500}],
                },
            },
        )
        self.assertEqual(kwargs["headers"]["apikey"], "api-key")
        self.assertNotIn("usertoken", kwargs["headers"])
        self.assertEqual((kwargs["auth"].username, kwargs["auth"].password), ("user", "pass"))

    def test_fresh_doc_id_per_attempt(self):
        dispatcher, _ = self._dispatcher()
        first = dispatcher.send(self.order)
        second = dispatcher.send(self.order)
        self.assertNotEqual(first.doc_id, second.doc_id)

    def test_http_error_is_failure(self):
        dispatcher, _ = self._dispatcher(FakeResponse(500, {"message": "1C unavailable"}))
        result = dispatcher.send(self.order)
        self.assertFalse(result.ok)
        self.assertEqual(result.status, 500)

    def test_explicit_false_result_is_failure(self):
        dispatcher, _ = self._dispatcher(FakeResponse(200, {"result": False, "error": "unknown goods"}))
        self.assertFalse(dispatcher.send(self.order).ok)

    def test_2xx_without_marker_is_success(self):
        dispatcher, _ = self._dispatcher(FakeResponse(201, None, text="created"))
        result = dispatcher.send(self.order)
        self.assertTrue(result.ok)
        self.assertEqual(result.data, "created")

    def test_network_error_is_failure(self):
        dispatcher, session = self._dispatcher()
        session.post.side_effect = requests.ConnectionError("refused")
        result = dispatcher.send(self.order)
        self.assertFalse(result.ok)
        self.assertIn("refused", result.error)

    def test_missing_credentials_fail_fast(self):
        dispatcher, session = self._dispatcher(api_key="")
        result = dispatcher.send(self.order)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, "missing_config")
        session.post.assert_not_called()

    def test_every_attempt_is_audited(self):
        ok, _ = self._dispatcher()
        failing, _ = self._dispatcher(FakeResponse(502, {"result": False}))
        ok.send(self.order, context="status", doc_id="d1")
        failing.send(self.order, context="manual", doc_id="d2")

        attempts = {a.doc_id: a for a in SettlementAttempt.objects.all()}
        self.assertEqual(set(attempts), {"d1", "d2"})
        self.assertTrue(attempts["d1"].ok)
        self.assertEqual(attempts["d1"].request_body["sale"]["docId"], "d1")
        self.assertFalse(attempts["d2"].ok)
        self.assertEqual(attempts["d2"].context, "manual")
        self.assertEqual(attempts["d2"].response_status, 502)

    def test_audit_records_are_append_only(self):
        dispatcher, _ = self._dispatcher()
        dispatcher.send(self.order)
        attempt = SettlementAttempt.objects.get()
        attempt.ok = False
        with self.assertRaises(ValueError):
            attempt.save()
