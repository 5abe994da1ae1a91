from datetime import timedelta

from django.utils import timezone

from payments.conf import PaymentConfig
from payments.integrations.alfa import GatewayResult
from payments.integrations.fastsale import SettlementResult
from payments.lifecycle import LifecycleOrchestrator


def make_config(**overrides) -> PaymentConfig:
    values = dict(
        ttl_seconds=300,
        max_active_per_phone=3,
        max_active_per_address=20,
        alfa_base_url="https://alfa.test/payment",
        alfa_token="test-token",
        fastsale_endpoint="https://club.test/api/fastsale",
        club_id="club-1",
        api_key="api-key",
        basic_user="user",
        basic_pass="pass",
    )
    values.update(overrides)
    return PaymentConfig(**values)


class FrozenClock:
    def __init__(self, now=None):
        self.now = now or timezone.now()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeGateway:
    """Stands in for AlfaClient; hands out sequential gateway ids."""

    def __init__(self, status_data=None):
        self.calls = []
        self.register_result = None
        self.status_result = None
        self.status_data = status_data or {"orderStatus": 0, "paymentAmountInfo": {"approvedAmount": 0}}
        self.decline_result = GatewayResult(ok=True, status=200, data={"errorCode": "0"})
        self.on_status = None
        self.next_ids = []

    def register(self, fields):
        self.calls.append(("register", fields))
        if self.register_result is not None:
            return self.register_result
        registered = sum(1 for name, _ in self.calls if name == "register")
        order_id = self.next_ids.pop(0) if self.next_ids else f"gw{registered}"
        return GatewayResult(
            ok=True,
            status=200,
            data={"errorCode": "0", "orderId": order_id, "formUrl": f"https://alfa.test/pay/{order_id}"},
        )

    def query_status(self, order_id):
        self.calls.append(("status", order_id))
        if self.on_status:
            self.on_status(order_id)
        if self.status_result is not None:
            return self.status_result
        return GatewayResult(ok=True, status=200, data={"orderId": order_id, **self.status_data})

    def decline(self, order_id):
        self.calls.append(("decline", order_id))
        return self.decline_result

    def count(self, name):
        return sum(1 for n, _ in self.calls if n == name)


class FakeDispatcher:
    def __init__(self, ok=True):
        self.ok = ok
        self.sent = []

    def send(self, order, context="status", doc_id=None):
        self.sent.append((order.order_number, context))
        doc_id = doc_id or f"doc-{len(self.sent)}"
        if self.ok:
            return SettlementResult(ok=True, status=200, data={"result": True}, doc_id=doc_id)
        return SettlementResult(ok=False, status=500, data={"result": False}, error="HTTP 500", doc_id=doc_id)


PAID_STATUS = {
    "orderStatus": 2,
    "orderNumber": "ignored",
    "actionCode": 0,
    "actionCodeDescription": "",
    "errorCode": "0",
    "paymentAmountInfo": {"approvedAmount": 50000, "depositedAmount": 50000, "paymentState": "DEPOSITED"},
}


def make_orchestrator(config=None, gateway=None, dispatcher=None, clock=None):
    return LifecycleOrchestrator(
        config or make_config(),
        gateway or FakeGateway(),
        dispatcher or FakeDispatcher(),
        clock=clock or FrozenClock(),
    )
