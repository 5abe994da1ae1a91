"""FastSale: reports a paid order to the club's 1C accounting system."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

import requests
from django.utils import timezone
from requests import RequestException
from requests.auth import HTTPBasicAuth

from payments.conf import PaymentConfig
from payments.models import Order, SettlementAttempt
from payments.utils import digits_only

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    ok: bool
    status: Optional[int] = None
    data: Any = field(default=None)
    error: str = ""
    doc_id: str = ""

    def as_dict(self) -> dict:
        out = {"ok": self.ok, "status": self.status, "data": self.data, "docId": self.doc_id}
        if self.error:
            out["error"] = self.error
        return out


def is_failure_body(data) -> bool:
    return isinstance(data, dict) and (data.get("result") is False or data.get("ok") is False)


class FastSaleDispatcher:
    def __init__(self, config: PaymentConfig, session: Optional[requests.Session] = None, clock=timezone.now):
        self.config = config
        self.session = session or requests.Session()
        self.clock = clock

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json; charset=UTF-8", "apikey": self.config.api_key}
        if self.config.api_user_token:
            headers["usertoken"] = self.config.api_user_token
        return headers

    def build_document(self, order: Order, doc_id: str) -> dict:
        amount = order.price_major
        return {
            "clubId": self.config.club_id,
            "phone": digits_only(order.phone),
            "sale": {
                "docId": doc_id,
                "date": self.clock().isoformat(),
                "cashless": amount,
                "goods": [{"id": order.service_id, "qty": 1, "amount": amount}],
            },
        }

    def send(self, order: Order, context: str = "status", doc_id: Optional[str] = None) -> SettlementResult:
        doc_id = doc_id or str(uuid.uuid4())
        body = self.build_document(order, doc_id)

        missing = self.config.missing_settlement_settings
        if missing:
            logger.error("FastSale is not configured: %s", ", ".join(missing))
            result = SettlementResult(ok=False, error="missing_config", doc_id=doc_id)
        else:
            result = self._post(body, doc_id)

        self._audit(order, context, body, result)
        return result

    def _post(self, body: dict, doc_id: str) -> SettlementResult:
        logger.info("FastSale POST %s docId=%s", self.config.fastsale_endpoint, doc_id)
        try:
            resp = self.session.post(
                self.config.fastsale_endpoint,
                json=body,
                headers=self._headers(),
                auth=HTTPBasicAuth(self.config.basic_user, self.config.basic_pass),
                timeout=self.config.fastsale_timeout,
            )
        except RequestException as e:
            logger.error("FastSale request failed for docId=%s: %s", doc_id, e)
            return SettlementResult(ok=False, error=str(e), doc_id=doc_id)

        try:
            data = resp.json()
        except ValueError:
            data = resp.text

        logger.info("FastSale HTTP %s docId=%s resp=%s", resp.status_code, doc_id, str(data)[:800])

        if resp.status_code >= 400:
            return SettlementResult(ok=False, status=resp.status_code, data=data, error=f"HTTP {resp.status_code}", doc_id=doc_id)
        if is_failure_body(data):
            return SettlementResult(ok=False, status=resp.status_code, data=data, error="rejected", doc_id=doc_id)
        return SettlementResult(ok=True, status=resp.status_code, data=data, doc_id=doc_id)

    def _audit(self, order: Order, context: str, body: dict, result: SettlementResult) -> None:
        SettlementAttempt.objects.create(
            order_id=order.order_id or "",
            order_number=order.order_number,
            doc_id=result.doc_id,
            context=context,
            request_body=body,
            response_status=result.status,
            response_body=result.data if isinstance(result.data, (dict, list)) else {"raw": result.data},
            ok=result.ok,
            error=result.error,
        )
