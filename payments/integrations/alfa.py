"""Alfa-Bank e-Commerce REST client.

Every call is a form-encoded POST to ``<ALFA_BASE_URL>/rest/<method>.do``.
Credentials travel in the request body: either ``token`` or
``userName``/``password``, never both.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests
from django.core.exceptions import ImproperlyConfigured
from requests import RequestException

from payments.conf import PaymentConfig

logger = logging.getLogger(__name__)

COMMON_HEADERS = {"Content-Type": "application/x-www-form-urlencoded; charset=UTF-8"}

ORDER_STATUS_DEPOSITED = "2"
PAYMENT_STATE_DEPOSITED = "DEPOSITED"


@dataclass
class GatewayResult:
    ok: bool
    status: Optional[int] = None
    data: Any = field(default=None)
    error: str = ""

    def as_dict(self) -> dict:
        out = {"ok": self.ok, "status": self.status, "data": self.data}
        if self.error:
            out["error"] = self.error
        return out


def is_paid_status(data: Optional[dict]) -> bool:
    """Decide whether a getOrderStatusExtended payload means the money is captured.

    Older responses only carry ``orderStatus``/``approvedAmount``, newer ones
    report ``paymentAmountInfo.paymentState``; either one is enough.
    """
    data = data or {}
    info = data.get("paymentAmountInfo") or {}
    try:
        approved = float(info.get("approvedAmount") or 0)
    except (TypeError, ValueError):
        approved = 0
    if str(data.get("orderStatus")) == ORDER_STATUS_DEPOSITED and approved > 0:
        return True
    return info.get("paymentState") == PAYMENT_STATE_DEPOSITED


def has_logical_error(data: Optional[dict]) -> bool:
    code = (data or {}).get("errorCode")
    return code not in (None, "", "0", 0)


class AlfaClient:
    def __init__(self, config: PaymentConfig, session: Optional[requests.Session] = None):
        if not config.alfa_base_url:
            raise ImproperlyConfigured("Missing ALFA_BASE_URL")
        if config.gateway_auth_problem:
            raise ImproperlyConfigured(config.gateway_auth_problem)
        self.config = config
        self.session = session or requests.Session()

    def _credentials(self) -> dict:
        if self.config.alfa_token:
            return {"token": self.config.alfa_token}
        return {"userName": self.config.alfa_username, "password": self.config.alfa_password}

    def _url(self, method: str) -> str:
        clean = method.lstrip("/")
        if not clean.startswith("rest/"):
            clean = f"rest/{clean}"
        return f"{self.config.alfa_base_url}/{clean}"

    def post(self, method: str, params: Optional[dict] = None) -> GatewayResult:
        body = self._credentials()
        for k, v in (params or {}).items():
            if v is None:
                continue
            body[k] = str(v)

        try:
            resp = self.session.post(
                self._url(method),
                data=body,
                headers=COMMON_HEADERS,
                timeout=self.config.alfa_timeout,
                verify=not self.config.alfa_skip_ssl_verify,
            )
        except RequestException as e:
            logger.error("Alfa %s request failed: %s", method, e)
            return GatewayResult(ok=False, error=str(e))

        try:
            data = resp.json()
        except ValueError:
            data = {"raw": resp.text}

        if 200 <= resp.status_code < 300:
            return GatewayResult(ok=True, status=resp.status_code, data=data)

        logger.error("Alfa %s failed: HTTP %s %s", method, resp.status_code, str(data)[:800])
        return GatewayResult(ok=False, status=resp.status_code, data=data, error=f"HTTP {resp.status_code}")

    def register(self, fields: dict) -> GatewayResult:
        return self.post("register.do", fields)

    def query_status(self, order_id: str) -> GatewayResult:
        return self.post("getOrderStatusExtended.do", {"orderId": order_id})

    def decline(self, order_id: str) -> GatewayResult:
        return self.post("decline.do", {"orderId": order_id})
