"""Payment order lifecycle: create at Alfa, poll status, settle in 1C once.

States: an order is active from creation until it is either paid (status
poll saw the money captured and FastSale accepted the sale), manually
finalized (``mark_paid``) or expired (TTL passed before payment). Terminal
states never change again.
"""

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from django.db import transaction
from django.utils import timezone

from .admission import AdmissionGuard
from .conf import PaymentConfig, get_config
from .exceptions import (
    GatewayError,
    LedgerWriteError,
    OrderExpired,
    OrderNotFound,
    OrderValidationError,
    SettlementFailed,
)
from .expiry import ExpiryReconciler
from .integrations.alfa import AlfaClient, has_logical_error, is_paid_status
from .integrations.fastsale import FastSaleDispatcher, SettlementResult
from .ledger import OrderLedger
from .locks import OrderLocks
from .models import Order
from .utils import generate_order_number, to_minor_units

logger = logging.getLogger(__name__)

ALFA_CURRENCY_RUB = "810"
# Largest amount Order.price_minor stores on every backend.
MAX_PRICE_MINOR = 2147483647


class LifecycleOrchestrator:
    def __init__(
        self,
        config: PaymentConfig,
        gateway: AlfaClient,
        dispatcher: FastSaleDispatcher,
        ledger: Optional[OrderLedger] = None,
        locks: Optional[OrderLocks] = None,
        clock=timezone.now,
    ):
        self.config = config
        self.gateway = gateway
        self.dispatcher = dispatcher
        self.ledger = ledger or OrderLedger()
        self.locks = locks or OrderLocks()
        self.clock = clock
        self.admission = AdmissionGuard(config, self.ledger, clock=clock)
        self.expiry = ExpiryReconciler(gateway, self.ledger, self.locks, clock=clock)

    # ---------- create ----------
    def create(self, *, service_id, service_name, price, phone, address="", back_url="", return_url="") -> dict:
        service_id = str(service_id or "").strip()
        service_name = str(service_name or "").strip()
        phone = str(phone or "").strip()
        price_minor = to_minor_units(price)

        if not service_id or not service_name or not 0 < price_minor <= MAX_PRICE_MINOR or not phone:
            raise OrderValidationError("Missing fields")

        self.admission.check(phone, address)

        order_number = generate_order_number()
        fields = {
            "amount": price_minor,
            "currency": ALFA_CURRENCY_RUB,
            "language": "ru",
            "orderNumber": order_number,
            "returnUrl": return_url,
            "clientId": phone,
            "description": f"{service_name} #{service_id}",
        }

        reg = self.gateway.register(fields)
        if not reg.ok:
            raise GatewayError("alfa_register_failed", raw=reg.as_dict())

        data = reg.data if isinstance(reg.data, dict) else {}
        if has_logical_error(data):
            raise GatewayError(data.get("errorMessage") or "Alfa error", status_code=400, raw=data)

        now = self.clock()
        order = Order(
            order_number=order_number,
            order_id=data.get("orderId") or None,
            created_at=now,
            ttl_seconds=self.config.ttl_seconds,
            expires_at=now + timedelta(seconds=self.config.ttl_seconds),
            service_id=service_id,
            service_name=service_name,
            price_minor=price_minor,
            phone=phone,
            client_address=address or "",
            back_url=back_url or "",
            return_url=return_url or "",
            form_url=data.get("formUrl") or "",
            register_payload=data,
        )

        response = {
            "ok": True,
            "orderId": order.order_id,
            "orderNumber": order_number,
            "formUrl": order.form_url,
            "raw": data,
        }
        try:
            self.ledger.put(order)
        except LedgerWriteError as e:
            # Alfa already holds the order; status polls for it will find no record.
            logger.warning("Order %s registered at Alfa as %s but not recorded: %s", order_number, order.order_id, e)
            response["warning"] = "order_not_recorded"
        else:
            logger.info("Order %s registered at Alfa as %s", order_number, order.order_id)
        return response

    # ---------- status ----------
    def status(self, order_id) -> dict:
        order_id = str(order_id or "").strip()
        if not order_id:
            raise OrderValidationError("orderId required")

        order = self.ledger.get(order_id)
        if order is not None and self.expiry.is_expired(order):
            decline = self.expiry.expire(order)
            order = self.ledger.get(order_id)
            if order is None:
                raise OrderExpired(decline=decline)

        gateway_id = order.order_id if order is not None and order.order_id else order_id
        st = self.gateway.query_status(gateway_id)
        if not st.ok:
            raise GatewayError("alfa_status_failed", raw=st.as_dict())

        data = st.data if isinstance(st.data, dict) else {}
        paid = is_paid_status(data)
        response = {
            "ok": True,
            "orderId": data.get("orderId", gateway_id),
            "orderNumber": data.get("orderNumber", order.order_number if order else None),
            "orderStatus": data.get("orderStatus"),
            "actionCode": data.get("actionCode"),
            "actionCodeDescription": data.get("actionCodeDescription"),
            "errorCode": data.get("errorCode"),
            "errorMessage": data.get("errorMessage"),
            "paymentAmountInfo": data.get("paymentAmountInfo"),
            "paid": paid,
            "raw": data,
        }

        if paid and order is not None and not order.settlement_sent:
            outcome = self._settle(order, context="status")
            if outcome is not None:
                result, _, warning = outcome
                response["fastSale"] = result.as_dict()
                if warning:
                    response["warning"] = warning
        return response

    # ---------- mark_paid ----------
    def mark_paid(self, order_id) -> dict:
        order_id = str(order_id or "").strip()
        if not order_id:
            raise OrderValidationError("orderId required")

        order = self.ledger.get(order_id)
        if order is None:
            raise OrderNotFound()
        if order.finalized and order.settlement_sent:
            return {"ok": True, "already": True, "meta": order.to_meta()}

        outcome = self._settle(order, context="manual", manual=True)
        if outcome is None:
            current = self.ledger.get(order_id)
            if current is None:
                raise OrderNotFound()
            return {"ok": True, "already": True, "meta": current.to_meta()}

        result, current, warning = outcome
        if not result.ok:
            raise SettlementFailed(fastSale=result.as_dict(), meta=current.to_meta())
        logger.info("Order %s marked paid manually", current.order_number)
        response = {"ok": True, "fastSale": result.as_dict(), "meta": current.to_meta()}
        if warning:
            response["warning"] = warning
        return response

    def _settle(self, order: Order, context: str, manual: bool = False):
        """Send the sale to FastSale unless somebody already did.

        Serialized per order in-process by ``self.locks`` and across processes
        by the row lock plus the conditional update in ``mark_settled``. The
        audit row of the attempt commits with the outer transaction even when
        the flag write is rolled back, and a later call reuses an accepted
        attempt instead of sending the sale again.

        Returns ``(result, order, warning)`` or None when there was nothing to do.
        """
        warning = None
        with self.locks.hold(order.order_number):
            with transaction.atomic():
                current = self.ledger.get_for_update(order.order_number)
                if current is None or current.settlement_sent:
                    return None

                accepted = self.ledger.accepted_attempt(current)
                if accepted is not None:
                    logger.warning(
                        "Order %s already accepted by FastSale as docId=%s, recording it",
                        current.order_number, accepted.doc_id,
                    )
                    result = SettlementResult(
                        ok=True, status=accepted.response_status, data=accepted.response_body, doc_id=accepted.doc_id
                    )
                else:
                    result = self.dispatcher.send(current, context=context)

                if result.ok:
                    warning = self._record_settled(current, result, manual)
                else:
                    # Flags stay false, the next status poll retries.
                    try:
                        with transaction.atomic():
                            self.ledger.record_settlement_failure(current, result.as_dict())
                    except LedgerWriteError as e:
                        logger.error("Could not store failed settlement for order %s: %s", current.order_number, e)
                    logger.warning("FastSale failed for order %s: %s", current.order_number, result.error)
        return result, current, warning

    def _record_settled(self, order: Order, result: SettlementResult, manual: bool):
        try:
            with transaction.atomic():
                self.ledger.mark_settled(order, result.as_dict(), result.doc_id, manual=manual)
        except LedgerWriteError as e:
            logger.error("FastSale accepted order %s docId=%s but the flags were not saved: %s",
                         order.order_number, result.doc_id, e)
            return "settlement_not_recorded"
        logger.info("FastSale accepted order %s docId=%s", order.order_number, result.doc_id)
        return None


@lru_cache(maxsize=None)
def get_orchestrator() -> LifecycleOrchestrator:
    config = get_config()
    return LifecycleOrchestrator(config, AlfaClient(config), FastSaleDispatcher(config))
