"""Order store keyed by gateway ``order_id`` and caller ``order_number``."""

import logging
from typing import Optional

from django.db import DatabaseError
from django.db.models import Q, QuerySet
from django.utils import timezone

from .exceptions import LedgerWriteError
from .models import Order, SettlementAttempt

logger = logging.getLogger(__name__)


def _by_key(key: str) -> Q:
    return Q(order_id=key) | Q(order_number=key)


class OrderLedger:
    def put(self, order: Order) -> Order:
        try:
            order.save()
        except DatabaseError as e:
            raise LedgerWriteError(f"could not store order {order.order_number}: {e}") from e
        return order

    def get(self, key: str) -> Optional[Order]:
        if not key:
            return None
        return Order.objects.filter(_by_key(key)).first()

    def get_for_update(self, key: str) -> Optional[Order]:
        """Row-locking read; call inside ``transaction.atomic``."""
        if not key:
            return None
        return Order.objects.select_for_update().filter(_by_key(key)).first()

    def delete(self, key: str) -> int:
        if not key:
            return 0
        deleted, _ = Order.objects.filter(_by_key(key)).delete()
        return deleted

    def list_active(self, now) -> QuerySet:
        return Order.objects.filter(
            cancelled_by_expiry=False,
            finalized=False,
            expires_at__gte=now,
        )

    def list_stale(self, now) -> QuerySet:
        return Order.objects.filter(
            cancelled_by_expiry=False,
            finalized=False,
            expires_at__lt=now,
        ).order_by("expires_at")

    def mark_settled(self, order: Order, result: dict, doc_id: str, manual: bool = False) -> bool:
        """Flip ``settlement_sent`` only if nobody has done it yet.

        Returns True when this call won; the in-memory ``order`` is refreshed
        either way.
        """
        fields = {
            "settlement_sent": True,
            "finalized": True,
            "settlement_doc_id": doc_id,
            "settlement_at": timezone.now(),
            "settlement_result": result,
            "updated_at": timezone.now(),
        }
        if manual:
            fields["marked_paid_manually"] = True
        try:
            won = Order.objects.filter(pk=order.pk, settlement_sent=False).update(**fields) == 1
        except DatabaseError as e:
            raise LedgerWriteError(f"could not mark order {order.order_number} settled: {e}") from e
        order.refresh_from_db()
        if not won:
            logger.warning("Order %s was already settled by a concurrent request", order.order_number)
        return won

    def record_settlement_failure(self, order: Order, result: dict) -> None:
        try:
            Order.objects.filter(pk=order.pk, settlement_sent=False).update(
                settlement_result=result, updated_at=timezone.now()
            )
        except DatabaseError as e:
            raise LedgerWriteError(f"could not record failed settlement for {order.order_number}: {e}") from e

    def accepted_attempt(self, order: Order) -> Optional[SettlementAttempt]:
        """Latest attempt FastSale accepted for ``order``, if any."""
        return (
            SettlementAttempt.objects.filter(order_number=order.order_number, ok=True)
            .order_by("-created_at", "-pk")
            .first()
        )
