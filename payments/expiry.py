import logging
from datetime import timedelta

from django.utils import timezone

from .integrations.alfa import AlfaClient
from .ledger import OrderLedger
from .locks import OrderLocks
from .models import DeclinedOrder, Order

logger = logging.getLogger(__name__)


class ExpiryReconciler:
    """Cancels orders that outlived their TTL.

    Runs lazily from the status check; an order nobody polls stays in the
    table until ``sweep`` (the ``sweep_expired_orders`` command) reaches it.
    """

    def __init__(self, gateway: AlfaClient, ledger: OrderLedger, locks: OrderLocks, clock=timezone.now):
        self.gateway = gateway
        self.ledger = ledger
        self.locks = locks
        self.clock = clock

    def is_expired(self, order: Order, now=None) -> bool:
        if order.cancelled_by_expiry or order.finalized:
            return False
        now = now or self.clock()
        return now - order.created_at > timedelta(seconds=order.ttl_seconds)

    def expire(self, order: Order, reason: str = "ttl"):
        """Decline at the gateway, write the audit record and drop the order.

        Returns the decline result as a dict, or None if another request got
        here first or the order is no longer expired.
        """
        with self.locks.hold(order.order_number):
            current = self.ledger.get(order.order_number)
            if current is None or not self.is_expired(current):
                return None

            decline = self.gateway.decline(current.order_id or current.order_number)
            if not decline.ok:
                logger.warning("Alfa decline failed for %s, cancelling locally: %s", current.order_number, decline.error)

            DeclinedOrder.objects.create(
                reason=reason,
                order_id=current.order_id or "",
                order_number=current.order_number,
                phone=current.phone,
                client_address=current.client_address,
                price_minor=current.price_minor,
                decline_result=decline.as_dict(),
            )
            self.ledger.delete(current.order_number)
            logger.info("Order %s (%s) cancelled by TTL", current.order_number, current.order_id)
            return decline.as_dict()

    def sweep(self, limit: int = 100, dry_run: bool = False) -> list:
        expired = []
        for order in self.ledger.list_stale(self.clock())[:limit]:
            if dry_run:
                expired.append(order.order_number)
                continue
            if self.expire(order, reason="sweep") is not None:
                expired.append(order.order_number)
        return expired
