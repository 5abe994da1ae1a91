from typing import NamedTuple

from django.utils import timezone

from .conf import PaymentConfig
from .exceptions import AdmissionRejected
from .ledger import OrderLedger


class AdmissionCount(NamedTuple):
    by_phone: int
    by_address: int


class AdmissionGuard:
    """Caps unpaid active orders per phone and per client address.

    The count is read without locking, so two simultaneous creates can both
    pass and overshoot a ceiling by one.
    """

    def __init__(self, config: PaymentConfig, ledger: OrderLedger, clock=timezone.now):
        self.config = config
        self.ledger = ledger
        self.clock = clock

    def count_active(self, phone: str, address: str) -> AdmissionCount:
        active = self.ledger.list_active(self.clock())
        by_phone = active.filter(phone=phone).count() if phone else 0
        by_address = active.filter(client_address=address).count() if address else 0
        return AdmissionCount(by_phone, by_address)

    def check(self, phone: str, address: str) -> AdmissionCount:
        count = self.count_active(phone, address)
        max_phone = self.config.max_active_per_phone
        max_address = self.config.max_active_per_address
        if max_phone > 0 and count.by_phone >= max_phone:
            raise AdmissionRejected("Слишком много активных неоплаченных заказов на этот телефон.")
        if max_address > 0 and count.by_address >= max_address:
            raise AdmissionRejected("Слишком много активных неоплаченных заказов с этого IP.")
        return count
