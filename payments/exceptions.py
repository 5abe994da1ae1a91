class PaymentError(Exception):
    """Base for every error the order lifecycle reports to its caller."""

    status_code = 400
    default_message = "payment_error"

    def __init__(self, message: str = "", **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {"ok": False, "message": self.message, **self.extra}


class OrderValidationError(PaymentError):
    status_code = 400
    default_message = "Missing fields"


class Unauthorized(PaymentError):
    status_code = 401
    default_message = "unauthorized"


class OrderNotFound(PaymentError):
    status_code = 404
    default_message = "meta_not_found"


class OrderExpired(PaymentError):
    status_code = 408
    default_message = "Время оплаты истекло. Заказ отменён."

    def to_response(self) -> dict:
        return {"ok": False, "timeout": True, "message": self.message, **self.extra}


class AdmissionRejected(PaymentError):
    status_code = 429
    default_message = "too_many_active_orders"


class GatewayError(PaymentError):
    """Gateway call failed (502) or answered with a logical error code (400)."""

    status_code = 502
    default_message = "alfa_error"

    def __init__(self, message: str = "", status_code: int = 502, **extra):
        super().__init__(message, **extra)
        self.status_code = status_code


class SettlementFailed(PaymentError):
    status_code = 502
    default_message = "fastsale_failed"


class LedgerWriteError(Exception):
    """The order store could not persist a record."""
