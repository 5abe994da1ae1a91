"""Typed, immutable view over ``settings.PAY``.

Components receive a :class:`PaymentConfig` in their constructor and never
read Django settings themselves.
"""

from dataclasses import dataclass
from functools import lru_cache

from django.conf import settings
from django.core.signals import setting_changed


@dataclass(frozen=True)
class PaymentConfig:
    ttl_seconds: int = 300
    max_active_per_phone: int = 3
    max_active_per_address: int = 20
    return_url: str = ""
    return_path: str = "/catalog/public/return_alfa.php"
    admin_token: str = ""

    alfa_base_url: str = ""
    alfa_token: str = ""
    alfa_username: str = ""
    alfa_password: str = ""
    alfa_skip_ssl_verify: bool = False
    alfa_timeout: float = 20

    fastsale_endpoint: str = ""
    club_id: str = ""
    api_key: str = ""
    api_user_token: str = ""
    basic_user: str = ""
    basic_pass: str = ""
    fastsale_timeout: float = 20

    @classmethod
    def from_settings(cls) -> "PaymentConfig":
        pay = getattr(settings, "PAY", {}) or {}
        return cls(
            ttl_seconds=int(pay.get("TTL_SECONDS", 300)),
            max_active_per_phone=int(pay.get("MAX_ACTIVE_PER_PHONE", 3)),
            max_active_per_address=int(pay.get("MAX_ACTIVE_PER_IP", 20)),
            return_url=pay.get("RETURN_URL", "") or "",
            return_path=pay.get("RETURN_PATH", "") or "/catalog/public/return_alfa.php",
            admin_token=pay.get("ADMIN_TOKEN", "") or "",
            alfa_base_url=(pay.get("ALFA_BASE_URL", "") or "").rstrip("/"),
            alfa_token=pay.get("ALFA_TOKEN", "") or "",
            alfa_username=pay.get("ALFA_USERNAME", "") or "",
            alfa_password=pay.get("ALFA_PASSWORD", "") or "",
            alfa_skip_ssl_verify=bool(pay.get("ALFA_SKIP_SSL_VERIFY", False)),
            alfa_timeout=float(pay.get("ALFA_TIMEOUT", 20)),
            fastsale_endpoint=pay.get("FASTSALE_ENDPOINT", "") or "",
            club_id=str(pay.get("CLUB_ID", "") or ""),
            api_key=pay.get("API_KEY", "") or "",
            api_user_token=pay.get("API_USER_TOKEN", "") or "",
            basic_user=pay.get("BASIC_USER", "") or "",
            basic_pass=pay.get("BASIC_PASS", "") or "",
            fastsale_timeout=float(pay.get("FASTSALE_TIMEOUT", 20)),
        )

    @property
    def gateway_auth_problem(self) -> str:
        """Empty when exactly one gateway auth mode is configured."""
        has_token = bool(self.alfa_token)
        has_login = bool(self.alfa_username or self.alfa_password)
        if has_token and has_login:
            return "ALFA_TOKEN and ALFA_USERNAME/ALFA_PASSWORD are mutually exclusive"
        if has_login and not (self.alfa_username and self.alfa_password):
            return "ALFA_USERNAME and ALFA_PASSWORD must both be set"
        if not (has_token or has_login):
            return "Either ALFA_TOKEN or ALFA_USERNAME/ALFA_PASSWORD must be set"
        return ""

    @property
    def missing_settlement_settings(self) -> list:
        required = {
            "FASTSALE_ENDPOINT": self.fastsale_endpoint,
            "CLUB_ID": self.club_id,
            "BASIC_USER": self.basic_user,
            "BASIC_PASS": self.basic_pass,
            "API_KEY": self.api_key,
        }
        return [name for name, value in required.items() if not value]


@lru_cache(maxsize=None)
def get_config() -> PaymentConfig:
    return PaymentConfig.from_settings()


def _reset(*, setting, **kwargs):
    if setting == "PAY":
        get_config.cache_clear()
        from .lifecycle import get_orchestrator

        get_orchestrator.cache_clear()


def connect_signals():
    setting_changed.connect(_reset, dispatch_uid="payments.conf.reset")
