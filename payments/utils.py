import re
import secrets
import time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from urllib.parse import quote

ALNUM36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = ALNUM36[r] + out
        if not n:
            return out


def generate_order_number() -> str:
    """``o`` + base36 millisecond timestamp + 5 random base36 chars."""
    rand = "".join(secrets.choice(ALNUM36) for _ in range(5))
    return f"o{_base36(int(time.time() * 1000))}{rand}"


def to_minor_units(price) -> int:
    """Convert a major-unit price (``"1 500,50"``, ``500``, ``"12.3"``) to kopecks.

    Unparseable input gives 0 so callers can reject it as a non-positive price.
    """
    s = re.sub(r"\s+", "", str(price if price is not None else "")).replace(",", ".")
    try:
        value = Decimal(s)
    except InvalidOperation:
        return 0
    if not value.is_finite():
        return 0
    try:
        return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0


def digits_only(phone) -> str:
    return re.sub(r"\D+", "", str(phone or ""))


def client_address(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "") or ""


def build_return_url(request, static_url: str, return_path: str, back_url: str = "") -> str:
    url = static_url
    if not url:
        host = request.META.get("HTTP_X_FORWARDED_HOST") or request.get_host()
        proto = request.META.get("HTTP_X_FORWARDED_PROTO") or request.scheme
        url = f"{proto}://{host}{return_path}"
    if back_url:
        sep = "&" if "?" in url else "?"
        url += f"{sep}back_url={quote(back_url, safe='')}"
    return url
