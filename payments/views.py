import json
import logging

from django.http import JsonResponse
from django.utils.crypto import constant_time_compare
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .conf import get_config
from .exceptions import PaymentError, Unauthorized
from .lifecycle import get_orchestrator
from .utils import build_return_url, client_address

logger = logging.getLogger(__name__)


def _json_body(request) -> dict:
    if request.content_type == "application/json":
        try:
            body = json.loads(request.body.decode("utf-8") or "{}")
        except (ValueError, UnicodeDecodeError):
            return {}
        return body if isinstance(body, dict) else {}
    return request.POST.dict()


def _first(body: dict, *names, default=""):
    for name in names:
        value = body.get(name)
        if value not in (None, ""):
            return value
    return default


def _check_admin_token(request) -> None:
    token = get_config().admin_token
    if not token:
        return
    if not constant_time_compare(request.headers.get("X-Admin-Token", ""), token):
        raise Unauthorized()


def _run(request, action, *args, **kwargs):
    try:
        return JsonResponse(action(*args, **kwargs))
    except PaymentError as e:
        return JsonResponse(e.to_response(), status=e.status_code)
    except Exception:
        logger.exception("%s %s crashed", request.method, request.path)
        return JsonResponse({"ok": False, "message": "internal_error"}, status=500)


@csrf_exempt
@require_POST
def create_view(request):
    body = _json_body(request)
    config = get_config()
    back_url = str(_first(body, "back_url", "backUrl")).strip()
    return _run(
        request,
        lambda: get_orchestrator().create(
            service_id=_first(body, "service_id", "serviceId", "id"),
            service_name=_first(body, "service_name", "serviceName", "name"),
            price=_first(body, "price"),
            phone=_first(body, "phone"),
            address=client_address(request),
            back_url=back_url,
            return_url=build_return_url(request, config.return_url, config.return_path, back_url),
        ),
    )


@require_GET
def status_view(request):
    return _run(request, lambda: get_orchestrator().status(request.GET.get("orderId", "")))


@csrf_exempt
@require_POST
def mark_paid_view(request):
    def action():
        _check_admin_token(request)
        order_id = request.GET.get("orderId") or _first(_json_body(request), "orderId")
        return get_orchestrator().mark_paid(order_id)

    return _run(request, action)
