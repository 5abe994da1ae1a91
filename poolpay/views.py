import logging

from django.http import JsonResponse

logger = logging.getLogger(__name__)


def healthz_view(request):
    return JsonResponse({"ok": True})


def error_404_view(request, exception):
    return JsonResponse({"error": "not_found", "path": request.path}, status=404)


def error_500_view(request):
    logger.error("Unhandled error on %s %s", request.method, request.path)
    return JsonResponse({"ok": False, "message": "internal_error"}, status=500)
