import logging

from payments.utils import client_address

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Log every incoming request with its client address."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        logger.info("%s %s ip=%s", request.method, request.get_full_path(), client_address(request))
        if request.method != "GET" and logger.isEnabledFor(logging.DEBUG):
            logger.debug("Body: %s", request.body[:2000].decode("utf-8", "replace"))
        return self.get_response(request)
