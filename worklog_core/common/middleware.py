from __future__ import annotations

import logging
import time

from django.utils.deprecation import MiddlewareMixin

from worklog_core.common.api.exceptions import REQUEST_ID_HEADER, ensure_request_id
from worklog_core.common.logging_config import RequestContext

logger = logging.getLogger(__name__)


class RequestContextMiddleware(MiddlewareMixin):
    """
    Attaches a request id to every request, binds it into the logging
    context and echoes it back as X-Request-ID.

    Also logs one line per completed API request.
    """

    LOGGED_PREFIXES = ("/api/",)

    def process_request(self, request):
        RequestContext.clear()
        rid = ensure_request_id(request)
        RequestContext.set(request_id=rid)
        request._started_at = time.monotonic()
        return None

    def process_response(self, request, response):
        rid = ensure_request_id(request)
        response[REQUEST_ID_HEADER] = rid

        path = getattr(request, "path", "") or ""
        if any(path.startswith(p) for p in self.LOGGED_PREFIXES):
            started = getattr(request, "_started_at", None)
            duration_ms = round((time.monotonic() - started) * 1000, 2) if started else None
            logger.info(
                "request completed",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                },
            )

        RequestContext.clear()
        return response
