"""
DocSummarizer Backend: Request Logging Middleware
==================================================

What:  One access log line per HTTP request on the "docsummarizer.access"
       logger: method, path, status, duration, client.
How:   Level follows the status code (5xx ERROR, 4xx WARNING, else INFO) so
       failing uploads and analyses stand out. /health is not logged.

What we log vs what we DON'T log:
    Log:       method, path, query keys, status, duration, client IP
    Never log: request bodies (document contents), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("docsummarizer.access")

_QUIET_PATHS = {"/health"}


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request after the response is produced."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        query_keys = ",".join(sorted(request.query_params.keys()))
        logger.log(
            _level_for(response.status_code),
            "%s %s%s %d %.1fms from %s",
            request.method,
            path,
            f" ?{query_keys}" if query_keys else "",
            response.status_code,
            duration_ms,
            client_ip,
        )
        return response
