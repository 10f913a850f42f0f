"""Request logging middleware.

Assigns every request a correlation id (reusing an inbound ``X-Request-ID``
from the proxy when present), exposes it as ``request.state.request_id`` for
the ApiResponse envelope, echoes it in the response header, and logs one line
per request:

    INFO  [POST] /api/v1/betting/wagers → 201 (23ms) req_a1b2c3d4e5f6

4xx responses log at WARNING and 5xx at ERROR. /health probes are not logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.wg_common.response import new_request_id

logger = logging.getLogger("wg.request")

REQUEST_ID_HEADER = "X-Request-ID"
_QUIET_PATHS = frozenset({"/health"})


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        inbound = request.headers.get(REQUEST_ID_HEADER, "")
        request.state.request_id = inbound[:64] or new_request_id()

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        if request.url.path not in _QUIET_PATHS:
            logger.log(
                _level_for(response.status_code),
                "[%s] %s → %d (%.0fms) %s",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                request.state.request_id,
            )
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response
