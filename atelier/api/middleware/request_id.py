"""
Request correlation middleware.

Accepts or generates X-Request-ID, exposes it on request.state, echoes it
on the response and binds it to the logging context var for the duration
of the request. Slow requests are logged with the acting profile id.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from atelier.config import get_settings
from atelier.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request (and every log line it emits) with a request id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            elapsed_ms = (time.perf_counter() - start) * 1000
            if elapsed_ms > SLOW_REQUEST_MS:
                logger.warning(
                    "Slow request",
                    extra={
                        "path": request.url.path,
                        "method": request.method,
                        "actor_id": request.headers.get(get_settings().actor_header),
                        "duration_ms": round(elapsed_ms, 1),
                    },
                )
            return response
        finally:
            request_id_var.reset(token)
