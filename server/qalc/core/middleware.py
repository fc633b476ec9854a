from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from qalc.core.context import request_scope

logger = logging.getLogger("qalc.request")


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        request_id_header = request.headers.get("x-request-id")

        with request_scope(request_id_header) as request_id:
            start_time = time.perf_counter()
            extra = {"path": request.url.path, "method": request.method}
            logger.info("request.start", extra=extra)

            try:
                response = await call_next(request)
            finally:
                duration_ms = (time.perf_counter() - start_time) * 1000
                extra.update({"duration_ms": round(duration_ms, 2)})
                logger.info("request.end", extra=extra)

        response.headers["X-Request-ID"] = request_id
        return response
