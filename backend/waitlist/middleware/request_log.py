import logging
import re
import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from waitlist.core.logging_config import request_id_ctx_var

logger = logging.getLogger("waitlist.request")

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{8,128}$")


def _resolve_request_id(request: Request) -> str:
    incoming = (request.headers.get("X-Request-ID") or "").strip()
    if _REQUEST_ID_RE.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = _resolve_request_id(request)
        token = request_id_ctx_var.set(request_id)
        request.state.request_id = request_id
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            logger.info(
                "request",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                },
            )
            request_id_ctx_var.reset(token)
