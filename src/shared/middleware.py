# src/shared/middleware.py
from __future__ import annotations

import time
import uuid

from fastapi import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from src.shared.logging import bind_request_context, clear_request_context, get_logger, set_correlation_id

logger = get_logger("http")


class RequestContextMiddleware:
    """
    Ensures every request has a correlation id and logs its completion.
    - Reads X-Request-ID if provided, otherwise generates one.
    - Binds correlation id, method and path into the structlog context.
    - Exposes request.state.correlation_id and echoes the header on the response.
    """
    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        corr = set_correlation_id(request.headers.get(self.header_name) or str(uuid.uuid4()))
        request.state.correlation_id = corr
        bind_request_context(method=scope.get("method"), path=scope.get("path"))
        start = time.perf_counter()

        async def send_wrapper(message):
            if message.get("type") == "http.response.start":
                headers = list(message.get("headers") or [])
                headers.append((self.header_name.encode(), corr.encode()))
                message["headers"] = headers
                logger.info(
                    "http.request_completed",
                    status_code=message.get("status"),
                    duration_ms=int((time.perf_counter() - start) * 1000),
                )
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            clear_request_context()
