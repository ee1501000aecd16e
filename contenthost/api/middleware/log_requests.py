# CONTENTHOST BACKEND

# COMPONENT: API REQUEST / RESPONSE LOGGING MIDDLEWARE
# REQUIREMENTS SATISFIED: backend observability and debugging support
"""
contenthost/api/middleware/log_requests.py

Defines a custom ASGI middleware for per-request access logging.

Each HTTP request is tagged with a short request id and logged once it
completes with its method, path, status code and end-to-end latency.

Request and response bodies are NOT captured: they carry admin passwords,
session tokens and presigned URLs. Query strings are left out for the same
reason.

Non-HTTP ASGI events (lifespan, websockets) pass straight through.
"""
import logging
import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestLogger:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        rid = str(uuid.uuid4())[:8]
        method = scope.get("method")
        path = scope.get("path")
        status_code = None

        async def send_wrapper(message: Message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        start = time.time()
        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = round((time.time() - start) * 1000, 2)
            logger.info(f"[RID {rid}] {method} {path} -> {status_code} ({duration_ms} ms)")
