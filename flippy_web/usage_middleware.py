"""
API usage metering.

Raw ASGI middleware (no BaseHTTPMiddleware, which wraps the request stream
and raises CancelledError on client disconnect). Every HTTP request gets one
usage-log row with its final status, latency and caller, written in the
thread pool after the response has gone out. Logging failures never reach
the client.
"""

import time
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from flippy.auth.sessions import SessionRegistry
from flippy.stores.usage_log import UsageLogger
from flippy.utils.logger import get_logger

logger = get_logger(__name__)

SKIPPED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def _get_cookie_from_scope(scope: Scope, name: str) -> Optional[str]:
    """Extract a cookie value from the raw ASGI headers."""
    for key, value in scope.get("headers") or []:
        if key.decode("latin-1").lower() != "cookie":
            continue
        for part in value.decode("latin-1").split(";"):
            part = part.strip()
            if part.startswith(f"{name}="):
                return part.split("=", 1)[1].strip()
    return None


class UsageMeteringMiddleware:
    def __init__(self, app: ASGIApp, usage_logger: UsageLogger, sessions: SessionRegistry):
        self.app = app
        self.usage_logger = usage_logger
        self.sessions = sessions

    def _caller_id(self, scope: Scope, state: Dict[str, Any]) -> Optional[int]:
        # set by the auth dependencies or by /signin and /signup
        user_id = state.get("user_id")
        if user_id is not None:
            return user_id
        session = self.sessions.validate(_get_cookie_from_scope(scope, self.sessions.cookie_name))
        return session.user_id if session else None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http" or scope.get("path") in SKIPPED_PATHS:
            await self.app(scope, receive, send)
            return
        if scope.get("method") == "OPTIONS":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        status_holder = {"status": 500}
        started = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                status_holder["status"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            client = scope.get("client")
            try:
                await run_in_threadpool(
                    self.usage_logger.record,
                    self._caller_id(scope, state),
                    scope.get("method", ""),
                    scope.get("path", ""),
                    status_holder["status"],
                    elapsed_ms,
                    client[0] if client else None,
                )
            except Exception as e:
                logger.error("Usage metering failed", path=scope.get("path"), error=str(e))
