"""
Request middleware: tracing and a cap on in-flight generation work.

Every response carries X-Request-Id (the client's own, when it sent one)
and X-Duration-Ms; /api traffic is logged. Generation and chat requests
hold a provider slot, and once all slots are busy new ones get a 429.
"""
import asyncio
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from verkove.logger import StudioLogger
from verkove.metrics import StudioMetrics

GENERATION_PATHS = {"/api/generate-design", "/api/chat"}
BUSY_MESSAGE = "Too many design requests in flight. Try again shortly."


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Stamps request id and duration onto responses."""

    def __init__(self, app, logger: StudioLogger | None = None):
        super().__init__(app)
        self.logger = logger or StudioLogger("http")

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        started = time.monotonic()
        response = await call_next(request)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        response.headers["X-Request-Id"] = request_id
        response.headers["X-Duration-Ms"] = str(elapsed_ms)
        if request.url.path.startswith("/api"):
            self.logger.request(request.method, request.url.path, response.status_code,
                                elapsed_ms, request_id)
        return response


class ConcurrencyLimitMiddleware(BaseHTTPMiddleware):
    """Caps concurrent provider-bound requests; extra ones are turned away, not queued."""

    def __init__(self, app, max_concurrent: int = 4, limited_paths: set[str] | None = None,
                 retry_after_s: int = 10):
        super().__init__(app)
        self.slots = asyncio.Semaphore(max_concurrent)
        self.limited_paths = limited_paths or GENERATION_PATHS
        self.retry_after_s = retry_after_s

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method != "POST" or request.url.path not in self.limited_paths:
            return await call_next(request)

        if self.slots.locked():
            StudioMetrics().incr("rejected_busy")
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": BUSY_MESSAGE},
                headers={"Retry-After": str(self.retry_after_s)},
            )

        async with self.slots:
            return await call_next(request)
