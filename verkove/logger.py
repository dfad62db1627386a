"""
Structured JSON logger for studio observability.

Outputs one JSON object per log line, parseable by jq, Loki, CloudWatch.
Timestamps are ISO-8601 UTC. Component context is always present.
"""
import json
import sys
import time
from datetime import datetime, timezone


class StudioLogger:
    """Structured logger that writes JSON lines to stderr."""

    def __init__(self, component: str = "", stream=None):
        self.component = component
        self.stream = stream or sys.stderr
        self._start = time.monotonic()

    def _emit(self, level: str, event: str, **fields):
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "component": self.component,
            "elapsed_ms": int((time.monotonic() - self._start) * 1000),
        }
        record.update(fields)
        self.stream.write(json.dumps(record, default=str) + "\n")
        self.stream.flush()

    def info(self, event: str, **kw):
        self._emit("info", event, **kw)

    def warn(self, event: str, **kw):
        self._emit("warn", event, **kw)

    def error(self, event: str, **kw):
        self._emit("error", event, **kw)

    def provider_call(self, provider: str, operation: str, duration_ms: int, **fields):
        self._emit("info", "provider.call", provider=provider, operation=operation,
                   duration_ms=duration_ms, **fields)

    def provider_error(self, provider: str, operation: str, error: str, duration_ms: int):
        self._emit("error", "provider.error", provider=provider, operation=operation,
                   error=error, duration_ms=duration_ms)

    def retry(self, provider: str, attempt: int, delay_ms: int, reason: str):
        self._emit("warn", "provider.retry", provider=provider, attempt=attempt,
                   delay_ms=delay_ms, reason=reason)

    def fallback(self, operation: str, reason: str, **fields):
        self._emit("warn", "generation.fallback", operation=operation, reason=reason, **fields)

    def request(self, method: str, path: str, status: int, duration_ms: int, request_id: str = ""):
        self._emit("info", "http.request", method=method, path=path, status=status,
                   duration_ms=duration_ms, request_id=request_id)
