"""
Lightweight studio metrics collector.

Tracks provider call times, error and fallback rates, and how many
iterations, chat turns and exports the studio has served. Thread-safe.
"""
import time
import threading
from dataclasses import dataclass
from collections import defaultdict


@dataclass
class ProviderMetrics:
    """Per-operation provider statistics."""
    calls: int = 0
    total_ms: int = 0
    errors: int = 0
    fallbacks: int = 0

    @property
    def avg_ms(self) -> float:
        return self.total_ms / max(1, self.calls)

    @property
    def error_rate(self) -> float:
        return self.errors / max(1, self.calls)

    def record(self, duration_ms: int, error: bool = False):
        self.calls += 1
        self.total_ms += duration_ms
        if error:
            self.errors += 1


class StudioMetrics:
    """Global metrics singleton. Thread-safe."""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._operations = defaultdict(ProviderMetrics)
                    cls._instance._counters = defaultdict(int)
                    cls._instance._start = time.time()
        return cls._instance

    def record_provider(self, operation: str, duration_ms: int, error: bool = False):
        with self._lock:
            self._operations[operation].record(duration_ms, error)

    def record_fallback(self, operation: str):
        with self._lock:
            self._operations[operation].fallbacks += 1

    def incr(self, counter: str, n: int = 1):
        with self._lock:
            self._counters[counter] += n

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "uptime_s": round(time.time() - self._start, 1),
                "iterations": self._counters["iterations"],
                "chat_turns": self._counters["chat_turns"],
                "exports": self._counters["exports"],
                "rejected_busy": self._counters["rejected_busy"],
                "providers": {
                    name: {
                        "calls": m.calls,
                        "avg_ms": round(m.avg_ms),
                        "error_rate": round(m.error_rate, 3),
                        "fallbacks": m.fallbacks,
                    }
                    for name, m in self._operations.items()
                },
            }
