import threading
from typing import Dict

from order_service.shared.logger import JohnWickLogger


class MetricsCollector:
    """
    Simple metrics collector to track counters across components.
    Supports thread-safe increments and structured logging via injected logger.
    """
    def __init__(self, logger: JohnWickLogger):
        self.logger = logger
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, key: str, amount: int = 1):
        """Increment a metric counter"""
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def reset(self, key: str):
        with self._lock:
            self._counters[key] = 0

    def report(self):
        """Emit structured log of current metrics"""
        with self._lock:
            snapshot = self._counters.copy()
        if snapshot:
            self.logger.info("Metrics update", extra=snapshot)

    def get(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return self._counters.copy()
