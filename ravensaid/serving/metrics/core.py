# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Serving metrics: request counts per outcome and scoring latency.

Everything stays in process. The /status endpoint reports the summary.
"""

import logging
import time
from collections import Counter

from ravensaid.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)


class ServingMetrics:
    def __init__(self) -> None:
        self._statuses: Counter[str] = Counter()
        self._total_ms: float = 0.0
        self._start_time: float = time.monotonic()

    @property
    def total_requests(self) -> int:
        return sum(self._statuses.values())

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._start_time

    def record(self, status: str, elapsed_ms: float) -> None:
        self._statuses[status] += 1
        self._total_ms += elapsed_ms
        logger.debug("Request scored", extra={"status": status, "elapsed_ms": round(elapsed_ms, 3)})

    def average_ms(self) -> float:
        total = self.total_requests
        if total == 0:
            return 0.0
        return self._total_ms / total

    def summary(self) -> dict[str, object]:
        return {
            "total_requests": self.total_requests,
            "by_status": dict(self._statuses),
            "avg_ms": round(self.average_ms(), 3),
            "uptime_seconds": round(self.uptime_seconds, 2),
        }
