"""Metrics that can be sampled or that push their own readings."""

from __future__ import annotations

import time
from typing import Callable, NoReturn, Optional

from firestarter.measurement.summary import MetricType

InsertCallback = Callable[[str, int, float], None]


class MetricError(Exception):
    """A metric could not be initialised or read."""


class Metric:
    """A source of metric readings.

    ``callback_time`` is the period in microseconds at which :meth:`callback`
    is run by the measurement worker; zero disables it.
    """

    name: str = ""
    unit: str = ""
    metric_type: MetricType = MetricType(absolute=True)
    callback_time: int = 0

    def __init__(self) -> None:
        self.error = ""
        self._insert_callback: Optional[InsertCallback] = None

    def _fail(self, message: str) -> NoReturn:
        self.error = message
        raise MetricError(message)

    def init(self) -> None:
        """Prepare the metric; raises MetricError if it is unavailable."""
        self.error = ""

    def fini(self) -> None:
        """Release the metric and forget any registered insert callback."""
        self._insert_callback = None

    def get_reading(self) -> Optional[float]:
        """The current reading, or None for metrics that push their values."""
        return None

    def callback(self) -> None:
        """Periodic hook; metrics without periodic work leave it empty."""
        return None

    def register_insert_callback(self, callback: InsertCallback) -> None:
        """Register ``callback(name, time_ns, value)`` for pushed readings."""
        self._insert_callback = callback


class IpcEstimateMetric(Metric):
    """Instructions per cycle estimated by the running payload."""

    name = "ipc-estimate"
    unit = "IPC"
    metric_type = MetricType(
        absolute=True, insert_callback=True, ignore_start_stop_delta=True
    )

    def insert(self, value: float) -> None:
        """Push a reading taken now; ignored while no callback is registered."""
        callback = self._insert_callback
        if callback is None:
            return
        callback(self.name, time.time_ns(), value)