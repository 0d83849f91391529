"""Background collection of metric readings and their summaries."""

from __future__ import annotations

import logging
import sys
import threading
import time
from typing import Iterable, Optional, Sequence, TextIO

from firestarter.measurement.metric import Metric, MetricError
from firestarter.measurement.summary import (
    MetricType,
    Summary,
    TimeValue,
    calculate_summary,
)

log = logging.getLogger(__name__)

_MAX_NAME_LENGTH = 127


class MeasurementWorker:
    """Samples metrics every ``update_interval`` milliseconds in a thread.

    Metrics named in ``stdin_metrics`` receive their values from lines of the
    form ``NAME TIME_SINCE_EPOCH_NS VALUE`` read from ``stdin``.
    """

    def __init__(
        self,
        update_interval: float,
        num_threads: int,
        metrics: Iterable[Metric] = (),
        stdin_metrics: Iterable[str] = (),
        stdin: Optional[TextIO] = None,
    ) -> None:
        self.update_interval = update_interval
        self.num_threads = num_threads

        self._metrics: list[Metric] = []
        for metric in metrics:
            if self.find_metric_by_name(metric.name) is not None:
                log.error('A metric named "%s" is already loaded.', metric.name)
                continue
            self._metrics.append(metric)

        self._stdin_metrics: list[str] = []
        for name in stdin_metrics:
            if self.find_metric_by_name(name) is not None:
                log.error('A metric named "%s" is already loaded.', name)
                continue
            self._stdin_metrics.append(name)

        self.available_metrics_string = self._availability_table()

        self._values: dict[str, list[TimeValue]] = {}
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self.start_time = time.time_ns()

        self._worker = threading.Thread(
            target=self._acquire, name="DataAcquisition", daemon=True
        )
        self._worker.start()

        self._stdin_thread: Optional[threading.Thread] = None
        if self._stdin_metrics:
            stream = stdin if stdin is not None else sys.stdin
            self._stdin_thread = threading.Thread(
                target=self.read_stdin_metrics,
                args=(stream,),
                name="StdinDataAcquis",
                daemon=True,
            )
            self._stdin_thread.start()

    def __enter__(self) -> MeasurementWorker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def stdin_metrics(self) -> list[str]:
        return list(self._stdin_metrics)

    def _availability_table(self) -> str:
        available: dict[str, bool] = {}
        max_length = 0
        for metric in self._metrics:
            max_length = max(max_length, len(metric.name))
            try:
                metric.init()
                ok = True
            except MetricError:
                ok = False
            metric.fini()
            available[metric.name] = ok

        padding = max_length - 6 if max_length > 6 else 0
        lines = [
            "  METRIC" + " " * (padding + 1) + "| available",
            "  " + "-" * (padding + 7) + "-----------",
        ]
        for name in sorted(available):
            lines.append(
                "  "
                + name
                + " " * (padding + 7 - len(name))
                + "| "
                + ("yes" if available[name] else "no")
            )
        return "\n".join(lines) + "\n"

    def metric_names(self) -> list[str]:
        """Names of all loaded metrics followed by the stdin metrics."""
        return [metric.name for metric in self._metrics] + list(self._stdin_metrics)

    def find_metric_by_name(self, name: str) -> Optional[Metric]:
        return next((m for m in self._metrics if m.name == name), None)

    def init_metrics(self, metric_names: Sequence[str]) -> list[str]:
        """Start recording the named metrics; returns those newly initialised.

        Metrics already recorded have their values cleared instead.
        """
        initialized = []
        with self._lock:
            for name in metric_names:
                if name in self._values:
                    self._values[name].clear()
                    continue
                metric = self.find_metric_by_name(name)
                if metric is not None:
                    try:
                        metric.init()
                    except MetricError as error:
                        log.error("Metric %s: %s", metric.name, error)
                        continue
                self._values[name] = []
                if metric is not None and metric.metric_type.insert_callback:
                    metric.register_insert_callback(self.insert_callback)
                initialized.append(name)
        return initialized

    def insert_callback(self, metric_name: str, time_since_epoch: int, value: float) -> None:
        """Record a value taken at ``time_since_epoch`` nanoseconds."""
        with self._lock:
            series = self._values.get(metric_name)
            if series is not None:
                series.append(TimeValue(time_since_epoch, value))

    def start_measurement(self) -> None:
        self.start_time = time.time_ns()

    def get_values(self, start_delta: float = 0, stop_delta: float = 0) -> dict[str, Summary]:
        """Summaries since the measurement started, cut by the deltas in ms."""
        start_ns = int(start_delta * 1_000_000)
        stop_ns = int(stop_delta * 1_000_000)
        result: dict[str, Summary] = {}
        with self._lock:
            for name in sorted(self._values):
                start = self.start_time
                end = time.time_ns()
                metric = self.find_metric_by_name(name)
                if metric is None:
                    metric_type = MetricType(absolute=True)
                    crop = True
                else:
                    metric_type = metric.metric_type
                    crop = not metric_type.ignore_start_stop_delta
                if crop:
                    start += start_ns
                    end -= stop_ns
                cropped = [tv for tv in self._values[name] if start <= tv.time <= end]
                result[name] = calculate_summary(cropped, metric_type, self.num_threads)
        return result

    def read_stdin_metrics(self, stream: TextIO) -> None:
        """Record ``NAME TIME VALUE`` lines for the allowed stdin metrics."""
        for line in stream:
            fields = line.split()
            if len(fields) < 3:
                continue
            name = fields[0][:_MAX_NAME_LENGTH]
            try:
                timestamp = int(fields[1])
                value = float(fields[2])
            except ValueError:
                continue
            if name in self._stdin_metrics:
                self.insert_callback(name, timestamp, value)

    def _active_metrics(self) -> dict[str, Metric]:
        with self._lock:
            names = list(self._values)
        active = {}
        for name in names:
            metric = self.find_metric_by_name(name)
            if metric is not None:
                active[name] = metric
        return active

    def _acquire(self) -> None:
        interval_ns = int(self.update_interval * 1_000_000)
        schedule: dict[str, int] = {}
        next_fetch = time.time_ns() + interval_ns

        while not self._stop.is_set():
            now = time.time_ns()
            active = self._active_metrics()
            for name, metric in active.items():
                if metric.callback_time > 0:
                    schedule.setdefault(name, now)

            if next_fetch <= now:
                for name, metric in active.items():
                    if metric.metric_type.insert_callback:
                        continue
                    try:
                        value = metric.get_reading()
                    except MetricError:
                        continue
                    if value is None:
                        continue
                    with self._lock:
                        series = self._values.get(name)
                        if series is not None:
                            series.append(TimeValue(time.time_ns(), value))
                next_fetch = now + interval_ns

            next_wake = next_fetch
            for name, due in list(schedule.items()):
                metric = active.get(name)
                if metric is None:
                    continue
                if due <= now:
                    try:
                        metric.callback()
                    except MetricError:
                        pass
                    due = now + metric.callback_time * 1000
                    schedule[name] = due
                next_wake = min(next_wake, due)

            self._stop.wait(max(0, next_wake - time.time_ns()) / 1e9)

    def stop(self) -> None:
        """Stop collecting and release every recorded metric."""
        if self._stop.is_set():
            return
        self._stop.set()
        self._worker.join()
        if self._stdin_thread is not None:
            self._stdin_thread.join(timeout=0.1)
        with self._lock:
            names = list(self._values)
        for name in names:
            metric = self.find_metric_by_name(name)
            if metric is not None:
                metric.fini()