"""Time series of metric readings and their statistical summary."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Iterable


@dataclass(frozen=True)
class MetricType:
    """How the readings of a metric are to be interpreted."""

    absolute: bool = False
    accumulative: bool = False
    divide_by_thread_count: bool = False
    insert_callback: bool = False
    ignore_start_stop_delta: bool = False


@dataclass(frozen=True)
class TimeValue:
    """A reading taken at ``time`` nanoseconds since the epoch."""

    time: int
    value: float


@dataclass
class Summary:
    """Statistics of a series; ``duration`` is in milliseconds."""

    num_timepoints: int = 0
    duration: int = 0
    average: float = 0.0
    stddev: float = 0.0

    def to_dict(self) -> dict[str, float | int]:
        return asdict(self)


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // denominator
    return -quotient if numerator < 0 else quotient


def _divide(numerator: float, denominator: float) -> float:
    if denominator != 0:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def _derive(
    values: list[TimeValue], metric_type: MetricType, num_threads: int
) -> list[TimeValue]:
    if metric_type.accumulative:
        derived = []
        for prev, current in zip(values, values[1:]):
            seconds = 1e-6 * _trunc_div(current.time - prev.time, 1000)
            rate = _divide(current.value - prev.value, seconds)
            if metric_type.divide_by_thread_count:
                rate = _divide(rate, num_threads)
            derived.append(TimeValue(prev.time, rate))
        return derived
    if metric_type.absolute:
        if metric_type.divide_by_thread_count:
            return [TimeValue(tv.time, _divide(tv.value, num_threads)) for tv in values]
        return list(values)
    raise ValueError("metric type must be either absolute or accumulative")


def calculate_summary(
    values: Iterable[TimeValue], metric_type: MetricType, num_threads: int
) -> Summary:
    """Summarise readings; accumulative metrics are turned into rates per second."""
    series = _derive(list(values), metric_type, num_threads)
    summary = Summary(num_timepoints=len(series))
    if not series:
        return summary

    summary.duration = _trunc_div(series[-1].time - series[0].time, 1_000_000)
    count = len(series)
    summary.average = sum(tv.value for tv in series) / count
    summary.stddev = math.sqrt(
        sum((tv.value - summary.average) ** 2 for tv in series) / count
    )
    return summary