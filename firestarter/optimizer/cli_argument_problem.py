"""Optimisation problem that tunes the instruction groups of the payload."""

from __future__ import annotations

import math
import time
from typing import Callable, Mapping, Protocol, Sequence

from firestarter.measurement.summary import Summary
from firestarter.optimizer.problem import Individual, Problem

Payload = list[tuple[str, int]]
ChangePayload = Callable[[Payload], None]

GROUP_BOUNDS = (0, 100)


class _Measurement(Protocol):
    def start_measurement(self) -> None: ...

    def get_values(self, start_delta: float, stop_delta: float) -> dict[str, Summary]: ...


def _round_two_places(value: float) -> float:
    # Halves round away from zero.
    scaled = value * 100.0
    if math.isnan(scaled) or math.isinf(scaled):
        return value
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / 100.0


class CLIArgumentProblem(Problem):
    """Each dimension is the count of one instruction group, in ``[0, 100]``.

    An individual is evaluated by switching the payload to it, measuring for
    ``timeout`` seconds and summarising the metrics with the start and stop
    deltas (milliseconds). Metrics whose name starts with ``-`` are minimised.
    """

    def __init__(
        self,
        change_payload_function: ChangePayload,
        measurement_worker: _Measurement,
        metrics: Sequence[str],
        timeout: float,
        start_delta: float,
        stop_delta: float,
        instruction_groups: Sequence[str],
    ) -> None:
        super().__init__()
        if not metrics:
            raise ValueError("at least one optimization metric is required")
        self._change_payload = change_payload_function
        self._measurement_worker = measurement_worker
        self._metrics = list(metrics)
        self.timeout = timeout
        self.start_delta = start_delta
        self.stop_delta = stop_delta
        self._instruction_groups = list(instruction_groups)

    @property
    def instruction_groups(self) -> list[str]:
        return list(self._instruction_groups)

    @property
    def optimization_metrics(self) -> list[str]:
        return list(self._metrics)

    def metrics(self, individual: Individual) -> dict[str, Summary]:
        """Run the payload described by ``individual`` and measure it."""
        self.fevals += 1

        if len(individual) != len(self._instruction_groups):
            raise ValueError(
                f"individual has {len(individual)} values, "
                f"expected {len(self._instruction_groups)}"
            )
        payload = list(zip(self._instruction_groups, individual))
        self._change_payload(payload)

        # The measurement starts only after the switch so that the
        # ipc-estimate metric is not disturbed.
        self._measurement_worker.start_measurement()
        time.sleep(self.timeout)

        # Switching again makes the payload report its iteration counter,
        # which the ipc-estimate metric relies on.
        self._change_payload(payload)

        return self._measurement_worker.get_values(self.start_delta, self.stop_delta)

    def fitness(self, summaries: Mapping[str, Summary]) -> list[float]:
        """Averages of the optimisation metrics, rounded to two places.

        Inverted metrics are negated; metrics without a summary are skipped.
        """
        values = []
        for metric_name in self._metrics:
            match = next(
                (
                    summary
                    for name, summary in sorted(summaries.items())
                    if metric_name in (name, "-" + name)
                ),
                None,
            )
            if match is None:
                continue
            value = _round_two_places(match.average)
            if metric_name.startswith("-"):
                value *= -1.0
            values.append(value)
        return values

    def bounds(self) -> list[tuple[int, int]]:
        return [GROUP_BOUNDS] * len(self._instruction_groups)

    def nobjs(self) -> int:
        return len(self._metrics)