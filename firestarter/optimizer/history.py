"""Record of evaluated individuals and their measured metrics."""

from __future__ import annotations

import functools
import json
import logging
import os
import socket
import time
from typing import Mapping, Sequence

from firestarter.measurement.summary import Summary
from firestarter.optimizer.multiobjective import Individual

log = logging.getLogger(__name__)

MAX_ELEMENT_PRINT_COUNT = 20
MIN_COLUMN_WIDTH = 10


def current_time() -> str:
    """Local time formatted as ``YYYY-MM-DD_HH:MM:SS+zzzz``."""
    return time.strftime("%Y-%m-%d_%H:%M:%S%z", time.localtime())


def _pad(width: int, taken: int, char: str = " ") -> str:
    return char * max(width - taken, 0)


def _format_individual(individual: Sequence[int], payload_items: Sequence[str]) -> str:
    if len(individual) != len(payload_items):
        raise ValueError("individual and payload items differ in length")
    return ",".join(
        f"{item}:{count}" for item, count in zip(payload_items, individual) if count != 0
    )


def _metric_value(fitness: Mapping[str, Summary], metric: str) -> Summary:
    if metric in fitness:
        return fitness[metric]
    return fitness[metric[1:]]


class History:
    """Evaluated individuals in the order they were measured."""

    def __init__(self) -> None:
        self._x: list[Individual] = []
        self._f: list[dict[str, Summary]] = []

    def __len__(self) -> int:
        return len(self._x)

    def append(self, individual: Sequence[int], metrics: Mapping[str, Summary]) -> None:
        self._x.append(list(individual))
        self._f.append(dict(metrics))

    def find(self, individual: Sequence[int]) -> dict[str, Summary] | None:
        """Metrics of an already evaluated individual, or None."""
        wanted = list(individual)
        for ind, metrics in zip(self._x, self._f):
            if ind == wanted:
                return dict(metrics)
        return None

    def _order(self, metric: str) -> list[int]:
        def compare(a: int, b: int) -> int:
            map_a, map_b = self._f[a], self._f[b]
            if metric in map_a and metric in map_b:
                first, second = map_a[metric].average, map_b[metric].average
                # descending
                return (first < second) - (first > second)
            first, second = map_a[metric[1:]].average, map_b[metric[1:]].average
            return (first > second) - (first < second)

        return sorted(range(len(self._f)), key=functools.cmp_to_key(compare))

    def format_best(
        self, optimization_metrics: Sequence[str], payload_items: Sequence[str]
    ) -> list[str]:
        """One table per metric listing the best individuals sorted by it."""
        column_width = {
            metric: max(len(metric), MIN_COLUMN_WIDTH) for metric in optimization_metrics
        }
        for metric, width in column_width.items():
            log.debug("%s: %d", metric, width)

        label = "INDIVIDUAL"
        tables = []
        for metric in optimization_metrics:
            best = self._order(metric)[:MAX_ELEMENT_PRINT_COUNT]
            rows = [
                (_format_individual(self._x[idx], payload_items), self._f[idx])
                for idx in best
            ]
            widest = max((len(text) for text, _ in rows), default=0)

            first_line = "  " + label + _pad(widest, len(label))
            second_line = "  " + "-" * max(widest, len(label))
            for name in optimization_metrics:
                width = column_width[name]
                first_line += " | " + name + _pad(width, len(name))
                second_line += "---" + "-" * width

            order = "ascending" if metric.startswith("-") else "descending"
            lines = [
                "",
                f" Best individuals sorted by metric {metric} {order}:",
                first_line,
                second_line,
            ]
            for text, fitness in rows:
                line = "  " + text + _pad(widest, len(text))
                for name in optimization_metrics:
                    value = f"{_metric_value(fitness, name).average:f}"
                    line += " | " + value + _pad(column_width[name], len(value))
                lines.append(line)
            tables.append("\n".join(lines) + "\n\n")
        return tables

    def print_best(
        self, optimization_metrics: Sequence[str], payload_items: Sequence[str]
    ) -> None:
        for table in self.format_best(optimization_metrics, payload_items):
            log.info("%s", table)
        log.info(
            "To run FIRESTARTER with the best individual of a given metric use the "
            "command line argument `--run-instruction-groups=INDIVIDUAL`"
        )

    def to_json(
        self,
        start_time: str,
        payload_items: Sequence[str],
        argv: Sequence[str],
        hostname: str,
    ) -> dict:
        return {
            "individuals": [list(ind) for ind in self._x],
            "metrics": [
                {name: summary.to_dict() for name, summary in metrics.items()}
                for metrics in self._f
            ],
            "hostname": hostname,
            "startTime": start_time,
            "endTime": current_time(),
            "payloadItems": list(payload_items),
            "args": list(argv),
        }

    def save(
        self,
        path: str,
        start_time: str,
        payload_items: Sequence[str],
        argv: Sequence[str],
    ) -> str | None:
        """Write the history as JSON; returns the file written, or None on failure."""
        try:
            hostname = socket.gethostname()
        except OSError:
            hostname = "unknown"

        text = json.dumps(
            self.to_json(start_time, payload_items, argv, hostname),
            sort_keys=True,
            separators=(",", ":"),
        )
        log.debug("%s", text)

        outpath = path
        if not outpath:
            try:
                directory = os.getcwd()
            except OSError:
                log.warning("Could not find $PWD.")
                directory = "/tmp"
            outpath = f"{directory}/{hostname}_{start_time}.json"

        log.info("\nDumping output json in %s", outpath)
        try:
            with open(outpath, "w", encoding="utf-8") as handle:
                handle.write(text)
        except OSError:
            log.error("Could not open %s", outpath)
            return None
        return outpath