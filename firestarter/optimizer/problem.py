"""Abstract optimisation problem over integer individuals."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

from firestarter.measurement.summary import Summary
from firestarter.optimizer.multiobjective import Individual

__all__ = ["Individual", "Problem"]


class Problem(ABC):
    """A problem evaluated by measuring metrics; ``fevals`` counts evaluations."""

    def __init__(self) -> None:
        self.fevals = 0

    @abstractmethod
    def metrics(self, individual: Individual) -> dict[str, Summary]:
        """Evaluate an individual and return the summary of every metric."""

    @abstractmethod
    def fitness(self, summaries: Mapping[str, Summary]) -> list[float]:
        """Turn metric summaries into a fitness vector."""

    @abstractmethod
    def bounds(self) -> list[tuple[int, int]]:
        """Inclusive lower and upper bound of every dimension."""

    @abstractmethod
    def nobjs(self) -> int:
        """Number of objectives."""

    def dims(self) -> int:
        return len(self.bounds())

    def is_mo(self) -> bool:
        return self.nobjs() > 1