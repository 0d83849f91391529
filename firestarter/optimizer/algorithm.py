"""Interface of an optimisation algorithm working on a population."""

from __future__ import annotations

from abc import ABC, abstractmethod

from firestarter.optimizer.population import Population


class Algorithm(ABC):
    """An algorithm that evolves a population."""

    @abstractmethod
    def check_population(self, pop: Population, population_size: int) -> None:
        """Raise ValueError if the population does not suit the algorithm."""

    @abstractmethod
    def evolve(self, pop: Population) -> Population:
        """Evolve ``pop`` in place and return it."""