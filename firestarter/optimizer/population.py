"""A population of individuals together with their fitness vectors."""

from __future__ import annotations

import logging
import random
from typing import Sequence

from firestarter.optimizer.history import History
from firestarter.optimizer.multiobjective import Individual
from firestarter.optimizer.problem import Problem

log = logging.getLogger(__name__)


class Population:
    """Individuals of a problem and their fitness.

    Evaluated individuals are looked up in ``history`` first, so an
    individual is only ever measured once.
    """

    def __init__(
        self,
        problem: Problem,
        history: History | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._problem = problem
        self._history = history if history is not None else History()
        self._rng = rng if rng is not None else random.Random()
        self._x: list[Individual] = []
        self._f: list[list[float]] = []

    @property
    def problem(self) -> Problem:
        return self._problem

    @property
    def history(self) -> History:
        return self._history

    @property
    def x(self) -> list[Individual]:
        """The individuals; treat as read-only."""
        return self._x

    @property
    def f(self) -> list[list[float]]:
        """The fitness vectors; treat as read-only."""
        return self._f

    def __len__(self) -> int:
        return len(self._x)

    def copy(self) -> Population:
        """A population sharing problem and history, with its own individuals."""
        other = Population(
            self._problem, self._history, random.Random(self._rng.getrandbits(64))
        )
        other._x = [list(ind) for ind in self._x]
        other._f = [list(fit) for fit in self._f]
        return other

    def generate_initial_population(self, population_size: int = 0) -> None:
        """Add unit vectors for every dimension (if room), then random individuals."""
        log.debug(
            "Generating %d random individuals for initial population.", population_size
        )
        dims = self._problem.dims()
        remaining = population_size

        if population_size >= dims:
            for i in range(dims):
                unit = [0] * dims
                unit[i] = 1
                self.append(unit)
            remaining -= dims
        else:
            log.debug(
                "Population size (%d) is less than size of problem dimension (%d)",
                population_size,
                dims,
            )

        for _ in range(remaining):
            self.append(self.random_individual())

    def append(self, individual: Sequence[int]) -> None:
        """Add an individual, evaluating it unless it is already in the history."""
        if self._problem.dims() != len(individual):
            raise ValueError(
                f"individual has {len(individual)} dimensions, "
                f"problem has {self._problem.dims()}"
            )
        known = self._history.find(individual)
        metrics = known if known is not None else self._problem.metrics(list(individual))
        fitness = self._problem.fitness(metrics)
        self._append_with_fitness(individual, fitness)
        if known is None:
            self._history.append(individual, metrics)

    def _append_with_fitness(
        self, individual: Sequence[int], fitness: Sequence[float]
    ) -> None:
        log.debug("  - Fitness: %s", " ".join(str(v) for v in fitness))
        if self._problem.nobjs() != len(fitness):
            raise ValueError(
                f"fitness has {len(fitness)} objectives, "
                f"problem has {self._problem.nobjs()}"
            )
        if self._problem.dims() != len(individual):
            raise ValueError(
                f"individual has {len(individual)} dimensions, "
                f"problem has {self._problem.dims()}"
            )
        self._x.append(list(individual))
        self._f.append(list(fitness))

    def insert(
        self, idx: int, individual: Sequence[int], fitness: Sequence[float]
    ) -> None:
        """Replace the individual and fitness at ``idx``."""
        if not 0 <= idx < len(self._x):
            raise IndexError(f"population index {idx} out of range")
        self._x[idx] = list(individual)
        self._f[idx] = list(fitness)

    def random_individual(self) -> Individual:
        """A random individual within the problem's bounds."""
        bounds = self._problem.bounds()
        log.debug("Generating random individual of size: %d", len(bounds))
        individual = []
        for i, (lower, upper) in enumerate(bounds):
            gene = self._rng.randint(lower, upper)
            log.debug("  - %d: [%d,%d]: %d", i, lower, upper, gene)
            individual.append(gene)
        return individual

    def best_individual(self) -> Individual | None:
        """The greatest individual for single-objective problems, else None."""
        if self._problem.is_mo():
            return None
        if not self._x:
            raise ValueError("population is empty")
        return list(max(self._x))