"""The NSGA-II multi-objective evolutionary algorithm."""

from __future__ import annotations

import logging
import math
import random

from firestarter.optimizer.algorithm import Algorithm
from firestarter.optimizer.multiobjective import (
    crowding_distance,
    fast_non_dominated_sorting,
    ideal,
    mo_tournament_selection,
    polynomial_mutation,
    sbx_crossover,
    select_best_n_mo,
)
from firestarter.optimizer.population import Population

log = logging.getLogger(__name__)


class NSGA2(Algorithm):
    """NSGA-II with ``gen`` generations, crossover ``cr`` and mutation ``m``."""

    def __init__(
        self, gen: int, cr: float, m: float, rng: random.Random | None = None
    ) -> None:
        if cr >= 1.0 or cr < 0.0:
            raise ValueError(
                "The crossover probability must be in the [0,1[ range, while a "
                f"value of {cr:f} was detected"
            )
        if m < 0.0 or m > 1.0:
            raise ValueError(
                "The mutation probability must be in the [0,1] range, while a "
                f"value of {m:f} was detected"
            )
        self.gen = gen
        self.cr = cr
        self.m = m
        self._rng = rng if rng is not None else random.Random()

    def check_population(self, pop: Population, population_size: int) -> None:
        problem = pop.problem
        if not problem.is_mo():
            raise ValueError(
                "NSGA2 is a multiobjective algorithms, while number of objectives is "
                f"{problem.nobjs()}"
            )
        if population_size < 5 or population_size % 4 != 0:
            raise ValueError(
                "for NSGA-II at least 5 individuals in the population are needed and "
                "the population size must be a multiple of 4. Detected input "
                f"population size is: {population_size}"
            )

    def _crowding(self, pop: Population, fronts: list[list[int]]) -> list[float]:
        distances = [0.0] * len(pop)
        for front in fronts:
            if len(front) <= 2:
                for idx in front:
                    distances[idx] = math.inf
                continue
            for idx, distance in zip(
                front, crowding_distance([pop.f[idx] for idx in front])
            ):
                distances[idx] = distance
        return distances

    def _offspring(
        self,
        pop: Population,
        order: list[int],
        start: int,
        ranks: list[int],
        distances: list[float],
        bounds: list[tuple[int, int]],
    ) -> tuple[list[int], list[int]]:
        rng = self._rng
        parent1 = mo_tournament_selection(
            order[start], order[start + 1], ranks, distances, rng
        )
        parent2 = mo_tournament_selection(
            order[start + 2], order[start + 3], ranks, distances, rng
        )
        child1, child2 = sbx_crossover(pop.x[parent1], pop.x[parent2], self.cr, rng)
        return (
            polynomial_mutation(child1, bounds, self.m, rng),
            polynomial_mutation(child2, bounds, self.m, rng),
        )

    def evolve(self, pop: Population) -> Population:
        problem = pop.problem
        bounds = problem.bounds()
        size = len(pop)
        fevals0 = problem.fevals

        self.check_population(pop, size)

        shuffle1 = list(range(size))
        shuffle2 = list(range(size))

        header = f"\n{'Gen:':>7}{'Fevals:':>15}" + "".join(
            f"{'ideal':>15}{i + 1}:" for i in range(problem.nobjs())
        )
        log.info("%s", header)

        for generation in range(1, self.gen + 1):
            line = f"{generation:>7}{problem.fevals - fevals0:>15}" + "".join(
                f"{value:>15g}" for value in ideal(pop.f)
            )
            log.info("%s", line)

            popnew = pop.copy()
            self._rng.shuffle(shuffle1)
            self._rng.shuffle(shuffle2)

            sorting = fast_non_dominated_sorting(pop.f)
            ranks = sorting.non_dom_rank
            distances = self._crowding(pop, sorting.fronts)

            for start in range(0, size, 4):
                for order in (shuffle1, shuffle2):
                    child1, child2 = self._offspring(
                        pop, order, start, ranks, distances, bounds
                    )
                    popnew.append(child1)
                    popnew.append(child2)

            best = select_best_n_mo(popnew.f, size)
            for idx, chosen in enumerate(best):
                pop.insert(idx, popnew.x[chosen], popnew.f[chosen])

        return pop