"""Multi-objective helpers for NSGA-II: dominance, sorting, crowding and variation.

All objectives are maximised. Individuals are lists of non-negative integers.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Sequence

Individual = list[int]
Bounds = Sequence[tuple[int, int]]


def less_than_f(a: float, b: float) -> bool:
    """Strict ``a < b`` that orders NaN after every number."""
    if not math.isnan(a):
        return math.isnan(b) or a < b
    return False


def greater_than_f(a: float, b: float) -> bool:
    """Strict ``a > b`` that orders NaN after every number."""
    if not math.isnan(a):
        return False if math.isnan(b) else a > b
    return not math.isnan(b)


def _ascending_key(value: float) -> tuple[bool, float]:
    # NaN sorts last, matching less_than_f.
    return (True, 0.0) if math.isnan(value) else (False, value)


def _descending_key(value: float) -> tuple[bool, float]:
    # NaN sorts first, matching greater_than_f.
    return (False, 0.0) if math.isnan(value) else (True, -value)


def _ieee_divide(numerator: float, denominator: float) -> float:
    if denominator != 0:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def pareto_dominance(obj1: Sequence[float], obj2: Sequence[float]) -> bool:
    """Return True if ``obj1`` Pareto-dominates ``obj2`` (maximisation)."""
    if len(obj1) != len(obj2):
        raise ValueError(
            "Different number of objectives found in input fitnesses: "
            f"{len(obj1)} and {len(obj2)}. I cannot define dominance"
        )
    strictly_better = False
    for a, b in zip(obj1, obj2):
        if greater_than_f(b, a):
            return False
        if less_than_f(b, a):
            strictly_better = True
    return strictly_better


@dataclass
class NonDominatedSorting:
    """Result of fast non-dominated sorting."""

    fronts: list[list[int]] = field(default_factory=list)
    dom_list: list[list[int]] = field(default_factory=list)
    dom_count: list[int] = field(default_factory=list)
    non_dom_rank: list[int] = field(default_factory=list)


def fast_non_dominated_sorting(points: Sequence[Sequence[float]]) -> NonDominatedSorting:
    """Sort objective vectors into non-dominated fronts."""
    n = len(points)
    if n < 2:
        raise ValueError(
            f"At least two points are needed for fast_non_dominated_sorting: {n} detected."
        )
    dom_list: list[list[int]] = [[] for _ in range(n)]
    dom_count = [0] * n
    non_dom_rank = [0] * n

    for i, point_i in enumerate(points):
        for j in range(i):
            if pareto_dominance(point_i, points[j]):
                dom_list[i].append(j)
                dom_count[j] += 1
            elif pareto_dominance(points[j], point_i):
                dom_list[j].append(i)
                dom_count[i] += 1

    first_front = [i for i, count in enumerate(dom_count) if count == 0]
    fronts = [first_front]
    remaining = list(dom_count)
    current = first_front
    rank = 0
    while current:
        next_front = []
        for p in current:
            for q in dom_list[p]:
                remaining[q] -= 1
                if remaining[q] == 0:
                    non_dom_rank[q] = rank + 1
                    next_front.append(q)
        rank += 1
        current = next_front
        if current:
            fronts.append(current)

    return NonDominatedSorting(fronts, dom_list, dom_count, non_dom_rank)


def crowding_distance(non_dom_front: Sequence[Sequence[float]]) -> list[float]:
    """Crowding distance of every point in a non-dominated front."""
    n = len(non_dom_front)
    if n < 2:
        raise ValueError(
            f"A non dominated front must contain at least two points: {n} detected."
        )
    m = len(non_dom_front[0])
    if m < 2:
        raise ValueError(
            "Points in the non dominated front must contain at least two "
            f"objectives: {m} detected."
        )
    if any(len(point) != m for point in non_dom_front):
        raise ValueError(
            "A non dominated front must contain points of uniform dimensionality. "
            "Some different sizes were instead detected."
        )

    result = [0.0] * n
    for obj in range(m):
        order = sorted(range(n), key=lambda idx: _ascending_key(non_dom_front[idx][obj]))
        first, last = order[0], order[-1]
        result[first] = math.inf
        result[last] = math.inf
        spread = non_dom_front[last][obj] - non_dom_front[first][obj]
        for before, current, after in zip(order, order[1:], order[2:]):
            gap = non_dom_front[after][obj] - non_dom_front[before][obj]
            result[current] += _ieee_divide(gap, spread)
    return result


def mo_tournament_selection(
    idx1: int,
    idx2: int,
    non_domination_rank: Sequence[int],
    crowding_d: Sequence[float],
    rng: random.Random,
) -> int:
    """Pick the better of two individuals by rank, then crowding distance."""
    if non_domination_rank[idx1] < non_domination_rank[idx2]:
        return idx1
    if non_domination_rank[idx1] > non_domination_rank[idx2]:
        return idx2
    if crowding_d[idx1] > crowding_d[idx2]:
        return idx1
    if crowding_d[idx1] < crowding_d[idx2]:
        return idx2
    return idx1 if rng.random() < 0.5 else idx2


def sbx_crossover(
    parent1: Sequence[int],
    parent2: Sequence[int],
    p_cr: float,
    rng: random.Random,
) -> tuple[Individual, Individual]:
    """Two-point crossover of integer chromosomes, applied with probability ``p_cr``."""
    child1 = list(parent1)
    child2 = list(parent2)
    if rng.random() < p_cr and child1:
        last = len(child1) - 1
        site1 = rng.randint(0, last)
        site2 = rng.randint(0, last)
        if site1 > site2:
            site1, site2 = site2, site1
        child1[site1 : site2 + 1] = parent2[site1 : site2 + 1]
        child2[site1 : site2 + 1] = parent1[site1 : site2 + 1]
    return child1, child2


def polynomial_mutation(
    child: Sequence[int],
    bounds: Bounds,
    p_m: float,
    rng: random.Random,
) -> Individual:
    """Return ``child`` with each gene redrawn within its bounds with probability ``p_m``."""
    mutated = list(child)
    for j, (lower, upper) in zip(range(len(mutated)), bounds):
        if rng.random() < p_m:
            mutated[j] = rng.randint(lower, upper)
    return mutated


def select_best_n_mo(input_f: Sequence[Sequence[float]], n: int) -> list[int]:
    """Indexes of the best ``n`` objective vectors by the crowded comparison."""
    if n == 0 or not input_f:
        return []
    if len(input_f) == 1:
        return [0]
    if n >= len(input_f):
        return list(range(len(input_f)))

    selected: list[int] = []
    fronts = fast_non_dominated_sorting(input_f).fronts
    front_id = 0
    for front in fronts:
        if len(selected) + len(front) > n:
            break
        selected.extend(front)
        if len(selected) == n:
            return selected
        front_id += 1

    front = fronts[front_id]
    distances = crowding_distance([input_f[i] for i in front])
    order = sorted(range(len(front)), key=lambda i: _descending_key(distances[i]))
    selected.extend(front[i] for i in order[: n - len(selected)])
    return selected


def ideal(points: Sequence[Sequence[float]]) -> list[float]:
    """Component-wise best (largest) objective values of a population."""
    if not points:
        return []
    m = len(points[0])
    if any(len(point) != m for point in points):
        raise ValueError(
            "Input vector of objectives must contain fitness vector of equal "
            f"dimension {m}"
        )
    result = []
    for obj in range(m):
        best = points[0][obj]
        for point in points[1:]:
            if greater_than_f(point[obj], best):
                best = point[obj]
        result.append(best)
    return result