import random

import pytest

from firestarter.measurement.summary import Summary
from firestarter.optimizer.multiobjective import ideal
from firestarter.optimizer.nsga2 import NSGA2
from firestarter.optimizer.population import Population
from firestarter.optimizer.problem import Problem


class _Toy(Problem):
    def __init__(self, nobjs=2):
        super().__init__()
        self._nobjs = nobjs

    def metrics(self, individual):
        self.fevals += 1
        return {
            "sum": Summary(num_timepoints=1, average=float(sum(individual))),
            "first": Summary(num_timepoints=1, average=float(individual[0])),
        }

    def fitness(self, summaries):
        values = [summaries["sum"].average, -summaries["first"].average]
        return values[: self._nobjs]

    def bounds(self):
        return [(0, 20)] * 3

    def nobjs(self):
        return self._nobjs


def _population(size, nobjs=2, seed=3):
    pop = Population(_Toy(nobjs), rng=random.Random(seed))
    pop.generate_initial_population(size)
    return pop


@pytest.mark.parametrize("cr", [1.0, -0.1])
def test_invalid_crossover_probability(cr):
    with pytest.raises(ValueError, match="crossover probability"):
        NSGA2(5, cr, 0.4)


@pytest.mark.parametrize("m", [1.5, -0.1])
def test_invalid_mutation_probability(m):
    with pytest.raises(ValueError, match="mutation probability"):
        NSGA2(5, 0.6, m)


def test_error_message_uses_fixed_decimals():
    with pytest.raises(ValueError, match="1.000000 was detected"):
        NSGA2(5, 1.0, 0.4)


def test_check_population_rejects_single_objective():
    pop = _population(8, nobjs=1)
    with pytest.raises(ValueError, match="multiobjective"):
        NSGA2(1, 0.6, 0.4).check_population(pop, 8)


@pytest.mark.parametrize("size", [4, 6, 10])
def test_check_population_rejects_bad_size(size):
    pop = _population(8)
    with pytest.raises(ValueError, match="multiple of 4"):
        NSGA2(1, 0.6, 0.4).check_population(pop, size)


def test_evolve_rejects_bad_population_size():
    pop = _population(6)
    with pytest.raises(ValueError):
        NSGA2(1, 0.6, 0.4, rng=random.Random(0)).evolve(pop)


def test_zero_generations_leave_population_unchanged():
    pop = _population(8)
    before_x = [list(ind) for ind in pop.x]
    before_f = [list(fit) for fit in pop.f]
    result = NSGA2(0, 0.6, 0.4, rng=random.Random(0)).evolve(pop)
    assert result is pop
    assert pop.x == before_x
    assert pop.f == before_f


def test_evolve_keeps_size_bounds_and_consistent_fitness():
    pop = _population(8)
    problem = pop.problem
    NSGA2(4, 0.6, 0.4, rng=random.Random(11)).evolve(pop)
    assert len(pop) == 8
    for ind, fit in zip(pop.x, pop.f):
        assert all(0 <= g <= 20 for g in ind)
        assert fit == problem.fitness(pop.history.find(ind))


def test_evolve_never_worsens_ideal_point():
    pop = _population(12)
    before = ideal(pop.f)
    NSGA2(5, 0.6, 0.4, rng=random.Random(5)).evolve(pop)
    after = ideal(pop.f)
    assert all(a >= b for a, b in zip(after, before))


def test_evolve_evaluates_each_individual_once():
    pop = _population(8)
    NSGA2(3, 0.6, 0.9, rng=random.Random(2)).evolve(pop)
    assert pop.problem.fevals == len(pop.history)
    assert pop.problem.fevals >= 8