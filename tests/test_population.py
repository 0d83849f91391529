import random

import pytest

from firestarter.measurement.summary import Summary
from firestarter.optimizer.history import History
from firestarter.optimizer.population import Population
from firestarter.optimizer.problem import Problem


class _Toy(Problem):
    def __init__(self, dims=3, nobjs=2):
        super().__init__()
        self._dims = dims
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
        return [(0, 100)] * self._dims

    def nobjs(self):
        return self._nobjs


def _population(**kwargs):
    return Population(_Toy(**kwargs), rng=random.Random(7))


def test_initial_population_starts_with_unit_vectors():
    pop = _population()
    pop.generate_initial_population(5)
    assert len(pop) == 5
    assert pop.x[:3] == [[1, 0, 0], [0, 1, 0], [0, 0, 1]]
    assert all(0 <= g <= 100 for ind in pop.x for g in ind)


def test_initial_population_smaller_than_dims_is_random_only():
    pop = _population(dims=4)
    pop.generate_initial_population(2)
    assert len(pop) == 2
    assert all(len(ind) == 4 for ind in pop.x)


def test_append_evaluates_and_records_history():
    pop = _population()
    pop.append([2, 3, 4])
    assert pop.f == [[9.0, -2.0]]
    assert pop.history.find([2, 3, 4])["sum"].average == 9.0
    assert pop.problem.fevals == 1


def test_append_reuses_history():
    history = History()
    pop = Population(_Toy(), history=history, rng=random.Random(1))
    pop.append([1, 1, 1])
    pop.append([1, 1, 1])
    assert pop.problem.fevals == 1
    assert len(history) == 1
    assert pop.f[0] == pop.f[1]


def test_append_wrong_dimension_raises():
    pop = _population()
    with pytest.raises(ValueError):
        pop.append([1, 2])


def test_insert_replaces_entry():
    pop = _population()
    pop.append([1, 2, 3])
    pop.insert(0, [4, 5, 6], [1.0, 2.0])
    assert pop.x == [[4, 5, 6]]
    assert pop.f == [[1.0, 2.0]]


def test_insert_out_of_range_raises():
    pop = _population()
    with pytest.raises(IndexError):
        pop.insert(0, [1, 2, 3], [1.0, 2.0])


def test_random_individual_within_bounds():
    pop = _population(dims=6)
    for _ in range(20):
        ind = pop.random_individual()
        assert len(ind) == 6
        assert all(0 <= g <= 100 for g in ind)


def test_best_individual_none_for_multi_objective():
    pop = _population()
    pop.append([1, 2, 3])
    assert pop.best_individual() is None


def test_best_individual_single_objective():
    pop = _population(nobjs=1)
    pop.append([1, 9, 9])
    pop.append([3, 0, 0])
    pop.append([2, 5, 5])
    assert pop.best_individual() == [3, 0, 0]


def test_best_individual_empty_raises():
    pop = _population(nobjs=1)
    with pytest.raises(ValueError):
        pop.best_individual()


def test_copy_is_independent_but_shares_history():
    pop = _population()
    pop.append([1, 2, 3])
    other = pop.copy()
    other.append([3, 2, 1])
    other.insert(0, [0, 0, 0], [0.0, 0.0])
    assert len(pop) == 1
    assert pop.x == [[1, 2, 3]]
    assert other.history is pop.history
    assert pop.history.find([3, 2, 1]) is not None and len(pop.history) == 2