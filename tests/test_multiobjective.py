import math
import random

import pytest

from firestarter.optimizer.multiobjective import (
    NonDominatedSorting,
    crowding_distance,
    fast_non_dominated_sorting,
    greater_than_f,
    ideal,
    less_than_f,
    mo_tournament_selection,
    pareto_dominance,
    polynomial_mutation,
    sbx_crossover,
    select_best_n_mo,
)

NAN = math.nan
INF = math.inf


def test_less_than_f_numbers_and_nan():
    assert less_than_f(1.0, 2.0) is True
    assert less_than_f(2.0, 1.0) is False
    assert less_than_f(INF, NAN) is True
    assert less_than_f(NAN, 1.0) is False
    assert less_than_f(NAN, NAN) is False


def test_greater_than_f_numbers_and_nan():
    assert greater_than_f(2.0, 1.0) is True
    assert greater_than_f(1.0, 2.0) is False
    assert greater_than_f(-INF, NAN) is False
    assert greater_than_f(NAN, 1.0) is True
    assert greater_than_f(NAN, NAN) is False


def test_pareto_dominance_maximisation():
    assert pareto_dominance([2.0, 2.0], [1.0, 2.0]) is True
    assert pareto_dominance([1.0, 2.0], [2.0, 2.0]) is False
    assert pareto_dominance([1.0, 1.0], [1.0, 1.0]) is False
    assert pareto_dominance([3.0, 0.0], [0.0, 3.0]) is False


def test_pareto_dominance_size_mismatch():
    with pytest.raises(ValueError):
        pareto_dominance([1.0], [1.0, 2.0])


def test_fast_non_dominated_sorting_example():
    points = [[1, 2, 3], [-2, 3, 7], [-1, -2, -3], [0, 0, 0]]
    result = fast_non_dominated_sorting(points)
    assert isinstance(result, NonDominatedSorting)
    assert result.fronts == [[0, 1], [3], [2]]
    for rank, front in enumerate(result.fronts):
        for idx in front:
            assert result.non_dom_rank[idx] == rank
    for i, dominated in enumerate(result.dom_list):
        for j in dominated:
            assert pareto_dominance(points[i], points[j])
    for j in range(len(points)):
        dominators = sum(pareto_dominance(points[i], points[j]) for i in range(len(points)))
        assert result.dom_count[j] == dominators


def test_fast_non_dominated_sorting_covers_all_points():
    rng = random.Random(7)
    points = [[rng.uniform(-5, 5) for _ in range(3)] for _ in range(30)]
    result = fast_non_dominated_sorting(points)
    flat = sorted(i for front in result.fronts for i in front)
    assert flat == list(range(30))
    for front in result.fronts:
        for a in front:
            for b in front:
                assert not pareto_dominance(points[a], points[b])


def test_fast_non_dominated_sorting_needs_two_points():
    with pytest.raises(ValueError):
        fast_non_dominated_sorting([[1.0, 2.0]])


def test_crowding_distance_example():
    assert crowding_distance([[0, 0], [-1, 1], [2, -2]]) == [2, INF, INF]


def test_crowding_distance_boundaries_are_infinite():
    front = [[float(i), float(10 - i)] for i in range(6)]
    distances = crowding_distance(front)
    assert distances[0] == INF
    assert distances[-1] == INF
    assert all(math.isfinite(d) and d > 0 for d in distances[1:-1])


@pytest.mark.parametrize(
    "front",
    [
        [[1.0, 2.0]],
        [[1.0], [2.0]],
        [[1.0, 2.0], [2.0, 1.0, 0.0]],
    ],
)
def test_crowding_distance_invalid_input(front):
    with pytest.raises(ValueError):
        crowding_distance(front)


def test_tournament_prefers_lower_rank_then_larger_distance():
    rng = random.Random(0)
    ranks = [0, 1, 1, 1]
    distances = [1.0, 1.0, 5.0, 5.0]
    assert mo_tournament_selection(0, 1, ranks, distances, rng) == 0
    assert mo_tournament_selection(1, 0, ranks, distances, rng) == 0
    assert mo_tournament_selection(1, 2, ranks, distances, rng) == 2
    assert mo_tournament_selection(2, 1, ranks, distances, rng) == 2


def test_tournament_tie_picks_one_of_both():
    rng = random.Random(3)
    picks = {mo_tournament_selection(2, 3, [0, 0, 0, 0], [1.0] * 4, rng) for _ in range(50)}
    assert picks == {2, 3}


def test_sbx_crossover_without_probability_copies_parents():
    p1, p2 = [1, 2, 3, 4], [5, 6, 7, 8]
    c1, c2 = sbx_crossover(p1, p2, 0.0, random.Random(1))
    assert c1 == p1
    assert c2 == p2
    assert c1 is not p1


def test_sbx_crossover_swaps_genes_position_wise():
    p1, p2 = [1, 2, 3, 4, 5, 6], [10, 20, 30, 40, 50, 60]
    rng = random.Random(5)
    for _ in range(20):
        c1, c2 = sbx_crossover(p1, p2, 1.0, rng)
        assert len(c1) == len(p1)
        swapped = [j for j in range(len(p1)) if c1[j] != p1[j]]
        assert swapped
        assert swapped == list(range(swapped[0], swapped[-1] + 1))
        for j in range(len(p1)):
            assert {c1[j], c2[j]} == {p1[j], p2[j]}


def test_polynomial_mutation_zero_probability_keeps_child():
    child = [3, 4, 5]
    result = polynomial_mutation(child, [(0, 100)] * 3, 0.0, random.Random(2))
    assert result == child


def test_polynomial_mutation_respects_bounds():
    rng = random.Random(11)
    bounds = [(0, 2), (5, 5), (10, 20)]
    for _ in range(50):
        result = polynomial_mutation([1, 5, 15], bounds, 1.0, rng)
        assert 0 <= result[0] <= 2
        assert result[1] == 5
        assert 10 <= result[2] <= 20


def test_select_best_n_mo_example():
    assert sorted(select_best_n_mo([[0.25, 0.25], [-1, 1], [2, -2]], 2)) == [1, 2]


def test_select_best_n_mo_corner_cases():
    assert select_best_n_mo([[1.0, 2.0], [2.0, 1.0]], 0) == []
    assert select_best_n_mo([], 3) == []
    assert select_best_n_mo([[1.0, 2.0]], 3) == [0]
    assert select_best_n_mo([[1.0, 2.0], [2.0, 1.0], [0.0, 0.0]], 5) == [0, 1, 2]


def test_select_best_n_mo_takes_whole_first_front():
    points = [[0.0, 0.0], [3.0, 1.0], [1.0, 3.0], [-1.0, -1.0]]
    selected = select_best_n_mo(points, 3)
    assert len(selected) == 3
    assert selected[:2] == fast_non_dominated_sorting(points).fronts[0]
    assert 3 not in selected


def test_ideal_example():
    points = [[-1, 3, 597], [1, 2, 3645], [2, 9, 789], [0, 0, 231], [6, -2, 4576]]
    assert ideal(points) == [6, 9, 4576]


def test_ideal_empty_and_mismatch():
    assert ideal([]) == []
    with pytest.raises(ValueError):
        ideal([[1.0, 2.0], [1.0]])