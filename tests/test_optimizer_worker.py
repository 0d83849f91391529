import random

from firestarter.measurement.summary import Summary
from firestarter.optimizer.algorithm import Algorithm
from firestarter.optimizer.optimizer_worker import OptimizerWorker
from firestarter.optimizer.population import Population
from firestarter.optimizer.problem import Problem


class SumProblem(Problem):
    def metrics(self, individual):
        self.fevals += 1
        return {"sum": Summary(average=float(sum(individual)))}

    def fitness(self, summaries):
        value = summaries["sum"].average
        return [value, -value]

    def bounds(self):
        return [(0, 3), (0, 3)]

    def nobjs(self):
        return 2


class RecordingAlgorithm(Algorithm):
    def __init__(self, fail=False):
        self.evolved = []
        self.fail = fail

    def check_population(self, pop, population_size):
        return None

    def evolve(self, pop):
        if self.fail:
            raise ValueError("boom")
        self.evolved.append(len(pop))
        return pop


def make_population():
    return Population(SumProblem(), rng=random.Random(1))


def test_nsga2_generates_initial_population():
    algorithm = RecordingAlgorithm()
    worker = OptimizerWorker(algorithm, make_population(), "NSGA2", 8, 0)
    assert worker.join(timeout=10)
    assert algorithm.evolved == [8]
    assert len(worker.population) == 8
    assert worker.error is None


def test_other_algorithm_evolves_given_population():
    algorithm = RecordingAlgorithm()
    worker = OptimizerWorker(algorithm, make_population(), "OTHER", 8, 0)
    assert worker.join(timeout=10)
    assert algorithm.evolved == [0]
    assert len(worker.population) == 0


def test_original_population_is_not_modified():
    population = make_population()
    worker = OptimizerWorker(RecordingAlgorithm(), population, "NSGA2", 4, 0)
    assert worker.join(timeout=10)
    assert len(population) == 0
    assert len(worker.population) == 4


def test_kill_during_preheat_skips_optimization():
    algorithm = RecordingAlgorithm()
    worker = OptimizerWorker(algorithm, make_population(), "NSGA2", 8, 60)
    worker.kill()
    assert worker.join(timeout=10)
    assert algorithm.evolved == []
    assert len(worker.population) == 0


def test_algorithm_error_is_kept():
    worker = OptimizerWorker(RecordingAlgorithm(fail=True), make_population(), "X", 4, 0)
    assert worker.join(timeout=10)
    assert isinstance(worker.error, ValueError)
    assert str(worker.error) == "boom"