"""Background thread that runs an optimisation algorithm."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from firestarter.optimizer.algorithm import Algorithm
from firestarter.optimizer.population import Population

log = logging.getLogger(__name__)


class OptimizerWorker:
    """Preheats for ``preheat`` seconds, then evolves a copy of ``population``.

    For NSGA2 an initial population of ``individuals`` is generated first.
    The evolved population is available as :attr:`population`; an exception
    raised by the algorithm is kept in :attr:`error`.
    """

    def __init__(
        self,
        algorithm: Algorithm,
        population: Population,
        optimization_algorithm: str,
        individuals: int,
        preheat: float,
    ) -> None:
        self._algorithm = algorithm
        self._population = population.copy()
        self.optimization_algorithm = optimization_algorithm
        self.individuals = individuals
        self.preheat = preheat
        self.error: Optional[BaseException] = None
        self._killed = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="Optimizer", daemon=True
        )
        self._thread.start()

    @property
    def population(self) -> Population:
        return self._population

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        # heat the cpu before attempting to optimize
        if self._killed.wait(self.preheat):
            return
        try:
            if self.optimization_algorithm == "NSGA2":
                self._population.generate_initial_population(self.individuals)
            if self._killed.is_set():
                return
            self._algorithm.evolve(self._population)
        except Exception as error:  # reported to whoever joins the worker
            log.error("Optimization failed: %s", error)
            self.error = error

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker; returns True once it has finished."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def kill(self) -> None:
        """Ask the worker to stop; work not yet started is skipped."""
        self._killed.set()