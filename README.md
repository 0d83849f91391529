# firestarter

The optimisation and measurement core of a processor stress test.

A payload is described by how often each instruction group appears in it.
This package searches over those counts with a multi-objective genetic
algorithm (NSGA-II) while metrics such as package energy (RAPL) or an
instructions-per-cycle estimate are sampled and summarised. It also parses
and validates the stress test's command line.

## Modules

- `firestarter.optimizer.multiobjective` – `less_than_f`, `greater_than_f`,
  `pareto_dominance`, `fast_non_dominated_sorting` (returning a
  `NonDominatedSorting` with `fronts`, `dom_list`, `dom_count` and
  `non_dom_rank`), `crowding_distance`, `mo_tournament_selection`,
  `sbx_crossover`, `polynomial_mutation`, `select_best_n_mo` and `ideal`.
  All objectives are maximised; NaN is ordered after every number.
- `firestarter.optimizer.problem` – the abstract `Problem`: `metrics`,
  `fitness`, `bounds`, `nobjs`, plus `dims`, `is_mo` and the `fevals` counter.
- `firestarter.optimizer.history` – `History` of evaluated individuals with
  `append`, `find`, `format_best` / `print_best` (tables of the best 20
  individuals per metric), `to_json` and `save`; and `current_time()`.
- `firestarter.optimizer.population` – `Population` of individuals and their
  fitness. `append` looks an individual up in the `History` before asking the
  problem to measure it, so nothing is measured twice. Also
  `generate_initial_population`, `insert`, `random_individual`,
  `best_individual` and `copy`.
- `firestarter.optimizer.algorithm` – the abstract `Algorithm` with
  `check_population` and `evolve`.
- `firestarter.optimizer.nsga2` – `NSGA2(gen, cr, m, rng=None)`. The crossover
  probability must lie in `[0, 1)` and the mutation probability in `[0, 1]`;
  populations must be multi-objective, hold at least 5 individuals and be a
  multiple of 4 in size.
- `firestarter.optimizer.cli_argument_problem` – `CLIArgumentProblem`, whose
  dimensions are instruction-group counts in `[0, 100]`. Evaluating an
  individual calls a payload-switching function you supply, starts the
  measurement, sleeps `timeout` seconds and returns the measured summaries.
  Metric names starting with `-` are minimised.
- `firestarter.optimizer.optimizer_worker` – `OptimizerWorker`, which copies a
  population, waits `preheat` seconds and then evolves it in a background
  thread. `join(timeout)` waits for it, `kill()` asks it to stop; the result
  is in `population` and any failure in `error`.
- `firestarter.measurement.summary` – `MetricType`, `TimeValue` (time in
  nanoseconds), `Summary` (duration in milliseconds) and `calculate_summary`,
  which turns accumulative readings into rates per second.
- `firestarter.measurement.metric` – the `Metric` base class, `MetricError`
  and `IpcEstimateMetric`, whose `insert(value)` pushes a reading to the
  registered callback.
- `firestarter.measurement.rapl` – `RaplMetric(root="/sys/class/powercap")`,
  reading energy in joules from the psys zone, or from all package and dram
  zones, and counting counter wrap-arounds.
- `firestarter.measurement.measurement_worker` – `MeasurementWorker`, which
  polls metrics every `update_interval` milliseconds in a thread, runs their
  periodic callbacks, accepts pushed values, and reads `NAME TIME VALUE` lines
  from a text stream for stdin metrics. `get_values(start_delta, stop_delta)`
  summarises what was recorded since `start_measurement()`. It is a context
  manager; `stop()` ends collection.
- `firestarter.config` – `build_parser`, `parse_config`, `format_help`,
  `copyright_text`, `warranty_text`, the `Config` dataclass, the `Action` enum
  and `ConfigError`.

## Examples

```python
from firestarter.optimizer.multiobjective import (
    ideal,
    pareto_dominance,
    select_best_n_mo,
)

pareto_dominance([2.0, 2.0], [1.0, 2.0])   # True: larger is better

front = [[0.25, 0.25], [-1.0, 1.0], [2.0, -2.0]]
select_best_n_mo(front, 2)                  # [1, 2]

ideal([[-1, 3, 597], [1, 2, 3645], [2, 9, 789], [0, 0, 231], [6, -2, 4576]])
# [6, 9, 4576]
```

`parse_config` takes the arguments without the program name:

```python
from firestarter.config import ConfigError, parse_config

try:
    config = parse_config(["-t", "300", "-l", "50"])
except ConfigError as error:
    print(error)
```

Invalid input, such as a load above 100 percent, `--error-detection` with a
partial load, or `--optimize` without a timeout, raises `ConfigError`.
`parse_config` does not exit or print; for `--help`, `--version`,
`--copyright` and `--warranty` it sets `Config.action`, and `format_help`,
`copyright_text` and `warranty_text` give the text to show.

## What the package does not do

- It generates no load: there are no payloads, no CPU or GPU workloads and no
  register dumps. A `CLIArgumentProblem` needs a payload-switching function
  from the caller.
- It installs no command. `firestarter.config` parses and checks arguments
  but starts nothing.
- The only metrics provided are `IpcEstimateMetric` and `RaplMetric`; other
  metrics are written by subclassing `Metric`. Paths given with
  `--metric-path` are parsed but not loaded.

## Running the tests

```
pip install -e .[test]
pytest
```