"""Command-line configuration of a stress-test run."""

from __future__ import annotations

import argparse
import enum
import logging
import sys
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional, Sequence

log = logging.getLogger(__name__)

PROG = "FIRESTARTER"
TRACE = 5

SECTIONS: dict[str, str] = {
    "information": "Information Options:",
    "general": "General Options:",
    "specialized-workloads": "Specialized workloads:",
    "debug": "Debugging:",
    "measurement": "Measurement:",
    "optimization": "Optimization:",
}

OPTIMIZATION_ALGORITHMS = ("NSGA2",)


class ConfigError(ValueError):
    """The command line is invalid."""


class Action(enum.Enum):
    """What the program is asked to do."""

    RUN = "run"
    VERSION = "version"
    COPYRIGHT = "copyright"
    WARRANTY = "warranty"
    HELP = "help"


@dataclass
class Config:
    """Validated settings of one run."""

    action: Action = Action.RUN
    help_section: str = ""
    log_level: int = logging.INFO
    timeout: timedelta = timedelta(0)
    load_percent: int = 100
    period: timedelta = timedelta(microseconds=100000)
    requested_num_threads: int = 0
    cpu_bind: str = ""
    print_function_summary: bool = False
    function_id: int = 0
    list_instruction_groups: bool = False
    instruction_groups: str = ""
    line_count: int = 0
    allow_unavailable_payload: bool = False
    dump_registers: bool = False
    dump_registers_time_delta: timedelta = timedelta(0)
    dump_registers_outpath: str = ""
    error_detection: bool = False
    gpus: int = 0
    gpu_matrix_size: int = 0
    gpu_use_float: bool = False
    gpu_use_double: bool = False
    list_metrics: bool = False
    measurement: bool = False
    start_delta: timedelta = timedelta(0)
    stop_delta: timedelta = timedelta(0)
    measurement_interval: timedelta = timedelta(0)
    stdin_metrics: list[str] = field(default_factory=list)
    metric_paths: list[str] = field(default_factory=list)
    optimize: bool = False
    preheat: timedelta = timedelta(seconds=240)
    optimization_algorithm: str = ""
    optimization_metrics: list[str] = field(default_factory=list)
    evaluation_duration: timedelta = timedelta(0)
    individuals: int = 20
    optimize_outfile: str = ""
    generations: int = 20
    nsga2_cr: float = 0.6
    nsga2_m: float = 0.4


@dataclass(frozen=True)
class _Option:
    section: str
    long: str
    help: str
    short: Optional[str] = None
    kind: str = "flag"  # flag, str, uint, double, list
    default: object = None
    implicit: object = None
    metavar: Optional[str] = None


def _unsigned(text: str) -> int:
    try:
        value = int(text, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{text}' is not an unsigned integer") from None
    if not 0 <= value < 2**32:
        raise argparse.ArgumentTypeError(f"'{text}' is not an unsigned integer")
    return value


def _double(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{text}' is not a number") from None


class _SplitAppend(argparse.Action):
    """Collect repeated values, each of which may be a comma-separated list."""

    def __call__(self, parser, namespace, values, option_string=None):
        items = list(getattr(namespace, self.dest) or [])
        items.extend(values.split(","))
        setattr(namespace, self.dest, items)


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):
        raise ConfigError(message)


_OPTIONS: tuple[_Option, ...] = (
    _Option(
        "information", "help",
        "Display usage information. SECTION can be any of: information | general "
        "| specialized-workloads | debug\n| measurement | optimization",
        short="h", kind="str", implicit="", metavar="SECTION",
    ),
    _Option("information", "version", "Display version information", short="v"),
    _Option("information", "copyright", "Display copyright information", short="c"),
    _Option("information", "warranty", "Display warranty information", short="w"),
    _Option("information", "quiet", "Set log level to Warning", short="q"),
    _Option("information", "report",
            "Display additional information (overridden by -q)", short="r"),
    _Option("information", "debug", "Print debug output"),
    _Option("information", "avail", "List available functions", short="a"),
    _Option(
        "general", "function",
        "Specify integer ID of the load-function to be\nused (as listed by --avail)",
        short="i", kind="uint", default=0, metavar="ID",
    ),
    _Option(
        "general", "timeout",
        "Set the timeout (seconds) after which FIRESTARTER\nterminates itself, "
        "default: 0 (no timeout)",
        short="t", kind="uint", default=0, metavar="TIMEOUT",
    ),
    _Option(
        "general", "load",
        "Set the percentage of high CPU load to LOAD\n(%) default: 100, valid values: "
        "0 <= LOAD <=\n100, threads will be idle in the remaining time,\nfrequency of "
        "load changes is determined by -p.",
        short="l", kind="uint", default=100, metavar="LOAD",
    ),
    _Option(
        "general", "period",
        "Set the interval length for CPUs to PERIOD\n(usec), default: 100000, each "
        "interval contains\na high load and an idle phase, the percentage\nof high "
        "load is defined by -l.",
        short="p", kind="uint", default=100000, metavar="PERIOD",
    ),
    _Option(
        "general", "threads",
        "Specify the number of threads. Cannot be\ncombined with -b | --bind, which "
        "impicitly\nspecifies the number of threads.",
        short="n", kind="uint", default=0, metavar="COUNT",
    ),
    _Option(
        "general", "bind",
        "Select certain CPUs. CPULIST format: \"x,y,z\",\n\"x-y\", \"x-y/step\", and "
        "any combination of the\nabove. Cannot be combined with -n | --threads.",
        short="b", kind="str", default="", metavar="CPULIST",
    ),
    _Option(
        "general", "error-detection",
        "Enable error detection. This aborts execution when the calculated data is "
        "corruped by errors. FIRESTARTER must run with 2 or more threads for this "
        "feature. Cannot be used with -l | --load and --optimize.",
    ),
    _Option(
        "specialized-workloads", "list-instruction-groups",
        "List the available instruction groups for the\npayload of the current platform.",
    ),
    _Option(
        "specialized-workloads", "run-instruction-groups",
        "Run the payload with the specified\ninstruction groups. GROUPS format: "
        "multiple INST:VAL\npairs comma-seperated.",
        kind="str", default="", metavar="GROUPS",
    ),
    _Option("specialized-workloads", "set-line-count",
            "Set the number of lines for a payload.", kind="uint"),
    _Option("debug", "allow-unavailable-payload", ""),
    _Option(
        "debug", "dump-registers",
        "Dump the working registers on the first\nthread. Depending on the payload "
        "these are mm, xmm,\nymm or zmm. Only use it without a timeout and\n100 "
        "percent load. DELAY between dumps in secs. Cannot be used with "
        "--error-detection.",
        kind="uint", implicit=10, metavar="DELAY",
    ),
    _Option(
        "debug", "dump-registers-outpath",
        "Path for the dump of the output files. If\nPATH is not given, current "
        "working directory will\nbe used.",
        kind="str", default="", metavar="PATH",
    ),
    _Option("measurement", "list-metrics", "List the available metrics."),
    _Option(
        "measurement", "metric-path",
        "Add a path to a shared library representing an interface for a metric. "
        "This option can be specified multiple times.",
        kind="list",
    ),
    _Option(
        "measurement", "metric-from-stdin",
        "Add a metric NAME with values from stdin.\nFormat of input: \"NAME "
        "TIME_SINCE_EPOCH VALUE\\n\".\nTIME_SINCE_EPOCH is a int64 in nanoseconds. "
        "VALUE is a double. (Do not forget to flush\nlines!)",
        kind="list", metavar="NAME",
    ),
    _Option(
        "measurement", "measurement",
        "Start a measurement for the time specified by\n-t | --timeout. (The timeout "
        "must be greater\nthan the start and stop deltas.) Cannot be\ncombined with "
        "--optimize.",
    ),
    _Option("measurement", "measurement-interval",
            "Interval of measurements in milliseconds, default: 100",
            kind="uint", default=100),
    _Option("measurement", "start-delta",
            "Cut of first N milliseconds of measurement, default: 5000",
            kind="uint", default=5000, metavar="N"),
    _Option("measurement", "stop-delta",
            "Cut of last N milliseconds of measurement, default: 2000",
            kind="uint", default=2000, metavar="N"),
    _Option("measurement", "preheat", "Preheat for N seconds, default: 240",
            kind="uint", default=240, metavar="N"),
    _Option(
        "optimization", "optimize",
        "Run the optimization with one of these algorithms: NSGA2.\nCannot be "
        "combined with --measurement.",
        kind="str",
    ),
    _Option(
        "optimization", "optimize-outfile",
        "Dump the output of the optimization into this\nfile, default: "
        "$PWD/$HOSTNAME_$DATE.json",
        kind="str",
    ),
    _Option(
        "optimization", "optimization-metric",
        "Use a metric for optimization. Metrics listed\nwith cli argument "
        "--list-metrics or specified\nwith --metric-from-stdin are valid.",
        kind="list",
    ),
    _Option(
        "optimization", "individuals",
        "Number of individuals for the population. For\nNSGA2 specify at least 5 and "
        "a multiple of 4,\ndefault: 20",
        kind="uint", default=20,
    ),
    _Option("optimization", "generations", "Number of generations, default: 20",
            kind="uint", default=20),
    _Option("optimization", "nsga2-cr",
            "Crossover probability. Must be in range [0,1[\ndefault: 0.6",
            kind="double", default=0.6),
    _Option("optimization", "nsga2-m",
            "Mutation probability. Must be in range [0,1]\ndefault: 0.4",
            kind="double", default=0.4),
)

_TYPES = {"str": str, "uint": _unsigned, "double": _double}

_EXAMPLES = (
    "Examples:\n"
    "  ./FIRESTARTER                 starts FIRESTARTER without timeout\n"
    "  ./FIRESTARTER -t 300          starts a 5 minute run of FIRESTARTER\n"
    "  ./FIRESTARTER -l 50 -t 600    starts a 10 minute run of FIRESTARTER with\n"
    "                                50% high load and 50% idle time\n"
    "  ./FIRESTARTER -l 75 -p 20000000\n"
    "                                starts FIRESTARTER with an interval length\n"
    "                                of 2 sec, 1.5s high load\n"
    "  ./FIRESTARTER --measurement --start-delta=300000 -t 900\n"
    "                                starts FIRESTARTER measuring all available\n"
    "                                metrics for 15 minutes disregarding the first\n"
    "                                5 minutes and last two seconds (default to `--stop-delta`)\n"
    "  ./FIRESTARTER -t 20 --optimize=NSGA2 --optimization-metric sysfs-powercap-rapl,perf-ipc\n"
    "                                starts FIRESTARTER optimizing with the sysfs-powercap-rapl\n"
    "                                and perf-ipc metric. The duration is 20s long. The default\n"
    "                                instruction groups for the current platform will be used.\n"
)


def build_parser(prog: str = PROG) -> argparse.ArgumentParser:
    """Parser for every option; errors raise ConfigError."""
    parser = _Parser(prog=prog, add_help=False, allow_abbrev=False)
    for option in _OPTIONS:
        flags = [f"--{option.long}"]
        if option.short:
            flags.insert(0, f"-{option.short}")
        dest = option.long.replace("-", "_")
        if option.kind == "flag":
            parser.add_argument(*flags, dest=dest, action="store_true")
        elif option.kind == "list":
            parser.add_argument(
                *flags, dest=dest, action=_SplitAppend, default=None,
                metavar=option.metavar,
            )
        else:
            kwargs: dict = {
                "dest": dest,
                "type": _TYPES[option.kind],
                "default": option.default,
                "metavar": option.metavar,
            }
            if option.implicit is not None:
                kwargs["nargs"] = "?"
                kwargs["const"] = option.implicit
            parser.add_argument(*flags, **kwargs)
    return parser


def _option_label(option: _Option) -> str:
    short = f"-{option.short}, " if option.short else "    "
    label = f"  {short}--{option.long}"
    if option.kind == "flag":
        return label
    metavar = option.metavar or "arg"
    if option.implicit is not None:
        return f"{label} [={metavar}]"
    return f"{label} {metavar}"


def format_help(section: str = "") -> str:
    """Usage text of one section, or of all sections when ``section`` is empty."""
    if section and section not in SECTIONS:
        raise ConfigError(f'Section "{section}" not found in help.')
    selected = [section] if section else list(SECTIONS)
    options = [o for o in _OPTIONS if o.section in selected]
    width = max(len(_option_label(o)) for o in options) + 2

    parts = [f"Usage:\n  {PROG} [OPTION...]\n"]
    for name in selected:
        lines = ["", f" {SECTIONS[name]}", ""]
        for option in options:
            if option.section != name:
                continue
            label = _option_label(option)
            description = option.help.split("\n")
            lines.append(label.ljust(width) + description[0])
            lines.extend(" " * width + rest for rest in description[1:])
        parts.append("\n".join(lines) + "\n")
    parts.append("\n" + _EXAMPLES)
    return "".join(parts)


def copyright_text() -> str:
    return (
        "This program is free software: you can redistribute it and/or modify\n"
        "it under the terms of the license it is distributed with, either the\n"
        "version it was distributed with or (at your option) any later version.\n"
    )


def warranty_text() -> str:
    return (
        "This program is distributed in the hope that it will be useful,\n"
        "but WITHOUT ANY WARRANTY; without even the implied warranty of\n"
        "MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the\n"
        "license it is distributed with for more details.\n"
    )


def parse_config(argv: Optional[Sequence[str]] = None) -> Config:
    """Parse and validate the arguments (without the program name)."""
    args = build_parser().parse_args(list(sys.argv[1:] if argv is None else argv))
    cfg = Config()

    if args.quiet:
        cfg.log_level = logging.WARNING
    elif args.report:
        cfg.log_level = logging.DEBUG
    elif args.debug:
        cfg.log_level = TRACE
    else:
        cfg.log_level = logging.INFO

    if args.version:
        cfg.action = Action.VERSION
        return cfg
    if args.copyright:
        cfg.action = Action.COPYRIGHT
        return cfg
    if args.warranty:
        cfg.action = Action.WARRANTY
        return cfg

    log.info(
        "This program comes with ABSOLUTELY NO WARRANTY; for details run `%s -w`.\n"
        "This is free software, and you are welcome to redistribute it\n"
        "under certain conditions; run `%s -c` for details.",
        PROG, PROG,
    )

    if args.help is not None:
        if args.help and args.help not in SECTIONS:
            raise ConfigError(f'Section "{args.help}" not found in help.')
        cfg.action = Action.HELP
        cfg.help_section = args.help
        return cfg

    cfg.timeout = timedelta(seconds=args.timeout)
    cfg.load_percent = args.load
    cfg.period = timedelta(microseconds=args.period)

    if cfg.load_percent > 100:
        raise ConfigError("Option -l/--load may not be above 100.")

    cfg.error_detection = args.error_detection
    if cfg.error_detection and cfg.load_percent != 100:
        raise ConfigError(
            "Option --error-detection may only be used with -l/--load equal 100."
        )

    cfg.allow_unavailable_payload = args.allow_unavailable_payload
    cfg.dump_registers = args.dump_registers is not None
    cfg.dump_registers_outpath = args.dump_registers_outpath
    if cfg.dump_registers:
        cfg.dump_registers_time_delta = timedelta(seconds=args.dump_registers)
        if cfg.timeout != timedelta(0) and cfg.load_percent != 100:
            raise ConfigError(
                "Option --dump-registers may only be used without a timeout and "
                "full load."
            )
        if cfg.error_detection:
            raise ConfigError(
                "Options --dump-registers and --error-detection cannot be used together."
            )

    cfg.requested_num_threads = args.threads
    cfg.cpu_bind = args.bind
    if cfg.cpu_bind and cfg.requested_num_threads != 0:
        raise ConfigError("Options -b/--bind and -n/--threads cannot be used together.")

    cfg.print_function_summary = args.avail
    cfg.function_id = args.function
    cfg.list_instruction_groups = args.list_instruction_groups
    cfg.instruction_groups = args.run_instruction_groups
    if args.set_line_count is not None:
        cfg.line_count = args.set_line_count

    cfg.start_delta = timedelta(milliseconds=args.start_delta)
    cfg.stop_delta = timedelta(milliseconds=args.stop_delta)
    cfg.measurement_interval = timedelta(milliseconds=args.measurement_interval)
    cfg.metric_paths = list(args.metric_path or [])
    cfg.stdin_metrics = list(args.metric_from_stdin or [])
    cfg.measurement = args.measurement
    cfg.list_metrics = args.list_metrics

    cfg.optimize = args.optimize is not None
    if cfg.optimize:
        if cfg.error_detection:
            raise ConfigError(
                "Options --error-detection and --optimize cannot be used together."
            )
        if cfg.measurement:
            raise ConfigError(
                "Options --measurement and --optimize cannot be used together."
            )
        cfg.preheat = timedelta(seconds=args.preheat)
        cfg.optimization_algorithm = args.optimize
        cfg.optimization_metrics = list(args.optimization_metric or [])
        if cfg.load_percent != 100:
            raise ConfigError(
                "Options -p | --period and -l | --load are not compatible with "
                "--optimize."
            )
        if cfg.timeout == timedelta(0):
            raise ConfigError("Option -t | --timeout must be specified for optimization.")
        cfg.evaluation_duration = cfg.timeout
        # a zero timeout deactivates the watchdog
        cfg.timeout = timedelta(0)
        cfg.individuals = args.individuals
        if args.optimize_outfile is not None:
            cfg.optimize_outfile = args.optimize_outfile
        cfg.generations = args.generations
        cfg.nsga2_cr = args.nsga2_cr
        cfg.nsga2_m = args.nsga2_m
        if cfg.optimization_algorithm not in OPTIMIZATION_ALGORITHMS:
            raise ConfigError("Option --optimize must be any of: NSGA2")

    return cfg