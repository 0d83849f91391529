"""Energy readings from the powercap RAPL interface in sysfs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from firestarter.measurement.metric import Metric, MetricError
from firestarter.measurement.summary import MetricType

RAPL_PATH = "/sys/class/powercap"

_UINT = re.compile(r"\s*\+?(\d+)")


def _first_line(path: Path) -> str:
    with open(path, encoding="utf-8") as handle:
        return handle.readline().rstrip("\n")


def _parse_uint(text: str) -> Optional[int]:
    match = _UINT.match(text)
    return int(match.group(1)) if match else None


@dataclass
class _Reader:
    path: Path
    last_reading: int
    max: int
    overflow: int = 0


class RaplMetric(Metric):
    """Total energy in joules of psys, or of all package and dram zones."""

    name = "sysfs-powercap-rapl"
    unit = "J"
    metric_type = MetricType(accumulative=True)
    callback_time = 30_000_000

    def __init__(self, root: str | Path = RAPL_PATH) -> None:
        super().__init__()
        self.root = Path(root)
        self._readers: list[_Reader] = []

    def init(self) -> None:
        self.error = ""
        try:
            entries = sorted(self.root.iterdir())
        except OSError:
            self._fail(f"Could not open {self.root}")

        psys: Optional[Path] = None
        paths: list[Path] = []
        for entry in entries:
            try:
                zone = _first_line(entry / "name")
            except OSError:
                continue
            if zone == "psys":
                psys = entry
            elif zone.startswith("package") or zone == "dram":
                paths.append(entry)

        if psys is not None:
            paths = [psys]
        if not paths:
            self._fail(f"No valid entries in {self.root}")

        readers = []
        for path in paths:
            energy_file = path / "energy_uj"
            max_file = path / "max_energy_range_uj"
            try:
                energy_line = _first_line(energy_file)
            except OSError:
                self._fail("Could not read energy_uj")
            try:
                max_line = _first_line(max_file)
            except OSError:
                self._fail("Could not read max_energy_range_uj")

            reading = _parse_uint(energy_line)
            if reading is None:
                self._fail(
                    f"Contents in file {energy_file} do not conform to mask "
                    "(unsigned long long)"
                )
            maximum = _parse_uint(max_line)
            if maximum is None:
                self._fail(
                    f"Contents in file {max_file} do not conform to mask "
                    "(unsigned long long)"
                )
            readers.append(_Reader(path, reading, maximum))

        self._readers = readers

    def fini(self) -> None:
        self._readers = []
        super().fini()

    def get_reading(self) -> float:
        """Energy in joules, counting every wrap-around of the counters."""
        total = 0.0
        for reader in self._readers:
            energy_file = reader.path / "energy_uj"
            try:
                reading = _parse_uint(_first_line(energy_file))
            except OSError:
                reading = None
            if reading is None:
                self._fail(f"Could not read {energy_file}")
            if reading < reader.last_reading:
                reader.overflow += 1
            reader.last_reading = reading
            total += 1.0e-6 * (reader.overflow * reader.max + reader.last_reading)
        return total

    def callback(self) -> None:
        """Read the counters so that no overflow is missed."""
        try:
            self.get_reading()
        except MetricError:
            pass