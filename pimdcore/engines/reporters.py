"""Reporters for recorded observables and the final run report."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import numpy as np

if TYPE_CHECKING:
    from ..observables import Observable
    from .simulation import Simulation


class ObservableLogReporter:
    """
    Tabular log of observable values, one row per recorded step.

    Columns are the step followed by every quantity of every observable,
    in the order the observables were configured. Written by the root
    worker only.

    Example:
        reporter = ObservableLogReporter("observables.dat")
        reporter.initialize(observables)
        reporter.report(step, observables)
        reporter.finalize()
    """

    def __init__(
        self,
        file: str | Path | TextIO | None = None,
        separator: str = " ",
        precision: int = 10,
    ) -> None:
        """
        Initialize reporter.

        Args:
            file: Output path or open text stream (defaults to stdout).
            separator: Field separator.
            precision: Significant digits of reported values.
        """
        self._path = Path(file) if isinstance(file, (str, Path)) else None
        self._file: TextIO | None = None if self._path is not None else (file or sys.stdout)
        self._separator = separator
        self._precision = precision
        self._header_written = False

    @property
    def path(self) -> Path | None:
        """Return the output path, if writing to a file."""
        return self._path

    def initialize(self, observables: list[Observable]) -> None:
        """Open the output and write the header."""
        if self._path is not None and self._file is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self._path.open("a" if self._header_written else "w")
        if not self._header_written:
            headers = ["step"]
            for observable in observables:
                unit = observable.out_unit or "au"
                headers.extend(f"{label}[{unit}]" for label in observable.labels)
            self._file.write("# " + self._separator.join(headers) + "\n")
            self._header_written = True

    def report(self, step: int, observables: list[Observable]) -> None:
        """Write one row of current observable values."""
        values = [str(step)]
        for observable in observables:
            values.extend(
                f"{value:.{self._precision}e}" for value in observable.quantities.values()
            )
        self._file.write(self._separator.join(values) + "\n")
        self._file.flush()

    def finalize(self) -> None:
        """Close the output if this reporter opened it."""
        if self._path is not None and self._file is not None:
            self._file.close()
            self._file = None


def write_report(
    path: str | Path, sim: Simulation, wall_time: float
) -> Path:
    """
    Write the final run report.

    Lists the run parameters, the seed, the worker layout, the wall time
    and the mean of every recorded quantity.

    Args:
        path: Output file path.
        sim: Finished simulation.
        wall_time: Wall-clock duration of the run in seconds.

    Returns:
        Path to the written report.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        "PIMD run report",
        f"written: {datetime.now().isoformat()}",
        f"wall time [s]: {wall_time:.3f}",
        f"seed: {sim.seed}",
        f"workers: {sim.backend.n_workers} ({sim.backend.name})",
        f"steps completed: {sim.integrator.step_count}",
        f"recorded steps: {len(sim.records)}",
        "",
        "parameters:",
    ]
    for key, value in sim.params.to_dict().items():
        lines.append(f"  {key} = {value}")

    if sim.records:
        lines.extend(["", "averages over recorded steps:"])
        for label, series in sim.series().items():
            lines.append(f"  {label} = {np.mean(series):.10e}")

    path.write_text("\n".join(lines) + "\n")
    return path
