"""Simulation orchestration and reporting."""

from .reporters import ObservableLogReporter, write_report
from .simulation import Simulation, uniform_particle_grid

__all__ = [
    "Simulation",
    "ObservableLogReporter",
    "write_report",
    "uniform_particle_grid",
]
