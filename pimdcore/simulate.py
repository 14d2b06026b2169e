"""
Simple high-level simulation API.

This module provides a user-friendly interface for running PIMD
simulations with minimal configuration.

Example:
    >>> from pimdcore import simulate
    >>> result = simulate.harmonic_bosons(natoms=2, nbeads=8, steps=2000)
    >>> print(result.mean_total_energy)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .config import PotentialSpec, SimulationParams, load_params
from .engines import Simulation
from .parallel import ParallelBackend


def _empty() -> NDArray[np.floating]:
    return np.array([])


@dataclass
class SimulationResult:
    """Results from a simulation run (as seen by one worker)."""

    # Recorded observables
    steps: NDArray[np.integer] = field(default_factory=lambda: np.array([], dtype=np.int64))
    kinetic_energy: NDArray[np.floating] = field(default_factory=_empty)
    potential_energy: NDArray[np.floating] = field(default_factory=_empty)
    classical_kinetic_energy: NDArray[np.floating] = field(default_factory=_empty)
    series: dict[str, NDArray[np.floating]] = field(default_factory=dict)

    # Summary statistics
    mean_kinetic_energy: float = 0.0
    mean_potential_energy: float = 0.0
    mean_total_energy: float = 0.0

    # Final configuration of the local beads
    coordinates: NDArray[np.floating] = field(default_factory=_empty)
    momenta: NDArray[np.floating] = field(default_factory=_empty)

    # Metadata
    seed: int = 0
    natoms: int = 0
    nbeads: int = 0
    n_steps: int = 0
    timestep: float = 0.0
    wall_time: float = 0.0
    rank: int = 0
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def total_energy(self) -> NDArray[np.floating]:
        """Quantum total energy per recorded step."""
        return self.kinetic_energy + self.potential_energy


def result_from_simulation(sim: Simulation) -> SimulationResult:
    """Collect the recorded series and final state of a finished simulation."""
    series = sim.series()
    kinetic = series.get("kinetic", _empty())
    potential = series.get("potential", _empty())

    def _mean(values: NDArray[np.floating]) -> float:
        return float(np.mean(values)) if len(values) else 0.0

    return SimulationResult(
        steps=sim.recorded_steps,
        kinetic_energy=kinetic,
        potential_energy=potential,
        classical_kinetic_energy=series.get("classical_kinetic", _empty()),
        series=series,
        mean_kinetic_energy=_mean(kinetic),
        mean_potential_energy=_mean(potential),
        mean_total_energy=_mean(kinetic) + _mean(potential),
        coordinates=sim.state.coordinates.copy(),
        momenta=sim.state.momenta.copy(),
        seed=sim.seed,
        natoms=sim.params.natoms,
        nbeads=sim.params.nbeads,
        n_steps=sim.integrator.step_count,
        timestep=sim.params.dt,
        wall_time=sim.wall_time,
        rank=sim.rank,
        params=sim.params.to_dict(),
    )


def run(
    params: SimulationParams,
    backend: ParallelBackend | str | None = None,
) -> SimulationResult:
    """
    Build a simulation from ``params``, run it and collect the results.

    Args:
        params: Validated run parameters.
        backend: Parallel backend, backend name or None for serial.

    Returns:
        SimulationResult of this worker.
    """
    sim = Simulation(params, backend=backend)
    sim.run()
    return result_from_simulation(sim)


def run_from_config(
    path: str | Path,
    backend: ParallelBackend | str | None = None,
    seed: int | None = None,
    output_dir: str | Path | None = None,
) -> SimulationResult:
    """
    Run a simulation described by a YAML configuration file.

    Args:
        path: Path to the configuration file.
        backend: Parallel backend, backend name or None for serial.
        seed: Override the configured seed.
        output_dir: Override the configured output directory.

    Returns:
        SimulationResult of this worker.
    """
    params = load_params(path)
    overrides: dict[str, Any] = {}
    if seed is not None:
        overrides["seed"] = seed
    if output_dir is not None:
        overrides["output_dir"] = str(output_dir)
    if overrides:
        params = dataclasses.replace(params, **overrides)
    return run(params, backend=backend)


def harmonic_bosons(
    natoms: int = 2,
    nbeads: int = 8,
    temperature: float = 0.5,
    omega: float = 1.0,
    mass: float = 1.0,
    steps: int = 5000,
    dt: float = 0.05,
    bosonic: bool = True,
    seed: int | None = 42,
    backend: ParallelBackend | str | None = None,
) -> SimulationResult:
    """
    Run non-interacting particles in an isotropic harmonic trap.

    The exact energy of N distinguishable particles is
    3 N (hbar omega / 2) coth(beta hbar omega / 2); bosons lie below it.
    All arguments are in atomic units.

    Args:
        natoms: Number of particles (default: 2).
        nbeads: Number of time-slices (default: 8).
        temperature: Temperature kB T (default: 0.5).
        omega: Trap frequency (default: 1.0).
        mass: Particle mass (default: 1.0).
        steps: Number of MD steps (default: 5000).
        dt: Timestep (default: 0.05).
        bosonic: Use bosonic exchange (default: True).
        seed: Random seed (default: 42).
        backend: Parallel backend.

    Returns:
        SimulationResult with energy series.

    Example:
        >>> result = harmonic_bosons(natoms=3, steps=1000)
        >>> print(f"E = {result.mean_total_energy:.3f}")
    """
    params = SimulationParams(
        temperature=temperature,
        mass=mass,
        dt=dt,
        natoms=natoms,
        nbeads=nbeads,
        steps=steps,
        bosonic=bosonic,
        seed=seed,
        init_pos="grid",
        sfreq=10,
        external_potential=PotentialSpec("harmonic", {"omega": omega}),
    )
    return run(params, backend=backend)
