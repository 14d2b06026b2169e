"""Ring-polymer simulation orchestrator."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from ..config import SimulationParams
from ..errors import ConfigurationError, NumericalInstabilityError
from ..exchange import WindingModel, create_exchange_model
from ..forces import ForcePipeline
from ..integrators import LangevinThermostat, RingPolymerIntegrator, SimulationPhase
from ..io import (
    BeadTrajectoryWriter,
    Checkpoint,
    CheckpointManager,
    StateWriter,
    WindingProbabilityWriter,
    read_xyz_positions,
)
from ..observables import Observable, ObservableFactory
from ..parallel import ParallelBackend, get_backend
from ..potentials import create_potential
from ..rng import RandomSource
from ..system import Box, RingPolymerState
from .reporters import ObservableLogReporter, write_report

logger = logging.getLogger(__name__)

OBSERVABLES_FILE = "observables.dat"
REPORT_FILE = "report.txt"
WINDING_FILE = "winding_probabilities.dat"


class Simulation:
    """
    One worker's share of a path-integral molecular dynamics run.

    The simulation owns the ring-polymer state of its beads, the random
    streams, the exchange and winding models, the potentials, the force
    pipeline, the integrator and all output. Construction validates the
    configuration, samples initial positions and momenta and computes the
    initial forces; :meth:`run` then drives the integrator until the
    configured step count is exhausted.

    Example:
        params = SimulationParams(temperature=1.0, mass=1.0, dt=0.1,
                                  natoms=2, nbeads=8, steps=1000, bosonic=True)
        sim = Simulation(params)
        sim.run()
        print(sim.series()["kinetic"].mean())

    Attributes:
        params: Run parameters.
        backend: Parallel backend connecting the workers of the run.
        seed: Seed shared by all workers.
        rng: Random streams of this worker.
        box: Simulation box, or None without periodicity.
        state: Ring-polymer state of the local beads.
        records: (step, {label: value}) for every recorded step.
    """

    def __init__(
        self,
        params: SimulationParams,
        backend: ParallelBackend | str | None = None,
    ) -> None:
        """
        Initialize simulation.

        Args:
            params: Validated run parameters.
            backend: Parallel backend, backend name or None for serial.

        Raises:
            ConfigurationError: If the configuration cannot be realized.
        """
        self.params = params
        self.backend = get_backend(backend)
        self.rank = self.backend.rank

        self.seed = self._shared_seed()
        self.rng = RandomSource(self.seed, self.rank)

        # Derived physical constants
        self.beta = params.beta
        self.omega_p = params.omega_p
        self.spring_constant = params.spring_constant
        self.box = Box.cubic(params.size) if params.size is not None else None

        first_bead, last_bead = self.backend.partition_beads(params.nbeads)

        self.winding = WindingModel(
            beta=self.beta,
            spring_constant=self.spring_constant,
            box=self.box if params.pbc else None,
            max_wind=params.max_wind,
            enabled=params.apply_wind,
        )
        self.exchange = create_exchange_model(
            bosonic=params.bosonic,
            natoms=params.natoms,
            beta=self.beta,
            spring_constant=self.spring_constant,
            box=self.box,
            winding=self.winding,
            apply_minimum_image=params.apply_mic_spring,
        )
        self.external = create_potential(
            "external",
            params.external_potential.name,
            params.external_potential.options,
            mass=params.mass,
            box=self.box,
            minimum_image=params.apply_mic_potential,
        )
        self.interaction = create_potential(
            "interaction",
            params.interaction_potential.name,
            params.interaction_potential.options,
            mass=params.mass,
            box=self.box,
            minimum_image=params.apply_mic_potential,
        )
        self.pipeline = ForcePipeline(
            exchange=self.exchange,
            spring_constant=self.spring_constant,
            external=self.external,
            interaction=self.interaction,
            backend=self.backend,
            box=self.box,
            apply_mic_spring=params.apply_mic_spring,
        )
        self.thermostat = LangevinThermostat(
            gamma=params.gamma,
            dt=params.dt,
            beta=self.beta,
            mass=params.mass,
            rng=self.rng.thermal,
            enabled=params.enable_t,
        )
        self.integrator = RingPolymerIntegrator(
            pipeline=self.pipeline,
            thermostat=self.thermostat,
            dt=params.dt,
            steps=params.steps,
            threshold=params.threshold,
            box=self.box,
            apply_wrap=params.apply_wrap,
            apply_wrap_first=params.apply_wrap_first,
            fixcom=params.fixcom,
            backend=self.backend,
        )

        n_local = last_bead - first_bead
        positions = self._initial_positions()
        coordinates = np.broadcast_to(positions, (n_local, params.natoms, 3)).copy()
        self.state = RingPolymerState.create(
            coordinates,
            mass=params.mass,
            nbeads=params.nbeads,
            first_bead=first_bead,
            momenta=self._initial_momenta((n_local, params.natoms, 3)),
        )

        self.observables: list[Observable] = [
            ObservableFactory.create(name, self, params.sfreq, unit)
            for name, unit in params.observables.items()
        ]
        self.records: list[tuple[int, dict[str, float]]] = []

        self.output_dir = Path(params.output_dir) if params.output_dir else None
        self.reporter: ObservableLogReporter | None = None
        self.writers: list[StateWriter] = []
        self.checkpoints: CheckpointManager | None = None
        self._setup_output()

        self.integrator.initialize(self.state)
        self.wall_time = 0.0

        if self.backend.is_root:
            logger.info(
                "PIMD setup: natoms=%d nbeads=%d bosonic=%s beta=%.6g omega_p=%.6g "
                "k=%.6g seed=%d",
                params.natoms,
                params.nbeads,
                params.bosonic,
                self.beta,
                self.omega_p,
                self.spring_constant,
                self.seed,
            )
        logger.debug(
            "Worker %d owns beads [%d, %d)", self.rank, first_bead, last_bead
        )

    def _shared_seed(self) -> int:
        """Return the configured seed, or fresh entropy drawn on root."""
        if self.params.seed is not None:
            return int(self.params.seed)
        seed = RandomSource.fresh_seed() if self.backend.is_root else None
        return int(self.backend.broadcast(seed))

    def _initial_extent(self) -> float:
        if self.box is not None:
            return float(self.box.lengths[0])
        return float(np.ceil(self.params.natoms ** (1.0 / 3.0) - 1e-9))

    def _initial_positions(self) -> NDArray[np.floating]:
        """
        Sample particle positions on root and broadcast them.

        Positions fill the box when there is one, otherwise a cube of unit
        spacing centered on the origin.
        """
        params = self.params
        positions = None
        if self.backend.is_root:
            extent = self._initial_extent()
            if params.init_pos == "xyz":
                positions = read_xyz_positions(params.init_pos_file, params.natoms)
            elif params.init_pos == "grid":
                positions = uniform_particle_grid(params.natoms, extent)
            else:
                positions = self.rng.general.uniform(0.0, extent, (params.natoms, 3))
            if self.box is None and params.init_pos != "xyz":
                positions = positions - 0.5 * extent
        return np.asarray(self.backend.broadcast(positions), dtype=np.float64)

    def _initial_momenta(self, shape: tuple[int, int, int]) -> NDArray[np.floating]:
        """Draw Maxwell-Boltzmann momenta at the bath temperature."""
        if self.params.init_vel == "zero":
            return np.zeros(shape)
        sigma = np.sqrt(self.params.mass / self.beta)
        return self.rng.general.normal(0.0, sigma, shape)

    def _setup_output(self) -> None:
        params = self.params
        if self.output_dir is None:
            if params.out_pos or params.out_vel or params.out_force or params.out_wind_prob:
                logger.warning("No output directory configured; trajectory output disabled")
            return

        if self.backend.is_root:
            self.reporter = ObservableLogReporter(self.output_dir / OBSERVABLES_FILE)

        quantities = [
            quantity
            for quantity, enabled in (
                ("position", params.out_pos),
                ("velocity", params.out_vel),
                ("force", params.out_force),
            )
            if enabled
        ]
        for bead in self.state.bead_indices:
            for quantity in quantities:
                self.writers.append(
                    BeadTrajectoryWriter.for_bead(self.output_dir, int(bead), quantity)
                )

        if params.out_wind_prob:
            if not self.winding.is_active:
                raise ConfigurationError(
                    "out_wind_prob requires pbc, apply_wind and max_wind > 0"
                )
            if self.state.owns_last_bead:
                self.writers.append(
                    WindingProbabilityWriter(
                        self.output_dir / WINDING_FILE, self.winding, self.exchange
                    )
                )

        if params.checkpoint_freq:
            self.checkpoints = CheckpointManager(self.output_dir)

    @property
    def phase(self) -> SimulationPhase:
        """Return the current run phase."""
        return self.integrator.phase

    @property
    def step(self) -> int:
        """Return the number of completed steps."""
        return self.integrator.step_count

    def run(self) -> None:
        """
        Run the remaining steps.

        Raises:
            NumericalInstabilityError: With the failing step attached.
            CommunicationError: If the worker group breaks.
        """
        params = self.params
        if self.integrator.phase is SimulationPhase.FINISHED:
            logger.info("Run already finished after %d steps", self.integrator.step_count)
            return
        start = time.perf_counter()

        if self.reporter is not None:
            if not self._guard(self.reporter.initialize, self.observables):
                self.reporter = None

        try:
            while self.integrator.phase is not SimulationPhase.FINISHED:
                step = self.integrator.step_count
                # Observables see the state before the step, so the final
                # state after the last step is never recorded
                if self.integrator.should_record(params.sfreq):
                    self.record()
                if (
                    self.checkpoints is not None
                    and step > 0
                    and step % params.checkpoint_freq == 0
                ):
                    self._guard(self.save_checkpoint)
                self.integrator.step(self.state)
        except NumericalInstabilityError as e:
            e.at_step(self.integrator.step_count)
            logger.error("Simulation aborted: %s", e)
            raise
        finally:
            self._close_output()

        self.wall_time += time.perf_counter() - start
        self._finalize()

    def record(self) -> None:
        """Compute all observables and dispatch them to the outputs."""
        step = self.integrator.step_count
        values: dict[str, float] = {}
        for observable in self.observables:
            observable.calculate()
            values.update(observable.quantities)
        self.records.append((step, values))
        logger.debug("step %d: %s", step, values)

        if self.reporter is not None:
            if not self._guard(self.reporter.report, step, self.observables):
                self.reporter = None
        for writer in list(self.writers):
            if not self._guard(writer.write, self.state, step):
                self._guard(writer.close)
                self.writers.remove(writer)

    def _guard(self, func, *args) -> bool:
        """Call an output function; an OSError is logged and reported as False."""
        try:
            func(*args)
        except OSError as e:
            logger.warning("Output failure on worker %d, disabling it: %s", self.rank, e)
            return False
        return True

    def _close_output(self) -> None:
        for writer in self.writers:
            self._guard(writer.close)
        if self.reporter is not None:
            self._guard(self.reporter.finalize)

    def _finalize(self) -> None:
        if not self.backend.is_root:
            return
        if self.output_dir is not None:
            self._guard(write_report, self.output_dir / REPORT_FILE, self, self.wall_time)
        logger.info(
            "Finished %d steps in %.2f s (%d recorded)",
            self.integrator.step_count,
            self.wall_time,
            len(self.records),
        )

    def series(self) -> dict[str, NDArray[np.floating]]:
        """Recorded values per quantity label, in step order."""
        labels = [label for observable in self.observables for label in observable.labels]
        return {
            label: np.array([values[label] for _, values in self.records])
            for label in labels
        }

    @property
    def recorded_steps(self) -> NDArray[np.integer]:
        """Steps at which observables were recorded."""
        return np.array([step for step, _ in self.records], dtype=np.int64)

    def get_checkpoint(self) -> Checkpoint:
        """Snapshot this worker's state, step counter and random streams."""
        return Checkpoint.create(
            step=self.integrator.step_count,
            rank=self.rank,
            first_bead=self.state.first_bead,
            coordinates=self.state.coordinates,
            momenta=self.state.momenta,
            rng_state=self.rng.get_state(),
            metadata={"seed": self.seed, "n_workers": self.backend.n_workers},
        )

    def save_checkpoint(self) -> Path:
        """Write this worker's checkpoint to the output directory."""
        if self.checkpoints is None:
            self.checkpoints = CheckpointManager(self.output_dir or ".")
        path = self.checkpoints.save(
            self.get_checkpoint(), CheckpointManager.filename_for(self.rank)
        )
        logger.debug("Checkpoint written to %s", path)
        return path

    def load_checkpoint(self, checkpoint: Checkpoint) -> None:
        """
        Restore state, step counter and random streams from a checkpoint.

        Every worker of the group must call this together, since forces are
        recomputed afterwards.

        Raises:
            ConfigurationError: If the checkpoint belongs to another layout.
        """
        if (
            checkpoint.rank != self.rank
            or checkpoint.first_bead != self.state.first_bead
            or checkpoint.coordinates.shape != self.state.coordinates.shape
        ):
            raise ConfigurationError(
                f"Checkpoint of rank {checkpoint.rank} (first bead "
                f"{checkpoint.first_bead}) does not match worker {self.rank}"
            )
        if checkpoint.step > self.params.steps:
            raise ConfigurationError(
                f"Checkpoint step {checkpoint.step} exceeds run length {self.params.steps}"
            )

        self.state.coordinates[...] = checkpoint.coordinates
        self.state.momenta[...] = checkpoint.momenta
        if checkpoint.rng_state is not None:
            self.rng.set_state(checkpoint.rng_state)
        self.integrator.step_count = checkpoint.step
        self.pipeline.update_forces(self.state)


def uniform_particle_grid(natoms: int, extent: float) -> NDArray[np.floating]:
    """
    Place particles on a simple cubic grid filling a cube.

    Args:
        natoms: Number of particles.
        extent: Side length of the cube.

    Returns:
        Positions of shape (natoms, 3) in [0, extent).
    """
    n_side = int(np.ceil(natoms ** (1.0 / 3.0) - 1e-9))
    spacing = extent / n_side
    indices = np.array(np.unravel_index(np.arange(natoms), (n_side,) * 3)).T
    return (indices + 0.5) * spacing
