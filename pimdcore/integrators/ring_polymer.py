"""OBABO integrator and run-phase bookkeeping for ring polymers."""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from ..errors import NumericalInstabilityError
from ..forces import ForcePipeline
from ..parallel import ParallelBackend, SerialBackend
from ..system import Box, RingPolymerState
from .langevin import LangevinThermostat
from .velocity_verlet import VelocityVerlet

logger = logging.getLogger(__name__)


class SimulationPhase(Enum):
    """Lifecycle of a simulation run."""

    UNINITIALIZED = "uninitialized"
    THERMALIZING = "thermalizing"
    PRODUCING = "producing"
    FINISHED = "finished"


class RingPolymerIntegrator:
    """
    Langevin-thermostatted velocity Verlet for ring-polymer beads.

    One step is

        O (thermostat half-step)
        B (half kick), A (drift), force update, B (half kick)
        O (thermostat half-step)
        wrap, center-of-mass momentum removal, step += 1

    The integrator owns the step counter. The run phase is a pure function
    of the counter, the total step count and the thermalization threshold.

    Attributes:
        pipeline: Force pipeline evaluated once per step.
        thermostat: Langevin thermostat.
        steps: Total number of steps in the run.
        threshold: Fraction of steps discarded as thermalization.
        step_count: Number of completed steps.
    """

    def __init__(
        self,
        pipeline: ForcePipeline,
        thermostat: LangevinThermostat,
        dt: float,
        steps: int,
        threshold: float = 0.0,
        box: Box | None = None,
        apply_wrap: bool = False,
        apply_wrap_first: bool = False,
        fixcom: bool = False,
        backend: ParallelBackend | None = None,
    ) -> None:
        """
        Initialize integrator.

        Args:
            pipeline: Force pipeline.
            thermostat: Thermostat applied before and after the Verlet step.
            dt: Integration timestep.
            steps: Total number of steps.
            threshold: Thermalization fraction in [0, 1).
            box: Simulation box used for wrapping.
            apply_wrap: Wrap all beads into the primary cell after each step.
            apply_wrap_first: Wrap only time-slice 0 after each step.
            fixcom: Remove the total momentum after each step.
            backend: Parallel backend for the momentum reduction.
        """
        if steps < 1:
            raise ValueError(f"steps must be positive, got {steps}")
        if not 0.0 <= threshold < 1.0:
            raise ValueError(f"threshold must lie in [0, 1), got {threshold}")
        if (apply_wrap or apply_wrap_first) and box is None:
            raise ValueError("Wrapping requires a box")

        self.pipeline = pipeline
        self.thermostat = thermostat
        self.verlet = VelocityVerlet(dt)
        self.steps = steps
        self.threshold = threshold
        self.box = box
        self.apply_wrap = apply_wrap
        self.apply_wrap_first = apply_wrap_first
        self.fixcom = fixcom
        self.backend = backend if backend is not None else SerialBackend()

        self.step_count = 0
        self._initialized = False

    @property
    def timestep(self) -> float:
        """Return the integration timestep."""
        return self.verlet.timestep

    @property
    def phase(self) -> SimulationPhase:
        """Return the current run phase."""
        if not self._initialized:
            return SimulationPhase.UNINITIALIZED
        if self.step_count >= self.steps:
            return SimulationPhase.FINISHED
        if self.step_count / self.steps >= self.threshold:
            return SimulationPhase.PRODUCING
        return SimulationPhase.THERMALIZING

    def initialize(self, state: RingPolymerState) -> None:
        """Compute the initial forces and enter the thermalization phase."""
        self.pipeline.update_forces(state)
        self._initialized = True

    def should_record(self, sfreq: int) -> bool:
        """Check whether observables are recorded at the current step."""
        return self.phase is SimulationPhase.PRODUCING and self.step_count % sfreq == 0

    def step(self, state: RingPolymerState) -> None:
        """
        Advance ``state`` by one step in place.

        Raises:
            RuntimeError: If the integrator is not initialized or finished.
            NumericalInstabilityError: If coordinates or momenta blow up.
        """
        phase = self.phase
        if phase is SimulationPhase.UNINITIALIZED:
            raise RuntimeError("Integrator must be initialized before stepping")
        if phase is SimulationPhase.FINISHED:
            raise RuntimeError(f"Run already finished after {self.steps} steps")

        self.thermostat.half_step(state.momenta)
        self.verlet.half_kick(state)
        self.verlet.drift(state)
        self.pipeline.update_forces(state)
        self.verlet.half_kick(state)
        self.thermostat.half_step(state.momenta)

        if self.apply_wrap:
            state.coordinates[...] = self.box.wrap_positions(state.coordinates)
        elif self.apply_wrap_first and state.owns_first_bead:
            state.coordinates[0] = self.box.wrap_positions(state.coordinates[0])

        if self.fixcom:
            self.remove_com_momentum(state)

        if not (
            np.all(np.isfinite(state.momenta)) and np.all(np.isfinite(state.coordinates))
        ):
            raise NumericalInstabilityError(
                "integrator", "non-finite coordinates or momenta", step=self.step_count
            )

        self.step_count += 1
        if self.step_count == self.steps:
            logger.debug("Integrator finished after %d steps", self.steps)

    def remove_com_momentum(self, state: RingPolymerState) -> None:
        """Subtract the mean bead momentum so the total momentum vanishes."""
        local_total = state.momenta.sum(axis=(0, 1))
        total = self.backend.allreduce_sum(local_total)
        state.momenta -= total / (state.nbeads * state.natoms)
