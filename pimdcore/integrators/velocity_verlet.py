"""Velocity Verlet sub-steps for ring-polymer beads."""

from __future__ import annotations

from ..system import RingPolymerState


class VelocityVerlet:
    """
    Velocity Verlet integrator (kick-drift-kick formulation).

    Algorithm:
        p(t + dt/2) = p(t) + 0.5 * dt * F(t)          # First kick
        x(t + dt) = x(t) + dt * p(t + dt/2) / m       # Drift
        p(t + dt) = p(t + dt/2) + 0.5 * dt * F(t+dt)  # Second kick

    The force evaluation between the drift and the second kick belongs to
    the caller, which owns the force pipeline. All updates are in place.

    Attributes:
        dt: Integration timestep.
    """

    def __init__(self, dt: float) -> None:
        """
        Initialize Velocity Verlet integrator.

        Args:
            dt: Integration timestep.
        """
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self._dt = dt

    @property
    def timestep(self) -> float:
        """Return the integration timestep."""
        return self._dt

    def half_kick(self, state: RingPolymerState) -> None:
        """Advance momenta by half a timestep with the current forces."""
        state.momenta += 0.5 * self._dt * state.forces

    def drift(self, state: RingPolymerState) -> None:
        """Advance coordinates by a full timestep with the current momenta."""
        state.coordinates += self._dt * state.momenta / state.mass
