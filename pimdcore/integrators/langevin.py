"""Exact Ornstein-Uhlenbeck thermostat half-step."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


class LangevinThermostat:
    """
    Langevin (Ornstein-Uhlenbeck) thermostat acting on bead momenta.

    The friction/noise part of the Langevin equation is integrated exactly
    over half a timestep:

        p <- c1 * p + c2 * xi,   xi ~ N(0, 1)
        c1 = exp(-gamma * dt / 2)
        c2 = sqrt((1 - c1^2) * m / beta)

    which is stable for any friction strength. A disabled thermostat leaves
    momenta untouched and draws no random numbers.

    Attributes:
        gamma: Friction coefficient.
        dt: Integration timestep.
        beta: Inverse temperature of the bath.
        mass: Particle mass.
        enabled: Whether the thermostat acts at all.
    """

    def __init__(
        self,
        gamma: float,
        dt: float,
        beta: float,
        mass: float,
        rng: np.random.Generator,
        enabled: bool = True,
    ) -> None:
        """
        Initialize Langevin thermostat.

        Args:
            gamma: Friction coefficient (1/time).
            dt: Integration timestep.
            beta: Inverse temperature 1/(kB T).
            mass: Particle mass.
            rng: Generator dedicated to thermostat noise.
            enabled: Apply the thermostat.
        """
        if gamma < 0:
            raise ValueError(f"gamma must be non-negative, got {gamma}")

        self.gamma = gamma
        self.dt = dt
        self.beta = beta
        self.mass = mass
        self.enabled = enabled
        self._rng = rng

        self.c1 = np.exp(-0.5 * gamma * dt)
        self.c2 = np.sqrt((1.0 - self.c1**2) * mass / beta)

    def half_step(self, momenta: NDArray[np.floating]) -> None:
        """Apply one thermostat half-step to ``momenta`` in place."""
        if not self.enabled:
            return
        noise = self._rng.standard_normal(momenta.shape)
        momenta *= self.c1
        momenta += self.c2 * noise
