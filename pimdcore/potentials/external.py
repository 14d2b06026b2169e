"""External (one-body) potentials."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .base import Potential


class HarmonicPotential(Potential):
    """
    Isotropic harmonic trap.

    V(x) = 0.5 * m * omega^2 * |x - center|^2

    Attributes:
        mass: Particle mass.
        omega: Trap angular frequency.
        center: Trap center, shape (3,).
    """

    name = "harmonic"
    requires_mass = True

    def __init__(
        self, mass: float, omega: float, center: ArrayLike | None = None
    ) -> None:
        """
        Initialize harmonic trap.

        Args:
            mass: Particle mass.
            omega: Angular frequency of the trap.
            center: Trap center. Defaults to the origin.
        """
        if omega < 0:
            raise ValueError(f"omega must be non-negative, got {omega}")
        self.mass = mass
        self.omega = omega
        self.center = (
            np.zeros(3) if center is None else np.asarray(center, dtype=np.float64)
        )
        self.stiffness = mass * omega**2

    def forces(self, coordinates: NDArray[np.floating]) -> NDArray[np.floating]:
        return -self.stiffness * (np.asarray(coordinates) - self.center)

    def energy(self, coordinates: NDArray[np.floating]) -> float:
        displacement = np.asarray(coordinates) - self.center
        return float(0.5 * self.stiffness * np.sum(displacement**2))


class DoubleWellPotential(Potential):
    """
    Quartic double well along the x axis.

    V(x) = strength * ((x / location)^2 - 1)^2

    Minima sit at x = +/- location; y and z are free.
    """

    name = "double_well"

    def __init__(self, strength: float, location: float) -> None:
        """
        Initialize double well.

        Args:
            strength: Barrier height at x = 0.
            location: Position of the minima.
        """
        if location <= 0:
            raise ValueError(f"location must be positive, got {location}")
        self.strength = strength
        self.location = location

    def forces(self, coordinates: NDArray[np.floating]) -> NDArray[np.floating]:
        coordinates = np.asarray(coordinates, dtype=np.float64)
        x = coordinates[:, 0]
        a2 = self.location**2
        forces = np.zeros_like(coordinates)
        forces[:, 0] = -4.0 * self.strength * (x**2 / a2 - 1.0) * x / a2
        return forces

    def energy(self, coordinates: NDArray[np.floating]) -> float:
        x = np.asarray(coordinates)[:, 0]
        return float(self.strength * np.sum((x**2 / self.location**2 - 1.0) ** 2))
