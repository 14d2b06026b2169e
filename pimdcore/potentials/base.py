"""Base interface for physical potentials."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray


class Potential(ABC):
    """
    Abstract base class for physical potentials acting on one time-slice.

    Every bead of the ring polymer sees the same potential; the force
    pipeline scales the result by 1/P.
    """

    name: str = "potential"

    @abstractmethod
    def forces(self, coordinates: NDArray[np.floating]) -> NDArray[np.floating]:
        """
        Compute forces on all particles.

        Args:
            coordinates: Positions of one time-slice, shape (natoms, 3).

        Returns:
            Forces array of shape (natoms, 3).
        """
        ...

    @abstractmethod
    def energy(self, coordinates: NDArray[np.floating]) -> float:
        """
        Compute the potential energy of one time-slice.

        Args:
            coordinates: Positions of one time-slice, shape (natoms, 3).

        Returns:
            Potential energy.
        """
        ...

    def compute_with_energy(
        self, coordinates: NDArray[np.floating]
    ) -> tuple[NDArray[np.floating], float]:
        """Compute forces and potential energy."""
        return self.forces(coordinates), self.energy(coordinates)


class FreePotential(Potential):
    """No interaction at all."""

    name = "free"

    def forces(self, coordinates: NDArray[np.floating]) -> NDArray[np.floating]:
        return np.zeros_like(np.asarray(coordinates, dtype=np.float64))

    def energy(self, coordinates: NDArray[np.floating]) -> float:
        return 0.0
