"""Pairwise interaction potentials."""

from __future__ import annotations

from abc import abstractmethod

import numpy as np
from numpy.typing import NDArray

from ..system import Box
from .base import Potential


class PairPotential(Potential):
    """
    Base class for radial pair interactions between all particles of a
    time-slice.

    Subclasses provide the pair energy V(r) and the radial force -dV/dr.

    Attributes:
        cutoff: Interaction cutoff radius. None or 0 disables the cutoff.
        box: Simulation box (required for the minimum image).
        minimum_image: Use the minimum-image separation.
    """

    def __init__(
        self,
        cutoff: float | None = None,
        box: Box | None = None,
        minimum_image: bool = False,
    ) -> None:
        if minimum_image and box is None:
            raise ValueError("Minimum image convention requires a box")
        self.cutoff = cutoff if cutoff else None
        self.box = box
        self.minimum_image = minimum_image

    @abstractmethod
    def pair_energy(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        """Pair energy V(r)."""
        ...

    @abstractmethod
    def pair_force(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        """Radial force magnitude -dV/dr (positive is repulsive)."""
        ...

    def _pairs(
        self, coordinates: NDArray[np.floating]
    ) -> tuple[
        NDArray[np.integer],
        NDArray[np.integer],
        NDArray[np.floating],
        NDArray[np.floating],
    ]:
        """Return interacting pairs (i, j, dr = r_j - r_i, |dr|) within cutoff."""
        coordinates = np.asarray(coordinates, dtype=np.float64)
        i_indices, j_indices = np.triu_indices(len(coordinates), k=1)

        dr = coordinates[j_indices] - coordinates[i_indices]
        if self.minimum_image:
            dr = self.box.minimum_image_displacement(dr)
        r = np.linalg.norm(dr, axis=1)

        if self.cutoff is not None:
            mask = r < self.cutoff
            i_indices = i_indices[mask]
            j_indices = j_indices[mask]
            dr = dr[mask]
            r = r[mask]

        return i_indices, j_indices, dr, r

    def forces(self, coordinates: NDArray[np.floating]) -> NDArray[np.floating]:
        forces = np.zeros_like(np.asarray(coordinates, dtype=np.float64))
        i_indices, j_indices, dr, r = self._pairs(coordinates)
        if len(r) == 0:
            return forces

        # Avoid division by zero
        r_safe = np.maximum(r, 1e-10)
        force_vectors = (self.pair_force(r_safe) / r_safe)[:, np.newaxis] * dr

        # Newton's third law
        np.add.at(forces, j_indices, force_vectors)
        np.add.at(forces, i_indices, -force_vectors)
        return forces

    def energy(self, coordinates: NDArray[np.floating]) -> float:
        _, _, _, r = self._pairs(coordinates)
        if len(r) == 0:
            return 0.0
        return float(np.sum(self.pair_energy(np.maximum(r, 1e-10))))


class HarmonicPairPotential(PairPotential):
    """V(r) = 0.5 * k * r^2."""

    name = "harmonic"

    def __init__(self, k: float, **kwargs) -> None:
        super().__init__(**kwargs)
        self.k = k

    def pair_energy(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return 0.5 * self.k * r**2

    def pair_force(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return -self.k * r


class GaussianPairPotential(PairPotential):
    """V(r) = g * exp(-r^2 / (2 sigma^2))."""

    name = "gaussian"

    def __init__(self, g: float, sigma: float, **kwargs) -> None:
        super().__init__(**kwargs)
        if sigma <= 0:
            raise ValueError(f"sigma must be positive, got {sigma}")
        self.g = g
        self.sigma = sigma

    def pair_energy(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return self.g * np.exp(-0.5 * r**2 / self.sigma**2)

    def pair_force(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return self.g * r / self.sigma**2 * np.exp(-0.5 * r**2 / self.sigma**2)


class DipolePairPotential(PairPotential):
    """V(r) = strength / r^3 (aligned dipoles)."""

    name = "dipole"

    def __init__(self, strength: float, **kwargs) -> None:
        super().__init__(**kwargs)
        self.strength = strength

    def pair_energy(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return self.strength / r**3

    def pair_force(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        return 3.0 * self.strength / r**4


class LennardJonesPairPotential(PairPotential):
    """
    Lennard-Jones 12-6 potential.

    V(r) = 4 * epsilon * [(sigma/r)^12 - (sigma/r)^6]
    """

    name = "lennard_jones"

    def __init__(self, epsilon: float, sigma: float, **kwargs) -> None:
        super().__init__(**kwargs)
        self.epsilon = epsilon
        self.sigma = sigma

    def pair_energy(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        sig_over_r_6 = (self.sigma / r) ** 6
        return 4.0 * self.epsilon * (sig_over_r_6**2 - sig_over_r_6)

    def pair_force(self, r: NDArray[np.floating]) -> NDArray[np.floating]:
        # F = -dV/dr = 24 * epsilon * [2*(sigma/r)^12 - (sigma/r)^6] / r
        sig_over_r_6 = (self.sigma / r) ** 6
        return 24.0 * self.epsilon * (2.0 * sig_over_r_6**2 - sig_over_r_6) / r
