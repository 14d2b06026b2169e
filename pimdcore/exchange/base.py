"""Base interface for ring-polymer boundary couplings."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray

from ..system import Box
from .winding import WindingModel


class ExchangeModel(ABC):
    """
    Abstract base class for the spring coupling of the boundary time-slices.

    Interior springs (time-slice j to j + 1) are ordinary harmonic springs.
    The spring closing each ring polymer, from the last time-slice back to
    the first, is owned by an exchange model. Distinguishable particles close
    each ring on themselves; bosons may close through any permutation.

    Every evaluation starts with :meth:`prepare`, which rebuilds all scratch
    buffers from the current boundary coordinates. Nothing else is carried
    between calls.

    Attributes:
        natoms: Number of particles.
        beta: Inverse temperature.
        spring_constant: Ring-polymer spring constant k.
        box: Periodic box, used for the minimum image of boundary separations.
        winding: Optional winding model for periodic boundary springs.
        apply_minimum_image: Map boundary separations onto their shortest image.
    """

    is_bosonic: bool = False

    def __init__(
        self,
        natoms: int,
        beta: float,
        spring_constant: float,
        box: Box | None = None,
        winding: WindingModel | None = None,
        apply_minimum_image: bool = False,
    ) -> None:
        """
        Initialize exchange model.

        Args:
            natoms: Number of particles.
            beta: Inverse temperature 1/(kB T).
            spring_constant: Spring constant k = m omega_p^2.
            box: Simulation box (required for minimum image).
            winding: Winding model applied to boundary separations.
            apply_minimum_image: Apply minimum image to boundary separations.
        """
        if natoms < 1:
            raise ValueError(f"natoms must be positive, got {natoms}")
        if apply_minimum_image and box is None:
            raise ValueError("Minimum image convention requires a box")

        self.natoms = natoms
        self.beta = beta
        self.spring_constant = spring_constant
        self.box = box
        self.winding = winding
        self.apply_minimum_image = apply_minimum_image
        self._prepared = False

    @property
    def uses_winding(self) -> bool:
        """Check whether boundary springs are winding-corrected."""
        return self.winding is not None and self.winding.is_active

    def separation(
        self, last: NDArray[np.floating], first: NDArray[np.floating]
    ) -> NDArray[np.floating]:
        """Separation first - last of a boundary spring, shape (..., 3)."""
        diff = np.asarray(first) - np.asarray(last)
        if self.apply_minimum_image:
            diff = self.box.minimum_image_displacement(diff)
        return diff

    def _pair_energies(self, diff: NDArray[np.floating]) -> NDArray[np.floating]:
        """Effective energy of boundary springs with separation ``diff``."""
        if self.uses_winding:
            return -self.winding.separation_log_weight(diff) / self.beta
        return 0.5 * self.spring_constant * np.sum(diff**2, axis=-1)

    def _pair_expectations(self, diff: NDArray[np.floating]) -> NDArray[np.floating]:
        """Expected (winding-averaged) energy of boundary springs."""
        if self.uses_winding:
            return self.winding.separation_energy_expectation(diff)
        return 0.5 * self.spring_constant * np.sum(diff**2, axis=-1)

    def _pair_gradients(self, diff: NDArray[np.floating]) -> NDArray[np.floating]:
        """Derivative of the effective spring energy with respect to ``diff``."""
        if self.uses_winding:
            return self.winding.gradient(diff)
        return self.spring_constant * diff

    def _require_prepared(self) -> None:
        if not self._prepared:
            raise RuntimeError("Exchange model has not been prepared with coordinates")

    @abstractmethod
    def prepare(
        self, first: NDArray[np.floating], last: NDArray[np.floating]
    ) -> None:
        """
        Rebuild the boundary coupling from current coordinates.

        Args:
            first: Coordinates of time-slice 0, shape (natoms, 3).
            last: Coordinates of time-slice P - 1, shape (natoms, 3).
        """
        ...

    @abstractmethod
    def spring_energy(self) -> float:
        """Return the effective energy of the closing springs."""
        ...

    @abstractmethod
    def spring_forces(
        self,
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """
        Return closing-spring forces.

        Returns:
            Tuple of (forces on time-slice 0, forces on time-slice P - 1),
            each of shape (natoms, 3).
        """
        ...

    @abstractmethod
    def spring_energy_expectation(self) -> float:
        """
        Return the expected closing-spring energy.

        Averaged over permutations (bosons) and winding vectors; this is the
        boundary term of the primitive kinetic energy estimator.
        """
        ...
