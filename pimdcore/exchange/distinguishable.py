"""Boundary springs for distinguishable particles."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..errors import NumericalInstabilityError
from .base import ExchangeModel


class DistinguishableExchange(ExchangeModel):
    """
    Classical ring closure: the last bead of particle i binds to the first
    bead of the same particle.

    With an active winding model the closing spring is replaced by its
    winding-averaged free energy.
    """

    is_bosonic = False

    def prepare(
        self, first: NDArray[np.floating], last: NDArray[np.floating]
    ) -> None:
        """Evaluate one closing spring per particle."""
        diff = self.separation(last, first)

        self._energies = self._pair_energies(diff)
        self._expectations = self._pair_expectations(diff)
        self._gradients = self._pair_gradients(diff)

        if not np.all(np.isfinite(self._gradients)):
            raise NumericalInstabilityError(
                "distinguishable exchange", "non-finite closing-spring force"
            )
        self._prepared = True

    def spring_energy(self) -> float:
        """Return sum over particles of the closing-spring energy."""
        self._require_prepared()
        return float(np.sum(self._energies))

    def spring_forces(
        self,
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """Return forces on (first, last) time-slices."""
        self._require_prepared()
        return -self._gradients, self._gradients.copy()

    def spring_energy_expectation(self) -> float:
        """Return the winding-averaged closing-spring energy."""
        self._require_prepared()
        return float(np.sum(self._expectations))

    @property
    def pair_energies(self) -> NDArray[np.floating]:
        """Closing-spring energy per particle, shape (natoms,)."""
        self._require_prepared()
        return self._energies.copy()
