"""Winding-number correction for ring-polymer springs in a periodic box."""

from __future__ import annotations

import itertools

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import logsumexp, softmax

from ..errors import NumericalInstabilityError
from ..system import Box


class WindingModel:
    """
    Boltzmann-weighted sum over periodic images of a spring separation.

    A spring between two beads whose separation is ``diff = right - left``
    may close through any periodic image ``diff + n * L`` with an integer
    winding vector ``n``. The harmonic spring energy

        E_n = (k / 2) |diff + n L|^2

    factorizes over Cartesian components, so the weight over the full vector
    table equals the product of one-dimensional sums over the winding numbers
    ``-max_wind..max_wind``. All sums are evaluated as log-sum-exp.

    Without periodicity (or with ``max_wind = 0``) only the zero vector is
    enumerated and the model reduces to the plain spring energy.

    Attributes:
        beta: Inverse temperature.
        spring_constant: Ring-polymer spring constant k.
        max_wind: Winding number cutoff actually in use.
        winding_numbers: Integer winding numbers per component, shape (M,).
    """

    def __init__(
        self,
        beta: float,
        spring_constant: float,
        box: Box | None = None,
        max_wind: int = 0,
        enabled: bool = True,
    ) -> None:
        """
        Initialize winding model.

        Args:
            beta: Inverse temperature 1/(kB T).
            spring_constant: Spring constant k = m omega_p^2.
            box: Periodic box. None disables winding.
            max_wind: Largest winding number per component.
            enabled: Whether periodic winding is considered at all.
        """
        if max_wind < 0:
            raise ValueError(f"max_wind must be non-negative, got {max_wind}")

        self.beta = beta
        self.spring_constant = spring_constant
        self.beta_half_k = 0.5 * beta * spring_constant
        self.box = box
        self.max_wind = max_wind if (enabled and box is not None) else 0

        self.winding_numbers = np.arange(-self.max_wind, self.max_wind + 1)
        lengths = box.lengths if box is not None else np.zeros(3)
        # Per-component image shifts, shape (3, M)
        self._shifts = lengths[:, np.newaxis] * self.winding_numbers[np.newaxis, :]

    @staticmethod
    def initialize_winding_vectors(cutoff: int) -> NDArray[np.integer]:
        """
        Enumerate all integer 3-vectors with components in [-cutoff, cutoff].

        The table is symmetric (v present implies -v present) and always
        contains the zero vector.
        """
        numbers = range(-cutoff, cutoff + 1)
        return np.array(list(itertools.product(numbers, repeat=3)), dtype=np.int64)

    @property
    def vectors(self) -> NDArray[np.integer]:
        """Return the winding vector table in use."""
        return self.initialize_winding_vectors(self.max_wind)

    @property
    def is_active(self) -> bool:
        """Check whether more than the zero image is enumerated."""
        return self.max_wind > 0

    def _exponents(self, diff: NDArray[np.floating]) -> NDArray[np.floating]:
        """Return -beta E_n per component, shape (..., 3, M)."""
        shifted = diff[..., np.newaxis] + self._shifts
        return -self.beta_half_k * shifted**2

    def _check(self, values: NDArray[np.floating], what: str) -> None:
        if not np.all(np.isfinite(values)):
            raise NumericalInstabilityError(
                "winding", f"non-finite {what} for boundary separation"
            )

    def log_winding_weight(
        self, left: ArrayLike, right: ArrayLike
    ) -> float | NDArray[np.floating]:
        """
        Log of sum_n exp(-beta (k/2) |right - left + n L|^2).

        Args:
            left: Position(s), shape (..., 3).
            right: Position(s), broadcastable against ``left``.

        Returns:
            Log-weight per separation, shape (...).
        """
        diff = np.asarray(right, dtype=np.float64) - np.asarray(left, dtype=np.float64)
        return self.separation_log_weight(diff)

    def separation_log_weight(self, diff: ArrayLike) -> float | NDArray[np.floating]:
        """Log-weight for precomputed separation(s) of shape (..., 3)."""
        diff = np.asarray(diff, dtype=np.float64)
        log_weight = logsumexp(self._exponents(diff), axis=-1).sum(axis=-1)
        self._check(log_weight, "winding log-weight")
        return log_weight

    def effective_energy(
        self, left: ArrayLike, right: ArrayLike
    ) -> float | NDArray[np.floating]:
        """Winding-averaged spring free energy -log(W) / beta."""
        return -self.log_winding_weight(left, right) / self.beta

    def probabilities(self, diff: ArrayLike) -> NDArray[np.floating]:
        """
        Normalized probability of every winding number per component.

        Args:
            diff: Separation(s), shape (..., 3).

        Returns:
            Probabilities of shape (..., 3, M), ordered as ``winding_numbers``.
        """
        diff = np.asarray(diff, dtype=np.float64)
        probs = softmax(self._exponents(diff), axis=-1)
        self._check(probs, "winding probability")
        return probs

    def probability(self, diff: ArrayLike, winding_number: int) -> NDArray[np.floating]:
        """Probability of one winding number per component, shape (..., 3)."""
        diff = np.asarray(diff, dtype=np.float64)
        if abs(winding_number) > self.max_wind:
            return np.zeros(diff.shape)
        return self.probabilities(diff)[..., winding_number + self.max_wind]

    def shift(self, diff: ArrayLike) -> NDArray[np.floating]:
        """Expected image displacement sum_n p_n n L per component."""
        diff = np.asarray(diff, dtype=np.float64)
        if not self.is_active:
            return np.zeros(diff.shape)
        return np.sum(self.probabilities(diff) * self._shifts, axis=-1)

    def gradient(self, diff: ArrayLike) -> NDArray[np.floating]:
        """Derivative of the effective energy with respect to ``diff``."""
        diff = np.asarray(diff, dtype=np.float64)
        return self.spring_constant * (diff + self.shift(diff))

    def energy_expectation(
        self, left: ArrayLike, right: ArrayLike
    ) -> float | NDArray[np.floating]:
        """
        Winding-weighted expectation sum_n w_n E_n / sum_n w_n.

        Args:
            left: Position(s), shape (..., 3).
            right: Position(s), broadcastable against ``left``.

        Returns:
            Expected spring energy per separation, shape (...).
        """
        diff = np.asarray(right, dtype=np.float64) - np.asarray(left, dtype=np.float64)
        return self.separation_energy_expectation(diff)

    def separation_energy_expectation(
        self, diff: ArrayLike
    ) -> float | NDArray[np.floating]:
        """Energy expectation for precomputed separation(s) of shape (..., 3)."""
        exponents = self._exponents(np.asarray(diff, dtype=np.float64))
        energies = -exponents / self.beta
        expectation = np.sum(softmax(exponents, axis=-1) * energies, axis=(-2, -1))
        self._check(expectation, "winding energy expectation")
        return expectation
