"""Permutation-symmetric boundary springs for bosons."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.special import logsumexp

from ..errors import NumericalInstabilityError
from .base import ExchangeModel

# Tolerance on probabilities before round-off is clipped away
PROBABILITY_TOLERANCE = 1e-8


class BosonicExchange(ExchangeModel):
    """
    Bosonic ring closure with quadratic scaling in the particle number.

    The last bead of particle l may bind to the first bead of any particle.
    The ring closures are summed through the recurrence

        Z[0] = 1
        Z[v] = (1/v) sum_{u=0}^{v-1} exp(-beta E_cycle(u, v-1)) Z[u]

    where ``E_cycle(u, v)`` closes particles u..v into one ring
    (u -> u+1 -> ... -> v -> u). The resulting effective potential
    ``-log(Z[N]) / beta`` samples the same configurational distribution as
    the full average over all N! permutations; for one or two particles it
    coincides with that average term by term. A single particle reduces to
    the distinguishable closing spring.

    A backward recurrence ``Zb`` over the remaining particles gives the
    probability of every cycle, and from it the probability of every
    boundary connection. Forces are the connection-probability weighted
    spring forces, so energy and forces both cost O(N^2). All partial sums
    are kept as logarithms.

    References:
        Hirshberg, Rizzi, Parrinello, PNAS 116, 21445 (2019).
        Feldman, Hirshberg, J. Chem. Phys. 159, 154107 (2023).
    """

    is_bosonic = True

    def prepare(
        self, first: NDArray[np.floating], last: NDArray[np.floating]
    ) -> None:
        """Evaluate the permutation recurrences for the current configuration."""
        n = self.natoms
        first = np.asarray(first, dtype=np.float64)
        last = np.asarray(last, dtype=np.float64)

        # Separations of every possible closing spring: diff[l, m] = first[m] - last[l]
        diff = self.separation(last[:, np.newaxis, :], first[np.newaxis, :, :])
        energies = self._pair_energies(diff)
        self._expectations = self._pair_expectations(diff)
        self._gradients = self._pair_gradients(diff)

        self._cycle_energies = self._evaluate_cycle_energies(energies)
        self._log_z = self._evaluate_forward(self._cycle_energies)
        self._log_z_backward = self._evaluate_backward(self._cycle_energies)
        self._potential = -self._log_z[n] / self.beta

        if not np.isfinite(self._potential):
            raise NumericalInstabilityError(
                "bosonic exchange", "exchange partition function is not finite"
            )

        self._cycle_probs = self._evaluate_cycle_probabilities()
        self._connection_probs = self._evaluate_connection_probabilities()
        self._prepared = True

    def _evaluate_cycle_energies(
        self, energies: NDArray[np.floating]
    ) -> NDArray[np.floating]:
        """
        Energy of closing particles u..v into one ring, for all u <= v.

        Returns an (N, N) array indexed [u, v]; entries with u > v are +inf.
        """
        n = self.natoms
        # links[l] = E(l -> l + 1), cumulated so chain(u, v) = S[v] - S[u]
        links = np.diagonal(energies, offset=1)
        cumulative = np.concatenate(([0.0], np.cumsum(links)))
        chain = cumulative[np.newaxis, :n] - cumulative[:n, np.newaxis]

        cycles = chain + energies.T
        cycles[np.tril_indices(n, k=-1)] = np.inf
        return cycles

    def _evaluate_forward(self, cycles: NDArray[np.floating]) -> NDArray[np.floating]:
        """log Z[v] for v = 0..N, closing the first v particles."""
        n = self.natoms
        log_z = np.zeros(n + 1)
        for v in range(n):
            terms = log_z[: v + 1] - self.beta * cycles[: v + 1, v]
            log_z[v + 1] = logsumexp(terms) - np.log(v + 1)
        return log_z

    def _evaluate_backward(self, cycles: NDArray[np.floating]) -> NDArray[np.floating]:
        """log Zb[u] for u = 0..N, closing particles u..N-1 given 0..u-1 closed."""
        n = self.natoms
        log_zb = np.zeros(n + 1)
        log_counts = np.log(np.arange(1, n + 1))
        for u in range(n - 1, -1, -1):
            terms = -self.beta * cycles[u, u:] - log_counts[u:] + log_zb[u + 1 :]
            log_zb[u] = logsumexp(terms)
        return log_zb

    def _evaluate_cycle_probabilities(self) -> NDArray[np.floating]:
        """Probability that particles u..v form one ring, indexed [u, v]."""
        n = self.natoms
        log_counts = np.log(np.arange(1, n + 1))
        log_p = (
            self._log_z[:n, np.newaxis]
            - self.beta * self._cycle_energies
            - log_counts[np.newaxis, :]
            + self._log_z_backward[np.newaxis, 1:]
            - self._log_z[n]
        )
        return np.exp(log_p)

    def _evaluate_connection_probabilities(self) -> NDArray[np.floating]:
        """Probability that the last bead of l binds to the first bead of m."""
        n = self.natoms
        probs = np.zeros((n, n))

        # Ring closures: last bead of v back to the first bead of u <= v
        probs += self._cycle_probs.T

        # Chain links: last bead of l to the first bead of l + 1 unless a ring ends at l
        end_probs = np.exp(self._log_z[1:] + self._log_z_backward[1:] - self._log_z[n])
        link_probs = 1.0 - end_probs[:-1]
        probs[np.arange(n - 1), np.arange(1, n)] += link_probs

        if not np.all(np.isfinite(probs)):
            raise NumericalInstabilityError(
                "bosonic exchange", "non-finite connection probability"
            )
        if np.any(probs < -PROBABILITY_TOLERANCE) or np.any(
            probs > 1.0 + PROBABILITY_TOLERANCE
        ):
            raise NumericalInstabilityError(
                "bosonic exchange",
                f"connection probability outside [0, 1]: "
                f"min={probs.min():.3e}, max={probs.max():.3e}",
            )
        if not np.allclose(probs.sum(axis=1), 1.0, atol=1e-6):
            raise NumericalInstabilityError(
                "bosonic exchange", "connection probabilities do not sum to one"
            )
        return np.clip(probs, 0.0, 1.0)

    def spring_energy(self) -> float:
        """Return the effective exchange spring energy -log(Z) / beta."""
        self._require_prepared()
        return float(self._potential)

    def spring_forces(
        self,
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """Return forces on (first, last) time-slices."""
        self._require_prepared()
        probs = self._connection_probs
        # dE/dfirst[m] = +gradient[l, m]; dE/dlast[l] = -gradient[l, m]
        first_forces = -np.einsum("lm,lmd->md", probs, self._gradients)
        last_forces = np.einsum("lm,lmd->ld", probs, self._gradients)
        return first_forces, last_forces

    def spring_energy_expectation(self) -> float:
        """Return the permutation-averaged closing-spring energy."""
        self._require_prepared()
        expectation = float(np.sum(self._connection_probs * self._expectations))
        if not np.isfinite(expectation) or expectation < -PROBABILITY_TOLERANCE:
            raise NumericalInstabilityError(
                "bosonic exchange", f"invalid spring energy expectation {expectation}"
            )
        return expectation

    @property
    def connection_probabilities(self) -> NDArray[np.floating]:
        """(N, N) probabilities that last bead l binds to first bead m."""
        self._require_prepared()
        return self._connection_probs.copy()

    @property
    def cycle_probabilities(self) -> NDArray[np.floating]:
        """(N, N) probabilities that particles u..v form one ring, indexed [u, v]."""
        self._require_prepared()
        return self._cycle_probs.copy()

    @property
    def log_partition_function(self) -> float:
        """Return log Z[N] of the exchange recurrence."""
        self._require_prepared()
        return float(self._log_z[self.natoms])
