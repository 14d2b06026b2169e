"""Assembly of physical and ring-polymer spring forces."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from ..errors import NumericalInstabilityError
from ..exchange import ExchangeModel
from ..parallel import ParallelBackend, SerialBackend
from ..potentials import FreePotential, Potential
from ..system import Box, RingPolymerState

logger = logging.getLogger(__name__)


class ForcePipeline:
    """
    Combine physical-potential forces and spring forces for local beads.

    For every local time-slice j the total force is

        F_j = -(1/P) grad V(x_j) + interior spring forces + boundary forces

    where interior springs couple time-slices j and j + 1 for j < P - 1 with
    the classical harmonic spring, and the springs closing the ring (between
    time-slice P - 1 and time-slice 0) are delegated to the exchange model.

    Energies are attributed to workers so that summing over workers counts
    every term once: the interior spring j -> j + 1 belongs to the owner of
    time-slice j, and the exchange spring energy belongs to the owner of
    time-slice P - 1.

    Every call rebuilds all results from the current coordinates; nothing is
    carried between calls.

    Attributes:
        exchange: Boundary coupling model.
        external: External (one-body) potential.
        interaction: Pairwise interaction potential.
        spring_constant: Ring-polymer spring constant k.
    """

    def __init__(
        self,
        exchange: ExchangeModel,
        spring_constant: float,
        external: Potential | None = None,
        interaction: Potential | None = None,
        backend: ParallelBackend | None = None,
        box: Box | None = None,
        apply_mic_spring: bool = False,
    ) -> None:
        """
        Initialize force pipeline.

        Args:
            exchange: Exchange model owning the ring-closing springs.
            spring_constant: Spring constant k = m omega_p^2.
            external: External potential. Defaults to no potential.
            interaction: Interaction potential. Defaults to no potential.
            backend: Parallel backend used for the neighbor exchange.
            box: Simulation box (required for minimum-image springs).
            apply_mic_spring: Apply minimum image to interior spring separations.
        """
        if apply_mic_spring and box is None:
            raise ValueError("Minimum image convention requires a box")

        self.exchange = exchange
        self.spring_constant = spring_constant
        self.external = external if external is not None else FreePotential()
        self.interaction = interaction if interaction is not None else FreePotential()
        self.backend = backend if backend is not None else SerialBackend()
        self.box = box
        self.apply_mic_spring = apply_mic_spring

        self._physical_energies: NDArray[np.floating] | None = None
        self._nbeads = 1
        self._interior_energy = 0.0
        self._exchange_energy = 0.0
        self._exchange_expectation = 0.0

    def exchange_neighbors(self, state: RingPolymerState) -> None:
        """Refresh the prev/next neighbor caches of ``state`` from the ring."""
        prev_slice, next_slice = self.backend.exchange_ring(
            state.coordinates[0], state.coordinates[-1]
        )
        state.prev_coordinates[...] = prev_slice
        state.next_coordinates[...] = next_slice

    def update_forces(self, state: RingPolymerState) -> NDArray[np.floating]:
        """
        Recompute the total forces on all local beads in place.

        Performs the neighbor exchange first, so every worker of the group
        must call this together.

        Args:
            state: Ring-polymer state of this worker.

        Returns:
            The updated ``state.forces`` array.

        Raises:
            NumericalInstabilityError: If any force is not finite.
        """
        self.exchange_neighbors(state)

        forces = state.forces
        forces.fill(0.0)

        self._add_physical_forces(state, forces)
        self._add_interior_spring_forces(state, forces)
        self._add_exchange_forces(state, forces)

        if not np.all(np.isfinite(forces)):
            raise NumericalInstabilityError("force pipeline", "non-finite bead force")
        return forces

    def _add_physical_forces(
        self, state: RingPolymerState, forces: NDArray[np.floating]
    ) -> None:
        nbeads = state.nbeads
        energies = np.zeros(state.n_local_beads)
        for j, coordinates in enumerate(state.coordinates):
            f_ext, e_ext = self.external.compute_with_energy(coordinates)
            f_int, e_int = self.interaction.compute_with_energy(coordinates)
            forces[j] += (f_ext + f_int) / nbeads
            energies[j] = e_ext + e_int
        self._physical_energies = energies
        self._nbeads = nbeads

    def _interior_separations(
        self, state: RingPolymerState
    ) -> tuple[NDArray[np.floating], NDArray[np.bool_]]:
        """
        Separations x_{j+1} - x_j to the next time-slice for every local bead.

        Returns the separations, shape (n_local, natoms, 3), and a mask of
        the beads whose forward spring is an interior spring (j < P - 1).
        """
        following = np.concatenate(
            (state.coordinates[1:], state.next_coordinates[np.newaxis]), axis=0
        )
        diff = following - state.coordinates
        if self.apply_mic_spring:
            diff = self.box.minimum_image_displacement(diff)
        interior = state.bead_indices < state.nbeads - 1
        return diff, interior

    def _add_interior_spring_forces(
        self, state: RingPolymerState, forces: NDArray[np.floating]
    ) -> None:
        k = self.spring_constant
        forward, interior = self._interior_separations(state)
        forward = forward * interior[:, np.newaxis, np.newaxis]

        # Spring into bead j from j - 1; bead 0 has none, the first local one
        # uses the prev neighbor cache
        backward = np.empty_like(forward)
        backward[1:] = forward[:-1]
        if state.owns_first_bead:
            backward[0] = 0.0
        else:
            first_diff = state.coordinates[0] - state.prev_coordinates
            if self.apply_mic_spring:
                first_diff = self.box.minimum_image_displacement(first_diff)
            backward[0] = first_diff

        forces += k * (forward - backward)
        self._interior_energy = float(0.5 * k * np.sum(forward**2))

    def _add_exchange_forces(
        self, state: RingPolymerState, forces: NDArray[np.floating]
    ) -> None:
        self._exchange_energy = 0.0
        self._exchange_expectation = 0.0

        boundary = state.boundary_coordinates()
        if boundary is None:
            return

        first, last = boundary
        self.exchange.prepare(first, last)
        first_forces, last_forces = self.exchange.spring_forces()
        if state.owns_first_bead:
            forces[0] += first_forces
        if state.owns_last_bead:
            forces[-1] += last_forces
            self._exchange_energy = self.exchange.spring_energy()
            self._exchange_expectation = self.exchange.spring_energy_expectation()

    def is_bosonic_bead(self, bead: int, nbeads: int) -> bool:
        """Check if global time-slice ``bead`` is coupled by bosonic exchange."""
        return self.exchange.is_bosonic and bead in (0, nbeads - 1)

    @property
    def physical_energies(self) -> NDArray[np.floating]:
        """Unscaled potential energy V(x_j) of every local time-slice."""
        if self._physical_energies is None:
            raise RuntimeError("Forces have not been computed yet")
        return self._physical_energies.copy()

    @property
    def physical_energy(self) -> float:
        """Local share of the physical energy (1/P) sum_j V(x_j)."""
        return float(np.sum(self.physical_energies)) / self._nbeads

    @property
    def interior_spring_energy(self) -> float:
        """Local share of the interior spring energy."""
        return self._interior_energy

    @property
    def exchange_energy(self) -> float:
        """Local share of the exchange spring energy (nonzero on the last-bead owner)."""
        return self._exchange_energy

    @property
    def exchange_energy_expectation(self) -> float:
        """Local share of the exchange spring energy expectation."""
        return self._exchange_expectation

    @property
    def spring_energy(self) -> float:
        """Local share of the total spring energy."""
        return self._interior_energy + self._exchange_energy
