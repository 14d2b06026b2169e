"""Ring-polymer state owned by one simulation worker."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass
class RingPolymerState:
    """
    Coordinates, momenta and forces of the beads owned by one worker.

    A worker owns the contiguous global bead range
    ``[first_bead, first_bead + n_local_beads)`` out of ``nbeads`` time-slices.
    The neighbor caches hold the coordinates of the time-slice just before the
    first local bead and just after the last local bead (cyclically), as
    received during the last neighbor exchange.

    Array extents are fixed at construction. All updates happen in place.

    Attributes:
        coordinates: Bead positions, shape (n_local_beads, natoms, 3).
        momenta: Bead momenta, shape (n_local_beads, natoms, 3).
        forces: Total bead forces, shape (n_local_beads, natoms, 3).
        prev_coordinates: Time-slice ``first_bead - 1 (mod nbeads)``, shape (natoms, 3).
        next_coordinates: Time-slice ``last_bead + 1 (mod nbeads)``, shape (natoms, 3).
        mass: Particle mass (all particles share it).
        nbeads: Total number of time-slices in the ring polymer.
        first_bead: Global index of the first local time-slice.
    """

    coordinates: NDArray[np.floating]
    momenta: NDArray[np.floating]
    forces: NDArray[np.floating]
    mass: float
    nbeads: int
    first_bead: int = 0
    prev_coordinates: NDArray[np.floating] = field(default=None)  # type: ignore[assignment]
    next_coordinates: NDArray[np.floating] = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        """Validate and convert arrays."""
        self.coordinates = np.asarray(self.coordinates, dtype=np.float64)
        self.momenta = np.asarray(self.momenta, dtype=np.float64)
        self.forces = np.asarray(self.forces, dtype=np.float64)

        if self.coordinates.ndim != 3 or self.coordinates.shape[2] != 3:
            raise ValueError(
                f"coordinates must have shape (n_local_beads, natoms, 3), "
                f"got {self.coordinates.shape}"
            )
        shape = self.coordinates.shape
        if self.momenta.shape != shape:
            raise ValueError(
                f"momenta shape {self.momenta.shape} incompatible with {shape}"
            )
        if self.forces.shape != shape:
            raise ValueError(f"forces shape {self.forces.shape} incompatible with {shape}")
        if self.mass <= 0:
            raise ValueError(f"mass must be positive, got {self.mass}")
        if self.first_bead < 0 or self.first_bead + shape[0] > self.nbeads:
            raise ValueError(
                f"bead range [{self.first_bead}, {self.first_bead + shape[0]}) "
                f"outside ring of {self.nbeads} beads"
            )

        if self.prev_coordinates is None:
            self.prev_coordinates = np.zeros(shape[1:], dtype=np.float64)
        if self.next_coordinates is None:
            self.next_coordinates = np.zeros(shape[1:], dtype=np.float64)
        self.prev_coordinates = np.asarray(self.prev_coordinates, dtype=np.float64)
        self.next_coordinates = np.asarray(self.next_coordinates, dtype=np.float64)
        if self.prev_coordinates.shape != shape[1:]:
            raise ValueError("prev_coordinates must have shape (natoms, 3)")
        if self.next_coordinates.shape != shape[1:]:
            raise ValueError("next_coordinates must have shape (natoms, 3)")

    @classmethod
    def create(
        cls,
        coordinates: ArrayLike,
        mass: float,
        nbeads: int | None = None,
        first_bead: int = 0,
        momenta: ArrayLike | None = None,
    ) -> RingPolymerState:
        """
        Create a state with zero forces and optional momenta.

        Args:
            coordinates: Bead positions, shape (n_local_beads, natoms, 3).
            mass: Particle mass.
            nbeads: Total ring size. Defaults to the number of local beads.
            first_bead: Global index of the first local bead.
            momenta: Bead momenta. Defaults to zeros.

        Returns:
            New RingPolymerState instance.
        """
        coordinates = np.asarray(coordinates, dtype=np.float64)
        if momenta is None:
            momenta = np.zeros_like(coordinates)
        if nbeads is None:
            nbeads = coordinates.shape[0]

        return cls(
            coordinates=coordinates,
            momenta=np.asarray(momenta, dtype=np.float64),
            forces=np.zeros_like(coordinates),
            mass=mass,
            nbeads=nbeads,
            first_bead=first_bead,
        )

    @property
    def n_local_beads(self) -> int:
        """Return the number of time-slices owned by this worker."""
        return self.coordinates.shape[0]

    @property
    def natoms(self) -> int:
        """Return the number of particles."""
        return self.coordinates.shape[1]

    @property
    def last_bead(self) -> int:
        """Return the global index of the last local time-slice."""
        return self.first_bead + self.n_local_beads - 1

    @property
    def bead_indices(self) -> NDArray[np.integer]:
        """Return global indices of the local time-slices."""
        return np.arange(self.first_bead, self.first_bead + self.n_local_beads)

    @property
    def owns_first_bead(self) -> bool:
        """Check if this worker owns time-slice 0."""
        return self.first_bead == 0

    @property
    def owns_last_bead(self) -> bool:
        """Check if this worker owns time-slice nbeads - 1."""
        return self.last_bead == self.nbeads - 1

    @property
    def owns_boundary_bead(self) -> bool:
        """Check if this worker owns time-slice 0 or nbeads - 1."""
        return self.owns_first_bead or self.owns_last_bead

    def boundary_coordinates(
        self,
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]] | None:
        """
        Return (first, last) time-slice coordinates visible to this worker.

        The first time-slice is either local or the ``next`` neighbor cache of
        the worker owning the last one, and vice versa. Returns None for
        workers owning neither boundary time-slice.
        """
        if self.owns_first_bead and self.owns_last_bead:
            return self.coordinates[0], self.coordinates[-1]
        if self.owns_first_bead:
            return self.coordinates[0], self.prev_coordinates
        if self.owns_last_bead:
            return self.next_coordinates, self.coordinates[-1]
        return None

    @property
    def kinetic_energy(self) -> float:
        """Compute kinetic energy of the local beads: sum(p^2 / 2m)."""
        return float(0.5 * np.sum(self.momenta**2) / self.mass)

    def copy(self) -> RingPolymerState:
        """Create a deep copy of this state."""
        return RingPolymerState(
            coordinates=self.coordinates.copy(),
            momenta=self.momenta.copy(),
            forces=self.forces.copy(),
            mass=self.mass,
            nbeads=self.nbeads,
            first_bead=self.first_bead,
            prev_coordinates=self.prev_coordinates.copy(),
            next_coordinates=self.next_coordinates.copy(),
        )
