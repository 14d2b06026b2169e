"""Per-bead trajectory and winding-probability writers."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .base import StateWriter

if TYPE_CHECKING:
    from ..exchange import ExchangeModel, WindingModel
    from ..system import RingPolymerState

BEAD_QUANTITIES = ("position", "velocity", "force")


class BeadTrajectoryWriter(StateWriter):
    """
    XYZ trajectory of one time-slice.

    Each frame holds the particle count, a comment line with the step and
    the quantity, and one ``X x y z`` line per particle, in internal units.

    Attributes:
        bead: Global index of the time-slice written.
        quantity: One of "position", "velocity" or "force".
        precision: Number of decimal places.
    """

    def __init__(
        self,
        filename: str | Path,
        bead: int,
        quantity: str = "position",
        precision: int = 8,
    ) -> None:
        if quantity not in BEAD_QUANTITIES:
            raise ValueError(
                f"Unknown bead quantity '{quantity}', expected one of {BEAD_QUANTITIES}"
            )
        super().__init__(filename)
        self.bead = bead
        self.quantity = quantity
        self.precision = precision

    @classmethod
    def for_bead(
        cls, directory: str | Path, bead: int, quantity: str
    ) -> BeadTrajectoryWriter:
        """Create a writer named ``<quantity>_<bead>.xyz`` in ``directory``."""
        return cls(Path(directory) / f"{quantity}_{bead}.xyz", bead, quantity)

    def _values(self, state: RingPolymerState) -> NDArray[np.floating]:
        local = self.bead - state.first_bead
        if not 0 <= local < state.n_local_beads:
            raise ValueError(f"Bead {self.bead} is not owned by this worker")
        if self.quantity == "position":
            return state.coordinates[local]
        if self.quantity == "velocity":
            return state.momenta[local] / state.mass
        return state.forces[local]

    def write(self, state: RingPolymerState, step: int) -> None:
        values = self._values(state)
        f = self._handle()
        fmt = f"{{:.{self.precision}f}}"

        f.write(f"{len(values)}\n")
        f.write(f"step={step} bead={self.bead} quantity={self.quantity}\n")
        for row in values:
            f.write("X " + " ".join(fmt.format(v) for v in row) + "\n")
        f.flush()
        self._n_frames += 1


class WindingProbabilityWriter(StateWriter):
    """
    Winding-number probabilities of every particle's closing spring.

    One line per record: the step followed by, for each particle and each
    Cartesian component, the probability of every winding number from
    ``-max_wind`` to ``max_wind``. For bosons the closing spring of particle
    l may end on any first bead m, so the per-connection probabilities are
    averaged with the exchange connection probabilities P(l -> m). Only the
    worker owning the last time-slice writes.
    """

    def __init__(
        self,
        filename: str | Path,
        winding: WindingModel,
        exchange: ExchangeModel,
        precision: int = 6,
    ) -> None:
        super().__init__(filename)
        self.winding = winding
        self.exchange = exchange
        self.precision = precision

    def probabilities(self, state: RingPolymerState) -> NDArray[np.floating] | None:
        """Probabilities of shape (natoms, 3, M), or None off the last bead."""
        boundary = state.boundary_coordinates()
        if boundary is None or not state.owns_last_bead:
            return None
        first, last = boundary
        if not self.exchange.is_bosonic:
            return self.winding.probabilities(self.exchange.separation(last, first))

        # diff[l, m] closes the last bead of l onto the first bead of m
        diff = self.exchange.separation(last[:, np.newaxis, :], first[np.newaxis, :, :])
        per_connection = self.winding.probabilities(diff)
        return np.einsum(
            "lm,lmdk->ldk", self.exchange.connection_probabilities, per_connection
        )

    def write(self, state: RingPolymerState, step: int) -> None:
        probs = self.probabilities(state)
        if probs is None:
            return
        f = self._handle()
        if self._n_frames == 0:
            numbers = " ".join(str(n) for n in self.winding.winding_numbers)
            f.write(f"# step | per particle and component: n = {numbers}\n")
        fmt = f"{{:.{self.precision}e}}"
        f.write(f"{step} " + " ".join(fmt.format(p) for p in probs.ravel()) + "\n")
        f.flush()
        self._n_frames += 1
