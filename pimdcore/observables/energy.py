"""Energy estimators for ring-polymer simulations."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ..units import unit_to_user
from .base import Observable

if TYPE_CHECKING:
    from ..engines.simulation import Simulation


class EnergyObservable(Observable):
    """
    Quantum kinetic and potential energy estimators.

    Reported quantities:
        kinetic: Primitive estimator
            3 N P / (2 beta) - sum_j (k/2) |x_{j+1} - x_j|^2
            where the ring-closing springs enter through the exchange model's
            permutation (and winding) averaged expectation.
        potential: (1/P) sum_j V(x_j), external plus interaction.
        classical_kinetic: sum p^2 / 2m over all beads.

    Every quantity is summed over workers, so all workers hold identical
    values after :meth:`calculate`.
    """

    family = "energy"

    def __init__(self, sim: Simulation, freq: int, out_unit: str = "") -> None:
        # Validates the unit early
        unit_to_user(self.family, out_unit, 1.0)
        super().__init__(sim, freq, out_unit)
        self.initialize(["kinetic", "potential", "classical_kinetic"])

    def calculate(self) -> None:
        params = self.sim.params
        pipeline = self.sim.pipeline
        state = self.sim.state

        local = np.array(
            [
                pipeline.interior_spring_energy + pipeline.exchange_energy_expectation,
                pipeline.physical_energy,
                state.kinetic_energy,
            ]
        )
        springs, potential, classical = self.sim.backend.allreduce_sum(local)

        kinetic = 1.5 * params.natoms * params.nbeads / params.beta - springs

        self.quantities["kinetic"] = unit_to_user(self.family, self.out_unit, kinetic)
        self.quantities["potential"] = unit_to_user(self.family, self.out_unit, potential)
        self.quantities["classical_kinetic"] = unit_to_user(
            self.family, self.out_unit, classical
        )
