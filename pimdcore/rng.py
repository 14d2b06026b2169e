"""Random number streams owned by a simulation worker."""

from __future__ import annotations

from typing import Any

import numpy as np


class RandomSource:
    """
    Pair of seeded generators for one simulation worker.

    Both generators are spawned from a single ``SeedSequence(seed)`` with the
    worker rank in the spawn key, so every worker of a run gets independent
    but reproducible streams.

    Draw order (fixed, so that a seed reproduces the full trajectory):
        1. ``general``: initial positions (root worker only), then initial
           momenta of the local beads in bead order.
        2. ``thermal``: per MD step, one array of shape
           (local beads, natoms, 3) for the first thermostat half-step and one
           for the second. Nothing is drawn when the thermostat is disabled.

    Attributes:
        seed: Entropy the streams were derived from.
        rank: Worker rank mixed into the spawn key.
        general: Generator for position and momentum sampling (MT19937).
        thermal: Generator for thermostat noise (PCG64).
    """

    def __init__(self, seed: int, rank: int = 0) -> None:
        """
        Initialize the random streams.

        Args:
            seed: Non-negative integer seed shared by all workers of a run.
            rank: Rank of the owning worker.
        """
        self.seed = int(seed)
        self.rank = rank

        root = np.random.SeedSequence(self.seed, spawn_key=(rank,))
        general_seq, thermal_seq = root.spawn(2)
        self.general = np.random.Generator(np.random.MT19937(general_seq))
        self.thermal = np.random.Generator(np.random.PCG64(thermal_seq))

    @staticmethod
    def fresh_seed() -> int:
        """Draw fresh OS entropy suitable for the ``seed`` argument."""
        return int(np.random.SeedSequence().entropy % (2**63))

    def get_state(self) -> dict[str, Any]:
        """Snapshot both bit generators."""
        return {
            "seed": self.seed,
            "rank": self.rank,
            "general": self.general.bit_generator.state,
            "thermal": self.thermal.bit_generator.state,
        }

    def set_state(self, state: dict[str, Any]) -> None:
        """Restore both bit generators from :meth:`get_state` output."""
        self.general.bit_generator.state = state["general"]
        self.thermal.bit_generator.state = state["thermal"]
