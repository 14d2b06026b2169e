"""Abstract base class for parallel backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ...errors import ConfigurationError


class ParallelBackend(ABC):
    """
    Abstract base class for parallelization backends.

    Each worker owns a contiguous block of ring-polymer time-slices. The only
    per-step communication is the ring exchange of the boundary time-slices
    of neighboring blocks, plus reductions of scalar observables. All
    operations are blocking and must be called by every worker in the same
    order.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return backend name."""
        ...

    @property
    @abstractmethod
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        ...

    @property
    @abstractmethod
    def rank(self) -> int:
        """Return rank of current worker (0 for serial)."""
        ...

    @property
    def is_root(self) -> bool:
        """Check if this is the root worker."""
        return self.rank == 0

    @property
    def prev_rank(self) -> int:
        """Rank owning the time-slices just before ours (cyclically)."""
        return (self.rank - 1) % self.n_workers

    @property
    def next_rank(self) -> int:
        """Rank owning the time-slices just after ours (cyclically)."""
        return (self.rank + 1) % self.n_workers

    @abstractmethod
    def exchange_ring(
        self,
        first_slice: NDArray[np.floating],
        last_slice: NDArray[np.floating],
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """
        Swap boundary time-slices with the neighboring workers.

        Our last slice goes to the next rank and our first slice to the
        previous rank.

        Args:
            first_slice: Coordinates of our first local time-slice, shape (natoms, 3).
            last_slice: Coordinates of our last local time-slice, shape (natoms, 3).

        Returns:
            Tuple (prev, next): the time-slice just before our first one and
            the time-slice just after our last one.
        """
        ...

    @abstractmethod
    def allreduce_sum(self, local_data: ArrayLike) -> NDArray[np.floating]:
        """
        Sum-reduce data from all workers to all workers.

        Args:
            local_data: Local data to reduce (scalar or array).

        Returns:
            Reduced sum on all ranks, as a float64 array.
        """
        ...

    @abstractmethod
    def broadcast(self, data: Any, root: int = 0) -> Any:
        """
        Broadcast data from root to all workers.

        Args:
            data: Data to broadcast (only needed on root).
            root: Rank of the root worker.

        Returns:
            Broadcasted data on all ranks.
        """
        ...

    @abstractmethod
    def barrier(self) -> None:
        """Synchronize all workers."""
        ...

    def partition_beads(self, nbeads: int) -> tuple[int, int]:
        """
        Get time-slice range for this worker.

        Args:
            nbeads: Total number of time-slices.

        Returns:
            Tuple of (start_index, end_index) for this worker.

        Raises:
            ConfigurationError: If there are more workers than time-slices.
        """
        if self.n_workers > nbeads:
            raise ConfigurationError(
                f"Cannot distribute {nbeads} beads over {self.n_workers} workers"
            )
        beads_per_worker = nbeads // self.n_workers
        remainder = nbeads % self.n_workers

        if self.rank < remainder:
            start = self.rank * (beads_per_worker + 1)
            end = start + beads_per_worker + 1
        else:
            start = self.rank * beads_per_worker + remainder
            end = start + beads_per_worker

        return start, end
