"""Serial (single-worker) backend."""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .base import ParallelBackend


class SerialBackend(ParallelBackend):
    """
    Serial backend for single-worker execution.

    The whole ring polymer lives in one worker, so the ring exchange is an
    in-process lookup: the time-slice before the first one is our own last
    slice and vice versa.
    """

    @property
    def name(self) -> str:
        """Return backend name."""
        return "serial"

    @property
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        return 1

    @property
    def rank(self) -> int:
        """Return rank of current worker."""
        return 0

    def exchange_ring(
        self,
        first_slice: NDArray[np.floating],
        last_slice: NDArray[np.floating],
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """Ring exchange with ourselves."""
        return np.array(last_slice, dtype=np.float64), np.array(
            first_slice, dtype=np.float64
        )

    def allreduce_sum(self, local_data: ArrayLike) -> NDArray[np.floating]:
        """Allreduce is a no-op in serial; just return local data."""
        return np.array(local_data, dtype=np.float64)

    def broadcast(self, data: Any, root: int = 0) -> Any:
        """Broadcast is a no-op in serial; just return data."""
        if data is None:
            raise ValueError("Data must be provided in serial mode")
        return data

    def barrier(self) -> None:
        """Barrier is a no-op in serial."""
        pass
