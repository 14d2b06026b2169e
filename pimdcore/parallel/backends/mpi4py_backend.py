"""MPI backend using mpi4py."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ...errors import CommunicationError
from .base import ParallelBackend

if TYPE_CHECKING:
    from mpi4py import MPI as MPI_TYPE


class MPI4PyBackend(ParallelBackend):
    """
    MPI backend using mpi4py for distributed bead decomposition.

    This backend requires mpi4py to be installed and the program
    to be launched with mpirun/mpiexec.

    Example:
        mpirun -n 4 pimd config.yaml --backend mpi4py
    """

    def __init__(self) -> None:
        """Initialize MPI backend."""
        try:
            from mpi4py import MPI
        except ImportError as e:
            raise ImportError(
                "mpi4py is required for MPI backend. Install with: pip install mpi4py"
            ) from e

        self._MPI = MPI
        self._comm = MPI.COMM_WORLD
        self._rank = self._comm.Get_rank()
        self._size = self._comm.Get_size()

    @property
    def name(self) -> str:
        """Return backend name."""
        return "mpi4py"

    @property
    def n_workers(self) -> int:
        """Return number of MPI processes."""
        return self._size

    @property
    def rank(self) -> int:
        """Return MPI rank of current process."""
        return self._rank

    @property
    def comm(self) -> MPI_TYPE.Comm:
        """Return MPI communicator."""
        return self._comm

    def exchange_ring(
        self,
        first_slice: NDArray[np.floating],
        last_slice: NDArray[np.floating],
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """
        Swap boundary time-slices with the neighboring ranks.

        Two blocking Sendrecv calls: our last slice travels forward around
        the ring, our first slice travels backward.
        """
        first_slice = np.ascontiguousarray(first_slice, dtype=np.float64)
        last_slice = np.ascontiguousarray(last_slice, dtype=np.float64)
        prev_slice = np.empty_like(last_slice)
        next_slice = np.empty_like(first_slice)
        try:
            self._comm.Sendrecv(
                last_slice, dest=self.next_rank, recvbuf=prev_slice, source=self.prev_rank
            )
            self._comm.Sendrecv(
                first_slice, dest=self.prev_rank, recvbuf=next_slice, source=self.next_rank
            )
        except self._MPI.Exception as e:
            raise CommunicationError(f"Ring exchange failed on rank {self._rank}: {e}") from e
        return prev_slice, next_slice

    def allreduce_sum(self, local_data: ArrayLike) -> NDArray[np.floating]:
        """
        Sum-reduce data to all ranks.

        Args:
            local_data: Local data to reduce.

        Returns:
            Reduced sum on all ranks.
        """
        local_data = np.ascontiguousarray(local_data, dtype=np.float64)
        result = np.zeros_like(local_data)
        try:
            self._comm.Allreduce(local_data, result, op=self._MPI.SUM)
        except self._MPI.Exception as e:
            raise CommunicationError(f"Allreduce failed on rank {self._rank}: {e}") from e
        return result

    def broadcast(self, data: Any, root: int = 0) -> Any:
        """
        Broadcast data from root to all ranks.

        Args:
            data: Data to broadcast (only needed on root).
            root: Rank of the root process.

        Returns:
            Broadcasted data on all ranks.
        """
        try:
            return self._comm.bcast(data, root=root)
        except self._MPI.Exception as e:
            raise CommunicationError(f"Broadcast failed on rank {self._rank}: {e}") from e

    def barrier(self) -> None:
        """Synchronize all MPI processes."""
        self._comm.Barrier()
