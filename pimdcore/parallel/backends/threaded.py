"""In-process worker group backed by threads."""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ...errors import CommunicationError
from .base import ParallelBackend

T = TypeVar("T")


class _WorkerGroup:
    """Mailboxes and a barrier shared by all workers of one group."""

    def __init__(self, n_workers: int, timeout: float) -> None:
        self.n_workers = n_workers
        self.timeout = timeout
        self.barrier = threading.Barrier(n_workers, timeout=timeout)
        # mailboxes[(source, dest)] carries point-to-point messages in order
        self.mailboxes: dict[tuple[int, int], queue.Queue] = {
            (src, dst): queue.Queue()
            for src in range(n_workers)
            for dst in range(n_workers)
        }
        self.slots: list[Any] = [None] * n_workers

    def abort(self) -> None:
        self.barrier.abort()


class ThreadedBackend(ParallelBackend):
    """
    Backend for a group of workers running as threads of one process.

    Behaves like the MPI backend (blocking ring exchange, deterministic
    rank-ordered reductions) without an MPI installation. Create groups with
    :func:`run_threaded`.

    Attributes:
        timeout: Seconds to wait for a neighbor before giving up.
    """

    def __init__(self, group: _WorkerGroup, rank: int) -> None:
        self._group = group
        self._rank = rank
        self.timeout = group.timeout

    @property
    def name(self) -> str:
        """Return backend name."""
        return "threaded"

    @property
    def n_workers(self) -> int:
        """Return number of workers in the group."""
        return self._group.n_workers

    @property
    def rank(self) -> int:
        """Return rank of this worker."""
        return self._rank

    def _send(self, dest: int, data: Any) -> None:
        self._group.mailboxes[(self._rank, dest)].put(data)

    def _recv(self, source: int) -> Any:
        try:
            return self._group.mailboxes[(source, self._rank)].get(timeout=self.timeout)
        except queue.Empty as e:
            raise CommunicationError(
                f"Worker {self._rank} timed out waiting for worker {source}"
            ) from e

    def _wait(self) -> None:
        try:
            self._group.barrier.wait()
        except threading.BrokenBarrierError as e:
            raise CommunicationError(f"Worker group broken at rank {self._rank}") from e

    def exchange_ring(
        self,
        first_slice: NDArray[np.floating],
        last_slice: NDArray[np.floating],
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """Swap boundary time-slices through the mailboxes."""
        self._send(self.next_rank, np.array(last_slice, dtype=np.float64))
        self._send(self.prev_rank, np.array(first_slice, dtype=np.float64))
        prev_slice = self._recv(self.prev_rank)
        next_slice = self._recv(self.next_rank)
        return prev_slice, next_slice

    def allreduce_sum(self, local_data: ArrayLike) -> NDArray[np.floating]:
        """Sum contributions in rank order so every worker gets the same bits."""
        self._group.slots[self._rank] = np.array(local_data, dtype=np.float64)
        self._wait()
        total = np.zeros_like(self._group.slots[0])
        for contribution in self._group.slots:
            total = total + contribution
        self._wait()
        return total

    def broadcast(self, data: Any, root: int = 0) -> Any:
        """Broadcast data from root to all workers."""
        if self._rank == root:
            self._group.slots[root] = data
        self._wait()
        result = self._group.slots[root]
        self._wait()
        return result

    def barrier(self) -> None:
        """Synchronize all workers."""
        self._wait()


def run_threaded(
    func: Callable[[ThreadedBackend], T],
    n_workers: int,
    timeout: float = 60.0,
) -> list[T]:
    """
    Run ``func`` once per worker of a fresh threaded group.

    Args:
        func: Callable receiving the worker's backend.
        n_workers: Number of workers.
        timeout: Seconds a worker waits on a neighbor before failing.

    Returns:
        Results of ``func`` ordered by rank.

    Raises:
        Exception: The first failure among the workers, by rank.
    """
    if n_workers < 1:
        raise ValueError(f"n_workers must be positive, got {n_workers}")

    group = _WorkerGroup(n_workers, timeout)

    def _worker(rank: int) -> T:
        try:
            return func(ThreadedBackend(group, rank))
        except BaseException:
            # Release the other workers instead of letting them hang
            group.abort()
            raise

    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        futures = [executor.submit(_worker, rank) for rank in range(n_workers)]

    errors = [f.exception() for f in futures]
    # Report the root cause rather than the follow-up broken-barrier errors
    for error in errors:
        if error is not None and not isinstance(error, CommunicationError):
            raise error
    for error in errors:
        if error is not None:
            raise error
    return [f.result() for f in futures]
