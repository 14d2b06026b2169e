"""Base class for per-worker output writers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from ..system import RingPolymerState


class StateWriter(ABC):
    """
    Abstract base class for text writers fed from the ring-polymer state.

    Writers append one record per call to :meth:`write` and support use as
    a context manager.

    Example:
        with BeadTrajectoryWriter("position_0.xyz", bead=0) as writer:
            for step in range(n_steps):
                writer.write(state, step)
    """

    def __init__(self, filename: str | Path) -> None:
        """
        Initialize writer.

        Args:
            filename: Output file path.
        """
        self.filename = Path(filename)
        self._file: TextIO | None = None
        self._n_frames = 0

    @abstractmethod
    def write(self, state: RingPolymerState, step: int) -> None:
        """
        Append one record.

        Args:
            state: Ring-polymer state of this worker.
            step: Current MD step.
        """
        ...

    def open(self) -> None:
        """Open file for writing; a reopened writer appends to its records."""
        self.filename.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.filename.open("a" if self._n_frames else "w")

    def close(self) -> None:
        """Close file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def _handle(self) -> TextIO:
        if self._file is None:
            self.open()
        return self._file

    def __enter__(self) -> StateWriter:
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    @property
    def n_frames(self) -> int:
        """Number of records written."""
        return self._n_frames
