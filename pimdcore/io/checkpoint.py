"""Per-worker checkpoints for deterministic restart."""

from __future__ import annotations

import gzip
import hashlib
import os
import pickle
import struct
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

# Checkpoint format version for compatibility checking
CHECKPOINT_VERSION = 1
CHECKPOINT_MAGIC = b"PIMD"  # Magic bytes for file identification
_HEADER_SIZE = 4 + 4 + 32


@dataclass
class Checkpoint:
    """
    Snapshot of one worker's share of a run.

    Holds everything needed to continue the trajectory bit for bit: the
    local bead coordinates and momenta, the step counter and the state of
    both random streams.

    Attributes:
        version: Checkpoint format version.
        timestamp: When the checkpoint was created.
        step: Number of completed MD steps.
        rank: Rank of the worker that wrote it.
        first_bead: Global index of the first local time-slice.
        coordinates: Local bead coordinates, shape (n_local, natoms, 3).
        momenta: Local bead momenta, shape (n_local, natoms, 3).
        rng_state: Output of ``RandomSource.get_state()``.
        metadata: Free-form run information.
    """

    version: int
    timestamp: str
    step: int
    rank: int
    first_bead: int
    coordinates: NDArray[np.floating]
    momenta: NDArray[np.floating]
    rng_state: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        step: int,
        rank: int,
        first_bead: int,
        coordinates: NDArray[np.floating],
        momenta: NDArray[np.floating],
        rng_state: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Checkpoint:
        """Create a checkpoint from copies of the given arrays."""
        return cls(
            version=CHECKPOINT_VERSION,
            timestamp=datetime.now().isoformat(),
            step=step,
            rank=rank,
            first_bead=first_bead,
            coordinates=np.array(coordinates, dtype=np.float64),
            momenta=np.array(momenta, dtype=np.float64),
            rng_state=rng_state,
            metadata=metadata or {},
        )


class CheckpointManager:
    """
    Manager for checkpoint I/O operations.

    Files are gzip-compressed, carry a magic/version header and a SHA-256
    checksum of the payload, and are written to a temporary file that
    replaces the target atomically.

    Example:
        manager = CheckpointManager("checkpoints/")
        manager.save(checkpoint, manager.filename_for(rank))
        checkpoint = manager.load(manager.filename_for(rank))
    """

    def __init__(self, directory: str | Path = ".", compress: bool = True) -> None:
        """
        Initialize checkpoint manager.

        Args:
            directory: Directory for checkpoint files.
            compress: Whether to gzip compress checkpoints.
        """
        self.directory = Path(directory)
        self.compress = compress
        self.directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def filename_for(rank: int) -> str:
        """Return the checkpoint filename of worker ``rank``."""
        return f"checkpoint_{rank}.chk"

    def save(self, checkpoint: Checkpoint, filename: str = "checkpoint_0.chk") -> Path:
        """
        Save checkpoint to file.

        Args:
            checkpoint: Checkpoint to save.
            filename: Output filename.

        Returns:
            Path to saved checkpoint.
        """
        filepath = self.directory / filename
        tmp_path = filepath.with_name(filepath.name + ".tmp")

        data = self._serialize(checkpoint)
        checksum = hashlib.sha256(data).digest()

        open_func = gzip.open if self.compress else open
        with open_func(tmp_path, "wb") as f:
            # Header: magic + version + checksum
            f.write(CHECKPOINT_MAGIC)
            f.write(struct.pack("<I", CHECKPOINT_VERSION))
            f.write(checksum)
            f.write(data)

        os.replace(tmp_path, filepath)
        return filepath

    def load(self, filename: str = "checkpoint_0.chk") -> Checkpoint:
        """
        Load checkpoint from file.

        Args:
            filename: Input filename.

        Returns:
            Loaded Checkpoint.

        Raises:
            ValueError: If file is invalid or corrupted.
            FileNotFoundError: If file doesn't exist.
        """
        filepath = self.directory / filename

        if not filepath.exists():
            raise FileNotFoundError(f"Checkpoint not found: {filepath}")

        try:
            open_func = gzip.open if self.compress else open
            with open_func(filepath, "rb") as f:
                content = f.read()
        except gzip.BadGzipFile:
            with open(filepath, "rb") as f:
                content = f.read()

        if len(content) < _HEADER_SIZE:
            raise ValueError("Invalid checkpoint file (too small)")
        if content[:4] != CHECKPOINT_MAGIC:
            raise ValueError("Invalid checkpoint file (bad magic)")

        version = struct.unpack("<I", content[4:8])[0]
        stored_checksum = content[8:_HEADER_SIZE]
        data = content[_HEADER_SIZE:]

        if hashlib.sha256(data).digest() != stored_checksum:
            raise ValueError("Checkpoint file corrupted (checksum mismatch)")
        if version > CHECKPOINT_VERSION:
            raise ValueError(
                f"Checkpoint version {version} not supported "
                f"(max supported: {CHECKPOINT_VERSION})"
            )

        return self._deserialize(data)

    def _serialize(self, checkpoint: Checkpoint) -> bytes:
        data = {
            "version": checkpoint.version,
            "timestamp": checkpoint.timestamp,
            "step": checkpoint.step,
            "rank": checkpoint.rank,
            "first_bead": checkpoint.first_bead,
            "coordinates": checkpoint.coordinates,
            "momenta": checkpoint.momenta,
            "rng_state": checkpoint.rng_state,
            "metadata": checkpoint.metadata,
        }
        return pickle.dumps(data, protocol=pickle.HIGHEST_PROTOCOL)

    def _deserialize(self, data: bytes) -> Checkpoint:
        loaded = pickle.loads(data)
        return Checkpoint(
            version=loaded["version"],
            timestamp=loaded["timestamp"],
            step=loaded["step"],
            rank=loaded["rank"],
            first_bead=loaded["first_bead"],
            coordinates=np.asarray(loaded["coordinates"]),
            momenta=np.asarray(loaded["momenta"]),
            rng_state=loaded.get("rng_state"),
            metadata=loaded.get("metadata", {}),
        )
