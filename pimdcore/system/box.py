"""Periodic simulation box."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class Box:
    """
    Orthorhombic simulation box.

    The box spans ``[0, L)`` along each Cartesian axis. Wrapping and the
    minimum-image convention are only meaningful when the simulation runs
    with periodic boundary conditions; the box is still used to place
    particles otherwise.

    Attributes:
        lengths: Side lengths [Lx, Ly, Lz].
    """

    lengths: NDArray[np.floating]

    def __post_init__(self) -> None:
        """Validate and convert lengths."""
        lengths = np.asarray(self.lengths, dtype=np.float64)
        if lengths.shape == ():
            lengths = np.full(3, float(lengths))
        if lengths.shape != (3,):
            raise ValueError(f"Box lengths must be scalar or (3,), got {lengths.shape}")
        if np.any(lengths <= 0):
            raise ValueError(f"Box lengths must be positive, got {lengths}")
        # Use object.__setattr__ since dataclass is frozen
        object.__setattr__(self, "lengths", lengths)

    @classmethod
    def orthorhombic(cls, lx: float, ly: float, lz: float) -> Box:
        """Create an orthorhombic box with given side lengths."""
        return cls(np.array([lx, ly, lz]))

    @classmethod
    def cubic(cls, length: float) -> Box:
        """Create a cubic box with given side length."""
        return cls.orthorhombic(length, length, length)

    @classmethod
    def from_lengths(cls, lengths: ArrayLike) -> Box:
        """Create a box from a scalar or a length-3 sequence."""
        return cls(np.asarray(lengths, dtype=np.float64))

    @property
    def volume(self) -> float:
        """Return box volume."""
        return float(np.prod(self.lengths))

    def wrap_positions(self, positions: NDArray[np.floating]) -> NDArray[np.floating]:
        """
        Wrap positions into the primary cell.

        Args:
            positions: Positions array of shape (..., 3).

        Returns:
            Wrapped positions of the same shape.
        """
        positions = np.asarray(positions)
        return positions - self.lengths * np.floor(positions / self.lengths)

    def minimum_image(
        self, r1: NDArray[np.floating], r2: NDArray[np.floating]
    ) -> NDArray[np.floating]:
        """
        Compute minimum image displacement vector r2 - r1.

        Args:
            r1: First position(s), shape (..., 3).
            r2: Second position(s), broadcastable against ``r1``.

        Returns:
            Displacement vector(s) under minimum image convention.
        """
        return self.minimum_image_displacement(np.asarray(r2) - np.asarray(r1))

    def minimum_image_displacement(
        self, dr: NDArray[np.floating]
    ) -> NDArray[np.floating]:
        """Map displacement vector(s) onto their shortest periodic image."""
        return dr - self.lengths * np.round(dr / self.lengths)

    def minimum_image_distance(
        self, r1: NDArray[np.floating], r2: NDArray[np.floating]
    ) -> float | NDArray[np.floating]:
        """Compute minimum image distance between positions."""
        dr = self.minimum_image(r1, r2)
        return np.linalg.norm(dr, axis=-1)
