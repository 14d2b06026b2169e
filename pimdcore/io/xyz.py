"""Reading initial particle positions from XYZ files."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from ..errors import ConfigurationError
from ..units import unit_to_internal


def read_xyz_positions(
    filename: str | Path, natoms: int, unit: str = "angstrom"
) -> NDArray[np.floating]:
    """
    Read the first frame of an XYZ file.

    Args:
        filename: Input file path.
        natoms: Expected number of particles.
        unit: Length unit of the file.

    Returns:
        Positions in internal units, shape (natoms, 3).

    Raises:
        ConfigurationError: If the file is missing, malformed or holds a
            different number of particles.
    """
    path = Path(filename)
    try:
        lines = path.read_text().splitlines()
    except OSError as e:
        raise ConfigurationError(f"Cannot read initial positions from {path}: {e}") from e

    try:
        n_atoms = int(lines[0].strip())
    except (IndexError, ValueError) as e:
        raise ConfigurationError(f"{path}: first line must hold the atom count") from e
    if n_atoms != natoms:
        raise ConfigurationError(f"{path} holds {n_atoms} atoms, expected {natoms}")
    if len(lines) < 2 + n_atoms:
        raise ConfigurationError(f"{path}: truncated frame")

    # Skip atom count and comment line
    positions = np.zeros((n_atoms, 3))
    for i, line in enumerate(lines[2 : 2 + n_atoms]):
        parts = line.split()
        try:
            positions[i] = [float(parts[1]), float(parts[2]), float(parts[3])]
        except (IndexError, ValueError) as e:
            raise ConfigurationError(f"{path}: malformed atom line {i + 3}") from e

    return positions * unit_to_internal("length", unit, 1.0)
