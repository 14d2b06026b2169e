"""Trajectory output and checkpoints."""

from .base import StateWriter
from .checkpoint import Checkpoint, CheckpointManager
from .states import BEAD_QUANTITIES, BeadTrajectoryWriter, WindingProbabilityWriter
from .xyz import read_xyz_positions

__all__ = [
    "StateWriter",
    "BeadTrajectoryWriter",
    "WindingProbabilityWriter",
    "BEAD_QUANTITIES",
    "Checkpoint",
    "CheckpointManager",
    "read_xyz_positions",
]
