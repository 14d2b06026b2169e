"""System state and box management."""

from .box import Box
from .state import RingPolymerState

__all__ = ["Box", "RingPolymerState"]
