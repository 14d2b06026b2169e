"""Force assembly for ring-polymer beads."""

from .pipeline import ForcePipeline

__all__ = ["ForcePipeline"]
