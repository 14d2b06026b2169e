"""Time integration for ring-polymer molecular dynamics."""

from .langevin import LangevinThermostat
from .ring_polymer import RingPolymerIntegrator, SimulationPhase
from .velocity_verlet import VelocityVerlet

__all__ = [
    "LangevinThermostat",
    "RingPolymerIntegrator",
    "SimulationPhase",
    "VelocityVerlet",
]
