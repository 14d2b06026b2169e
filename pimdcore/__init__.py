"""
pimdcore - Path-integral molecular dynamics with bosonic exchange.

Design Principles:
- Ring-polymer representation of quantum particles
- Permutation-symmetric boundary springs at quadratic cost
- Winding-number correction for periodic boxes
- Deterministic + reproducible for a fixed seed
- Bead decomposition across MPI ranks

Quick Start:
    >>> from pimdcore import simulate
    >>> result = simulate.harmonic_bosons(natoms=2, nbeads=8, steps=2000)
    >>> print(f"Mean energy: {result.mean_total_energy:.3f}")
"""

__version__ = "0.1.0"

# High-level APIs
from . import plotting, simulate
from .config import PotentialSpec, SimulationParams, load_params
from .engines import Simulation
from .errors import CommunicationError, ConfigurationError, NumericalInstabilityError
from .exchange import BosonicExchange, DistinguishableExchange, WindingModel

# Core components for advanced users
from .system import Box, RingPolymerState

__all__ = [
    "simulate",
    "plotting",
    "Simulation",
    "SimulationParams",
    "PotentialSpec",
    "load_params",
    "Box",
    "RingPolymerState",
    "BosonicExchange",
    "DistinguishableExchange",
    "WindingModel",
    "ConfigurationError",
    "NumericalInstabilityError",
    "CommunicationError",
]
