"""Physical potentials: external traps and pairwise interactions."""

from __future__ import annotations

from typing import Any

from ..errors import ConfigurationError
from ..system import Box
from .base import FreePotential, Potential
from .external import DoubleWellPotential, HarmonicPotential
from .pairwise import (
    DipolePairPotential,
    GaussianPairPotential,
    HarmonicPairPotential,
    LennardJonesPairPotential,
    PairPotential,
)

EXTERNAL_POTENTIALS: dict[str, type[Potential]] = {
    "free": FreePotential,
    "harmonic": HarmonicPotential,
    "double_well": DoubleWellPotential,
}

INTERACTION_POTENTIALS: dict[str, type[Potential]] = {
    "free": FreePotential,
    "harmonic": HarmonicPairPotential,
    "gaussian": GaussianPairPotential,
    "dipole": DipolePairPotential,
    "lennard_jones": LennardJonesPairPotential,
}


def create_potential(
    kind: str,
    name: str,
    options: dict[str, Any] | None = None,
    mass: float | None = None,
    box: Box | None = None,
    minimum_image: bool = False,
) -> Potential:
    """
    Build a potential from its configured name and options.

    Args:
        kind: "external" or "interaction".
        name: Potential name, e.g. "harmonic" or "lennard_jones".
        options: Keyword options forwarded to the potential constructor.
        mass: Particle mass, passed to potentials that need it.
        box: Simulation box, passed to pair potentials.
        minimum_image: Apply the minimum image to pair separations.

    Returns:
        Potential instance.

    Raises:
        ConfigurationError: If the kind or name is unknown, or the options
            do not match the potential.
    """
    registries = {
        "external": EXTERNAL_POTENTIALS,
        "interaction": INTERACTION_POTENTIALS,
    }
    if kind not in registries:
        raise ConfigurationError(
            f"Unknown potential kind '{kind}', expected one of {sorted(registries)}"
        )
    registry = registries[kind]
    if name not in registry:
        raise ConfigurationError(
            f"Unknown {kind} potential '{name}', available: {sorted(registry)}"
        )

    cls = registry[name]
    kwargs = dict(options or {})
    if getattr(cls, "requires_mass", False):
        if mass is None:
            raise ConfigurationError(f"{kind} potential '{name}' requires a mass")
        kwargs.setdefault("mass", mass)
    if issubclass(cls, PairPotential):
        kwargs.setdefault("box", box)
        kwargs.setdefault("minimum_image", minimum_image)

    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid options for {kind} potential '{name}': {e}") from e


__all__ = [
    "Potential",
    "FreePotential",
    "HarmonicPotential",
    "DoubleWellPotential",
    "PairPotential",
    "HarmonicPairPotential",
    "GaussianPairPotential",
    "DipolePairPotential",
    "LennardJonesPairPotential",
    "EXTERNAL_POTENTIALS",
    "INTERACTION_POTENTIALS",
    "create_potential",
]
