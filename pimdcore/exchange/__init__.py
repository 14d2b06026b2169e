"""Boundary-bead coupling: distinguishable and bosonic exchange, winding."""

from __future__ import annotations

from ..system import Box
from .base import ExchangeModel
from .bosonic import BosonicExchange
from .distinguishable import DistinguishableExchange
from .winding import WindingModel


def create_exchange_model(
    bosonic: bool,
    natoms: int,
    beta: float,
    spring_constant: float,
    box: Box | None = None,
    winding: WindingModel | None = None,
    apply_minimum_image: bool = False,
) -> ExchangeModel:
    """
    Select the exchange variant once, from the bosonic flag.

    Args:
        bosonic: Treat particles as indistinguishable bosons.
        natoms: Number of particles.
        beta: Inverse temperature.
        spring_constant: Ring-polymer spring constant.
        box: Simulation box.
        winding: Winding model for periodic boundary springs.
        apply_minimum_image: Apply minimum image to boundary separations.

    Returns:
        BosonicExchange or DistinguishableExchange instance.
    """
    cls = BosonicExchange if bosonic else DistinguishableExchange
    return cls(
        natoms=natoms,
        beta=beta,
        spring_constant=spring_constant,
        box=box,
        winding=winding,
        apply_minimum_image=apply_minimum_image,
    )


__all__ = [
    "ExchangeModel",
    "BosonicExchange",
    "DistinguishableExchange",
    "WindingModel",
    "create_exchange_model",
]
