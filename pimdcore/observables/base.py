"""Base interface for observables recorded during a run."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..engines.simulation import Simulation


class Observable(ABC):
    """
    Abstract base class for quantities computed from the simulation state.

    An observable owns an ordered mapping from quantity label to value.
    :meth:`calculate` refreshes every value from the current state of the
    simulation; values are stored in the user unit ``out_unit``.

    Observables may reduce over workers, so every worker of a run must call
    :meth:`calculate` at the same steps.

    Attributes:
        sim: Simulation the observable reads from.
        freq: Recording frequency in steps.
        out_unit: Unit of the reported values.
        quantities: Ordered label -> value mapping.
    """

    family: str = "undefined"

    def __init__(self, sim: Simulation, freq: int, out_unit: str = "") -> None:
        self.sim = sim
        self.freq = freq
        self.out_unit = out_unit
        self.quantities: dict[str, float] = {}

    def initialize(self, labels: list[str]) -> None:
        """Declare the reported quantities, in output order."""
        self.quantities = {label: 0.0 for label in labels}

    def reset_values(self) -> None:
        """Zero all quantity values."""
        for label in self.quantities:
            self.quantities[label] = 0.0

    @property
    def labels(self) -> list[str]:
        """Return quantity labels in output order."""
        return list(self.quantities)

    @abstractmethod
    def calculate(self) -> None:
        """Recompute all quantity values from the simulation state."""
        ...


class ObservableFactory:
    """Create observables by their configured name."""

    _registry: dict[str, type[Observable]] = {}

    @classmethod
    def register(cls, name: str, observable_cls: type[Observable]) -> None:
        """Register an observable type under ``name``."""
        cls._registry[name] = observable_cls

    @classmethod
    def available(cls) -> list[str]:
        """Return registered observable names."""
        return sorted(cls._registry)

    @classmethod
    def create(
        cls, observable_type: str, sim: Simulation, freq: int, out_unit: str = ""
    ) -> Observable:
        """
        Create an observable.

        Args:
            observable_type: Registered observable name, e.g. "energy".
            sim: Simulation to observe.
            freq: Recording frequency in steps.
            out_unit: Output unit of the reported values.

        Returns:
            Observable instance.

        Raises:
            ConfigurationError: If the type or unit is unknown.
        """
        if observable_type not in cls._registry:
            raise ConfigurationError(
                f"Unknown observable '{observable_type}', available: {cls.available()}"
            )
        return cls._registry[observable_type](sim, freq, out_unit)
