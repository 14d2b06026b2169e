"""Exception types raised by the simulation core."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid, missing or unknown configuration value.

    Raised while loading parameters or constructing a simulation; no partial
    simulation survives it.
    """


class NumericalInstabilityError(RuntimeError):
    """
    Internal-consistency fault in a numerical component.

    Attributes:
        component: Name of the component that detected the fault.
        step: MD step at which the fault surfaced (None until the
            simulation loop attaches it).
    """

    def __init__(self, component: str, message: str, step: int | None = None) -> None:
        self.component = component
        self.step = step
        self.detail = message
        super().__init__(self._format())

    def _format(self) -> str:
        where = f" at step {self.step}" if self.step is not None else ""
        return f"[{self.component}]{where}: {self.detail}"

    def at_step(self, step: int) -> NumericalInstabilityError:
        """Attach the step number and refresh the message."""
        self.step = step
        self.args = (self._format(),)
        return self


class CommunicationError(RuntimeError):
    """Neighbor exchange or reduction between workers failed."""
