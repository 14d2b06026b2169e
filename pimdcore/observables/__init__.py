"""Observables computed from the ring-polymer state."""

from .base import Observable, ObservableFactory
from .energy import EnergyObservable

ObservableFactory.register("energy", EnergyObservable)

__all__ = ["Observable", "ObservableFactory", "EnergyObservable"]
