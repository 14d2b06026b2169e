"""Bead decomposition across cooperating workers."""

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .backends.threaded import ThreadedBackend, run_threaded
from .dispatcher import create_backend, get_backend

__all__ = [
    "ParallelBackend",
    "SerialBackend",
    "ThreadedBackend",
    "run_threaded",
    "create_backend",
    "get_backend",
]
