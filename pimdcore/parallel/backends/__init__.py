"""Parallel backend implementations."""

from .base import ParallelBackend
from .serial import SerialBackend
from .threaded import ThreadedBackend, run_threaded

__all__ = [
    "ParallelBackend",
    "SerialBackend",
    "ThreadedBackend",
    "run_threaded",
]
