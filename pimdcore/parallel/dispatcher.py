"""Backend dispatcher for selecting parallel backends."""

from __future__ import annotations

from typing import Literal

from ..errors import ConfigurationError
from .backends.base import ParallelBackend
from .backends.serial import SerialBackend

# Backends that can be created by name; threaded groups come from run_threaded
BackendType = Literal["serial", "mpi4py"]


def get_backend(
    backend: BackendType | ParallelBackend | None = None,
) -> ParallelBackend:
    """
    Get a parallel backend instance.

    Args:
        backend: Backend specification. Can be:
            - None: Serial backend
            - String: Create backend by name
            - ParallelBackend: Use provided instance directly

    Returns:
        ParallelBackend instance.

    Examples:
        >>> get_backend().name
        'serial'
    """
    if isinstance(backend, ParallelBackend):
        return backend
    if backend is None:
        return SerialBackend()
    return create_backend(backend)


def create_backend(name: BackendType) -> ParallelBackend:
    """
    Create a parallel backend by name.

    Args:
        name: Backend name.

    Returns:
        ParallelBackend instance.

    Raises:
        ConfigurationError: If backend name is unknown.
        ImportError: If required package is not installed.
    """
    if name == "serial":
        return SerialBackend()

    elif name == "mpi4py":
        from .backends.mpi4py_backend import MPI4PyBackend

        return MPI4PyBackend()

    else:
        raise ConfigurationError(f"Unknown backend: {name}. Available: serial, mpi4py")
