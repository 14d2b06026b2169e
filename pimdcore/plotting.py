"""
Built-in plotting utilities for simulation results.

Example:
    >>> from pimdcore import simulate, plotting
    >>> result = simulate.harmonic_bosons()
    >>> plotting.energy(result)
    >>> plotting.save("energies.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .simulate import SimulationResult

# Try to import matplotlib, but don't fail if not available
try:
    import matplotlib.pyplot as plt

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False
    plt = None


def _check_matplotlib():
    """Check if matplotlib is available."""
    if not HAS_MATPLOTLIB:
        raise ImportError(
            "matplotlib is required for plotting. "
            "Install it with: pip install matplotlib"
        )


def energy(
    result: SimulationResult,
    show: bool = True,
    figsize: tuple[float, float] = (10, 6),
) -> None:
    """
    Plot recorded energy estimators.

    Shows the quantum kinetic, potential and total energy against the MD
    step, and the running mean of the total energy.

    Args:
        result: SimulationResult from a simulation.
        show: Whether to display the plot immediately.
        figsize: Figure size (width, height) in inches.
    """
    _check_matplotlib()

    fig, axes = plt.subplots(1, 2, figsize=figsize)
    steps = result.steps
    total = result.total_energy

    ax = axes[0]
    ax.plot(steps, result.kinetic_energy, "b-", label="Kinetic", alpha=0.7, lw=0.8)
    ax.plot(steps, result.potential_energy, "r-", label="Potential", alpha=0.7, lw=0.8)
    ax.plot(steps, total, "k-", label="Total", lw=1.2)
    ax.set_xlabel("Step")
    ax.set_ylabel("Energy")
    ax.set_title("Energy estimators")
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    if len(total) > 0:
        running = np.cumsum(total) / np.arange(1, len(total) + 1)
        ax.plot(steps, running, "k-", lw=1)
    ax.set_xlabel("Step")
    ax.set_ylabel("Running mean of total energy")
    ax.set_title(f"Mean total energy: {result.mean_total_energy:.4g}")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if show:
        plt.show()


def save(filename: str | Path, dpi: int = 150) -> None:
    """
    Save the current figure to file.

    Args:
        filename: Output filename (png, pdf, svg, etc.).
        dpi: Resolution in dots per inch.
    """
    _check_matplotlib()
    plt.savefig(filename, dpi=dpi, bbox_inches="tight")
