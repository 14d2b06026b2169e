#!/usr/bin/env python
"""
Quick start example - the simplest way to run a PIMD simulation.

This demonstrates the high-level API for users who just want results
without dealing with the internal details.

Usage:
    python examples/quickstart.py
"""

import numpy as np

from pimdcore import simulate
from pimdcore.config import PotentialSpec, SimulationParams


def exact_distinguishable(natoms, temperature, omega=1.0):
    """Exact energy of distinguishable particles in a harmonic trap."""
    return 1.5 * natoms * omega / np.tanh(omega / (2.0 * temperature))


def main():
    print("=" * 60)
    print("PIMD Quick Start")
    print("=" * 60)

    # 1. Simplest possible simulation
    print("\n1. Two bosons in a harmonic trap:")
    print("-" * 40)
    result = simulate.harmonic_bosons(steps=2000)
    print(f"   <E> = {result.mean_total_energy:.4f}")
    print(f"   Distinguishable reference: {exact_distinguishable(2, 0.5):.4f}")

    # 2. Same system without exchange
    print("\n2. Two distinguishable particles:")
    print("-" * 40)
    result = simulate.harmonic_bosons(steps=2000, bosonic=False)
    print(f"   <E> = {result.mean_total_energy:.4f}")

    # 3. Full parameter control
    print("\n3. Periodic bosons with winding:")
    print("-" * 40)
    params = SimulationParams(
        temperature=0.5,
        mass=1.0,
        dt=0.05,
        natoms=3,
        nbeads=8,
        steps=1000,
        size=4.0,
        pbc=True,
        bosonic=True,
        apply_mic_spring=True,
        apply_wind=True,
        max_wind=1,
        apply_wrap_first=True,
        seed=7,
        interaction_potential=PotentialSpec("gaussian", {"g": 1.0, "sigma": 0.5}),
    )
    result = simulate.run(params)
    print(f"   <K> = {result.mean_kinetic_energy:.4f}")
    print(f"   <V> = {result.mean_potential_energy:.4f}")

    print("\n" + "=" * 60)
    print("All examples completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
