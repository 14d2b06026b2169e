"""
CI-friendly smoke tests.

These tests are designed to:
1. Run fast (<1s each)
2. Test core functionality end to end
3. Be deterministic (seeded RNG)
4. Run in serial (single rank)

Use for continuous integration to catch regressions quickly.
"""

import dataclasses

import numpy as np
import pytest

from pimdcore import Simulation, SimulationParams, simulate
from pimdcore.config import PotentialSpec

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def boson_params():
    """
    Create minimal bosonic run for smoke tests.

    4 bosons, 8 beads, periodic box with winding, deterministic seed.
    """
    return SimulationParams(
        temperature=0.5,
        mass=1.0,
        dt=0.05,
        natoms=4,
        nbeads=8,
        steps=20,
        seed=42,
        threshold=0.0,
        size=4.0,
        pbc=True,
        apply_mic_potential=True,
        apply_wrap_first=True,
        apply_wind=True,
        max_wind=1,
        bosonic=True,
        fixcom=True,
        interaction_potential=PotentialSpec("gaussian", {"g": 0.5, "sigma": 0.5}),
    )


# =============================================================================
# Simulation smoke tests
# =============================================================================


class TestSimulationSmoke:
    """Smoke tests for complete runs."""

    def test_run_completes(self, boson_params):
        """Test that a periodic bosonic run completes with finite output."""
        sim = Simulation(boson_params)
        sim.run()

        assert sim.step == boson_params.steps
        assert np.all(np.isfinite(sim.state.coordinates))
        for values in sim.series().values():
            assert len(values) == 20
            assert np.all(np.isfinite(values))

    def test_first_bead_wrapped(self, boson_params):
        """Test that time-slice 0 stays inside the box."""
        sim = Simulation(boson_params)
        sim.run()
        first = sim.state.coordinates[0]
        assert np.all((first >= 0.0) & (first < 4.0))

    def test_total_momentum_removed(self, boson_params):
        """Test that fixcom keeps the total momentum at zero."""
        sim = Simulation(boson_params)
        sim.run()
        np.testing.assert_allclose(sim.state.momenta.sum(axis=(0, 1)), 0.0, atol=1e-10)

    def test_distinguishable_run(self, boson_params):
        """Test the same system without exchange."""
        params = dataclasses.replace(boson_params, bosonic=False)
        sim = Simulation(params)
        sim.run()
        assert not sim.exchange.is_bosonic
        assert np.all(np.isfinite(sim.series()["kinetic"]))

    def test_harmonic_bosons(self):
        """Test the convenience runner."""
        result = simulate.harmonic_bosons(natoms=2, nbeads=4, steps=20)
        assert result.n_steps == 20
        assert np.isfinite(result.mean_total_energy)
