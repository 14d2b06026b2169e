"""Tests for RingPolymerState."""

import numpy as np
import pytest

from pimdcore.system.state import RingPolymerState


@pytest.fixture
def coordinates():
    """Four beads of two particles."""
    rng = np.random.default_rng(3)
    return rng.normal(size=(4, 2, 3))


class TestStateCreation:
    """Test state construction and validation."""

    def test_create_defaults(self, coordinates):
        """Test that create fills zero momenta and forces."""
        state = RingPolymerState.create(coordinates, mass=2.0)
        assert state.nbeads == 4
        assert state.n_local_beads == 4
        assert state.natoms == 2
        assert np.all(state.momenta == 0.0)
        assert np.all(state.forces == 0.0)
        assert state.prev_coordinates.shape == (2, 3)
        assert state.next_coordinates.shape == (2, 3)

    def test_bad_coordinate_shape(self):
        """Test that coordinates must be (beads, natoms, 3)."""
        with pytest.raises(ValueError):
            RingPolymerState.create(np.zeros((4, 3)), mass=1.0)

    def test_momenta_shape_mismatch(self, coordinates):
        """Test that momenta must match the coordinates."""
        with pytest.raises(ValueError):
            RingPolymerState.create(coordinates, mass=1.0, momenta=np.zeros((4, 3, 3)))

    def test_non_positive_mass(self, coordinates):
        """Test that mass must be positive."""
        with pytest.raises(ValueError):
            RingPolymerState.create(coordinates, mass=0.0)

    def test_bead_range_outside_ring(self, coordinates):
        """Test that the local range must fit inside the ring."""
        with pytest.raises(ValueError):
            RingPolymerState.create(coordinates, mass=1.0, nbeads=6, first_bead=3)


class TestBeadOwnership:
    """Test bead ownership queries of a partitioned ring."""

    def test_single_worker_owns_both(self, coordinates):
        """Test that a serial worker owns both boundary beads."""
        state = RingPolymerState.create(coordinates, mass=1.0)
        assert state.owns_first_bead and state.owns_last_bead
        first, last = state.boundary_coordinates()
        assert np.array_equal(first, coordinates[0])
        assert np.array_equal(last, coordinates[-1])

    def test_middle_worker(self, coordinates):
        """Test a worker owning neither boundary bead."""
        state = RingPolymerState.create(coordinates[:2], mass=1.0, nbeads=8, first_bead=3)
        assert state.last_bead == 4
        assert np.array_equal(state.bead_indices, [3, 4])
        assert not state.owns_boundary_bead
        assert state.boundary_coordinates() is None

    def test_first_owner_uses_prev_cache(self, coordinates):
        """Test that the bead-0 owner sees the last bead via its prev cache."""
        state = RingPolymerState.create(coordinates[:2], mass=1.0, nbeads=4, first_bead=0)
        state.prev_coordinates[:] = coordinates[3]
        first, last = state.boundary_coordinates()
        assert np.array_equal(first, coordinates[0])
        assert np.array_equal(last, coordinates[3])

    def test_last_owner_uses_next_cache(self, coordinates):
        """Test that the last-bead owner sees bead 0 via its next cache."""
        state = RingPolymerState.create(coordinates[2:], mass=1.0, nbeads=4, first_bead=2)
        state.next_coordinates[:] = coordinates[0]
        first, last = state.boundary_coordinates()
        assert np.array_equal(first, coordinates[0])
        assert np.array_equal(last, coordinates[3])


class TestStateProperties:
    """Test derived quantities."""

    def test_kinetic_energy(self, coordinates):
        """Test kinetic energy sum p^2 / 2m."""
        momenta = np.ones_like(coordinates)
        state = RingPolymerState.create(coordinates, mass=2.0, momenta=momenta)
        assert np.isclose(state.kinetic_energy, 0.5 * momenta.size / 2.0)

    def test_copy_is_deep(self, coordinates):
        """Test that copies do not share arrays."""
        state = RingPolymerState.create(coordinates, mass=1.0)
        clone = state.copy()
        clone.coordinates[0, 0, 0] += 1.0
        clone.prev_coordinates[0, 0] += 1.0
        assert state.coordinates[0, 0, 0] == coordinates[0, 0, 0]
        assert state.prev_coordinates[0, 0] == 0.0
