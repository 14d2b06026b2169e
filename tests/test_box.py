"""Tests for Box class."""

from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from pimdcore.system.box import Box


class TestBoxCreation:
    """Test box creation methods."""

    def test_cubic_box(self):
        """Test creating a cubic box."""
        box = Box.cubic(10.0)
        assert np.allclose(box.lengths, [10.0, 10.0, 10.0])
        assert np.isclose(box.volume, 1000.0)

    def test_orthorhombic_box(self):
        """Test creating an orthorhombic box."""
        box = Box.orthorhombic(10.0, 20.0, 30.0)
        assert np.allclose(box.lengths, [10.0, 20.0, 30.0])
        assert np.isclose(box.volume, 6000.0)

    def test_scalar_lengths(self):
        """Test that a scalar length gives a cubic box."""
        box = Box.from_lengths(4.0)
        assert np.allclose(box.lengths, [4.0, 4.0, 4.0])

    def test_invalid_shape(self):
        """Test that invalid shapes raise errors."""
        with pytest.raises(ValueError):
            Box(np.array([1.0, 2.0]))

    def test_non_positive_length(self):
        """Test that zero or negative lengths raise errors."""
        with pytest.raises(ValueError):
            Box.cubic(0.0)

    def test_immutability(self):
        """Test that box is immutable."""
        box = Box.cubic(10.0)
        with pytest.raises(FrozenInstanceError):
            box.lengths = np.array([1.0, 1.0, 1.0])


class TestWrapping:
    """Test position wrapping."""

    def test_wrap_inside(self):
        """Test that positions inside the box are unchanged."""
        box = Box.cubic(10.0)
        positions = np.array([[1.0, 2.0, 3.0], [9.9, 0.0, 5.0]])
        assert np.allclose(box.wrap_positions(positions), positions)

    def test_wrap_outside(self):
        """Test that positions are mapped into [0, L)."""
        box = Box.cubic(10.0)
        positions = np.array([[11.0, -1.0, 25.0]])
        assert np.allclose(box.wrap_positions(positions), [[1.0, 9.0, 5.0]])

    def test_wrap_bead_array(self):
        """Test wrapping an array with a leading bead axis."""
        box = Box.cubic(5.0)
        positions = np.full((3, 2, 3), -0.5)
        wrapped = box.wrap_positions(positions)
        assert wrapped.shape == (3, 2, 3)
        assert np.allclose(wrapped, 4.5)


class TestMinimumImage:
    """Test minimum image convention."""

    def test_minimum_image_displacement(self):
        """Test mapping of a long displacement onto its short image."""
        box = Box.cubic(10.0)
        dr = box.minimum_image(np.array([1.0, 1.0, 1.0]), np.array([9.0, 1.0, 1.0]))
        assert np.allclose(dr, [-2.0, 0.0, 0.0])

    def test_minimum_image_distance(self):
        """Test minimum image distance across the boundary."""
        box = Box.cubic(10.0)
        d = box.minimum_image_distance(np.array([0.5, 0.0, 0.0]), np.array([9.5, 0.0, 0.0]))
        assert np.isclose(d, 1.0)

    def test_components_bounded(self):
        """Test that every component lies within half a box length."""
        box = Box.orthorhombic(3.0, 4.0, 5.0)
        rng = np.random.default_rng(0)
        dr = rng.uniform(-20.0, 20.0, size=(100, 3))
        mapped = box.minimum_image_displacement(dr)
        assert np.all(np.abs(mapped) <= box.lengths / 2 + 1e-12)
        # Mapping only adds whole box lengths
        shifts = (dr - mapped) / box.lengths
        assert np.allclose(shifts, np.round(shifts))
