"""Tests for the winding-number correction."""

import numpy as np
import pytest

from pimdcore.errors import NumericalInstabilityError
from pimdcore.exchange import WindingModel
from pimdcore.system import Box

BETA = 1.0
K = 1.5


@pytest.fixture
def model():
    """Winding model in a small box where several images contribute."""
    return WindingModel(BETA, K, box=Box.cubic(2.0), max_wind=2)


def brute_force_weights(diff, box_length, cutoff):
    """Per-vector Boltzmann weights and energies over the full vector table."""
    vectors = WindingModel.initialize_winding_vectors(cutoff)
    shifted = diff + vectors * box_length
    energies = 0.5 * K * np.sum(shifted**2, axis=-1)
    return np.exp(-BETA * energies), energies


class TestWindingVectors:
    """Test the winding vector table."""

    def test_table_size(self):
        """Test that the table holds (2c + 1)^3 vectors."""
        vectors = WindingModel.initialize_winding_vectors(2)
        assert vectors.shape == (125, 3)

    def test_table_symmetric(self):
        """Test that every vector appears together with its negation."""
        vectors = WindingModel.initialize_winding_vectors(1)
        as_set = {tuple(v) for v in vectors}
        assert all(tuple(-v) in as_set for v in vectors)
        assert (0, 0, 0) in as_set

    def test_zero_cutoff(self):
        """Test that cutoff zero enumerates only the zero vector."""
        vectors = WindingModel.initialize_winding_vectors(0)
        assert np.array_equal(vectors, [[0, 0, 0]])


class TestWindingWeights:
    """Test log-weights and energies against direct enumeration."""

    def test_log_weight_matches_enumeration(self, model):
        """Test the factorized log-weight against the full vector sum."""
        diff = np.array([0.3, -0.9, 1.4])
        weights, _ = brute_force_weights(diff, 2.0, 2)
        assert model.separation_log_weight(diff) == pytest.approx(np.log(weights.sum()))

    def test_log_weight_from_positions(self, model):
        """Test that log_winding_weight uses right - left."""
        left = np.array([0.1, 0.2, 0.3])
        right = np.array([1.0, -0.5, 0.9])
        assert model.log_winding_weight(left, right) == pytest.approx(
            model.separation_log_weight(right - left)
        )

    def test_negation_symmetry(self, model):
        """Test that swapping the endpoints leaves the weight unchanged."""
        diff = np.array([0.7, -0.2, 1.1])
        assert model.separation_log_weight(diff) == pytest.approx(
            model.separation_log_weight(-diff)
        )

    def test_energy_expectation_matches_enumeration(self, model):
        """Test the expected spring energy against the full vector sum."""
        diff = np.array([0.5, 0.9, -1.2])
        weights, energies = brute_force_weights(diff, 2.0, 2)
        expected = np.sum(weights * energies) / np.sum(weights)
        assert model.separation_energy_expectation(diff) == pytest.approx(expected)

    def test_batched_shapes(self, model):
        """Test that leading axes are preserved."""
        diff = np.random.default_rng(1).normal(size=(4, 5, 3))
        assert model.separation_log_weight(diff).shape == (4, 5)
        assert model.separation_energy_expectation(diff).shape == (4, 5)
        assert model.gradient(diff).shape == (4, 5, 3)

    def test_non_finite_separation(self, model):
        """Test that a non-finite separation is reported."""
        with pytest.raises(NumericalInstabilityError):
            model.separation_log_weight(np.array([np.nan, 0.0, 0.0]))


class TestWindingProbabilities:
    """Test winding-number probabilities."""

    def test_probabilities_normalized(self, model):
        """Test that per-component probabilities sum to one."""
        diff = np.random.default_rng(2).normal(size=(6, 3))
        probs = model.probabilities(diff)
        assert probs.shape == (6, 3, 5)
        assert np.allclose(probs.sum(axis=-1), 1.0)
        assert np.all(probs >= 0.0)

    def test_probability_outside_cutoff(self, model):
        """Test that winding numbers beyond the cutoff have probability zero."""
        assert np.all(model.probability(np.zeros(3), 3) == 0.0)

    def test_zero_separation_prefers_zero_image(self, model):
        """Test that the direct image dominates at zero separation."""
        probs = model.probability(np.zeros(3), 0)
        assert np.all(probs > model.probability(np.zeros(3), 1))
        assert np.allclose(model.probability(np.zeros(3), 1), model.probability(np.zeros(3), -1))


class TestWindingDisabled:
    """Test the reduction to the plain spring."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"box": None, "max_wind": 3},
            {"box": Box.cubic(2.0), "max_wind": 0},
            {"box": Box.cubic(2.0), "max_wind": 3, "enabled": False},
        ],
    )
    def test_plain_spring(self, kwargs):
        """Test that only the zero image is used without winding."""
        model = WindingModel(BETA, K, **kwargs)
        diff = np.array([0.4, -1.3, 0.8])
        plain = 0.5 * K * np.sum(diff**2)
        assert not model.is_active
        assert model.separation_log_weight(diff) == pytest.approx(-BETA * plain)
        assert model.separation_energy_expectation(diff) == pytest.approx(plain)
        assert np.allclose(model.probability(diff, 0), 1.0)
        assert np.allclose(model.gradient(diff), K * diff)

    def test_negative_cutoff(self):
        """Test that a negative cutoff is rejected."""
        with pytest.raises(ValueError):
            WindingModel(BETA, K, box=Box.cubic(2.0), max_wind=-1)


class TestWindingGradient:
    """Test the effective-energy gradient."""

    def test_gradient_finite_difference(self, model):
        """Test gradient of -log(W) / beta against central differences."""
        diff = np.array([0.8, -0.6, 1.7])
        h = 1e-6
        numeric = np.zeros(3)
        for axis in range(3):
            step = np.zeros(3)
            step[axis] = h
            plus = -model.separation_log_weight(diff + step) / BETA
            minus = -model.separation_log_weight(diff - step) / BETA
            numeric[axis] = (plus - minus) / (2 * h)
        assert np.allclose(model.gradient(diff), numeric, rtol=1e-6, atol=1e-8)

    def test_effective_energy_periodic(self):
        """Test that shifting one endpoint by a box length leaves the energy unchanged."""
        model = WindingModel(BETA, K, box=Box.cubic(2.0), max_wind=6)
        left = np.array([0.2, 0.3, 0.4])
        right = np.array([0.9, -0.1, 0.5])
        shifted = right + np.array([2.0, 0.0, -2.0])
        assert model.effective_energy(left, shifted) == pytest.approx(
            model.effective_energy(left, right), rel=1e-10
        )
