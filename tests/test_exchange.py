"""Tests for distinguishable and bosonic boundary springs."""

import numpy as np
import pytest

from pimdcore.exchange import (
    BosonicExchange,
    DistinguishableExchange,
    WindingModel,
    create_exchange_model,
)
from pimdcore.system import Box

BETA = 1.3
K = 0.8


def boundary_slices(natoms, seed=0, scale=0.7):
    """Random first and last time-slices."""
    rng = np.random.default_rng(seed)
    return rng.normal(scale=scale, size=(natoms, 3)), rng.normal(scale=scale, size=(natoms, 3))


def link_energies(first, last):
    """E[l, m] = k/2 |first[m] - last[l]|^2."""
    diff = first[np.newaxis, :, :] - last[:, np.newaxis, :]
    return 0.5 * K * np.sum(diff**2, axis=-1)


def compositions(n, start=0):
    """Yield every split of particles start..n-1 into consecutive blocks (u, v)."""
    if start == n:
        yield []
        return
    for end in range(start, n):
        for rest in compositions(n, end + 1):
            yield [(start, end)] + rest


def cycle_energy(energies, u, v):
    """Energy of the ring u -> u+1 -> ... -> v -> u."""
    chain = sum(energies[l, l + 1] for l in range(u, v))
    return chain + energies[v, u]


def brute_force_potential(first, last):
    """Effective potential summed block decomposition by block decomposition."""
    energies = link_energies(first, last)
    n = len(first)
    total = 0.0
    for blocks in compositions(n):
        weight = 1.0
        for u, v in blocks:
            weight *= np.exp(-BETA * cycle_energy(energies, u, v)) / (v + 1)
        total += weight
    return -np.log(total) / BETA


def numerical_forces(model, first, last, h=1e-6):
    """Central-difference forces on the first and last time-slices."""

    def energy(f, l):
        model.prepare(f, l)
        return model.spring_energy()

    forces = []
    for target in (0, 1):
        grad = np.zeros_like(first)
        for index in np.ndindex(first.shape):
            slices_plus = [first.copy(), last.copy()]
            slices_minus = [first.copy(), last.copy()]
            slices_plus[target][index] += h
            slices_minus[target][index] -= h
            grad[index] = (energy(*slices_plus) - energy(*slices_minus)) / (2 * h)
        forces.append(-grad)
    return forces


def make(cls, natoms, **kwargs):
    return cls(natoms=natoms, beta=BETA, spring_constant=K, **kwargs)


class TestDistinguishableExchange:
    """Test the classical ring closure."""

    def test_energy(self):
        """Test closing-spring energy against the closed form."""
        first, last = boundary_slices(3)
        model = make(DistinguishableExchange, 3)
        model.prepare(first, last)
        expected = 0.5 * K * np.sum((first - last) ** 2)
        assert model.spring_energy() == pytest.approx(expected)
        assert model.spring_energy_expectation() == pytest.approx(expected)
        assert np.allclose(model.pair_energies, 0.5 * K * np.sum((first - last) ** 2, axis=1))

    def test_forces(self):
        """Test closing-spring forces pull the boundary slices together."""
        first, last = boundary_slices(3)
        model = make(DistinguishableExchange, 3)
        model.prepare(first, last)
        f_first, f_last = model.spring_forces()
        assert np.allclose(f_first, -K * (first - last))
        assert np.allclose(f_last, K * (first - last))
        assert np.allclose(f_first + f_last, 0.0)

    def test_requires_prepare(self):
        """Test that queries before prepare raise."""
        model = make(DistinguishableExchange, 2)
        with pytest.raises(RuntimeError):
            model.spring_energy()

    def test_minimum_image(self):
        """Test that boundary separations use the minimum image when requested."""
        box = Box.cubic(4.0)
        model = make(DistinguishableExchange, 1, box=box, apply_minimum_image=True)
        model.prepare(np.array([[3.5, 0.0, 0.0]]), np.array([[0.5, 0.0, 0.0]]))
        assert model.spring_energy() == pytest.approx(0.5 * K * 1.0)

    def test_minimum_image_requires_box(self):
        """Test that the minimum image needs a box."""
        with pytest.raises(ValueError):
            make(DistinguishableExchange, 2, apply_minimum_image=True)


class TestBosonicExchange:
    """Test the bosonic exchange recurrence."""

    def test_single_particle_is_distinguishable(self):
        """Test that one boson closes its ring like a distinguishable particle."""
        first, last = boundary_slices(1)
        boson = make(BosonicExchange, 1)
        classical = make(DistinguishableExchange, 1)
        boson.prepare(first, last)
        classical.prepare(first, last)
        assert boson.spring_energy() == pytest.approx(classical.spring_energy())
        assert boson.spring_energy_expectation() == pytest.approx(
            classical.spring_energy_expectation()
        )
        for ours, theirs in zip(boson.spring_forces(), classical.spring_forces()):
            assert np.allclose(ours, theirs)

    def test_two_particles_match_permutation_sum(self):
        """Test two bosons against the explicit identity plus swap average."""
        first, last = boundary_slices(2, seed=4)
        energies = link_energies(first, last)
        e_identity = energies[0, 0] + energies[1, 1]
        e_swap = energies[0, 1] + energies[1, 0]
        weights = np.exp(-BETA * np.array([e_identity, e_swap]))

        model = make(BosonicExchange, 2)
        model.prepare(first, last)
        assert model.spring_energy() == pytest.approx(-np.log(weights.mean()) / BETA)

        p_identity, p_swap = weights / weights.sum()
        assert model.spring_energy_expectation() == pytest.approx(
            p_identity * e_identity + p_swap * e_swap
        )
        probs = model.connection_probabilities
        assert np.allclose(np.diag(probs), p_identity)
        assert probs[0, 1] == pytest.approx(p_swap)
        assert probs[1, 0] == pytest.approx(p_swap)

    @pytest.mark.parametrize("natoms", [3, 4, 5])
    def test_matches_block_enumeration(self, natoms):
        """Test the recurrence against enumeration of all ring decompositions."""
        first, last = boundary_slices(natoms, seed=natoms)
        model = make(BosonicExchange, natoms)
        model.prepare(first, last)
        assert model.spring_energy() == pytest.approx(brute_force_potential(first, last))

    @pytest.mark.parametrize("natoms", [2, 3, 6])
    def test_uniform_coupling(self, natoms):
        """Test that equal link energies c give the potential N c."""
        first = np.tile([0.3, -0.2, 0.5], (natoms, 1))
        last = np.tile([-0.4, 0.1, 0.9], (natoms, 1))
        c = 0.5 * K * np.sum((first[0] - last[0]) ** 2)
        model = make(BosonicExchange, natoms)
        model.prepare(first, last)
        assert model.spring_energy() == pytest.approx(natoms * c)
        assert model.spring_energy_expectation() == pytest.approx(natoms * c)

    def test_forward_backward_consistent(self):
        """Test that both recurrences give the same partition function."""
        first, last = boundary_slices(6, seed=9)
        model = make(BosonicExchange, 6)
        model.prepare(first, last)
        assert model.log_partition_function == pytest.approx(model._log_z_backward[0])

    def test_connection_probabilities_doubly_stochastic(self):
        """Test that every last bead and every first bead binds exactly once."""
        first, last = boundary_slices(7, seed=11, scale=0.4)
        model = make(BosonicExchange, 7)
        model.prepare(first, last)
        probs = model.connection_probabilities
        assert np.all(probs >= 0.0)
        assert np.allclose(probs.sum(axis=0), 1.0)
        assert np.allclose(probs.sum(axis=1), 1.0)

    def test_connection_structure(self):
        """Test that only ring closures and forward chain links appear."""
        first, last = boundary_slices(5, seed=2)
        model = make(BosonicExchange, 5)
        model.prepare(first, last)
        probs = model.connection_probabilities
        # Last bead l binds to first bead m only for m <= l or m = l + 1
        assert np.allclose(np.triu(probs, k=2), 0.0)

    def test_cycle_probabilities(self):
        """Test that the probability of ring decompositions covers every particle once."""
        first, last = boundary_slices(4, seed=6)
        model = make(BosonicExchange, 4)
        model.prepare(first, last)
        cycles = model.cycle_probabilities
        assert np.allclose(np.tril(cycles, k=-1), 0.0)
        # Every particle belongs to exactly one ring
        for particle in range(4):
            covering = sum(
                cycles[u, v] for u in range(particle + 1) for v in range(particle, 4)
            )
            assert covering == pytest.approx(1.0)

    @pytest.mark.parametrize("natoms", [2, 4])
    def test_forces_finite_difference(self, natoms):
        """Test forces against central differences of the effective potential."""
        first, last = boundary_slices(natoms, seed=13)
        model = make(BosonicExchange, natoms)
        model.prepare(first, last)
        f_first, f_last = model.spring_forces()
        n_first, n_last = numerical_forces(make(BosonicExchange, natoms), first, last)
        assert np.allclose(f_first, n_first, rtol=1e-5, atol=1e-7)
        assert np.allclose(f_last, n_last, rtol=1e-5, atol=1e-7)

    def test_distant_particles_decouple(self):
        """Test that well separated bosons reduce to distinguishable rings."""
        first, last = boundary_slices(3, seed=5, scale=0.05)
        offsets = np.array([[0.0, 0.0, 0.0], [20.0, 0.0, 0.0], [0.0, 20.0, 0.0]])
        first += offsets
        last += offsets
        boson = make(BosonicExchange, 3)
        classical = make(DistinguishableExchange, 3)
        boson.prepare(first, last)
        classical.prepare(first, last)
        # Only the identity decomposition survives, weighted by 1/N!
        assert boson.spring_energy() == pytest.approx(
            classical.spring_energy() + np.log(6.0) / BETA
        )
        assert np.allclose(boson.connection_probabilities, np.eye(3))


class TestWindingExchange:
    """Test exchange models with an active winding correction."""

    @pytest.fixture
    def winding(self):
        return WindingModel(BETA, K, box=Box.cubic(2.5), max_wind=2)

    def test_single_boson_with_winding(self, winding):
        """Test that one boson matches the winding-averaged closing spring."""
        first, last = boundary_slices(1, seed=8)
        boson = make(BosonicExchange, 1, winding=winding)
        classical = make(DistinguishableExchange, 1, winding=winding)
        boson.prepare(first, last)
        classical.prepare(first, last)
        expected = -winding.separation_log_weight(first[0] - last[0]) / BETA
        assert classical.spring_energy() == pytest.approx(expected)
        assert boson.spring_energy() == pytest.approx(expected)
        assert boson.spring_energy_expectation() == pytest.approx(
            winding.separation_energy_expectation(first[0] - last[0])
        )

    def test_bosonic_winding_forces(self, winding):
        """Test winding-corrected bosonic forces against central differences."""
        first, last = boundary_slices(3, seed=10, scale=1.0)
        model = make(BosonicExchange, 3, winding=winding)
        model.prepare(first, last)
        f_first, f_last = model.spring_forces()
        n_first, n_last = numerical_forces(make(BosonicExchange, 3, winding=winding), first, last)
        assert np.allclose(f_first, n_first, rtol=1e-5, atol=1e-7)
        assert np.allclose(f_last, n_last, rtol=1e-5, atol=1e-7)

    def test_inactive_winding_is_plain(self):
        """Test that a winding model without a box leaves springs unchanged."""
        first, last = boundary_slices(3)
        plain = make(BosonicExchange, 3)
        wound = make(BosonicExchange, 3, winding=WindingModel(BETA, K, box=None, max_wind=2))
        plain.prepare(first, last)
        wound.prepare(first, last)
        assert not wound.uses_winding
        assert wound.spring_energy() == pytest.approx(plain.spring_energy())


class TestExchangeFactory:
    """Test exchange model selection."""

    def test_bosonic(self):
        """Test that the bosonic flag selects BosonicExchange."""
        model = create_exchange_model(True, natoms=2, beta=BETA, spring_constant=K)
        assert isinstance(model, BosonicExchange)
        assert model.is_bosonic

    def test_distinguishable(self):
        """Test that the default selects DistinguishableExchange."""
        model = create_exchange_model(False, natoms=2, beta=BETA, spring_constant=K)
        assert isinstance(model, DistinguishableExchange)
        assert not model.is_bosonic
