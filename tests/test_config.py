"""Tests for run parameters and configuration loading."""

import numpy as np
import pytest

from pimdcore.config import PotentialSpec, SimulationParams, load_params, params_from_dict
from pimdcore.errors import ConfigurationError
from pimdcore.units import unit_to_internal


def base_params(**overrides):
    """Minimal valid parameter set."""
    values = dict(temperature=1.0, mass=1.0, dt=0.1, natoms=2, nbeads=4, steps=10)
    values.update(overrides)
    return SimulationParams(**values)


class TestSimulationParams:
    """Test parameter validation and derived quantities."""

    def test_default_gamma(self):
        """Test that friction defaults to 1 / (100 dt)."""
        params = base_params(dt=0.5)
        assert params.gamma == pytest.approx(0.02)

    def test_derived_constants(self):
        """Test beta, ring-polymer frequency and spring constant."""
        params = base_params(temperature=0.5, mass=2.0, nbeads=4)
        assert params.beta == pytest.approx(2.0)
        assert params.omega_p == pytest.approx(1.0)
        assert params.spring_constant == pytest.approx(2.0)

    @pytest.mark.parametrize("name", ["temperature", "mass", "dt"])
    def test_physical_quantities_must_be_positive(self, name):
        """Test that non-positive temperature, mass or timestep fail."""
        with pytest.raises(ConfigurationError):
            base_params(**{name: 0.0})

    @pytest.mark.parametrize("name", ["natoms", "nbeads", "steps", "sfreq"])
    def test_counts_must_be_positive_integers(self, name):
        """Test that counts must be positive integers."""
        with pytest.raises(ConfigurationError):
            base_params(**{name: 0})

    def test_threshold_range(self):
        """Test that the thermalization threshold lies in [0, 1)."""
        with pytest.raises(ConfigurationError):
            base_params(threshold=1.0)

    @pytest.mark.parametrize("max_wind", [-1, 1.5, 1.0, True, "1"])
    def test_max_wind_must_be_non_negative_integer(self, max_wind):
        """Test that fractional or non-integer winding cutoffs are rejected."""
        with pytest.raises(ConfigurationError, match="max_wind"):
            base_params(max_wind=max_wind, size=2.0, pbc=True, apply_wind=True)

    def test_pbc_requires_size(self):
        """Test that periodic boundaries need a box size."""
        with pytest.raises(ConfigurationError):
            base_params(pbc=True)

    def test_unknown_init_pos(self):
        """Test that unknown initialization modes fail."""
        with pytest.raises(ConfigurationError):
            base_params(init_pos="lattice")

    def test_xyz_requires_file(self):
        """Test that xyz initialization needs a file."""
        with pytest.raises(ConfigurationError):
            base_params(init_pos="xyz")

    def test_potential_from_string(self):
        """Test that a bare potential name becomes a PotentialSpec."""
        params = base_params(external_potential="harmonic")
        assert params.external_potential == PotentialSpec("harmonic", {})


class TestParamsFromDict:
    """Test building parameters from nested mappings."""

    def test_sections_flattened(self):
        """Test that section keys land in one namespace."""
        params = params_from_dict(
            {
                "system": {"temperature": 1.0, "mass": 1.0, "natoms": 3, "nbeads": 8},
                "simulation": {"dt": 0.1, "steps": 20, "bosonic": True},
                "output": {"sfreq": 5},
            }
        )
        assert params.natoms == 3
        assert params.bosonic is True
        assert params.sfreq == 5

    def test_unit_conversion(self):
        """Test that [value, unit] pairs are converted."""
        params = params_from_dict(
            {
                "temperature": [100.0, "kelvin"],
                "mass": {"value": 4.0, "unit": "dalton"},
                "dt": [1.0, "femtosecond"],
                "natoms": 1,
                "nbeads": 4,
                "steps": 1,
            }
        )
        assert params.temperature == pytest.approx(unit_to_internal("temperature", "kelvin", 100.0))
        assert params.mass == pytest.approx(unit_to_internal("mass", "dalton", 4.0))
        assert params.dt == pytest.approx(41.341373)

    def test_potential_options_converted(self):
        """Test that potential options are converted by option family."""
        params = params_from_dict(
            {
                "temperature": 1.0,
                "mass": 1.0,
                "dt": 0.1,
                "natoms": 2,
                "nbeads": 4,
                "steps": 1,
                "potentials": {
                    "external": {"name": "harmonic", "omega": 0.5},
                    "interaction": {"name": "gaussian", "g": 1.0, "sigma": [1.0, "angstrom"]},
                },
            }
        )
        assert params.external_potential.name == "harmonic"
        assert params.external_potential.options == {"omega": 0.5}
        sigma = params.interaction_potential.options["sigma"]
        assert sigma == pytest.approx(unit_to_internal("length", "angstrom", 1.0))

    def test_missing_required(self):
        """Test that missing temperature fails instead of defaulting."""
        with pytest.raises(ConfigurationError, match="temperature"):
            params_from_dict({"mass": 1.0, "dt": 0.1, "natoms": 1, "nbeads": 1, "steps": 1})

    def test_unknown_key(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ConfigurationError, match="colour"):
            params_from_dict(
                {
                    "temperature": 1.0,
                    "mass": 1.0,
                    "dt": 0.1,
                    "natoms": 1,
                    "nbeads": 1,
                    "steps": 1,
                    "colour": "blue",
                }
            )

    def test_fractional_max_wind_rejected(self):
        """Test that a fractional winding cutoff from a mapping fails to load."""
        with pytest.raises(ConfigurationError, match="max_wind"):
            params_from_dict(
                {
                    "system": {"temperature": 1.0, "mass": 1.0, "natoms": 2, "size": 2.0},
                    "simulation": {
                        "dt": 0.1,
                        "nbeads": 4,
                        "steps": 10,
                        "pbc": True,
                        "apply_wind": True,
                        "max_wind": 1.5,
                    },
                }
            )

    def test_unknown_unit(self):
        """Test that unknown units are configuration errors."""
        with pytest.raises(ConfigurationError):
            params_from_dict(
                {
                    "temperature": [1.0, "fahrenheit"],
                    "mass": 1.0,
                    "dt": 0.1,
                    "natoms": 1,
                    "nbeads": 1,
                    "steps": 1,
                }
            )


class TestLoadParams:
    """Test loading YAML files."""

    def test_load_yaml(self, tmp_path):
        """Test a complete YAML configuration."""
        path = tmp_path / "run.yaml"
        path.write_text(
            "system:\n"
            "  temperature: [10.0, kelvin]\n"
            "  mass: 1.0\n"
            "  natoms: 2\n"
            "  nbeads: 4\n"
            "  size: 10.0\n"
            "  pbc: true\n"
            "simulation:\n"
            "  dt: 1.0\n"
            "  steps: 100\n"
            "  seed: 7\n"
            "  apply_wind: true\n"
            "  max_wind: 1\n"
            "potentials:\n"
            "  external: free\n"
        )
        params = load_params(path)
        assert params.pbc is True
        assert params.size == 10.0
        assert params.seed == 7
        assert params.max_wind == 1
        assert np.isclose(params.temperature, 10.0 * 3.1668152e-06)

    def test_missing_file(self, tmp_path):
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigurationError):
            load_params(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        """Test that malformed YAML is a configuration error."""
        path = tmp_path / "bad.yaml"
        path.write_text("system: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_params(path)
