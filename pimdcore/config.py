"""
Run parameters and YAML configuration loading.

All values held by :class:`SimulationParams` are in internal (atomic)
units. Configuration files may give any dimensioned value as
``[value, unit]`` or ``{value: ..., unit: ...}``; it is converted once at
load time.

Example:
    >>> params = SimulationParams(
    ...     temperature=1.0, mass=1.0, dt=0.1, natoms=2, nbeads=4, steps=100
    ... )
    >>> round(params.gamma, 6)
    0.1
"""

from __future__ import annotations

import logging
from dataclasses import MISSING, asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .constants import HBAR, KB
from .errors import ConfigurationError
from .units import unit_to_internal

logger = logging.getLogger(__name__)

INIT_POS_MODES = ("random", "grid", "xyz")
INIT_VEL_MODES = ("random", "zero")

# Unit family of every dimensioned parameter
FIELD_FAMILIES: dict[str, str] = {
    "temperature": "temperature",
    "mass": "mass",
    "dt": "time",
    "gamma": "frequency",
    "size": "length",
}

# Unit family of every dimensioned potential option
OPTION_FAMILIES: dict[str, str] = {
    "omega": "frequency",
    "center": "length",
    "location": "length",
    "cutoff": "length",
    "sigma": "length",
    "strength": "energy",
    "g": "energy",
    "epsilon": "energy",
    "k": "hessian",
}

SECTIONS = ("system", "simulation", "output")


@dataclass
class PotentialSpec:
    """Name and constructor options of a configured potential."""

    name: str = "free"
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class SimulationParams:
    """
    Complete parameter set of one simulation run.

    Physically meaningful quantities (temperature, mass, timestep, particle
    and bead counts, step count) are required; everything else has a
    default.

    Attributes:
        temperature: Bath temperature kB T (energy units).
        mass: Particle mass, shared by all particles.
        dt: Integration timestep.
        natoms: Number of particles.
        nbeads: Number of time-slices P.
        steps: Total number of MD steps.
        gamma: Thermostat friction. Defaults to 1 / (100 dt).
        size: Cubic box side length; required when ``pbc`` is on.
        threshold: Fraction of steps discarded as thermalization.
        sfreq: Observable recording frequency in steps.
        seed: Random seed. None draws fresh entropy.
        output_dir: Directory for output files. None keeps results in memory.
        checkpoint_freq: Steps between checkpoints; 0 disables them.
    """

    temperature: float
    mass: float
    dt: float
    natoms: int
    nbeads: int
    steps: int
    gamma: float | None = None
    size: float | None = None
    threshold: float = 0.1
    sfreq: int = 1
    seed: int | None = None

    enable_t: bool = True
    bosonic: bool = False
    fixcom: bool = False
    pbc: bool = False
    apply_mic_spring: bool = False
    apply_mic_potential: bool = False
    apply_wrap: bool = False
    apply_wrap_first: bool = False
    apply_wind: bool = False
    max_wind: int = 0

    init_pos: str = "random"
    init_pos_file: str | None = None
    init_vel: str = "random"

    external_potential: PotentialSpec = field(default_factory=PotentialSpec)
    interaction_potential: PotentialSpec = field(default_factory=PotentialSpec)

    observables: dict[str, str] = field(default_factory=lambda: {"energy": ""})
    out_pos: bool = False
    out_vel: bool = False
    out_force: bool = False
    out_wind_prob: bool = False
    output_dir: str | None = None
    checkpoint_freq: int = 0

    def __post_init__(self) -> None:
        """Validate parameters."""
        for name in ("temperature", "mass", "dt"):
            value = getattr(self, name)
            if value is None or not value > 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        for name in ("natoms", "nbeads", "steps", "sfreq"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if self.gamma is None:
            self.gamma = 1.0 / (100.0 * self.dt)
        if self.gamma < 0:
            raise ConfigurationError(f"gamma must be non-negative, got {self.gamma}")
        if not 0.0 <= self.threshold < 1.0:
            raise ConfigurationError(f"threshold must lie in [0, 1), got {self.threshold}")
        if (
            not isinstance(self.max_wind, int)
            or isinstance(self.max_wind, bool)
            or self.max_wind < 0
        ):
            raise ConfigurationError(
                f"max_wind must be a non-negative integer, got {self.max_wind!r}"
            )
        if self.checkpoint_freq < 0:
            raise ConfigurationError(
                f"checkpoint_freq must be non-negative, got {self.checkpoint_freq}"
            )

        needs_box = (
            self.pbc
            or self.apply_mic_spring
            or self.apply_mic_potential
            or self.apply_wrap
            or self.apply_wrap_first
        )
        if needs_box and (self.size is None or not self.size > 0):
            raise ConfigurationError(
                "A positive box size is required for periodic boundaries, "
                "minimum image or wrapping"
            )
        if self.size is not None and not self.size > 0:
            raise ConfigurationError(f"size must be positive, got {self.size}")

        if self.init_pos not in INIT_POS_MODES:
            raise ConfigurationError(
                f"Unknown init_pos '{self.init_pos}', expected one of {INIT_POS_MODES}"
            )
        if self.init_pos == "xyz" and not self.init_pos_file:
            raise ConfigurationError("init_pos 'xyz' requires init_pos_file")
        if self.init_vel not in INIT_VEL_MODES:
            raise ConfigurationError(
                f"Unknown init_vel '{self.init_vel}', expected one of {INIT_VEL_MODES}"
            )

        for name in ("external_potential", "interaction_potential"):
            spec = getattr(self, name)
            if isinstance(spec, str):
                setattr(self, name, PotentialSpec(spec))
            elif isinstance(spec, dict):
                setattr(self, name, _potential_spec(name, spec))

    @property
    def beta(self) -> float:
        """Inverse temperature 1/(kB T)."""
        return 1.0 / (KB * self.temperature)

    @property
    def omega_p(self) -> float:
        """Ring-polymer frequency sqrt(P) / (beta hbar)."""
        return self.nbeads**0.5 / (self.beta * HBAR)

    @property
    def spring_constant(self) -> float:
        """Spring constant k = m omega_p^2."""
        return self.mass * self.omega_p**2

    def to_dict(self) -> dict[str, Any]:
        """Return a plain dictionary of all parameters."""
        return asdict(self)


def _convert(name: str, value: Any, family: str) -> Any:
    """Convert ``[value, unit]`` or ``{value, unit}`` to internal units."""
    if isinstance(value, dict) and "value" in value:
        number, unit = value["value"], value.get("unit", "")
    elif isinstance(value, (list, tuple)) and len(value) == 2 and isinstance(value[1], str):
        number, unit = value
    else:
        return value

    try:
        if isinstance(number, (list, tuple)):
            return [unit_to_internal(family, unit, float(x)) for x in number]
        return unit_to_internal(family, unit, float(number))
    except ConfigurationError as e:
        raise ConfigurationError(f"{name}: {e}") from e
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name}: cannot convert {value!r}") from e


def _potential_spec(key: str, section: dict[str, Any]) -> PotentialSpec:
    """Build a PotentialSpec from a ``{name: ..., <options>}`` mapping."""
    options = dict(section)
    name = options.pop("name", "free")
    if not isinstance(name, str):
        raise ConfigurationError(f"{key}: potential name must be a string")
    converted = {
        option: _convert(f"{key}.{option}", value, OPTION_FAMILIES.get(option, "undefined"))
        for option, value in options.items()
    }
    return PotentialSpec(name=name, options=converted)


def params_from_dict(config: dict[str, Any]) -> SimulationParams:
    """
    Build SimulationParams from a nested configuration mapping.

    Keys of the ``system``, ``simulation`` and ``output`` sections are
    flattened into one namespace; the ``potentials`` section holds
    ``external`` and ``interaction`` entries.

    Args:
        config: Parsed configuration.

    Returns:
        Validated SimulationParams.

    Raises:
        ConfigurationError: On unknown, missing or invalid entries.
    """
    if not isinstance(config, dict):
        raise ConfigurationError("Configuration must be a mapping")

    known = {f.name for f in fields(SimulationParams)}
    flat: dict[str, Any] = {}

    for key, value in config.items():
        if key in SECTIONS:
            if not isinstance(value, dict):
                raise ConfigurationError(f"Section '{key}' must be a mapping")
            flat.update(value)
        elif key == "potentials":
            if not isinstance(value, dict):
                raise ConfigurationError("Section 'potentials' must be a mapping")
            for kind, spec in value.items():
                if kind not in ("external", "interaction"):
                    raise ConfigurationError(f"Unknown potential kind '{kind}'")
                if isinstance(spec, str):
                    spec = {"name": spec}
                flat[f"{kind}_potential"] = _potential_spec(kind, spec)
        else:
            flat[key] = value

    unknown = sorted(set(flat) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {unknown}")

    for name, family in FIELD_FAMILIES.items():
        if name in flat:
            flat[name] = _convert(name, flat[name], family)

    missing = [
        f.name
        for f in fields(SimulationParams)
        if f.name not in flat and f.default is MISSING and f.default_factory is MISSING
    ]
    if missing:
        raise ConfigurationError(f"Missing required parameters: {missing}")

    try:
        return SimulationParams(**flat)
    except TypeError as e:
        raise ConfigurationError(str(e)) from e


def load_params(path: str | Path) -> SimulationParams:
    """
    Load simulation parameters from a YAML file.

    Args:
        path: Path to YAML file.

    Returns:
        Validated SimulationParams.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    path = Path(path)
    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed configuration file {path}: {e}") from e

    params = params_from_dict(config or {})
    logger.debug("Loaded parameters from %s", path)
    return params
