"""
Unit conversion between user units and internal atomic units.

The simulation core always works in Hartree atomic units. Conversions only
happen when parameters are loaded and when quantities are reported.

Example:
    >>> round(unit_to_internal("time", "femtosecond", 1.0), 6)
    41.341373
    >>> round(unit_to_user("energy", "kelvin", 3.1668152e-06), 6)
    1.0
"""

from __future__ import annotations

from .constants import AMU
from .errors import ConfigurationError

UNIT_PREFIXES: dict[str, float] = {
    "": 1.0,
    "yotta": 1e24,
    "zetta": 1e21,
    "exa": 1e18,
    "peta": 1e15,
    "tera": 1e12,
    "giga": 1e9,
    "mega": 1e6,
    "kilo": 1e3,
    "hecto": 1e2,
    "deci": 1e-1,
    "centi": 1e-2,
    "milli": 1e-3,
    "micro": 1e-6,
    "nano": 1e-9,
    "pico": 1e-12,
    "femto": 1e-15,
    "atto": 1e-18,
    "zepto": 1e-21,
    "yocto": 1e-24,
}

_ATOMIC = {"": 1.0, "automatic": 1.0, "atomic_unit": 1.0}

# Factor that converts one user unit into atomic units
UNIT_MAP: dict[str, dict[str, float]] = {
    "undefined": {**_ATOMIC},
    "energy": {
        **_ATOMIC,
        "electronvolt": 0.036749326,
        "j/mol": 0.00000038087989,
        "cal/mol": 0.0000015946679,
        "kelvin": 3.1668152e-06,
    },
    "temperature": {**_ATOMIC, "kelvin": 3.1668152e-06},
    "time": {**_ATOMIC, "second": 4.1341373e16},
    "frequency": {
        **_ATOMIC,
        "inversecm": 4.5563353e-06,
        "hertz*rad": 2.4188843e-17,
        "hertz": 1.5198298e-16,
    },
    "ms-momentum": {**_ATOMIC},
    "length": {
        **_ATOMIC,
        "angstrom": 1.8897261,
        "meter": 1.8897261e10,
        "radian": 1.0,
        "degree": 0.017453292519943295,
    },
    "volume": {**_ATOMIC, "angstrom3": 6.748334231},
    "velocity": {**_ATOMIC, "angstrom/ps": 4.5710289e-5, "m/s": 4.5710289e-7},
    "momentum": {**_ATOMIC},
    "mass": {**_ATOMIC, "dalton": AMU, "electronmass": 1.0},
    "pressure": {
        **_ATOMIC,
        "bar": 3.398827377e-9,
        "atmosphere": 3.44386184e-9,
        "pascal": 3.398827377e-14,
        "ev/ang3": 0.0054456877,
    },
    "density": {**_ATOMIC, "g/cm3": 162.67263},
    "force": {**_ATOMIC, "newton": 12137805.0, "ev/ang": 0.019446904},
    "hessian": {**_ATOMIC, "ev/ang^2": 0.010290858},
}


def separate_prefix_unit(unit: str) -> tuple[str, str]:
    """
    Split a unit name into its metric prefix and base unit.

    Args:
        unit: Unit name such as "femtosecond" or "kelvin".

    Returns:
        Tuple of (prefix, base unit). The prefix is "" when none matches.
    """
    unit = unit.strip().lower()
    # Longest prefixes first so that e.g. "milli" never shadows a longer one
    for prefix in sorted(UNIT_PREFIXES, key=len, reverse=True):
        if prefix and unit.startswith(prefix) and len(unit) > len(prefix):
            return prefix, unit[len(prefix):]
    return "", unit


def _conversion_factor(family: str, unit: str) -> float:
    family_key = family.strip().lower()
    if family_key not in UNIT_MAP:
        raise ConfigurationError(f"Unknown unit family '{family}'")
    table = UNIT_MAP[family_key]

    unit_key = unit.strip().lower()
    if unit_key in table:
        return table[unit_key]

    prefix, base = separate_prefix_unit(unit_key)
    if prefix and base in table:
        return UNIT_PREFIXES[prefix] * table[base]

    raise ConfigurationError(f"Unknown unit '{unit}' for family '{family}'")


def unit_to_internal(family: str, unit: str, number: float) -> float:
    """
    Convert a quantity from user units to internal atomic units.

    Args:
        family: Physical family, e.g. "energy" or "length".
        unit: Unit of ``number``, optionally with a metric prefix.
        number: Value to convert.

    Returns:
        Value in atomic units.

    Raises:
        ConfigurationError: If the family or unit is unknown.
    """
    return number * _conversion_factor(family, unit)


def unit_to_user(family: str, unit: str, number: float) -> float:
    """
    Convert a quantity from internal atomic units to user units.

    Args:
        family: Physical family, e.g. "energy" or "length".
        unit: Target unit, optionally with a metric prefix.
        number: Value in atomic units.

    Returns:
        Value in the requested unit.

    Raises:
        ConfigurationError: If the family or unit is unknown.
    """
    return number / _conversion_factor(family, unit)
