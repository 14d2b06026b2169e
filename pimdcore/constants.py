"""Physical constants in internal (Hartree atomic) units."""

KB = 1.0  # Boltzmann constant
HBAR = 1.0  # Reduced Planck constant
AMU = 1822.8885  # Atomic mass unit in electron masses
