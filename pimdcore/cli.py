"""Command-line entry point: ``pimd config.yaml``."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

from . import __version__
from .config import load_params
from .engines import Simulation
from .errors import CommunicationError, ConfigurationError, NumericalInstabilityError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser of the ``pimd`` command."""
    parser = argparse.ArgumentParser(
        prog="pimd",
        description="Path-integral molecular dynamics with bosonic exchange.",
    )
    parser.add_argument("config", help="YAML configuration file")
    parser.add_argument(
        "--backend",
        choices=("serial", "mpi4py"),
        default="serial",
        help="parallel backend (default: serial)",
    )
    parser.add_argument("--seed", type=int, default=None, help="override the random seed")
    parser.add_argument(
        "--output-dir", default=None, help="override the output directory (default: .)"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="log per-step diagnostics"
    )
    verbosity.add_argument("--quiet", action="store_true", help="log warnings only")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Run a simulation from the command line.

    Returns:
        Exit status: 0 on success, 2 for configuration errors, 1 for
        runtime failures.
    """
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        params = load_params(args.config)
        params = dataclasses.replace(
            params,
            seed=args.seed if args.seed is not None else params.seed,
            output_dir=args.output_dir or params.output_dir or ".",
        )
        sim = Simulation(params, backend=args.backend)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2

    try:
        sim.run()
    except (NumericalInstabilityError, CommunicationError) as e:
        logger.error("Run failed: %s", e)
        return 1

    if sim.backend.is_root:
        for label, series in sim.series().items():
            if len(series):
                logger.info("<%s> = %.10g", label, series.mean())
    return 0


if __name__ == "__main__":
    sys.exit(main())
