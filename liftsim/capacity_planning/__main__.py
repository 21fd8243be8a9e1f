"""
CLI interface for capacity planning module.

Usage:
    python -m liftsim.capacity_planning --config <path> --output <path>
"""

import argparse
import sys
from pathlib import Path

from .planner import run_capacity_planning
from .report_writer import ReportWriter
from ..utils.logger import setup_logger


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="liftsim Capacity Planning",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sweep the rates listed in the config file
  python -m liftsim.capacity_planning \\
    --config configs/default.yaml \\
    --output results/capacity_plan.json

  # Explicit arrival rates and more replications
  python -m liftsim.capacity_planning \\
    --config configs/default.yaml \\
    --rates 0.02 0.04 0.06 0.08 \\
    --replications 20 --processes 4 \\
    --output results/capacity_plan.json
        """
    )

    parser.add_argument(
        '--config',
        type=str,
        default='configs/default.yaml',
        help='Path to facility config YAML'
    )

    parser.add_argument(
        '--rates',
        type=float,
        nargs='+',
        default=None,
        help='Arrival rates to sweep (default: capacity_planning.arrival_rates)'
    )

    parser.add_argument(
        '--replications',
        type=int,
        default=None,
        help='Simulation replications per point'
    )

    parser.add_argument(
        '--processes',
        type=int,
        default=None,
        help='Worker processes for replications'
    )

    parser.add_argument(
        '--tune-factor',
        type=float,
        default=None,
        help='Service-rate multiplier for the tune scenario'
    )

    parser.add_argument(
        '--output',
        type=str,
        required=True,
        help='Path to save capacity planning report (JSON)'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    setup_logger("liftsim", verbose=args.verbose)
    logger = setup_logger("CapacityPlanning")

    if not Path(args.config).exists():
        logger.error(f"Config not found: {args.config}")
        return 1

    planning = {}
    if args.replications is not None:
        planning['replications'] = args.replications
    if args.processes is not None:
        planning['processes'] = args.processes
    if args.tune_factor is not None:
        planning['tune_factor'] = args.tune_factor

    try:
        results = run_capacity_planning(
            config_path=args.config,
            output_path=args.output,
            arrival_rates=args.rates,
            overrides={'capacity_planning': planning} if planning else None,
        )
    except Exception as e:
        logger.error(f"✗ Failed: {e}", exc_info=True)
        return 1

    print("\n" + ReportWriter().generate_summary(results))
    logger.info("✓ Capacity planning complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
