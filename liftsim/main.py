"""Main entry point for the liftsim simulator."""

import argparse
import sys
from pathlib import Path

from liftsim.analytical.network_solver import AnalyticalNetworkSolver
from liftsim.core.errors import UnstableSystem
from liftsim.core.metrics_collector import MetricsAggregator
from liftsim.core.replications import run_replications
from liftsim.core.simulator import Simulator
from liftsim.models.facility_config import Configuration
from liftsim.utils.io import analytical_frame, export_simulation, save_yaml
from liftsim.utils.logger import setup_logger
from configs import load_config, load_default_config, merge_configs


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="liftsim: lift and run queueing simulator"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (merged over the bundled defaults)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (overrides simulation.random_seed)",
    )
    parser.add_argument(
        "--replications",
        type=int,
        default=1,
        help="Independent replications to run for confidence intervals",
    )
    parser.add_argument(
        "--drain",
        action="store_true",
        help="Finish customers already in the system after the horizon",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="results",
        help="Directory to save results",
    )
    parser.add_argument(
        "--export-csv",
        action="store_true",
        help="Write occupancy, customer and event tables as CSV",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def main():
    """Main function."""
    args = parse_args()

    # Setup logging
    log_level = "DEBUG" if args.verbose else "INFO"
    logger = setup_logger("liftsim", level=log_level)

    logger.info("=== liftsim: lift and run queueing simulator ===")

    try:
        config = load_default_config()
        if args.config:
            logger.info(f"Loading configuration from {args.config}")
            config = merge_configs(config, load_config(args.config))

        configuration = Configuration.from_dict(config)
        seed = args.seed if args.seed is not None else config['simulation'].get('random_seed')
        logger.info(f"Facility: {configuration!r}")

        results = {'configuration': configuration.to_dict(), 'seed': seed}

        # Analytical engine
        try:
            analytical = AnalyticalNetworkSolver.from_configuration(configuration).solve()
            results['analytical'] = analytical.as_table()
            logger.info("\n=== Analytical (open Jackson network) ===\n"
                        f"{analytical_frame(analytical).to_string()}")
        except UnstableSystem as e:
            results['analytical'] = {'unstable': True, 'station': e.station,
                                     'utilization': e.utilization}
            logger.warning(f"Analytical model not applicable: {e}")

        # Simulation engine
        output = Simulator(configuration, seed=seed, drain=args.drain).run()
        summary = MetricsAggregator().aggregate(output)
        results['simulation'] = summary.as_dict()

        logger.info("\n=== Simulation Results ===")
        logger.info(f"Arrivals: {summary.arrivals}")
        logger.info(f"Served / Rejected / In flight: "
                    f"{summary.served} / {summary.rejected} / {summary.in_flight}")
        if summary.mean_flow_time is not None:
            logger.info(f"Mean Flow Time: {summary.mean_flow_time:.2f}")
            logger.info(f"Mean Waiting Time: {summary.mean_waiting_time:.2f}")
            logger.info(f"Mean Activity Time: {summary.mean_activity_time:.2f}")
        logger.info(f"Throughput: {summary.throughput:.4f}")
        for resource in summary.resources:
            logger.info(f"Utilization {resource.resource}: {resource.utilization:.2%}")

        if args.replications > 1:
            report = run_replications(configuration, replications=args.replications,
                                      base_seed=seed or 0, drain=args.drain)
            results['replications'] = report.as_dict()
            flow = report.estimates['mean_flow_time']
            if flow.mean is not None:
                logger.info(f"Mean Flow Time over {args.replications} replications: "
                            f"{flow.mean:.2f} [{flow.ci_low:.2f}, {flow.ci_high:.2f}]")

        # Save results
        output_dir = Path(args.output_dir)
        results_file = output_dir / "results.yaml"
        save_yaml(results, str(results_file))
        logger.info(f"Results saved to {results_file}")

        if args.export_csv:
            written = export_simulation(output, str(output_dir))
            logger.info(f"Tables saved: {', '.join(str(p) for p in written.values())}")

        logger.info("Simulation completed successfully!")
        return 0

    except Exception as e:
        logger.error(f"Simulation failed: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
