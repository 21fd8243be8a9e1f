"""Basic simulation example: lift and run under the default load."""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from liftsim.analytical.network_solver import AnalyticalNetworkSolver
from liftsim.core.metrics_collector import MetricsAggregator
from liftsim.core.simulator import Simulator
from liftsim.models.facility_config import Configuration
from liftsim.utils.io import analytical_frame, export_simulation
from liftsim.utils.logger import setup_logger
from configs import load_default_config


def main():
    """Run a basic simulation and compare it with the closed-form model."""
    logger = setup_logger("BasicSimulation")

    logger.info("=== Basic Lift and Run Simulation ===")

    config = load_default_config()

    # Customize for this example
    config['simulation']['horizon'] = 20000
    config['simulation']['warmup'] = 500

    configuration = Configuration.from_dict(config)
    logger.info(f"Facility: {configuration!r}")

    # Closed-form reference
    analytical = AnalyticalNetworkSolver.from_configuration(configuration).solve()
    logger.info(f"\n{analytical_frame(analytical).to_string()}")

    # Simulation
    output = Simulator(configuration, seed=config['simulation']['random_seed']).run()
    summary = MetricsAggregator().aggregate(output)

    logger.info("\n=== Results ===")
    logger.info(f"Customers observed: {summary.arrivals}")
    logger.info(f"Served: {summary.served}")
    logger.info(f"Throughput: {summary.throughput:.4f} per minute")
    logger.info(f"Mean flow time: {summary.mean_flow_time:.2f} "
                f"(analytical {analytical.mean_sojourn_time:.2f})")
    logger.info(f"Mean waiting time: {summary.mean_waiting_time:.2f}")
    for name, value in summary.flow_time_percentiles.items():
        logger.info(f"  {name}: {value:.2f}")

    for resource in summary.resources:
        reference = analytical.station(resource.resource)
        logger.info(
            f"{resource.resource}: utilization {resource.utilization:.2%} "
            f"(analytical {reference.utilization:.2%}), "
            f"mean queue {resource.mean_queue_length:.2f} "
            f"(analytical {reference.mean_queue_length:.2f})"
        )

    logger.info(f"Little's law gap: {summary.littles_law_gap:.2%}")

    written = export_simulation(output, "results/basic_simulation")
    logger.info(f"Tables written: {', '.join(str(p) for p in written.values())}")

    logger.info("\nSimulation complete!")


if __name__ == "__main__":
    main()
