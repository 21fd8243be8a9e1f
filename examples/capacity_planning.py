"""Capacity planning example - when does the lift need help?"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from liftsim.capacity_planning import CapacityPlanner, ReportWriter
from liftsim.models.facility_config import Configuration
from liftsim.utils.logger import setup_logger
from configs import load_default_config


def main():
    """Sweep arrival rates past the lift's capacity and compare remedies."""
    logger = setup_logger("CapacityPlanningExample")

    config = load_default_config()
    config['simulation']['horizon'] = 3000
    configuration = Configuration.from_dict(config)

    planner = CapacityPlanner(
        configuration,
        replications=5,
        base_seed=config['simulation']['random_seed'],
        tune_factor=1.5,
    )

    logger.info(f"Baseline can sustain up to "
                f"{planner.max_sustainable_rate(configuration):.3f} skiers per minute")

    results = planner.sweep([0.02, 0.05, 0.08, 0.11, 0.14])

    writer = ReportWriter()
    print(writer.generate_summary(results))

    output_path = Path("results/capacity_plan.json")
    planner.save_report(results, str(output_path))
    planner.save_summary(results, str(output_path.with_suffix('.txt')))

    logger.info("Capacity planning example complete!")


if __name__ == "__main__":
    main()
