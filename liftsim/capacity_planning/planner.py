"""
Capacity Planning module - sweeps increasing arrival rates and compares
adding a server at the bottleneck against speeding up its service.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from tqdm import tqdm

from configs import load_config, merge_configs
from ..analytical.network_solver import AnalyticalNetworkSolver
from ..core.errors import InvalidParameter, UnstableSystem
from ..core.replications import run_replications
from ..models.facility_config import Configuration
from ..utils.io import save_json
from ..utils.logger import setup_logger

BASELINE = 'baseline'
ADD_CAPACITY = 'add_capacity'
TUNE_SERVICE = 'tune_service'


class CapacityPlanner:
    """
    Orchestrates capacity planning workflow:
    1. Locate the bottleneck station of the baseline configuration
    2. Build the add-capacity and tune-service alternatives
    3. Evaluate every scenario over increasing arrival rates, analytically
       and by replicated simulation
    4. Recommend the scenario with the lowest mean sojourn time per rate
    """

    def __init__(
        self,
        configuration: Configuration,
        replications: int = 5,
        processes: int = 1,
        base_seed: int = 0,
        tune_factor: float = 1.25,
        confidence: float = 0.95,
        progress: bool = True
    ):
        """
        Initialize capacity planner.

        Args:
            configuration: Baseline facility configuration
            replications: Simulation replications per evaluated point
            processes: Worker processes for replications
            base_seed: Seed of the first replication
            tune_factor: Service-rate multiplier of the tune scenario
            confidence: Confidence level for simulated metrics
            progress: Show a progress bar during sweeps
        """
        if not tune_factor > 0:
            raise InvalidParameter(f"tune_factor must be > 0, got {tune_factor!r}")

        self.logger = setup_logger("CapacityPlanner")
        self.configuration = configuration
        self.replications = replications
        self.processes = processes
        self.base_seed = base_seed
        self.tune_factor = tune_factor
        self.confidence = confidence
        self.progress = progress

        self.logger.info(f"Baseline: {configuration!r}")
        self.logger.info(f"Bottleneck station: {self.bottleneck()}")

    def bottleneck(self, configuration: Optional[Configuration] = None) -> str:
        """Station with the smallest total service capacity c * mu.

        In a tandem chain every station sees the same arrival rate, so this
        is the station with the highest utilization at any load.
        """
        configuration = configuration or self.configuration
        stage = min(configuration.stages, key=lambda s: s.capacity * s.service_rate)
        return stage.name

    def scenarios(self) -> Dict[str, Configuration]:
        """Baseline plus the two capacity alternatives at the bottleneck."""
        name = self.bottleneck()
        stage = self.configuration.stage(name)
        return {
            BASELINE: self.configuration,
            ADD_CAPACITY: self.configuration.with_stage(name, capacity=stage.capacity + 1),
            TUNE_SERVICE: self.configuration.with_stage(
                name, service_rate=stage.service_rate * self.tune_factor
            ),
        }

    @staticmethod
    def max_sustainable_rate(configuration: Configuration) -> float:
        """Largest arrival rate for which every station stays stable."""
        return min(s.capacity * s.service_rate for s in configuration.stages)

    def evaluate(self, configuration: Configuration) -> Dict[str, Any]:
        """Evaluate one configuration analytically and by simulation.

        Args:
            configuration: Configuration to evaluate

        Returns:
            Dictionary with the analytical table (or unstable state) and the
            replicated simulation estimates
        """
        point: Dict[str, Any] = {
            'arrival_rate': configuration.interarrival_rate,
            'offered_utilization': {
                s.name: configuration.interarrival_rate / (s.capacity * s.service_rate)
                for s in configuration.stages
            },
        }

        try:
            result = AnalyticalNetworkSolver.from_configuration(configuration).solve()
            point['stable'] = True
            point['analytical'] = result.as_table()
        except UnstableSystem as e:
            self.logger.debug(f"Unstable at rate {configuration.interarrival_rate}: {e}")
            point['stable'] = False
            point['analytical'] = None
            point['unstable_station'] = e.station

        report = run_replications(
            configuration,
            replications=self.replications,
            base_seed=self.base_seed,
            processes=self.processes,
            confidence=self.confidence,
        )
        point['simulation'] = report.as_dict()
        return point

    @staticmethod
    def sojourn_estimate(point: Dict[str, Any]) -> Optional[float]:
        """Analytical mean sojourn time if stable, simulated otherwise.

        None when the point is unstable and no simulated customer finished.
        """
        if point['stable']:
            return point['analytical']['network']['mean_sojourn_time']
        return point['simulation']['metrics']['mean_flow_time']['mean']

    def sweep(self, arrival_rates: Sequence[float]) -> Dict[str, Any]:
        """
        Evaluate every scenario over a list of arrival rates.

        Args:
            arrival_rates: Arrival rates to evaluate (sorted ascending)

        Returns:
            Sweep results with per-rate recommendations
        """
        rates = sorted(float(r) for r in arrival_rates)
        if not rates:
            raise InvalidParameter("At least one arrival rate is required")

        self.logger.info(f"Sweeping {len(rates)} arrival rates: {rates}")
        scenarios = self.scenarios()

        points: Dict[str, List[Dict[str, Any]]] = {name: [] for name in scenarios}
        total = len(rates) * len(scenarios)
        with tqdm(total=total, desc="Capacity sweep", disable=not self.progress) as bar:
            for rate in rates:
                for name, configuration in scenarios.items():
                    points[name].append(self.evaluate(configuration.with_arrival_rate(rate)))
                    bar.update(1)

        def rank(name, i):
            # Stable first, then by sojourn time; unknown sojourn times last
            estimate = self.sojourn_estimate(points[name][i])
            return (not points[name][i]['stable'], estimate is None, estimate or 0.0)

        recommendations = []
        for i, rate in enumerate(rates):
            ranked = sorted(scenarios, key=lambda name: rank(name, i))
            best = ranked[0]
            recommendations.append({
                'arrival_rate': rate,
                'best_scenario': best,
                'stable': points[best][i]['stable'],
                'mean_sojourn_time': self.sojourn_estimate(points[best][i]),
            })

        results = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'bottleneck': self.bottleneck(),
            'tune_factor': self.tune_factor,
            'replications': self.replications,
            'arrival_rates': rates,
            'scenarios': {
                name: {
                    'configuration': configuration.to_dict(),
                    'max_sustainable_rate': self.max_sustainable_rate(configuration),
                    'points': points[name],
                }
                for name, configuration in scenarios.items()
            },
            'recommendations': recommendations,
        }

        self.logger.info("Sweep complete")
        return results

    def save_report(self, results: Dict[str, Any], output_path: str):
        """Save capacity planning report as JSON."""
        save_json(results, output_path)

        self.logger.info(f"Report saved to: {output_path}")

    def save_summary(self, results: Dict[str, Any], output_path: str):
        """Save human-readable summary."""
        from .report_writer import ReportWriter

        writer = ReportWriter()
        summary = writer.generate_summary(results)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            f.write(summary)

        self.logger.info(f"Summary saved to: {output_path}")


def run_capacity_planning(
    config_path: str,
    output_path: str,
    arrival_rates: Optional[Sequence[float]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Simplified interface for running capacity planning from a YAML file.

    Args:
        config_path: Path to facility config YAML
        output_path: Path to save results (JSON; a .txt summary is written alongside)
        arrival_rates: Rates to sweep (defaults to capacity_planning.arrival_rates)
        overrides: Optional dictionary merged over the loaded config

    Returns:
        Capacity planning results
    """
    logger = setup_logger("CapacityPlanning")

    config = load_config(config_path)
    if overrides:
        config = merge_configs(config, overrides)

    configuration = Configuration.from_dict(config)
    planning = config.get('capacity_planning', {})
    simulation = config.get('simulation', {})

    if arrival_rates is None:
        arrival_rates = planning.get('arrival_rates', [configuration.interarrival_rate])

    planner = CapacityPlanner(
        configuration,
        replications=planning.get('replications', 5),
        processes=planning.get('processes', 1),
        base_seed=simulation.get('random_seed', 0),
        tune_factor=planning.get('tune_factor', 1.25),
        confidence=planning.get('confidence', 0.95),
        progress=planning.get('progress', True),
    )
    results = planner.sweep(arrival_rates)

    planner.save_report(results, output_path)
    summary_path = Path(output_path).with_suffix('.txt')
    planner.save_summary(results, str(summary_path))

    logger.info("Capacity planning complete!")
    return results
