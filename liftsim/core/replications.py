"""Independent simulation replications and confidence intervals."""

import multiprocessing as mp
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from .metrics_collector import MetricsAggregator, SimulationSummary
from .simulator import Simulator
from ..utils.logger import setup_logger

# Summary fields averaged across replications
REPLICATED_METRICS = (
    'mean_waiting_time',
    'mean_flow_time',
    'mean_activity_time',
    'throughput',
    'mean_in_system',
    'rejection_rate',
)


@dataclass(frozen=True)
class MetricEstimate:
    """Across-replication estimate of one metric."""
    mean: Optional[float]
    std: Optional[float]
    ci_low: Optional[float]
    ci_high: Optional[float]
    samples: int


def confidence_interval(values: Sequence[float],
                        confidence: float = 0.95) -> MetricEstimate:
    """Student-t confidence interval of the mean.

    Args:
        values: One value per replication
        confidence: Two-sided confidence level

    Returns:
        MetricEstimate (interval collapses to the mean for a single sample)
    """
    data = np.asarray([v for v in values if v is not None], dtype=float)
    n = len(data)
    if n == 0:
        return MetricEstimate(None, None, None, None, 0)

    mean = float(np.mean(data))
    if n == 1:
        return MetricEstimate(mean, 0.0, mean, mean, 1)

    std = float(np.std(data, ddof=1))
    half_width = float(stats.t.ppf(0.5 + confidence / 2.0, df=n - 1) * std / np.sqrt(n))
    return MetricEstimate(mean, std, mean - half_width, mean + half_width, n)


@dataclass(frozen=True)
class ReplicationReport:
    """Per-replication summaries plus across-replication estimates."""
    seeds: Tuple[int, ...]
    summaries: Tuple[SimulationSummary, ...]
    estimates: Dict[str, MetricEstimate]
    utilization: Dict[str, MetricEstimate]
    confidence: float

    def as_dict(self) -> Dict:
        return {
            'replications': len(self.seeds),
            'seeds': list(self.seeds),
            'confidence': self.confidence,
            'metrics': {k: asdict(v) for k, v in self.estimates.items()},
            'utilization': {k: asdict(v) for k, v in self.utilization.items()},
        }


def _run_single(args) -> SimulationSummary:
    configuration, seed, drain = args
    output = Simulator(configuration, seed=seed, drain=drain, record_events=False).run()
    return MetricsAggregator().aggregate(output)


def run_replications(configuration, replications: int = 10, base_seed: int = 0,
                     processes: int = 1, drain: bool = False,
                     confidence: float = 0.95) -> ReplicationReport:
    """Run independent replications of one configuration.

    Replication i uses seed base_seed + i, so results do not depend on
    the number of worker processes.

    Args:
        configuration: Facility configuration
        replications: Number of independent runs (>= 1)
        base_seed: Seed of the first replication
        processes: Worker processes (1 runs in-process)
        drain: Forwarded to Simulator
        confidence: Confidence level of the reported intervals

    Returns:
        ReplicationReport
    """
    if replications < 1:
        raise ValueError("replications must be >= 1")
    if not 0 < confidence < 1:
        raise ValueError("confidence must lie in (0, 1)")

    logger = setup_logger("Replications")
    seeds = tuple(base_seed + i for i in range(replications))
    jobs = [(configuration, seed, drain) for seed in seeds]

    if processes > 1 and replications > 1:
        logger.info(f"Running {replications} replications on {processes} processes")
        with mp.Pool(processes=min(processes, replications)) as pool:
            summaries: List[SimulationSummary] = pool.map(_run_single, jobs)
    else:
        logger.info(f"Running {replications} replications")
        summaries = [_run_single(job) for job in jobs]

    estimates = {
        name: confidence_interval([getattr(s, name) for s in summaries], confidence)
        for name in REPLICATED_METRICS
    }
    utilization = {
        stage.name: confidence_interval(
            [s.resource(stage.name).utilization for s in summaries], confidence
        )
        for stage in configuration.stages
    }

    return ReplicationReport(
        seeds=seeds,
        summaries=tuple(summaries),
        estimates=estimates,
        utilization=utilization,
        confidence=confidence,
    )
