"""Metrics aggregation over simulation logs."""

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .customer import CustomerRecord, CustomerStatus
from .resource import OccupancySample
from ..utils.logger import setup_logger


@dataclass(frozen=True)
class OccupancyPoint:
    """Occupancy at a state change plus running time-averages up to it."""
    time: float
    queue_length: int
    busy_servers: int
    in_system: int
    mean_queue_length: float
    mean_busy_servers: float
    mean_in_system: float


@dataclass(frozen=True)
class ResourceMetrics:
    """Time-weighted and per-visit statistics of one station."""
    resource: str
    capacity: int
    utilization: float
    mean_queue_length: float
    mean_busy_servers: float
    mean_in_system: float
    max_queue_length: int
    mean_wait_in_queue: Optional[float]
    mean_service_time: Optional[float]
    services_completed: int


@dataclass(frozen=True)
class SimulationSummary:
    """Summary statistics of one run over its observation window."""
    observation_time: float
    arrivals: int
    served: int
    rejected: int
    in_flight: int
    mean_waiting_time: Optional[float]
    mean_flow_time: Optional[float]
    mean_activity_time: Optional[float]
    flow_time_percentiles: Dict[str, float]
    throughput: float
    mean_in_system: float
    resources: Tuple[ResourceMetrics, ...]

    @property
    def rejection_rate(self) -> float:
        return self.rejected / self.arrivals if self.arrivals else 0.0

    @property
    def littles_law_gap(self) -> Optional[float]:
        """Relative gap between L and throughput * W (None if undefined)."""
        if self.mean_flow_time is None or self.mean_in_system <= 0:
            return None
        predicted = self.throughput * self.mean_flow_time
        return abs(self.mean_in_system - predicted) / self.mean_in_system

    def resource(self, name: str) -> ResourceMetrics:
        for metrics in self.resources:
            if metrics.resource == name:
                return metrics
        raise KeyError(f"Unknown station: {name}")

    def as_dict(self) -> Dict:
        data = asdict(self)
        data['resources'] = {m.resource: asdict(m) for m in self.resources}
        data['rejection_rate'] = self.rejection_rate
        return data


def _mean(values: Sequence[float]) -> Optional[float]:
    return float(np.mean(values)) if len(values) else None


class MetricsAggregator:
    """Turn raw simulation logs into utilization, occupancy and timing metrics.

    Occupancy is piecewise constant between samples, so every time-weighted
    quantity comes from one forward pass over the samples of a station,
    clipped to the window [warmup, end_time].
    """

    def __init__(self):
        self.logger = setup_logger(self.__class__.__name__)

    def aggregate(self, output) -> "SimulationSummary":
        """Compute summary statistics for a SimulationOutput.

        Args:
            output: SimulationOutput from Simulator.run()

        Returns:
            Immutable SimulationSummary
        """
        cfg = output.configuration
        window_start = cfg.warmup
        window_end = output.end_time
        observation_time = window_end - window_start

        observed = [c for c in output.customers if c.arrival_time >= window_start]
        completed = [c for c in observed if c.status is CustomerStatus.COMPLETED]
        flows = [c.flow_time for c in completed]

        resources = tuple(
            self.resource_metrics(output, stage.name, observed)
            for stage in cfg.stages
        )

        percentiles = {}
        if flows:
            for p in cfg.percentiles:
                percentiles[f"p{p:g}"] = float(np.percentile(flows, p))

        summary = SimulationSummary(
            observation_time=observation_time,
            arrivals=len(observed),
            served=len(completed),
            rejected=sum(1 for c in observed if c.status is CustomerStatus.REJECTED),
            in_flight=sum(1 for c in observed if c.status is CustomerStatus.IN_FLIGHT),
            mean_waiting_time=_mean([c.waiting_time for c in completed]),
            mean_flow_time=_mean(flows),
            mean_activity_time=_mean([c.activity_time for c in completed]),
            flow_time_percentiles=percentiles,
            throughput=len(completed) / observation_time,
            mean_in_system=sum(r.mean_in_system for r in resources),
            resources=resources,
        )

        self.logger.debug(
            f"Aggregated {summary.arrivals} customers over {observation_time:.2f} time units"
        )
        return summary

    def resource_metrics(self, output, resource: str,
                         customers: Optional[Sequence[CustomerRecord]] = None) -> ResourceMetrics:
        """Time-weighted occupancy and visit statistics for one station.

        Args:
            output: SimulationOutput
            resource: Station name
            customers: Customers to use for visit statistics (defaults to
                those arriving after warmup)

        Returns:
            ResourceMetrics for the station
        """
        cfg = output.configuration
        capacity = cfg.stage(resource).capacity
        samples = output.occupancy_for(resource)
        areas, max_queue = self._integrate(samples, cfg.warmup, output.end_time)
        duration = output.end_time - cfg.warmup

        if customers is None:
            customers = [c for c in output.customers if c.arrival_time >= cfg.warmup]
        visits = [s for c in customers for s in c.stages if s.resource_id == resource]
        waits = [s.wait_in_queue for s in visits if s.wait_in_queue is not None]
        services = [s.service_time for s in visits if s.service_time is not None]

        return ResourceMetrics(
            resource=resource,
            capacity=capacity,
            utilization=areas['busy'] / (capacity * duration),
            mean_queue_length=areas['queue'] / duration,
            mean_busy_servers=areas['busy'] / duration,
            mean_in_system=(areas['queue'] + areas['busy']) / duration,
            max_queue_length=max_queue,
            mean_wait_in_queue=_mean(waits),
            mean_service_time=_mean(services),
            services_completed=len(services),
        )

    def occupancy_curves(self, output) -> Dict[str, List[OccupancyPoint]]:
        """Running time-averaged queue/server/system counts per station.

        Args:
            output: SimulationOutput

        Returns:
            Mapping station name -> list of OccupancyPoint in time order
        """
        cfg = output.configuration
        curves = {}
        for stage in cfg.stages:
            samples = output.occupancy_for(stage.name)
            curves[stage.name] = self._curve(samples, cfg.warmup, output.end_time)
        return curves

    @staticmethod
    def _intervals(samples: Sequence[OccupancySample], start: float, end: float):
        """Yield (sample, dt) with each sample's holding time clipped to the window."""
        for i, sample in enumerate(samples):
            next_time = samples[i + 1].time if i + 1 < len(samples) else end
            lo = max(sample.time, start)
            hi = min(next_time, end)
            yield sample, max(0.0, hi - lo)

    def _integrate(self, samples: Sequence[OccupancySample], start: float,
                   end: float) -> Tuple[Dict[str, float], int]:
        areas = {'busy': 0.0, 'queue': 0.0}
        max_queue = 0
        for sample, dt in self._intervals(samples, start, end):
            areas['busy'] += sample.busy_servers * dt
            areas['queue'] += sample.queue_length * dt
            if dt > 0 or start <= sample.time <= end:
                max_queue = max(max_queue, sample.queue_length)
        return areas, max_queue

    def _curve(self, samples: Sequence[OccupancySample], start: float,
               end: float) -> List[OccupancyPoint]:
        points = []
        busy_area = queue_area = 0.0
        for sample, dt in self._intervals(samples, start, end):
            if start <= sample.time <= end:
                elapsed = sample.time - start
                if elapsed > 0:
                    mean_queue = queue_area / elapsed
                    mean_busy = busy_area / elapsed
                else:
                    mean_queue = float(sample.queue_length)
                    mean_busy = float(sample.busy_servers)
                points.append(OccupancyPoint(
                    time=sample.time,
                    queue_length=sample.queue_length,
                    busy_servers=sample.busy_servers,
                    in_system=sample.in_system,
                    mean_queue_length=mean_queue,
                    mean_busy_servers=mean_busy,
                    mean_in_system=mean_queue + mean_busy,
                ))
            busy_area += sample.busy_servers * dt
            queue_area += sample.queue_length * dt
        return points
