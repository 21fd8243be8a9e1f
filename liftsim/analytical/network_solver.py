"""Open Jackson network solver built on closed-form M/M/c results."""

import math
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.errors import InvalidParameter, UnstableSystem
from ..utils.logger import setup_logger

# Marker for metrics that are undefined at network scope
NOT_APPLICABLE = None

TABLE_ROWS = (
    'throughput',
    'mean_number_in_system',
    'mean_sojourn_time',
    'probability_no_customers',
    'utilization',
)

ROUTING_TOLERANCE = 1e-9


@dataclass(frozen=True)
class StationSpec:
    """M/M/c station definition."""
    name: str
    service_rate: float
    servers: int = 1
    external_arrival_rate: float = 0.0


@dataclass(frozen=True)
class NetworkTopology:
    """Routing probabilities between named stations.

    routing[i][j] is the probability that a customer leaving station i goes
    to station j. Whatever is missing from a row sum leaves the network, so
    a zero row marks an exit station.
    """
    stations: Tuple[str, ...]
    routing: Tuple[Tuple[float, ...], ...]

    def __post_init__(self):
        object.__setattr__(self, 'stations', tuple(self.stations))
        object.__setattr__(self, 'routing', tuple(tuple(float(p) for p in row)
                                                  for row in self.routing))
        self.validate()

    def validate(self) -> None:
        n = len(self.stations)
        if n == 0:
            raise InvalidParameter("Topology needs at least one station")
        if len(set(self.stations)) != n:
            raise InvalidParameter(f"Duplicate station names: {self.stations}")
        if len(self.routing) != n or any(len(row) != n for row in self.routing):
            raise InvalidParameter(f"Routing matrix must be {n}x{n}")
        for name, row in zip(self.stations, self.routing):
            if any(p < 0 or p > 1 for p in row):
                raise InvalidParameter(f"Routing probabilities of '{name}' must lie in [0, 1]")
            if sum(row) > 1 + ROUTING_TOLERANCE:
                raise InvalidParameter(f"Routing row of '{name}' sums to {sum(row)} > 1")

    @classmethod
    def tandem(cls, stations: Sequence[str]) -> "NetworkTopology":
        """Chain topology: station k feeds station k+1, the last one exits."""
        n = len(stations)
        routing = [[0.0] * n for _ in range(n)]
        for i in range(n - 1):
            routing[i][i + 1] = 1.0
        return cls(tuple(stations), tuple(tuple(row) for row in routing))

    def matrix(self) -> np.ndarray:
        return np.array(self.routing, dtype=float)

    def index(self, name: str) -> int:
        return self.stations.index(name)


@dataclass(frozen=True)
class StationMetrics:
    """Steady-state metrics of one M/M/c station."""
    name: str
    arrival_rate: float
    service_rate: float
    servers: int
    throughput: float
    utilization: float
    probability_no_customers: float
    mean_queue_length: float
    mean_number_in_system: float
    mean_waiting_time: float
    mean_sojourn_time: float


@dataclass(frozen=True)
class AnalyticalResult:
    """Per-station and network-wide steady-state metrics."""
    stations: Tuple[StationMetrics, ...]
    throughput: float
    mean_number_in_system: float
    mean_sojourn_time: float

    def station(self, name: str) -> StationMetrics:
        for metrics in self.stations:
            if metrics.name == name:
                return metrics
        raise KeyError(f"Unknown station: {name}")

    def as_table(self) -> Dict[str, Dict[str, Optional[float]]]:
        """Output table keyed by 'network' and each station name.

        Metrics undefined for the whole network carry NOT_APPLICABLE.
        """
        table = {
            'network': {
                'throughput': self.throughput,
                'mean_number_in_system': self.mean_number_in_system,
                'mean_sojourn_time': self.mean_sojourn_time,
                'probability_no_customers': NOT_APPLICABLE,
                'utilization': NOT_APPLICABLE,
            }
        }
        for m in self.stations:
            table[m.name] = {row: getattr(m, row) for row in TABLE_ROWS}
        return table

    def as_dict(self) -> Dict:
        return {
            'throughput': self.throughput,
            'mean_number_in_system': self.mean_number_in_system,
            'mean_sojourn_time': self.mean_sojourn_time,
            'stations': {m.name: asdict(m) for m in self.stations},
        }


def mmc_metrics(name: str, arrival_rate: float, service_rate: float,
                servers: int) -> StationMetrics:
    """Closed-form M/M/c steady-state metrics (Erlang C).

    Args:
        name: Station name (used in errors)
        arrival_rate: Total arrival rate lambda into the station
        service_rate: Per-server service rate mu
        servers: Number of servers c

    Returns:
        StationMetrics

    Raises:
        InvalidParameter: On non-positive service rate or server count
        UnstableSystem: If lambda / (c * mu) >= 1
    """
    if not service_rate > 0:
        raise InvalidParameter(f"{name}: service rate must be > 0")
    if servers < 1:
        raise InvalidParameter(f"{name}: servers must be >= 1")
    if arrival_rate < 0:
        raise InvalidParameter(f"{name}: arrival rate must be >= 0")

    rho = arrival_rate / (servers * service_rate)
    if rho >= 1:
        raise UnstableSystem(name, rho)

    if arrival_rate == 0:
        return StationMetrics(
            name=name, arrival_rate=0.0, service_rate=service_rate, servers=servers,
            throughput=0.0, utilization=0.0, probability_no_customers=1.0,
            mean_queue_length=0.0, mean_number_in_system=0.0,
            mean_waiting_time=0.0, mean_sojourn_time=1.0 / service_rate,
        )

    a = arrival_rate / service_rate  # offered load

    # sum_{n=0}^{c-1} a^n / n!, built term by term to avoid overflow
    term = 1.0
    partial = 0.0
    for n in range(servers):
        if n > 0:
            term *= a / n
        partial += term
    tail_term = term * a / servers  # a^c / c!

    p0 = 1.0 / (partial + tail_term / (1.0 - rho))
    lq = p0 * tail_term * rho / (1.0 - rho) ** 2
    l = lq + a

    return StationMetrics(
        name=name,
        arrival_rate=arrival_rate,
        service_rate=service_rate,
        servers=servers,
        throughput=arrival_rate,
        utilization=rho,
        probability_no_customers=p0,
        mean_queue_length=lq,
        mean_number_in_system=l,
        mean_waiting_time=lq / arrival_rate,
        mean_sojourn_time=l / arrival_rate,
    )


class AnalyticalNetworkSolver:
    """Exact steady-state solver for open Jackson networks of M/M/c stations.

    The solver is a pure function of its inputs: solve() can be called any
    number of times and always returns equal results.
    """

    def __init__(self, topology: NetworkTopology, stations: Sequence[StationSpec]):
        """Initialize the solver.

        Args:
            topology: Routing between stations
            stations: One StationSpec per topology station (any order)
        """
        specs = {s.name: s for s in stations}
        if set(specs) != set(topology.stations) or len(specs) != len(stations):
            raise InvalidParameter(
                f"Station specs {sorted(specs)} do not match topology {list(topology.stations)}"
            )
        for spec in stations:
            if spec.external_arrival_rate < 0:
                raise InvalidParameter(f"{spec.name}: external arrival rate must be >= 0")

        self.topology = topology
        self.specs: List[StationSpec] = [specs[name] for name in topology.stations]
        self.logger = setup_logger(self.__class__.__name__)

    @classmethod
    def from_configuration(cls, configuration) -> "AnalyticalNetworkSolver":
        """Tandem network matching a facility Configuration.

        Finite waiting rooms are not representable in the closed forms and
        are treated as unbounded.
        """
        logger = setup_logger(cls.__name__)
        specs = []
        for i, stage in enumerate(configuration.stages):
            if stage.queue_capacity is not None:
                logger.warning(
                    f"Station '{stage.name}' has queue capacity {stage.queue_capacity}; "
                    f"the M/M/c model assumes an unbounded waiting room"
                )
            specs.append(StationSpec(
                name=stage.name,
                service_rate=stage.service_rate,
                servers=stage.capacity,
                external_arrival_rate=configuration.interarrival_rate if i == 0 else 0.0,
            ))
        topology = NetworkTopology.tandem(configuration.station_names)
        return cls(topology, specs)

    def solve_traffic(self) -> np.ndarray:
        """Solve lambda = gamma + P^T lambda for the total arrival rates.

        Returns:
            Array of total arrival rates in topology order

        Raises:
            InvalidParameter: If the routing traps customers (singular system)
        """
        gamma = np.array([s.external_arrival_rate for s in self.specs], dtype=float)
        p = self.topology.matrix()
        a = np.eye(len(gamma)) - p.T
        try:
            rates = np.linalg.solve(a, gamma)
        except np.linalg.LinAlgError:
            raise InvalidParameter("Routing matrix has no exit: traffic equations are singular")
        # Clean tiny negative round-off
        return np.where(np.abs(rates) < 1e-12, 0.0, rates)

    def solve(self) -> AnalyticalResult:
        """Compute per-station and network-wide metrics.

        Returns:
            AnalyticalResult

        Raises:
            UnstableSystem: If any station has utilization >= 1
        """
        rates = self.solve_traffic()
        stations = tuple(
            mmc_metrics(spec.name, float(lam), spec.service_rate, spec.servers)
            for spec, lam in zip(self.specs, rates)
        )

        external = sum(s.external_arrival_rate for s in self.specs)
        total_l = sum(m.mean_number_in_system for m in stations)
        total_w = total_l / external if external > 0 else 0.0

        self.logger.debug(
            f"Solved network: throughput={external:.4f}, L={total_l:.4f}, W={total_w:.4f}"
        )
        return AnalyticalResult(
            stations=stations,
            throughput=external,
            mean_number_in_system=total_l,
            mean_sojourn_time=total_w,
        )
