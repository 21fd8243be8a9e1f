"""Facility configuration: simulation horizon, arrivals and the station chain."""

import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Sequence, Tuple

from ..core.errors import InvalidParameter

UNBOUNDED_ALIASES = ("unbounded", "inf", "infinite", "infinity")


def _require_number(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameter(f"{name} must be a number, got {value!r}")


def require_positive(name: str, value: float) -> None:
    _require_number(name, value)
    if not value > 0 or math.isinf(value):
        raise InvalidParameter(f"{name} must be a finite number > 0, got {value!r}")


def require_non_negative(name: str, value: float) -> None:
    _require_number(name, value)
    if not value >= 0 or math.isinf(value):
        raise InvalidParameter(f"{name} must be a finite number >= 0, got {value!r}")


def require_int_at_least(name: str, value: int, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidParameter(f"{name} must be an integer >= {minimum}, got {value!r}")


def parse_queue_capacity(value: Any) -> Optional[int]:
    """Translate a configured queue capacity into an int or None (unbounded).

    Args:
        value: Integer, None, or one of the unbounded aliases

    Returns:
        Integer capacity, or None for an unbounded waiting room
    """
    if value is None:
        return None
    if isinstance(value, str):
        if value.strip().lower() in UNBOUNDED_ALIASES:
            return None
        try:
            value = int(value)
        except ValueError:
            raise InvalidParameter(f"Unrecognised queue capacity: {value!r}")
    if isinstance(value, float):
        if math.isinf(value):
            return None
        if not value.is_integer():
            raise InvalidParameter(f"queue_capacity must be an integer, got {value!r}")
        value = int(value)
    return value


@dataclass(frozen=True)
class StageConfig:
    """One capacitated station in the chain (e.g. the lift or the run)."""

    name: str
    service_rate: float
    capacity: int = 1
    queue_capacity: Optional[int] = None  # None means unbounded

    def validate(self) -> None:
        """Raise InvalidParameter if the station definition is inconsistent."""
        if not self.name:
            raise InvalidParameter("Station name must be a non-empty string")
        require_positive(f"{self.name}.service_rate", self.service_rate)
        require_int_at_least(f"{self.name}.capacity", self.capacity, 1)
        if self.queue_capacity is not None:
            require_int_at_least(f"{self.name}.queue_capacity", self.queue_capacity, 0)

    @property
    def is_unbounded(self) -> bool:
        return self.queue_capacity is None

    @classmethod
    def from_dict(cls, config: Dict) -> "StageConfig":
        """Build a station from its configuration dictionary.

        Args:
            config: Dictionary with name, service_rate, capacity, queue_capacity

        Returns:
            StageConfig instance (not yet validated)
        """
        if not isinstance(config, Mapping):
            raise InvalidParameter(f"Station definition must be a mapping, got {config!r}")
        return cls(
            name=str(config.get('name', '')),
            service_rate=config.get('service_rate'),
            capacity=config.get('capacity', 1),
            queue_capacity=parse_queue_capacity(config.get('queue_capacity')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'service_rate': self.service_rate,
            'capacity': self.capacity,
            'queue_capacity': 'unbounded' if self.queue_capacity is None else self.queue_capacity,
        }


@dataclass(frozen=True)
class Configuration:
    """Immutable input record for both engines.

    Attributes:
        horizon: Simulated time span; arrivals after it are not generated
        interarrival_rate: Poisson arrival rate into the first station
        stages: Ordered chain of stations every customer visits
        warmup: Initial period excluded from summary statistics
        percentiles: Flow-time percentiles reported by the aggregator
    """

    horizon: float
    interarrival_rate: float
    stages: Tuple[StageConfig, ...]
    warmup: float = 0.0
    percentiles: Tuple[float, ...] = field(default=(50.0, 90.0, 95.0))

    def __post_init__(self):
        object.__setattr__(self, 'stages', tuple(self.stages))
        object.__setattr__(self, 'percentiles', tuple(self.percentiles))
        self.validate()

    def validate(self) -> None:
        """Fail fast on any invalid parameter.

        Raises:
            InvalidParameter: If a rate, horizon, capacity or name is invalid
        """
        require_positive("horizon", self.horizon)
        require_non_negative("interarrival_rate", self.interarrival_rate)
        require_non_negative("warmup", self.warmup)
        if self.warmup >= self.horizon:
            raise InvalidParameter(
                f"warmup ({self.warmup}) must be shorter than the horizon ({self.horizon})"
            )
        if not self.stages:
            raise InvalidParameter("At least one station is required")
        for stage in self.stages:
            stage.validate()
        names = [stage.name for stage in self.stages]
        if len(set(names)) != len(names):
            raise InvalidParameter(f"Station names must be unique: {names}")
        for p in self.percentiles:
            if not 0 <= p <= 100:
                raise InvalidParameter(f"Percentile {p} outside [0, 100]")

    @property
    def station_names(self) -> Tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def stage(self, name: str) -> StageConfig:
        """Look up a station by name."""
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(f"Unknown station: {name}")

    def with_arrival_rate(self, rate: float) -> "Configuration":
        """Return a copy with a different interarrival rate."""
        return replace(self, interarrival_rate=rate)

    def with_stage(self, name: str, **changes) -> "Configuration":
        """Return a copy where one station has some fields replaced.

        Args:
            name: Station to modify
            **changes: StageConfig fields to override

        Returns:
            New validated Configuration
        """
        self.stage(name)
        stages = tuple(
            replace(stage, **changes) if stage.name == name else stage
            for stage in self.stages
        )
        return replace(self, stages=stages)

    @classmethod
    def from_dict(cls, config: Dict) -> "Configuration":
        """Build a validated configuration from a (YAML-loaded) dictionary.

        Args:
            config: Dictionary with 'simulation', 'arrivals', 'stations'
                and optional 'metrics' sections

        Returns:
            Validated Configuration

        Raises:
            InvalidParameter: If a section is missing or a value is invalid
        """
        if not isinstance(config, Mapping):
            raise InvalidParameter(f"Configuration must be a mapping, got {type(config).__name__}")
        try:
            simulation = config['simulation']
            arrivals = config['arrivals']
            stations = config['stations']
        except KeyError as e:
            raise InvalidParameter(f"Missing configuration section: {e}")

        metrics = config.get('metrics')
        if metrics is None:
            metrics = {}
        for section, value in (('simulation', simulation), ('arrivals', arrivals),
                               ('metrics', metrics)):
            if not isinstance(value, Mapping):
                raise InvalidParameter(f"'{section}' section must be a mapping, got {value!r}")

        if not isinstance(stations, Sequence) or isinstance(stations, (str, bytes)):
            raise InvalidParameter("'stations' must be a list of station definitions")
        return cls(
            horizon=simulation.get('horizon'),
            interarrival_rate=arrivals.get('rate'),
            stages=tuple(StageConfig.from_dict(s) for s in stations),
            warmup=simulation.get('warmup', 0.0) or 0.0,
            percentiles=tuple(metrics.get('percentiles', (50.0, 90.0, 95.0))),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_dict, used when writing reports."""
        return {
            'simulation': {'horizon': self.horizon, 'warmup': self.warmup},
            'arrivals': {'rate': self.interarrival_rate},
            'stations': [stage.to_dict() for stage in self.stages],
            'metrics': {'percentiles': list(self.percentiles)},
        }

    def __repr__(self) -> str:
        chain = " -> ".join(
            f"{s.name}(mu={s.service_rate}, c={s.capacity})" for s in self.stages
        )
        return (f"Configuration(lambda={self.interarrival_rate}, "
                f"horizon={self.horizon}, chain={chain})")
