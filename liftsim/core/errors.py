"""Exception types raised by the simulation and analytical engines."""


class LiftSimError(Exception):
    """Base class for all liftsim errors."""


class InvalidParameter(LiftSimError, ValueError):
    """A rate, horizon, capacity or topology violates its constraints."""


class UnstableSystem(LiftSimError):
    """A station has utilization >= 1, so steady-state metrics do not exist.

    Attributes:
        station: Name of the first unstable station
        utilization: Its offered utilization rho = lambda / (c * mu)
    """

    def __init__(self, station: str, utilization: float):
        self.station = station
        self.utilization = utilization
        super().__init__(
            f"Station '{station}' is unstable: utilization {utilization:.4f} >= 1"
        )
