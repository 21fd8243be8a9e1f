"""Arrival generation and random variates."""

from .random_variates import RandomVariateSource
from .arrival_process import ArrivalGenerator

__all__ = ["RandomVariateSource", "ArrivalGenerator"]
