"""Facility configuration models."""

from .facility_config import Configuration, StageConfig, parse_queue_capacity

__all__ = ["Configuration", "StageConfig", "parse_queue_capacity"]
