"""Capacity planning module for liftsim."""

from .planner import CapacityPlanner, run_capacity_planning
from .report_writer import ReportWriter

__all__ = ['CapacityPlanner', 'run_capacity_planning', 'ReportWriter']
