"""Dependency graph and scheduling engine."""

from .graph import DependencyCycleError, ValidationResult, dependency_info, validate_dependencies
from .scheduler import FullRecompute, PreserveManual, ScheduleMode, Scheduler, schedule

__all__ = [
    'DependencyCycleError',
    'ValidationResult',
    'dependency_info',
    'validate_dependencies',
    'FullRecompute',
    'PreserveManual',
    'ScheduleMode',
    'Scheduler',
    'schedule',
]
