"""Milestone timeline planner: working-day scheduling, graph edits and auditable rollback."""

__version__ = "0.1.0"
