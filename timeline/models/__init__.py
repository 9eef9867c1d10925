"""Data models."""

from .change import ChangeLogEntry, ChangeType, EntityType
from .task import Milestone, Task, milestone_date_range

__all__ = ['ChangeLogEntry', 'ChangeType', 'EntityType', 'Milestone', 'Task', 'milestone_date_range']
