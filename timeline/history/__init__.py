"""Change tracking, audit log and rollback."""

from .diff import diff
from .log import ChangeLog
from .rollback import RollbackResult, replay, rollback
from .tracking import TrackedResult, apply_milestone_edit, apply_task_edit

__all__ = [
    'diff',
    'ChangeLog',
    'RollbackResult',
    'replay',
    'rollback',
    'TrackedResult',
    'apply_milestone_edit',
    'apply_task_edit',
]
