"""Mutation entry points that return the new graph together with its change entries.

Each one runs the structural operation on the untouched input and diffs the
input against the result. Nothing here diffs a graph against itself.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

from ..models.change import ChangeLogEntry
from ..models.task import Milestone, Task, find_task
from ..operations import milestones as milestone_ops
from ..operations import tasks as task_ops
from .diff import diff

logger = logging.getLogger(__name__)


@dataclass
class TrackedResult:
    milestones: List[Milestone]
    changes: List[ChangeLogEntry]

    def __iter__(self):
        # Allows `milestones, changes = tracked_op(...)`
        return iter((self.milestones, self.changes))


def with_change_tracking(operation: Callable[..., List[Milestone]]) -> Callable[..., TrackedResult]:
    """Wrap `operation(milestones, ...) -> milestones` so it also returns the diff."""

    @functools.wraps(operation)
    def tracked(milestones: List[Milestone], *args, **kwargs) -> TrackedResult:
        updated = operation(milestones, *args, **kwargs)
        changes = diff(milestones, updated)
        logger.debug("%s produced %d change(s)", operation.__name__, len(changes))
        return TrackedResult(updated, changes)

    return tracked


def apply_task_edit(milestones: List[Milestone], task_id: str, updates: Dict[str, Any]) -> TrackedResult:
    """Apply field updates to one task and return the new graph with its changes.

    Date fields may be edited (a manual placement) but are not audited.
    Raises ValueError for unknown fields or an invalid duration.
    """
    updated = task_ops.update_task(milestones, task_id, **updates)
    return TrackedResult(updated, diff(milestones, updated))


def apply_milestone_edit(milestones: List[Milestone], milestone_id: str, updates: Dict[str, Any]) -> TrackedResult:
    updated = milestone_ops.update_milestone(milestones, milestone_id, **updates)
    return TrackedResult(updated, diff(milestones, updated))


def clone_task_tracked(
    milestones: List[Milestone],
    task_id: str,
    options: task_ops.CloneOptions,
) -> Tuple[TrackedResult, Task]:
    """Clone a task into the target milestone. Returns the tracked result and the clone."""
    task, _ = find_task(milestones, task_id)
    if task is None:
        raise ValueError(f"Task {task_id} not found")
    clone = task_ops.clone_task(task, milestones, options)
    updated = task_ops.add_task_to_milestone(milestones, clone, options.target_milestone_id)
    return TrackedResult(updated, diff(milestones, updated)), clone


add_task_tracked = with_change_tracking(task_ops.add_task)
split_task_tracked = with_change_tracking(task_ops.replace_task_with_split)
move_task_tracked = with_change_tracking(task_ops.move_task_between_milestones)
remove_task_tracked = with_change_tracking(task_ops.remove_task)
add_milestone_tracked = with_change_tracking(milestone_ops.add_milestone)
remove_milestone_tracked = with_change_tracking(milestone_ops.remove_milestone)
