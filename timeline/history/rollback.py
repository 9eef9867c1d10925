"""Reconstruct earlier project states from the change log."""

import copy
import logging
from dataclasses import dataclass
from itertools import groupby
from typing import Dict, List, Optional, Tuple

from ..models.change import ChangeLogEntry, ChangeType
from ..models.task import Milestone, Task, copy_graph, find_milestone, find_task

logger = logging.getLogger(__name__)

# Undo: tasks waiting for their milestone to be restored, keyed by milestone id
Parked = Dict[str, List[Tuple[int, Task]]]
# Replay: tasks of a removed milestone, kept until their own entries are applied
Orphans = Dict[str, Task]


@dataclass
class RollbackResult:
    milestones: List[Milestone]
    log: List[ChangeLogEntry]


def _insert(items: list, position: Optional[int], item) -> None:
    if position is None or position < 0 or position > len(items):
        items.append(item)
    else:
        items.insert(position, item)


def _detach_task(milestones: List[Milestone], task_id: str, orphans: Optional[Orphans] = None) -> Optional[Task]:
    task, owner = find_task(milestones, task_id)
    if task is None:
        return orphans.pop(task_id, None) if orphans is not None else None
    owner.tasks = [t for t in owner.tasks if t.task_id != task_id]
    return task


def _place_task(
    milestones: List[Milestone],
    milestone_id: str,
    position: Optional[int],
    task: Task,
    parked: Parked,
) -> None:
    owner = find_milestone(milestones, milestone_id)
    if owner is None:
        parked.setdefault(milestone_id, []).append((position if position is not None else -1, task))
        return
    _insert(owner.tasks, position, task)


def _restore_milestone(milestones: List[Milestone], entry: ChangeLogEntry, parked: Parked) -> None:
    if find_milestone(milestones, entry.entity_id) is not None:
        logger.warning("Milestone %s already present; not restoring it again", entry.entity_id)
        return
    milestone = copy.deepcopy(entry.snapshot)
    milestone.tasks = []
    for position, task in sorted(parked.pop(entry.entity_id, []), key=lambda item: item[0]):
        _insert(milestone.tasks, position, task)
    _insert(milestones, entry.position, milestone)


def _set_field(milestones: List[Milestone], entry: ChangeLogEntry, value) -> None:
    if entry.is_task:
        target, _ = find_task(milestones, entry.entity_id)
    else:
        target = find_milestone(milestones, entry.entity_id)
    if target is None:
        logger.warning("Cannot set %s on missing %s %s",
                       entry.field_name, entry.entity_type.value, entry.entity_id)
        return
    setattr(target, entry.field_name, copy.deepcopy(value))


def invert_entry(milestones: List[Milestone], entry: ChangeLogEntry, parked: Parked) -> None:
    """Undo one entry in place on a working copy.

    Task entries of a batch are undone before the milestone entries that
    precede them in the log, so a task may need a milestone that is not back
    yet. Such tasks go to `parked` and are attached when it is restored.
    """
    if entry.change_type == ChangeType.ADDED:
        if entry.is_task:
            _detach_task(milestones, entry.entity_id)
        else:
            milestone = find_milestone(milestones, entry.entity_id)
            if milestone is not None:
                if milestone.tasks:
                    logger.warning("Removing milestone %s with %d task(s) still attached",
                                   entry.entity_id, len(milestone.tasks))
                milestones.remove(milestone)

    elif entry.change_type == ChangeType.REMOVED:
        if entry.is_task:
            _place_task(milestones, entry.milestone_id, entry.position,
                        copy.deepcopy(entry.snapshot), parked)
        else:
            _restore_milestone(milestones, entry, parked)

    elif entry.change_type == ChangeType.MODIFIED:
        _set_field(milestones, entry, entry.old_value)

    elif entry.change_type == ChangeType.MOVED:
        task = _detach_task(milestones, entry.entity_id)
        if task is None:
            logger.warning("Cannot move back missing task %s", entry.entity_id)
            return
        _place_task(milestones, entry.old_value, entry.position, task, parked)


def apply_batch(milestones: List[Milestone], entries: List[ChangeLogEntry], orphans: Orphans) -> None:
    """Apply the entries of one diff forward, in place on a working copy.

    ADDED and MOVED positions are indexes in the graph after the whole diff,
    so removals and detaches run first and the incoming tasks are inserted
    afterwards in ascending position order. Field edits run last, once every
    task is in place.
    """
    incoming: List[Tuple[int, str, Task]] = []
    edits: List[ChangeLogEntry] = []

    for entry in entries:
        if entry.is_milestone and entry.change_type == ChangeType.REMOVED:
            milestone = find_milestone(milestones, entry.entity_id)
            if milestone is not None:
                milestones.remove(milestone)
                for task in milestone.tasks:
                    orphans[task.task_id] = task

    for entry in entries:
        if entry.is_milestone and entry.change_type == ChangeType.ADDED:
            milestone = copy.deepcopy(entry.snapshot)
            milestone.tasks = []
            _insert(milestones, entry.position, milestone)

    for entry in entries:
        if entry.change_type == ChangeType.MODIFIED:
            edits.append(entry)
        elif not entry.is_task:
            continue
        elif entry.change_type == ChangeType.REMOVED:
            _detach_task(milestones, entry.entity_id, orphans)
        elif entry.change_type == ChangeType.MOVED:
            task = _detach_task(milestones, entry.entity_id, orphans)
            if task is None:
                logger.warning("Cannot move missing task %s", entry.entity_id)
                continue
            incoming.append((entry.new_position, entry.new_value, task))
        elif entry.change_type == ChangeType.ADDED:
            incoming.append((entry.position, entry.milestone_id, copy.deepcopy(entry.snapshot)))

    # Unknown positions (older entries) go to the end of their milestone
    incoming.sort(key=lambda item: (item[0] is None, item[0] or 0))
    for position, milestone_id, task in incoming:
        owner = find_milestone(milestones, milestone_id)
        if owner is None:
            logger.warning("Cannot place task %s: milestone %s missing", task.task_id, milestone_id)
            continue
        _insert(owner.tasks, position, task)

    for entry in edits:
        _set_field(milestones, entry, entry.new_value)


def rollback(
    current: List[Milestone],
    log: List[ChangeLogEntry],
    target_index: int,
) -> RollbackResult:
    """Undo every entry after `target_index` and truncate the log to match.

    The returned graph is the state right after `log[target_index]` was
    appended; its dates are stale until the scheduler runs again. An
    out-of-range index returns the current graph and the full log.
    """
    if target_index < 0 or target_index >= len(log):
        logger.warning("Rollback index %d out of range for log of %d entries; ignoring",
                       target_index, len(log))
        return RollbackResult(milestones=copy_graph(current), log=list(log))

    working = copy_graph(current)
    parked: Parked = {}

    for entry in reversed(log[target_index + 1:]):
        invert_entry(working, entry, parked)

    for milestone_id, tasks in parked.items():
        logger.warning("Dropping %d task(s) whose milestone %s was never restored",
                       len(tasks), milestone_id)

    logger.info("Rolled back %d change(s) to index %d", len(log) - target_index - 1, target_index)
    return RollbackResult(milestones=working, log=list(log[:target_index + 1]))


def replay(milestones: List[Milestone], entries: List[ChangeLogEntry]) -> List[Milestone]:
    """Apply entries forward on a copy of `milestones`, one diff batch at a time."""
    working = copy_graph(milestones)
    orphans: Orphans = {}
    # Entries without a batch id are applied one by one
    for _, batch in groupby(entries, key=lambda e: e.batch_id or id(e)):
        apply_batch(working, list(batch), orphans)
    return working
