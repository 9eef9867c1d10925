"""Entity and field level differences between two project snapshots."""

import copy
import logging
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Tuple

from ..models.change import (
    MILESTONE_FIELDS,
    TASK_FIELDS,
    ChangeLogEntry,
    ChangeType,
    EntityType,
)
from ..models.task import Milestone, Task

logger = logging.getLogger(__name__)


def _normalized(field_name: str, value: Any) -> Any:
    # Dependencies are a set in meaning; the stored order is incidental
    if field_name == "depends_on":
        return sorted(value or [])
    return value


def _milestone_snapshot(milestone: Milestone) -> Milestone:
    """Copy of a milestone without its tasks or derived dates."""
    return replace(milestone, tasks=[], start_date=None, end_date=None)


def _task_snapshot(task: Task) -> Task:
    return copy.deepcopy(task)


def _index_milestones(milestones: List[Milestone]) -> Dict[str, Tuple[int, Milestone]]:
    return {m.milestone_id: (i, m) for i, m in enumerate(milestones)}


def _index_tasks(milestones: List[Milestone]) -> Dict[str, Tuple[Milestone, int, Task]]:
    index = {}
    for milestone in milestones:
        for position, task in enumerate(milestone.tasks):
            index[task.task_id] = (milestone, position, task)
    return index


def diff_task_fields(old: Task, new: Task, milestone: Milestone) -> List[ChangeLogEntry]:
    """One MODIFIED entry per differing field, in TASK_FIELDS order."""
    changes = []
    for field_name in TASK_FIELDS:
        old_value = getattr(old, field_name)
        new_value = getattr(new, field_name)
        if _normalized(field_name, old_value) == _normalized(field_name, new_value):
            continue
        changes.append(ChangeLogEntry(
            entity_type=EntityType.TASK,
            change_type=ChangeType.MODIFIED,
            entity_id=new.task_id,
            entity_name=new.name,
            milestone_id=milestone.milestone_id,
            milestone_name=milestone.milestone_name,
            field_name=field_name,
            old_value=copy.deepcopy(old_value),
            new_value=copy.deepcopy(new_value),
        ))
    return changes


def diff_milestone_fields(old: Milestone, new: Milestone) -> List[ChangeLogEntry]:
    changes = []
    for field_name in MILESTONE_FIELDS:
        old_value = getattr(old, field_name)
        new_value = getattr(new, field_name)
        if old_value == new_value:
            continue
        changes.append(ChangeLogEntry(
            entity_type=EntityType.MILESTONE,
            change_type=ChangeType.MODIFIED,
            entity_id=new.milestone_id,
            entity_name=new.milestone_name,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
        ))
    return changes


def diff(old_milestones: List[Milestone], new_milestones: List[Milestone]) -> List[ChangeLogEntry]:
    """Compare two snapshots and return the ordered changes from old to new.

    Emission order is fixed and rollback relies on it: milestone additions
    and field edits (new order), milestone removals (reverse old order), task
    additions, moves and field edits (new order), task removals (reverse old
    order). Undoing removals backwards then re-inserts them at ascending
    positions.
    All entries of one call share a `batch_id`, which replay uses to apply
    them together. Neither input is modified; every value placed in an entry
    is a copy.
    """
    old_ms = _index_milestones(old_milestones)
    new_ms = _index_milestones(new_milestones)
    old_tasks = _index_tasks(old_milestones)
    new_tasks = _index_tasks(new_milestones)

    changes: List[ChangeLogEntry] = []

    for position, milestone in enumerate(new_milestones):
        previous = old_ms.get(milestone.milestone_id)
        if previous is None:
            changes.append(ChangeLogEntry(
                entity_type=EntityType.MILESTONE,
                change_type=ChangeType.ADDED,
                entity_id=milestone.milestone_id,
                entity_name=milestone.milestone_name,
                snapshot=_milestone_snapshot(milestone),
                position=position,
            ))
        else:
            changes.extend(diff_milestone_fields(previous[1], milestone))

    for position, milestone in reversed(list(enumerate(old_milestones))):
        if milestone.milestone_id not in new_ms:
            changes.append(ChangeLogEntry(
                entity_type=EntityType.MILESTONE,
                change_type=ChangeType.REMOVED,
                entity_id=milestone.milestone_id,
                entity_name=milestone.milestone_name,
                snapshot=_milestone_snapshot(milestone),
                position=position,
            ))

    for milestone, position, task in iter_positions(new_milestones):
        previous = old_tasks.get(task.task_id)
        if previous is None:
            changes.append(ChangeLogEntry(
                entity_type=EntityType.TASK,
                change_type=ChangeType.ADDED,
                entity_id=task.task_id,
                entity_name=task.name,
                milestone_id=milestone.milestone_id,
                milestone_name=milestone.milestone_name,
                snapshot=_task_snapshot(task),
                position=position,
            ))
            continue

        old_owner, old_position, old_task = previous
        if old_owner.milestone_id != milestone.milestone_id:
            changes.append(ChangeLogEntry(
                entity_type=EntityType.TASK,
                change_type=ChangeType.MOVED,
                entity_id=task.task_id,
                entity_name=task.name,
                milestone_id=milestone.milestone_id,
                milestone_name=milestone.milestone_name,
                old_value=old_owner.milestone_id,
                new_value=milestone.milestone_id,
                position=old_position,
                new_position=position,
            ))
        changes.extend(diff_task_fields(old_task, task, milestone))

    for milestone, position, task in reversed(list(iter_positions(old_milestones))):
        if task.task_id not in new_tasks:
            changes.append(ChangeLogEntry(
                entity_type=EntityType.TASK,
                change_type=ChangeType.REMOVED,
                entity_id=task.task_id,
                entity_name=task.name,
                milestone_id=milestone.milestone_id,
                milestone_name=milestone.milestone_name,
                snapshot=_task_snapshot(task),
                position=position,
            ))

    if changes:
        batch_id = uuid.uuid4().hex
        for change in changes:
            change.batch_id = batch_id
        logger.debug("Diff produced %d change(s) in batch %s", len(changes), batch_id)
    return changes


def iter_positions(milestones: List[Milestone]):
    """Yield (milestone, index within milestone, task) in document order."""
    for milestone in milestones:
        for position, task in enumerate(milestone.tasks):
            yield milestone, position, task
