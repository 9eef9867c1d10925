"""Structural edits on the task graph.

Every function returns a new milestone list and leaves its arguments
untouched. Dates on new or restructured tasks are cleared; the caller
re-runs the scheduler.
"""

import logging
import random
import string
import time
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Set

from ..models.task import Milestone, Task, copy_graph, find_milestone, find_task, iter_tasks

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_random = random.Random()


@dataclass
class CloneOptions:
    target_milestone_id: str
    include_dependencies: bool = False
    new_name: Optional[str] = None


@dataclass
class SplitPart:
    name: str
    duration: int


@dataclass
class SplitConfig:
    splits: List[SplitPart] = field(default_factory=list)


def generate_unique_id(
    existing_ids: Iterable[str],
    prefix: str = "T",
    max_attempts: int = 100,
) -> str:
    """Generate `<prefix><ms timestamp>_<4 random chars>` not present in `existing_ids`."""
    taken: Set[str] = set(existing_ids)
    attempts = 0

    while True:
        timestamp = int(time.time() * 1000)
        suffix = "".join(_random.choice(_ID_ALPHABET) for _ in range(4))
        new_id = f"{prefix}{timestamp}_{suffix}"
        attempts += 1
        if new_id not in taken:
            return new_id
        if attempts > max_attempts:
            # Fallback in case of repeated collisions
            new_id = f"{prefix}{timestamp}_{attempts}"
            while new_id in taken:
                attempts += 1
                new_id = f"{prefix}{timestamp}_{attempts}"
            return new_id


def collect_task_ids(milestones: List[Milestone]) -> Set[str]:
    return {task.task_id for _, task in iter_tasks(milestones)}


def generate_unique_task_id(milestones: List[Milestone], prefix: str = "T") -> str:
    """Return a task id that collides with no task in any milestone."""
    return generate_unique_id(collect_task_ids(milestones), prefix=prefix)


def clone_task(task: Task, milestones: List[Milestone], options: CloneOptions) -> Task:
    """Copy a task under a fresh id. Dates are cleared; dependencies are kept only on request."""
    return replace(
        task,
        task_id=generate_unique_task_id(milestones),
        name=options.new_name or f"{task.name} (Copy)",
        depends_on=list(task.depends_on) if options.include_dependencies else [],
        start_date=None,
        end_date=None,
    )


def add_task_to_milestone(milestones: List[Milestone], task: Task, milestone_id: str) -> List[Milestone]:
    """Append a task to a milestone. Unknown milestone leaves the graph unchanged."""
    updated = copy_graph(milestones)
    target = find_milestone(updated, milestone_id)
    if target is None:
        logger.warning("Cannot add task %s: milestone %s not found", task.task_id, milestone_id)
        return updated
    target.tasks.append(replace(task, depends_on=list(task.depends_on)))
    return updated


def add_task(milestones: List[Milestone], milestone_id: str, task: Task) -> List[Milestone]:
    """Add a task, refusing ids that already exist anywhere in the project."""
    if task.task_id in collect_task_ids(milestones):
        raise ValueError(f"Task id {task.task_id} already exists")
    return add_task_to_milestone(milestones, task, milestone_id)


def split_task(task: Task, milestones: List[Milestone], split_config: SplitConfig) -> List[Task]:
    """Build a sequential chain of fresh-id tasks that replaces `task`.

    The first part inherits the original dependencies and every later part
    depends on the one before it. Whether the durations add up to the
    original is left to the caller.
    """
    if not split_config.splits:
        return [task]

    taken = collect_task_ids(milestones)
    chain: List[Task] = []

    for part in split_config.splits:
        new_id = generate_unique_id(taken)
        taken.add(new_id)
        depends_on = [chain[-1].task_id] if chain else list(task.depends_on)
        chain.append(replace(
            task,
            task_id=new_id,
            name=part.name,
            duration_days=part.duration,
            depends_on=depends_on,
            start_date=None,
            end_date=None,
        ))

    return chain


def update_dependencies_after_split(
    milestones: List[Milestone],
    original_task_id: str,
    split_chain: List[Task],
) -> List[Milestone]:
    """Point every reference to the original task at the last task of the chain."""
    updated = copy_graph(milestones)
    if not split_chain:
        return updated

    last_id = split_chain[-1].task_id
    chain_ids = {t.task_id for t in split_chain}

    for _, task in iter_tasks(updated):
        if task.task_id in chain_ids or original_task_id not in task.depends_on:
            continue
        rewired = []
        for dep_id in task.depends_on:
            new_dep = last_id if dep_id == original_task_id else dep_id
            if new_dep not in rewired:
                rewired.append(new_dep)
        task.depends_on = rewired

    return updated


def replace_task_with_split(
    milestones: List[Milestone],
    task_id: str,
    split_config: SplitConfig,
) -> List[Milestone]:
    """Remove a task, append its split chain to the same milestone and rewire dependents."""
    task, owner = find_task(milestones, task_id)
    if task is None:
        logger.warning("Cannot split task %s: not found", task_id)
        return copy_graph(milestones)

    chain = split_task(task, milestones, split_config)
    if len(chain) == 1 and chain[0] is task:
        return copy_graph(milestones)

    updated = copy_graph(milestones)
    target = find_milestone(updated, owner.milestone_id)
    target.tasks = [t for t in target.tasks if t.task_id != task_id] + chain

    logger.info("Split task %s into %s", task_id, [t.task_id for t in chain])
    return update_dependencies_after_split(updated, task_id, chain)


def move_task_between_milestones(
    milestones: List[Milestone],
    task_id: str,
    from_milestone_id: str,
    to_milestone_id: str,
) -> List[Milestone]:
    """Move a task object between milestones, keeping its id and dependencies.

    The task is appended to the target. Cross-milestone dependencies are not
    checked here. Unknown task or milestones leave the graph unchanged.
    """
    updated = copy_graph(milestones)
    source = find_milestone(updated, from_milestone_id)
    target = find_milestone(updated, to_milestone_id)
    if source is None or target is None:
        logger.warning("Cannot move task %s: milestone %s or %s not found",
                       task_id, from_milestone_id, to_milestone_id)
        return copy_graph(milestones)

    position = source.task_index(task_id)
    if position < 0:
        logger.warning("Cannot move task %s: not in milestone %s", task_id, from_milestone_id)
        return copy_graph(milestones)

    task = source.tasks.pop(position)
    target.tasks.append(task)
    return updated


def remove_task(milestones: List[Milestone], task_id: str) -> List[Milestone]:
    """Delete a task. References to it elsewhere are left dangling."""
    updated = copy_graph(milestones)
    for milestone in updated:
        milestone.tasks = [t for t in milestone.tasks if t.task_id != task_id]
    return updated


def update_task(milestones: List[Milestone], task_id: str, /, **updates) -> List[Milestone]:
    """Set fields on one task. Raises ValueError on unknown field names."""
    allowed = set(Task.__dataclass_fields__) - {"task_id"}
    unknown = set(updates) - allowed
    if unknown:
        raise ValueError(f"Unknown task field(s): {', '.join(sorted(unknown))}")

    updated = copy_graph(milestones)
    task, _ = find_task(updated, task_id)
    if task is None:
        logger.warning("Cannot update task %s: not found", task_id)
        return updated

    for name, value in updates.items():
        if name == "depends_on":
            value = list(value or [])
        setattr(task, name, value)
    # Re-run validation on the edited values
    task.__post_init__()
    return updated
