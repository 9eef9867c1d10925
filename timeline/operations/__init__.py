"""Structural graph operations."""

from .tasks import (
    CloneOptions,
    SplitConfig,
    SplitPart,
    clone_task,
    generate_unique_task_id,
    move_task_between_milestones,
    split_task,
    update_dependencies_after_split,
)

__all__ = [
    'CloneOptions',
    'SplitConfig',
    'SplitPart',
    'clone_task',
    'generate_unique_task_id',
    'move_task_between_milestones',
    'split_task',
    'update_dependencies_after_split',
]
