"""Task and milestone data models."""

import copy
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, List, Optional, Tuple


@dataclass
class Task:
    """A unit of work with a working-day duration and dependencies on other tasks."""

    task_id: str
    name: str
    duration_days: int
    description: str = ""
    team: str = ""
    sprint: Optional[str] = None
    depends_on: List[str] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self):
        """Validate duration and date order, normalize dependencies."""
        if isinstance(self.duration_days, bool) or not isinstance(self.duration_days, int):
            raise ValueError(
                f"Task {self.task_id}: duration_days must be an integer, got {self.duration_days!r}"
            )
        if self.duration_days < 1:
            raise ValueError(
                f"Task {self.task_id}: duration_days must be >= 1, got {self.duration_days}"
            )
        if self.start_date is not None and self.end_date is not None and self.start_date > self.end_date:
            raise ValueError(
                f"Task {self.task_id}: start_date {self.start_date} is after end_date {self.end_date}"
            )
        self.depends_on = list(self.depends_on or [])

    @property
    def is_scheduled(self) -> bool:
        """True once both dates are set."""
        return self.start_date is not None and self.end_date is not None


@dataclass
class Milestone:
    """An ordered group of tasks. Its date range is derived from the tasks."""

    milestone_id: str
    milestone_name: str
    tasks: List[Task] = field(default_factory=list)
    description: Optional[str] = None
    # Projection of the task dates written by the scheduler; never read as input
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.task_id == task_id:
                return task
        return None

    def task_index(self, task_id: str) -> int:
        """Position of a task in this milestone, -1 if absent."""
        for index, task in enumerate(self.tasks):
            if task.task_id == task_id:
                return index
        return -1


def copy_graph(milestones: List[Milestone]) -> List[Milestone]:
    """Deep copy of a milestone list so callers can mutate freely."""
    return copy.deepcopy(list(milestones))


def iter_tasks(milestones: List[Milestone]) -> Iterator[Tuple[Milestone, Task]]:
    """Yield (milestone, task) pairs in document order."""
    for milestone in milestones:
        for task in milestone.tasks:
            yield milestone, task


def find_task(milestones: List[Milestone], task_id: str) -> Tuple[Optional[Task], Optional[Milestone]]:
    """Locate a task anywhere in the project, with its owning milestone."""
    for milestone, task in iter_tasks(milestones):
        if task.task_id == task_id:
            return task, milestone
    return None, None


def find_milestone(milestones: List[Milestone], milestone_id: str) -> Optional[Milestone]:
    for milestone in milestones:
        if milestone.milestone_id == milestone_id:
            return milestone
    return None


def milestone_date_range(milestone: Milestone) -> Optional[Tuple[date, date]]:
    """Derived range: earliest start .. latest end over scheduled tasks, None if none are scheduled."""
    scheduled = [t for t in milestone.tasks if t.is_scheduled]
    if not scheduled:
        return None
    return (
        min(t.start_date for t in scheduled),
        max(t.end_date for t in scheduled),
    )
