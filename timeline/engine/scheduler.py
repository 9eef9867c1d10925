"""Core scheduling engine."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..models.task import Milestone, copy_graph, milestone_date_range
from ..utils.config import get_default_config
from ..utils.datetime_utils import add_working_days, next_working_day, to_date
from .graph import TaskIndex, topological_order

logger = logging.getLogger(__name__)


class ScheduleMode:
    """How a scheduling pass treats dates already present on tasks."""

    def is_pinned(self, task_id: str) -> bool:
        return False


@dataclass(frozen=True)
class FullRecompute(ScheduleMode):
    """Derive every date from the dependency graph."""


@dataclass(frozen=True)
class PreserveManual(ScheduleMode):
    """Keep the dates of tasks that were just placed by hand.

    Pinned tasks keep their start/end as given; their end date still
    anchors the tasks that depend on them.
    """

    pinned_task_ids: FrozenSet[str] = field(default_factory=frozenset)

    def __init__(self, pinned_task_ids: Iterable[str] = ()):
        object.__setattr__(self, "pinned_task_ids", frozenset(pinned_task_ids))

    def is_pinned(self, task_id: str) -> bool:
        return task_id in self.pinned_task_ids


class Scheduler:
    """Computes working-day start/end dates for every task in a project."""

    def __init__(self, config: Optional[dict] = None):
        """Initialize scheduler with configuration."""
        self.config = config or get_default_config()
        self.scheduling_config = self.config.get('scheduling', {})
        self.working_days = tuple(self.scheduling_config.get('working_days', [0, 1, 2, 3, 4]))

    def schedule(
        self,
        milestones: List[Milestone],
        project_start_date: date,
        mode: Optional[ScheduleMode] = None,
    ) -> List[Milestone]:
        """Return a copy of `milestones` with every task's dates populated.

        Raises DependencyCycleError if the dependencies cannot be ordered.
        """
        mode = mode or FullRecompute()
        project_start = to_date(project_start_date)
        anchor = next_working_day(project_start, self.working_days)

        updated = copy_graph(milestones)
        index = TaskIndex(updated)
        order = topological_order(index)

        task_dates: Dict[str, Tuple[date, date]] = {}
        pinned_count = 0

        for task_id in order:
            task = index.tasks[task_id]

            if mode.is_pinned(task_id) and task.is_scheduled:
                task_dates[task_id] = (task.start_date, task.end_date)
                pinned_count += 1
                logger.debug("Task %s pinned at %s..%s", task_id, task.start_date, task.end_date)
                continue

            unresolved = index.unresolved_dependencies(task)
            if unresolved:
                logger.debug("Task %s ignores unresolved dependencies %s", task_id, unresolved)

            start = anchor
            for dep_id in index.resolved_dependencies(task):
                dep_end = task_dates[dep_id][1]
                candidate = next_working_day(dep_end + timedelta(days=1), self.working_days)
                if candidate > start:
                    start = candidate

            end = add_working_days(start, task.duration_days - 1, self.working_days)
            task.start_date = start
            task.end_date = end
            task_dates[task_id] = (start, end)
            logger.debug("Task %s scheduled %s..%s", task_id, start, end)

        for milestone in updated:
            date_range = milestone_date_range(milestone)
            milestone.start_date, milestone.end_date = date_range if date_range else (None, None)

        logger.info(
            "Scheduled %d tasks across %d milestones from %s (%s, %d pinned)",
            len(order),
            len(updated),
            project_start,
            type(mode).__name__,
            pinned_count,
        )
        return updated


def schedule(
    milestones: List[Milestone],
    project_start_date: date,
    mode: Optional[ScheduleMode] = None,
    config: Optional[dict] = None,
) -> List[Milestone]:
    """Schedule with a one-off Scheduler."""
    return Scheduler(config).schedule(milestones, project_start_date, mode)


def project_end_date(milestones: List[Milestone]) -> Optional[date]:
    """Latest end date over all scheduled tasks."""
    ends = [m.end_date for m in milestones if m.end_date is not None]
    return max(ends) if ends else None
