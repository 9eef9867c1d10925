"""Current project state: graph, start date and change log, kept in step."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from .engine.scheduler import FullRecompute, PreserveManual, ScheduleMode, Scheduler
from .history import tracking
from .history.log import ChangeLog
from .history.rollback import RollbackResult
from .models.change import ChangeLogEntry
from .models.task import Milestone, Task, copy_graph, find_milestone, find_task
from .operations.milestones import create_milestone, validate_milestone
from .operations.tasks import CloneOptions, SplitConfig
from .utils.config import get_default_config
from .utils.datetime_utils import to_date

logger = logging.getLogger(__name__)


class Project:
    """Owns the current graph and its log for a single writer.

    Every mutating method diffs the pre-mutation graph against the result,
    appends the entries to the log and then reschedules.
    """

    def __init__(
        self,
        name: str,
        project_start_date: date,
        milestones: Optional[List[Milestone]] = None,
        change_log: Optional[ChangeLog] = None,
        config: Optional[dict] = None,
        user: Optional[str] = None,
    ):
        self.name = name
        self.project_start_date = to_date(project_start_date)
        self.config = config or get_default_config()
        self.scheduler = Scheduler(self.config)
        self.change_log = change_log or ChangeLog()
        self.user = user
        self.milestones: List[Milestone] = copy_graph(milestones or [])

    @property
    def history(self) -> List[ChangeLogEntry]:
        return self.change_log.entries

    def reschedule(self, mode: Optional[ScheduleMode] = None) -> List[Milestone]:
        self.milestones = self.scheduler.schedule(self.milestones, self.project_start_date, mode or FullRecompute())
        return self.milestones

    def set_start_date(self, project_start_date: date) -> List[Milestone]:
        self.project_start_date = to_date(project_start_date)
        return self.reschedule()

    def _commit(self, result: tracking.TrackedResult, mode: Optional[ScheduleMode] = None) -> List[ChangeLogEntry]:
        # Schedule first so a dependency cycle leaves state and log untouched
        scheduled = self.scheduler.schedule(result.milestones, self.project_start_date, mode or FullRecompute())
        self.milestones = scheduled
        recorded = self.change_log.append(result.changes, user=self.user)
        logger.info("Committed %d change(s); log now has %d entries", len(recorded), len(self.change_log))
        return recorded

    def edit_task(self, task_id: str, **updates: Any) -> List[ChangeLogEntry]:
        return self._commit(tracking.apply_task_edit(self.milestones, task_id, updates))

    def place_task(self, task_id: str, start_date: date, end_date: date) -> List[ChangeLogEntry]:
        """Manual placement: pin the task to the given dates and reschedule around it."""
        updates: Dict[str, Any] = {"start_date": to_date(start_date), "end_date": to_date(end_date)}
        result = tracking.apply_task_edit(self.milestones, task_id, updates)
        return self._commit(result, PreserveManual({task_id}))

    def edit_milestone(self, milestone_id: str, **updates: Any) -> List[ChangeLogEntry]:
        return self._commit(tracking.apply_milestone_edit(self.milestones, milestone_id, updates))

    def add_milestone(self, milestone_name: str, description: Optional[str] = None) -> Milestone:
        """Create a milestone with a fresh id. Raises ValueError if the name is empty or taken."""
        validation = validate_milestone(milestone_name, self.milestones)
        if not validation.is_valid:
            raise ValueError("; ".join(validation.errors))
        milestone = create_milestone(milestone_name, self.milestones, description)
        self._commit(tracking.add_milestone_tracked(self.milestones, milestone))
        return find_milestone(self.milestones, milestone.milestone_id)

    def remove_milestone(self, milestone_id: str) -> List[ChangeLogEntry]:
        return self._commit(tracking.remove_milestone_tracked(self.milestones, milestone_id))

    def add_task(self, milestone_id: str, task: Task) -> List[ChangeLogEntry]:
        return self._commit(tracking.add_task_tracked(self.milestones, milestone_id, task))

    def clone_task(self, task_id: str, options: CloneOptions) -> Task:
        result, clone = tracking.clone_task_tracked(self.milestones, task_id, options)
        self._commit(result)
        scheduled, _ = find_task(self.milestones, clone.task_id)
        return scheduled or clone

    def split_task(self, task_id: str, split_config: SplitConfig) -> List[ChangeLogEntry]:
        return self._commit(tracking.split_task_tracked(self.milestones, task_id, split_config))

    def move_task(self, task_id: str, from_milestone_id: str, to_milestone_id: str) -> List[ChangeLogEntry]:
        return self._commit(
            tracking.move_task_tracked(self.milestones, task_id, from_milestone_id, to_milestone_id)
        )

    def remove_task(self, task_id: str) -> List[ChangeLogEntry]:
        return self._commit(tracking.remove_task_tracked(self.milestones, task_id))

    def rollback(self, target_index: int) -> RollbackResult:
        """Return to the state right after log entry `target_index` and reschedule."""
        result = self.change_log.rollback(self.milestones, target_index)
        self.milestones = result.milestones
        self.reschedule()
        result.milestones = self.milestones
        return result
