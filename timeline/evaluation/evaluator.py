"""Offline evaluation suite: checks schedules against their invariants."""

import json
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from ..engine.graph import TaskIndex
from ..engine.scheduler import FullRecompute, Scheduler, project_end_date
from ..models.task import Milestone, iter_tasks, milestone_date_range
from ..utils.datetime_utils import count_working_days, is_working_day, next_working_day
from .generator import ProjectGenerator


class EvaluationResult:
    """Results from checking one schedule."""

    def __init__(self, project_start: date):
        self.project_start = project_start
        self.tasks_total = 0
        self.tasks_scheduled = 0
        self.milestones_total = 0
        self.project_end: Optional[date] = None
        self.calendar_days = 0
        self.working_days = 0
        self.violations: List[str] = []
        self.fixed_point = True

    @property
    def ok(self) -> bool:
        return not self.violations and self.fixed_point

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON export."""
        return {
            'project_start': self.project_start.isoformat(),
            'project_end': self.project_end.isoformat() if self.project_end else None,
            'tasks_total': self.tasks_total,
            'tasks_scheduled': self.tasks_scheduled,
            'milestones_total': self.milestones_total,
            'calendar_days': self.calendar_days,
            'working_days': self.working_days,
            'fixed_point': self.fixed_point,
            'violations': list(self.violations),
            'ok': self.ok,
        }


class Evaluator:
    """Schedules generated projects and verifies the output."""

    def __init__(self, config: dict):
        """Initialize evaluator with configuration."""
        self.config = config
        self.scheduler = Scheduler(config)
        self.generator = ProjectGenerator(seed=42, config=config)

    def check_schedule(self, milestones: List[Milestone], project_start: date) -> EvaluationResult:
        """Verify dependency ordering, working-day spans, milestone ranges and idempotence."""
        working_days = self.scheduler.working_days
        result = EvaluationResult(project_start)
        result.milestones_total = len(milestones)
        index = TaskIndex(milestones)
        anchor = next_working_day(project_start, working_days)

        for milestone in milestones:
            date_range = milestone_date_range(milestone)
            if date_range and (milestone.start_date, milestone.end_date) != date_range:
                result.violations.append(f"{milestone.milestone_id}: stale milestone range")

        for _, task in iter_tasks(milestones):
            result.tasks_total += 1
            if not task.is_scheduled:
                result.violations.append(f"{task.task_id}: not scheduled")
                continue
            result.tasks_scheduled += 1

            if task.start_date > task.end_date:
                result.violations.append(f"{task.task_id}: starts after it ends")
            if task.start_date < anchor:
                result.violations.append(f"{task.task_id}: starts before the project")
            if not is_working_day(task.start_date, working_days):
                result.violations.append(f"{task.task_id}: starts on a non-working day")
            if count_working_days(task.start_date, task.end_date, working_days) != task.duration_days:
                result.violations.append(f"{task.task_id}: span does not match {task.duration_days} working days")

            for dep_id in index.resolved_dependencies(task):
                dep = index.tasks[dep_id]
                if dep.end_date is None:
                    continue
                earliest = next_working_day(dep.end_date + timedelta(days=1), working_days)
                if task.start_date < earliest:
                    result.violations.append(f"{task.task_id}: starts before dependency {dep_id} ends")

        result.project_end = project_end_date(milestones)
        if result.project_end:
            result.calendar_days = (result.project_end - anchor).days + 1
            result.working_days = count_working_days(anchor, result.project_end, working_days)

        rescheduled = self.scheduler.schedule(milestones, project_start, FullRecompute())
        before = {t.task_id: (t.start_date, t.end_date) for _, t in iter_tasks(milestones)}
        after = {t.task_id: (t.start_date, t.end_date) for _, t in iter_tasks(rescheduled)}
        result.fixed_point = before == after

        return result

    def run_evaluation(
        self,
        project_start: date,
        output_dir: Optional[str] = "results",
    ) -> EvaluationResult:
        """Generate a project, schedule it and check the result."""
        milestones = self.generator.generate_milestones()
        scheduled = self.scheduler.schedule(milestones, project_start, FullRecompute())
        result = self.check_schedule(scheduled, project_start)

        if output_dir:
            output_path = Path(output_dir)
            output_path.mkdir(parents=True, exist_ok=True)
            with open(output_path / 'evaluation_results.json', 'w') as f:
                json.dump(result.to_dict(), f, indent=2, default=str)

        self._print_summary(result)
        return result

    def _print_summary(self, result: EvaluationResult):
        """Print evaluation report."""
        print("\n" + "=" * 70)
        print("SCHEDULE EVALUATION")
        print("=" * 70)
        print(f"{'Tasks scheduled':<40} {result.tasks_scheduled}/{result.tasks_total}")
        print(f"{'Milestones':<40} {result.milestones_total}")
        print(f"{'Project end':<40} {result.project_end}")
        print(f"{'Working days':<40} {result.working_days}")
        print(f"{'Fixed point':<40} {result.fixed_point}")
        print(f"{'Violations':<40} {len(result.violations)}")
        for violation in result.violations:
            print(f"  - {violation}")
        print("=" * 70)
