"""Synthetic project generator for evaluation."""

import random
from typing import List

from ..models.task import Milestone, Task


class ProjectGenerator:
    """Generates deterministic milestone/task graphs for evaluation."""

    def __init__(self, seed: int = 42, config: dict = None):
        """Initialize generator with seed for reproducibility."""
        self.seed = seed
        self.random = random.Random(seed)
        self.config = config or {}
        self.generator_config = self.config.get('generator', {})

    def generate_milestones(
        self,
        milestone_count: int = None,
        tasks_per_milestone: int = None,
    ) -> List[Milestone]:
        """Generate an acyclic project: tasks only depend on tasks generated before them."""
        milestone_count = milestone_count or self.generator_config.get('milestone_count', 4)
        tasks_per_milestone = tasks_per_milestone or self.generator_config.get('tasks_per_milestone', 5)
        max_duration = self.generator_config.get('max_duration_days', 10)
        dependency_probability = self.generator_config.get('dependency_probability', 0.35)
        cross_probability = self.generator_config.get('cross_milestone_probability', 0.2)

        teams = ['Analysis', 'Development', 'QA', 'Documentation', 'Infrastructure']
        milestones: List[Milestone] = []
        all_task_ids: List[str] = []
        counter = 0

        for m in range(milestone_count):
            milestone = Milestone(
                milestone_id=f"M{m + 1:02d}",
                milestone_name=f"Milestone {m + 1}",
            )
            local_ids: List[str] = []

            for _ in range(tasks_per_milestone):
                counter += 1
                task_id = f"T{counter:03d}"

                # Vary task sizes (mostly short, some long)
                if self.random.random() < 0.6:
                    duration = self.random.randint(1, max(1, max_duration // 3))
                else:
                    duration = self.random.randint(1, max_duration)

                depends_on = []
                if local_ids and self.random.random() < dependency_probability:
                    depends_on.append(self.random.choice(local_ids))
                earlier = [t for t in all_task_ids if t not in local_ids]
                if earlier and self.random.random() < cross_probability:
                    dep = self.random.choice(earlier)
                    if dep not in depends_on:
                        depends_on.append(dep)

                milestone.tasks.append(Task(
                    task_id=task_id,
                    name=f"Task {counter}",
                    duration_days=duration,
                    team=self.random.choice(teams),
                    sprint=f"Sprint {m + 1}" if self.random.random() < 0.5 else None,
                    depends_on=depends_on,
                ))
                local_ids.append(task_id)
                all_task_ids.append(task_id)

            milestones.append(milestone)

        return milestones
