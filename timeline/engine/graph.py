"""Project-wide dependency graph helpers.

Index maps are rebuilt on every call and never cached between calls, so the
functions here are safe to call on any snapshot of the project.
"""

import heapq
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..models.task import Milestone, Task, iter_tasks


class DependencyCycleError(ValueError):
    """Raised when the dependency relation contains a cycle and cannot be ordered."""

    def __init__(self, unresolved: List[str], cycle: Optional[List[str]] = None):
        self.unresolved = list(unresolved)
        self.cycle = list(cycle or [])
        path = " -> ".join(self.cycle) if self.cycle else ", ".join(self.unresolved)
        super().__init__(f"Circular dependency detected: {path}")


@dataclass
class ValidationResult:
    """Outcome of a validation pass: errors block, warnings are advisory."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class DependencyInfo:
    """Resolved and unresolved dependencies of a task, plus the tasks that depend on it."""

    task_id: str
    depends_on: List[Task]
    unresolved: List[str]
    dependents: List[Task]

    @property
    def has_dependencies(self) -> bool:
        return bool(self.depends_on or self.dependents)

    @property
    def has_unresolved(self) -> bool:
        return bool(self.unresolved)


class TaskIndex:
    """Id-keyed lookup over every task in the project."""

    def __init__(self, milestones: List[Milestone]):
        self.tasks: Dict[str, Task] = {}
        self.owner: Dict[str, str] = {}
        self.position: Dict[str, int] = {}

        for milestone, task in iter_tasks(milestones):
            self.position[task.task_id] = len(self.tasks)
            self.tasks[task.task_id] = task
            self.owner[task.task_id] = milestone.milestone_id

    def __contains__(self, task_id: str) -> bool:
        return task_id in self.tasks

    def __len__(self) -> int:
        return len(self.tasks)

    def get(self, task_id: str) -> Optional[Task]:
        return self.tasks.get(task_id)

    def resolved_dependencies(self, task: Task) -> List[str]:
        """Dependencies that point at existing tasks, deduplicated, in declared order."""
        seen: Set[str] = set()
        resolved = []
        for dep_id in task.depends_on:
            if dep_id in self.tasks and dep_id not in seen:
                seen.add(dep_id)
                resolved.append(dep_id)
        return resolved

    def unresolved_dependencies(self, task: Task) -> List[str]:
        return [dep_id for dep_id in task.depends_on if dep_id not in self.tasks]


def topological_order(index: TaskIndex) -> List[str]:
    """Order task ids so each task follows all of its resolvable dependencies.

    Kahn's algorithm; ready tasks are released in document order so the
    result is deterministic. Raises DependencyCycleError if some tasks can
    never become ready.
    """
    in_degree: Dict[str, int] = {task_id: 0 for task_id in index.tasks}
    successors: Dict[str, List[str]] = {task_id: [] for task_id in index.tasks}

    for task_id, task in index.tasks.items():
        for dep_id in index.resolved_dependencies(task):
            successors[dep_id].append(task_id)
            in_degree[task_id] += 1

    ready = [(index.position[task_id], task_id) for task_id, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    order = []

    while ready:
        _, task_id = heapq.heappop(ready)
        order.append(task_id)
        for succ in successors[task_id]:
            in_degree[succ] -= 1
            if in_degree[succ] == 0:
                heapq.heappush(ready, (index.position[succ], succ))

    if len(order) < len(index):
        ordered = set(order)
        unresolved = [task_id for task_id in index.tasks if task_id not in ordered]
        raise DependencyCycleError(unresolved, find_cycle(index))

    return order


def find_cycle(index: TaskIndex) -> Optional[List[str]]:
    """Return one dependency cycle as a path of task ids (first id repeated at the end), or None."""
    WHITE, GRAY, BLACK = 0, 1, 2
    color = {task_id: WHITE for task_id in index.tasks}

    for root in index.tasks:
        if color[root] != WHITE:
            continue

        # Iterative DFS; stack holds (task_id, iterator over its dependencies)
        path: List[str] = [root]
        color[root] = GRAY
        stack = [(root, iter(index.resolved_dependencies(index.tasks[root])))]

        while stack:
            node, deps = stack[-1]
            advanced = False
            for dep_id in deps:
                if color[dep_id] == GRAY:
                    start = path.index(dep_id)
                    return path[start:] + [dep_id]
                if color[dep_id] == WHITE:
                    color[dep_id] = GRAY
                    path.append(dep_id)
                    stack.append((dep_id, iter(index.resolved_dependencies(index.tasks[dep_id]))))
                    advanced = True
                    break
            if not advanced:
                color[node] = BLACK
                path.pop()
                stack.pop()

    return None


def find_dependents(task_id: str, milestones: List[Milestone]) -> List[Task]:
    """Tasks that list `task_id` in their dependencies."""
    return [task for _, task in iter_tasks(milestones) if task_id in task.depends_on]


def dependency_info(task: Task, milestones: List[Milestone]) -> DependencyInfo:
    """Dependency summary used to flag unresolved references in the UI."""
    index = TaskIndex(milestones)
    return DependencyInfo(
        task_id=task.task_id,
        depends_on=[index.tasks[dep_id] for dep_id in index.resolved_dependencies(task)],
        unresolved=index.unresolved_dependencies(task),
        dependents=find_dependents(task.task_id, milestones),
    )


def validate_dependencies(milestones: List[Milestone]) -> ValidationResult:
    """Check references and acyclicity without raising.

    Dangling references and cycles are errors. Dependencies that cross
    milestone boundaries are allowed and only reported as warnings.
    """
    result = ValidationResult()
    index = TaskIndex(milestones)

    for milestone, task in iter_tasks(milestones):
        for dep_id in task.depends_on:
            if dep_id not in index:
                result.errors.append(
                    f'Task "{task.name}" ({task.task_id}) depends on non-existent task {dep_id}'
                )
            elif index.owner[dep_id] != milestone.milestone_id:
                result.warnings.append(
                    f'Task "{task.name}" ({task.task_id}) depends on task {dep_id} '
                    f'in milestone {index.owner[dep_id]}'
                )

    cycle = find_cycle(index)
    if cycle:
        result.errors.append(f"Circular dependency detected: {' -> '.join(cycle)}")

    return result

