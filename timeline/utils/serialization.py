"""Canonical dict / row shapes and project file I/O."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..history.log import ChangeLog
from ..models.change import ChangeLogEntry, ChangeType, EntityType
from ..models.task import Milestone, Task
from ..project import Project
from .datetime_utils import format_date, to_date

logger = logging.getLogger(__name__)

DEPENDENCY_DELIMITER = ","


def format_dependencies(depends_on: List[str]) -> str:
    return DEPENDENCY_DELIMITER.join(depends_on)


def parse_dependencies(value: Union[str, List[str], None]) -> List[str]:
    """Accept the delimited string form or a list; blanks are dropped."""
    if not value:
        return []
    if isinstance(value, str):
        parts = value.split(DEPENDENCY_DELIMITER)
    else:
        parts = value
    return [str(part).strip() for part in parts if str(part).strip()]


def task_to_dict(task: Task) -> Dict[str, Any]:
    data = {
        'taskId': task.task_id,
        'name': task.name,
        'description': task.description,
        'team': task.team,
        'durationDays': task.duration_days,
        'dependsOn': format_dependencies(task.depends_on),
    }
    if task.sprint is not None:
        data['sprint'] = task.sprint
    if task.start_date is not None:
        data['startDate'] = format_date(task.start_date)
    if task.end_date is not None:
        data['endDate'] = format_date(task.end_date)
    return data


def task_from_dict(data: Dict[str, Any]) -> Task:
    return Task(
        task_id=str(data['taskId']),
        name=data.get('name', ''),
        description=data.get('description') or '',
        team=data.get('team') or '',
        sprint=data.get('sprint'),
        duration_days=int(data.get('durationDays', 1)),
        depends_on=parse_dependencies(data.get('dependsOn')),
        start_date=to_date(data.get('startDate')),
        end_date=to_date(data.get('endDate')),
    )


def milestone_to_dict(milestone: Milestone) -> Dict[str, Any]:
    data = {
        'milestoneId': milestone.milestone_id,
        'milestoneName': milestone.milestone_name,
    }
    if milestone.description is not None:
        data['description'] = milestone.description
    if milestone.start_date is not None:
        data['startDate'] = format_date(milestone.start_date)
    if milestone.end_date is not None:
        data['endDate'] = format_date(milestone.end_date)
    data['tasks'] = [task_to_dict(t) for t in milestone.tasks]
    return data


def milestone_from_dict(data: Dict[str, Any]) -> Milestone:
    return Milestone(
        milestone_id=str(data['milestoneId']),
        milestone_name=data.get('milestoneName', ''),
        description=data.get('description'),
        tasks=[task_from_dict(t) for t in data.get('tasks') or []],
        start_date=to_date(data.get('startDate')),
        end_date=to_date(data.get('endDate')),
    )


def _value_to_data(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return list(value)
    return value


def entry_to_dict(entry: ChangeLogEntry) -> Dict[str, Any]:
    snapshot = None
    if isinstance(entry.snapshot, Task):
        snapshot = task_to_dict(entry.snapshot)
    elif isinstance(entry.snapshot, Milestone):
        snapshot = milestone_to_dict(entry.snapshot)

    return {
        'sequenceIndex': entry.sequence_index,
        'timestamp': entry.timestamp.isoformat(),
        'user': entry.user,
        'entityType': entry.entity_type.value,
        'changeType': entry.change_type.value,
        'entityId': entry.entity_id,
        'entityName': entry.entity_name,
        'milestoneId': entry.milestone_id,
        'milestoneName': entry.milestone_name,
        'fieldName': entry.field_name,
        'oldValue': _value_to_data(entry.old_value),
        'newValue': _value_to_data(entry.new_value),
        'snapshot': snapshot,
        'position': entry.position,
        'newPosition': entry.new_position,
        'batchId': entry.batch_id,
    }


def entry_from_dict(data: Dict[str, Any]) -> ChangeLogEntry:
    entity_type = EntityType(data['entityType'])
    snapshot = None
    if data.get('snapshot') is not None:
        if entity_type == EntityType.TASK:
            snapshot = task_from_dict(data['snapshot'])
        else:
            snapshot = milestone_from_dict(data['snapshot'])

    timestamp = data.get('timestamp')
    return ChangeLogEntry(
        entity_type=entity_type,
        change_type=ChangeType(data['changeType']),
        entity_id=str(data['entityId']),
        entity_name=data.get('entityName') or '',
        milestone_id=data.get('milestoneId'),
        milestone_name=data.get('milestoneName'),
        field_name=data.get('fieldName'),
        old_value=data.get('oldValue'),
        new_value=data.get('newValue'),
        snapshot=snapshot,
        position=data.get('position'),
        new_position=data.get('newPosition'),
        batch_id=data.get('batchId'),
        sequence_index=data.get('sequenceIndex'),
        timestamp=datetime.fromisoformat(timestamp) if timestamp else datetime.now(timezone.utc),
        user=data.get('user'),
    )


def project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        'name': project.name,
        'projectStartDate': format_date(project.project_start_date),
        'milestones': [milestone_to_dict(m) for m in project.milestones],
        'changeLog': [entry_to_dict(e) for e in project.change_log.entries],
    }


def project_from_dict(data: Dict[str, Any], config: Optional[dict] = None) -> Project:
    start = to_date(data.get('projectStartDate'))
    if start is None:
        raise ValueError("Project is missing projectStartDate")

    return Project(
        name=data.get('name') or 'Untitled Project',
        project_start_date=start,
        milestones=[milestone_from_dict(m) for m in data.get('milestones') or []],
        change_log=ChangeLog([entry_from_dict(e) for e in data.get('changeLog') or []]),
        config=config,
    )


def project_to_rows(project: Project) -> Dict[str, List[Dict[str, Any]]]:
    """Flat milestone and task rows with order indexes, as a spreadsheet store keeps them."""
    milestone_rows = []
    task_rows = []
    for m_index, milestone in enumerate(project.milestones):
        milestone_rows.append({
            'milestoneId': milestone.milestone_id,
            'milestoneName': milestone.milestone_name,
            'startDate': format_date(milestone.start_date) or '',
            'endDate': format_date(milestone.end_date) or '',
            'orderIndex': m_index,
        })
        for t_index, task in enumerate(milestone.tasks):
            row = task_to_dict(task)
            row.update({
                'milestoneId': milestone.milestone_id,
                'sprint': task.sprint or '',
                'startDate': format_date(task.start_date) or '',
                'endDate': format_date(task.end_date) or '',
                'orderIndex': t_index,
            })
            task_rows.append(row)
    return {'milestones': milestone_rows, 'tasks': task_rows}


def rows_to_milestones(milestone_rows: List[Dict[str, Any]], task_rows: List[Dict[str, Any]]) -> List[Milestone]:
    """Rebuild milestones from flat rows. Tasks pointing at unknown milestones are skipped."""
    ordered = sorted(milestone_rows, key=lambda r: int(r.get('orderIndex', 0)))
    milestones = [milestone_from_dict({**row, 'tasks': []}) for row in ordered]
    by_id = {m.milestone_id: m for m in milestones}

    for row in sorted(task_rows, key=lambda r: int(r.get('orderIndex', 0))):
        milestone = by_id.get(str(row.get('milestoneId', '')))
        if milestone is None:
            logger.warning("Skipping task %s: unknown milestone %s", row.get('taskId'), row.get('milestoneId'))
            continue
        # Spreadsheet cells cannot hold None; an empty sprint cell means no sprint
        milestone.tasks.append(task_from_dict({**row, 'sprint': row.get('sprint') or None}))

    return milestones


def load_project(path: str, config: Optional[dict] = None) -> Project:
    """Load a project from a .json, .yaml or .yml file."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Project file not found: {path}")

    with open(file_path, 'r') as f:
        if file_path.suffix.lower() in ['.yaml', '.yml']:
            data = yaml.safe_load(f) or {}
        elif file_path.suffix.lower() == '.json':
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported project file format: {file_path.suffix}")

    logger.debug("Loaded project file %s", file_path)
    return project_from_dict(data, config)


def save_project(project: Project, path: str) -> Path:
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    data = project_to_dict(project)

    with open(file_path, 'w') as f:
        if file_path.suffix.lower() in ['.yaml', '.yml']:
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
        else:
            json.dump(data, f, indent=2)

    logger.debug("Saved project to %s", file_path)
    return file_path
