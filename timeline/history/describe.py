"""Human-readable descriptions and filters for change log entries."""

from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional

from ..models.change import ChangeLogEntry, ChangeType, EntityType

_FIELD_LABELS = {
    "name": "name",
    "milestone_name": "name",
    "description": "description",
    "team": "team",
    "sprint": "sprint",
    "duration_days": "duration",
    "depends_on": "dependencies",
}


def _short(value, limit: int = 30) -> str:
    if not value:
        return "empty"
    text = str(value)
    return f'"{text[:limit]}..."' if len(text) > limit else f'"{text}"'


def _describe_dependencies(label: str, old_value, new_value) -> str:
    old_deps = set(old_value or [])
    new_deps = set(new_value or [])
    added = new_deps - old_deps
    removed = old_deps - new_deps
    if added and not removed:
        return f"{label} added {len(added)} dependency(ies)"
    if removed and not added:
        return f"{label} removed {len(removed)} dependency(ies)"
    return f"{label} dependencies modified"


def describe_change(entry: ChangeLogEntry) -> str:
    """One-line summary of a change for history views."""
    kind = "Task" if entry.entity_type == EntityType.TASK else "Milestone"
    name = entry.entity_name or entry.entity_id
    label = f'{kind} "{name}"'

    if entry.change_type == ChangeType.ADDED:
        where = f' to "{entry.milestone_name}"' if entry.milestone_name else ""
        return f"Added {kind.lower()} \"{name}\"{where}"

    if entry.change_type == ChangeType.REMOVED:
        where = f' from "{entry.milestone_name}"' if entry.milestone_name else ""
        return f"Removed {kind.lower()} \"{name}\"{where}"

    if entry.change_type == ChangeType.MOVED:
        return f"{label} moved from {entry.old_value} to {entry.new_value}"

    field_name = entry.field_name
    if field_name in ("name", "milestone_name"):
        return f'{kind} "{entry.old_value}" renamed to "{entry.new_value}"'
    if field_name == "description":
        return f"{label} description changed from {_short(entry.old_value)} to {_short(entry.new_value)}"
    if field_name == "duration_days":
        return f"{label} duration changed from {entry.old_value} to {entry.new_value} days"
    if field_name == "depends_on":
        return _describe_dependencies(label, entry.old_value, entry.new_value)

    field_label = _FIELD_LABELS.get(field_name, field_name)
    return f'{label} {field_label} changed from "{entry.old_value or ""}" to "{entry.new_value or ""}"'


def filter_history(
    history: List[ChangeLogEntry],
    entity_type: Optional[EntityType] = None,
    entity_id: Optional[str] = None,
    change_type: Optional[ChangeType] = None,
) -> List[ChangeLogEntry]:
    return [
        entry for entry in history
        if (entity_type is None or entry.entity_type == entity_type)
        and (entity_id is None or entry.entity_id == entity_id)
        and (change_type is None or entry.change_type == change_type)
    ]


def group_history_by_date(history: List[ChangeLogEntry]) -> Dict[date, List[ChangeLogEntry]]:
    """Entries grouped by calendar day of their timestamp, in log order."""
    groups: Dict[date, List[ChangeLogEntry]] = OrderedDict()
    for entry in history:
        groups.setdefault(entry.timestamp.date(), []).append(entry)
    return groups
