"""Change log entry models for the audit trail."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from .task import Milestone, Task


class EntityType(str, Enum):
    TASK = "task"
    MILESTONE = "milestone"


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    MOVED = "moved"


# Fields compared by the diff engine and restorable by rollback
TASK_FIELDS = ("name", "description", "team", "sprint", "duration_days", "depends_on")
MILESTONE_FIELDS = ("milestone_name", "description")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChangeLogEntry:
    """One invertible audit record.

    MODIFIED entries carry `field_name`/`old_value`/`new_value`.
    MOVED entries carry the source milestone id in `old_value` and the
    target milestone id in `new_value`. ADDED and REMOVED entries carry a
    deep `snapshot` of the entity; milestone snapshots never include tasks.
    `position` is the entity's index in its former container (the old
    milestone list, or the old owner's task list) and is used to put it
    back in the same place. ADDED entries hold the index in the new graph
    instead, and MOVED entries also carry `new_position` in the target.
    Entries produced by one diff share a `batch_id`.
    """

    entity_type: EntityType
    change_type: ChangeType
    entity_id: str
    entity_name: str = ""
    milestone_id: Optional[str] = None
    milestone_name: Optional[str] = None
    field_name: Optional[str] = None
    old_value: Any = None
    new_value: Any = None
    snapshot: Optional[Union[Task, Milestone]] = None
    position: Optional[int] = None
    new_position: Optional[int] = None
    batch_id: Optional[str] = None
    sequence_index: Optional[int] = None
    timestamp: datetime = field(default_factory=_utcnow)
    user: Optional[str] = None

    @property
    def is_task(self) -> bool:
        return self.entity_type == EntityType.TASK

    @property
    def is_milestone(self) -> bool:
        return self.entity_type == EntityType.MILESTONE
