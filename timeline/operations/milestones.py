"""Milestone creation, validation and structural edits."""

import logging
from typing import List, Optional

from ..engine.graph import ValidationResult
from ..models.task import Milestone, copy_graph, find_milestone
from .tasks import generate_unique_id

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("milestone_name", "description")


def generate_unique_milestone_id(milestones: List[Milestone], prefix: str = "M") -> str:
    return generate_unique_id((m.milestone_id for m in milestones), prefix=prefix)


def create_milestone(
    milestone_name: str,
    milestones: List[Milestone],
    description: Optional[str] = None,
) -> Milestone:
    """New empty milestone with a fresh id. Dates appear once tasks are scheduled."""
    return Milestone(
        milestone_id=generate_unique_milestone_id(milestones),
        milestone_name=milestone_name.strip(),
        description=description,
    )


def validate_milestone(
    milestone_name: str,
    milestones: List[Milestone],
    exclude_milestone_id: Optional[str] = None,
) -> ValidationResult:
    """Name is required and must be unique (case-insensitive) among other milestones."""
    result = ValidationResult()
    trimmed = (milestone_name or "").strip()

    if not trimmed:
        result.errors.append("Milestone name is required")

    for milestone in milestones:
        if milestone.milestone_id == exclude_milestone_id:
            continue
        if trimmed and milestone.milestone_name.strip().lower() == trimmed.lower():
            result.errors.append(f'Milestone name "{trimmed}" already exists')
            break

    return result


def add_milestone(milestones: List[Milestone], milestone: Milestone) -> List[Milestone]:
    if find_milestone(milestones, milestone.milestone_id) is not None:
        raise ValueError(f"Milestone id {milestone.milestone_id} already exists")
    updated = copy_graph(milestones)
    updated.extend(copy_graph([milestone]))
    return updated


def remove_milestone(milestones: List[Milestone], milestone_id: str) -> List[Milestone]:
    """Delete a milestone and the tasks it owns."""
    updated = copy_graph(milestones)
    return [m for m in updated if m.milestone_id != milestone_id]


def update_milestone(milestones: List[Milestone], milestone_id: str, /, **updates) -> List[Milestone]:
    unknown = set(updates) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown milestone field(s): {', '.join(sorted(unknown))}")

    updated = copy_graph(milestones)
    milestone = find_milestone(updated, milestone_id)
    if milestone is None:
        logger.warning("Cannot update milestone %s: not found", milestone_id)
        return updated

    for name, value in updates.items():
        setattr(milestone, name, value)
    return updated
