from __future__ import annotations

import pytest

from timeline.engine.scheduler import schedule
from timeline.history.describe import describe_change, filter_history
from timeline.history.diff import diff
from timeline.history.tracking import apply_milestone_edit, apply_task_edit, move_task_tracked
from timeline.models.change import ChangeType, EntityType
from timeline.models.task import Milestone, Task, copy_graph
from timeline.operations.milestones import add_milestone, remove_milestone
from timeline.operations.tasks import add_task, move_task_between_milestones, update_task


def summary(changes):
    return [(c.entity_type, c.change_type, c.entity_id) for c in changes]


def test_identical_graphs_have_no_changes(milestones):
    assert diff(milestones, milestones) == []
    assert diff(milestones, copy_graph(milestones)) == []


def test_dates_are_not_diffed(milestones, start):
    assert diff(milestones, schedule(milestones, start)) == []


def test_field_edit(milestones):
    changes = diff(milestones, update_task(milestones, "T2", name="Peer review"))

    assert len(changes) == 1
    change = changes[0]
    assert (change.entity_type, change.change_type) == (EntityType.TASK, ChangeType.MODIFIED)
    assert (change.field_name, change.old_value, change.new_value) == ("name", "Review", "Peer review")
    assert (change.milestone_id, change.milestone_name) == ("M1", "Design")


def test_dependency_order_is_not_a_change():
    old = [Milestone("M1", "Only", tasks=[Task("A", "a", 1), Task("B", "b", 1), Task("C", "c", 1, depends_on=["A", "B"])])]
    new = copy_graph(old)
    new[0].tasks[2].depends_on = ["B", "A"]

    assert diff(old, new) == []


def test_move_is_a_single_entry(milestones):
    changes = diff(milestones, move_task_between_milestones(milestones, "T3", "M2", "M1"))

    assert summary(changes) == [(EntityType.TASK, ChangeType.MOVED, "T3")]
    assert (changes[0].old_value, changes[0].new_value, changes[0].position) == ("M2", "M1", 0)


def test_added_milestone_comes_before_its_tasks(milestones):
    updated = add_milestone(milestones, Milestone("M3", "Launch"))
    updated = add_task(updated, "M3", Task("T4", "Ship", 1))

    changes = diff(milestones, updated)

    assert summary(changes) == [
        (EntityType.MILESTONE, ChangeType.ADDED, "M3"),
        (EntityType.TASK, ChangeType.ADDED, "T4"),
    ]
    assert changes[0].position == 2
    assert changes[1].milestone_id == "M3"


def test_removed_milestone_records_each_task(milestones):
    changes = diff(milestones, remove_milestone(milestones, "M1"))

    assert summary(changes) == [
        (EntityType.MILESTONE, ChangeType.REMOVED, "M1"),
        (EntityType.TASK, ChangeType.REMOVED, "T2"),
        (EntityType.TASK, ChangeType.REMOVED, "T1"),
    ]
    assert changes[0].snapshot.tasks == []
    assert [c.position for c in changes[1:]] == [1, 0]


def test_snapshot_values_are_copies(milestones):
    changes = diff(milestones, update_task(milestones, "T2", depends_on=[]))

    milestones[0].tasks[1].depends_on.append("T9")

    assert changes[0].old_value == ["T1"]


def test_apply_task_edit_on_unknown_task(milestones):
    updated, changes = apply_task_edit(milestones, "T404", {"name": "Ghost"})

    assert changes == []
    assert updated == milestones


def test_apply_milestone_edit(milestones):
    result = apply_milestone_edit(milestones, "M2", {"description": "Everything after design"})

    assert summary(result.changes) == [(EntityType.MILESTONE, ChangeType.MODIFIED, "M2")]
    assert result.changes[0].old_value is None


def test_tracked_operation_returns_graph_and_changes(milestones):
    updated, changes = move_task_tracked(milestones, "T3", "M2", "M1")

    assert [t.task_id for t in updated[0].tasks] == ["T1", "T2", "T3"]
    assert len(changes) == 1


def test_descriptions(milestones):
    edited = update_task(milestones, "T1", name="Specification", duration_days=2, depends_on=["T9"])
    changes = diff(milestones, edited)
    changes += diff(milestones, move_task_between_milestones(milestones, "T3", "M2", "M1"))
    changes += diff(milestones, add_task(milestones, "M2", Task("T4", "Ship", 1)))

    assert [describe_change(c) for c in changes] == [
        'Task "Spec" renamed to "Specification"',
        'Task "Specification" duration changed from 5 to 2 days',
        'Task "Specification" added 1 dependency(ies)',
        'Task "Implement" moved from M2 to M1',
        'Added task "Ship" to "Build"',
    ]


def test_filter_history(milestones):
    changes = diff(milestones, remove_milestone(milestones, "M1"))

    assert len(filter_history(changes, entity_type=EntityType.TASK)) == 2
    assert len(filter_history(changes, change_type=ChangeType.REMOVED, entity_id="M1")) == 1
    assert filter_history(changes, change_type=ChangeType.ADDED) == []


def test_apply_task_edit_rejects_an_id_change(milestones):
    with pytest.raises(ValueError, match="Unknown task field"):
        apply_task_edit(milestones, "T1", {"task_id": "X"})


def test_apply_milestone_edit_rejects_an_id_change(milestones):
    with pytest.raises(ValueError, match="Unknown milestone field"):
        apply_milestone_edit(milestones, "M1", {"milestone_id": "M9"})


def test_one_diff_shares_a_batch_id(milestones):
    first = diff(milestones, remove_milestone(milestones, "M1"))
    second = diff(milestones, update_task(milestones, "T3", team="QA"))

    assert len({c.batch_id for c in first}) == 1
    assert first[0].batch_id is not None
    assert first[0].batch_id != second[0].batch_id


def test_move_records_the_target_position(milestones):
    changes = diff(milestones, move_task_between_milestones(milestones, "T1", "M1", "M2"))

    assert (changes[0].position, changes[0].new_position) == (0, 1)
