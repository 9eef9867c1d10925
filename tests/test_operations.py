from __future__ import annotations

import re

import pytest

from timeline.models.task import Task, find_milestone, find_task
from timeline.operations import milestones as milestone_ops
from timeline.operations import tasks as task_ops
from timeline.operations.tasks import (
    CloneOptions,
    SplitConfig,
    SplitPart,
    add_task,
    add_task_to_milestone,
    clone_task,
    collect_task_ids,
    generate_unique_id,
    generate_unique_task_id,
    move_task_between_milestones,
    remove_task,
    replace_task_with_split,
    split_task,
    update_dependencies_after_split,
    update_task,
)


class _AlwaysA:
    def choice(self, seq):
        return "a"


def test_generated_task_id_shape_and_uniqueness(milestones):
    new_id = generate_unique_task_id(milestones)

    assert re.fullmatch(r"T\d+_[a-z0-9]{4}", new_id)
    assert new_id not in collect_task_ids(milestones)


def test_generate_unique_id_falls_back_after_repeated_collisions(monkeypatch):
    monkeypatch.setattr(task_ops, "_random", _AlwaysA())
    monkeypatch.setattr(task_ops.time, "time", lambda: 1.0)

    assert generate_unique_id({"T1000_aaaa"}) == "T1000_101"


# --- clone ---------------------------------------------------------------

def test_clone_without_dependencies(milestones):
    t2, _ = find_task(milestones, "T2")

    clone = clone_task(t2, milestones, CloneOptions("M2"))

    assert clone.task_id != "T2"
    assert clone.task_id not in collect_task_ids(milestones)
    assert clone.name == "Review (Copy)"
    assert clone.depends_on == []
    assert clone.duration_days == 3
    assert clone.start_date is None and clone.end_date is None


def test_clone_with_dependencies_and_name(milestones):
    t2, _ = find_task(milestones, "T2")

    clone = clone_task(t2, milestones, CloneOptions("M2", include_dependencies=True, new_name="Second review"))

    assert clone.name == "Second review"
    assert clone.depends_on == ["T1"]
    assert clone.depends_on is not t2.depends_on


def test_add_task_to_milestone_appends(milestones):
    new_task = Task("T9", "Extra", 1)

    updated = add_task_to_milestone(milestones, new_task, "M2")

    assert [t.task_id for t in find_milestone(updated, "M2").tasks] == ["T3", "T9"]
    assert [t.task_id for t in find_milestone(milestones, "M2").tasks] == ["T3"]


def test_add_task_to_unknown_milestone_is_a_no_op(milestones):
    assert add_task_to_milestone(milestones, Task("T9", "Extra", 1), "M404") == milestones


def test_add_task_rejects_duplicate_id(milestones):
    with pytest.raises(ValueError):
        add_task(milestones, "M2", Task("T1", "Duplicate", 1))


# --- split ---------------------------------------------------------------

def test_split_builds_a_sequential_chain(milestones):
    t2, _ = find_task(milestones, "T2")

    chain = split_task(t2, milestones, SplitConfig([SplitPart("Review A", 1), SplitPart("Review B", 2)]))

    assert [t.name for t in chain] == ["Review A", "Review B"]
    assert [t.duration_days for t in chain] == [1, 2]
    assert chain[0].depends_on == ["T1"]
    assert chain[1].depends_on == [chain[0].task_id]
    assert len({t.task_id for t in chain} | collect_task_ids(milestones)) == 5


def test_split_with_no_parts_returns_the_task(milestones):
    t1, _ = find_task(milestones, "T1")

    assert split_task(t1, milestones, SplitConfig()) == [t1]


def test_update_dependencies_after_split_only_touches_dependents(milestones):
    milestones[1].tasks.append(Task("T4", "Docs", 1, depends_on=["T2", "T1"]))
    t2, _ = find_task(milestones, "T2")
    chain = split_task(t2, milestones, SplitConfig([SplitPart("A", 1), SplitPart("B", 2)]))
    last = chain[-1].task_id

    updated = update_dependencies_after_split(milestones, "T2", chain)

    assert find_task(updated, "T3")[0].depends_on == [last]
    assert find_task(updated, "T4")[0].depends_on == [last, "T1"]
    assert find_task(updated, "T1")[0] == find_task(milestones, "T1")[0]
    assert find_task(updated, "T2")[0] == find_task(milestones, "T2")[0]


def test_replace_task_with_split(milestones):
    updated = replace_task_with_split(milestones, "T2", SplitConfig([SplitPart("A", 1), SplitPart("B", 2)]))

    design = find_milestone(updated, "M1")
    assert [t.name for t in design.tasks] == ["Spec", "A", "B"]
    assert find_task(updated, "T2") == (None, None)
    assert find_task(updated, "T3")[0].depends_on == [design.tasks[-1].task_id]


# --- move / remove / update ----------------------------------------------

def test_move_preserves_id_and_dependencies(milestones):
    updated = move_task_between_milestones(milestones, "T3", "M2", "M1")

    assert [t.task_id for t in find_milestone(updated, "M1").tasks] == ["T1", "T2", "T3"]
    assert find_milestone(updated, "M2").tasks == []
    assert find_task(updated, "T3")[0].depends_on == ["T2"]


@pytest.mark.parametrize(
    "task_id, from_id, to_id",
    [
        ("T3", "M2", "M404"),
        ("T3", "M404", "M1"),
        ("T404", "M2", "M1"),
        ("T1", "M2", "M1"),
    ],
)
def test_move_with_unknown_ids_changes_nothing(milestones, task_id, from_id, to_id):
    assert move_task_between_milestones(milestones, task_id, from_id, to_id) == milestones


def test_remove_leaves_references_dangling(milestones):
    updated = remove_task(milestones, "T1")

    assert find_task(updated, "T1") == (None, None)
    assert find_task(updated, "T2")[0].depends_on == ["T1"]


def test_update_task_sets_fields(milestones):
    updated = update_task(milestones, "T1", name="Specification", duration_days=2)

    t1, _ = find_task(updated, "T1")
    assert (t1.name, t1.duration_days) == ("Specification", 2)
    assert find_task(milestones, "T1")[0].name == "Spec"


@pytest.mark.parametrize("updates", [{"priority": 1}, {"task_id": "X"}, {"duration_days": 0}])
def test_update_task_rejects_bad_updates(milestones, updates):
    with pytest.raises(ValueError):
        update_task(milestones, "T1", **updates)


# --- milestones ----------------------------------------------------------

def test_create_milestone_trims_name_and_uses_fresh_id(milestones):
    milestone = milestone_ops.create_milestone("  Launch  ", milestones)

    assert milestone.milestone_name == "Launch"
    assert milestone.milestone_id.startswith("M")
    assert milestone.milestone_id not in {m.milestone_id for m in milestones}
    assert milestone.tasks == []


@pytest.mark.parametrize(
    "name, exclude, expected",
    [
        ("", None, ["Milestone name is required"]),
        ("   ", None, ["Milestone name is required"]),
        (" design ", None, ['Milestone name "design" already exists']),
        ("Design", "M1", []),
        ("Launch", None, []),
    ],
)
def test_validate_milestone(milestones, name, exclude, expected):
    assert milestone_ops.validate_milestone(name, milestones, exclude_milestone_id=exclude).errors == expected


def test_remove_milestone_drops_its_tasks(milestones):
    updated = milestone_ops.remove_milestone(milestones, "M1")

    assert [m.milestone_id for m in updated] == ["M2"]
    assert find_task(updated, "T1") == (None, None)


def test_update_milestone(milestones):
    updated = milestone_ops.update_milestone(milestones, "M2", milestone_name="Construction")

    assert find_milestone(updated, "M2").milestone_name == "Construction"
    with pytest.raises(ValueError):
        milestone_ops.update_milestone(milestones, "M2", tasks=[])


@pytest.mark.parametrize("field_name", ["milestones", "task_id"])
def test_update_task_rejects_parameter_names_as_fields(milestones, field_name):
    with pytest.raises(ValueError, match="Unknown task field"):
        update_task(milestones, "T1", **{field_name: "X"})


@pytest.mark.parametrize("field_name", ["milestones", "milestone_id"])
def test_update_milestone_rejects_parameter_names_as_fields(milestones, field_name):
    with pytest.raises(ValueError, match="Unknown milestone field"):
        milestone_ops.update_milestone(milestones, "M1", **{field_name: "X"})
