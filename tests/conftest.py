"""Pytest fixtures for the timeline planner."""
from __future__ import annotations

import logging
from datetime import date

import pytest

from timeline.models.task import Milestone, Task
from timeline.project import Project
from timeline.utils.logging_setup import _HANDLER_TAG


@pytest.fixture()
def start() -> date:
    # 2024-01-01 is a Monday
    return date(2024, 1, 1)


@pytest.fixture()
def milestones():
    """Two milestones: T1 -> T2 inside "Design", T3 in "Build" depends on T2."""
    return [
        Milestone("M1", "Design", tasks=[
            Task("T1", "Spec", 5),
            Task("T2", "Review", 3, depends_on=["T1"]),
        ]),
        Milestone("M2", "Build", tasks=[
            Task("T3", "Implement", 2, depends_on=["T2"]),
        ]),
    ]


@pytest.fixture()
def project(milestones, start):
    p = Project("Demo", start, milestones)
    p.reschedule()
    return p


@pytest.fixture()
def clean_root_logger():
    root = logging.getLogger()
    level = root.level
    try:
        yield root
    finally:
        for handler in list(root.handlers):
            if getattr(handler, _HANDLER_TAG, False):
                root.removeHandler(handler)
                handler.close()
        root.setLevel(level)
