"""Append-only change log with a rollback horizon."""

import logging
from dataclasses import replace
from typing import Iterator, List, Optional

from ..models.change import ChangeLogEntry
from ..models.task import Milestone
from .describe import describe_change
from .rollback import RollbackResult, rollback

logger = logging.getLogger(__name__)


class ChangeLog:
    """Growable record store plus the index of the current state.

    `horizon` counts the entries that describe the current state. Rolling
    back only moves the horizon; entries past it are discarded the next
    time something is appended, so there is no redo.
    """

    def __init__(self, entries: Optional[List[ChangeLogEntry]] = None, horizon: Optional[int] = None):
        self._entries: List[ChangeLogEntry] = [replace(entry) for entry in entries or []]
        for i, entry in enumerate(self._entries):
            entry.sequence_index = i
        if horizon is None:
            horizon = len(self._entries)
        self.horizon = max(0, min(horizon, len(self._entries)))

    def __len__(self) -> int:
        return self.horizon

    def __iter__(self) -> Iterator[ChangeLogEntry]:
        return iter(self.entries)

    def __getitem__(self, index):
        return self.entries[index]

    @property
    def entries(self) -> List[ChangeLogEntry]:
        """Entries up to the horizon."""
        return self._entries[:self.horizon]

    @property
    def discarded(self) -> List[ChangeLogEntry]:
        """Entries past the horizon that will be dropped on the next append."""
        return self._entries[self.horizon:]

    def append(self, changes: List[ChangeLogEntry], user: Optional[str] = None) -> List[ChangeLogEntry]:
        """Record copies of `changes` after the horizon and return them with their sequence indexes."""
        if not changes:
            return []

        if self.horizon < len(self._entries):
            logger.info("Discarding %d change(s) past the rollback horizon", len(self._entries) - self.horizon)
            del self._entries[self.horizon:]

        recorded = [replace(entry) for entry in changes]
        for entry in recorded:
            entry.sequence_index = len(self._entries)
            if user is not None and entry.user is None:
                entry.user = user
            self._entries.append(entry)

        self.horizon = len(self._entries)
        return recorded

    def rollback(self, current: List[Milestone], target_index: int) -> RollbackResult:
        """Undo entries after `target_index` and move the horizon back to it."""
        result = rollback(current, self.entries, target_index)
        self.horizon = len(result.log)
        return result

    def to_human_readable(self) -> str:
        """Generate human-readable log format."""
        lines = [f"=== Change Log ({self.horizon} entries) ==="]
        for entry in self.entries:
            stamp = entry.timestamp.strftime("%Y-%m-%d %H:%M:%S")
            who = f" [{entry.user}]" if entry.user else ""
            lines.append(f"  #{entry.sequence_index} {stamp}{who} {describe_change(entry)}")
        if self.discarded:
            lines.append(f"  ({len(self.discarded)} entries past the rollback horizon)")
        lines.append("=" * 50)
        return "\n".join(lines)
