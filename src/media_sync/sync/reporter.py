from __future__ import annotations

from collections import Counter
from typing import Iterable

from .models import IssueKind, IssueScope, RunReport, SyncIssue
from .replace import ReplaceOutcome


class RunReporter:
    """Append-only accumulator for one run; ``finish`` freezes it into a RunReport."""

    def __init__(self, targets_total: int = 0) -> None:
        self.targets_total = targets_total
        self._written: dict[str, int] = {}
        self._issues: list[SyncIssue] = []
        self._unmapped: Counter = Counter()
        self._batches = 0
        self._failed_batches = 0
        self._cancelled = False

    def batch_started(self) -> None:
        self._batches += 1

    def batch_failed(self) -> None:
        self._failed_batches += 1

    def add_issues(self, issues: Iterable[SyncIssue]) -> None:
        self._issues.extend(issues)

    def add_unmapped(self, unmapped: Counter) -> None:
        for key, count in sorted(unmapped.items()):
            self._unmapped[key] += count
            self._issues.append(
                SyncIssue(
                    IssueKind.MAPPING,
                    IssueScope.KEY,
                    key,
                    f"{count} media item(s) reference no known target",
                )
            )

    def add_replace(self, outcome: ReplaceOutcome) -> None:
        if outcome.ok:
            # A later replace of the same target supersedes the earlier count.
            self._written[outcome.target_id] = outcome.written
            return
        self._written.pop(outcome.target_id, None)
        if outcome.issue is not None:
            self._issues.append(outcome.issue)

    def cancel(self) -> None:
        self._cancelled = True

    def finish(self) -> RunReport:
        return RunReport(
            targets_total=self.targets_total,
            targets_synced=sum(1 for count in self._written.values() if count > 0),
            items_written=sum(self._written.values()),
            unmapped_items=sum(self._unmapped.values()),
            batches_total=self._batches,
            batches_failed=self._failed_batches,
            cancelled=self._cancelled,
            issues=tuple(self._issues),
        )
