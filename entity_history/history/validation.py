# Recidiviz - a data platform for criminal justice reform
# Copyright (C) 2024 Recidiviz, Inc.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
# =============================================================================
"""Validation pass over the inputs of a history run.

All checks run before any interval is computed, and every check reports all of the
offending entities at once so that a single failed run surfaces every problem in
the period's data.
"""
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from entity_history.history.errors import (
    DuplicateSnapshotError,
    InvalidIntervalError,
    OutOfOrderPeriodError,
)
from entity_history.history.models import AttributeSnapshot, HistoryInterval


def validate_unique_snapshots(snapshots: Iterable[AttributeSnapshot]) -> None:
    """Raises a DuplicateSnapshotError if any entity has more than one snapshot for
    the same period."""
    snapshot_counts = Counter(
        (snapshot.entity_id, snapshot.period) for snapshot in snapshots
    )
    duplicates = [key for key, count in snapshot_counts.items() if count > 1]
    if duplicates:
        raise DuplicateSnapshotError(
            entity_ids=[entity_id for entity_id, _ in duplicates],
            periods=[period for _, period in duplicates],
        )


def validate_snapshot_periods(
    snapshots: Iterable[AttributeSnapshot], period: int
) -> None:
    """Raises an OutOfOrderPeriodError if any snapshot is not for |period|."""
    mismatched = [snapshot for snapshot in snapshots if snapshot.period != period]
    if mismatched:
        raise OutOfOrderPeriodError(
            expected_period=period,
            found_periods=[snapshot.period for snapshot in mismatched],
            entity_ids=[snapshot.entity_id for snapshot in mismatched],
        )


def validate_intervals(
    intervals: Iterable[HistoryInterval], as_of_period: int
) -> None:
    """Raises an InvalidIntervalError if any of the |intervals| read from the view
    for |as_of_period| could not have been produced by a run for that period: an
    interval computed or ending after the view's period, or two intervals for the
    same entity that overlap."""
    intervals_by_entity: Dict[str, List[HistoryInterval]] = defaultdict(list)
    for interval in intervals:
        intervals_by_entity[interval.entity_id].append(interval)

    entities_with_future_intervals = []
    entities_with_overlaps = []
    for entity_id, entity_intervals in intervals_by_entity.items():
        if any(
            interval.end_period > interval.as_of_period
            or interval.as_of_period > as_of_period
            for interval in entity_intervals
        ):
            entities_with_future_intervals.append(entity_id)
        if _has_overlaps(entity_intervals):
            entities_with_overlaps.append(entity_id)

    if entities_with_future_intervals:
        raise InvalidIntervalError(
            reason=f"intervals end or were computed after period [{as_of_period}]",
            entity_ids=entities_with_future_intervals,
            periods=[as_of_period],
        )
    if entities_with_overlaps:
        raise InvalidIntervalError(
            reason="overlapping intervals for a single entity",
            entity_ids=entities_with_overlaps,
            periods=[as_of_period],
        )


def _has_overlaps(entity_intervals: Sequence[HistoryInterval]) -> bool:
    ordered = sorted(entity_intervals, key=lambda interval: interval.start_period)
    return any(
        later.start_period <= earlier.end_period
        for earlier, later in zip(ordered, ordered[1:])
    )


def validate_period_inputs(
    prior_intervals: Sequence[HistoryInterval],
    snapshots: Sequence[AttributeSnapshot],
    period: int,
) -> None:
    """Runs every check required before merging the |snapshots| for |period| into
    the |prior_intervals| from the view for the previous period."""
    validate_unique_snapshots(snapshots)
    validate_snapshot_periods(snapshots, period)
    validate_intervals(prior_intervals, as_of_period=period - 1)


def validate_prior_view_period(prior_view_period: Optional[int], period: int) -> None:
    """Raises an OutOfOrderPeriodError if the prior intervals merged into |period|
    were not read from the view for the previous period. |prior_view_period| is
    the latest as_of_period among the prior intervals, or None if there are none.

    Every entity observed before a period has a snapshot in that period, so the
    view for a period always holds an interval computed at that period.
    """
    if prior_view_period is not None and prior_view_period != period - 1:
        raise OutOfOrderPeriodError(
            expected_period=period - 1, found_periods=[prior_view_period]
        )
