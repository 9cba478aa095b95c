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
"""Merges one new period of snapshots into the existing history intervals.

This runs on every period after the initial backfill. For each entity, the merge
only looks at the entity's current interval (the one ending in the previous period)
and its snapshot for the new period, if any:

    UNCHANGED: same attributes, the current interval is extended to the new period.
    CHANGED: different attributes, the current interval is closed as of the new
        period and a new single-period interval is opened.
    NEW: no current interval, a new single-period interval is opened.
    DROPPED: no snapshot, the current interval is passed through untouched.

Intervals that were already closed before the previous period are passed through
unchanged.
"""
import logging
from collections import Counter, defaultdict
from enum import Enum
from typing import Dict, List, Optional, Sequence

import attr
from more_itertools import only

from entity_history.history.models import AttributeSnapshot, HistoryInterval
from entity_history.history.validation import validate_period_inputs


class HistoryChangeType(Enum):
    UNCHANGED = "UNCHANGED"
    CHANGED = "CHANGED"
    NEW = "NEW"
    DROPPED = "DROPPED"


def classify_change(
    current_interval: Optional[HistoryInterval],
    snapshot: Optional[AttributeSnapshot],
) -> Optional[HistoryChangeType]:
    """Classifies how an entity's history changes given its current interval and its
    snapshot for the new period. Returns None if the entity has neither."""
    if current_interval is None and snapshot is None:
        return None
    if current_interval is None:
        return HistoryChangeType.NEW
    if snapshot is None:
        return HistoryChangeType.DROPPED
    if current_interval.attributes == snapshot.attributes:
        return HistoryChangeType.UNCHANGED
    return HistoryChangeType.CHANGED


def _merge_validated_entity_history(
    prior_intervals: Sequence[HistoryInterval],
    snapshot: Optional[AttributeSnapshot],
    period: int,
) -> List[HistoryInterval]:
    previous_period = period - 1
    merged = [
        interval
        for interval in prior_intervals
        if interval.end_period < previous_period
    ]
    current_interval = only(
        interval
        for interval in prior_intervals
        if interval.end_period == previous_period
    )

    change_type = classify_change(current_interval, snapshot)
    if change_type == HistoryChangeType.UNCHANGED:
        merged.append(
            attr.evolve(current_interval, end_period=period, as_of_period=period)
        )
    elif change_type == HistoryChangeType.CHANGED:
        merged.append(attr.evolve(current_interval, as_of_period=period))
        merged.append(HistoryInterval.for_snapshot(snapshot))
    elif change_type == HistoryChangeType.NEW:
        merged.append(HistoryInterval.for_snapshot(snapshot))
    elif change_type == HistoryChangeType.DROPPED:
        merged.append(current_interval)

    return sorted(merged, key=lambda interval: interval.start_period)


def merge_entity_history(
    entity_id: str,
    prior_intervals: Sequence[HistoryInterval],
    snapshot: Optional[AttributeSnapshot],
    period: int,
) -> List[HistoryInterval]:
    """Returns the intervals for the entity with |entity_id| as of |period|, given its
    |prior_intervals| from the view for the previous period and its |snapshot| for
    |period|, which may be None if the entity was not observed."""
    if any(interval.entity_id != entity_id for interval in prior_intervals) or (
        snapshot is not None and snapshot.entity_id != entity_id
    ):
        raise ValueError(
            f"Expected intervals and snapshot for entity [{entity_id}] only."
        )

    validate_period_inputs(
        prior_intervals, [snapshot] if snapshot is not None else [], period
    )
    return _merge_validated_entity_history(prior_intervals, snapshot, period)


def merge_period(
    prior_intervals: Sequence[HistoryInterval],
    snapshots: Sequence[AttributeSnapshot],
    period: int,
) -> List[HistoryInterval]:
    """Merges the |snapshots| for |period| into the |prior_intervals| of every entity
    from the view for the previous period.

    The inputs for every entity are validated before anything is merged, so either
    the returned list holds the full view as of |period|, ordered by entity_id and
    start_period, or an error is raised and nothing is returned.
    """
    validate_period_inputs(prior_intervals, snapshots, period)

    intervals_by_entity: Dict[str, List[HistoryInterval]] = defaultdict(list)
    for interval in prior_intervals:
        intervals_by_entity[interval.entity_id].append(interval)
    snapshots_by_entity = {snapshot.entity_id: snapshot for snapshot in snapshots}

    change_counts: Counter = Counter()
    merged: List[HistoryInterval] = []
    entity_ids = sorted(set(intervals_by_entity) | set(snapshots_by_entity))
    for entity_id in entity_ids:
        entity_intervals = intervals_by_entity.get(entity_id, [])
        snapshot = snapshots_by_entity.get(entity_id)
        current_interval = only(
            interval
            for interval in entity_intervals
            if interval.end_period == period - 1
        )
        change_counts[classify_change(current_interval, snapshot)] += 1
        merged.extend(
            _merge_validated_entity_history(entity_intervals, snapshot, period)
        )

    logging.info(
        "Merged period [%s] for [%s] entities: %s.",
        period,
        len(entity_ids),
        {
            change_type.value if change_type else "CLOSED": count
            for change_type, count in change_counts.items()
        },
    )
    return merged
