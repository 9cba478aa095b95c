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
"""Builds the cumulative per-period snapshot of every entity from raw activity.

Each period's snapshots are built from the previous period's snapshots and the raw
activity records observed in the new period. An entity that has been observed once
keeps a snapshot in every later period:

    - entities with activity in the period are active, and their category is the
      classification of the average rating of that activity;
    - entities without activity are inactive and keep their previous category;
    - every entity's detail_list is its previous detail_list followed by the details
      observed in the period, in the order they were observed.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

import attr

from entity_history.common.constants.quality_class import QualityClass
from entity_history.history.errors import OutOfOrderPeriodError
from entity_history.history.models import (
    ActivityRecord,
    AttributeSnapshot,
    DetailRecord,
)
from entity_history.history.validation import (
    validate_snapshot_periods,
    validate_unique_snapshots,
)


def classify_details(details: Sequence[DetailRecord]) -> QualityClass:
    """Returns the QualityClass for the average rating of the |details|."""
    if not details:
        raise ValueError("Cannot classify an empty list of details.")
    average_rating = sum(detail.rating for detail in details) / len(details)
    return QualityClass.for_average_rating(average_rating)


def build_entity_snapshot(
    previous_snapshot: Optional[AttributeSnapshot],
    activity_records: Sequence[ActivityRecord],
    period: int,
) -> Optional[AttributeSnapshot]:
    """Builds a single entity's snapshot for |period|. Returns None if the entity has
    neither a previous snapshot nor activity in |period|."""
    if not activity_records:
        if previous_snapshot is None:
            return None
        return attr.evolve(previous_snapshot, period=period, active=False)

    details = tuple(record.detail for record in activity_records)
    previous_details = previous_snapshot.detail_list if previous_snapshot else ()
    first_record = activity_records[0]
    return AttributeSnapshot(
        entity_id=first_record.entity_id,
        entity_name=first_record.entity_name,
        period=period,
        category=classify_details(details),
        active=True,
        detail_list=previous_details + details,
    )


def build_snapshots_for_period(
    previous_snapshots: Sequence[AttributeSnapshot],
    activity_records: Sequence[ActivityRecord],
    period: int,
) -> List[AttributeSnapshot]:
    """Builds the snapshots for |period| for every entity that has either a snapshot
    in |previous_snapshots| (all for the period before |period|) or activity in
    |activity_records| (all for |period|). Returns snapshots ordered by entity_id."""
    validate_unique_snapshots(previous_snapshots)
    validate_snapshot_periods(previous_snapshots, period - 1)
    mismatched_records = [
        record for record in activity_records if record.period != period
    ]
    if mismatched_records:
        raise OutOfOrderPeriodError(
            expected_period=period,
            found_periods=[record.period for record in mismatched_records],
            entity_ids=[record.entity_id for record in mismatched_records],
        )

    previous_by_entity = {
        snapshot.entity_id: snapshot for snapshot in previous_snapshots
    }
    activity_by_entity: Dict[str, List[ActivityRecord]] = defaultdict(list)
    for record in activity_records:
        activity_by_entity[record.entity_id].append(record)

    snapshots: List[AttributeSnapshot] = []
    for entity_id in sorted(set(previous_by_entity) | set(activity_by_entity)):
        snapshot = build_entity_snapshot(
            previous_by_entity.get(entity_id),
            activity_by_entity.get(entity_id, []),
            period,
        )
        if snapshot is not None:
            snapshots.append(snapshot)

    logging.info(
        "Built [%s] snapshots for period [%s], [%s] of them active.",
        len(snapshots),
        period,
        len(activity_by_entity),
    )
    return snapshots


def build_snapshot_timeline(
    activity_records: Sequence[ActivityRecord],
) -> List[AttributeSnapshot]:
    """Builds the snapshots for every period from the first to the last period with
    activity, ordered by period and then entity_id."""
    if not activity_records:
        return []

    activity_by_period: Dict[int, List[ActivityRecord]] = defaultdict(list)
    for record in activity_records:
        activity_by_period[record.period].append(record)

    timeline: List[AttributeSnapshot] = []
    previous_snapshots: List[AttributeSnapshot] = []
    for period in range(min(activity_by_period), max(activity_by_period) + 1):
        previous_snapshots = build_snapshots_for_period(
            previous_snapshots, activity_by_period.get(period, []), period
        )
        timeline.extend(previous_snapshots)
    return timeline
