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
"""Compresses full per-period snapshot timelines into history intervals.

This is used once, to backfill an entity's history from scratch. Every later period
is folded in by the incremental merger instead.

The timeline is partitioned at change points: walking an entity's snapshots in
period order, a snapshot starts a new run when its tracked attributes differ from
the snapshot observed just before it. Each run becomes one interval. For example:

    2004 good active
    2005 good active     -> [2004, 2005] good active
    2006 bad  active     -> [2006, 2006] bad active
    2007 bad  inactive   -> [2007, 2007] bad inactive
"""
import itertools
import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from entity_history.history.models import AttributeSnapshot, HistoryInterval
from entity_history.history.validation import validate_unique_snapshots


def run_ids_for_snapshots(sorted_snapshots: Sequence[AttributeSnapshot]) -> List[int]:
    """Returns the run id of each of the |sorted_snapshots|, which must belong to a
    single entity and be sorted by period.

    The run id is the running count of change points seen so far, inclusive. The
    first snapshot is always a change point. Gaps between observed periods do not
    start a new run on their own.
    """
    run_ids: List[int] = []
    run_id = 0
    previous_snapshot = None
    for snapshot in sorted_snapshots:
        if (
            previous_snapshot is None
            or snapshot.attributes != previous_snapshot.attributes
        ):
            run_id += 1
        run_ids.append(run_id)
        previous_snapshot = snapshot
    return run_ids


def compress_entity_snapshots(
    snapshots: Sequence[AttributeSnapshot], cutoff_period: int
) -> List[HistoryInterval]:
    """Compresses the snapshots of a single entity with periods up to and including
    |cutoff_period| into the minimal list of intervals covering them, ordered by
    start_period. All intervals are computed as of |cutoff_period|."""
    entity_ids = {snapshot.entity_id for snapshot in snapshots}
    if len(entity_ids) > 1:
        raise ValueError(
            f"Expected snapshots for a single entity, found entity ids "
            f"{sorted(entity_ids)}."
        )
    validate_unique_snapshots(snapshots)

    sorted_snapshots = sorted(
        (snapshot for snapshot in snapshots if snapshot.period <= cutoff_period),
        key=lambda snapshot: snapshot.period,
    )

    intervals: List[HistoryInterval] = []
    for _, run in itertools.groupby(
        zip(run_ids_for_snapshots(sorted_snapshots), sorted_snapshots),
        key=lambda run_id_and_snapshot: run_id_and_snapshot[0],
    ):
        run_snapshots = [snapshot for _, snapshot in run]
        first_snapshot = run_snapshots[0]
        intervals.append(
            HistoryInterval(
                entity_id=first_snapshot.entity_id,
                category=first_snapshot.category,
                active=first_snapshot.active,
                start_period=min(snapshot.period for snapshot in run_snapshots),
                end_period=max(snapshot.period for snapshot in run_snapshots),
                as_of_period=cutoff_period,
            )
        )
    return intervals


def compress_snapshots(
    snapshots: Sequence[AttributeSnapshot], cutoff_period: int
) -> List[HistoryInterval]:
    """Backfills history for every entity in |snapshots|, returning the intervals as
    of |cutoff_period| ordered by entity_id and start_period."""
    validate_unique_snapshots(snapshots)

    snapshots_by_entity: Dict[str, List[AttributeSnapshot]] = defaultdict(list)
    for snapshot in snapshots:
        snapshots_by_entity[snapshot.entity_id].append(snapshot)

    intervals: List[HistoryInterval] = []
    for entity_id in sorted(snapshots_by_entity):
        intervals.extend(
            compress_entity_snapshots(snapshots_by_entity[entity_id], cutoff_period)
        )

    logging.info(
        "Compressed [%s] snapshots for [%s] entities into [%s] intervals as of "
        "period [%s].",
        len(snapshots),
        len(snapshots_by_entity),
        len(intervals),
        cutoff_period,
    )
    return intervals
