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
"""Tests that incremental merging and backfill compression produce the same history,
over randomly generated activity."""
import random
import unittest
from typing import List

from parameterized import parameterized

from entity_history.history.compressor import compress_snapshots
from entity_history.history.merger import merge_period
from entity_history.history.models import (
    ActivityRecord,
    AttributeSnapshot,
    HistoryInterval,
)
from entity_history.history.snapshot_builder import build_snapshot_timeline
from entity_history.tests.history.history_test_utils import make_activity

FIRST_PERIOD = 1970
LAST_PERIOD = 1985


def _random_activity(seed: int) -> List[ActivityRecord]:
    rng = random.Random(seed)
    records = []
    for entity_index in range(12):
        entity_id = f"nm{entity_index:04d}"
        first_period = rng.randint(FIRST_PERIOD, LAST_PERIOD)
        for period in range(first_period, LAST_PERIOD + 1):
            if rng.random() < 0.4:
                continue
            for film_index in range(rng.randint(1, 3)):
                records.append(
                    make_activity(
                        entity_id,
                        period,
                        f"tt{entity_index:02d}{period}{film_index}",
                        round(rng.uniform(4.0, 9.5), 1),
                    )
                )
    # Make sure the first period always has activity
    records.append(make_activity("nm9999", FIRST_PERIOD, "tt0", 7.5))
    return records


def _merge_all_periods(
    timeline: List[AttributeSnapshot], last_period: int
) -> List[HistoryInterval]:
    intervals: List[HistoryInterval] = []
    for period in range(FIRST_PERIOD, last_period + 1):
        intervals = merge_period(
            intervals, [s for s in timeline if s.period == period], period
        )
    return intervals


class TestMergeCompressEquivalence(unittest.TestCase):
    """Merging every period in order reproduces the backfill of those periods."""

    @parameterized.expand([(seed,) for seed in range(8)])
    def test_equivalence(self, seed: int) -> None:
        timeline = build_snapshot_timeline(_random_activity(seed))

        for last_period in (FIRST_PERIOD, FIRST_PERIOD + 5, LAST_PERIOD):
            merged = _merge_all_periods(timeline, last_period)
            compressed = compress_snapshots(timeline, cutoff_period=last_period)
            self.assertEqual(
                sorted(interval.span for interval in compressed),
                sorted(interval.span for interval in merged),
            )

    @parameterized.expand([(seed,) for seed in range(8)])
    def test_non_overlap_and_coverage(self, seed: int) -> None:
        timeline = build_snapshot_timeline(_random_activity(seed))
        intervals = compress_snapshots(timeline, cutoff_period=LAST_PERIOD)

        for snapshot in timeline:
            containing = [
                interval
                for interval in intervals
                if interval.entity_id == snapshot.entity_id
                and interval.contains_period(snapshot.period)
            ]
            self.assertEqual(1, len(containing))
            self.assertEqual(snapshot.attributes, containing[0].attributes)

        for interval in intervals:
            self.assertTrue(
                any(
                    snapshot.entity_id == interval.entity_id
                    and snapshot.period == interval.start_period
                    for snapshot in timeline
                )
            )

    @parameterized.expand([(seed,) for seed in range(4)])
    def test_merge_is_deterministic(self, seed: int) -> None:
        timeline = build_snapshot_timeline(_random_activity(seed))
        self.assertEqual(
            _merge_all_periods(timeline, LAST_PERIOD),
            _merge_all_periods(list(reversed(timeline)), LAST_PERIOD),
        )
