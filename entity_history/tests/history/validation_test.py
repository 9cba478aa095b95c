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
"""Tests for validation.py"""
import unittest

from entity_history.common.constants.quality_class import QualityClass
from entity_history.history.errors import (
    DuplicateSnapshotError,
    InvalidIntervalError,
    OutOfOrderPeriodError,
)
from entity_history.history.validation import (
    validate_intervals,
    validate_period_inputs,
    validate_prior_view_period,
    validate_snapshot_periods,
    validate_unique_snapshots,
)
from entity_history.tests.history.history_test_utils import (
    make_interval,
    make_snapshot,
)


class TestValidateUniqueSnapshots(unittest.TestCase):
    """Tests for validate_unique_snapshots"""

    def test_unique(self) -> None:
        validate_unique_snapshots(
            [
                make_snapshot("A", 2006, QualityClass.GOOD),
                make_snapshot("A", 2007, QualityClass.GOOD),
                make_snapshot("B", 2007, QualityClass.GOOD),
            ]
        )

    def test_duplicate(self) -> None:
        with self.assertRaises(DuplicateSnapshotError) as e:
            validate_unique_snapshots(
                [
                    make_snapshot("B", 2007, QualityClass.GOOD),
                    make_snapshot("A", 2007, QualityClass.GOOD),
                    make_snapshot("B", 2007, QualityClass.BAD),
                    make_snapshot("A", 2007, QualityClass.BAD),
                ]
            )
        self.assertEqual(["A", "B"], e.exception.entity_ids)
        self.assertEqual([2007], e.exception.periods)
        self.assertIn("Entity ids: ['A', 'B']", str(e.exception))


class TestValidateSnapshotPeriods(unittest.TestCase):
    def test_mismatched_period(self) -> None:
        with self.assertRaises(OutOfOrderPeriodError) as e:
            validate_snapshot_periods(
                [
                    make_snapshot("A", 2007, QualityClass.GOOD),
                    make_snapshot("B", 2008, QualityClass.GOOD),
                ],
                2007,
            )
        self.assertEqual(2007, e.exception.expected_period)
        self.assertEqual([2008], e.exception.periods)
        self.assertEqual(["B"], e.exception.entity_ids)


class TestValidateIntervals(unittest.TestCase):
    """Tests for validate_intervals"""

    def test_valid(self) -> None:
        validate_intervals(
            [
                make_interval("A", QualityClass.GOOD, True, 2004, 2005, 2006),
                make_interval("A", QualityClass.BAD, True, 2006, 2006, 2006),
                make_interval("B", QualityClass.BAD, True, 2003, 2003, 2003),
            ],
            2006,
        )

    def test_overlapping(self) -> None:
        with self.assertRaisesRegex(InvalidIntervalError, "overlapping") as e:
            validate_intervals(
                [
                    make_interval("A", QualityClass.GOOD, True, 2004, 2005, 2006),
                    make_interval("A", QualityClass.BAD, True, 2005, 2006, 2006),
                    make_interval("B", QualityClass.BAD, True, 2003, 2003, 2006),
                ],
                2006,
            )
        self.assertEqual(["A"], e.exception.entity_ids)

    def test_computed_after_view(self) -> None:
        with self.assertRaises(InvalidIntervalError) as e:
            validate_intervals(
                [make_interval("A", QualityClass.GOOD, True, 2004, 2007, 2007)],
                2006,
            )
        self.assertEqual([2006], e.exception.periods)

    def test_ends_after_as_of(self) -> None:
        with self.assertRaises(InvalidIntervalError):
            validate_intervals(
                [make_interval("A", QualityClass.GOOD, True, 2004, 2006, 2005)],
                2006,
            )


class TestValidatePeriodInputs(unittest.TestCase):
    """Tests for validate_period_inputs"""

    def test_valid(self) -> None:
        validate_period_inputs(
            [make_interval("A", QualityClass.GOOD, True, 2004, 2006, 2006)],
            [make_snapshot("A", 2007, QualityClass.GOOD)],
            2007,
        )

    def test_prior_intervals_from_current_period(self) -> None:
        with self.assertRaises(InvalidIntervalError):
            validate_period_inputs(
                [make_interval("A", QualityClass.GOOD, True, 2004, 2007, 2007)],
                [make_snapshot("A", 2007, QualityClass.GOOD)],
                2007,
            )

    def test_snapshot_from_other_period(self) -> None:
        with self.assertRaises(OutOfOrderPeriodError):
            validate_period_inputs(
                [make_interval("A", QualityClass.GOOD, True, 2004, 2006, 2006)],
                [make_snapshot("A", 2006, QualityClass.GOOD)],
                2007,
            )

    def test_duplicate_snapshots_checked_first(self) -> None:
        with self.assertRaises(DuplicateSnapshotError):
            validate_period_inputs(
                [],
                [
                    make_snapshot("A", 2006, QualityClass.GOOD),
                    make_snapshot("A", 2006, QualityClass.BAD),
                ],
                2007,
            )


class TestValidatePriorViewPeriod(unittest.TestCase):
    """Tests for validate_prior_view_period"""

    def test_previous_period(self) -> None:
        validate_prior_view_period(2006, 2007)

    def test_no_prior_intervals(self) -> None:
        validate_prior_view_period(None, 2007)

    def test_earlier_view(self) -> None:
        with self.assertRaises(OutOfOrderPeriodError) as e:
            validate_prior_view_period(2005, 2007)
        self.assertEqual(2006, e.exception.expected_period)
        self.assertEqual([2005], e.exception.periods)

    def test_later_view(self) -> None:
        with self.assertRaises(OutOfOrderPeriodError):
            validate_prior_view_period(2007, 2007)
