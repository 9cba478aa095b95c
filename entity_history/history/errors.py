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
"""Errors that abort a history run for a period.

Every error is raised by the validation pass before any interval is computed or
written, and carries the ids of the offending entities and the periods involved.
"""
from typing import Iterable, Optional


class HistoryError(Exception):
    """Raised when the inputs to a history run are inconsistent."""

    def __init__(self, msg: str, entity_ids: Iterable[str], periods: Iterable[int]):
        self.entity_ids = sorted(set(entity_ids))
        self.periods = sorted(set(periods))
        super().__init__(
            f"{msg} Entity ids: {self.entity_ids}. Periods: {self.periods}."
        )


class DuplicateSnapshotError(HistoryError):
    """Raised when an entity has more than one snapshot for a single period."""

    def __init__(self, entity_ids: Iterable[str], periods: Iterable[int]):
        super().__init__(
            "Found more than one snapshot for an entity in a single period.",
            entity_ids,
            periods,
        )


class InvalidIntervalError(HistoryError):
    """Raised when a history interval ends before it starts, ends after the view it
    belongs to, or overlaps another interval for the same entity."""

    def __init__(self, reason: str, entity_ids: Iterable[str], periods: Iterable[int]):
        self.reason = reason
        super().__init__(
            f"Found invalid history intervals: {reason}.", entity_ids, periods
        )


class OutOfOrderPeriodError(HistoryError):
    """Raised when a run is invoked for a period that does not directly follow the
    last processed period, or when an input belongs to a different period than the
    one being processed."""

    def __init__(
        self,
        expected_period: Optional[int],
        found_periods: Iterable[int],
        entity_ids: Iterable[str] = (),
    ):
        self.expected_period = expected_period
        found_periods = sorted(set(found_periods))
        super().__init__(
            f"Expected period [{expected_period}], found {found_periods}.",
            entity_ids,
            found_periods,
        )


class UnknownCategoryError(HistoryError):
    """Raised when a category label is not one of the QualityClass values."""

    def __init__(
        self,
        categories: Iterable[str],
        entity_ids: Iterable[str],
        periods: Iterable[int],
    ):
        self.categories = sorted({str(category) for category in categories})
        super().__init__(
            f"Found unknown quality classes {self.categories}.", entity_ids, periods
        )
