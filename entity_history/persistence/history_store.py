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
"""Interface and in-memory implementation of the store that holds history interval
views.

The store holds one view per as-of period. A view is the complete set of intervals
for every entity as computed by the run for that period, and is only ever replaced
as a whole.
"""
import abc
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from entity_history.history.models import HistoryInterval
from entity_history.persistence.period_lock_manager import PeriodLockManager


def sort_intervals(intervals: Iterable[HistoryInterval]) -> List[HistoryInterval]:
    return sorted(
        intervals, key=lambda interval: (interval.entity_id, interval.start_period)
    )


class HistoryStore(abc.ABC):
    """Base class for the storage of history interval views."""

    def __init__(self) -> None:
        self.lock_manager = PeriodLockManager()

    @abc.abstractmethod
    def latest_as_of_period(self) -> Optional[int]:
        """Returns the latest period with a stored view, or None if no view has been
        stored."""

    @abc.abstractmethod
    def has_view(self, as_of_period: int) -> bool:
        """Returns True if a view has been stored for |as_of_period|, even if it holds
        no intervals."""

    @abc.abstractmethod
    def intervals_as_of(self, as_of_period: int) -> List[HistoryInterval]:
        """Returns every interval in the view for |as_of_period|, ordered by entity_id
        and start_period. Returns an empty list if there is no such view."""

    @abc.abstractmethod
    def replace_period(
        self, as_of_period: int, intervals: Iterable[HistoryInterval]
    ) -> None:
        """Atomically replaces the view for |as_of_period| with |intervals|. Replacing
        a view with the same intervals again leaves the store unchanged."""

    def current_intervals(self, as_of_period: int) -> Dict[str, HistoryInterval]:
        """Returns the latest interval for each entity in the view for
        |as_of_period|, keyed by entity_id."""
        return {
            interval.entity_id: interval
            for interval in self.intervals_as_of(as_of_period)
        }


class InMemoryHistoryStore(HistoryStore):
    """A HistoryStore that keeps its views in process memory."""

    def __init__(self) -> None:
        super().__init__()
        self._mutex = threading.Lock()
        self._views: Dict[int, Tuple[HistoryInterval, ...]] = {}

    def latest_as_of_period(self) -> Optional[int]:
        with self._mutex:
            return max(self._views) if self._views else None

    def has_view(self, as_of_period: int) -> bool:
        with self._mutex:
            return as_of_period in self._views

    def intervals_as_of(self, as_of_period: int) -> List[HistoryInterval]:
        with self._mutex:
            return list(self._views.get(as_of_period, ()))

    def replace_period(
        self, as_of_period: int, intervals: Iterable[HistoryInterval]
    ) -> None:
        view = tuple(sort_intervals(intervals))
        with self._mutex:
            self._views[as_of_period] = view
