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
"""Runs the backfill and per-period history updates against a HistoryStore.

Every run holds the store's lock for its period, reads at most one stored view,
validates its inputs, computes the new view with the pure compressor or merger,
and then replaces the view for its period in a single write. A run that fails
validation writes nothing.
"""
import logging
import uuid
from typing import List, Optional, Sequence

from entity_history.history.compressor import compress_snapshots
from entity_history.history.errors import OutOfOrderPeriodError
from entity_history.history.merger import merge_period
from entity_history.history.models import AttributeSnapshot, HistoryInterval
from entity_history.persistence.history_store import HistoryStore


class HistoryUpdateManager:
    """Orchestrates history runs against a single |store|."""

    def __init__(self, store: HistoryStore) -> None:
        self.store = store

    def backfill(
        self,
        snapshots: Sequence[AttributeSnapshot],
        cutoff_period: int,
        lock_id: Optional[str] = None,
    ) -> List[HistoryInterval]:
        """Computes history from scratch for every snapshot up to |cutoff_period| and
        stores it as the view for |cutoff_period|.

        Raises OutOfOrderPeriodError if the store already holds a view for a later
        period.
        """
        with self.store.lock_manager.using_lock(
            cutoff_period, lock_id or _new_lock_id()
        ):
            latest_period = self.store.latest_as_of_period()
            if latest_period is not None and latest_period > cutoff_period:
                raise OutOfOrderPeriodError(
                    expected_period=latest_period, found_periods=[cutoff_period]
                )

            intervals = compress_snapshots(snapshots, cutoff_period)
            self.store.replace_period(cutoff_period, intervals)

        logging.info(
            "Backfilled [%s] intervals as of period [%s].",
            len(intervals),
            cutoff_period,
        )
        return intervals

    def update_for_period(
        self,
        snapshots: Sequence[AttributeSnapshot],
        period: int,
        lock_id: Optional[str] = None,
    ) -> List[HistoryInterval]:
        """Merges the |snapshots| for |period| into the view for the previous period
        and stores the result as the view for |period|.

        The first run against an empty store starts from no prior intervals.
        Otherwise |period| must directly follow the latest stored view, or equal it
        with the previous view still stored, in which case the run is repeated and
        produces the same view. Repeating the first run against an empty store also
        starts from no prior intervals.
        """
        with self.store.lock_manager.using_lock(period, lock_id or _new_lock_id()):
            prior_intervals = self._prior_intervals_for(period)
            intervals = merge_period(prior_intervals, snapshots, period)
            self.store.replace_period(period, intervals)

        logging.info(
            "Stored [%s] intervals as of period [%s].", len(intervals), period
        )
        return intervals

    def _prior_intervals_for(self, period: int) -> List[HistoryInterval]:
        """Returns the intervals that the update for |period| merges into, raising
        OutOfOrderPeriodError if the stored views do not allow an update for
        |period|."""
        latest_period = self.store.latest_as_of_period()
        if latest_period is None:
            return []

        previous_period = period - 1
        if period in (latest_period, latest_period + 1) and self.store.has_view(
            previous_period
        ):
            return self.store.intervals_as_of(previous_period)

        # A view that covers no period before its own was produced from an empty
        # prior view, so rerunning it starts from an empty prior view as well.
        if period == latest_period and all(
            interval.start_period == period
            for interval in self.store.intervals_as_of(period)
        ):
            return []

        raise OutOfOrderPeriodError(
            expected_period=latest_period + 1, found_periods=[period]
        )


def _new_lock_id() -> str:
    return str(uuid.uuid4())
