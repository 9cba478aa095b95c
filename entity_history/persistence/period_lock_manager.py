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
"""Manages acquiring and releasing the locks that keep two history runs for the same
period from running at the same time."""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

HISTORY_UPDATE_PROCESS = "HISTORY_UPDATE_PROCESS"


class PeriodLockAlreadyExists(ValueError):
    pass


class PeriodLockDoesNotExist(ValueError):
    pass


def period_lock_name(period: int) -> str:
    return f"{HISTORY_UPDATE_PROCESS}_{period}"


class PeriodLockManager:
    """Manages acquiring and releasing the lock for a single period's history run.

    A lock is held on behalf of a |lock_id|. Acquiring a lock that is already held
    with the same |lock_id| succeeds and must be matched by its own release. The
    lock is only freed once every acquisition has been released. Acquiring it with
    a different id raises.
    """

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._lock_ids_by_name: Dict[str, str] = {}
        self._hold_counts_by_name: Dict[str, int] = {}

    def acquire_lock(self, period: int, lock_id: str) -> None:
        lock_name = period_lock_name(period)
        with self._mutex:
            previous_lock_id = self._lock_ids_by_name.get(lock_name)
            if previous_lock_id is not None and previous_lock_id != lock_id:
                raise PeriodLockAlreadyExists(
                    f"Lock [{lock_name}] is held by run [{previous_lock_id}], "
                    f"cannot acquire it for run [{lock_id}]."
                )
            self._lock_ids_by_name[lock_name] = lock_id
            self._hold_counts_by_name[lock_name] = (
                self._hold_counts_by_name.get(lock_name, 0) + 1
            )
        logging.info("Acquired lock [%s] for run [%s].", lock_name, lock_id)

    def release_lock(self, period: int) -> None:
        lock_name = period_lock_name(period)
        with self._mutex:
            if lock_name not in self._lock_ids_by_name:
                raise PeriodLockDoesNotExist(
                    f"Cannot release lock [{lock_name}], it is not held."
                )
            self._hold_counts_by_name[lock_name] -= 1
            if self._hold_counts_by_name[lock_name] > 0:
                return
            del self._hold_counts_by_name[lock_name]
            del self._lock_ids_by_name[lock_name]
        logging.info("Released lock [%s].", lock_name)

    def is_locked(self, period: int) -> bool:
        return self.get_lock_id(period) is not None

    def get_lock_id(self, period: int) -> Optional[str]:
        with self._mutex:
            return self._lock_ids_by_name.get(period_lock_name(period))

    @contextmanager
    def using_lock(self, period: int, lock_id: str) -> Iterator[None]:
        """Holds the lock for |period| for the duration of the context."""
        self.acquire_lock(period, lock_id)
        try:
            yield
        finally:
            self.release_lock(period)
