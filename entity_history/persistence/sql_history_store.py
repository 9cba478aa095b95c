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
"""A HistoryStore backed by a SQL database through SQLAlchemy."""
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import create_engine, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from entity_history.common.constants.quality_class import QualityClass
from entity_history.history.models import HistoryInterval
from entity_history.persistence.history_store import HistoryStore, sort_intervals
from entity_history.persistence.schema import (
    EntityHistoryInterval,
    EntityHistoryView,
    HistoryBase,
)
from entity_history.utils import environment


class SqlHistoryStore(HistoryStore):
    """Stores each view as the set of entity_history_intervals rows with its
    view_period. Replacing a view deletes and inserts its rows in one transaction."""

    def __init__(self, engine: Engine) -> None:
        super().__init__()
        self._engine = engine
        self._session_maker = sessionmaker(bind=engine, expire_on_commit=False)
        HistoryBase.metadata.create_all(engine)

    @classmethod
    def for_url(cls, url: str) -> "SqlHistoryStore":
        return cls(create_engine(url))

    @environment.test_only
    def drop_tables(self) -> None:
        HistoryBase.metadata.drop_all(self._engine)
        self._engine.dispose()

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        session = self._session_maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def latest_as_of_period(self) -> Optional[int]:
        with self._session_scope() as session:
            return session.query(func.max(EntityHistoryView.view_period)).scalar()

    def has_view(self, as_of_period: int) -> bool:
        with self._session_scope() as session:
            return session.get(EntityHistoryView, as_of_period) is not None

    def intervals_as_of(self, as_of_period: int) -> List[HistoryInterval]:
        with self._session_scope() as session:
            rows = (
                session.query(EntityHistoryInterval)
                .filter(EntityHistoryInterval.view_period == as_of_period)
                .order_by(
                    EntityHistoryInterval.entity_id,
                    EntityHistoryInterval.start_period,
                )
                .all()
            )
            return [_interval_from_schema(row) for row in rows]

    def replace_period(
        self, as_of_period: int, intervals: Iterable[HistoryInterval]
    ) -> None:
        rows = [
            _interval_to_schema(interval, view_period=as_of_period)
            for interval in sort_intervals(intervals)
        ]
        with self._session_scope() as session:
            num_deleted = (
                session.query(EntityHistoryInterval)
                .filter(EntityHistoryInterval.view_period == as_of_period)
                .delete(synchronize_session=False)
            )
            session.merge(EntityHistoryView(view_period=as_of_period))
            session.add_all(rows)
        logging.info(
            "Replaced view [%s]: deleted [%s] rows, inserted [%s] rows.",
            as_of_period,
            num_deleted,
            len(rows),
        )


def _interval_to_schema(
    interval: HistoryInterval, view_period: int
) -> EntityHistoryInterval:
    return EntityHistoryInterval(
        view_period=view_period,
        entity_id=interval.entity_id,
        category=interval.category.value,
        active=interval.active,
        start_period=interval.start_period,
        end_period=interval.end_period,
        as_of_period=interval.as_of_period,
    )


def _interval_from_schema(row: EntityHistoryInterval) -> HistoryInterval:
    return HistoryInterval(
        entity_id=row.entity_id,
        category=QualityClass(row.category),
        active=row.active,
        start_period=row.start_period,
        end_period=row.end_period,
        as_of_period=row.as_of_period,
    )
