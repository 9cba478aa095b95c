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
"""Define the ORM schema objects for stored history interval views.

Each row of entity_history_intervals belongs to exactly one view, identified by
view_period. A view is replaced as a whole, so rows are never updated in place.
"""
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import DeclarativeMeta, declarative_base

from entity_history.common.constants.quality_class import QualityClass

# Base class for all table classes
HistoryBase: DeclarativeMeta = declarative_base()

quality_class = Enum(
    *[category.value for category in QualityClass],
    name="quality_class",
)


class EntityHistoryView(HistoryBase):
    """Table with one row per stored view. A view with no intervals still has a row
    here."""

    __tablename__ = "entity_history_views"

    view_period = Column(Integer, primary_key=True, autoincrement=False)


class EntityHistoryInterval(HistoryBase):
    """Table with one row per history interval per stored view."""

    __tablename__ = "entity_history_intervals"
    __table_args__ = (
        CheckConstraint(
            "start_period <= end_period",
            name="start_period_not_after_end_period",
        ),
        CheckConstraint(
            "end_period <= as_of_period",
            name="end_period_not_after_as_of_period",
        ),
        CheckConstraint(
            "as_of_period <= view_period",
            name="as_of_period_not_after_view_period",
        ),
        Index("entity_history_intervals_view_entity", "view_period", "entity_id"),
    )

    id = Column(Integer, primary_key=True)
    view_period = Column(
        Integer, ForeignKey("entity_history_views.view_period"), nullable=False
    )
    entity_id = Column(String(255), nullable=False)
    category = Column(quality_class, nullable=False)
    active = Column(Boolean, nullable=False)
    start_period = Column(Integer, nullable=False)
    end_period = Column(Integer, nullable=False)
    as_of_period = Column(Integer, nullable=False)
