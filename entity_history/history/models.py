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
"""Models for the per-period attribute snapshots of an entity and the history
intervals computed from them."""
from typing import Optional, Tuple

import attr

from entity_history.common import attr_validators
from entity_history.common.constants.quality_class import QualityClass
from entity_history.history.errors import InvalidIntervalError


@attr.s(frozen=True)
class DetailRecord:
    """A single fact observed for an entity in a period, e.g. one film an actor
    appeared in. Details are accumulated onto an entity's snapshots and never
    removed."""

    period: int = attr.ib(validator=attr_validators.is_period)
    detail_id: str = attr.ib(validator=attr_validators.is_str)
    name: str = attr.ib(validator=attr_validators.is_str)
    # Null when the source did not report a vote count.
    votes: Optional[int] = attr.ib(validator=attr_validators.is_opt_int)
    rating: float = attr.ib(converter=float, validator=attr_validators.is_float)


@attr.s(frozen=True)
class ActivityRecord:
    """A raw per-event row: one detail observed for one entity."""

    entity_id: str = attr.ib(validator=attr_validators.is_non_empty_str)
    entity_name: str = attr.ib(validator=attr_validators.is_str)
    detail: DetailRecord = attr.ib(validator=attr.validators.instance_of(DetailRecord))

    @property
    def period(self) -> int:
        return self.detail.period


@attr.s(frozen=True)
class AttributeSnapshot:
    """The tracked attributes of an entity as observed in a single period."""

    entity_id: str = attr.ib(validator=attr_validators.is_non_empty_str)

    # Informational only, entities are joined on entity_id.
    entity_name: str = attr.ib(validator=attr_validators.is_str)

    period: int = attr.ib(validator=attr_validators.is_period)

    category: QualityClass = attr.ib(
        validator=attr.validators.instance_of(QualityClass)
    )

    active: bool = attr.ib(validator=attr_validators.is_bool)

    # Every detail observed for this entity up to and including this period, in the
    # order they were observed.
    detail_list: Tuple[DetailRecord, ...] = attr.ib(
        factory=tuple,
        converter=tuple,
        validator=attr_validators.is_tuple_of(DetailRecord),
    )

    @property
    def attributes(self) -> Tuple[QualityClass, bool]:
        """The attributes that are tracked together. A change in any of them closes
        the entity's current history interval."""
        return self.category, self.active


@attr.s(frozen=True)
class HistoryInterval:
    """A run of periods over which an entity's tracked attributes did not change.

    Intervals are never mutated. Extending or closing an interval produces a new
    HistoryInterval with an updated end_period and/or as_of_period.
    """

    entity_id: str = attr.ib(validator=attr_validators.is_non_empty_str)

    category: QualityClass = attr.ib(
        validator=attr.validators.instance_of(QualityClass)
    )

    active: bool = attr.ib(validator=attr_validators.is_bool)

    # First period of the interval, inclusive
    start_period: int = attr.ib(validator=attr_validators.is_period)

    # Last period of the interval, inclusive
    end_period: int = attr.ib(validator=attr_validators.is_period)

    # The period at which this interval was computed
    as_of_period: int = attr.ib(validator=attr_validators.is_period)

    def __attrs_post_init__(self) -> None:
        if self.start_period > self.end_period:
            raise InvalidIntervalError(
                reason=(
                    f"start_period [{self.start_period}] is after end_period "
                    f"[{self.end_period}]"
                ),
                entity_ids=[self.entity_id],
                periods=[self.as_of_period],
            )

    @classmethod
    def for_snapshot(cls, snapshot: AttributeSnapshot) -> "HistoryInterval":
        """Opens a single-period interval with the attributes of |snapshot|."""
        return cls(
            entity_id=snapshot.entity_id,
            category=snapshot.category,
            active=snapshot.active,
            start_period=snapshot.period,
            end_period=snapshot.period,
            as_of_period=snapshot.period,
        )

    @property
    def attributes(self) -> Tuple[QualityClass, bool]:
        return self.category, self.active

    @property
    def span(self) -> Tuple[str, QualityClass, bool, int, int]:
        """Identifies the interval independent of the run that computed it."""
        return (
            self.entity_id,
            self.category,
            self.active,
            self.start_period,
            self.end_period,
        )

    def contains_period(self, period: int) -> bool:
        return self.start_period <= period <= self.end_period

    def overlaps(self, other: "HistoryInterval") -> bool:
        return (
            self.start_period <= other.end_period
            and other.start_period <= self.end_period
        )
