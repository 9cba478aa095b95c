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
"""The ordered quality classification tracked for each entity in each period."""
import functools
from enum import Enum

# An average rating strictly above each threshold earns the matching class.
STAR_RATING_THRESHOLD = 8.0
GOOD_RATING_THRESHOLD = 7.0
AVERAGE_RATING_THRESHOLD = 6.0


@functools.total_ordering
class QualityClass(Enum):
    """Quality classification of an entity for a period, derived from the average
    rating of everything the entity did in that period.

    Members are declared from lowest to highest quality and compare in that order,
    e.g. QualityClass.BAD < QualityClass.STAR.
    """

    BAD = "bad"
    AVERAGE = "average"
    GOOD = "good"
    STAR = "star"

    @property
    def rank(self) -> int:
        return list(QualityClass).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, QualityClass):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def for_average_rating(cls, average_rating: float) -> "QualityClass":
        if average_rating > STAR_RATING_THRESHOLD:
            return cls.STAR
        if average_rating > GOOD_RATING_THRESHOLD:
            return cls.GOOD
        if average_rating > AVERAGE_RATING_THRESHOLD:
            return cls.AVERAGE
        return cls.BAD
