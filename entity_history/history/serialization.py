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
"""Converts the history models to and from flat, JSON-serializable rows.

Entity ids are normalized to strings when rows are read, so that numeric ids from
upstream sources join with string ids.
"""
from typing import Any, Callable, Dict, Iterable, List, TypeVar

from entity_history.common.constants.quality_class import QualityClass
from entity_history.history.errors import InvalidIntervalError, UnknownCategoryError
from entity_history.history.models import (
    ActivityRecord,
    AttributeSnapshot,
    DetailRecord,
    HistoryInterval,
)

RowT = TypeVar("RowT")


def _parse_category(row: Dict[str, Any], period_key: str) -> QualityClass:
    try:
        return QualityClass(row["category"])
    except ValueError as e:
        raise UnknownCategoryError(
            categories=[row["category"]],
            entity_ids=[str(row["entity_id"])],
            periods=[row[period_key]],
        ) from e


def detail_to_row(detail: DetailRecord) -> Dict[str, Any]:
    return {
        "period": detail.period,
        "detail_id": detail.detail_id,
        "name": detail.name,
        "votes": detail.votes,
        "rating": detail.rating,
    }


def detail_from_row(row: Dict[str, Any]) -> DetailRecord:
    return DetailRecord(
        period=row["period"],
        detail_id=str(row["detail_id"]),
        name=row["name"],
        votes=row["votes"],
        rating=row["rating"],
    )


def activity_record_to_row(record: ActivityRecord) -> Dict[str, Any]:
    return {
        "entity_id": record.entity_id,
        "entity_name": record.entity_name,
        **detail_to_row(record.detail),
    }


def activity_record_from_row(row: Dict[str, Any]) -> ActivityRecord:
    return ActivityRecord(
        entity_id=str(row["entity_id"]),
        entity_name=row["entity_name"],
        detail=detail_from_row(row),
    )


def snapshot_to_row(snapshot: AttributeSnapshot) -> Dict[str, Any]:
    return {
        "entity_id": snapshot.entity_id,
        "entity_name": snapshot.entity_name,
        "period": snapshot.period,
        "category": snapshot.category.value,
        "active": snapshot.active,
        "detail_list": [detail_to_row(detail) for detail in snapshot.detail_list],
    }


def snapshot_from_row(row: Dict[str, Any]) -> AttributeSnapshot:
    return AttributeSnapshot(
        entity_id=str(row["entity_id"]),
        entity_name=row["entity_name"],
        period=row["period"],
        category=_parse_category(row, period_key="period"),
        active=row["active"],
        detail_list=[detail_from_row(detail) for detail in row["detail_list"]],
    )


def interval_to_row(interval: HistoryInterval) -> Dict[str, Any]:
    return {
        "entity_id": interval.entity_id,
        "category": interval.category.value,
        "active": interval.active,
        "start_period": interval.start_period,
        "end_period": interval.end_period,
        "as_of_period": interval.as_of_period,
    }


def interval_from_row(row: Dict[str, Any]) -> HistoryInterval:
    return HistoryInterval(
        entity_id=str(row["entity_id"]),
        category=_parse_category(row, period_key="as_of_period"),
        active=row["active"],
        start_period=row["start_period"],
        end_period=row["end_period"],
        as_of_period=row["as_of_period"],
    )


def _convert_all(
    rows: Iterable[Dict[str, Any]], converter: Callable[[Dict[str, Any]], RowT]
) -> List[RowT]:
    """Converts every row, raising a single error that covers every row that could
    not be converted, grouped by the first kind of error found."""
    converted: List[RowT] = []
    unknown_category_errors: List[UnknownCategoryError] = []
    invalid_interval_errors: List[InvalidIntervalError] = []
    for row in rows:
        try:
            converted.append(converter(row))
        except UnknownCategoryError as e:
            unknown_category_errors.append(e)
        except InvalidIntervalError as e:
            invalid_interval_errors.append(e)

    if unknown_category_errors:
        raise UnknownCategoryError(
            categories=[c for e in unknown_category_errors for c in e.categories],
            entity_ids=[i for e in unknown_category_errors for i in e.entity_ids],
            periods=[p for e in unknown_category_errors for p in e.periods],
        )
    if invalid_interval_errors:
        raise InvalidIntervalError(
            reason="start_period is after end_period",
            entity_ids=[i for e in invalid_interval_errors for i in e.entity_ids],
            periods=[p for e in invalid_interval_errors for p in e.periods],
        )
    return converted


def snapshots_from_rows(rows: Iterable[Dict[str, Any]]) -> List[AttributeSnapshot]:
    return _convert_all(rows, snapshot_from_row)


def intervals_from_rows(rows: Iterable[Dict[str, Any]]) -> List[HistoryInterval]:
    return _convert_all(rows, interval_from_row)


def activity_records_from_rows(
    rows: Iterable[Dict[str, Any]]
) -> List[ActivityRecord]:
    return [activity_record_from_row(row) for row in rows]
