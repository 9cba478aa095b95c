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
"""Builds the cumulative snapshot of every entity for a single period from that
period's activity rows and the previous period's snapshots."""
import logging
from typing import Any, Dict, Generator, Iterable, List, Tuple, Type

import apache_beam as beam
from apache_beam import Pipeline
from apache_beam.typehints.decorators import with_input_types, with_output_types

from entity_history.history.models import AttributeSnapshot
from entity_history.history.serialization import (
    activity_records_from_rows,
    snapshot_to_row,
    snapshots_from_rows,
)
from entity_history.history.snapshot_builder import build_snapshots_for_period
from entity_history.pipelines.base_pipeline import BasePipeline
from entity_history.pipelines.history.pipeline_parameters import (
    SnapshotPipelineParameters,
)
from entity_history.pipelines.utils.beam_utils import (
    ReadJsonRows,
    WriteJsonRows,
    key_by_entity_id,
)

PREVIOUS_SNAPSHOTS = "previous_snapshots"
ACTIVITY = "activity"


@with_input_types(beam.typehints.Tuple[str, Dict[str, Iterable[Any]]], int)
@with_output_types(AttributeSnapshot)
class BuildEntitySnapshots(beam.DoFn):
    """Builds the snapshot for |period| of a single entity from its previous snapshot
    and its activity rows."""

    # Silence `Method 'process_batch' is abstract in class 'DoFn' but is not overridden (abstract-method)`
    # pylint: disable=W0223

    # pylint: disable=arguments-differ
    def process(
        self, element: Tuple[str, Dict[str, Iterable[Any]]], period: int
    ) -> Generator[AttributeSnapshot, None, None]:
        _entity_id, rows_by_input = element
        previous_snapshots = snapshots_from_rows(rows_by_input[PREVIOUS_SNAPSHOTS])
        # Rows arrive in no particular order
        activity_records = sorted(
            activity_records_from_rows(rows_by_input[ACTIVITY]),
            key=lambda record: record.detail.detail_id,
        )
        yield from build_snapshots_for_period(
            previous_snapshots, activity_records, period
        )


class SnapshotPipeline(BasePipeline[SnapshotPipelineParameters]):
    """Pipeline that writes the snapshots of every known entity for a period."""

    @classmethod
    def parameters_type(cls) -> Type[SnapshotPipelineParameters]:
        return SnapshotPipelineParameters

    @classmethod
    def pipeline_name(cls) -> str:
        return "HISTORY_SNAPSHOTS"

    def run_pipeline(self, p: Pipeline) -> None:
        params = self.pipeline_parameters

        activity_rows = p | "Read activity" >> ReadJsonRows(params.activity_input)
        if params.previous_snapshots_input:
            previous_rows = p | "Read previous snapshots" >> ReadJsonRows(
                params.previous_snapshots_input
            )
        else:
            logging.info(
                "No previous snapshots given, building period [%s] from activity only.",
                params.period,
            )
            empty_rows: List[Dict[str, Any]] = []
            previous_rows = p | "No previous snapshots" >> beam.Create(empty_rows)

        _ = (
            {
                PREVIOUS_SNAPSHOTS: previous_rows
                | "Key previous snapshots" >> beam.Map(key_by_entity_id),
                ACTIVITY: activity_rows
                | "Key activity" >> beam.Map(key_by_entity_id),
            }
            | "Group by entity" >> beam.CoGroupByKey()
            | "Build snapshots"
            >> beam.ParDo(BuildEntitySnapshots(), period=params.period)
            | "Snapshots to rows" >> beam.Map(snapshot_to_row)
            | "Write snapshots" >> WriteJsonRows(params.output)
        )

