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
"""Backfills history from scratch by compressing every entity's full snapshot
timeline into history intervals as of a cutoff period."""
from typing import Any, Dict, Generator, Iterable, Tuple, Type

import apache_beam as beam
from apache_beam import Pipeline
from apache_beam.typehints.decorators import with_input_types, with_output_types

from entity_history.history.compressor import compress_entity_snapshots
from entity_history.history.models import HistoryInterval
from entity_history.history.serialization import interval_to_row, snapshots_from_rows
from entity_history.pipelines.base_pipeline import BasePipeline
from entity_history.pipelines.history.pipeline_parameters import (
    BackfillPipelineParameters,
)
from entity_history.pipelines.utils.beam_utils import (
    ReadJsonRows,
    WriteJsonRows,
    key_by_entity_id,
)


@with_input_types(beam.typehints.Tuple[str, Iterable[Dict[str, Any]]], int)
@with_output_types(HistoryInterval)
class CompressEntityHistory(beam.DoFn):
    """Compresses the snapshots of a single entity into history intervals."""

    # Silence `Method 'process_batch' is abstract in class 'DoFn' but is not overridden (abstract-method)`
    # pylint: disable=W0223

    # pylint: disable=arguments-differ
    def process(
        self, element: Tuple[str, Iterable[Dict[str, Any]]], cutoff_period: int
    ) -> Generator[HistoryInterval, None, None]:
        _entity_id, snapshot_rows = element
        yield from compress_entity_snapshots(
            snapshots_from_rows(snapshot_rows), cutoff_period
        )


class CompressSnapshots(beam.PTransform):
    """Compresses a PCollection of serialized snapshots for any number of entities
    into a PCollection of serialized history intervals."""

    def __init__(self, cutoff_period: int):
        super().__init__()
        self.cutoff_period = cutoff_period

    def expand(self, input_or_inputs: beam.PCollection) -> beam.PCollection:
        return (
            input_or_inputs
            | "Key snapshots" >> beam.Map(key_by_entity_id)
            | "Group by entity" >> beam.GroupByKey()
            | "Compress history"
            >> beam.ParDo(CompressEntityHistory(), cutoff_period=self.cutoff_period)
            | "Intervals to rows" >> beam.Map(interval_to_row)
        )


class BackfillHistoryPipeline(BasePipeline[BackfillPipelineParameters]):
    """Pipeline that writes the history intervals of every entity as of the cutoff
    period."""

    @classmethod
    def parameters_type(cls) -> Type[BackfillPipelineParameters]:
        return BackfillPipelineParameters

    @classmethod
    def pipeline_name(cls) -> str:
        return "HISTORY_BACKFILL"

    def run_pipeline(self, p: Pipeline) -> None:
        params = self.pipeline_parameters
        _ = (
            p
            | "Read snapshots" >> ReadJsonRows(params.snapshots_input)
            | "Compress snapshots" >> CompressSnapshots(params.cutoff_period)
            | "Write intervals" >> WriteJsonRows(params.output)
        )
