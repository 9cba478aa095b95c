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
"""Merges one period of snapshots into the history intervals as of the previous
period."""
from typing import Any, Dict, Generator, Iterable, Optional, Tuple, Type

import apache_beam as beam
from apache_beam import Pipeline
from apache_beam.typehints.decorators import with_input_types, with_output_types
from more_itertools import only

from entity_history.history.merger import merge_entity_history
from entity_history.history.models import HistoryInterval
from entity_history.history.serialization import (
    interval_to_row,
    intervals_from_rows,
    snapshots_from_rows,
)
from entity_history.history.validation import (
    validate_prior_view_period,
    validate_unique_snapshots,
)
from entity_history.pipelines.base_pipeline import BasePipeline
from entity_history.pipelines.history.pipeline_parameters import (
    IncrementalPipelineParameters,
)
from entity_history.pipelines.utils.beam_utils import (
    ReadJsonRows,
    WriteJsonRows,
    key_by_entity_id,
)

PRIOR_INTERVALS = "prior_intervals"
SNAPSHOTS = "snapshots"


@with_input_types(
    beam.typehints.Tuple[str, Dict[str, Iterable[Any]]], int, Optional[int]
)
@with_output_types(HistoryInterval)
class MergeEntityHistory(beam.DoFn):
    """Merges the snapshot for |period| of a single entity, if it has one, into its
    prior intervals. |prior_view_period| is the latest as_of_period across the
    prior intervals of every entity."""

    # Silence `Method 'process_batch' is abstract in class 'DoFn' but is not overridden (abstract-method)`
    # pylint: disable=W0223

    # pylint: disable=arguments-differ
    def process(
        self,
        element: Tuple[str, Dict[str, Iterable[Any]]],
        period: int,
        prior_view_period: Optional[int],
    ) -> Generator[HistoryInterval, None, None]:
        validate_prior_view_period(prior_view_period, period)
        entity_id, rows_by_input = element
        prior_intervals = intervals_from_rows(rows_by_input[PRIOR_INTERVALS])
        snapshots = snapshots_from_rows(rows_by_input[SNAPSHOTS])
        validate_unique_snapshots(snapshots)
        yield from merge_entity_history(
            entity_id, prior_intervals, only(snapshots), period
        )


class MergePeriodHistory(beam.PTransform):
    """Merges serialized snapshots for a period into serialized prior intervals.

    Expects a dict input with a PCollection of interval rows under
    PRIOR_INTERVALS and a PCollection of snapshot rows under SNAPSHOTS, and
    returns a PCollection of interval rows as of |period|. Raises
    OutOfOrderPeriodError if the prior interval rows are not the view for the
    period before |period|.
    """

    def __init__(self, period: int):
        super().__init__()
        self.period = period

    def expand(
        self, input_or_inputs: Dict[str, beam.PCollection]
    ) -> beam.PCollection:
        prior_view_period = (
            input_or_inputs[PRIOR_INTERVALS]
            | "Get as of periods" >> beam.Map(lambda row: row["as_of_period"])
            | "Get prior view period" >> beam.CombineGlobally(max).without_defaults()
        )

        return (
            {
                PRIOR_INTERVALS: input_or_inputs[PRIOR_INTERVALS]
                | "Key prior intervals" >> beam.Map(key_by_entity_id),
                SNAPSHOTS: input_or_inputs[SNAPSHOTS]
                | "Key snapshots" >> beam.Map(key_by_entity_id),
            }
            | "Group by entity" >> beam.CoGroupByKey()
            | "Merge history"
            >> beam.ParDo(
                MergeEntityHistory(),
                period=self.period,
                prior_view_period=beam.pvalue.AsSingleton(
                    prior_view_period, default_value=None
                ),
            )
            | "Intervals to rows" >> beam.Map(interval_to_row)
        )


class IncrementalHistoryPipeline(BasePipeline[IncrementalPipelineParameters]):
    """Pipeline that writes the history intervals of every entity as of a period,
    given the intervals as of the previous period."""

    @classmethod
    def parameters_type(cls) -> Type[IncrementalPipelineParameters]:
        return IncrementalPipelineParameters

    @classmethod
    def pipeline_name(cls) -> str:
        return "HISTORY_INCREMENTAL"

    def run_pipeline(self, p: Pipeline) -> None:
        params = self.pipeline_parameters
        _ = (
            {
                PRIOR_INTERVALS: p
                | "Read prior intervals" >> ReadJsonRows(params.prior_intervals_input),
                SNAPSHOTS: p | "Read snapshots" >> ReadJsonRows(params.snapshots_input),
            }
            | "Merge period" >> MergePeriodHistory(params.period)
            | "Write intervals" >> WriteJsonRows(params.output)
        )
