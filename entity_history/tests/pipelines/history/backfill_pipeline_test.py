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
"""Tests for the backfill history pipeline."""
import os
import tempfile
import unittest

import apache_beam as beam
from apache_beam.testing.util import assert_that, equal_to

from entity_history.common.constants.quality_class import QualityClass
from entity_history.history.serialization import interval_to_row, snapshot_to_row
from entity_history.pipelines.history.backfill_pipeline import (
    BackfillHistoryPipeline,
    CompressSnapshots,
)
from entity_history.pipelines.history.pipeline_parameters import (
    BackfillPipelineParameters,
)
from entity_history.tests.history.history_test_utils import (
    make_interval,
    make_snapshot,
)
from entity_history.tests.pipelines.beam_test_utils import (
    create_test_pipeline,
    create_test_pipeline_options,
    read_json_rows,
    write_json_rows,
)

SNAPSHOT_ROWS = [
    snapshot_to_row(snapshot)
    for snapshot in [
        make_snapshot("A", 2004, QualityClass.GOOD, True),
        make_snapshot("A", 2005, QualityClass.GOOD, True),
        make_snapshot("A", 2006, QualityClass.BAD, True),
        make_snapshot("A", 2007, QualityClass.BAD, False),
        make_snapshot("C", 2005, QualityClass.STAR, True),
        make_snapshot("C", 2006, QualityClass.STAR, True),
    ]
]


class TestCompressSnapshots(unittest.TestCase):
    """Tests the CompressSnapshots PTransform."""

    def test_compress_snapshots(self) -> None:
        expected = [
            interval_to_row(interval)
            for interval in [
                make_interval("A", QualityClass.GOOD, True, 2004, 2005, 2006),
                make_interval("A", QualityClass.BAD, True, 2006, 2006, 2006),
                make_interval("C", QualityClass.STAR, True, 2005, 2006, 2006),
            ]
        ]

        test_pipeline = create_test_pipeline()
        output = (
            test_pipeline
            | beam.Create(SNAPSHOT_ROWS)
            | CompressSnapshots(cutoff_period=2006)
        )
        assert_that(output, equal_to(expected))
        test_pipeline.run()

    def test_compress_snapshots_duplicate(self) -> None:
        test_pipeline = create_test_pipeline()
        _ = (
            test_pipeline
            | beam.Create(SNAPSHOT_ROWS + SNAPSHOT_ROWS[:1])
            | CompressSnapshots(cutoff_period=2006)
        )
        with self.assertRaisesRegex(Exception, "more than one snapshot"):
            test_pipeline.run()


class TestBackfillHistoryPipeline(unittest.TestCase):
    """Runs the full backfill pipeline over files."""

    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_run(self) -> None:
        output_path = os.path.join(self.temp_dir.name, "intervals.json")
        parameters = BackfillPipelineParameters(
            pipeline="history_backfill",
            snapshots_input=write_json_rows(
                os.path.join(self.temp_dir.name, "snapshots.json"), SNAPSHOT_ROWS
            ),
            cutoff_period=2007,
            output=output_path,
            apache_beam_pipeline_options=create_test_pipeline_options(),
        )

        BackfillHistoryPipeline(parameters).run()

        self.assertEqual(
            [
                interval_to_row(interval)
                for interval in [
                    make_interval("A", QualityClass.GOOD, True, 2004, 2005, 2007),
                    make_interval("A", QualityClass.BAD, True, 2006, 2006, 2007),
                    make_interval("A", QualityClass.BAD, False, 2007, 2007, 2007),
                    make_interval("C", QualityClass.STAR, True, 2005, 2006, 2007),
                ]
            ],
            sorted(
                read_json_rows(output_path),
                key=lambda row: (row["entity_id"], row["start_period"]),
            ),
        )

    def test_requires_pipeline_options(self) -> None:
        with self.assertRaises(ValueError):
            BackfillHistoryPipeline(
                BackfillPipelineParameters(
                    pipeline="history_backfill",
                    snapshots_input="snapshots.json",
                    cutoff_period=2007,
                    output="intervals.json",
                )
            )
