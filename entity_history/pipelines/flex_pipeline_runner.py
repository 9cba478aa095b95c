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
"""Util for launching a single history pipeline by name.

Example usage:

    python -m entity_history.pipelines.flex_pipeline_runner \
        --pipeline history_backfill \
        --snapshots_input snapshots.json \
        --cutoff_period 1973 \
        --output intervals_1973.json
"""
import argparse
import logging
import sys
from typing import List, Type

from entity_history.pipelines.base_pipeline import BasePipeline
from entity_history.pipelines.utils.pipeline_run_utils import (
    collect_all_pipeline_classes,
)


def pipeline_cls_for_pipeline_name(pipeline_name: str) -> Type[BasePipeline]:
    """Finds the Pipeline class corresponding to the pipeline with the given
    |pipeline_name|."""
    all_pipelines = collect_all_pipeline_classes()
    pipeline_with_name = [
        pipeline
        for pipeline in all_pipelines
        if pipeline.pipeline_name().lower() == pipeline_name.lower()
    ]

    if len(pipeline_with_name) != 1:
        raise ValueError(
            f"Expected exactly one Pipeline with the pipeline_name: {pipeline_name}. "
            f"Found: {pipeline_with_name}"
        )

    return pipeline_with_name[0]


def run_flex_pipeline(pipeline_name: str, argv: List[str]) -> None:
    """Runs the pipeline with |pipeline_name| with the arguments contained in argv."""
    pipeline_cls = pipeline_cls_for_pipeline_name(pipeline_name)
    pipeline_cls.build_from_args(argv).run()


if __name__ == "__main__":
    logging.getLogger().setLevel(logging.INFO)

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--pipeline", dest="pipeline", type=str, help="name of pipeline to run"
    )

    args, _ = parser.parse_known_args()

    run_flex_pipeline(pipeline_name=args.pipeline, argv=sys.argv[1:])
