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
"""Parameters for the history pipelines."""
import argparse
from typing import Optional

import attr

from entity_history.common import attr_validators
from entity_history.pipelines.pipeline_parameters import PipelineParameters


@attr.define(kw_only=True)
class SnapshotPipelineParameters(PipelineParameters):
    """Parameters for building the cumulative snapshots for one period."""

    activity_input: str = attr.ib(validator=attr_validators.is_non_empty_str)
    # Unset when building the first period
    previous_snapshots_input: Optional[str] = attr.ib(
        default=None, validator=attr_validators.is_opt_str
    )
    period: int = attr.ib(converter=int, validator=attr_validators.is_period)

    @classmethod
    def add_pipeline_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--activity_input",
            dest="activity_input",
            type=str,
            help="Path of the activity rows for the period.",
            required=True,
        )
        parser.add_argument(
            "--previous_snapshots_input",
            dest="previous_snapshots_input",
            type=str,
            help="Path of the snapshots for the previous period.",
            required=False,
        )
        parser.add_argument(
            "--period",
            dest="period",
            type=int,
            help="The period to build snapshots for.",
            required=True,
        )


@attr.define(kw_only=True)
class BackfillPipelineParameters(PipelineParameters):
    """Parameters for compressing a full snapshot timeline into history intervals."""

    snapshots_input: str = attr.ib(validator=attr_validators.is_non_empty_str)
    cutoff_period: int = attr.ib(converter=int, validator=attr_validators.is_period)

    @classmethod
    def add_pipeline_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--snapshots_input",
            dest="snapshots_input",
            type=str,
            help="Path of the snapshots for every period.",
            required=True,
        )
        parser.add_argument(
            "--cutoff_period",
            dest="cutoff_period",
            type=int,
            help="The last period to include in the history.",
            required=True,
        )


@attr.define(kw_only=True)
class IncrementalPipelineParameters(PipelineParameters):
    """Parameters for merging one period of snapshots into existing history."""

    snapshots_input: str = attr.ib(validator=attr_validators.is_non_empty_str)
    prior_intervals_input: str = attr.ib(validator=attr_validators.is_non_empty_str)
    period: int = attr.ib(converter=int, validator=attr_validators.is_period)

    @classmethod
    def add_pipeline_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--snapshots_input",
            dest="snapshots_input",
            type=str,
            help="Path of the snapshots for the period.",
            required=True,
        )
        parser.add_argument(
            "--prior_intervals_input",
            dest="prior_intervals_input",
            type=str,
            help="Path of the history intervals as of the previous period.",
            required=True,
        )
        parser.add_argument(
            "--period",
            dest="period",
            type=int,
            help="The period to merge into the history.",
            required=True,
        )
