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
"""Parent class with base template parameters."""
import abc
import argparse
from typing import List, Optional, Tuple, Type, TypeVar

import attr
from apache_beam.options.pipeline_options import PipelineOptions, SetupOptions

from entity_history.common import attr_validators
from entity_history.utils.environment import in_test

PipelineParametersT = TypeVar("PipelineParametersT", bound="PipelineParameters")


@attr.define(kw_only=True)
class PipelineParameters:
    """Parent class with base template parameters."""

    pipeline: str = attr.ib(validator=attr_validators.is_non_empty_str)
    # Path of the single newline-delimited JSON file the pipeline writes
    output: str = attr.ib(validator=attr_validators.is_non_empty_str)

    # These will only be set when the pipeline options are derived
    # from command-line args.
    apache_beam_pipeline_options: Optional[PipelineOptions] = attr.ib(default=None)

    @classmethod
    @abc.abstractmethod
    def add_pipeline_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Adds the arguments specific to this pipeline to the |parser|."""

    @classmethod
    def parse_from_args(
        cls: Type[PipelineParametersT], argv: List[str]
    ) -> PipelineParametersT:
        args, _ = cls.parse_args(argv)
        apache_beam_pipeline_options = PipelineOptions(argv)
        # The test runner's main session cannot be pickled
        apache_beam_pipeline_options.view_as(SetupOptions).save_main_session = (
            not in_test()
        )
        # Collect all parsed arguments and filter out the ones that are not set
        set_kwargs = {k: v for k, v in vars(args).items() if v is not None}
        return cls(
            **set_kwargs, apache_beam_pipeline_options=apache_beam_pipeline_options
        )

    @classmethod
    def parse_args(cls, argv: List[str]) -> Tuple[argparse.Namespace, List[str]]:
        """Parses needed arguments for pipeline parameters. Arguments that are not
        recognized are left for the pipeline options."""
        parser: argparse.ArgumentParser = argparse.ArgumentParser()
        parser.add_argument(
            "--pipeline",
            dest="pipeline",
            type=str,
            help="Name of the pipeline to run.",
            required=True,
        )
        parser.add_argument(
            "--output",
            dest="output",
            type=str,
            help="Path of the newline-delimited JSON file to write.",
            required=True,
        )
        cls.add_pipeline_arguments(parser)
        return parser.parse_known_args(argv)
