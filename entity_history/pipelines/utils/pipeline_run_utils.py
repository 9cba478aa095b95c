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
"""Utils for working with Pipelines"""
import inspect
from types import ModuleType
from typing import List, Type

from entity_history.pipelines.base_pipeline import BasePipeline
from entity_history.pipelines.history import (
    backfill_pipeline,
    incremental_pipeline,
    snapshot_pipeline,
)

_PIPELINE_MODULES: List[ModuleType] = [
    snapshot_pipeline,
    backfill_pipeline,
    incremental_pipeline,
]


def collect_all_pipeline_names() -> List[str]:
    """Collects all of the pipeline names from all of the implementations of the
    Pipeline."""
    pipelines = collect_all_pipeline_classes()

    return [pipeline.pipeline_name().lower() for pipeline in pipelines]


def collect_all_pipeline_classes() -> List[Type[BasePipeline]]:
    """Collects all of the versions of the BasePipeline."""
    pipelines: List[Type[BasePipeline]] = []

    for pipeline_module in _PIPELINE_MODULES:
        for attribute_name in dir(pipeline_module):
            attribute = getattr(pipeline_module, attribute_name)
            if inspect.isclass(attribute):
                if (
                    issubclass(attribute, BasePipeline)
                    and not inspect.isabstract(attribute)
                    and attribute not in pipelines
                ):
                    pipelines.append(attribute)

    return pipelines
