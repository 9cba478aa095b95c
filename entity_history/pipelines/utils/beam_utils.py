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
"""Transforms shared by the history pipelines for reading and writing rows."""
import json
from typing import Any, Dict, Tuple

import apache_beam as beam
from apache_beam.io import ReadFromText, WriteToText


class ReadJsonRows(beam.PTransform):
    """Reads a newline-delimited JSON file into a PCollection of dicts."""

    def __init__(self, file_pattern: str):
        super().__init__()
        self.file_pattern = file_pattern

    def expand(self, input_or_inputs: beam.pvalue.PBegin) -> beam.PCollection:
        return (
            input_or_inputs
            | "Read lines" >> ReadFromText(self.file_pattern)
            | "Parse JSON" >> beam.Map(json.loads)
        )


class WriteJsonRows(beam.PTransform):
    """Writes a PCollection of dicts to exactly one newline-delimited JSON file at
    |output_path|."""

    def __init__(self, output_path: str):
        super().__init__()
        self.output_path = output_path

    def expand(self, input_or_inputs: beam.PCollection) -> beam.pvalue.PDone:
        return (
            input_or_inputs
            | "Serialize JSON" >> beam.Map(json.dumps, sort_keys=True)
            | "Write lines"
            >> WriteToText(self.output_path, num_shards=1, shard_name_template="")
        )


def key_by_entity_id(row: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Keys a serialized row by its entity_id, normalized to a string."""
    return str(row["entity_id"]), row
