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
"""Installs the entity_history package and the history pipelines.

This is referenced when running the history pipelines on a Beam runner that
stages the package onto its workers. The REQUIRED_PACKAGES are the external
packages required by entity_history, and must be manually updated any time a
dependency is added to code the pipelines touch.
"""
import setuptools

REQUIRED_PACKAGES = [
    "apache-beam",
    "attrs",
    "more-itertools",
    "SQLAlchemy",
]

TEST_PACKAGES = [
    "parameterized",
    "pytest",
]

setuptools.setup(
    name="entity-history-pipelines",
    version="1.0.0",
    install_requires=REQUIRED_PACKAGES,
    extras_require={"test": TEST_PACKAGES},
    packages=setuptools.find_packages(include=["entity_history", "entity_history.*"]),
)
