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
"""Contains helper aliases and functions for the attrs validators that are passed to
the `validator=` arg of attr fields on the history models and pipeline parameters.
For example:

@attr.s
class MyClass:
  entity_name: Optional[str] = attr.ib(validator=is_opt(str))
  active: bool = attr.ib(validator=is_bool)
"""
from typing import Any, Callable, Type

import attr


class IsOptionalValidator:
    def __init__(self, expected_cls_type: Type) -> None:
        self._expected_cls_type = expected_cls_type

    def __call__(self, instance: Any, attribute: attr.Attribute, value: Any) -> None:
        return attr.validators.optional(
            attr.validators.instance_of(self._expected_cls_type)
        )(instance, attribute, value)


def is_opt(cls_type: Type) -> Callable:
    """Returns an attrs validator that checks if the value is an instance of |cls_type|
    or None."""
    return IsOptionalValidator(cls_type)


def is_non_empty_str(_instance: Any, _attribute: attr.Attribute, value: str) -> None:
    if not isinstance(value, str):
        raise ValueError(f"Expected value type str, found {type(value)}.")
    if not value:
        raise ValueError("String value should not be empty.")


def is_period(_instance: Any, attribute: attr.Attribute, value: int) -> None:
    """Periods are whole, non-negative numbers (e.g. years). Booleans are rejected
    even though bool is a subclass of int."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(
            f"Expected int value for period field [{attribute.name}], found "
            f"{type(value)}."
        )
    if value < 0:
        raise ValueError(
            f"Expected non-negative value for period field [{attribute.name}], "
            f"found [{value}]."
        )


# String field validators
is_str = attr.validators.instance_of(str)
is_opt_str = is_opt(str)

# Int field validators
is_opt_int = is_opt(int)

# Float field validators
is_float = attr.validators.instance_of(float)

# Boolean field validators
is_bool = attr.validators.instance_of(bool)


class IsTupleOfValidator:
    def __init__(self, item_expected_type: Type) -> None:
        self._item_expected_type = item_expected_type

    def __call__(self, instance: Any, attribute: attr.Attribute, value: Any) -> None:
        if not isinstance(value, tuple):
            raise ValueError(
                f"Found value for tuple type field [{attribute.name}] on class "
                f"[{type(instance)}] which has non-tuple type [{type(value)}]."
            )
        for item in value:
            if not isinstance(item, self._item_expected_type):
                raise ValueError(
                    f"Found item in tuple type field [{attribute.name}] on class "
                    f"[{type(instance)}] which is not the expected type "
                    f"[{self._item_expected_type}]: {type(item)}"
                )


def is_tuple_of(item_expected_type: Type) -> IsTupleOfValidator:
    return IsTupleOfValidator(item_expected_type)
