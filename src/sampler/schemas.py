"""Shared request-schema base and field coercions.

Request bodies use camelCase keys. Validators raise ``ValueError`` with the
exact client-facing message; the error handler reports the first one.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def is_number(value: object) -> bool:
    """True for real ints and floats. Booleans are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_finite_number(value: object) -> bool:
    """A number that fits in a float and is neither NaN nor infinite."""
    if not is_number(value):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def to_integer(value: object) -> int | None:
    """Coerce a JSON number or numeric string to an int when its value is integral."""
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not is_finite_number(value) or value != int(value):
        return None
    return int(value)


def required_text(value: object, field: str) -> str:
    if value is None or value == "":
        raise ValueError(f"{field} is required")
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    return value
