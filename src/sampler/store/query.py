"""Composable filter and sort terms for document store listings."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar

T = TypeVar("T")


class Operator(StrEnum):
    EQUAL = "equal"
    NOT_EQUAL = "notEqual"
    LESS_THAN = "lessThan"
    LESS_THAN_EQUAL = "lessThanEqual"
    GREATER_THAN = "greaterThan"
    GREATER_THAN_EQUAL = "greaterThanEqual"


@dataclass(frozen=True)
class Filter:
    """``attribute <operator> any of values``."""

    attribute: str
    operator: Operator
    values: tuple[Any, ...]


@dataclass(frozen=True)
class Sort:
    attribute: str
    descending: bool = False


def _values(value: Any) -> tuple[Any, ...]:  # noqa: ANN401
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(value)
    return (value,)


def equal(attribute: str, value: Any) -> Filter:  # noqa: ANN401
    """Match documents whose attribute equals the value (or any value of a list)."""
    return Filter(attribute, Operator.EQUAL, _values(value))


def not_equal(attribute: str, value: Any) -> Filter:  # noqa: ANN401
    return Filter(attribute, Operator.NOT_EQUAL, _values(value))


def less_than(attribute: str, value: Any) -> Filter:  # noqa: ANN401
    return Filter(attribute, Operator.LESS_THAN, (value,))


def less_than_equal(attribute: str, value: Any) -> Filter:  # noqa: ANN401
    return Filter(attribute, Operator.LESS_THAN_EQUAL, (value,))


def greater_than(attribute: str, value: Any) -> Filter:  # noqa: ANN401
    return Filter(attribute, Operator.GREATER_THAN, (value,))


def greater_than_equal(attribute: str, value: Any) -> Filter:  # noqa: ANN401
    return Filter(attribute, Operator.GREATER_THAN_EQUAL, (value,))


def order_asc(attribute: str) -> Sort:
    return Sort(attribute)


def order_desc(attribute: str) -> Sort:
    return Sort(attribute, descending=True)


def chunked(values: Iterable[T], size: int) -> Iterator[list[T]]:
    """Split values into lists of at most ``size`` items.

    Used to keep the number of values in one ``equal`` filter under the
    store's per-query limit.
    """
    if size < 1:
        msg = f"Chunk size must be positive, got {size}"
        raise ValueError(msg)
    chunk: list[T] = []
    for value in values:
        chunk.append(value)
        if len(chunk) == size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


Filters = Sequence[Filter]
Sorts = Sequence[Sort]
