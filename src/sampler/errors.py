"""Domain error values shared by every engine.

Engine operations return either their result or a ``DomainError``; they do
not raise for expected failures. The transport layer turns a ``DomainError``
into the JSON error envelope using ``status_for``.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import ParamSpec, TypeVar, Union

import structlog

logger = structlog.get_logger()

T = TypeVar("T")
P = ParamSpec("P")


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PRECONDITION_FAILED = "precondition_failed"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.PRECONDITION_FAILED: 400,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.INTERNAL: 500,
}

UPSTREAM_FAILURE_MESSAGE = "Upstream service failure"


def status_for(kind: ErrorKind) -> int:
    """Map an error kind to its HTTP status code."""
    return _STATUS_BY_KIND[kind]


class UpstreamError(Exception):
    """Base class for failures raised by network-backed collaborators."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class DomainError:
    """A client-visible failure returned by an engine operation."""

    kind: ErrorKind
    message: str

    @property
    def status(self) -> int:
        return status_for(self.kind)

    @classmethod
    def validation(cls, message: str) -> DomainError:
        return cls(ErrorKind.VALIDATION, message)

    @classmethod
    def not_found(cls, message: str) -> DomainError:
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> DomainError:
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def precondition_failed(cls, message: str) -> DomainError:
        return cls(ErrorKind.PRECONDITION_FAILED, message)

    @classmethod
    def upstream(cls, message: str = UPSTREAM_FAILURE_MESSAGE) -> DomainError:
        return cls(ErrorKind.UPSTREAM, message)

    @classmethod
    def internal(cls, message: str = "Internal server error") -> DomainError:
        return cls(ErrorKind.INTERNAL, message)

    def to_envelope(self) -> dict[str, object]:
        """Render the JSON error envelope."""
        return {"success": False, "error": self.message, "kind": self.kind.value}


Outcome = Union[T, DomainError]  # noqa: UP007


def upstream_guard(
    operation: str,
) -> Callable[[Callable[P, Awaitable[Outcome[T]]]], Callable[P, Awaitable[Outcome[T]]]]:
    """Convert escaping collaborator failures into an upstream ``DomainError``.

    The underlying message is logged with the operation name and never
    returned to the caller.
    """

    def decorator(func: Callable[P, Awaitable[Outcome[T]]]) -> Callable[P, Awaitable[Outcome[T]]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Outcome[T]:
            try:
                return await func(*args, **kwargs)
            except UpstreamError as exc:
                logger.error(
                    "upstream_failure",
                    operation=operation,
                    error=exc.message,
                    upstream_status=exc.status_code,
                )
                return DomainError.upstream()

        return wrapper

    return decorator
