"""Tagged results returned by the booking and scheduling core."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories a core operation can report."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INVALID_STATE = "invalid_state"
    OVERLAP = "overlap"
    VALIDATION = "validation"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying the error kind and a message."""

    kind: ErrorKind
    message: str


def not_found(message: str) -> Err:
    return Err(ErrorKind.NOT_FOUND, message)


def unauthorized(message: str) -> Err:
    return Err(ErrorKind.UNAUTHORIZED, message)


def invalid_state(message: str) -> Err:
    return Err(ErrorKind.INVALID_STATE, message)


def overlap(message: str) -> Err:
    return Err(ErrorKind.OVERLAP, message)


def validation_error(message: str) -> Err:
    return Err(ErrorKind.VALIDATION, message)
