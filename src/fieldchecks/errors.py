"""Typed validation outcomes for fieldchecks.

Every failing rule produces a ``CheckError`` subclass carrying the field name,
an optional offending value and a severity class. Errors returned by user
self-checks or ``call:`` methods are passed through verbatim and count as
ERROR class.
"""

from enum import IntFlag
from typing import Any


class ErrorClass(IntFlag):
    """Severity classes used to filter results."""
    ERROR = 1
    WARNING = 2

    ALL = ERROR | WARNING


class Skip(Exception):
    """Control sentinel: aborts the whole run and reports success."""

    def __str__(self) -> str:
        return "skip"


SKIP = Skip()


class CheckError(Exception):
    """Base class for errors produced by directive rules."""

    cause = "check failed"
    default_severity = ErrorClass.ERROR

    def __init__(self, field_name: str, value: Any = None,
                 severity: ErrorClass | None = None, path: str | None = None):
        super().__init__(field_name, value)
        self.field_name = field_name
        self.value = value
        self.severity = severity if severity is not None else self.default_severity
        self.path = path

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.cause}: {self.field_name} {self.value}"
        return f"{self.cause}: {self.field_name}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, severity={self.severity.name})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CheckError):
            return NotImplemented
        return (type(self) is type(other)
                and self.field_name == other.field_name
                and self.value == other.value
                and self.severity == other.severity)

    def __hash__(self) -> int:
        return hash((type(self), self.field_name, str(self.value), int(self.severity)))

    @property
    def is_warning(self) -> bool:
        return self.severity == ErrorClass.WARNING

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "kind": type(self).__name__,
            "cause": self.cause,
            "field": self.field_name,
            "value": None if self.value is None else str(self.value),
            "severity": self.severity.name.lower(),
            "path": self.path,
            "message": str(self),
        }


class ConfigurationError(CheckError):
    """A misconfigured directive or graph. Always ERROR class."""

    def __init__(self, field_name: str, value: Any = None,
                 severity: ErrorClass | None = None, path: str | None = None):
        if severity is not None and severity != ErrorClass.ERROR:
            raise ValueError(f"{type(self).__name__} cannot be reclassified as {severity.name}")
        super().__init__(field_name, value, ErrorClass.ERROR, path)


class ValueRequired(CheckError):
    cause = "value required"


class ValueUnexpected(CheckError):
    cause = "unexpected value"


class Deprecated(CheckError):
    cause = "deprecated parameter"
    default_severity = ErrorClass.WARNING


class NoMatch(CheckError):
    cause = "no match"


class BadSyntax(ConfigurationError):
    cause = "bad syntax"


class WrongSignatureMethod(ConfigurationError):
    cause = "wrong signature method"


class MethodNotFound(ConfigurationError):
    cause = "method not found"


class UnknownCheck(ConfigurationError):
    cause = "unknown check"


class CyclicGraph(ConfigurationError):
    cause = "cyclic graph"


def error_class(error: BaseException) -> ErrorClass:
    """Severity class of any reported error; foreign errors are ERROR class."""
    if isinstance(error, CheckError):
        return error.severity
    return ErrorClass.ERROR


def filter_by_class(errors: list[BaseException], mask: ErrorClass) -> list[BaseException]:
    """Return the errors whose class is enabled in ``mask``, keeping order.

    Args:
        errors: Already collected errors
        mask: Combination of ``ErrorClass`` members

    Returns:
        New list; empty when nothing is retained
    """
    return [e for e in errors if error_class(e) & mask]
