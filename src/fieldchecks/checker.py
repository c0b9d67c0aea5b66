"""Validation orchestration.

The checker walks a value graph and, for every node, runs the value's
self-check followed by the rules of the field directive. Results are filtered
by severity class and aggregated according to the configured mode.
"""

import inspect
import logging
from typing import Any, Callable, Protocol, runtime_checkable

from .config import CheckerConfig, Mode
from .directives import parse_directive
from .errors import (
    CheckError,
    CyclicGraph,
    ErrorClass,
    Skip,
    error_class,
)
from .walker import Node, walk

logger = logging.getLogger(__name__)


@runtime_checkable
class Checkable(Protocol):
    """Values that validate themselves.

    ``check`` takes no arguments and returns (or raises) an exception
    describing the problem, or ``SKIP`` to abort the whole run with success.
    A data field named ``check`` or a ``check`` method that needs arguments
    does not make a value checkable.
    """

    def check(self) -> BaseException | None:
        ...


_OPTIONAL_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def self_check_method(value: Any) -> Callable[[], Any] | None:
    """Bound ``check`` method of a checkable value, or None."""
    if isinstance(value, type) or not isinstance(value, Checkable):
        return None
    if not callable(getattr(type(value), "check", None)):
        return None
    method = value.check
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        return None
    for param in signature.parameters.values():
        if param.default is param.empty and param.kind not in _OPTIONAL_KINDS:
            return None
    return method


def self_check(value: Any) -> BaseException | None:
    """Run the self-check of a value, if it has one."""
    method = self_check_method(value)
    if method is None:
        return None
    try:
        return method()
    except Exception as e:
        return e


class _SkipRun(Exception):
    """Raised internally when a self-check returns Skip."""


class Checker:
    """Applies self-checks and field directives to a value graph."""

    def __init__(self, config: CheckerConfig | None = None):
        self.config = config or CheckerConfig()

    @property
    def mode(self) -> Mode:
        return self.config.mode

    @property
    def classes(self) -> ErrorClass:
        return self.config.classes

    def check(self, value: Any) -> list[BaseException]:
        """Validate a value graph.

        Args:
            value: Root of the graph

        Returns:
            Retained errors in traversal order; at most one in FIRST mode.
            Empty on success or when a self-check returned Skip.
        """
        try:
            nodes = walk(value)
        except CyclicGraph as e:
            logger.debug(f"Aborting check: {e}")
            return [e]

        logger.debug(f"Checking {len(nodes)} nodes in {self.mode.value} mode")

        errors: list[BaseException] = []
        try:
            for node in nodes:
                for error in self._check_node(node):
                    if not self._retained(error):
                        continue
                    errors.append(error)
                    if self.mode == Mode.FIRST:
                        return errors
        except _SkipRun:
            logger.debug("Self-check requested skip, discarding results")
            return []

        logger.debug(f"Check finished with {len(errors)} errors")
        return errors

    def _check_node(self, node: Node):
        """Yield the unfiltered errors of a node in evaluation order."""
        error = self_check(node.value)
        if isinstance(error, Skip):
            raise _SkipRun()
        if error is not None:
            yield error

        if node.field is None:
            return
        for rule in parse_directive(node.field.name, node.field.directive):
            error = rule.evaluate(node, self.config)
            if isinstance(error, Skip):
                raise _SkipRun()
            if error is not None:
                yield error

    def _retained(self, error: BaseException) -> bool:
        return bool(error_class(error) & self.classes)


def configure(mode: Mode = Mode.ALL, classes: ErrorClass = ErrorClass.ERROR,
              observer: Callable[[CheckError], None] | None = None) -> Checker:
    """Create a checker for any mode and class filter combination."""
    return Checker(CheckerConfig(mode=mode, classes=classes, observer=observer))


def check(value: Any) -> BaseException | None:
    """Return the first ERROR-class problem of ``value``, or None."""
    errors = configure(Mode.FIRST, ErrorClass.ERROR).check(value)
    return errors[0] if errors else None


def check_all(value: Any) -> list[BaseException]:
    """Return every ERROR-class problem of ``value`` in traversal order."""
    return configure(Mode.ALL, ErrorClass.ERROR).check(value)
