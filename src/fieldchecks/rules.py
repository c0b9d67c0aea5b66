"""Rule evaluators for field directives.

Each rule inspects one node and returns ``None`` on success or the exception
describing the failure. Rules never raise for data problems.
"""

import inspect
import logging
import re
import typing
from abc import ABC, abstractmethod
from typing import Any, Callable

from .config import CheckerConfig
from .errors import (
    CheckError,
    Deprecated,
    MethodNotFound,
    NoMatch,
    ValueRequired,
    ValueUnexpected,
    WrongSignatureMethod,
)
from .shapes import is_default, render
from .walker import Node

logger = logging.getLogger(__name__)


def log_deprecation(error: CheckError) -> None:
    """Default observer for deprecation advisories."""
    logger.warning(
        f"deprecated parameter {error.field_name!r} discouraged from using, "
        f"because it is dangerous, or because a better alternative exists"
    )


class Rule(ABC):
    """Base class for directive rules."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Rule keyword."""
        pass

    @abstractmethod
    def evaluate(self, node: Node, config: CheckerConfig) -> BaseException | None:
        """Evaluate the rule against a field node.

        Args:
            node: Node carrying field metadata
            config: Active checker configuration

        Returns:
            None on success, otherwise the error for this field
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class RequiredRule(Rule):
    """Fails on absent or default values. Booleans always pass."""

    @property
    def name(self) -> str:
        return "required"

    def evaluate(self, node: Node, config: CheckerConfig) -> BaseException | None:
        if is_default(node.value, bool_is_default=False):
            return ValueRequired(node.name, path=node.path)
        return None


class DeprecatedRule(Rule):
    """Emits a warning advisory when the field is set."""

    @property
    def name(self) -> str:
        return "deprecated"

    def evaluate(self, node: Node, config: CheckerConfig) -> BaseException | None:
        if is_default(node.value):
            return None
        error = Deprecated(node.name, path=node.path)
        observer = config.observer or log_deprecation
        observer(error)
        return error


class ExpectRule(Rule):
    """Accepts only values whose string form is in the allow-list."""

    def __init__(self, alternatives: list[str]):
        self.alternatives = alternatives

    @property
    def name(self) -> str:
        return "expect:" + ";".join(self.alternatives)

    def evaluate(self, node: Node, config: CheckerConfig) -> BaseException | None:
        rendered = render(node.value)
        if rendered in self.alternatives:
            return None
        return ValueUnexpected(node.name, rendered, path=node.path)


class MatchRule(Rule):
    """Tests the string form of the value against a regular expression."""

    def __init__(self, pattern: str):
        self.pattern = pattern

    @property
    def name(self) -> str:
        return "re:" + self.pattern

    def evaluate(self, node: Node, config: CheckerConfig) -> BaseException | None:
        try:
            compiled = re.compile(self.pattern)
        except re.error as e:
            return e
        if compiled.search(render(node.value)) is None:
            return NoMatch(node.name, self.pattern, path=node.path)
        return None


_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def _returns_error(annotation: Any) -> bool:
    if annotation is inspect.Signature.empty or annotation is None or isinstance(annotation, str):
        return True
    if isinstance(annotation, type):
        return annotation is type(None) or issubclass(annotation, BaseException)
    args = typing.get_args(annotation)
    return bool(args) and all(_returns_error(arg) for arg in args)


def has_field_signature(method: Callable) -> bool:
    """Whether ``method`` matches ``(field_name, value) -> error | None``."""
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        return False
    params = list(signature.parameters.values())
    if len(params) != 2 or any(p.kind not in _POSITIONAL for p in params):
        return False
    return _returns_error(signature.return_annotation)


class CallRule(Rule):
    """Delegates to a method of the enclosing record."""

    def __init__(self, method_name: str):
        self.method_name = method_name

    @property
    def name(self) -> str:
        return "call:" + self.method_name

    def evaluate(self, node: Node, config: CheckerConfig) -> BaseException | None:
        owner = node.parent.value if node.parent is not None else None
        method = getattr(owner, self.method_name, None) if owner is not None else None
        if method is None or not callable(method):
            return MethodNotFound(node.name, self.name, path=node.path)
        if not has_field_signature(method):
            return WrongSignatureMethod(node.name, self.name, path=node.path)

        try:
            result = method(node.name, node.value)
        except Exception as e:
            return e

        if result is None or isinstance(result, BaseException):
            return result
        logger.debug(f"{type(owner).__name__}.{self.method_name} returned {type(result).__name__}")
        return WrongSignatureMethod(node.name, self.name, path=node.path)


class InvalidRule(Rule):
    """A token that failed to parse; evaluates to its parse error."""

    def __init__(self, token: str, error: CheckError):
        self.token = token
        self.error = error

    @property
    def name(self) -> str:
        return self.token

    def evaluate(self, node: Node, config: CheckerConfig) -> BaseException | None:
        return type(self.error)(self.error.field_name, self.error.value, path=node.path)
