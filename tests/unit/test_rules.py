"""Tests for rule evaluators."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import pytest

from fieldchecks.config import CheckerConfig
from fieldchecks.errors import (
    BadSyntax,
    Deprecated,
    ErrorClass,
    MethodNotFound,
    NoMatch,
    ValueRequired,
    ValueUnexpected,
    WrongSignatureMethod,
)
from fieldchecks.rules import (
    CallRule,
    DeprecatedRule,
    ExpectRule,
    InvalidRule,
    MatchRule,
    RequiredRule,
    has_field_signature,
)
from fieldchecks.shapes import FieldInfo
from fieldchecks.walker import Node


def field_node(name, value, parent_value=None, optional=False):
    parent = Node(value=parent_value) if parent_value is not None else None
    return Node(value=value, field=FieldInfo(name, None, optional), parent=parent, path=f"Root.{name}")


@pytest.fixture
def config():
    return CheckerConfig()


class TestRequiredRule:
    """Test the required rule."""

    @pytest.mark.parametrize("value", [None, "", 0, 0.0, [], {}, (), set()])
    def test_fails_on_default(self, config, value):
        error = RequiredRule().evaluate(field_node("Listen", value), config)
        assert error == ValueRequired("Listen")
        assert str(error) == "value required: Listen"
        assert error.path == "Root.Listen"

    @pytest.mark.parametrize("value", ["x", 1, -1, [0], {"a": 1}, 0.5])
    def test_passes_on_value(self, config, value):
        assert RequiredRule().evaluate(field_node("Listen", value), config) is None

    @pytest.mark.parametrize("value", [True, False])
    def test_booleans_always_pass(self, config, value):
        assert RequiredRule().evaluate(field_node("Enabled", value), config) is None

    def test_all_default_record_fails(self, config):
        @dataclass
        class Inner:
            field: str = ""
            count: int = 0

        assert RequiredRule().evaluate(field_node("Inner", Inner()), config) is not None
        assert RequiredRule().evaluate(field_node("Inner", Inner(count=1)), config) is None


class TestDeprecatedRule:
    """Test the deprecated rule."""

    def test_default_value_is_silent(self, config):
        seen = []
        config = CheckerConfig(observer=seen.append)

        assert DeprecatedRule().evaluate(field_node("Timeout", 0), config) is None
        assert DeprecatedRule().evaluate(field_node("Enabled", False), config) is None
        assert seen == []

    def test_set_value_warns(self):
        seen = []
        config = CheckerConfig(observer=seen.append)

        error = DeprecatedRule().evaluate(field_node("Timeout", 5), config)

        assert error == Deprecated("Timeout")
        assert error.severity == ErrorClass.WARNING
        assert str(error) == "deprecated parameter: Timeout"
        assert seen == [error]

    def test_true_boolean_warns(self, config):
        assert DeprecatedRule().evaluate(field_node("Enabled", True), config) is not None

    def test_default_observer_logs(self, config, caplog):
        with caplog.at_level(logging.WARNING, logger="fieldchecks.rules"):
            DeprecatedRule().evaluate(field_node("Field1", 1), config)

        assert (
            "deprecated parameter 'Field1' discouraged from using, because it is dangerous, "
            "or because a better alternative exists"
        ) in caplog.text


class TestExpectRule:
    """Test the expect rule."""

    def test_member_passes(self, config):
        rule = ExpectRule(["info", "debug", "error"])
        assert rule.evaluate(field_node("Level", "debug"), config) is None

    def test_non_member_fails(self, config):
        rule = ExpectRule(["info", "debug", "error"])
        error = rule.evaluate(field_node("Level", "warn"), config)

        assert error == ValueUnexpected("Level", "warn")
        assert str(error) == "unexpected value: Level warn"

    def test_trailing_empty_alternative_accepts_empty(self, config):
        rule = ExpectRule(["bar", "foo", ""])
        assert rule.evaluate(field_node("F", ""), config) is None

    def test_empty_string_rejected_without_empty_alternative(self, config):
        rule = ExpectRule(["warn", "error"])
        assert str(rule.evaluate(field_node("F", ""), config)) == "unexpected value: F "

    def test_absent_renders_nil(self, config):
        rule = ExpectRule(["bar", "foo", "baz"])
        error = rule.evaluate(field_node("FieldStrPtr", None, optional=True), config)
        assert str(error) == "unexpected value: FieldStrPtr <nil>"

    def test_nil_alternative_matches_absent(self, config):
        rule = ExpectRule(["<nil>", "foo"])
        assert rule.evaluate(field_node("F", None), config) is None

    def test_numbers_are_rendered(self, config):
        rule = ExpectRule(["1", "2", "3", "50", "23"])
        assert str(rule.evaluate(field_node("Field", 0), config)) == "unexpected value: Field 0"
        assert rule.evaluate(field_node("Field", 50), config) is None


class TestMatchRule:
    """Test the re rule."""

    def test_match(self, config):
        assert MatchRule(r"^\d+$").evaluate(field_node("Port", "8080"), config) is None
        assert MatchRule(r"^\d+$").evaluate(field_node("Port", 8080), config) is None

    def test_search_semantics(self, config):
        assert MatchRule("b").evaluate(field_node("F", "abc"), config) is None

    def test_no_match(self, config):
        error = MatchRule(r"^\d+$").evaluate(field_node("Port", "http"), config)
        assert error == NoMatch("Port", r"^\d+$")
        assert str(error) == r"no match: Port ^\d+$"

    def test_invalid_pattern_surfaces_compile_error(self, config):
        error = MatchRule("([a-z]").evaluate(field_node("F", "abc"), config)
        assert isinstance(error, re.error)


@dataclass
class Owner:
    value: str = ""

    def validate(self, name: str, value: str) -> Optional[Exception]:
        if value == "valid":
            return None
        return ValueError(f"Not valid value: {value!r}")

    def raising(self, name, value):
        raise ValueError(f"{name} rejected")

    def record(self, name, value):
        self.seen = (name, value)

    def too_many(self, name, value, extra):
        return None

    def too_few(self, value):
        return None

    def keyword_only(self, name, *, value):
        return None

    def returns_bool(self, name, value) -> bool:
        return True

    def returns_value(self, name, value):
        return "oops"


class TestCallRule:
    """Test the call rule."""

    def test_passes(self, config):
        node = field_node("ValueForFunc", "valid", Owner())
        assert CallRule("validate").evaluate(node, config) is None

    def test_returned_error_is_verbatim(self, config):
        node = field_node("ValueForFunc", "bad", Owner())
        error = CallRule("validate").evaluate(node, config)
        assert isinstance(error, ValueError)
        assert str(error) == "Not valid value: 'bad'"

    def test_raised_error_is_verbatim(self, config):
        error = CallRule("raising").evaluate(field_node("F", "x", Owner()), config)
        assert isinstance(error, ValueError)
        assert str(error) == "F rejected"

    def test_receives_field_name_and_value(self, config):
        owner = Owner()
        CallRule("record").evaluate(field_node("Port", 8080, owner), config)
        assert owner.seen == ("Port", 8080)

    @pytest.mark.parametrize("method", ["too_many", "too_few", "keyword_only", "returns_bool"])
    def test_wrong_signature(self, config, method):
        error = CallRule(method).evaluate(field_node("F", "x", Owner()), config)
        assert error == WrongSignatureMethod("F", f"call:{method}")
        assert str(error) == f"wrong signature method: F call:{method}"

    def test_wrong_return_value(self, config):
        error = CallRule("returns_value").evaluate(field_node("F", "x", Owner()), config)
        assert isinstance(error, WrongSignatureMethod)

    def test_method_not_found(self, config):
        error = CallRule("missing").evaluate(field_node("F", "x", Owner()), config)
        assert error == MethodNotFound("F", "call:missing")
        assert str(error) == "method not found: F call:missing"

    def test_attribute_that_is_not_callable(self, config):
        error = CallRule("value").evaluate(field_node("F", "x", Owner()), config)
        assert isinstance(error, MethodNotFound)

    def test_without_parent(self, config):
        error = CallRule("validate").evaluate(field_node("F", "x"), config)
        assert isinstance(error, MethodNotFound)


class TestHasFieldSignature:
    """Test signature validation of call targets."""

    def test_plain_function(self):
        def ok(name, value):
            return None

        assert has_field_signature(ok)

    def test_annotated_optional_error(self):
        def ok(name: str, value: int) -> ValueError | None:
            return None

        assert has_field_signature(ok)

    def test_var_positional(self):
        def varargs(*args):
            return None

        assert not has_field_signature(varargs)

    def test_builtin_without_signature(self):
        assert not has_field_signature(print)


class TestInvalidRule:
    """Test rules standing in for unparsable tokens."""

    def test_error_carries_node_path(self, config):
        rule = InvalidRule("expect:", BadSyntax("F", "required,expect:"))

        first = rule.evaluate(Node(value="a", field=FieldInfo("F"), path="A.F"), config)
        second = rule.evaluate(Node(value="b", field=FieldInfo("F"), path="B.F"), config)

        assert first == BadSyntax("F", "required,expect:")
        assert (first.path, second.path) == ("A.F", "B.F")
        assert first is not second
        assert rule.error.path is None
