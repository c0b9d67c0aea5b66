"""Directive parsing.

A directive is the rule string attached to a record field::

    directive := rule (',' rule)*
    rule      := 'required' | 'deprecated'
               | 'expect:' alt (';' alt)*
               | 'call:' identifier
               | 're:' pattern

Commas inside balanced brackets or escaped with a backslash do not separate
rules, so ``re:^a{1,3}$`` is a single rule while ``re:[(],required`` is two.
"""

from .errors import BadSyntax, UnknownCheck
from .rules import (
    CallRule,
    DeprecatedRule,
    ExpectRule,
    InvalidRule,
    MatchRule,
    RequiredRule,
    Rule,
)

_CLOSERS = {")": "(", "}": "{"}


def _class_end(raw: str, start: int) -> int:
    """Index of the ``]`` closing the character class opened at ``start``, or -1."""
    i = start + 1
    if i < len(raw) and raw[i] == "^":
        i += 1
    if i < len(raw) and raw[i] == "]":
        i += 1
    while i < len(raw):
        if raw[i] == "\\":
            i += 2
            continue
        if raw[i] == "]":
            return i
        i += 1
    return -1


def _enclosed_positions(raw: str) -> set[int]:
    """Positions inside balanced ``(...)``, ``{...}`` or ``[...]`` pairs.

    A character class is literal up to its closing ``]``, so ``[(]`` is a
    closed pair. Brackets that never close are plain characters.
    """
    spans: list[tuple[int, int]] = []
    open_stack: list[tuple[str, int]] = []
    i = 0
    while i < len(raw):
        char = raw[i]
        if char == "\\":
            i += 2
            continue
        if char == "[":
            end = _class_end(raw, i)
            if end != -1:
                spans.append((i, end))
                i = end + 1
                continue
        elif char in "({":
            open_stack.append((char, i))
        elif char in _CLOSERS and open_stack and open_stack[-1][0] == _CLOSERS[char]:
            spans.append((open_stack.pop()[1], i))
        i += 1
    return {pos for start, end in spans for pos in range(start + 1, end)}


def split_directive(raw: str) -> list[str]:
    """Split a directive on top-level commas and strip each token."""
    enclosed = _enclosed_positions(raw)
    tokens: list[str] = []
    current: list[str] = []
    escaped = False

    for index, char in enumerate(raw):
        if escaped:
            current.append(char)
            escaped = False
            continue
        if char == "\\":
            current.append(char)
            escaped = True
            continue
        if char == "," and index not in enclosed:
            tokens.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    tokens.append("".join(current).strip())
    return [t.replace("\\,", ",") for t in tokens]


def parse_rule(field_name: str, raw: str, token: str) -> Rule:
    """Parse a single token of ``raw``.

    Raises:
        BadSyntax: If a prefixed rule has no payload or the token is empty
        UnknownCheck: If the token is not a known rule
    """
    if token == "required":
        return RequiredRule()
    if token == "deprecated":
        return DeprecatedRule()

    keyword, sep, payload = token.partition(":")
    if not token or (sep and keyword in ("expect", "call", "re") and not payload):
        raise BadSyntax(field_name, raw)

    if sep and keyword == "expect":
        return ExpectRule(payload.split(";"))
    if sep and keyword == "call":
        if not payload.isidentifier():
            raise BadSyntax(field_name, raw)
        return CallRule(payload)
    if sep and keyword == "re":
        return MatchRule(payload)
    raise UnknownCheck(field_name, token)


def parse_directive(field_name: str, raw: str | None) -> list[Rule]:
    """Parse the directive of a field into its ordered rules.

    Tokens that fail to parse become ``InvalidRule`` objects so the remaining
    rules of the directive are still evaluated.

    Args:
        field_name: Name of the field, used in errors
        raw: Directive string; None or blank yields no rules

    Returns:
        Rules in directive order
    """
    if raw is None or not raw.strip():
        return []

    rules: list[Rule] = []
    for token in split_directive(raw):
        try:
            rules.append(parse_rule(field_name, raw, token))
        except (BadSyntax, UnknownCheck) as e:
            rules.append(InvalidRule(token, e))
    return rules
