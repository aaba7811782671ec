"""
argbind token renderer.

Purpose
- Turn one resolved value into zero or more command-line tokens, according
  to the kind of the item that declared it.
- render() dispatches with an exhaustive match over Kind; every kind has a
  branch, and an unknown kind is a programming error (assert_never).

Rendering rules (per kind)
- literal: its token, always.
- flag: True -> spelling; False on a negatable flag -> negation; otherwise
  nothing. Negatable flags reject non-boolean values.
- value: "flag value" or "flag=value" (inline); a list when repeatable
  renders one occurrence per element; as_operand renders the bare value(s)
  after an optional separator. Empty strings are dropped unless allow_empty
  (single values only; repeatable lists keep them). False renders nothing,
  as None does, and counts as absent for constraints.
- flag-or-value: True -> bare flag; False -> negation when negatable; a
  string -> "flag value" or "flag=value".
- key-value: one "flag key=value" occurrence per pair; a None value renders
  the key alone, an empty string renders "key=".
- custom: the builder's string or list of strings.
- execution: nothing.
- operand: separator (when the operand renders at least one value) and the
  value(s) in order.

Errors
- Values of the wrong shape raise ValueShapeError through trigger().
"""
from collections.abc import Mapping, Set
from typing import assert_never

from .arguments import Kind
from .faults import FaultCode, ValueShapeError, getdoc, trigger

_CONTAINERS = (list, tuple, Mapping, Set)


def _malformed(item, message, value, /):
    trigger(ValueShapeError(
        message,
        title="malformed value",
        code=FaultCode.MALFORMED_VALUE,
        hint="check the value passed for %r" % item.names[0],
        name=item.names[0],
        value=value,
        docs=getdoc(FaultCode.MALFORMED_VALUE)
    ))


def _render_flag(option, value):
    if option.negatable and value is not None and not isinstance(value, bool):
        _malformed(option, "negatable flag option %r expects a bool, got %s" % (
            option.name, type(value).__name__
        ), value)
    if value is False:
        return [option.negation] if option.negatable else []
    if value:
        return list(option.spelling)
    return []


def _render_value(option, value):
    if value is None or value is False:
        return []

    if isinstance(value, list | tuple):
        if not option.repeatable:
            _malformed(option, "value option %r requires repeatable=True to accept a list" % option.name, value)
        if any(entry is None for entry in value):
            _malformed(option, "nil values are not allowed in value option %r" % option.name, value)
        values = [str(entry) for entry in value]
    elif not (value := str(value)) and not option.allow_empty:
        return []
    else:
        values = [value]

    if option.as_operand:
        if values and option.separator:
            return [option.separator, *values]
        return values

    tokens = []
    for value in values:
        if option.inline:
            tokens.append(option.join(value))
        else:
            tokens.extend((option.spelling[0], value))
    return tokens


def _render_flag_or_value(option, value):
    match value:
        case None:
            return []
        case True:
            return [option.spelling[0]]
        case False:
            return [option.negation] if option.negatable else []
        case str():
            return [option.join(value)] if option.inline else [option.spelling[0], value]
        case _:
            _malformed(option, "flag-or-value option %r expects a bool or a string, got %s" % (
                option.name, type(value).__name__
            ), value)


def _pairs(option, value):
    """
    Normalize key-value input into a list of (key, value) pairs.

    Accepted input
    - a mapping; a list value fans out into one pair per element.
    - a list of [key, value] pairs (duplicate keys allowed, order kept).
    - a single [key, value] pair.
    """
    if isinstance(value, Mapping):
        pairs = []
        for key, entry in value.items():
            if isinstance(entry, list | tuple):
                pairs.extend((key, element) for element in entry)
            else:
                pairs.append((key, entry))
        return pairs

    if not isinstance(value, list | tuple):
        _malformed(option, "key-value option must be a mapping or a list, got %s" % type(value).__name__, value)

    if not value:
        return []

    if all(isinstance(entry, list | tuple) for entry in value):
        for entry in value:
            if len(entry) > 2:
                _malformed(option, "key-value option %r pair %r has too many elements" % (
                    option.name, list(entry)
                ), value)
            if len(entry) < 2:
                _malformed(option, "key-value option %r pair %r is missing its value" % (
                    option.name, list(entry)
                ), value)
        return [tuple(entry) for entry in value]

    if len(value) == 2 and not isinstance(value[0], _CONTAINERS):
        return [tuple(value)]

    _malformed(option, "key-value list input must be a [key, value] pair or a list of pairs", value)


def _render_key_value(option, value):
    if value is None:
        return []

    tokens = []
    separator = option.key_separator
    for key, entry in _pairs(option, value):
        if key is None or not (key := str(key)):
            _malformed(option, "key-value option %r requires a non-empty key" % option.name, value)
        if separator in key:
            _malformed(option, "key-value option %r key %r cannot contain the separator %r" % (
                option.name, key, separator
            ), value)
        if isinstance(entry, _CONTAINERS):
            _malformed(option, "key-value option %r value must be a scalar, got %s" % (
                option.name, type(entry).__name__
            ), value)

        token = key if entry is None else f"{key}{separator}{entry}"
        if option.inline:
            tokens.append(option.join(token))
        else:
            tokens.extend((option.spelling[0], token))
    return tokens


def _render_custom(option, value):
    if value is None:
        return []
    match result := option.builder(value):
        case None:
            return []
        case str():
            return [result]
        case list() | tuple() if all(isinstance(token, str) for token in result):
            return list(result)
        case _:
            _malformed(option, "custom option %r builder must return a string, a list of strings or None" % (
                option.name
            ), value)


def _render_operand(operand, value):
    if value is None:
        return []
    if isinstance(value, list | tuple):
        values = [str(entry) for entry in value]
    else:
        values = [str(value)]
    if values and operand.separator:
        return [operand.separator, *values]
    return values


def render(item, value, /):
    """
    Render one declared item with its resolved value.

    Parameters
    - item: Literal | Option | Operand
    - value: the resolved value (ignored for literals).

    Returns
    - list[str]: the tokens, possibly empty.
    """
    match item.kind:
        case Kind.LITERAL:
            return [item.token]
        case Kind.FLAG:
            return _render_flag(item, value)
        case Kind.VALUE:
            return _render_value(item, value)
        case Kind.FLAG_OR_VALUE:
            return _render_flag_or_value(item, value)
        case Kind.KEY_VALUE:
            return _render_key_value(item, value)
        case Kind.CUSTOM:
            return _render_custom(item, value)
        case Kind.EXECUTION:
            return []
        case Kind.OPERAND:
            return _render_operand(item, value)
        case _:
            assert_never(item.kind)


__all__ = (
    "render",
)
