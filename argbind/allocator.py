"""
argbind positional allocator.

Maps the positional values of one call onto the declared operand slots the
way a dynamic-language parameter list binds required, optional and splat
parameters.

Algorithm
1. A single list/tuple positional is flattened when a repeatable slot exists.
2. Fewer values than required slots: MissingOperandError naming the unmet
   slots (required slots are satisfied left to right).
3. Slots are walked left to right. A required slot always takes the next
   value. An optional or repeatable slot only takes values while enough
   remain for every later required slot; the repeatable slot takes all of
   them (possibly none, yielding a list).
4. Leftover values are an UnexpectedOperandError (leftover Nones are ignored).

Nil handling
- An explicit None consumes its slot and is kept as None ("present but
  empty"), unless the slot forbids it (allow_nil=False): ExplicitNilError.
- None inside a repeatable slot is always an ExplicitNilError.

Example
    (old=Unset, new required) with ("x",)      -> old=None, new="x"
    (a="d1", b="d2", c required) with ("x","y") -> a="x", b="d2", c="y"
"""
from typing import NamedTuple

from .faults import (
    ExplicitNilError,
    FaultCode,
    MissingOperandError,
    UnexpectedOperandError,
    getdoc,
    trigger,
)
from .utils import coalesce


class Allocation(NamedTuple):
    """
    Result of allocate().

    - values: operand name -> resolved value (defaults applied).
    - supplied: names of the operands that received a caller value.
    """
    values: dict
    supplied: frozenset


def _quote(names):
    return ", ".join(map(repr, names))


def _missing(unmet):
    names = tuple(operand.name for operand in unmet)
    if len(unmet) == 1 and unmet[0].repeatable:
        message = "at least one value is required for %r" % names[0]
    elif len(unmet) == 1:
        message = "operand %r is required" % names[0]
    else:
        message = "operands %s are required" % _quote(names)
    trigger(MissingOperandError(
        message,
        title="missing operand",
        code=FaultCode.MISSING_OPERAND,
        hint="pass a positional value for %s" % _quote(names),
        names=names,
        docs=getdoc(FaultCode.MISSING_OPERAND)
    ))


def _nil(operand, message):
    trigger(ExplicitNilError(
        message,
        title="explicit nil",
        code=FaultCode.EXPLICIT_NIL,
        hint="pass a real value for %r or omit it" % operand.name,
        names=(operand.name,),
        docs=getdoc(FaultCode.EXPLICIT_NIL)
    ))


def allocate(operands, values, /):
    """
    Allocate positional values onto operand slots.

    Parameters
    - operands: Sequence[Operand] in declaration order.
    - values: Sequence of the caller's positional values.

    Returns
    - Allocation(values, supplied)

    Raises
    - MissingOperandError, UnexpectedOperandError, ExplicitNilError.
    """
    values = list(values)
    if len(values) == 1 and isinstance(values[0], list | tuple) and any(
        operand.repeatable for operand in operands
    ):
        values = list(values[0])

    required = [operand for operand in operands if operand.required]
    if len(values) < len(required):
        _missing(required[len(values):])

    # number of required slots strictly after each position
    needs = [sum(operand.required for operand in operands[position + 1:]) for position in range(len(operands))]

    allocation = {}
    supplied = set()
    index = 0
    for position, operand in enumerate(operands):
        remaining = len(values) - index
        if operand.repeatable:
            count = max(remaining - needs[position], 0)
            chunk = values[index:index + count]
            index += count
            if any(value is None for value in chunk):
                _nil(operand, "nil values are not allowed in repeatable operand %r" % operand.name)
            if chunk:
                allocation[operand.name] = chunk
                supplied.add(operand.name)
            elif operand.required:
                _missing([operand])
            else:
                allocation[operand.name] = coalesce(operand.default, [])
        elif operand.required or remaining > needs[position]:
            value = values[index]
            index += 1
            if value is None and not operand.allow_nil:
                if operand.required:
                    _nil(operand, "operand %r is required and cannot be nil" % operand.name)
                _nil(operand, "operand %r cannot be nil" % operand.name)
            allocation[operand.name] = value
            supplied.add(operand.name)
        else:
            allocation[operand.name] = coalesce(operand.default)

    if leftovers := [value for value in values[index:] if value is not None]:
        trigger(UnexpectedOperandError(
            "unexpected positional arguments: %s" % _quote(leftovers),
            title="unexpected operand",
            code=FaultCode.UNEXPECTED_OPERAND,
            hint="remove the extra positional values or pass them by name",
            values=tuple(leftovers),
            docs=getdoc(FaultCode.UNEXPECTED_OPERAND)
        ))

    return Allocation(allocation, frozenset(supplied))


__all__ = (
    "Allocation",
    "allocate",
)
