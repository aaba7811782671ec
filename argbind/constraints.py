"""
argbind constraint records and validator.

Records (declared through the Builder, immutable)
- Conflict(names, values): at most one of names may be present; with values,
  only that exact combination of present values is forbidden.
- Requirement(name, companion, when): a present name (whose value passes
  when, if given) needs its companion present too.
- Selection(names, exactly): at least one (exactly=False) or exactly one
  (exactly=True) of names must be present.
- AllowedValues(name, values): a present value (every element of a list
  value) must be one of values. The bare True / False form of a
  flag-or-value option is not a choice and skips this check (and the
  type/validator check).

Presence
- present() decides whether a supplied value counts for constraints: None,
  False and empty containers do not, except that an explicit False on a
  negatable option is a deliberate choice and does count.
- Defaults never count: the binder only passes supplied names.

Validation
- validate() evaluates the per-option type/validator checks and every
  constraint, and returns the faults instead of raising them, so one call
  can report all of its problems at once.
"""
from collections.abc import Callable, Mapping
from typing import NamedTuple

from .arguments import Kind
from .faults import (
    AmbiguousSelectionError,
    ConflictingArgumentsError,
    FaultCode,
    ForbiddenValuesError,
    InvalidChoiceError,
    InvalidValueError,
    MissingRequirementError,
    MissingSelectionError,
    TypeMismatchError,
    getdoc,
)
from .utils import Unset


class Conflict(NamedTuple):
    names: tuple
    values: tuple = ()


class Requirement(NamedTuple):
    name: str
    companion: str
    when: Callable | None = None


class Selection(NamedTuple):
    names: tuple
    exactly: bool = False


class AllowedValues(NamedTuple):
    name: str
    values: tuple


def _quote(names):
    names = tuple(map(repr, names))
    if len(names) < 3:
        return " and ".join(names)
    return "%s and %s" % (", ".join(names[:-1]), names[-1])


def _typename(type):
    if isinstance(type, tuple):
        return " or ".join(entry.__name__ for entry in type)
    return type.__name__


def present(item, value, /):
    """
    Tell whether a supplied value counts as present for constraints.
    """
    if value is None or value is Unset:
        return False
    if value is False:
        return item.kind in (Kind.FLAG, Kind.FLAG_OR_VALUE) and item.negatable
    if isinstance(value, list | tuple | Mapping) and not value:
        return False
    return True


def _bare(option, value):
    # bare flag-or-value switches carry no choice
    return option is not None and option.kind is Kind.FLAG_OR_VALUE and isinstance(value, bool)


def _inspect(option, value):
    """
    Run the type/validator check of one present option value.
    """
    if option.type is not None:
        entries = value if option.repeatable and isinstance(value, list | tuple) else (value,)
        for entry in entries:
            if not isinstance(entry, option.type):
                return TypeMismatchError(
                    "option %r must be %s, got %s" % (option.name, _typename(option.type), type(entry).__name__),
                    title="type mismatch",
                    code=FaultCode.TYPE_MISMATCH,
                    hint="pass a %s for %r" % (_typename(option.type), option.name),
                    names=(option.name,),
                    value=value,
                    docs=getdoc(FaultCode.TYPE_MISMATCH)
                )

    if option.validator is not None and not option.validator(value):
        return InvalidValueError(
            "invalid value for option %r: %r" % (option.name, value),
            title="invalid value",
            code=FaultCode.INVALID_VALUE,
            hint="check the accepted values of %r" % option.name,
            names=(option.name,),
            value=value,
            docs=getdoc(FaultCode.INVALID_VALUE)
        )


def _evaluate(constraint, supplied, options):
    """
    Evaluate one constraint against the present names and their values.

    options maps canonical names to their Option, for the checks that depend
    on the kind of the constrained item.

    Returns a fault or None.
    """
    match constraint:
        case Conflict(names, ()):
            if len(hits := [name for name in names if name in supplied]) > 1:
                return ConflictingArgumentsError(
                    "cannot specify %s together" % _quote(hits),
                    title="conflicting arguments",
                    code=FaultCode.CONFLICTING_ARGUMENTS,
                    hint="keep only one of %s" % _quote(names),
                    names=tuple(hits),
                    docs=getdoc(FaultCode.CONFLICTING_ARGUMENTS)
                )

        case Conflict(names, values):
            if all(name in supplied and supplied[name] == value for name, value in zip(names, values)):
                return ForbiddenValuesError(
                    "cannot combine %s" % ", ".join("%s=%r" % pair for pair in zip(names, values)),
                    title="forbidden combination",
                    code=FaultCode.FORBIDDEN_VALUES,
                    hint="change one of %s" % _quote(names),
                    names=names,
                    values=values,
                    docs=getdoc(FaultCode.FORBIDDEN_VALUES)
                )

        case Requirement(name, companion, when):
            if name in supplied and companion not in supplied and (when is None or when(supplied[name])):
                return MissingRequirementError(
                    "%r requires %r" % (name, companion),
                    title="missing requirement",
                    code=FaultCode.MISSING_REQUIREMENT,
                    hint="pass %r together with %r" % (companion, name),
                    names=(name, companion),
                    docs=getdoc(FaultCode.MISSING_REQUIREMENT)
                )

        case Selection(names, exactly):
            hits = [name for name in names if name in supplied]
            if not hits:
                return MissingSelectionError(
                    "%s of %s must be provided" % ("exactly one" if exactly else "at least one", _quote(names)),
                    title="missing selection",
                    code=FaultCode.MISSING_SELECTION,
                    hint="pass one of %s" % _quote(names),
                    names=names,
                    docs=getdoc(FaultCode.MISSING_SELECTION)
                )
            if exactly and len(hits) > 1:
                return AmbiguousSelectionError(
                    "exactly one of %s must be provided, got %s" % (_quote(names), _quote(hits)),
                    title="ambiguous selection",
                    code=FaultCode.AMBIGUOUS_SELECTION,
                    hint="keep only one of %s" % _quote(hits),
                    names=tuple(hits),
                    docs=getdoc(FaultCode.AMBIGUOUS_SELECTION)
                )

        case AllowedValues(name, allowed):
            if name in supplied and not _bare(options.get(name), supplied[name]):
                value = supplied[name]
                entries = value if isinstance(value, list | tuple) else (value,)
                if rejected := [entry for entry in entries if entry not in allowed]:
                    return InvalidChoiceError(
                        "invalid value for %r: %s (allowed: %s)" % (
                            name, ", ".join(map(repr, rejected)), ", ".join(map(repr, allowed))
                        ),
                        title="invalid choice",
                        code=FaultCode.INVALID_CHOICE,
                        hint="pick one of %s" % ", ".join(map(repr, allowed)),
                        names=(name,),
                        allowed=allowed,
                        docs=getdoc(FaultCode.INVALID_CHOICE)
                    )

        case _:
            raise TypeError("unexpected constraint %r" % (constraint,))


def validate(options, constraints, supplied, /):
    """
    Evaluate every check for one call.

    Parameters
    - options: Iterable[Option] in declaration order.
    - constraints: Iterable of constraint records in declaration order.
    - supplied: Mapping[canonical name -> value] of the present names only.

    Returns
    - list of faults (empty when the call is valid).
    """
    faults = []
    named = {option.name: option for option in options}
    for name, option in named.items():
        if name in supplied and not _bare(option, supplied[name]) and (fault := _inspect(option, supplied[name])):
            faults.append(fault)
    for constraint in constraints:
        if fault := _evaluate(constraint, supplied, named):
            faults.append(fault)
    return faults


__all__ = (
    "Conflict",
    "Requirement",
    "Selection",
    "AllowedValues",
    "present",
    "validate",
)
