"""
argbind binder: one call's arguments against a Specification.

Order of work
1. Resolve named arguments to their options: unknown names and an option
   given under two of its names are rejected.
2. Required options must be supplied; allow_nil=False rejects None.
3. Positionals are allocated onto operands (argbind.allocator).
4. Type/validator checks, constraints and option-like operand checks are
   collected; one violation is raised as-is, several as a BindingExit.
5. Every item renders in declaration order (argbind.renderer).
6. The Bound result carries the tokens and read access to every value.

The binder is pure: it performs no I/O and keeps no state between calls.
"""
from collections.abc import Mapping
from types import MappingProxyType
from typing import NamedTuple

from .allocator import allocate
from .arguments import Kind, Literal, Operand, Option
from .constraints import present, validate
from .faults import (
    BindingExit,
    ConflictingAliasError,
    ExplicitNilError,
    FaultCode,
    MissingOptionError,
    OptionLikeOperandError,
    UnknownArgumentError,
    getdoc,
    trigger,
)
from .renderer import render
from .utils import *
from .utils import _freeze


class Invocation(NamedTuple):
    """
    The caller's actual arguments for one call.
    """
    positionals: tuple = ()
    named: Mapping = MappingProxyType({})


def _quote(names):
    return ", ".join(map(repr, names))


class Bound:
    """
    The immutable result of binding one call.

    Access
    - tokens: the rendered tokens; iterating a Bound yields them, so
      ["git", *bound] builds a command line.
    - values: read-only mapping of every canonical name to its resolved value.
    - bound.force / bound["force"] / bound["f"] / bound.get("force"):
      attribute access uses canonical names, item access resolves aliases.
    - bound.is_force: boolean reader for flag options.
    - execution_options: the execution-only values that are not None.

    Names that collide with the attributes listed in __reserved__ are only
    reachable through item access.

    Values are frozen once, when the Bound is built: lists (repeatable
    options and operands, empty ones included) read as tuples, mappings as
    read-only mappings, sets as frozensets. Later changes to the caller's
    containers do not reach the Bound.
    """

    __slots__ = ("_tokens", "_values", "_aliases", "_flags", "_execution")
    __reserved__ = frozenset({"tokens", "values", "execution_options", "get", "keys"})

    def __init__(self, tokens, values, aliases, flags, execution):
        object.__setattr__(self, "_tokens", tuple(tokens))
        object.__setattr__(self, "_values", _freeze(dict(values)))
        object.__setattr__(self, "_aliases", dict(aliases))
        object.__setattr__(self, "_flags", frozenset(flags))
        object.__setattr__(self, "_execution", _freeze(dict(execution)))

    @property
    def tokens(self):
        return self._tokens

    @property
    def values(self):
        return self._values

    @property
    def execution_options(self):
        return self._execution

    def keys(self):
        return self._values.keys()

    def get(self, name, default=None, /):
        try:
            return self[name]
        except KeyError:
            return default

    def __getitem__(self, name):
        try:
            return self.values[self._aliases[name]]
        except KeyError:
            raise KeyError(name) from None

    def __getattr__(self, name):
        if name.startswith("_") or name in type(self).__reserved__:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        if name.startswith("is_") and name[3:] in self._flags:
            return bool(self._values[name[3:]])
        if name in self._values:
            return self.values[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def __iter__(self):
        return iter(self._tokens)

    def __len__(self):
        return len(self._tokens)

    def __eq__(self, other):
        if isinstance(other, Bound):
            return self._tokens == other._tokens and dict(self._values) == dict(other._values)
        return NotImplemented

    __hash__ = None

    def __repr__(self):
        return f"bound({", ".join(map(repr, self._tokens))})"

    def __rich_repr__(self):
        yield "tokens", self._tokens
        yield "values", dict(self.values)
        if self._execution:
            yield "execution_options", dict(self._execution)


def _resolve_names(specification, named):
    """
    Map caller names onto canonical option names.

    Returns
    - dict: canonical name -> supplied value, in the caller's order.
    """
    unknown = [name for name in named if not isinstance(specification.lookup(name), Option)]
    if unknown:
        trigger(UnknownArgumentError(
            "unsupported options: %s" % _quote(unknown),
            title="unknown argument",
            code=FaultCode.UNKNOWN_ARGUMENT,
            hint="check the spelling of %s" % _quote(unknown),
            names=tuple(unknown),
            docs=getdoc(FaultCode.UNKNOWN_ARGUMENT)
        ))

    supplied = {}
    spelled = {}
    for name, value in named.items():
        option = specification.lookup(name)
        if option.name in spelled:
            trigger(ConflictingAliasError(
                "conflicting aliases: %s refer to the same option" % _quote((spelled[option.name], name)),
                title="conflicting aliases",
                code=FaultCode.CONFLICTING_ALIASES,
                hint="pass %r only once" % option.name,
                names=(spelled[option.name], name),
                docs=getdoc(FaultCode.CONFLICTING_ALIASES)
            ))
        spelled[option.name] = name
        supplied[option.name] = value
    return supplied


def _check_required(options, supplied):
    if missing := [option.name for option in options if option.required and option.name not in supplied]:
        trigger(MissingOptionError(
            "required options not provided: %s" % _quote(missing),
            title="missing option",
            code=FaultCode.MISSING_OPTION,
            hint="pass %s" % _quote(missing),
            names=tuple(missing),
            docs=getdoc(FaultCode.MISSING_OPTION)
        ))
    for option in options:
        if option.name in supplied and supplied[option.name] is None and not option.allow_nil:
            trigger(ExplicitNilError(
                "required option %r cannot be nil" % option.name,
                title="explicit nil",
                code=FaultCode.EXPLICIT_NIL,
                hint="pass a real value for %r" % option.name,
                names=(option.name,),
                docs=getdoc(FaultCode.EXPLICIT_NIL)
            ))


def _option_like(operand, value):
    values = value if isinstance(value, list | tuple) else (value,)
    if not (offending := [entry for entry in values if isinstance(entry, str) and entry.startswith("-")]):
        return None
    if operand.repeatable:
        message = "operand %r contains option-like values: %s" % (operand.name, _quote(offending))
    else:
        message = "operand %r value %r looks like a command-line option" % (operand.name, offending[0])
    return OptionLikeOperandError(
        message,
        title="option-like operand",
        code=FaultCode.OPTION_LIKE_OPERAND,
        hint="place the value after a '--' separator or pass it by another name",
        names=(operand.name,),
        values=tuple(offending),
        docs=getdoc(FaultCode.OPTION_LIKE_OPERAND)
    )


def _renders(item, value):
    if value is None or isinstance(value, list | tuple) and not value:
        return False
    if isinstance(item, Option) and value is False:
        return False
    return not (isinstance(item, Option) and value == "" and not item.allow_empty)


def _check_operands(specification, values):
    """
    Collect option-like operand values found before the first active '--'.

    A boundary is active once it renders: a literal always does, a separator
    only when its item renders values.
    """
    faults = []
    for item in specification:
        if isinstance(item, Literal) and item.boundary:
            break
        if isinstance(item, Option | Operand) and item.boundary and _renders(item, values[item.names[0]]):
            break
        if isinstance(item, Operand) and (fault := _option_like(item, values[item.name])):
            faults.append(fault)
    return faults


def bind(specification, invocation, /):
    """
    Bind an Invocation against a Specification.

    Returns
    - Bound

    Raises
    - any BindingException subclass, or BindingExit for several violations.
    """
    positionals, named = invocation
    options = specification.options

    supplied = _resolve_names(specification, named)
    _check_required(options, supplied)
    allocation = allocate(specification.operands, positionals)

    values = {}
    for item in specification:
        if isinstance(item, Operand):
            values[item.name] = allocation.values[item.name]
        elif isinstance(item, Option):
            if item.name in supplied:
                values[item.name] = supplied[item.name]
            else:
                values[item.name] = coalesce(item.default)

    given = {
        name: value for name, value in supplied.items()
        if present(specification.lookup(name), value)
    } | {
        name: values[name] for name in allocation.supplied
        if present(specification.lookup(name), values[name])
    }

    faults = validate(options, specification.constraints, given)
    faults.extend(_check_operands(specification, values))

    match faults:
        case []:
            pass
        case [fault]:
            trigger(fault)
        case _:
            trigger(BindingExit(faults))

    tokens = [
        token for item in specification
        for token in render(item, None if isinstance(item, Literal) else values[item.names[0]])
    ]

    # unsupplied flags read False but render nothing, negatable or not
    flags = [option.name for option in options if option.kind is Kind.FLAG]
    for name in flags:
        if values[name] is None:
            values[name] = False

    return Bound(
        tokens,
        values,
        {name: item.names[0] for name, item in specification.index.items()},
        flags,
        {
            option.name: values[option.name] for option in options
            if option.kind is Kind.EXECUTION and values[option.name] is not None
        }
    )


__all__ = (
    "Invocation",
    "Bound",
    "bind",
)
