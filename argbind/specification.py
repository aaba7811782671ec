"""
argbind specification layer: declare a command's argument surface once.

What this module provides
- Builder: chainable declaration API. Every call appends one literal, option,
  operand or constraint and returns the builder, so declarations read in the
  order they render.
- Specification: the frozen result. Immutable, ordered, with a name index
  built once; bind(*positionals, **named) produces a Bound.
- define(callback): create a builder, hand it to callback, freeze it. Works
  as a decorator.

Quick start
    from argbind import define

    @define
    def copy_branch(arguments):
        (arguments
            .literal("branch")
            .literal("--copy")
            .flag_option("force", "f")
            .operand("old_branch")
            .operand("new_branch", required=True))

    copy_branch.bind("old", "new", force=True).tokens
    # ('branch', '--copy', '--force', 'old', 'new')

Definition-time checks (DefinitionError, raised by the declaring call)
- a name (canonical or alias) declared twice;
- a constraint naming an undeclared name, or a set constraint with fewer
  than two distinct names;
- a second repeatable operand, or an optional operand after the repeatable
  one (it could never receive a value);
- a named option declared after a '--' boundary: the wrapped tool would read
  its flag as an operand.
"""
from types import MappingProxyType

from .arguments import Kind, Literal, Operand, Option
from .binder import Invocation, bind
from .constraints import AllowedValues, Conflict, Requirement, Selection
from .faults import DefinitionError, FaultCode, getdoc, trigger
from .utils import *


def _reject(message, /, code=FaultCode.INVALID_DEFINITION, **context):
    trigger(DefinitionError(
        message,
        title="invalid definition",
        code=code,
        hint=context.pop("hint", "fix the argument declaration"),
        docs=getdoc(code),
        **context
    ))


class Specification:
    """
    An immutable, ordered argument declaration.

    Attributes
    - items: every declared Literal / Option / Operand, in declaration order.
    - constraints: every constraint record, in declaration order.
    - options / operands: the items of each family, in declaration order.
    - index: read-only mapping of every name and alias to its item.

    Specifications are built by Builder.freeze() (or define()) and shared by
    every call of a command; binding never mutates them.
    """

    __slots__ = ("_items", "_constraints", "_index")

    def __new__(cls, items, constraints=(), /):
        self = super().__new__(cls)
        index = {}
        for item in items:
            if not isinstance(item, Literal | Option | Operand):
                raise TypeError(f"specification items must be literals, options or operands, got {item!r}")
            for name in item.names:
                if name in index:
                    _reject(f"duplicate argument name {name!r}", code=FaultCode.DUPLICATE_NAME, names=(name,))
                index[name] = item
        object.__setattr__(self, "_items", tuple(items))
        object.__setattr__(self, "_constraints", tuple(constraints))
        object.__setattr__(self, "_index", index)
        return self

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    @property
    def items(self):
        return self._items

    @property
    def constraints(self):
        return self._constraints

    @property
    def index(self):
        return MappingProxyType(self._index)

    @property
    def options(self):
        return tuple(item for item in self._items if isinstance(item, Option))

    @property
    def operands(self):
        return tuple(item for item in self._items if isinstance(item, Operand))

    def lookup(self, name, /):
        """
        Return the item declared under name (canonical or alias), or None.
        """
        return self._index.get(name)

    def bind(self, /, *positionals, **named):
        """
        Bind one call's arguments and return the Bound result.
        """
        return bind(self, Invocation(positionals, named))

    def __contains__(self, name):
        return name in self._index

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def __repr__(self):
        return f"specification({", ".join(map(repr, self._items))})"

    def __rich_repr__(self):
        yield "items", self._items
        if self._constraints:
            yield "constraints", self._constraints


class Builder:
    """
    Chainable declaration API that freezes into a Specification.

    Every method validates its declaration immediately and returns the
    builder. freeze() hands out the Specification; the builder rejects any
    further call afterwards.
    """

    def __init__(self):
        self._items = []
        self._constraints = []
        self._index = {}
        self._bounded = False
        self._repeatable = None
        self._frozen = False

    # --- internals ---

    def _check(self):
        if self._frozen:
            raise RuntimeError("builder is frozen; declare every argument before freeze()")

    def _declare(self, item):
        self._check()
        for name in item.names:
            if name in self._index:
                _reject(
                    f"argument name {name!r} is already declared",
                    code=FaultCode.DUPLICATE_NAME,
                    hint="give every option and operand its own names",
                    names=(name,)
                )

        if isinstance(item, Option) and self._bounded and not item.positional:
            _reject(
                f"option {item.name!r} cannot be defined after a '--' separator boundary; "
                f"its flags would be treated as operands by git",
                code=FaultCode.OPTION_AFTER_SEPARATOR,
                hint="declare named options before the '--' boundary",
                names=(item.name,)
            )

        if isinstance(item, Operand):
            if item.repeatable and self._repeatable is not None:
                _reject(
                    f"only one repeatable operand is allowed, {self._repeatable.name!r} is already repeatable",
                    code=FaultCode.AMBIGUOUS_ARITY,
                    names=(self._repeatable.name, item.name)
                )
            if not item.required and not item.repeatable and self._repeatable is not None:
                _reject(
                    f"optional operand {item.name!r} cannot follow repeatable operand {self._repeatable.name!r}",
                    code=FaultCode.AMBIGUOUS_ARITY,
                    hint="make the operand required or declare it before the repeatable one",
                    names=(self._repeatable.name, item.name)
                )
            if item.repeatable:
                self._repeatable = item

        for name in item.names:
            self._index[name] = item
        self._items.append(item)
        self._bounded = self._bounded or item.boundary

        if isinstance(item, Option) and item.allowed_values is not None:
            self._constraints.append(AllowedValues(item.name, item.allowed_values))
        return self

    def _resolve(self, names, constraint, /, *, least=1):
        self._check()
        resolved = []
        for name in names:
            if not isinstance(name, str):
                raise TypeError(f"{constraint}() names must be strings")
            if (item := self._index.get(name)) is None:
                _reject(
                    f"{constraint}() references unknown argument {name!r}",
                    code=FaultCode.UNKNOWN_REFERENCE,
                    hint="declare the argument before constraining it",
                    names=(name,)
                )
            if (name := item.names[0]) in resolved:
                _reject(f"{constraint}() names {name!r} more than once", names=(name,))
            resolved.append(name)
        if len(resolved) < least:
            _reject(f"{constraint}() requires at least {least} distinct names", names=tuple(resolved))
        return tuple(resolved)

    # --- items ---

    def literal(self, token, /):
        return self._declare(Literal(token))

    def flag_option(
            self,
            *names,
            negatable=False,
            as_=Unset,
            required=False,
            allow_nil=True,
            type=None,
            validator=None
    ):
        return self._declare(Option(
            Kind.FLAG,
            *names,
            as_=as_,
            negatable=negatable,
            required=required,
            allow_nil=allow_nil,
            type=type,
            validator=validator
        ))

    def value_option(
            self,
            *names,
            inline=False,
            repeatable=False,
            allow_empty=False,
            as_=Unset,
            as_operand=False,
            separator=Unset,
            default=Unset,
            allowed_values=None,
            required=False,
            allow_nil=True,
            type=None,
            validator=None
    ):
        return self._declare(Option(
            Kind.VALUE,
            *names,
            as_=as_,
            inline=inline,
            repeatable=repeatable,
            allow_empty=allow_empty,
            as_operand=as_operand,
            separator=separator,
            default=default,
            allowed_values=allowed_values,
            required=required,
            allow_nil=allow_nil,
            type=type,
            validator=validator
        ))

    def flag_or_value_option(
            self,
            *names,
            negatable=False,
            inline=False,
            as_=Unset,
            allowed_values=None,
            required=False,
            allow_nil=True,
            type=None,
            validator=None
    ):
        return self._declare(Option(
            Kind.FLAG_OR_VALUE,
            *names,
            as_=as_,
            negatable=negatable,
            inline=inline,
            allowed_values=allowed_values,
            required=required,
            allow_nil=allow_nil,
            type=type,
            validator=validator
        ))

    def key_value_option(self, *names, key_separator="=", inline=False, as_=Unset, required=False, allow_nil=True):
        return self._declare(Option(
            Kind.KEY_VALUE,
            *names,
            as_=as_,
            key_separator=key_separator,
            inline=inline,
            required=required,
            allow_nil=allow_nil
        ))

    def custom_option(self, *names, builder, required=False, allow_nil=True):
        return self._declare(Option(Kind.CUSTOM, *names, builder=builder, required=required, allow_nil=allow_nil))

    def execution_option(self, *names, default=Unset):
        return self._declare(Option(Kind.EXECUTION, *names, default=default))

    def operand(self, name, /, *, required=False, repeatable=False, default=Unset, allow_nil=Unset, separator=Unset):
        return self._declare(Operand(
            name,
            required=required,
            repeatable=repeatable,
            default=default,
            allow_nil=allow_nil,
            separator=separator
        ))

    # --- constraints ---

    def conflicts(self, *names):
        self._constraints.append(Conflict(self._resolve(names, "conflicts", least=2)))
        return self

    def forbid_values(self, **values):
        names = self._resolve(values, "forbid_values", least=2)
        self._constraints.append(Conflict(names, tuple(values.values())))
        return self

    def requires(self, name, companion, /, when=None):
        if when is not None and not callable(when):
            raise TypeError("requires() 'when' must be callable")
        name, companion = self._resolve((name, companion), "requires", least=2)
        self._constraints.append(Requirement(name, companion, when))
        return self

    def requires_one_of(self, *names):
        self._constraints.append(Selection(self._resolve(names, "requires_one_of", least=2)))
        return self

    def requires_exactly_one_of(self, *names):
        self._constraints.append(Selection(self._resolve(names, "requires_exactly_one_of", least=2), exactly=True))
        return self

    def allowed_values(self, name, /, *values):
        name, = self._resolve((name,), "allowed_values")
        if not values:
            _reject(f"allowed_values() for {name!r} requires at least one value", names=(name,))
        if len(set(map(repr, values))) != len(values):
            _reject(f"allowed_values() for {name!r} cannot contain duplicates", names=(name,))
        self._constraints.append(AllowedValues(name, values))
        return self

    # --- result ---

    def freeze(self):
        """
        Return the immutable Specification; the builder is spent afterwards.
        """
        self._check()
        self._frozen = True
        return Specification(self._items, self._constraints)


def define(callback, /):
    """
    Build a Specification by passing a fresh Builder to callback.

    The callback's return value is ignored, so both plain functions and
    lambdas returning the chained builder work.
    """
    if not callable(callback):
        raise TypeError("define() argument must be callable")
    callback(builder := Builder())
    return builder.freeze()


__all__ = (
    "Builder",
    "Specification",
    "define",
)
