r"""
argbind declared items: literals, options and operands.

Overview
- Kind: closed enumeration of everything a Specification can hold. The
  renderer matches on it exhaustively, so a new kind is a visible change.
- Literal: a fixed token rendered unconditionally at its declared position.
- Option: a named argument (flag, value, flag-or-value, key-value, custom or
  execution-only) with one canonical name and any number of aliases.
- Operand: a positional slot (required, optional or repeatable).

Introspection & representation
- ArgumentType metaclass derives __typename__ from the class name, exposes
  the fields listed in __introspectable__ as read-only properties (mirror())
  and provides stable __repr__/__rich_repr__ implementations.
- Item classes are sealed: subclassing them raises TypeError.

Metadata (sanitized on construction)
- names: Python identifiers, first one canonical, duplicates rejected.
- as_: rendered spelling override ("--trailer"), a tuple only for plain flags.
- inline / as_operand / separator combinations are checked here, so a bad
  declaration fails where it is written.
- type / validator / builder must be types or callables.

Naming
- A one-character name renders with a single dash ("-f"); longer names render
  with two dashes and underscores turned into dashes ("--dry-run").
- Negation turns "--x" into "--no-x" and "-n" into "--no-n".
- Inline values join long spellings with "=" ("--sort=refname") and short
  spellings directly ("-n5").
"""
import builtins
import enum
import functools
import operator
import re
from collections.abc import Iterable

from .faults import DefinitionError, FaultCode, getdoc, trigger
from .utils import *


class Kind(enum.Enum):
    """
    The closed set of declared item kinds.

    - LITERAL: fixed token(s), always rendered.
    - FLAG: boolean switch, optionally negatable.
    - VALUE: flag followed by a value (or joined inline), optionally repeated.
    - FLAG_OR_VALUE: bare flag on True, flag with value on a string.
    - KEY_VALUE: one "flag key=value" occurrence per pair.
    - CUSTOM: caller-supplied builder from value to tokens.
    - EXECUTION: never rendered, forwarded to the execution collaborator.
    - OPERAND: positional slot.
    """
    LITERAL = "literal"
    FLAG = "flag"
    VALUE = "value"
    FLAG_OR_VALUE = "flag-or-value"
    KEY_VALUE = "key-value"
    CUSTOM = "custom"
    EXECUTION = "execution"
    OPERAND = "operand"


class ArgumentType(type):
    """
    Metaclass for declared items.

    Responsibilities
    - Set __typename__ from the CamelCase class name ("Operand" -> "operand").
    - Publish every name in __introspectable__ as a read-only property backed
      by the "_name" attribute.
    - Provide __repr__ and __rich_repr__ driven by __introspectable__.
    - Seal the class when created with sealed=True.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _reject(cls, message, /, code=FaultCode.INVALID_DEFINITION, **context):
    """
    Internal: raise a DefinitionError for an invalid declaration.
    """
    trigger(DefinitionError(
        message,
        title="invalid definition",
        code=code,
        hint=context.pop("hint", "fix the %s declaration" % cls.__typename__),
        docs=getdoc(code),
        **context
    ))


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate and normalize the declared names.

    Responsibilities
    - names: at least one; each a non-empty string that is a valid Python
      identifier after trimming; no duplicates. Normalized to a tuple that
      keeps declaration order (the first name is canonical).

    Raises
    - TypeError: when no name is given or a name is not a string.
    - ValueError: when a name is empty, not an identifier, or repeated.
    """
    names = []
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not name.isidentifier():
            raise ValueError(f"{cls.__typename__} name {name!r} must be a valid identifier")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)

    metadata["names"] = tuple(names)


def _sanitize_spelling(cls, metadata, /):
    """
    Internal: resolve the rendered spelling of an option.

    Responsibilities
    - as_: Unset, a non-empty string, or a non-empty tuple/list of non-empty
      strings. A sequence is accepted only for non-negatable flags.
    - Unset falls back to spell(canonical name).
    - Normalized into metadata["spelling"] as a tuple of tokens.

    Raises
    - TypeError: when as_ is neither a string nor a sequence of strings.
    - DefinitionError: for a sequence on a non-flag or negatable flag.
    """
    name = metadata["names"][0]
    spelling = metadata.pop("as_")
    if spelling is Unset:
        spelling = (spell(name),)
    elif isinstance(spelling, str):
        if not (spelling := spelling.strip()):
            raise ValueError(f"{cls.__typename__} 'as_' cannot be empty")
        spelling = (spelling,)
    elif isinstance(spelling, Iterable):
        spelling = tuple(spelling)
        if not spelling or not all(isinstance(token, str) and token for token in spelling):
            raise TypeError(f"{cls.__typename__} 'as_' must be a string or a sequence of non-empty strings")
        if metadata["kind"] is not Kind.FLAG:
            _reject(cls, f"option {name!r}: sequences for 'as_' are only supported for flag options", name=name)
        if metadata["negatable"]:
            _reject(cls, f"option {name!r}: sequences for 'as_' cannot be combined with negatable=True", name=name)
    else:
        raise TypeError(f"{cls.__typename__} 'as_' must be a string or a sequence of strings")
    metadata["spelling"] = spelling


def _sanitize_modifiers(cls, metadata, /):
    """
    Internal: check modifier combinations and callables.

    Rules
    - inline and as_operand cannot both be set.
    - separator requires as_operand (for options; operands take one freely).
    - separator and key_separator must be non-empty strings when given.
    - type is a type or a tuple of types; validator and builder are callables.
    - type and validator cannot be combined.
    - allowed_values is an iterable of unique values, normalized to a tuple.
    """
    name = metadata["names"][0]

    if metadata["inline"] and metadata["as_operand"]:
        _reject(cls, f"option {name!r}: inline and as_operand cannot both be true", name=name)

    if not isinstance(separator := metadata["separator"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'separator' must be a string")
    elif isinstance(separator, str) and not separator:
        raise ValueError(f"{cls.__typename__} 'separator' cannot be empty")
    elif separator and not metadata["as_operand"]:
        _reject(cls, f"option {name!r}: separator is only valid with as_operand=True", name=name)
    metadata["separator"] = coalesce(separator)

    if not isinstance(key_separator := metadata["key_separator"], str):
        raise TypeError(f"{cls.__typename__} 'key_separator' must be a string")
    elif not key_separator:
        raise ValueError(f"{cls.__typename__} 'key_separator' cannot be empty")

    if (type := metadata["type"]) is not None:
        if isinstance(type, tuple):
            if not type or not all(isinstance(entry, builtins.type) for entry in type):
                raise TypeError(f"{cls.__typename__} 'type' must be a type or a tuple of types")
        elif not isinstance(type, builtins.type):
            raise TypeError(f"{cls.__typename__} 'type' must be a type or a tuple of types")

    if (validator := metadata["validator"]) is not None and not callable(validator):
        raise TypeError(f"{cls.__typename__} 'validator' must be callable")

    if type is not None and validator is not None:
        _reject(cls, f"option {name!r}: type and validator cannot be combined", name=name)

    if (builder := metadata["builder"]) is not None and not callable(builder):
        raise TypeError(f"{cls.__typename__} 'builder' must be callable")

    if (allowed := metadata["allowed_values"]) is not None:
        if isinstance(allowed, str) or not isinstance(allowed, Iterable):
            raise TypeError(f"{cls.__typename__} 'allowed_values' must be an iterable of values")
        sanitized = []
        for value in allowed:
            if value in sanitized:
                raise ValueError(f"{cls.__typename__} 'allowed_values' cannot contain duplicates")
            sanitized.append(value)
        if not sanitized:
            raise ValueError(f"{cls.__typename__} 'allowed_values' cannot be empty")
        metadata["allowed_values"] = tuple(sanitized)



class Literal(metaclass=ArgumentType, sealed=True):
    """
    A fixed token rendered unconditionally at its declared position.

    A literal "--" opens a separator boundary: named options cannot be
    declared after it.
    """

    __introspectable__ = ("token",)

    kind = Kind.LITERAL
    names = ()

    def __new__(cls, token, /):
        if not isinstance(token, str):
            raise TypeError(f"{cls.__typename__} token must be a string")
        if not token:
            raise ValueError(f"{cls.__typename__} token cannot be empty")
        self = super().__new__(cls)
        self._token = token
        return self

    @property
    def boundary(self):
        return self._token == "--"


class Option(metaclass=ArgumentType, sealed=True):
    """
    A named argument declaration.

    Option is a lightweight, immutable record; the Builder methods in
    argbind.specification are the intended way to create one, since each
    kind accepts only a subset of the modifiers.

    Properties
    - name: canonical name (first declared name).
    - names: every name, canonical first.
    - spelling: rendered flag token(s), from as_ or spell(name).
    - negation: negated spelling ("--no-x"), meaningful for negatable kinds.
    - everything in __introspectable__ mirrors the sanitized metadata.
    """

    __introspectable__ = (
        "kind",
        "names",
        "spelling",
        "negatable",
        "inline",
        "repeatable",
        "allow_empty",
        "as_operand",
        "separator",
        "key_separator",
        "default",
        "allowed_values",
        "required",
        "allow_nil",
        "type",
        "validator",
        "builder",
    )

    def __new__(
            cls,
            kind,
            /,
            *names,
            as_=Unset,
            negatable=False,
            inline=False,
            repeatable=False,
            allow_empty=False,
            as_operand=False,
            separator=Unset,
            key_separator="=",
            default=Unset,
            allowed_values=None,
            required=False,
            allow_nil=True,
            type=None,
            validator=None,
            builder=None
    ):
        if not isinstance(kind, Kind) or kind in (Kind.LITERAL, Kind.OPERAND):
            raise TypeError(f"{cls.__typename__} kind must be an option kind")

        metadata = {
            "kind": kind,
            "names": names,
            "as_": as_,
            "negatable": bool(negatable),
            "inline": bool(inline),
            "repeatable": bool(repeatable),
            "allow_empty": bool(allow_empty),
            "as_operand": bool(as_operand),
            "separator": separator,
            "key_separator": key_separator,
            "default": default,
            "allowed_values": allowed_values,
            "required": bool(required),
            "allow_nil": bool(allow_nil),
            "type": type,
            "validator": validator,
            "builder": builder,
        }
        _sanitize_names(cls, metadata)
        _sanitize_spelling(cls, metadata)
        _sanitize_modifiers(cls, metadata)

        if kind is Kind.CUSTOM and metadata["builder"] is None:
            raise TypeError(f"custom {cls.__typename__} {metadata['names'][0]!r} requires a builder")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def name(self):
        return self._names[0]

    @property
    def negation(self):
        return "--no-" + self._spelling[0].lstrip("-")

    @property
    def boundary(self):
        return self._as_operand and self._separator == "--"

    @property
    def positional(self):
        """
        Whether the option renders after a '--' boundary without harm.
        """
        return self._kind is Kind.EXECUTION or self._as_operand

    def join(self, value, /):
        """
        Join the spelling and a value into one inline token.
        """
        spelling = self._spelling[0]
        if spelling.startswith("--"):
            return f"{spelling}={value}"
        return f"{spelling}{value}"


class Operand(metaclass=ArgumentType, sealed=True):
    """
    A positional slot declaration.

    Defaults
    - allow_nil defaults to True for optional slots and False for required
      ones: an explicit None can only skip a slot nobody requires.
    - default applies when the slot receives no value (or, when repeatable,
      an empty list).
    """

    __introspectable__ = (
        "name",
        "required",
        "repeatable",
        "default",
        "allow_nil",
        "separator",
    )

    kind = Kind.OPERAND

    def __new__(cls, name, /, *, required=False, repeatable=False, default=Unset, allow_nil=Unset, separator=Unset):
        metadata = {"names": (name,)}
        _sanitize_names(cls, metadata)

        if not isinstance(allow_nil, bool | Unset):
            raise TypeError(f"{cls.__typename__} 'allow_nil' must be a boolean")
        if not isinstance(separator, str | Unset):
            raise TypeError(f"{cls.__typename__} 'separator' must be a string")
        elif isinstance(separator, str) and not separator:
            raise ValueError(f"{cls.__typename__} 'separator' cannot be empty")

        self = super().__new__(cls)
        self._name = metadata["names"][0]
        self._required = bool(required)
        self._repeatable = bool(repeatable)
        self._default = default
        self._allow_nil = coalesce(allow_nil, not required)
        self._separator = coalesce(separator)
        return self

    @property
    def names(self):
        return (self._name,)

    @property
    def boundary(self):
        return self._separator == "--"


__all__ = (
    # Types
    "Kind",
    "Literal",
    "Option",
    "Operand",
)

# Keep the metaclass out of star-imports and documentation.
del ArgumentType
