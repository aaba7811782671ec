"""
argbind utilities (internal helpers shared by the engine layers)

Scope
- Small building blocks used by the declaration, binding and command layers.
- Importable, but designed first to support argbind itself.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "not supplied", kept apart from None because
    None is a meaningful value for a bound argument (explicit nil).
  • Falsy, printable as "Unset", non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default; None, False, "" and [] pass through.

- rename(callable, name) / @rename("name")
  • Give generated callables a stable __name__/__qualname__.

- mirror("attr")
  • Read-only property over a private "_attr" field that hands out frozen
    views (tuple / MappingProxyType / frozenset) of container values.

- spell(name)
  • Default command-line spelling of a declared name ("f" -> "-f",
    "dry_run" -> "--dry-run").

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> spell("dry_run")
    '--dry-run'
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not supplied.

    The binder must tell "the caller passed None" from "the caller passed
    nothing": the first is an explicit nil (rejected by some slots), the
    second falls back to a default. A single instance, Unset, carries the
    second meaning.

    Characteristics
    - Boolean-false, distinct from None and 0.
    - repr(Unset) -> "Unset".
    - Sealed and a per-process singleton.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions (e.g. str | Unset inside isinstance()).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Only Unset is replaced; every other value, falsy ones included, is
    returned unchanged.

    Examples
    - coalesce("HEAD", "main") -> "HEAD"
    - coalesce(Unset, "main")  -> "main"
    - coalesce(None, "main")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable, or return a decorator doing so.

    Forms
    - rename(callable, name) -> callable (updated in place)
    - rename(name) -> decorator

    Raises
    - TypeError: wrong arity, non-callable target, non-string name, or a
      callable whose names cannot be updated.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be an updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    """
    Recursively build a read-only view of a container value.

    - str / bytes: returned as-is.
    - Sequence: tuple of frozen items.
    - Mapping: MappingProxyType over a dict of frozen values (keys unchanged).
    - Set: frozenset of frozen items.
    - anything else: returned as-is.
    """
    if isinstance(object, (str, bytes)):
        return object
    if isinstance(object, Sequence):
        return tuple(map(_freeze, object))
    if isinstance(object, Mapping):
        return MappingProxyType(dict(zip(object.keys(), map(_freeze, object.values()))))
    if isinstance(object, Set):
        return frozenset(map(_freeze, object))
    return object


def mirror(name, /):
    """
    Define a read-only property over the private attribute "_{name}".

    Container values are handed out as frozen views so a Specification or a
    Bound cannot be mutated through its public surface.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def spell(name, /):
    """
    Return the default command-line spelling of a declared name.

    One-character names use the short form, everything else the long form
    with underscores turned into dashes.
    """
    if len(name) == 1:
        return "-" + name
    return "--" + name.replace("_", "-")


Unset = UnsetType()
"""
The "not supplied" sentinel.

Use it as a parameter default where None is a meaningful value, and
materialize it with coalesce(value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "spell",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
