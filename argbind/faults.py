"""
argbind faults (definition, binding and process errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for every fault the library raises,
  grouped by domain so logs and searches stay predictable.
- BindingException: base of every fault raised while declaring or binding
  arguments. It carries a message plus an options mapping (title, code,
  hint, docs and fault context) and knows how to render itself with rich.
- CommandLineError: base of the faults raised by the execution collaborator
  when the wrapped tool fails, dies from a signal or times out.
- BindingExit: exception group for several violations found in one call.
- trigger(): single entry point that raises a fault, or prints it when the
  host runs in shell mode.
- getdoc(): optional description lookup for a code from the host application.

Tone
- Lowercased, one-sentence messages that name the offending argument(s).
- A single actionable hint per fault.

Integration
- The engine builds a fault with its context and calls trigger(fault).
- Hosts may set __codes__, __docs__, __styles__ and __prog__ on __main__ to
  relabel codes, attach docs, restyle output and name the program.
"""
import copy
import re
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping (by high-level domain)
    - definition (2110x)
      • INVALID_DEFINITION, DUPLICATE_NAME, UNKNOWN_REFERENCE,
        AMBIGUOUS_ARITY, OPTION_AFTER_SEPARATOR
    - operands (2121x)
      • MISSING_OPERAND, UNEXPECTED_OPERAND
    - names (2122x)
      • UNKNOWN_ARGUMENT, CONFLICTING_ALIASES, MISSING_OPTION, EXPLICIT_NIL
    - constraints (2123x)
      • CONFLICTING_ARGUMENTS, FORBIDDEN_VALUES, MISSING_REQUIREMENT,
        MISSING_SELECTION, AMBIGUOUS_SELECTION, INVALID_CHOICE,
        TYPE_MISMATCH, INVALID_VALUE, OPTION_LIKE_OPERAND
    - rendering (2124x)
      • MALFORMED_VALUE
    - process (2131x)
      • PROCESS_FAILED, PROCESS_SIGNALED, PROCESS_TIMED_OUT

    spacing leaves room for new codes without reshuffling existing ones.
    """
    # --- definition errors (2110x) ---
    INVALID_DEFINITION          = 21101
    DUPLICATE_NAME              = 21102
    UNKNOWN_REFERENCE           = 21103
    AMBIGUOUS_ARITY             = 21104
    OPTION_AFTER_SEPARATOR      = 21105

    # --- operand errors (2121x) ---
    MISSING_OPERAND             = 21211
    UNEXPECTED_OPERAND          = 21212

    # --- name errors (2122x) ---
    UNKNOWN_ARGUMENT            = 21221
    CONFLICTING_ALIASES         = 21222
    MISSING_OPTION              = 21223
    EXPLICIT_NIL                = 21224

    # --- constraint violations (2123x) ---
    CONFLICTING_ARGUMENTS       = 21231
    FORBIDDEN_VALUES            = 21232
    MISSING_REQUIREMENT         = 21233
    MISSING_SELECTION           = 21234
    AMBIGUOUS_SELECTION         = 21235
    INVALID_CHOICE              = 21236
    TYPE_MISMATCH               = 21237
    INVALID_VALUE               = 21238
    OPTION_LIKE_OPERAND         = 21239

    # --- rendering errors (2124x) ---
    MALFORMED_VALUE             = 21241

    # --- process errors (2131x) ---
    PROCESS_FAILED              = 21311
    PROCESS_SIGNALED            = 21312
    PROCESS_TIMED_OUT           = 21313

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        relabel numeric ids. without one, the numeric value is returned.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    Build the rich renderable shared by every fault type.

    Layout
    - header: "[ prog - code | Title ]"
    - body: the message, then " → hint" when a hint is set.
    - fancy=True wraps the body in a Panel titled by the header.
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if colorful else "")

    code = fault.options.get("code")
    title = fault.options.get("title") or re.sub(r"(?<!^)(?=[A-Z])", " ", type(fault).__name__).lower()

    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", "argbind"), "prog-name"),
        " - ",
        text(code.normalize() if isinstance(code, FaultCode) else code, "code"),
        " | ",
        text(title.title(), "title"),
        " ]"
    )
    message = text(str(fault), "message")
    parts = [message]
    if hint := fault.options.get("hint"):
        parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
    if docs := fault.options.get("docs"):
        parts.append(text(docs, "docs"))

    if fault.options.get("fancy", False):
        return Panel(Group(*parts), title=header, title_align="left")
    return Group(header, *parts)


class BindingException(Exception):
    """
    Base of every fault raised while declaring or binding arguments.

    Construction
    - BindingException(message, /, **options): the options mapping carries
      the rendering context (title, code, hint, docs) plus fault-specific
      context (names, values, operand, ...). It is exposed read-only.

    Behavior
    - str(fault) is the message.
    - __rich__ renders a header, the message and the hint.
    - __trigger__ raises the fault, or prints it in shell mode.
    - copy.replace(fault, **options) merges new options into a fresh copy.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return coalesce(self.message, "")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
            "docs": "underline #00E5FF dim",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DefinitionError(BindingException): ...

class ArityError(BindingException): ...
class MissingOperandError(ArityError): ...
class UnexpectedOperandError(ArityError): ...

class UnknownArgumentError(BindingException): ...
class ExplicitNilError(BindingException): ...
class ValueShapeError(BindingException): ...

class ConstraintViolationError(BindingException): ...
class ConflictingAliasError(ConstraintViolationError): ...
class MissingOptionError(ConstraintViolationError): ...
class ConflictingArgumentsError(ConstraintViolationError): ...
class ForbiddenValuesError(ConstraintViolationError): ...
class MissingRequirementError(ConstraintViolationError): ...
class MissingSelectionError(ConstraintViolationError): ...
class AmbiguousSelectionError(ConstraintViolationError): ...
class InvalidChoiceError(ConstraintViolationError): ...
class TypeMismatchError(ConstraintViolationError): ...
class InvalidValueError(ConstraintViolationError): ...
class OptionLikeOperandError(ConstraintViolationError): ...


class BindingExit(ExceptionGroup[BindingException]):
    """
    Several faults found while validating one call, surfaced together.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad arguments", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad arguments", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        colorful = self.options.get("colorful", True)
        header = Text.assemble(
            "[ ",
            Text(getattr(__import__("__main__"), "__prog__", "argbind"), "bold #E6E6F0" if colorful else ""),
            " - ",
            Text(self.message.title(), "bold #FF4DA6" if colorful else ""),
            " ]"
        )
        renders = [copy.replace(exception, **self.options) for exception in self.exceptions]
        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)


class CommandLineError(Exception):
    """
    Base of the faults raised when the wrapped tool does not succeed.

    The fault keeps the CommandLineResult it was raised for; its message
    quotes the command, its status and its stderr.
    """

    def __init__(self, result, /, **options):
        self.result = result
        self.options = MappingProxyType(options)

    def __str__(self):
        return "%s, stderr: %r" % (self.result.describe(), self.result.stderr)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FF4DA6",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.result, **{**self.options, **overrides})


class FailedError(CommandLineError): ...
class SignaledError(CommandLineError): ...


class TimedOutError(SignaledError):
    def __str__(self):
        return "%s, timed out after %ss" % (super().__str__(), self.options.get("timeout"))


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods.
    - options are merged into the fault via copy.replace() before triggering.
    - outside shell mode the fault is raised; in shell mode it is printed to
      stderr through rich.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ keyed by
    FaultCode. returns None when no entry exists.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "BindingException",
    "DefinitionError",
    "ArityError",
    "MissingOperandError",
    "UnexpectedOperandError",
    "UnknownArgumentError",
    "ExplicitNilError",
    "ValueShapeError",
    "ConstraintViolationError",
    "ConflictingAliasError",
    "MissingOptionError",
    "ConflictingArgumentsError",
    "ForbiddenValuesError",
    "MissingRequirementError",
    "MissingSelectionError",
    "AmbiguousSelectionError",
    "InvalidChoiceError",
    "TypeMismatchError",
    "InvalidValueError",
    "OptionLikeOperandError",
    "BindingExit",
    "CommandLineError",
    "FailedError",
    "SignaledError",
    "TimedOutError",
    "trigger",
    "getdoc",
)
