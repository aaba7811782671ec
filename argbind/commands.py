"""
argbind command layer: one class per wrapped subcommand.

What this module provides
- Command: base class of every command. A subclass declares its argument
  surface once as a class attribute and inherits the call path:

      class Add(Command):
          arguments = define(lambda arguments: arguments
              .literal("add")
              .flag_option("all")
              .flag_option("force")
              .operand("paths", repeatable=True, default=[], separator="--"))

      Add(CommandLine())("README.md", force=True)
      # runs: git add --force -- README.md

- CommandType: metaclass that checks the declaration when the class is
  created, so a typo fails at import time rather than at first use.

Call path
- bind the call against cls.arguments (argbind.binder);
- run context.run(*bound, **bound.execution_options, raise_on_failure=False);
- raise FailedError unless the exit status is in cls.allowed_exit_status;
- return the CommandLineResult.
"""
import functools
import operator
import re

from .faults import FailedError, FaultCode, getdoc, trigger
from .specification import Specification
from .utils import *


def _process_arguments(cls, namespace):
    """
    Validate the class-level argument declaration.

    - arguments: a Specification, or None (abstract command).
    """
    if namespace.get("arguments") is not None and not isinstance(namespace["arguments"], Specification):
        raise TypeError(f"{cls.__typename__} 'arguments' must be a specification")


def _process_exit_status(cls, namespace):
    """
    Validate the accepted exit statuses.

    - allowed_exit_status: a non-empty range of integers; range(0, 1) when
      not declared.
    """
    if "allowed_exit_status" not in namespace:
        return
    if not isinstance(allowed := namespace["allowed_exit_status"], range):
        raise TypeError(f"{cls.__typename__} 'allowed_exit_status' must be a range")
    if not allowed:
        raise ValueError(f"{cls.__typename__} 'allowed_exit_status' range cannot be empty")


class CommandType(type):
    """
    Metaclass for commands.

    Responsibilities
    - Set __typename__ from the CamelCase class name ("BranchDelete" ->
      "branch-delete").
    - Validate the arguments and allowed_exit_status declarations.
    - Provide __repr__ and __rich_repr__ driven by __introspectable__.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            },
        )

        _process_arguments(self, namespace)
        _process_exit_status(self, namespace)

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

        return self


class Command(metaclass=CommandType):
    """
    Base class of the wrapped commands.

    Class attributes
    - arguments: the command's Specification.
    - allowed_exit_status: range of exit statuses treated as success.

    Instances keep an execution context: anything with a
    run(*tokens, **options) method returning a CommandLineResult
    (argbind.runner.CommandLine in production, a fake in tests).
    """

    __introspectable__ = ("context",)

    arguments = None
    allowed_exit_status = range(0, 1)

    def __init__(self, context, /):
        if not callable(getattr(context, "run", None)):
            raise TypeError(f"{type(self).__typename__} context must provide a run() method")
        self._context = context

    @property
    def context(self):
        return self._context

    def bind(self, /, *positionals, **named):
        """
        Bind a call without running it.
        """
        if type(self).arguments is None:
            raise TypeError(f"arguments not defined for {type(self).__name__}")
        return type(self).arguments.bind(*positionals, **named)

    def __call__(self, /, *positionals, **named):
        bound = self.bind(*positionals, **named)
        result = self._context.run(*bound, **bound.execution_options, raise_on_failure=False)
        if result.status not in type(self).allowed_exit_status:
            trigger(FailedError(
                result,
                title="process failed",
                code=FaultCode.PROCESS_FAILED,
                hint="exit status %d is outside %r" % (result.status, type(self).allowed_exit_status),
                docs=getdoc(FaultCode.PROCESS_FAILED)
            ))
        return result


__all__ = (
    "Command",
)

# Keep the metaclass out of star-imports and documentation.
del CommandType
