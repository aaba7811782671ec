"""
argbind execution collaborator: run the wrapped tool and classify its outcome.

CommandLine builds "binary, global options, tokens", runs it through
subprocess with captured text output, logs the outcome and surfaces a
non-successful run as one of three faults:

- TimedOutError: the timeout expired; the process was killed.
- SignaledError: the process died from a signal.
- FailedError: the process exited with a non-zero status (only when
  raise_on_failure is set; Command checks its own allowed statuses).

Logging
- INFO: one record per run with the command and its exit status.
- DEBUG: the captured stdout and stderr.
"""
import logging
import os
import signal
import subprocess
from typing import NamedTuple

from .faults import FailedError, FaultCode, SignaledError, TimedOutError, getdoc, trigger

logger = logging.getLogger(__name__)


class CommandLineResult(NamedTuple):
    """
    The outcome of one run.

    - command: the full command line that was run.
    - status: the exit status; negative when the process died from a signal.
    - signal: the signal number that ended the process, or None.
    - timed_out: whether the run was killed because its timeout expired.
    """
    command: tuple
    status: int
    stdout: str
    stderr: str
    signal: int | None = None
    timed_out: bool = False

    @property
    def success(self):
        return self.status == 0 and self.signal is None and not self.timed_out

    def describe(self):
        """
        Summarize the command and how it ended, e.g. "['git', 'status'], status: exit 1".
        """
        if self.signal is not None:
            try:
                name = signal.Signals(self.signal).name
            except ValueError:
                name = "signal"
            return "%r, status: %s (signal %d)" % (list(self.command), name, self.signal)
        return "%r, status: exit %d" % (list(self.command), self.status)


def _text(output):
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output


class CommandLine:
    """
    Runs the wrapped tool with a fixed binary, environment and global options.

    Parameters
    - binary: the executable to run ("git").
    - env: environment overrides; a None value removes the variable.
    - global_options: tokens placed between the binary and the command tokens.
    - cwd: default working directory.
    """

    def __init__(self, binary="git", /, *, env=None, global_options=(), cwd=None):
        if not isinstance(binary, str) or not binary:
            raise TypeError("CommandLine binary must be a non-empty string")
        self.binary = binary
        self.env = dict(env or {})
        self.global_options = tuple(map(str, global_options))
        self.cwd = cwd

    def __repr__(self):
        return "command-line(binary=%r, global_options=%r)" % (self.binary, self.global_options)

    def _environ(self):
        environ = dict(os.environ)
        for name, value in self.env.items():
            if value is None:
                environ.pop(name, None)
            else:
                environ[name] = str(value)
        return environ

    def run(self, *tokens, timeout=None, chdir=None, input=None, raise_on_failure=True):
        """
        Run the command and return its CommandLineResult.

        A timeout of None or 0 disables the limit. chdir overrides the default
        working directory for this run only.

        Raises
        - TypeError: when a token is a list or tuple.
        - TimedOutError, SignaledError, FailedError (see module docstring).
        """
        if any(isinstance(token, list | tuple) for token in tokens):
            raise TypeError("command tokens cannot contain lists")
        command = (self.binary, *self.global_options, *map(str, tokens))

        try:
            completed = subprocess.run(
                command,
                input=input,
                capture_output=True,
                text=True,
                cwd=chdir or self.cwd,
                env=self._environ(),
                timeout=timeout or None,
            )
        except subprocess.TimeoutExpired as exception:
            result = CommandLineResult(
                command,
                -signal.SIGKILL,
                _text(exception.stdout),
                _text(exception.stderr),
                signal.SIGKILL,
                True
            )
        else:
            status = completed.returncode
            result = CommandLineResult(
                command,
                status,
                completed.stdout,
                completed.stderr,
                -status if status < 0 else None
            )

        logger.info("%s exited with status %s", list(command), result.status)
        logger.debug("stdout:\n%r\nstderr:\n%r", result.stdout, result.stderr)

        if result.timed_out:
            trigger(TimedOutError(
                result,
                title="timed out",
                code=FaultCode.PROCESS_TIMED_OUT,
                hint="raise the timeout or check why %r hangs" % self.binary,
                timeout=timeout,
                docs=getdoc(FaultCode.PROCESS_TIMED_OUT)
            ))
        if result.signal is not None:
            trigger(SignaledError(
                result,
                title="process signaled",
                code=FaultCode.PROCESS_SIGNALED,
                hint="the process was terminated from outside",
                docs=getdoc(FaultCode.PROCESS_SIGNALED)
            ))
        if raise_on_failure and result.status != 0:
            trigger(FailedError(
                result,
                title="process failed",
                code=FaultCode.PROCESS_FAILED,
                hint="read the stderr output above",
                docs=getdoc(FaultCode.PROCESS_FAILED)
            ))
        return result


__all__ = (
    "CommandLine",
    "CommandLineResult",
)
