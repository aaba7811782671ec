"""
argbind sample commands for git.

Each class only declares its argument surface; the call path lives in
argbind.commands.Command. BranchList and BranchCopy also parse the output of
"git branch --list" into BranchInfo records.
"""
import re
from typing import NamedTuple

from .commands import Command
from .specification import define

_REFNAME = re.compile(r"\A(?:(?:refs/)?remotes/(?P<remote>[^/]+)/)?(?P<branch>.+)\Z")


class BranchInfo(NamedTuple):
    """
    One branch as reported by "git branch --list".

    - refname: "main" for local branches, "remotes/origin/main" for remotes.
    - target_oid: the commit the branch points to (None for upstreams).
    - current: checked out in this worktree.
    - worktree: checked out in another worktree.
    - symref: the target of a symbolic ref, or None.
    - upstream: BranchInfo of the tracked branch, or None.
    """
    refname: str
    target_oid: str | None = None
    current: bool = False
    worktree: bool = False
    symref: str | None = None
    upstream: "BranchInfo | None" = None

    @property
    def remote_name(self):
        return _REFNAME.match(self.refname)["remote"]

    @property
    def short_name(self):
        return _REFNAME.match(self.refname)["branch"]

    @property
    def remote(self):
        return self.remote_name is not None

    def __str__(self):
        return self.refname


def _presence(value):
    return value or None


def _normalize(refname):
    return re.sub(r"^refs/", "", re.sub(r"^refs/heads/", "", refname))


def parse_branches(output, /):
    """
    Parse "git branch --list --format=..." output (BranchList.FORMAT).

    Detached HEAD and "(not a branch)" entries are skipped.
    """
    branches = []
    for line in output.splitlines():
        fields = line.split(BranchList.DELIMITER, 5)
        if re.match(r"^\((?:HEAD detached|not a branch)", fields[0]):
            continue
        fields += [""] * (6 - len(fields))
        refname, objectname, head, worktreepath, symref, upstream = fields
        current = head == "*"
        branches.append(BranchInfo(
            _normalize(refname),
            _presence(objectname),
            current,
            bool(worktreepath) and not current,
            _presence(symref),
            BranchInfo(_normalize(upstream)) if upstream else None
        ))
    return branches


class Add(Command):
    arguments = define(lambda arguments: arguments
        .literal("add")
        .flag_option("all")
        .flag_option("force")
        .execution_option("timeout")
        .operand("paths", repeatable=True, default=[], separator="--"))


class Mv(Command):
    arguments = define(lambda arguments: arguments
        .literal("mv")
        .literal("--verbose")
        .flag_option("force", "f")
        .flag_option("dry_run", "n")
        .flag_option("k")
        .operand("source", repeatable=True, required=True, separator="--")
        .operand("destination", required=True))


class Fsck(Command):
    """
    git fsck; exit statuses 1 to 7 report problems found, not a failed run.
    """
    arguments = define(lambda arguments: arguments
        .literal("fsck")
        .literal("--no-progress")
        .flag_option("tags")
        .flag_option("root")
        .flag_option("unreachable")
        .flag_option("cache")
        .flag_option("no_reflogs")
        .flag_option("full", negatable=True)
        .flag_option("strict")
        .flag_option("lost_found")
        .flag_option("dangling", negatable=True)
        .flag_option("connectivity_only")
        .flag_option("name_objects", negatable=True)
        .flag_option("references", negatable=True)
        .execution_option("timeout")
        .operand("object", repeatable=True))

    allowed_exit_status = range(0, 8)


class BranchList(Command):
    """
    git branch --list, parsed into BranchInfo records.
    """
    FORMAT = "%(refname)|%(objectname)|%(HEAD)|%(worktreepath)|%(symref)|%(upstream)"
    DELIMITER = "|"

    arguments = define(lambda arguments: arguments
        .literal("branch")
        .literal("--list")
        .value_option("format", inline=True)
        .flag_option("all", as_="-a")
        .flag_option("remotes", as_="-r")
        .value_option("sort", inline=True, repeatable=True)
        .value_option("contains")
        .value_option("no_contains")
        .value_option("merged")
        .value_option("no_merged")
        .value_option("points_at")
        .operand("patterns", repeatable=True))

    def __call__(self, /, *patterns, **named):
        return parse_branches(super().__call__(*patterns, format=self.FORMAT, **named).stdout)


class BranchCopy(Command):
    """
    git branch --copy; returns the BranchInfo of the new branch.
    """
    arguments = define(lambda arguments: arguments
        .literal("branch")
        .literal("--copy")
        .flag_option("force", "f")
        .operand("old_branch")
        .operand("new_branch", required=True))

    def __call__(self, /, *positionals, **named):
        bound = self.bind(*positionals, **named)
        self.context.run(*bound)
        return next(iter(BranchList(self.context)(bound.new_branch)), None)


class BranchDelete(Command):
    """
    git branch --delete; exit status 1 means some branches were not deleted.
    """
    arguments = define(lambda arguments: arguments
        .literal("branch")
        .literal("--delete")
        .flag_option("force", "f")
        .flag_option("remotes", "r")
        .operand("branch_names", repeatable=True, required=True))

    allowed_exit_status = range(0, 2)


class StashPush(Command):
    arguments = define(lambda arguments: arguments
        .literal("stash")
        .literal("push")
        .flag_option("patch", "p")
        .flag_option("staged", "S")
        .flag_option("keep_index", "k", negatable=True)
        .flag_option("include_untracked", "u")
        .flag_option("all", "a")
        .value_option("message", "m", inline=True)
        .value_option("pathspec_from_file", inline=True)
        .flag_option("pathspec_file_nul")
        .operand("pathspecs", repeatable=True, separator="--"))


__all__ = (
    "BranchInfo",
    "parse_branches",
    "Add",
    "Mv",
    "Fsck",
    "BranchList",
    "BranchCopy",
    "BranchDelete",
    "StashPush",
)
