from rich.pretty import pprint

from argbind import *
from argbind.git import BranchCopy, StashPush

__prog__ = "argbind-demo"


@define
def log(arguments):
    (arguments
        .literal("log")
        .flag_option("oneline")
        .value_option("max_count", "n", inline=True, type=int)
        .flag_or_value_option("decorate", negatable=True, inline=True)
        .value_option("sort", inline=True, repeatable=True)
        .conflicts("oneline", "decorate")
        .operand("revision")
        .operand("paths", repeatable=True, separator="--"))


if __name__ == '__main__':
    pprint(log)
    pprint(log.bind("HEAD~3", "README.md", oneline=True, n=5, sort=["refname", "-date"]))
    pprint(BranchCopy.arguments.bind("old-name", "new-name", force=True).tokens)
    pprint(StashPush.arguments.bind(message="wip", keep_index=False).tokens)
    try:
        log.bind(oneline=True, decorate="short")
    except BindingException as fault:
        trigger(fault, shell=True, deferred=True, fancy=True)
