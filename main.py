from rich.pretty import pprint

from argosy import *


@command(
    Positional("name"),
    Positional("url"),
    Option("--fetch-depth", "--depth"),
    name="add",
    aliases=("a",),
)
def add(name, result):
    pprint(result)


remote = Command(
    Flag("--verbose", "-v"),
    add,
    name="remote",
    descr="manage the set of tracked repositories",
)

git = Command(
    Flag("--quiet", "-q"),
    Option("--config", "-c", nargs="+", greedy=False),
    remote,
    name="git",
    helptext="usage: git [-q] [-c <name>=<value>] <command> [<args>]",
    version="git (argosy demo) 0.0.0",
    abbreviate=True,
    helpcmd=True,
    shell=True,
    fancy=True,
)


if __name__ == '__main__':
    pprint(git)
    invoke(git)
