"""
Argosy token classifier.

classify() decides the syntactic category of one raw token against the schema of
the command node currently being parsed:

- Terminator     exactly "--"; everything after it is a plain value.
- LongSwitch     "--name" or "--name=value" (split at the first "="). The name is
                 resolved exactly, by alias, or by unambiguous prefix when
                 abbreviation is enabled.
- ShortCluster   "-abc": one or more shortcuts. Flags accumulate; the first option
                 shortcut ends decoding and the rest of the cluster (after an
                 optional "=") is that option's attached value.
- BareWord       anything else, including "-" alone and negative numbers ("-5").
                 The engine decides whether it is a subcommand, an option value or
                 a positional.

Classification resolves names and raises the matching ParseError on the spot, so
the engine only ever sees known arguments.

is_switch() is the lookahead predicate used while consuming option values; it
never raises and never consumes.
"""
import difflib
import re
from typing import NamedTuple

from .faults import *
from .utils import ordinal


class LongSwitch(NamedTuple):
    input: str
    index: int
    argument: object
    value: str | None


class ShortCluster(NamedTuple):
    input: str
    index: int
    flags: tuple
    option: object
    value: str | None


class Terminator(NamedTuple):
    input: str
    index: int


class BareWord(NamedTuple):
    input: str
    index: int


def is_switch(token):
    """
    whether a token would be decoded as a switch or as the terminator.

    "-" alone and negative numbers are values; "--" is the terminator.
    """
    return token.startswith("-") and token != "-" and not re.match(r"-\d", token)


def _route(path):
    return " ".join(path)


def _resolve_long(command, name, token, *, index, path, abbreviate):
    """
    resolve a long name (without dashes) to its Flag/Option.

    exact names and aliases win; with abbreviation enabled a prefix is accepted
    when every long name it matches belongs to the same argument.
    """
    longs = command.longs
    try:
        return longs[name]
    except KeyError:
        pass

    if abbreviate and name:
        candidates = {argument for long, argument in longs.items() if long.startswith(name)}
        if len(candidates) == 1:
            return candidates.pop()
        if candidates:
            matches = sorted("--" + long for long, argument in longs.items() if long.startswith(name))
            raise AmbiguousLongOptionError(
                "ambiguous option or flag '--%s' at %s position" % (name, ordinal(index + 1)),
                token=token,
                index=index,
                path=path,
                name=name,
                suggestions=matches,
                hint="it may be any of %s; spell more of the name" % ", ".join(matches),
            )

    suggestions = difflib.get_close_matches("--" + name, ["--" + long for long in longs], 5)
    try:
        hint = "did you mean %r? you can also run '%s --help' to see all options" % (
            suggestions[0], _route(path) or "<command>"
        )
    except IndexError:
        hint = "try '%s --help' to see all available options" % (_route(path) or "<command>")
    raise UnknownLongOptionError(
        "unknown option or flag '--%s' at %s position" % (name, ordinal(index + 1)),
        token=token,
        index=index,
        path=path,
        name=name,
        suggestions=suggestions,
        hint=hint,
    )


def _classify_long(command, token, *, index, path, abbreviate):
    name, separator, value = token[2:].partition("=")
    argument = _resolve_long(command, name, token, index=index, path=path, abbreviate=abbreviate)

    if not separator:
        return LongSwitch(token, index, argument, None)

    if hasattr(argument, "__flag__"):
        raise FlagAssignmentError(
            "flag '--%s' at %s position cannot have an inline value" % (argument.name, ordinal(index + 1)),
            token=token,
            index=index,
            path=path,
            hint="remove everything from '=' (for example: --%s)" % argument.name,
        )
    if not value:
        raise OptionMissingValueError(
            "empty inline value for option '--%s' at %s position" % (argument.name, ordinal(index + 1)),
            token=token,
            index=index,
            path=path,
            hint="add a value after '=' (for example: --%s=<value>)" % argument.name,
        )
    return LongSwitch(token, index, argument, value)


def _classify_short(command, token, *, index, path):
    flags = []
    for position, char in enumerate(token[1:], 1):
        if char == "=" and flags:
            raise FlagAssignmentError(
                "flag '-%s' in %r at %s position cannot have an inline value" % (
                    token[position - 1], token, ordinal(index + 1)
                ),
                token=token,
                index=index,
                path=path,
                hint="remove everything from '=' (for example: %s)" % token.partition("=")[0],
            )
        try:
            argument = command.shortcuts[char]
        except KeyError:
            raise UnknownShortOptionError(
                "unknown shortcut '-%s' (character %d of %r) at %s position" % (
                    char, position, token, ordinal(index + 1)
                ),
                token=token,
                index=index,
                path=path,
                char=char,
                position=position,
                hint="try '%s --help' to see all available shortcuts" % (_route(path) or "<command>"),
            ) from None

        if hasattr(argument, "__flag__"):
            flags.append(argument)
            continue

        # first option ends decoding: the remainder is its attached value
        remainder = token[position + 1:]
        if not remainder:
            return ShortCluster(token, index, tuple(flags), argument, None)
        if remainder.startswith("="):
            if not (remainder := remainder[1:]):
                raise OptionMissingValueError(
                    "empty inline value for option '-%s' at %s position" % (char, ordinal(index + 1)),
                    token=token,
                    index=index,
                    path=path,
                    hint="add a value after '=' (for example: -%s=<value>)" % char,
                )
        return ShortCluster(token, index, tuple(flags), argument, remainder)

    return ShortCluster(token, index, tuple(flags), None, None)


def classify(command, token, *, index, path=(), abbreviate=False):
    """
    classify one raw token in the scope of a command node.

    parameters
    - command: Command whose flags/options/shortcuts are in scope.
    - token: the raw token.
    - index: 0-based index of the token in the raw stream (used in faults).
    - path: subcommand names leading to `command` (used in faults).
    - abbreviate: accept unambiguous prefixes of long names.

    raises
    - UnknownLongOptionError / AmbiguousLongOptionError, UnknownShortOptionError,
      FlagAssignmentError, OptionMissingValueError (empty attached value).
    """
    path = tuple(path)
    if token == "--":
        return Terminator(token, index)
    if token.startswith("--"):
        return _classify_long(command, token, index=index, path=path, abbreviate=abbreviate)
    if is_switch(token):
        return _classify_short(command, token, index=index, path=path)
    return BareWord(token, index)


__all__ = (
    "LongSwitch",
    "ShortCluster",
    "Terminator",
    "BareWord",
    "classify",
    "is_switch",
)
