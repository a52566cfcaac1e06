"""
Argosy matching engine and subcommand dispatcher.

parse(command, tokens) walks the raw tokens once with a forward-only cursor and
builds a ParsedResult tree, or raises the first ParseError it meets.

phases
- match (per command node, recursive)
  • classify each token against the node (argosy.tokens.classify);
  • flags: mark presence;
  • options: take the attached value, or the next token(s); a single-value
    option takes the next token verbatim, a multivalued one needs a non-switch
    first value and, when greedy, keeps taking values until a switch, the
    terminator, a subcommand name of the node, or the end of the stream;
  • terminator: every remaining token of this node binds to positionals;
  • bare words: a subcommand name dispatches (and ends this node's loop), then
    the optional `help` command, then positional slots in declaration order;
    once help or version was requested, surplus bare words are dropped.
- validate (once, deepest node first)
  • required options and positionals must be filled;
  • skipped entirely when any node of the dispatched chain asked for help/version.
- seal
  • results become read-only; collected warnings are surfaced.

policy knobs (inherited down the tree unless a node sets its own)
- abbreviate: accept unambiguous prefixes of long names.
- greedy: multivalued options consume every following value (True) or one
  value per occurrence (False).
"""
import difflib
from collections import deque
from typing import NamedTuple

from .faults import *
from .results import ParsedResult
from .tokens import *
from .utils import *


class Cursor:
    """
    forward-only cursor over an immutable token tuple.
    """

    tokens = mirror("tokens")
    index = mirror("index")

    def __init__(self, tokens):
        self._tokens = tuple(tokens)
        self._index = 0

    def __bool__(self):
        return self._index < len(self._tokens)

    def __len__(self):
        return len(self._tokens) - self._index

    def peek(self):
        """
        the next token without consuming it (None at the end of the stream).
        """
        return self._tokens[self._index] if self else None

    def advance(self):
        if not self:
            raise IndexError("cursor is exhausted")
        self._index += 1
        return self._tokens[self._index - 1]


class _Context(NamedTuple):
    path: tuple
    abbreviate: bool
    greedy: bool
    length: int
    faults: list
    helped: bool

    def descend(self, command):
        return self._replace(
            path=self.path + (command.name,),
            abbreviate=coalesce(command.abbreviate, self.abbreviate),
            greedy=coalesce(command.greedy, self.greedy),
        )


def _route(path):
    return " ".join(path) or "<command>"


def _deprecate(argument, token, index, context):
    if argument.deprecated:
        kind = "option" if hasattr(argument, "__option__") else "flag"
        context.faults.append(DeprecatedArgumentWarning(
            "%s '--%s' at %s position is deprecated" % (kind, argument.name, ordinal(index + 1)),
            token=token,
            index=index,
            path=context.path,
            hint="run '%s --help' to see current usage and alternatives" % _route(context.path),
        ))


def _take(command, cursor, result, option, token, index, value, context):
    """
    consume the value(s) of one option occurrence and record them.
    """
    if value is not None:
        # attached values never chain into the following tokens
        values = [value]
    elif cursor and not (option.multivalued and is_switch(cursor.peek())):
        # a single value is taken verbatim, even when it looks like a switch
        values = [cursor.advance()]
        if option.multivalued and coalesce(option.greedy, context.greedy):
            while cursor and not is_switch(cursor.peek()) and cursor.peek() not in command.commands:
                values.append(cursor.advance())
    else:
        raise OptionMissingValueError(
            "missing value for option '--%s' at %s position" % (option.name, ordinal(index + 1)),
            token=token,
            index=index,
            path=context.path,
            hint="pass a value after it (for example: --%s <value>) or inline (--%s=<value>)" % (
                option.name, option.name
            ),
        )

    if result._push(option, values):
        context.faults.append(RepeatedOptionWarning(
            "option '--%s' at %s position was already provided; the last value wins" % (
                option.name, ordinal(index + 1)
            ),
            token=token,
            index=index,
            path=context.path,
            hint="keep a single '--%s' or declare it with nargs='+' to collect several values" % option.name,
        ))


def _bind(command, result, slots, token, index, context):
    """
    bind a bare word to the next positional slot; variadic slots keep absorbing.

    once help or version was requested on the chain, surplus words are dropped.
    """
    if not slots and (result.helped or context.helped):
        return
    if not slots:
        suggestions = difflib.get_close_matches(token, command.commands.keys(), 5)
        try:
            hint = "did you mean the %r subcommand? you can also run '%s --help'" % (
                suggestions[0], _route(context.path)
            )
        except IndexError:
            hint = "remove this extra value or run '%s --help' to see the expected usage" % _route(context.path)
        raise UnexpectedArgumentError(
            "unexpected argument %r at %s position" % (token, ordinal(index + 1)),
            token=token,
            index=index,
            path=context.path,
            suggestions=suggestions,
            hint=hint,
        )

    slot = slots[0]
    if not slot.variadic:
        slots.popleft()
    result._bind(slot, token)


def _dispatch(command, cursor, result, name, context):
    """
    recurse into the child schema at the cursor's current position.

    child errors propagate unchanged and name the deepest path.
    """
    child = command.commands[name]
    context = context.descend(child)._replace(helped=context.helped or result.helped)
    result._attach(child.name, _match(child, cursor, context))
    return result


def _route_help(command, cursor, result, token, index, context):
    """
    `help <name> [<name> ...] [switches]`: resolve the route and mark help on
    its last node.

    the route ends at the first switch; the rest of the stream is matched
    against the last named command, which already counts as helped.
    """
    if not cursor or is_switch(cursor.peek()):
        raise MissingHelpArgumentError(
            "the help command at %s position needs a command name" % ordinal(index + 1),
            token=token,
            index=index,
            path=context.path,
            hint="name the command to describe (for example: %s help <command>)" % _route(context.path),
        )

    route, target, path = [], command, context.path
    while cursor and not is_switch(cursor.peek()):
        index = cursor.index
        name = cursor.advance()
        try:
            target = target.commands[name]
        except KeyError:
            suggestions = difflib.get_close_matches(name, target.commands.keys(), 5)
            try:
                hint = "did you mean %r? run '%s --help' to see available commands" % (
                    suggestions[0], _route(path)
                )
            except IndexError:
                hint = "run '%s --help' to see available commands" % _route(path)
            raise UnknownCommandError(
                "unknown command %r at %s position" % (name, ordinal(index + 1)),
                token=name,
                index=index,
                path=path,
                suggestions=suggestions,
                hint=hint,
            ) from None
        route.append(target)
        path += (target.name,)

    node = result
    for child in route[:-1]:
        context = context.descend(child)
        node._attach(child.name, leaf := ParsedResult(child, context.path))
        node = leaf

    context = context.descend(target)._replace(helped=True)
    leaf = _match(target, cursor, context)
    leaf._mark(target.flags["help"])
    node._attach(target.name, leaf)
    return result


def _match(command, cursor, context):
    """
    parse one command node until the stream ends or a subcommand is dispatched.
    """
    result = ParsedResult(command, context.path)
    slots = deque(command.positionals)
    start = cursor.index
    terminated = False

    while cursor:
        index = cursor.index
        token = cursor.advance()

        if terminated:
            _bind(command, result, slots, token, index, context)
            continue

        match classify(command, token, index=index, path=context.path, abbreviate=context.abbreviate):
            case Terminator():
                terminated = True
            case LongSwitch(argument=argument, value=value):
                _deprecate(argument, token, index, context)
                if hasattr(argument, "__flag__"):
                    result._mark(argument)
                else:
                    _take(command, cursor, result, argument, token, index, value, context)
            case ShortCluster(flags=flags, option=option, value=value):
                for flag in flags:
                    _deprecate(flag, token, index, context)
                    result._mark(flag)
                if option is not None:
                    _deprecate(option, token, index, context)
                    _take(command, cursor, result, option, token, index, value, context)
            case BareWord():
                # subcommand names win over positional binding
                if token in command.commands:
                    return _dispatch(command, cursor, result, token, context)
                if command.helpcmd and token == "help" and index == start:
                    return _route_help(command, cursor, result, token, index, context)
                _bind(command, result, slots, token, index, context)

    return result


def _validate(result, context):
    """
    check required options/positionals, deepest node first.
    """
    chain = result.chain
    if any(node.helped for node in chain):
        return

    for node in reversed(chain):
        route = _route(node.path)
        for option in node.schema.options.values():
            if option.required and not node.options[option.name]:
                raise RequiredOptionMissingError(
                    "required option '--%s' is missing" % option.name,
                    token=None,
                    index=context.length,
                    path=node.path,
                    argument=option,
                    hint="add '--%s <value>'; run '%s --help' to see the expected usage" % (option.name, route),
                )
        for slot in node.schema.positionals:
            if slot.required and not node._slots[slot.name]:
                raise MissingPositionalError(
                    "missing positional %r" % slot.name,
                    token=None,
                    index=context.length,
                    path=node.path,
                    argument=slot,
                    hint="add the missing values; run '%s --help' to see the expected order" % route,
                )


def _parse(command, tokens, *, abbreviate=False, greedy=True):
    """
    parse without surfacing warnings; return (result, warnings).
    """
    if not hasattr(command, "__command__"):
        raise TypeError("parse() first argument must be a command")
    if isinstance(tokens, str):
        raise TypeError("parse() second argument must be a sequence of strings, not a string")
    tokens = tuple(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() second argument must contain only strings")

    command._seal()
    context = _Context(
        path=(),
        abbreviate=bool(coalesce(command.abbreviate, abbreviate)),
        greedy=bool(coalesce(command.greedy, greedy)),
        length=len(tokens),
        faults=[],
        helped=False,
    )
    result = _match(command, Cursor(tokens), context)
    _validate(result, context)
    return result._seal(), tuple(context.faults)


def parse(command, tokens, *, abbreviate=False, greedy=True):
    """
    parse a token sequence (program name excluded) against a command schema.

    parameters
    - command: the root Command.
    - tokens: sequence of strings.
    - abbreviate: default for accepting unambiguous long-name prefixes.
    - greedy: default consumption policy of multivalued options.

    returns
    - the root ParsedResult (sealed); subcommand results hang off `subcommand`.

    raises
    - ParseError subclasses (first error only); warnings are emitted through the
      warnings module.
    """
    result, faults = _parse(command, tokens, abbreviate=abbreviate, greedy=greedy)
    for fault in faults:
        trigger(fault)
    return result


__all__ = (
    "Cursor",
    "parse",
)
