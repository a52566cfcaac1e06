"""
Argosy parsed results.

A ParsedResult is produced for every command node visited by a parse pass and
chained through `subcommand` for the nodes that were dispatched to:

    result = parse(git, ["--verbose", "remote", "add", "origin", "url"])
    result.flags                  # frozenset({'verbose'})
    result.command                # 'remote'
    result.leaf.positionals       # ('origin', 'url')

Lifecycle
- constructed empty by the engine when it enters a node;
- mutated only through the engine's private hooks (_mark/_push/_bind/_attach);
- sealed when the pass ends. Public accessors always return frozen views.

Queries accept canonical names, dashed names, aliases and shortcuts:
found("verbose") == found("--verbose") == found("-v").
"""
from types import MappingProxyType

from .utils import mirror


class ParsedResult:
    """
    Parsed view of one command node.

    Fields
    - flags: frozenset of canonical flag names observed.
    - options: mapping canonical option name → tuple of values; every declared
      option is present, absent ones map to ().
    - positionals: tuple of positional values in bind order.
    - subcommand: (name, ParsedResult) when a subcommand was dispatched, else None.
    - path: tuple of subcommand names leading to this node (root is ()).
    - schema: the Command node this result was parsed against.
    """

    path = mirror("path")
    schema = mirror("schema")
    positionals = mirror("positionals")
    subcommand = mirror("subcommand")

    def __init__(self, schema, path=()):
        self._schema = schema
        self._path = tuple(path)
        self._flags = {}
        self._options = {name: [] for name in schema.options}
        self._occurrences = dict.fromkeys(schema.options, 0)
        self._slots = {positional.name: [] for positional in schema.positionals}
        self._positionals = []
        self._subcommand = None
        self._sealed = False

    @property
    def flags(self):
        return frozenset(self._flags)

    @property
    def options(self):
        return MappingProxyType({name: tuple(values) for name, values in self._options.items()})

    @property
    def command(self):
        """
        Name of the dispatched subcommand, or None.
        """
        return self._subcommand[0] if self._subcommand else None

    @property
    def chain(self):
        """
        Results from this node down to the deepest dispatched one.
        """
        chain = [result := self]
        while result._subcommand:
            chain.append(result := result._subcommand[1])
        return tuple(chain)

    @property
    def leaf(self):
        return self.chain[-1]

    @property
    def helped(self):
        """
        True when help or version was requested on this node.
        """
        return "help" in self._flags or "version" in self._flags

    @property
    def sealed(self):
        return self._sealed

    def _lookup(self, name):
        if not isinstance(name, str):
            raise TypeError("result lookups require a string name")
        try:
            return self._schema.lookup(name)
        except KeyError:
            raise KeyError(f"{name!r} is not a registered flag, option or positional name") from None

    def count(self, name, /):
        """
        Number of occurrences of a flag or option (0 when absent), or the number
        of values bound to a positional slot.
        """
        argument = self._lookup(name)
        if hasattr(argument, "__flag__"):
            return self._flags.get(argument.name, 0)
        if hasattr(argument, "__option__"):
            return self._occurrences[argument.name]
        return len(self._slots[argument.name])

    def found(self, name, /):
        return self.count(name) > 0

    def values(self, name, /):
        """
        All values of an option or positional slot, in input order.
        """
        argument = self._lookup(name)
        if hasattr(argument, "__flag__"):
            raise KeyError(f"{name!r} is a flag and carries no values")
        if hasattr(argument, "__option__"):
            return tuple(self._options[argument.name])
        return tuple(self._slots[argument.name])

    def value(self, name, /):
        """
        Last value of an option or positional slot, or None when absent.
        """
        values = self.values(name)
        return values[-1] if values else None

    def _check(self):
        if self._sealed:
            raise RuntimeError("parsed result is sealed and cannot be modified")

    def _mark(self, flag):
        self._check()
        self._flags[flag.name] = self._flags.get(flag.name, 0) + 1

    def _push(self, option, values):
        """
        Record one occurrence of an option; return True if a previous value of a
        single-arity option was replaced.
        """
        self._check()
        self._occurrences[option.name] += 1
        if option.multivalued:
            self._options[option.name].extend(values)
            return False
        replaced = bool(self._options[option.name])
        self._options[option.name] = list(values)
        return replaced

    def _bind(self, positional, value):
        self._check()
        self._slots[positional.name].append(value)
        self._positionals.append(value)

    def _attach(self, name, result):
        self._check()
        self._subcommand = (name, result)

    def _seal(self):
        for result in self.chain:
            result._sealed = True
        return self

    def __eq__(self, other):
        if not isinstance(other, ParsedResult):
            return NotImplemented
        return (
            self.flags == other.flags and
            dict(self.options) == dict(other.options) and
            self.positionals == other.positionals and
            self.subcommand == other.subcommand
        )

    __hash__ = None

    def __rich_repr__(self):
        yield "path", self.path
        yield "flags", self.flags
        yield "options", dict(self.options)
        yield "positionals", self.positionals
        yield "subcommand", self.subcommand

    def __repr__(self):
        return f"parsed-result({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"


__all__ = (
    "ParsedResult",
)
