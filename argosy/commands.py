"""
Argosy command schemas and the invoke() runner.

A Command is one node of the schema tree: it owns flags, options, positional
slots and child commands, and every name it declares is unique inside it.

    >>> from argosy import Command, Flag, Option, Positional
    >>> remote = Command(
    ...     Positional("name"),
    ...     Positional("url"),
    ...     name="remote",
    ... )
    >>> git = Command(Flag("--verbose", "-v"), remote, name="git")
    >>> git.parse(["-v", "remote", "origin", "https://example.org"]).leaf.positionals
    ('origin', 'https://example.org')

Building
- members are Flag, Option, Positional or Command instances, in any order;
  positional slots keep their declaration order.
- `--help` and `--version` flags are injected when the node does not declare
  them; their shortcuts (`-h`/`-v`) are only granted when free.
- children can be mounted later with Command.command(child), until the node
  is sealed by its first parse.

Running
- Command.parse(tokens) returns a ParsedResult tree or raises a ParseError.
- invoke(command, prompt) is the presentation layer: it renders faults, prints
  help/version text and exits in shell mode, then runs callbacks root to leaf.
"""
import functools
import operator
import os
import re
import shlex
import sys
from collections.abc import Iterable
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .arguments import *
from .engine import _parse, parse
from .faults import *
from .utils import *


class CommandType(type):
    """
    Metaclass for Command classes.

    - derives __typename__ from the class name ("Command" → "command");
    - exposes every name in __introspectable__ as a read-only property;
    - generates __repr__/__rich_repr__ over __displayable__ (falling back to
      __introspectable__).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - command(name='build', aliases=(), ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, name, /, *, field="name"):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {field} must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} {field} cannot be an empty-string")
    elif not re.fullmatch(r"[^\W_][\w.]*(-[\w.]+)*", name):
        raise ValueError(f"{cls.__typename__} {field} {name!r} must be a word (for example: 'build' or 'ls-files')")
    return name


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize identity, text and policy metadata.

    Raises
    - TypeError: wrong types (non-string names/texts, non-callable callback,
      non-boolean policies).
    - ValueError: empty or malformed names and texts.
    """
    if metadata["name"] is not Unset:
        metadata["name"] = _sanitize_name(cls, metadata["name"])
    if isinstance(metadata["aliases"], str) or not isinstance(metadata["aliases"], Iterable):
        raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
    metadata["aliases"] = tuple(_sanitize_name(cls, alias, field="alias") for alias in metadata["aliases"])

    for field in ("descr", "helptext", "version"):
        if not isinstance(object := metadata[field], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
        metadata[field] = coalesce(object)

    if not callable(metadata["callback"]) and metadata["callback"] is not Unset:
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")
    metadata["callback"] = coalesce(metadata["callback"])

    for field in ("abbreviate", "greedy", "shell", "fancy", "colorful"):
        if not isinstance(metadata[field], bool | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a boolean")
    metadata["helpcmd"] = bool(metadata["helpcmd"])


def _sanitize_shortcuts(cls, shortcuts, /):
    """
    Internal: merge user shortcut overrides for the automatic help/version flags.

    A value is a single letter or None (no shortcut). Returns the merged mapping
    and the set of keys that were given explicitly.
    """
    shortcuts = coalesce(shortcuts, {})
    if not isinstance(shortcuts, dict):
        raise TypeError(f"{cls.__typename__} 'shortcuts' must be a dictionary")
    for key, value in shortcuts.items():
        if key not in ("help", "version"):
            raise ValueError(f"{cls.__typename__} 'shortcuts' keys must be 'help' or 'version' (got {key!r})")
        if value is not None and not isinstance(value, str):
            raise TypeError(f"{cls.__typename__} {key!r} shortcut must be a string or None")
        if value is not None and not re.fullmatch(r"[^\W\d_]", value):
            raise ValueError(f"{cls.__typename__} {key!r} shortcut must be a single letter (got {value!r})")
    return {"help": "h", "version": "v"} | shortcuts, frozenset(shortcuts)


def _reaches(source, target):
    """
    Whether target is source or one of its descendants.
    """
    stack, seen = [source], set()
    while stack:
        if (node := stack.pop()) is target:
            return True
        if node in seen:
            continue
        seen.add(node)
        stack.extend(node._children.values())
    return False


class Command(metaclass=CommandType):
    """
    Schema node: the arguments and subcommands accepted at one level of a CLI.

    Fields
    - name / aliases: how a parent routes to this node. The root name defaults
      to the program name; children must be named.
    - flags / options: canonical long name → Flag / Option.
    - positionals: ordered Positional slots; at most one variadic slot, last.
    - commands: subcommand name or alias → child Command.
    - children: canonical subcommand name → child Command.
    - longs / shortcuts: lookup tables used by the classifier (long names and
      aliases without dashes, shortcut characters).
    - descr / helptext / version: caller-supplied texts; helptext and version
      are what invoke() prints in shell mode.
    - callback: optional callable(name, result) run by invoke().
    - abbreviate / greedy: parse policies; Unset inherits from the parent node
      (or from the parse() call at the root).
    - helpcmd: accept `help <command>` as the first token of this node.
    - shell / fancy / colorful: runtime flags for invoke(); Unset inherits
      from the enclosing node.
    """

    __introspectable__ = (
        "name",
        "aliases",
        "descr",
        "helptext",
        "version",
        "callback",
        "abbreviate",
        "greedy",
        "helpcmd",
        "shell",
        "fancy",
        "colorful",
    )
    __displayable__ = (
        "name",
        "aliases",
        "flags",
        "options",
        "positionals",
        "children",
        "descr",
    )

    def __new__(
            cls,
            *members,
            # ── Identity ───────────────────────────────────────────────────────────
            name=Unset,
            aliases=(),
            # ── Texts (printed by invoke(), never generated) ────────────────────────
            descr=Unset,
            helptext=Unset,
            version=Unset,
            # ── Behaviour ──────────────────────────────────────────────────────────
            callback=Unset,
            shortcuts=Unset,
            abbreviate=Unset,
            greedy=Unset,
            helpcmd=False,
            # ── Runtime flags ──────────────────────────────────────────────────────
            shell=Unset,
            fancy=Unset,
            colorful=Unset
    ):
        metadata = {
            "name": name,
            "aliases": aliases,
            "descr": descr,
            "helptext": helptext,
            "version": version,
            "callback": callback,
            "abbreviate": abbreviate,
            "greedy": greedy,
            "helpcmd": helpcmd,
            "shell": shell,
            "fancy": fancy,
            "colorful": colorful,
        }
        _sanitize_metadata(cls, metadata)
        shortcuts, explicit = _sanitize_shortcuts(cls, shortcuts)

        self = super().__new__(cls)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)
        self._named = metadata["name"] is not Unset
        self._name = coalesce(metadata["name"], os.path.basename(sys.argv[0]) or "command")
        self._flags = {}
        self._options = {}
        self._positionals = []
        self._children = {}
        self._routes = {}
        self._longs = {}
        self._shortcuts = {}
        self._namespace = {}
        self._sealed = False

        children = []
        for member in members:
            if hasattr(member, "__command__"):
                children.append(member)
            elif hasattr(member, "__positional__"):
                self._claim(member.name, member)
                self._positionals.append(member)
            elif hasattr(member, "__flag__") or hasattr(member, "__option__"):
                self._register(member)
            else:
                raise TypeError(
                    f"{cls.__typename__} members must be flags, options, positionals or commands "
                    f"(got {type(member).__name__!r})"
                )

        self._sanitize_positionals()
        self._inject(shortcuts, explicit)
        for child in children:
            self._mount(child)
        return self

    # ── Tables ─────────────────────────────────────────────────────────────────

    @property
    def flags(self):
        return MappingProxyType(self._flags)

    @property
    def options(self):
        return MappingProxyType(self._options)

    @property
    def positionals(self):
        return tuple(self._positionals)

    @property
    def commands(self):
        return MappingProxyType(self._routes)

    @property
    def children(self):
        return MappingProxyType(self._children)

    @property
    def longs(self):
        return MappingProxyType(self._longs)

    @property
    def shortcuts(self):
        return MappingProxyType(self._shortcuts)

    @property
    def sealed(self):
        return self._sealed

    # ── Building ───────────────────────────────────────────────────────────────

    def _claim(self, name, owner, /):
        """
        Reserve a name in the node namespace shared by long names, aliases,
        positional slots and subcommands.
        """
        if self._namespace.setdefault(name, owner) is not owner:
            raise DuplicateNameError(
                f"{type(self).__typename__} {self.name!r} declares {name!r} more than once"
            )

    def _register(self, argument):
        for long in (argument.name, *argument.aliases):
            self._claim(long, argument)
            self._longs[long] = argument
        for char in argument.shortcuts:
            if self._shortcuts.setdefault(char, argument) is not argument:
                raise DuplicateNameError(
                    f"{type(self).__typename__} {self.name!r} declares shortcut '-{char}' more than once"
                )
        if hasattr(argument, "__flag__"):
            self._flags[argument.name] = argument
        else:
            self._options[argument.name] = argument

    def _sanitize_positionals(self):
        for index, positional in enumerate(self._positionals):
            last = index == len(self._positionals) - 1
            if positional.variadic and not last:
                raise MalformedArityError(
                    f"{type(self).__typename__} {self.name!r} variadic positional {positional.name!r} must be the last one"
                )
            if positional.nargs == "?" and not last and self._positionals[index + 1].required:
                raise MalformedArityError(
                    f"{type(self).__typename__} {self.name!r} optional positional {positional.name!r} "
                    f"cannot precede a required one"
                )

    def _inject(self, shortcuts, explicit):
        """
        Add the automatic --help/--version flags unless they are declared.
        """
        for name, descr in (
                ("help", "show this help message and exit"),
                ("version", "show version information and exit"),
        ):
            if name in self._longs:
                declared = self._longs[name]
                if not hasattr(declared, "__flag__") or declared.name != name:
                    raise TypeError(f"{type(self).__typename__} '--{name}' is reserved for a flag named {name!r}")
                continue
            names = ["--" + name]
            if (char := shortcuts[name]) is not None:
                if char not in self._shortcuts:
                    names.append("-" + char)
                elif name in explicit:
                    raise DuplicateNameError(
                        f"{type(self).__typename__} {self.name!r} cannot use '-{char}' for --{name}: it is already taken"
                    )
            self._register(Flag(*names, descr=descr))

    def _mount(self, child):
        if not hasattr(child, "__command__"):
            raise TypeError(f"{type(self).__typename__} subcommands must be commands")
        if self._sealed:
            raise TypeError(f"{type(self).__typename__} {self.name!r} is sealed and cannot mount subcommands")
        if not child._named:
            raise TypeError(f"{type(self).__typename__} subcommands must specify a name")
        if _reaches(child, self):
            raise CyclicSchemaError(
                f"{type(self).__typename__} {child.name!r} cannot be mounted under {self.name!r}: "
                f"it would form a cycle",
                path=(self.name, child.name),
            )
        routes = (child.name, *child.aliases)
        # all routes are checked before any is claimed
        for route in routes:
            if self._namespace.get(route, child) is not child:
                raise DuplicateNameError(
                    f"{type(self).__typename__} {self.name!r} declares {route!r} more than once"
                )
        for route in routes:
            self._claim(route, child)
        self._children[child.name] = child
        self._routes.update(dict.fromkeys(routes, child))

    def command(self, child, /):
        """
        Mount a child command under this one and return it.

        Raises
        - TypeError: child is not a Command, is unnamed, or this node is sealed.
        - DuplicateNameError: a name or alias of the child is already in use here.
        - CyclicSchemaError: this node is reachable from the child.
        """
        self._mount(child)
        return child

    def _seal(self):
        for child in self._children.values():
            if not child._sealed:
                child._seal()
        self._sealed = True
        return self

    # ── Queries ────────────────────────────────────────────────────────────────

    def lookup(self, name, /):
        """
        Resolve a flag, option or positional by canonical name, dashed long
        name, alias or shortcut ("verbose", "--verbose", "-v", "v").

        Raises
        - KeyError: no argument of this node answers to that name.
        """
        if name.startswith("--"):
            return self._longs[name[2:]]
        if name.startswith("-"):
            return self._shortcuts[name[1:]]
        if name in self._longs:
            return self._longs[name]
        for positional in self._positionals:
            if positional.name == name:
                return positional
        return self._shortcuts[name]

    def resolve(self, path, /):
        """
        Return the schema nodes along a route of canonical subcommand names,
        starting with this node.
        """
        nodes = [node := self]
        for name in path:
            nodes.append(node := node._children[name])
        return tuple(nodes)

    # ── Running ────────────────────────────────────────────────────────────────

    def parse(self, tokens=Unset, /, *, abbreviate=False, greedy=True):
        """
        Parse tokens (sys.argv[1:] when omitted) against this schema.

        See argosy.engine.parse for the full contract.
        """
        return parse(self, sys.argv[1:] if tokens is Unset else tokens, abbreviate=abbreviate, greedy=greedy)

    def _runtime(self, path):
        """
        Resolve shell/fancy/colorful along a route: the deepest node that sets
        a flag wins, unset flags fall back to the enclosing nodes.
        """
        nodes = self.resolve(path)
        options = {"prog": self.name}
        for field, default in (("shell", False), ("fancy", False), ("colorful", True)):
            options[field] = next(
                (getattr(node, field) for node in reversed(nodes) if getattr(node, field) is not Unset),
                default,
            )
        return options

    def __invoke__(self, prompt=Unset):
        """
        Run this command with a token stream.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as is.

        Behavior
        - parse errors are triggered with the runtime flags of the failing node
          (raised, or rendered and exit status 1 in shell mode);
        - warnings are triggered the same way;
        - when help or version was requested, shell mode prints the matching
          text of the deepest such node and exits with status 0, otherwise the
          result is returned untouched;
        - otherwise every visited node's callback runs root to leaf.

        Returns
        - the root ParsedResult.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError(f"__invoke__() argument must be a string or an iterable of strings")
        else:
            raise TypeError(f"__invoke__() argument must be a string or an iterable of strings")

        try:
            result, faults = _parse(self, tokens)
        except ParseError as error:
            trigger(error, **self._runtime(error.path))
            raise
        for fault in faults:
            trigger(fault, **self._runtime(fault.path))

        chain = result.chain
        nodes = self.resolve(result.leaf.path)
        for depth in reversed(range(len(chain))):
            node, part = nodes[depth], chain[depth]
            if not part.helped:
                continue
            if not self._runtime(part.path)["shell"]:
                return result
            if "help" in part.flags:
                text = node.helptext or node.descr
            else:
                text = next((other.version for other in reversed(nodes[:depth + 1]) if other.version is not None), None)
            if text is not None:
                Console().print(text, markup=False, highlight=False)
            sys.exit(0)

        for node, part in zip(nodes, chain):
            if node.callback is not None:
                node.callback(node.name, part)
        return result

    def __command__(self):
        """
        Introspection hook: identify this object as a Command.
        """
        return self


def command(*members, **metadata):
    """
    Decorator: build a Command whose callback is the decorated function.

        @command(Flag("--force", "-f"), Positional("path"), name="rm")
        def remove(name, result): ...

    The command name defaults to the function name (underscores become dashes).
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        name = metadata.get("name", Unset)
        if name is Unset:
            name = getattr(source, "__name__", "command").strip("_").replace("_", "-")
        return Command(*members, **metadata | {"name": name, "callback": source})
    return wrapper


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands.

    Parameters
    - object: an instance providing __invoke__(prompt).
    - prompt: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.

    Returns
    - whatever object.__invoke__ returns (the root ParsedResult for Command).

    Raises
    - TypeError: object does not implement __invoke__.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "command",
    "invoke",
)

del CommandType
