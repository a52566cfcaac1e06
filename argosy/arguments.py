r"""
Argosy argument specifications (schema leaves).

Overview
- Specs
  • Flag: named, presence-only switch (no payload), e.g. --verbose/-v.
  • Option: named, value-bearing switch, exactly-one value or multivalued ("+").
  • Positional: value bound by position; single, optional ("?") or variadic ("*"/"+").

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes selected
    fields via read-only properties declared in __introspectable__.

Names (Flag/Option)
- Long names match r"--[^\W\d_](-?[^\W_]+)*" (e.g. "--output", "--dry-run").
- Shortcuts match r"-[^\W\d_]" (one letter; digits are never shortcuts so "-5"
  stays a plain value).
- At least one long name is required; the first one, without its dashes, is the
  canonical name used as the key of parsed results. Other long names are aliases.
- Duplicates inside one spec are rejected.

Arity
- Option.nargs: Unset (exactly one value per occurrence) or "+" (multivalued).
- Positional.nargs: Unset (single, required), "?" (single, optional),
  "*" (variadic, zero or more) or "+" (variadic, one or more).
- Anything else raises MalformedArityError.

Quick example:
    >>> from argosy.arguments import Flag, Option, Positional
    >>> verbose = Flag("--verbose", "-v")
    >>> output = Option("--output", "-o", required=True)
    >>> files = Positional("FILES", nargs="*")

Public API
- Classes: Flag, Option, Positional
"""
import re

from rich.text import Text

from .faults import DuplicateNameError, MalformedArityError
from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and pretty printing.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

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
            - flag(name='verbose', names=('--verbose', '-v'), ...)
            """
            return f"{type(self).__typename__}({
                ", ".join("%s=%r" % pair for pair in self.__rich_repr__())
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate shared argument metadata.

    - descr: optional short description for an external help layer. If omitted
      (Unset), it becomes None. If provided, it must be a non-empty string (or
      rich Text) after trimming.
    - metavar: optional value label (value-bearing specs only), same rules.
    - deprecated: coerced to bool.

    Raises
    - TypeError: if 'descr' or 'metavar' is not a string or Unset.
    - ValueError: if either is a string but empty after trimming.
    """
    for field in ("descr", "metavar"):
        if field not in metadata:
            continue
        if not isinstance(object := metadata[field], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
        metadata[field] = coalesce(object)

    metadata["deprecated"] = bool(metadata["deprecated"])


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate and split the names of a Flag/Option.

    Responsibilities
    - names: required. Each must be a string matching a long-name or a shortcut
      pattern; duplicates are rejected.
    - derive:
        name      → canonical long name without dashes (first long name)
        aliases   → remaining long names without dashes
        shortcuts → single characters of the shortcut names

    Raises
    - TypeError: when no names are given or a name is not a string.
    - ValueError: when a name is empty or malformed, or no long name is given.
    - DuplicateNameError: when a name repeats.
    """
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    longs = []
    shortcuts = []
    names = []
    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif name in names:
            raise DuplicateNameError(f"{cls.__typename__} names cannot contain duplicates ({name!r})")
        elif re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", name):
            longs.append(name[2:])
        elif re.fullmatch(r"-[^\W\d_]", name):
            shortcuts.append(name[1:])
        else:
            raise ValueError(
                f"{cls.__typename__} name {name!r} must be a long name (--name) or a one-letter shortcut (-n)"
            )
        names.append(name)

    if not longs:
        raise ValueError(f"{cls.__typename__} must specify a long name (e.g. '--name')")

    metadata["names"] = tuple(names)
    metadata["name"] = longs[0]
    metadata["aliases"] = tuple(longs[1:])
    metadata["shortcuts"] = tuple(shortcuts)


def _sanitize_arity(cls, metadata, accepted, /):
    """
    Internal: validate 'nargs' against the forms a spec accepts.

    Raises
    - TypeError: if nargs is neither Unset nor a string.
    - MalformedArityError: if nargs is a string outside 'accepted'.
    """
    if not isinstance(nargs := metadata["nargs"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'nargs' must be a string")
    if isinstance(nargs, str) and nargs not in accepted:
        raise MalformedArityError(
            f"{cls.__typename__} 'nargs' must be one of %s" % ", ".join(map(repr, accepted))
        )
    metadata["nargs"] = coalesce(nargs)


class Flag(metaclass=ArgumentType):
    """
    Named, presence-only switch specification.

    A Flag carries no value; its presence (and how many times it was given) is
    the signal. Shortcuts may be condensed with other shortcuts (-abc).
    """

    __introspectable__ = (
        "name",
        "names",
        "aliases",
        "shortcuts",
        "descr",
        "deprecated",
    )

    def __new__(cls, *names, descr=Unset, deprecated=False):
        metadata = {
            "names": names,
            "descr": descr,
            "deprecated": deprecated,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __flag__(self):
        """
        Introspection hook: identify this spec as a Flag.
        """
        return self


class Option(metaclass=ArgumentType):
    """
    Named, value-bearing switch specification.

    Highlights
    - Arity: exactly one value per occurrence (default) or multivalued (nargs="+").
    - Values may be attached (--name=value, -nvalue, -n=value) or spaced
      (--name value).
    - required: the parse fails with RequiredOptionMissingError when absent
      (unless help/version was requested).
    - greedy: for multivalued options, whether one occurrence keeps consuming
      following values (True) or takes exactly one (False). Unset inherits the
      policy of the command/parse call.
    """

    __introspectable__ = (
        "name",
        "names",
        "aliases",
        "shortcuts",
        "metavar",
        "nargs",
        "required",
        "greedy",
        "descr",
        "deprecated",
    )

    def __new__(
            cls,
            *names,
            metavar=Unset,
            nargs=Unset,
            required=False,
            greedy=Unset,
            descr=Unset,
            deprecated=False
    ):
        metadata = {
            "names": names,
            "metavar": metavar,
            "nargs": nargs,
            "required": bool(required),
            "greedy": greedy,
            "descr": descr,
            "deprecated": deprecated,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        _sanitize_arity(cls, metadata, ("+",))

        if not isinstance(greedy, bool | Unset):
            raise TypeError(f"{cls.__typename__} 'greedy' must be a boolean")
        if greedy is not Unset and metadata["nargs"] is None:
            raise MalformedArityError(f"{cls.__typename__} 'greedy' only applies to multivalued options")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def multivalued(self):
        return self.nargs == "+"

    def __option__(self):
        """
        Introspection hook: identify this spec as an Option.
        """
        return self


class Positional(metaclass=ArgumentType):
    """
    Positional slot specification.

    Slots are filled in declaration order. A variadic slot ("*" or "+") captures
    every remaining bare word and must therefore be the last slot of a command;
    this is enforced when the command is built.
    """

    __introspectable__ = (
        "name",
        "metavar",
        "nargs",
        "descr",
    )

    def __new__(cls, name, /, *, metavar=Unset, nargs=Unset, descr=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} name must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} name cannot be an empty-string")
        elif not re.fullmatch(r"[^\W\d]\w*(-\w+)*", name):
            raise ValueError(f"{cls.__typename__} name {name!r} must be an identifier-like word")

        metadata = {
            "name": name,
            "metavar": metavar,
            "nargs": nargs,
            "descr": descr,
            "deprecated": False,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_arity(cls, metadata, ("?", "*", "+"))
        del metadata["deprecated"]

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def variadic(self):
        return self.nargs in ("*", "+")

    @property
    def required(self):
        return self.nargs in (None, "+")

    def __positional__(self):
        """
        Introspection hook: identify this spec as a Positional.
        """
        return self


__all__ = (
    "Flag",
    "Option",
    "Positional",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
