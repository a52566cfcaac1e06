"""
Argosy faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue
  (schema errors, parse errors and warnings). Codes are grouped by domain to
  keep copy consistent and make logs/searches predictable.
- SchemaError family: programmer mistakes detected while a schema is built
  (duplicate names, cyclic subcommand graphs, malformed arity). Always fatal.
- ParseError family: usage errors detected during a parse pass. They carry the
  offending token, its index in the raw stream and the subcommand path, and
  know how to render themselves with rich.
- CommandWarning family: soft faults (repeated or deprecated switches).
- trigger(): central entry point to surface any fault (raise/warn, or print in shell mode).

UX goals
- Position-first messages: every parse message names the ordinal position of the
  offending token (“at third position”) so users can learn by trying.
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The engine raises the first ParseError it meets; the core never prints or exits.
- invoke() (see argosy.commands) surfaces faults via trigger(fault, **ctx): in
  non-shell mode exceptions are raised and warnings go through `warnings`; in
  shell mode both are rendered via rich on stderr and errors exit with status 1.
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - schema (101xx)
      • DUPLICATE_NAME, CYCLIC_SCHEMA, MALFORMED_ARITY
    - routing (111 0x)
      • UNKNOWN_COMMAND, MISSING_HELP_ARGUMENT
    - switches (options/flags) (111 1x)
      • UNKNOWN_LONG_OPTION, AMBIGUOUS_LONG_OPTION, UNKNOWN_SHORT_OPTION,
        FLAG_ASSIGNMENT, OPTION_MISSING_VALUE, REQUIRED_OPTION_MISSING
    - positionals (111 2x)
      • UNEXPECTED_ARGUMENT, MISSING_POSITIONAL
    - warnings (121xx)
      • REPEATED_OPTION, DEPRECATED_ARGUMENT

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- schema errors (10xxx) ---
    DUPLICATE_NAME              = 10101
    CYCLIC_SCHEMA               = 10102
    MALFORMED_ARITY             = 10103

    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11101
    MISSING_HELP_ARGUMENT       = 11102

    # --- switch/flag/option errors (11xxx) ---
    UNKNOWN_LONG_OPTION         = 11111
    AMBIGUOUS_LONG_OPTION       = 11112
    UNKNOWN_SHORT_OPTION        = 11113
    FLAG_ASSIGNMENT             = 11114
    OPTION_MISSING_VALUE        = 11115
    REQUIRED_OPTION_MISSING     = 11116

    # --- positional errors (11xxx) ---
    UNEXPECTED_ARGUMENT         = 11121
    MISSING_POSITIONAL          = 11122

    # --- warnings (12xxx) ---
    REPEATED_OPTION             = 12111
    DEPRECATED_ARGUMENT         = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette):
    """
    build the rich renderable shared by errors and warnings.

    layout
    - header: "[ prog — code | title ]"
    - body: the one-sentence message
    - hint: " → hint"
    - fancy mode wraps the body in a Panel titled by the header.
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)
    fancy = fault.options.get("fancy", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    prog = getattr(main, "__prog__", fault.options.get("prog") or "argosy")

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(fault.code.normalize(), "code"),
        " | ",
        text(fault.title.title(), "title"),
        " ]"
    )
    message = text(fault.message, "message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(fault.hint, "hint"))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class SchemaError(ValueError):
    """
    base type for schema construction faults.

    schema errors are programmer mistakes; they are raised immediately when a
    Flag/Option/Positional/Command is built or mounted, never during a parse.
    """
    __code__ = Unset

    def __init__(self, message, /, *, path=()):
        super().__init__(message)
        self.message = message
        self.path = tuple(path)

    @property
    def code(self):
        return self.__code__

    kind = code


class DuplicateNameError(SchemaError):
    __code__ = FaultCode.DUPLICATE_NAME


class CyclicSchemaError(SchemaError):
    __code__ = FaultCode.CYCLIC_SCHEMA


class MalformedArityError(SchemaError):
    __code__ = FaultCode.MALFORMED_ARITY


class ParseError(Exception):
    """
    base type for usage errors detected during a parse pass.

    context (read from the options mapping)
    - code: FaultCode (defaults to the class-level __code__)
    - title: short lowercase title (defaults to the class-level __title__)
    - token: the offending raw token, or None for end-of-stream validation faults
    - index: 0-based index of that token in the raw stream (stream length when
      the fault is about something missing at the end)
    - path: tuple of subcommand names from the root to the failing node
    - hint: one actionable suggestion
    - rendering knobs: prog, shell, fancy, colorful
    """
    __code__ = Unset
    __title__ = "parse error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    kind = code

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def token(self):
        return self.options.get("token")

    @property
    def index(self):
        return self.options.get("index")

    @property
    def path(self):
        return tuple(self.options.get("path", ()))

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownLongOptionError(ParseError):
    __code__ = FaultCode.UNKNOWN_LONG_OPTION
    __title__ = "unknown option or flag"


class AmbiguousLongOptionError(UnknownLongOptionError):
    __code__ = FaultCode.AMBIGUOUS_LONG_OPTION
    __title__ = "ambiguous option or flag"


class UnknownShortOptionError(ParseError):
    __code__ = FaultCode.UNKNOWN_SHORT_OPTION
    __title__ = "unknown shortcut"

    @property
    def char(self):
        return self.options.get("char")

    @property
    def position(self):
        return self.options.get("position")


class FlagAssignmentError(ParseError):
    __code__ = FaultCode.FLAG_ASSIGNMENT
    __title__ = "flag cannot take a value"


class OptionMissingValueError(ParseError):
    __code__ = FaultCode.OPTION_MISSING_VALUE
    __title__ = "missing option value"


class RequiredOptionMissingError(ParseError):
    __code__ = FaultCode.REQUIRED_OPTION_MISSING
    __title__ = "missing required option"


class MissingPositionalError(ParseError):
    __code__ = FaultCode.MISSING_POSITIONAL
    __title__ = "missing positional"


class UnexpectedArgumentError(ParseError):
    __code__ = FaultCode.UNEXPECTED_ARGUMENT
    __title__ = "unexpected positional"


class UnknownCommandError(ParseError):
    __code__ = FaultCode.UNKNOWN_COMMAND
    __title__ = "unknown command"


class MissingHelpArgumentError(ParseError):
    __code__ = FaultCode.MISSING_HELP_ARGUMENT
    __title__ = "missing help argument"


class CommandWarning(Warning):
    """
    base type for soft faults; same context mapping as ParseError.
    """
    __code__ = Unset
    __title__ = "warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    code = ParseError.code
    kind = code
    title = ParseError.title
    token = ParseError.token
    index = ParseError.index
    path = ParseError.path
    hint = ParseError.hint

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class RepeatedOptionWarning(CommandWarning):
    __code__ = FaultCode.REPEATED_OPTION
    __title__ = "repeated option"


class DeprecatedArgumentWarning(CommandWarning):
    __code__ = FaultCode.DEPRECATED_ARGUMENT
    __title__ = "deprecated argument"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode, rendering happens via the rich console; otherwise errors are
      raised and warnings are emitted through the warnings module.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "SchemaError",
    "DuplicateNameError",
    "CyclicSchemaError",
    "MalformedArityError",
    "ParseError",
    "UnknownLongOptionError",
    "AmbiguousLongOptionError",
    "UnknownShortOptionError",
    "FlagAssignmentError",
    "OptionMissingValueError",
    "RequiredOptionMissingError",
    "MissingPositionalError",
    "UnexpectedArgumentError",
    "UnknownCommandError",
    "MissingHelpArgumentError",
    "CommandWarning",
    "RepeatedOptionWarning",
    "DeprecatedArgumentWarning",
    "trigger",
)
