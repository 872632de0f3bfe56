"""
Pennant faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the parser
  can surface. Codes are grouped by domain so logs/searches stay predictable.
- ParserError / ParserWarning: base types that carry a plain message plus
  options (title, code, hint, flag, command, ...) and know how to render
  themselves with rich.
- ParserExit: the exception group raised by a failed finalize, holding every
  user-input fault found in a single pass.

Two families
- programmer faults (bad setup code): DuplicateFlagError, FlagNotDeclaredError,
  NotFinalizedError, AlreadyFinalizedError.
- user-input faults (bad command line): MissingValueError,
  MissingRequiredFlagError, TypeConversionError.

The plain message (str(fault)) always names the offending flag, so callers
can print "<command>: <fault>" without rich at all.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping
    - user input (111xx)
      • MISSING_VALUE, MISSING_REQUIRED_FLAG, TYPE_CONVERSION
    - warnings (121xx)
      • REPEATED_FLAG, EMPTY_VALUE
    - programmer errors (211xx)
      • DUPLICATE_FLAG, FLAG_NOT_DECLARED, NOT_FINALIZED, ALREADY_FINALIZED
    """
    # --- user input errors (11xxx) ---
    MISSING_VALUE          = 11111
    MISSING_REQUIRED_FLAG  = 11112
    TYPE_CONVERSION        = 11121

    # --- warnings (12xxx) ---
    REPEATED_FLAG          = 12111
    EMPTY_VALUE            = 12112

    # --- programmer errors (21xxx) ---
    DUPLICATE_FLAG         = 21101
    FLAG_NOT_DECLARED      = 21102
    NOT_FINALIZED          = 21103
    ALREADY_FINALIZED      = 21104

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    build the rich renderable shared by errors and warnings.

    layout: "[ prog — code | title ]", the message, then "→ hint". when the
    fault was replaced with fancy=True the body goes inside a Panel instead.
    """
    main = __import__("__main__")
    options = fault.options

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = options.get("colorful", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    prog = text(getattr(main, "__prog__", options.get("command", "pennant")), "prog-name")

    code = options.get("code")
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if code else "", "code"),
        " | ",
        text(options.get("title", "").title(), "title"),
        " ]",
    )
    message = text(fault.message, "message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(options.get("hint", ""), "hint"))

    if options.get("fancy", False):
        return Panel(Group(message, hint), title=header, title_align="left")

    return Group(header, message, hint)


class ParserError(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    @property
    def flag(self):
        """The offending flag name (None when the fault is not about one flag)."""
        return self.options.get("flag")

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateFlagError(ParserError, ValueError): ...
class FlagNotDeclaredError(ParserError, LookupError): ...
class NotFinalizedError(ParserError, RuntimeError): ...
class AlreadyFinalizedError(ParserError, RuntimeError): ...
class MissingValueError(ParserError): ...
class MissingRequiredFlagError(ParserError): ...
class TypeConversionError(ParserError, ValueError): ...


class ParserWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    @property
    def flag(self):
        return self.options.get("flag")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class RepeatedFlagWarning(ParserWarning): ...
class EmptyValueWarning(ParserWarning): ...


class ParserExit(ExceptionGroup):
    """
    every user-input fault found by one finalize, in the order they were found.

    scan faults (MissingValueError) come first, then validation faults
    (MissingRequiredFlagError) in declaration order. use except* to pick
    a family, or iterate .exceptions.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad arguments", exceptions)

    def __init__(self, exceptions, **options):
        super().__init__("bad arguments", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __str__(self):
        return "; ".join(map(str, self.exceptions))

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",  # friendly pinky group title
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        prog = text(getattr(main, "__prog__", self.options.get("command", "pennant")), "prog-name")
        header = Text.assemble("[ ", prog, " — ", text(self.message.title(), "title"), " ]")

        renders = [copy.replace(exception, **{**self.options, "fancy": False}) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


__all__ = (
    "FaultCode",
    "ParserError",
    "DuplicateFlagError",
    "FlagNotDeclaredError",
    "NotFinalizedError",
    "AlreadyFinalizedError",
    "MissingValueError",
    "MissingRequiredFlagError",
    "TypeConversionError",
    "ParserWarning",
    "RepeatedFlagWarning",
    "EmptyValueWarning",
    "ParserExit",
)
