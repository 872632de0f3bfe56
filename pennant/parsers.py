"""
Pennant parser session: declare, finalize, then look values up.

What this module provides
- Parser: wraps a flag Registry and an argument source. Its lifecycle is
  strictly ordered:
  • construction from the invocation tokens (program name kept apart as
    `command`, used only in help and fault headers),
  • flag declaration (declare_bool / declare_required_value /
    declare_optional_value),
  • a single finalize() that scans the tokens, validates required flags and
    returns the leftover positional arguments,
  • typed lookups with get_value(name, type).

Scanning rules
- single left-to-right pass, no backtracking.
- tokens without the "-" prefix are leftovers.
- "-name" for an undeclared name is a leftover too (kept unstripped); unknown
  flags are positional data, not errors.
- a boolean flag becomes present; a value flag takes the next token as its
  value, whatever it looks like.
- a value flag given as the last token is a MissingValueError.
- the last occurrence of a repeated flag wins (RepeatedFlagWarning is emitted).

Fault policy
- finalize() collects every user-input fault of the run (scan faults first,
  then missing required flags in declaration order) and raises them together
  as a ParserExit. It never prints and never exits the process.
- conversion happens lazily in get_value(); a bad value surfaces as a
  TypeConversionError there, never in finalize().

Quick start
    from pennant import Parser

    parser = Parser.from_argv(["head", "-verbose", "-num", "1", "file.txt"])
    parser.declare_bool("verbose", "this is used to get verbose output")
    parser.declare_required_value("num", "this is used to set a numeric value")

    remaining = parser.finalize()            # ["file.txt"]
    parser.get_value("verbose")              # True
    parser.get_value("num", int)             # 1
"""
import copy
import os.path
import sys
import warnings
from collections import defaultdict, deque
from collections.abc import Iterable

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .faults import *
from .flags import PREFIX, Registry
from .utils import *


_BOOLEANS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


@rename("bool")
def _boolean(raw, /):
    """
    textual conversion for bool: bool("false") would be True, so the usual
    spellings are mapped explicitly (case-insensitive).
    """
    try:
        return _BOOLEANS[raw.strip().lower()]
    except KeyError:
        raise ValueError("invalid literal for bool(): %r" % raw) from None


_converters = {
    bool: _boolean,
}


class Parser:
    """
    Flag parser over one invocation.

    Parameters
    - args: Iterable[str]
      The invocation tokens *without* the program name.
    - command: Unset | str
      Program name used in help and fault headers. Defaults to the basename
      of sys.argv[0].
    - colorful: bool
      Style help and faults when rendered with rich.
    - fancy: bool
      Wrap rendered help and faults in a rich Panel.
    """

    command = mirror("command")
    registry = mirror("registry")
    colorful = mirror("colorful")
    fancy = mirror("fancy")
    finalized = mirror("finalized")

    def __init__(self, args, /, command=Unset, *, colorful=False, fancy=False):
        if isinstance(args, str) or not isinstance(args, Iterable):
            raise TypeError("Parser() argument must be an iterable of strings")
        args = list(args)
        if not all(isinstance(arg, str) for arg in args):
            raise TypeError("Parser() argument must be an iterable of strings")

        command = coalesce(command, os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "pennant")
        if not isinstance(command, str):
            raise TypeError("Parser() 'command' must be a string")

        self._args = tuple(args)
        self._command = command
        self._registry = Registry()
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._help_fn = Unset
        self._leftovers = Unset
        self._consumed = False
        self._finalized = False

    @classmethod
    def from_argv(cls, argv, /, **options):
        """
        Build a parser from a full argv: the first element is the command.
        """
        if isinstance(argv, str) or not isinstance(argv, Iterable):
            raise TypeError("from_argv() argument must be an iterable of strings")
        argv = list(argv)
        if not argv:
            raise ValueError("from_argv() argument must contain at least the command name")
        return cls(argv[1:], argv[0], **options)

    @classmethod
    def from_env(cls, **options):
        """Build a parser from sys.argv."""
        return cls.from_argv(sys.argv, **options)

    def __repr__(self):
        return "parser(command=%r, args=%r, flags=%r, finalized=%r)" % (
            self._command, list(self._args), [flag.name for flag in self._registry], self._finalized
        )

    def _options(self):
        return {"command": self._command, "colorful": self._colorful, "fancy": self._fancy}

    def _ensure_open(self, action):
        if self._consumed:
            raise AlreadyFinalizedError(
                "cannot %s: finalize() was already called" % action,
                title="parser already finalized",
                code=FaultCode.ALREADY_FINALIZED,
                hint="declare every flag first, then call finalize() once",
                **self._options(),
            )

    def _ensure_finalized(self, action):
        if not self._finalized:
            raise NotFinalizedError(
                "cannot %s before a successful finalize()" % action,
                title="parser not finalized",
                code=FaultCode.NOT_FINALIZED,
                hint="call finalize() and handle its faults before reading values",
                **self._options(),
            )

    def declare_bool(self, name, descr=""):
        self._ensure_open("declare flag %r" % name)
        return self._registry.declare_bool(name, descr)

    def declare_required_value(self, name, descr=""):
        self._ensure_open("declare flag %r" % name)
        return self._registry.declare_required_value(name, descr)

    def declare_optional_value(self, name, descr=""):
        self._ensure_open("declare flag %r" % name)
        return self._registry.declare_optional_value(name, descr)

    def finalize(self):
        """
        Scan the tokens against the declared flags and validate the result.

        Returns
        - list[str]: leftover tokens (no flag matched, not consumed as a value),
          in input order.

        Raises
        - ParserExit: every MissingValueError and MissingRequiredFlagError of
          the run, at once. Lookups stay disabled after a failure.
        - AlreadyFinalizedError: when called a second time.
        """
        self._ensure_open("finalize")
        self._consumed = True
        self._registry._seal()
        self._registry._reset()

        faults = []
        leftovers = []
        tokens = deque(self._args)

        while tokens:
            token = tokens.popleft()

            if not token.startswith(PREFIX) or (name := token[len(PREFIX):]) not in self._registry:
                leftovers.append(token)
                continue

            flag = self._registry.lookup(name)

            if not flag.kind.valued:
                seen = self._registry._mark(name)
            elif tokens:
                # The next token is the value, even when it looks like a flag.
                raw = tokens.popleft()
                seen = self._registry._capture(name, raw)
                if not raw:
                    warnings.warn(EmptyValueWarning(
                        "flag %r was given an empty value" % name,
                        title="empty value",
                        code=FaultCode.EMPTY_VALUE,
                        hint="pass a non-empty value after %s%s" % (PREFIX, name),
                        flag=name,
                        **self._options(),
                    ), stacklevel=2)
            else:
                faults.append(MissingValueError(
                    "argument %r requires a value" % name,
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    hint="pass a value after %s%s (for example: %s%s <value>)" % (PREFIX, name, PREFIX, name),
                    flag=name,
                    **self._options(),
                ))
                continue

            if seen:
                warnings.warn(RepeatedFlagWarning(
                    "flag %r was given more than once; the last one wins" % name,
                    title="repeated flag",
                    code=FaultCode.REPEATED_FLAG,
                    hint="pass %s%s only once" % (PREFIX, name),
                    flag=name,
                    **self._options(),
                ), stacklevel=2)

        reported = {fault.flag for fault in faults}
        for flag in self._registry:
            if flag.required and not flag.captured and flag.name not in reported:
                faults.append(MissingRequiredFlagError(
                    "argument %r is required" % flag.name,
                    title="missing required flag",
                    code=FaultCode.MISSING_REQUIRED_FLAG,
                    hint="pass %s%s <value>" % (PREFIX, flag.name),
                    flag=flag.name,
                    **self._options(),
                ))

        if faults:
            raise ParserExit(faults, **self._options())

        self._leftovers = tuple(leftovers)
        self._finalized = True
        return leftovers

    @property
    def leftovers(self):
        """Leftover tokens of the successful finalize, as a tuple."""
        self._ensure_finalized("read leftovers")
        return self._leftovers

    def get_value(self, name, /, type=Unset, default=Unset):
        """
        Return the value of a flag, converted on demand.

        Parameters
        - name: str
          The declared flag name (without prefix).
        - type: Unset | Callable[[str], T]
          Converter for value flags, str by default. Any one-argument callable
          works (int, float, pathlib.Path, ...); bool understands
          true/false, yes/no, on/off and 1/0. Boolean flags accept only bool
          (or nothing).
        - default: Any
          Returned for an optional value flag that was not given. None when
          omitted, so "no value" never looks like a conversion error.

        Raises
        - NotFinalizedError: before a successful finalize().
        - FlagNotDeclaredError: for an undeclared name.
        - TypeConversionError: when the converter rejects the raw text.
        - TypeError: when a boolean flag is read as anything but bool.
        """
        self._ensure_finalized("read flag %r" % name)
        flag = self._registry.lookup(name)

        if not flag.kind.valued:
            if type is not Unset and type is not bool:
                raise TypeError("boolean flag %r can only be read as bool" % name)
            return flag.present

        if not flag.captured:
            return coalesce(default)

        type = coalesce(type, str)
        converter = _converters.get(type, type)
        if not callable(converter):
            raise TypeError("get_value() 'type' must be callable")

        try:
            return converter(flag.raw)
        except (ValueError, TypeError, ArithmeticError) as exception:
            raise TypeConversionError(
                "value %r of argument %r is not a valid %s" % (flag.raw, name, getattr(type, "__name__", repr(type))),
                title="invalid value",
                code=FaultCode.TYPE_CONVERSION,
                hint="pass a valid %s after %s%s" % (getattr(type, "__name__", "value"), PREFIX, name),
                flag=name,
                raw=flag.raw,
                **self._options(),
            ) from exception

    def help_flags(self):
        return self._registry.help_flags()

    def help(self):
        """
        Return the help text: the custom help function's output when one was
        installed with set_help_fn(), otherwise the generated usage line and
        flag listing.
        """
        if self._help_fn is not Unset:
            return self._help_fn()
        return self._registry.render_help(self._command)

    def set_help_fn(self, function, /):
        """
        Replace the generated help with a custom zero-argument callable that
        returns the full help string (e.g. to document positional arguments).
        """
        if not callable(function):
            raise TypeError("set_help_fn() argument must be callable")
        self._help_fn = function

    def print_help(self, file=Unset):
        """Render help() with rich, to stderr unless a file is given."""
        console = Console(stderr=True) if file is Unset else Console(file=file)
        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",
            "flag-name": "bold #22C55E",
            "metavar": "bold #FFD600",
            "required": "italic #FF4D94",
            "panel-title": "bold #FF4D94",
        } | getattr(__import__("__main__"), "__styles__", {}))

        text = Text(self.help())
        if self._colorful:
            text.highlight_regex(r"(?m)^Usage:", styles["usage-label"])
            text.highlight_regex(r"(?m)^  %s\S+" % PREFIX, styles["flag-name"])
            text.highlight_regex(r"<value>", styles["metavar"])
            text.highlight_regex(r"\(required\)", styles["required"])

        if self._fancy:
            title = Text.assemble("[ ", "%s HELP" % self._command.upper(), " ]", style=styles["panel-title"] if self._colorful else "")
            text.rstrip()
            console.print(Panel(text, title=title, title_align="left"))
        else:
            console.print(text, end="", soft_wrap=True)

    def report(self, fault, /, file=Unset):
        """
        Render a fault (error, warning or ParserExit) with rich, to stderr
        unless a file is given. This never exits; the caller decides.
        """
        if not hasattr(fault, "__rich__") or not hasattr(fault, "__replace__"):
            raise TypeError("report() argument must be a pennant fault")
        console = Console(stderr=True) if file is Unset else Console(file=file)
        console.print(copy.replace(fault, **self._options()), soft_wrap=True)


__all__ = (
    "Parser",
)
