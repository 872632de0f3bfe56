r"""
Pennant flag specifications and the flag registry.

Overview
- FlagKind: the closed set of flag variants.
  • BOOLEAN: presence-only switch, False by default and True once seen.
  • REQUIRED: value-bearing flag that must be given on the command line.
  • OPTIONAL: value-bearing flag that may be omitted.
- Flag: one declared flag (name, descr, kind) plus its scan state
  (present, raw). Scan state is read-only from the outside; only the
  registry that owns the flag writes it.
- Registry: ordered, name-unique collection of flags. Declaration order is
  preserved and drives help rendering.

Names
- matched literally against tokens once the "-" prefix is stripped
  (the token "-verbose" matches the flag "verbose").
- must be non-empty, must not start with "-" and must not contain whitespace.
- re-declaring a name raises DuplicateFlagError immediately.

Quick example:
    >>> registry = Registry()
    >>> registry.declare_bool("verbose", "print more")
    flag(name='verbose', descr='print more', kind=<FlagKind.BOOLEAN: 1>, present=False, raw=None)
    >>> registry.declare_required_value("num", "a number")
    flag(name='num', descr='a number', kind=<FlagKind.REQUIRED: 2>, present=False, raw=None)
    >>> print(registry.help_flags(), end="")
      -verbose
    	print more
      -num <value> (required)
    	a number
"""
import functools
import operator
import re
from enum import IntEnum

from .faults import AlreadyFinalizedError, DuplicateFlagError, FlagNotDeclaredError, FaultCode
from .utils import *

PREFIX = "-"


class FlagKind(IntEnum):
    BOOLEAN = 1
    REQUIRED = 2
    OPTIONAL = 3

    @property
    def valued(self):
        """True for kinds that consume the following token as their value."""
        return self is not FlagKind.BOOLEAN


class Flag:
    """
    One declared flag and its scan state.

    Flags are created by a Registry and live exactly as long as it does.
    The names listed in __introspectable__ are exposed as read-only
    attributes mirroring the private fields.
    """

    __introspectable__ = (
        "name",
        "descr",
        "kind",
        "present",
        "raw",
    )

    name = mirror("name")
    descr = mirror("descr")
    kind = mirror("kind")
    present = mirror("present")
    raw = mirror("raw")

    def __init__(self, name, descr="", kind=FlagKind.BOOLEAN, /):
        if not isinstance(name, str):
            raise TypeError("flag 'name' must be a string")
        elif not re.fullmatch(r"[^\s%s]\S*" % re.escape(PREFIX), name):
            raise ValueError("flag names must be non-empty, without spaces, and cannot start with %r" % PREFIX)
        if not isinstance(descr, str):
            raise TypeError("flag 'descr' must be a string")
        if not isinstance(kind, FlagKind):
            raise TypeError("flag 'kind' must be a FlagKind")

        self._name = name
        self._descr = descr.strip()
        self._kind = kind
        self._present = False
        self._raw = None

    def __init_subclass__(cls, **options):
        raise TypeError("type 'Flag' is not an acceptable base type")

    @property
    def required(self):
        return self._kind is FlagKind.REQUIRED

    @property
    def captured(self):
        """True when a value flag holds a value taken from the command line."""
        return self._present and self._raw is not None

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "flag(%s)" % ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))


class Registry:
    """
    Ordered collection of declared flags.

    Operations
    - declare_bool / declare_required_value / declare_optional_value: add a flag.
    - lookup(name): fetch a flag or raise FlagNotDeclaredError.
    - help_flags() / render_help(command): deterministic help text in
      declaration order.

    The scanner records matches through _mark/_capture and clears previous
    state with _reset; nothing else writes to the flags. Once the owning
    parser has been finalized the registry is sealed: it stays readable for
    introspection, but further declarations raise AlreadyFinalizedError.
    """

    def __init__(self):
        self._flags = {}
        self._sealed = False

    def _seal(self):
        self._sealed = True

    def _declare(self, name, descr, kind):
        if self._sealed:
            raise AlreadyFinalizedError(
                "cannot declare flag %r: finalize() was already called" % name,
                title="parser already finalized",
                code=FaultCode.ALREADY_FINALIZED,
                hint="declare every flag first, then call finalize() once",
                flag=name,
            )
        flag = Flag(name, descr, kind)
        if name in self._flags:
            raise DuplicateFlagError(
                "flag %r is already declared" % name,
                title="duplicate flag",
                code=FaultCode.DUPLICATE_FLAG,
                hint="declare every flag name only once",
                flag=name,
            )
        self._flags[name] = flag
        return flag

    def declare_bool(self, name, descr=""):
        """Declare a presence-only flag, False until seen on the command line."""
        return self._declare(name, descr, FlagKind.BOOLEAN)

    def declare_required_value(self, name, descr=""):
        """Declare a value flag whose absence makes finalize fail."""
        return self._declare(name, descr, FlagKind.REQUIRED)

    def declare_optional_value(self, name, descr=""):
        """Declare a value flag that may be left out."""
        return self._declare(name, descr, FlagKind.OPTIONAL)

    def lookup(self, name):
        try:
            return self._flags[name]
        except KeyError:
            raise FlagNotDeclaredError(
                "flag %r is not declared" % name,
                title="undeclared flag",
                code=FaultCode.FLAG_NOT_DECLARED,
                hint="declare the flag before reading it",
                flag=name,
            ) from None

    def _mark(self, name):
        """
        record a boolean match; returns whether the flag had already been seen.
        """
        flag = self.lookup(name)
        seen, flag._present = flag._present, True
        return seen

    def _capture(self, name, raw):
        """
        record a value match; later captures overwrite earlier ones.
        returns whether the flag had already been seen.
        """
        flag = self.lookup(name)
        seen, flag._present, flag._raw = flag._present, True, raw
        return seen

    def _reset(self):
        for flag in self._flags.values():
            flag._present = False
            flag._raw = None

    def __contains__(self, name):
        return name in self._flags

    def __iter__(self):
        return iter(self._flags.values())

    def __len__(self):
        return len(self._flags)

    def help_flags(self):
        r"""
        Render one entry per flag, in declaration order.

        - boolean:   "  -name\n\tdescr\n"
        - optional:  "  -name <value>\n\tdescr\n"
        - required:  "  -name <value> (required)\n\tdescr\n"
        """
        parts = []
        for flag in self._flags.values():
            usage = "  " + PREFIX + flag.name
            if flag.kind.valued:
                usage += " <value>"
            if flag.required:
                usage += " (required)"
            parts.append(usage + "\n\t" + flag.descr + "\n")
        return "".join(parts)

    def render_help(self, command):
        if not isinstance(command, str):
            raise TypeError("render_help() argument must be a string")
        return "Usage: %s [options...]\n" % command + self.help_flags()


__all__ = (
    "PREFIX",
    "FlagKind",
    "Flag",
    "Registry",
)
