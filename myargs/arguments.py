r"""
myargs argument declarations.

Overview
- Kind
  • FLAG: presence-only switch (no payload), e.g., -v/--verbose.
  • KEYVALUE: named argument taking exactly one value, e.g., -o=out.txt/--output=out.txt.
  • POSITIONAL: argument meant to be given without dashes (matched by name), may be required.

- Argument
  • One declared argument: metadata fixed at construction (name, symbol, kind,
    required, nargs, default, help) plus the value resolved during parsing.
  • Metadata is exposed via read-only properties generated from __introspectable__.
  • The resolved value is the only mutable part; it is written through
    resolve()/settle()/clear() by the parser.

Metadata (sanitized on construction)
- name: non-empty str (trimmed). Matched against '--name' and bare 'name'.
- symbol: None | single character. None, "" and "\0" all mean “no short form”.
  '-', '=' and whitespace are rejected because they cannot appear in a cluster.
- required: bool (forced False for flags).
- nargs: int >= 1 (positionals only; parsing stores one value regardless).
- default: None | str (flags never carry one).
- help: None | str.

Ownership
- Every field holds a str owned by the record; non-str inputs are rejected
  instead of stored, so no caller object is ever aliased.

Public API
- Enumeration: Kind
- Class: Argument
- Constant: TRUTHY
"""
import functools
import operator
import re
from enum import Enum

from rich.text import Text

from .utils import *

TRUTHY = "true"
"""Marker stored as the resolved value of a flag that was specified."""


class Kind(Enum):
    """
    The three argument kinds a parser understands.

    The value doubles as the label used in help output and diagnostics.
    """
    FLAG = "flag"
    KEYVALUE = "key-value"
    POSITIONAL = "positional"

    def __rich__(self):
        return Text(self.value, style="bold")


class ArgumentType(type):
    """
    Metaclass that turns argument records into introspectable objects.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
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
            - argument(name='output', symbol='o', kind=<Kind.KEYVALUE: 'key-value'>, ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield a sequence of (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata shared by every kind.

    Responsibilities
    - kind: must be a Kind member.
    - name: required, non-empty after trimming.
    - symbol: None or a single character; "" and "\\0" collapse to None.
    - help: None or a string; blank strings collapse to None.

    Raises
    - TypeError: when a field has the wrong type.
    - ValueError: when a field has the right type but an unusable value.

    Notes
    - This function mutates the provided metadata dict in place.
    """
    if not isinstance(metadata["kind"], Kind):
        raise TypeError(f"{cls.__typename__} 'kind' must be a Kind member")

    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif name.startswith("-") or "=" in name:
        # '--name' and 'name=value' would never match a token split on '='
        raise ValueError(f"{cls.__typename__} 'name' cannot start with '-' or contain '='")
    metadata["name"] = name

    if (symbol := metadata["symbol"]) is not None and not isinstance(symbol, str):
        raise TypeError(f"{cls.__typename__} 'symbol' must be a string")
    if symbol in ("", "\0"):
        symbol = None
    if symbol is not None:
        if len(symbol) != 1:
            raise ValueError(f"{cls.__typename__} 'symbol' must be a single character")
        if symbol in "-=" or symbol.isspace():
            raise ValueError(f"{cls.__typename__} 'symbol' cannot be '-', '=' or whitespace")
    metadata["symbol"] = symbol

    if (help := metadata["help"]) is not None and not isinstance(help, str):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")
    metadata["help"] = (help.strip() or None) if help is not None else None


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate and normalize metadata for value-bearing kinds.

    Scope
    - KEYVALUE and POSITIONAL. Flags never reach this function; their
      'required', 'nargs' and 'default' are forced by the caller.

    Responsibilities
    - required: coerced to bool.
    - nargs: int >= 1 (bool is rejected even though it is an int).
    - default: None or a string. Empty strings are kept: "" is a real value.
    """
    metadata["required"] = bool(metadata["required"])

    if not isinstance(nargs := metadata["nargs"], int) or isinstance(nargs, bool):
        raise TypeError(f"{cls.__typename__} 'nargs' must be an integer")
    if nargs < 1:
        raise ValueError(f"{cls.__typename__} 'nargs' must be a positive integer")

    if (default := metadata["default"]) is not None and not isinstance(default, str):
        raise TypeError(f"{cls.__typename__} 'default' must be a string")


class Argument(metaclass=ArgumentType):
    """
    One declared argument and its resolved value.

    Arguments are created by the parser's add_positional()/add_keyvalue()/
    add_flag() calls, but the record can be built directly as well:

        >>> Argument(Kind.KEYVALUE, "output", "o", default="out.txt")

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes
      on instances, mirroring the sanitized metadata values.
    - value: the resolved value (None until resolved or settled).
    - resolved: whether a token assigned the value since the last clear().
    """

    __introspectable__ = (
        "name",
        "symbol",
        "kind",
        "required",
        "nargs",
        "default",
        "help",
        "value",
        "resolved",
    )
    __displayable__ = (
        "name",
        "symbol",
        "kind",
        "required",
        "default",
        "value",
    )

    def __init__(
            self,
            kind,
            name,
            /,
            symbol=None,
            required=False,
            nargs=1,
            default=None,
            help=None,
    ):
        """
        Construct an argument record with the provided metadata.

        Parameters
        - kind: Kind
        - name: str
          Long name, matched against '--name' and bare 'name' tokens.
        - symbol: None | str
          Short form, matched character by character inside '-abc' clusters.
        - required: bool
          Parsing fails when no token resolves a required argument.
        - nargs: int
          Declared arity. Parsing stores a single value whatever its setting.
        - default: None | str
          Fallback value applied by settle() when nothing was resolved.
        - help: None | str
          Description rendered in help output.

        Notes
        - Flags ignore required/nargs/default: they are forced to False/1/None.
        """
        metadata = {
            "kind": kind,
            "name": name,
            "symbol": symbol,
            "required": required,
            "nargs": nargs,
            "default": default,
            "help": help,
        }
        _sanitize_metadata(type(self), metadata)
        if metadata["kind"] is Kind.FLAG:
            metadata |= {"required": False, "nargs": 1, "default": None}
        else:
            _sanitize_parametric_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._value = None
        self._resolved = False

    @property
    def fallback(self):
        """
        The value accessors report: the resolved value, else the default.
        """
        return self._value if self._value is not None else self._default

    def resolve(self, value, /):
        """
        Store a value produced by a token and mark the argument resolved.

        Flags always store TRUTHY; value-bearing kinds store `value` as given
        (None leaves the argument unresolved).
        """
        if value is not None and not isinstance(value, str):
            raise TypeError(f"{type(self).__typename__} value must be a string")
        if self._kind is Kind.FLAG:
            value = TRUTHY
        if value is None:
            return
        self._value = value
        self._resolved = True

    def settle(self):
        """
        Apply the default when no token resolved the argument.
        """
        if not self._resolved:
            self._value = self._default

    def clear(self):
        """
        Forget any resolved value (the declared metadata is kept).
        """
        self._value = None
        self._resolved = False


__all__ = (
    "TRUTHY",
    "Kind",
    "Argument",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
