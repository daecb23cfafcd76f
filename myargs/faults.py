"""
myargs faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
- ParserException / ParserWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/colorful).
- getdoc(): optional description lookup for a code from the host application.

Which faults exist
- MissingRequiredArgumentError: a required argument was never resolved. The
  only fault raised outside strict mode.
- UnrecognizedTokenError: a token matched no declaration (strict mode only;
  otherwise such tokens are ignored without a word).
- FlagAssignmentWarning, MissingInlineValueWarning, SharedClusterValueWarning,
  RepeatedArgumentWarning: questionable but recoverable input (strict mode only).

Integration
- The parser builds a fault and calls trigger(fault, **context).
- In non-shell mode, exceptions are raised and warnings go through the warnings
  module; in shell mode, both are rendered via rich on standard error and
  errors end the process with exit status 1.
"""
import copy
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - tokens (1111x)
      • UNRECOGNIZED_TOKEN
    - arguments (1112x)
      • MISSING_REQUIRED_ARGUMENT
    - warnings (1211x)
      • FLAG_ASSIGNMENT, MISSING_INLINE_VALUE, SHARED_CLUSTER_VALUE,
        REPEATED_ARGUMENT

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a string
      via normalize() so hosts can remap them if desired (e.g., to shorter labels).
    """
    # --- token errors (11xxx) ---
    UNRECOGNIZED_TOKEN          = 11112

    # --- argument errors (11xxx) ---
    MISSING_REQUIRED_ARGUMENT   = 11125

    # --- warnings (12xxx) ---
    FLAG_ASSIGNMENT             = 12113
    MISSING_INLINE_VALUE        = 12114
    SHARED_CLUSTER_VALUE        = 12115
    REPEATED_ARGUMENT           = 12116

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    build the rich renderable shared by exceptions and warnings.

    layout
    - header: "[ prog — code | title ]"
    - body: the message, then "→ hint" when a hint is present.

    palette keys ending with "-title"/"-message" are looked up under the
    fault family prefix ("error" or "warning").
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)
    family = "error" if isinstance(fault, ParserException) else "warning"

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    try:
        prog = getattr(main, "__prog__", fault.options["parser"].program)
    except KeyError:
        prog = "myargs"

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(fault.options["code"].normalize() if "code" in fault.options else "", "code"),
        " | ",
        text(fault.options.get("title", family).title(), f"{family}-title"),
        " ]",
    )
    message = text(fault.message, f"{family}-message")
    if not (hint := fault.options.get("hint")):
        return Group(header, message)
    return Group(header, message, Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))


class ParserException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MissingRequiredArgumentError(ParserException): ...
class UnrecognizedTokenError(ParserException): ...


class ParserWarning(ABC, Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class FlagAssignmentWarning(ParserWarning): ...
class MissingInlineValueWarning(ParserWarning): ...
class SharedClusterValueWarning(ParserWarning): ...
class RepeatedArgumentWarning(ParserWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are
      raised and warnings are issued through warnings.warn().

    typical options
    - parser, shell, colorful, title, code, hint, docs, and any other context the
      reporter may want to show (e.g., token/index/argument).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "ParserException",
    "MissingRequiredArgumentError",
    "UnrecognizedTokenError",
    "ParserWarning",
    "FlagAssignmentWarning",
    "MissingInlineValueWarning",
    "SharedClusterValueWarning",
    "RepeatedArgumentWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
