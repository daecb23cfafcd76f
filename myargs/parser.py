"""
myargs parser layer: declare, parse, query, and render command-line arguments.

What this module provides
- ArgumentParser: owns an ordered, append-only table of Argument records and:
  • Declares positionals, key-values and flags (add_positional/add_keyvalue/add_flag).
  • Scans raw tokens and assigns values to the declared arguments (parse).
  • Answers kind-restricted queries (get_positional/get_keyvalue/get_flag).
  • Renders a rich-based help listing (print_help).
  • Releases everything it owns exactly once (free, or a with-block).

Token grammar
- long form:   '--name' or '--name=value'   → matched by name.
- short form:  '-x', '-x=value' or '-xyz'    → each character matched by symbol
  (flags and key-values only); a cluster shares its single inline value.
- bare form:   'name' or 'name=value'       → matched by name, any kind.

Resolution rules
- flags resolve to "true" whatever inline value was attached.
- key-values and positionals resolve to the inline value; without '=' they stay
  unresolved and fall back to their default.
- in a cluster, only the first key-value consumes the inline value.
- an argument is resolved at most once per parse; later tokens for it are ignored.
- tokens that match nothing are ignored (strict=True turns them into faults).

After scanning, a validation pass walks the declarations in order: a required
argument left unresolved triggers MissingRequiredArgumentError, every other
unresolved argument falls back to its default.

Quick start
    from myargs import ArgumentParser

    parser = ArgumentParser("tool", description="copy things around")
    parser.add_positional("s", "source", required=True, help="file to read")
    parser.add_keyvalue("o", "output", default="out.txt", help="file to write")
    parser.add_flag("v", "verbose", help="talk more")

    with parser:
        parser.parse(["source=in.txt", "-v", "--output=copy.txt"])
        if parser.get_flag("help"):
            parser.print_help()
        print(parser.get_positional("source"), parser.get_keyvalue("output"))

Design notes
- Lookups go through name→argument and symbol→argument indexes filled at
  declaration time; the first declaration of a name or symbol wins, exactly as
  a linear scan in declaration order would. Duplicate names are not detected.
- Faults are structured exceptions by default; shell=True prints them to
  standard error and exits with status 1 instead.
"""
import difflib
import os.path
import shlex
import sys
from collections import defaultdict
from collections.abc import Iterable

from rich.console import Console, Group
from rich.text import Text

from .arguments import TRUTHY, Argument, Kind
from .faults import *
from .utils import *


def _split(token, /):
    """
    Split a token on its first '=' into (left, value).

    value is None when the token carries no '=' at all and '' when the '='
    is followed by nothing.
    """
    left, separator, value = token.partition("=")
    return left, value if separator else None


def _sanitize_text(name, object, /, *, optional=True):
    if object is None and optional:
        return None
    if not isinstance(object, str):
        raise TypeError(f"argument-parser {name!r} must be a string")
    return object


class ArgumentParser:
    """
    Argument declaration table, token scanner and help renderer.

    Parameters
    - program: Unset | str
      Program name shown in usage and fault headers. Defaults to the basename
      of sys.argv[0].
    - usage: None | str
      Explicit usage line. When None, one is synthesized from the declarations.
    - description: None | str
      Paragraph printed under the usage line.
    - epilog: None | str
      Paragraph printed after the argument listing.
    - add_help: bool
      Declare a 'help' flag with the 'h' symbol up front.
    - strict: bool
      Report unrecognized tokens as UnrecognizedTokenError and questionable
      input as warnings instead of ignoring them.
    - shell: bool
      Print faults to standard error (errors then exit with status 1) instead
      of raising exceptions/issuing warnings.
    - colorful: bool
      Style help and fault output; False renders plain text.
    """

    __introspectable__ = (
        "program",
        "usage",
        "description",
        "epilog",
        "strict",
        "shell",
        "colorful",
    )

    program = mirror("program")
    usage = mirror("usage")
    description = mirror("description")
    epilog = mirror("epilog")
    strict = mirror("strict")
    shell = mirror("shell")
    colorful = mirror("colorful")

    def __init__(
            self,
            program=Unset,
            usage=None,
            description=None,
            epilog=None,
            add_help=True,
            *,
            strict=False,
            shell=False,
            colorful=True,
    ):
        if program is Unset:
            program = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "program"
        if not _sanitize_text("program", program, optional=False).strip():
            raise ValueError("argument-parser 'program' cannot be empty")

        self._program = program.strip()
        self._usage = _sanitize_text("usage", usage)
        self._description = _sanitize_text("description", description)
        self._epilog = _sanitize_text("epilog", epilog)
        self._strict = bool(strict)
        self._shell = bool(shell)
        self._colorful = bool(colorful)

        self._arguments = []
        self._names = {}
        self._symbols = {}
        self._closed = False

        if add_help:
            self.add_flag("h", "help", "shows this help menu")

    # --- container protocol -------------------------------------------------

    def __len__(self):
        return len(self._arguments)

    def __iter__(self):
        return iter(tuple(self._arguments))

    def __contains__(self, name):
        return name in self._names

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.free()

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)
        yield "arguments", self.arguments

    def __repr__(self):
        return "argument-parser(%s)" % ", ".join("%s=%r" % item for item in self.__rich_repr__())

    @property
    def arguments(self):
        """
        The declared arguments, in declaration order.
        """
        return tuple(self._arguments)

    @property
    def closed(self):
        """
        Whether free() already released this parser.
        """
        return self._closed

    # --- declaration --------------------------------------------------------

    def _declare(self, argument):
        if self._closed:
            raise RuntimeError("cannot declare arguments on a freed argument-parser")
        self._arguments.append(argument)
        # first declaration wins, like a scan in declaration order
        self._names.setdefault(argument.name, argument)
        if argument.symbol is not None and argument.kind is not Kind.POSITIONAL:
            self._symbols.setdefault(argument.symbol, argument)
        return argument

    def add_positional(self, symbol, name, required=False, nargs=1, default=None, help=None):
        """
        Declare a positional argument.

        Positionals are matched by name ('name=value' or '--name=value'), never
        by their place on the command line. The symbol is only shown in help.
        nargs is recorded and displayed, but a single value is stored.

        Returns the new Argument.
        """
        return self._declare(Argument(
            Kind.POSITIONAL, name, symbol=symbol, required=required, nargs=nargs, default=default, help=help
        ))

    def add_keyvalue(self, symbol, name, required=False, default=None, help=None):
        """
        Declare a key-value argument ('--name=value', '-x=value' or 'name=value').

        Returns the new Argument.
        """
        return self._declare(Argument(
            Kind.KEYVALUE, name, symbol=symbol, required=required, default=default, help=help
        ))

    def add_flag(self, symbol, name, help=None):
        """
        Declare a flag ('--name', '-x', or 'x' inside a cluster). Flags are never
        required and carry no default.

        Returns the new Argument.
        """
        return self._declare(Argument(Kind.FLAG, name, symbol=symbol, help=help))

    # --- faults -------------------------------------------------------------

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this parser's runtime options (see faults.trigger).
        """
        trigger(fault, **options, parser=self, shell=self._shell, colorful=self._colorful)

    def _warn(self, fault, /):
        # questionable input is only worth a word in strict mode
        if self._strict:
            self.trigger(fault)

    def _unrecognized(self, token, input, index):
        if not self._strict:
            return
        spellings = [f"--{name}" for name in self._names]
        spellings += [f"-{symbol}" for symbol in self._symbols]
        spellings += list(self._names)
        suggestions = difflib.get_close_matches(input, spellings, 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all arguments" % (
                suggestions[0],
                self._program,
            )
        except IndexError:
            hint = "try '%s --help' to see all available arguments" % self._program
        self.trigger(UnrecognizedTokenError(
            "unrecognized argument %r in %r at %s position" % (input, token, ordinal(index)),
            title="unrecognized argument",
            code=FaultCode.UNRECOGNIZED_TOKEN,
            token=token,
            input=input,
            index=index,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNRECOGNIZED_TOKEN),
        ))

    # --- parsing ------------------------------------------------------------

    def _assign(self, argument, value, token, index):
        """
        Resolve one matched argument, honoring the at-most-once rule.

        Returns whether a value was stored.
        """
        if argument.resolved:
            self._warn(RepeatedArgumentWarning(
                "argument %r given again by %r at %s position" % (argument.name, token, ordinal(index)),
                title="repeated argument",
                code=FaultCode.REPEATED_ARGUMENT,
                token=token,
                index=index,
                argument=argument,
                hint="the first occurrence is kept; remove the repeated one",
                docs=getdoc(FaultCode.REPEATED_ARGUMENT),
            ))
            return False

        if argument.kind is Kind.FLAG:
            if value is not None:
                self._warn(FlagAssignmentWarning(
                    "flag %r at %s position cannot take a value" % (argument.name, ordinal(index)),
                    title="flag cannot take a value",
                    code=FaultCode.FLAG_ASSIGNMENT,
                    token=token,
                    index=index,
                    argument=argument,
                    hint="remove everything from '=' (for example: --%s)" % argument.name,
                    docs=getdoc(FaultCode.FLAG_ASSIGNMENT),
                ))
            argument.resolve(TRUTHY)
            return True

        if value is None:
            self._warn(MissingInlineValueWarning(
                "%s %r at %s position has no value" % (argument.kind.value, argument.name, ordinal(index)),
                title="missing inline value",
                code=FaultCode.MISSING_INLINE_VALUE,
                token=token,
                index=index,
                argument=argument,
                hint="attach the value with '=' (for example: --%s=<value>)" % argument.name,
                docs=getdoc(FaultCode.MISSING_INLINE_VALUE),
            ))
            return False
        argument.resolve(value)
        return True

    def _parse_named(self, token, index, *, prefix=""):
        name, value = _split(token[len(prefix):])
        try:
            argument = self._names[name]
        except KeyError:
            return self._unrecognized(token, prefix + name, index)
        self._assign(argument, value, token, index)

    def _parse_cluster(self, token, index):
        cluster, value = _split(token[1:])
        consumed = False
        for symbol in cluster:
            try:
                argument = self._symbols[symbol]
            except KeyError:
                self._unrecognized(token, "-" + symbol, index)
                continue

            if argument.kind is Kind.FLAG:
                self._assign(argument, None, token, index)
                continue

            if consumed:
                self._warn(SharedClusterValueWarning(
                    "key-value %r in %r at %s position gets no value: it was taken by an earlier symbol"
                    % (argument.name, token, ordinal(index)),
                    title="shared cluster value",
                    code=FaultCode.SHARED_CLUSTER_VALUE,
                    token=token,
                    index=index,
                    argument=argument,
                    hint="give each key-value its own token (for example: -%s=<value>)" % symbol,
                    docs=getdoc(FaultCode.SHARED_CLUSTER_VALUE),
                ))
                continue

            consumed = self._assign(argument, value, token, index)

        if value is not None and not consumed and cluster:
            self._warn(FlagAssignmentWarning(
                "inline value in %r at %s position was not used by any key-value" % (token, ordinal(index)),
                title="flag cannot take a value",
                code=FaultCode.FLAG_ASSIGNMENT,
                token=token,
                index=index,
                hint="remove everything from '=' (for example: -%s)" % cluster,
                docs=getdoc(FaultCode.FLAG_ASSIGNMENT),
            ))

    def parse(self, tokens=Unset, /):
        """
        Scan tokens, assign values, then validate and apply defaults.

        Parameters
        - tokens:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; will be split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as-is.

        Behavior
        - Every resolved value from a previous parse is cleared first.
        - Tokens are dispatched by shape: '--…' long, '-…' cluster, else bare.
        - Required arguments left unresolved trigger MissingRequiredArgumentError,
          whatever else was given, '--help' included.
        - When a fault is raised, every argument is cleared again before it
          propagates, so no partial parse is left behind.
        - Unresolved optional arguments fall back to their default.

        Returns
        - self, for chaining (parser.parse(argv).get_flag("verbose")).

        Raises
        - TypeError: when tokens is not a string or an iterable of strings.
        - RuntimeError: when the parser was freed.
        - MissingRequiredArgumentError / UnrecognizedTokenError: see above
          (raised only when shell=False).
        """
        if self._closed:
            raise RuntimeError("cannot parse with a freed argument-parser")

        if tokens is Unset:
            tokens = sys.argv[1:]
        elif isinstance(tokens, str):
            tokens = shlex.split(tokens)
        elif isinstance(tokens, Iterable):
            tokens = list(tokens)
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be a string or an iterable of strings")

        for argument in self._arguments:
            argument.clear()

        try:
            for index, token in enumerate(tokens, 1):
                if token.startswith("--"):
                    self._parse_named(token, index, prefix="--")
                elif token.startswith("-"):
                    self._parse_cluster(token, index)
                else:
                    self._parse_named(token, index)

            for argument in self._arguments:
                if argument.required and not argument.resolved:
                    self.trigger(MissingRequiredArgumentError(
                        "missing required %s argument %r" % (argument.kind.value, argument.name),
                        title="missing required argument",
                        code=FaultCode.MISSING_REQUIRED_ARGUMENT,
                        input=argument.name,
                        argument=argument,
                        hint="pass it as '%s=<value>' or '--%s=<value>'" % (argument.name, argument.name),
                        docs=getdoc(FaultCode.MISSING_REQUIRED_ARGUMENT),
                    ))
                argument.settle()
        except ParserException:
            for argument in self._arguments:
                argument.clear()
            raise
        return self

    # --- accessors ----------------------------------------------------------

    def get(self, name, /):
        """
        Return the first Argument declared under `name`, or None.
        """
        return self._names.get(name)

    def _lookup(self, name, kind):
        if (argument := self._names.get(name)) is None or argument.kind is not kind:
            return None
        return argument

    def get_positional(self, name, /):
        """
        Value of the positional `name` (falling back to its default), or None
        when no positional goes by that name.
        """
        if (argument := self._lookup(name, Kind.POSITIONAL)) is None:
            return None
        return argument.fallback

    def get_keyvalue(self, name, /):
        """
        Value of the key-value `name` (falling back to its default), or None
        when no key-value goes by that name.
        """
        if (argument := self._lookup(name, Kind.KEYVALUE)) is None:
            return None
        return argument.fallback

    def get_flag(self, name, /):
        """
        Whether the flag `name` was given. False for unknown names and for
        arguments of another kind.
        """
        if (argument := self._lookup(name, Kind.FLAG)) is None:
            return False
        return argument.fallback is not None

    # --- help ---------------------------------------------------------------

    def _render(self, *, description=True, usage=True, epilog=True):
        """
        Build the help renderable.

        Palette keys
        - usage-label, program-name, usage-section, description-section, epilog-section
        - group-label, symbol, flag-name, keyvalue-name, positional-name
        - separator, argument-description, required, default

        Customization
        - Define a mapping named __styles__ in __main__ to override any palette entry.
        - When colorful is False, styling is suppressed.
        """
        styles = defaultdict(str, {
            # === Head sections ===
            "usage-label": "bold #00E6FF",  # CYAN → signature info color
            "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
            "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
            "description-section": "italic #A3A3A3",  # Neutral gray
            "epilog-section": "#737373",  # Dim footer gray

            # === Group / arguments ===
            "group-label": "bold #FFFFFF",  # Pure white header
            "argument-description": "#9CA3AF",  # Muted gray
            "separator": "#36C5F0",  # colon between names and description

            # === Names ===
            "symbol": "bold #22C55E",  # GREEN short forms
            "flag-name": "bold #22C55E",  # GREEN for flags
            "keyvalue-name": "bold #00E6FF",  # CYAN for key-values
            "positional-name": "bold #FFD600",  # AMBER for positionals

            # === Annotations ===
            "required": "bold #F97316",  # ORANGE → needs attention
            "default": "#FFD600",  # AMBER like values
        } | getattr(__import__('__main__'), "__styles__", {}))

        def styler(style):
            return styles[style] if self._colorful else ""

        def text(fragment, style=""):
            return Text(str(fragment), styler(style))

        def names(argument):
            # blank padding keeps long names aligned when there is no short form
            symbol = text(f"-{argument.symbol}", "symbol") if argument.symbol else Text("  ")
            style = {
                Kind.FLAG: "flag-name",
                Kind.KEYVALUE: "keyvalue-name",
                Kind.POSITIONAL: "positional-name",
            }[argument.kind]
            return Text.assemble(symbol, " ", text(f"--{argument.name}", style))

        def annotation(argument, left, right):
            if argument.required:
                return Text.assemble(left, text("required", "required"), right)
            if argument.default is not None:
                return Text.assemble(left, "default: ", text(argument.default, "default"), right)
            return Text("")

        renders = []

        if usage:
            section = Text()
            section.append("usage", styler("usage-label")).append(": ")
            if self._usage:
                section.append(text(self._usage, "usage-section"))
            else:
                section.append(text(self._program, "program-name"))
                for argument in self._arguments:
                    match argument.kind:
                        case Kind.FLAG:
                            item = f"[--{argument.name}]"
                        case Kind.KEYVALUE:
                            item = f"--{argument.name}=<{argument.name}>"
                        case _:
                            item = f"{argument.name}=<{argument.name}>"
                    if argument.kind is not Kind.FLAG and not argument.required:
                        item = f"[{item}]"
                    section.append(" ").append(text(item, "usage-section"))
            renders.append(section)

        if description and self._description:
            renders.append(text(self._description, "description-section"))

        if self._arguments:
            listing = Text()
            listing.append(text("arguments", "group-label")).append(":")
            width = max(len(names(argument)) for argument in self._arguments)
            for argument in self._arguments:
                column = names(argument)
                column.pad_right(width - len(column))
                help = text(argument.help or "no description", "argument-description")
                colon = text(":", "separator")
                match argument.kind:
                    case Kind.FLAG:
                        line = Text.assemble(column, " ", colon, " ", help)
                    case Kind.KEYVALUE:
                        line = Text.assemble(column, " ", colon, " ", help, annotation(argument, " [", "]"))
                    case _:
                        line = Text.assemble(column, annotation(argument, " (", ")"), " ", colon, " ", help)
                listing.append("\n  ").append(line)
            renders.append(listing)

        if epilog and self._epilog:
            renders.append(text(self._epilog, "epilog-section"))

        return Group(*renders)

    def print_help(self, description=True, usage=True, epilog=True):
        """
        Print the help message to standard output.

        Sections, in order: usage line, description, one line per declared
        argument (declaration order), epilog. Each section can be switched off.
        A freed parser prints nothing.
        """
        if self._closed:
            return
        Console().print(self._render(description=description, usage=usage, epilog=epilog))

    # --- teardown -----------------------------------------------------------

    def free(self):
        """
        Release every declaration and string this parser owns.

        Idempotent: freeing twice is a no-op. Afterwards accessors report
        None/False and declaring or parsing raises RuntimeError.
        """
        if self._closed:
            return
        for argument in self._arguments:
            argument.clear()
        self._arguments.clear()
        self._names.clear()
        self._symbols.clear()
        self._program = self._usage = self._description = self._epilog = None
        self._closed = True


__all__ = (
    "ArgumentParser",
)
