"""
Parser behavioral tests (declaration, scanning, validation, accessors, teardown).

Scope
- Validate the three token shapes: long ('--name[=value]'), clustered short
  ('-abc[=value]') and bare ('name[=value]').
- Validate default fallback, the required-argument check and kind isolation.
- Validate strict-mode faults and the at-most-once resolution rule.
- Validate the free()/context-manager lifecycle.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (ArgumentParser, Kind, faults).
"""

from __future__ import annotations

import sys
import unittest
import warnings
from contextlib import redirect_stderr
from io import StringIO
from unittest import TestCase, mock

from myargs import (
    ArgumentParser,
    Kind,
    FaultCode,
    MissingRequiredArgumentError,
    UnrecognizedTokenError,
    FlagAssignmentWarning,
    MissingInlineValueWarning,
    SharedClusterValueWarning,
    RepeatedArgumentWarning,
)


def _parser(**options):
    parser = ArgumentParser("tool", **options)
    parser.add_positional("s", "source", default="in.txt", help="file to read")
    parser.add_keyvalue("o", "output", default="out.txt", help="file to write")
    parser.add_keyvalue("l", "level", help="compression level")
    parser.add_flag("a", "all", help="include hidden files")
    parser.add_flag("b", "brief", help="print less")
    return parser


class TestDeclaration(TestCase):
    """Behavioral tests for the add_* declaration API."""

    def testHelpFlagRegisteredByDefault(self):
        parser = ArgumentParser("tool")
        self.assertEqual(len(parser), 1)
        help = parser.get("help")
        self.assertIs(help.kind, Kind.FLAG)
        self.assertEqual(help.symbol, "h")

    def testHelpFlagCanBeDisabled(self):
        parser = ArgumentParser("tool", add_help=False)
        self.assertEqual(len(parser), 0)
        self.assertNotIn("help", parser)

    def testDeclarationOrderIsPreserved(self):
        parser = _parser(add_help=False)
        self.assertEqual([argument.name for argument in parser], ["source", "output", "level", "all", "brief"])
        self.assertEqual(tuple(parser), parser.arguments)

    def testAddReturnsTheRecord(self):
        parser = ArgumentParser("tool", add_help=False)
        argument = parser.add_keyvalue("o", "output", True, "out.txt", "file to write")
        self.assertIs(parser.get("output"), argument)
        self.assertTrue(argument.required)
        self.assertEqual(argument.default, "out.txt")
        self.assertEqual(argument.help, "file to write")

    def testFlagIsNeverRequired(self):
        parser = ArgumentParser("tool", add_help=False)
        flag = parser.add_flag("v", "verbose")
        self.assertFalse(flag.required)
        self.assertIsNone(flag.default)

    def testNulSymbolMeansNoShortForm(self):
        parser = ArgumentParser("tool", add_help=False)
        self.assertIsNone(parser.add_flag("\0", "verbose").symbol)

    def testEmptyNameRejected(self):
        parser = ArgumentParser("tool")
        with self.assertRaises(ValueError):
            parser.add_flag("v", "")

    def testPositionalKeepsDeclaredNargs(self):
        parser = ArgumentParser("tool", add_help=False)
        self.assertEqual(parser.add_positional("f", "files", nargs=3).nargs, 3)

    def testEmptyProgramRejected(self):
        with self.assertRaises(ValueError):
            ArgumentParser("  ")

    def testProgramDefaultsToArgvBasename(self):
        with mock.patch.object(sys, "argv", ["/usr/local/bin/tool", "--help"]):
            self.assertEqual(ArgumentParser().program, "tool")


class TestLongForm(TestCase):
    """Behavioral tests for '--name' and '--name=value' tokens."""

    def testEqualsSplitting(self):
        parser = _parser().parse(["--output=result.txt"])
        self.assertEqual(parser.get_keyvalue("output"), "result.txt")

    def testSplitsOnFirstEqualsOnly(self):
        parser = _parser().parse(["--output=a=b"])
        self.assertEqual(parser.get_keyvalue("output"), "a=b")

    def testEmptyInlineValueIsKept(self):
        parser = _parser().parse(["--output="])
        self.assertEqual(parser.get_keyvalue("output"), "")

    def testFlagPresence(self):
        parser = _parser().parse(["--all"])
        self.assertTrue(parser.get_flag("all"))
        self.assertFalse(parser.get_flag("brief"))

    def testFlagIgnoresInlineValue(self):
        parser = _parser().parse(["--all=no"])
        self.assertTrue(parser.get_flag("all"))
        self.assertEqual(parser.get("all").value, "true")

    def testKeyValueWithoutEqualsFallsBackToDefault(self):
        parser = _parser().parse(["--output"])
        self.assertEqual(parser.get_keyvalue("output"), "out.txt")
        self.assertFalse(parser.get("output").resolved)

    def testPositionalByLongName(self):
        parser = _parser().parse(["--source=data.csv"])
        self.assertEqual(parser.get_positional("source"), "data.csv")


class TestClusteredShortForm(TestCase):
    """Behavioral tests for '-x', '-x=value' and '-xyz' tokens."""

    def testSingleShortFlag(self):
        parser = _parser().parse(["-a"])
        self.assertTrue(parser.get_flag("all"))

    def testClusteredFlags(self):
        parser = ArgumentParser("tool", add_help=False)
        parser.add_flag("a", "a")
        parser.add_flag("b", "b")
        parser.parse(["-ab"])
        self.assertTrue(parser.get_flag("a"))
        self.assertTrue(parser.get_flag("b"))

    def testShortKeyValue(self):
        parser = _parser().parse(["-o=result.txt"])
        self.assertEqual(parser.get_keyvalue("output"), "result.txt")

    def testFlagsAndKeyValueInOneCluster(self):
        parser = _parser().parse(["-abo=result.txt"])
        self.assertTrue(parser.get_flag("all"))
        self.assertTrue(parser.get_flag("brief"))
        self.assertEqual(parser.get_keyvalue("output"), "result.txt")

    def testOnlyFirstKeyValueConsumesClusterValue(self):
        parser = _parser().parse(["-ol=9"])
        self.assertEqual(parser.get_keyvalue("output"), "9")
        self.assertIsNone(parser.get_keyvalue("level"))

    def testRepeatedKeyValueLeavesClusterValueForNext(self):
        parser = _parser().parse(["--output=a", "-ol=9"])
        self.assertEqual(parser.get_keyvalue("output"), "a")
        self.assertEqual(parser.get_keyvalue("level"), "9")

    def testPositionalSymbolIsNotMatched(self):
        parser = _parser().parse(["-s=data.csv"])
        self.assertEqual(parser.get_positional("source"), "in.txt")

    def testUnknownCharactersIgnored(self):
        parser = _parser().parse(["-xaz"])
        self.assertTrue(parser.get_flag("all"))

    def testLoneDashIgnored(self):
        parser = _parser().parse(["-"])
        self.assertFalse(parser.get_flag("all"))

    def testFirstDeclaredSymbolWins(self):
        parser = ArgumentParser("tool", add_help=False)
        parser.add_flag("v", "verbose")
        parser.add_flag("v", "version")
        parser.parse(["-v"])
        self.assertTrue(parser.get_flag("verbose"))
        self.assertFalse(parser.get_flag("version"))


class TestBareForm(TestCase):
    """Behavioral tests for tokens without a leading dash."""

    def testPositionalMatchedByName(self):
        parser = _parser().parse(["source=data.csv"])
        self.assertEqual(parser.get_positional("source"), "data.csv")

    def testBareFlagByName(self):
        parser = _parser().parse(["brief"])
        self.assertTrue(parser.get_flag("brief"))

    def testBareValueIsNotBoundByPosition(self):
        parser = _parser().parse(["data.csv"])
        self.assertEqual(parser.get_positional("source"), "in.txt")

    def testStringPromptIsShellSplit(self):
        parser = _parser().parse("'source=my data.csv' --all")
        self.assertEqual(parser.get_positional("source"), "my data.csv")
        self.assertTrue(parser.get_flag("all"))


class TestValidation(TestCase):
    """Behavioral tests for the post-scan validation pass."""

    def testDefaultRoundTrip(self):
        parser = _parser().parse([])
        self.assertEqual(parser.get_positional("source"), "in.txt")
        self.assertEqual(parser.get_keyvalue("output"), "out.txt")
        self.assertIsNone(parser.get_keyvalue("level"))

    def testMissingRequiredRaises(self):
        parser = ArgumentParser("tool")
        parser.add_positional("f", "file", required=True)
        with self.assertRaises(MissingRequiredArgumentError) as context:
            parser.parse([])
        self.assertEqual(context.exception.options["input"], "file")
        self.assertIs(context.exception.options["code"], FaultCode.MISSING_REQUIRED_ARGUMENT)
        self.assertIs(context.exception.options["parser"], parser)

    def testRequiredWithDefaultStillRaises(self):
        parser = ArgumentParser("tool")
        parser.add_keyvalue("o", "output", required=True, default="out.txt")
        with self.assertRaises(MissingRequiredArgumentError):
            parser.parse([])

    def testRequiredSatisfied(self):
        parser = ArgumentParser("tool")
        parser.add_positional("f", "file", required=True)
        self.assertEqual(parser.parse(["file=a.txt"]).get_positional("file"), "a.txt")

    def testHelpFlagDoesNotSkipRequiredCheck(self):
        parser = ArgumentParser("tool")
        parser.add_positional("f", "file", required=True)
        with self.assertRaises(MissingRequiredArgumentError):
            parser.parse(["--help"])
        self.assertFalse(parser.get_flag("help"))

    def testMissingRequiredExitsInShellMode(self):
        parser = ArgumentParser("tool", shell=True, colorful=False)
        parser.add_positional("f", "file", required=True)
        stream = StringIO()
        with redirect_stderr(stream), self.assertRaises(SystemExit) as context:
            parser.parse([])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("missing required positional argument 'file'", stream.getvalue())

    def testUnknownTokenIgnored(self):
        parser = _parser().parse(["--nonexistent=5"])
        self.assertEqual(parser.get_keyvalue("output"), "out.txt")
        self.assertFalse(any(argument.resolved for argument in parser))

    def testReparseStartsFromScratch(self):
        parser = _parser()
        parser.parse(["--all", "--output=x"])
        parser.parse([])
        self.assertFalse(parser.get_flag("all"))
        self.assertEqual(parser.get_keyvalue("output"), "out.txt")

    def testFirstOccurrenceWins(self):
        parser = _parser().parse(["--output=first", "-o=second"])
        self.assertEqual(parser.get_keyvalue("output"), "first")

    def testNonStringTokensRejected(self):
        with self.assertRaises(TypeError):
            _parser().parse(["--all", 3])

    def testParseDefaultsToArgv(self):
        with mock.patch.object(sys, "argv", ["tool", "--brief"]):
            parser = _parser().parse()
        self.assertTrue(parser.get_flag("brief"))


class TestAccessors(TestCase):
    """Behavioral tests for the kind-restricted getters."""

    def testGetFlagOnKeyValueIsFalse(self):
        parser = _parser().parse(["--output=x"])
        self.assertFalse(parser.get_flag("output"))

    def testGetKeyValueOnFlagIsNone(self):
        parser = _parser().parse(["--all"])
        self.assertIsNone(parser.get_keyvalue("all"))

    def testGetPositionalOnKeyValueIsNone(self):
        parser = _parser().parse([])
        self.assertIsNone(parser.get_positional("output"))

    def testUnknownNames(self):
        parser = _parser().parse([])
        self.assertIsNone(parser.get_positional("nope"))
        self.assertIsNone(parser.get_keyvalue("nope"))
        self.assertFalse(parser.get_flag("nope"))
        self.assertIsNone(parser.get("nope"))

    def testDefaultVisibleBeforeParse(self):
        self.assertEqual(_parser().get_keyvalue("output"), "out.txt")

    def testFirstDeclaredNameWins(self):
        parser = ArgumentParser("tool", add_help=False)
        parser.add_flag("n", "name")
        parser.add_keyvalue("m", "name", default="x")
        parser.parse(["--name=y"])
        self.assertTrue(parser.get_flag("name"))
        self.assertIsNone(parser.get_keyvalue("name"))


class TestStrictMode(TestCase):
    """Behavioral tests for strict=True faults."""

    def testUnrecognizedLongToken(self):
        with self.assertRaises(UnrecognizedTokenError) as context:
            _parser(strict=True).parse(["--outptu=x"])
        self.assertEqual(context.exception.options["input"], "--outptu")
        self.assertIn("--output", context.exception.options["suggestions"])
        self.assertEqual(context.exception.options["index"], 1)

    def testUnrecognizedClusterCharacter(self):
        with self.assertRaises(UnrecognizedTokenError) as context:
            _parser(strict=True).parse(["--all", "-bz"])
        self.assertEqual(context.exception.options["input"], "-z")
        self.assertEqual(context.exception.options["index"], 2)

    def testFaultClearsEarlierValues(self):
        parser = _parser(strict=True)
        with self.assertRaises(UnrecognizedTokenError):
            parser.parse(["--all", "--output=x", "--bogus"])
        self.assertFalse(parser.get("all").resolved)
        self.assertFalse(parser.get("output").resolved)
        self.assertEqual(parser.get_keyvalue("output"), "out.txt")

    def testFlagAssignmentWarns(self):
        with self.assertWarns(FlagAssignmentWarning):
            parser = _parser(strict=True).parse(["--all=yes"])
        self.assertTrue(parser.get_flag("all"))

    def testMissingInlineValueWarns(self):
        with self.assertWarns(MissingInlineValueWarning):
            _parser(strict=True).parse(["--output"])

    def testSharedClusterValueWarns(self):
        with self.assertWarns(SharedClusterValueWarning):
            _parser(strict=True).parse(["-ol=9"])

    def testRepeatedArgumentWarns(self):
        with self.assertWarns(RepeatedArgumentWarning):
            _parser(strict=True).parse(["--all", "-a"])

    def testLenientModeStaysQuiet(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            _parser().parse(["--all=yes", "--output", "-ol=9", "--all", "--unknown"])

    def testShellModePrintsWarnings(self):
        stream = StringIO()
        with redirect_stderr(stream):
            _parser(strict=True, shell=True, colorful=False).parse(["--all=yes"])
        self.assertIn("flag 'all' at first position cannot take a value", stream.getvalue())


class TestTeardown(TestCase):
    """Behavioral tests for free() and the context-manager protocol."""

    def testFreeReleasesEverything(self):
        parser = _parser()
        parser.parse(["--all"])
        parser.free()
        self.assertTrue(parser.closed)
        self.assertEqual(len(parser), 0)
        self.assertFalse(parser.get_flag("all"))
        self.assertIsNone(parser.get_keyvalue("output"))
        self.assertIsNone(parser.program)

    def testFreeIsIdempotent(self):
        parser = ArgumentParser("tool", add_help=False)
        parser.free()
        parser.free()
        self.assertTrue(parser.closed)

    def testContextManagerFrees(self):
        with _parser() as parser:
            self.assertFalse(parser.closed)
        self.assertTrue(parser.closed)

    def testDeclareAfterFreeRaises(self):
        parser = _parser()
        parser.free()
        with self.assertRaises(RuntimeError):
            parser.add_flag("z", "zip")
        with self.assertRaises(RuntimeError):
            parser.parse([])


if __name__ == "__main__":
    unittest.main()
