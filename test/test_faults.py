"""
Faults module behavioral tests (codes, context, rendering, triggering).

Scope
- Validate fault codes and host label overrides (__codes__ in __main__).
- Validate the structured context carried by parse errors and warnings.
- Validate copy.replace() support and trigger() in shell and non-shell modes.
- Validate rich rendering (plain and fancy layouts).

Conventions
- Test method names follow CamelCase per project convention.
"""
import copy
import io
import unittest
from contextlib import redirect_stderr
from unittest import TestCase, mock

from rich.console import Console

from argosy.faults import *


def render(fault, **options):
    console = Console(file=io.StringIO(), color_system=None, width=200)
    console.print(copy.replace(fault, **options))
    return console.file.getvalue()


class TestFaultCodes(TestCase):
    """Behavioral tests for FaultCode."""

    def testCodesAreUnique(self):
        self.assertEqual(len(set(FaultCode)), len(FaultCode.__members__))

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNKNOWN_LONG_OPTION.normalize(), "11111")

    def testNormalizeUsesHostLabels(self):
        main = __import__("__main__")
        with mock.patch.object(main, "__codes__", {FaultCode.UNKNOWN_LONG_OPTION: "E-LONG"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_LONG_OPTION.normalize(), "E-LONG")
            self.assertEqual(FaultCode.UNKNOWN_SHORT_OPTION.normalize(), "11113")


class TestSchemaErrors(TestCase):
    """Behavioral tests for schema construction errors."""

    def testHierarchy(self):
        for error in (DuplicateNameError, CyclicSchemaError, MalformedArityError):
            with self.subTest(error=error.__name__):
                self.assertTrue(issubclass(error, SchemaError))
                self.assertTrue(issubclass(error, ValueError))

    def testCodeAndPath(self):
        error = CyclicSchemaError("cycle", path=("a", "b"))
        self.assertIs(error.code, FaultCode.CYCLIC_SCHEMA)
        self.assertEqual(error.kind, error.code)
        self.assertEqual(error.path, ("a", "b"))
        self.assertEqual(str(error), "cycle")


class TestParseErrors(TestCase):
    """Behavioral tests for ParseError context and surfacing."""

    def setUp(self):
        self.error = UnknownLongOptionError(
            "unknown option or flag '--nope' at second position",
            token="--nope",
            index=1,
            path=["remote"],
            hint="try 'remote --help' to see all available options",
        )

    def testContext(self):
        self.assertIs(self.error.code, FaultCode.UNKNOWN_LONG_OPTION)
        self.assertIs(self.error.kind, FaultCode.UNKNOWN_LONG_OPTION)
        self.assertEqual(self.error.title, "unknown option or flag")
        self.assertEqual(self.error.token, "--nope")
        self.assertEqual(self.error.index, 1)
        self.assertEqual(self.error.path, ("remote",))
        self.assertIn("--help", self.error.hint)

    def testDefaults(self):
        error = MissingPositionalError()
        self.assertEqual(str(error), "")
        self.assertIsNone(error.token)
        self.assertEqual(error.path, ())

    def testAmbiguousIsUnknown(self):
        self.assertTrue(issubclass(AmbiguousLongOptionError, UnknownLongOptionError))
        self.assertIs(AmbiguousLongOptionError().code, FaultCode.AMBIGUOUS_LONG_OPTION)

    def testOptionsAreReadOnly(self):
        with self.assertRaises(TypeError):
            self.error.options["token"] = "--other"

    def testReplaceKeepsTypeAndMergesOptions(self):
        replaced = copy.replace(self.error, shell=True)
        self.assertIsInstance(replaced, UnknownLongOptionError)
        self.assertIsNot(replaced, self.error)
        self.assertTrue(replaced.options["shell"])
        self.assertEqual(replaced.token, "--nope")
        self.assertNotIn("shell", self.error.options)

    def testTriggerRaisesOutsideShell(self):
        with self.assertRaises(UnknownLongOptionError) as context:
            trigger(self.error)
        self.assertEqual(context.exception.index, 1)

    def testTriggerExitsInShell(self):
        stream = io.StringIO()
        with redirect_stderr(stream), self.assertRaises(SystemExit) as context:
            trigger(self.error, shell=True, colorful=False, prog="git")
        self.assertEqual(context.exception.code, 1)
        self.assertIn("'--nope' at second position", stream.getvalue())

    def testTriggerRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))

    def testRenderPlain(self):
        output = render(self.error, prog="git", colorful=False)
        self.assertIn("[ git — 11111 | Unknown Option Or Flag ]", output)
        self.assertIn("unknown option or flag '--nope' at second position", output)
        self.assertIn("→ try 'remote --help' to see all available options", output)

    def testRenderFancy(self):
        output = render(self.error, prog="git", colorful=False, fancy=True)
        self.assertIn("git — 11111 | Unknown Option Or Flag", output)
        self.assertIn("╭", output)

    def testRenderUsesHostProgramName(self):
        main = __import__("__main__")
        with mock.patch.object(main, "__prog__", "hosted", create=True):
            self.assertIn("[ hosted — ", render(self.error, prog="git", colorful=False))


class TestWarnings(TestCase):
    """Behavioral tests for CommandWarning surfacing."""

    def setUp(self):
        self.warning = RepeatedOptionWarning(
            "option '--output' at third position was already provided; the last value wins",
            token="--output",
            index=2,
            path=(),
        )

    def testContext(self):
        self.assertIs(self.warning.code, FaultCode.REPEATED_OPTION)
        self.assertEqual(self.warning.title, "repeated option")
        self.assertEqual(self.warning.index, 2)

    def testTriggerWarnsOutsideShell(self):
        with self.assertWarns(RepeatedOptionWarning):
            trigger(self.warning)

    def testTriggerPrintsInShell(self):
        stream = io.StringIO()
        with redirect_stderr(stream):
            trigger(self.warning, shell=True, colorful=False, prog="tool")
        self.assertIn("[ tool — 12111 | Repeated Option ]", stream.getvalue())

    def testReplace(self):
        replaced = copy.replace(self.warning, hint="keep a single '--output'")
        self.assertIsInstance(replaced, RepeatedOptionWarning)
        self.assertEqual(replaced.hint, "keep a single '--output'")


if __name__ == '__main__':
    unittest.main()
