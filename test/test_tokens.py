"""
Token classifier tests.

Scope
- Validate the four token categories (terminator, long switch, short cluster,
  bare word) against a command schema.
- Validate value attachment rules ("=" splitting, cluster remainders).
- Validate abbreviation (unique prefixes) and the faults raised on the spot.
- Validate the is_switch() lookahead predicate.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from argosy import Command, Flag, Option, Positional
from argosy.faults import (
    AmbiguousLongOptionError,
    FlagAssignmentError,
    OptionMissingValueError,
    UnknownLongOptionError,
    UnknownShortOptionError,
)
from argosy.tokens import *


class TestClassify(TestCase):
    """Behavioral tests for classify()."""

    def setUp(self):
        self.verbose = Flag("--verbose", "-v")
        self.all = Flag("--all", "-a")
        self.output = Option("--output", "--out", "-o")
        self.command = Command(
            self.verbose,
            self.all,
            self.output,
            Positional("files", nargs="*"),
            name="tool",
        )

    def classify(self, token, **options):
        return classify(self.command, token, index=0, **options)

    def testTerminator(self):
        self.assertEqual(self.classify("--"), Terminator("--", 0))

    def testLongFlag(self):
        token = self.classify("--verbose")
        self.assertIsInstance(token, LongSwitch)
        self.assertIs(token.argument, self.verbose)
        self.assertIsNone(token.value)

    def testLongAlias(self):
        self.assertIs(self.classify("--out").argument, self.output)

    def testLongAttachedValueSplitsAtFirstEquals(self):
        token = self.classify("--output=a=b")
        self.assertIs(token.argument, self.output)
        self.assertEqual(token.value, "a=b")

    def testLongEmptyAttachedValue(self):
        with self.assertRaises(OptionMissingValueError):
            self.classify("--output=")

    def testLongFlagAssignment(self):
        with self.assertRaises(FlagAssignmentError):
            self.classify("--verbose=yes")

    def testUnknownLong(self):
        with self.assertRaises(UnknownLongOptionError) as context:
            self.classify("--nope")
        self.assertEqual(context.exception.token, "--nope")
        self.assertEqual(context.exception.options["name"], "nope")

    def testUnknownLongSuggestion(self):
        with self.assertRaises(UnknownLongOptionError) as context:
            self.classify("--verbos")
        self.assertIn("--verbose", context.exception.options["suggestions"])
        self.assertIn("--verbose", context.exception.hint)

    def testAbbreviationDisabledByDefault(self):
        with self.assertRaises(UnknownLongOptionError):
            self.classify("--verb")

    def testAbbreviationUniquePrefix(self):
        self.assertIs(self.classify("--verb", abbreviate=True).argument, self.verbose)
        # both names of the same option share the "ou" prefix
        self.assertIs(self.classify("--ou", abbreviate=True).argument, self.output)

    def testAbbreviationAmbiguousPrefix(self):
        # --verbose and the automatic --version share "ver"
        with self.assertRaises(AmbiguousLongOptionError) as context:
            self.classify("--ver", abbreviate=True)
        self.assertIsInstance(context.exception, UnknownLongOptionError)
        self.assertEqual(context.exception.options["suggestions"], ["--verbose", "--version"])

    def testShortClusterOfFlags(self):
        token = self.classify("-va")
        self.assertIsInstance(token, ShortCluster)
        self.assertEqual(token.flags, (self.verbose, self.all))
        self.assertIsNone(token.option)

    def testShortClusterEndsWithOption(self):
        token = self.classify("-vo")
        self.assertEqual(token.flags, (self.verbose,))
        self.assertIs(token.option, self.output)
        self.assertIsNone(token.value)

    def testShortClusterRemainderIsValue(self):
        self.assertEqual(self.classify("-ofile.txt").value, "file.txt")
        self.assertEqual(self.classify("-vofile.txt").value, "file.txt")
        self.assertEqual(self.classify("-o=file.txt").value, "file.txt")
        # everything after the option is its value, even known shortcuts
        self.assertEqual(self.classify("-ova").value, "va")

    def testShortEmptyAttachedValue(self):
        with self.assertRaises(OptionMissingValueError):
            self.classify("-o=")

    def testShortFlagAssignment(self):
        with self.assertRaises(FlagAssignmentError):
            self.classify("-v=1")

    def testUnknownShortNamesTheCharacter(self):
        with self.assertRaises(UnknownShortOptionError) as context:
            self.classify("-vaz")
        self.assertEqual(context.exception.char, "z")
        self.assertEqual(context.exception.position, 3)

    def testBareWords(self):
        for token in ("file.txt", "-", "-5", "-3.14", "", "=x"):
            with self.subTest(token=token):
                self.assertEqual(self.classify(token), BareWord(token, 0))

    def testIndexAndPathAreReported(self):
        with self.assertRaises(UnknownLongOptionError) as context:
            classify(self.command, "--nope", index=4, path=("sub",))
        self.assertEqual(context.exception.index, 4)
        self.assertEqual(context.exception.path, ("sub",))
        self.assertIn("fifth position", str(context.exception))


class TestIsSwitch(TestCase):
    """Behavioral tests for is_switch()."""

    def testSwitches(self):
        for token in ("--", "--verbose", "-v", "-abc", "--x=1"):
            with self.subTest(token=token):
                self.assertTrue(is_switch(token))

    def testValues(self):
        for token in ("value", "-", "-5", "-0.5", ""):
            with self.subTest(token=token):
                self.assertFalse(is_switch(token))


if __name__ == '__main__':
    unittest.main()
