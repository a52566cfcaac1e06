"""
Tests for the Unset sentinel and the small helpers of argosy.utils.

This module verifies:
- Unset singleton identity, falsy semantics and representation.
- Copying, deep copying and pickling preserve identity.
- PEP 604 unions with Unset work in isinstance checks.
- coalesce() only replaces the sentinel.
- rename() in its function and decorator forms.
- mirror() exposes frozen snapshots.
- ordinal() wording and suffixes.
"""
import copy
import pickle
import unittest
from threading import Thread, Lock
from types import MappingProxyType
from unittest import TestCase

from argosy.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `UnsetType` singleton.
    """

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), UnsetType())
        self.assertIs(Unset, UnsetType())

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")
        self.assertEqual(str(Unset), "Unset")

    def testFalsely(self) -> None:
        self.assertFalse(bool(Unset))

    def testNotEqualToNoneOrFalse(self) -> None:
        """
        Falsy does not imply equality with other falsy values (None/False).
        """
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testUnionInIsinstance(self) -> None:
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", str | Unset))
        self.assertFalse(isinstance(None, str | Unset))
        self.assertTrue(isinstance(Unset, Unset | int))

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPickleRoundTrip(self) -> None:
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testThreadSafetySingleton(self) -> None:
        """
        Concurrent constructions return the same instance.
        """
        results: list[UnsetType] = []
        lock: Lock = Lock()

        def worker():
            instance = UnsetType()
            with lock:
                results.append(instance)

        threads: list[Thread] = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(results), 16)
        for instance in results:
            self.assertIs(instance, Unset)

    def testFinalClass(self) -> None:
        with self.assertRaises(TypeError):
            type("UnsetSubtype", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename(), mirror() and ordinal().
    """

    def testCoalesceReplacesOnlyUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testRenameFunctionForm(self) -> None:
        def original():
            pass

        renamed = rename(original, "renamed")
        self.assertIs(renamed, original)
        self.assertEqual(renamed.__name__, "renamed")
        self.assertEqual(renamed.__qualname__, "renamed")

    def testRenameDecoratorForm(self) -> None:
        @rename("__repr__")
        def function():
            pass

        self.assertEqual(function.__name__, "__repr__")

    def testRenameRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename("name")(42)

    def testMirrorFreezesContainers(self) -> None:
        class Holder:
            items = mirror("items")
            table = mirror("table")
            tags = mirror("tags")
            label = mirror("label")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._tags = {"x"}
                self._label = "text"

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.tags, frozenset({"x"}))
        self.assertEqual(holder.label, "text")
        with self.assertRaises(AttributeError):
            holder.items = ()
        with self.assertRaises(TypeError):
            holder.table["b"] = 2

    def testMirrorRequiresString(self) -> None:
        with self.assertRaises(TypeError):
            mirror(1)

    def testOrdinalWords(self) -> None:
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testOrdinalSuffixes(self) -> None:
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(13), "13th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(111), "111th")
        self.assertEqual(ordinal(101), "101st")

    def testOrdinalRejectsNonIntegers(self) -> None:
        with self.assertRaises(TypeError):
            ordinal("1")
        with self.assertRaises(TypeError):
            ordinal(True)


if __name__ == '__main__':
    unittest.main()
