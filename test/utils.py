"""
Tests for the shared helpers in argbind.utils.

This module verifies:
- The Unset sentinel: singleton identity, falsy semantics, copy/pickle
  identity, PEP 604 unions and finality.
- coalesce(): only Unset is replaced.
- spell(): default command-line spellings of declared names.
- mirror(): read-only, frozen views of private container fields.
- rename(): direct and decorator forms.
"""
import copy
import pickle
import unittest
from types import MappingProxyType
from unittest import TestCase

from argbind.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the Unset singleton.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the exported instance on every call.
        """
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsy(self) -> None:
        self.assertFalse(Unset)

    def testNotEqualToNoneOrFalse(self) -> None:
        """
        Falsy does not imply equality with other falsy values.
        """
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPickleRoundTrip(self) -> None:
        """
        Pickle round-trips preserve the identity of the singleton.
        """
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnionWithTypes(self) -> None:
        """
        str | Unset works inside isinstance().
        """
        self.assertTrue(isinstance("x", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testNoSubclass(self) -> None:
        with self.assertRaises(TypeError):
            class Sub(UnsetType):  # noqa: F841
                pass


class CoalesceTest(TestCase):

    def testUnsetReplaced(self) -> None:
        self.assertEqual(coalesce(Unset, "main"), "main")
        self.assertIsNone(coalesce(Unset))

    def testFalsyValuesPassThrough(self) -> None:
        self.assertIsNone(coalesce(None, "main"))
        self.assertIs(coalesce(False, True), False)
        self.assertEqual(coalesce("", "main"), "")
        self.assertEqual(coalesce([], ["."]), [])


class SpellTest(TestCase):

    def testShortName(self) -> None:
        self.assertEqual(spell("f"), "-f")

    def testLongName(self) -> None:
        self.assertEqual(spell("force"), "--force")

    def testUnderscoresBecomeDashes(self) -> None:
        self.assertEqual(spell("dry_run"), "--dry-run")


class MirrorTest(TestCase):

    def setUp(self) -> None:
        class Holder:
            items = mirror("items")
            mapping = mirror("mapping")
            scalar = mirror("scalar")

            def __init__(self):
                self._items = ["a", ["b"]]
                self._mapping = {"k": ["v"]}
                self._scalar = "text"

        self.holder = Holder()

    def testSequenceFrozen(self) -> None:
        self.assertEqual(self.holder.items, ("a", ("b",)))

    def testMappingFrozen(self) -> None:
        self.assertIsInstance(self.holder.mapping, MappingProxyType)
        self.assertEqual(self.holder.mapping["k"], ("v",))

    def testStringUntouched(self) -> None:
        self.assertEqual(self.holder.scalar, "text")

    def testReadOnly(self) -> None:
        with self.assertRaises(AttributeError):
            self.holder.items = ()

    def testNonStringRejected(self) -> None:
        with self.assertRaises(TypeError):
            mirror(1)


class RenameTest(TestCase):

    def testDirectForm(self) -> None:
        def function():
            pass

        rename(function, "renamed")
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testNonCallableRejected(self) -> None:
        with self.assertRaises(TypeError):
            rename(1, "renamed")

    def testWrongArity(self) -> None:
        with self.assertRaises(TypeError):
            rename()


if __name__ == "__main__":
    unittest.main()
