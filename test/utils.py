"""
Tests for the internal utilities (Unset sentinel, coalesce, rename, mirror).
"""
import unittest
from unittest import TestCase

from pennant.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the Unset sentinel and its helpers.
    """

    def testSingleton(self) -> None:
        self.assertIs(Unset, UnsetType())

    def testFalsyButNotNone(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            class Sub(UnsetType):  # NOQA: F-841
                pass

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameBothForms(self) -> None:
        def first():
            pass

        self.assertIs(rename(first, "renamed"), first)
        self.assertEqual(first.__name__, "renamed")

        @rename("decorated")
        def second():
            pass

        self.assertEqual(second.__qualname__, "decorated")

        with self.assertRaises(TypeError):
            rename(len, "size")

    def testMirrorIsReadOnly(self) -> None:
        class Box:
            value = mirror("value")

            def __init__(self):
                self._value = 3

        box = Box()
        self.assertEqual(box.value, 3)
        with self.assertRaises(AttributeError):
            box.value = 4


if __name__ == '__main__':
    unittest.main()
