"""
Faults behavioral tests.

Scope
- Exception/warning construction, immutability of options and copy.replace.
- trigger(): raise outside shell mode, render + exit in shell mode, deferred mode.
- Rendering through rich: header, message, hint, plain output when colorful=False.
- FaultCode normalization and getdoc().
"""

import copy
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from bashman import (
    BashmanException,
    CreditConflictError,
    FaultCode,
    SkippedArtifactWarning,
    getdoc,
    trigger,
)


def capture():
    return Console(file=io.StringIO(), color_system=None, width=120)


class TestException(TestCase):
    """Behavioral tests for exception objects."""

    def testMessageAndOptions(self):
        fault = CreditConflictError("manual credit a 1.0.0 collides", code=FaultCode.CREDIT_CONFLICT)
        self.assertEqual(str(fault), "manual credit a 1.0.0 collides")
        self.assertIs(fault.options["code"], FaultCode.CREDIT_CONFLICT)
        self.assertIsInstance(fault, BashmanException)

    def testOptionsAreReadOnly(self):
        fault = CreditConflictError("boom")
        with self.assertRaises(TypeError):
            fault.options["code"] = FaultCode.WRITE_FAILED

    def testReplaceMergesOptions(self):
        fault = CreditConflictError("boom", title="credit conflict")
        derived = copy.replace(fault, shell=True)
        self.assertIsInstance(derived, CreditConflictError)
        self.assertEqual(derived.message, "boom")
        self.assertEqual(dict(derived.options), {"title": "credit conflict", "shell": True})
        self.assertEqual(dict(fault.options), {"title": "credit conflict"})

    def testMessageDefaultsToEmpty(self):
        self.assertEqual(str(CreditConflictError()), "")


class TestTrigger(TestCase):
    """Behavioral tests for surfacing faults."""

    def testRaisesOutsideShell(self):
        with self.assertRaises(CreditConflictError):
            trigger(CreditConflictError("boom"))

    def testShellRendersAndExits(self):
        console = capture()
        with mock.patch("bashman.faults.console", console):
            with self.assertRaises(SystemExit) as context:
                trigger(CreditConflictError("boom", code=FaultCode.CREDIT_CONFLICT, title="credit conflict"), shell=True)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("boom", console.file.getvalue())

    def testDeferredDoesNotExit(self):
        console = capture()
        with mock.patch("bashman.faults.console", console):
            trigger(CreditConflictError("boom"), shell=True, deferred=True)
        self.assertIn("boom", console.file.getvalue())

    def testWarningOutsideShell(self):
        with self.assertWarns(SkippedArtifactWarning):
            trigger(SkippedArtifactWarning("skipped", code=FaultCode.SKIPPED_ARTIFACT))

    def testWarningInShellPrints(self):
        console = capture()
        with mock.patch("bashman.faults.console", console):
            trigger(SkippedArtifactWarning("skipped"), shell=True)
        self.assertIn("skipped", console.file.getvalue())

    def testRejectsNonFault(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestRendering(TestCase):
    """Behavioral tests for rich rendering."""

    def render(self, fault):
        console = capture()
        console.print(fault)
        return console.file.getvalue()

    def testHeaderMessageAndHint(self):
        text = self.render(CreditConflictError(
            "manual credit a 1.0.0 collides",
            code=FaultCode.CREDIT_CONFLICT,
            title="credit conflict",
            hint="remove the manual credit",
            prog="bashman",
        ))
        self.assertIn("[ bashman · 11311 | Credit Conflict ]", text)
        self.assertIn("manual credit a 1.0.0 collides", text)
        self.assertIn("→ remove the manual credit", text)

    def testUnknownCode(self):
        text = self.render(CreditConflictError("boom", colorful=False, prog="bashman"))
        self.assertIn("· ? |", text)
        self.assertIn("Creditconflicterror", text)

    def testFancyPanel(self):
        text = self.render(CreditConflictError("boom", fancy=True, ratio=0.5))
        self.assertIn("boom", text)
        self.assertIn("╭", text)


class TestCodes(TestCase):
    """Behavioral tests for codes and documentation lookup."""

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.MANIFEST_NOT_FOUND.normalize(), "11101")

    def testCodesAreUnique(self):
        self.assertEqual(len({code.value for code in FaultCode}), len(FaultCode))

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.WRITE_FAILED))
        with self.assertRaises(TypeError):
            getdoc(11401)


if __name__ == "__main__":
    unittest.main()
