"""
Interface model behavioral tests.

Scope
- Validate entry construction (Switch, Option, Argument, Section, Subcommand):
  keyword shapes, trimming, required fields, applies_to normalization.
- Validate App cross-entry invariants and their precedence.
- Validate per-scope queries.

Conventions
- Test method names follow CamelCase per project convention.
- Never pass explicit None where a string is expected unless the test is about rejecting it.
"""

import unittest
from unittest import TestCase

from bashman import (
    App,
    Argument,
    DuplicateKeyError,
    DuplicateSubcommandError,
    EmptyFieldError,
    InvalidKeywordError,
    MalformedSectionError,
    MissingKeyError,
    MultipleArgumentsError,
    Option,
    Section,
    Subcommand,
    Switch,
    UnknownSubcommandError,
)


class TestSwitch(TestCase):
    """Behavioral tests for Switch entries."""

    def testShortAndLongAreSplit(self):
        s = Switch("--help", "-h", description="Print help.")
        self.assertEqual(s.short, "-h")
        self.assertEqual(s.long, "--help")
        self.assertEqual(s.keys, ("-h", "--help"))

    def testAppliesToDefaultsToTopLevel(self):
        self.assertEqual(Switch("-q").applies_to, frozenset({""}))

    def testAppliesToIsNormalized(self):
        s = Switch("-q", applies_to=["build", "build", ""])
        self.assertEqual(s.applies_to, frozenset({"", "build"}))

    def testAppliesToRejectsPlainString(self):
        with self.assertRaises(TypeError):
            Switch("-q", applies_to="build")

    def testKeysAreTrimmed(self):
        self.assertEqual(Switch("  --verbose ").long, "--verbose")

    def testMissingKeyRejected(self):
        with self.assertRaises(MissingKeyError):
            Switch(description="Nothing to type.")

    def testInvalidShortKeyRejected(self):
        for key in ("-", "-ab", "h", "-?", "---x"):
            with self.subTest(key=key), self.assertRaises(InvalidKeywordError):
                Switch(key)

    def testInvalidLongKeyRejected(self):
        for key in ("--", "--_x", "--with space", "help"):
            with self.subTest(key=key), self.assertRaises(InvalidKeywordError):
                Switch(key)

    def testTwoShortKeysRejected(self):
        with self.assertRaises(DuplicateKeyError):
            Switch("-a", "-b")

    def testDescriptionDefaultsToNone(self):
        self.assertIsNone(Switch("-h").description)

    def testDescriptionExplicitNoneRejected(self):
        with self.assertRaises(TypeError):
            Switch("-h", description=None)

    def testBlankDescriptionIsAbsent(self):
        self.assertIsNone(Switch("-h", description="   ").description)
        self.assertIsNone(Subcommand("build", description="").description)

    def testDescriptionTrimmed(self):
        self.assertEqual(Switch("-h", description="  Print help.  ").description, "Print help.")

    def testSubclassingRejected(self):
        with self.assertRaises(TypeError):
            class Custom(Switch):
                pass


class TestOption(TestCase):
    """Behavioral tests for Option entries."""

    def testDefaults(self):
        o = Option("-o", "--out")
        self.assertIsNone(o.label)
        self.assertFalse(o.path)
        self.assertFalse(o.duplicate)

    def testLabelAndPath(self):
        o = Option("--out", label="<FILE>", path=True)
        self.assertEqual(o.label, "<FILE>")
        self.assertTrue(o.path)
        self.assertEqual(o.keys, ("--out",))

    def testMissingKeyRejected(self):
        with self.assertRaises(MissingKeyError):
            Option(label="<FILE>")


class TestArgumentAndSubcommand(TestCase):
    """Behavioral tests for Argument and Subcommand entries."""

    def testArgumentRequiresLabel(self):
        with self.assertRaises(EmptyFieldError):
            Argument("  ")

    def testBlankSectionNameRejected(self):
        with self.assertRaises(EmptyFieldError):
            Section(" ", lines=["x"])

    def testArgumentAppliesTo(self):
        self.assertEqual(Argument("<FILE>", applies_to=["run"]).applies_to, frozenset({"run"}))

    def testSubcommandNameDefaultsToCmd(self):
        s = Subcommand("build")
        self.assertEqual(s.name, "build")
        self.assertIsNone(s.description)

    def testSubcommandExplicitName(self):
        self.assertEqual(Subcommand("build", name="Builder").name, "Builder")

    def testSubcommandInvalidKeyword(self):
        for cmd in ("", "-build", "bu ild", "_x"):
            with self.subTest(cmd=cmd), self.assertRaises(InvalidKeywordError):
                Subcommand(cmd)


class TestSection(TestCase):
    """Behavioral tests for Section entries."""

    def testLines(self):
        s = Section("Notes", lines=["One.", "Two."])
        self.assertEqual(s.lines, ("One.", "Two."))
        self.assertEqual(s.items, ())
        self.assertFalse(s.inside)

    def testItems(self):
        s = Section("Optimizers", inside=True, items=[("MozJPEG", "JPEG"), ["Oxipng", "PNG"]])
        self.assertEqual(s.items, (("MozJPEG", "JPEG"), ("Oxipng", "PNG")))

    def testNeitherRejected(self):
        with self.assertRaises(MalformedSectionError):
            Section("Empty")

    def testBothRejected(self):
        with self.assertRaises(MalformedSectionError):
            Section("Both", lines=["x"], items=[("a", "b")])

    def testBlankLinesSeparateParagraphs(self):
        s = Section("Notes", lines=["", "  First paragraph. ", "", "Second paragraph.", "", " "])
        self.assertEqual(s.lines, ("First paragraph.", "", "Second paragraph."))

    def testOnlyBlankLinesRejected(self):
        with self.assertRaises(MalformedSectionError):
            Section("Blank", lines=["", "  "])

    def testMalformedItemRejected(self):
        with self.assertRaises(TypeError):
            Section("Bad", items=[("only-one",)])


class TestApp(TestCase):
    """Behavioral tests for App validation and scope queries."""

    def build(self, **kwargs):
        return App("Demo", "demo", "1.0.0", **kwargs)

    def testMinimal(self):
        app = self.build()
        self.assertEqual(app.scopes, ("",))
        self.assertEqual(app.switches_for(""), ())
        self.assertIsNone(app.description)

    def testRootSubcommandIsSynthesized(self):
        app = self.build(description="Does things.")
        root = app.subcommand("")
        self.assertEqual(root.cmd, "demo")
        self.assertEqual(root.name, "Demo")
        self.assertEqual(root.description, "Does things.")

    def testScopesFollowDeclarationOrder(self):
        app = self.build(subcommands=[Subcommand("zeta"), Subcommand("alpha")])
        self.assertEqual(app.scopes, ("", "zeta", "alpha"))

    def testUnknownScopeLookup(self):
        with self.assertRaises(UnknownSubcommandError):
            self.build().subcommand("nope")

    def testDuplicateSubcommandRejected(self):
        with self.assertRaises(DuplicateSubcommandError):
            self.build(subcommands=[Subcommand("run"), Subcommand("run")])

    def testUnknownAppliesToRejected(self):
        with self.assertRaises(UnknownSubcommandError):
            self.build(switches=[Switch("-h", applies_to=["run"])])

    def testDuplicateKeyWithinScopeRejected(self):
        with self.assertRaises(DuplicateKeyError):
            self.build(
                switches=[Switch("-v", "--verbose")],
                options=[Option("-v", "--value")],
            )

    def testSameKeyInDifferentScopesAllowed(self):
        app = self.build(
            subcommands=[Subcommand("blank"), Subcommand("print")],
            options=[
                Option("-c", "--count", applies_to=["blank"]),
                Option("-c", "--prefix-color", applies_to=["print"]),
            ],
        )
        self.assertEqual([o.long for o in app.options_for("blank")], ["--count"])
        self.assertEqual([o.long for o in app.options_for("print")], ["--prefix-color"])
        self.assertEqual(app.options_for(""), ())

    def testMultipleArgumentsRejected(self):
        with self.assertRaises(MultipleArgumentsError):
            self.build(arguments=[Argument("<A>"), Argument("<B>")])

    def testArgumentsInDifferentScopesAllowed(self):
        app = self.build(
            subcommands=[Subcommand("run")],
            arguments=[Argument("<A>"), Argument("<B>", applies_to=["run"])],
        )
        self.assertEqual(app.arguments_for("run")[0].label, "<B>")

    def testDuplicateSubcommandCheckedFirst(self):
        with self.assertRaises(DuplicateSubcommandError):
            self.build(
                subcommands=[Subcommand("run"), Subcommand("run")],
                switches=[Switch("-h", applies_to=["missing"])],
            )

    def testRootQueriesOnlyTopLevelEntries(self):
        app = self.build(
            subcommands=[Subcommand("run")],
            switches=[
                Switch("-h", "--help", applies_to=["", "run"]),
                Switch("-q", applies_to=["run"]),
            ],
        )
        self.assertEqual([s.short for s in app.switches_for("")], ["-h"])
        self.assertEqual([s.short for s in app.switches_for("run")], ["-h", "-q"])

    def testWrongEntryTypeRejected(self):
        with self.assertRaises(TypeError):
            self.build(switches=[Option("-o")])

    def testInvalidBinaryRejected(self):
        with self.assertRaises(InvalidKeywordError):
            App("Demo", "de mo", "1.0.0")

    def testCollectionsAreImmutable(self):
        app = self.build(subcommands=[Subcommand("run")])
        self.assertIsInstance(app.subcommands, tuple)
        with self.assertRaises(AttributeError):
            app.name = "Other"


if __name__ == "__main__":
    unittest.main()
