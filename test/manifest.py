"""
Manifest loader behavioral tests.

Scope
- [package] and [package.metadata.bashman] mapping onto the interface model.
- Output directory resolution and manual credits.
- Missing/malformed input faults, including model faults propagating unchanged.
"""

import pathlib
import tempfile
import tomllib
import unittest
from unittest import TestCase

from bashman import (
    DuplicateSubcommandError,
    EmptyFieldError,
    ManifestMalformedError,
    ManifestNotFoundError,
    MissingFieldError,
    Relevance,
)
from bashman.manifest import load, parse

MANIFEST = """
[package]
name = "fyi"
version = "0.6.1"
description = "A dead-simple CLI status message printer."

[package.metadata.bashman]
name = "FYI"
bash-dir = "release/completions"
man-dir = "release/man"

[[package.metadata.bashman.subcommands]]
cmd = "blank"
description = "Print blank line(s)."

[[package.metadata.bashman.subcommands]]
cmd = "print"
name = "Print"
description = "Print a message."

[[package.metadata.bashman.switches]]
short = "-h"
long = "--help"
description = "Print help information."
subcommands = ["", "blank", "print"]

[[package.metadata.bashman.switches]]
long = "--stderr"
description = "Print to STDERR instead of STDOUT."
duplicate = true
subcommands = ["blank"]

[[package.metadata.bashman.options]]
short = "-c"
long = "--count"
description = "Number of empty lines to print."
label = "NUM"
subcommands = ["blank"]

[[package.metadata.bashman.options]]
short = "-l"
long = "--list"
label = "<FILE>"
description = "Read file paths from this text file."
path = true

[[package.metadata.bashman.arguments]]
label = "<MSG>"
description = "The message!"
subcommands = ["print"]

[[package.metadata.bashman.sections]]
name = "FILE TYPES"
lines = ["One.", "Two."]

[[package.metadata.bashman.sections]]
name = "OPTIMIZERS"
inside = true
items = [["MozJPEG", "<https://github.com/mozilla/mozjpeg>"]]

[[package.metadata.bashman.credits]]
name = "mozjpeg"
version = "4.1.5"
license = "IJG AND BSD-3-Clause"
authors = ["Mozilla"]
repository = "https://github.com/mozilla/mozjpeg"
"""


class TestParse(TestCase):
    """Behavioral tests for document mapping."""

    def setUp(self):
        self.manifest = parse(tomllib.loads(MANIFEST), path="/project/Cargo.toml")
        self.app = self.manifest.app

    def testPackageFields(self):
        self.assertEqual(self.app.name, "FYI")
        self.assertEqual(self.app.bin_name, "fyi")
        self.assertEqual(self.app.version, "0.6.1")
        self.assertEqual(self.app.description, "A dead-simple CLI status message printer.")

    def testSubcommands(self):
        self.assertEqual(self.app.scopes, ("", "blank", "print"))
        self.assertEqual(self.app.subcommand("print").name, "Print")
        self.assertEqual(self.app.subcommand("blank").name, "blank")

    def testSubcommandsFieldMapsToAppliesTo(self):
        self.assertEqual(self.app.switches[0].applies_to, frozenset({"", "blank", "print"}))
        self.assertEqual([s.long for s in self.app.switches_for("blank")], ["--help", "--stderr"])
        self.assertTrue(self.app.switches[1].duplicate)

    def testMissingSubcommandsMeansTopLevel(self):
        self.assertEqual(self.app.options[1].applies_to, frozenset({""}))

    def testLabelsAreBracketed(self):
        self.assertEqual(self.app.options[0].label, "<NUM>")
        self.assertEqual(self.app.options[1].label, "<FILE>")
        self.assertTrue(self.app.options[1].path)

    def testArgumentsAndSections(self):
        self.assertEqual(self.app.arguments_for("print")[0].label, "<MSG>")
        self.assertEqual(self.app.sections[0].lines, ("One.", "Two."))
        self.assertTrue(self.app.sections[1].inside)
        self.assertEqual(self.app.sections[1].items[0][0], "MozJPEG")

    def testDirectories(self):
        self.assertEqual(self.manifest.bash_dir, pathlib.Path("/project/release/completions").resolve())
        self.assertEqual(self.manifest.man_dir, pathlib.Path("/project/release/man").resolve())
        self.assertIsNone(self.manifest.credits_dir)

    def testManualCredits(self):
        credit, = self.manifest.credits
        self.assertEqual(credit.identity, ("mozjpeg", "4.1.5"))
        self.assertEqual(credit.authors, ("Mozilla",))
        self.assertEqual(credit.relevance, Relevance.DIRECT)
        self.assertFalse(credit.optional)

    def testDisplayNameDefaultsToPackageName(self):
        manifest = parse({"package": {"name": "tool", "version": "1.0.0"}})
        self.assertEqual(manifest.app.name, "tool")
        self.assertEqual(manifest.app.scopes, ("",))

    def testMissingVersion(self):
        with self.assertRaises(MissingFieldError):
            parse({"package": {"name": "tool"}})

    def testMissingPackage(self):
        with self.assertRaises(MissingFieldError):
            parse({})

    def testWrongFieldType(self):
        document = tomllib.loads(MANIFEST)
        document["package"]["metadata"]["bashman"]["switches"][0]["duplicate"] = "yes"
        with self.assertRaises(ManifestMalformedError):
            parse(document)

    def testWrongRecordShape(self):
        with self.assertRaises(ManifestMalformedError):
            parse({"package": {"name": "tool", "version": "1.0.0", "metadata": {"bashman": {"switches": "-h"}}}})

    def testModelFaultsPropagate(self):
        document = tomllib.loads(MANIFEST)
        document["package"]["metadata"]["bashman"]["subcommands"].append({"cmd": "blank", "description": "Again."})
        with self.assertRaises(DuplicateSubcommandError):
            parse(document)

    def testBlankLinesAreParagraphBreaks(self):
        document = tomllib.loads(MANIFEST)
        document["package"]["metadata"]["bashman"]["sections"][0]["lines"] = ["First paragraph.", "", "Second paragraph."]
        self.assertEqual(parse(document).app.sections[0].lines, ("First paragraph.", "", "Second paragraph."))

    def testBlankDescriptionIsAbsent(self):
        document = tomllib.loads(MANIFEST)
        document["package"]["metadata"]["bashman"]["switches"][0]["description"] = ""
        self.assertIsNone(parse(document).app.switches[0].description)

    def testBlankSectionNameIsAFault(self):
        document = tomllib.loads(MANIFEST)
        document["package"]["metadata"]["bashman"]["sections"][0]["name"] = "  "
        with self.assertRaises(EmptyFieldError):
            parse(document)

    def testManualCreditRequiresVersion(self):
        document = tomllib.loads(MANIFEST)
        del document["package"]["metadata"]["bashman"]["credits"][0]["version"]
        with self.assertRaises(MissingFieldError):
            parse(document)


class TestLoad(TestCase):
    """Behavioral tests for reading manifests from disk."""

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.root = pathlib.Path(self.directory.name)

    def tearDown(self):
        self.directory.cleanup()

    def testLoadsFromDisk(self):
        path = self.root / "Cargo.toml"
        path.write_text(MANIFEST, encoding="utf-8")
        manifest = load(path)
        self.assertEqual(manifest.app.bin_name, "fyi")
        self.assertEqual(manifest.path, path.resolve())
        self.assertEqual(manifest.bash_dir, (self.root / "release" / "completions").resolve())

    def testMissingFile(self):
        with self.assertRaises(ManifestNotFoundError):
            load(self.root / "Cargo.toml")

    def testDirectoryIsNotAManifest(self):
        with self.assertRaises(ManifestNotFoundError):
            load(self.root)

    def testInvalidToml(self):
        path = self.root / "Cargo.toml"
        path.write_text("[package\nname = ", encoding="utf-8")
        with self.assertRaises(ManifestMalformedError):
            load(path)


if __name__ == "__main__":
    unittest.main()
