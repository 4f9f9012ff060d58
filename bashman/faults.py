"""
Bashman faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- BashmanException / BashmanWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Domains
- manifest (111xx): the manifest could not be found, parsed, or is missing data.
- interface (112xx): the declared command-line surface violates a model rule.
- dependencies (113xx): metadata query/parsing failures and credit conflicts.
- output (114xx): an artifact could not be persisted.
- warnings (12xxx): non-fatal notices (e.g., an artifact was skipped).

Integration
- Library code raises the concrete exceptions directly with code/title/hint options.
- The command line catches them and calls trigger(fault, shell=True, ...), which
  renders via rich on stderr and exits with status 1.
"""
import copy
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across bashman (stable identifiers).

    grouping (by high-level domain)
    - manifest (1110x)
      • MANIFEST_NOT_FOUND, MANIFEST_MALFORMED, MISSING_FIELD
    - interface model (1120x/1121x)
      • INVALID_KEYWORD, MISSING_KEY, DUPLICATE_SUBCOMMAND, UNKNOWN_SUBCOMMAND,
        DUPLICATE_KEY, MULTIPLE_ARGUMENTS, EMPTY_FIELD, MALFORMED_SECTION
    - dependencies (1130x/1131x)
      • METADATA_UNAVAILABLE, METADATA_MALFORMED, INVALID_PLATFORM,
        UNKNOWN_PACKAGE, CREDIT_CONFLICT, UNKNOWN_TARGET
    - output (1140x)
      • WRITE_FAILED, NAME_COLLISION
    - warnings (12xxx)
      • SKIPPED_ARTIFACT

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- manifest errors (111xx) ---
    MANIFEST_NOT_FOUND          = 11101
    MANIFEST_MALFORMED          = 11102
    MISSING_FIELD               = 11103

    # --- interface model errors (112xx) ---
    INVALID_KEYWORD             = 11201
    MISSING_KEY                 = 11202
    DUPLICATE_SUBCOMMAND        = 11203
    UNKNOWN_SUBCOMMAND          = 11204
    DUPLICATE_KEY               = 11205
    MULTIPLE_ARGUMENTS          = 11206
    EMPTY_FIELD                 = 11207
    MALFORMED_SECTION           = 11211

    # --- dependency and credit errors (113xx) ---
    METADATA_UNAVAILABLE        = 11301
    METADATA_MALFORMED          = 11302
    INVALID_PLATFORM            = 11303
    UNKNOWN_PACKAGE             = 11304
    CREDIT_CONFLICT             = 11311
    UNKNOWN_TARGET              = 11312

    # --- output errors (114xx) ---
    WRITE_FAILED                = 11401
    NAME_COLLISION              = 11402

    # --- warnings (12xxx) ---
    SKIPPED_ARTIFACT            = 12401

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    Build the rich renderable shared by exceptions and warnings.

    The header reads "[ prog · code | title ]", followed by the message and,
    when present, a hint line. Styles come from the palette merged with the
    host's __main__.__styles__; colorful=False strips all styling and fancy=True
    wraps the body in a Panel.
    """
    main = __import__("__main__")
    options = fault.options
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if colorful else "")

    code = options.get("code")
    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", options.get("prog", "bashman")), "prog-name"),
        " · ",
        text(code.normalize() if isinstance(code, FaultCode) else "?", "code"),
        " | ",
        text(str(options.get("title", type(fault).__name__)).title(), "title"),
        " ]",
    )
    body = [text(fault.message, "message")]
    if hint := options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if options.get("fancy", False):
        try:
            width = int((console.width - 4) * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*body), title=header, title_align="left", width=width)
    return Group(header, *body)


class BashmanException(Exception):
    """
    Base class for every fatal bashman fault.

    Parameters
    - message: str
      One-sentence, lowercased description naming the offending value(s).
    - options: keyword context. Recognized keys:
      code (FaultCode), title (short heading), hint (single actionable tip),
      shell (render and exit instead of raising), deferred (render without exiting),
      fancy/colorful/ratio (presentation), prog (program label).

    Notes
    - str(exception) is the message, so plain tracebacks stay readable.
    - Instances are immutable; use copy.replace(fault, **options) to derive a
      fault with more context (trigger() does this).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title

            # body
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ManifestNotFoundError(BashmanException): ...
class ManifestMalformedError(BashmanException): ...
class MissingFieldError(BashmanException): ...
class InvalidKeywordError(BashmanException): ...
class MissingKeyError(BashmanException): ...
class DuplicateSubcommandError(BashmanException): ...
class UnknownSubcommandError(BashmanException): ...
class DuplicateKeyError(BashmanException): ...
class MultipleArgumentsError(BashmanException): ...
class EmptyFieldError(BashmanException): ...
class MalformedSectionError(BashmanException): ...
class MetadataUnavailableError(BashmanException): ...
class MetadataMalformedError(BashmanException): ...
class InvalidPlatformError(BashmanException): ...
class UnknownPackageError(BashmanException): ...
class CreditConflictError(BashmanException): ...
class UnknownTargetError(BashmanException): ...
class WriteError(BashmanException): ...
class NameCollisionError(BashmanException): ...


class BashmanWarning(ABC, Warning):
    """
    Base class for non-fatal notices.

    Outside shell mode the warning goes through the warnings module (so hosts
    and tests can filter or capture it); in shell mode it is rendered on the
    stderr console and execution continues.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class SkippedArtifactWarning(BashmanWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise exceptions are
      raised and warnings are issued through the warnings module.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings. when
    not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "BashmanException",
    "ManifestNotFoundError",
    "ManifestMalformedError",
    "MissingFieldError",
    "InvalidKeywordError",
    "MissingKeyError",
    "DuplicateSubcommandError",
    "UnknownSubcommandError",
    "DuplicateKeyError",
    "MultipleArgumentsError",
    "EmptyFieldError",
    "MalformedSectionError",
    "MetadataUnavailableError",
    "MetadataMalformedError",
    "InvalidPlatformError",
    "UnknownPackageError",
    "CreditConflictError",
    "UnknownTargetError",
    "WriteError",
    "NameCollisionError",
    "BashmanWarning",
    "SkippedArtifactWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
