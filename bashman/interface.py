r"""
Bashman interface model: the declared command-line surface of an application.

Overview
- Entries
  • Switch: presence-only flag with a short and/or long key (e.g., -h/--help).
  • Option: value-bearing flag; adds a value label and a path-completion hint.
  • Argument: trailing positional value (one per scope at most).
  • Section: free-form manual content, either paragraph lines or label/description items.
  • Subcommand: a literal token selecting a nested command (one level deep).
- Root
  • App: name, binary, version, description and the ordered lists above.
    The App validates cross-entry invariants when constructed and answers
    per-scope queries for the synthesizers.

Scopes
- A scope key is either "" (the top level) or a declared subcommand 'cmd'.
- Switch/Option/Argument 'applies_to' is normalized to a frozenset of scope keys;
  an empty collection means {""}.

Validation highlights
- Subcommand keys: ASCII alphanumeric start, then alphanumerics, '-' or '_'.
- Short keys: "-" + one ASCII alphanumeric. Long keys: "--" + a subcommand-style word.
- Every switch/option carries at least one key.
- Subcommand keys are unique; 'applies_to' only names declared keys.
- Within one scope, no key is used twice (switches and options share the namespace).
- At most one Argument per scope.
- A Section has exactly one of 'lines' and 'items'.
- Blank optional text (descriptions, labels) counts as absent; blank required text
  raises EmptyFieldError.

Type misuse (a non-string where a string is expected, and so on) raises TypeError;
violations of the rules above raise the matching fault from bashman.faults.

Quick example:
    >>> from bashman.interface import App, Switch, Option, Subcommand
    >>> app = App(
    ...     "Demo", "demo", "1.0.0",
    ...     subcommands=[Subcommand("build", description="Build it.")],
    ...     switches=[Switch("-h", "--help", description="Print help.", applies_to=["", "build"])],
    ...     options=[Option("-o", "--out", label="<FILE>", path=True, applies_to=["build"])],
    ... )
    >>> [option.long for option in app.options_for("build")]
    ['--out']
"""
import functools
import operator
import re
from collections.abc import Iterable

from .faults import *
from .utils import *

_COMMAND = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]*")
_SHORT = re.compile(r"-[A-Za-z0-9]")
_LONG = re.compile(r"--[A-Za-z0-9][A-Za-z0-9_-]*")


class ModelType(type):
    """
    Metaclass shared by every interface model class.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used in messages.
    - Expose the names listed in __introspectable__ as read-only properties
      backed by "_{name}" fields (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations.
    - Seal the resulting class against subclassing.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__init_subclass__")
        def __init_subclass__(cls, **options):  # NOQA: F-841
            raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
        self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _text(cls, field, value, /, *, required=False):
    """
    Internal: trim and validate a textual field.

    Returns None for Unset or blank optional values, the stripped string otherwise.

    Raises
    - TypeError: value is neither a string nor Unset, or a required value is missing.
    - EmptyFieldError: a required value is blank.
    """
    if value is Unset:
        if required:
            raise TypeError(f"{cls.__typename__} {field!r} is required")
        return None
    if not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    if not (value := value.strip()):
        if not required:
            return None
        raise EmptyFieldError(
            f"{cls.__typename__} {field!r} cannot be empty",
            code=FaultCode.EMPTY_FIELD,
            title="empty field",
            hint=f"give the {cls.__typename__} a non-blank {field}",
        )
    return value


def _lines(cls, lines, /):
    """
    Internal: trim paragraph lines, dropping leading and trailing blank ones.

    Blank lines in between are kept; they separate paragraphs.
    """
    result = []
    for line in lines:
        if not isinstance(line, str):
            raise TypeError(f"{cls.__typename__} 'lines' must be an iterable of strings")
        if (line := line.strip()) or result:
            result.append(line)
    while result and not result[-1]:
        result.pop()
    return tuple(result)


def _command(cls, value, /):
    """
    Internal: validate a subcommand/binary keyword.
    """
    if not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} command must be a string")
    if not _COMMAND.fullmatch(value := value.strip()):
        raise InvalidKeywordError(
            f"{value!r} is not a valid (sub)command",
            code=FaultCode.INVALID_KEYWORD,
            title="invalid keyword",
            hint="commands start with an ascii letter or digit, followed by letters, digits, '-' or '_'",
        )
    return value


def _sanitize_keyed_metadata(cls, metadata, /):
    """
    Internal: split 'keys' into short/long forms and validate them.

    Accepted keys
    - short: "-x" (one ASCII alphanumeric)
    - long: "--word" (ASCII alphanumeric start, then alphanumerics, '-' or '_')

    At most one of each is allowed and at least one is required. The dict is
    mutated in place: 'keys' is replaced by 'short' and 'long' (None when absent).

    Raises
    - TypeError: a key is not a string.
    - InvalidKeywordError: a key matches neither form.
    - DuplicateKeyError: two short or two long keys were given.
    - MissingKeyError: no key at all.
    """
    metadata["short"] = metadata["long"] = None
    for key in metadata.pop("keys"):
        if not isinstance(key, str):
            raise TypeError(f"{cls.__typename__} keys must be strings")
        key = key.strip()
        if _SHORT.fullmatch(key):
            form = "short"
        elif _LONG.fullmatch(key):
            form = "long"
        else:
            raise InvalidKeywordError(
                f"{key!r} is not a valid {cls.__typename__} key",
                code=FaultCode.INVALID_KEYWORD,
                title="invalid keyword",
                hint="use '-x' for a short key and '--word' for a long key",
            )
        if metadata[form] is not None:
            raise DuplicateKeyError(
                f"{cls.__typename__} has two {form} keys: {metadata[form]!r} and {key!r}",
                code=FaultCode.DUPLICATE_KEY,
                title="duplicate key",
                hint=f"declare a separate {cls.__typename__} for each {form} key",
            )
        metadata[form] = key

    if metadata["short"] is None and metadata["long"] is None:
        raise MissingKeyError(
            f"{cls.__typename__} must specify a short or a long key",
            code=FaultCode.MISSING_KEY,
            title="missing key",
            hint="add a short key like '-h', a long key like '--help', or both",
        )


def _sanitize_scoped_metadata(cls, metadata, /):
    """
    Internal: normalize 'applies_to' into a frozenset of scope keys.

    An empty collection means the top level only ({""}). Keys are checked for
    shape here; whether they are declared is checked by App.
    """
    if isinstance(applies_to := metadata["applies_to"], str) or not isinstance(applies_to, Iterable):
        raise TypeError(f"{cls.__typename__} 'applies_to' must be an iterable of strings")
    scopes = set()
    for key in applies_to:
        if not isinstance(key, str):
            raise TypeError(f"{cls.__typename__} 'applies_to' must be an iterable of strings")
        scopes.add(key.strip() and _command(cls, key))
    metadata["applies_to"] = frozenset(scopes or {""})


class Switch(metaclass=ModelType):
    """
    Presence-only flag (e.g., -h/--help).

    Properties
    - short, long: the keys (None when absent); at least one is set.
    - keys: the present keys, short first.
    - description: help text (None when omitted).
    - duplicate: when True the flag may be given repeatedly, so completion keeps
      offering it after it appears on the line.
    - applies_to: frozenset of scope keys ("" is the top level).
    """

    __introspectable__ = (
        "short",
        "long",
        "description",
        "duplicate",
        "applies_to",
    )

    def __new__(cls, *keys, description=Unset, duplicate=False, applies_to=()):
        metadata = {
            "keys": keys,
            "description": _text(cls, "description", description),
            "duplicate": bool(duplicate),
            "applies_to": applies_to,
        }
        _sanitize_keyed_metadata(cls, metadata)
        _sanitize_scoped_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def keys(self):
        return tuple(key for key in (self._short, self._long) if key is not None)


class Option(metaclass=ModelType):
    """
    Value-bearing flag (e.g., -o/--output <FILE>).

    Same keys, description, duplicate and applies_to semantics as Switch, plus:
    - label: placeholder for the value in manuals (e.g., "<FILE>"), or None.
    - path: when True, completing the value suggests filesystem entries;
      otherwise no candidates are offered for the value.
    """

    __introspectable__ = (
        "short",
        "long",
        "label",
        "description",
        "path",
        "duplicate",
        "applies_to",
    )

    def __new__(cls, *keys, label=Unset, description=Unset, path=False, duplicate=False, applies_to=()):
        metadata = {
            "keys": keys,
            "label": _text(cls, "label", label),
            "description": _text(cls, "description", description),
            "path": bool(path),
            "duplicate": bool(duplicate),
            "applies_to": applies_to,
        }
        _sanitize_keyed_metadata(cls, metadata)
        _sanitize_scoped_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def keys(self):
        return tuple(key for key in (self._short, self._long) if key is not None)


class Argument(metaclass=ModelType):
    """
    Trailing positional value, shown by its label (e.g., "<FILE>").
    """

    __introspectable__ = (
        "label",
        "description",
        "applies_to",
    )

    def __new__(cls, label, *, description=Unset, applies_to=()):
        metadata = {
            "label": _text(cls, "label", label, required=True),
            "description": _text(cls, "description", description),
            "applies_to": applies_to,
        }
        _sanitize_scoped_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class Section(metaclass=ModelType):
    """
    Free-form manual section.

    Parameters
    - name: heading (e.g., "FILE TYPES").
    - inside: render as an indented subsection instead of a top-level one.
    - lines: paragraph text, one string per line; blank lines separate paragraphs.
    - items: (label, description) pairs rendered as a two-column list.

    Exactly one of 'lines' and 'items' must be given (and non-empty); anything
    else raises MalformedSectionError.
    """

    __introspectable__ = (
        "name",
        "inside",
        "lines",
        "items",
    )

    def __new__(cls, name, *, inside=False, lines=(), items=()):
        name = _text(cls, "name", name, required=True)
        if isinstance(lines, str) or not isinstance(lines, Iterable):
            raise TypeError(f"{cls.__typename__} 'lines' must be an iterable of strings")
        if isinstance(items, str) or not isinstance(items, Iterable):
            raise TypeError(f"{cls.__typename__} 'items' must be an iterable of pairs")

        lines = _lines(cls, lines)
        pairs = []
        for item in items:
            match item:
                case (label, description):
                    pairs.append((
                        _text(cls, "item label", label, required=True),
                        _text(cls, "item description", description, required=True),
                    ))
                case _:
                    raise TypeError(f"{cls.__typename__} 'items' must contain (label, description) pairs")

        if bool(lines) == bool(pairs):
            raise MalformedSectionError(
                f"section {name!r} must have either lines or items"
                + (", not both" if lines else ""),
                code=FaultCode.MALFORMED_SECTION,
                title="malformed section",
                hint="use 'lines' for paragraphs or 'items' for a label/description list",
            )

        self = super().__new__(cls)
        self._name = name
        self._inside = bool(inside)
        self._lines = lines
        self._items = tuple(pairs)
        return self


class Subcommand(metaclass=ModelType):
    """
    A literal token selecting a nested command.

    - cmd: the token typed by the user (unique key).
    - name: display name, defaults to cmd.
    - description: help text (None when omitted).
    """

    __introspectable__ = (
        "cmd",
        "name",
        "description",
    )

    def __new__(cls, cmd, *, name=Unset, description=Unset):
        self = super().__new__(cls)
        self._cmd = _command(cls, cmd)
        self._name = _text(cls, "name", name) or self._cmd
        self._description = _text(cls, "description", description)
        return self


class App(metaclass=ModelType):
    """
    Root of the interface model.

    Parameters
    - name: display name (e.g., "FYI").
    - bin_name: the executable token (validated like a subcommand key).
    - version: version string shown in manuals.
    - description: one-paragraph summary.
    - subcommands, switches, options, arguments, sections: ordered collections.

    Raises (in this order)
    - DuplicateSubcommandError: two subcommands share a 'cmd'.
    - UnknownSubcommandError: an 'applies_to' key is not declared.
    - DuplicateKeyError: a key is used twice within one scope.
    - MultipleArgumentsError: more than one Argument applies to one scope.

    Notes
    - The empty key "" is reserved for the top level; App.subcommand("")
      synthesizes the root Subcommand from bin_name/name/description.
    """

    __introspectable__ = (
        "name",
        "bin_name",
        "version",
        "description",
        "subcommands",
        "switches",
        "options",
        "arguments",
        "sections",
    )
    __displayable__ = (
        "name",
        "bin_name",
        "version",
        "subcommands",
    )

    def __new__(
            cls,
            name,
            bin_name,
            version,
            *,
            description=Unset,
            subcommands=(),
            switches=(),
            options=(),
            arguments=(),
            sections=()
    ):
        self = super().__new__(cls)
        self._name = _text(cls, "name", name, required=True)
        self._bin_name = _command(cls, bin_name)
        self._version = _text(cls, "version", version, required=True)
        self._description = _text(cls, "description", description)

        for field, value, kind in (
                ("subcommands", subcommands, Subcommand),
                ("switches", switches, Switch),
                ("options", options, Option),
                ("arguments", arguments, Argument),
                ("sections", sections, Section),
        ):
            if isinstance(value, str) or not isinstance(value, Iterable):
                raise TypeError(f"{cls.__typename__} {field!r} must be an iterable")
            value = tuple(value)
            if not all(isinstance(entry, kind) for entry in value):
                raise TypeError(f"{cls.__typename__} {field!r} must only contain {kind.__typename__} entries")
            setattr(self, "_" + field, value)

        keys = {"": None}
        for subcommand in self._subcommands:
            if subcommand.cmd in keys:
                raise DuplicateSubcommandError(
                    f"subcommand {subcommand.cmd!r} is declared more than once",
                    code=FaultCode.DUPLICATE_SUBCOMMAND,
                    title="duplicate subcommand",
                    hint="give every subcommand a unique 'cmd'",
                )
            keys[subcommand.cmd] = subcommand

        for entry in self._switches + self._options + self._arguments:
            if unknown := sorted(entry.applies_to.difference(keys)):
                raise UnknownSubcommandError(
                    f"{type(entry).__typename__} refers to undeclared subcommand {unknown[0]!r}",
                    code=FaultCode.UNKNOWN_SUBCOMMAND,
                    title="unknown subcommand",
                    hint="declare the subcommand first, or use \"\" for the top level",
                )

        for key in keys:
            seen = set()
            for entry in self.switches_for(key) + self.options_for(key):
                for flag in entry.keys:
                    if flag in seen:
                        raise DuplicateKeyError(
                            f"key {flag!r} is used more than once in {self._scope(key)}",
                            code=FaultCode.DUPLICATE_KEY,
                            title="duplicate key",
                            hint="each key may only be declared once per (sub)command",
                        )
                    seen.add(flag)
            if len(arguments := self.arguments_for(key)) > 1:
                raise MultipleArgumentsError(
                    f"{len(arguments)} trailing arguments are defined for {self._scope(key)}",
                    code=FaultCode.MULTIPLE_ARGUMENTS,
                    title="multiple arguments",
                    hint="a (sub)command accepts at most one trailing argument",
                )

        self._root = Subcommand(self._bin_name, name=self._name, description=self._description or Unset)
        self._keys = keys
        return self

    def _scope(self, key, /):
        return f"subcommand {key!r}" if key else "the top level"

    @property
    def scopes(self):
        """
        Scope keys in declaration order: "" first, then every subcommand 'cmd'.
        """
        return tuple(self._keys)

    def subcommand(self, key, /):
        """
        Return the Subcommand for a scope key ("" yields the synthesized root).

        Raises
        - UnknownSubcommandError: the key is not declared.
        """
        if key not in self._keys:
            raise UnknownSubcommandError(
                f"unknown (sub)command: {key!r}",
                code=FaultCode.UNKNOWN_SUBCOMMAND,
                title="unknown subcommand",
            )
        return self._keys[key] or self._root

    def switches_for(self, key, /):
        return tuple(entry for entry in self._switches if key in entry.applies_to)

    def options_for(self, key, /):
        return tuple(entry for entry in self._options if key in entry.applies_to)

    def arguments_for(self, key, /):
        return tuple(entry for entry in self._arguments if key in entry.applies_to)


__all__ = (
    # Model classes
    "App",
    "Subcommand",
    "Switch",
    "Option",
    "Argument",
    "Section",
)

# Keep the metaclass out of star-imports.
del ModelType
