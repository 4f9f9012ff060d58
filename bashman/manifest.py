"""
Bashman manifest loader: Cargo.toml in, interface model and settings out.

Layout read
- [package]: name, version (required), description.
- [package.metadata.bashman]:
  • name: display name (defaults to the package name)
  • bash-dir, man-dir, credits-dir: output directories, relative to the manifest
  • subcommands: [{cmd, name, description}]
  • switches: [{short, long, description, duplicate, subcommands}]
  • options: [{short, long, label, description, path, duplicate, subcommands}]
  • arguments: [{label, description, subcommands}]
  • sections: [{name, inside, lines | items}]
  • credits: [{name, version, license, authors, repository, optional}]

The record field "subcommands" lists the scopes an entry applies to and maps to
'applies_to' on the model ("" is the top level). Value labels are wrapped in
angle brackets when they are not already ("FILE" -> "<FILE>").

Failures
- ManifestNotFoundError: the path does not exist or is not a file.
- ManifestMalformedError: invalid TOML, or a table/field has the wrong shape.
- MissingFieldError: package name or version is absent.
- Model faults (bashman.interface) propagate unchanged.
"""
import logging
import pathlib
import tomllib

from .credits import Credit, Relevance
from .faults import *
from .interface import *
from .utils import *

logger = logging.getLogger(__name__)


class Manifest:
    """
    Everything the command line needs from a manifest.

    Properties
    - path: resolved manifest path.
    - app: the validated App.
    - bash_dir, man_dir, credits_dir: pathlib.Path or None when not configured.
    - credits: manually declared Credit entries.
    """

    __slots__ = ("_path", "_app", "_bash_dir", "_man_dir", "_credits_dir", "_credits")

    path = mirror("path")
    app = mirror("app")
    bash_dir = mirror("bash_dir")
    man_dir = mirror("man_dir")
    credits_dir = mirror("credits_dir")
    credits = mirror("credits")

    def __init__(self, path, app, *, bash_dir=None, man_dir=None, credits_dir=None, credits=()):
        self._path = path
        self._app = app
        self._bash_dir = bash_dir
        self._man_dir = man_dir
        self._credits_dir = credits_dir
        self._credits = tuple(credits)

    def __repr__(self):
        return f"manifest({str(self._path)!r}, app={self._app.bin_name!r})"


def _malformed(path, message, /):
    return ManifestMalformedError(
        f"{message} in {path}",
        code=FaultCode.MANIFEST_MALFORMED,
        title="malformed manifest",
        hint="see the [package.metadata.bashman] reference for the expected layout",
    )


def _table(path, parent, key, /):
    match parent.get(key, {}):
        case dict() as table:
            return table
        case _:
            raise _malformed(path, f"{key!r} must be a table")


def _records(path, table, key, /):
    match table.get(key, []):
        case list() as records if all(isinstance(record, dict) for record in records):
            return records
        case _:
            raise _malformed(path, f"'{key}' must be an array of tables")


def _field(path, record, key, kind, /, *, default=Unset):
    """
    Fetch a record field, checking its type. Absent fields yield the default.
    """
    if (value := record.get(key, Unset)) is Unset:
        return default
    if not isinstance(value, kind):
        raise _malformed(path, f"field {key!r} has the wrong type ({type(value).__name__})")
    return value


def _strings(path, record, key, /):
    values = _field(path, record, key, list, default=[])
    if not all(isinstance(value, str) for value in values):
        raise _malformed(path, f"field {key!r} must only contain strings")
    return values


def _label(text, /):
    if text is Unset or not (text := text.strip()):
        return Unset
    if not text.startswith("<"):
        text = "<" + text
    if not text.endswith(">"):
        text = text + ">"
    return text


def _keys(path, record, /):
    return [
        key for key in (_field(path, record, "short", str), _field(path, record, "long", str))
        if key is not Unset
    ]


def _directory(base, value, /):
    if value is Unset or not value.strip():
        return None
    return (base / value.strip()).resolve()


def _section(path, record, /):
    items = []
    for item in _field(path, record, "items", list, default=[]):
        match item:
            case [str() as label, str() as description]:
                items.append((label, description))
            case _:
                raise _malformed(path, "section 'items' must be [label, description] pairs")
    return Section(
        _field(path, record, "name", str, default=""),
        inside=_field(path, record, "inside", bool, default=False),
        lines=_strings(path, record, "lines"),
        items=items,
    )


def _credit(path, record, /):
    name, version = _field(path, record, "name", str), _field(path, record, "version", str)
    if name is Unset or version is Unset:
        raise MissingFieldError(
            f"manual credits require a name and a version in {path}",
            code=FaultCode.MISSING_FIELD,
            title="missing field",
        )
    return Credit(
        name,
        version,
        authors=_strings(path, record, "authors"),
        license=_field(path, record, "license", str, default=None),
        repository=_field(path, record, "repository", str, default=None),
        relevance=Relevance.DIRECT,
        optional=_field(path, record, "optional", bool, default=False),
    )


def parse(document, /, *, path=pathlib.Path("Cargo.toml")):
    """
    Build a Manifest from an already decoded TOML document.

    Parameters
    - document: dict as returned by tomllib.
    - path: where the document came from; output directories are resolved
      against its parent and messages name it.
    """
    path = pathlib.Path(path)
    package = _table(path, document, "package")
    bashman = _table(path, _table(path, package, "metadata"), "bashman")

    name, version = _field(path, package, "name", str), _field(path, package, "version", str)
    for field, value in (("name", name), ("version", version)):
        if value is Unset:
            raise MissingFieldError(
                f"[package] has no {field!r} in {path}",
                code=FaultCode.MISSING_FIELD,
                title="missing field",
                hint=f"add '{field} = ...' under [package]",
            )

    app = App(
        _field(path, bashman, "name", str, default=name),
        name,
        version,
        description=_field(path, package, "description", str),
        subcommands=[
            Subcommand(
                _field(path, record, "cmd", str, default=""),
                name=_field(path, record, "name", str),
                description=_field(path, record, "description", str),
            )
            for record in _records(path, bashman, "subcommands")
        ],
        switches=[
            Switch(
                *_keys(path, record),
                description=_field(path, record, "description", str),
                duplicate=_field(path, record, "duplicate", bool, default=False),
                applies_to=_strings(path, record, "subcommands"),
            )
            for record in _records(path, bashman, "switches")
        ],
        options=[
            Option(
                *_keys(path, record),
                label=_label(_field(path, record, "label", str)),
                description=_field(path, record, "description", str),
                path=_field(path, record, "path", bool, default=False),
                duplicate=_field(path, record, "duplicate", bool, default=False),
                applies_to=_strings(path, record, "subcommands"),
            )
            for record in _records(path, bashman, "options")
        ],
        arguments=[
            Argument(
                coalesce(_label(_field(path, record, "label", str)), "<ARG>"),
                description=_field(path, record, "description", str),
                applies_to=_strings(path, record, "subcommands"),
            )
            for record in _records(path, bashman, "arguments")
        ],
        sections=[_section(path, record) for record in _records(path, bashman, "sections")],
    )

    base = path.parent
    manifest = Manifest(
        path,
        app,
        bash_dir=_directory(base, _field(path, bashman, "bash-dir", str)),
        man_dir=_directory(base, _field(path, bashman, "man-dir", str)),
        credits_dir=_directory(base, _field(path, bashman, "credits-dir", str)),
        credits=[_credit(path, record) for record in _records(path, bashman, "credits")],
    )
    logger.debug("loaded %r with %d subcommands", manifest, len(app.subcommands))
    return manifest


def load(path, /):
    """
    Read and parse a manifest file.

    Raises
    - ManifestNotFoundError, ManifestMalformedError, MissingFieldError; see the
      module docstring.
    """
    path = pathlib.Path(path).expanduser().resolve()
    if not path.is_file():
        raise ManifestNotFoundError(
            f"no manifest at {path}",
            code=FaultCode.MANIFEST_NOT_FOUND,
            title="manifest not found",
            hint="point --manifest-path at a Cargo.toml",
        )
    try:
        with path.open("rb") as file:
            document = tomllib.load(file)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestMalformedError(
            f"{path} is not valid toml: {exc}",
            code=FaultCode.MANIFEST_MALFORMED,
            title="malformed manifest",
        ) from None
    except OSError as exc:
        raise ManifestNotFoundError(
            f"{path} could not be read: {exc.strerror or exc}",
            code=FaultCode.MANIFEST_NOT_FOUND,
            title="manifest not found",
        ) from None
    return parse(document, path=path)


__all__ = (
    "Manifest",
    "parse",
    "load",
)
