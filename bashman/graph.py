"""
Bashman dependency model: a resolved package graph, read-only.

Overview
- Package: a node with (name, version) identity plus credit metadata
  (authors, license, repository) and provider hints (optional).
- Platform: a target-platform predicate parsed once from either a literal
  target triple ("x86_64-unknown-linux-gnu") or a cfg expression
  ("cfg(all(unix, not(target_os = \"macos\")))"), evaluated against a triple.
- Edge: a directed "source requires destination" link carrying its kind
  ("normal", "build" or "dev"), an optional Platform, and the set of features
  that gate it (empty means unconditional).
- DependencyGraph: the root identity, every node, and every edge. Built once by
  a provider (see bashman.cargo), then only read.

Predicates
- An edge is active for a target filter when the filter is None, the edge has
  no platform, or its platform matches the filter triple.
- An edge is active for an enabled-feature set when it has no gating features
  or at least one gating feature is enabled.
"""
import logging
import re
from collections.abc import Iterable

from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

KINDS = ("normal", "build", "dev")

# Operating systems that belong to the "unix" family.
_UNIX = frozenset((
    "linux", "macos", "ios", "tvos", "watchos", "visionos", "android", "freebsd",
    "netbsd", "openbsd", "dragonfly", "solaris", "illumos", "haiku", "aix",
    "hurd", "nto", "redox", "fuchsia", "l4re", "emscripten", "cygwin", "vita",
    "horizon", "espidf", "hermit",
))
_BIG_ENDIAN = ("powerpc", "powerpc64", "s390x", "sparc", "sparc64", "mips", "mips64", "m68k", "armeb", "aarch64_be")
_TOKENS = re.compile(r"""\s*(?:(?P<word>[A-Za-z_][A-Za-z0-9_]*)|"(?P<string>[^"]*)"|(?P<symbol>[(),=]))""")


def describe(triple, /):
    """
    Derive the cfg facts of a target triple.

    Returns a dict with target_arch, target_vendor, target_os, target_env,
    target_family (a frozenset), target_pointer_width and target_endian.

    Examples
    - "x86_64-unknown-linux-gnu" -> os "linux", family {"unix"}, env "gnu"
    - "aarch64-apple-darwin"     -> os "macos", family {"unix"}
    - "x86_64-pc-windows-msvc"   -> os "windows", family {"windows"}, env "msvc"
    - "wasm32-unknown-unknown"   -> os "unknown", family {"wasm"}
    """
    if not isinstance(triple, str) or not (triple := triple.strip()):
        raise TypeError("describe() argument must be a non-empty string")
    match triple.split("-"):
        case [arch, vendor, system, env, *_]:
            pass
        case [arch, vendor, system]:
            env = ""
        case [arch, system]:
            vendor, env = "unknown", ""
        case _:
            arch, vendor, system, env = triple, "unknown", "none", ""

    system = {"darwin": "macos"}.get(system, system)
    if system.startswith("androideabi"):
        system, env = "android", env or "eabi"
    family = set()
    if system in _UNIX:
        family.add("unix")
    if system == "windows":
        family.add("windows")
    if arch.startswith("wasm"):
        family.add("wasm")

    return {
        "target_arch": re.sub(r"^(i[3-6]86)$", "x86", re.sub(r"^(arm|thumb)v.*", "arm", arch)),
        "target_vendor": vendor,
        "target_os": system,
        "target_env": env,
        "target_family": frozenset(family),
        "target_pointer_width": "64" if "64" in arch else ("16" if arch in ("avr", "msp430") else "32"),
        "target_endian": "big" if arch in _BIG_ENDIAN else "little",
    }


class Platform:
    """
    Target-platform predicate attached to an edge.

    Construct with Platform.parse(text). The expression is compiled into a
    nested tuple tree once; matches(triple) walks it without reparsing.

    Grammar (cfg subset)
    - literal triple:      x86_64-unknown-linux-gnu
    - cfg(PREDICATE)
      PREDICATE := all(P, ...) | any(P, ...) | not(P) | NAME | NAME = "VALUE"
      NAME: unix, windows, or a target_* key from describe().

    Unknown names evaluate to False, like an unset cfg.
    """

    __slots__ = ("_text", "_tree")

    @classmethod
    def parse(cls, text, /):
        """
        Parse a platform string.

        Raises
        - TypeError: text is not a string.
        - InvalidPlatformError: the cfg expression is malformed.
        """
        if not isinstance(text, str):
            raise TypeError("Platform.parse() argument must be a string")
        self = super().__new__(cls)
        self._text = text = text.strip()
        if not text.startswith("cfg(") or not text.endswith(")"):
            if not text or any(character.isspace() for character in text):
                raise InvalidPlatformError(
                    f"{text!r} is neither a target triple nor a cfg expression",
                    code=FaultCode.INVALID_PLATFORM,
                    title="invalid platform",
                )
            self._tree = ("triple", text)
            return self

        tokens = []
        position = 0
        body = text[4:-1]
        while position < len(body.rstrip()):
            if not (match := _TOKENS.match(body, position)):
                raise InvalidPlatformError(
                    f"unexpected character in {text!r} at offset {position + 4}",
                    code=FaultCode.INVALID_PLATFORM,
                    title="invalid platform",
                )
            tokens.append(match)
            position = match.end()

        tree, rest = cls._expression(text, tokens)
        if rest:
            raise InvalidPlatformError(
                f"trailing tokens in {text!r}",
                code=FaultCode.INVALID_PLATFORM,
                title="invalid platform",
            )
        self._tree = tree
        return self

    @classmethod
    def _expression(cls, text, tokens, /):
        """
        Internal: recursive-descent step returning (tree, remaining tokens).
        """
        def fail():
            return InvalidPlatformError(
                f"malformed cfg expression {text!r}",
                code=FaultCode.INVALID_PLATFORM,
                title="invalid platform",
            )

        if not tokens or not (word := tokens[0]["word"]):
            raise fail()
        rest = tokens[1:]

        if word in ("all", "any", "not") and rest and rest[0]["symbol"] == "(":
            rest, children = rest[1:], []
            while rest and rest[0]["symbol"] != ")":
                child, rest = cls._expression(text, rest)
                children.append(child)
                if rest and rest[0]["symbol"] == ",":
                    rest = rest[1:]
                elif not rest or rest[0]["symbol"] != ")":
                    raise fail()
            if not rest:
                raise fail()
            if word == "not" and len(children) != 1:
                raise fail()
            return (word, tuple(children)), rest[1:]

        if rest and rest[0]["symbol"] == "=":
            if len(rest) < 2 or rest[1]["string"] is None:
                raise fail()
            return ("equals", word, rest[1]["string"]), rest[2:]

        return ("name", word), rest

    def matches(self, triple, /):
        """
        Evaluate this predicate for a target triple.
        """
        return self._evaluate(self._tree, triple, describe(triple))

    def _evaluate(self, node, triple, facts, /):
        match node:
            case ("triple", literal):
                return literal == triple
            case ("all", children):
                return all(self._evaluate(child, triple, facts) for child in children)
            case ("any", children):
                return any(self._evaluate(child, triple, facts) for child in children)
            case ("not", (child,)):
                return not self._evaluate(child, triple, facts)
            case ("name", name):
                return name in facts["target_family"]
            case ("equals", "target_family", value):
                return value in facts["target_family"]
            case ("equals", key, value):
                return facts.get(key) == value

    def __eq__(self, other):
        if not isinstance(other, Platform):
            return NotImplemented
        return self._text == other._text

    def __hash__(self):
        return hash(self._text)

    def __str__(self):
        return self._text

    def __repr__(self):
        return f"platform({self._text!r})"


class Package:
    """
    A dependency node.

    Parameters
    - name, version: identity (name, version).
    - authors: ordered author strings, as published.
    - license: license expression (None when unknown).
    - repository: URL (None when absent).
    - optional: provider hint that the package is feature-gated somewhere.

    Packages compare and hash by identity.
    """

    __slots__ = ("_name", "_version", "_authors", "_license", "_repository", "_optional")

    name = mirror("name")
    version = mirror("version")
    authors = mirror("authors")
    license = mirror("license")
    repository = mirror("repository")
    optional = mirror("optional")

    def __init__(self, name, version, *, authors=(), license=None, repository=None, optional=False):
        if not isinstance(name, str) or not name.strip():
            raise TypeError("package 'name' must be a non-empty string")
        if not isinstance(version, str) or not version.strip():
            raise TypeError("package 'version' must be a non-empty string")
        if isinstance(authors, str) or not isinstance(authors, Iterable):
            raise TypeError("package 'authors' must be an iterable of strings")
        self._name = name.strip()
        self._version = version.strip()
        self._authors = tuple(str(author) for author in authors)
        self._license = license or None
        self._repository = repository or None
        self._optional = bool(optional)

    @property
    def identity(self):
        return self._name, self._version

    def __eq__(self, other):
        if not isinstance(other, Package):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self):
        return hash(self.identity)

    def __repr__(self):
        return f"package({self._name!r}, {self._version!r})"

    def __rich_repr__(self):
        yield self._name
        yield self._version
        yield "authors", self._authors, ()
        yield "license", self._license, None
        yield "repository", self._repository, None
        yield "optional", self._optional, False


class Edge:
    """
    A directed dependency link between two package identities.

    Parameters
    - source, destination: (name, version) identities.
    - kind: "normal" (shipped), "build" (compile time only) or "dev" (tests only).
    - platform: Platform, a string parsed with Platform.parse, or None for all platforms.
    - features: features gating the edge; empty means always active.
    """

    __slots__ = ("_source", "_destination", "_kind", "_platform", "_features")

    source = mirror("source")
    destination = mirror("destination")
    kind = mirror("kind")
    features = mirror("features")

    def __init__(self, source, destination, *, kind="normal", platform=None, features=()):
        if kind not in KINDS:
            raise ValueError(f"edge 'kind' must be one of {", ".join(map(repr, KINDS))}")
        if isinstance(platform, str):
            platform = Platform.parse(platform)
        elif platform is not None and not isinstance(platform, Platform):
            raise TypeError("edge 'platform' must be a Platform, a string, or None")
        if isinstance(features, str) or not isinstance(features, Iterable):
            raise TypeError("edge 'features' must be an iterable of strings")
        self._source = tuple(source)
        self._destination = tuple(destination)
        self._kind = kind
        self._platform = platform
        self._features = frozenset(features)

    @property
    def platform(self):
        return self._platform

    @property
    def gated(self):
        return bool(self._features)

    def active(self, target=None, features=frozenset(), /):
        """
        Whether this edge is followed under a target filter and an enabled-feature set.
        """
        if self._kind == "dev":
            return False
        if target is not None and self._platform is not None and not self._platform.matches(target):
            return False
        return not self._features or not self._features.isdisjoint(features)

    def __repr__(self):
        return f"edge({self._source!r} -> {self._destination!r}, kind={self._kind!r})"


class DependencyGraph:
    """
    Read-only resolved package graph.

    Parameters
    - root: the root Package (the project being credited).
    - packages: every other Package.
    - edges: Edge objects between identities of the packages above.

    Raises
    - UnknownPackageError: an edge refers to an identity that is not a node.

    Notes
    - Edges are grouped by source in insertion order, so traversal order
      depends only on provider output, never on hashing.
    """

    def __init__(self, root, packages=(), edges=()):
        if not isinstance(root, Package):
            raise TypeError("graph 'root' must be a Package")
        self._root = root
        self._nodes = {root.identity: root}
        for package in packages:
            if not isinstance(package, Package):
                raise TypeError("graph 'packages' must only contain Package entries")
            self._nodes.setdefault(package.identity, package)

        self._edges = {}
        for edge in edges:
            if not isinstance(edge, Edge):
                raise TypeError("graph 'edges' must only contain Edge entries")
            for identity in (edge.source, edge.destination):
                if identity not in self._nodes:
                    raise UnknownPackageError(
                        f"edge refers to unknown package {identity[0]} {identity[1]}",
                        code=FaultCode.UNKNOWN_PACKAGE,
                        title="unknown package",
                    )
            self._edges.setdefault(edge.source, []).append(edge)
        logger.debug("dependency graph with %d nodes", len(self._nodes))

    @property
    def root(self):
        return self._root

    @property
    def packages(self):
        """
        Every node except the root, in insertion order.
        """
        return tuple(package for package in self._nodes.values() if package is not self._root)

    def package(self, identity, /):
        return self._nodes[tuple(identity)]

    def edges(self, identity, /):
        """
        Outgoing edges of a node (empty for leaves).
        """
        return tuple(self._edges.get(tuple(identity), ()))

    def __contains__(self, identity):
        return tuple(identity) in self._nodes

    def __len__(self):
        return len(self._nodes)


__all__ = (
    "Package",
    "Edge",
    "Platform",
    "DependencyGraph",
    "describe",
    "KINDS",
)
