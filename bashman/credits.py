"""
Bashman credit resolver: who the shipped program owes, as a Markdown table.

Scope
- resolve(): walk a DependencyGraph under a target filter and an enabled-feature
  set, deduplicate by (name, version), classify each package, merge manual
  credits, and sort.
- render(): produce the CREDITS Markdown document.
- Normalizers used by both: strip_markdown, nice_authors, nice_email, nice_license.

Classification
- Every reached package is classified by the paths leading to it:
  • DIRECT: some path is a single normal edge from the root.
  • BUILD: every path crosses a build edge (the package never ships).
  • TRANSITIVE: anything else.
- A package is optional when every path to it crosses a feature-gated edge.
- Dev edges are never followed; the root itself is never credited.

Traversal
- The walk tracks (identity, runtime, ungated) states rather than bare
  identities, so a package first reached through a build edge is revisited
  when a shipped path to it appears later. There are at most four states
  per node, which also keeps the walk finite on cyclic input.

Ordering
- Name by code point ("Beta" < "alpha" < "zeta"), then version ascending using
  PEP 440 ordering; versions that do not parse sort after those that do, by text.
"""
import datetime
import enum
import logging
import re

from packaging.version import InvalidVersion, Version

from .faults import *
from .graph import *
from .utils import *

logger = logging.getLogger(__name__)

HEADER = "| Package | Version | Author(s) | License | Context |\n| ---- | ---- | ---- | ---- | ---- |"
PLAIN_HEADER = "| Package | Version | Author(s) | License |\n| ---- | ---- | ---- | ---- |"


class Relevance(enum.Enum):
    """
    How much a credited package matters to the shipped program.
    """
    DIRECT = "direct"
    TRANSITIVE = "transitive"
    BUILD = "build"


class Credit:
    """
    One row of the credits table.

    Fields
    - name, version: identity.
    - authors: tuple of author strings (normalized at render time).
    - license: license expression or None.
    - repository: URL or None.
    - relevance: Relevance.
    - optional: reached only through feature-gated edges (or declared so).
    """

    __slots__ = ("_name", "_version", "_authors", "_license", "_repository", "_relevance", "_optional")

    name = mirror("name")
    version = mirror("version")
    authors = mirror("authors")
    license = mirror("license")
    repository = mirror("repository")
    relevance = mirror("relevance")
    optional = mirror("optional")

    def __init__(
            self,
            name,
            version,
            *,
            authors=(),
            license=None,
            repository=None,
            relevance=Relevance.DIRECT,
            optional=False
    ):
        if not isinstance(name, str) or not name.strip():
            raise TypeError("credit 'name' must be a non-empty string")
        if not isinstance(version, str) or not version.strip():
            raise TypeError("credit 'version' must be a non-empty string")
        if isinstance(authors, str):
            authors = (authors,)
        if not isinstance(relevance, Relevance):
            raise TypeError("credit 'relevance' must be a Relevance")
        self._name = name.strip()
        self._version = version.strip()
        self._authors = tuple(authors)
        self._license = license or None
        self._repository = repository or None
        self._relevance = relevance
        self._optional = bool(optional)

    @property
    def identity(self):
        return self._name, self._version

    @property
    def context(self):
        """
        The Context column marker: "direct", "build", or "" for transitive
        entries, prefixed with "optional" when gated.
        """
        marker = "" if self._relevance is Relevance.TRANSITIVE else self._relevance.value
        return ", ".join(filter(None, ("optional" if self._optional else "", marker)))

    def __eq__(self, other):
        if not isinstance(other, Credit):
            return NotImplemented
        return (
            self.identity == other.identity and
            self._authors == other._authors and
            self._license == other._license and
            self._repository == other._repository and
            self._relevance is other._relevance and
            self._optional == other._optional
        )

    def __hash__(self):
        return hash(self.identity)

    def __repr__(self):
        return f"credit({self._name!r}, {self._version!r}, relevance={self._relevance.value!r})"


def _version_key(version, /):
    try:
        return 0, Version(version), ""
    except InvalidVersion:
        return 1, Version("0"), version


def sort_key(credit, /):
    """
    Sort key: name by code point, then version ascending.
    """
    return credit.name, _version_key(credit.version)


def resolve(graph, /, *, target=None, features=(), extras=()):
    """
    Flatten a dependency graph into sorted credits.

    Parameters
    - graph: DependencyGraph.
    - target: target triple to filter platform-specific edges, or None for all edges.
    - features: enabled features; a gated edge is followed only when one of its
      features is enabled.
    - extras: manually declared Credit entries for things outside the graph.

    Returns
    - tuple[Credit, ...] sorted by sort_key.

    Raises
    - CreditConflictError: a manual credit shares an identity with a graph credit.
    """
    if not isinstance(graph, DependencyGraph):
        raise TypeError("resolve() argument must be a DependencyGraph")
    features = frozenset(features)
    root = graph.root.identity

    direct, runtime, ungated = set(), set(), set()
    reached = {}
    visited = set()
    stack = [(root, True, True)]
    while stack:
        if (state := stack.pop()) in visited:
            continue
        visited.add(state)
        identity, shipped, free = state
        for edge in graph.edges(identity):
            if not edge.active(target, features):
                logger.debug("pruned %s -> %s (%s)", identity[0], edge.destination[0], edge.kind)
                continue
            destination = edge.destination
            if destination == root:
                continue
            path_shipped = shipped and edge.kind == "normal"
            path_free = free and not edge.gated
            reached.setdefault(destination, graph.package(destination))
            if identity == root and edge.kind == "normal":
                direct.add(destination)
            if path_shipped:
                runtime.add(destination)
            if path_free:
                ungated.add(destination)
            stack.append((destination, path_shipped, path_free))

    credits = {}
    for identity, package in reached.items():
        if identity in direct:
            relevance = Relevance.DIRECT
        elif identity not in runtime:
            relevance = Relevance.BUILD
        else:
            relevance = Relevance.TRANSITIVE
        credits[identity] = Credit(
            package.name,
            package.version,
            authors=package.authors,
            license=package.license,
            repository=package.repository,
            relevance=relevance,
            optional=package.optional or identity not in ungated,
        )

    for extra in extras:
        if not isinstance(extra, Credit):
            raise TypeError("resolve() 'extras' must only contain Credit entries")
        if (existing := credits.get(extra.identity)) is not None:
            raise CreditConflictError(
                f"manual credit {extra.name} {extra.version} collides with "
                f"dependency {existing.name} {existing.version} found in the graph",
                code=FaultCode.CREDIT_CONFLICT,
                title="credit conflict",
                hint="remove the manual credit; the dependency is already credited",
            )
        credits[extra.identity] = extra

    logger.debug("resolved %d credits from %d reachable packages", len(credits), len(reached))
    return tuple(sorted(credits.values(), key=sort_key))


def strip_markdown(text, /):
    """
    Remove characters that would break a Markdown table cell or link: [ ] < > ( ) |
    """
    return re.sub(r"[\[\]<>()|]", "", text).strip()


def nice_email(text, /):
    """
    Lightly validate and normalize an email address.

    The user part must be ASCII letters, digits or ". + - _" (lowercased); the
    host must have at least two labels with an alphabetic top-level label of two
    or more characters, and is IDNA-encoded. Returns None when invalid.

    Examples
    - nice_email(" < JoSh@BloBfolio.com> ") -> "josh@blobfolio.com"
    - nice_email("JoSh@BloBfolio.x")        -> None
    """
    user, at, host = text.strip(" \t<>").partition("@")
    if not at or not user or not host:
        return None
    if not re.fullmatch(r"[A-Za-z0-9.+_-]+", user):
        return None
    try:
        host = host.strip().rstrip(".").encode("idna").decode("ascii").lower()
    except UnicodeError:
        return None
    labels = host.split(".")
    if len(labels) < 2 or not all(re.fullmatch(r"[a-z0-9-]+", label) for label in labels):
        return None
    if not re.fullmatch(r"[a-z]{2,}|xn--[a-z0-9-]+", labels[-1]):
        return None
    return f"{user.lower()}@{host}"


def nice_authors(authors, /):
    """
    Normalize author strings for Markdown.

    - "Name <email>" becomes "[Name](mailto:email)";
    - "<email>" alone becomes "[email](mailto:email)";
    - an invalid email leaves just the name;
    - stray brackets are dropped, and empty entries removed.
    """
    result = []
    for author in authors:
        author = re.sub(r"[\[\]()|]", "", author).strip()
        start, end = author.find("<"), author.rfind(">")
        if start != -1 and start < end:
            name = author[:start].replace("<", "").replace(">", "").strip()
            email = nice_email(author[start + 1:end])
            match name, email:
                case "", None:
                    author = ""
                case "", _:
                    author = f"[{email}](mailto:{email})"
                case _, None:
                    author = name
                case _:
                    author = f"[{name}](mailto:{email})"
        else:
            author = author.replace("<", "").replace(">", "").strip()
        if author:
            result.append(author)
    return result


def nice_license(text, /):
    """
    Normalize a license expression: split on "/" and " OR ", drop Markdown-hostile
    characters, sort, dedupe, and join with an oxford "or".

    Example
    - nice_license("MIT OR Apache-2.0") -> "Apache-2.0 or MIT"
    """
    if not text:
        return ""
    text = re.sub(r"[\[\]<>()|]", "", text.replace(" OR ", "/"))
    return oxford(sorted({part.strip() for part in text.split("/") if part.strip()}), "or")


def _row(credit, context, /):
    name = strip_markdown(credit.name)
    cells = [
        f"[{name}]({credit.repository})" if credit.repository else name,
        strip_markdown(credit.version),
        oxford(nice_authors(credit.authors), "and"),
        nice_license(credit.license),
    ]
    if context:
        cells.append(credit.context)
    return "| " + " | ".join(cells) + " |"


def render(credits, /, *, package, version, target=None, generated=Unset, context=True):
    """
    Produce the CREDITS Markdown document.

    Parameters
    - credits: output of resolve() (already sorted).
    - package, version: the project being credited.
    - target: the target triple used for filtering, or None ("all").
    - generated: aware or naive UTC datetime for the header; defaults to now.
    - context: include the Context column (only when some row has a marker).

    Returns
    - str: the document, newline-terminated. Identical inputs give identical bytes.
    """
    if not generated:
        generated = datetime.datetime.now(datetime.UTC)
    elif generated.tzinfo is not None:
        generated = generated.astimezone(datetime.UTC)

    lines = [
        "# Project Dependencies",
        f"    Package:   {package}",
        f"    Version:   {version}",
        f"    Target:    {target or 'all'}",
        f"    Generated: {generated:%Y-%m-%d %H:%M:%S} UTC",
        "",
    ]
    credits = tuple(credits)
    if not credits:
        lines.append("This project has no dependencies.")
        return "\n".join(lines) + "\n"

    context = context and any(credit.context for credit in credits)
    lines.append(HEADER if context else PLAIN_HEADER)
    lines.extend(_row(credit, context) for credit in credits)
    return "\n".join(lines) + "\n"


__all__ = (
    "Relevance",
    "Credit",
    "resolve",
    "render",
    "sort_key",
    "strip_markdown",
    "nice_email",
    "nice_authors",
    "nice_license",
)
