"""
Bashman dependency provider: `cargo metadata` in, DependencyGraph out.

Overview
- fetch(manifest_path, target=None) runs cargo and returns the decoded JSON.
- parse(document) builds the graph: one node per package, one edge per
  (dependency, dep_kind) pair of the resolve table, with the dep_kind's platform
  and, for the root package's optional dependencies, the features enabling them.
- features(document, requested) expands the enabled root features.

Feature gates
- An optional dependency "x" of the root is enabled by a feature whose table
  entry lists "dep:x", "x" or "x/feat" ("x?/feat" only forwards a feature and
  does not enable "x"). When no feature mentions "dep:x", cargo defines an
  implicit feature "x" = ["dep:x"].
- The edge to "x" is gated by the features that enable it directly; features
  that reach those through other features are resolved by features(), which
  returns the closure.

Only the root's own optional dependencies are gated; optional dependencies of
other packages are taken as resolved by cargo (metadata is fetched with
--all-features).
"""
import json
import logging
import subprocess

from .faults import *
from .graph import *

logger = logging.getLogger(__name__)

TARGETS = (
    "aarch64-apple-darwin",
    "aarch64-apple-ios",
    "aarch64-linux-android",
    "aarch64-pc-windows-msvc",
    "aarch64-unknown-linux-gnu",
    "aarch64-unknown-linux-musl",
    "arm-unknown-linux-gnueabi",
    "arm-unknown-linux-gnueabihf",
    "armv7-linux-androideabi",
    "armv7-unknown-linux-gnueabihf",
    "i586-unknown-linux-gnu",
    "i686-linux-android",
    "i686-pc-windows-gnu",
    "i686-pc-windows-msvc",
    "i686-unknown-freebsd",
    "i686-unknown-linux-gnu",
    "i686-unknown-linux-musl",
    "loongarch64-unknown-linux-gnu",
    "powerpc-unknown-linux-gnu",
    "powerpc64-unknown-linux-gnu",
    "powerpc64le-unknown-linux-gnu",
    "riscv64gc-unknown-linux-gnu",
    "s390x-unknown-linux-gnu",
    "sparcv9-sun-solaris",
    "thumbv7em-none-eabihf",
    "wasm32-unknown-emscripten",
    "wasm32-unknown-unknown",
    "wasm32-wasip1",
    "x86_64-apple-darwin",
    "x86_64-apple-ios",
    "x86_64-linux-android",
    "x86_64-pc-solaris",
    "x86_64-pc-windows-gnu",
    "x86_64-pc-windows-msvc",
    "x86_64-unknown-freebsd",
    "x86_64-unknown-illumos",
    "x86_64-unknown-linux-gnu",
    "x86_64-unknown-linux-musl",
    "x86_64-unknown-netbsd",
    "x86_64-unknown-redox",
)


def _malformed(message, /):
    return MetadataMalformedError(
        message,
        code=FaultCode.METADATA_MALFORMED,
        title="malformed metadata",
        hint="make sure cargo is recent enough to emit --format-version 1",
    )


def fetch(manifest_path, /, *, target=None):
    """
    Run `cargo metadata` for a manifest and return the decoded document.

    Raises
    - UnknownTargetError: target is not one of TARGETS.
    - MetadataUnavailableError: cargo is missing or exits unsuccessfully.
    - MetadataMalformedError: the output is not JSON.
    """
    if target is not None and target not in TARGETS:
        raise UnknownTargetError(
            f"unsupported target {target!r}",
            code=FaultCode.UNKNOWN_TARGET,
            title="unknown target",
            hint="run with --print-targets to list the supported triples",
        )
    command = [
        "cargo", "metadata",
        "--quiet",
        "--color", "never",
        "--format-version", "1",
        "--all-features",
        "--manifest-path", str(manifest_path),
    ]
    if target is not None:
        command.extend(("--filter-platform", target))

    logger.debug("running %s", " ".join(command))
    try:
        process = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise MetadataUnavailableError(
            f"cargo could not be started: {exc.strerror or exc}",
            code=FaultCode.METADATA_UNAVAILABLE,
            title="metadata unavailable",
            hint="install cargo or add it to PATH",
        ) from None
    if process.returncode != 0:
        details = process.stderr.strip().splitlines()
        raise MetadataUnavailableError(
            f"cargo metadata exited with status {process.returncode}"
            + (f": {details[-1]}" if details else ""),
            code=FaultCode.METADATA_UNAVAILABLE,
            title="metadata unavailable",
        )
    try:
        return json.loads(process.stdout)
    except json.JSONDecodeError as exc:
        raise _malformed(f"cargo metadata output is not json: {exc.msg}") from None


def _root(document, /):
    """
    Internal: return the root package entry (resolve.root, or the sole workspace member).
    """
    try:
        packages = {package["id"]: package for package in document["packages"]}
        resolve = document["resolve"] or {}
    except (KeyError, TypeError):
        raise _malformed("metadata has no 'packages' or 'resolve' table") from None

    root = resolve.get("root")
    if root is None and len(members := document.get("workspace_members") or ()) == 1:
        root = members[0]
    if root not in packages:
        raise _malformed("metadata does not name a root package")
    return packages, resolve, packages[root]


def _table(root, /):
    """
    Internal: the root feature table with implicit features for optional dependencies.
    """
    table = {name: list(values) for name, values in (root.get("features") or {}).items()}
    mentioned = {value[4:] for values in table.values() for value in values if value.startswith("dep:")}
    for dependency in root.get("dependencies") or ():
        key = dependency.get("rename") or dependency["name"]
        if dependency.get("optional") and key not in mentioned:
            table.setdefault(key, [f"dep:{key}"])
    return table


def _enables(value, key, /):
    if value == f"dep:{key}" or value == key:
        return True
    head, slash, _ = value.partition("/")
    return bool(slash) and head == key


def features(document, requested=(), /, *, default=True):
    """
    Expand requested root features into the enabled set.

    Parameters
    - requested: feature names (as given on the command line).
    - default: include the "default" feature when the root defines one.

    Returns
    - frozenset of enabled feature names (the closure through the table).
    """
    _, _, root = _root(document)
    try:
        table = _table(root)
    except (KeyError, TypeError, AttributeError) as exc:
        raise _malformed(f"metadata feature table is malformed: {exc}") from None
    pending = [name.strip() for name in requested if name.strip()]
    if default and "default" in table:
        pending.append("default")

    enabled = set()
    while pending:
        if (name := pending.pop()) in enabled:
            continue
        enabled.add(name)
        for value in table.get(name, ()):
            if value.startswith("dep:"):
                continue
            head, slash, _ = value.partition("/")
            if slash and head.endswith("?"):
                continue
            if head in table:
                pending.append(head)
    logger.debug("enabled features: %s", ", ".join(sorted(enabled)) or "none")
    return frozenset(enabled)


def _package(entry, /):
    authors = entry.get("authors") or ()
    return Package(
        entry["name"],
        entry["version"],
        authors=[author for author in authors if isinstance(author, str)],
        license=entry.get("license"),
        repository=entry.get("repository"),
    )


def parse(document, /):
    """
    Build a DependencyGraph from a `cargo metadata` document.

    Raises
    - MetadataMalformedError: required fields are missing or have the wrong shape.
    - InvalidPlatformError: a dep_kind target cannot be parsed.
    """
    packages, resolve, root = _root(document)

    try:
        table = _table(root)
        gates = {}
        for dependency in root.get("dependencies") or ():
            if not dependency.get("optional"):
                continue
            key = dependency.get("rename") or dependency["name"]
            gates[dependency["name"], dependency.get("kind") or "normal"] = frozenset(
                feature for feature, values in table.items()
                if any(_enables(value, key) for value in values)
            )

        nodes = {package_id: _package(entry) for package_id, entry in packages.items()}
        edges = []
        for node in resolve.get("nodes") or ():
            source = nodes[node["id"]]
            for dependency in node.get("deps") or ():
                destination = nodes[dependency["pkg"]]
                for dep_kind in dependency.get("dep_kinds") or ({"kind": None, "target": None},):
                    kind = dep_kind.get("kind") or "normal"
                    gated = gates.get((destination.name, kind), ()) if source.identity == (root["name"], root["version"]) else ()
                    edges.append(Edge(
                        source.identity,
                        destination.identity,
                        kind=kind,
                        platform=dep_kind.get("target"),
                        features=gated,
                    ))
    except (KeyError, TypeError, AttributeError) as exc:
        raise _malformed(f"metadata entry is malformed: {exc}") from None

    graph = DependencyGraph(
        nodes[root["id"]],
        [package for package_id, package in nodes.items() if package_id != root["id"]],
        edges,
    )
    logger.debug("parsed %d packages and %d edges", len(graph), len(edges))
    return graph


__all__ = (
    "TARGETS",
    "fetch",
    "parse",
    "features",
)
