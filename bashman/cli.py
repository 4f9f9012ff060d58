"""
Bashman command line: generate completions, manuals and credits for a Cargo project.

Usage
    bashman [OPTIONS]

Artifacts (each written only when its directory is configured in the manifest)
- <bash-dir>/<bin>.bash
- <man-dir>/<bin>.1 and <bin>-<cmd>.1, each with a .gz copy
- <credits-dir>/CREDITS.md

Faults are rendered on stderr and exit with status 1; skipped artifacts are
reported as warnings and do not change the exit status.
"""
import logging

import click
from rich.logging import RichHandler

from . import __version__
from . import cargo, completions, credits, manifest, manuals, writer
from .faults import *
from .faults import console

logger = logging.getLogger("bashman")


def _logging():
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_time=False, show_path=False))
    logger.setLevel(logging.INFO)
    logger.propagate = False


def _skipped(artifact, key, /):
    trigger(
        SkippedArtifactWarning(
            f"no {key} configured, {artifact} skipped",
            code=FaultCode.SKIPPED_ARTIFACT,
            title="skipped artifact",
            hint=f"set '{key}' under [package.metadata.bashman]",
        ),
        shell=True,
    )


def _directory(path, artifact, key, /):
    if path is None:
        _skipped(artifact, key)
        return None
    if not path.is_dir():
        trigger(
            SkippedArtifactWarning(
                f"{key} {path} does not exist, {artifact} skipped",
                code=FaultCode.SKIPPED_ARTIFACT,
                title="skipped artifact",
                hint="create the directory first",
            ),
            shell=True,
        )
        return None
    return path


def _split(values, /):
    return [feature.strip() for value in values for feature in value.split(",") if feature.strip()]


def generate(source, /, *, target=None, features=(), default=True, bash=True, man=True, credit=True):
    """
    Write every requested artifact for a loaded Manifest.

    Returns
    - list of written paths.
    """
    app = source.app
    written = []

    if bash and (directory := _directory(source.bash_dir, "bash completions", "bash-dir")):
        written.append(writer.write(directory / f"{app.bin_name}.bash", completions.render(app)))

    if man and (directory := _directory(source.man_dir, "manual pages", "man-dir")):
        for name, page in manuals.render_all(app).items():
            written.append(writer.write(directory / name, page))
            written.append(writer.write_gzip(directory / f"{name}.gz", page))

    if credit and (directory := _directory(source.credits_dir, "credits", "credits-dir")):
        document = cargo.fetch(source.path, target=target)
        resolved = credits.resolve(
            cargo.parse(document),
            target=target,
            features=cargo.features(document, features, default=default),
            extras=source.credits,
        )
        written.append(writer.write(
            directory / "CREDITS.md",
            credits.render(resolved, package=app.bin_name, version=app.version, target=target),
        ))

    for path in written:
        logger.info("wrote %s", path)
    return written


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-m", "--manifest-path",
    default="./Cargo.toml",
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Path to the Cargo.toml to read.",
)
@click.option("-t", "--target", metavar="<TRIPLE>", help="Limit credits to dependencies of this target.")
@click.option(
    "-f", "--features",
    multiple=True,
    metavar="<FEATURES>",
    help="Comma-separated list of features to enable when crediting.",
)
@click.option("--no-default-features", is_flag=True, help="Do not enable the default feature.")
@click.option("--no-bash", is_flag=True, help="Do not generate bash completions.")
@click.option("--no-man", is_flag=True, help="Do not generate manual pages.")
@click.option("--no-credits", is_flag=True, help="Do not generate CREDITS.md.")
@click.option("--print-targets", is_flag=True, help="Print the supported target triples and exit.")
@click.version_option(__version__, "-V", "--version", prog_name="bashman")
def main(manifest_path, target, features, no_default_features, no_bash, no_man, no_credits, print_targets):
    """
    Generate bash completions, manual pages and credits from a Cargo manifest.
    """
    if print_targets:
        for triple in cargo.TARGETS:
            click.echo(triple)
        return

    _logging()
    try:
        generate(
            manifest.load(manifest_path),
            target=target,
            features=_split(features),
            default=not no_default_features,
            bash=not no_bash,
            man=not no_man,
            credit=not no_credits,
        )
    except BashmanException as fault:
        trigger(fault, shell=True)


__all__ = (
    "main",
    "generate",
)
