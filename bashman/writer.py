"""
Bashman writer: persist generated artifacts.

- write(path, text): atomic replace through a temporary file in the same directory.
- write_gzip(path, text): maximum compression with a fixed header mtime, so
  identical text always yields identical bytes.

Both raise WriteError on any filesystem failure and return the written path.
"""
import gzip
import logging
import os
import pathlib
import tempfile

from .faults import *

logger = logging.getLogger(__name__)


def _replace(path, data, /):
    path = pathlib.Path(path)
    try:
        descriptor, temporary = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(descriptor, "wb") as file:
                file.write(data)
            os.chmod(temporary, 0o644)
            os.replace(temporary, path)
        except BaseException:
            pathlib.Path(temporary).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise WriteError(
            f"unable to write {path}: {exc.strerror or exc}",
            code=FaultCode.WRITE_FAILED,
            title="write failed",
            hint="check that the directory exists and is writable",
        ) from None
    logger.debug("wrote %d bytes to %s", len(data), path)
    return path


def write(path, text, /):
    return _replace(path, text.encode("utf-8"))


def write_gzip(path, text, /):
    """
    Write a gzip copy of text (level 9, mtime 0, no embedded file name).
    """
    return _replace(path, gzip.compress(text.encode("utf-8"), compresslevel=9, mtime=0))


__all__ = (
    "write",
    "write_gzip",
)
