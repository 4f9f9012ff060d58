__title__ = 'bashman'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .interface import *
from .graph import *
from .completions import render as render_completions
from .manuals import render as render_manual, render_all as render_manuals
from .credits import Credit, Relevance, resolve
from .credits import render as render_credits
from .faults import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "render_completions",
    "render_manual",
    "render_manuals",
    "render_credits",
    "resolve",
    "Credit",
    "Relevance",
)

# Load the exposed API of the interface model
__all__ += interface.__all__  # type: ignore[attr-defined]
# Load the exposed API of the dependency model
__all__ += graph.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
