"""Version lookup for balchunk."""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata, resources

_DISTRIBUTION = "balchunk"


@lru_cache(maxsize=1)
def get_version() -> str:
    """
    Return the installed distribution version.

    Falls back to the VERSION file shipped inside the package when running
    from a source tree that was never installed.
    """
    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        pass
    try:
        return resources.files(_DISTRIBUTION).joinpath("VERSION").read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return "0+unknown"


__all__ = ["get_version", "__version__"]

__version__ = get_version()
