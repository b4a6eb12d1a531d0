"""Query a pass password store and copy secrets to the clipboard."""

from importlib import metadata

from passrunner.runner import PassRunner

try:
    __version__ = metadata.version("passrunner")
except metadata.PackageNotFoundError:  # source checkout without an installed distribution
    __version__ = "0.0.0"

__all__ = ["PassRunner", "__version__"]
