"""SPIRE identity registration and the simple-secrets service."""

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]


__version__: str
"""The application version string (PEP 440 / SemVer compatible)."""

try:
    __version__ = version("simple-secrets")
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0"
