"""Build test configurations for simple-secrets."""

from __future__ import annotations

from pathlib import Path

from simplesecrets.server.config import Config
from simplesecrets.server.dependencies.config import config_dependency

__all__ = ["configure"]


def configure(directory: str) -> Config:
    """Switch to a test configuration.

    Parameters
    ----------
    directory
        Name of the configuration directory under :file:`tests/data/server`.

    Returns
    -------
    Config
        New configuration.
    """
    base = Path(__file__).parent.parent.parent / "data" / "server"
    config_dependency.set_path(base / directory / "config.yaml")
    return config_dependency.config
