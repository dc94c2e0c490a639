"""Config dependency."""

from pathlib import Path

from ..config import Config
from ..constants import CONFIGURATION_PATH

__all__ = ["ConfigDependency", "config_dependency"]


class ConfigDependency:
    """Dependency to manage a cached simple-secrets configuration.

    The configuration is read on first use, cached, and returned to all
    dependency callers unless `set_path` is called to change it. If the
    configuration file does not exist, settings come only from the
    environment.

    Parameters
    ----------
    path
        Path to the simple-secrets configuration.
    """

    def __init__(self, path: Path = CONFIGURATION_PATH) -> None:
        self._path = path
        self._config: Config | None = None

    async def __call__(self) -> Config:
        return self.config

    @property
    def config(self) -> Config:
        """Load configuration if needed and return it.

        Returns
        -------
        Config
            Service configuration.
        """
        if self._config is None:
            self._config = self._load()
        return self._config

    def set_path(self, path: Path) -> None:
        """Change the configuration path and reload.

        Parameters
        ----------
        path
            New configuration path.
        """
        self._path = path
        self._config = self._load()

    def _load(self) -> Config:
        if self._path.exists():
            return Config.from_file(self._path)
        return Config()


config_dependency = ConfigDependency()
"""The dependency that will return the current configuration."""
