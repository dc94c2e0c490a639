"""Application configuration for spire-register."""

from pathlib import Path
from typing import Annotated, Self

import yaml
from pydantic import AliasChoices, Field, SecretStr, TypeAdapter
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging

from .constants import (
    COMPOSE_COMMAND,
    ENV_PREFIX,
    ROOT_LOGGER,
    SPIRE_DIRECTORY,
    SPIRE_SERVER_COMMAND,
    SPIRE_SERVICE,
)
from .models import DEFAULT_ENTRIES, RegistrationEntry

__all__ = ["Config"]

_ENTRIES_ADAPTER = TypeAdapter(list[RegistrationEntry])


class EnvFirstSettings(BaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables over arguments to the class constructor.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX, extra="forbid", validate_by_name=True
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Allow environment
        variables to override init parameters, since init parameters come
        from the YAML configuration file and we want environment variables to
        take precedent.
        """
        return (env_settings, init_settings)


class Config(EnvFirstSettings):
    """Configuration for spire-register."""

    compose_command: Annotated[
        list[str],
        Field(
            title="Compose command",
            description=(
                "Command, possibly with leading arguments, used to run"
                " ``exec`` against the compose project"
            ),
            min_length=1,
            validation_alias=AliasChoices(
                ENV_PREFIX + "COMPOSE_COMMAND", "composeCommand"
            ),
        ),
    ] = COMPOSE_COMMAND

    service: Annotated[
        str,
        Field(
            title="SPIRE server service",
            description="Name of the compose service running spire-server",
            min_length=1,
        ),
    ] = SPIRE_SERVICE

    spire_directory: Annotated[
        Path,
        Field(
            title="SPIRE directory in the container",
            validation_alias=AliasChoices(
                ENV_PREFIX + "SPIRE_DIRECTORY", "spireDirectory"
            ),
        ),
    ] = SPIRE_DIRECTORY

    server_command: Annotated[
        str,
        Field(
            title="SPIRE server command",
            description="Relative to the SPIRE directory in the container",
            min_length=1,
            validation_alias=AliasChoices(
                ENV_PREFIX + "SERVER_COMMAND", "serverCommand"
            ),
        ),
    ] = SPIRE_SERVER_COMMAND

    entries: Annotated[
        list[RegistrationEntry],
        Field(
            title="Registration entries",
            description="Entries to register, in order",
        ),
    ] = list(DEFAULT_ENTRIES)

    entries_file: Annotated[
        Path | None,
        Field(
            title="Registration entries file",
            description=(
                "YAML file holding a list of entries. If set, it replaces"
                " ``entries``."
            ),
            validation_alias=AliasChoices(
                ENV_PREFIX + "ENTRIES_FILE", "entriesFile"
            ),
        ),
    ] = None

    debug: Annotated[
        bool,
        Field(
            title="Show debug output and log style",
            description=(
                "If True, then log level will be set to debug and will"
                " non-structured, human-readable output."
            ),
        ),
    ] = False

    dry_run: Annotated[
        bool,
        Field(
            title="Report rather than run registration commands",
            validation_alias=AliasChoices(ENV_PREFIX + "DRY_RUN", "dryRun"),
        ),
    ] = False

    stop_on_error: Annotated[
        bool,
        Field(
            title="Stop after the first failed registration",
            description=(
                "By default every entry is attempted regardless of earlier"
                " failures."
            ),
            validation_alias=AliasChoices(
                ENV_PREFIX + "STOP_ON_ERROR", "stopOnError"
            ),
        ),
    ] = False

    log_profile: Annotated[
        Profile,
        Field(
            title="Logging profile",
            validation_alias=AliasChoices(
                ENV_PREFIX + "LOG_PROFILE", "logProfile"
            ),
        ),
    ] = Profile.production

    log_level: Annotated[
        LogLevel,
        Field(
            title="Log level",
            validation_alias=AliasChoices(
                ENV_PREFIX + "LOG_LEVEL", "logLevel"
            ),
        ),
    ] = LogLevel.INFO

    add_timestamp: Annotated[
        bool,
        Field(
            title="Add timestamp to log lines",
            validation_alias=AliasChoices(
                ENV_PREFIX + "ADD_TIMESTAMP", "addTimestamp"
            ),
        ),
    ] = False

    alert_hook: Annotated[
        SecretStr | None,
        Field(
            title="Slack webhook URL used for sending alerts",
            description=(
                "An https URL, which should be considered secret."
                " If not set or set to `None`, this feature will be disabled."
            ),
            validation_alias=AliasChoices(
                ENV_PREFIX + "ALERT_HOOK", "alertHook"
            ),
        ),
    ] = None

    @classmethod
    def from_file(cls, path: Path | None = None) -> Self:
        """Construct the configuration from a YAML file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML. If `None`, only defaults
            and environment variables are used.

        Returns
        -------
        Config
            The corresponding configuration.
        """
        if path is None:
            config = cls()
        else:
            with path.open("r") as f:
                config = cls.model_validate(yaml.safe_load(f) or {})
        config.configure_logging()
        return config

    def load_entries(self) -> list[RegistrationEntry]:
        """Return the entries to register.

        Returns
        -------
        list of RegistrationEntry
            Entries from ``entries_file`` if set, otherwise ``entries``.

        Raises
        ------
        OSError
            Raised if the entries file cannot be read.
        pydantic.ValidationError
            Raised if the entries file does not hold a valid list of entries.
        yaml.YAMLError
            Raised if the entries file is not valid YAML.
        """
        if self.entries_file is None:
            return list(self.entries)
        data = yaml.safe_load(self.entries_file.read_text())
        return _ENTRIES_ADAPTER.validate_python(data or [])

    def configure_logging(self) -> None:
        """Configure logging based on the registration configuration."""
        if self.debug:
            log_level = LogLevel.DEBUG
            log_profile = Profile.development
        else:
            log_level = self.log_level
            log_profile = self.log_profile

        configure_logging(
            profile=log_profile,
            log_level=log_level,
            add_timestamp=self.add_timestamp,
            name=ROOT_LOGGER,
        )
