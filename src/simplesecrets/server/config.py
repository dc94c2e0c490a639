"""Configuration for the simple-secrets service."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Self

import yaml
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile
from safir.metrics import MetricsConfiguration, metrics_configuration_factory
from safir.pydantic import HumanTimedelta

from .constants import ENV_PREFIX, SPIFFE_ID, TOKEN_EXPIRATION

__all__ = ["Config"]


class Config(BaseSettings):
    """simple-secrets service configuration.

    Settings are read from a YAML file. Environment variables take precedence
    over the file. The etcd, token and SPIFFE settings keep the names used by
    earlier deployments, such as ``ETCD_CLUSTER_MEMBERS`` and
    ``TOKEN_EXPIRATION_SECS``. The rest use the ``SIMPLE_SECRETS_`` prefix.
    Environment variable names are case-sensitive.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel,
        case_sensitive=True,
        extra="forbid",
        populate_by_name=True,
    )

    etcd_cluster_members: Annotated[
        str,
        Field(
            title="etcd cluster members",
            description="Comma-separated list of etcd client URLs",
            examples=["http://etcd-0:2379,http://etcd-1:2379"],
            validation_alias=AliasChoices(
                "ETCD_CLUSTER_MEMBERS", "etcdClusterMembers"
            ),
        ),
    ] = "http://localhost:2379"

    token_expiration: Annotated[
        HumanTimedelta,
        Field(
            title="Session token lifetime",
            description="Plain integers are interpreted as seconds",
            validation_alias=AliasChoices(
                "TOKEN_EXPIRATION_SECS", "tokenExpiration"
            ),
        ),
    ] = TOKEN_EXPIRATION

    spiffe_id: Annotated[
        str,
        Field(
            title="SPIFFE ID of this instance",
            description="Attached to every audit event",
            validation_alias=AliasChoices("SPIFFE_ID", "spiffeId"),
        ),
    ] = SPIFFE_ID

    log_level: Annotated[
        LogLevel,
        Field(
            title="Log level",
            description="Python logging level",
            examples=[LogLevel.INFO],
            validation_alias=AliasChoices(
                ENV_PREFIX + "LOG_LEVEL", "logLevel"
            ),
        ),
    ] = LogLevel.INFO

    metrics: MetricsConfiguration = Field(
        default_factory=metrics_configuration_factory,
        title="Metrics configuration",
        description="Configuration for reporting metrics to Kafka",
    )

    name: Annotated[
        str,
        Field(
            title="Name of application",
            description="Used when reporting problems to Slack",
            validation_alias=AliasChoices(ENV_PREFIX + "NAME", "name"),
        ),
    ] = "simple-secrets"

    path_prefix: Annotated[
        str,
        Field(
            title="URL prefix for the secrets API",
            description="Empty to serve the API at the root",
            validation_alias=AliasChoices(
                ENV_PREFIX + "PATH_PREFIX", "pathPrefix"
            ),
        ),
    ] = ""

    profile: Annotated[
        Profile,
        Field(
            title="Application logging profile",
            description=(
                "``production`` uses JSON logging. ``development`` uses"
                " logging that may be easier for humans to read but that"
                " cannot be easily parsed by computers or fluentd."
            ),
            examples=[Profile.development],
            validation_alias=AliasChoices(ENV_PREFIX + "PROFILE", "profile"),
        ),
    ] = Profile.production

    slack_webhook: Annotated[
        SecretStr | None,
        Field(
            title="Slack webhook for alerts",
            description=(
                "If set, storage failures and any uncaught exceptions in the"
                " service will be reported to Slack via this webhook"
            ),
            validation_alias=AliasChoices(
                ENV_PREFIX + "SLACK_WEBHOOK", "slackWebhook"
            ),
        ),
    ] = None

    @field_validator("etcd_cluster_members")
    @classmethod
    def _validate_members(cls, v: str) -> str:
        if not any(m.strip() for m in v.split(",")):
            raise ValueError("At least one etcd cluster member is required")
        return v

    @property
    def etcd_endpoints(self) -> list[str]:
        """etcd client URLs, in the order they should be tried."""
        members = self.etcd_cluster_members.split(",")
        return [m.strip().rstrip("/") for m in members if m.strip()]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Let environment variables override the configuration file."""
        return (env_settings, init_settings)

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load the service configuration from a YAML file.

        Parameters
        ----------
        path
            Path to the configuration file.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f) or {})
