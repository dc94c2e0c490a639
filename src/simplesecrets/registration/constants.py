"""Constants for spire-register.  Overrideable for testing."""

from pathlib import Path

ENV_PREFIX = "SPIRE_REGISTER_"
ALERT_HOOK_ENV_VAR = f"{ENV_PREFIX}ALERT_HOOK"
CONFIG_FILE_ENV_VAR = f"{ENV_PREFIX}CONFIG_FILE"
ROOT_LOGGER = "spire_register"

COMPOSE_COMMAND = ["docker-compose"]
"""Command used to reach the running compose project."""

SPIRE_SERVICE = "spire-server"
"""Name of the compose service running the SPIRE server."""

SPIRE_DIRECTORY = Path("/opt/spire")
"""Directory inside the container holding the SPIRE server binary."""

SPIRE_SERVER_COMMAND = "./spire-server"
"""SPIRE server command, relative to `SPIRE_DIRECTORY`."""

EXIT_COMMAND_NOT_FOUND = 127
"""Exit code reported when the compose command does not exist."""

EXIT_NOT_EXECUTABLE = 126
"""Exit code reported when the compose command cannot be executed."""
