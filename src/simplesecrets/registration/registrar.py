"""The Registrar class builds and runs the ``spire-server entry create``
commands that register SPIFFE identities with a SPIRE server container.
"""

import asyncio
import shlex

import yaml
from pydantic import ValidationError
from safir.slack.webhook import SlackWebhookClient
from structlog.stdlib import BoundLogger, get_logger

from .config import Config
from .constants import (
    EXIT_COMMAND_NOT_FOUND,
    EXIT_NOT_EXECUTABLE,
    ROOT_LOGGER,
)
from .exceptions import InvalidEntriesError, RegistrationFailedError
from .models import RegistrationEntry, RegistrationReport, RegistrationResult

__all__ = ["Registrar"]


class Registrar:
    """Register SPIRE entries by shelling out to the compose project.

    Commands are run strictly one after another. A failed command never
    prevents the following ones from running unless ``stop_on_error`` is
    set in the configuration.

    Parameters
    ----------
    config
        Registration configuration.
    logger
        Logger to use. If not given, the root logger for the registration
        tool is used.
    """

    def __init__(
        self, config: Config, logger: BoundLogger | None = None
    ) -> None:
        self._config = config
        self._logger = logger or get_logger(ROOT_LOGGER)
        self._slack: SlackWebhookClient | None = None
        if config.alert_hook:
            self._slack = SlackWebhookClient(
                config.alert_hook.get_secret_value(),
                "SPIRE Registration",
                self._logger,
            )
            self._logger.debug("Slack webhook initialized")
        cfgdict = config.model_dump(mode="json", exclude={"entries"})
        if cfgdict.get("alert_hook"):
            cfgdict["alert_hook"] = "<SECRET>"
        self._logger.debug("Registrar initialized", config=cfgdict)

    def load_entries(self) -> list[RegistrationEntry]:
        """Return the configured registration entries.

        Raises
        ------
        InvalidEntriesError
            Raised if the entries file cannot be read or parsed.
        """
        try:
            return self._config.load_entries()
        except (OSError, ValidationError, yaml.YAMLError) as e:
            path = self._config.entries_file
            if path is None:
                raise
            raise InvalidEntriesError(path, str(e)) from e

    def build_command(self, entry: RegistrationEntry) -> list[str]:
        """Build the argument list that registers a single entry.

        The ``spire-server`` invocation is run through ``sh -c`` inside the
        container so that it can change to the SPIRE directory first.

        Parameters
        ----------
        entry
            Entry to register.

        Returns
        -------
        list of str
            Arguments suitable for `asyncio.create_subprocess_exec`.
        """
        create = [self._config.server_command, "entry", "create"]
        create.extend(entry.to_arguments())
        directory = shlex.quote(str(self._config.spire_directory))
        script = f"cd {directory} && " + " ".join(
            shlex.quote(a) for a in create
        )
        return [
            *self._config.compose_command,
            "exec",
            self._config.service,
            "sh",
            "-c",
            script,
        ]

    def commands(self) -> list[list[str]]:
        """Return the commands that a registration run would execute."""
        return [self.build_command(e) for e in self.load_entries()]

    async def register(self, entry: RegistrationEntry) -> RegistrationResult:
        """Run the registration command for one entry.

        Output of the command is not captured and goes straight to our own
        standard output and standard error.

        Parameters
        ----------
        entry
            Entry to register.

        Returns
        -------
        RegistrationResult
            Command and exit status. A missing compose command is reported
            the way a shell would report it, with exit status 127. Any other
            failure to start it, such as missing permissions or an unknown
            executable format, is reported as exit status 126.
        """
        command = self.build_command(entry)
        logger = self._logger.bind(
            spiffe_id=entry.spiffe_id, parent_id=entry.parent_id
        )
        logger.info("Registering entry", command=shlex.join(command))
        try:
            proc = await asyncio.create_subprocess_exec(*command)
        except FileNotFoundError as e:
            logger.error(f"Cannot run {command[0]}: {e!s}")
            exit_code = EXIT_COMMAND_NOT_FOUND
        except OSError as e:
            logger.error(f"Cannot run {command[0]}: {e!s}")
            exit_code = EXIT_NOT_EXECUTABLE
        else:
            exit_code = await proc.wait()
            if exit_code < 0:
                # Killed by a signal, reported as a shell would.
                exit_code = 128 - exit_code
        if exit_code == 0:
            logger.info("Registered entry")
        else:
            logger.warning("Registration failed", exit_code=exit_code)
        return RegistrationResult(
            entry=entry, command=command, exit_code=exit_code
        )

    async def execute(self) -> RegistrationReport:
        """Register every configured entry, in order.

        Returns
        -------
        RegistrationReport
            Results of each command that ran. Its ``exit_code`` is that of
            the last command.
        """
        entries = self.load_entries()
        report = RegistrationReport()
        if self._config.dry_run:
            for entry in entries:
                command = shlex.join(self.build_command(entry))
                self._logger.info(
                    "Dry run, not registering entry", command=command
                )
            return report

        for entry in entries:
            result = await self.register(entry)
            report.results.append(result)
            if not result.succeeded and self._config.stop_on_error:
                self._logger.warning(
                    "Stopping after failed registration",
                    remaining=len(entries) - len(report.results),
                )
                break

        failed = report.failed
        if failed:
            self._logger.warning(
                "Some registrations failed",
                failed=[r.entry.spiffe_id for r in failed],
            )
            if self._slack:
                await self._slack.post_exception(
                    RegistrationFailedError(failed)
                )
        else:
            self._logger.info(
                "All entries registered", count=len(report.results)
            )
        return report
