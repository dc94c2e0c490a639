"""CLI for SPIRE entry registration."""

import functools
import os
import shlex
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

import click
import yaml
from pydantic import ValidationError
from safir.asyncio import run_with_asyncio
from safir.click import display_help
from safir.sentry import initialize_sentry, report_exception
from safir.slack.webhook import SlackWebhookClient
from structlog.stdlib import get_logger

from .. import __version__
from .config import Config
from .constants import ALERT_HOOK_ENV_VAR, CONFIG_FILE_ENV_VAR, ROOT_LOGGER
from .registrar import Registrar


def _common[**P, R](
    func: Callable[P, Awaitable[R]],
) -> Callable[P, R]:
    """Add common Click options and error reporting to a command."""

    @click.option(
        "--entries-file",
        "-e",
        type=Path,
        help="YAML file listing the entries to register",
        default=None,
    )
    @click.option(
        "--config-file",
        "-c",
        help="Application configuration file",
        type=Path,
        default=None,
    )
    @run_with_asyncio
    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        # Configure slack alerting and report any exceptions
        logger = get_logger(ROOT_LOGGER)
        if alert_hook := os.environ.get(ALERT_HOOK_ENV_VAR, None):
            slack_client = SlackWebhookClient(
                alert_hook,
                "SPIRE Registration",
                logger=logger,
            )
        else:
            slack_client = None

        try:
            return await func(*args, **kwargs)
        except click.ClickException:
            raise
        except Exception as exc:
            await report_exception(exc, slack_client)
            raise

    return wrapper


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, message="%(version)s")
def main() -> None:
    """SPIRE registration command-line interface."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.argument("subtopic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None, subtopic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic, subtopic)


def _make_registrar(
    *,
    config_file: Path | None,
    entries_file: Path | None,
    dry_run: bool = False,
    debug: bool = False,
    stop_on_error: bool = False,
) -> Registrar:
    """Construct a Registrar, overriding config from CLI options."""
    # Prefer config file from env var
    if env_config_path := os.getenv(CONFIG_FILE_ENV_VAR):
        config_file = Path(env_config_path)

    try:
        config = Config.from_file(config_file)
    except (OSError, ValidationError, yaml.YAMLError) as e:
        source = config_file or "environment"
        msg = f"Invalid configuration from {source!s}: {e!s}"
        raise click.UsageError(msg) from e

    if entries_file:
        config.entries_file = entries_file

    # For flags, if specified, use that, and if not, do whatever the config
    # says.
    if debug:
        config.debug = debug
        config.configure_logging()

    if dry_run:
        config.dry_run = dry_run

    if stop_on_error:
        config.stop_on_error = stop_on_error

    return Registrar(config=config)


@main.command
@click.option(
    "--debug",
    "-d",
    is_flag=True,
    help="Enable debug logging",
)
@click.option(
    "--dry-run",
    "-x",
    is_flag=True,
    help="Do not act, but report what would be done",
)
@click.option(
    "--stop-on-error",
    "-s",
    is_flag=True,
    help="Do not register further entries after a failure",
)
@_common
async def register(
    *,
    config_file: Path | None,
    entries_file: Path | None,
    dry_run: bool,
    debug: bool,
    stop_on_error: bool,
) -> None:
    """Register SPIRE entries.

    Exits with the status of the last registration command that ran.
    """
    registrar = _make_registrar(
        config_file=config_file,
        entries_file=entries_file,
        dry_run=dry_run,
        debug=debug,
        stop_on_error=stop_on_error,
    )
    report = await registrar.execute()
    if report.exit_code != 0:
        sys.exit(report.exit_code)


@main.command
@_common
async def show(
    *,
    config_file: Path | None,
    entries_file: Path | None,
) -> None:
    """Print the registration commands without running them."""
    registrar = _make_registrar(
        config_file=config_file, entries_file=entries_file
    )
    for command in registrar.commands():
        click.echo(shlex.join(command))


def main_with_sentry() -> None:
    """Call the main command group after initializing Sentry."""
    initialize_sentry(release=__version__)
    main()
