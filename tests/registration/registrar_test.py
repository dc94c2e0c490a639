"""Test the registration runner."""

from pathlib import Path

import pytest
import respx
from pydantic import SecretStr
from safir.testing.slack import mock_slack_webhook

from simplesecrets.registration.config import Config
from simplesecrets.registration.exceptions import InvalidEntriesError
from simplesecrets.registration.models import DEFAULT_ENTRIES
from simplesecrets.registration.registrar import Registrar

from .util import FakeCompose

EXPECTED_SCRIPTS = [
    (
        "cd /opt/spire && ./spire-server entry create"
        " -parentID spiffe://example.org/simple-secrets"
        " -spiffeID spiffe://example.org/simple-secrets1"
        " -selector unix:uid:0 -ttl 120"
    ),
    (
        "cd /opt/spire && ./spire-server entry create"
        " -parentID spiffe://example.org/prometheus"
        " -spiffeID spiffe://example.org/prometheus-proxy"
        " -selector unix:uid:0 -ttl 120"
    ),
    (
        "cd /opt/spire && ./spire-server entry create"
        " -parentID spiffe://example.org/fluentd"
        " -spiffeID spiffe://example.org/fluentd-proxy"
        " -selector unix:uid:0 -ttl 120"
    ),
]


def test_default_commands() -> None:
    registrar = Registrar(Config())
    assert registrar.commands() == [
        ["docker-compose", "exec", "spire-server", "sh", "-c", s]
        for s in EXPECTED_SCRIPTS
    ]


def test_configured_commands() -> None:
    config_file = (
        Path(__file__).parent.parent / "data" / "registration" / "config.yaml"
    )
    registrar = Registrar(Config.from_file(config_file))
    command = registrar.build_command(DEFAULT_ENTRIES[0])
    assert command == [
        "docker",
        "compose",
        "exec",
        "spire",
        "sh",
        "-c",
        (
            "cd /srv/spire && bin/spire-server entry create"
            " -parentID spiffe://example.org/simple-secrets"
            " -spiffeID spiffe://example.org/simple-secrets1"
            " -selector unix:uid:0 -ttl 120"
        ),
    ]


def test_entries_file() -> None:
    entries_file = (
        Path(__file__).parent.parent / "data" / "registration" / "entries.yaml"
    )
    registrar = Registrar(Config(entries_file=entries_file))
    scripts = [c[-1] for c in registrar.commands()]
    assert scripts == [
        (
            "cd /opt/spire && ./spire-server entry create"
            " -parentID spiffe://example.org/node"
            " -spiffeID spiffe://example.org/workload-a"
            " -selector unix:uid:1000 -ttl 300"
        ),
        (
            "cd /opt/spire && ./spire-server entry create"
            " -parentID spiffe://example.org/node"
            " -spiffeID spiffe://example.org/workload-b"
            " -selector docker:label:app:b -ttl 60"
        ),
    ]


def test_bad_entries_file(tmp_path: Path) -> None:
    entries_file = (
        Path(__file__).parent.parent
        / "data"
        / "registration"
        / "bad-entries.yaml"
    )
    registrar = Registrar(Config(entries_file=entries_file))
    with pytest.raises(InvalidEntriesError):
        registrar.commands()

    registrar = Registrar(Config(entries_file=tmp_path / "missing.yaml"))
    with pytest.raises(InvalidEntriesError):
        registrar.commands()


@pytest.mark.asyncio
async def test_execute(tmp_path: Path) -> None:
    compose = FakeCompose(tmp_path, [0, 0, 0])
    registrar = Registrar(Config(compose_command=[str(compose.path)]))
    report = await registrar.execute()

    assert report.exit_code == 0
    assert report.failed == []
    assert [r.entry for r in report.results] == list(DEFAULT_ENTRIES)
    assert compose.calls == [
        ["exec", "spire-server", "sh", "-c", s] for s in EXPECTED_SCRIPTS
    ]


@pytest.mark.asyncio
async def test_execute_continues_after_failure(tmp_path: Path) -> None:
    compose = FakeCompose(tmp_path, [1, 0, 0])
    registrar = Registrar(Config(compose_command=[str(compose.path)]))
    report = await registrar.execute()

    # The last command succeeded, so the run as a whole succeeds.
    assert len(compose.calls) == 3
    assert report.exit_code == 0
    assert [r.exit_code for r in report.results] == [1, 0, 0]
    assert [r.entry for r in report.failed] == [DEFAULT_ENTRIES[0]]


@pytest.mark.asyncio
async def test_execute_last_failure(tmp_path: Path) -> None:
    compose = FakeCompose(tmp_path, [0, 0, 3])
    registrar = Registrar(Config(compose_command=[str(compose.path)]))
    report = await registrar.execute()
    assert len(compose.calls) == 3
    assert report.exit_code == 3


@pytest.mark.asyncio
async def test_stop_on_error(tmp_path: Path) -> None:
    compose = FakeCompose(tmp_path, [0, 2, 0])
    config = Config(compose_command=[str(compose.path)], stop_on_error=True)
    report = await Registrar(config).execute()
    assert len(compose.calls) == 2
    assert report.exit_code == 2


@pytest.mark.asyncio
async def test_missing_command(tmp_path: Path) -> None:
    config = Config(compose_command=[str(tmp_path / "nonexistent")])
    report = await Registrar(config).execute()
    assert [r.exit_code for r in report.results] == [127, 127, 127]
    assert report.exit_code == 127


@pytest.mark.asyncio
async def test_not_executable(tmp_path: Path) -> None:
    compose = tmp_path / "compose"
    compose.write_text("#!/bin/sh\nexit 0\n")
    compose.chmod(0o644)
    config = Config(compose_command=[str(compose)])
    report = await Registrar(config).execute()
    assert [r.exit_code for r in report.results] == [126, 126, 126]
    assert report.exit_code == 126


@pytest.mark.asyncio
async def test_cannot_execute(tmp_path: Path) -> None:
    # A path through a regular file.
    (tmp_path / "file").write_text("")
    config = Config(compose_command=[str(tmp_path / "file" / "x")])
    report = await Registrar(config).execute()
    assert [r.exit_code for r in report.results] == [126, 126, 126]

    # An executable file in an unknown format.
    compose = tmp_path / "compose"
    compose.write_bytes(b"\x00\x01\x02\x03")
    compose.chmod(0o755)
    config = Config(compose_command=[str(compose)])
    report = await Registrar(config).execute()
    assert [r.exit_code for r in report.results] == [126, 126, 126]
    assert report.exit_code == 126


@pytest.mark.asyncio
async def test_killed_by_signal(tmp_path: Path) -> None:
    compose = tmp_path / "compose"
    compose.write_text("#!/bin/sh\nkill -TERM $$\n")
    compose.chmod(0o755)
    config = Config(compose_command=[str(compose)])
    report = await Registrar(config).execute()
    assert [r.exit_code for r in report.results] == [143, 143, 143]
    assert report.exit_code == 143


@pytest.mark.asyncio
async def test_dry_run(tmp_path: Path) -> None:
    compose = FakeCompose(tmp_path, [])
    config = Config(compose_command=[str(compose.path)], dry_run=True)
    report = await Registrar(config).execute()
    assert compose.calls == []
    assert report.results == []
    assert report.exit_code == 0


@pytest.mark.asyncio
async def test_slack_alert(tmp_path: Path, respx_mock: respx.Router) -> None:
    webhook = "https://slack.example.com/webhook"
    mock_slack = mock_slack_webhook(webhook, respx_mock)
    compose = FakeCompose(tmp_path, [0, 5, 0])
    config = Config(
        compose_command=[str(compose.path)], alert_hook=SecretStr(webhook)
    )
    report = await Registrar(config).execute()
    assert report.exit_code == 0

    assert len(mock_slack.messages) == 1
    message = str(mock_slack.messages[0])
    assert "1 SPIRE registration(s) failed" in message
    assert "spiffe://example.org/prometheus-proxy" in message
    assert "exited with 5" in message
