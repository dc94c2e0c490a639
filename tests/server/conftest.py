"""Test fixtures for simple-secrets service tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
import respx
import structlog
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from safir.dependencies.http_client import http_client_dependency
from safir.testing.slack import MockSlackWebhook, mock_slack_webhook

from simplesecrets.server.config import Config
from simplesecrets.server.constants import ROOT_LOGGER
from simplesecrets.server.factory import Factory, ProcessContext
from simplesecrets.server.main import create_app

from .support.config import configure
from .support.constants import TEST_BASE_URL
from .support.etcd import MockEtcd, register_mock_etcd


@pytest.fixture(autouse=True)
def _mock_metrics(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_APPLICATION", "simple-secrets")
    monkeypatch.setenv("METRICS_ENABLED", "false")
    monkeypatch.setenv("METRICS_MOCK", "true")


@pytest.fixture
def config() -> Config:
    """Construct default configuration for tests."""
    return configure("standard")


@pytest.fixture
def mock_etcd(config: Config, respx_mock: respx.Router) -> MockEtcd:
    mock = register_mock_etcd(respx_mock, config.etcd_endpoints)
    mock.add_user("someuser", "correct horse battery staple")
    return mock


@pytest.fixture
def mock_slack(
    config: Config, respx_mock: respx.Router
) -> Iterator[MockSlackWebhook]:
    config.slack_webhook = SecretStr("https://slack.example.com/webhook")
    yield mock_slack_webhook(config.slack_webhook, respx_mock)
    config.slack_webhook = None


@pytest_asyncio.fixture
async def app(
    config: Config, mock_etcd: MockEtcd, mock_slack: MockSlackWebhook
) -> AsyncIterator[FastAPI]:
    """Return a configured test application.

    Wraps the application in a lifespan manager so that startup and shutdown
    events are sent during test execution.
    """
    app = create_app()
    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an ``httpx.AsyncClient`` configured to talk to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url=TEST_BASE_URL
    ) as client:
        yield client


@pytest_asyncio.fixture
async def process_context(
    config: Config, mock_etcd: MockEtcd
) -> AsyncIterator[ProcessContext]:
    """Create the process-wide context without starting the app."""
    context = await ProcessContext.from_config(config)
    yield context
    await context.aclose()
    await http_client_dependency.aclose()


@pytest.fixture
def factory(process_context: ProcessContext) -> Factory:
    """Create a component factory for tests."""
    return Factory(process_context, structlog.get_logger(ROOT_LOGGER))
