"""Fixtures for service tests that check the audit trail."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator, MutableMapping
from typing import Any

import pytest
import pytest_asyncio
from safir.dependencies.http_client import http_client_dependency
from structlog.testing import capture_logs

from simplesecrets.server.config import Config
from simplesecrets.server.factory import ProcessContext

from ..support.etcd import MockEtcd


@pytest.fixture
def audit_log() -> Iterator[list[MutableMapping[str, Any]]]:
    """Capture all structured log messages for the test."""
    with capture_logs() as logs:
        yield logs


@pytest_asyncio.fixture
async def process_context(
    config: Config,
    mock_etcd: MockEtcd,
    audit_log: list[MutableMapping[str, Any]],
) -> AsyncIterator[ProcessContext]:
    """Create the process-wide context while log capture is active."""
    context = await ProcessContext.from_config(config)
    yield context
    await context.aclose()
    await http_client_dependency.aclose()
