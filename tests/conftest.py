"""
Shared test configuration and fixtures for WebFinger tests.

Provides sample account configuration files, a loaded ConfigStore, application settings
and an aiohttp test client wired to the full application.
"""

from pathlib import Path
from typing import Callable

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from social.graze.webfinger.app.config import Settings
from social.graze.webfinger.app.server import start_web_server
from social.graze.webfinger.model.store import ConfigStore

from tests.helpers import SAMPLE_CONFIG


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Return a function that writes YAML text to the test config file."""
    path = tmp_path / "config.yaml"

    def _write(content: str) -> Path:
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config_path(write_config) -> Path:
    """Path to a config file holding SAMPLE_CONFIG."""
    return write_config(SAMPLE_CONFIG)


@pytest_asyncio.fixture
async def store(config_path) -> ConfigStore:
    """ConfigStore loaded from SAMPLE_CONFIG."""
    return await ConfigStore.open(config_path)


@pytest.fixture
def settings(config_path) -> Settings:
    """Settings pointing at the sample config, with reloads effectively disabled."""
    return Settings(config_file=config_path, reload_interval=3600, metrics_backend="none")


@pytest_asyncio.fixture
async def client(settings, store):
    """aiohttp test client for the full application."""
    app = await start_web_server(settings, store)
    async with TestClient(TestServer(app)) as test_client:
        yield test_client
