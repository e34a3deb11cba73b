"""
Unit tests for background tasks in social.graze.webfinger.app.tasks

Tests cover a single reload tick (metrics, health gauge) and the reload loop's
interval-driven, one-at-a-time behaviour.
"""

import asyncio
import contextlib
from unittest.mock import Mock

import pytest
from aiohttp import web

from social.graze.webfinger.app.config import (
    ConfigStoreAppKey,
    HealthGaugeAppKey,
    MetricsClientAppKey,
    Settings,
    SettingsAppKey,
)
from social.graze.webfinger.app.metrics import MetricsClient
from social.graze.webfinger.app.tasks import (
    config_reload_task,
    reload_once,
    tick_health_task,
)
from social.graze.webfinger.model.health import HealthGauge
from tests.helpers import ALTERNATE_CONFIG


@pytest.fixture
def metrics_client():
    return Mock(spec=MetricsClient)


class TestReloadOnce:
    """Test suite for reload_once."""

    @pytest.mark.asyncio
    async def test_success(self, store, write_config, metrics_client):
        health_gauge = HealthGauge()
        write_config(ALTERNATE_CONFIG)

        assert await reload_once(store, health_gauge, metrics_client, "webfinger")

        metrics_client.gauge.assert_called_once_with("webfinger.config.resources", 1)
        metrics_client.increment.assert_called_once_with(
            "webfinger.config.reload.count", 1, tag_dict={"success": "true"}
        )
        assert metrics_client.timer.call_args.args[0] == "webfinger.config.reload.time"
        assert await health_gauge.womp(0) == 0

    @pytest.mark.asyncio
    async def test_failure(self, store, config_path, metrics_client):
        health_gauge = HealthGauge()
        config_path.unlink()

        assert not await reload_once(store, health_gauge, metrics_client, "webfinger")

        metrics_client.gauge.assert_not_called()
        metrics_client.increment.assert_any_call(
            "webfinger.config.reload.count", 1, tag_dict={"success": "false"}
        )
        metrics_client.increment.assert_any_call("webfinger.config.reload.failure", 1)
        assert await health_gauge.womp(0) == 1


class TestConfigReloadTask:
    """Test suite for config_reload_task."""

    @pytest.fixture
    def app(self, config_path, store, metrics_client):
        app = web.Application()
        app[SettingsAppKey] = Settings(config_file=config_path, reload_interval=0.01)
        app[ConfigStoreAppKey] = store
        app[HealthGaugeAppKey] = HealthGauge()
        app[MetricsClientAppKey] = metrics_client
        return app

    @pytest.mark.asyncio
    async def test_reloads_on_interval(self, app, store, write_config):
        write_config(ALTERNATE_CONFIG)
        task = asyncio.create_task(config_reload_task(app))
        try:
            for _ in range(200):
                if store.reload_count >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        assert store.reload_count >= 2
        assert store.current().get("carol@example.com") is not None

    @pytest.mark.asyncio
    async def test_survives_unexpected_errors(self, app, store):
        calls = 0

        async def broken_reload():
            nonlocal calls
            calls += 1
            raise RuntimeError("boom")

        store.reload = broken_reload
        task = asyncio.create_task(config_reload_task(app))
        try:
            for _ in range(200):
                if calls >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        assert calls >= 2

    @pytest.mark.asyncio
    async def test_failed_reloads_keep_snapshot(self, app, store, config_path):
        previous = store.current()
        config_path.unlink()
        task = asyncio.create_task(config_reload_task(app))
        try:
            for _ in range(200):
                if store.failure_count >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        assert store.failure_count >= 2
        assert store.current() is previous


class TestTickHealthTask:
    """Test suite for tick_health_task."""

    @pytest.mark.asyncio
    async def test_ticks_gauge(self):
        app = web.Application()
        health_gauge = HealthGauge(value=5)
        app[HealthGaugeAppKey] = health_gauge

        task = asyncio.create_task(tick_health_task(app))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

        assert await health_gauge.womp(0) == 4
