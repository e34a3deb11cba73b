"""
Configuration Module for the WebFinger Service

This module defines the process configuration for the WebFinger service, using Pydantic for
settings validation and dependency injection through AppKeys.

Settings come from environment variables with defaults suitable for running the service
next to its `config.yaml`. The account records themselves are not settings: they live in
the YAML file named by CONFIG_FILE and are reloaded by a background task.

All application components reach settings and shared resources through typed AppKeys.
"""

import asyncio
from pathlib import Path
from typing import Final, Literal, Optional
import logging
from aiohttp import web
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from social.graze.webfinger.app.metrics import MetricsClient
from social.graze.webfinger.model.health import HealthGauge
from social.graze.webfinger.model.store import ConfigStore
from social.graze.webfinger.resolve.resource import ResolutionEngine


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the WebFinger service.

    Environment variables are mapped to fields automatically. For example the listening port
    is set with PORT and the account file with CONFIG_FILE.
    """

    debug: bool = False
    """
    Enable debug mode for verbose logging and development features.
    Set with DEBUG=true environment variable.
    """

    http_port: int = Field(alias="port", default=8000)
    """
    HTTP port for the service to listen on.
    Set with PORT environment variable.
    Default: 8000
    """

    config_file: Path = Field(
        Path("config.yaml"),
        validation_alias=AliasChoices("config_file", "webfinger_config"),
    )
    """
    Path to the YAML file mapping account identifiers to their attributes.
    Set with CONFIG_FILE or WEBFINGER_CONFIG environment variables.
    Default: config.yaml
    """

    reload_interval: float = 30.0
    """
    Seconds between configuration reloads.
    Set with RELOAD_INTERVAL environment variable.
    Default: 30
    """

    require_resource: bool = False
    """
    Answer 400 when the `resource` query parameter is missing instead of falling back to
    the configured default subject.
    Set with REQUIRE_RESOURCE environment variable.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    metrics_backend: Literal["telegraf", "none"] = "none"
    """
    Metrics backend, either `telegraf` (StatsD) or `none`.
    Set with METRICS_BACKEND environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    statsd_prefix: str = "webfinger"
    """
    Prefix for all StatsD metrics from this service.
    Set with STATSD_PREFIX environment variable.
    """

    @field_validator("reload_interval")
    @classmethod
    def validate_reload_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("reload_interval must be greater than zero")
        return v

    @field_validator("config_file", mode="after")
    @classmethod
    def expand_config_file(cls, v: Path) -> Path:
        return v.expanduser()


# Application context keys for dependency injection
SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

ConfigStoreAppKey: Final = web.AppKey("config_store", ConfigStore)
"""AppKey for accessing the hot-reloaded account configuration"""

ResolutionEngineAppKey: Final = web.AppKey("resolution_engine", ResolutionEngine)
"""AppKey for accessing the WebFinger resolution engine"""

HealthGaugeAppKey: Final = web.AppKey("health_gauge", HealthGauge)
"""AppKey for accessing the health monitoring gauge"""

MetricsClientAppKey: Final = web.AppKey("metrics_client", MetricsClient)
"""AppKey for accessing the metrics client"""

ConfigReloadTaskAppKey: Final = web.AppKey("config_reload_task", asyncio.Task[None])
"""AppKey for the background task that reloads the account configuration"""

TickHealthTaskAppKey: Final = web.AppKey("tick_health_task", asyncio.Task[None])
"""AppKey for the background task that monitors service health"""
