import asyncio
import logging
from time import time
from typing import NoReturn
from aiohttp import web
import sentry_sdk

from social.graze.webfinger.app.config import (
    ConfigStoreAppKey,
    HealthGaugeAppKey,
    MetricsClientAppKey,
    SettingsAppKey,
)
from social.graze.webfinger.app.metrics import MetricsClient
from social.graze.webfinger.model.health import HealthGauge
from social.graze.webfinger.model.store import ConfigStore

logger = logging.getLogger(__name__)


async def tick_health_task(app: web.Application) -> NoReturn:
    """
    Tick the health gauge every 30 seconds, reducing the health score by 1 each time.
    """

    logger.info("Starting health gauge task")

    health_gauge = app[HealthGaugeAppKey]
    while True:
        await health_gauge.tick()
        await asyncio.sleep(30)


async def reload_once(
    store: ConfigStore,
    health_gauge: HealthGauge,
    metrics_client: MetricsClient,
    prefix: str,
) -> bool:
    """
    Perform one configuration reload and report it.

    A failed reload leaves the previous snapshot active and counts against the health
    gauge. Returns True if a new snapshot was installed.
    """
    start_time = time()
    reloaded = False
    try:
        reloaded = await store.reload()
    finally:
        metrics_client.timer(f"{prefix}.config.reload.time", time() - start_time)
        metrics_client.increment(
            f"{prefix}.config.reload.count",
            1,
            tag_dict={"success": str(reloaded).lower()},
        )

    if reloaded:
        metrics_client.gauge(f"{prefix}.config.resources", len(store.current()))
    else:
        metrics_client.increment(f"{prefix}.config.reload.failure", 1)
        await health_gauge.womp()

    return reloaded


async def config_reload_task(app: web.Application) -> NoReturn:
    """
    Background process that reloads the account configuration on a fixed interval.

    Each tick sleeps for the configured interval and then awaits exactly one reload, so
    reload N always finishes before reload N+1 starts. Reload failures are handled by the
    store; anything unexpected is logged and the loop carries on.
    """
    settings = app[SettingsAppKey]
    store = app[ConfigStoreAppKey]
    health_gauge = app[HealthGaugeAppKey]
    metrics_client = app[MetricsClientAppKey]

    logger.info(
        "Starting config reload task for %s every %ss",
        store.path,
        settings.reload_interval,
    )

    while True:
        await asyncio.sleep(settings.reload_interval)

        try:
            await reload_once(
                store, health_gauge, metrics_client, settings.statsd_prefix
            )
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.exception("config reload tick failed")
